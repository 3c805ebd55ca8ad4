"""
PUMPING-IRON: Adaptive Exercise Engine

Internal Codename: PUMPING-IRON
"Pump the volume up, or down, depending on the day."

This package adapts a base workout to the lifter in front of it:
- 70/30 performance vs. aesthetic split
- Focus-specific accessory work
- Readiness-based volume scaling with set floors
- Injury-safe exercise substitutions
- Progression-aware exercise selection
"""

from .volume import VolumeScaler
from .split import SplitClassifier
from .accessories import AccessoryLibrary
from .substitution import SubstitutionResolver
from .analytics import ProgressionAnalyzer
from .selection import ExerciseSelector
from .adapter import ExerciseAdapter

__all__ = [
    'VolumeScaler',
    'SplitClassifier',
    'AccessoryLibrary',
    'SubstitutionResolver',
    'ProgressionAnalyzer',
    'ExerciseSelector',
    'ExerciseAdapter',
]
