"""
Pumping Iron: Adaptive Exercise Selection & Load-Scaling Engine

Internal Codename: PUMPING-IRON
"The last three or four reps is what makes the muscle grow."

Adapts a base workout to the athlete's aesthetic goal and readiness, proposes
safe substitutions, and picks the next exercise from progression history.
"""

import logging

from .adaptation import ExerciseAdapter
from .models import AestheticFocus, Exercise, Workout

__version__ = "0.3.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'ExerciseAdapter',
    'AestheticFocus',
    'Exercise',
    'Workout',
]
