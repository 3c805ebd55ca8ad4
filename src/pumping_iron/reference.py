"""
Reference Tables

Keyword and lookup tables used by the adaptation engine. Kept as named data
so each table can be inspected, tested, or replaced without touching control
flow.
"""

from typing import Dict, List, NamedTuple, Optional, Tuple

from .models import AestheticFocus, Alternative


# =============================================================================
# SPLIT CLASSIFICATION
# =============================================================================

# Compound / multi-joint lifts that are always performance work
PERFORMANCE_KEYWORDS: Tuple[str, ...] = (
    "squat",
    "deadlift",
    "bench",
    "overhead press",
    "pull",
    "dip",
    "clean",
    "snatch",
    "overhead squat",
)

PERFORMANCE_SHARE = 0.7


# =============================================================================
# ACCESSORIES
# =============================================================================

class AccessoryDefinition(NamedTuple):
    name: str
    target: str
    sets: int
    reps: str
    rationale: str


ACCESSORY_MATRIX: Dict[AestheticFocus, Tuple[AccessoryDefinition, ...]] = {
    AestheticFocus.V_TAPER: (
        AccessoryDefinition('Overhead Press', 'shoulders', 3, '8-10', 'Building V-taper: Wide shoulders'),
        AccessoryDefinition('Lat Pulldowns', 'back', 4, '10-12', 'Building V-taper: Wide lats'),
        AccessoryDefinition('Lateral Raises', 'shoulders', 3, '15-20', 'Building V-taper: Shoulder width'),
        AccessoryDefinition('Face Pulls', 'rear_delts', 3, '12-15', 'Building V-taper: Balanced shoulders'),
    ),
    AestheticFocus.GLUTES: (
        AccessoryDefinition('Hip Thrusts', 'glutes', 4, '12-15', 'Maximizing glutes: Hip thrust strength'),
        AccessoryDefinition('Bulgarian Split Squats', 'glutes_quads', 3, '10-12', 'Maximizing glutes: Unilateral strength'),
        AccessoryDefinition('Romanian Deadlift', 'glutes_hams', 3, '10-12', 'Maximizing glutes: Posterior chain'),
        AccessoryDefinition('Cable Kickbacks', 'glutes', 3, '15-20', 'Maximizing glutes: Glute isolation'),
    ),
    AestheticFocus.TONED: (
        AccessoryDefinition('High Rep Lateral Raises', 'shoulders', 3, '20-25', 'Staying lean: Shoulder definition'),
        AccessoryDefinition('Cable Flies', 'chest', 3, '15-20', 'Staying lean: Chest definition'),
        AccessoryDefinition('Tricep Extensions', 'arms', 3, '15-20', 'Staying lean: Arm definition'),
        AccessoryDefinition('Dumbbell Curls', 'arms', 3, '15-20', 'Staying lean: Arm definition'),
    ),
    AestheticFocus.FUNCTIONAL: (),
}

FOCUS_DESCRIPTIONS: Dict[AestheticFocus, str] = {
    AestheticFocus.V_TAPER: 'Building V-taper',
    AestheticFocus.GLUTES: 'Maximizing glutes',
    AestheticFocus.TONED: 'Staying lean',
    AestheticFocus.FUNCTIONAL: 'Functional movement',
}


# =============================================================================
# SUBSTITUTIONS
# =============================================================================

SUBSTITUTION_RULES: Dict[str, Tuple[Alternative, ...]] = {
    'bulgarian split squat': (
        Alternative('Walking Lunges', 'Same unilateral leg training, better balance, less knee stress',
                    rest_adjustment_seconds=0, volume_adjustment_factor=1.0,
                    equipment='dumbbell', estimated_time=10),
        Alternative('Reverse Lunges', 'Unilateral leg work with reduced forward knee stress',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=1.0,
                    equipment='dumbbell', estimated_time=8),
        Alternative('Step-ups', 'Similar single-leg stimulus, less dynamic loading on knee',
                    rest_adjustment_seconds=0, volume_adjustment_factor=1.1,
                    equipment='box', estimated_time=8),
    ),
    'back squat': (
        Alternative('Goblet Squat', 'Maintains squat pattern with less spinal loading',
                    rest_adjustment_seconds=-30, volume_adjustment_factor=0.9,
                    equipment='dumbbell', estimated_time=8),
        Alternative('Front Squat', 'Same movement pattern, different load placement',
                    rest_adjustment_seconds=0, volume_adjustment_factor=0.85,
                    equipment='barbell', estimated_time=12),
        Alternative('Landmine Squat', 'Unique loading vector, less spinal compression',
                    rest_adjustment_seconds=0, volume_adjustment_factor=1.0,
                    equipment='barbell', estimated_time=10),
    ),
    'deadlift': (
        Alternative('Romanian Deadlift', 'Reduces lower back stress, similar hinge pattern',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=1.0,
                    equipment='barbell', estimated_time=10),
        Alternative('Trap Bar Deadlift', 'More upright torso, less shear stress',
                    rest_adjustment_seconds=0, volume_adjustment_factor=1.1,
                    equipment='trap bar', estimated_time=12),
        Alternative('Single Leg RDL', 'Same hinge, less load, unilateral',
                    rest_adjustment_seconds=-30, volume_adjustment_factor=1.2,
                    equipment='dumbbell', estimated_time=10),
    ),
    'overhead press': (
        Alternative('Seated DB Press', 'Same shoulder stimulus, removes core/lower back',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=1.0,
                    equipment='dumbbell', estimated_time=8),
        Alternative('Landmine Press', 'Unique angle reduces shoulder impingement risk',
                    rest_adjustment_seconds=0, volume_adjustment_factor=1.0,
                    equipment='barbell', estimated_time=8),
    ),
    'bench press': (
        Alternative('Dumbbell Bench Press', 'Increased range of motion, shoulder-friendly',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=1.0,
                    equipment='dumbbell', estimated_time=10),
        Alternative('Floor Press', 'Limits range of motion to protect the shoulder',
                    rest_adjustment_seconds=0, volume_adjustment_factor=0.9,
                    equipment='barbell', estimated_time=10),
        Alternative('Machine Chest Press', 'Stable path, safer when fatigued',
                    rest_adjustment_seconds=-30, volume_adjustment_factor=1.0,
                    equipment='machine', estimated_time=8),
        Alternative('Push-ups', 'Travel option, high rep hypertrophy',
                    rest_adjustment_seconds=-30, volume_adjustment_factor=1.2,
                    equipment='bodyweight', estimated_time=6),
    ),
    'pull-up': (
        Alternative('Lat Pulldown', 'Same vertical pull, volume-friendly loading',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=1.0,
                    equipment='cable', estimated_time=8),
        Alternative('Assisted Pull-up', 'Full range of motion with controlled load',
                    rest_adjustment_seconds=0, volume_adjustment_factor=1.0,
                    equipment='machine', estimated_time=8),
        Alternative('Inverted Row', 'Horizontal pull, scalable by body angle',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=1.1,
                    equipment='bodyweight', estimated_time=6),
    ),
}


class PainRule(NamedTuple):
    """Keyword filter for a pain location: drop excluded names, rank preferred first."""
    location: str
    excluded_keywords: Tuple[str, ...]
    preferred_keywords: Tuple[str, ...]


PAIN_RULES: Dict[str, PainRule] = {
    'knee': PainRule(
        location='knee',
        excluded_keywords=('squat', 'lunge'),
        preferred_keywords=('hinge', 'press', 'deadlift', 'rdl'),
    ),
    'lower back': PainRule(
        location='lower back',
        excluded_keywords=('deadlift', 'row'),
        preferred_keywords=('supported', 'bodyweight', 'seated'),
    ),
    'shoulder': PainRule(
        location='shoulder',
        excluded_keywords=('press', 'lateral'),
        preferred_keywords=('pull', 'supported'),
    ),
}

PAIN_LOCATION_ALIASES: Dict[str, str] = {
    'knees': 'knee',
    'back': 'lower back',
    'low back': 'lower back',
    'lumbar': 'lower back',
    'shoulders': 'shoulder',
}


def get_pain_rule(pain_location: Optional[str]) -> Optional[PainRule]:
    """Resolve a free-text pain location to its rule (case-insensitive)."""
    if not pain_location:
        return None
    key = pain_location.strip().lower()
    key = PAIN_LOCATION_ALIASES.get(key, key)
    return PAIN_RULES.get(key)


# Opt-in safety net when no rule exists for an exercise
BODY_PART_FALLBACKS: Dict[str, Tuple[Alternative, ...]] = {
    'knee': (
        Alternative('Glute Bridges', 'Hip extension with minimal knee flexion',
                    volume_adjustment_factor=1.0, equipment='bodyweight', estimated_time=6),
        Alternative('Light Romanian Deadlift', 'Hinge pattern keeps the knee near-static',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=0.8,
                    equipment='dumbbell', estimated_time=8),
        Alternative('Seated Upper Body Circuit', 'Keeps the training stimulus while the knee recovers',
                    rest_adjustment_seconds=-30, volume_adjustment_factor=1.0,
                    equipment='dumbbell', estimated_time=12),
    ),
    'shoulder': (
        Alternative('Leg Press', 'Lower body strength with no shoulder loading',
                    volume_adjustment_factor=1.0, equipment='machine', estimated_time=10),
        Alternative('Dead Bug', 'Core stability with the arms unloaded',
                    rest_adjustment_seconds=-30, volume_adjustment_factor=1.0,
                    equipment='bodyweight', estimated_time=5),
        Alternative('Walking Lunges', 'Unilateral leg work with the arms at the sides',
                    volume_adjustment_factor=1.0, equipment='bodyweight', estimated_time=8),
    ),
    'lower back': (
        Alternative('Chest-Supported Row', 'Supported position removes spinal loading',
                    volume_adjustment_factor=1.0, equipment='dumbbell', estimated_time=8),
        Alternative('Seated Leg Extension', 'Seated quad work with the back supported',
                    rest_adjustment_seconds=-15, volume_adjustment_factor=1.0,
                    equipment='machine', estimated_time=6),
        Alternative('Cat-Cow Mobility', 'Gentle spinal mobility and flexibility work',
                    rest_adjustment_seconds=-30, volume_adjustment_factor=0.5,
                    equipment='bodyweight', estimated_time=5),
    ),
}

GENERIC_SAFE_ALTERNATIVES: Tuple[Alternative, ...] = (
    Alternative('Brisk Walking', 'Low-impact cardio that keeps the training habit',
                rest_adjustment_seconds=0, volume_adjustment_factor=1.0, estimated_time=15),
    Alternative('Light Cardio (Bike)', 'Raises heart rate without joint impact',
                rest_adjustment_seconds=0, volume_adjustment_factor=1.0,
                equipment='bike', estimated_time=15),
    Alternative('Mobility Flow', 'Full body mobility to maintain range of motion',
                rest_adjustment_seconds=-30, volume_adjustment_factor=0.5, estimated_time=10),
)

# Never filtered: always available, no equipment metadata
BODYWEIGHT_ALTERNATIVES: Tuple[Alternative, ...] = (
    Alternative('Bodyweight Glute Bridge', 'Safe posterior chain activation',
                rest_adjustment_seconds=-15, volume_adjustment_factor=1.0),
    Alternative('Plank', 'Core stability without joint loading',
                rest_adjustment_seconds=-30, volume_adjustment_factor=1.0),
    Alternative('Full Body Stretch', 'Recovery-focused flexibility work',
                rest_adjustment_seconds=-30, volume_adjustment_factor=0.5),
)


# =============================================================================
# EXERCISE SELECTION
# =============================================================================

MUSCLE_GROUP_PATTERNS: Dict[str, Tuple[str, ...]] = {
    'chest': ('bench', 'press', 'fly', 'push-up', 'dip'),
    'back': ('row', 'pull', 'lat', 'deadlift', 'pull-up'),
    'shoulders': ('press', 'raise', 'lateral', 'rear delt'),
    'legs': ('squat', 'lunge', 'leg press', 'deadlift', 'hip thrust'),
    'arms': ('curl', 'extension', 'tricep', 'bicep'),
    'core': ('plank', 'crunch', 'sit-up', 'ab', 'core'),
}

# Plateaued lift -> exercises that help break the plateau
PLATEAU_ASSISTANCE: Dict[str, Tuple[str, ...]] = {
    'bench press': ('dumbbell press', 'incline press', 'close grip press', 'dips'),
    'squat': ('front squat', 'bulgarian split squat', 'paused squat', 'box squat'),
    'deadlift': ('romanian deadlift', 'trap bar deadlift', 'sumo deadlift', 'rack pull'),
    'overhead press': ('dumbbell press', 'landmine press', 'arnold press', 'push press'),
}

# Technical complexity (1-10); highest matching keyword wins
COMPLEXITY_SCORES: Dict[str, int] = {
    'squat': 8,
    'deadlift': 9,
    'bench press': 7,
    'overhead press': 6,
    'clean': 10,
    'snatch': 10,
    'dumbbell': 4,
    'machine': 3,
    'cable': 4,
    'bodyweight': 5,
}

DEFAULT_COMPLEXITY = 5


def keywords_in(name: str, keywords) -> List[str]:
    """Return the keywords contained in ``name`` (case-insensitive)."""
    lowered = name.lower()
    return [k for k in keywords if k in lowered]
