"""
Engine Data Model

Value objects passed into and returned from the adaptation engine. Every
entity is a dataclass with ``from_dict``/``to_dict`` helpers so the CLI and
MCP surfaces can speak JSON.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import ValidationError


class AestheticFocus(str, Enum):
    """User-selected physique goal steering accessory selection."""
    V_TAPER = "v_taper"
    GLUTES = "glutes"
    TONED = "toned"
    FUNCTIONAL = "functional"   # No accessories, lowest priority / default

    @classmethod
    def parse(cls, value: Union[str, 'AestheticFocus', None]) -> 'AestheticFocus':
        """Parse a focus value, raising ValidationError for unknown values."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValidationError(f"Invalid aesthetic focus: {value!r}")
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid aesthetic focus: {value!r}") from None


class TrendStatus(str, Enum):
    """Progression classification for a single exercise."""
    PROGRESSING = "progressing"
    PLATEAU = "plateau"
    REGRESSING = "regressing"
    INSUFFICIENT_DATA = "insufficient_data"


# =============================================================================
# VOLUME SCALING
# =============================================================================

@dataclass(frozen=True)
class AppliedFactor:
    """A single volume multiplier and where it came from."""
    source: str
    factor: float


@dataclass(frozen=True)
class ScalingTrace:
    """
    Record of every volume adjustment applied to one exercise.

    Factors always compose against ``original_sets``, never against an
    already-reduced count.
    """
    original_sets: int
    applied_factors: Tuple[AppliedFactor, ...] = ()
    final_sets: Optional[int] = None

    @property
    def combined_factor(self) -> float:
        result = 1.0
        for applied in self.applied_factors:
            result *= applied.factor
        return result

    def has_source(self, source: str) -> bool:
        return any(a.source == source for a in self.applied_factors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'original_sets': self.original_sets,
            'applied_factors': [
                {'source': a.source, 'factor': a.factor} for a in self.applied_factors
            ],
            'final_sets': self.final_sets,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ScalingTrace':
        factors = tuple(
            AppliedFactor(source=str(f['source']), factor=float(f['factor']))
            for f in data.get('applied_factors', [])
        )
        final_sets = data.get('final_sets')
        return cls(
            original_sets=int(data['original_sets']),
            applied_factors=factors,
            final_sets=int(final_sets) if final_sets is not None else None,
        )


# =============================================================================
# WORKOUTS
# =============================================================================

@dataclass(frozen=True)
class Exercise:
    """A prescribed exercise."""
    name: str
    category: str = "general"
    sets: int = 3
    reps: Union[str, int] = "8-12"
    rationale: Optional[str] = None
    aesthetic: bool = False
    modifications: Tuple[str, ...] = ()
    scaling: Optional[ScalingTrace] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def with_modification(self, note: str) -> 'Exercise':
        """Return a copy with ``note`` appended once to the modification history."""
        if note in self.modifications:
            return self
        return replace(self, modifications=self.modifications + (note,))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Exercise':
        """
        Build an Exercise from a JSON-like mapping.

        Raises:
            ValidationError: If the mapping has no usable name or sets
        """
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(f"Exercise must be a mapping, got {type(data).__name__}")

        name = data.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Exercise requires a non-empty name")

        try:
            sets = int(data.get('sets', 3))
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid sets for {name}: {data.get('sets')!r}") from None
        if sets < 1:
            raise ValidationError(f"Exercise {name} must have at least 1 set")

        known = {'name', 'category', 'sets', 'reps', 'rationale', 'aesthetic',
                 'modifications', 'scaling'}
        scaling = data.get('scaling')

        return cls(
            name=name,
            category=data.get('category') or "general",
            sets=sets,
            reps=data.get('reps', "8-12"),
            rationale=data.get('rationale'),
            aesthetic=bool(data.get('aesthetic', False)),
            modifications=tuple(data.get('modifications') or ()),
            scaling=ScalingTrace.from_dict(scaling) if scaling else None,
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.extra)
        result.update({
            'name': self.name,
            'category': self.category,
            'sets': self.sets,
            'reps': self.reps,
            'aesthetic': self.aesthetic,
        })
        if self.rationale:
            result['rationale'] = self.rationale
        if self.modifications:
            result['modifications'] = list(self.modifications)
        if self.scaling:
            result['scaling'] = self.scaling.to_dict()
        return result


@dataclass(frozen=True)
class Adaptations:
    """Summary of what ``adapt_workout`` did."""
    performance_percentage: str = "70%"
    aesthetic_percentage: str = "30%"
    volume_reduced: bool = False
    readiness_level: float = 8

    def to_dict(self) -> Dict[str, Any]:
        return {
            'performance_percentage': self.performance_percentage,
            'aesthetic_percentage': self.aesthetic_percentage,
            'volume_reduced': self.volume_reduced,
            'readiness_level': self.readiness_level,
        }


@dataclass(frozen=True)
class Workout:
    """A workout: an ordered list of exercises plus adaptation metadata."""
    exercises: Tuple[Exercise, ...] = ()
    adaptations: Optional[Adaptations] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Workout':
        """
        Build a Workout from a JSON-like mapping.

        A missing exercise list yields an empty workout.

        Raises:
            ValidationError: If exercises is present but not a list of mappings
        """
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(f"Workout must be a mapping, got {type(data).__name__}")

        raw = data.get('exercises')
        if raw is None:
            raw = []
        if not isinstance(raw, (list, tuple)):
            raise ValidationError("Workout exercises must be a list")

        return cls(
            exercises=tuple(Exercise.from_dict(e) for e in raw),
            extra={k: v for k, v in data.items() if k not in ('exercises', 'adaptations')},
        )

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.extra)
        result['exercises'] = [e.to_dict() for e in self.exercises]
        if self.adaptations:
            result['adaptations'] = self.adaptations.to_dict()
        return result


@dataclass(frozen=True)
class SplitResult:
    performance: Tuple[Exercise, ...] = ()
    aesthetic: Tuple[Exercise, ...] = ()


@dataclass(frozen=True)
class SplitInfo:
    aesthetic_focus: Optional[str]
    performance_percentage: str
    aesthetic_percentage: str
    readiness_level: float
    accessories_reduced: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'aesthetic_focus': self.aesthetic_focus,
            'performance_percentage': self.performance_percentage,
            'aesthetic_percentage': self.aesthetic_percentage,
            'readiness_level': self.readiness_level,
            'accessories_reduced': self.accessories_reduced,
        }


# =============================================================================
# SUBSTITUTIONS
# =============================================================================

@dataclass(frozen=True)
class Alternative:
    """A substitute exercise and how to adjust rest and volume when using it."""
    name: str
    rationale: str
    rest_adjustment_seconds: int = 0
    volume_adjustment_factor: float = 1.0
    equipment: Optional[str] = None
    estimated_time: Optional[float] = None   # minutes

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'rationale': self.rationale,
            'rest_adjustment_seconds': self.rest_adjustment_seconds,
            'volume_adjustment_factor': self.volume_adjustment_factor,
        }
        if self.equipment is not None:
            result['equipment'] = self.equipment
        if self.estimated_time is not None:
            result['estimated_time'] = self.estimated_time
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Alternative':
        if isinstance(data, cls):
            return data
        return cls(
            name=data['name'],
            rationale=data.get('rationale', ''),
            rest_adjustment_seconds=int(data.get('rest_adjustment_seconds', 0)),
            volume_adjustment_factor=float(data.get('volume_adjustment_factor', 1.0)),
            equipment=data.get('equipment'),
            estimated_time=data.get('estimated_time'),
        )


@dataclass(frozen=True)
class SubstitutionConstraints:
    """Equipment allow-list and maximum duration (minutes) for alternatives."""
    equipment: Optional[Tuple[str, ...]] = None
    time: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return not self.equipment and not self.time

    @classmethod
    def coerce(cls, value: Union['SubstitutionConstraints', Mapping[str, Any], None]
               ) -> 'SubstitutionConstraints':
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        equipment = value.get('equipment')
        if isinstance(equipment, str):
            equipment = [equipment]
        return cls(
            equipment=tuple(equipment) if equipment else None,
            time=float(value['time']) if value.get('time') else None,
        )


@dataclass(frozen=True)
class SubstitutionResult:
    alternatives: List[Alternative]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alternatives': [a.to_dict() for a in self.alternatives],
            'message': self.message,
        }


@dataclass(frozen=True)
class FallbackResult:
    alternatives: List[Alternative]
    fallback_level: str
    message: str
    fallback_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alternatives': [a.to_dict() for a in self.alternatives],
            'fallback_level': self.fallback_level,
            'message': self.message,
            'fallback_reason': self.fallback_reason,
        }


# =============================================================================
# TRAINING HISTORY
# =============================================================================

def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO timestamp (``Z`` suffix allowed). Naive values are UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}") from None
    else:
        raise ValidationError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class SessionExercise:
    name: str
    weight: float = 0
    reps: float = 0
    rpe: float = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SessionExercise':
        if isinstance(data, cls):
            return data
        name = data.get('name')
        if not isinstance(name, str) or not name:
            raise ValidationError("Logged exercise requires a name")
        return cls(
            name=name,
            weight=float(data.get('weight') or 0),
            reps=float(data.get('reps') or 0),
            rpe=float(data.get('rpe') or 0),
        )


@dataclass(frozen=True)
class TrainingSession:
    start_at: datetime
    exercises: Tuple[SessionExercise, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'TrainingSession':
        if isinstance(data, cls):
            return data
        if 'start_at' not in data:
            raise ValidationError("Training session requires start_at")
        return cls(
            start_at=parse_timestamp(data['start_at']),
            exercises=tuple(SessionExercise.from_dict(e) for e in data.get('exercises') or []),
        )


@dataclass(frozen=True)
class UserProfile:
    """Experience level plus logged sessions."""
    experience: str = "intermediate"
    sessions: Tuple[TrainingSession, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'UserProfile':
        """
        Accepts a flat ``{experience, sessions}`` mapping or the application's
        nested ``{personalData: {experience}, data: {sessions}}`` shape.
        """
        if isinstance(data, cls):
            return data
        if not data:
            return cls()

        experience = data.get('experience') or (data.get('personalData') or {}).get('experience')
        sessions = data.get('sessions')
        if sessions is None:
            sessions = (data.get('data') or {}).get('sessions') or []

        return cls(
            experience=(experience or "intermediate").lower(),
            sessions=tuple(TrainingSession.from_dict(s) for s in sessions),
        )


@dataclass
class ProgressionRecord:
    """Per-exercise time series. Append-only parallel lists."""
    weights: List[float] = field(default_factory=list)
    reps: List[float] = field(default_factory=list)
    rpe: List[float] = field(default_factory=list)
    dates: List[datetime] = field(default_factory=list)

    def append(self, weight: float, reps: float, rpe: float, when: datetime):
        self.weights.append(weight)
        self.reps.append(reps)
        self.rpe.append(rpe)
        self.dates.append(when)

    def __len__(self) -> int:
        return len(self.weights)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'weights': list(self.weights),
            'reps': list(self.reps),
            'rpe': list(self.rpe),
            'dates': [d.isoformat() for d in self.dates],
        }


@dataclass(frozen=True)
class TrendResult:
    status: TrendStatus
    trend: float = 0.0


@dataclass
class ProgressionSnapshot:
    """Derived view of recent training. Recomputed per request, never persisted."""
    exercise_progress: Dict[str, ProgressionRecord] = field(default_factory=dict)
    plateau_exercises: List[str] = field(default_factory=list)
    progressing_exercises: List[str] = field(default_factory=list)
    regressing_exercises: List[str] = field(default_factory=list)
    average_rpe: float = 7.0
    training_frequency_per_week: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'exercise_progress': {k: v.to_dict() for k, v in self.exercise_progress.items()},
            'plateau_exercises': list(self.plateau_exercises),
            'progressing_exercises': list(self.progressing_exercises),
            'regressing_exercises': list(self.regressing_exercises),
            'average_rpe': self.average_rpe,
            'training_frequency_per_week': self.training_frequency_per_week,
        }


@dataclass(frozen=True)
class SelectionResult:
    exercise: Optional[Exercise]
    rationale: str
    selection_metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'exercise': self.exercise.to_dict() if self.exercise else None,
            'rationale': self.rationale,
            'selection_metadata': self.selection_metadata,
        }


# =============================================================================
# PREFERENCES
# =============================================================================

@dataclass(frozen=True)
class Preferences:
    """
    Stored per-user engine preferences. Unknown keys survive a round trip.

    Values are kept as stored; readers validate each field on its own so one
    bad field never discards the other.
    """
    aesthetic_focus: Optional[str] = None
    last_readiness_score: Any = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Preferences':
        if isinstance(data, cls):
            return data
        if not data:
            return cls()
        return cls(
            aesthetic_focus=data.get('aesthetic_focus'),
            last_readiness_score=data.get('last_readiness_score'),
            extra={k: v for k, v in data.items()
                   if k not in ('aesthetic_focus', 'last_readiness_score')},
        )

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.extra)
        result['aesthetic_focus'] = self.aesthetic_focus
        result['last_readiness_score'] = self.last_readiness_score
        return result
