"""
Readiness-Based Volume Scaling

Set-count scaling with floors. Every adjustment is recorded in the
exercise's ScalingTrace, and factors always compose against the original
set count, so repeated or stacked adjustments never compound.
"""

import math
from dataclasses import replace
from typing import Iterable, List

from ..models import Alternative, AppliedFactor, Exercise, ScalingTrace

READINESS_THRESHOLD = 6          # readiness <= threshold reduces volume
READINESS_REDUCTION_FACTOR = 0.7

READINESS_SOURCE = 'readiness'
SUBSTITUTION_SOURCE = 'substitution'

ACCESSORY_MIN_SETS = 1
PERFORMANCE_MIN_SETS = 2


def format_readiness(readiness: float) -> str:
    return f"{readiness:g}"


class VolumeScaler:
    """Scales set counts to readiness without producing near-empty sessions."""

    def __init__(
        self,
        threshold: float = READINESS_THRESHOLD,
        reduction_factor: float = READINESS_REDUCTION_FACTOR
    ):
        self.threshold = threshold
        self.reduction_factor = reduction_factor

    def is_reduced(self, readiness: float) -> bool:
        return readiness <= self.threshold

    def adjust_sets_for_readiness(self, base_sets: int, readiness: float) -> int:
        """
        Sets for a newly generated exercise.

        Args:
            base_sets: Prescribed sets before adjustment
            readiness: Readiness score (1-10)

        Returns:
            ``max(1, floor(base_sets * 0.7))`` when readiness <= 6, else base_sets
        """
        if self.is_reduced(readiness):
            return max(ACCESSORY_MIN_SETS, math.floor(base_sets * self.reduction_factor))
        return base_sets

    def minimum_sets(self, exercise: Exercise, original_sets: int) -> int:
        """Floor for an exercise: 1 for accessories, 2 for performance lifts."""
        if exercise.aesthetic:
            return ACCESSORY_MIN_SETS
        return min(PERFORMANCE_MIN_SETS, original_sets)

    def apply_factor(self, exercise: Exercise, source: str, factor: float) -> Exercise:
        """
        Record a volume factor and recompute sets from the original count.

        Re-applying a source replaces its previous factor instead of stacking.

        Args:
            exercise: Exercise to scale (not modified)
            source: Where the factor comes from (e.g. 'readiness', 'substitution')
            factor: Multiplier on the original set count

        Returns:
            New Exercise with updated sets and ScalingTrace
        """
        trace = exercise.scaling or ScalingTrace(original_sets=exercise.sets)
        factors = tuple(a for a in trace.applied_factors if a.source != source)
        factors += (AppliedFactor(source=source, factor=factor),)

        scaled = ScalingTrace(original_sets=trace.original_sets, applied_factors=factors)
        final_sets = max(
            self.minimum_sets(exercise, trace.original_sets),
            math.floor(trace.original_sets * scaled.combined_factor)
        )

        return replace(
            exercise,
            sets=final_sets,
            scaling=replace(scaled, final_sets=final_sets)
        )

    def reduce_accessory_volume(self, exercises: Iterable[Exercise], readiness: float) -> List[Exercise]:
        """
        Apply the readiness reduction to aesthetic exercises.

        Exercises whose trace already carries the readiness factor keep their
        sets; the modification note is added once either way.

        Args:
            exercises: Exercises to adjust (not modified)
            readiness: Readiness score (1-10)

        Returns:
            New list; non-aesthetic exercises pass through untouched
        """
        exercises = list(exercises)
        if not self.is_reduced(readiness):
            return exercises

        note = f"Reduced volume (readiness: {format_readiness(readiness)}/10)"
        adjusted = []
        for exercise in exercises:
            if exercise.aesthetic:
                if not (exercise.scaling and exercise.scaling.has_source(READINESS_SOURCE)):
                    exercise = self.apply_factor(exercise, READINESS_SOURCE, self.reduction_factor)
                exercise = exercise.with_modification(note)
            adjusted.append(exercise)

        return adjusted

    def apply_substitution_factor(self, exercise: Exercise, alternative: Alternative) -> Exercise:
        """Compose an alternative's volume adjustment into the exercise's trace."""
        return self.apply_factor(exercise, SUBSTITUTION_SOURCE, alternative.volume_adjustment_factor)
