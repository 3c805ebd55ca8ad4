"""
Performance / Aesthetic Split

Partitions a workout's exercises into a performance bucket (roughly 70%) and
an aesthetic bucket (the remainder).
"""

import math
from typing import Iterable, Optional, Sequence

from ..models import Exercise, SplitResult
from ..reference import PERFORMANCE_KEYWORDS, PERFORMANCE_SHARE


class SplitClassifier:
    """
    Classifies exercises by position and movement type.

    Compound lifts (squat, deadlift, bench, ...) are always performance work,
    wherever they appear. Everything else is performance if it falls within
    the first ``ceil(n * 0.7)`` positions, aesthetic otherwise.
    """

    def __init__(
        self,
        performance_keywords: Iterable[str] = PERFORMANCE_KEYWORDS,
        performance_share: float = PERFORMANCE_SHARE
    ):
        self.performance_keywords = tuple(k.lower() for k in performance_keywords)
        self.performance_share = performance_share

    def is_performance_movement(self, exercise_name: str) -> bool:
        """Check if an exercise name matches a compound performance movement."""
        name = (exercise_name or '').lower()
        return any(keyword in name for keyword in self.performance_keywords)

    def classify(self, exercises: Optional[Sequence[Exercise]]) -> SplitResult:
        """
        Split exercises into performance and aesthetic buckets.

        Args:
            exercises: Ordered exercise list (None or empty allowed)

        Returns:
            SplitResult with order preserved inside each bucket
        """
        if not exercises:
            return SplitResult()

        # round() first: 10 * 0.7 is 7.000000000000001 in floating point
        performance_count = math.ceil(round(len(exercises) * self.performance_share, 9))
        performance = []
        aesthetic = []

        for i, exercise in enumerate(exercises):
            if self.is_performance_movement(exercise.name) or i < performance_count:
                performance.append(exercise)
            else:
                aesthetic.append(exercise)

        return SplitResult(performance=tuple(performance), aesthetic=tuple(aesthetic))
