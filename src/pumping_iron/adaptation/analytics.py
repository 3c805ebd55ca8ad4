"""
Progression Analytics

Builds per-exercise load history from logged sessions and classifies each
exercise as progressing, plateaued or regressing by comparing the mean of the
last five data points against the five before them.
"""

import logging
from datetime import datetime, timedelta, timezone
from statistics import mean
from typing import Any, Iterable, Mapping, Optional, Union

from ..models import (
    ProgressionRecord,
    ProgressionSnapshot,
    TrainingSession,
    TrendResult,
    TrendStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
TREND_WINDOW = 5          # points per comparison window
MIN_POINTS = 3
TREND_THRESHOLD = 0.05    # +/- 5% relative change
DEFAULT_AVERAGE_RPE = 7.0

SessionLike = Union[TrainingSession, Mapping[str, Any]]


class ProgressionAnalyzer:
    """Derives a ProgressionSnapshot from recent training sessions."""

    def __init__(self, window_days: int = DEFAULT_WINDOW_DAYS):
        self.window_days = window_days

    @property
    def weeks_in_window(self) -> int:
        return max(1, round(self.window_days / 7))

    def get_user_progression_data(
        self,
        sessions: Optional[Iterable[SessionLike]],
        now: Optional[datetime] = None
    ) -> ProgressionSnapshot:
        """
        Analyze sessions that started within the trailing window.

        Args:
            sessions: TrainingSession objects or dicts with ``start_at`` and
                ``exercises: [{name, weight, reps, rpe}]``
            now: Reference time (default: current UTC time)

        Returns:
            ProgressionSnapshot keyed by lower-cased exercise name

        Raises:
            ValidationError: If a session cannot be parsed
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = now - timedelta(days=self.window_days)

        parsed = [TrainingSession.from_dict(s) for s in (sessions or [])]
        recent = sorted((s for s in parsed if s.start_at >= cutoff), key=lambda s: s.start_at)

        snapshot = ProgressionSnapshot(
            training_frequency_per_week=len(recent) / self.weeks_in_window
        )

        rpes = []
        for session in recent:
            for logged in session.exercises:
                key = logged.name.lower()
                record = snapshot.exercise_progress.setdefault(key, ProgressionRecord())
                record.append(logged.weight, logged.reps, logged.rpe, session.start_at)
                if logged.rpe > 0:
                    rpes.append(logged.rpe)

        for name, record in snapshot.exercise_progress.items():
            status = self.calculate_progression_trend(record).status
            if status == TrendStatus.PLATEAU:
                snapshot.plateau_exercises.append(name)
            elif status == TrendStatus.PROGRESSING:
                snapshot.progressing_exercises.append(name)
            elif status == TrendStatus.REGRESSING:
                snapshot.regressing_exercises.append(name)

        snapshot.average_rpe = mean(rpes) if rpes else DEFAULT_AVERAGE_RPE

        logger.debug(
            f"Analyzed {len(recent)} sessions, {len(snapshot.exercise_progress)} exercises, "
            f"{len(snapshot.plateau_exercises)} plateaued"
        )
        return snapshot

    def calculate_progression_trend(self, record: ProgressionRecord) -> TrendResult:
        """
        Classify the load trend of one exercise.

        Returns:
            TrendResult; ``insufficient_data`` with fewer than 3 points in
            either window or a non-positive older average (untracked load)
        """
        weights = record.weights
        if len(weights) < MIN_POINTS:
            return TrendResult(TrendStatus.INSUFFICIENT_DATA)

        recent = weights[-TREND_WINDOW:]
        older = weights[-2 * TREND_WINDOW:-TREND_WINDOW]
        if len(recent) < MIN_POINTS or len(older) < MIN_POINTS:
            return TrendResult(TrendStatus.INSUFFICIENT_DATA)

        older_avg = mean(older)
        if older_avg <= 0:
            return TrendResult(TrendStatus.INSUFFICIENT_DATA)

        trend = (mean(recent) - older_avg) / older_avg
        if trend > TREND_THRESHOLD:
            status = TrendStatus.PROGRESSING
        elif trend < -TREND_THRESHOLD:
            status = TrendStatus.REGRESSING
        else:
            status = TrendStatus.PLATEAU

        return TrendResult(status=status, trend=trend)
