"""
Progression-Aware Exercise Selection

Scores candidate exercises against the user's recent progression and
experience level and picks the best one for a muscle group.

Scoring (base 50, clamped to 0-100):
    +20 progressing, -10 plateaued, -15 regressing, +10 never trained
    +15 assistance exercise for a currently plateaued lift
    -15 beginner on a complex lift (>7), -10 advanced on a simple one (<4)
    -5 / +5 when the last three RPEs average above 8 / below 6
"""

import logging
from datetime import datetime
from statistics import mean
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..errors import ValidationError
from ..models import Exercise, ProgressionSnapshot, SelectionResult, UserProfile
from ..reference import (
    COMPLEXITY_SCORES,
    DEFAULT_COMPLEXITY,
    MUSCLE_GROUP_PATTERNS,
    PLATEAU_ASSISTANCE,
    keywords_in,
)
from .analytics import ProgressionAnalyzer

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

PROGRESSING_BONUS = 20
PLATEAU_PENALTY = -10
REGRESSING_PENALTY = -15
NOVELTY_BONUS = 10
ASSISTANCE_BONUS = 15
BEGINNER_COMPLEXITY_PENALTY = -15
ADVANCED_SIMPLICITY_PENALTY = -10
HIGH_RPE_PENALTY = -5
LOW_RPE_BONUS = 5

RECENT_RPE_POINTS = 3

CandidateLike = Union[Exercise, Mapping[str, Any], str]


def coerce_candidate(candidate: CandidateLike) -> Exercise:
    if isinstance(candidate, str):
        return Exercise(name=candidate)
    return Exercise.from_dict(candidate)


def positive_rpes(values: Sequence[float]) -> List[float]:
    return [v for v in values if v and v > 0]


class ExerciseSelector:
    """Picks the next best exercise from a candidate list."""

    def __init__(
        self,
        analyzer: Optional[ProgressionAnalyzer] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.analyzer = analyzer or ProgressionAnalyzer()
        self.logger = logger or logging.getLogger(__name__)

    # =========================================================================
    # Selection
    # =========================================================================

    def select_exercise_for_user(
        self,
        candidates: Optional[Sequence[CandidateLike]],
        user_profile: Union[UserProfile, Mapping[str, Any], None],
        target_muscle_group: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> SelectionResult:
        """
        Select the highest-scoring candidate.

        Args:
            candidates: Exercises, exercise dicts or plain names
            user_profile: Experience level and logged sessions
            target_muscle_group: chest, back, shoulders, legs, arms or core
            now: Reference time for the progression window

        Returns:
            SelectionResult; ties go to the first candidate. Never raises.
        """
        if not candidates:
            return SelectionResult(exercise=None, rationale="No exercises available for selection")

        try:
            exercises = [coerce_candidate(c) for c in candidates]
            profile = UserProfile.from_dict(user_profile)
            snapshot = self.analyzer.get_user_progression_data(profile.sessions, now=now)

            pool = exercises
            if target_muscle_group:
                pool = [e for e in exercises
                        if self.exercise_targets_muscle_group(e.name, target_muscle_group)]
                if not pool:
                    self.logger.debug(
                        f"No candidates match {target_muscle_group}, using all {len(exercises)}"
                    )
                    pool = exercises

            scores = [self.calculate_progression_score(e, snapshot, profile) for e in pool]
            best = max(range(len(pool)), key=lambda i: scores[i])
            selected = pool[best]

            return SelectionResult(
                exercise=selected,
                rationale=self.generate_selection_rationale(selected, scores[best], snapshot),
                selection_metadata={
                    'total_candidates': len(pool),
                    'selected_score': scores[best],
                    'score_range': {'min': min(scores), 'max': max(scores)},
                    'progression_factors': self.get_progression_factors(selected, snapshot),
                },
            )

        except Exception as e:
            self.logger.error(f"Error selecting exercise: {e}", exc_info=True)
            return SelectionResult(
                exercise=self._first_candidate(candidates),
                rationale="Fallback selection due to error"
            )

    def _first_candidate(self, candidates: Sequence[CandidateLike]) -> Optional[Exercise]:
        try:
            return coerce_candidate(candidates[0])
        except (ValidationError, TypeError) as e:
            self.logger.error(f"First candidate is not a valid exercise: {e}")
            return None

    # =========================================================================
    # Scoring
    # =========================================================================

    def calculate_progression_score(
        self,
        exercise: Exercise,
        snapshot: ProgressionSnapshot,
        user_profile: UserProfile
    ) -> float:
        key = exercise.name.lower()
        score = BASE_SCORE

        if key in snapshot.progressing_exercises:
            score += PROGRESSING_BONUS
        elif key in snapshot.plateau_exercises:
            score += PLATEAU_PENALTY
        elif key in snapshot.regressing_exercises:
            score += REGRESSING_PENALTY

        if key not in snapshot.exercise_progress:
            score += NOVELTY_BONUS

        if self.is_plateau_assistance(key, snapshot.plateau_exercises):
            score += ASSISTANCE_BONUS

        complexity = self.get_exercise_complexity_score(exercise.name)
        if user_profile.experience == 'beginner' and complexity > 7:
            score += BEGINNER_COMPLEXITY_PENALTY
        elif user_profile.experience == 'advanced' and complexity < 4:
            score += ADVANCED_SIMPLICITY_PENALTY

        record = snapshot.exercise_progress.get(key)
        if record:
            recent = positive_rpes(record.rpe)[-RECENT_RPE_POINTS:]
            if recent:
                avg = mean(recent)
                if avg > 8:
                    score += HIGH_RPE_PENALTY
                elif avg < 6:
                    score += LOW_RPE_BONUS

        return max(MIN_SCORE, min(MAX_SCORE, score))

    def get_plateau_assistance(self, plateau_exercises: Sequence[str]) -> List[str]:
        """Assistance exercises for every plateaued lift (plateaued name contains the lift)."""
        assistance = []
        for plateaued in plateau_exercises:
            for lift, helpers in PLATEAU_ASSISTANCE.items():
                if lift in plateaued.lower():
                    assistance.extend(h for h in helpers if h not in assistance)
        return assistance

    def is_plateau_assistance(self, exercise_name: str, plateau_exercises: Sequence[str]) -> bool:
        name = exercise_name.lower()
        if name in plateau_exercises:
            return False
        return any(helper in name for helper in self.get_plateau_assistance(plateau_exercises))

    def get_exercise_complexity_score(self, exercise_name: str) -> int:
        """Highest matching complexity keyword, DEFAULT_COMPLEXITY when none match."""
        matches = keywords_in(exercise_name, COMPLEXITY_SCORES)
        if not matches:
            return DEFAULT_COMPLEXITY
        return max(COMPLEXITY_SCORES[k] for k in matches)

    def exercise_targets_muscle_group(self, exercise_name: str, muscle_group: str) -> bool:
        patterns = MUSCLE_GROUP_PATTERNS.get((muscle_group or '').strip().lower())
        if not patterns:
            return False
        return bool(keywords_in(exercise_name, patterns))

    # =========================================================================
    # Explanation
    # =========================================================================

    def generate_selection_rationale(
        self,
        exercise: Exercise,
        score: float,
        snapshot: ProgressionSnapshot
    ) -> str:
        if score >= 80:
            return "Prioritized due to recent progress and optimal difficulty level"
        if score >= 70:
            return "Selected based on progression data and user experience level"

        key = exercise.name.lower()
        if self.is_plateau_assistance(key, snapshot.plateau_exercises):
            return "Recommended as assistance exercise for plateaued movement pattern"
        if key in snapshot.exercise_progress:
            return "Selected based on training history and progression trends"
        return "New exercise introduction based on user goals and experience"

    def get_progression_factors(self, exercise: Exercise, snapshot: ProgressionSnapshot) -> Dict[str, Any]:
        key = exercise.name.lower()
        record = snapshot.exercise_progress.get(key)
        rpes = positive_rpes(record.rpe) if record else []

        return {
            'is_new_exercise': record is None,
            'is_progressing': key in snapshot.progressing_exercises,
            'is_plateaued': key in snapshot.plateau_exercises,
            'recent_sessions': len(record) if record else 0,
            'average_rpe': mean(rpes) if rpes else None,
        }
