"""
Exercise Adapter

Internal Codename: PUMPING-IRON
"Pump the volume up, or down, depending on the day."

Orchestrates split classification, accessory injection, readiness scaling,
substitutions and progression-aware selection behind one object. Every
collaborator is passed in; nothing is looked up globally.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from ..config import Settings
from ..errors import DependencyUnavailable, PumpingIronError, ValidationError
from ..events import AESTHETIC_FOCUS_UPDATED, READINESS_UPDATED
from ..models import (
    Adaptations,
    AestheticFocus,
    Alternative,
    Exercise,
    FallbackResult,
    Preferences,
    ProgressionSnapshot,
    SelectionResult,
    SplitInfo,
    SubstitutionResult,
    Workout,
)
from ..reference import FOCUS_DESCRIPTIONS
from .accessories import AccessoryLibrary
from .analytics import ProgressionAnalyzer
from .selection import ExerciseSelector
from .split import SplitClassifier
from .substitution import SubstitutionResolver
from .volume import VolumeScaler, format_readiness

PERFORMANCE_PERCENTAGE = "70%"
AESTHETIC_PERCENTAGE = "30%"

WorkoutLike = Union[Workout, Mapping[str, Any]]
ExerciseLike = Union[Exercise, Mapping[str, Any]]


class ExerciseAdapter:
    """
    Adapts workouts to a user's aesthetic focus and readiness.

    Construct with ``await ExerciseAdapter.create(...)`` to load stored
    preferences, or construct directly and call ``load_user_preferences()``.
    Synchronous methods never raise; they log and return a safe fallback.
    """

    def __init__(
        self,
        preference_store=None,
        event_bus=None,
        identity_provider=None,
        logger: Optional[logging.Logger] = None,
        settings: Optional[Settings] = None,
        volume_scaler: Optional[VolumeScaler] = None,
        split_classifier: Optional[SplitClassifier] = None,
        accessory_library: Optional[AccessoryLibrary] = None,
        substitution_resolver: Optional[SubstitutionResolver] = None,
        progression_analyzer: Optional[ProgressionAnalyzer] = None,
        exercise_selector: Optional[ExerciseSelector] = None,
    ):
        """
        Initialize the adapter.

        Args:
            preference_store: Async store with ``get(user_id)``/``save(user_id, prefs)``
            event_bus: Bus with ``subscribe(topic, handler)`` (and ``publish``)
            identity_provider: Object with ``get_current_user_id()``
            logger: Logger (default: module logger)
            settings: Settings (default readiness, history window)
        """
        self.preference_store = preference_store
        self.event_bus = event_bus
        self.identity_provider = identity_provider
        self.logger = logger or logging.getLogger(__name__)
        self.settings = settings or Settings()

        self.volume_scaler = volume_scaler or VolumeScaler()
        self.split_classifier = split_classifier or SplitClassifier()
        self.accessory_library = accessory_library or AccessoryLibrary(self.volume_scaler)
        self.substitution_resolver = substitution_resolver or SubstitutionResolver(logger=self.logger)
        self.progression_analyzer = progression_analyzer or ProgressionAnalyzer(
            window_days=self.settings.history_window_days
        )
        self.exercise_selector = exercise_selector or ExerciseSelector(
            self.progression_analyzer, logger=self.logger
        )

        # Preferences cache
        self.aesthetic_focus = AestheticFocus.FUNCTIONAL
        self.readiness_level = self.settings.default_readiness

        self._unsubscribe = None
        if event_bus is not None:
            self._unsubscribe = event_bus.subscribe(READINESS_UPDATED, self._on_readiness_updated)

    @classmethod
    async def create(cls, **kwargs) -> 'ExerciseAdapter':
        """Construct an adapter and load the current user's preferences."""
        adapter = cls(**kwargs)
        await adapter.load_user_preferences()
        return adapter

    def close(self):
        """Drop the readiness subscription."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # =========================================================================
    # Preferences
    # =========================================================================

    def _require_user_id(self) -> str:
        if self.identity_provider is None:
            raise DependencyUnavailable("No identity provider configured")
        user_id = self.identity_provider.get_current_user_id()
        if not user_id:
            raise DependencyUnavailable("No current user")
        return user_id

    def _require_store(self):
        if self.preference_store is None:
            raise DependencyUnavailable("No preference store configured")
        return self.preference_store

    async def load_user_preferences(self):
        """
        Refresh aesthetic focus and readiness from the preference store.

        A missing store, identity or stored record keeps the defaults
        (focus 'functional', default readiness).
        """
        try:
            user_id = self._require_user_id()
            stored = await self._require_store().get(user_id)
            if not stored:
                self.logger.debug(f"No stored preferences for {user_id}")
                return

            prefs = Preferences.from_dict(stored)
            self.aesthetic_focus = self._stored_focus(prefs.aesthetic_focus)
            if prefs.last_readiness_score is not None:
                self.readiness_level = self._parse_readiness(prefs.last_readiness_score)

            self.logger.debug(
                f"Loaded preferences for {user_id}: focus={self.aesthetic_focus.value}, "
                f"readiness={self.readiness_level}"
            )
        except DependencyUnavailable as e:
            self.logger.warning(f"Using default preferences: {e}")
        except Exception as e:
            self.logger.error(f"Failed to load user preferences: {e}", exc_info=True)

    def _stored_focus(self, value: Optional[str]) -> AestheticFocus:
        if not value:
            return AestheticFocus.FUNCTIONAL
        try:
            return AestheticFocus.parse(value)
        except ValidationError as e:
            self.logger.warning(f"Ignoring stored aesthetic focus: {e}")
            return AestheticFocus.FUNCTIONAL

    def _parse_readiness(self, score: Any) -> float:
        """Readiness as a float; invalid values fall back to the default level."""
        if score is None:
            return self.settings.default_readiness
        try:
            return float(score)
        except (TypeError, ValueError):
            self.logger.warning(f"Ignoring invalid readiness score: {score!r}")
            return self.settings.default_readiness

    def _on_readiness_updated(self, payload: Mapping[str, Any]):
        readiness = (payload or {}).get('readiness') or {}
        score = readiness.get('readiness_score')
        if score is None:
            score = readiness.get('readinessScore')
        self.readiness_level = self._parse_readiness(score)

    async def update_aesthetic_focus(self, focus: Union[str, AestheticFocus]) -> bool:
        """
        Persist a new aesthetic focus for the current user.

        Stored preference keys other than the focus are preserved.

        Returns:
            True if saved, False on validation or storage failure
        """
        try:
            parsed = AestheticFocus.parse(focus)
            user_id = self._require_user_id()
            store = self._require_store()

            prefs = Preferences.from_dict(await store.get(user_id))
            await store.save(user_id, replace(prefs, aesthetic_focus=parsed.value).to_dict())

            self.aesthetic_focus = parsed
            self.logger.debug(f"Aesthetic focus updated: {parsed.value}")

            if self.event_bus is not None:
                self.event_bus.publish(
                    AESTHETIC_FOCUS_UPDATED,
                    {'user_id': user_id, 'aesthetic_focus': parsed.value}
                )
            return True

        except PumpingIronError as e:
            self.logger.warning(f"Aesthetic focus not updated: {e}")
            return False
        except Exception as e:
            self.logger.error(f"Failed to update aesthetic focus: {e}", exc_info=True)
            return False

    # =========================================================================
    # Workout adaptation
    # =========================================================================

    def adapt_workout(
        self,
        workout: WorkoutLike,
        readiness_score: Optional[float] = None
    ) -> Union[Workout, WorkoutLike]:
        """
        Adapt a workout: performance block first, then aesthetic work plus
        focus accessories, with accessory volume reduced at readiness <= 6.

        Args:
            workout: Workout or workout dict (not modified)
            readiness_score: Readiness (1-10); defaults to the cached level

        Returns:
            New Workout with ``adaptations`` set, or the input unchanged on error
        """
        try:
            readiness = self.readiness_level if readiness_score is None else float(readiness_score)
            base = Workout.from_dict(workout)

            split = self.split_classifier.classify(base.exercises)
            aesthetic = list(split.aesthetic)

            if self.aesthetic_focus != AestheticFocus.FUNCTIONAL:
                aesthetic.extend(self.accessory_library.get_accessories(self.aesthetic_focus, readiness))

            reduced = self.volume_scaler.is_reduced(readiness)
            if reduced:
                aesthetic = self.volume_scaler.reduce_accessory_volume(aesthetic, readiness)

            return replace(
                base,
                exercises=split.performance + tuple(aesthetic),
                adaptations=Adaptations(
                    performance_percentage=PERFORMANCE_PERCENTAGE,
                    aesthetic_percentage=AESTHETIC_PERCENTAGE,
                    volume_reduced=reduced,
                    readiness_level=readiness,
                ),
            )

        except Exception as e:
            self.logger.error(f"Failed to adapt workout: {e}", exc_info=True)
            return workout

    def get_split_info(self) -> SplitInfo:
        return SplitInfo(
            aesthetic_focus=self.aesthetic_focus.value if self.aesthetic_focus else None,
            performance_percentage=PERFORMANCE_PERCENTAGE,
            aesthetic_percentage=AESTHETIC_PERCENTAGE,
            readiness_level=self.readiness_level,
            accessories_reduced=self.volume_scaler.is_reduced(self.readiness_level),
        )

    # =========================================================================
    # Substitutions
    # =========================================================================

    def suggest_substitutions(
        self,
        exercise_name: str,
        dislikes: Iterable[str] = (),
        pain_location: Optional[str] = None,
        constraints: Optional[Mapping[str, Any]] = None
    ) -> SubstitutionResult:
        return self.substitution_resolver.suggest_substitutions(
            exercise_name, dislikes=dislikes, pain_location=pain_location, constraints=constraints
        )

    def get_alternates(self, exercise_name: str) -> List[Alternative]:
        return self.substitution_resolver.get_alternates(exercise_name)

    def get_fallback_alternatives(
        self,
        exercise_name: str,
        pain_location: Optional[str] = None,
        constraints: Optional[Mapping[str, Any]] = None
    ) -> FallbackResult:
        return self.substitution_resolver.get_fallback_alternatives(
            exercise_name, pain_location=pain_location, constraints=constraints
        )

    def substitute_exercise(
        self,
        exercise: ExerciseLike,
        alternative: Union[Alternative, Mapping[str, Any]]
    ) -> Union[Exercise, ExerciseLike]:
        """
        Swap an exercise for an alternative, keeping sets/reps and composing
        the alternative's volume factor into the scaling trace.

        Returns:
            New Exercise, or the input unchanged on error
        """
        try:
            original = Exercise.from_dict(exercise)
            alt = Alternative.from_dict(alternative)

            extra = dict(original.extra)
            extra['substituted_for'] = original.name
            if alt.rest_adjustment_seconds:
                extra['rest_adjustment_seconds'] = alt.rest_adjustment_seconds

            swapped = replace(original, name=alt.name, rationale=alt.rationale, extra=extra)
            swapped = self.volume_scaler.apply_substitution_factor(swapped, alt)
            return swapped.with_modification(f"Substituted for {original.name}")

        except Exception as e:
            self.logger.error(f"Failed to substitute exercise: {e}", exc_info=True)
            return exercise

    # =========================================================================
    # Progression & selection
    # =========================================================================

    def get_user_progression_data(
        self,
        sessions: Optional[Sequence[Mapping[str, Any]]],
        now: Optional[datetime] = None
    ) -> ProgressionSnapshot:
        """Progression snapshot for recent sessions; empty snapshot on error."""
        try:
            return self.progression_analyzer.get_user_progression_data(sessions, now=now)
        except Exception as e:
            self.logger.error(f"Failed to analyze progression: {e}", exc_info=True)
            return ProgressionSnapshot()

    def select_exercise_for_user(
        self,
        candidates: Sequence[Any],
        user_profile: Optional[Mapping[str, Any]],
        target_muscle_group: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> SelectionResult:
        return self.exercise_selector.select_exercise_for_user(
            candidates, user_profile, target_muscle_group=target_muscle_group, now=now
        )

    # =========================================================================
    # Presentation
    # =========================================================================

    def generate_tooltip(self, exercise: ExerciseLike) -> str:
        """Short explanation of why an exercise is in the workout."""
        try:
            exercise = Exercise.from_dict(exercise)
        except PumpingIronError as e:
            self.logger.warning(f"Cannot build tooltip: {e}")
            return ""

        if exercise.extra.get('tooltip'):
            return exercise.extra['tooltip']
        if exercise.aesthetic:
            description = FOCUS_DESCRIPTIONS.get(self.aesthetic_focus, 'Building physique')
            return f"{description}: {exercise.rationale or exercise.name}"
        return exercise.rationale or exercise.name

    def format_workout_text(self, workout: WorkoutLike) -> str:
        """
        Format an adapted workout as readable text.

        Args:
            workout: Workout or workout dict

        Returns:
            Formatted text string
        """
        try:
            workout = Workout.from_dict(workout)
        except PumpingIronError as e:
            self.logger.warning(f"Cannot format workout: {e}")
            return ""

        lines = []

        lines.append("=" * 60)
        lines.append("PUMPING-IRON: Adapted Workout")
        lines.append("=" * 60)
        lines.append(f"\nFocus: {FOCUS_DESCRIPTIONS.get(self.aesthetic_focus, 'Building physique')}")

        if workout.adaptations:
            a = workout.adaptations
            readiness = f"Readiness: {format_readiness(a.readiness_level)}/10"
            if a.volume_reduced:
                readiness += " (accessory volume reduced)"
            lines.append(readiness)
            lines.append(f"Split: {a.performance_percentage} performance / "
                         f"{a.aesthetic_percentage} aesthetic")

        lines.append(f"\n{'─' * 60}")
        lines.append("WORKOUT")
        lines.append('─' * 60)
        for i, ex in enumerate(workout.exercises, 1):
            tag = " [accessory]" if ex.aesthetic else ""
            lines.append(f"\n{i}. {ex.name}{tag}")
            lines.append(f"   Sets: {ex.sets} x {ex.reps} reps")
            if ex.aesthetic or ex.rationale:
                lines.append(f"   Why: {self.generate_tooltip(ex)}")
            for note in ex.modifications:
                lines.append(f"   Note: {note}")

        lines.append("\n" + "=" * 60)

        return "\n".join(lines)
