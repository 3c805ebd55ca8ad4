"""Tests for the ExerciseAdapter orchestrator."""

import asyncio
import copy
import logging

import pytest

from conftest import NOW, USER_ID, build_sessions
from pumping_iron.adaptation import ExerciseAdapter
from pumping_iron.adaptation.volume import READINESS_SOURCE, SUBSTITUTION_SOURCE
from pumping_iron.events import AESTHETIC_FOCUS_UPDATED, READINESS_UPDATED
from pumping_iron.models import AestheticFocus, Alternative, Exercise, Workout
from pumping_iron.preferences import InMemoryPreferenceStore, StaticIdentityProvider

GLUTE_ACCESSORIES = ['Hip Thrusts', 'Bulgarian Split Squats', 'Romanian Deadlift', 'Cable Kickbacks']


class FailingStore(InMemoryPreferenceStore):
    async def save(self, user_id, prefs):
        raise ConnectionError("database unavailable")


def by_name(workout):
    return {e.name: e for e in workout.exercises}


class TestAdaptWorkout:

    def test_glutes_focus_low_readiness(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='glutes')
        result = adapter.adapt_workout(scenario_workout, readiness_score=5)

        assert [e.name for e in result.exercises] == [
            'Back Squat', 'Lateral Raise', 'Leg Curl', *GLUTE_ACCESSORIES
        ]
        exercises = by_name(result)
        assert exercises['Back Squat'].sets == 3
        assert exercises['Hip Thrusts'].sets == 2
        assert all(exercises[n].sets == 2 for n in GLUTE_ACCESSORIES)
        assert exercises['Hip Thrusts'].modifications == ("Reduced volume (readiness: 5/10)",)

        assert result.adaptations.volume_reduced is True
        assert result.adaptations.readiness_level == 5
        assert result.adaptations.performance_percentage == "70%"
        assert result.extra == {'name': 'Lower A'}

    def test_input_not_mutated(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='glutes')
        before = copy.deepcopy(scenario_workout)
        adapter.adapt_workout(scenario_workout, readiness_score=5)
        assert scenario_workout == before

    def test_workout_object_not_mutated(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='v_taper')
        workout = Workout.from_dict(scenario_workout)
        result = adapter.adapt_workout(workout, readiness_score=9)

        assert len(workout.exercises) == 3
        assert workout.adaptations is None
        assert len(result.exercises) == 7

    def test_high_readiness_keeps_volume(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='glutes')
        result = adapter.adapt_workout(scenario_workout, readiness_score=8)

        assert by_name(result)['Hip Thrusts'].sets == 4
        assert by_name(result)['Hip Thrusts'].modifications == ()
        assert result.adaptations.volume_reduced is False

    def test_functional_adds_nothing(self, make_adapter, scenario_workout):
        adapter = make_adapter()
        result = adapter.adapt_workout(scenario_workout, readiness_score=4)

        assert [e.name for e in result.exercises] == ['Back Squat', 'Lateral Raise', 'Leg Curl']
        assert result.adaptations.volume_reduced is True

    def test_aesthetic_bucket_exercises_reduced(self, make_adapter):
        adapter = make_adapter()
        workout = {'exercises': [{'name': f'Move {i}', 'aesthetic': i >= 7, 'sets': 4} for i in range(10)]}
        result = adapter.adapt_workout(workout, readiness_score=6)

        assert [e.sets for e in result.exercises] == [4] * 7 + [2] * 3

    def test_defaults_to_cached_readiness(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='glutes', readiness=4)
        result = adapter.adapt_workout(scenario_workout)

        assert result.adaptations.readiness_level == 4
        assert by_name(result)['Hip Thrusts'].sets == 2

    def test_missing_exercises_is_empty_workout(self, make_adapter):
        result = make_adapter().adapt_workout({'name': 'Rest Day'}, readiness_score=8)
        assert result.exercises == ()

    @pytest.mark.parametrize("workout,readiness", [
        ({'exercises': 'Back Squat'}, 8),
        ({'exercises': [{'sets': 3}]}, 8),
        ({'exercises': [{'name': 'Back Squat'}]}, 'tired'),
    ])
    def test_error_returns_input(self, make_adapter, workout, readiness, caplog):
        adapter = make_adapter(focus='glutes')
        assert adapter.adapt_workout(workout, readiness_score=readiness) is workout
        assert "Failed to adapt workout" in caplog.text


class TestPreferences:

    def test_load_from_store(self, make_adapter):
        adapter = make_adapter(focus='v_taper', readiness=6)

        assert adapter.aesthetic_focus == AestheticFocus.V_TAPER
        assert adapter.readiness_level == 6

    def test_defaults_without_stored_prefs(self, make_adapter):
        adapter = make_adapter()

        assert adapter.aesthetic_focus == AestheticFocus.FUNCTIONAL
        assert adapter.readiness_level == 8

    def test_missing_dependencies_keep_defaults(self, caplog):
        adapter = asyncio.run(ExerciseAdapter.create())

        assert adapter.aesthetic_focus == AestheticFocus.FUNCTIONAL
        assert adapter.readiness_level == 8
        assert "Using default preferences" in caplog.text

    def test_invalid_stored_focus(self, make_adapter, caplog):
        adapter = make_adapter(focus='huge')
        assert adapter.aesthetic_focus == AestheticFocus.FUNCTIONAL
        assert "Ignoring stored aesthetic focus" in caplog.text

    def test_invalid_focus_keeps_stored_readiness(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='bulk', readiness=4)

        assert adapter.aesthetic_focus == AestheticFocus.FUNCTIONAL
        assert adapter.readiness_level == 4
        assert adapter.adapt_workout(scenario_workout).adaptations.volume_reduced is True

    def test_invalid_readiness_keeps_stored_focus(self, make_adapter, caplog):
        adapter = make_adapter(focus='glutes', readiness='low')

        assert adapter.aesthetic_focus == AestheticFocus.GLUTES
        assert adapter.readiness_level == 8
        assert "Ignoring invalid readiness score" in caplog.text

    def test_update_focus_preserves_unparseable_readiness(self, make_adapter, store):
        adapter = make_adapter(focus='toned', readiness='low')

        assert asyncio.run(adapter.update_aesthetic_focus('glutes')) is True
        assert asyncio.run(store.get(USER_ID)) == {
            'aesthetic_focus': 'glutes', 'last_readiness_score': 'low'
        }

    def test_update_aesthetic_focus(self, make_adapter, store, event_bus):
        asyncio.run(store.save(USER_ID, {'aesthetic_focus': 'toned', 'units': 'kg'}))
        adapter = make_adapter()
        published = []
        event_bus.subscribe(AESTHETIC_FOCUS_UPDATED, published.append)

        assert asyncio.run(adapter.update_aesthetic_focus('Glutes')) is True

        stored = asyncio.run(store.get(USER_ID))
        assert stored['aesthetic_focus'] == 'glutes'
        assert stored['units'] == 'kg'
        assert adapter.aesthetic_focus == AestheticFocus.GLUTES
        assert published == [{'user_id': USER_ID, 'aesthetic_focus': 'glutes'}]

    def test_update_invalid_focus(self, make_adapter):
        adapter = make_adapter(focus='toned')
        assert asyncio.run(adapter.update_aesthetic_focus('bulk')) is False
        assert adapter.aesthetic_focus == AestheticFocus.TONED

    def test_update_without_user(self, make_adapter):
        adapter = make_adapter(identity_provider=StaticIdentityProvider(None))
        assert asyncio.run(adapter.update_aesthetic_focus('glutes')) is False

    def test_update_store_failure(self, make_adapter, caplog):
        adapter = make_adapter(preference_store=FailingStore())

        assert asyncio.run(adapter.update_aesthetic_focus('glutes')) is False
        assert adapter.aesthetic_focus == AestheticFocus.FUNCTIONAL
        assert "database unavailable" in caplog.text


class TestReadinessEvents:

    def test_readiness_update(self, make_adapter, event_bus):
        adapter = make_adapter()
        event_bus.publish(READINESS_UPDATED, {'readiness': {'readiness_score': 4}})

        assert adapter.readiness_level == 4
        assert adapter.get_split_info().accessories_reduced is True

    def test_missing_score_resets_to_default(self, make_adapter, event_bus):
        adapter = make_adapter(readiness=5)
        event_bus.publish(READINESS_UPDATED, {})
        assert adapter.readiness_level == 8

    def test_camel_case_score(self, make_adapter, event_bus):
        adapter = make_adapter()
        event_bus.publish(READINESS_UPDATED, {'readiness': {'readinessScore': 3}})
        assert adapter.readiness_level == 3

    def test_invalid_score(self, make_adapter, event_bus):
        adapter = make_adapter()
        event_bus.publish(READINESS_UPDATED, {'readiness': {'readiness_score': 'great'}})
        assert adapter.readiness_level == 8

    def test_close_unsubscribes(self, make_adapter, event_bus):
        adapter = make_adapter()
        assert event_bus.subscriber_count(READINESS_UPDATED) == 1

        adapter.close()
        assert event_bus.subscriber_count(READINESS_UPDATED) == 0


class TestSplitInfo:

    def test_split_info(self, make_adapter):
        info = make_adapter(focus='glutes', readiness=7).get_split_info()

        assert info.to_dict() == {
            'aesthetic_focus': 'glutes',
            'performance_percentage': '70%',
            'aesthetic_percentage': '30%',
            'readiness_level': 7,
            'accessories_reduced': False,
        }


class TestSubstitutions:

    def test_suggest(self, make_adapter):
        result = make_adapter().suggest_substitutions('Bulgarian Split Squat', [], 'knee')
        assert [a.name for a in result.alternatives] == ['Step-ups']

    def test_alternates_and_fallback(self, make_adapter):
        adapter = make_adapter()

        assert len(adapter.get_alternates('Deadlift')) == 3
        assert adapter.get_fallback_alternatives('Box Jump', pain_location='knee').alternatives

    def test_substitute_exercise(self, make_adapter):
        adapter = make_adapter()
        goblet = adapter.get_alternates('Back Squat')[0]
        result = adapter.substitute_exercise({'name': 'Back Squat', 'sets': 4, 'reps': 5}, goblet)

        assert result.name == 'Goblet Squat'
        assert result.sets == 3
        assert result.reps == 5
        assert result.scaling.has_source(SUBSTITUTION_SOURCE)
        assert result.extra['substituted_for'] == 'Back Squat'
        assert result.extra['rest_adjustment_seconds'] == -30
        assert result.modifications == ("Substituted for Back Squat",)

    def test_substitution_keeps_performance_floor(self, make_adapter):
        alt = Alternative('Band Squat', 'Travel option', volume_adjustment_factor=0.5)
        result = make_adapter().substitute_exercise(Exercise('Back Squat', sets=2), alt)
        assert result.sets == 2

    def test_substitution_composes_with_readiness(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='glutes')
        adapted = adapter.adapt_workout(scenario_workout, readiness_score=5)
        hip_thrusts = by_name(adapted)['Hip Thrusts']

        alt = Alternative('Barbell Glute Bridge', 'Same hip extension', volume_adjustment_factor=1.2)
        result = adapter.substitute_exercise(hip_thrusts, alt)

        assert result.scaling.has_source(READINESS_SOURCE)
        assert result.scaling.original_sets == 4
        assert result.sets == 3

    def test_substitute_error_returns_input(self, make_adapter):
        exercise = {'sets': 3}
        assert make_adapter().substitute_exercise(exercise, {'name': 'X'}) is exercise


class TestProgressionAndSelection:

    def test_progression_data(self, make_adapter):
        snapshot = make_adapter().get_user_progression_data(
            build_sessions({'Bench Press': [100] * 10}), now=NOW
        )
        assert snapshot.plateau_exercises == ['bench press']

    def test_progression_error_returns_empty_snapshot(self, make_adapter, caplog):
        snapshot = make_adapter().get_user_progression_data([{'exercises': []}])

        assert snapshot.exercise_progress == {}
        assert "Failed to analyze progression" in caplog.text

    def test_select(self, make_adapter):
        profile = {'experience': 'intermediate', 'sessions': build_sessions({'Bench Press': [100] * 10})}
        result = make_adapter().select_exercise_for_user(
            [{'name': 'Bench Press'}, {'name': 'Dumbbell Press'}], profile, now=NOW
        )
        assert result.exercise.name == 'Dumbbell Press'


class TestPresentation:

    def test_tooltip_for_accessory(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='glutes')
        hip_thrusts = by_name(adapter.adapt_workout(scenario_workout, 8))['Hip Thrusts']
        assert adapter.generate_tooltip(hip_thrusts) == 'Maximizing glutes: Hip thrust strength'

    def test_tooltip_for_aesthetic_exercise(self, make_adapter):
        adapter = make_adapter(focus='glutes')
        assert adapter.generate_tooltip({'name': 'Leg Curl', 'aesthetic': True}) == 'Maximizing glutes: Leg Curl'

    def test_tooltip_for_performance_exercise(self, make_adapter):
        adapter = make_adapter()
        assert adapter.generate_tooltip(Exercise('Back Squat')) == 'Back Squat'
        assert adapter.generate_tooltip(Exercise('Back Squat', rationale='Main lift')) == 'Main lift'

    def test_format_workout_text(self, make_adapter, scenario_workout):
        adapter = make_adapter(focus='glutes')
        text = adapter.format_workout_text(adapter.adapt_workout(scenario_workout, 5))

        assert "PUMPING-IRON: Adapted Workout" in text
        assert "Focus: Maximizing glutes" in text
        assert "Readiness: 5/10 (accessory volume reduced)" in text
        assert "4. Hip Thrusts [accessory]" in text
        assert "Sets: 2 x 12-15 reps" in text
        assert "Note: Reduced volume (readiness: 5/10)" in text

    def test_format_invalid_workout(self, make_adapter):
        assert make_adapter().format_workout_text({'exercises': 3}) == ""


def test_logger_is_injectable(make_adapter, caplog):
    logger = logging.getLogger('tests.adapter')
    adapter = make_adapter(logger=logger)
    adapter.adapt_workout({'exercises': 'nope'})
    assert any(r.name == 'tests.adapter' for r in caplog.records)
