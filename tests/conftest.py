"""Shared fixtures for the Pumping Iron test suite."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from pumping_iron.adaptation import ExerciseAdapter
from pumping_iron.config import Settings
from pumping_iron.events import EventBus
from pumping_iron.preferences import InMemoryPreferenceStore, StaticIdentityProvider

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)
USER_ID = "athlete"


def build_sessions(lifts, now=NOW, days_back=25, step_days=2, reps=5, rpe=7):
    """
    Build session dicts, oldest first.

    Args:
        lifts: {exercise name: [weight per session]}; all lists equal length
        rpe: RPE for every logged set, or {name: rpe}
    """
    count = len(next(iter(lifts.values())))
    start = now - timedelta(days=days_back)
    sessions = []
    for i in range(count):
        exercises = []
        for name, weights in lifts.items():
            exercise_rpe = rpe.get(name, 7) if isinstance(rpe, dict) else rpe
            exercises.append({'name': name, 'weight': weights[i], 'reps': reps, 'rpe': exercise_rpe})
        sessions.append({
            'start_at': (start + timedelta(days=i * step_days)).isoformat(),
            'exercises': exercises,
        })
    return sessions


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def store():
    return InMemoryPreferenceStore()


@pytest.fixture
def make_adapter(event_bus, store):
    """Factory: adapter with an in-memory store, optionally pre-seeded."""
    def _make(focus=None, readiness=None, user_id=USER_ID, **kwargs):
        prefs = {}
        if focus is not None:
            prefs['aesthetic_focus'] = focus
        if readiness is not None:
            prefs['last_readiness_score'] = readiness
        if prefs:
            asyncio.run(store.save(user_id, prefs))

        kwargs.setdefault('preference_store', store)
        kwargs.setdefault('event_bus', event_bus)
        kwargs.setdefault('identity_provider', StaticIdentityProvider(user_id))
        kwargs.setdefault('settings', Settings())
        return asyncio.run(ExerciseAdapter.create(**kwargs))

    return _make


@pytest.fixture
def scenario_workout():
    return {
        'name': 'Lower A',
        'exercises': [
            {'name': 'Back Squat'},
            {'name': 'Lateral Raise'},
            {'name': 'Leg Curl'},
        ],
    }
