"""Tests for preference stores and identity."""

import asyncio
import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from pumping_iron.config import Settings, build_preference_store
from pumping_iron.preferences import (
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    PostgresPreferenceStore,
    StaticIdentityProvider,
)


class TestInMemoryPreferenceStore:

    def test_round_trip_returns_copies(self):
        store = InMemoryPreferenceStore()
        prefs = {'aesthetic_focus': 'glutes'}
        asyncio.run(store.save('u1', prefs))
        prefs['aesthetic_focus'] = 'toned'

        loaded = asyncio.run(store.get('u1'))
        assert loaded == {'aesthetic_focus': 'glutes'}

        loaded['aesthetic_focus'] = 'v_taper'
        assert asyncio.run(store.get('u1')) == {'aesthetic_focus': 'glutes'}

    def test_unknown_user(self):
        assert asyncio.run(InMemoryPreferenceStore().get('nobody')) is None


class TestJsonFilePreferenceStore:

    def test_missing_file(self, tmp_path):
        store = JsonFilePreferenceStore(tmp_path / 'prefs.json')
        assert asyncio.run(store.get('u1')) is None

    def test_save_creates_file(self, tmp_path):
        path = tmp_path / 'nested' / 'prefs.json'
        store = JsonFilePreferenceStore(path)
        asyncio.run(store.save('u1', {'aesthetic_focus': 'glutes', 'last_readiness_score': 6}))
        asyncio.run(store.save('u2', {'aesthetic_focus': 'toned'}))

        data = json.loads(path.read_text())
        assert data == {'users': {
            'u1': {'aesthetic_focus': 'glutes', 'last_readiness_score': 6},
            'u2': {'aesthetic_focus': 'toned'},
        }}
        assert asyncio.run(store.get('u1'))['last_readiness_score'] == 6


class TestPostgresPreferenceStore:

    @pytest.fixture
    def conn(self):
        conn = MagicMock()
        conn.closed = False
        return conn

    @pytest.fixture
    def cursor(self, conn):
        cur = MagicMock()
        conn.cursor.return_value.__enter__.return_value = cur
        return cur

    def test_get(self, conn, cursor):
        cursor.fetchone.return_value = {
            'aesthetic_focus': 'glutes',
            'last_readiness_score': Decimal('6.5'),
            'extra': {'units': 'kg'},
        }
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn) as connect:
            prefs = asyncio.run(PostgresPreferenceStore('postgresql://test').get('u1'))

        connect.assert_called_once_with('postgresql://test')
        assert prefs == {'units': 'kg', 'aesthetic_focus': 'glutes', 'last_readiness_score': 6.5}
        assert cursor.execute.call_args[0][1] == ('u1',)

    def test_get_missing(self, conn, cursor):
        cursor.fetchone.return_value = None
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn):
            assert asyncio.run(PostgresPreferenceStore('postgresql://test').get('u1')) is None

    def test_save_upserts(self, conn, cursor):
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn):
            asyncio.run(PostgresPreferenceStore('postgresql://test').save(
                'u1', {'aesthetic_focus': 'toned', 'last_readiness_score': 7, 'units': 'kg'}
            ))

        sql, params = cursor.execute.call_args[0]
        assert 'ON CONFLICT (user_id) DO UPDATE' in sql
        assert params[:3] == ('u1', 'toned', 7)
        assert params[3].adapted == {'units': 'kg'}
        conn.commit.assert_called_once()

    def test_save_failure_rolls_back(self, conn, cursor):
        cursor.execute.side_effect = RuntimeError("connection reset")
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn):
            with pytest.raises(RuntimeError):
                asyncio.run(PostgresPreferenceStore('postgresql://test').save('u1', {}))

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_connection_is_lazy_and_reused(self, conn, cursor):
        cursor.fetchone.return_value = None
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn) as connect:
            store = PostgresPreferenceStore('postgresql://test')
            connect.assert_not_called()
            asyncio.run(store.get('u1'))
            asyncio.run(store.get('u2'))

        assert connect.call_count == 1

    def test_ensure_schema(self, conn, cursor):
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn):
            PostgresPreferenceStore('postgresql://test').ensure_schema()

        assert 'CREATE TABLE IF NOT EXISTS exercise_preferences' in cursor.execute.call_args[0][0]
        conn.commit.assert_called_once()

    def test_configured_store_creates_schema_once(self, conn, cursor):
        cursor.fetchone.return_value = None
        store = build_preference_store(
            Settings(preferences_backend='postgres', postgres_dsn='postgresql://test')
        )
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn):
            asyncio.run(store.get('u1'))
            asyncio.run(store.get('u2'))

        statements = [c.args[0] for c in cursor.execute.call_args_list]
        assert 'CREATE TABLE IF NOT EXISTS exercise_preferences' in statements[0]
        assert sum('CREATE TABLE' in s for s in statements) == 1
        assert all('FROM exercise_preferences' in s for s in statements[1:])
        assert len(statements) == 3

    def test_schema_failure_retried_on_next_use(self, conn, cursor):
        cursor.fetchone.return_value = None
        cursor.execute.side_effect = [RuntimeError("permission denied"), None, None]
        store = PostgresPreferenceStore('postgresql://test', create_schema=True)
        with patch('pumping_iron.preferences.psycopg2.connect', return_value=conn):
            with pytest.raises(RuntimeError):
                asyncio.run(store.get('u1'))
            conn.rollback.assert_called_once()

            assert asyncio.run(store.get('u1')) is None

        assert 'CREATE TABLE' in cursor.execute.call_args_list[1].args[0]


def test_static_identity_provider():
    assert StaticIdentityProvider('athlete').get_current_user_id() == 'athlete'
    assert StaticIdentityProvider(None).get_current_user_id() is None
