"""
Preference Storage & Identity

Interfaces for the collaborators the adaptation engine consumes, plus the
adapters shipped with the package:

- InMemoryPreferenceStore: process-local dict (tests, one-shot CLI runs)
- JsonFilePreferenceStore: single JSON file keyed by user id
- PostgresPreferenceStore: ``exercise_preferences`` table via psycopg2

Stores speak plain dicts ``{"aesthetic_focus", "last_readiness_score", ...}``.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import psycopg2
from psycopg2.extras import Json, RealDictCursor

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def save(self, user_id: str, prefs: Dict[str, Any]) -> None:
        ...


class IdentityProvider(Protocol):
    def get_current_user_id(self) -> Optional[str]:
        ...


class StaticIdentityProvider:
    """Identity provider bound to a single, known user id."""

    def __init__(self, user_id: Optional[str]):
        self.user_id = user_id

    def get_current_user_id(self) -> Optional[str]:
        return self.user_id


class InMemoryPreferenceStore:
    """Dict-backed store. Returned values are copies."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._data: Dict[str, Dict[str, Any]] = {
            user_id: dict(prefs) for user_id, prefs in (initial or {}).items()
        }

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        prefs = self._data.get(user_id)
        return dict(prefs) if prefs is not None else None

    async def save(self, user_id: str, prefs: Dict[str, Any]) -> None:
        self._data[user_id] = dict(prefs)


class JsonFilePreferenceStore:
    """
    Preferences persisted to one JSON file::

        {"users": {"<user_id>": {"aesthetic_focus": "glutes", ...}}}
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"users": {}}
        with open(self.path, 'r') as f:
            data = json.load(f)
        data.setdefault("users", {})
        return data

    def _write(self, data: Dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(data, f, indent=2)

    def _get_sync(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._read()["users"].get(user_id)

    def _save_sync(self, user_id: str, prefs: Dict[str, Any]):
        data = self._read()
        data["users"][user_id] = prefs
        self._write(data)

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._get_sync, user_id)

    async def save(self, user_id: str, prefs: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_sync, user_id, prefs)


class PostgresPreferenceStore:
    """Postgres-backed preference store."""

    SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS exercise_preferences (
        user_id TEXT PRIMARY KEY,
        aesthetic_focus VARCHAR(32) DEFAULT 'functional',
        last_readiness_score NUMERIC(4,1),
        extra JSONB NOT NULL DEFAULT '{}'::jsonb,
        updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    )
    """

    def __init__(self, dsn: str, create_schema: bool = False):
        """
        Args:
            dsn: Postgres connection string
            create_schema: Create the table on first connection
        """
        self.dsn = dsn
        self.create_schema = create_schema
        self._conn = None
        self._schema_ready = False

    @property
    def conn(self):
        """Lazy connection."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.dsn)
        if self.create_schema and not self._schema_ready:
            self._create_schema(self._conn)
        return self._conn

    def close(self):
        """Close connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def ensure_schema(self):
        """Create the preferences table if it does not exist."""
        self._create_schema(self.conn)

    def _create_schema(self, conn):
        try:
            with conn.cursor() as cur:
                cur.execute(self.SCHEMA_SQL)
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Error creating preferences table: {e}")
            raise
        self._schema_ready = True

    def _get_sync(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("""
                SELECT aesthetic_focus, last_readiness_score, extra
                FROM exercise_preferences
                WHERE user_id = %s
            """, (user_id,))
            row = cur.fetchone()

        if not row:
            return None

        prefs = dict(row.get('extra') or {})
        prefs['aesthetic_focus'] = row.get('aesthetic_focus')
        score = row.get('last_readiness_score')
        prefs['last_readiness_score'] = float(score) if score is not None else None
        return prefs

    def _save_sync(self, user_id: str, prefs: Dict[str, Any]):
        extra = {k: v for k, v in prefs.items()
                 if k not in ('aesthetic_focus', 'last_readiness_score')}
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO exercise_preferences
                        (user_id, aesthetic_focus, last_readiness_score, extra, updated_at)
                    VALUES (%s, %s, %s, %s, NOW())
                    ON CONFLICT (user_id) DO UPDATE SET
                        aesthetic_focus = EXCLUDED.aesthetic_focus,
                        last_readiness_score = EXCLUDED.last_readiness_score,
                        extra = EXCLUDED.extra,
                        updated_at = NOW()
                """, (
                    user_id,
                    prefs.get('aesthetic_focus'),
                    prefs.get('last_readiness_score'),
                    Json(extra),
                ))
            self.conn.commit()
        except Exception as e:
            self.conn.rollback()
            logger.error(f"Error saving preferences for {user_id}: {e}")
            raise

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._get_sync, user_id)

    async def save(self, user_id: str, prefs: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_sync, user_id, prefs)
