from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from pydantic import TypeAdapter

from .database import get_connection
from .domain import AppState

_STATE_ADAPTER = TypeAdapter(AppState)


def dump_state(state: AppState) -> str:
    return _STATE_ADAPTER.dump_json(state).decode("utf-8")


def load_state(payload: str) -> AppState:
    return _STATE_ADAPTER.validate_json(payload)


DEFAULT_SNAPSHOT_RETENTION = 50


class StateRepository:
    """Stores application snapshots and user preferences behind plain SQL.

    Only the newest ``retention`` snapshots are kept; older versions are
    deleted as each new one is written.
    """

    def __init__(self, connection_factory=get_connection, retention: Optional[int] = None):
        self._connection_factory = connection_factory
        if retention is None:
            retention = int(
                os.environ.get("SNAPSHOT_RETENTION", str(DEFAULT_SNAPSHOT_RETENTION))
            )
        self._retention = max(1, retention)

    @staticmethod
    def _param(conn) -> str:
        return "?" if isinstance(conn, sqlite3.Connection) else "%s"

    @contextmanager
    def _connection(self):
        conn = self._connection_factory()
        try:
            yield conn
        finally:
            conn.close()

    def save_snapshot(self, state: AppState) -> int:
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            ph = self._param(conn)
            row = conn.execute(
                "SELECT COALESCE(MAX(version), 0) AS latest FROM app_snapshots;"
            ).fetchone()
            version = int(row["latest"]) + 1
            conn.execute(
                f"""
                INSERT INTO app_snapshots (version, state_json, created_at)
                VALUES ({ph}, {ph}, {ph});
                """,
                (version, dump_state(state), now),
            )
            conn.execute(
                f"DELETE FROM app_snapshots WHERE version <= {ph};",
                (version - self._retention,),
            )
            conn.commit()
        return version

    def latest_snapshot(self) -> Optional[AppState]:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT state_json
                FROM app_snapshots
                ORDER BY version DESC
                LIMIT 1;
                """
            ).fetchone()
            if row is None:
                return None
            return load_state(row["state_json"])

    def snapshot_count(self) -> int:
        with self._connection() as conn:
            row = conn.execute("SELECT COUNT(1) AS cnt FROM app_snapshots;").fetchone()
            return int(row["cnt"] or 0)

    def get_preference(self, key: str) -> Optional[str]:
        with self._connection() as conn:
            ph = self._param(conn)
            row = conn.execute(
                f"SELECT value FROM preferences WHERE key = {ph};", (key,)
            ).fetchone()
            return row["value"] if row is not None else None

    def set_preference(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            ph = self._param(conn)
            conn.execute(
                f"""
                INSERT INTO preferences (key, value, updated_at)
                VALUES ({ph}, {ph}, {ph})
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at;
                """,
                (key, value, now),
            )
            conn.commit()
