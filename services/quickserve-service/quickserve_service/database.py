"""Connections for the snapshot store.

``DATABASE_URL`` picks the backend. A ``sqlite:///path`` URL opens a local
file (tests and single-machine runs); any other URL goes to psycopg. Both
kinds of connection hand back rows that can be read by column name.
"""
from __future__ import annotations

import logging
import os
import sqlite3
import time
from typing import Callable, Optional

import psycopg
from psycopg.rows import dict_row

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite:///"

TABLES = (
    """
    CREATE TABLE IF NOT EXISTS app_snapshots (
        version INTEGER PRIMARY KEY,
        state_json TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS preferences (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)


def database_url() -> str:
    configured = os.environ.get("DATABASE_URL")
    if configured:
        return configured
    return "postgresql://{user}:{password}@{host}:{port}/{name}".format(
        user=os.environ.get("DB_USER", "quickserve"),
        password=os.environ.get("DB_PASSWORD", "quickserve"),
        host=os.environ.get("DB_HOST", "quickserve-db"),
        port=os.environ.get("DB_PORT", "5432"),
        name=os.environ.get("DB_NAME", "quickserve"),
    )


def open_connection(url: Optional[str] = None):
    url = url or database_url()
    if url.startswith(SQLITE_PREFIX):
        conn = sqlite3.connect(url[len(SQLITE_PREFIX):])
        conn.row_factory = sqlite3.Row
        return conn
    return psycopg.connect(url, row_factory=dict_row)


def get_connection():
    """Open a connection, waiting for the database to come up if needed."""
    attempts = max(1, int(os.environ.get("DB_CONNECT_MAX_RETRIES", "30")))
    delay = float(os.environ.get("DB_CONNECT_RETRY_DELAY", "2"))
    for attempt in range(1, attempts + 1):
        try:
            return open_connection()
        except (sqlite3.Error, psycopg.Error):
            if attempt == attempts:
                raise
            logger.warning(
                "Database unavailable (attempt %d/%d), retrying in %.1fs", attempt, attempts, delay
            )
            time.sleep(delay)


def init_db(connection_factory: Callable = get_connection) -> None:
    conn = connection_factory()
    try:
        for statement in TABLES:
            conn.execute(statement)
        conn.commit()
    finally:
        conn.close()
