"""
Shared plumbing for the SQLite repositories.

Rows come back as dicts. UUIDs and datetimes are stored as text (ISO-8601,
UTC), money as integer cents, lists and mappings as JSON text.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def parse_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def dt_str(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def uuid_str(value: UUID | None) -> str | None:
    return str(value) if value else None


def to_json(value: Any) -> str:
    return json.dumps(value, default=str)


def from_json(raw: str | None, default: Any = None) -> Any:
    if not raw:
        return default
    return json.loads(raw)


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection
        if connection is not None:
            connection.row_factory = dict_factory

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        """Connection scope; commits on success when this repo owns the connection."""
        conn = self._get_conn()
        try:
            yield conn
            if self._should_close():
                conn.commit()
        except Exception:
            if self._should_close():
                conn.rollback()
            raise
        finally:
            if self._should_close():
                conn.close()

    def _fetch_one(self, query: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        with self._conn() as conn:
            row: dict[str, Any] | None = conn.execute(query, params).fetchone()
            return row

    def _fetch_all(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        with self._conn() as conn:
            rows: list[dict[str, Any]] = conn.execute(query, params).fetchall()
            return rows

    def _execute(self, query: str, params: tuple[Any, ...] = ()) -> int:
        with self._conn() as conn:
            return conn.execute(query, params).rowcount

    def _scalar(self, query: str, params: tuple[Any, ...] = ()) -> Any:
        row = self._fetch_one(query, params)
        if row is None:
            return None
        return next(iter(row.values()))
