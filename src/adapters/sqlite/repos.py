"""
SQLite repositories for admin users, site settings and the audit log.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.adapters.sqlite.base import (
    SQLiteRepoBase,
    from_json,
    parse_dt,
    parse_uuid,
    to_json,
    uuid_str,
)
from src.components.audit.models import AuditEntry, QueryAuditInput
from src.components.settings.models import SiteSettings
from src.domain.entities import User


class SQLiteUserRepo(SQLiteRepoBase):
    def save(self, user: User) -> User:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, display_name, password_hash, status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    display_name=excluded.display_name,
                    password_hash=excluded.password_hash,
                    status=excluded.status,
                    updated_at=excluded.updated_at
                """,
                (
                    str(user.id),
                    user.email.lower(),
                    user.display_name,
                    user.password_hash,
                    user.status,
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )
            conn.execute("DELETE FROM role_assignments WHERE user_id = ?", (str(user.id),))
            for role in user.roles:
                conn.execute(
                    "INSERT INTO role_assignments (id, user_id, role, created_at) "
                    "VALUES (?, ?, ?, ?)",
                    (str(uuid4()), str(user.id), role, user.updated_at.isoformat()),
                )
        return user

    def get_by_email(self, email: str) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))
        return self._map_row(row) if row else None

    def get_by_id(self, user_id: UUID) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE id = ?", (str(user_id),))
        return self._map_row(row) if row else None

    def list_all(self) -> list[User]:
        return [self._map_row(r) for r in self._fetch_all("SELECT * FROM users ORDER BY email")]

    def _map_row(self, row: dict[str, Any]) -> User:
        roles = self._fetch_all(
            "SELECT role FROM role_assignments WHERE user_id = ? ORDER BY role", (row["id"],)
        )
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            display_name=row["display_name"],
            password_hash=row["password_hash"],
            roles=[r["role"] for r in roles],
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteSiteSettingsRepo(SQLiteRepoBase):
    """Single-row settings store."""

    def get(self) -> SiteSettings | None:
        row = self._fetch_one("SELECT settings_json FROM site_settings WHERE id = 1")
        if not row:
            return None
        return SiteSettings.model_validate_json(row["settings_json"])

    def save(self, settings: SiteSettings) -> SiteSettings:
        self._execute(
            """
            INSERT INTO site_settings (id, settings_json, updated_at) VALUES (1, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                settings_json=excluded.settings_json,
                updated_at=excluded.updated_at
            """,
            (settings.model_dump_json(), settings.updated_at.isoformat()),
        )
        return settings


class SQLiteAuditRepo(SQLiteRepoBase):
    def save(self, entry: AuditEntry) -> AuditEntry:
        self._execute(
            """
            INSERT INTO audit_log (
                id, timestamp, action, entity_type, entity_id,
                actor_id, actor_name, description, metadata_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(entry.id),
                entry.timestamp.isoformat(),
                entry.action,
                entry.entity_type,
                entry.entity_id,
                uuid_str(entry.actor_id),
                entry.actor_name,
                entry.description,
                to_json(entry.metadata),
            ),
        )
        return entry

    def _where(self, query: QueryAuditInput) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        for column in ("entity_type", "entity_id", "action"):
            value = getattr(query, column)
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def query(self, query: QueryAuditInput) -> list[AuditEntry]:
        where, params = self._where(query)
        rows = self._fetch_all(
            f"SELECT * FROM audit_log {where} ORDER BY timestamp DESC LIMIT ? OFFSET ?",
            (*params, query.limit, query.offset),
        )
        return [self._map_row(r) for r in rows]

    def count(self, query: QueryAuditInput) -> int:
        where, params = self._where(query)
        return int(self._scalar(f"SELECT COUNT(*) AS n FROM audit_log {where}", tuple(params)))

    def _map_row(self, row: dict[str, Any]) -> AuditEntry:
        return AuditEntry(
            id=UUID(row["id"]),
            timestamp=parse_dt(row["timestamp"]),  # type: ignore[arg-type]
            action=row["action"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            actor_id=parse_uuid(row["actor_id"]),
            actor_name=row["actor_name"],
            description=row["description"],
            metadata=from_json(row["metadata_json"], {}),
        )

