"""Persistência de usuários, histórico, preferências e personas.

Duas implementações do mesmo contrato:
- InMemoryUserRepository: dev/testes
- SqliteUserRepository: arquivo local (tabelas users, conversations,
  user_preferences, personas)
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from iae_bot.domain.models import Persona
from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


class UserRepository(ABC):
    """Contrato de persistência por usuário (JID)."""

    @abstractmethod
    def upsert_user(self, user_id: str, name: str | None = None) -> None:
        ...

    @abstractmethod
    def get_user(self, user_id: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    def save_message(self, user_id: str, role: str, message: str, ts: float | None = None) -> None:
        ...

    @abstractmethod
    def recent_messages(self, user_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Mensagens mais recentes primeiro."""
        ...

    @abstractmethod
    def upsert_preferences(self, user_id: str, prefs: dict[str, Any]) -> None:
        ...

    @abstractmethod
    def get_preferences(self, user_id: str) -> dict[str, str]:
        ...

    @abstractmethod
    def get_persona(self, user_id: str) -> Persona | None:
        ...

    @abstractmethod
    def save_persona(self, user_id: str, persona: Persona) -> None:
        ...

    def get_user_name(self, user_id: str) -> str | None:
        """Nome salvo na persona ou no cadastro do usuário."""
        persona = self.get_persona(user_id)
        if persona and persona.nome:
            return persona.nome
        user = self.get_user(user_id)
        return (user or {}).get("name") or None


class InMemoryUserRepository(UserRepository):
    """Repositório em memória (não persiste entre restarts)."""

    def __init__(self) -> None:
        self._users: dict[str, dict[str, Any]] = {}
        self._messages: dict[str, list[dict[str, Any]]] = {}
        self._prefs: dict[str, dict[str, str]] = {}
        self._personas: dict[str, Persona] = {}

    def upsert_user(self, user_id: str, name: str | None = None) -> None:
        now = time.time()
        user = self._users.get(user_id)
        if user is None:
            self._users[user_id] = {
                "wa_jid": user_id,
                "name": name,
                "created_at": now,
                "updated_at": now,
            }
            return
        if name:
            user["name"] = name
        user["updated_at"] = now

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        user = self._users.get(user_id)
        return dict(user) if user else None

    def save_message(self, user_id: str, role: str, message: str, ts: float | None = None) -> None:
        self._messages.setdefault(user_id, []).append(
            {"role": role, "message": message, "ts": ts if ts is not None else time.time()}
        )

    def recent_messages(self, user_id: str, limit: int = 10) -> list[dict[str, Any]]:
        return list(reversed(self._messages.get(user_id, [])[-limit:]))

    def upsert_preferences(self, user_id: str, prefs: dict[str, Any]) -> None:
        stored = self._prefs.setdefault(user_id, {})
        for key, value in prefs.items():
            stored[key] = str(value)

    def get_preferences(self, user_id: str) -> dict[str, str]:
        return dict(self._prefs.get(user_id, {}))

    def get_persona(self, user_id: str) -> Persona | None:
        return self._personas.get(user_id)

    def save_persona(self, user_id: str, persona: Persona) -> None:
        self._personas[user_id] = persona


_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS users (
        wa_jid TEXT PRIMARY KEY,
        name TEXT,
        style TEXT,
        created_at INTEGER,
        updated_at INTEGER
    )""",
    """CREATE TABLE IF NOT EXISTS conversations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        wa_jid TEXT,
        role TEXT,
        message TEXT,
        ts INTEGER
    )""",
    """CREATE TABLE IF NOT EXISTS user_preferences (
        wa_jid TEXT,
        pref_key TEXT,
        pref_value TEXT,
        updated_at INTEGER,
        PRIMARY KEY (wa_jid, pref_key)
    )""",
    """CREATE TABLE IF NOT EXISTS personas (
        wa_jid TEXT PRIMARY KEY,
        data TEXT NOT NULL,
        updated_at INTEGER
    )""",
)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SqliteUserRepository(UserRepository):
    """Repositório SQLite (arquivo único, conexão compartilhada)."""

    def __init__(self, database_path: str) -> None:
        self._conn = sqlite3.connect(database_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        with self._lock, self._conn:
            for statement in _SCHEMA:
                self._conn.execute(statement)
        logger.info("sqlite_repository_ready", extra={"path": database_path})

    def close(self) -> None:
        self._conn.close()

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        with self._lock, self._conn:
            return self._conn.execute(sql, params).fetchall()

    def upsert_user(self, user_id: str, name: str | None = None) -> None:
        now = _now_ms()
        self._execute(
            """INSERT INTO users (wa_jid, name, style, created_at, updated_at)
               VALUES (?, ?, NULL, ?, ?)
               ON CONFLICT(wa_jid) DO UPDATE SET
                 name = COALESCE(excluded.name, users.name),
                 updated_at = excluded.updated_at""",
            (user_id, name, now, now),
        )

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        rows = self._execute("SELECT * FROM users WHERE wa_jid = ?", (user_id,))
        return dict(rows[0]) if rows else None

    def save_message(self, user_id: str, role: str, message: str, ts: float | None = None) -> None:
        ts_ms = int(ts * 1000) if ts is not None else _now_ms()
        self._execute(
            "INSERT INTO conversations (wa_jid, role, message, ts) VALUES (?, ?, ?, ?)",
            (user_id, role, message, ts_ms),
        )

    def recent_messages(self, user_id: str, limit: int = 10) -> list[dict[str, Any]]:
        rows = self._execute(
            """SELECT role, message, ts FROM conversations
               WHERE wa_jid = ? ORDER BY ts DESC, id DESC LIMIT ?""",
            (user_id, limit),
        )
        return [dict(r) for r in rows]

    def upsert_preferences(self, user_id: str, prefs: dict[str, Any]) -> None:
        now = _now_ms()
        for key, value in prefs.items():
            self._execute(
                """INSERT INTO user_preferences (wa_jid, pref_key, pref_value, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(wa_jid, pref_key) DO UPDATE SET
                     pref_value = excluded.pref_value,
                     updated_at = excluded.updated_at""",
                (user_id, key, str(value), now),
            )

    def get_preferences(self, user_id: str) -> dict[str, str]:
        rows = self._execute(
            "SELECT pref_key, pref_value FROM user_preferences WHERE wa_jid = ?",
            (user_id,),
        )
        return {r["pref_key"]: r["pref_value"] for r in rows}

    def get_persona(self, user_id: str) -> Persona | None:
        rows = self._execute("SELECT data FROM personas WHERE wa_jid = ?", (user_id,))
        if not rows:
            return None
        try:
            return Persona.model_validate(json.loads(rows[0]["data"]))
        except (ValueError, TypeError) as e:
            logger.warning(
                "persona_corrupted",
                extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
            )
            return None

    def save_persona(self, user_id: str, persona: Persona) -> None:
        self._execute(
            """INSERT INTO personas (wa_jid, data, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(wa_jid) DO UPDATE SET
                 data = excluded.data,
                 updated_at = excluded.updated_at""",
            (user_id, persona.model_dump_json(), _now_ms()),
        )


def create_user_repository(settings: Settings) -> UserRepository:
    """Factory do backend configurado em PERSISTENCE_BACKEND."""
    backend = settings.persistence_backend.lower()
    if backend == "memory":
        logger.info("user_repository_selected", extra={"backend": "memory"})
        return InMemoryUserRepository()
    if backend == "sqlite":
        return SqliteUserRepository(settings.database_path)
    raise ValueError(f"Unknown persistence backend: {backend}")
