"""Persistência de sessão de conversa (memória ou Redis).

Uma sessão por usuário (JID do WhatsApp). O contrato é síncrono; as
chamadas são curtas e acontecem dentro do lock do usuário.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.application.session.models import Session
    from iae_bot.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

KEY_PREFIX = "session:"


class SessionStoreError(Exception):
    """Erro ao persistir ou recuperar sessão."""

    pass


class SessionStore(ABC):
    """Contrato abstrato para armazenamento de Session.

    Responsabilidades:
    - Persistir sessão com TTL
    - Recuperar sessão por user_id
    - Enumerar sessões ativas (varredura de inatividade)
    """

    @abstractmethod
    def save(self, session: Session, ttl_seconds: int = 604800) -> None:
        """Persiste a sessão com TTL.

        Raises:
            SessionStoreError: Em caso de falha de persistência
        """
        ...

    @abstractmethod
    def load(self, user_id: str) -> Session | None:
        """Carrega sessão (None se ausente ou expirada).

        Raises:
            SessionStoreError: Backend indisponível (não confundir com ausência)
        """
        ...

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        ...

    @abstractmethod
    def exists(self, user_id: str) -> bool:
        ...

    @abstractmethod
    def all_ids(self) -> Iterator[str]:
        """Ids das sessões armazenadas."""
        ...


class InMemorySessionStore(SessionStore):
    """Armazenamento em memória para desenvolvimento e testes.

    ⚠️ Não usar em produção!
    - Não persiste entre restarts
    - Não funciona com múltiplas instâncias
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._sessions: dict[str, tuple[Session, float]] = {}
        self._clock = clock

    def save(self, session: Session, ttl_seconds: int = 604800) -> None:
        expire_at = self._clock() + ttl_seconds
        self._sessions[session.user_id] = (session, expire_at)
        logger.debug(
            "session_saved",
            extra={"user": mask_user_id(session.user_id), "ttl_seconds": ttl_seconds},
        )

    def load(self, user_id: str) -> Session | None:
        entry = self._sessions.get(user_id)
        if entry is None:
            return None

        session, expire_at = entry
        if self._clock() > expire_at:
            del self._sessions[user_id]
            logger.debug("session_expired", extra={"user": mask_user_id(user_id)})
            return None
        return session

    def delete(self, user_id: str) -> bool:
        if user_id in self._sessions:
            del self._sessions[user_id]
            logger.debug("session_deleted", extra={"user": mask_user_id(user_id)})
            return True
        return False

    def exists(self, user_id: str) -> bool:
        return self.load(user_id) is not None

    def all_ids(self) -> Iterator[str]:
        return iter(list(self._sessions))


class RedisSessionStore(SessionStore):
    """Armazenamento em Redis para produção.

    Chave `session:{user_id}`, valor JSON (pydantic), TTL nativo.
    """

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    def save(self, session: Session, ttl_seconds: int = 604800) -> None:
        key = f"{KEY_PREFIX}{session.user_id}"
        payload = session.model_dump_json()

        try:
            self._redis.setex(key, ttl_seconds, payload)
            logger.debug(
                "session_saved",
                extra={"user": mask_user_id(session.user_id), "ttl_seconds": ttl_seconds},
            )
        except Exception as e:
            logger.error(
                "session_save_failed",
                extra={"user": mask_user_id(session.user_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis save failed: {e}") from e

    def load(self, user_id: str) -> Session | None:
        key = f"{KEY_PREFIX}{user_id}"

        try:
            payload = self._redis.get(key)
        except Exception as e:
            logger.error(
                "session_load_failed",
                extra={"user": mask_user_id(user_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis load failed: {e}") from e

        if not payload:
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")

        from iae_bot.application.session.models import Session

        try:
            return Session.model_validate_json(payload)
        except ValueError as e:
            logger.warning(
                "session_payload_invalid",
                extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
            )
            return None

    def delete(self, user_id: str) -> bool:
        try:
            return bool(self._redis.delete(f"{KEY_PREFIX}{user_id}"))
        except Exception as e:
            logger.error(
                "session_delete_failed",
                extra={"user": mask_user_id(user_id), "error": str(e)},
            )
            return False

    def exists(self, user_id: str) -> bool:
        try:
            return bool(self._redis.exists(f"{KEY_PREFIX}{user_id}"))
        except Exception as e:
            logger.error(
                "session_exists_failed",
                extra={"user": mask_user_id(user_id), "error": str(e)},
            )
            return False

    def all_ids(self) -> Iterator[str]:
        for key in self._redis.scan_iter(match=f"{KEY_PREFIX}*"):
            if isinstance(key, bytes):
                key = key.decode("utf-8")
            yield key[len(KEY_PREFIX):]


def create_session_store(settings: Settings) -> SessionStore:
    """Factory do backend configurado em SESSION_STORE_BACKEND."""
    backend = settings.session_store_backend.lower()

    if backend == "memory":
        logger.info("session_store_selected", extra={"backend": "memory"})
        return InMemorySessionStore()

    if backend == "redis":
        import redis

        client = redis.Redis.from_url(settings.redis_url)
        logger.info("session_store_selected", extra={"backend": "redis"})
        return RedisSessionStore(client)

    raise ValueError(f"Unknown session store backend: {backend}")
