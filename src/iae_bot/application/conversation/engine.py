"""Motor de conversa: um evento de entrada por vez, por usuário.

Fluxo de um evento:
1. Descarta mensagens enviadas pelo próprio bot
2. Serializa por usuário (asyncio.Lock por JID, descartado quando ocioso)
3. Carrega ou cria a sessão e monta o turno
4. Despacha pelas regras em ordem de prioridade
5. Persiste a sessão, mesmo se um handler falhar (nunca quando a leitura falhou)

Falhas dentro de um handler viram um pedido de desculpas ao usuário e um
log com o usuário mascarado; o processamento de outros eventos segue.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING

from iae_bot.application.conversation.context import ConversationServices, Turn, resolve_name
from iae_bot.application.conversation.rules import RULES, Rule, dispatch
from iae_bot.application.session import Session
from iae_bot.domain import replies
from iae_bot.domain.models import Persona
from iae_bot.infra.session_store import SessionStoreError
from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.adapters.evolution.models import InboundEvent
    from iae_bot.infra.session_store import SessionStore

logger: logging.Logger = get_logger(__name__)


class ConversationEngine:
    def __init__(
        self,
        store: SessionStore,
        services: ConversationServices,
        session_ttl_seconds: int = 604800,
        clock: Callable[[], float] = time.time,
        rules: tuple[Rule, ...] = RULES,
    ) -> None:
        self._store = store
        self._bot = services
        self._ttl = session_ttl_seconds
        self._clock = clock
        self._rules = rules
        # JID → (lock, quantos turnos/varreduras o seguram ou aguardam)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    @contextlib.asynccontextmanager
    async def user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Serializa o usuário; o lock é descartado quando ninguém mais o usa."""
        lock, users = self._locks.get(user_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[user_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[user_id]
            if users <= 1:
                del self._locks[user_id]
            else:
                self._locks[user_id] = (lock, users - 1)

    async def handle(self, event: InboundEvent) -> str | None:
        """Processa um evento; retorna o nome da regra que o assumiu."""
        if event.from_me:
            return None
        async with self.user_lock(event.user_id):
            try:
                stored = self._store.load(event.user_id)
            except SessionStoreError:
                # Sessão indisponível: o turno não persiste nada.
                logger.error(
                    "conversation_session_unavailable",
                    extra={"user": mask_user_id(event.user_id)},
                )
                await self._apologize(
                    Session(user_id=event.user_id, instance_id=event.instance_id)
                )
                return None

            session = stored or Session(user_id=event.user_id)
            try:
                turn = self._build_turn(session, event)
                rule = await dispatch(turn, self._bot, self._rules)
                logger.debug(
                    "conversation_turn_handled",
                    extra={"user": mask_user_id(event.user_id), "rule": rule},
                )
                return rule
            except Exception as e:
                logger.exception(
                    "conversation_turn_failed",
                    extra={"user": mask_user_id(event.user_id), "error_type": type(e).__name__},
                )
                await self._apologize(session)
                return None
            finally:
                self._save(session)

    def _build_turn(self, session: Session, event: InboundEvent) -> Turn:
        now = self._clock()
        repository = self._bot.repository
        persona = repository.get_persona(event.user_id) or Persona()
        stored_name = repository.get_user_name(event.user_id)
        resumed = (
            session.last_active is not None
            and now - session.last_active > self._bot.resume_after_seconds
        )
        return Turn(
            session=session,
            event=event,
            now=now,
            persona=persona,
            known_name=resolve_name(persona, session, stored_name),
            default_name=self._bot.default_user_name,
            text=event.text,
            had_history=bool(session.conversation_history),
            resumed=resumed,
        )

    async def _apologize(self, session: Session) -> None:
        try:
            await self._bot.messenger.send(session, replies.UNEXPECTED_ERROR)
        except Exception as e:
            logger.warning(
                "apology_send_failed",
                extra={"user": mask_user_id(session.user_id), "error_type": type(e).__name__},
            )

    def _save(self, session: Session) -> None:
        try:
            self._store.save(session, self._ttl)
        except Exception as e:
            logger.error(
                "session_save_failed",
                extra={"user": mask_user_id(session.user_id), "error_type": type(e).__name__},
            )
