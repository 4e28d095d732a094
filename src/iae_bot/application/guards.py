"""Guardas de idempotência e expiração por inatividade.

- Mensagem repetida (mesmo message_id) é descartada
- Localização a menos de 100 m da anterior é descartada
- Varredura periódica limpa fluxos de busca parados há mais de 45 min
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any

from iae_bot.application.session import Session
from iae_bot.domain.geo import is_near_duplicate
from iae_bot.domain.models import LatLng
from iae_bot.domain.session import SEARCH_KINDS, FlowEvent, Idle
from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.infra.session_store import SessionStore

logger: logging.Logger = get_logger(__name__)


def is_duplicate_message(session: Session, message_id: str | None) -> bool:
    """True se `message_id` já foi processado por último nesta sessão."""
    return bool(message_id) and session.last_msg_id == message_id


def is_duplicate_location(session: Session, location: LatLng, threshold_km: float = 0.1) -> bool:
    """True se a coordenada repete a última aceita (dentro do limiar)."""
    last = session.last_location
    if last is None or last.lat is None or last.lng is None:
        return False
    if location.lat is None or location.lng is None:
        return False
    return is_near_duplicate((last.lat, last.lng), (location.lat, location.lng), threshold_km)


def expire_if_inactive(session: Session, now: float, timeout_seconds: float) -> bool:
    """Volta para Idle uma sessão parada em fase de busca.

    Também descarta a página de resultados e o lugar selecionado. Sessões
    sem atividade registrada ou em outras fases não são tocadas.
    """
    if session.last_active is None or now - session.last_active <= timeout_seconds:
        return False
    changed = False
    if session.flow.kind in SEARCH_KINDS:
        session.move(FlowEvent.SESSION_EXPIRED, Idle())
        changed = True
    if session.cta is not None or session.selected_place is not None:
        session.clear_results()
        changed = True
    return changed


class InactivitySweeper:
    """Varredura periódica de sessões inativas.

    O relógio e o sleep são injetáveis para testes; falhas em uma sessão
    ou em uma rodada não interrompem o loop.
    """

    def __init__(
        self,
        store: SessionStore,
        timeout_seconds: float = 2700,
        interval_seconds: float = 600,
        ttl_seconds: int = 604800,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        locks: Callable[[str], AbstractAsyncContextManager[Any]] | None = None,
    ) -> None:
        self._store = store
        self._timeout = timeout_seconds
        self._interval = interval_seconds
        self._ttl = ttl_seconds
        self._clock = clock
        self._sleep = sleep
        self._locks = locks

    async def sweep_once(self) -> int:
        """Executa uma rodada; retorna quantas sessões foram expiradas."""
        now = self._clock()
        expired = 0
        for user_id in list(self._store.all_ids()):
            try:
                if self._locks is not None:
                    async with self._locks(user_id):
                        expired += self._sweep_user(user_id, now)
                else:
                    expired += self._sweep_user(user_id, now)
            except Exception as e:
                logger.warning(
                    "inactivity_sweep_user_failed",
                    extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
                )
        if expired:
            logger.info("inactivity_sweep_done", extra={"expired": expired})
        return expired

    def _sweep_user(self, user_id: str, now: float) -> int:
        session = self._store.load(user_id)
        if session is None or not expire_if_inactive(session, now, self._timeout):
            return 0
        self._store.save(session, self._ttl)
        return 1

    async def run(self) -> None:
        """Loop infinito; cancelado no shutdown da aplicação."""
        while True:
            await self._sleep(self._interval)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error("inactivity_sweep_failed", extra={"error_type": type(e).__name__})
