"""Gateway de saída para a Evolution API (WhatsApp).

- send_text: simulação de digitação + retry linear em falhas transitórias;
  falha definitiva envia um pedido de desculpas uma única vez
- send_presence / mark_read: best effort; desligados após 400/404
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from iae_bot.domain.replies import SEND_FAILURE_APOLOGY
from iae_bot.infra.http import BACKOFF_LINEAR, HttpClient, HttpError, create_http_client
from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

_UNSUPPORTED_STATUS = (400, 404)


def typing_delay_ms(text: str, rng: Callable[[], float] = random.random) -> int:
    """Atraso de "digitando" proporcional ao tamanho do texto.

    500 + 35 ms por caractere (até 120), limitado a 600..3500 ms, com
    jitter de ±125 ms e piso de 400 ms.
    """
    delay = 500 + 35 * min(len(text), 120)
    delay = max(600, min(delay, 3500))
    jitter = int(rng() * 250) - 125
    return max(400, delay + jitter)


def to_number(recipient: str) -> str:
    return recipient.replace("@s.whatsapp.net", "")


@dataclass
class GatewayCapabilities:
    """Recursos opcionais da instância Evolution."""

    presence: bool = True
    read_receipt: bool = True


class EvolutionGateway:
    """Envio de mensagens, presença e confirmação de leitura."""

    def __init__(
        self,
        http: HttpClient,
        default_instance: str | None,
        typing_delay_enabled: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._http = http
        self._default_instance = default_instance
        self._typing_delay_enabled = typing_delay_enabled
        self._sleep = sleep
        self._rng = rng
        self.capabilities = GatewayCapabilities()

    def _instance(self, instance_id: str | None) -> str:
        return instance_id or self._default_instance or ""

    async def send_text(self, recipient: str, text: str, instance_id: str | None = None) -> bool:
        """Envia texto; retorna True se o gateway aceitou.

        Falhas transitórias esgotadas (429/5xx/timeout) desistem em silêncio;
        demais falhas disparam o pedido de desculpas padrão.
        """
        out = (text or "").strip()
        if not out:
            return False

        if self._typing_delay_enabled:
            delay = typing_delay_ms(out, self._rng)
            await self.send_presence(recipient, delay, instance_id)
            await self._sleep(delay / 1000)

        url = f"/message/sendText/{self._instance(instance_id)}"
        try:
            await self._http.post(url, json={"number": to_number(recipient), "text": out})
            logger.debug(
                "send_text_ok",
                extra={"user": mask_user_id(recipient), "length": len(out)},
            )
            return True
        except HttpError as e:
            logger.error(
                "send_text_failed",
                extra={
                    "user": mask_user_id(recipient),
                    "status_code": e.status_code,
                    "retryable": e.is_retryable,
                },
            )
            if e.is_retryable:
                return False

        await self._send_apology(recipient, instance_id)
        return False

    async def _send_apology(self, recipient: str, instance_id: str | None) -> None:
        url = f"/message/sendText/{self._instance(instance_id)}"
        try:
            await self._http.post(
                url, json={"number": to_number(recipient), "text": SEND_FAILURE_APOLOGY}
            )
        except HttpError as e:
            logger.error(
                "send_apology_failed",
                extra={"user": mask_user_id(recipient), "status_code": e.status_code},
            )

    async def send_presence(
        self, recipient: str, delay_ms: int, instance_id: str | None = None
    ) -> None:
        if not self.capabilities.presence:
            return
        try:
            await self._http.post(
                f"/chat/sendPresence/{self._instance(instance_id)}",
                json={
                    "number": to_number(recipient),
                    "options": {"delay": delay_ms, "presence": "composing"},
                },
            )
        except HttpError as e:
            if e.status_code in _UNSUPPORTED_STATUS:
                self.capabilities.presence = False
                logger.warning("presence_disabled", extra={"status_code": e.status_code})
            else:
                logger.debug("presence_failed", extra={"status_code": e.status_code})

    async def mark_read(
        self, recipient: str, message_id: str | None, instance_id: str | None = None
    ) -> None:
        """Tenta /chat/readMessage e depois /chat/markAsRead."""
        if not self.capabilities.read_receipt or not recipient or not message_id:
            return
        body = {"number": to_number(recipient), "messageId": message_id}
        instance = self._instance(instance_id)
        for path in (f"/chat/readMessage/{instance}", f"/chat/markAsRead/{instance}"):
            try:
                await self._http.post(path, json=body)
                return
            except HttpError as e:
                logger.debug("mark_read_failed", extra={"path": path, "status_code": e.status_code})
        self.capabilities.read_receipt = False
        logger.warning("read_receipt_disabled")

    async def close(self) -> None:
        await self._http.close()


def create_evolution_gateway(settings: Settings) -> EvolutionGateway:
    http = create_http_client(
        settings,
        timeout_seconds=settings.evolution_timeout_seconds,
        max_retries=settings.send_max_attempts - 1,
        backoff_base_seconds=settings.send_backoff_seconds,
        backoff_strategy=BACKOFF_LINEAR,
        base_url=(settings.evolution_url or "").rstrip("/"),
        headers={"apikey": settings.evolution_api_key or ""},
    )
    return EvolutionGateway(
        http,
        default_instance=settings.evolution_instance,
        typing_delay_enabled=settings.typing_delay_enabled,
    )
