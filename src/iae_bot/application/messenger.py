"""Envio de respostas ao usuário.

Toda mensagem do bot passa por aqui: vai ao gateway com a instância da
sessão, entra no histórico e é registrada no log de conversas.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from iae_bot.domain import replies
from iae_bot.domain.enums import Role
from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.adapters.evolution.gateway import EvolutionGateway
    from iae_bot.ai.assistant import Assistant
    from iae_bot.application.session import Session
    from iae_bot.infra.user_repository import UserRepository

logger: logging.Logger = get_logger(__name__)


def adaptive_fallback(hint: str, name: str) -> str:
    """Texto determinístico para uma instrução quando o LLM não responde."""
    template = replies.HINT_FALLBACKS.get(hint)
    if template:
        return template.format(name=name)
    return replies.adaptive_default(name)


class Messenger:
    """Envia textos em ordem e mantém histórico/log de conversa."""

    def __init__(
        self,
        gateway: EvolutionGateway,
        repository: UserRepository,
        assistant: Assistant,
    ) -> None:
        self._gateway = gateway
        self._repository = repository
        self._assistant = assistant

    async def send(self, session: Session, text: str) -> bool:
        """Envia um texto; retorna True se o gateway aceitou."""
        out = (text or "").strip()
        if not out:
            return False
        delivered = await self._gateway.send_text(session.user_id, out, session.instance_id)
        session.push_history(Role.BOT, out)
        self._log_message(session.user_id, out)
        return delivered

    async def send_adaptive(self, session: Session, hint: str, name: str, tone: str = "") -> str:
        """Resposta guiada por instrução, com fallback fixo por hint.

        Retorna o texto efetivamente enviado.
        """
        text = await self._assistant.adaptive_reply(hint, name, tone)
        if not text or not text.strip():
            text = adaptive_fallback(hint, name)
        await self.send(session, text)
        return text

    async def mark_read(self, session: Session, message_id: str | None) -> None:
        if not message_id:
            return
        await self._gateway.mark_read(session.user_id, message_id, session.instance_id)

    def log_user_message(self, user_id: str, text: str | None) -> None:
        if text:
            self._log_message(user_id, text, role=Role.USER)

    def _log_message(self, user_id: str, text: str, role: Role = Role.BOT) -> None:
        try:
            self._repository.save_message(user_id, role.value, text)
        except Exception as e:
            logger.warning(
                "conversation_log_failed",
                extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
            )
