"""Entrevista guiada de perfil (bar ou restaurante).

Uma pergunta por mensagem, com frase-ponte comentando a resposta anterior.
Ao terminar, as respostas vão para a persona do domínio e o fluxo segue
para a escolha do tipo de localização.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from iae_bot.application.session import Session
from iae_bot.domain import replies
from iae_bot.domain.enums import PlaceDomain
from iae_bot.domain.interview import bridge_from_answer, questions_for
from iae_bot.domain.models import Persona, sanitize_answers
from iae_bot.domain.nlu import clean_name
from iae_bot.domain.session import AwaitingLocationType, FlowEvent, Interviewing
from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.application.messenger import Messenger
    from iae_bot.infra.user_repository import UserRepository

logger: logging.Logger = get_logger(__name__)


class InterviewFlow:
    def __init__(self, messenger: Messenger, repository: UserRepository) -> None:
        self._messenger = messenger
        self._repository = repository

    async def start(
        self,
        session: Session,
        domain: PlaceDomain,
        answers: dict[str, Any],
        known_name: str | None,
    ) -> None:
        """Envia a primeira pergunta (pula o nome quando já conhecido)."""
        questions = questions_for(domain)
        collected = dict(answers)
        index = 0
        if known_name:
            collected["nome"] = known_name
            index = 1
        await self._messenger.send(session, questions[index].text)
        session.move(
            FlowEvent.INTERVIEW_STARTED,
            Interviewing(domain=domain, question_index=index, answers=collected),
        )

    async def answer(self, session: Session, text: str, default_name: str) -> str:
        """Registra a resposta da pergunta pendente e avança.

        Returns:
            Nome a usar nas próximas mensagens.
        """
        flow = session.flow
        if not isinstance(flow, Interviewing):
            return default_name

        questions = questions_for(flow.domain)
        current = questions[min(flow.question_index, len(questions) - 1)]
        answers = dict(flow.answers)
        value = clean_name(text) if current.key == "nome" else text.strip()
        answers[current.key] = value or text.strip()
        name = answers.get("nome") or default_name

        next_index = flow.question_index + 1
        if next_index >= len(questions):
            await self._complete(session, flow.domain, answers, name)
            return name

        if current.key == "nome":
            lead = f"Prazer, {name}! "
        else:
            lead = bridge_from_answer(current.key, text, name) + " "
        await self._messenger.send(session, lead + questions[next_index].text)
        session.move(
            FlowEvent.INTERVIEW_ANSWERED,
            Interviewing(domain=flow.domain, question_index=next_index, answers=answers),
        )
        return name

    async def _complete(
        self, session: Session, domain: PlaceDomain, answers: dict[str, Any], name: str
    ) -> None:
        user_id = session.user_id
        try:
            persona = self._repository.get_persona(user_id) or Persona()
            merged = {**persona.for_domain(domain.persona_key), **answers}
            persona = persona.with_domain(domain.persona_key, merged)
            if answers.get("nome") and not persona.nome:
                persona = persona.model_copy(update={"nome": answers["nome"]})
                self._repository.upsert_user(user_id, answers["nome"])
            self._repository.save_persona(user_id, persona)
            self._repository.upsert_preferences(user_id, sanitize_answers(answers))
        except Exception as e:
            logger.warning(
                "interview_persist_failed",
                extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
            )
        logger.info(
            "interview_completed",
            extra={"user": mask_user_id(user_id), "domain": domain.value},
        )
        session.move(
            FlowEvent.LOCATION_TYPE_REQUESTED,
            AwaitingLocationType(domain=domain, answers=answers),
        )
        await self._messenger.send(session, replies.ask_location_type(name))
