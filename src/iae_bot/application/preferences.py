"""Preferências aprendidas e montagem das respostas de refinamento."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from iae_bot.domain.enums import PlaceDomain
from iae_bot.domain.models import Persona
from iae_bot.domain.nlu import derive_prefs_from_message, extract_search_filters, keywords_from_saved_prefs
from iae_bot.observability.logging import get_logger, mask_user_id

if TYPE_CHECKING:
    from iae_bot.infra.user_repository import UserRepository

logger: logging.Logger = get_logger(__name__)


def build_refinement_answers(
    message: str,
    domain: PlaceDomain,
    persona: Persona,
    initial_prefs: dict[str, Any] | None = None,
    saved_prefs: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Respostas iniciais de um refinamento.

    Ordem de precedência (a última vence): nome conhecido, persona do
    domínio, preferências da intenção e filtros extraídos da mensagem.
    Termos das preferências salvas são anexados a `filters.keyword`.
    """
    domain_persona = persona.for_domain(domain.persona_key)
    shared_name = persona.nome or domain_persona.get("nome")

    filters = extract_search_filters(message)
    saved_keywords = keywords_from_saved_prefs(saved_prefs or {})
    if saved_keywords:
        nested = dict(filters.get("filters") or {})
        nested["keyword"] = " ".join(k for k in [nested.get("keyword"), *saved_keywords] if k)
        filters["filters"] = nested

    answers: dict[str, Any] = {}
    if shared_name:
        answers["nome"] = shared_name
    answers.update(domain_persona)
    answers.update(initial_prefs or {})
    answers.update(filters)
    return answers


def learn_from_message(repository: UserRepository, user_id: str, text: str | None) -> dict[str, str]:
    """Persiste as preferências inferidas da mensagem (falhas só logadas)."""
    prefs = derive_prefs_from_message(text)
    if not prefs:
        return prefs
    try:
        repository.upsert_preferences(user_id, prefs)
    except Exception as e:
        logger.warning(
            "preferences_save_failed",
            extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
        )
    return prefs


def saved_preferences(repository: UserRepository, user_id: str) -> dict[str, str]:
    try:
        return repository.get_preferences(user_id)
    except Exception as e:
        logger.warning(
            "preferences_load_failed",
            extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
        )
        return {}
