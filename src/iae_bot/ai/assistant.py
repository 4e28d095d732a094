"""Pontos de decisão assistidos por LLM com fallback determinístico.

Cada método tem um orçamento de tempo próprio e sempre devolve um valor
utilizável, com ou sem modelo configurado.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from iae_bot.ai import prompts
from iae_bot.ai.classify import classify_or_default
from iae_bot.ai.openai_client import LanguageModel
from iae_bot.domain import nlu
from iae_bot.domain.enums import Mood, PlaceDomain
from iae_bot.domain.models import Place
from iae_bot.domain.ranking import parse_relevance
from iae_bot.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

_JSON_FENCE = re.compile(r"```json\n|```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class IntentParse:
    """Intenção extraída da mensagem (domain None = nenhum)."""

    domain: PlaceDomain | None
    preferences: dict[str, Any] = field(default_factory=dict)


def _heuristic_intent(message: str) -> IntentParse:
    return IntentParse(
        domain=nlu.detect_chosen_intent(message),
        preferences=dict(nlu.derive_prefs_from_message(message)),
    )


def parse_intent_payload(text: str | None) -> dict[str, Any] | None:
    """Extrai o primeiro objeto JSON da resposta (tolera cercas ```json)."""
    if not text:
        return None
    candidate = _JSON_FENCE.sub("", text).strip()
    match = _JSON_OBJECT.search(candidate)
    if match:
        candidate = match.group(0)
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _domain_from_label(label: Any) -> PlaceDomain | None:
    plain = nlu.strip_accents(str(label or "")).strip()
    if plain == "bar":
        return PlaceDomain.BAR
    if plain == "restaurante":
        return PlaceDomain.RESTAURANT
    return None


class Assistant:
    """Fachada dos usos de LLM do bot."""

    def __init__(
        self,
        llm: LanguageModel | None,
        intent_timeout_seconds: float = 1.2,
        mood_timeout_seconds: float = 1.2,
        rank_timeout_seconds: float = 2.5,
        adaptive_timeout_seconds: float = 5.0,
    ) -> None:
        self._llm = llm
        self._intent_timeout = intent_timeout_seconds
        self._mood_timeout = mood_timeout_seconds
        self._rank_timeout = rank_timeout_seconds
        self._adaptive_timeout = adaptive_timeout_seconds

    @property
    def available(self) -> bool:
        return self._llm is not None

    def _call(self, prompt: str, max_tokens: int = 200):
        """Fábrica da chamada (None sem modelo)."""
        llm = self._llm
        if llm is None:
            return None
        return lambda: llm.generate_text(prompt, max_tokens=max_tokens)

    async def parse_initial_intent(
        self, message: str, persona: dict[str, Any] | None = None
    ) -> IntentParse:
        """Intenção e preferências; cai nas heurísticas em timeout/JSON inválido."""
        fallback = _heuristic_intent(message)
        raw = await classify_or_default(
            self._call(prompts.initial_intent_prompt(message, persona), max_tokens=200),
            self._intent_timeout,
            None,
            "initial_intent",
        )
        payload = parse_intent_payload(raw)
        if payload is None:
            return fallback
        preferences = payload.get("preferences")
        return IntentParse(
            domain=_domain_from_label(payload.get("intention")),
            preferences=preferences if isinstance(preferences, dict) else {},
        )

    async def score_relevance(self, place: Place, persona: dict[str, Any] | None) -> float | None:
        """Nota 0..5 para o lugar; None em timeout ou resposta inválida."""
        label = "bar" if "bar" in place.types else "restaurante"
        raw = await classify_or_default(
            self._call(prompts.relevance_prompt(place.name, label, persona), max_tokens=5),
            self._rank_timeout,
            None,
            "llm_rank",
        )
        return parse_relevance(raw)

    async def classify_mood(self, text: str) -> Mood | None:
        raw = await classify_or_default(
            self._call(prompts.mood_prompt(text), max_tokens=5),
            self._mood_timeout,
            None,
            "mood_classification",
        )
        return nlu.parse_mood_label(raw)

    async def is_launch_question(self, text: str) -> bool:
        """Palavras-chave primeiro; LLM só quando a mensagem cita o lançamento ou o bot."""
        if nlu.is_launch_question(text):
            return True
        if not nlu.mentions_launch(text):
            return False
        raw = await classify_or_default(
            self._call(prompts.launch_prompt(text), max_tokens=5),
            self._intent_timeout,
            "",
            "launch_classification",
        )
        return "launch_iae" in raw.lower()

    async def is_reset(self, text: str) -> bool:
        if nlu.is_reset_request(text):
            return True
        raw = await classify_or_default(
            self._call(prompts.reset_prompt(text), max_tokens=5),
            self._intent_timeout,
            "",
            "reset_classification",
        )
        return "reset" in raw.lower()

    async def adaptive_reply(self, hint: str, name: str, tone: str = "") -> str | None:
        """Resposta guiada por instrução; None sem modelo ou em falha."""
        return await classify_or_default(
            self._call(prompts.adaptive_prompt(hint, name, tone), max_tokens=150),
            self._adaptive_timeout,
            None,
            "adaptive_reply",
        )

    async def generic_reply(self, message: str) -> str | None:
        return await classify_or_default(
            self._call(prompts.generic_reply_prompt(message), max_tokens=150),
            self._adaptive_timeout,
            None,
            "generic_reply",
        )
