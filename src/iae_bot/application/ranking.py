"""Ranqueamento de candidatos com heurística e relevância opcional do LLM."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from iae_bot.domain.models import Place
from iae_bot.domain.ranking import ScoredPlace, order_by_score, prefilter_top, score_places
from iae_bot.observability.logging import get_logger
from iae_bot.observability.timing import timed

if TYPE_CHECKING:
    from iae_bot.ai.assistant import Assistant
    from iae_bot.infra.sponsor_directory import SponsorDirectory

logger: logging.Logger = get_logger(__name__)


class PlaceRanker:
    """Ordena lugares para apresentação.

    1. Pré-filtro: top N por base + patrocínio
    2. Componentes heurísticos (base, faixa de preço, patrocínio)
    3. Nota 0..5 do LLM em lotes concorrentes, cada item com timeout próprio
    4. Ordenação estável por pontuação combinada

    Sem LLM, ou quando todas as notas falham, a ordem é a heurística.
    Nenhum item do pré-filtro é descartado.
    """

    def __init__(
        self,
        assistant: Assistant,
        sponsors: SponsorDirectory,
        prefilter_size: int = 12,
        batch_size: int = 4,
        llm_weight: float = 0.5,
        sponsor_boost: float = 3.0,
        rank_timeout_seconds: float | None = None,
    ) -> None:
        self._assistant = assistant
        self._sponsors = sponsors
        self._prefilter_size = prefilter_size
        self._batch_size = max(1, batch_size)
        self._llm_weight = llm_weight
        self._sponsor_boost = sponsor_boost
        self._rank_timeout_seconds = rank_timeout_seconds

    async def rank(
        self,
        places: Sequence[Place],
        persona: dict[str, Any] | None,
        answers: dict[str, Any] | None = None,
    ) -> list[Place]:
        if not places:
            return []

        active_ids = self._sponsors.active_ids()
        candidates = prefilter_top(places, active_ids, self._prefilter_size, self._sponsor_boost)
        profile = dict(persona or {})
        if not profile.get("preco") and (answers or {}).get("preco"):
            profile["preco"] = answers["preco"]

        scored = score_places(candidates, profile, active_ids, self._sponsor_boost)
        if self._assistant.available:
            with timed("llm_rank", budget_ms=self._llm_budget_ms(len(scored))):
                await self._score_with_llm(scored, persona)

        ranked = order_by_score(scored, self._llm_weight)
        logger.info(
            "places_ranked",
            extra={
                "received": len(places),
                "ranked": len(ranked),
                "llm_scored": sum(1 for s in scored if s.llm is not None),
            },
        )
        return ranked

    def _llm_budget_ms(self, count: int) -> float | None:
        # Lotes rodam em sequência; cada item tem o seu timeout.
        if self._rank_timeout_seconds is None:
            return None
        batches = -(-count // self._batch_size)
        return batches * self._rank_timeout_seconds * 1000

    async def _score_with_llm(self, scored: list[ScoredPlace], persona: dict[str, Any] | None) -> None:
        for start in range(0, len(scored), self._batch_size):
            batch = scored[start : start + self._batch_size]
            results = await asyncio.gather(
                *(self._assistant.score_relevance(item.place, persona) for item in batch),
                return_exceptions=True,
            )
            for item, result in zip(batch, results, strict=True):
                if isinstance(result, BaseException):
                    logger.warning(
                        "llm_rank_item_failed",
                        extra={"error_type": type(result).__name__},
                    )
                    continue
                item.llm = result
