"""Pontuação heurística de lugares.

Funções puras; a etapa opcional com LLM fica em `application.ranking`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from iae_bot.domain.models import Place

PRICE_MATCH_BONUS = 2.0

_LEADING_NUMBER = re.compile(r"\s*(-?\d+(?:[.,]\d+)?)")


def basic_score(place: Place) -> float:
    """rating*2 + log10(max(avaliações, 1))."""
    rating = place.rating or 0.0
    reviews = max(place.user_ratings_total or 0, 1)
    return rating * 2 + math.log10(reviews)


def price_bonus(place: Place, price_preference: str | None) -> float:
    """+2 quando a faixa declarada casa com o price_level do lugar.

    econ → nível <= 1; moder → nível 2 ou 3; luxo → nível 4. Sem
    price_level não há bônus.
    """
    if not price_preference:
        return 0.0
    pref = price_preference.lower()
    level = place.price_level
    bonus = 0.0
    if level is None:
        return bonus
    if "econ" in pref and level <= 1:
        bonus += PRICE_MATCH_BONUS
    if "moder" in pref and level in (2, 3):
        bonus += PRICE_MATCH_BONUS
    if "luxo" in pref and level == 4:
        bonus += PRICE_MATCH_BONUS
    return bonus


def sponsor_bonus(place: Place, active_sponsor_ids: Collection[str], boost: float = 3.0) -> float:
    """Bônus fixo para patrocinadores ativos."""
    return boost if place.place_id in active_sponsor_ids else 0.0


@dataclass(slots=True)
class ScoredPlace:
    """Lugar com componentes de pontuação separados."""

    place: Place
    index: int
    base: float
    price: float = 0.0
    sponsor: float = 0.0
    llm: float | None = None

    @property
    def prefilter_score(self) -> float:
        return self.base + self.sponsor

    @property
    def heuristic_score(self) -> float:
        return self.base + self.price + self.sponsor

    def total(self, llm_weight: float) -> float:
        score = self.heuristic_score
        if self.llm is not None:
            score += self.llm * llm_weight
        return score


def score_places(
    places: Iterable[Place],
    persona: Mapping[str, Any] | None,
    active_sponsor_ids: Collection[str],
    boost: float = 3.0,
) -> list[ScoredPlace]:
    """Calcula os componentes heurísticos preservando o índice original."""
    preference = str((persona or {}).get("preco") or "")
    return [
        ScoredPlace(
            place=place,
            index=index,
            base=basic_score(place),
            price=price_bonus(place, preference),
            sponsor=sponsor_bonus(place, active_sponsor_ids, boost),
        )
        for index, place in enumerate(places)
    ]


def prefilter_top(
    places: Iterable[Place],
    active_sponsor_ids: Collection[str],
    limit: int = 12,
    boost: float = 3.0,
) -> list[Place]:
    """Top `limit` por base+patrocínio (ordenação estável)."""
    scored = score_places(places, None, active_sponsor_ids, boost)
    scored.sort(key=lambda s: (-s.prefilter_score, s.index))
    return [s.place for s in scored[:limit]]


def order_by_score(scored: Iterable[ScoredPlace], llm_weight: float = 0.5) -> list[Place]:
    """Ordena por pontuação decrescente; empate mantém a ordem de entrada."""
    ordered = sorted(scored, key=lambda s: (-s.total(llm_weight), s.index))
    return [s.place for s in ordered]


def parse_relevance(text: str | None) -> float | None:
    """Lê a nota 0..5 devolvida pelo LLM; qualquer outra coisa vira None."""
    if not text:
        return None
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    value = float(match.group(1).replace(",", "."))
    if not 0 <= value <= 5:
        return None
    return value
