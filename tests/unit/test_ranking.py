"""Testes de pontuação heurística e do ranqueador com LLM opcional."""

from __future__ import annotations

import logging
import math

import pytest

from iae_bot.ai.assistant import Assistant
from iae_bot.application.ranking import PlaceRanker
from iae_bot.domain.models import Sponsor
from iae_bot.domain.ranking import (
    basic_score,
    order_by_score,
    parse_relevance,
    prefilter_top,
    price_bonus,
    score_places,
)
from iae_bot.infra.sponsor_directory import SponsorDirectory
from tests.helpers.fakes import FakeLanguageModel, make_place


class TestHeuristicScore:
    """Componentes da pontuação heurística."""

    def test_basic_score(self) -> None:
        """rating*2 + log10(avaliações)."""
        place = make_place("a", rating=4.5, reviews=1000)
        assert basic_score(place) == pytest.approx(9.0 + 3.0)

    def test_basic_score_without_data(self) -> None:
        """Sem rating e sem avaliações a nota é zero."""
        place = make_place("a", rating=None, reviews=None)
        assert basic_score(place) == 0.0

    @pytest.mark.parametrize(
        ("preference", "level", "expected"),
        [
            ("econômico", 1, 2.0),
            ("econômico", 3, 0.0),
            ("moderado", 2, 2.0),
            ("moderado", 3, 2.0),
            ("luxo", 4, 2.0),
            ("luxo", None, 0.0),
            (None, 2, 0.0),
        ],
    )
    def test_price_bonus(self, preference: str | None, level: int | None, expected: float) -> None:
        """Bônus só quando a faixa declarada casa com o price_level."""
        assert price_bonus(make_place("a", price_level=level), preference) == expected

    def test_prefilter_keeps_top_n(self) -> None:
        """Pré-filtro mantém os N melhores por base + patrocínio."""
        places = [make_place(f"p{i}", rating=float(i % 5), reviews=10) for i in range(20)]
        top = prefilter_top(places, frozenset(), limit=12)
        assert len(top) == 12
        scores = [basic_score(p) for p in top]
        assert scores == sorted(scores, reverse=True)

    def test_prefilter_counts_sponsor_boost(self) -> None:
        """Patrocinador ativo recebe o bônus no pré-filtro."""
        weak = make_place("sponsor", rating=1.0, reviews=1)
        strong = make_place("strong", rating=2.0, reviews=1)
        top = prefilter_top([strong, weak], frozenset({"sponsor"}), limit=1)
        assert top == [weak]

    def test_order_is_stable_on_ties(self) -> None:
        """Empate mantém a ordem de entrada."""
        places = [make_place(pid, rating=4.0, reviews=10) for pid in ("a", "b", "c")]
        ordered = order_by_score(score_places(places, None, frozenset()))
        assert [p.place_id for p in ordered] == ["a", "b", "c"]

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("4", 4.0), ("3.5", 3.5), ("2,5 pontos", 2.5), ("nota: 4", None), ("7", None), (None, None)],
    )
    def test_parse_relevance(self, text: str | None, expected: float | None) -> None:
        """Só aceita número 0..5 no início da resposta."""
        assert parse_relevance(text) == expected


class TestPlaceRanker:
    """Ranqueador com e sem LLM."""

    def _places(self) -> list:
        return [
            make_place("low", rating=3.0, reviews=10),
            make_place("high", rating=4.8, reviews=500),
            make_place("mid", rating=4.0, reviews=50, price_level=1),
        ]

    @pytest.mark.asyncio
    async def test_without_llm_uses_heuristic_order(self) -> None:
        """Sem modelo a ordem é a heurística."""
        ranker = PlaceRanker(Assistant(None), SponsorDirectory())
        ranked = await ranker.rank(self._places(), {})
        assert [p.place_id for p in ranked] == ["high", "mid", "low"]

    @pytest.mark.asyncio
    async def test_llm_timeout_equals_heuristic_order(self) -> None:
        """Com o LLM sempre estourando o tempo, a ordem é igual à sem LLM."""
        slow = FakeLanguageModel(lambda prompt: "5", delay_seconds=0.2)
        ranker = PlaceRanker(Assistant(slow, rank_timeout_seconds=0.01), SponsorDirectory())
        baseline = PlaceRanker(Assistant(None), SponsorDirectory())

        places = self._places()
        ranked = await ranker.rank(places, {"preco": "econômico"})
        expected = await baseline.rank(places, {"preco": "econômico"})

        assert [p.place_id for p in ranked] == [p.place_id for p in expected]
        assert len(slow.prompts) == len(places)

    @pytest.mark.asyncio
    async def test_slow_llm_logs_over_budget(self, caplog) -> None:
        """Lote mais lento que o timeout por item gera component_over_budget."""
        slow = FakeLanguageModel(lambda prompt: "5", delay_seconds=0.2)
        ranker = PlaceRanker(
            Assistant(slow, rank_timeout_seconds=0.05),
            SponsorDirectory(),
            rank_timeout_seconds=0.001,
        )

        with caplog.at_level(logging.INFO, logger="iae_bot.observability.timing"):
            await ranker.rank(self._places(), {})

        over = [r for r in caplog.records if r.getMessage() == "component_over_budget"]
        assert len(over) == 1
        assert over[0].component == "llm_rank"
        assert over[0].budget_ms == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_llm_scores_change_order(self) -> None:
        """Notas do LLM somam com peso e podem reordenar."""

        def responder(prompt: str) -> str:
            return "5" if "Low" in prompt else "0"

        ranker = PlaceRanker(
            Assistant(FakeLanguageModel(responder)), SponsorDirectory(), llm_weight=10.0
        )
        ranked = await ranker.rank(self._places(), {})
        assert ranked[0].place_id == "low"

    @pytest.mark.asyncio
    async def test_price_preference_from_answers(self) -> None:
        """Faixa de preço das respostas vale quando a persona não tem."""
        places = [
            make_place("pricey", rating=4.2, reviews=10, price_level=4),
            make_place("cheap", rating=4.0, reviews=10, price_level=1),
        ]
        ranker = PlaceRanker(Assistant(None), SponsorDirectory())
        ranked = await ranker.rank(places, {}, {"preco": "econômico"})
        assert ranked[0].place_id == "cheap"

    @pytest.mark.asyncio
    async def test_sponsor_boost(self) -> None:
        """Patrocinador ativo sobe pelo bônus fixo."""
        sponsors = SponsorDirectory([Sponsor(place_id="low", active=True, prioridade=1)])
        ranker = PlaceRanker(Assistant(None), sponsors)
        ranked = await ranker.rank(self._places(), {})
        assert [p.place_id for p in ranked] == ["high", "low", "mid"]

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        """Lista vazia devolve lista vazia."""
        ranker = PlaceRanker(Assistant(None), SponsorDirectory())
        assert await ranker.rank([], {}) == []

    def test_log10_floor(self) -> None:
        """Zero avaliações contam como uma."""
        assert basic_score(make_place("a", rating=1.0, reviews=0)) == pytest.approx(2.0 + math.log10(1))
