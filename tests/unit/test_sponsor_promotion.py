"""Testes de promoção de patrocinadores e detecção de menção."""

from __future__ import annotations

from iae_bot.domain.models import Sponsor
from iae_bot.domain.sponsors import (
    detect_sponsor_mention,
    effective_priority,
    normalize_text,
    promote_sponsored_order,
)
from tests.helpers.fakes import make_place


def _sponsor(place_id: str, prioridade: object = None, active: bool = True, nome: str | None = None) -> Sponsor:
    return Sponsor.model_validate(
        {"place_id": place_id, "prioridade": prioridade, "active": active, "nome": nome}
    )


class TestPromoteSponsoredOrder:
    """Fixação dos patrocinadores nos slots 1..3."""

    def test_three_sponsors_take_first_slots(self) -> None:
        """Prioridades 1, 2, 3 ocupam as três primeiras posições em ordem."""
        places = [make_place(pid) for pid in ("a", "s3", "b", "s1", "c", "s2")]
        sponsors = [_sponsor("s2", 2), _sponsor("s1", 1), _sponsor("s3", 3)]

        ordered = promote_sponsored_order(places, sponsors)

        assert [p.place_id for p in ordered[:3]] == ["s1", "s2", "s3"]
        assert [p.place_id for p in ordered[3:]] == ["a", "b", "c"]
        assert len(ordered) == len(places)

    def test_no_entry_dropped(self) -> None:
        """Nenhum lugar sai da lista."""
        places = [make_place(pid) for pid in ("a", "b", "s1")]
        ordered = promote_sponsored_order(places, [_sponsor("s1", 1)])
        assert sorted(p.place_id for p in ordered) == ["a", "b", "s1"]

    def test_inactive_sponsor_ignored(self) -> None:
        """Patrocinador inativo não é fixado."""
        places = [make_place("a"), make_place("s1")]
        ordered = promote_sponsored_order(places, [_sponsor("s1", 1, active=False)])
        assert [p.place_id for p in ordered] == ["a", "s1"]

    def test_absent_sponsor_ignored(self) -> None:
        """Patrocinador fora da lista não altera a ordem."""
        places = [make_place("a"), make_place("b")]
        assert promote_sponsored_order(places, [_sponsor("zz", 1)]) == places

    def test_collision_resolved_by_place_id(self) -> None:
        """Dois no slot 1: vence o menor place_id; o outro não é fixado."""
        places = [make_place("x"), make_place("s-b"), make_place("s-a")]
        ordered = promote_sponsored_order(places, [_sponsor("s-b", 1), _sponsor("s-a", 1)])
        assert [p.place_id for p in ordered] == ["s-a", "x", "s-b"]

    def test_missing_priority_goes_to_slot_three(self) -> None:
        """Sem prioridade (99) o slot desejado é limitado a 3."""
        places = [make_place("a"), make_place("b"), make_place("s")]
        ordered = promote_sponsored_order(places, [_sponsor("s")])
        assert ordered[0].place_id == "s"
        assert effective_priority(_sponsor("s")) == 99

    def test_invalid_priority_coerced(self) -> None:
        """Prioridade não numérica vira ausente."""
        assert _sponsor("s", "abc").prioridade is None
        assert _sponsor("s", "2").prioridade == 2


class TestSponsorMention:
    """Detecção de parceiro citado pelo nome."""

    def test_normalize_text(self) -> None:
        """Remove acentos e pontuação."""
        assert normalize_text("  Bar do Zé!! ") == "bar do ze"

    def test_full_name_in_message(self) -> None:
        """Nome completo dentro da mensagem casa."""
        sponsor = _sponsor("s1", 1, nome="Bar do Zé")
        assert detect_sponsor_mention("onde fica o bar do ze?", [sponsor]) is sponsor

    def test_last_word_of_compound_name(self) -> None:
        """Última palavra (>= 4 letras) de nome composto casa."""
        sponsor = _sponsor("s1", 1, nome="Boteco Pinguim")
        assert detect_sponsor_mention("me fala do pinguim", [sponsor]) is sponsor

    def test_inactive_not_detected(self) -> None:
        """Parceiro inativo é ignorado."""
        sponsor = _sponsor("s1", 1, active=False, nome="Bar do Zé")
        assert detect_sponsor_mention("bar do ze", [sponsor]) is None

    def test_unrelated_message(self) -> None:
        """Mensagem sem o nome não casa."""
        sponsor = _sponsor("s1", 1, nome="Boteco Pinguim")
        assert detect_sponsor_mention("quero um restaurante", [sponsor]) is None
