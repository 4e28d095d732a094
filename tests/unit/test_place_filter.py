"""Testes do filtro de lugares por status e tipo."""

from __future__ import annotations

from iae_bot.domain.enums import PlaceDomain
from iae_bot.domain.place_filter import dedupe_by_place_id, filter_places_by_type, is_acceptable
from tests.helpers.fakes import make_place


class TestIsAcceptable:
    """Regras de status e tipo por domínio."""

    def test_closed_permanently_always_excluded(self) -> None:
        """CLOSED_PERMANENTLY sai mesmo com tipo permitido."""
        place = make_place("x", types=("bar", "restaurant"), business_status="CLOSED_PERMANENTLY")
        assert is_acceptable(place, PlaceDomain.BAR) is False
        assert is_acceptable(place, PlaceDomain.RESTAURANT) is False

    def test_temporarily_closed_excluded(self) -> None:
        """Qualquer status diferente de OPERATIONAL é descartado."""
        place = make_place("x", business_status="CLOSED_TEMPORARILY")
        assert is_acceptable(place, PlaceDomain.BAR) is False

    def test_missing_status_accepted(self) -> None:
        """Sem business_status o lugar segue para as regras de tipo."""
        place = make_place("x", business_status=None)
        assert is_acceptable(place, PlaceDomain.BAR) is True

    def test_bakery_only_excluded_for_bar(self) -> None:
        """Padaria pura nunca entra como bar."""
        place = make_place("padaria", types=("bakery",))
        assert is_acceptable(place, PlaceDomain.BAR) is False

    def test_excluded_type_wins_over_allowed(self) -> None:
        """Tipo excluído descarta mesmo com tipo permitido junto."""
        place = make_place("posto", types=("bar", "gas_station"))
        assert is_acceptable(place, PlaceDomain.BAR) is False

    def test_bar_domain_membership(self) -> None:
        """Tipo bar: entra em bar e não em restaurante."""
        place = make_place("boteco", types=("bar",))
        assert is_acceptable(place, PlaceDomain.BAR) is True
        assert is_acceptable(place, PlaceDomain.RESTAURANT) is False

    def test_restaurant_accepts_cafe(self) -> None:
        """Café é aceito como restaurante."""
        place = make_place("cafe", types=("cafe", "food"))
        assert is_acceptable(place, PlaceDomain.RESTAURANT) is True

    def test_missing_name_or_id_excluded(self) -> None:
        """Sem place_id ou nome o lugar é descartado."""
        no_id = make_place("x").model_copy(update={"place_id": None})
        no_name = make_place("x").model_copy(update={"name": None})
        assert is_acceptable(no_id, PlaceDomain.BAR) is False
        assert is_acceptable(no_name, PlaceDomain.BAR) is False


class TestFilterAndDedupe:
    """Testes de lista."""

    def test_filter_preserves_order(self) -> None:
        """A ordem original dos aceitos é mantida."""
        a = make_place("a", types=("bar",))
        b = make_place("b", types=("bakery",))
        c = make_place("c", types=("pub",))
        assert filter_places_by_type([a, b, c], PlaceDomain.BAR) == [a, c]

    def test_dedupe_keeps_first(self) -> None:
        """Repetidos por place_id ficam só na primeira ocorrência."""
        first = make_place("a", name="Primeiro")
        second = make_place("a", name="Segundo")
        other = make_place("b")
        assert dedupe_by_place_id([first, other, second]) == [first, other]
