"""Testes da apresentação de resultados (páginas, seleção e respostas de info)."""

from __future__ import annotations

import pytest

from iae_bot.ai.assistant import Assistant
from iae_bot.application.messenger import Messenger
from iae_bot.application.presenter import (
    Presenter,
    build_maps_link,
    format_info_reply,
    map_price_level,
    resolve_selection,
)
from iae_bot.application.session import CtaState, Session
from iae_bot.domain.enums import InfoTopic, PlaceDomain
from iae_bot.domain.models import OpeningHours, PlaceDetails, Sponsor
from iae_bot.infra.metrics_store import MetricsStore
from iae_bot.infra.sponsor_directory import SponsorDirectory
from iae_bot.infra.user_repository import InMemoryUserRepository
from tests.helpers.fakes import FakeGateway, FakePlaces, make_place

USER = "5561988887777@s.whatsapp.net"


def _presenter(
    gateway: FakeGateway,
    places: FakePlaces | None = None,
    sponsors: SponsorDirectory | None = None,
    metrics: MetricsStore | None = None,
) -> Presenter:
    messenger = Messenger(gateway, InMemoryUserRepository(), Assistant(None))
    return Presenter(
        messenger,
        places or FakePlaces(),
        sponsors or SponsorDirectory(),
        metrics or MetricsStore(None),
    )


class TestPriceLevel:
    """Mapeamento de price_level."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (1, "Faixa de preço: econômico (💸)"),
            (2, "Faixa de preço: moderado (💵)"),
            (3, "Faixa de preço: caro (💰)"),
            (4, "Faixa de preço: luxo (👑)"),
            (0, None),
            (None, None),
        ],
    )
    def test_map_price_level(self, level: int | None, expected: str | None) -> None:
        """Níveis 1..4 têm descrição; 0 e ausente não."""
        assert map_price_level(level) == expected


class TestResolveSelection:
    """Seleção relativa à página exibida."""

    def _cta(self, start: int = 0) -> CtaState:
        return CtaState(
            ordered_results=[make_place(f"p{i}") for i in range(5)],
            page_start_index=start,
        )

    def test_second_item_of_first_page(self) -> None:
        """"2" na primeira página → índice 1."""
        place = resolve_selection(self._cta(), 2)
        assert place is not None
        assert place.place_id == "p1"

    def test_selection_is_relative_to_page(self) -> None:
        """Na segunda página, "1" → índice 3."""
        place = resolve_selection(self._cta(start=3), 1)
        assert place is not None
        assert place.place_id == "p3"

    def test_out_of_page_number(self) -> None:
        """Número fora de 1..3 não seleciona."""
        assert resolve_selection(self._cta(), 5) is None
        assert resolve_selection(self._cta(), 0) is None

    def test_past_end_of_results(self) -> None:
        """Página incompleta: item inexistente → None."""
        assert resolve_selection(self._cta(start=3), 3) is None

    def test_without_cta(self) -> None:
        """Sem resultados exibidos não há seleção."""
        assert resolve_selection(None, 1) is None


class TestFormatInfoReply:
    """Respostas a perguntas sobre um lugar."""

    def test_hours_with_status(self) -> None:
        """Horários listados e status aberto."""
        place = make_place("abc", "Bar do Zé")
        details = PlaceDetails(
            opening_hours=OpeningHours(open_now=True, weekday_text=["segunda: 18:00–02:00"])
        )
        text = format_info_reply(place, details, InfoTopic.HOURS)
        assert text.startswith("*Bar do Zé*\n🔗 " + build_maps_link("abc", "Bar do Zé"))
        assert "Horários:\nsegunda: 18:00–02:00" in text
        assert "Status: aberto agora ✅" in text

    def test_hours_missing(self) -> None:
        """Sem horários no perfil."""
        text = format_info_reply(make_place("abc"), None, InfoTopic.HOURS)
        assert "Não encontrei horários de funcionamento" in text

    def test_price_prefers_place_level(self) -> None:
        """price_level do resultado vence o dos detalhes."""
        place = make_place("abc", price_level=1)
        text = format_info_reply(place, PlaceDetails(price_level=4), InfoTopic.PRICE)
        assert "econômico" in text

    def test_price_from_details(self) -> None:
        """Sem nível no resultado, usa os detalhes."""
        text = format_info_reply(make_place("abc"), PlaceDetails(price_level=3), InfoTopic.PRICE)
        assert "caro" in text

    def test_phone_and_website(self) -> None:
        """Telefone formatado e site."""
        details = PlaceDetails(formatted_phone_number="(61) 3333-4444", website="https://bar.example")
        assert "Telefone: (61) 3333-4444" in format_info_reply(make_place("a"), details, InfoTopic.PHONE)
        assert "Site/Cardápio: https://bar.example" in format_info_reply(
            make_place("a"), details, InfoTopic.WEBSITE
        )

    def test_address_falls_back_to_vicinity(self) -> None:
        """Sem endereço formatado, usa a vizinhança."""
        text = format_info_reply(make_place("a", vicinity="CLS 404"), None, InfoTopic.ADDRESS)
        assert "Endereço: CLS 404" in text

    def test_partner_block(self) -> None:
        """Parceiro acrescenta descrição e cardápio."""
        sponsor = Sponsor(place_id="a", active=True, detalhes="Chopp gelado", cardapio="https://menu")
        text = format_info_reply(make_place("a"), None, InfoTopic.ADDRESS, sponsor)
        assert "🤝 Parceiro I.aê\nChopp gelado" in text
        assert "📜 Cardápio: https://menu" in text


class TestPresentPage:
    """Envio de páginas de 3 cards."""

    @pytest.mark.asyncio
    async def test_first_page(self) -> None:
        """Intro, 3 cards numerados e CTA; cta guardado na sessão."""
        gateway = FakeGateway()
        metrics = MetricsStore(None)
        presenter = _presenter(gateway, metrics=metrics)
        session = Session(user_id=USER)
        ordered = [make_place(f"p{i}") for i in range(5)]

        shown = await presenter.present_page(
            session, ordered, 0, name="Maria", domain=PlaceDomain.BAR
        )

        texts = gateway.texts(USER)
        assert shown == 3
        assert texts[0].startswith("Beleza, Maria! Achei alguns bares")
        assert texts[1].startswith("*1. P0*")
        assert build_maps_link("p0", "P0") in texts[1]
        assert texts[3].startswith("*3. P2*")
        assert "escolher 1, 2 ou 3" in texts[-1]
        assert session.cta is not None
        assert session.cta.page_start_index == 0
        assert len(session.cta.ordered_results) == 5
        assert len(metrics.top_places()) == 3

    @pytest.mark.asyncio
    async def test_card_uses_official_profile_url(self) -> None:
        """details.url substitui o link de busca."""
        gateway = FakeGateway()
        places = FakePlaces(details={"p0": PlaceDetails(url="https://maps.google.com/?cid=1")})
        presenter = _presenter(gateway, places=places)

        await presenter.present_page(
            Session(user_id=USER), [make_place("p0")], 0, name="Maria", domain=PlaceDomain.BAR
        )

        assert "🔗 https://maps.google.com/?cid=1" in gateway.texts()[1]

    @pytest.mark.asyncio
    async def test_empty_results(self) -> None:
        """Lista vazia → aviso e nenhum card."""
        gateway = FakeGateway()
        presenter = _presenter(gateway)
        session = Session(user_id=USER)

        shown = await presenter.present_page(session, [], 0, name="Maria", domain=PlaceDomain.BAR)

        assert shown == 0
        assert gateway.texts() == [
            "Não encontrei lugares que combinem com o que você procura. Tente ajustar os filtros!"
        ]
        assert session.cta is None

    @pytest.mark.asyncio
    async def test_next_page_and_end_of_list(self) -> None:
        """Próxima página a partir do cta; depois, fim da lista."""
        gateway = FakeGateway()
        presenter = _presenter(gateway)
        session = Session(user_id=USER)
        ordered = [make_place(f"p{i}") for i in range(5)]
        await presenter.present_page(session, ordered, 0, name="Ana", domain=PlaceDomain.RESTAURANT)
        gateway.clear()

        shown = await presenter.present_next_page(session, name="Ana", domain=PlaceDomain.RESTAURANT)
        assert shown == 2
        assert gateway.texts()[1].startswith("*1. P3*")
        assert session.cta is not None
        assert session.cta.page_start_index == 3

        gateway.clear()
        assert await presenter.present_next_page(session, name="Ana", domain=PlaceDomain.RESTAURANT) == 0
        assert gateway.texts()[0].startswith("Essas eram todas as opções")

    @pytest.mark.asyncio
    async def test_sponsor_extra_message(self) -> None:
        """Card de parceiro recebe destaque e bloco extra."""
        gateway = FakeGateway()
        sponsors = SponsorDirectory(
            [Sponsor(place_id="p0", active=True, destaque="Happy hour até 20h", whatsapp="61999")]
        )
        presenter = _presenter(gateway, sponsors=sponsors)

        await presenter.present_page(
            Session(user_id=USER), [make_place("p0")], 0, name="Ana", domain=PlaceDomain.BAR
        )

        texts = gateway.texts()
        assert "📣 Happy hour até 20h" in texts[1]
        assert "📲 WhatsApp: 61999" in texts[2]


class TestNearbySponsors:
    """Parceiros próximos a uma coordenada."""

    @pytest.mark.asyncio
    async def test_filters_by_radius_and_orders_by_priority(self) -> None:
        """Só parceiros até 5 km, por prioridade e depois distância."""
        def details_at(lat: float, lng: float, name: str) -> PlaceDetails:
            return PlaceDetails.model_validate(
                {"name": name, "geometry": {"location": {"lat": lat, "lng": lng}}}
            )

        places = FakePlaces(details={
            "near": details_at(-15.7901, -47.8801, "Perto"),
            "vip": details_at(-15.80, -47.89, "Vip"),
            "far": details_at(-16.5, -48.5, "Longe"),
        })
        sponsors = SponsorDirectory([
            Sponsor(place_id="near", active=True),
            Sponsor(place_id="vip", active=True, prioridade=1),
            Sponsor(place_id="far", active=True, prioridade=0),
        ])
        gateway = FakeGateway()
        presenter = _presenter(gateway, places=places, sponsors=sponsors)

        count = await presenter.present_nearby_sponsors(
            Session(user_id=USER), -15.79, -47.88, name="Ana"
        )

        texts = gateway.texts()
        assert count == 2
        assert texts[0] == "Parceiros I.aê por perto de você, Ana:"
        assert texts[1].startswith("*Vip*")
        assert texts[2].startswith("*Perto*")
