"""Apresentação de resultados: páginas de 3 cards, seleção e informações.

Responsabilidades:
- Montar cards de lugares e extras de parceiros
- Guardar a página atual em `session.cta`
- Resolver seleções numéricas (1..3) relativas à página exibida
- Responder perguntas de preço, horário, telefone, site e endereço
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING
from urllib.parse import quote

from iae_bot.application.session import CtaState, Session
from iae_bot.domain import replies
from iae_bot.domain.enums import InfoTopic, PlaceDomain
from iae_bot.domain.geo import haversine_km
from iae_bot.domain.models import Place, PlaceDetails, Sponsor
from iae_bot.domain.sponsors import effective_priority
from iae_bot.observability.logging import get_logger, log_fallback

if TYPE_CHECKING:
    from iae_bot.adapters.google.places import GooglePlacesClient
    from iae_bot.application.messenger import Messenger
    from iae_bot.infra.metrics_store import MetricsStore
    from iae_bot.infra.sponsor_directory import SponsorDirectory

logger: logging.Logger = get_logger(__name__)

PAGE_SIZE = 3
CARD_DETAILS_TIMEOUT_SECONDS = 2.0
MAX_NEARBY_SPONSORS = 3

_PRICE_LEVELS: dict[int, str] = {
    1: "Faixa de preço: econômico (💸)",
    2: "Faixa de preço: moderado (💵)",
    3: "Faixa de preço: caro (💰)",
    4: "Faixa de preço: luxo (👑)",
}


def map_price_level(level: int | None) -> str | None:
    """Descrição da faixa de preço (0 ou ausente → None)."""
    if level is None:
        return None
    return _PRICE_LEVELS.get(level)


def build_maps_link(place_id: str | None, name: str | None) -> str:
    return (
        "https://www.google.com/maps/search/?api=1"
        f"&query={quote(name or '', safe='')}&query_place_id={place_id or ''}"
    )


def compose_partner_details(sponsor: Sponsor | None, details: PlaceDetails | None = None) -> str:
    """Bloco extra de parceiro (descrição, cardápio, contatos, CTA)."""
    if sponsor is None:
        return ""
    parts: list[str] = []
    if sponsor.description:
        parts.append(f"\n🤝 Parceiro I.aê\n{sponsor.description}")
    if sponsor.menu:
        parts.append(f"\n📜 Cardápio: {sponsor.menu}")
    if sponsor.whatsapp:
        parts.append(f"\n📲 WhatsApp: {sponsor.whatsapp}")
    if sponsor.instagram:
        parts.append(f"\n📷 Instagram: {sponsor.instagram}")
    if sponsor.cta:
        parts.append(f"\n👉 {sponsor.cta}")
    site = details and (details.website or details.url)
    if site and not sponsor.menu:
        parts.append(f"\n🔗 Perfil/Website: {site}")
    return "".join(parts)


def format_card(number: int | None, place: Place, link: str, sponsor: Sponsor | None) -> str:
    """Card de um lugar; `number` None omite a numeração."""
    title = f"{number}. {place.name}" if number is not None else f"{place.name}"
    highlight = f"\n📣 {sponsor.destaque}" if sponsor and sponsor.destaque else ""
    return (
        f"*{title}*\n⭐ {place.rating or 'N/A'} ({place.user_ratings_total or 0} avaliações)"
        f"\n📍 {place.vicinity or ''}{highlight}\n🔗 {link}"
    )


def format_info_reply(
    place: Place,
    details: PlaceDetails | None,
    topic: InfoTopic | None,
    sponsor: Sponsor | None = None,
) -> str:
    """Resposta a uma pergunta sobre um lugar já apresentado."""
    name = place.name or "o lugar"
    header = f"*{name}*\n🔗 {build_maps_link(place.place_id, name)}"

    if topic is InfoTopic.PRICE:
        level = place.price_level if place.price_level is not None else (
            details.price_level if details else None
        )
        label = map_price_level(level)
        body = label or "Não encontrei faixa de preço no perfil do Google desse lugar."
    elif topic is InfoTopic.HOURS:
        hours = details.opening_hours if details else None
        if hours and hours.weekday_text:
            body = "Horários:\n" + "\n".join(hours.weekday_text)
            if hours.open_now is True:
                body += "\nStatus: aberto agora ✅"
            elif hours.open_now is False:
                body += "\nStatus: fechado agora ❌"
        else:
            body = "Não encontrei horários de funcionamento no perfil do Google desse lugar."
    elif topic is InfoTopic.PHONE:
        phone = details.phone if details else None
        body = f"Telefone: {phone}" if phone else (
            "Não encontrei telefone no perfil do Google desse lugar."
        )
    elif topic is InfoTopic.WEBSITE:
        site = details and (details.website or details.url)
        body = f"Site/Cardápio: {site}" if site else (
            "Não encontrei site ou cardápio no perfil do Google desse lugar."
        )
    elif topic is InfoTopic.ADDRESS:
        address = (details.formatted_address if details else None) or place.vicinity
        body = f"Endereço: {address}" if address else (
            "Não encontrei endereço detalhado no perfil do Google desse lugar."
        )
    else:
        body = replies.ASK_TOPIC_DEFAULT

    return f"{header}\n{body}{compose_partner_details(sponsor, details)}"


def resolve_selection(cta: CtaState | None, number: int | None) -> Place | None:
    """Item `number` (1..3) da página exibida; fora da página → None."""
    if cta is None or number is None or not 1 <= number <= PAGE_SIZE:
        return None
    index = cta.page_start_index + number - 1
    if index >= len(cta.ordered_results):
        return None
    return cta.ordered_results[index]


class Presenter:
    """Envia páginas de resultados, parceiros próximos e respostas de info."""

    def __init__(
        self,
        messenger: Messenger,
        places: GooglePlacesClient,
        sponsors: SponsorDirectory,
        metrics: MetricsStore,
        sponsored_near_km: float = 5.0,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._messenger = messenger
        self._places = places
        self._sponsors = sponsors
        self._metrics = metrics
        self._sponsored_near_km = sponsored_near_km
        self._page_size = page_size

    async def _card_link(self, place: Place) -> str:
        """Perfil oficial (details.url) com timeout curto; senão link de busca."""
        try:
            details = await asyncio.wait_for(
                self._places.details(place.place_id), timeout=CARD_DETAILS_TIMEOUT_SECONDS
            )
        except TimeoutError:
            log_fallback(logger, "card_details", reason="timeout")
            details = None
        if details and details.url:
            return details.url
        return build_maps_link(place.place_id, place.name)

    def _record_shown(self, place_id: str | None, name: str | None, vicinity: str | None) -> None:
        try:
            self._metrics.record_place_shown(place_id, name, vicinity)
        except Exception as e:
            logger.warning("metrics_place_shown_failed", extra={"error_type": type(e).__name__})

    async def present_page(
        self,
        session: Session,
        ordered_places: Sequence[Place],
        start_index: int,
        *,
        name: str,
        domain: PlaceDomain,
    ) -> int:
        """Envia a página `[start, start+3)` e atualiza `session.cta`.

        Returns:
            Quantidade de cards enviados.
        """
        if not ordered_places:
            await self._messenger.send(session, replies.EMPTY_PAGE)
            return 0

        page = list(ordered_places[start_index : start_index + self._page_size])
        if not page:
            await self._messenger.send(session, replies.NO_MORE_RESULTS)
            return 0

        await self._messenger.send(session, replies.results_intro(name, domain))
        for number, place in enumerate(page, start=1):
            sponsor = self._sponsors.find_active(place.place_id)
            link = await self._card_link(place)
            await self._messenger.send(session, format_card(number, place, link, sponsor))
            self._record_shown(place.place_id, place.name, place.vicinity)
            extra = compose_partner_details(sponsor)
            if extra:
                await self._messenger.send(session, extra)

        await self._messenger.send_adaptive(session, replies.HINT_RESULTS_CTA, name)
        session.cta = CtaState(ordered_results=list(ordered_places), page_start_index=start_index)
        logger.info(
            "page_presented",
            extra={"start_index": start_index, "shown": len(page), "total": len(ordered_places)},
        )
        return len(page)

    async def present_next_page(self, session: Session, *, name: str, domain: PlaceDomain) -> int:
        """Próxima página da última busca (ou aviso de fim da lista)."""
        cta = session.cta
        if cta is None:
            return 0
        next_start = cta.page_start_index + self._page_size
        if next_start >= len(cta.ordered_results):
            await self._messenger.send(session, replies.NO_MORE_RESULTS)
            return 0
        return await self.present_page(
            session, cta.ordered_results, next_start, name=name, domain=domain
        )

    async def info_reply(self, place: Place, topic: InfoTopic | None) -> str:
        details = await self._places.details(place.place_id)
        sponsor = self._sponsors.find_active(place.place_id)
        return format_info_reply(place, details, topic, sponsor)

    async def sponsor_reply(self, sponsor: Sponsor) -> str:
        """Endereço e extras de um parceiro citado pelo nome."""
        details = await self._places.details(sponsor.place_id)
        stub = Place(
            place_id=sponsor.place_id,
            name=sponsor.nome or (details.name if details else None),
            vicinity=details.vicinity if details else None,
        )
        return format_info_reply(stub, details, InfoTopic.ADDRESS, sponsor)

    async def nearby_sponsors(self, lat: float, lng: float) -> list[tuple[Sponsor, PlaceDetails, float]]:
        """Parceiros ativos até `sponsored_near_km`, por prioridade e distância."""
        found: list[tuple[Sponsor, PlaceDetails, float]] = []
        for sponsor in self._sponsors.active():
            details = await self._places.details(sponsor.place_id)
            location = details.geometry.location if details and details.geometry else None
            if location is None or location.lat is None or location.lng is None:
                continue
            km = haversine_km(lat, lng, location.lat, location.lng)
            if km <= self._sponsored_near_km:
                found.append((sponsor, details, km))
        found.sort(key=lambda item: (effective_priority(item[0]), item[2]))
        return found[:MAX_NEARBY_SPONSORS]

    async def present_nearby_sponsors(
        self, session: Session, lat: float, lng: float, *, name: str
    ) -> int:
        """Apresenta até 3 parceiros próximos à coordenada recebida."""
        nearby = await self.nearby_sponsors(lat, lng)
        if not nearby:
            return 0
        await self._messenger.send(session, replies.nearby_sponsors_intro(name))
        for sponsor, details, km in nearby:
            place_name = sponsor.nome or details.name or "Parceiro"
            vicinity = details.vicinity or details.formatted_address or ""
            link = details.url or build_maps_link(sponsor.place_id, place_name)
            highlight = f"\n📣 {sponsor.destaque}" if sponsor.destaque else ""
            await self._messenger.send(
                session, f"*{place_name}* — {km:.1f} km\n📍 {vicinity}{highlight}\n🔗 {link}"
            )
            extra = compose_partner_details(sponsor, details)
            if extra:
                await self._messenger.send(session, extra)
            self._record_shown(sponsor.place_id, place_name, vicinity)
        return len(nearby)
