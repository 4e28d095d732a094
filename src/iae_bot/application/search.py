"""Finalização de busca: do refinamento pronto até a primeira página.

Fluxo de `finalize_search`:
1. Guarda de reentrância (`is_finalizing`)
2. Sem Refining com coordenadas → mensagem de recuperação e reset do fluxo
3. Snapshot em `last_search`
4. Nearby search → filtro de tipo → filtro de distância
5. Ranking (pré-filtro) → promoção de patrocinadores
6. Persistência de `last_choice` → página 0 → telemetria
7. Fluxo e guarda limpos no `finally`
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from iae_bot.application.session import SearchSnapshot, Session
from iae_bot.domain import replies
from iae_bot.domain.enums import PlaceDomain
from iae_bot.domain.geo import filter_by_distance
from iae_bot.domain.models import Persona, sanitize_answers
from iae_bot.domain.nlu import FOOTBALL_KEYWORDS
from iae_bot.domain.place_filter import filter_places_by_type
from iae_bot.domain.session import FlowEvent, FlowKind, Idle, Refining
from iae_bot.domain.sponsors import promote_sponsored_order
from iae_bot.observability.logging import get_logger, mask_user_id
from iae_bot.observability.timing import timed

if TYPE_CHECKING:
    from iae_bot.adapters.google.places import GooglePlacesClient
    from iae_bot.application.messenger import Messenger
    from iae_bot.application.presenter import Presenter
    from iae_bot.application.ranking import PlaceRanker
    from iae_bot.infra.metrics_store import MetricsStore
    from iae_bot.infra.sponsor_directory import SponsorDirectory
    from iae_bot.infra.user_repository import UserRepository

logger: logging.Logger = get_logger(__name__)


def search_keyword(answers: dict[str, Any]) -> str | None:
    filters = answers.get("filters") if isinstance(answers.get("filters"), dict) else {}
    keyword = answers.get("keyword") or filters.get("keyword")
    if not keyword:
        return None
    return str(keyword).strip() or None


def search_open_now(answers: dict[str, Any]) -> bool:
    filters = answers.get("filters") if isinstance(answers.get("filters"), dict) else {}
    return bool(answers.get("openNow") or filters.get("openNow"))


def with_football_keywords(answers: dict[str, Any]) -> dict[str, Any]:
    """Respostas da última busca com as palavras de transmissão de jogos."""
    updated = dict(answers)
    filters = dict(updated.get("filters") or {})
    previous = updated.get("keyword") or filters.get("keyword") or ""
    combined = " ".join(part for part in (previous, FOOTBALL_KEYWORDS) if part).strip()
    updated["keyword"] = combined
    filters["keyword"] = combined
    updated["filters"] = filters
    return updated


class SearchService:
    """Executa a busca de um refinamento pronto e apresenta os resultados."""

    def __init__(
        self,
        messenger: Messenger,
        presenter: Presenter,
        places: GooglePlacesClient,
        ranker: PlaceRanker,
        sponsors: SponsorDirectory,
        repository: UserRepository,
        metrics: MetricsStore,
        distance_filter_km: float = 15.0,
    ) -> None:
        self._messenger = messenger
        self._presenter = presenter
        self._places = places
        self._ranker = ranker
        self._sponsors = sponsors
        self._repository = repository
        self._metrics = metrics
        self._distance_filter_km = distance_filter_km

    async def finalize_search(self, session: Session, name: str) -> None:
        """Busca, ranqueia e apresenta a página inicial do refinamento atual."""
        if session.is_finalizing:
            logger.info("finalize_search_skipped", extra={"user": mask_user_id(session.user_id)})
            return

        session.is_finalizing = True
        try:
            flow = session.flow
            if not isinstance(flow, Refining) or not flow.has_coordinates:
                await self._messenger.send(session, replies.finalize_recovery(name))
                session.move(FlowEvent.SEARCH_ABORTED, Idle())
                return
            with timed("finalize_search", user=session.user_id):
                await self._run(session, flow, name)
        finally:
            if session.flow.kind == FlowKind.REFINING:
                session.move(FlowEvent.SEARCH_ABORTED, Idle())
            session.is_finalizing = False

    async def _run(self, session: Session, flow: Refining, name: str) -> None:
        domain = flow.domain
        answers = dict(flow.answers)
        lat = float(flow.lat or 0.0)
        lng = float(flow.lng or 0.0)

        await self._messenger.send(session, replies.searching_nearby(name))
        session.last_search = SearchSnapshot(type=domain, lat=lat, lng=lng, answers=answers)
        session.clear_results()

        keyword = search_keyword(answers)
        raw = await self._places.nearby_for_domain(
            lat, lng, domain, keyword=keyword, open_now=search_open_now(answers)
        )
        candidates = filter_places_by_type(raw, domain)
        candidates = filter_by_distance(candidates, lat, lng, self._distance_filter_km)

        persona = self._repository.get_persona(session.user_id) or Persona()
        domain_persona = persona.for_domain(domain.persona_key)
        ranked = await self._ranker.rank(candidates, domain_persona, answers)
        ordered = promote_sponsored_order(ranked, self._sponsors.active())

        logger.info(
            "search_finalized",
            extra={
                "user": mask_user_id(session.user_id),
                "domain": domain.value,
                "raw": len(raw),
                "filtered": len(candidates),
                "ordered": len(ordered),
                "from_text": flow.from_text,
            },
        )

        if not ordered:
            await self._messenger.send(session, replies.no_results(name))
            session.move(FlowEvent.SEARCH_COMPLETED, Idle())
            return

        self._save_last_choice(session.user_id, persona, domain, answers)
        await self._presenter.present_page(session, ordered, 0, name=name, domain=domain)
        self._record_search(domain, lat, lng, keyword)
        session.move(FlowEvent.SEARCH_COMPLETED, Idle())

    def _save_last_choice(
        self, user_id: str, persona: Persona, domain: PlaceDomain, answers: dict[str, Any]
    ) -> None:
        data = persona.for_domain(domain.persona_key)
        data["last_choice"] = sanitize_answers(answers)
        try:
            self._repository.save_persona(user_id, persona.with_domain(domain.persona_key, data))
        except Exception as e:
            logger.warning(
                "last_choice_save_failed",
                extra={"user": mask_user_id(user_id), "error_type": type(e).__name__},
            )

    def _record_search(self, domain: PlaceDomain, lat: float, lng: float, keyword: str | None) -> None:
        try:
            self._metrics.record_search(domain.value, lat, lng, keyword)
        except Exception as e:
            logger.warning("metrics_search_failed", extra={"error_type": type(e).__name__})

    async def refine_last_search(self, session: Session, name: str) -> bool:
        """Refaz a última busca focando em bares que transmitem jogos."""
        snapshot = session.last_search
        if snapshot is None:
            return False
        await self._messenger.send(session, replies.football_refinement(name))
        session.move(
            FlowEvent.LOCATION_RESOLVED,
            Refining(
                domain=snapshot.type,
                answers=with_football_keywords(snapshot.answers),
                lat=snapshot.lat,
                lng=snapshot.lng,
            ),
        )
        await self.finalize_search(session, name)
        return True
