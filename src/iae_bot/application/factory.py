"""Factory do runtime do bot.

Responsabilidades:
- Conhecer infra e settings
- Montar os colaboradores e o ConversationEngine
- Expor o que o app precisa gerenciar no ciclo de vida (sweep, métricas, close)

Não contém regra de negócio. Parâmetros explícitos têm prioridade sobre os
backends configurados (usado pelos testes para injetar fakes).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from iae_bot.adapters.evolution.gateway import EvolutionGateway, create_evolution_gateway
from iae_bot.adapters.google.places import GooglePlacesClient, create_places_client
from iae_bot.adapters.google.speech import SpeechTranscriber, create_speech_transcriber
from iae_bot.ai.assistant import Assistant
from iae_bot.ai.openai_client import LanguageModel, create_language_model
from iae_bot.application.conversation.context import ConversationServices
from iae_bot.application.conversation.engine import ConversationEngine
from iae_bot.application.guards import InactivitySweeper
from iae_bot.application.interview import InterviewFlow
from iae_bot.application.messenger import Messenger
from iae_bot.application.mood import MoodTracker
from iae_bot.application.presenter import Presenter
from iae_bot.application.ranking import PlaceRanker
from iae_bot.application.search import SearchService
from iae_bot.config.settings import Settings, get_settings
from iae_bot.infra import (
    MetricsStore,
    SessionStore,
    SponsorDirectory,
    UserRepository,
    create_session_store,
    create_user_repository,
)
from iae_bot.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BotRuntime:
    """Objetos de longa duração do processo."""

    engine: ConversationEngine
    sweeper: InactivitySweeper
    store: SessionStore
    repository: UserRepository
    sponsors: SponsorDirectory
    metrics: MetricsStore
    closables: list[Any] = field(default_factory=list)

    async def aclose(self) -> None:
        """Fecha os clientes HTTP; falhas são só logadas."""
        for client in self.closables:
            try:
                await client.close()
            except Exception as e:
                logger.warning("client_close_failed", extra={"error_type": type(e).__name__})


def build_runtime(
    settings: Settings | None = None,
    *,
    store: SessionStore | None = None,
    repository: UserRepository | None = None,
    gateway: EvolutionGateway | None = None,
    places: GooglePlacesClient | None = None,
    speech: SpeechTranscriber | None = None,
    llm: LanguageModel | None = None,
    sponsors: SponsorDirectory | None = None,
    metrics: MetricsStore | None = None,
) -> BotRuntime:
    settings = settings or get_settings()
    closables: list[Any] = []

    if store is None:
        store = create_session_store(settings)
    if repository is None:
        repository = create_user_repository(settings)
    if gateway is None:
        gateway = create_evolution_gateway(settings)
        closables.append(gateway)
    if places is None:
        places = create_places_client(settings)
        closables.append(places)
    if speech is None:
        speech = create_speech_transcriber(settings)
        closables.append(speech)
    if llm is None:
        llm = create_language_model(settings)
    if sponsors is None:
        sponsors = SponsorDirectory.from_file(settings.sponsors_file)
    if metrics is None:
        metrics = MetricsStore(settings.metrics_file)

    assistant = Assistant(
        llm,
        intent_timeout_seconds=settings.llm_intent_timeout_seconds,
        mood_timeout_seconds=settings.llm_mood_timeout_seconds,
        rank_timeout_seconds=settings.llm_rank_timeout_seconds,
        adaptive_timeout_seconds=settings.llm_adaptive_timeout_seconds,
    )
    messenger = Messenger(gateway, repository, assistant)
    presenter = Presenter(
        messenger,
        places,
        sponsors,
        metrics,
        sponsored_near_km=settings.sponsored_near_km,
        page_size=settings.page_size,
    )
    ranker = PlaceRanker(
        assistant,
        sponsors,
        prefilter_size=settings.ranking_prefilter_size,
        batch_size=settings.llm_rank_batch_size,
        llm_weight=settings.llm_rank_weight,
        sponsor_boost=settings.sponsor_boost,
        rank_timeout_seconds=settings.llm_rank_timeout_seconds,
    )
    search = SearchService(
        messenger,
        presenter,
        places,
        ranker,
        sponsors,
        repository,
        metrics,
        distance_filter_km=settings.distance_filter_km,
    )
    services = ConversationServices(
        messenger=messenger,
        presenter=presenter,
        search=search,
        interview=InterviewFlow(messenger, repository),
        mood=MoodTracker(assistant, retention_seconds=settings.mood_retention_seconds),
        assistant=assistant,
        places=places,
        speech=speech,
        sponsors=sponsors,
        repository=repository,
        metrics=metrics,
        interview_enabled=settings.interview_enabled,
        duplicate_location_km=settings.duplicate_location_km,
        resume_after_seconds=settings.resume_after_seconds,
        default_user_name=settings.default_user_name,
    )
    engine = ConversationEngine(store, services, session_ttl_seconds=settings.session_ttl_seconds)
    sweeper = InactivitySweeper(
        store,
        timeout_seconds=settings.inactivity_timeout_seconds,
        interval_seconds=settings.inactivity_sweep_interval_seconds,
        ttl_seconds=settings.session_ttl_seconds,
        locks=engine.user_lock,
    )
    logger.debug(
        "runtime_built",
        extra={"llm": assistant.available, "sponsors": len(sponsors.active())},
    )
    return BotRuntime(
        engine=engine,
        sweeper=sweeper,
        store=store,
        repository=repository,
        sponsors=sponsors,
        metrics=metrics,
        closables=closables,
    )
