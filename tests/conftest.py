from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from iae_bot.api.app import create_app
from iae_bot.application.factory import BotRuntime, build_runtime
from iae_bot.config.settings import Settings, get_settings
from iae_bot.infra.metrics_store import MetricsStore
from iae_bot.infra.session_store import InMemorySessionStore
from iae_bot.infra.sponsor_directory import SponsorDirectory
from iae_bot.infra.user_repository import InMemoryUserRepository
from tests.helpers.fakes import FakeGateway, FakePlaces, FakeSpeech

USER = "5561999990000@s.whatsapp.net"


@pytest.fixture()
def settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[Settings]:
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("OPENAI_ENABLED", "false")
    monkeypatch.setenv("TYPING_DELAY_ENABLED", "false")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def places() -> FakePlaces:
    return FakePlaces()


@pytest.fixture()
def sponsors() -> SponsorDirectory:
    return SponsorDirectory()


@pytest.fixture()
def runtime(
    settings: Settings,
    gateway: FakeGateway,
    places: FakePlaces,
    sponsors: SponsorDirectory,
) -> BotRuntime:
    """Runtime completo com provedores externos falsos e sem LLM."""
    return build_runtime(
        settings,
        store=InMemorySessionStore(),
        repository=InMemoryUserRepository(),
        gateway=gateway,
        places=places,
        speech=FakeSpeech(),
        llm=None,
        sponsors=sponsors,
        metrics=MetricsStore(None),
    )


@pytest.fixture()
def client(settings: Settings, runtime: BotRuntime) -> Iterator[TestClient]:
    app = create_app(settings, runtime=runtime)
    with TestClient(app) as test_client:
        yield test_client
