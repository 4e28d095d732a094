"""Testes do ConversationEngine: leitura da sessão e locks por usuário."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from iae_bot.adapters.evolution.models import InboundEvent
from iae_bot.application.factory import BotRuntime, build_runtime
from iae_bot.application.session import CtaState, Session
from iae_bot.config.settings import Settings
from iae_bot.domain import replies
from iae_bot.domain.enums import Role
from iae_bot.infra.metrics_store import MetricsStore
from iae_bot.infra.session_store import InMemorySessionStore, RedisSessionStore
from iae_bot.infra.sponsor_directory import SponsorDirectory
from iae_bot.infra.user_repository import InMemoryUserRepository
from tests.helpers.fakes import FakeGateway, FakePlaces, FakeSpeech, make_place

USER = "5561955554444@s.whatsapp.net"


def _runtime(settings: Settings, gateway: FakeGateway, store) -> BotRuntime:
    return build_runtime(
        settings,
        store=store,
        repository=InMemoryUserRepository(),
        gateway=gateway,
        places=FakePlaces(),
        speech=FakeSpeech(),
        llm=None,
        sponsors=SponsorDirectory(),
        metrics=MetricsStore(None),
    )


class TestSessionUnavailable:
    """Backend de sessão fora do ar não pode apagar o estado do usuário."""

    @pytest.mark.asyncio
    async def test_read_failure_apologizes_without_saving(
        self, settings: Settings, gateway: FakeGateway
    ) -> None:
        client = MagicMock()
        client.get.side_effect = ConnectionError("redis down")
        runtime = _runtime(settings, gateway, RedisSessionStore(client))

        rule = await runtime.engine.handle(
            InboundEvent(user_id=USER, message_id="M1", instance_id="inst-1", text="oi")
        )

        assert rule is None
        client.setex.assert_not_called()
        assert gateway.sent == [(USER, replies.UNEXPECTED_ERROR, "inst-1")]

    @pytest.mark.asyncio
    async def test_stored_results_survive_read_failure(
        self, settings: Settings, gateway: FakeGateway
    ) -> None:
        """Depois da falha, a próxima leitura ainda encontra o CTA salvo."""
        stored = Session(user_id=USER)
        stored.push_history(Role.USER, "bar")
        stored.cta = CtaState(ordered_results=[make_place("a")], page_start_index=0)
        client = MagicMock()
        client.get.side_effect = [ConnectionError("redis down"), stored.model_dump_json()]
        runtime = _runtime(settings, gateway, RedisSessionStore(client))

        await runtime.engine.handle(InboundEvent(user_id=USER, message_id="M1", text="oi"))
        await runtime.engine.handle(InboundEvent(user_id=USER, message_id="M2", text="1"))

        saved = Session.model_validate_json(client.setex.call_args.args[2])
        assert saved.cta is not None
        assert saved.selected_place is not None
        assert saved.selected_place.place_id == "a"


class TestUserLocks:
    """Um lock por usuário, descartado quando ninguém o usa."""

    @pytest.mark.asyncio
    async def test_lock_released_after_turn(
        self, settings: Settings, gateway: FakeGateway
    ) -> None:
        runtime = _runtime(settings, gateway, InMemorySessionStore())

        await runtime.engine.handle(InboundEvent(user_id=USER, message_id="M1", text="oi"))
        await runtime.engine.handle(
            InboundEvent(user_id="5561900001111@s.whatsapp.net", message_id="M1", text="oi")
        )

        assert runtime.engine.lock_count == 0

    @pytest.mark.asyncio
    async def test_waiter_keeps_lock_alive(
        self, settings: Settings, gateway: FakeGateway
    ) -> None:
        """Turno em espera usa o mesmo lock de quem está processando."""
        engine = _runtime(settings, gateway, InMemorySessionStore()).engine

        async with engine.user_lock(USER):
            task = asyncio.create_task(
                engine.handle(InboundEvent(user_id=USER, message_id="M1", text="oi"))
            )
            await asyncio.sleep(0)
            assert not task.done()
            assert engine.lock_count == 1

        assert await task == "first_contact"
        assert engine.lock_count == 0

    @pytest.mark.asyncio
    async def test_sweeper_shares_user_lock(
        self, settings: Settings, gateway: FakeGateway
    ) -> None:
        runtime = _runtime(settings, gateway, InMemorySessionStore())
        await runtime.engine.handle(InboundEvent(user_id=USER, message_id="M1", text="oi"))

        async with runtime.engine.user_lock(USER):
            task = asyncio.create_task(runtime.sweeper.sweep_once())
            await asyncio.sleep(0)
            assert not task.done()

        assert await task == 0
        assert runtime.engine.lock_count == 0
