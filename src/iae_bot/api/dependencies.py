"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Request

from iae_bot.application.conversation.engine import ConversationEngine
from iae_bot.application.factory import BotRuntime
from iae_bot.config.settings import Settings
from iae_bot.infra.metrics_store import MetricsStore


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_runtime(request: Request) -> BotRuntime:
    return request.app.state.runtime


def get_engine(request: Request) -> ConversationEngine:
    """Retorna o motor de conversa ativo."""

    return request.app.state.runtime.engine


def get_metrics(request: Request) -> MetricsStore:
    return request.app.state.runtime.metrics
