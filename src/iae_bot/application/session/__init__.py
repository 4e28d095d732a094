"""Sessão de conversa (modelo persistido por usuário)."""

from iae_bot.application.session.models import (
    CtaState,
    HistoryEntry,
    MoodSnapshot,
    SearchSnapshot,
    Session,
)

__all__ = [
    "Session",
    "HistoryEntry",
    "MoodSnapshot",
    "CtaState",
    "SearchSnapshot",
]
