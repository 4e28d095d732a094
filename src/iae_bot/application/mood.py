"""Acompanhamento do humor do usuário ao longo da conversa."""

from __future__ import annotations

from typing import TYPE_CHECKING

from iae_bot.application.session import MoodSnapshot, Session
from iae_bot.domain.enums import Mood
from iae_bot.domain.nlu import detect_mood_simple

if TYPE_CHECKING:
    from iae_bot.ai.assistant import Assistant


class MoodTracker:
    """Atualiza `session.mood` a cada mensagem de texto.

    Listas de palavras primeiro; se o resultado for neutro, o LLM é
    consultado. Um humor não neutro recente (até `retention_seconds`) não é
    sobrescrito por uma leitura neutra.
    """

    def __init__(self, assistant: Assistant, retention_seconds: float = 1800) -> None:
        self._assistant = assistant
        self._retention = retention_seconds

    async def detect(self, text: str) -> Mood:
        mood = detect_mood_simple(text)
        if mood is Mood.NEUTRAL:
            mood = await self._assistant.classify_mood(text) or Mood.NEUTRAL
        return mood

    async def update(self, session: Session, text: str, now: float) -> Mood:
        mood = await self.detect(text)
        previous = session.mood
        if (
            mood is Mood.NEUTRAL
            and previous is not None
            and previous.value is not Mood.NEUTRAL
            and now - previous.timestamp < self._retention
        ):
            return previous.value
        session.mood = MoodSnapshot(value=mood, timestamp=now)
        return mood
