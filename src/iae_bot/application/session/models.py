"""Session: estado de conversa de um usuário.

- Uma sessão por JID do WhatsApp
- Fase do fluxo em `flow` (união discriminada, sempre exatamente uma)
- Serializável em JSON para o store Redis
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from iae_bot.domain.enums import Mood, PlaceDomain, Role
from iae_bot.domain.models import LatLng, Place
from iae_bot.domain.session import FlowEvent, FlowState, Idle, apply_transition

HISTORY_LIMIT = 50


class HistoryEntry(BaseModel):
    role: Role
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


class MoodSnapshot(BaseModel):
    value: Mood
    timestamp: float


class CtaState(BaseModel):
    """Resultados ordenados da última busca e início da página exibida."""

    ordered_results: list[Place] = Field(default_factory=list)
    page_start_index: int = 0


class SearchSnapshot(BaseModel):
    """Parâmetros da última busca executada (para refazer com ajustes)."""

    type: PlaceDomain
    lat: float
    lng: float
    answers: dict[str, Any] = Field(default_factory=dict)


class Session(BaseModel):
    """Estado completo da conversa com um usuário."""

    user_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    conversation_history: list[HistoryEntry] = Field(default_factory=list)
    flow: FlowState = Field(default_factory=Idle)
    pending_location: LatLng | None = None
    last_location: LatLng | None = None
    last_msg_id: str | None = None
    last_active: float | None = None
    mood: MoodSnapshot | None = None
    cta: CtaState | None = None
    selected_place: Place | None = None
    last_search: SearchSnapshot | None = None
    is_finalizing: bool = False
    instance_id: str | None = None

    def push_history(self, role: Role, message: str) -> None:
        """Acrescenta ao histórico, mantendo só as entradas mais recentes."""
        self.conversation_history.append(HistoryEntry(role=role, message=message))
        if len(self.conversation_history) > HISTORY_LIMIT:
            del self.conversation_history[:-HISTORY_LIMIT]
        self.updated_at = datetime.now(tz=UTC)

    def move(self, event: FlowEvent, target: Any) -> None:
        """Troca a fase conferindo a tabela de transições."""
        self.flow = apply_transition(self.flow, event, target)
        self.updated_at = datetime.now(tz=UTC)

    def clear_results(self) -> None:
        self.cta = None
        self.selected_place = None
