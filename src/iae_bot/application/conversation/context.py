"""Contexto de um turno de conversa e colaboradores do motor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from iae_bot.domain.models import Persona
from iae_bot.domain.session import Interviewing

if TYPE_CHECKING:
    from iae_bot.adapters.evolution.models import InboundEvent
    from iae_bot.adapters.google.places import GooglePlacesClient
    from iae_bot.adapters.google.speech import SpeechTranscriber
    from iae_bot.ai.assistant import Assistant
    from iae_bot.application.interview import InterviewFlow
    from iae_bot.application.messenger import Messenger
    from iae_bot.application.mood import MoodTracker
    from iae_bot.application.presenter import Presenter
    from iae_bot.application.search import SearchService
    from iae_bot.application.session import Session
    from iae_bot.infra.metrics_store import MetricsStore
    from iae_bot.infra.sponsor_directory import SponsorDirectory
    from iae_bot.infra.user_repository import UserRepository


@dataclass(slots=True)
class ConversationServices:
    """Tudo que as regras e handlers precisam além do turno."""

    messenger: Messenger
    presenter: Presenter
    search: SearchService
    interview: InterviewFlow
    mood: MoodTracker
    assistant: Assistant
    places: GooglePlacesClient
    speech: SpeechTranscriber
    sponsors: SponsorDirectory
    repository: UserRepository
    metrics: MetricsStore
    interview_enabled: bool = False
    duplicate_location_km: float = 0.1
    resume_after_seconds: float = 172800
    default_user_name: str = "parceiro"


@dataclass(slots=True)
class Turn:
    """Um evento de entrada em processamento.

    `had_history` e `resumed` são calculados antes de qualquer mutação da
    sessão neste turno.
    """

    session: Session
    event: InboundEvent
    now: float
    persona: Persona = field(default_factory=Persona)
    known_name: str | None = None
    default_name: str = "parceiro"
    text: str | None = None
    had_history: bool = False
    resumed: bool = False

    @property
    def user_id(self) -> str:
        return self.session.user_id

    @property
    def name(self) -> str:
        """Nome para as mensagens (ou o apelido padrão)."""
        return self.known_name or self.default_name

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    @property
    def has_profile(self) -> bool:
        """Persona com nome ou respostas de algum domínio."""
        return bool(self.persona.nome or self.persona.bar or self.persona.rest)


def resolve_name(persona: Persona, session: Session, stored_name: str | None) -> str | None:
    """Nome do usuário: persona, respostas de entrevista em curso ou cadastro."""
    interim = session.flow.answers.get("nome") if isinstance(session.flow, Interviewing) else None
    return (
        persona.nome
        or persona.bar.get("nome")
        or persona.rest.get("nome")
        or interim
        or stored_name
        or None
    )
