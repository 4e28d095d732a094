"""Estados do fluxo de conversa (união discriminada).

Cada sessão carrega exatamente uma fase ativa em `Session.flow`; os dados
de cada fase vivem dentro do próprio estado, então não existe combinação
inválida de flags.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from iae_bot.domain.enums import PlaceDomain


class FlowKind(StrEnum):
    """Fases canônicas do fluxo."""

    IDLE = "IDLE"
    AWAITING_NAME = "AWAITING_NAME"
    AWAITING_INTENT_CHOICE = "AWAITING_INTENT_CHOICE"
    INTERVIEWING = "INTERVIEWING"
    REFINING = "REFINING"
    AWAITING_LOCATION_TYPE = "AWAITING_LOCATION_TYPE"
    AWAITING_LOCATION_TEXT = "AWAITING_LOCATION_TEXT"
    AWAITING_LOCATION_COORD = "AWAITING_LOCATION_COORD"


class Idle(BaseModel):
    kind: Literal[FlowKind.IDLE] = FlowKind.IDLE


class AwaitingName(BaseModel):
    kind: Literal[FlowKind.AWAITING_NAME] = FlowKind.AWAITING_NAME


class AwaitingIntentChoice(BaseModel):
    kind: Literal[FlowKind.AWAITING_INTENT_CHOICE] = FlowKind.AWAITING_INTENT_CHOICE


class Interviewing(BaseModel):
    """Entrevista de perfil; `question_index` aponta a pergunta pendente."""

    kind: Literal[FlowKind.INTERVIEWING] = FlowKind.INTERVIEWING
    domain: PlaceDomain
    question_index: int = 0
    answers: dict[str, Any] = Field(default_factory=dict)


class Refining(BaseModel):
    """Busca pronta para finalizar quando lat/lng estiverem preenchidos."""

    kind: Literal[FlowKind.REFINING] = FlowKind.REFINING
    domain: PlaceDomain
    answers: dict[str, Any] = Field(default_factory=dict)
    lat: float | None = None
    lng: float | None = None
    from_text: bool = False

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


class AwaitingLocationType(BaseModel):
    """Pergunta "perto de você" x "outro lugar" enviada."""

    kind: Literal[FlowKind.AWAITING_LOCATION_TYPE] = FlowKind.AWAITING_LOCATION_TYPE
    domain: PlaceDomain
    answers: dict[str, Any] = Field(default_factory=dict)


class AwaitingLocationText(BaseModel):
    kind: Literal[FlowKind.AWAITING_LOCATION_TEXT] = FlowKind.AWAITING_LOCATION_TEXT
    domain: PlaceDomain
    answers: dict[str, Any] = Field(default_factory=dict)


class AwaitingLocationCoord(BaseModel):
    kind: Literal[FlowKind.AWAITING_LOCATION_COORD] = FlowKind.AWAITING_LOCATION_COORD
    domain: PlaceDomain
    answers: dict[str, Any] = Field(default_factory=dict)


FlowState = Annotated[
    Idle
    | AwaitingName
    | AwaitingIntentChoice
    | Interviewing
    | Refining
    | AwaitingLocationType
    | AwaitingLocationText
    | AwaitingLocationCoord,
    Field(discriminator="kind"),
]

# Fases com contexto de busca que expiram por inatividade
SEARCH_KINDS = frozenset({
    FlowKind.REFINING,
    FlowKind.AWAITING_LOCATION_TYPE,
    FlowKind.AWAITING_LOCATION_TEXT,
    FlowKind.AWAITING_LOCATION_COORD,
})

# Fases que aceitam uma coordenada para fechar a busca
LOCATION_ACCEPTING_KINDS = frozenset({
    FlowKind.REFINING,
    FlowKind.AWAITING_LOCATION_TYPE,
    FlowKind.AWAITING_LOCATION_TEXT,
    FlowKind.AWAITING_LOCATION_COORD,
})


def flow_domain(flow: Any) -> PlaceDomain | None:
    """Domínio carregado pela fase, quando houver."""
    return getattr(flow, "domain", None)


def flow_answers(flow: Any) -> dict[str, Any]:
    """Cópia das respostas carregadas pela fase (vazio se não houver)."""
    return dict(getattr(flow, "answers", None) or {})
