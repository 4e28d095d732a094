"""Tabela de transições do fluxo de conversa.

- TRANSITIONS[(fase_atual, evento)] = próxima fase
- GLOBAL_TRANSITIONS valem a partir de qualquer fase
- Validação pura: sem side effects
"""

from __future__ import annotations

from typing import Any

from iae_bot.domain.session.events import FlowEvent
from iae_bot.domain.session.states import SEARCH_KINDS, FlowKind


class InvalidFlowTransition(Exception):
    """Transição não prevista na tabela."""

    def __init__(self, current: FlowKind, event: FlowEvent, reason: str) -> None:
        super().__init__(reason)
        self.current = current
        self.event = event


# Eventos aceitos em qualquer fase
GLOBAL_TRANSITIONS: dict[FlowEvent, FlowKind] = {
    FlowEvent.RESET: FlowKind.IDLE,
    FlowEvent.SEARCH_ABORTED: FlowKind.IDLE,
    FlowEvent.INTENT_PROMPTED: FlowKind.AWAITING_INTENT_CHOICE,
    # Uma nova intenção reconhecida sempre pode abrir um refinamento novo
    FlowEvent.INTERVIEW_STARTED: FlowKind.INTERVIEWING,
    FlowEvent.LOCATION_TYPE_REQUESTED: FlowKind.AWAITING_LOCATION_TYPE,
    FlowEvent.LOCATION_RESOLVED: FlowKind.REFINING,
}

TRANSITIONS: dict[tuple[FlowKind, FlowEvent], FlowKind] = {
    # === Onboarding ===
    (FlowKind.IDLE, FlowEvent.NAME_REQUESTED): FlowKind.AWAITING_NAME,
    (FlowKind.AWAITING_NAME, FlowEvent.NAME_CAPTURED): FlowKind.AWAITING_INTENT_CHOICE,
    # === Entrevista ===
    (FlowKind.INTERVIEWING, FlowEvent.INTERVIEW_ANSWERED): FlowKind.INTERVIEWING,
    # === Localização ===
    (
        FlowKind.AWAITING_LOCATION_TYPE,
        FlowEvent.COORDINATES_REQUESTED,
    ): FlowKind.AWAITING_LOCATION_COORD,
    (
        FlowKind.AWAITING_LOCATION_TYPE,
        FlowEvent.PLACE_TEXT_REQUESTED,
    ): FlowKind.AWAITING_LOCATION_TEXT,
    (
        FlowKind.AWAITING_LOCATION_TEXT,
        FlowEvent.PLACE_TEXT_REQUESTED,
    ): FlowKind.AWAITING_LOCATION_TEXT,
    # === Finalização ===
    (FlowKind.REFINING, FlowEvent.SEARCH_COMPLETED): FlowKind.IDLE,
}

# Expiração por inatividade só afeta fases com contexto de busca
for _kind in SEARCH_KINDS:
    TRANSITIONS[(_kind, FlowEvent.SESSION_EXPIRED)] = FlowKind.IDLE


def validate_transition(
    current: FlowKind, event: FlowEvent
) -> tuple[bool, FlowKind | None, str]:
    """Valida se uma transição é permitida.

    Retorna:
    - (True, próxima_fase, ""): transição válida
    - (False, None, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    key = (current, event)
    if key in TRANSITIONS:
        return True, TRANSITIONS[key], ""
    if event in GLOBAL_TRANSITIONS:
        return True, GLOBAL_TRANSITIONS[event], ""
    return False, None, f"No transition from {current} on event {event}"


def apply_transition(current: Any, event: FlowEvent, target: Any) -> Any:
    """Confere `target` contra a tabela e o devolve.

    Raises:
        InvalidFlowTransition: evento não permitido na fase atual ou
            `target` de fase diferente da prevista.
    """
    ok, next_kind, reason = validate_transition(current.kind, event)
    if not ok:
        raise InvalidFlowTransition(current.kind, event, reason)
    if target.kind != next_kind:
        raise InvalidFlowTransition(
            current.kind,
            event,
            f"Event {event} from {current.kind} leads to {next_kind}, got {target.kind}",
        )
    return target
