"""Fluxo de conversa: fases, eventos e transições.

Exporta:
- FlowKind e os modelos de fase (união FlowState)
- FlowEvent
- validate_transition / apply_transition
"""

from iae_bot.domain.session.events import FlowEvent
from iae_bot.domain.session.states import (
    LOCATION_ACCEPTING_KINDS,
    SEARCH_KINDS,
    AwaitingIntentChoice,
    AwaitingLocationCoord,
    AwaitingLocationText,
    AwaitingLocationType,
    AwaitingName,
    FlowKind,
    FlowState,
    Idle,
    Interviewing,
    Refining,
    flow_answers,
    flow_domain,
)
from iae_bot.domain.session.transitions import (
    InvalidFlowTransition,
    apply_transition,
    validate_transition,
)

__all__ = [
    "FlowEvent",
    "FlowKind",
    "FlowState",
    "Idle",
    "AwaitingName",
    "AwaitingIntentChoice",
    "Interviewing",
    "Refining",
    "AwaitingLocationType",
    "AwaitingLocationText",
    "AwaitingLocationCoord",
    "SEARCH_KINDS",
    "LOCATION_ACCEPTING_KINDS",
    "flow_answers",
    "flow_domain",
    "InvalidFlowTransition",
    "apply_transition",
    "validate_transition",
]
