"""Regras de despacho em ordem de prioridade.

Cada regra é um par (predicado, handler). O motor avalia na ordem de
`RULES` e para na primeira cujo handler assume o evento. O registro de
entrada (`record_inbound`) roda logo após as guardas de idempotência e não
assume o evento, exceto quando o áudio não pôde ser transcrito.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from iae_bot.application.conversation import handlers
from iae_bot.application.conversation.context import ConversationServices, Turn
from iae_bot.application.guards import is_duplicate_location, is_duplicate_message
from iae_bot.domain import nlu
from iae_bot.domain.session import FlowKind

Predicate = Callable[[Turn, ConversationServices], bool]
Handler = Callable[[Turn, ConversationServices], Awaitable[bool]]


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    predicate: Predicate
    handler: Handler


# -----------------------------------------------------------------------------
# Predicados
# -----------------------------------------------------------------------------
def _duplicate_message(turn: Turn, bot: ConversationServices) -> bool:
    return is_duplicate_message(turn.session, turn.event.message_id)


def _duplicate_location(turn: Turn, bot: ConversationServices) -> bool:
    location = turn.event.location
    if not turn.event.has_location or location is None:
        return False
    return is_duplicate_location(turn.session, location, bot.duplicate_location_km)


def _always(turn: Turn, bot: ConversationServices) -> bool:
    return True


def _awaiting_name(turn: Turn, bot: ConversationServices) -> bool:
    return turn.has_text and turn.session.flow.kind == FlowKind.AWAITING_NAME


def _has_text(turn: Turn, bot: ConversationServices) -> bool:
    return turn.has_text


def _resumed(turn: Turn, bot: ConversationServices) -> bool:
    return turn.has_text and turn.resumed


def _first_contact(turn: Turn, bot: ConversationServices) -> bool:
    return (
        turn.has_text
        and not turn.has_profile
        and not turn.known_name
        and turn.session.flow.kind == FlowKind.IDLE
        and not turn.had_history
    )


def _greeting(turn: Turn, bot: ConversationServices) -> bool:
    return turn.has_text and nlu.is_greeting(turn.text)


def _awaiting_intent(turn: Turn, bot: ConversationServices) -> bool:
    return turn.has_text and turn.session.flow.kind == FlowKind.AWAITING_INTENT_CHOICE


def _football_refinement(turn: Turn, bot: ConversationServices) -> bool:
    session = turn.session
    return (
        turn.has_text
        and session.cta is not None
        and session.last_search is not None
        and nlu.is_football_request(turn.text)
    )


def _location_flow(turn: Turn, bot: ConversationServices) -> bool:
    return turn.has_text and turn.session.flow.kind in (
        FlowKind.INTERVIEWING,
        FlowKind.AWAITING_LOCATION_TYPE,
        FlowKind.AWAITING_LOCATION_TEXT,
    )


def _location_event(turn: Turn, bot: ConversationServices) -> bool:
    return turn.event.has_location


RULES: tuple[Rule, ...] = (
    Rule("duplicate_message", _duplicate_message, handlers.ignore_duplicate_message),
    Rule("duplicate_location", _duplicate_location, handlers.ignore_duplicate_location),
    Rule("record_inbound", _always, handlers.record_inbound),
    Rule("awaiting_name", _awaiting_name, handlers.capture_name),
    Rule("fixed_triggers", _has_text, handlers.answer_fixed_triggers),
    Rule("resume_greeting", _resumed, handlers.greet_resumed),
    Rule("first_contact", _first_contact, handlers.ask_name),
    Rule("greeting", _greeting, handlers.reply_greeting),
    Rule("intent_choice", _awaiting_intent, handlers.choose_intent),
    Rule("results_follow_up", _has_text, handlers.follow_up_results),
    Rule("football_refinement", _football_refinement, handlers.refine_football),
    Rule("location_flow", _location_flow, handlers.continue_location_flow),
    Rule("location_event", _location_event, handlers.handle_location),
    Rule("fallback", _has_text, handlers.fallback_reply),
)


async def dispatch(
    turn: Turn, bot: ConversationServices, rules: tuple[Rule, ...] = RULES
) -> str | None:
    """Avalia as regras em ordem; retorna o nome da que assumiu o evento."""
    for rule in rules:
        if not rule.predicate(turn, bot):
            continue
        if await rule.handler(turn, bot):
            return rule.name
    return None
