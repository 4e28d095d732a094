"""Handlers das regras de conversa.

Cada handler recebe o turno e os colaboradores e retorna True quando
assume o evento (nenhuma regra seguinte é avaliada).
"""

from __future__ import annotations

import logging
from typing import Any

from iae_bot.application.conversation.context import ConversationServices, Turn
from iae_bot.application.preferences import (
    build_refinement_answers,
    learn_from_message,
    saved_preferences,
)
from iae_bot.application.presenter import resolve_selection
from iae_bot.domain import nlu, replies
from iae_bot.domain.enums import PlaceDomain, Role
from iae_bot.domain.models import Place
from iae_bot.domain.session import (
    LOCATION_ACCEPTING_KINDS,
    AwaitingIntentChoice,
    AwaitingLocationCoord,
    AwaitingLocationText,
    AwaitingLocationType,
    AwaitingName,
    FlowEvent,
    Idle,
    Interviewing,
    Refining,
    flow_answers,
    flow_domain,
)
from iae_bot.domain.sponsors import detect_sponsor_mention
from iae_bot.observability.logging import get_logger, mask_user_id

logger: logging.Logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Guardas e registro de entrada
# -----------------------------------------------------------------------------
async def ignore_duplicate_message(turn: Turn, bot: ConversationServices) -> bool:
    logger.info(
        "duplicate_message_ignored",
        extra={"user": mask_user_id(turn.user_id), "message_id": turn.event.message_id},
    )
    return True


async def ignore_duplicate_location(turn: Turn, bot: ConversationServices) -> bool:
    logger.info("duplicate_location_ignored", extra={"user": mask_user_id(turn.user_id)})
    return True


async def record_inbound(turn: Turn, bot: ConversationServices) -> bool:
    """Atualiza a sessão com o evento; só assume o turno se o áudio falhar."""
    session, event = turn.session, turn.event
    if event.instance_id:
        session.instance_id = event.instance_id
    if event.message_id:
        session.last_msg_id = event.message_id
    session.last_active = turn.now

    await bot.messenger.mark_read(session, event.message_id)
    bot.repository.upsert_user(turn.user_id)
    try:
        bot.metrics.record_user(turn.user_id)
    except Exception as e:
        logger.warning("metrics_user_failed", extra={"error_type": type(e).__name__})

    if not turn.has_text and event.has_audio:
        transcript = await bot.speech.transcribe(event.audio_base64, event.audio_mimetype)
        if not transcript:
            await bot.messenger.send(session, replies.AUDIO_NOT_UNDERSTOOD)
            return True
        turn.text = transcript

    if turn.has_text:
        text = turn.text or ""
        session.push_history(Role.USER, text)
        bot.messenger.log_user_message(turn.user_id, text)
        learn_from_message(bot.repository, turn.user_id, text)
        await bot.mood.update(session, text, turn.now)
    return False


# -----------------------------------------------------------------------------
# Onboarding e gatilhos fixos
# -----------------------------------------------------------------------------
async def capture_name(turn: Turn, bot: ConversationServices) -> bool:
    raw = (turn.text or "").strip()
    name = nlu.clean_name(raw) or raw
    persona = turn.persona.model_copy(update={"nome": name})
    bot.repository.save_persona(turn.user_id, persona)
    bot.repository.upsert_user(turn.user_id, name)
    turn.persona = persona
    turn.known_name = name

    turn.session.move(FlowEvent.NAME_CAPTURED, AwaitingIntentChoice())
    await bot.messenger.send(turn.session, replies.name_captured(name))
    return True


async def answer_fixed_triggers(turn: Turn, bot: ConversationServices) -> bool:
    """Agenda de carnaval, data do lançamento e menção direta a parceiro."""
    text = turn.text or ""
    if nlu.is_carnival_question(text):
        await bot.messenger.send(turn.session, replies.CARNIVAL_REPLY)
        return True
    if await bot.assistant.is_launch_question(text):
        await bot.messenger.send(turn.session, replies.LAUNCH_REPLY)
        return True
    sponsor = detect_sponsor_mention(text, bot.sponsors.active())
    if sponsor is not None:
        logger.info("sponsor_mentioned", extra={"place_id": sponsor.place_id})
        await bot.messenger.send(turn.session, await bot.presenter.sponsor_reply(sponsor))
        return True
    return False


async def greet_resumed(turn: Turn, bot: ConversationServices) -> bool:
    turn.session.move(FlowEvent.INTENT_PROMPTED, AwaitingIntentChoice())
    await bot.messenger.send(turn.session, replies.resume_greeting(turn.known_name))
    return True


async def ask_name(turn: Turn, bot: ConversationServices) -> bool:
    turn.session.move(FlowEvent.NAME_REQUESTED, AwaitingName())
    await bot.messenger.send(turn.session, replies.FIRST_CONTACT)
    return True


async def reply_greeting(turn: Turn, bot: ConversationServices) -> bool:
    if nlu.is_small_talk(turn.text):
        await bot.messenger.send_adaptive(turn.session, replies.HINT_SMALL_TALK, turn.name)
        return True
    turn.session.move(FlowEvent.INTENT_PROMPTED, AwaitingIntentChoice())
    await bot.messenger.send(turn.session, replies.greeting(turn.known_name))
    return True


# -----------------------------------------------------------------------------
# Intenção e início de busca
# -----------------------------------------------------------------------------
async def start_refinement(
    turn: Turn,
    bot: ConversationServices,
    domain: PlaceDomain,
    initial_prefs: dict[str, Any] | None = None,
) -> None:
    """Monta as respostas iniciais e pergunta onde buscar (ou entrevista)."""
    answers = build_refinement_answers(
        turn.text or "",
        domain,
        turn.persona,
        initial_prefs,
        saved_preferences(bot.repository, turn.user_id),
    )
    if bot.interview_enabled:
        await bot.interview.start(turn.session, domain, answers, turn.known_name)
        return
    turn.session.move(
        FlowEvent.LOCATION_TYPE_REQUESTED,
        AwaitingLocationType(domain=domain, answers=answers),
    )
    await bot.messenger.send(turn.session, replies.ask_location_type(turn.name))


async def open_search(
    turn: Turn,
    bot: ConversationServices,
    domain: PlaceDomain,
    initial_prefs: dict[str, Any] | None = None,
) -> None:
    """Com localização pendente busca direto; senão inicia o refinamento."""
    session = turn.session
    pending = session.pending_location
    if pending is not None and pending.lat is not None and pending.lng is not None:
        session.pending_location = None
        session.move(
            FlowEvent.LOCATION_RESOLVED,
            Refining(
                domain=domain,
                answers=dict(initial_prefs or {}),
                lat=pending.lat,
                lng=pending.lng,
            ),
        )
        await bot.search.finalize_search(session, turn.name)
        return
    await start_refinement(turn, bot, domain, initial_prefs)


async def choose_intent(turn: Turn, bot: ConversationServices) -> bool:
    text = turn.text or ""
    domain = nlu.detect_chosen_intent(text)
    if domain is None:
        parsed = await bot.assistant.parse_initial_intent(text, turn.persona.model_dump())
        domain = parsed.domain
    if domain is None:
        await bot.messenger.send_adaptive(turn.session, replies.HINT_CONFIRM_INTENT, turn.name)
        return True
    logger.info("intent_chosen", extra={"user": mask_user_id(turn.user_id), "domain": domain.value})
    await open_search(turn, bot, domain)
    return True


# -----------------------------------------------------------------------------
# Pós-resultados: seleção, perguntas e próxima página
# -----------------------------------------------------------------------------
async def follow_up_results(turn: Turn, bot: ConversationServices) -> bool:
    session = turn.session
    text = turn.text or ""
    cta = session.cta

    if cta is not None and nlu.wants_next_page(text):
        domain = session.last_search.type if session.last_search else PlaceDomain.BAR
        await bot.presenter.present_next_page(session, name=turn.name, domain=domain)
        return True

    topic = nlu.detect_info_intent(text)
    selection = nlu.parse_selection_index(text)

    if cta is not None and selection is not None and topic is None:
        place = resolve_selection(cta, selection)
        if place is not None:
            session.selected_place = place
            await bot.messenger.send(session, replies.selection_acknowledged(turn.name, place.name))
            return True

    if cta is not None and topic is not None:
        place = resolve_selection(cta, selection) or session.selected_place
        if place is None:
            await bot.messenger.send(session, replies.ASK_SELECTION_FIRST)
            return True
        await bot.messenger.send(session, await bot.presenter.info_reply(place, topic))
        return True

    if cta is None and topic is not None:
        found = await bot.places.find_place(text, session.last_location)
        if found is not None:
            place = Place(
                place_id=found.place_id,
                name=found.name,
                vicinity=found.formatted_address,
            )
            await bot.messenger.send(session, await bot.presenter.info_reply(place, topic))
            return True
    return False


async def refine_football(turn: Turn, bot: ConversationServices) -> bool:
    return await bot.search.refine_last_search(turn.session, turn.name)


# -----------------------------------------------------------------------------
# Entrevista e localização por texto
# -----------------------------------------------------------------------------
async def search_place_text(turn: Turn, bot: ConversationServices) -> None:
    """Geocodifica o texto e finaliza a busca no ponto encontrado."""
    session = turn.session
    text = (turn.text or "").strip()
    flow = session.flow
    domain = flow_domain(flow) or PlaceDomain.BAR
    answers = flow_answers(flow)

    await bot.messenger.send(session, replies.searching_place_text(turn.name, text))
    result = await bot.places.text_search(text)
    if result is None:
        await bot.messenger.send(session, replies.place_text_not_found(turn.name))
        return

    session.move(
        FlowEvent.LOCATION_RESOLVED,
        Refining(
            domain=domain,
            answers={**answers, "keyword": text},
            lat=result.lat,
            lng=result.lng,
            from_text=True,
        ),
    )
    await bot.search.finalize_search(session, turn.name)


async def continue_location_flow(turn: Turn, bot: ConversationServices) -> bool:
    """Resposta de entrevista, de "perto x outro lugar" ou texto de lugar."""
    session = turn.session
    flow = session.flow
    text = turn.text or ""

    if isinstance(flow, Interviewing):
        name = await bot.interview.answer(session, text, turn.name)
        turn.known_name = turn.known_name or name
        return True

    if isinstance(flow, AwaitingLocationType):
        choice = nlu.classify_location_choice(text)
        if choice == "near":
            session.move(
                FlowEvent.COORDINATES_REQUESTED,
                AwaitingLocationCoord(domain=flow.domain, answers=flow.answers),
            )
            await bot.messenger.send(session, replies.ask_coordinates(turn.name))
            return True
        session.move(
            FlowEvent.PLACE_TEXT_REQUESTED,
            AwaitingLocationText(domain=flow.domain, answers=flow.answers),
        )
        if choice == "elsewhere" and not nlu.strip_location_words(text):
            await bot.messenger.send(session, replies.ask_location_text(turn.name))
            return True
        await search_place_text(turn, bot)
        return True

    if isinstance(flow, AwaitingLocationText):
        await search_place_text(turn, bot)
        return True
    return False


# -----------------------------------------------------------------------------
# Localização recebida
# -----------------------------------------------------------------------------
async def handle_location(turn: Turn, bot: ConversationServices) -> bool:
    session = turn.session
    location = turn.event.location
    if location is None or location.lat is None or location.lng is None:
        return False
    lat, lng = location.lat, location.lng
    session.last_location = location
    flow = session.flow

    if flow.kind in LOCATION_ACCEPTING_KINDS:
        domain = flow_domain(flow) or PlaceDomain.BAR
        session.move(
            FlowEvent.LOCATION_RESOLVED,
            Refining(domain=domain, answers=flow_answers(flow), lat=lat, lng=lng),
        )
        await bot.presenter.present_nearby_sponsors(session, lat, lng, name=turn.name)
        await bot.search.finalize_search(session, turn.name)
        return True

    session.pending_location = location
    await bot.messenger.send_adaptive(session, replies.HINT_LOCATION_RECEIVED, turn.name)
    session.move(FlowEvent.INTENT_PROMPTED, AwaitingIntentChoice())
    await bot.presenter.present_nearby_sponsors(session, lat, lng, name=turn.name)
    return True


# -----------------------------------------------------------------------------
# Fallback
# -----------------------------------------------------------------------------
async def fallback_reply(turn: Turn, bot: ConversationServices) -> bool:
    """Reinício, intenção livre, número sem resultados ou resposta genérica."""
    session = turn.session
    text = turn.text or ""

    if await bot.assistant.is_reset(text):
        session.clear_results()
        session.pending_location = None
        session.move(FlowEvent.RESET, Idle())
        session.move(FlowEvent.INTENT_PROMPTED, AwaitingIntentChoice())
        await bot.messenger.send(session, replies.reset_done(turn.name))
        return True

    parsed = await bot.assistant.parse_initial_intent(text, turn.persona.model_dump())
    if parsed.domain is not None:
        await open_search(turn, bot, parsed.domain, parsed.preferences)
        return True

    if session.cta is None and (
        nlu.looks_numeric(text) or nlu.parse_selection_index(text) is not None
    ):
        await bot.messenger.send(session, replies.numeric_without_results(turn.name))
        return True

    reply = await bot.assistant.generic_reply(text)
    tone = nlu.tone_prefix(session.mood.value if session.mood else None)
    await bot.messenger.send(session, tone + (reply or replies.adaptive_default(turn.name)))
    return True
