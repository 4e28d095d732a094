"""Normalização do payload `messages.upsert` da Evolution API."""

from __future__ import annotations

import logging
from typing import Any

from iae_bot.adapters.evolution.models import InboundEvent
from iae_bot.domain.models import LatLng
from iae_bot.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

SUPPORTED_EVENT = "messages.upsert"


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _coordinate(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _extract_text(message: dict[str, Any]) -> str | None:
    text = message.get("conversation") or _as_dict(message.get("extendedTextMessage")).get("text")
    if isinstance(text, str) and text.strip():
        return text
    return None


def _extract_location(message: dict[str, Any]) -> LatLng | None:
    loc = message.get("locationMessage")
    if not isinstance(loc, dict):
        return None
    lat = _coordinate(loc.get("degreesLatitude"))
    lng = _coordinate(loc.get("degreesLongitude"))
    if lat is None or lng is None:
        return None
    return LatLng(lat=lat, lng=lng)


def normalize_webhook(payload: dict[str, Any]) -> InboundEvent | None:
    """Converte o webhook em InboundEvent.

    Retorna None para eventos que não são `messages.upsert` ou sem
    remetente identificável.
    """
    if payload.get("event") != SUPPORTED_EVENT:
        return None

    data = _as_dict(payload.get("data"))
    key = _as_dict(data.get("key"))
    user_id = key.get("remoteJid") or data.get("from")
    if not user_id:
        logger.debug("webhook_without_sender")
        return None

    message = _as_dict(data.get("message"))
    audio = message.get("audioMessage")
    audio_dict = _as_dict(audio)

    return InboundEvent(
        user_id=str(user_id),
        message_id=key.get("id"),
        instance_id=payload.get("instanceId"),
        from_me=bool(key.get("fromMe")),
        push_name=data.get("pushName"),
        text=_extract_text(message),
        location=_extract_location(message),
        audio_base64=message.get("base64") or audio_dict.get("base64"),
        audio_mimetype=audio_dict.get("mimetype"),
        has_audio=audio is not None,
    )
