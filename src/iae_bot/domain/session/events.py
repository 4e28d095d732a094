"""Eventos que disparam transições de fase no fluxo de conversa."""

from __future__ import annotations

from enum import StrEnum


class FlowEvent(StrEnum):
    """Eventos canônicos do fluxo."""

    # === Onboarding ===
    NAME_REQUESTED = "NAME_REQUESTED"
    """Primeiro contato: pedimos o nome."""

    NAME_CAPTURED = "NAME_CAPTURED"
    """Nome salvo; perguntamos bar ou restaurante."""

    INTENT_PROMPTED = "INTENT_PROMPTED"
    """Perguntamos bar ou restaurante (saudação, retomada, localização solta)."""

    # === Refinamento ===
    INTERVIEW_STARTED = "INTERVIEW_STARTED"
    INTERVIEW_ANSWERED = "INTERVIEW_ANSWERED"

    LOCATION_TYPE_REQUESTED = "LOCATION_TYPE_REQUESTED"
    """Perguntamos "perto de você" ou "outro lugar"."""

    COORDINATES_REQUESTED = "COORDINATES_REQUESTED"
    PLACE_TEXT_REQUESTED = "PLACE_TEXT_REQUESTED"

    LOCATION_RESOLVED = "LOCATION_RESOLVED"
    """Coordenada conhecida (pin, geocode ou pendente): busca pronta."""

    # === Desfecho ===
    SEARCH_COMPLETED = "SEARCH_COMPLETED"
    SEARCH_ABORTED = "SEARCH_ABORTED"

    # === Globais ===
    RESET = "RESET"
    SESSION_EXPIRED = "SESSION_EXPIRED"
