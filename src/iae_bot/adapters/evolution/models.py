"""Modelos do webhook da Evolution API (entrada normalizada)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from iae_bot.domain.models import LatLng


class InboundEvent(BaseModel):
    """Mensagem recebida já normalizada.

    Exatamente um entre texto, localização e áudio costuma vir preenchido;
    eventos sem nenhum deles são tratados como vazios pelo motor.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    message_id: str | None = None
    instance_id: str | None = None
    from_me: bool = False
    push_name: str | None = None
    text: str | None = None
    location: LatLng | None = None
    audio_base64: str | None = None
    audio_mimetype: str | None = None
    has_audio: bool = False

    @property
    def has_location(self) -> bool:
        return (
            self.location is not None
            and self.location.lat is not None
            and self.location.lng is not None
        )
