"""Testes da normalização do webhook messages.upsert."""

from __future__ import annotations

from typing import Any

from iae_bot.adapters.evolution.normalizer import normalize_webhook

USER = "5561999990000@s.whatsapp.net"


def _payload(message: dict[str, Any], **key: Any) -> dict[str, Any]:
    return {
        "event": "messages.upsert",
        "instanceId": "inst-1",
        "data": {
            "key": {"remoteJid": USER, "id": "MSG1", "fromMe": False, **key},
            "pushName": "Maria",
            "message": message,
        },
    }


class TestNormalizeWebhook:
    """Conversão do payload em InboundEvent."""

    def test_plain_text(self) -> None:
        """conversation vira texto; metadados preservados."""
        event = normalize_webhook(_payload({"conversation": "oi"}))
        assert event is not None
        assert event.user_id == USER
        assert event.message_id == "MSG1"
        assert event.instance_id == "inst-1"
        assert event.push_name == "Maria"
        assert event.text == "oi"
        assert event.has_location is False

    def test_extended_text(self) -> None:
        """extendedTextMessage.text também é texto."""
        event = normalize_webhook(_payload({"extendedTextMessage": {"text": "quero um bar"}}))
        assert event is not None
        assert event.text == "quero um bar"

    def test_location(self) -> None:
        """locationMessage vira coordenada."""
        event = normalize_webhook(
            _payload({"locationMessage": {"degreesLatitude": -15.79, "degreesLongitude": "-47.88"}})
        )
        assert event is not None
        assert event.has_location is True
        assert event.location is not None
        assert event.location.lng == -47.88
        assert event.text is None

    def test_location_with_invalid_coordinates(self) -> None:
        """Coordenada inválida é descartada."""
        event = normalize_webhook(
            _payload({"locationMessage": {"degreesLatitude": "abc", "degreesLongitude": 1}})
        )
        assert event is not None
        assert event.location is None

    def test_audio(self) -> None:
        """Áudio com base64 no nível da mensagem."""
        event = normalize_webhook(
            _payload({"audioMessage": {"mimetype": "audio/ogg; codecs=opus"}, "base64": "AAAA"})
        )
        assert event is not None
        assert event.has_audio is True
        assert event.audio_base64 == "AAAA"
        assert event.audio_mimetype == "audio/ogg; codecs=opus"

    def test_from_me_flag(self) -> None:
        event = normalize_webhook(_payload({"conversation": "eco"}, fromMe=True))
        assert event is not None
        assert event.from_me is True

    def test_sender_fallback_to_data_from(self) -> None:
        """Sem remoteJid usa data.from."""
        payload = _payload({"conversation": "oi"})
        del payload["data"]["key"]["remoteJid"]
        payload["data"]["from"] = USER
        event = normalize_webhook(payload)
        assert event is not None
        assert event.user_id == USER

    def test_other_events_are_ignored(self) -> None:
        """Eventos diferentes de messages.upsert → None."""
        assert normalize_webhook({"event": "connection.update", "data": {}}) is None

    def test_missing_sender(self) -> None:
        """Sem remetente → None."""
        assert normalize_webhook({"event": "messages.upsert", "data": {"message": {}}}) is None
