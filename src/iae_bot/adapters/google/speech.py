"""Transcrição de áudio via Google Speech-to-Text (REST)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from iae_bot.config.settings import GOOGLE_SPEECH_URL
from iae_bot.infra.http import HttpClient, HttpError, create_http_client
from iae_bot.observability.logging import get_logger, log_fallback

if TYPE_CHECKING:
    from iae_bot.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

OGG_SAMPLE_RATE_HZ = 48000


def build_recognize_payload(audio_base64: str, mime_type: str | None, language: str) -> dict[str, Any]:
    """Monta o corpo do `speech:recognize` (OGG usa OGG_OPUS/48 kHz)."""
    is_ogg = "ogg" in (mime_type or "").lower()
    config: dict[str, Any] = {
        "encoding": "OGG_OPUS" if is_ogg else "ENCODING_UNSPECIFIED",
        "languageCode": language,
        "enableAutomaticPunctuation": True,
    }
    if is_ogg:
        config["sampleRateHertz"] = OGG_SAMPLE_RATE_HZ
    return {"config": config, "audio": {"content": audio_base64}}


class SpeechTranscriber:
    """Converte áudio base64 em texto; None quando não houver transcrição."""

    def __init__(self, http: HttpClient, api_key: str | None, language: str = "pt-BR") -> None:
        self._http = http
        self._api_key = api_key
        self._language = language

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def transcribe(self, audio_base64: str | None, mime_type: str | None) -> str | None:
        if not self._api_key:
            log_fallback(logger, "speech_to_text", reason="not_configured")
            return None
        if not audio_base64:
            log_fallback(logger, "speech_to_text", reason="no_audio_payload")
            return None

        payload = build_recognize_payload(audio_base64, mime_type, self._language)
        try:
            response = await self._http.post(
                GOOGLE_SPEECH_URL, json=payload, params={"key": self._api_key}
            )
            data = response.json()
        except (HttpError, ValueError) as e:
            logger.warning("speech_to_text_failed", extra={"error_type": type(e).__name__})
            return None

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            log_fallback(logger, "speech_to_text", reason="empty_results")
            return None
        alternatives = results[0].get("alternatives") or [{}]
        transcript = (alternatives[0].get("transcript") or "").strip()
        return transcript or None

    async def close(self) -> None:
        await self._http.close()


def create_speech_transcriber(settings: Settings) -> SpeechTranscriber:
    http = create_http_client(settings, timeout_seconds=settings.google_speech_timeout_seconds)
    return SpeechTranscriber(
        http,
        api_key=settings.google_speech_api_key,
        language=settings.google_speech_language,
    )
