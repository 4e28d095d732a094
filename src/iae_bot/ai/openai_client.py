"""Cliente OpenAI para geração de texto curto.

Abstração mínima usada pelo assistente: um prompt entra, texto (ou None)
sai. Erros da API viram None com log; timeouts por chamada são aplicados
pelo chamador via `classify_or_default`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from openai import APIError, APITimeoutError, AsyncOpenAI

from iae_bot.observability.logging import get_logger

if TYPE_CHECKING:
    from iae_bot.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


class LanguageModel(ABC):
    """Contrato do modelo de linguagem (opcional na aplicação)."""

    @abstractmethod
    async def generate_text(self, prompt: str, max_tokens: int = 200) -> str | None:
        """Gera texto para o prompt; None em falha."""
        ...


class OpenAILanguageModel(LanguageModel):
    """Implementação sobre `AsyncOpenAI.chat.completions`."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        timeout_seconds: float = 10.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model = model
        self._temperature = temperature
        self._timeout = timeout_seconds

    async def generate_text(self, prompt: str, max_tokens: int = 200) -> str | None:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
                max_tokens=max_tokens,
                timeout=self._timeout,
            )
        except (APIError, APITimeoutError) as e:
            logger.warning(
                "llm_generate_error",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return None

        if not response.choices:
            return None
        content = (response.choices[0].message.content or "").strip()
        return content or None


def create_language_model(settings: Settings) -> LanguageModel | None:
    """Retorna o modelo configurado ou None (fluxo determinístico)."""
    if not settings.llm_available:
        logger.info("llm_disabled")
        return None
    logger.info("llm_enabled", extra={"model": settings.openai_model})
    return OpenAILanguageModel(
        api_key=settings.openai_api_key or "",
        model=settings.openai_model,
        temperature=settings.openai_temperature,
        timeout_seconds=settings.openai_timeout_seconds,
    )
