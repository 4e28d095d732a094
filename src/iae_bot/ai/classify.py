"""Primitiva única de chamada ao LLM com orçamento de tempo."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from iae_bot.observability.logging import get_logger, log_fallback

logger: logging.Logger = get_logger(__name__)

T = TypeVar("T")


async def classify_or_default(
    call: Callable[[], Awaitable[T | None]] | None,
    timeout_seconds: float,
    default: T,
    component: str,
) -> T:
    """Executa `call` com timeout e devolve `default` em qualquer falha.

    Timeout, exceção ou resultado None resultam em `default` e em um log de
    fallback. Um resultado que chega após o timeout é descartado.
    """
    if call is None:
        log_fallback(logger, component, reason="llm_unavailable")
        return default

    start = time.perf_counter()
    try:
        result = await asyncio.wait_for(call(), timeout=timeout_seconds)
    except TimeoutError:
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        log_fallback(logger, component, reason="timeout", elapsed_ms=elapsed)
        return default
    except Exception as e:
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        logger.warning(
            "llm_call_failed",
            extra={"component": component, "error_type": type(e).__name__},
        )
        log_fallback(logger, component, reason="error", elapsed_ms=elapsed)
        return default

    if result is None:
        log_fallback(logger, component, reason="empty_result")
        return default
    return result
