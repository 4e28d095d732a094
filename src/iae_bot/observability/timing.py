"""Latência dos passos caros de um turno (busca e ranqueamento pelo LLM)."""

from __future__ import annotations

import contextlib
import time
from collections.abc import Generator
from typing import Any

from iae_bot.observability.logging import get_logger, mask_user_id

logger = get_logger(__name__)


@contextlib.contextmanager
def timed(
    component: str,
    *,
    user: str | None = None,
    budget_ms: float | None = None,
) -> Generator[None, None, None]:
    """Loga `component_latency` ao fim do bloco, inclusive em exceção.

    `user` entra mascarado. Com `budget_ms`, um bloco que estoura o
    orçamento gera também `component_over_budget` em WARNING.
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        extra: dict[str, Any] = {"component": component, "elapsed_ms": elapsed_ms}
        if user is not None:
            extra["user"] = mask_user_id(user)
        logger.info("component_latency", extra=extra)
        if budget_ms is not None and elapsed_ms > budget_ms:
            logger.warning("component_over_budget", extra={**extra, "budget_ms": budget_ms})
