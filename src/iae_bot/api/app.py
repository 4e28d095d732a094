"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

from fastapi import FastAPI

from iae_bot.api.routes import router
from iae_bot.application.factory import BotRuntime, build_runtime
from iae_bot.config.settings import Settings, get_settings
from iae_bot.observability.logging import configure_logging, get_logger
from iae_bot.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


def _lifespan(runtime: BotRuntime):
    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        runtime.metrics.load()
        sweep_task = asyncio.create_task(runtime.sweeper.run())
        logger.info("app_started")
        try:
            yield
        finally:
            sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep_task
            runtime.metrics.flush()
            await runtime.aclose()
            logger.info("app_stopped")

    return lifespan


def create_app(settings: Settings | None = None, runtime: BotRuntime | None = None) -> FastAPI:
    """Cria a aplicação FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_session_store_config())
    validation_errors.extend(settings.validate_persistence_config())
    validation_errors.extend(settings.validate_openai_config())
    validation_errors.extend(settings.validate_gateway_config())
    validation_errors.extend(settings.validate_search_config())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    runtime = runtime or build_runtime(settings)

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=_lifespan(runtime))
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)

    app.state.settings = settings
    app.state.runtime = runtime
    return app


app = create_app()
