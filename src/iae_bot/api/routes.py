"""Rotas HTTP: healthcheck e webhook da Evolution API."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from iae_bot.adapters.evolution.models import InboundEvent
from iae_bot.adapters.evolution.normalizer import normalize_webhook
from iae_bot.api.dependencies import get_engine, get_metrics, get_settings
from iae_bot.application.conversation.engine import ConversationEngine
from iae_bot.config.settings import Settings
from iae_bot.infra.metrics_store import MetricsStore
from iae_bot.observability.logging import get_logger, mask_user_id
from iae_bot.observability.middleware import correlation_scope, get_correlation_id

logger = get_logger(__name__)

router = APIRouter()


async def process_event(engine: ConversationEngine, event: InboundEvent, correlation_id: str) -> None:
    """Processa o evento fora do ciclo da request, mantendo o correlation_id."""
    with correlation_scope(correlation_id):
        await engine.handle(event)


@router.get("/health")
def health(
    settings: Settings = Depends(get_settings),
    metrics: MetricsStore = Depends(get_metrics),
) -> dict[str, Any]:
    """Healthcheck com o resumo de métricas."""
    return {
        "status": "ok",
        "service": settings.service_name,
        "version": settings.version,
        "metrics": metrics.summary(),
    }


@router.post("/webhook")
async def evolution_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    engine: ConversationEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Recebe o evento e responde na hora; o processamento roda em background."""
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body or b"{}")
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_json") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_payload")

    correlation_id = get_correlation_id()
    event = normalize_webhook(payload)
    if event is None:
        return {"ok": True, "status": "ignored", "correlation_id": correlation_id}
    if event.from_me:
        return {"ok": True, "status": "from_me", "correlation_id": correlation_id}

    logger.info(
        "inbound_event_accepted",
        extra={
            "user": mask_user_id(event.user_id),
            "has_text": bool(event.text),
            "has_location": event.has_location,
            "has_audio": event.has_audio,
        },
    )
    background_tasks.add_task(process_event, engine, event, correlation_id)
    return {"ok": True, "status": "accepted", "correlation_id": correlation_id}
