"""Collector endpoints: analytics ingestion, health and metrics."""

import json

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import ValidationError

from autodemo.collector.dependencies import AnalyticsStoreDep, NotifierDep, SettingsDep
from autodemo.collector.models import AnalyticsRecord, CollectorPayload, CollectorResponse
from autodemo.models.events import now_ms
from autodemo.observability.logging import get_logger
from autodemo.observability.metrics import COLLECTOR_BATCHES

logger = get_logger(__name__)

router = APIRouter()


@router.post("/api/demo-analytics", response_model=CollectorResponse)
async def receive_demo_analytics(
    request: Request,
    settings: SettingsDep,
    store: AnalyticsStoreDep,
    notifier: NotifierDep,
) -> JSONResponse:
    """Store an analytics batch and announce completed tours.

    Storage and notification failures are logged; the client still gets a
    success response because it cannot do anything useful with the error.
    """
    try:
        raw = await request.json()
        payload = CollectorPayload.model_validate(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        COLLECTOR_BATCHES.labels(status="invalid").inc()
        logger.warning("analytics_payload_invalid", error=str(e))
        body = CollectorResponse(success=False, detail="Invalid analytics payload")
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    received_at = now_ms()
    record = AnalyticsRecord(
        session_id=payload.session_id or f"demo-{received_at}",
        events=payload.events,
        metadata=payload.metadata,
        received_at=received_at,
        user_agent=request.headers.get("user-agent"),
    )

    try:
        await store.put(record, ttl_seconds=settings.collector.retention_seconds)
    except Exception as e:
        logger.error("analytics_store_failed", session_id=record.session_id, error=str(e))

    if record.completed and notifier.enabled:
        await notifier.notify_completed(record)

    COLLECTOR_BATCHES.labels(status="accepted").inc()
    logger.info(
        "analytics_batch_received",
        session_id=record.session_id,
        events=len(record.events),
        completed=record.completed,
    )
    return JSONResponse(content=CollectorResponse(success=True).model_dump(exclude_none=True))


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus exposition of the process metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
