"""
Alert ingestion webhook (FastAPI).

Charting platforms post alerts either as application/json or as text/plain
whose body happens to be JSON, so the raw body is decoded by hand instead of
relying on FastAPI's JSON body parsing.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict

from fastapi import FastAPI, HTTPException, Request, status
from pydantic import ValidationError

import storage
from apps.schemas import AlertAccepted, AlertIn, HealthOut
from signals.classifier import direction_family
from signals.engine import ReconciliationEngine

logger = logging.getLogger(__name__)


class MalformedAlert(ValueError):
    """Alert body that cannot become a pending assertion."""


def parse_alert_body(raw: bytes) -> Dict[str, Any]:
    try:
        data: Any = json.loads(raw.decode("utf-8"))
        # JSON-as-text: a JSON string literal that itself holds the object
        if isinstance(data, str):
            data = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedAlert(f"Body is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedAlert(f"Expected a JSON object, got {type(data).__name__}")
    return data


def create_app(
    engine: ReconciliationEngine,
    alert_path: str = "/webhook/alert",
    has_recipient: Callable[[], bool] = storage.has_recipient,
) -> FastAPI:
    app = FastAPI(
        title="Sentiment Signal Bot",
        description="Correlates external trade alerts with crowd sentiment",
        version="0.1.0",
    )

    @app.post(alert_path, response_model=AlertAccepted, status_code=status.HTTP_202_ACCEPTED)
    async def receive_alert(request: Request):
        raw = await request.body()
        try:
            data = parse_alert_body(raw)
            alert = AlertIn.model_validate(data)
        except (MalformedAlert, ValidationError) as e:
            logger.warning("Rejected alert: %s", e)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        direction = direction_family(alert.signal)
        alert_id = engine.ingest_alert(alert.symbol, direction, payload=data)
        return AlertAccepted(id=alert_id, symbol=alert.symbol, direction=direction.value)

    @app.get("/health", response_model=HealthOut)
    async def health_check():
        return HealthOut(
            status="ok",
            primed=engine.primed,
            pending=len(engine.pending),
            recipient=has_recipient(),
        )

    return app
