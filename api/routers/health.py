"""
Health check endpoints
"""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from api.config import settings
from api.dependencies import get_queue_service
from api.services.queue import QueueService

logger = structlog.get_logger()
router = APIRouter()


@router.get("/health")
async def health_check(
    queue_service: QueueService = Depends(get_queue_service),
) -> JSONResponse:
    """
    Health check including broker connectivity.
    """
    queue_health = await queue_service.health_check()
    status = "healthy" if queue_health.get("status") == "healthy" else "unhealthy"
    if status != "healthy":
        logger.warning("Health check failed", queue=queue_health)

    body: Dict[str, Any] = {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.VERSION,
        "components": {"queue": queue_health},
    }
    return JSONResponse(body, status_code=200 if status == "healthy" else 503)
