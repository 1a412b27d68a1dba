"""
Submit endpoint - accepts a job and pushes it onto the job queue
"""
import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
import structlog

from api.config import settings
from api.dependencies import get_metrics, get_queue_service
from api.models.job import Job, validate_job
from api.services.metrics import MetricsClient
from api.services.queue import QueueService
from api.utils.error_handlers import (
    BrokerError, JobDecodeError, SerializationError, TranscodeFlowError,
)

logger = structlog.get_logger()
router = APIRouter()


@router.post("/submit", status_code=202)
async def submit_job(
    request: Request,
    queue_service: QueueService = Depends(get_queue_service),
    metrics: MetricsClient = Depends(get_metrics),
) -> PlainTextResponse:
    """
    Submit a transcoding job.

    The body is a JSON job. Simple options are expanded into FFmpeg
    arguments while decoding, so the queued job is always in advanced mode
    when simple options were given.
    """
    try:
        job = await _decode_job(request)
        validate_job(job)
        payload = _serialize_job(job)

        try:
            await asyncio.wait_for(
                queue_service.enqueue_job(payload),
                timeout=settings.ENQUEUE_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logger.error("Timed out enqueueing job", queue=queue_service.job_queue, timeout=settings.ENQUEUE_TIMEOUT)
            raise BrokerError("Failed to enqueue job", queue=queue_service.job_queue)
        except BrokerError as e:
            raise BrokerError("Failed to enqueue job", queue=queue_service.job_queue) from e
    except TranscodeFlowError:
        metrics.increment_server_request("failed")
        raise

    # Derived jobs are in advanced mode too; the options tell them apart
    if job.simple_options is not None:
        metrics.record("Simple job submitted successfully", **job.log_fields())
    else:
        metrics.record("Advanced job submitted successfully", **job.log_fields())
    metrics.increment_queue_push("job_pushed")
    metrics.increment_server_request("success")
    return PlainTextResponse("Job accepted", status_code=202)


async def _decode_job(request: Request) -> Job:
    body = await request.body()
    try:
        return Job.model_validate_json(body)
    except ValidationError as e:
        logger.warning("User error: failed to decode job from request", error=str(e))
        raise JobDecodeError()


def _serialize_job(job: Job) -> str:
    try:
        return job.model_dump_json()
    except (ValueError, TypeError) as e:
        logger.error("System error: failed to serialize job", error=str(e))
        raise SerializationError("Failed to serialize job")
