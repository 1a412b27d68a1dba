"""
Default work function: transcode a job with FFmpeg
"""
from typing import Optional

import structlog

from api.config import settings
from api.models.job import Job
from worker.base import WorkFunction
from worker.utils.ffmpeg import FFmpegRunner

logger = structlog.get_logger()


def make_transcode_task(
    runner: Optional[FFmpegRunner] = None,
    hardware_device: Optional[str] = None,
) -> WorkFunction:
    """
    Build the work function used by the worker pool.

    ``hardware_device`` is the worker tier's device init string; it is applied
    to jobs that do not name a device themselves.
    """
    runner = runner or FFmpegRunner()
    device = hardware_device if hardware_device is not None else settings.WORKER_HARDWARE_DEVICE

    async def transcode(job: Job) -> str:
        if device and not job.hardware_device:
            job = job.model_copy(update={"hardware_device": device})
        logger.info("Transcoding job", **job.log_fields())
        return await runner.run(job)

    return transcode
