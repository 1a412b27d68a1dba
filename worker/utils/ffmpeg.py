"""
FFmpeg process runner for queued jobs.
"""
import asyncio
import shlex
from typing import List, Optional

import structlog

from api.config import settings
from api.models.job import Job
from worker.base import JobExecutionError, ProcessingError


class FFmpegError(ProcessingError):
    """Base exception for FFmpeg operations."""
    pass


class FFmpegLaunchError(FFmpegError):
    """FFmpeg could not be started."""
    pass


class FFmpegExecutionError(JobExecutionError, FFmpegError):
    """FFmpeg exited with a non-zero status."""
    pass


class FFmpegRunner:
    """Run FFmpeg with the argument vector built from a job."""

    def __init__(self, ffmpeg_path: Optional[str] = None, logger: Optional[structlog.BoundLogger] = None):
        self.ffmpeg_path = ffmpeg_path or settings.FFMPEG_PATH
        self.logger = logger or structlog.get_logger(self.__class__.__name__)

    def command_for(self, job: Job) -> List[str]:
        return [self.ffmpeg_path, *job.build_command()]

    async def run(self, job: Job) -> str:
        """
        Execute the job and return FFmpeg's combined stdout/stderr.

        Dry-run jobs are not executed; the command line is returned instead.
        """
        cmd = self.command_for(job)
        command_line = shlex.join(cmd)

        if job.is_dry_run():
            self.logger.info("Dry run, FFmpeg not started", command=command_line)
            return command_line

        self.logger.info("Starting FFmpeg", command=command_line)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            self.logger.error("Failed to start FFmpeg", error=str(e), command=command_line)
            raise FFmpegLaunchError(f"Failed to start FFmpeg: {e}")

        stdout, _ = await process.communicate()
        output = stdout.decode("utf-8", errors="ignore") if stdout else ""

        if process.returncode != 0:
            tail = "\n".join(output.strip().splitlines()[-10:])  # Last 10 lines of output
            self.logger.warning("FFmpeg failed", returncode=process.returncode, command=command_line)
            raise FFmpegExecutionError(
                f"FFmpeg failed with code {process.returncode}: {tail}",
                output=output,
                returncode=process.returncode,
            )

        self.logger.info("FFmpeg finished", command=command_line)
        return output
