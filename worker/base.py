"""
Shared worker types and exceptions
"""
from typing import Awaitable, Callable, Optional, Union

from api.models.job import Job


class ProcessingError(Exception):
    """Custom exception for processing errors."""
    pass


class JobExecutionError(ProcessingError):
    """
    The transcoding tool ran and reported failure.

    This is an ordinary job outcome: the pool records it in the published
    JobResult instead of reporting it as a pool fault.
    """

    def __init__(self, message: str, output: str = "", returncode: Optional[int] = None):
        self.output = output
        self.returncode = returncode
        super().__init__(message)


class JobError(ProcessingError):
    """A unit of work that could not produce a published result."""

    def __init__(self, stage: str, cause: BaseException, payload: Optional[str] = None):
        self.stage = stage
        self.cause = cause
        self.payload = payload
        super().__init__(f"{stage} failed: {cause}")


WorkFunction = Callable[[Job], Awaitable[str]]
ErrorHandler = Callable[[JobError], Union[None, Awaitable[None]]]
