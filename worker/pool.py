"""
Bounded worker pool pulling jobs from the queue

Each slot runs one unit of work at a time: dequeue, decode, execute, publish
the result. A finished unit posts its outcome on the completion queue, which
frees the slot; the scheduler then starts a replacement unless it is shutting
down. Failures never stop the pool, they are handed to the error handler and
the slot is replaced.
"""
import asyncio
import inspect
from typing import List, NamedTuple, Optional, Set

from pydantic import ValidationError
import structlog

from api.models.job import Job, JobResult
from api.services.metrics import MetricsClient
from api.services.queue import QueueService
from api.utils.error_handlers import BrokerError
from worker.base import ErrorHandler, JobError, JobExecutionError, WorkFunction
from worker.tasks import make_transcode_task

logger = structlog.get_logger()

# Task outcome statuses
EMPTY = "empty"
COMPLETED = "completed"
FAILED = "failed"
ERROR = "error"
STOPPED = "stopped"


class TaskOutcome(NamedTuple):
    slot: int
    status: str
    error: Optional[JobError] = None


def log_error_handler(error: JobError) -> None:
    """Default error handler: log and move on."""
    logger.error(
        "Worker error",
        stage=error.stage,
        error=str(error.cause),
        error_type=type(error.cause).__name__,
        job_payload=error.payload,
    )


class WorkerPool:
    """Fixed-size pool of concurrent job-processing tasks."""

    def __init__(
        self,
        queue_service: QueueService,
        max_parallelization: int,
        work_function: Optional[WorkFunction] = None,
        error_handler: Optional[ErrorHandler] = None,
        metrics: Optional[MetricsClient] = None,
        error_backoff: float = 1.0,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        if max_parallelization < 1:
            raise ValueError("max_parallelization must be a positive integer")

        self.queue_service = queue_service
        self.max_parallelization = max_parallelization
        self.work_function = work_function or make_transcode_task()
        self.error_handler = error_handler or log_error_handler
        self.metrics = metrics
        self.error_backoff = error_backoff
        self.logger = logger or structlog.get_logger(self.__class__.__name__)

        self._shutdown = asyncio.Event()
        self._completions: Optional[asyncio.Queue] = None
        self._free_slots: List[int] = []
        self._tasks: Set[asyncio.Task] = set()
        self._active = 0

    @property
    def active(self) -> int:
        """Number of occupied slots."""
        return self._active

    def stop(self) -> None:
        """Ask the pool to stop; in-flight jobs still finish."""
        self._shutdown.set()

    async def start(self, shutdown: Optional[asyncio.Event] = None) -> None:
        """
        Run until ``shutdown`` is set, then wait for in-flight tasks.

        Idle tasks blocked on the queue return as soon as shutdown is
        signalled; tasks executing a job finish it and publish the result.
        A ``stop()`` issued before ``start`` carries over to ``shutdown``.
        """
        if shutdown is not None:
            if self._shutdown.is_set():
                shutdown.set()
            self._shutdown = shutdown
        self._completions = asyncio.Queue(maxsize=self.max_parallelization)
        self._free_slots = list(range(self.max_parallelization - 1, -1, -1))
        self._active = 0

        self.logger.info("Worker pool starting", max_parallelization=self.max_parallelization)
        try:
            self._fill_slots()
            while self._active:
                outcome = await self._completions.get()
                self._active -= 1
                self._free_slots.append(outcome.slot)
                await self._handle_outcome(outcome)
                self._fill_slots()
        finally:
            pending = [task for task in self._tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self._tasks.clear()

        self.logger.info("Worker pool stopped")

    def _fill_slots(self) -> None:
        while self._free_slots and not self._shutdown.is_set():
            slot = self._free_slots.pop()
            self._active += 1
            task = asyncio.create_task(self._run_slot(slot), name=f"worker-slot-{slot}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run_slot(self, slot: int) -> None:
        try:
            outcome = await self._process_one(slot)
        except Exception as e:
            outcome = TaskOutcome(slot, ERROR, JobError("task", e))
        self._completions.put_nowait(outcome)

    async def _process_one(self, slot: int) -> TaskOutcome:
        if self._shutdown.is_set():
            return TaskOutcome(slot, STOPPED)

        try:
            payload = await self._dequeue()
        except BrokerError as e:
            await self._backoff()
            return TaskOutcome(slot, ERROR, JobError("dequeue", e))

        if payload is None:
            return TaskOutcome(slot, EMPTY)
        self.logger.info("Dequeued job", worker_id=slot)

        try:
            job = Job.model_validate_json(payload)
        except ValidationError as e:
            return TaskOutcome(slot, ERROR, JobError("deserialize", e, payload))

        error: Optional[str] = None
        try:
            output = await self.work_function(job)
        except JobExecutionError as e:
            output, error = e.output, str(e)
        except Exception as e:
            return TaskOutcome(slot, ERROR, JobError("execute", e, payload))
        self.logger.info("Finished job", worker_id=slot, failed=error is not None)

        result = JobResult(job=job, output=output, error=error)
        try:
            await self.queue_service.enqueue_job_result(result.model_dump_json())
        except BrokerError as e:
            return TaskOutcome(slot, ERROR, JobError("publish", e, payload))
        self.logger.info("Pushed job result", worker_id=slot)

        return TaskOutcome(slot, FAILED if error else COMPLETED)

    async def _dequeue(self) -> Optional[str]:
        """Blocking dequeue that gives up as soon as shutdown is signalled."""
        dequeue = asyncio.ensure_future(self.queue_service.dequeue_job())
        stopped = asyncio.ensure_future(self._shutdown.wait())
        try:
            await asyncio.wait({dequeue, stopped}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            dequeue.cancel()
            raise
        finally:
            stopped.cancel()

        if not dequeue.done():
            dequeue.cancel()
            await asyncio.wait({dequeue})
            if dequeue.cancelled():
                return None
        # A job popped while shutting down is still processed
        return dequeue.result()

    async def _backoff(self) -> None:
        if self.error_backoff <= 0:
            return
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=self.error_backoff)
        except asyncio.TimeoutError:
            pass

    async def _handle_outcome(self, outcome: TaskOutcome) -> None:
        if self.metrics is not None and outcome.status != STOPPED:
            self.metrics.increment_worker_job(outcome.status)
        if outcome.error is None:
            return

        try:
            handled = self.error_handler(outcome.error)
            if inspect.isawaitable(handled):
                await handled
        except Exception as e:
            self.logger.error("Error handler failed", error=str(e), original_error=str(outcome.error))
