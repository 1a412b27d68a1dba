"""
Queue service backed by Redis lists

Jobs are pushed with LPUSH and consumed with BRPOP, so each list behaves as a
FIFO. Results go to a separate list that this service only ever appends to.
"""
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
import structlog

from api.config import settings
from api.utils.error_handlers import BrokerError

# Connections left for result pushes and health checks while every
# consumer is parked in BRPOP
CONNECTION_HEADROOM = 2


def connection_pool_size(max_connections: int, blocking_consumers: int = 0) -> int:
    """Pool size large enough for every blocking consumer plus headroom."""
    return max(max_connections, blocking_consumers + CONNECTION_HEADROOM)


class QueueService:
    """Service for the job and result queues."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        job_queue: Optional[str] = None,
        result_queue: Optional[str] = None,
        dequeue_timeout: Optional[int] = None,
        blocking_consumers: int = 0,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        self.redis_url = redis_url or settings.REDIS_URL
        self.job_queue = job_queue or settings.JOB_QUEUE
        self.result_queue = result_queue or settings.RESULT_QUEUE
        self.dequeue_timeout = dequeue_timeout if dequeue_timeout is not None else settings.DEQUEUE_TIMEOUT
        self.max_connections = connection_pool_size(settings.REDIS_MAX_CONNECTIONS, blocking_consumers)
        self.redis_client: Optional[redis.Redis] = None
        self.logger = logger or structlog.get_logger(self.__class__.__name__)

    async def initialize(self) -> None:
        """Initialize the Redis connection pool and verify connectivity."""
        if self.redis_client is None:
            pool = redis.BlockingConnectionPool.from_url(
                self.redis_url,
                max_connections=self.max_connections,
                timeout=settings.REDIS_POOL_TIMEOUT,
                decode_responses=True,
            )
            self.redis_client = redis.Redis.from_pool(pool)

        try:
            await self.redis_client.ping()
        except (RedisError, OSError) as e:
            self.logger.error("Failed to connect to Redis", redis_url=self.redis_url, error=str(e))
            raise BrokerError(f"Failed to connect to Redis: {e}")

        self.logger.info(
            "Queue service initialized",
            job_queue=self.job_queue,
            result_queue=self.result_queue,
            max_connections=self.max_connections,
        )

    async def cleanup(self) -> None:
        """Clean up queue connections."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            self.logger.info("Redis client closed")

    def _client(self) -> redis.Redis:
        if self.redis_client is None:
            raise BrokerError("Queue service is not initialized")
        return self.redis_client

    async def enqueue_job(self, job: str) -> None:
        """Append a serialized job to the job queue."""
        await self._push(self.job_queue, job)
        self.logger.info("Job enqueued", queue=self.job_queue)

    async def enqueue_job_result(self, result: str) -> None:
        """Append a serialized job result to the result queue."""
        await self._push(self.result_queue, result)
        self.logger.info("Job result enqueued", queue=self.result_queue)

    async def _push(self, queue: str, payload: str) -> None:
        try:
            await self._client().lpush(queue, payload)
        except RedisError as e:
            self.logger.error("Failed to push to Redis queue", queue=queue, error=str(e))
            raise BrokerError(f"Failed to push to queue {queue}: {e}", queue=queue)

    async def dequeue_job(self, timeout: Optional[int] = None) -> Optional[str]:
        """
        Pop the oldest job, blocking up to ``timeout`` seconds.

        Returns None when the timeout elapses with nothing queued. Cancelling
        the awaiting task aborts the blocking pop.
        """
        timeout = self.dequeue_timeout if timeout is None else timeout
        try:
            item = await self._client().brpop([self.job_queue], timeout=timeout)
        except RedisError as e:
            self.logger.error("Failed to dequeue job from Redis", queue=self.job_queue, error=str(e))
            raise BrokerError(f"Failed to dequeue from {self.job_queue}: {e}", queue=self.job_queue)

        if item is None:
            self.logger.debug("No job available in queue", queue=self.job_queue)
            return None

        _, payload = item
        self.logger.info("Job dequeued", queue=self.job_queue)
        return payload

    async def get_queue_stats(self) -> Dict[str, Any]:
        """Get queue lengths."""
        client = self._client()
        return {
            self.job_queue: {"length": await client.llen(self.job_queue)},
            self.result_queue: {"length": await client.llen(self.result_queue)},
        }

    async def health_check(self) -> Dict[str, Any]:
        """Check queue service health."""
        try:
            await self._client().ping()
            stats = await self.get_queue_stats()
            return {
                "status": "healthy",
                "type": "redis",
                "queues": stats,
            }
        except (BrokerError, RedisError, OSError) as e:
            return {
                "status": "unhealthy",
                "error": str(e),
            }
