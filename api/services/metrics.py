"""
Metrics capability for the API and worker

Components receive a MetricsClient at construction instead of reaching for a
module-level collector. The Prometheus implementation keeps its own registry so
that several instances can coexist in one process.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter
import structlog

# Counter names
QUEUE_PUSH = "transcoding_jobs_total"
SERVER_REQUEST = "server_request_total"
WORKER_JOB = "worker_jobs_total"


class MetricsClient(ABC):
    """Fire-and-forget metrics sink."""

    @abstractmethod
    def increment(self, counter: str, label: str) -> None:
        """Increment a labelled counter by one."""
        pass

    @abstractmethod
    def record(self, event: str, **fields: Any) -> None:
        """Record a structured event."""
        pass

    def increment_queue_push(self, label: str) -> None:
        self.increment(QUEUE_PUSH, label)

    def increment_server_request(self, status: str) -> None:
        self.increment(SERVER_REQUEST, status)

    def increment_worker_job(self, outcome: str) -> None:
        self.increment(WORKER_JOB, outcome)


class PrometheusMetricsService(MetricsClient):
    """Prometheus-backed metrics with events routed to structlog."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        self.registry = registry or CollectorRegistry()
        self.logger = logger or structlog.get_logger(self.__class__.__name__)
        self.counters: Dict[str, Counter] = {
            QUEUE_PUSH: Counter(
                QUEUE_PUSH,
                "Total number of queue elements submitted",
                ["submitted"],
                registry=self.registry,
            ),
            SERVER_REQUEST: Counter(
                SERVER_REQUEST,
                "Total number of server requests",
                ["status"],
                registry=self.registry,
            ),
            WORKER_JOB: Counter(
                WORKER_JOB,
                "Jobs processed by the worker pool by outcome",
                ["outcome"],
                registry=self.registry,
            ),
        }
        self.logger.info("Metrics service initialized", counters=list(self.counters))

    def increment(self, counter: str, label: str) -> None:
        metric = self.counters.get(counter)
        if metric is None:
            self.logger.warning("Unknown metrics counter", counter=counter, label=label)
            return
        metric.labels(label).inc()

    def record(self, event: str, **fields: Any) -> None:
        self.logger.info(event, **fields)
