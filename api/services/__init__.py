"""
API services
"""
from .metrics import MetricsClient, PrometheusMetricsService
from .queue import QueueService

__all__ = [
    "MetricsClient",
    "PrometheusMetricsService",
    "QueueService",
]
