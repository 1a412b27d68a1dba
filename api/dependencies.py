"""
FastAPI dependencies for the services attached to the application
"""
from fastapi import Request

from api.services.metrics import MetricsClient
from api.services.queue import QueueService


def get_queue_service(request: Request) -> QueueService:
    """Queue service configured for this application."""
    return request.app.state.queue_service


def get_metrics(request: Request) -> MetricsClient:
    """Metrics client configured for this application."""
    return request.app.state.metrics
