"""
Test configuration and fixtures
"""
import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from api.main import create_app
from api.services.metrics import PrometheusMetricsService
from tests.mocks.queue import MockQueueService


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests exercising the HTTP surface")


@pytest.fixture
def queue_service():
    """In-memory queue service."""
    return MockQueueService()


@pytest.fixture
def registry():
    """Isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    """Metrics service writing to the isolated registry."""
    return PrometheusMetricsService(registry=registry)


@pytest.fixture
def app(queue_service, metrics):
    """Application wired to the mock services."""
    return create_app(queue_service=queue_service, metrics=metrics)


@pytest.fixture
def client(app, queue_service):
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def simple_job_payload():
    """Job submitted with simple options and hardware acceleration."""
    return {
        "input_file_path": "/media/in.mp4",
        "output_file_path": "/media/out.mkv",
        "input_container_type": "mp4",
        "output_container_type": "mkv",
        "simple_options": {
            "quality_preset": "balanced",
            "use_hardware_acceleration": True,
        },
    }


@pytest.fixture
def advanced_job_payload():
    """Job submitted with raw FFmpeg arguments."""
    return {
        "input_file_path": "/media/in.mp4",
        "output_file_path": "/media/out.webm",
        "global_arguments": "-y -hide_banner -loglevel error",
        "input_arguments": "-ss 10",
        "output_arguments": "-c:v libvpx-vp9 -b:v 2M",
    }
