"""
Tests for the worker process entry point
"""
import asyncio
from unittest.mock import patch

import pytest

from api.config import settings
from tests.mocks.queue import MockQueueService
from worker.main import run_worker


class TestRunWorker:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_until_shutdown_and_cleans_up(self):
        queue_service = MockQueueService()
        shutdown = asyncio.Event()

        with patch("worker.main.QueueService", return_value=queue_service) as queue_cls, \
                patch("worker.main.start_http_server") as http_server:
            task = asyncio.create_task(run_worker(shutdown))
            await asyncio.sleep(0.05)
            assert queue_service.initialized

            shutdown.set()
            await asyncio.wait_for(task, timeout=2.0)

        assert not queue_service.initialized
        queue_cls.assert_called_once_with(blocking_consumers=settings.MAX_PARALLELIZATION)
        http_server.assert_not_called()
