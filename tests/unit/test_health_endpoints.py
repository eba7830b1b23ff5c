"""Tests for the health check endpoints."""

from collections.abc import Generator
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.main import app


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client without running the lifespan (no database, no scheduler)."""
    yield TestClient(app)
    if hasattr(app.state, "scheduler_host"):
        del app.state.scheduler_host


@pytest.mark.unit
def test_health_endpoint_returns_healthy(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.unit
def test_scheduler_health_before_startup(client: TestClient) -> None:
    response = client.get("/health/scheduler")

    assert response.status_code == 503
    assert response.json() == {"status": "not_started"}


@pytest.mark.unit
def test_scheduler_health_reports_next_wake(client: TestClient) -> None:
    wake_job = MagicMock()
    wake_job.next_run_time = datetime(2026, 3, 10, 9, 30, tzinfo=UTC)
    host = MagicMock()
    host.scheduler.get_job.return_value = wake_job
    host.scheduler.get_jobs.return_value = [wake_job, MagicMock()]
    host.last_wake_result = True
    app.state.scheduler_host = host

    response = client.get("/health/scheduler")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "next_wake": "2026-03-10T09:30:00+00:00",
        "last_wake_result": True,
        "scheduled_jobs": 2,
    }
