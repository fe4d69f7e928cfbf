import pytest
from datetime import datetime, timezone
from http import HTTPStatus
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from batch_scaler.main import create_app
from batch_scaler.fleet.models import JobDetail
from batch_scaler.scaler.exceptions import ScalingDisabledError
from batch_scaler.scaler.models import MetricsSnapshot


CHECKED_AT = datetime(2024, 6, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def metrics():
    return MetricsSnapshot(
        enabled=True,
        queue_depth=5,
        consumer_count=1,
        batch_jobs_running=1,
        batch_jobs_pending=2,
        active_workers=3,
        last_scale_action="scale-up: +2 workers at 2024-06-10T12:00:00+00:00",
        last_scale_action_at=CHECKED_AT,
        total_jobs_submitted=4,
        last_checked_at=CHECKED_AT,
    )


@pytest.fixture
def controller(metrics):
    """Mocked scaling controller"""
    controller = MagicMock(enabled=True)
    controller.get_metrics.return_value = metrics
    controller.manual_trigger = AsyncMock(return_value=["job-1", "job-2", "job-3"])
    controller.check = AsyncMock(return_value=metrics)
    controller.describe_jobs = AsyncMock(return_value=[
        JobDetail(job_id="a", status="RUNNING"),
        JobDetail(job_id="b", status="SUCCEEDED", exit_code=0),
    ])
    return controller


@pytest.fixture
def test_client(controller):
    """Test client without the lifespan, so no scheduler or AWS client is created"""
    app = create_app()
    app.state.controller = controller
    return TestClient(app)


def test_get_metrics(test_client):
    response = test_client.get("/api/v1/scaling/metrics")

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert data["enabled"] is True
    assert data["queue_depth"] == 5
    assert data["active_workers"] == 3
    assert data["total_jobs_submitted"] == 4
    assert data["last_scale_action"].startswith("scale-up: +2 workers")


def test_get_status(test_client):
    response = test_client.get("/api/v1/scaling/status")

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert data["success"] is True
    assert data["auto_scaling"] == {"enabled": True, "provider": "AWS Batch"}
    assert data["queue"]["depth"] == 5
    assert data["queue"]["consumers"] == 1
    assert data["workers"] == {"batch_running": 1, "batch_pending": 2, "total_active": 3}
    assert data["history"]["total_jobs_submitted"] == 4


def test_trigger_scale(test_client, controller):
    response = test_client.post("/api/v1/scaling/trigger", json={"worker_count": 3})

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Triggered 3 AWS Batch worker(s)"
    assert data["job_ids"] == ["job-1", "job-2", "job-3"]
    controller.manual_trigger.assert_awaited_once_with(3)


def test_trigger_scale_defaults_to_one_worker(test_client, controller):
    controller.manual_trigger = AsyncMock(return_value=["job-1"])

    response = test_client.post("/api/v1/scaling/trigger")

    assert response.status_code == HTTPStatus.OK
    controller.manual_trigger.assert_awaited_once_with(1)


def test_trigger_scale_rejects_invalid_count(test_client, controller):
    response = test_client.post("/api/v1/scaling/trigger", json={"worker_count": 0})

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    controller.manual_trigger.assert_not_awaited()


def test_trigger_scale_when_disabled(test_client, controller):
    controller.manual_trigger = AsyncMock(
        side_effect=ScalingDisabledError("AWS Batch auto-scaling is not enabled")
    )

    response = test_client.post("/api/v1/scaling/trigger", json={"worker_count": 1})

    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert response.json()["detail"] == "AWS Batch auto-scaling is not enabled"


def test_trigger_scale_unexpected_error(test_client, controller):
    controller.manual_trigger = AsyncMock(side_effect=RuntimeError("boom"))

    response = test_client.post("/api/v1/scaling/trigger", json={"worker_count": 1})

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "boom" in response.json()["detail"]


def test_force_check(test_client, controller):
    response = test_client.post("/api/v1/scaling/check")

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert data["message"] == "Queue checked and scaling decision made"
    assert data["metrics"]["queue_depth"] == 5
    controller.check.assert_awaited_once()


def test_force_check_when_disabled(test_client, controller):
    controller.check = AsyncMock(side_effect=ScalingDisabledError("AWS Batch auto-scaling is not enabled"))

    response = test_client.post("/api/v1/scaling/check")

    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE


def test_get_job_details(test_client, controller):
    response = test_client.get("/api/v1/scaling/jobs?job_ids=a&job_ids=b")

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert [job["job_id"] for job in data] == ["a", "b"]
    assert data[1]["exit_code"] == 0
    controller.describe_jobs.assert_awaited_once_with(["a", "b"])


def test_health(test_client):
    response = test_client.get("/health")

    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"status": "ok", "scaling_enabled": True}


def test_missing_controller_returns_unavailable():
    client = TestClient(create_app())

    response = client.get("/api/v1/scaling/metrics")

    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert client.get("/health").json()["scaling_enabled"] is False
