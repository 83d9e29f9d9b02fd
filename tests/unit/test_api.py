"""Tests for the HTTP API."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from api.deps import get_job_service, get_scan_service, get_task_service
from api.main import app
from api.models import Task
from api.routers.health import DependencyCheck
from api.services.job_service import JobService
from api.services.scan_service import build_scan
from worker.queue import JobInfo, JobStatus
from tests.fixtures.facts import make_result


def make_task(status: str = "pending") -> Task:
    now = datetime.now(UTC)
    return Task(
        id=uuid.uuid4(),
        domain="example.com",
        category="seo",
        recommendation_key="seo::sitemap-olustur",
        title="Sitemap oluştur",
        description="",
        how_to="",
        effort="Kolay",
        priority="high",
        status=status,
        last_seen_scan_id=None,
        completed_at=now if status == "completed" else None,
        verified_at=None,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def queue() -> MagicMock:
    queue = MagicMock()
    queue.enqueue.return_value = MagicMock(id="job-123")
    queue.get_job_info.return_value = None
    return queue


@pytest.fixture
def scans() -> MagicMock:
    service = MagicMock()
    service.get_latest_scan = AsyncMock(return_value=None)
    return service


@pytest.fixture
def tasks() -> MagicMock:
    service = MagicMock()
    service.list_tasks = AsyncMock(return_value=[])
    service.set_status = AsyncMock()
    return service


@pytest.fixture(autouse=True)
def _services(client, queue, scans, tasks):
    app.dependency_overrides[get_job_service] = lambda: JobService(queue=queue)
    app.dependency_overrides[get_scan_service] = lambda: scans
    app.dependency_overrides[get_task_service] = lambda: tasks


class TestHealth:
    """Tests for health endpoints."""

    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"

    async def test_ready_degraded(self, client: AsyncClient):
        with (
            patch(
                "api.routers.health._check_database",
                AsyncMock(return_value=DependencyCheck(status="healthy", latency_ms=1.0)),
            ),
            patch(
                "api.routers.health._check_redis",
                return_value=DependencyCheck(status="unhealthy", error="connection refused"),
            ),
        ):
            response = await client.get("/api/ready")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["redis"]["error"] == "connection refused"

    async def test_metrics(self, client: AsyncClient):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert b"launchpilot_scans_total" in response.content

    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get("/v1/", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"
        assert response.json() == {"version": "1", "status": "active"}


class TestScans:
    """Tests for scan submission."""

    async def test_queue_scan(self, client: AsyncClient, queue):
        response = await client.post("/v1/scans", json={"url": " www.example.com "})

        assert response.status_code == 202
        assert response.json()["data"] == {
            "job_id": "job-123",
            "domain": "example.com",
            "status": "queued",
        }
        queue.enqueue.assert_called_once()

    async def test_invalid_url(self, client: AsyncClient, queue):
        response = await client.post("/v1/scans", json={"url": "not a url"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["details"] == {"field": "url"}
        queue.enqueue.assert_not_called()

    async def test_missing_url(self, client: AsyncClient):
        response = await client.post("/v1/scans", json={})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["field"] == "url"
        assert error["details"]["field"] == "url"


class TestJobs:
    """Tests for job status."""

    async def test_unknown_job(self, client: AsyncClient):
        response = await client.get("/v1/jobs/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    async def test_finished_job(self, client: AsyncClient, queue):
        queue.get_job_info.return_value = JobInfo(
            id="job-123",
            status=JobStatus.FINISHED,
            created_at=datetime.now(UTC),
            started_at=None,
            ended_at=None,
            result={"domain": "example.com", "overall": 74},
            error=None,
            meta={"domain": "example.com"},
        )

        response = await client.get("/v1/jobs/job-123")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "finished"
        assert data["result"]["overall"] == 74


class TestSites:
    """Tests for site endpoints."""

    async def test_site_without_scans(self, client: AsyncClient, scans, fake_db):
        response = await client.get("/v1/sites/www.example.com")

        assert response.status_code == 200
        assert response.json()["data"] == {
            "domain": "example.com",
            "latest_scan": None,
            "tasks": [],
        }
        scans.get_latest_scan.assert_awaited_once_with(fake_db, "example.com")

    async def test_site_with_scan_and_tasks(self, client: AsyncClient, scans, tasks):
        scan = build_scan(make_result())
        scan.id = uuid.uuid4()
        scans.get_latest_scan.return_value = scan
        tasks.list_tasks.return_value = [make_task()]

        response = await client.get("/v1/sites/example.com")

        data = response.json()["data"]
        assert data["latest_scan"]["id"] == str(scan.id)
        assert data["latest_scan"]["overall_score"] == scan.overall_score
        assert [task["recommendation_key"] for task in data["tasks"]] == ["seo::sitemap-olustur"]

    async def test_site_tasks(self, client: AsyncClient, tasks):
        tasks.list_tasks.return_value = [make_task(), make_task("verified")]

        response = await client.get("/v1/sites/example.com/tasks")

        body = response.json()
        assert body["meta"] == {"total": 2}
        assert [task["status"] for task in body["data"]] == ["pending", "verified"]


class TestTasks:
    """Tests for manual task updates."""

    async def test_complete_task(self, client: AsyncClient, tasks, fake_db):
        task = make_task("completed")
        tasks.set_status.return_value = task

        response = await client.patch(f"/v1/tasks/{task.id}", json={"status": "completed"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "completed"
        tasks.set_status.assert_awaited_once_with(fake_db, task.id, "completed")

    async def test_scan_only_status_rejected(self, client: AsyncClient, tasks):
        response = await client.patch(f"/v1/tasks/{uuid.uuid4()}", json={"status": "verified"})

        assert response.status_code == 422
        tasks.set_status.assert_not_called()

    async def test_invalid_task_id(self, client: AsyncClient):
        response = await client.patch("/v1/tasks/not-a-uuid", json={"status": "completed"})

        assert response.status_code == 422
