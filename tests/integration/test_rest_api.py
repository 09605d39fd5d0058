"""REST API behaviour against an in-memory container."""

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from courier.application.api.rest.app import create_app
from courier.config import Config


@pytest.fixture
def client() -> Iterator[TestClient]:
    app = create_app(Config(), use_memory=True)
    with TestClient(app) as client:
        yield client


class TestRestApi:
    def test_health_reports_running_dispatcher(self, client: TestClient):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["dispatcher"] == {"active": 0, "pending": 0}

    def test_unknown_submission_is_404(self, client: TestClient):
        response = client.get("/api/v1/submissions/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "NotFoundError"

    def test_ready_signal_is_accepted(self, client: TestClient):
        response = client.post("/api/v1/submissions/missing/ready")

        assert response.status_code == 202
        assert response.json() == {"submission_id": "missing", "status": "accepted"}

    def test_reported_change_is_accepted(self, client: TestClient):
        response = client.post("/api/v1/deposits/missing/status-changed")

        assert response.status_code == 202
