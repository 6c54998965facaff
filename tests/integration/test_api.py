# tests/integration/test_api.py

import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeHttpExecutor, make_response
from testlab.adapters.repository.json_file_test_lab_repository import (
    JsonFileTestLabRepository,
)
from testlab.application.services.test_suite_service import TestSuiteService as Service
from testlab.infra.di.container import get_test_suite_service
from testlab.server import app
from testlab.tools.test_suite_runner import TestSuiteRunnerTool as SuiteRunner

API = "https://api.example.com"


def seed(data_dir):
    documents = {
        "collections.json": [
            {
                "info": {"id": "col-1", "name": "Shop"},
                "item": [
                    {"id": "req-ok", "name": "Health", "request": {"id": "req-ok", "url": f"{API}/health"}},
                    {"id": "req-fail", "name": "Broken", "request": {"id": "req-fail", "url": f"{API}/broken"}},
                ],
            }
        ],
        "test_suites.json": {
            "test_suites": [
                {
                    "id": "suite-1",
                    "name": "Smoke",
                    "items": [
                        {"id": "a", "type": "request", "reference_id": "req-ok", "order": 0},
                        {"id": "b", "type": "request", "reference_id": "req-fail", "order": 1},
                    ],
                },
                {"id": "empty", "name": "Empty"},
            ]
        },
    }
    for name, document in documents.items():
        (data_dir / name).write_text(json.dumps(document), encoding="utf-8")


@pytest.fixture
def http() -> FakeHttpExecutor:
    return FakeHttpExecutor(replies={f"{API}/broken": make_response(503, "down")})


@pytest.fixture
def client(tmp_path, http):
    seed(tmp_path)
    service = Service(
        repository=JsonFileTestLabRepository(data_dir=str(tmp_path)),
        runner_factory=lambda: SuiteRunner(http),
    )
    app.dependency_overrides[get_test_suite_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/live").json()["status"] == "alive"
    assert client.get("/health/ready").json()["test_suites_count"] == 2


def test_list_test_suites(client):
    body = client.get("/api/v1/test-suites/").json()

    assert body["total"] == 2
    assert body["test_suites"][0] == {
        "id": "suite-1",
        "name": "Smoke",
        "description": None,
        "item_count": 2,
        "concurrent_calls": 1,
        "delay_between_calls": 0,
        "stop_on_failure": False,
    }


def test_run_returns_the_final_state(client):
    response = client.post("/api/v1/test-suites/suite-1/run", json={})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failed"
    assert body["error"] == "One or more tests failed"
    assert body["progress"] == {"total": 2, "completed": 2, "passed": 1, "failed": 1, "skipped": 0}
    assert list(body["item_results"]) == ["a", "b"]
    assert body["item_results"]["b"]["validation_status"] == "fail"


def test_run_without_body(client):
    response = client.post("/api/v1/test-suites/empty/run")

    assert response.status_code == 200
    assert response.json()["error"] == "Test suite has no enabled items"


def test_run_unknown_suite_is_404(client):
    response = client.post("/api/v1/test-suites/ghost/run", json={})

    assert response.status_code == 404
    assert response.json()["detail"] == "Test suite 'ghost' not found"


def test_run_state_before_any_run_is_404(client):
    assert client.get("/api/v1/test-suites/suite-1/run").status_code == 404
    assert client.post("/api/v1/test-suites/suite-1/cancel").status_code == 404
    assert client.delete("/api/v1/test-suites/suite-1/run").status_code == 404


def test_state_cancel_and_reset_after_a_run(client):
    client.post("/api/v1/test-suites/suite-1/run", json={})

    state = client.get("/api/v1/test-suites/suite-1/run").json()
    cancelled = client.post("/api/v1/test-suites/suite-1/cancel").json()
    reset = client.delete("/api/v1/test-suites/suite-1/run").json()

    assert state["status"] == "failed"
    # finished runs are left as they are
    assert cancelled["status"] == "failed"
    assert reset["status"] == "idle"
    assert reset["item_results"] == {}
