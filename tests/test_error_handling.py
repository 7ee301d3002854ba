"""Tests for error handling with RFC 7807 Problem Details."""

from fastapi.testclient import TestClient

from src.domain.exceptions import StorageFailureError
from src.main import app
from src.presentation.dependencies import get_publishing_service


def _assert_problem(data: dict, status: int, instance: str) -> None:
    assert data["status"] == status
    assert data["instance"] == instance
    assert "type" in data
    assert "title" in data
    assert "detail" in data


def test_request_validation_error_returns_problem_details(client: TestClient):
    response = client.post("/api/v1/status-items", json={"status": "Outage"})

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/problem+json")
    data = response.json()
    _assert_problem(data, 400, "/api/v1/status-items")
    assert data["errors"][0]["field"] == "name"


def test_domain_validation_error_names_the_field(client: TestClient):
    response = client.post("/api/v1/status-items", json={"name": "   "})

    assert response.status_code == 400
    data = response.json()
    _assert_problem(data, 400, "/api/v1/status-items")
    assert data["errors"] == [
        {"field": "name", "code": "field_required", "message": "Name is required"}
    ]


def test_unknown_status_value_is_rejected(client: TestClient):
    response = client.post(
        "/api/v1/status-items", json={"name": "Boiler", "status": "Broken"}
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "field_invalid_value"


def test_unknown_item_returns_404(client: TestClient):
    response = client.put("/api/v1/advisories/42", json={"message": "Hello"})

    assert response.status_code == 404
    data = response.json()
    _assert_problem(data, 404, "/api/v1/advisories/42")
    assert data["resource_type"] == "Advisory"
    assert data["resource_id"] == "42"


def test_unknown_version_returns_404(client: TestClient):
    assert client.get("/api/v1/snapshots/3").status_code == 404
    assert client.post("/api/v1/snapshots/3/restore").status_code == 404
    assert client.delete("/api/v1/snapshots/3").status_code == 404


def test_diff_against_missing_version_returns_404(client: TestClient):
    client.post("/api/v1/snapshots")

    assert client.get("/api/v1/snapshots/1/diff/9").status_code == 404
    assert client.get("/api/v1/snapshots/9/diff/draft").status_code == 404


def test_bad_diff_target_returns_400(client: TestClient):
    client.post("/api/v1/snapshots")

    response = client.get("/api/v1/snapshots/1/diff/yesterday")

    assert response.status_code == 400


def test_deleting_the_only_version_returns_400(client: TestClient):
    client.post("/api/v1/snapshots")

    response = client.delete("/api/v1/snapshots/1")

    assert response.status_code == 400
    assert "only remaining version" in response.json()["detail"]


def test_empty_restore_selection_returns_400(client: TestClient):
    response = client.post("/api/v1/snapshots/restore-items", json={"sourceVersion": 1})

    assert response.status_code == 400


def test_speed_out_of_range_returns_400(client: TestClient):
    response = client.put("/api/v1/config", json={"statusPageSeconds": -5})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "statusPageSeconds"


def test_storage_failure_returns_503(client: TestClient):
    class FailingPublisher:
        def publish(self):
            raise StorageFailureError("publish", RuntimeError("database is locked"))

    app.dependency_overrides[get_publishing_service] = lambda: FailingPublisher()

    response = client.post("/api/v1/snapshots")

    assert response.status_code == 503
    data = response.json()
    _assert_problem(data, 503, "/api/v1/snapshots")
    assert "Nothing was changed" in data["detail"]


def test_problem_detail_factory():
    from src.presentation.problem_details import ProblemDetailFactory

    problem = ProblemDetailFactory.validation_failed(
        detail="Test validation error",
        instance="/test/path",
        field_errors=[
            {"field": "name", "code": "required", "message": "Field is required"}
        ],
    )

    assert problem.type.endswith("/validation-failed")
    assert problem.title == "Validation Failed"
    assert problem.status == 400
    assert problem.errors is not None
    assert problem.errors[0]["field"] == "name"

    not_found = ProblemDetailFactory.resource_not_found(
        resource_type="Version", detail="Version 3 not found", resource_id=3
    )

    assert not_found.type.endswith("/resource-not-found")
    assert not_found.status == 404
    assert not_found.resource_id == "3"
