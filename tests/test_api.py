"""API tests for the editor and publishing endpoints."""

from fastapi.testclient import TestClient


def _seed(client: TestClient) -> None:
    for name in ("Elevator A", "Laundry Room"):
        response = client.post("/api/v1/status-items", json={"name": name})
        assert response.status_code == 201
    response = client.post(
        "/api/v1/announcements",
        json={"title": "Rooftop Yoga", "details": ["7am"], "accentColor": "#3b82f6"},
    )
    assert response.status_code == 201
    response = client.post("/api/v1/advisories", json={"message": "Water off"})
    assert response.status_code == 201


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_collection_responses_use_camel_case(client: TestClient):
    response = client.post(
        "/api/v1/status-items",
        json={"name": "Boiler", "status": "Maintenance", "displayOrder": 5},
    )

    data = response.json()
    assert response.status_code == 201
    assert data["displayOrder"] == 5
    assert data["markedForDeletion"] is False
    assert "lastChecked" in data


def test_api_responses_are_not_cached(client: TestClient):
    response = client.get("/api/v1/status-items")

    assert response.headers["cache-control"] == "no-store"
    assert "x-request-id" in response.headers


def test_update_mark_and_unmark_over_http(client: TestClient):
    _seed(client)

    response = client.put("/api/v1/announcements/1", json={"subtitle": "Sunday"})
    assert response.status_code == 200
    assert response.json()["subtitle"] == "Sunday"
    assert response.json()["details"] == ["7am"]

    response = client.delete("/api/v1/advisories/1")
    assert response.status_code == 200
    assert response.json()["markedForDeletion"] is True

    response = client.post("/api/v1/advisories/1/unmark")
    assert response.json()["markedForDeletion"] is False


def test_config_read_and_update(client: TestClient):
    defaults = client.get("/api/v1/config").json()
    assert defaults["statusPageSeconds"] == 8
    assert defaults["buildingNumber"] == "77"
    assert defaults["buildingName"] == "Hudson Dashboard"
    assert defaults["subtitle"] == "Real-time System Monitor"

    response = client.put(
        "/api/v1/config",
        json={"buildingName": "Harbor View", "advisoryTickerSeconds": 0},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["buildingName"] == "Harbor View"
    assert data["advisoryTickerSeconds"] == 0


def test_publish_and_history_over_http(client: TestClient):
    _seed(client)

    status = client.get("/api/v1/snapshots/draft-status").json()
    assert status["hasChanges"] is True
    assert status["sectionChanges"]["status"] is True

    response = client.post("/api/v1/snapshots")
    assert response.status_code == 201
    published = response.json()
    assert published["version"] == 1
    assert "publishedAt" in published
    assert [item["id"] for item in published["state"]["statusSection"]["items"]] == [
        1,
        2,
    ]

    client.delete("/api/v1/status-items/1")
    client.post("/api/v1/status-items", json={"name": "Bike Storage"})

    status = client.get("/api/v1/snapshots/draft-status").json()
    assert status["sectionChanges"]["status"] is True
    assert status["sectionChanges"]["advisories"] is False
    assert client.post("/api/v1/snapshots").json()["version"] == 2

    versions = client.get("/api/v1/snapshots").json()
    assert [entry["version"] for entry in versions] == [2, 1]

    diff = client.get("/api/v1/snapshots/1/diff/2").json()
    assert [item["id"] for item in diff["status"]["removed"]] == [1]
    assert [item["id"] for item in diff["status"]["added"]] == [3]

    latest = client.get("/api/v1/snapshots/latest").json()
    assert [item["id"] for item in latest["statusSection"]["items"]] == [2, 3]

    detail = client.get("/api/v1/snapshots/1").json()
    assert detail["version"] == 1
    assert len(detail["state"]["statusSection"]["items"]) == 2


def test_diff_against_draft_over_http(client: TestClient):
    _seed(client)
    client.post("/api/v1/snapshots")
    client.put("/api/v1/status-items/2", json={"status": "Outage"})

    diff = client.get("/api/v1/snapshots/1/diff/draft").json()

    change = diff["status"]["changed"][0]
    assert change["from"]["status"] == "Operational"
    assert change["to"]["status"] == "Outage"


def test_restore_discard_and_purge_over_http(client: TestClient):
    _seed(client)
    client.post("/api/v1/snapshots")
    client.delete("/api/v1/status-items/1")
    client.post("/api/v1/snapshots")

    response = client.post(
        "/api/v1/snapshots/restore-items", json={"sourceVersion": 1, "status": [1]}
    )
    assert response.status_code == 200
    assert response.json()["restored"]["status"] == [1]

    client.post("/api/v1/advisories", json={"message": "Unpublished"})
    assert client.post("/api/v1/snapshots/discard").json()["ok"] is True
    assert [item["id"] for item in client.get("/api/v1/advisories").json()] == [1]

    assert client.post("/api/v1/snapshots/1/restore").status_code == 200
    ids = [item["id"] for item in client.get("/api/v1/status-items").json()]
    assert ids == [1, 2]

    purge = client.delete("/api/v1/snapshots").json()
    assert purge["deletedCount"] == 1
    assert purge["keptVersion"] == 2


def test_latest_before_first_publish_serves_the_draft(client: TestClient):
    _seed(client)
    client.delete("/api/v1/status-items/2")

    latest = client.get("/api/v1/snapshots/latest").json()

    assert [item["name"] for item in latest["statusSection"]["items"]] == [
        "Elevator A"
    ]


def test_discard_before_first_publish_reports_nothing_done(client: TestClient):
    _seed(client)

    response = client.post("/api/v1/snapshots/discard")

    assert response.status_code == 200
    assert response.json()["ok"] is False
    assert len(client.get("/api/v1/status-items").json()) == 2
