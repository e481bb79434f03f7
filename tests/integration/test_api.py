"""
Integration tests for the GROWT API.

API automation with request building, response validation, authentication
handling and error scenarios against a temporary DuckDB database.

Endpoints tested:
- System: /health, /api/v1/system/health
- Logs: list, per-animal filter, stats
- Livestock: roster, latest, per-animal logs
- Dashboard: monthly series, stats
- Public: logs, latest, stats, per-animal logs
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from growt.auth.jwt import create_access_token
from growt.engine.pipeline import WeighingAnalytics, get_analytics
from growt.main import app
from growt.storage import get_storage
from tests.conftest import MockStorage, make_livestock, ts


@pytest.fixture(autouse=True)
def populate_real_storage():
    """
    Reset the DuckDB storage and seed two owners' herds before each test.

    user-1: Bessie (3 weighings), Daisy (2 weighings, public), Clover (none)
    user-2: Rex (1 weighing)
    """
    storage = get_storage()
    storage.clear_for_testing()

    storage.write_livestock(make_livestock("RFID-0001", name="Bessie", dob="2023-01-15"))
    storage.write_livestock(make_livestock("RFID-0002", name="Daisy", dob="2024-03-01", is_public=True))
    storage.write_livestock(make_livestock("RFID-0003", name="Clover", dob="2024-06-20"))
    storage.write_livestock(make_livestock("RFID-0100", user_id="user-2", name="Rex"))

    storage.insert_weight("RFID-0001", 100.0, ts(2024, 5, 3))
    storage.insert_weight("RFID-0002", 40.0, ts(2024, 5, 4))
    storage.insert_weight("RFID-0001", 110.0, ts(2024, 6, 2))
    storage.insert_weight("RFID-0002", 38.0, ts(2024, 6, 5))
    storage.insert_weight("RFID-0001", 110.0, ts(2024, 7, 1))
    storage.insert_weight("RFID-0100", 300.0, ts(2024, 6, 10))

    yield

    app.dependency_overrides.clear()


# ============================================================================
# System Endpoints
# ============================================================================


def test_root_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_system_health_success(client: TestClient):
    """Health is public and reports database status."""
    response = client.get("/api/v1/system/health")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"]["status"] == "healthy"
    assert data["data"]["database"] == "healthy"
    assert data["data"]["weighings"] == 6
    assert "uptime_seconds" in data["data"]


def test_request_id_is_echoed(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/logs", headers=auth_headers)
    assert response.headers["X-Request-ID"] == auth_headers["X-Request-ID"]


# ============================================================================
# Authentication
# ============================================================================


def test_owner_routes_require_token(client: TestClient):
    for path in ("/api/v1/logs", "/api/v1/livestock", "/api/v1/dashboard/monthly"):
        response = client.get(path)
        assert response.status_code == 401, path


def test_invalid_token_rejected(client: TestClient):
    response = client.get("/api/v1/logs", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_expired_token_rejected(client: TestClient):
    token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(minutes=-5))
    response = client.get("/api/v1/logs", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_without_subject_rejected(client: TestClient):
    token = create_access_token({"role": "owner"})
    response = client.get("/api/v1/logs", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


# ============================================================================
# Logs Endpoints
# ============================================================================


def test_logs_newest_first(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/logs", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 5

    rows = data["data"]
    timestamps = [row["created_at"] for row in rows]
    assert timestamps == sorted(timestamps, reverse=True)
    assert {row["rfid"] for row in rows} == {"RFID-0001", "RFID-0002"}

    newest = rows[0]
    assert newest["rfid"] == "RFID-0001"
    assert newest["weight"] == 110.0
    assert newest["delta"] == 0.0
    assert newest["status"] == "stable"
    assert newest["name"] == "Bessie"
    assert newest["livestock"]["breed"] == "Bali"
    assert set(newest["age"]) == {"years", "months", "days"}
    assert newest["life_stage"] in {"infant", "juvenile", "adult"}


def test_logs_filtered_by_rfid(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/logs", params={"rfid": "RFID-0002"}, headers=auth_headers)

    rows = response.json()["data"]
    assert [row["weight"] for row in rows] == [38.0, 40.0]
    assert rows[0]["delta"] == pytest.approx(-2.0)
    assert rows[0]["status"] == "declining"
    assert rows[1]["delta"] is None


def test_logs_stats(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/logs/stats", headers=auth_headers)

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total_logs"] == 5
    assert stats["highest_weight"] == 110.0
    assert stats["stuck_loss_count"] == 2
    assert "logs_this_month" in stats


# ============================================================================
# Livestock Endpoints
# ============================================================================


def test_livestock_roster_includes_unweighed(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/livestock", headers=auth_headers)

    assert response.status_code == 200
    rows = response.json()["data"]
    assert [row["name"] for row in rows] == ["Bessie", "Clover", "Daisy"]

    clover = rows[1]
    assert clover["id"] is None
    assert clover["weight"] is None
    assert clover["status"] == "stable"


def test_livestock_latest(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/livestock/latest", headers=auth_headers)

    rows = response.json()["data"]
    assert [(row["rfid"], row["weight"]) for row in rows] == [
        ("RFID-0001", 110.0),
        ("RFID-0002", 38.0),
    ]


def test_livestock_logs(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/livestock/RFID-0001/logs", headers=auth_headers)

    assert response.status_code == 200
    assert [row["weight"] for row in response.json()["data"]] == [110.0, 110.0, 100.0]


def test_livestock_logs_of_other_owner_not_found(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/livestock/RFID-0100/logs", headers=auth_headers)
    assert response.status_code == 404


# ============================================================================
# Dashboard Endpoints
# ============================================================================


def test_dashboard_monthly(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/dashboard/monthly", headers=auth_headers)

    assert response.status_code == 200
    points = response.json()["data"]
    assert [p["month_key"] for p in points] == ["2024-05", "2024-06", "2024-07"]
    assert points[0]["label"] == "May 2024"
    assert points[1]["stuck_loss_pct"] == pytest.approx(50.0)
    assert points[1]["health_score"] == pytest.approx(70.0)
    assert points[2]["health_score"] == pytest.approx(30.0)


def test_dashboard_monthly_window(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/dashboard/monthly", params={"months": 1}, headers=auth_headers)

    points = response.json()["data"]
    assert [p["month_key"] for p in points] == ["2024-07"]
    assert points[0]["total_entities_pct"] == 0.0
    assert points[0]["health_score_delta"] == 0.0


def test_dashboard_monthly_all(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/dashboard/monthly", params={"months": "all"}, headers=auth_headers)
    assert response.json()["count"] == 3


@pytest.mark.parametrize("months", ["0", "-2", "soon"])
def test_dashboard_monthly_rejects_bad_window(client: TestClient, auth_headers: dict, months):
    response = client.get("/api/v1/dashboard/monthly", params={"months": months}, headers=auth_headers)
    assert response.status_code == 422


def test_dashboard_stats(client: TestClient, auth_headers: dict):
    response = client.get("/api/v1/dashboard/stats", headers=auth_headers)

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total_livestock"] == 1
    assert stats["total_livestock_diff"] == -1
    assert stats["avg_weight"] == pytest.approx(110.0)
    assert stats["health_score_current"] == pytest.approx(30.0)
    assert stats["health_score_prev"] == pytest.approx(70.0)


def test_dashboard_empty_for_new_owner(client: TestClient):
    token = create_access_token({"sub": "brand-new-user"})
    headers = {"Authorization": f"Bearer {token}"}

    assert client.get("/api/v1/dashboard/monthly", headers=headers).json()["data"] == []
    stats = client.get("/api/v1/dashboard/stats", headers=headers).json()["data"]
    assert stats["total_livestock"] == 0
    assert stats["health_score_current"] is None


# ============================================================================
# Public Endpoints
# ============================================================================


def test_public_logs_only_shared_animals(client: TestClient):
    response = client.get("/api/v1/public/logs")

    assert response.status_code == 200
    rows = response.json()["data"]
    assert {row["rfid"] for row in rows} == {"RFID-0002"}
    assert all(row["livestock"]["is_public"] for row in rows)


def test_public_latest(client: TestClient):
    rows = client.get("/api/v1/public/latest").json()["data"]
    assert [(row["name"], row["weight"]) for row in rows] == [("Daisy", 38.0)]


def test_public_stats(client: TestClient):
    stats = client.get("/api/v1/public/stats").json()["data"]
    assert stats == {
        "total_shared_livestock": 1,
        "global_avg_weight": pytest.approx(39.0),
        "highest_recorded_weight": 40.0,
        "total_logs": 2,
    }


def test_public_animal_logs(client: TestClient):
    response = client.get("/api/v1/public/RFID-0002/logs")
    assert response.status_code == 200
    assert response.json()["count"] == 2


def test_public_private_animal_not_found(client: TestClient):
    response = client.get("/api/v1/public/RFID-0001/logs")
    assert response.status_code == 404


# ============================================================================
# Error envelope
# ============================================================================


def test_malformed_stored_row_returns_error_envelope(client: TestClient, auth_headers: dict):
    broken = MockStorage()
    broken.write_livestock(make_livestock("RFID-0001"))
    broken.add_raw_row({"id": 1, "rfid": "RFID-0001", "weight": 10.0, "created_at": "not-a-date"})
    app.dependency_overrides[get_analytics] = lambda: WeighingAnalytics(storage=broken)

    response = client.get("/api/v1/logs", headers=auth_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "invalid_reading_batch"
    assert body["issues"][0]["field"] == "created_at"
    assert body["request_id"] == auth_headers["X-Request-ID"]


def test_recent_weighing_counts_this_month(client: TestClient, auth_headers: dict):
    get_storage().insert_weight("RFID-0001", 115.0, datetime.now(timezone.utc) - timedelta(seconds=5))

    stats = client.get("/api/v1/logs/stats", headers=auth_headers).json()["data"]
    assert stats["logs_this_month"] == 1
    assert stats["total_logs"] == 6
