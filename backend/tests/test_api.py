"""Tests for API endpoints."""

import pytest

from conftest import INSIDE, OUTSIDE

VERIFIED = {"X-User-Id": "alice", "X-Email-Verified": "true"}


async def place(client, headers, lat_lng):
    response = await client.post(
        "/api/v1/session/position",
        json={"latitude": lat_lng[0], "longitude": lat_lng[1]},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["status"]


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_endpoint(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["location_count"] == 2
        assert data["active_reports"] == 0


class TestRootEndpoint:
    """Tests for root endpoint."""

    @pytest.mark.asyncio
    async def test_root_endpoint(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "WatchTower API"
        assert "docs" in data


class TestLocationsEndpoints:
    """Tests for location and report endpoints."""

    @pytest.mark.asyncio
    async def test_list_locations(self, client):
        response = await client.get("/api/v1/locations")

        assert response.status_code == 200
        locations = response.json()["locations"]
        assert [loc["id"] for loc in locations] == ["lot-a", "lot-b"]
        assert locations[0]["severity"] == "none"
        assert locations[0]["coordinates"] == {"latitude": 0.2, "longitude": 0.2}

    @pytest.mark.asyncio
    async def test_get_unknown_location(self, client):
        response = await client.get("/api/v1/locations/lot-z")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_report_success(self, client):
        assert await place(client, VERIFIED, INSIDE) == "inside"

        response = await client.post("/api/v1/locations/lot-a/reports", headers=VERIFIED)

        assert response.status_code == 201
        data = response.json()
        assert data["location"]["report_count"] == 1
        assert data["location"]["severity"] == "low"
        assert data["expires_at"] > data["reported_at"]

        location = (await client.get("/api/v1/locations/lot-a")).json()
        assert location["report_count"] == 1

    @pytest.mark.asyncio
    async def test_report_cooldown_is_429(self, client):
        await place(client, VERIFIED, INSIDE)
        await client.post("/api/v1/locations/lot-a/reports", headers=VERIFIED)

        response = await client.post("/api/v1/locations/lot-b/reports", headers=VERIFIED)

        assert response.status_code == 429
        assert response.json()["reason"] == "cooldown_active"

    @pytest.mark.asyncio
    async def test_report_out_of_bounds_is_403(self, client):
        assert await place(client, VERIFIED, OUTSIDE) == "outside"

        response = await client.post("/api/v1/locations/lot-a/reports", headers=VERIFIED)

        assert response.status_code == 403
        assert response.json() == {
            "detail": "Reporting is disabled due to out of bounds location.",
            "reason": "out_of_bounds",
        }

    @pytest.mark.asyncio
    async def test_report_on_behalf(self, client):
        await place(client, VERIFIED, OUTSIDE)

        response = await client.put(
            "/api/v1/session/on-behalf", json={"enabled": True}, headers=VERIFIED
        )
        assert response.json()["reporting_on_behalf"] is True

        response = await client.post("/api/v1/locations/lot-a/reports", headers=VERIFIED)
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_report_unverified_is_403(self, client):
        headers = {"X-User-Id": "carol"}
        await place(client, headers, INSIDE)

        response = await client.post("/api/v1/locations/lot-a/reports", headers=headers)

        assert response.status_code == 403
        assert response.json()["reason"] == "not_eligible"

    @pytest.mark.asyncio
    async def test_report_bypass_claim(self, client):
        headers = {"X-User-Id": "dave", "X-Bypass-Email-Verification": "true"}
        await place(client, headers, INSIDE)

        response = await client.post("/api/v1/locations/lot-a/reports", headers=headers)

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_report_unknown_location_is_404(self, client):
        await place(client, VERIFIED, INSIDE)

        response = await client.post("/api/v1/locations/lot-z/reports", headers=VERIFIED)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_report_requires_identity(self, client):
        response = await client.post("/api/v1/locations/lot-a/reports")

        assert response.status_code == 422


class TestSessionEndpoints:
    """Tests for session and geofence endpoints."""

    @pytest.mark.asyncio
    async def test_session_state(self, client):
        response = await client.get("/api/v1/session", headers=VERIFIED)

        assert response.status_code == 200
        data = response.json()
        assert data == {
            "user_id": "alice",
            "geofence": "unknown",
            "cooldown_active": False,
            "cooldown_started_at": None,
            "reporting_on_behalf": False,
            "can_report": True,
        }

    @pytest.mark.asyncio
    async def test_session_after_report(self, client):
        await place(client, VERIFIED, INSIDE)
        await client.post("/api/v1/locations/lot-a/reports", headers=VERIFIED)

        data = (await client.get("/api/v1/session", headers=VERIFIED)).json()

        assert data["geofence"] == "inside"
        assert data["cooldown_active"] is True
        assert data["cooldown_started_at"] is not None

    @pytest.mark.asyncio
    async def test_position_validation(self, client):
        response = await client.post(
            "/api/v1/session/position",
            json={"latitude": 123.0, "longitude": 0.5},
            headers=VERIFIED,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_geofence(self, client):
        data = (await client.get("/api/v1/geofence")).json()

        assert data["min_lat"] == 0.0
        assert data["center_lng"] == 0.5

    @pytest.mark.asyncio
    async def test_clamp(self, client):
        response = await client.get(
            "/api/v1/geofence/clamp", params={"latitude": 0.3, "longitude": 7.0}
        )

        assert response.status_code == 200
        assert response.json() == {"latitude": 0.3, "longitude": 0.5}
