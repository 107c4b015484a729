"""
StreetPaws Backend — Middleware & Health Tests
================================================

What we test:
    ✅ Rate limiting: 429 envelope (with requestId) + Retry-After once the window is full
    ✅ Excluded paths are never limited
    ✅ Request IDs: generated, or echoed from X-Request-ID
    ✅ /health reports database status and connection count
"""

import pytest
import pytest_asyncio

from streetpaws.config import settings
from streetpaws.database import dispose_engine


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_requests_over_the_limit_are_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 3)

        statuses = [(await client.get("/api/auth/me")).status_code for _ in range(3)]
        limited = await client.get("/api/auth/me")

        assert statuses == [401, 401, 401]
        assert limited.status_code == 429
        body = limited.json()
        assert body["success"] is False
        assert body["error"] == "rate_limit_exceeded"
        retry_after = int(limited.headers["Retry-After"])
        assert 1 <= retry_after <= settings.rate_limit_window + 1
        assert body["details"]["retryAfter"] == retry_after

    @pytest.mark.asyncio
    async def test_docs_are_not_limited(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 1)

        await client.get("/api/auth/me")
        responses = [await client.get("/openapi.json") for _ in range(3)]

        assert all(r.status_code == 200 for r in responses)
        assert (await client.get("/api/auth/me")).status_code == 429


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_request_id(self, client):
        response = await client.get("/api/auth/me")

        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 8
        assert response.json()["requestId"] == request_id

    @pytest.mark.asyncio
    async def test_incoming_request_id_is_echoed(self, client):
        response = await client.get("/api/auth/me", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["requestId"] == "trace-123"


class TestHealth:

    @pytest_asyncio.fixture(autouse=True)
    async def release_engine(self):
        yield
        await dispose_engine()

    @pytest.mark.asyncio
    async def test_health_reports_connected_database(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["realtimeConnections"] >= 0
        assert data["uptimeSeconds"] >= 0


class TestRateLimitEnvelope:

    @pytest.mark.asyncio
    async def test_rejection_carries_request_id(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 1)

        await client.get("/api/auth/me")
        limited = await client.get("/api/auth/me", headers={"X-Request-ID": "burst-7"})

        assert limited.status_code == 429
        assert limited.headers["X-Request-ID"] == "burst-7"
        assert limited.json() == {
            "success": False,
            "error": "rate_limit_exceeded",
            "message": "Too many requests from this IP, please try again later.",
            "requestId": "burst-7",
            "details": {"retryAfter": int(limited.headers["Retry-After"])},
        }
