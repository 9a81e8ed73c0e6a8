"""
Quillpost Backend — Health Check Tests
"""

import pytest

from app import __version__
from app.exceptions import DatabaseConnectionError


class TestHealthCheck:

    @pytest.mark.asyncio
    async def test_healthy_when_store_reachable(self, test_client, stub_manager):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"] == __version__
        assert stub_manager.calls == 1

    @pytest.mark.asyncio
    async def test_unhealthy_when_store_unreachable(self, test_client, stub_manager):
        stub_manager.error = DatabaseConnectionError(message="connection refused")

        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"
