"""
Health endpoint tests - liveness without dependencies, readiness against the store.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.db.session import get_db
from app.main import app


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app": "Marketplace API"}


@pytest.mark.asyncio
async def test_ready(client: AsyncClient):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


class _BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_ready_reports_unreachable_store(client: AsyncClient):
    async def broken_db():
        yield _BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}
