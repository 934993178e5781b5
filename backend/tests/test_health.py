"""
Tests for the /health database probe.
"""
import pytest
from fastapi import status

from services import catalog_service


@pytest.mark.api
@pytest.mark.asyncio
async def test_health_ok(client, products):
    resp = await client.get("/health")

    assert resp.status_code == status.HTTP_200_OK
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["database_connected"] is True
    assert data["product_count"] == 3


@pytest.mark.api
@pytest.mark.asyncio
async def test_health_db_down(client, monkeypatch):
    async def broken_count(db):
        raise ConnectionError("database unavailable")

    monkeypatch.setattr(catalog_service, "count_products", broken_count)

    resp = await client.get("/health")

    assert resp.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert resp.json()["database_connected"] is False
