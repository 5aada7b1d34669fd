# tests/test_health.py

# ========================
# --- Importações ---
# ========================
import pytest
from httpx import AsyncClient
from fastapi import status
from unittest.mock import AsyncMock

from app.core.config import settings

# ========================
# --- Testes para health check ---
# ========================
@pytest.mark.asyncio
async def test_health_check_success(test_async_client: AsyncClient, monkeypatch):
    """
    Deve retornar 200 quando o MongoDB responder ao ping.
    """
    # --- Arrange ---
    monkeypatch.setattr("app.routers.health.check_mongo_connection", AsyncMock(return_value=True))

    # --- Act ---
    response = await test_async_client.get("/health")

    # --- Assert ---
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok", "database": "connected", "service": settings.PROJECT_NAME}


@pytest.mark.asyncio
async def test_health_check_mongo_failure(test_async_client: AsyncClient, monkeypatch):
    """
    Deve retornar 503 quando MongoDB estiver indisponível.
    """
    # --- Arrange ---
    monkeypatch.setattr("app.routers.health.check_mongo_connection", AsyncMock(return_value=False))

    # --- Act ---
    response = await test_async_client.get("/health")

    # --- Assert ---
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    body = response.json()
    assert body["status"] == "error"
    assert body["database"] == "unavailable"
    assert body["message"] == "MongoDB não está disponível"
