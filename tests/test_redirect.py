# tests/test_redirect.py
"""
Testes dos redirecionamentos públicos `/s/<code>` e `/p/<code>`, incluindo
o registro do evento de clique.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from unittest.mock import AsyncMock, MagicMock
import pytest
from fastapi import status
from httpx import AsyncClient

from app.models.analytics import AnalyticsEventType
from app.models.link import Link
from app.models.product import Product

# ========================
# --- Marcador Global de Teste ---
# ========================
pytestmark = pytest.mark.asyncio

@pytest.fixture
def mock_record(mocker) -> AsyncMock:
    return mocker.patch("app.routers.redirect.record_request_event", AsyncMock())

async def test_redirect_link(test_async_client: AsyncClient, mocker, mock_record):
    link = Link(user_id=uuid.uuid4(), title="Blog", url="https://blog.example.com/post", short_code="Ab3dE9xZ", click_count=8)
    mock_click = mocker.patch("app.routers.redirect.link_crud.register_link_click", AsyncMock(return_value=link))

    response = await test_async_client.get("/s/Ab3dE9xZ", follow_redirects=False)

    assert response.status_code == status.HTTP_301_MOVED_PERMANENTLY
    assert response.headers["location"] == "https://blog.example.com/post"
    assert mock_click.await_args.args[1] == "Ab3dE9xZ"
    mock_record.assert_awaited_once()
    assert mock_record.await_args.args[2:] == (link.user_id, AnalyticsEventType.LINK_CLICK)
    assert mock_record.await_args.kwargs == {"link_id": link.id}

async def test_redirect_link_not_found(test_async_client: AsyncClient, mocker, mock_record):
    mocker.patch("app.routers.redirect.link_crud.register_link_click", AsyncMock(return_value=None))

    response = await test_async_client.get("/s/naoexiste", follow_redirects=False)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Link não encontrado"
    mock_record.assert_not_called()

async def test_redirect_product(test_async_client: AsyncClient, mocker, mock_record):
    product = Product(user_id=uuid.uuid4(), title="Fone", affiliate_url="https://store.example.com/item/42?ref=abc", short_code="fone4242")
    mocker.patch("app.routers.redirect.product_crud.register_product_click", AsyncMock(return_value=product))

    response = await test_async_client.get("/p/fone4242", follow_redirects=False)

    assert response.status_code == status.HTTP_301_MOVED_PERMANENTLY
    assert response.headers["location"] == "https://store.example.com/item/42?ref=abc"
    assert mock_record.await_args.args[2:] == (product.user_id, AnalyticsEventType.PRODUCT_CLICK)
    assert mock_record.await_args.kwargs == {"product_id": product.id}

async def test_redirect_product_not_found(test_async_client: AsyncClient, mocker, mock_record):
    mocker.patch("app.routers.redirect.product_crud.register_product_click", AsyncMock(return_value=None))

    response = await test_async_client.get("/p/fone4242", follow_redirects=False)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Produto não encontrado"
    mock_record.assert_not_called()

async def test_redirect_records_visitor_data(test_async_client: AsyncClient, mocker):
    """Sem substituir o registro: o evento gravado leva IP, navegador e referer."""
    link = Link(user_id=uuid.uuid4(), title="Blog", url="https://blog.example.com/post", short_code="Ab3dE9xZ")
    mocker.patch("app.routers.redirect.link_crud.register_link_click", AsyncMock(return_value=link))
    analytics_collection = MagicMock()
    analytics_collection.insert_one = AsyncMock()
    mocker.patch("app.db.analytics_crud._get_analytics_collection", return_value=analytics_collection)
    headers = {
        "User-Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Version/17.0 Mobile Safari/604.1",
        "Referer": "https://instagram.com/",
        "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
    }

    response = await test_async_client.get("/s/Ab3dE9xZ", headers=headers, follow_redirects=False)

    assert response.status_code == status.HTTP_301_MOVED_PERMANENTLY
    stored = analytics_collection.insert_one.await_args.args[0]
    assert stored["type"] == "link_click"
    assert stored["link_id"] == str(link.id)
    assert stored["user_id"] == str(link.user_id)
    assert stored["ip_address"] == "203.0.113.7"
    assert stored["device"] == "mobile"
    assert stored["browser"] == "Safari"
    assert stored["referer"] == "https://instagram.com/"

@pytest.mark.parametrize("path", ["/s/abc", "/s/" + "a" * 21, "/p/c%C3%B3digo1"])
async def test_redirect_rejects_malformed_codes(test_async_client: AsyncClient, mocker, path):
    mock_link_click = mocker.patch("app.routers.redirect.link_crud.register_link_click", AsyncMock())
    mock_product_click = mocker.patch("app.routers.redirect.product_crud.register_product_click", AsyncMock())

    response = await test_async_client.get(path, follow_redirects=False)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    mock_link_click.assert_not_called()
    mock_product_click.assert_not_called()
