# tests/test_collections.py
"""
Testes das rotas de coleções de produtos (`/api/v1/collections`): criação com
verificação de posse dos produtos, listagem, reordenação, atualização com
troca da lista de produtos, remoção e inclusão/remoção individual.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from unittest.mock import AsyncMock
import pytest
from fastapi import status
from httpx import AsyncClient

from app.core.config import settings
from app.models.collection import ProductCollection
from app.models.common import SortField, SortOrder
from app.models.product import Product

# ========================
# --- Marcador Global de Teste ---
# ========================
pytestmark = pytest.mark.asyncio

COLLECTIONS_URL = f"{settings.API_V1_STR}/collections"
PRODUCT_A = uuid.uuid4()
PRODUCT_B = uuid.uuid4()

# ========================
# --- Fixtures Auxiliares ---
# ========================
@pytest.fixture
def sample_collection(test_user) -> ProductCollection:
    return ProductCollection(user_id=test_user.id, title="Favoritos", products=[PRODUCT_A], order=1)

@pytest.fixture
def product_mocks(mocker):
    return {
        "count": mocker.patch("app.routers.collections.product_crud.count_owned_products", AsyncMock(return_value=0)),
        "set": mocker.patch("app.routers.collections.product_crud.set_products_collection", AsyncMock(return_value=0)),
        "detach": mocker.patch("app.routers.collections.product_crud.detach_products_from_collection", AsyncMock(return_value=0)),
        "get": mocker.patch("app.routers.collections.product_crud.get_product_by_id", AsyncMock(return_value=None)),
    }

def _product(user_id: uuid.UUID, product_id: uuid.UUID) -> Product:
    return Product(id=product_id, user_id=user_id, title="Caneca", affiliate_url="https://loja.example.com/c", short_code="caneca01")

# ========================
# --- Criação ---
# ========================
async def test_create_collection_links_products(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, test_user):
    product_mocks["count"].return_value = 2
    mocker.patch("app.routers.collections.collection_crud.get_next_order", AsyncMock(return_value=3))
    mock_create = mocker.patch(
        "app.routers.collections.collection_crud.create_collection",
        AsyncMock(side_effect=lambda db, product_collection: product_collection),
    )
    payload = {"title": "Setup", "products": [str(PRODUCT_A), str(PRODUCT_B), str(PRODUCT_A)]}

    response = await test_async_client.post(f"{COLLECTIONS_URL}/", json=payload, headers=auth_headers)

    assert response.status_code == status.HTTP_201_CREATED, response.text
    body = response.json()
    assert body["title"] == "Setup"
    assert body["order"] == 3
    assert body["productCount"] == 2
    assert body["products"] == [str(PRODUCT_A), str(PRODUCT_B)]
    assert body["userId"] == str(test_user.id)
    created = mock_create.await_args.args[1]
    product_mocks["set"].assert_awaited_once()
    assert product_mocks["set"].await_args.args[2:] == ([PRODUCT_A, PRODUCT_B], created.id)

async def test_create_collection_with_foreign_product_is_rejected(test_async_client: AsyncClient, auth_headers, mocker, product_mocks):
    product_mocks["count"].return_value = 1
    mock_create = mocker.patch("app.routers.collections.collection_crud.create_collection", AsyncMock())

    response = await test_async_client.post(
        f"{COLLECTIONS_URL}/", json={"title": "Setup", "products": [str(PRODUCT_A), str(PRODUCT_B)]}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Alguns produtos não existem ou não pertencem a você"
    mock_create.assert_not_called()

async def test_create_collection_without_title_is_invalid(test_async_client: AsyncClient, auth_headers):
    response = await test_async_client.post(f"{COLLECTIONS_URL}/", json={"description": "x"}, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["success"] is False

async def test_create_collection_requires_auth(test_async_client: AsyncClient):
    response = await test_async_client.post(f"{COLLECTIONS_URL}/", json={"title": "Setup"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

# ========================
# --- Leitura ---
# ========================
async def test_list_collections_defaults_to_order_ascending(test_async_client: AsyncClient, auth_headers, mocker, sample_collection):
    mock_list = mocker.patch(
        "app.routers.collections.collection_crud.list_collections", AsyncMock(return_value=([sample_collection], 1))
    )

    response = await test_async_client.get(f"{COLLECTIONS_URL}/", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["collections"][0]["title"] == "Favoritos"
    assert body["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}
    params = mock_list.await_args.args[2]
    assert params.sort_by == SortField.ORDER
    assert params.sort_order == SortOrder.ASC

async def test_get_collection_not_found(test_async_client: AsyncClient, auth_headers, mocker):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=None))
    response = await test_async_client.get(f"{COLLECTIONS_URL}/{uuid.uuid4()}", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Coleção não encontrada"

# ========================
# --- Reordenação ---
# ========================
async def test_reorder_collections_is_not_captured_by_id_route(test_async_client: AsyncClient, auth_headers, mocker, test_user):
    mock_reorder = mocker.patch("app.routers.collections.collection_crud.reorder_collections", AsyncMock(return_value=2))
    first, second = uuid.uuid4(), uuid.uuid4()
    payload = {"collectionOrders": [{"id": str(first), "order": 2}, {"id": str(second), "order": 1}]}

    response = await test_async_client.put(f"{COLLECTIONS_URL}/reorder", json=payload, headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK, response.text
    assert response.json()["success"] is True
    assert mock_reorder.await_args.args[1] == test_user.id
    assert [(item.id, item.order) for item in mock_reorder.await_args.args[2]] == [(first, 2), (second, 1)]

# ========================
# --- Atualização / Remoção ---
# ========================
async def test_update_collection_replaces_products(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, sample_collection):
    product_mocks["count"].return_value = 1
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=sample_collection))
    updated = sample_collection.model_copy(update={"products": [PRODUCT_B]})
    mocker.patch("app.routers.collections.collection_crud.update_collection", AsyncMock(return_value=updated))

    response = await test_async_client.put(
        f"{COLLECTIONS_URL}/{sample_collection.id}", json={"products": [str(PRODUCT_B)]}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK, response.text
    assert response.json()["productCount"] == 1
    assert product_mocks["detach"].await_args.args[2:] == (sample_collection.id, [PRODUCT_A])
    assert product_mocks["set"].await_args.args[2:] == ([PRODUCT_B], sample_collection.id)

async def test_update_collection_without_products_keeps_links(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, sample_collection):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=sample_collection))
    mock_update = mocker.patch(
        "app.routers.collections.collection_crud.update_collection",
        AsyncMock(return_value=sample_collection.model_copy(update={"title": "Nova"})),
    )

    response = await test_async_client.put(
        f"{COLLECTIONS_URL}/{sample_collection.id}", json={"title": "Nova", "isActive": None}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Nova"
    assert mock_update.await_args.args[3].model_dump(exclude_unset=True) == {"title": "Nova", "is_active": None}
    product_mocks["count"].assert_not_called()
    product_mocks["detach"].assert_not_called()
    product_mocks["set"].assert_not_called()

async def test_update_collection_not_found(test_async_client: AsyncClient, auth_headers, mocker, product_mocks):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=None))
    response = await test_async_client.put(f"{COLLECTIONS_URL}/{uuid.uuid4()}", json={"title": "X"}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND

async def test_delete_collection_detaches_products(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, sample_collection):
    mocker.patch("app.routers.collections.collection_crud.delete_collection", AsyncMock(return_value=sample_collection))

    response = await test_async_client.delete(f"{COLLECTIONS_URL}/{sample_collection.id}", headers=auth_headers)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert product_mocks["detach"].await_args.args[2:] == (sample_collection.id,)

async def test_delete_collection_not_found(test_async_client: AsyncClient, auth_headers, mocker, product_mocks):
    mocker.patch("app.routers.collections.collection_crud.delete_collection", AsyncMock(return_value=None))
    response = await test_async_client.delete(f"{COLLECTIONS_URL}/{uuid.uuid4()}", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    product_mocks["detach"].assert_not_called()

# ========================
# --- Produtos da Coleção ---
# ========================
async def test_add_product_to_collection(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, sample_collection, test_user):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=sample_collection))
    product_mocks["get"].return_value = _product(test_user.id, PRODUCT_B)
    updated = sample_collection.model_copy(update={"products": [PRODUCT_A, PRODUCT_B]})
    mock_add = mocker.patch("app.routers.collections.collection_crud.add_product", AsyncMock(return_value=updated))

    response = await test_async_client.put(
        f"{COLLECTIONS_URL}/{sample_collection.id}/products", json={"productId": str(PRODUCT_B)}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK, response.text
    assert response.json()["productCount"] == 2
    assert mock_add.await_args.args[3] == PRODUCT_B
    assert product_mocks["set"].await_args.args[2:] == ([PRODUCT_B], sample_collection.id)

async def test_add_product_already_in_collection(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, sample_collection, test_user):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=sample_collection))
    product_mocks["get"].return_value = _product(test_user.id, PRODUCT_A)
    mock_add = mocker.patch("app.routers.collections.collection_crud.add_product", AsyncMock())

    response = await test_async_client.put(
        f"{COLLECTIONS_URL}/{sample_collection.id}/products", json={"productId": str(PRODUCT_A)}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "O produto já está na coleção"
    mock_add.assert_not_called()

async def test_add_unknown_product_to_collection(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, sample_collection):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=sample_collection))

    response = await test_async_client.put(
        f"{COLLECTIONS_URL}/{sample_collection.id}/products", json={"productId": str(PRODUCT_B)}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Produto não encontrado"

async def test_add_product_to_unknown_collection(test_async_client: AsyncClient, auth_headers, mocker, product_mocks):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=None))

    response = await test_async_client.put(
        f"{COLLECTIONS_URL}/{uuid.uuid4()}/products", json={"productId": str(PRODUCT_B)}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Coleção não encontrada"
    product_mocks["get"].assert_not_called()

async def test_remove_product_from_collection(test_async_client: AsyncClient, auth_headers, mocker, product_mocks, sample_collection, test_user):
    mocker.patch("app.routers.collections.collection_crud.get_collection_by_id", AsyncMock(return_value=sample_collection))
    product_mocks["get"].return_value = _product(test_user.id, PRODUCT_A)
    mocker.patch(
        "app.routers.collections.collection_crud.remove_product",
        AsyncMock(return_value=sample_collection.model_copy(update={"products": []})),
    )

    response = await test_async_client.delete(
        f"{COLLECTIONS_URL}/{sample_collection.id}/products/{PRODUCT_A}", headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK, response.text
    assert response.json()["productCount"] == 0
    assert product_mocks["detach"].await_args.args[2:] == (sample_collection.id, [PRODUCT_A])
