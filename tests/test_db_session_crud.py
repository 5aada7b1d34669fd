# tests/test_db_session_crud.py

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
import pytest

from app.db import session_crud
from app.models.session import Session

# ====================================
# --- Marcador Global de Teste ---
# ====================================
pytestmark = pytest.mark.asyncio

USER_ID = uuid.uuid4()

@pytest.fixture
def mock_db_connection() -> MagicMock:
    return MagicMock()

@pytest.fixture
def mock_collection(mocker) -> MagicMock:
    collection = MagicMock()
    mocker.patch("app.db.session_crud._get_sessions_collection", return_value=collection)
    return collection

async def test_create_session_stores_expiry_as_datetime(mock_db_connection, mock_collection):
    """`expires_at` precisa ser uma data BSON para o índice TTL funcionar."""
    mock_collection.insert_one = AsyncMock()
    session = Session(user_id=USER_ID, token="refresh.token.valor", device_info="pytest")

    result = await session_crud.create_session(mock_db_connection, session)

    assert result == session
    stored = mock_collection.insert_one.await_args.args[0]
    assert isinstance(stored["expires_at"], datetime)
    assert stored["user_id"] == str(USER_ID)
    assert stored["ip_address"] == "unknown"

async def test_find_active_session_requires_unexpired(mock_db_connection, mock_collection):
    mock_collection.find_one = AsyncMock(return_value={"token": "t"})

    result = await session_crud.find_active_session(mock_db_connection, USER_ID, "t")

    assert result == {"token": "t"}
    query = mock_collection.find_one.await_args.args[0]
    assert query["user_id"] == str(USER_ID)
    assert query["token"] == "t"
    assert isinstance(query["expires_at"]["$gt"], datetime)

@pytest.mark.parametrize("deleted_count, expected", [(1, True), (0, False)])
async def test_delete_session(mock_db_connection, mock_collection, deleted_count, expected):
    mock_collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=deleted_count))

    assert await session_crud.delete_session(mock_db_connection, USER_ID, "t") is expected
    mock_collection.delete_one.assert_awaited_once_with({"user_id": str(USER_ID), "token": "t"})

async def test_delete_user_sessions_returns_count(mock_db_connection, mock_collection):
    mock_collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=3))

    assert await session_crud.delete_user_sessions(mock_db_connection, USER_ID) == 3
    mock_collection.delete_many.assert_awaited_once_with({"user_id": str(USER_ID)})

async def test_create_session_indexes_includes_ttl(mock_db_connection, mock_collection):
    mock_collection.create_index = AsyncMock()

    await session_crud.create_session_indexes(mock_db_connection)

    mock_collection.create_index.assert_any_await("expires_at", expireAfterSeconds=0, name="session_expiry_ttl_idx")
    mock_collection.create_index.assert_any_await("token", unique=True, name="session_token_unique_idx")
