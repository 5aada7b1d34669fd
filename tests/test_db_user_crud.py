# tests/test_db_user_crud.py

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timezone
import pytest # type: ignore
from unittest.mock import AsyncMock, MagicMock
from pydantic import ValidationError
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from app.core.security import verify_password
from app.db import user_crud
from app.models.common import PaginationParams
from app.models.user import SocialLinks, UserCreate, UserInDB, UserProfileUpdate, UserRole

# ====================================
# --- Marcador Global de Teste ---
# ====================================
pytestmark = pytest.mark.asyncio

# ============================
# --- Fixture Auxiliar ---
# ============================
@pytest.fixture
def mock_db_connection() -> AsyncMock:
    """Fornece um mock genérico para a conexão DB."""
    return AsyncMock()

@pytest.fixture
def sample_user_create() -> UserCreate:
    """Fornece um objeto UserCreate válido para testes."""
    return UserCreate(
        email="Test@Example.com",
        username="TestUser",
        password="validpassword123",
        first_name="Test",
        last_name="User"
    )

@pytest.fixture
def sample_user_in_db() -> UserInDB:
    """Fornece um objeto UserInDB válido para testes."""
    return UserInDB(
        id=uuid.uuid4(),
        username="sampleuserindb",
        email="sampleindb@example.com",
        hashed_password="hashed_sample_password",
        first_name="Sample",
        created_at=datetime.now(timezone.utc).replace(microsecond=0),
        updated_at=None
    )

@pytest.fixture
def mock_collection(mocker) -> MagicMock:
    collection = MagicMock()
    mocker.patch("app.db.user_crud._get_users_collection", return_value=collection)
    return collection

def _stored(user: UserInDB) -> dict:
    doc = user.model_dump(mode="json")
    doc["_id"] = "mock_mongo_id"
    return doc

# =======================================
# --- Testes para user_crud.get_user_by_id ---
# =======================================
async def test_get_user_by_id_success(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    """Testa busca de usuário por ID com sucesso."""
    # --- Arrange ---
    mock_collection.find_one = AsyncMock(return_value=_stored(sample_user_in_db))

    # --- Act ---
    result = await user_crud.get_user_by_id(db=mock_db_connection, user_id=sample_user_in_db.id)

    # --- Assert ---
    assert result == sample_user_in_db
    mock_collection.find_one.assert_awaited_once_with({"id": str(sample_user_in_db.id)})

async def test_get_user_by_id_not_found(mock_db_connection, mock_collection): # type: ignore
    """Testa busca de usuário por ID quando não encontrado."""
    mock_collection.find_one = AsyncMock(return_value=None)

    result = await user_crud.get_user_by_id(db=mock_db_connection, user_id=uuid.uuid4())

    assert result is None

async def test_get_user_by_id_validation_error(mocker, mock_db_connection, mock_collection): # type: ignore
    """Testa falha de validação Pydantic ao buscar usuário por ID."""
    # --- Arrange ---
    test_user_id = uuid.uuid4()
    mock_collection.find_one = AsyncMock(return_value={"_id": "mongo_id", "id": str(test_user_id), "campo_errado": True})
    simulated_error = ValidationError.from_exception_data(title='UserInDB', line_errors=[])
    mock_validate = mocker.patch("app.db.user_crud.UserInDB.model_validate", side_effect=simulated_error)
    mock_logger_error = mocker.patch("app.db.user_crud.logger.error")

    # --- Act ---
    result = await user_crud.get_user_by_id(db=mock_db_connection, user_id=test_user_id)

    # --- Assert ---
    assert result is None
    mock_validate.assert_called_once_with({"id": str(test_user_id), "campo_errado": True})
    mock_logger_error.assert_called_once()
    assert f"DB Validation error get_user_by_id {test_user_id}" in mock_logger_error.call_args[0][0]

# ===========================================
# --- Testes de busca por username / e-mail / identificador ---
# ===========================================
async def test_get_user_by_username_is_case_insensitive(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    mock_collection.find_one = AsyncMock(return_value=_stored(sample_user_in_db))

    result = await user_crud.get_user_by_username(db=mock_db_connection, username="SampleUserInDB")

    assert result == sample_user_in_db
    mock_collection.find_one.assert_awaited_once_with({"username": "sampleuserindb"})

async def test_get_user_by_email_lowercases(mock_db_connection, mock_collection): # type: ignore
    mock_collection.find_one = AsyncMock(return_value=None)

    await user_crud.get_user_by_email(db=mock_db_connection, email="SOMEONE@Example.com")

    mock_collection.find_one.assert_awaited_once_with({"email": "someone@example.com"})

async def test_get_user_by_identifier_matches_username_or_email(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    """O login aceita username OU e-mail com a mesma consulta."""
    mock_collection.find_one = AsyncMock(return_value=_stored(sample_user_in_db))

    result = await user_crud.get_user_by_identifier(db=mock_db_connection, identifier=" SampleInDB@example.com ")

    assert result == sample_user_in_db
    mock_collection.find_one.assert_awaited_once_with(
        {"$or": [{"username": "sampleindb@example.com"}, {"email": "sampleindb@example.com"}]}
    )

async def test_list_users_paginates(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.__aiter__.return_value = [_stored(sample_user_in_db)]
    mock_collection.find.return_value = cursor
    mock_collection.count_documents = AsyncMock(return_value=1)

    users, total = await user_crud.list_users(mock_db_connection, PaginationParams(page=3, limit=5))

    assert users == [sample_user_in_db]
    assert total == 1
    cursor.sort.assert_called_once_with("created_at", DESCENDING)
    cursor.skip.assert_called_once_with(10)
    cursor.limit.assert_called_once_with(5)

# =======================================
# --- Testes para user_crud.create_user ---
# =======================================
async def test_create_user_success(mock_db_connection, mock_collection, sample_user_create): # type: ignore
    """Usuário criado com senha hasheada, dados normalizados e valores padrão."""
    # --- Arrange ---
    mock_collection.insert_one = AsyncMock(return_value=MagicMock(acknowledged=True))

    # --- Act ---
    created = await user_crud.create_user(db=mock_db_connection, user_in=sample_user_create)

    # --- Assert ---
    assert created is not None
    assert created.username == "testuser"
    assert created.email == "test@example.com"
    assert created.role == UserRole.USER
    assert created.is_email_verified is False
    assert created.social_links == SocialLinks()
    assert verify_password("validpassword123", created.hashed_password)
    stored = mock_collection.insert_one.await_args.args[0]
    assert stored["id"] == str(created.id)
    assert "password" not in stored

async def test_create_user_duplicate_key_propagates(mock_db_connection, mock_collection, sample_user_create, mocker): # type: ignore
    mock_collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("E11000 duplicate key"))
    mock_logger_warning = mocker.patch("app.db.user_crud.logger.warning")

    with pytest.raises(DuplicateKeyError):
        await user_crud.create_user(db=mock_db_connection, user_in=sample_user_create)

    mock_logger_warning.assert_called_once()

# =======================================
# --- Testes de atualização ---
# =======================================
async def test_update_user_profile_sets_only_sent_fields(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    updated = sample_user_in_db.model_copy(update={"bio": "Nova bio"})
    mock_collection.find_one_and_update = AsyncMock(return_value=_stored(updated))

    result = await user_crud.update_user_profile(
        mock_db_connection, sample_user_in_db.id, UserProfileUpdate(bio="Nova bio")
    )

    assert result.bio == "Nova bio"
    query, update = mock_collection.find_one_and_update.await_args.args
    assert query == {"id": str(sample_user_in_db.id)}
    assert set(update["$set"]) == {"bio", "updated_at"}

async def test_update_user_profile_ignores_null_social_links(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    mock_collection.find_one_and_update = AsyncMock(return_value=_stored(sample_user_in_db))
    profile_update = UserProfileUpdate.model_validate({"socialLinks": None, "bio": None})

    await user_crud.update_user_profile(mock_db_connection, sample_user_in_db.id, profile_update)

    update = mock_collection.find_one_and_update.await_args.args[1]
    assert set(update["$set"]) == {"bio", "updated_at"}
    assert update["$set"]["bio"] is None

async def test_update_user_profile_not_found(mock_db_connection, mock_collection): # type: ignore
    mock_collection.find_one_and_update = AsyncMock(return_value=None)
    result = await user_crud.update_user_profile(mock_db_connection, uuid.uuid4(), UserProfileUpdate(bio="x"))
    assert result is None

async def test_update_user_password_stores_new_hash(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    mock_collection.find_one_and_update = AsyncMock(return_value=_stored(sample_user_in_db))

    assert await user_crud.update_user_password(mock_db_connection, sample_user_in_db.id, "nova_senha_123") is True
    new_hash = mock_collection.find_one_and_update.await_args.args[1]["$set"]["hashed_password"]
    assert verify_password("nova_senha_123", new_hash)

async def test_update_user_role(mock_db_connection, mock_collection, sample_user_in_db): # type: ignore
    promoted = sample_user_in_db.model_copy(update={"role": UserRole.MANAGER})
    mock_collection.find_one_and_update = AsyncMock(return_value=_stored(promoted))

    result = await user_crud.update_user_role(mock_db_connection, sample_user_in_db.id, UserRole.MANAGER)

    assert result.role == UserRole.MANAGER
    assert mock_collection.find_one_and_update.await_args.args[1]["$set"]["role"] == "manager"

# =======================================
# --- Testes para create_user_indexes ---
# =======================================
async def test_create_user_indexes(mock_db_connection, mock_collection): # type: ignore
    mock_collection.create_index = AsyncMock()

    await user_crud.create_user_indexes(mock_db_connection)

    assert mock_collection.create_index.await_count == 3
    mock_collection.create_index.assert_any_await("username", unique=True, name="username_unique_idx")
    mock_collection.create_index.assert_any_await("email", unique=True, name="email_unique_idx")

async def test_create_user_indexes_logs_failure(mock_db_connection, mock_collection, mocker): # type: ignore
    mock_collection.create_index = AsyncMock(side_effect=Exception("falha"))
    mock_logger_error = mocker.patch("app.db.user_crud.logger.error")

    await user_crud.create_user_indexes(mock_db_connection)

    mock_logger_error.assert_called_once()
