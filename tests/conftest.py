# tests/conftest.py
# Inibir warnings de depreciação de bibliotecas
import warnings
warnings.filterwarnings("ignore", category=DeprecationWarning, module="passlib")

# ========================
# --- Configuração .env.test ---
# ========================
from dotenv import load_dotenv
import os
load_dotenv(dotenv_path='.env.test')
os.environ.setdefault("JWT_SECRET_KEY", "chave-secreta-apenas-para-testes")
os.environ.setdefault("DATABASE_NAME", "linkbio_test_db")

"""
Este módulo define fixtures do Pytest compartilhadas entre os arquivos de
teste da LinkBio API.

Fixtures incluem:
- Um banco de dados simulado (`mock_db`) injetado via `dependency_overrides`,
  de modo que nenhum teste depende de um MongoDB real.
- Cliente HTTP assíncrono (`test_async_client`) para interagir com a API FastAPI.
- Usuários de exemplo (comum e administrador) no formato `UserInDB`.
- Fábrica de cabeçalhos de autenticação que emite um token de acesso real e
  faz `get_current_user` encontrar o usuário informado.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, Dict
from unittest.mock import AsyncMock, MagicMock
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# --- Módulos da Aplicação ---
from app.core.config import settings
from app.core.dependencies import get_token_service
from app.core.security import TokenService, get_password_hash
from app.db.mongodb_utils import get_database
from app.main import app as fastapi_app
from app.models.token import AccessTokenClaims
from app.models.user import SocialLinks, UserInDB, UserRole

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)

TEST_PASSWORD = "senha_de_teste_123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)

# ========================
# --- Banco Simulado e Serviço de Tokens ---
# ========================
@pytest.fixture
def mock_db() -> MagicMock:
    """Banco de dados simulado; as funções CRUD são sempre substituídas nos testes de rota."""
    return MagicMock(name="mock_db")

@pytest.fixture
def test_token_service() -> TokenService:
    """Serviço de tokens ligado às configurações de teste."""
    return TokenService(settings)

# ========================
# --- Fixture Principal: Cliente de Teste HTTP ---
# ========================
@pytest_asyncio.fixture(scope="function")
async def test_async_client(mock_db: MagicMock, test_token_service: TokenService) -> AsyncGenerator[AsyncClient, None]:
    """
    Fornece um `AsyncClient` ligado à aplicação via `ASGITransport`.

    O `ASGITransport` não executa o lifespan, portanto nenhuma conexão com o
    MongoDB é aberta: `get_database` é substituída pelo `mock_db`.
    """
    fastapi_app.dependency_overrides[get_database] = lambda: mock_db
    fastapi_app.dependency_overrides[get_token_service] = lambda: test_token_service
    logger.debug("Fixture 'test_async_client': overrides de dependências instalados.")

    transport = ASGITransport(app=fastapi_app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        fastapi_app.dependency_overrides.clear()
        logger.debug("Fixture 'test_async_client': overrides removidos.")

# ========================
# --- Usuários de Exemplo ---
# ========================
@pytest.fixture
def test_user() -> UserInDB:
    """Usuário comum, dono dos links, produtos e tema nos testes de rota."""
    return UserInDB(
        id=uuid.uuid4(),
        username="testuser",
        email="testuser@example.com",
        hashed_password=TEST_PASSWORD_HASH,
        first_name="Test",
        last_name="User",
        bio="Bio de teste",
        social_links=SocialLinks(instagram="https://instagram.com/testuser"),
        created_at=datetime.now(timezone.utc).replace(microsecond=0),
    )

@pytest.fixture
def admin_user() -> UserInDB:
    """Usuário com papel de administrador."""
    return UserInDB(
        id=uuid.uuid4(),
        username="adminuser",
        email="admin@example.com",
        hashed_password=TEST_PASSWORD_HASH,
        role=UserRole.ADMIN,
        created_at=datetime.now(timezone.utc).replace(microsecond=0),
    )

# ========================
# --- Autenticação ---
# ========================
def build_access_token(tokens: TokenService, user: UserInDB) -> str:
    return tokens.create_access_token(
        AccessTokenClaims(id=str(user.id), username=user.username, email=user.email, role=user.role.value)
    )

@pytest.fixture
def make_auth_headers(mocker, test_token_service: TokenService) -> Callable[[UserInDB], Dict[str, str]]:
    """
    Retorna uma função que autentica o usuário informado: emite um token de
    acesso para ele e faz `user_crud.get_user_by_id` devolvê-lo.
    """
    def _make(user: UserInDB) -> Dict[str, str]:
        mocker.patch("app.core.dependencies.user_crud.get_user_by_id", AsyncMock(return_value=user))
        return {"Authorization": f"Bearer {build_access_token(test_token_service, user)}"}

    return _make

@pytest.fixture
def auth_headers(make_auth_headers, test_user: UserInDB) -> Dict[str, str]:
    """Cabeçalhos de autenticação para o `test_user`."""
    return make_auth_headers(test_user)

@pytest.fixture
def admin_auth_headers(make_auth_headers, admin_user: UserInDB) -> Dict[str, str]:
    """Cabeçalhos de autenticação para o `admin_user`."""
    return make_auth_headers(admin_user)
