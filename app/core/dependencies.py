# app/core/dependencies.py
"""
Define as dependências reutilizáveis para a aplicação FastAPI:
acesso ao banco de dados, serviço de tokens, autenticação do usuário atual,
autorização por papel e parâmetros de paginação.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Annotated, Callable, Optional

from fastapi import Depends, Header, HTTPException, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

# --- Módulos da Aplicação ---
from app.core.exceptions import MissingSigningKeyError, TokenError
from app.core.security import TokenService, extract_bearer_token, token_service
from app.db import user_crud
from app.db.mongodb_utils import get_database
from app.models.common import PaginationParams, SortField, SortOrder
from app.models.user import UserInDB, UserRole

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Dependências Básicas ---
# ========================
def get_token_service() -> TokenService:
    """Retorna o serviço de tokens da aplicação (substituível em testes)."""
    return token_service

DbDep = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

# ========================
# --- Dependência: Usuário Atual ---
# ========================
async def get_current_user(
    db: DbDep,
    tokens: TokenServiceDep,
    authorization: Annotated[Optional[str], Header(description="Bearer <token de acesso>")] = None,
) -> UserInDB:
    """
    Dependência para obter o usuário autenticado a partir do header
    `Authorization: Bearer <token>`.

    Processo:
    1. Extrai o token do header (formato exato `Bearer <token>`).
    2. Verifica o token de acesso; cada tipo de falha gera sua própria mensagem.
    3. Busca o usuário pelo ID contido no token.

    Raises:
        HTTPException: 401 para header ausente/malformado, token expirado,
                       inválido, do tipo errado ou usuário inexistente.
        MissingSigningKeyError: Propagada para o handler global (HTTP 500).
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise _unauthorized("Token de acesso é obrigatório")

    try:
        claims = tokens.verify_access_token(token)
    except MissingSigningKeyError:
        raise
    except TokenError as e:
        raise _unauthorized(e.message)

    try:
        user_id = uuid.UUID(claims.id)
    except ValueError:
        logger.warning(f"Token de acesso com ID de usuário inválido: {claims.id}")
        raise _unauthorized("Token inválido")

    user = await user_crud.get_user_by_id(db=db, user_id=user_id)
    if user is None:
        raise _unauthorized("Usuário não encontrado")
    return user

# ========================
# --- Tipos Anotados para Rotas ---
# ========================
CurrentUser = Annotated[UserInDB, Depends(get_current_user)]

# ========================
# --- Dependência: Autorização por Papel ---
# ========================
def require_roles(*roles: UserRole) -> Callable:
    """
    Cria uma dependência que exige que o usuário autenticado tenha um dos papéis.

    Usuário não autenticado recebe 401 (via `get_current_user`); papel fora da
    lista recebe 403.
    """
    allowed = {UserRole(role) for role in roles}

    async def _check_role(current_user: CurrentUser) -> UserInDB:
        if current_user.role not in allowed:
            logger.warning(
                f"Usuário {current_user.username} (papel '{current_user.role.value}') "
                f"sem permissão; papéis exigidos: {sorted(r.value for r in allowed)}"
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissões insuficientes")
        return current_user

    return _check_role

AdminUser = Annotated[UserInDB, Depends(require_roles(UserRole.SUPER_ADMIN, UserRole.ADMIN))]

# ========================
# --- Dependência: Paginação ---
# ========================
def pagination_dependency(
    default_sort_by: SortField = SortField.CREATED_AT,
    default_sort_order: SortOrder = SortOrder.DESC,
) -> Callable[..., PaginationParams]:
    """
    Cria a dependência de paginação com a ordenação padrão do recurso.
    Valores fora dos limites geram erro de validação (HTTP 400).
    """
    def _pagination(
        page: Annotated[int, Query(ge=1, description="Página (a partir de 1)")] = 1,
        limit: Annotated[int, Query(ge=1, le=100, description="Itens por página")] = 20,
        sort_by: Annotated[SortField, Query(alias="sortBy")] = default_sort_by,
        sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = default_sort_order,
    ) -> PaginationParams:
        return PaginationParams(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    return _pagination
