# app/routers/auth.py
"""
Este módulo define as rotas da API relacionadas à autenticação de usuários:
registro, login (por username ou e-mail), renovação do token de acesso,
logout, consulta do perfil autenticado e disponibilidade de username.
"""

# ========================
# --- Importações ---
# ========================
import logging
import re
import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Body, HTTPException, Path, Request, status
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from app.core.dependencies import CurrentUser, DbDep, TokenServiceDep
from app.core.exceptions import MissingSigningKeyError, TokenError
from app.core.security import TokenService, verify_password
from app.db import session_crud, user_crud
from app.models.common import MessageResponse
from app.models.session import Session
from app.models.token import AccessTokenClaims, AccessTokenResponse, LogoutRequest, RefreshTokenRequest
from app.models.user import (USERNAME_PATTERN, AuthResponse, User, UserCreate, UserInDB, UserLogin,
                             UsernameAvailability)

# ========================
# --- Configuração do Router ---
# ========================
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)

# ========================
# --- Funções Auxiliares ---
# ========================
def _access_claims(user: UserInDB) -> AccessTokenClaims:
    return AccessTokenClaims(id=str(user.id), username=user.username, email=user.email, role=user.role.value)

async def _issue_tokens(db, tokens: TokenService, user: UserInDB, request: Request) -> AuthResponse:
    """Emite o par de tokens e registra a sessão do refresh token."""
    access_token = tokens.create_access_token(_access_claims(user))
    refresh_token = tokens.create_refresh_token(user.id)
    await session_crud.create_session(db, Session(
        user_id=user.id,
        token=refresh_token,
        ip_address=request.client.host if request.client else "unknown",
        device_info=request.headers.get("user-agent"),
    ))
    return AuthResponse(user=User.model_validate(user), access_token=access_token, refresh_token=refresh_token)

# ========================
# --- Rotas da API ---
# ========================

# --- Endpoint de Registro ---
@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registra um novo usuário no sistema",
    response_description="Usuário recém-registrado (sem senha) e par de tokens.",
)
async def register_user(
    db: DbDep,
    tokens: TokenServiceDep,
    request: Request,
    user_in: Annotated[UserCreate, Body(description="Dados do novo usuário para registro.")]
):
    """
    Registra um usuário, verificando antes a duplicidade de username e e-mail.
    O usuário já sai autenticado (tokens de acesso e de refresh na resposta).
    """
    if await user_crud.get_user_by_username(db, user_in.username):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"O nome de usuário '{user_in.username}' já existe.",
        )
    if await user_crud.get_user_by_email(db, user_in.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"O endereço de e-mail '{user_in.email}' já está registrado.",
        )

    try:
        created_user = await user_crud.create_user(db=db, user_in=user_in)
    except DuplicateKeyError: # pragma: no cover (corrida entre a checagem e o insert)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Conflito: nome de usuário ou e-mail já existe.",
        )
    if created_user is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível criar o usuário devido a um erro interno no servidor."
        )

    logger.info(f"Novo usuário registrado: {created_user.username}")
    return await _issue_tokens(db, tokens, created_user, request)

# --- Endpoint de Login ---
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Autentica o usuário por username ou e-mail",
    response_description="Dados do usuário e par de tokens.",
)
async def login(
    db: DbDep,
    tokens: TokenServiceDep,
    request: Request,
    credentials: Annotated[UserLogin, Body(description="Identificador (username ou e-mail) e senha.")]
):
    user = await user_crud.get_user_by_identifier(db, credentials.identifier)
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info(f"Falha de login para o identificador '{credentials.identifier}'.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciais inválidas.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await _issue_tokens(db, tokens, user, request)

# --- Endpoint de Refresh ---
@router.post(
    "/refresh-token",
    response_model=AccessTokenResponse,
    summary="Gera um novo token de acesso a partir de um refresh token",
)
async def refresh_access_token(
    db: DbDep,
    tokens: TokenServiceDep,
    payload: Annotated[RefreshTokenRequest, Body()]
):
    """
    O refresh token precisa ser válido, do tipo correto e corresponder a uma
    sessão ainda ativa (não revogada por logout).
    """
    try:
        claims = tokens.verify_refresh_token(payload.refresh_token)
    except MissingSigningKeyError:
        raise
    except TokenError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    try:
        user_id = uuid.UUID(claims.id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")

    session = await session_crud.find_active_session(db, user_id, payload.refresh_token)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token inválido ou expirado")

    user = await user_crud.get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário não encontrado")

    return AccessTokenResponse(access_token=tokens.create_access_token(_access_claims(user)))

# --- Endpoints de Logout ---
@router.post("/logout", response_model=MessageResponse, summary="Encerra a sessão do refresh token informado")
async def logout(
    db: DbDep,
    current_user: CurrentUser,
    payload: Annotated[Optional[LogoutRequest], Body()] = None
):
    if payload and payload.refresh_token:
        await session_crud.delete_session(db, current_user.id, payload.refresh_token)
    return MessageResponse(message="Logout realizado com sucesso")

@router.post("/logout-all", response_model=MessageResponse, summary="Encerra todas as sessões do usuário")
async def logout_all(db: DbDep, current_user: CurrentUser):
    await session_crud.delete_user_sessions(db, current_user.id)
    return MessageResponse(message="Logout realizado em todos os dispositivos")

# --- Endpoint de Perfil ---
@router.get(
    "/profile",
    response_model=User,
    summary="Obtém dados do usuário atualmente autenticado",
    response_description="Dados do usuário autenticado (sem a senha)."
)
async def read_profile(current_user: CurrentUser):
    return User.model_validate(current_user)

# --- Endpoint de Disponibilidade de Username ---
@router.get(
    "/check-username/{username}",
    response_model=UsernameAvailability,
    summary="Verifica se um username está disponível",
)
async def check_username(
    db: DbDep,
    username: Annotated[str, Path(min_length=3, max_length=20)]
):
    clean_username = username.strip().lower()
    if not re.fullmatch(USERNAME_PATTERN, clean_username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="O username só pode conter letras, números e underscore.",
        )
    existing = await user_crud.get_user_by_username(db, clean_username)
    return UsernameAvailability(username=clean_username, available=existing is None)
