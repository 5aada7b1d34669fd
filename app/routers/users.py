# app/routers/users.py
"""
Rotas de gerenciamento de usuários: atualização de perfil e senha,
estatísticas do painel, administração de usuários/papéis e o perfil
público consumido pela página `/<username>`.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Request, status

# --- Módulos da Aplicação ---
from app.core.dependencies import AdminUser, CurrentUser, DbDep, pagination_dependency
from app.core.security import verify_password
from app.db import analytics_crud, collection_crud, link_crud, product_crud, theme_crud, user_crud
from app.models.analytics import AnalyticsEventType, AnalyticsPeriod
from app.models.common import MessageResponse, PaginationMeta, PaginationParams
from app.models.profile import DashboardStats, PublicProfile
from app.models.theme import ThemeSettings
from app.models.user import (ChangePasswordRequest, PublicUser, RoleUpdate, User, UserListResponse,
                             UserProfileUpdate, UserRole)
from app.services.analytics import record_request_event

# ========================
# --- Configuração do Router ---
# ========================
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)

UserPagination = Annotated[PaginationParams, Depends(pagination_dependency())]
CLICK_EVENTS = [AnalyticsEventType.LINK_CLICK, AnalyticsEventType.PRODUCT_CLICK]

# ========================
# --- Rotas do Próprio Usuário ---
# ========================
@router.put("/profile", response_model=User, summary="Atualiza o perfil do usuário autenticado")
async def update_profile(
    db: DbDep,
    current_user: CurrentUser,
    profile_update: Annotated[UserProfileUpdate, Body(description="Campos do perfil a serem atualizados.")]
):
    updated_user = await user_crud.update_user_profile(db, current_user.id, profile_update)
    if updated_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    return User.model_validate(updated_user)

@router.put("/change-password", response_model=MessageResponse, summary="Altera a senha do usuário autenticado")
async def change_password(
    db: DbDep,
    current_user: CurrentUser,
    payload: Annotated[ChangePasswordRequest, Body()]
):
    """A senha atual precisa ser confirmada antes da troca."""
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A senha atual está incorreta")
    if not await user_crud.update_user_password(db, current_user.id, payload.new_password):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    logger.info(f"Senha alterada para o usuário {current_user.username}.")
    return MessageResponse(message="Senha alterada com sucesso")

@router.get("/dashboard/stats", response_model=DashboardStats, summary="Estatísticas do painel do usuário")
async def dashboard_stats(db: DbDep, current_user: CurrentUser):
    link_clicks = await link_crud.sum_link_clicks(db, current_user.id)
    product_clicks = await product_crud.sum_product_clicks(db, current_user.id)
    last_week = AnalyticsPeriod.SEVEN_DAYS.start_date()
    return DashboardStats(
        total_links=await link_crud.count_links(db, current_user.id),
        active_links=await link_crud.count_links(db, current_user.id, active_only=True),
        total_products=await product_crud.count_products(db, current_user.id),
        active_products=await product_crud.count_products(db, current_user.id, active_only=True),
        link_clicks=link_clicks,
        product_clicks=product_clicks,
        total_clicks=link_clicks + product_clicks,
        total_collections=await collection_crud.count_collections(db, current_user.id),
        profile_views=await analytics_crud.count_events(db, current_user.id, [AnalyticsEventType.PROFILE_VIEW]),
        recent_clicks=await analytics_crud.count_events(db, current_user.id, CLICK_EVENTS, since=last_week),
        recent_views=await analytics_crud.count_events(db, current_user.id, [AnalyticsEventType.PROFILE_VIEW], since=last_week),
    )

# ========================
# --- Rotas Administrativas ---
# ========================
@router.get("/", response_model=UserListResponse, summary="Lista todos os usuários (admin)")
async def list_users(db: DbDep, admin: AdminUser, pagination: UserPagination):
    users, total = await user_crud.list_users(db, pagination)
    return UserListResponse(
        users=[User.model_validate(user) for user in users],
        pagination=PaginationMeta.build(pagination, total),
    )

@router.put("/{user_id}/role", response_model=User, summary="Altera o papel de um usuário (admin)")
async def change_user_role(
    db: DbDep,
    admin: AdminUser,
    user_id: uuid.UUID,
    payload: Annotated[RoleUpdate, Body()]
):
    """Apenas super_admin pode conceder o papel super_admin."""
    if payload.role == UserRole.SUPER_ADMIN and admin.role != UserRole.SUPER_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Apenas super_admin pode conceder este papel")
    updated_user = await user_crud.update_user_role(db, user_id, payload.role)
    if updated_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    logger.info(f"Papel do usuário {updated_user.username} alterado para '{payload.role.value}' por {admin.username}.")
    return User.model_validate(updated_user)

# ========================
# --- Perfil Público ---
# ========================
@router.get("/{username}", response_model=PublicProfile, summary="Perfil público de um usuário")
async def public_profile(
    db: DbDep,
    request: Request,
    username: Annotated[str, Path(min_length=3, max_length=20)]
):
    """
    Usuário, links ativos (na ordem definida), produtos e coleções ativos e
    tema. Cada acesso registra uma visualização de perfil.
    """
    user = await user_crud.get_user_by_username(db, username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")

    theme = await theme_crud.get_theme(db, user.id)
    await record_request_event(db, request, user.id, AnalyticsEventType.PROFILE_VIEW)
    return PublicProfile(
        user=PublicUser.model_validate(user),
        links=await link_crud.list_active_links(db, user.id),
        products=await product_crud.list_active_products(db, user.id),
        collections=await collection_crud.list_active_collections(db, user.id),
        theme=theme or ThemeSettings(),
    )
