# app/routers/theme.py
"""
Rotas do tema da página pública: leitura (criando o padrão na primeira vez),
atualização parcial, reset e leitura pública por ID de usuário.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from typing import Annotated, Union

from fastapi import APIRouter, Body, HTTPException, status

# --- Módulos da Aplicação ---
from app.core.dependencies import CurrentUser, DbDep
from app.db import theme_crud
from app.models.theme import Theme, ThemeSettings, ThemeUpdate

# ========================
# --- Configuração do Router ---
# ========================
router = APIRouter(
    prefix="/theme",
    tags=["Theme"],
)

# ========================
# --- Rotas da API ---
# ========================
@router.get("/", response_model=Theme, summary="Obtém o tema do usuário (cria o padrão se não existir)")
async def get_theme(db: DbDep, current_user: CurrentUser):
    return await theme_crud.get_or_create_theme(db, current_user.id)

@router.put("/", response_model=Theme, summary="Atualiza o tema do usuário")
async def update_theme(
    db: DbDep,
    current_user: CurrentUser,
    theme_update: Annotated[ThemeUpdate, Body(description="Apenas os campos enviados são alterados.")]
):
    theme = await theme_crud.upsert_theme(db, current_user.id, theme_update)
    if theme is None: # pragma: no cover
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Não foi possível salvar o tema.")
    return theme

@router.delete("/reset", response_model=Theme, summary="Restaura o tema padrão")
async def reset_theme(db: DbDep, current_user: CurrentUser):
    theme = await theme_crud.reset_theme(db, current_user.id)
    if theme is None: # pragma: no cover
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Não foi possível restaurar o tema.")
    return theme

@router.get(
    "/public/{user_id}",
    response_model=Union[Theme, ThemeSettings],
    summary="Tema público de um usuário (valores padrão se não houver tema salvo)",
)
async def get_public_theme(db: DbDep, user_id: uuid.UUID):
    theme = await theme_crud.get_theme(db, user_id)
    return theme or ThemeSettings()
