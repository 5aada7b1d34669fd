# app/db/theme_crud.py
"""
Funções de acesso à coleção de temas. Cada usuário possui no máximo um
documento (índice único em `user_id`).
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from app.models.common import partial_update_fields
from app.models.theme import Theme, ThemeUpdate

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
THEMES_COLLECTION = "themes"

# ========================
# --- Funções Auxiliares (Internas) ---
# ========================
def _get_themes_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db[THEMES_COLLECTION]

def _to_theme(theme_dict: Optional[Dict[str, Any]]) -> Optional[Theme]:
    if not theme_dict:
        return None
    theme_dict.pop('_id', None)
    try:
        return Theme.model_validate(theme_dict)
    except ValidationError as e:
        logger.error(f"DB Validation error para tema do usuário {theme_dict.get('user_id')}: {e}")
        return None

# ========================
# --- Operações ---
# ========================
async def get_theme(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> Optional[Theme]:
    """Retorna o tema salvo do usuário, ou None se ele ainda não tiver um."""
    theme_dict = await _get_themes_collection(db).find_one({"user_id": str(user_id)})
    return _to_theme(theme_dict)

async def get_or_create_theme(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> Theme:
    """
    Retorna o tema do usuário, criando um com os valores padrão se necessário.
    Se outra requisição criar o tema ao mesmo tempo, o documento dela é usado.
    """
    existing = await get_theme(db, user_id)
    if existing:
        return existing

    theme = Theme(user_id=user_id)
    try:
        await _get_themes_collection(db).insert_one(theme.model_dump(mode="json"))
        logger.info(f"Tema padrão criado para o usuário {user_id}.")
        return theme
    except DuplicateKeyError:
        logger.info(f"Tema do usuário {user_id} criado concorrentemente; usando o existente.")
        existing = await get_theme(db, user_id)
        return existing or theme

async def upsert_theme(db: AsyncIOMotorDatabase, user_id: uuid.UUID, theme_update: ThemeUpdate) -> Optional[Theme]:
    """
    Grava apenas os campos enviados. Se o usuário ainda não tiver tema, ele é
    criado com os valores padrão para os demais campos.
    """
    update_data = partial_update_fields(theme_update, Theme)
    now = datetime.now(timezone.utc).isoformat()
    update_data["updated_at"] = now

    defaults = Theme(user_id=user_id).model_dump(mode="json")
    set_on_insert = {key: value for key, value in defaults.items() if key not in update_data}

    updated_doc = await _get_themes_collection(db).find_one_and_update(
        {"user_id": str(user_id)},
        {"$set": update_data, "$setOnInsert": set_on_insert},
        upsert=True,
        return_document=ReturnDocument.AFTER
    )
    logger.info(f"Tema do usuário {user_id} atualizado ({len(update_data) - 1} campo(s)).")
    return _to_theme(updated_doc)

async def reset_theme(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> Optional[Theme]:
    """Substitui o tema do usuário por um com todos os valores padrão."""
    fresh = Theme(user_id=user_id)
    replaced = await _get_themes_collection(db).find_one_and_replace(
        {"user_id": str(user_id)},
        fresh.model_dump(mode="json"),
        upsert=True,
        return_document=ReturnDocument.AFTER
    )
    logger.info(f"Tema do usuário {user_id} restaurado para o padrão.")
    return _to_theme(replaced)

# ========================
# --- Índices ---
# ========================
async def create_theme_indexes(db: AsyncIOMotorDatabase):
    collection = _get_themes_collection(db)
    try:
        await collection.create_index("user_id", unique=True, name="theme_user_unique_idx")
        logger.info("Índices da coleção 'themes' verificados/criados com sucesso.")
    except Exception as e:
        logger.error(f"Erro ao criar índices para a coleção 'themes': {e}", exc_info=True)
