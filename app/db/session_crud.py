# app/db/session_crud.py
"""
Funções de acesso à coleção de sessões (refresh tokens emitidos).
Uma sessão expirada é removida automaticamente pelo índice TTL em `expires_at`.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

# --- Módulos da Aplicação ---
from app.models.session import Session

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
SESSIONS_COLLECTION = "sessions"

def _get_sessions_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db[SESSIONS_COLLECTION]

# ========================
# --- Operações ---
# ========================
async def create_session(db: AsyncIOMotorDatabase, session: Session) -> Session:
    """
    Registra um refresh token emitido.

    `expires_at` é gravado como data BSON (e não string) para que o índice TTL funcione.
    """
    session_dict = session.model_dump(mode="json")
    session_dict["expires_at"] = session.expires_at
    await _get_sessions_collection(db).insert_one(session_dict)
    logger.info(f"Sessão {session.id} criada para o usuário {session.user_id}.")
    return session

async def find_active_session(db: AsyncIOMotorDatabase, user_id: uuid.UUID, token: str) -> Optional[dict]:
    """Retorna a sessão do par (usuário, token) se ainda não expirou."""
    return await _get_sessions_collection(db).find_one({
        "user_id": str(user_id),
        "token": token,
        "expires_at": {"$gt": datetime.now(timezone.utc)},
    })

async def delete_session(db: AsyncIOMotorDatabase, user_id: uuid.UUID, token: str) -> bool:
    result = await _get_sessions_collection(db).delete_one({"user_id": str(user_id), "token": token})
    return result.deleted_count == 1

async def delete_user_sessions(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> int:
    """Remove todas as sessões do usuário (logout em todos os dispositivos)."""
    result = await _get_sessions_collection(db).delete_many({"user_id": str(user_id)})
    logger.info(f"{result.deleted_count} sessão(ões) removida(s) do usuário {user_id}.")
    return result.deleted_count

# ========================
# --- Índices ---
# ========================
async def create_session_indexes(db: AsyncIOMotorDatabase):
    collection = _get_sessions_collection(db)
    try:
        await collection.create_index("token", unique=True, name="session_token_unique_idx")
        await collection.create_index("user_id", name="session_user_idx")
        await collection.create_index("expires_at", expireAfterSeconds=0, name="session_expiry_ttl_idx")
        logger.info("Índices da coleção 'sessions' verificados/criados com sucesso.")
    except Exception as e:
        logger.error(f"Erro ao criar índices para a coleção 'sessions': {e}", exc_info=True)
