# app/db/user_crud.py
"""
Módulo contendo as funções CRUD (Create, Read, Update, Delete)
para interagir com a coleção de usuários no MongoDB.
Inclui também funções para criação de índices.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from app.models.common import PaginationParams, SortOrder, partial_update_fields
from app.models.user import UserCreate, UserInDB, UserProfileUpdate, UserRole
from app.core.security import get_password_hash

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
USERS_COLLECTION = "users"

# ========================
# --- Funções Auxiliares (Internas) ---
# ========================
def _get_users_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    """Retorna a coleção de usuários do banco de dados."""
    return db[USERS_COLLECTION]

def _to_user(user_dict: Optional[Dict[str, Any]], context: str) -> Optional[UserInDB]:
    """Converte um documento do MongoDB em UserInDB (None se ausente ou inválido)."""
    if not user_dict:
        return None
    user_dict.pop('_id', None)
    try:
        return UserInDB.model_validate(user_dict)
    except ValidationError as e:
        logger.error(f"DB Validation error {context}: {e}")
        return None

# ========================
# --- Operações de Leitura ---
# ========================
async def get_user_by_id(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> Optional[UserInDB]:
    """
    Busca um usuário pelo seu ID (UUID).

    Returns:
        Um objeto UserInDB se o usuário for encontrado e válido, None caso contrário.
    """
    collection = _get_users_collection(db)
    user_dict = await collection.find_one({"id": str(user_id)})
    return _to_user(user_dict, f"get_user_by_id {user_id}")

async def get_user_by_username(db: AsyncIOMotorDatabase, username: str) -> Optional[UserInDB]:
    """Busca um usuário pelo username (comparado em minúsculas)."""
    collection = _get_users_collection(db)
    user_dict = await collection.find_one({"username": username.lower()})
    return _to_user(user_dict, f"get_user_by_username {username}")

async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[UserInDB]:
    """Busca um usuário pelo e-mail (comparado em minúsculas)."""
    collection = _get_users_collection(db)
    user_dict = await collection.find_one({"email": email.lower()})
    return _to_user(user_dict, f"get_user_by_email {email}")

async def get_user_by_identifier(db: AsyncIOMotorDatabase, identifier: str) -> Optional[UserInDB]:
    """
    Busca um usuário cujo username OU e-mail seja igual ao identificador.
    Usado no login, que aceita qualquer um dos dois.
    """
    collection = _get_users_collection(db)
    normalized = identifier.strip().lower()
    user_dict = await collection.find_one({"$or": [{"username": normalized}, {"email": normalized}]})
    return _to_user(user_dict, f"get_user_by_identifier {identifier}")

async def list_users(
    db: AsyncIOMotorDatabase,
    params: PaginationParams
) -> Tuple[List[UserInDB], int]:
    """
    Lista usuários com paginação (uso administrativo).

    Returns:
        Tupla (usuários da página, total de usuários).
    """
    collection = _get_users_collection(db)
    direction = ASCENDING if params.sort_order == SortOrder.ASC else DESCENDING
    cursor = (
        collection.find({})
        .sort(params.sort_by.db_field, direction)
        .skip(params.skip)
        .limit(params.limit)
    )
    users = []
    async for user_dict in cursor:
        user = _to_user(user_dict, "list_users")
        if user:
            users.append(user)
    total = await collection.count_documents({})
    return users, total

# ========================
# --- Operações de Escrita ---
# ========================
async def create_user(db: AsyncIOMotorDatabase, user_in: UserCreate) -> Optional[UserInDB]:
    """
    Cria um novo usuário no banco de dados.

    Gera um UUID para o usuário, hasheia a senha e aplica os valores padrão
    (papel `user`, e-mail não verificado, redes sociais vazias).

    Returns:
        O UserInDB criado, ou None se o insert não for confirmado.

    Raises:
        DuplicateKeyError: Se username ou e-mail já existirem.
    """
    user_db_obj = UserInDB(
        username=user_in.username,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
    )
    user_db_dict = user_db_obj.model_dump(mode="json")
    collection = _get_users_collection(db)

    try:
        insert_result = await collection.insert_one(user_db_dict)
    except DuplicateKeyError:
        logger.warning(f"Tentativa de criar usuário com username ou email duplicado: {user_in.username} / {user_in.email}")
        raise

    if not insert_result.acknowledged: # pragma: no cover
        logger.error(f"DB Insert User Acknowledged False for username {user_in.username}")
        return None
    logger.info(f"Usuário '{user_db_obj.username}' criado com ID {user_db_obj.id}.")
    return user_db_obj

async def _set_user_fields(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    fields: Dict[str, Any]
) -> Optional[UserInDB]:
    """Aplica `$set` nos campos informados (mais `updated_at`) e retorna o documento atualizado."""
    collection = _get_users_collection(db)
    fields["updated_at"] = datetime.now(timezone.utc).isoformat()
    updated_doc = await collection.find_one_and_update(
        {"id": str(user_id)},
        {"$set": fields},
        return_document=True
    )
    if updated_doc is None:
        logger.warning(f"Attempt to update user not found: ID {user_id}")
        return None
    return _to_user(updated_doc, f"after updating user {user_id}")

async def update_user_profile(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    profile_update: UserProfileUpdate
) -> Optional[UserInDB]:
    """
    Atualiza os campos de perfil enviados (nome, bio, imagem, redes sociais).

    Returns:
        O UserInDB atualizado, ou None se o usuário não existir.
    """
    update_data = partial_update_fields(profile_update, UserInDB)
    return await _set_user_fields(db, user_id, update_data)

async def update_user_password(db: AsyncIOMotorDatabase, user_id: uuid.UUID, new_password: str) -> bool:
    """Grava o hash da nova senha. Retorna False se o usuário não existir."""
    updated = await _set_user_fields(db, user_id, {"hashed_password": get_password_hash(new_password)})
    return updated is not None

async def update_user_role(db: AsyncIOMotorDatabase, user_id: uuid.UUID, role: UserRole) -> Optional[UserInDB]:
    """Altera o papel de um usuário."""
    return await _set_user_fields(db, user_id, {"role": role.value})

# ========================
# --- Configuração de Índices do Banco de Dados ---
# ========================
async def create_user_indexes(db: AsyncIOMotorDatabase):
    """
    Cria os índices da coleção de usuários, garantindo unicidade de
    `id`, `username` e `email`.

    Os índices são criados apenas se ainda não existirem.
    """
    collection = _get_users_collection(db)
    try:
        await collection.create_index("id", unique=True, name="user_id_unique_idx")
        await collection.create_index("username", unique=True, name="username_unique_idx")
        await collection.create_index("email", unique=True, name="email_unique_idx")
        logger.info("Índices da coleção 'users' ('id', 'username', 'email') verificados/criados com sucesso.")
    except Exception as e:
        logger.error(f"Erro ao criar índices para a coleção 'users': {e}", exc_info=True)
