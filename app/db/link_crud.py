# app/db/link_crud.py
"""
Funções CRUD para a coleção de links no MongoDB.

Todas as operações de leitura/escrita do painel são restritas ao dono do link
(`user_id`); apenas o redirecionamento público busca pelo short code.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING, ReturnDocument, UpdateOne
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from app.models.common import PaginationParams, SortOrder, partial_update_fields
from app.models.link import Link, LinkOrderItem, LinkUpdate

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
LINKS_COLLECTION = "links"

# ========================
# --- Funções Auxiliares (Internas) ---
# ========================
def _get_links_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db[LINKS_COLLECTION]

def _to_link(link_dict: Optional[Dict[str, Any]]) -> Optional[Link]:
    if not link_dict:
        return None
    link_dict.pop('_id', None)
    try:
        return Link.model_validate(link_dict)
    except ValidationError as e:
        logger.error(f"DB Validation error para link {link_dict.get('id')}: {e}")
        return None

def _owner_filter(link_id: uuid.UUID, user_id: uuid.UUID) -> Dict[str, str]:
    return {"id": str(link_id), "user_id": str(user_id)}

# ========================
# --- Leitura ---
# ========================
async def get_link_by_id(db: AsyncIOMotorDatabase, link_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Link]:
    """Busca um link do usuário pelo ID. Links de outros usuários retornam None."""
    link_dict = await _get_links_collection(db).find_one(_owner_filter(link_id, user_id))
    return _to_link(link_dict)

async def list_links(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    params: PaginationParams
) -> Tuple[List[Link], int]:
    """
    Lista os links do usuário com paginação e ordenação.

    Returns:
        Tupla (links da página, total de links do usuário).
    """
    collection = _get_links_collection(db)
    query = {"user_id": str(user_id)}
    direction = ASCENDING if params.sort_order == SortOrder.ASC else DESCENDING
    cursor = collection.find(query).sort(params.sort_by.db_field, direction).skip(params.skip).limit(params.limit)

    links = []
    async for link_dict in cursor:
        link = _to_link(link_dict)
        if link:
            links.append(link)
    total = await collection.count_documents(query)
    return links, total

async def list_active_links(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> List[Link]:
    """Links ativos do usuário, na ordem de exibição (usado no perfil público)."""
    cursor = _get_links_collection(db).find({"user_id": str(user_id), "is_active": True}).sort("order", ASCENDING)
    links = []
    async for link_dict in cursor:
        link = _to_link(link_dict)
        if link:
            links.append(link)
    return links

async def get_next_order(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> int:
    """Posição para um novo link: maior `order` atual do usuário + 1."""
    last = await _get_links_collection(db).find_one(
        {"user_id": str(user_id)},
        sort=[("order", DESCENDING)]
    )
    return (last.get("order", 0) if last else 0) + 1

async def count_links(db: AsyncIOMotorDatabase, user_id: uuid.UUID, active_only: bool = False) -> int:
    query: Dict[str, Any] = {"user_id": str(user_id)}
    if active_only:
        query["is_active"] = True
    return await _get_links_collection(db).count_documents(query)

async def sum_link_clicks(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> int:
    """Soma de `click_count` de todos os links do usuário."""
    pipeline = [
        {"$match": {"user_id": str(user_id)}},
        {"$group": {"_id": None, "total": {"$sum": "$click_count"}}},
    ]
    async for row in _get_links_collection(db).aggregate(pipeline):
        return int(row.get("total", 0))
    return 0

# ========================
# --- Escrita ---
# ========================
async def create_link(db: AsyncIOMotorDatabase, link: Link) -> Optional[Link]:
    """
    Insere um link já montado (short code e ordem definidos pelo chamador).

    Raises:
        DuplicateKeyError: Se o short code já estiver em uso (índice único).
    """
    link_dict = link.model_dump(mode="json", exclude={"short_url"})
    try:
        insert_result = await _get_links_collection(db).insert_one(link_dict)
    except DuplicateKeyError:
        logger.warning(f"Short code '{link.short_code}' já existe (detectado pelo índice único).")
        raise
    if not insert_result.acknowledged: # pragma: no cover
        logger.error(f"DB Insert Link Acknowledged False para {link.id}")
        return None
    logger.info(f"Link {link.id} criado para o usuário {link.user_id} com short code '{link.short_code}'.")
    return link

async def update_link(
    db: AsyncIOMotorDatabase,
    link_id: uuid.UUID,
    user_id: uuid.UUID,
    link_update: LinkUpdate
) -> Optional[Link]:
    """
    Atualiza os campos enviados de um link do usuário.

    Returns:
        O link atualizado, ou None se não existir (ou pertencer a outro usuário).
    """
    update_data = partial_update_fields(link_update, Link)
    return await set_link_fields(db, link_id, user_id, update_data)

async def set_link_fields(
    db: AsyncIOMotorDatabase,
    link_id: uuid.UUID,
    user_id: uuid.UUID,
    fields: Dict[str, Any]
) -> Optional[Link]:
    """Aplica `$set` em campos arbitrários (ex: metadados atualizados)."""
    fields["updated_at"] = datetime.now(timezone.utc).isoformat()
    updated_doc = await _get_links_collection(db).find_one_and_update(
        _owner_filter(link_id, user_id),
        {"$set": fields},
        return_document=ReturnDocument.AFTER
    )
    if updated_doc is None:
        logger.warning(f"Tentativa de atualizar link inexistente: {link_id} (usuário {user_id})")
    return _to_link(updated_doc)

async def delete_link(db: AsyncIOMotorDatabase, link_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    delete_result = await _get_links_collection(db).delete_one(_owner_filter(link_id, user_id))
    if delete_result.deleted_count == 1:
        logger.info(f"Link {link_id} deletado.")
        return True
    logger.warning(f"Tentativa de deletar link {link_id}, mas não foi encontrado para o usuário {user_id}.")
    return False

async def reorder_links(db: AsyncIOMotorDatabase, user_id: uuid.UUID, items: List[LinkOrderItem]) -> int:
    """
    Atualiza em lote a posição dos links do usuário.

    Returns:
        Quantidade de links cuja posição foi alterada.
    """
    now = datetime.now(timezone.utc).isoformat()
    operations = [
        UpdateOne(_owner_filter(item.id, user_id), {"$set": {"order": item.order, "updated_at": now}})
        for item in items
    ]
    result = await _get_links_collection(db).bulk_write(operations, ordered=False)
    logger.info(f"Reordenação de links do usuário {user_id}: {result.modified_count} alterado(s).")
    return result.modified_count

async def register_link_click(db: AsyncIOMotorDatabase, short_code: str) -> Optional[Link]:
    """
    Incrementa atomicamente o contador de cliques de um link ATIVO.

    Returns:
        O link (já com o contador incrementado), ou None se não existir/estiver inativo.
    """
    updated_doc = await _get_links_collection(db).find_one_and_update(
        {"short_code": short_code, "is_active": True},
        {"$inc": {"click_count": 1}},
        return_document=ReturnDocument.AFTER
    )
    return _to_link(updated_doc)

async def increment_link_clicks(db: AsyncIOMotorDatabase, link_id: uuid.UUID) -> Optional[Link]:
    """Incrementa o contador de um link pelo ID (rastreamento feito pelo frontend)."""
    updated_doc = await _get_links_collection(db).find_one_and_update(
        {"id": str(link_id)},
        {"$inc": {"click_count": 1}},
        return_document=ReturnDocument.AFTER
    )
    return _to_link(updated_doc)

# ========================
# --- Índices ---
# ========================
async def create_link_indexes(db: AsyncIOMotorDatabase):
    """Cria os índices da coleção de links (short code único, dono + ordem)."""
    collection = _get_links_collection(db)
    try:
        await collection.create_index("id", unique=True, name="link_id_unique_idx")
        await collection.create_index("short_code", unique=True, name="link_short_code_unique_idx")
        await collection.create_index([("user_id", ASCENDING), ("order", ASCENDING)], name="link_user_order_idx")
        await collection.create_index("is_active", name="link_is_active_idx")
        logger.info("Índices da coleção 'links' verificados/criados com sucesso.")
    except Exception as e:
        logger.error(f"Erro ao criar índices para a coleção 'links': {e}", exc_info=True)
