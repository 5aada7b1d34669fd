# app/db/collection_crud.py
"""
Funções CRUD para a coleção `product_collections` no MongoDB.

Uma coleção guarda a lista ordenada de IDs de produtos; o lado do produto
(`collection_id`) é mantido por `product_crud.set_products_collection`,
chamado pelas rotas.
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

# --- Módulos da Aplicação ---
from app.models.collection import CollectionOrderItem, CollectionUpdate, ProductCollection
from app.models.common import PaginationParams, SortOrder, partial_update_fields

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
COLLECTIONS_COLLECTION = "product_collections"

# ========================
# --- Funções Auxiliares (Internas) ---
# ========================
def _get_collections_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db[COLLECTIONS_COLLECTION]

def _to_collection(collection_dict: Optional[Dict[str, Any]]) -> Optional[ProductCollection]:
    if not collection_dict:
        return None
    collection_dict.pop('_id', None)
    try:
        return ProductCollection.model_validate(collection_dict)
    except ValidationError as e:
        logger.error(f"DB Validation error para coleção {collection_dict.get('id')}: {e}")
        return None

def _owner_filter(collection_id: uuid.UUID, user_id: uuid.UUID) -> Dict[str, str]:
    return {"id": str(collection_id), "user_id": str(user_id)}

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

# ========================
# --- Leitura ---
# ========================
async def get_collection_by_id(
    db: AsyncIOMotorDatabase,
    collection_id: uuid.UUID,
    user_id: uuid.UUID
) -> Optional[ProductCollection]:
    collection_dict = await _get_collections_collection(db).find_one(_owner_filter(collection_id, user_id))
    return _to_collection(collection_dict)

async def list_collections(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    params: PaginationParams
) -> Tuple[List[ProductCollection], int]:
    """
    Lista as coleções do usuário com paginação.

    Returns:
        Tupla (coleções da página, total do usuário).
    """
    collection = _get_collections_collection(db)
    query = {"user_id": str(user_id)}
    direction = ASCENDING if params.sort_order == SortOrder.ASC else DESCENDING
    cursor = collection.find(query).sort(params.sort_by.db_field, direction).skip(params.skip).limit(params.limit)

    collections = []
    async for collection_dict in cursor:
        product_collection = _to_collection(collection_dict)
        if product_collection:
            collections.append(product_collection)
    total = await collection.count_documents(query)
    return collections, total

async def list_active_collections(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> List[ProductCollection]:
    """Coleções ativas do usuário na ordem definida (perfil público)."""
    cursor = _get_collections_collection(db).find({"user_id": str(user_id), "is_active": True}).sort("order", ASCENDING)
    collections = []
    async for collection_dict in cursor:
        product_collection = _to_collection(collection_dict)
        if product_collection:
            collections.append(product_collection)
    return collections

async def count_collections(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> int:
    return await _get_collections_collection(db).count_documents({"user_id": str(user_id)})

async def get_next_order(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> int:
    """Posição para uma nova coleção: maior `order` atual do usuário + 1."""
    last = await _get_collections_collection(db).find_one(
        {"user_id": str(user_id)},
        sort=[("order", DESCENDING)]
    )
    return (last.get("order", 0) if last else 0) + 1

# ========================
# --- Escrita ---
# ========================
async def create_collection(db: AsyncIOMotorDatabase, product_collection: ProductCollection) -> Optional[ProductCollection]:
    collection_dict = product_collection.model_dump(mode="json", exclude={"product_count"})
    insert_result = await _get_collections_collection(db).insert_one(collection_dict)
    if not insert_result.acknowledged: # pragma: no cover
        logger.error(f"DB Insert Collection Acknowledged False para {product_collection.id}")
        return None
    logger.info(
        f"Coleção {product_collection.id} criada para o usuário {product_collection.user_id} "
        f"com {product_collection.product_count} produto(s)."
    )
    return product_collection

async def update_collection(
    db: AsyncIOMotorDatabase,
    collection_id: uuid.UUID,
    user_id: uuid.UUID,
    collection_update: CollectionUpdate
) -> Optional[ProductCollection]:
    """
    Atualiza os campos enviados; `products`, quando presente, substitui a lista.

    Returns:
        A coleção atualizada, ou None se não existir para o usuário.
    """
    update_data = partial_update_fields(collection_update, ProductCollection)
    update_data["updated_at"] = _now()
    updated_doc = await _get_collections_collection(db).find_one_and_update(
        _owner_filter(collection_id, user_id),
        {"$set": update_data},
        return_document=ReturnDocument.AFTER
    )
    if updated_doc is None:
        logger.warning(f"Tentativa de atualizar coleção inexistente: {collection_id} (usuário {user_id})")
    return _to_collection(updated_doc)

async def delete_collection(
    db: AsyncIOMotorDatabase,
    collection_id: uuid.UUID,
    user_id: uuid.UUID
) -> Optional[ProductCollection]:
    """Remove a coleção e a devolve, para que os produtos possam ser desvinculados."""
    deleted_doc = await _get_collections_collection(db).find_one_and_delete(_owner_filter(collection_id, user_id))
    if deleted_doc is None:
        logger.warning(f"Tentativa de deletar coleção {collection_id}, mas não foi encontrada para o usuário {user_id}.")
        return None
    logger.info(f"Coleção {collection_id} deletada.")
    return _to_collection(deleted_doc)

async def reorder_collections(db: AsyncIOMotorDatabase, user_id: uuid.UUID, items: List[CollectionOrderItem]) -> int:
    """
    Atualiza em lote a posição das coleções do usuário.

    Returns:
        Quantidade de coleções cuja posição foi alterada.
    """
    now = _now()
    operations = [
        UpdateOne(_owner_filter(item.id, user_id), {"$set": {"order": item.order, "updated_at": now}})
        for item in items
    ]
    result = await _get_collections_collection(db).bulk_write(operations, ordered=False)
    logger.info(f"Reordenação de coleções do usuário {user_id}: {result.modified_count} alterada(s).")
    return result.modified_count

async def add_product(
    db: AsyncIOMotorDatabase,
    collection_id: uuid.UUID,
    user_id: uuid.UUID,
    product_id: uuid.UUID
) -> Optional[ProductCollection]:
    """
    Acrescenta o produto ao fim da lista (`$push`), somente se ainda não
    estiver nela.

    Returns:
        A coleção atualizada, ou None se ela não existir ou já contiver o produto.
    """
    query: Dict[str, Any] = _owner_filter(collection_id, user_id)
    query["products"] = {"$ne": str(product_id)}
    updated_doc = await _get_collections_collection(db).find_one_and_update(
        query,
        {"$push": {"products": str(product_id)}, "$set": {"updated_at": _now()}},
        return_document=ReturnDocument.AFTER
    )
    return _to_collection(updated_doc)

async def remove_product(
    db: AsyncIOMotorDatabase,
    collection_id: uuid.UUID,
    user_id: uuid.UUID,
    product_id: uuid.UUID
) -> Optional[ProductCollection]:
    """Retira o produto da lista (`$pull`). None se a coleção não existir."""
    updated_doc = await _get_collections_collection(db).find_one_and_update(
        _owner_filter(collection_id, user_id),
        {"$pull": {"products": str(product_id)}, "$set": {"updated_at": _now()}},
        return_document=ReturnDocument.AFTER
    )
    return _to_collection(updated_doc)

async def pull_product_from_all(db: AsyncIOMotorDatabase, user_id: uuid.UUID, product_id: uuid.UUID) -> int:
    """Remove um produto deletado de todas as coleções do usuário."""
    result = await _get_collections_collection(db).update_many(
        {"user_id": str(user_id), "products": str(product_id)},
        {"$pull": {"products": str(product_id)}}
    )
    return result.modified_count

# ========================
# --- Índices ---
# ========================
async def create_collection_indexes(db: AsyncIOMotorDatabase):
    collection = _get_collections_collection(db)
    try:
        await collection.create_index("id", unique=True, name="collection_id_unique_idx")
        await collection.create_index([("user_id", ASCENDING), ("order", ASCENDING)], name="collection_user_order_idx")
        await collection.create_index("is_active", name="collection_is_active_idx")
        logger.info("Índices da coleção 'product_collections' verificados/criados com sucesso.")
    except Exception as e:
        logger.error(f"Erro ao criar índices para a coleção 'product_collections': {e}", exc_info=True)
