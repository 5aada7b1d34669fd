# app/db/product_crud.py
"""
Funções CRUD para a coleção de produtos no MongoDB.
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
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from app.models.common import PaginationParams, SortOrder, partial_update_fields
from app.models.product import Product, ProductUpdate

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
PRODUCTS_COLLECTION = "products"

# ========================
# --- Funções Auxiliares (Internas) ---
# ========================
def _get_products_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db[PRODUCTS_COLLECTION]

def _to_product(product_dict: Optional[Dict[str, Any]]) -> Optional[Product]:
    if not product_dict:
        return None
    product_dict.pop('_id', None)
    try:
        return Product.model_validate(product_dict)
    except ValidationError as e:
        logger.error(f"DB Validation error para produto {product_dict.get('id')}: {e}")
        return None

def _owner_filter(product_id: uuid.UUID, user_id: uuid.UUID) -> Dict[str, str]:
    return {"id": str(product_id), "user_id": str(user_id)}

# ========================
# --- Leitura ---
# ========================
async def get_product_by_id(db: AsyncIOMotorDatabase, product_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Product]:
    product_dict = await _get_products_collection(db).find_one(_owner_filter(product_id, user_id))
    return _to_product(product_dict)

async def list_products(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    params: PaginationParams,
    tags: Optional[List[str]] = None
) -> Tuple[List[Product], int]:
    """
    Lista os produtos do usuário com paginação.

    Args:
        tags: Se informado, retorna apenas produtos com ao menos uma dessas tags.

    Returns:
        Tupla (produtos da página, total que atende ao filtro).
    """
    collection = _get_products_collection(db)
    query: Dict[str, Any] = {"user_id": str(user_id)}
    if tags:
        query["tags"] = {"$in": [tag.strip().lower() for tag in tags]}

    direction = ASCENDING if params.sort_order == SortOrder.ASC else DESCENDING
    cursor = collection.find(query).sort(params.sort_by.db_field, direction).skip(params.skip).limit(params.limit)

    products = []
    async for product_dict in cursor:
        product = _to_product(product_dict)
        if product:
            products.append(product)
    total = await collection.count_documents(query)
    return products, total

async def list_active_products(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> List[Product]:
    """Produtos ativos do usuário, mais recentes primeiro (perfil público)."""
    cursor = _get_products_collection(db).find({"user_id": str(user_id), "is_active": True}).sort("created_at", DESCENDING)
    products = []
    async for product_dict in cursor:
        product = _to_product(product_dict)
        if product:
            products.append(product)
    return products

async def count_products(db: AsyncIOMotorDatabase, user_id: uuid.UUID, active_only: bool = False) -> int:
    query: Dict[str, Any] = {"user_id": str(user_id)}
    if active_only:
        query["is_active"] = True
    return await _get_products_collection(db).count_documents(query)

async def sum_product_clicks(db: AsyncIOMotorDatabase, user_id: uuid.UUID) -> int:
    pipeline = [
        {"$match": {"user_id": str(user_id)}},
        {"$group": {"_id": None, "total": {"$sum": "$click_count"}}},
    ]
    async for row in _get_products_collection(db).aggregate(pipeline):
        return int(row.get("total", 0))
    return 0

# ========================
# --- Escrita ---
# ========================
async def create_product(db: AsyncIOMotorDatabase, product: Product) -> Optional[Product]:
    """
    Insere um produto já montado.

    Raises:
        DuplicateKeyError: Se o short code já estiver em uso.
    """
    product_dict = product.model_dump(mode="json", exclude={"short_url"})
    try:
        insert_result = await _get_products_collection(db).insert_one(product_dict)
    except DuplicateKeyError:
        logger.warning(f"Short code de produto '{product.short_code}' já existe (índice único).")
        raise
    if not insert_result.acknowledged: # pragma: no cover
        logger.error(f"DB Insert Product Acknowledged False para {product.id}")
        return None
    logger.info(f"Produto {product.id} criado para o usuário {product.user_id} com short code '{product.short_code}'.")
    return product

async def update_product(
    db: AsyncIOMotorDatabase,
    product_id: uuid.UUID,
    user_id: uuid.UUID,
    product_update: ProductUpdate
) -> Optional[Product]:
    """Atualiza os campos enviados; None se o produto não for do usuário."""
    update_data = partial_update_fields(product_update, Product)
    update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
    updated_doc = await _get_products_collection(db).find_one_and_update(
        _owner_filter(product_id, user_id),
        {"$set": update_data},
        return_document=ReturnDocument.AFTER
    )
    if updated_doc is None:
        logger.warning(f"Tentativa de atualizar produto inexistente: {product_id} (usuário {user_id})")
    return _to_product(updated_doc)

async def delete_product(db: AsyncIOMotorDatabase, product_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    delete_result = await _get_products_collection(db).delete_one(_owner_filter(product_id, user_id))
    if delete_result.deleted_count == 1:
        logger.info(f"Produto {product_id} deletado.")
        return True
    logger.warning(f"Tentativa de deletar produto {product_id}, mas não foi encontrado para o usuário {user_id}.")
    return False

async def register_product_click(db: AsyncIOMotorDatabase, short_code: str) -> Optional[Product]:
    """Incrementa atomicamente o contador de cliques de um produto ATIVO."""
    updated_doc = await _get_products_collection(db).find_one_and_update(
        {"short_code": short_code, "is_active": True},
        {"$inc": {"click_count": 1}},
        return_document=ReturnDocument.AFTER
    )
    return _to_product(updated_doc)

async def increment_product_clicks(db: AsyncIOMotorDatabase, product_id: uuid.UUID) -> Optional[Product]:
    """Incrementa o contador de um produto pelo ID (rastreamento feito pelo frontend)."""
    updated_doc = await _get_products_collection(db).find_one_and_update(
        {"id": str(product_id)},
        {"$inc": {"click_count": 1}},
        return_document=ReturnDocument.AFTER
    )
    return _to_product(updated_doc)

# ========================
# --- Vínculo com Coleções ---
# ========================
async def count_owned_products(db: AsyncIOMotorDatabase, user_id: uuid.UUID, product_ids: List[uuid.UUID]) -> int:
    """Quantos dos IDs informados existem e pertencem ao usuário."""
    if not product_ids:
        return 0
    return await _get_products_collection(db).count_documents({
        "id": {"$in": [str(product_id) for product_id in product_ids]},
        "user_id": str(user_id),
    })

async def set_products_collection(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    product_ids: List[uuid.UUID],
    collection_id: uuid.UUID
) -> int:
    """
    Aponta os produtos do usuário para uma coleção (`collection_id`).

    Returns:
        Quantidade de produtos alterados.
    """
    if not product_ids:
        return 0
    result = await _get_products_collection(db).update_many(
        {"id": {"$in": [str(product_id) for product_id in product_ids]}, "user_id": str(user_id)},
        {"$set": {"collection_id": str(collection_id)}}
    )
    return result.modified_count

async def detach_products_from_collection(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    collection_id: uuid.UUID,
    product_ids: Optional[List[uuid.UUID]] = None
) -> int:
    """
    Remove `collection_id` dos produtos que ainda apontam para esta coleção.
    Sem `product_ids`, desvincula todos eles (coleção deletada).
    """
    query: Dict[str, Any] = {"user_id": str(user_id), "collection_id": str(collection_id)}
    if product_ids is not None:
        if not product_ids:
            return 0
        query["id"] = {"$in": [str(product_id) for product_id in product_ids]}
    result = await _get_products_collection(db).update_many(query, {"$unset": {"collection_id": ""}})
    return result.modified_count

# ========================
# --- Índices ---
# ========================
async def create_product_indexes(db: AsyncIOMotorDatabase):
    collection = _get_products_collection(db)
    try:
        await collection.create_index("id", unique=True, name="product_id_unique_idx")
        await collection.create_index("short_code", unique=True, name="product_short_code_unique_idx")
        await collection.create_index("user_id", name="product_user_idx")
        await collection.create_index("tags", name="product_tags_idx")
        await collection.create_index("collection_id", name="product_collection_idx")
        await collection.create_index("is_active", name="product_is_active_idx")
        logger.info("Índices da coleção 'products' verificados/criados com sucesso.")
    except Exception as e:
        logger.error(f"Erro ao criar índices para a coleção 'products': {e}", exc_info=True)
