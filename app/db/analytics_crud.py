# app/db/analytics_crud.py
"""
Acesso à coleção `analytics`: registro de eventos e as agregações usadas
pelo painel (resumo, série diária, itens mais clicados e distribuição por
dispositivo/navegador).

`timestamp` é gravado como data BSON para permitir filtros por período e o
agrupamento diário com `$dateToString`.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

# --- Módulos da Aplicação ---
from app.db.link_crud import LINKS_COLLECTION
from app.db.product_crud import PRODUCTS_COLLECTION
from app.models.analytics import AnalyticsEvent, AnalyticsEventType

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
ANALYTICS_COLLECTION = "analytics"
TOP_ITEMS_LIMIT = 10
_DAY_FORMAT = {"$dateToString": {"format": "%Y-%m-%d", "date": "$timestamp"}}

def _get_analytics_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db[ANALYTICS_COLLECTION]

def _user_window(user_id: uuid.UUID, since: datetime) -> Dict[str, Any]:
    return {"user_id": str(user_id), "timestamp": {"$gte": since}}

async def _aggregate(db: AsyncIOMotorDatabase, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [row async for row in _get_analytics_collection(db).aggregate(pipeline)]

# ========================
# --- Escrita ---
# ========================
async def record_event(db: AsyncIOMotorDatabase, event: AnalyticsEvent) -> AnalyticsEvent:
    event_dict = event.model_dump(mode="json")
    event_dict["timestamp"] = event.timestamp
    await _get_analytics_collection(db).insert_one(event_dict)
    logger.debug(f"Evento '{event.type.value}' registrado para o usuário {event.user_id}.")
    return event

# ========================
# --- Painel ---
# ========================
async def summary_counts(db: AsyncIOMotorDatabase, user_id: uuid.UUID, since: datetime) -> Dict[str, int]:
    """
    Totais do período: todos os eventos, visitantes únicos (IPs distintos) e
    a contagem de cada tipo de evento.
    """
    collection = _get_analytics_collection(db)
    query = _user_window(user_id, since)
    counts = {
        "total_clicks": await collection.count_documents(query),
        "total_unique_visitors": len(await collection.distinct("ip_address", query)),
    }
    for event_type, key in (
        (AnalyticsEventType.LINK_CLICK, "link_clicks"),
        (AnalyticsEventType.PRODUCT_CLICK, "product_clicks"),
        (AnalyticsEventType.PROFILE_VIEW, "profile_views"),
    ):
        counts[key] = await collection.count_documents({**query, "type": event_type.value})
    return counts

async def daily_stats(db: AsyncIOMotorDatabase, user_id: uuid.UUID, since: datetime) -> List[Dict[str, Any]]:
    """Eventos por dia (e por tipo dentro do dia), em ordem cronológica."""
    pipeline = [
        {"$match": _user_window(user_id, since)},
        {"$group": {
            "_id": {"date": _DAY_FORMAT, "type": "$type"},
            "count": {"$sum": 1},
            "unique_visitors": {"$addToSet": "$ip_address"},
        }},
        {"$group": {
            "_id": "$_id.date",
            "total_clicks": {"$sum": "$count"},
            "unique_visitors": {"$sum": {"$size": "$unique_visitors"}},
            "by_type": {"$push": {"type": "$_id.type", "count": "$count"}},
        }},
        {"$sort": {"_id": 1}},
    ]
    rows = await _aggregate(db, pipeline)
    return [{"date": row.pop("_id"), **row} for row in rows]

async def top_items(
    db: AsyncIOMotorDatabase,
    user_id: uuid.UUID,
    since: datetime,
    event_type: AnalyticsEventType
) -> List[Dict[str, Any]]:
    """
    Os itens mais clicados no período (no máximo `TOP_ITEMS_LIMIT`), com os
    dados do link ou produto buscados via `$lookup`. Itens já deletados
    não aparecem.
    """
    if event_type == AnalyticsEventType.LINK_CLICK:
        id_field, source, extra = "link_id", LINKS_COLLECTION, {"url": "$item.url"}
    else:
        id_field, source, extra = "product_id", PRODUCTS_COLLECTION, {
            "url": "$item.affiliate_url", "price": "$item.price", "currency": "$item.currency",
        }
    pipeline = [
        {"$match": {**_user_window(user_id, since), "type": event_type.value, id_field: {"$ne": None}}},
        {"$group": {"_id": f"${id_field}", "clicks": {"$sum": 1}, "unique_visitors": {"$addToSet": "$ip_address"}}},
        {"$lookup": {"from": source, "localField": "_id", "foreignField": "id", "as": "item"}},
        {"$unwind": "$item"},
        {"$project": {
            "_id": 0,
            "id": "$_id",
            "title": "$item.title",
            "clicks": 1,
            "unique_visitors": {"$size": "$unique_visitors"},
            **extra,
        }},
        {"$sort": {"clicks": -1}},
        {"$limit": TOP_ITEMS_LIMIT},
    ]
    return await _aggregate(db, pipeline)

async def breakdown(db: AsyncIOMotorDatabase, user_id: uuid.UUID, since: datetime, field: str) -> List[Dict[str, Any]]:
    """Contagem de eventos por valor de `field` (ex: "device", "browser")."""
    pipeline = [
        {"$match": _user_window(user_id, since)},
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        {"$sort": {"count": -1}},
    ]
    rows = await _aggregate(db, pipeline)
    return [{"name": row["_id"] or "unknown", "count": row["count"]} for row in rows]

# ========================
# --- Por Item ---
# ========================
async def item_stats(
    db: AsyncIOMotorDatabase,
    event_type: AnalyticsEventType,
    item_id: uuid.UUID,
    since: datetime
) -> Dict[str, Any]:
    """Cliques, visitantes únicos e série diária de um link ou produto."""
    id_field = "link_id" if event_type == AnalyticsEventType.LINK_CLICK else "product_id"
    query = {id_field: str(item_id), "type": event_type.value, "timestamp": {"$gte": since}}
    collection = _get_analytics_collection(db)
    pipeline = [
        {"$match": query},
        {"$group": {"_id": _DAY_FORMAT, "clicks": {"$sum": 1}, "unique_visitors": {"$addToSet": "$ip_address"}}},
        {"$project": {"_id": 0, "date": "$_id", "clicks": 1, "unique_visitors": {"$size": "$unique_visitors"}}},
        {"$sort": {"date": 1}},
    ]
    return {
        "total_clicks": await collection.count_documents(query),
        "unique_visitors": len(await collection.distinct("ip_address", query)),
        "daily_clicks": await _aggregate(db, pipeline),
    }

async def count_events(db: AsyncIOMotorDatabase, user_id: uuid.UUID, event_types: List[AnalyticsEventType], since: Optional[datetime] = None) -> int:
    """Quantidade de eventos dos tipos informados, opcionalmente a partir de `since`."""
    query: Dict[str, Any] = {"user_id": str(user_id), "type": {"$in": [event_type.value for event_type in event_types]}}
    if since is not None:
        query["timestamp"] = {"$gte": since}
    return await _get_analytics_collection(db).count_documents(query)

# ========================
# --- Índices ---
# ========================
async def create_analytics_indexes(db: AsyncIOMotorDatabase):
    collection = _get_analytics_collection(db)
    try:
        await collection.create_index([("user_id", ASCENDING), ("timestamp", DESCENDING)], name="analytics_user_time_idx")
        await collection.create_index([("link_id", ASCENDING), ("timestamp", DESCENDING)], name="analytics_link_time_idx")
        await collection.create_index([("product_id", ASCENDING), ("timestamp", DESCENDING)], name="analytics_product_time_idx")
        await collection.create_index([("type", ASCENDING), ("timestamp", DESCENDING)], name="analytics_type_time_idx")
        await collection.create_index([("timestamp", DESCENDING)], name="analytics_time_idx")
        logger.info("Índices da coleção 'analytics' verificados/criados com sucesso.")
    except Exception as e:
        logger.error(f"Erro ao criar índices para a coleção 'analytics': {e}", exc_info=True)
