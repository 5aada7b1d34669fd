# app/db/short_code_crud.py
"""
Consulta de disponibilidade de short codes.

Links (`/s/...`) e produtos (`/p/...`) compartilham o mesmo espaço de códigos:
um código só está livre se não existir em nenhuma das duas coleções.
"""

# ========================
# --- Importações ---
# ========================
import logging
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

# --- Módulos da Aplicação ---
from app.core.config import settings
from app.core.exceptions import ShortCodeTakenError
from app.core.shortcode import allocate_short_code
from app.db.link_crud import LINKS_COLLECTION
from app.db.product_crud import PRODUCTS_COLLECTION

logger = logging.getLogger(__name__)

async def is_short_code_available(db: AsyncIOMotorDatabase, short_code: str) -> bool:
    """True se nenhum link nem produto usa `short_code`."""
    for collection_name in (LINKS_COLLECTION, PRODUCTS_COLLECTION):
        existing = await db[collection_name].find_one({"short_code": short_code}, {"_id": 1})
        if existing:
            return False
    return True

async def reserve_short_code(db: AsyncIOMotorDatabase, requested: Optional[str] = None) -> str:
    """
    Usa o short code pedido se estiver livre; sem pedido, gera um novo.

    Raises:
        ShortCodeTakenError: O código pedido já está em uso.
        ShortCodeExhaustedError: Nenhum código livre foi gerado.
    """
    if requested:
        if not await is_short_code_available(db, requested):
            logger.info(f"Short code pedido já está em uso: {requested}")
            raise ShortCodeTakenError(requested)
        return requested
    return await allocate_unique_short_code(db)

async def allocate_unique_short_code(db: AsyncIOMotorDatabase) -> str:
    """
    Gera um short code livre nas duas coleções, com o tamanho e o limite de
    tentativas configurados.

    Raises:
        ShortCodeExhaustedError: Se todas as tentativas colidirem.
    """
    async def _is_available(candidate: str) -> bool:
        return await is_short_code_available(db, candidate)

    return await allocate_short_code(
        _is_available,
        length=settings.SHORT_CODE_LENGTH,
        max_attempts=settings.SHORT_CODE_MAX_ATTEMPTS,
    )
