# app/routers/redirect.py
"""
Redirecionamentos públicos por short code: `/s/<code>` para links e
`/p/<code>` para produtos. Cada acesso incrementa o contador de cliques e
registra um evento de analytics com os dados do visitante.
"""

# ========================
# --- Importações ---
# ========================
import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Request, status
from fastapi.responses import RedirectResponse

# --- Módulos da Aplicação ---
from app.core.dependencies import DbDep
from app.core.shortcode import SHORT_CODE_PATTERN
from app.db import link_crud, product_crud
from app.models.analytics import AnalyticsEventType
from app.services.analytics import record_request_event

# ========================
# --- Configuração do Router ---
# ========================
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Redirect"])

ShortCodePath = Annotated[str, Path(pattern=SHORT_CODE_PATTERN, description="Short code (4-20 caracteres)")]

# ========================
# --- Rotas ---
# ========================
@router.get("/s/{short_code}", status_code=status.HTTP_301_MOVED_PERMANENTLY, summary="Redireciona para a URL do link")
async def redirect_link(db: DbDep, request: Request, short_code: ShortCodePath):
    link = await link_crud.register_link_click(db, short_code)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link não encontrado")
    await record_request_event(db, request, link.user_id, AnalyticsEventType.LINK_CLICK, link_id=link.id)
    logger.debug(f"Redirecionando /s/{short_code} -> {link.url} (cliques: {link.click_count})")
    return RedirectResponse(url=link.url, status_code=status.HTTP_301_MOVED_PERMANENTLY)

@router.get("/p/{short_code}", status_code=status.HTTP_301_MOVED_PERMANENTLY, summary="Redireciona para a URL de afiliado do produto")
async def redirect_product(db: DbDep, request: Request, short_code: ShortCodePath):
    product = await product_crud.register_product_click(db, short_code)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")
    await record_request_event(db, request, product.user_id, AnalyticsEventType.PRODUCT_CLICK, product_id=product.id)
    logger.debug(f"Redirecionando /p/{short_code} -> {product.affiliate_url} (cliques: {product.click_count})")
    return RedirectResponse(url=product.affiliate_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
