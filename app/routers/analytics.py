# app/routers/analytics.py
"""
Rotas de analytics: rastreamento público de eventos vindos do frontend e as
consultas do painel (visão geral e detalhes por link ou produto).
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request, status

# --- Módulos da Aplicação ---
from app.core.dependencies import CurrentUser, DbDep
from app.db import analytics_crud, link_crud, product_crud, user_crud
from app.models.analytics import (AnalyticsEventType, AnalyticsPeriod, AnalyticsSummary, BreakdownItem,
                                  DailyStat, DashboardAnalytics, ItemAnalytics, LinkAnalyticsItem,
                                  LinkAnalyticsResponse, ProductAnalyticsItem, ProductAnalyticsResponse,
                                  TopLink, TopProduct, TrackEventRequest, TrackEventResponse)
from app.services.analytics import record_request_event

# ========================
# --- Configuração do Router ---
# ========================
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"],
)

PeriodQuery = Annotated[Optional[str], Query(description="Janela: 1d, 7d, 30d ou 90d (padrão 7d)")]

# ========================
# --- Rastreamento (público) ---
# ========================
@router.post("/track", response_model=TrackEventResponse, summary="Registra um evento de analytics")
async def track_event(
    db: DbDep,
    request: Request,
    payload: Annotated[TrackEventRequest, Body(description="Tipo do evento e o item/usuário envolvido.")]
):
    """
    Rota pública usada pela página de perfil. Cliques incrementam o contador
    do item e herdam dele o dono; visualizações de perfil usam `userId`.

    Raises:
        HTTPException: 400 se não for possível determinar o usuário dono do evento.
    """
    owner_id: Optional[uuid.UUID] = None
    if payload.type == AnalyticsEventType.LINK_CLICK and payload.link_id:
        link = await link_crud.increment_link_clicks(db, payload.link_id)
        owner_id = link.user_id if link else None
    elif payload.type == AnalyticsEventType.PRODUCT_CLICK and payload.product_id:
        product = await product_crud.increment_product_clicks(db, payload.product_id)
        owner_id = product.user_id if product else None
    elif payload.type == AnalyticsEventType.PROFILE_VIEW and payload.user_id:
        user = await user_crud.get_user_by_id(db, payload.user_id)
        owner_id = user.id if user else None

    if owner_id is None:
        logger.warning(f"Evento '{payload.type.value}' descartado: usuário não identificado.")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Não foi possível determinar o usuário do evento",
        )

    event = await record_request_event(
        db, request, owner_id, payload.type, link_id=payload.link_id, product_id=payload.product_id
    )
    return TrackEventResponse(analytics_id=event.id)

# ========================
# --- Painel ---
# ========================
@router.get("/dashboard", response_model=DashboardAnalytics, summary="Visão geral de analytics do usuário")
async def dashboard_analytics(db: DbDep, current_user: CurrentUser, period: PeriodQuery = None):
    window = AnalyticsPeriod.parse(period)
    since = window.start_date()
    counts = await analytics_crud.summary_counts(db, current_user.id, since)
    return DashboardAnalytics(
        summary=AnalyticsSummary(period=window, **counts),
        daily_stats=[DailyStat.model_validate(row) for row in await analytics_crud.daily_stats(db, current_user.id, since)],
        top_links=[
            TopLink.model_validate(row)
            for row in await analytics_crud.top_items(db, current_user.id, since, AnalyticsEventType.LINK_CLICK)
        ],
        top_products=[
            TopProduct.model_validate(row)
            for row in await analytics_crud.top_items(db, current_user.id, since, AnalyticsEventType.PRODUCT_CLICK)
        ],
        device_stats=[BreakdownItem.model_validate(row) for row in await analytics_crud.breakdown(db, current_user.id, since, "device")],
        browser_stats=[BreakdownItem.model_validate(row) for row in await analytics_crud.breakdown(db, current_user.id, since, "browser")],
    )

@router.get("/links/{link_id}", response_model=LinkAnalyticsResponse, summary="Analytics de um link")
async def link_analytics(db: DbDep, current_user: CurrentUser, link_id: uuid.UUID, period: PeriodQuery = None):
    link = await link_crud.get_link_by_id(db, link_id, current_user.id)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link não encontrado")
    window = AnalyticsPeriod.parse(period)
    stats = await analytics_crud.item_stats(db, AnalyticsEventType.LINK_CLICK, link.id, window.start_date())
    return LinkAnalyticsResponse(
        link=LinkAnalyticsItem(id=link.id, title=link.title, url=link.url, total_clicks=link.click_count),
        analytics=ItemAnalytics(period=window, **stats),
    )

@router.get("/products/{product_id}", response_model=ProductAnalyticsResponse, summary="Analytics de um produto")
async def product_analytics(db: DbDep, current_user: CurrentUser, product_id: uuid.UUID, period: PeriodQuery = None):
    product = await product_crud.get_product_by_id(db, product_id, current_user.id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")
    window = AnalyticsPeriod.parse(period)
    stats = await analytics_crud.item_stats(db, AnalyticsEventType.PRODUCT_CLICK, product.id, window.start_date())
    return ProductAnalyticsResponse(
        product=ProductAnalyticsItem(
            id=product.id,
            title=product.title,
            url=product.affiliate_url,
            price=product.price,
            currency=product.currency,
            total_clicks=product.click_count,
        ),
        analytics=ItemAnalytics(period=window, **stats),
    )
