# app/services/analytics.py
"""
Registro de eventos de analytics a partir de uma requisição HTTP.

Extrai IP, User-Agent e Referer da requisição, classifica o dispositivo e o
navegador por substrings do User-Agent e grava o evento.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorDatabase

# --- Módulos da Aplicação ---
from app.db import analytics_crud
from app.models.analytics import AnalyticsEvent, AnalyticsEventType

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

# ========================
# --- Classificação do User-Agent ---
# ========================
def detect_device(user_agent: Optional[str]) -> str:
    """'mobile', 'tablet' ou 'desktop' (padrão)."""
    ua = (user_agent or "").lower()
    if any(marker in ua for marker in ("mobile", "android", "iphone")):
        return "mobile"
    if any(marker in ua for marker in ("tablet", "ipad")):
        return "tablet"
    return "desktop"

def detect_browser(user_agent: Optional[str]) -> str:
    """
    Nome do navegador. Edge e Opera também anunciam "Chrome" no User-Agent,
    então são testados antes dele.
    """
    ua = (user_agent or "").lower()
    if "edg" in ua:
        return "Edge"
    if "opr/" in ua or "opera" in ua:
        return "Opera"
    if "chrome" in ua:
        return "Chrome"
    if "firefox" in ua:
        return "Firefox"
    if "safari" in ua:
        return "Safari"
    return "Other"

def client_ip(request: Request) -> str:
    """Primeiro IP de `X-Forwarded-For` (atrás de proxy) ou o IP da conexão."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else UNKNOWN

# ========================
# --- Registro ---
# ========================
async def record_request_event(
    db: AsyncIOMotorDatabase,
    request: Request,
    user_id: uuid.UUID,
    event_type: AnalyticsEventType,
    link_id: Optional[uuid.UUID] = None,
    product_id: Optional[uuid.UUID] = None,
) -> AnalyticsEvent:
    """Monta o evento com os dados do visitante e o grava."""
    user_agent = request.headers.get("user-agent") or UNKNOWN
    event = AnalyticsEvent(
        user_id=user_id,
        type=event_type,
        link_id=link_id,
        product_id=product_id,
        ip_address=client_ip(request),
        user_agent=user_agent,
        referer=request.headers.get("referer"),
        device=detect_device(user_agent),
        browser=detect_browser(user_agent),
    )
    return await analytics_crud.record_event(db, event)
