# app/models/analytics.py
"""
Modelos Pydantic dos eventos de analytics (cliques em links/produtos e
visualizações do perfil público) e das respostas agregadas do painel.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field

from app.models.common import CamelModel

# ========================
# --- Enums ---
# ========================
class AnalyticsEventType(str, Enum):
    LINK_CLICK = "link_click"
    PRODUCT_CLICK = "product_click"
    PROFILE_VIEW = "profile_view"

class AnalyticsPeriod(str, Enum):
    """Janela das consultas do painel; valores desconhecidos caem em 7 dias."""
    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AnalyticsPeriod":
        try:
            return cls(value)
        except ValueError:
            return cls.SEVEN_DAYS

    @property
    def days(self) -> int:
        return int(self.value[:-1])

    def start_date(self, now: Optional[datetime] = None) -> datetime:
        return (now or datetime.now(timezone.utc)) - timedelta(days=self.days)

# ========================
# --- Evento Persistido ---
# ========================
class AnalyticsEvent(CamelModel):
    """Um evento registrado. `timestamp` é gravado como data BSON."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: uuid.UUID
    type: AnalyticsEventType
    link_id: Optional[uuid.UUID] = None
    product_id: Optional[uuid.UUID] = None
    ip_address: str = "unknown"
    user_agent: str = "unknown"
    referer: Optional[str] = None
    device: str = "desktop"
    browser: str = "Other"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

# ========================
# --- Rastreamento Público ---
# ========================
class TrackEventRequest(CamelModel):
    """
    Evento enviado pelo frontend. Cliques identificam o dono pelo item;
    visualizações de perfil precisam informar `userId`.
    """
    type: AnalyticsEventType
    link_id: Optional[uuid.UUID] = None
    product_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None

class TrackEventResponse(CamelModel):
    success: bool = True
    message: str = "Evento registrado com sucesso"
    analytics_id: uuid.UUID

# ========================
# --- Painel ---
# ========================
class AnalyticsSummary(CamelModel):
    total_clicks: int
    total_unique_visitors: int
    link_clicks: int
    product_clicks: int
    profile_views: int
    period: AnalyticsPeriod

class TypeCount(CamelModel):
    type: AnalyticsEventType
    count: int

class DailyStat(CamelModel):
    date: str
    total_clicks: int
    unique_visitors: int
    by_type: List[TypeCount] = Field(default_factory=list)

class TopLink(CamelModel):
    id: uuid.UUID
    title: str
    url: str
    clicks: int
    unique_visitors: int

class TopProduct(TopLink):
    price: Optional[float] = None
    currency: Optional[str] = None

class BreakdownItem(CamelModel):
    name: str
    count: int

class DashboardAnalytics(CamelModel):
    summary: AnalyticsSummary
    daily_stats: List[DailyStat]
    top_links: List[TopLink]
    top_products: List[TopProduct]
    device_stats: List[BreakdownItem]
    browser_stats: List[BreakdownItem]

# ========================
# --- Por Item ---
# ========================
class DailyClicks(CamelModel):
    date: str
    clicks: int
    unique_visitors: int

class ItemAnalytics(CamelModel):
    total_clicks: int
    unique_visitors: int
    daily_clicks: List[DailyClicks]
    period: AnalyticsPeriod

class LinkAnalyticsItem(CamelModel):
    id: uuid.UUID
    title: str
    url: str
    total_clicks: int

class ProductAnalyticsItem(LinkAnalyticsItem):
    price: Optional[float] = None
    currency: str

class LinkAnalyticsResponse(CamelModel):
    link: LinkAnalyticsItem
    analytics: ItemAnalytics

class ProductAnalyticsResponse(CamelModel):
    product: ProductAnalyticsItem
    analytics: ItemAnalytics
