"""
Modelos agregados de leitura: a página pública de um usuário e as
estatísticas do painel. `recentClicks` e `recentViews` cobrem os últimos 7 dias.
"""

from typing import List, Union

from app.models.collection import ProductCollection
from app.models.common import CamelModel
from app.models.link import Link
from app.models.product import Product
from app.models.theme import Theme, ThemeSettings
from app.models.user import PublicUser

class PublicProfile(CamelModel):
    """Tudo o que a página pública `/<username>` precisa em uma única resposta."""
    user: PublicUser
    links: List[Link]
    products: List[Product]
    collections: List[ProductCollection]
    theme: Union[Theme, ThemeSettings]

class DashboardStats(CamelModel):
    total_links: int
    active_links: int
    total_products: int
    active_products: int
    link_clicks: int
    product_clicks: int
    total_clicks: int
    total_collections: int
    profile_views: int
    recent_clicks: int
    recent_views: int
