"""
Modelos dos metadados extraídos de uma URL (Open Graph, Twitter Cards,
oEmbed). São dados derivados e não autoritativos: copiados para links e
produtos na criação ou em um refresh explícito.
"""

# ========================
# --- Importações ---
# ========================
from typing import Optional

from pydantic import Field

from app.models.common import CamelModel
from app.models.link import HTTP_URL_PATTERN

# ========================
# --- Metadados ---
# ========================
class UrlMetadata(CamelModel):
    """
    Resultado da extração. Só `url` é garantido; os demais campos podem ser
    string vazia (extração sem resultado) ou None (registro de fallback).
    """
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    price: Optional[str] = None
    currency: Optional[str] = None
    site_name: Optional[str] = None
    type: Optional[str] = None

class MetadataRequest(CamelModel):
    url: str = Field(..., title="URL", pattern=HTTP_URL_PATTERN, max_length=2048)
