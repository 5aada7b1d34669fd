# app/models/link.py
"""
Este módulo define os modelos Pydantic para a entidade Link.
Inclui modelos para criação, atualização, reordenação e a representação
armazenada/retornada pela API (com a URL curta derivada do short code).
"""

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, computed_field

from app.core.shortcode import SHORT_CODE_PATTERN
from app.models.common import CamelModel, PaginationMeta

HTTP_URL_PATTERN = r"^https?://.+"

# ========================
# --- Enums ---
# ========================
class LinkType(str, Enum):
    """Tipo de item exibido na página pública."""
    LINK = "link"
    HEADER = "header"
    SOCIAL = "social"
    PRODUCT_COLLECTION = "product_collection"

# ========================
# --- Modelos de Entrada ---
# ========================
class LinkCreate(CamelModel):
    """
    Dados para criar um link.

    `title` e `image` são opcionais: quando ausentes, são preenchidos a partir
    dos metadados da URL. Se `short_code` não for informado, um é gerado.
    """
    url: str = Field(..., title="URL de Destino", pattern=HTTP_URL_PATTERN, max_length=2048)
    title: Optional[str] = Field(None, title="Título", min_length=1, max_length=100)
    short_code: Optional[str] = Field(None, title="Short Code", pattern=SHORT_CODE_PATTERN)
    description: Optional[str] = Field(None, title="Descrição", max_length=250)
    image: Optional[str] = Field(None, title="URL da Imagem")
    type: LinkType = Field(default=LinkType.LINK, title="Tipo do Link")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://example.com/my-article",
                    "title": "Meu artigo",
                    "shortCode": "artigo",
                    "type": "link"
                }
            ]
        }
    }

class LinkUpdate(CamelModel):
    """
    Atualização parcial de um link. O short code é imutável após a criação
    e, por isso, não faz parte deste modelo.
    """
    url: Optional[str] = Field(None, title="URL de Destino", pattern=HTTP_URL_PATTERN, max_length=2048)
    title: Optional[str] = Field(None, title="Título", min_length=1, max_length=100)
    description: Optional[str] = Field(None, title="Descrição", max_length=250)
    image: Optional[str] = Field(None, title="URL da Imagem")
    type: Optional[LinkType] = Field(None, title="Tipo do Link")
    is_active: Optional[bool] = Field(None, title="Ativo")
    order: Optional[int] = Field(None, title="Posição", ge=0)

class LinkOrderItem(CamelModel):
    id: uuid.UUID
    order: int = Field(..., ge=0)

class LinkReorderRequest(CamelModel):
    link_orders: List[LinkOrderItem] = Field(..., min_length=1, title="Novas Posições")

# ========================
# --- Representação Persistida / Resposta ---
# ========================
class Link(CamelModel):
    """Link como armazenado no banco e devolvido pela API."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, title="ID Único do Link")
    user_id: uuid.UUID = Field(..., title="ID do Dono")
    title: str
    url: str
    short_code: str
    description: Optional[str] = None
    image: Optional[str] = None
    type: LinkType = LinkType.LINK
    is_active: bool = True
    click_count: int = Field(default=0, ge=0)
    order: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def short_url(self) -> str:
        return f"/s/{self.short_code}"

class LinkListResponse(CamelModel):
    links: List[Link]
    pagination: PaginationMeta
