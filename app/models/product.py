# app/models/product.py
"""
Modelos Pydantic da entidade Produto (Product): itens com link de afiliado,
preço opcional e tags, acessados publicamente por `/p/<shortCode>`.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ConfigDict, Field, computed_field, field_validator

from app.core.shortcode import SHORT_CODE_PATTERN
from app.models.common import CamelModel, PaginationMeta
from app.models.link import HTTP_URL_PATTERN

CURRENCY_PATTERN = "^[A-Z]{3}$"
TAG_MAX_LENGTH = 30

def _normalize_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    normalized = []
    for tag in tags:
        tag = tag.strip().lower()
        if len(tag) > TAG_MAX_LENGTH:
            raise ValueError(f"Cada tag deve ter no máximo {TAG_MAX_LENGTH} caracteres")
        if tag:
            normalized.append(tag)
    return normalized

# ========================
# --- Modelos de Entrada ---
# ========================
class ProductCreate(CamelModel):
    """
    Dados para criar um produto. Título e imagem ausentes são preenchidos a
    partir dos metadados da URL de afiliado, assim como preço e moeda.
    """
    affiliate_url: str = Field(..., title="URL de Afiliado", pattern=HTTP_URL_PATTERN, max_length=2048)
    title: Optional[str] = Field(None, title="Título", min_length=1, max_length=150)
    description: Optional[str] = Field(None, title="Descrição", max_length=500)
    price: Optional[float] = Field(None, title="Preço", ge=0)
    currency: Optional[str] = Field(None, title="Moeda (ISO 4217)", pattern=CURRENCY_PATTERN)
    image: Optional[str] = Field(None, title="URL da Imagem")
    short_code: Optional[str] = Field(None, title="Short Code", pattern=SHORT_CODE_PATTERN)
    tags: List[str] = Field(default_factory=list, title="Tags")

    @field_validator("tags", mode="after")
    @classmethod
    def normalize_tags(cls, value: List[str]) -> List[str]:
        return _normalize_tags(value)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "affiliateUrl": "https://store.example.com/item/42",
                    "title": "Fone Bluetooth",
                    "price": 199.9,
                    "currency": "BRL",
                    "tags": ["audio", "tech"]
                }
            ]
        }
    }

class ProductUpdate(CamelModel):
    """Atualização parcial de um produto. O short code não pode ser alterado."""
    affiliate_url: Optional[str] = Field(None, title="URL de Afiliado", pattern=HTTP_URL_PATTERN, max_length=2048)
    title: Optional[str] = Field(None, title="Título", min_length=1, max_length=150)
    description: Optional[str] = Field(None, title="Descrição", max_length=500)
    price: Optional[float] = Field(None, title="Preço", ge=0)
    currency: Optional[str] = Field(None, title="Moeda (ISO 4217)", pattern=CURRENCY_PATTERN)
    image: Optional[str] = Field(None, title="URL da Imagem")
    tags: Optional[List[str]] = Field(None, title="Tags")
    is_active: Optional[bool] = Field(None, title="Ativo")

    @field_validator("tags", mode="after")
    @classmethod
    def normalize_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _normalize_tags(value)

# ========================
# --- Representação Persistida / Resposta ---
# ========================
class Product(CamelModel):
    """Produto como armazenado no banco e devolvido pela API."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, title="ID Único do Produto")
    user_id: uuid.UUID
    title: str
    affiliate_url: str
    short_code: str
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    currency: str = "USD"
    image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True
    click_count: int = Field(default=0, ge=0)
    collection_id: Optional[uuid.UUID] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def short_url(self) -> str:
        return f"/p/{self.short_code}"

class ProductListResponse(CamelModel):
    products: List[Product]
    pagination: PaginationMeta
