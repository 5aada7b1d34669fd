# app/models/collection.py
"""
Modelos Pydantic das coleções de produtos: agrupamentos ordenados de
produtos do próprio usuário (ex: "Setup de escritório", "Favoritos").
"""

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ConfigDict, Field, computed_field, field_validator

from app.models.common import CamelModel, PaginationMeta

def _unique_ids(product_ids: Optional[List[uuid.UUID]]) -> Optional[List[uuid.UUID]]:
    if product_ids is None:
        return None
    return list(dict.fromkeys(product_ids))

# ========================
# --- Modelos de Entrada ---
# ========================
class CollectionCreate(CamelModel):
    """Dados para criar uma coleção. Todos os produtos devem pertencer ao usuário."""
    title: str = Field(..., title="Título", min_length=1, max_length=100)
    description: Optional[str] = Field(None, title="Descrição", max_length=300)
    image: Optional[str] = Field(None, title="URL da Imagem")
    products: List[uuid.UUID] = Field(default_factory=list, title="IDs dos Produtos")

    @field_validator("products", mode="after")
    @classmethod
    def dedupe_products(cls, value: List[uuid.UUID]) -> List[uuid.UUID]:
        return _unique_ids(value)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Setup de escritório",
                    "description": "Tudo que uso no dia a dia",
                    "products": ["3fa85f64-5717-4562-b3fc-2c963f66afa6"]
                }
            ]
        }
    }

class CollectionUpdate(CamelModel):
    """
    Atualização parcial. Quando `products` é enviado, substitui a lista
    inteira: os produtos retirados deixam de apontar para a coleção.
    """
    title: Optional[str] = Field(None, title="Título", min_length=1, max_length=100)
    description: Optional[str] = Field(None, title="Descrição", max_length=300)
    image: Optional[str] = Field(None, title="URL da Imagem")
    products: Optional[List[uuid.UUID]] = Field(None, title="IDs dos Produtos")
    is_active: Optional[bool] = Field(None, title="Ativa")
    order: Optional[int] = Field(None, title="Posição", ge=0)

    @field_validator("products", mode="after")
    @classmethod
    def dedupe_products(cls, value: Optional[List[uuid.UUID]]) -> Optional[List[uuid.UUID]]:
        return _unique_ids(value)

class CollectionOrderItem(CamelModel):
    id: uuid.UUID
    order: int = Field(..., ge=0)

class CollectionReorderRequest(CamelModel):
    collection_orders: List[CollectionOrderItem] = Field(..., min_length=1, title="Novas Posições")

class CollectionProductRequest(CamelModel):
    product_id: uuid.UUID = Field(..., title="ID do Produto")

# ========================
# --- Representação Persistida / Resposta ---
# ========================
class ProductCollection(CamelModel):
    """Coleção como armazenada no banco e devolvida pela API."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, title="ID Único da Coleção")
    user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    products: List[uuid.UUID] = Field(default_factory=list)
    is_active: bool = True
    order: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def product_count(self) -> int:
        return len(self.products)

class CollectionListResponse(CamelModel):
    collections: List[ProductCollection]
    pagination: PaginationMeta
