"""
Modelos e utilitários compartilhados entre as entidades da API:
base com aliases camelCase, parâmetros e metadados de paginação.
"""

# ========================
# --- Importações ---
# ========================
import math
from enum import Enum
from typing import Any, Dict, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ========================
# --- Modelo Base camelCase ---
# ========================
class CamelModel(BaseModel):
    """
    Base para modelos expostos na API.

    Os campos são declarados em snake_case (como são gravados no MongoDB),
    mas serializados em camelCase nas respostas. Na entrada ambos os formatos
    são aceitos.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ========================
# --- Ordenação e Paginação ---
# ========================
class SortField(str, Enum):
    """Campos aceitos em `sortBy`, mapeados para o nome gravado no banco."""
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    CLICK_COUNT = "clickCount"
    ORDER = "order"

    @property
    def db_field(self) -> str:
        return {
            SortField.CREATED_AT: "created_at",
            SortField.UPDATED_AT: "updated_at",
            SortField.CLICK_COUNT: "click_count",
            SortField.ORDER: "order",
        }[self]

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

class PaginationParams(BaseModel):
    """Parâmetros de paginação já validados (ver `app.core.dependencies.pagination_dependency`)."""
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

class PaginationMeta(CamelModel):
    """Metadados de paginação devolvidos junto às listagens."""
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, params: PaginationParams, total: int) -> "PaginationMeta":
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            pages=math.ceil(total / params.limit) if params.limit else 0,
        )

class MessageResponse(CamelModel):
    success: bool = True
    message: str

# ========================
# --- Atualizações Parciais ---
# ========================
def _accepts_none(model: Type[BaseModel], field_name: str) -> bool:
    field = model.model_fields.get(field_name)
    return field is not None and not field.is_required() and field.default is None

def partial_update_fields(update: BaseModel, stored_model: Type[BaseModel]) -> Dict[str, Any]:
    """
    Campos enviados em uma atualização parcial, prontos para `$set`.

    Um `null` explícito só é gravado quando o campo aceita None no modelo
    persistido (ex: descrição, imagem, bio). Nos demais campos (título,
    status, enums do tema...) ele é descartado, e o documento continua válido.
    """
    update_data = update.model_dump(mode="json", exclude_unset=True)
    return {
        key: value for key, value in update_data.items()
        if value is not None or _accepts_none(stored_model, key)
    }
