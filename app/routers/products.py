# app/routers/products.py
"""
Rotas CRUD para os produtos (links de afiliado) do usuário autenticado.
"""

# ========================
# --- Importações ---
# ========================
import logging
import re
import uuid
from typing import Annotated, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from app.core.dependencies import CurrentUser, DbDep, pagination_dependency
from app.core.exceptions import ShortCodeTakenError
from app.db import collection_crud, product_crud
from app.db.short_code_crud import reserve_short_code
from app.models.common import PaginationMeta, PaginationParams
from app.models.product import CURRENCY_PATTERN, Product, ProductCreate, ProductListResponse, ProductUpdate
from app.services.url_metadata import DEFAULT_CURRENCY, domain_name, fetch_metadata_for

# ========================
# --- Configuração do Router ---
# ========================
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["Products"],
    responses={404: {"description": "Produto não encontrado"}},
)

ProductPagination = Annotated[PaginationParams, Depends(pagination_dependency())]

TITLE_MAX_LENGTH = 150
DESCRIPTION_MAX_LENGTH = 500

def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")

def _parse_price(raw: Optional[str]) -> Optional[float]:
    """
    Converte o preço extraído da página ("1,299.90", "49,90") em número.
    A vírgula é tratada como separador decimal quando é o último separador.
    """
    if not raw:
        return None
    if "," in raw and raw.rfind(",") > raw.rfind("."):
        normalized = raw.replace(".", "").replace(",", ".")
    else:
        normalized = raw.replace(",", "")
    try:
        return float(normalized)
    except ValueError:
        logger.debug(f"Preço extraído não numérico ignorado: '{raw}'")
        return None

# ========================
# --- Rotas da API ---
# ========================
@router.post(
    "/",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Cria um novo produto",
)
async def create_product(
    db: DbDep,
    current_user: CurrentUser,
    product_in: Annotated[ProductCreate, Body(description="Dados do produto a ser criado.")]
):
    """
    Cria um produto. Título ou imagem ausentes disparam a busca de metadados da
    URL de afiliado, que também fornece preço e moeda quando não enviados.
    """
    short_code = await reserve_short_code(db, product_in.short_code)

    title, description, image = product_in.title, product_in.description, product_in.image
    price, currency = product_in.price, product_in.currency
    if not title or not image:
        metadata = await fetch_metadata_for(product_in.affiliate_url)
        title = title or (metadata.title or "")[:TITLE_MAX_LENGTH] or domain_name(product_in.affiliate_url)
        description = description or (metadata.description or "")[:DESCRIPTION_MAX_LENGTH] or None
        image = image or metadata.image or None
        if price is None:
            price = _parse_price(metadata.price)
        if currency is None and metadata.currency and re.fullmatch(CURRENCY_PATTERN, metadata.currency):
            currency = metadata.currency

    product = Product(
        user_id=current_user.id,
        title=title,
        affiliate_url=product_in.affiliate_url,
        short_code=short_code,
        description=description,
        price=price,
        currency=currency or DEFAULT_CURRENCY,
        image=image,
        tags=product_in.tags,
    )
    try:
        created = await product_crud.create_product(db, product)
    except DuplicateKeyError:
        raise ShortCodeTakenError(short_code)
    if created is None: # pragma: no cover
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Não foi possível criar o produto.")
    return created

@router.get("/", response_model=ProductListResponse, summary="Lista os produtos do usuário")
async def list_products(
    db: DbDep,
    current_user: CurrentUser,
    pagination: ProductPagination,
    tags: Annotated[Optional[List[str]], Query(description="Filtra por qualquer uma das tags")] = None,
):
    products, total = await product_crud.list_products(db, current_user.id, pagination, tags=tags)
    return ProductListResponse(products=products, pagination=PaginationMeta.build(pagination, total))

@router.get("/{product_id}", response_model=Product, summary="Obtém um produto pelo ID")
async def get_product(db: DbDep, current_user: CurrentUser, product_id: uuid.UUID):
    product = await product_crud.get_product_by_id(db, product_id, current_user.id)
    if product is None:
        raise _not_found()
    return product

@router.put("/{product_id}", response_model=Product, summary="Atualiza um produto")
async def update_product(
    db: DbDep,
    current_user: CurrentUser,
    product_id: uuid.UUID,
    product_update: Annotated[ProductUpdate, Body(description="Campos a atualizar (o short code não pode ser alterado).")]
):
    updated = await product_crud.update_product(db, product_id, current_user.id, product_update)
    if updated is None:
        raise _not_found()
    return updated

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Deleta um produto")
async def delete_product(db: DbDep, current_user: CurrentUser, product_id: uuid.UUID):
    if not await product_crud.delete_product(db, product_id, current_user.id):
        raise _not_found()
    await collection_crud.pull_product_from_all(db, current_user.id, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
