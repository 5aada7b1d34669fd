# app/routers/collections.py
"""
Rotas das coleções de produtos do usuário autenticado: CRUD, reordenação e
inclusão/remoção individual de produtos.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Annotated, List

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

# --- Módulos da Aplicação ---
from app.core.dependencies import CurrentUser, DbDep, pagination_dependency
from app.db import collection_crud, product_crud
from app.models.collection import (CollectionCreate, CollectionListResponse, CollectionProductRequest,
                                   CollectionReorderRequest, CollectionUpdate, ProductCollection)
from app.models.common import MessageResponse, PaginationMeta, PaginationParams, SortField, SortOrder

# ========================
# --- Configuração do Router ---
# ========================
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/collections",
    tags=["Collections"],
    responses={404: {"description": "Coleção não encontrada"}},
)

CollectionPagination = Annotated[PaginationParams, Depends(pagination_dependency(SortField.ORDER, SortOrder.ASC))]

def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coleção não encontrada")

async def _ensure_products_owned(db, user_id: uuid.UUID, product_ids: List[uuid.UUID]) -> None:
    if product_ids and await product_crud.count_owned_products(db, user_id, product_ids) != len(product_ids):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Alguns produtos não existem ou não pertencem a você",
        )

# ========================
# --- Rotas da API ---
# ========================
@router.post(
    "/",
    response_model=ProductCollection,
    status_code=status.HTTP_201_CREATED,
    summary="Cria uma coleção de produtos",
)
async def create_collection(
    db: DbDep,
    current_user: CurrentUser,
    collection_in: Annotated[CollectionCreate, Body(description="Dados da coleção a ser criada.")]
):
    """
    Cria a coleção na última posição do usuário e vincula os produtos
    informados a ela.
    """
    await _ensure_products_owned(db, current_user.id, collection_in.products)

    product_collection = ProductCollection(
        user_id=current_user.id,
        title=collection_in.title,
        description=collection_in.description,
        image=collection_in.image,
        products=collection_in.products,
        order=await collection_crud.get_next_order(db, current_user.id),
    )
    created = await collection_crud.create_collection(db, product_collection)
    if created is None: # pragma: no cover
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Não foi possível criar a coleção.")
    await product_crud.set_products_collection(db, current_user.id, created.products, created.id)
    return created

@router.get("/", response_model=CollectionListResponse, summary="Lista as coleções do usuário")
async def list_collections(db: DbDep, current_user: CurrentUser, pagination: CollectionPagination):
    collections, total = await collection_crud.list_collections(db, current_user.id, pagination)
    return CollectionListResponse(collections=collections, pagination=PaginationMeta.build(pagination, total))

# Declarada antes de "/{collection_id}" para não ser capturada por ela
@router.put("/reorder", response_model=MessageResponse, summary="Reordena as coleções do usuário")
async def reorder_collections(
    db: DbDep,
    current_user: CurrentUser,
    payload: Annotated[CollectionReorderRequest, Body(description="Lista de {id, order}.")]
):
    modified = await collection_crud.reorder_collections(db, current_user.id, payload.collection_orders)
    return MessageResponse(message=f"Coleções reordenadas com sucesso ({modified} alterada(s))")

@router.get("/{collection_id}", response_model=ProductCollection, summary="Obtém uma coleção pelo ID")
async def get_collection(db: DbDep, current_user: CurrentUser, collection_id: uuid.UUID):
    product_collection = await collection_crud.get_collection_by_id(db, collection_id, current_user.id)
    if product_collection is None:
        raise _not_found()
    return product_collection

@router.put("/{collection_id}", response_model=ProductCollection, summary="Atualiza uma coleção")
async def update_collection(
    db: DbDep,
    current_user: CurrentUser,
    collection_id: uuid.UUID,
    collection_update: Annotated[CollectionUpdate, Body(description="Campos a atualizar; `products` substitui a lista.")]
):
    current = await collection_crud.get_collection_by_id(db, collection_id, current_user.id)
    if current is None:
        raise _not_found()
    if collection_update.products is not None:
        await _ensure_products_owned(db, current_user.id, collection_update.products)

    updated = await collection_crud.update_collection(db, collection_id, current_user.id, collection_update)
    if updated is None:
        raise _not_found()

    if collection_update.products is not None:
        removed = [product_id for product_id in current.products if product_id not in updated.products]
        await product_crud.detach_products_from_collection(db, current_user.id, collection_id, removed)
        await product_crud.set_products_collection(db, current_user.id, updated.products, collection_id)
    return updated

@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Deleta uma coleção")
async def delete_collection(db: DbDep, current_user: CurrentUser, collection_id: uuid.UUID):
    """Deleta a coleção; os produtos continuam existindo, apenas desvinculados."""
    deleted = await collection_crud.delete_collection(db, collection_id, current_user.id)
    if deleted is None:
        raise _not_found()
    await product_crud.detach_products_from_collection(db, current_user.id, collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# ========================
# --- Produtos da Coleção ---
# ========================
@router.put("/{collection_id}/products", response_model=ProductCollection, summary="Adiciona um produto à coleção")
async def add_product_to_collection(
    db: DbDep,
    current_user: CurrentUser,
    collection_id: uuid.UUID,
    payload: Annotated[CollectionProductRequest, Body(description="Produto a adicionar.")]
):
    product_collection = await collection_crud.get_collection_by_id(db, collection_id, current_user.id)
    if product_collection is None:
        raise _not_found()
    product = await product_crud.get_product_by_id(db, payload.product_id, current_user.id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")
    if payload.product_id in product_collection.products:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="O produto já está na coleção")

    updated = await collection_crud.add_product(db, collection_id, current_user.id, payload.product_id)
    if updated is None:
        # Adicionado por outra requisição entre a leitura e o `$push`
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="O produto já está na coleção")
    await product_crud.set_products_collection(db, current_user.id, [payload.product_id], collection_id)
    logger.info(f"Produto {payload.product_id} adicionado à coleção {collection_id}.")
    return updated

@router.delete(
    "/{collection_id}/products/{product_id}",
    response_model=ProductCollection,
    summary="Remove um produto da coleção",
)
async def remove_product_from_collection(
    db: DbDep,
    current_user: CurrentUser,
    collection_id: uuid.UUID,
    product_id: uuid.UUID
):
    if await collection_crud.get_collection_by_id(db, collection_id, current_user.id) is None:
        raise _not_found()
    if await product_crud.get_product_by_id(db, product_id, current_user.id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")

    updated = await collection_crud.remove_product(db, collection_id, current_user.id, product_id)
    if updated is None:
        raise _not_found()
    await product_crud.detach_products_from_collection(db, current_user.id, collection_id, [product_id])
    logger.info(f"Produto {product_id} removido da coleção {collection_id}.")
    return updated
