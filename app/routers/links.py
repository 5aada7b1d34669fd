# app/routers/links.py
"""
Rotas CRUD para os links do usuário autenticado, incluindo reordenação e
atualização dos metadados a partir da URL de destino.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from app.core.dependencies import CurrentUser, DbDep, pagination_dependency
from app.core.exceptions import ShortCodeTakenError
from app.db import link_crud
from app.db.short_code_crud import reserve_short_code
from app.models.common import MessageResponse, PaginationMeta, PaginationParams, SortField, SortOrder
from app.models.link import Link, LinkCreate, LinkListResponse, LinkReorderRequest, LinkUpdate
from app.services.url_metadata import domain_name, fetch_metadata_for

# ========================
# --- Configuração do Router ---
# ========================
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/links",
    tags=["Links"],
    responses={404: {"description": "Link não encontrado"}},
)

LinkPagination = Annotated[PaginationParams, Depends(pagination_dependency(SortField.ORDER, SortOrder.ASC))]

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 250

def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link não encontrado")

# ========================
# --- Rotas da API ---
# ========================
@router.post(
    "/",
    response_model=Link,
    status_code=status.HTTP_201_CREATED,
    summary="Cria um novo link",
)
async def create_link(
    db: DbDep,
    current_user: CurrentUser,
    link_in: Annotated[LinkCreate, Body(description="Dados do link a ser criado.")]
):
    """
    Cria um link no fim da lista do usuário.

    Se título ou imagem não forem enviados, os metadados da URL são buscados e
    usados para preencher os campos ausentes; valores enviados sempre prevalecem.
    """
    short_code = await reserve_short_code(db, link_in.short_code)

    title, description, image = link_in.title, link_in.description, link_in.image
    if not title or not image:
        metadata = await fetch_metadata_for(link_in.url)
        title = title or (metadata.title or "")[:TITLE_MAX_LENGTH] or domain_name(link_in.url)
        description = description or (metadata.description or "")[:DESCRIPTION_MAX_LENGTH] or None
        image = image or metadata.image or None

    link = Link(
        user_id=current_user.id,
        title=title,
        url=link_in.url,
        short_code=short_code,
        description=description,
        image=image,
        type=link_in.type,
        order=await link_crud.get_next_order(db, current_user.id),
    )
    try:
        created = await link_crud.create_link(db, link)
    except DuplicateKeyError:
        raise ShortCodeTakenError(short_code)
    if created is None: # pragma: no cover
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Não foi possível criar o link.")
    return created

@router.get("/", response_model=LinkListResponse, summary="Lista os links do usuário")
async def list_links(db: DbDep, current_user: CurrentUser, pagination: LinkPagination):
    links, total = await link_crud.list_links(db, current_user.id, pagination)
    return LinkListResponse(links=links, pagination=PaginationMeta.build(pagination, total))

@router.post("/reorder", response_model=MessageResponse, summary="Reordena os links do usuário")
async def reorder_links(
    db: DbDep,
    current_user: CurrentUser,
    payload: Annotated[LinkReorderRequest, Body(description="Lista de {id, order}.")]
):
    modified = await link_crud.reorder_links(db, current_user.id, payload.link_orders)
    return MessageResponse(message=f"Links reordenados com sucesso ({modified} alterado(s))")

@router.get("/{link_id}", response_model=Link, summary="Obtém um link pelo ID")
async def get_link(db: DbDep, current_user: CurrentUser, link_id: uuid.UUID):
    link = await link_crud.get_link_by_id(db, link_id, current_user.id)
    if link is None:
        raise _not_found()
    return link

@router.put("/{link_id}", response_model=Link, summary="Atualiza um link")
async def update_link(
    db: DbDep,
    current_user: CurrentUser,
    link_id: uuid.UUID,
    link_update: Annotated[LinkUpdate, Body(description="Campos a atualizar (o short code não pode ser alterado).")]
):
    updated = await link_crud.update_link(db, link_id, current_user.id, link_update)
    if updated is None:
        raise _not_found()
    return updated

@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Deleta um link")
async def delete_link(db: DbDep, current_user: CurrentUser, link_id: uuid.UUID):
    if not await link_crud.delete_link(db, link_id, current_user.id):
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/{link_id}/refresh-metadata", response_model=Link, summary="Atualiza título, descrição e imagem a partir da URL")
async def refresh_link_metadata(db: DbDep, current_user: CurrentUser, link_id: uuid.UUID):
    """Busca novamente os metadados da URL e sobrescreve os campos não vazios."""
    link = await link_crud.get_link_by_id(db, link_id, current_user.id)
    if link is None:
        raise _not_found()

    metadata = await fetch_metadata_for(link.url)
    fields = {}
    if metadata.title:
        fields["title"] = metadata.title[:TITLE_MAX_LENGTH]
    if metadata.description:
        fields["description"] = metadata.description[:DESCRIPTION_MAX_LENGTH]
    if metadata.image:
        fields["image"] = metadata.image

    updated = await link_crud.set_link_fields(db, link_id, current_user.id, fields)
    if updated is None:
        raise _not_found()
    return updated
