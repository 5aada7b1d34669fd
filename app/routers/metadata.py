# app/routers/metadata.py
"""
Rota de pré-visualização: retorna os metadados de uma URL sem gravar nada.
"""

from typing import Annotated

from fastapi import APIRouter, Body

from app.core.dependencies import CurrentUser
from app.models.metadata import MetadataRequest, UrlMetadata
from app.services.url_metadata import fetch_metadata_for

router = APIRouter(
    prefix="/metadata",
    tags=["Metadata"],
)

@router.post("/fetch", response_model=UrlMetadata, summary="Extrai os metadados de uma URL")
async def fetch_metadata(
    current_user: CurrentUser,
    payload: Annotated[MetadataRequest, Body(description="URL http(s) a ser inspecionada.")]
):
    """
    Nunca falha por causa da página de destino: em caso de erro, devolve um
    registro mínimo baseado no domínio.
    """
    return await fetch_metadata_for(payload.url)
