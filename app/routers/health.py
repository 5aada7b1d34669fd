# app/routers/health.py
"""Health check usado por orquestradores (Docker, load balancers)."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.db.mongodb_utils import check_mongo_connection

router = APIRouter(tags=["Health"])

@router.get("/health", summary="Verifica se a API e o MongoDB estão disponíveis")
async def health_check():
    """200 com `status: ok` se o ping no MongoDB responder; 503 caso contrário."""
    if not await check_mongo_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "database": "unavailable", "message": "MongoDB não está disponível"},
        )
    return {"status": "ok", "database": "connected", "service": settings.PROJECT_NAME}
