# app/main.py
"""
Ponto de entrada principal e configuração da aplicação FastAPI LinkBio.
Define a instância da aplicação, middlewares, handlers de exceção, rotas,
ciclo de vida (lifespan) e o endpoint raiz. Também inclui o setup de logging inicial.
"""

# ========================
# --- Importações ---
# ========================
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# --- Módulos da Aplicação ---
from app.routers import analytics, auth, collections, health, links, metadata, products, redirect, theme, users
from app.db.mongodb_utils import close_mongo_connection, connect_to_mongo, create_all_indexes
from app.core.config import Settings, settings
from app.core.exceptions import register_exception_handlers
from app.core.logging_config import setup_logging

# ========================
# --- Configuração de Logging ---
# ========================
setup_logging(log_level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# ========================
# --- Função de Setup do Middleware CORS ---
# ========================
def _setup_cors_middleware(app_instance: FastAPI, current_settings: Settings):
    """Configura o middleware CORS para a aplicação."""
    if current_settings.CORS_ALLOWED_ORIGINS:
        logger.info(f"Configurando CORS para origens: {current_settings.CORS_ALLOWED_ORIGINS}")
        app_instance.add_middleware(
            CORSMiddleware,
            allow_origins=current_settings.CORS_ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        logger.warning(
            "Nenhuma origem CORS configurada (settings.CORS_ALLOWED_ORIGINS está vazia). "
            "O frontend só conseguirá acessar a API se estiver no mesmo domínio."
        )

# ========================
# --- Ciclo de Vida (Lifespan) ---
# ========================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Conecta ao MongoDB e cria os índices de todas as coleções no startup;
    fecha a conexão no shutdown.
    """
    logger.info("Iniciando ciclo de vida da aplicação...")
    db_connection = await connect_to_mongo()

    if db_connection is None:
        logger.critical("Falha fatal ao conectar ao MongoDB na inicialização. App pode não funcionar corretamente.")
        yield
        logger.info("Encerrando ciclo de vida (conexão DB falhou no início).")
        return

    app.state.db = db_connection
    logger.info("Tentando criar/verificar índices...")
    try:
        await create_all_indexes(db_connection)
        logger.info("Criação/verificação de índices concluída.")
    except Exception as e:
        logger.error(f"Erro durante a criação de índices: {e}", exc_info=True)

    if not settings.JWT_SECRET_KEY:
        logger.critical("JWT_SECRET_KEY ausente: rotas autenticadas responderão 500 até que seja configurada.")

    logger.info("Aplicação iniciada e pronta.") # pragma: no cover
    yield # pragma: no cover

    logger.info("Iniciando processo de encerramento...")
    await close_mongo_connection()
    logger.info("Aplicação encerrada.")

# ========================
# --- Instância FastAPI ---
# ========================
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API de páginas link-in-bio: usuários, links, produtos, temas e redirecionamentos por short code.",
    version="0.1.0",
    lifespan=lifespan
)

# ========================
# --- Configuração de Middlewares e Handlers ---
# ========================
_setup_cors_middleware(app, settings)
register_exception_handlers(app)

# ========================
# --- Rotas (Routers) ---
# ========================
app.include_router(auth.router, prefix=settings.API_V1_STR)
app.include_router(users.router, prefix=settings.API_V1_STR)
app.include_router(links.router, prefix=settings.API_V1_STR)
app.include_router(products.router, prefix=settings.API_V1_STR)
app.include_router(collections.router, prefix=settings.API_V1_STR)
app.include_router(theme.router, prefix=settings.API_V1_STR)
app.include_router(metadata.router, prefix=settings.API_V1_STR)
app.include_router(analytics.router, prefix=settings.API_V1_STR)
app.include_router(redirect.router)
app.include_router(health.router)

# ========================
# --- Endpoint Raiz ---
# ========================
@app.get("/", tags=["Root"])
async def read_root():
    """Endpoint raiz para verificar se a API está online."""
    return {"message": f"Bem-vindo à {settings.PROJECT_NAME}!"}

# ========================
# --- Execução (Uvicorn) ---
# ========================
if __name__ == "__main__": # pragma: no cover
    import uvicorn # pragma: no cover
    logger.info("Iniciando servidor Uvicorn para desenvolvimento...") # pragma: no cover
    uvicorn.run( # pragma: no cover
        "app.main:app", # pragma: no cover
        host="0.0.0.0", # pragma: no cover
        port=8000, # pragma: no cover
        reload=True, # pragma: no cover
        log_level=settings.LOG_LEVEL.lower() # pragma: no cover
    )
