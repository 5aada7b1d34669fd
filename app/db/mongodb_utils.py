# app/db/mongodb_utils.py
"""
Este módulo gerencia a conexão com o banco de dados MongoDB.
Inclui funções para conectar, fechar a conexão, obter a instância do banco de
dados, verificar a conectividade e criar os índices de todas as coleções.
Utiliza a biblioteca Motor para interações assíncronas com o MongoDB.
"""

# ========================
# --- Importações ---
# ========================
import logging
from typing import Optional
import motor.motor_asyncio
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

# --- Módulos da Aplicação ---
from app.core.config import settings
from app.db import analytics_crud, collection_crud, link_crud, product_crud, session_crud, theme_crud, user_crud

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Variáveis Globais de Conexão ---
# ========================
# Estas variáveis mantêm o estado da conexão MongoDB para a aplicação.
db_client: Optional[AsyncIOMotorClient] = None
db_instance: Optional[AsyncIOMotorDatabase] = None

# ========================
# --- Função de Conexão ---
# ========================
async def connect_to_mongo() -> Optional[AsyncIOMotorDatabase]:
    """
    Estabelece a conexão com o MongoDB.

    Cria um cliente AsyncIOMotorClient, verifica a conexão com um comando 'ping',
    e define as variáveis globais `db_client` e `db_instance`.

    Returns:
        A instância AsyncIOMotorDatabase se a conexão for bem-sucedida, None caso contrário.
    """
    global db_client, db_instance # Modifica as variáveis globais
    logger.info("Tentando conectar ao MongoDB...")
    try:
        db_client = motor.motor_asyncio.AsyncIOMotorClient(
            settings.MONGODB_URL,
            serverSelectionTimeoutMS=5000 # Timeout para seleção do servidor
        )
        # Verifica a conexão antes de expor o banco
        await db_client.admin.command('ping')
        logger.info("Comando ping para MongoDB bem-sucedido.")

        db_instance = db_client[settings.DATABASE_NAME]
        logger.info(f"Conectado com sucesso ao banco de dados: {settings.DATABASE_NAME}")
        return db_instance

    except Exception as e:
        logger.error(f"Não foi possível conectar ao MongoDB: {e}", exc_info=True)
        # Estado limpo: get_database falha explicitamente em vez de usar um cliente quebrado
        db_client = None
        db_instance = None
        return None

# ========================
# --- Função de Fechamento de Conexão ---
# ========================
async def close_mongo_connection():
    """
    Fecha a conexão com o MongoDB e limpa as referências globais.
    """
    global db_client, db_instance
    logger.info("Tentando fechar conexão com MongoDB...")
    if db_client:
        db_client.close()
        # Sem referências antigas após o encerramento
        db_client = None
        db_instance = None
        logger.info("Conexão com MongoDB fechada.")
    else:
        logger.warning("Tentativa de fechar conexão com MongoDB, mas cliente não estava inicializado.")

# ========================
# --- Função de Acesso ao DB ---
# ========================
def get_database() -> AsyncIOMotorDatabase:
    """
    Retorna a instância global do banco de dados MongoDB.

    Usada como dependência FastAPI ou chamada por outras partes da aplicação.

    Returns:
        A instância AsyncIOMotorDatabase configurada em `connect_to_mongo`.

    Raises:
        RuntimeError: Se chamada antes de `connect_to_mongo` inicializar `db_instance`.
    """
    if db_instance is None:
        # Indica lifespan não executado ou conexão que falhou no startup
        logger.error("Tentativa de obter instância do DB antes da inicialização!")
        raise RuntimeError("A conexão com o banco de dados não foi inicializada.")
    return db_instance

# ========================
# --- Verificação de Conectividade ---
# ========================
async def check_mongo_connection() -> bool:
    """
    Verifica a conectividade com o MongoDB usando o cliente já aberto.

    Returns:
        True se o comando 'ping' for bem-sucedido, False se o cliente não
        estiver inicializado ou se o ping falhar.
    """
    # Reusa o cliente do startup; nenhum cliente novo é criado aqui
    if db_client is None:
        logger.warning("Health check do MongoDB sem cliente inicializado.")
        return False
    try:
        await db_client.admin.command("ping")
        return True
    except Exception as e:
        logger.warning(f"Ping no MongoDB falhou: {e}")
        return False

# ========================
# --- Índices ---
# ========================
async def create_all_indexes(db: AsyncIOMotorDatabase) -> None:
    """Cria (se necessário) os índices de todas as coleções da aplicação."""
    await user_crud.create_user_indexes(db)
    await link_crud.create_link_indexes(db)
    await product_crud.create_product_indexes(db)
    await collection_crud.create_collection_indexes(db)
    await theme_crud.create_theme_indexes(db)
    await session_crud.create_session_indexes(db)
    await analytics_crud.create_analytics_indexes(db)
