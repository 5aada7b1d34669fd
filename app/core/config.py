# app/core/config.py

# ========================
# --- Importações ---
# ========================
import os
import logging
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import Field, ValidationError, model_validator
from dotenv import load_dotenv

# ===============================
# --- Configuração do Logger ---
# ===============================
logger = logging.getLogger(__name__)

# ===============================
# --- Carregamento do .env ---
# ===============================
# Define o caminho para o arquivo .env na raiz do projeto
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), '.env')
# Carrega as variáveis do arquivo .env para o ambiente, se o arquivo existir
loaded = load_dotenv(dotenv_path=dotenv_path)

# ======================================
# --- Definição das Configurações ---
# ======================================
class Settings(BaseSettings):
    """
    Configurações da aplicação lidas do ambiente usando Pydantic BaseSettings.
    Procura variáveis de ambiente ou variáveis em um arquivo .env.

    A instância é construída explicitamente e repassada aos serviços que dela
    dependem (ex: `TokenService`), de modo que cada serviço possa ser testado
    com uma configuração própria.
    """
    # =========================
    # --- Config Gerais ---
    # =========================
    PROJECT_NAME: str = Field("LinkBio API", description="Nome do Projeto")
    API_V1_STR: str = Field("/api/v1", description="Prefixo para a versão 1 da API")

    # =============================
    # --- Configurações MongoDB ---
    # =============================
    MONGODB_URL: str = Field("mongodb://localhost:27017", description="URL de conexão completa do MongoDB")
    DATABASE_NAME: str = Field("linkbio_db", description="Nome do banco de dados MongoDB")

    # ===========================
    # --- Configurações JWT ---
    # ===========================
    # Opcional: a ausência só é tratada como erro fatal no momento em que um token
    # é emitido ou verificado (ver `TokenService`).
    JWT_SECRET_KEY: Optional[str] = Field(default=None, description="Chave secreta para assinar tokens JWT")
    JWT_ALGORITHM: str = Field("HS256", description="Algoritmo de assinatura JWT")
    JWT_ISSUER: str = Field("linkbio-api", description="Emissor (claim 'iss') gravado nos tokens")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24 * 7, description="Validade do token de acesso em minutos (padrão: 7 dias)")

    # ===================================
    # --- Configurações de Short Code ---
    # ===================================
    SHORT_CODE_LENGTH: int = Field(8, ge=4, le=20, description="Tamanho dos short codes gerados automaticamente")
    SHORT_CODE_MAX_ATTEMPTS: int = Field(10, ge=1, description="Número máximo de candidatos antes de desistir")

    # =========================================
    # --- Configurações de Busca de Metadados ---
    # =========================================
    METADATA_FETCH_TIMEOUT_SECONDS: float = Field(
        10.0,
        gt=0,
        description="Timeout (segundos) das requisições HTTP feitas para extrair metadados de URLs."
    )

    # ===============================
    # --- Configuração de Logging ---
    # ===============================
    LOG_LEVEL: str = Field(default="INFO", description="Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)")

    # ===================================
    # --- Configurações CORS ---
    # ===================================
    # A conversão de string separada por vírgula para List[str] é feita automaticamente pelo Pydantic v2
    CORS_ALLOWED_ORIGINS: List[str] = Field(default=[], description="Lista de origens CORS permitidas (separadas por vírgula no .env)")

    # ====================================================
    # --- Configuração do Modelo Pydantic BaseSettings ---
    # ====================================================
    model_config = {
        "case_sensitive": False,
    }

    # ===============================
    # --- Validadores ---
    # ===============================
    @model_validator(mode='after')
    def check_log_level(self) -> 'Settings':
        """Normaliza e valida o nível de log configurado."""
        level = self.LOG_LEVEL.upper()
        if level not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL inválido: '{self.LOG_LEVEL}'.")
        self.LOG_LEVEL = level
        return self

    @model_validator(mode='after')
    def check_jwt_config(self) -> 'Settings':
        """Avisa (sem impedir o start) quando a chave JWT não está definida."""
        if not self.JWT_SECRET_KEY:
            logger.warning(
                "JWT_SECRET_KEY não definida. Emissão e verificação de tokens falharão até que seja configurada."
            )
        return self

# ================================
# --- Criação da Instância ---
# ================================
try:
    # Pydantic BaseSettings lê do ambiente ou .env na instanciação
    settings = Settings()
except ValidationError as e:
    # Captura erros de validação do Pydantic (tipos inválidos, valores fora do intervalo)
    logger.critical(f"Erro fatal de validação ao carregar configurações: {e}")
    raise e
except Exception as e:
    logger.critical(f"Erro inesperado ao carregar configurações: {e}", exc_info=True)
    raise e
