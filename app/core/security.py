# app/core/security.py
"""
Módulo responsável pelas funcionalidades de segurança da aplicação:
hashing de senhas, emissão/verificação de tokens JWT (acesso e refresh)
e extração do bearer token do header `Authorization`.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from passlib.context import CryptContext
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

# --- Módulos da Aplicação ---
from app.core.config import Settings, settings
from app.core.exceptions import (InvalidTokenError, MissingSigningKeyError,
                                 TokenExpiredError, WrongTokenKindError)
from app.models.token import AccessTokenClaims, RefreshTokenClaims, TokenKind

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Configuração Hashing de Senha ---
# ========================
# Contexto Passlib para hashing e verificação de senhas usando bcrypt.
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ========================
# --- Constantes JWT ---
# ========================
REFRESH_TOKEN_EXPIRE_DAYS = 30
BEARER_SCHEME = "Bearer"

# ========================
# --- Funções de Senha ---
# ========================
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica se uma senha em texto plano corresponde a um hash armazenado.

    Returns:
        True se a senha corresponder ao hash, False caso contrário
        (inclusive quando o hash está em formato inválido).
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Tentativa de verificar senha com hash em formato inválido.")
        return False

def get_password_hash(password: str) -> str:
    """Gera um hash bcrypt para a senha fornecida."""
    return pwd_context.hash(password)

# ========================
# --- Extração do Bearer Token ---
# ========================
def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extrai o token de um header no formato exato `Bearer <token>`.

    Qualquer outra forma (header ausente, outro esquema, segmentos a mais ou
    a menos) resulta em None. É apenas um parse; nunca levanta exceção.
    """
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        return None
    return parts[1]

# ========================
# --- Serviço de Tokens ---
# ========================
class TokenService:
    """
    Emite e verifica tokens JWT de acesso e de refresh.

    Recebe a configuração explicitamente. A chave de assinatura é conferida a
    cada chamada: se não estiver definida, `MissingSigningKeyError` é levantada
    no momento do uso, e não na inicialização da aplicação.
    """

    def __init__(self, config: Settings):
        self._config = config

    # --- Auxiliares ---
    def _signing_key(self) -> str:
        key = self._config.JWT_SECRET_KEY
        if not key:
            logger.critical("Tentativa de usar tokens JWT sem JWT_SECRET_KEY configurada.")
            raise MissingSigningKeyError()
        return key

    def _encode(self, payload: Dict[str, Any], expires_delta: timedelta) -> str:
        key = self._signing_key()
        to_encode = dict(payload)
        to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
        to_encode["iss"] = self._config.JWT_ISSUER
        # Identificador único: dois tokens emitidos no mesmo segundo nunca coincidem
        to_encode["jti"] = uuid.uuid4().hex
        return jwt.encode(to_encode, key, algorithm=self._config.JWT_ALGORITHM)

    def _decode(self, token: str) -> Dict[str, Any]:
        key = self._signing_key()
        try:
            return jwt.decode(
                token,
                key,
                algorithms=[self._config.JWT_ALGORITHM],
                issuer=self._config.JWT_ISSUER,
            )
        except ExpiredSignatureError:
            logger.info("Token JWT expirado.")
            raise TokenExpiredError()
        except JWTError as e:
            logger.warning(f"Token JWT inválido: {e}")
            raise InvalidTokenError()

    # --- Emissão ---
    def create_access_token(
        self,
        claims: AccessTokenClaims,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Cria um token de acesso com {id, username, email, role}.

        Args:
            claims: Dados do sujeito autenticado.
            expires_delta: Validade opcional; se None usa ACCESS_TOKEN_EXPIRE_MINUTES.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self._config.ACCESS_TOKEN_EXPIRE_MINUTES)
        payload = claims.model_dump()
        payload["type"] = TokenKind.ACCESS.value
        return self._encode(payload, expires_delta)

    def create_refresh_token(self, user_id: Any) -> str:
        """Cria um token de refresh com validade fixa de 30 dias, contendo só o ID."""
        payload = {"id": str(user_id), "type": TokenKind.REFRESH.value}
        return self._encode(payload, timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))

    # --- Verificação ---
    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """
        Verifica um token de acesso e retorna seus claims.

        Raises:
            MissingSigningKeyError: Chave JWT não configurada.
            TokenExpiredError: Token expirado.
            InvalidTokenError: Assinatura/formato/payload inválido.
            WrongTokenKindError: Token de refresh apresentado como token de acesso.
        """
        payload = self._decode(token)
        if payload.get("type") != TokenKind.ACCESS.value:
            logger.warning(f"Token do tipo '{payload.get('type')}' apresentado como token de acesso.")
            raise WrongTokenKindError()
        try:
            return AccessTokenClaims.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Payload de token de acesso inválido: {e}")
            raise InvalidTokenError()

    def verify_refresh_token(self, token: str) -> RefreshTokenClaims:
        """
        Verifica um token de refresh e retorna o ID do sujeito.

        Raises:
            MissingSigningKeyError, TokenExpiredError, InvalidTokenError,
            WrongTokenKindError (token sem o tipo 'refresh').
        """
        payload = self._decode(token)
        if payload.get("type") != TokenKind.REFRESH.value:
            logger.warning(f"Token do tipo '{payload.get('type')}' apresentado como token de refresh.")
            raise WrongTokenKindError()
        try:
            return RefreshTokenClaims.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Payload de token de refresh inválido: {e}")
            raise InvalidTokenError()

# ========================
# --- Instância Padrão ---
# ========================
token_service = TokenService(settings)
