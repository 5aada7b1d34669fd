"""
Este módulo define os modelos Pydantic relacionados à autenticação por token:
o par de tokens devolvido ao cliente e os payloads (claims) contidos nos
tokens de acesso e de refresh.
"""

# ========================
# --- Importações ---
# ========================
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.models.common import CamelModel

# ========================
# --- Tipos de Token ---
# ========================
class TokenKind(str, Enum):
    """Tipo gravado no claim 'type' de cada token."""
    ACCESS = "access"
    REFRESH = "refresh"

# ========================
# --- Modelos de Resposta ---
# ========================
class TokenPair(CamelModel):
    """Tokens retornados ao cliente após registro ou login."""
    access_token: str = Field(..., title="Token de Acesso JWT")
    refresh_token: str = Field(..., title="Token de Refresh JWT")
    token_type: str = Field(default="bearer", title="Tipo do Token")

class AccessTokenResponse(CamelModel):
    """Resposta do endpoint de refresh: apenas um novo token de acesso."""
    access_token: str = Field(..., title="Token de Acesso JWT")
    token_type: str = Field(default="bearer", title="Tipo do Token")

class RefreshTokenRequest(CamelModel):
    """Corpo das requisições que carregam um refresh token."""
    refresh_token: str = Field(..., min_length=1, title="Token de Refresh JWT")

class LogoutRequest(CamelModel):
    refresh_token: Optional[str] = Field(None, title="Token de Refresh a invalidar")

# ========================
# --- Payloads (Claims) ---
# ========================
class AccessTokenClaims(BaseModel):
    """
    Claims de um token de acesso. Identificam o sujeito autenticado e seu papel.
    """
    id: str = Field(..., title="ID do Usuário")
    username: Optional[str] = Field(None, title="Nome de Usuário")
    email: Optional[str] = Field(None, title="E-mail")
    role: str = Field(default="user", title="Papel do Usuário")

class RefreshTokenClaims(BaseModel):
    """
    Claims de um token de refresh: apenas o ID do usuário.
    """
    id: str = Field(..., title="ID do Usuário")
