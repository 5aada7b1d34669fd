# app/models/user.py
"""
Este módulo define os modelos Pydantic para a entidade Usuário (User).
Inclui modelos para registro, login, atualização de perfil, e as diferentes
representações do usuário: como é armazenado no banco de dados, como é
retornado ao próprio dono e como aparece no perfil público.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator

from app.models.common import CamelModel, PaginationMeta
from app.models.token import TokenPair

USERNAME_PATTERN = "^[a-zA-Z0-9_]+$"

# ========================
# --- Papéis e Redes Sociais ---
# ========================
class UserRole(str, Enum):
    """Papéis de acesso disponíveis. Novos usuários recebem `user`."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"
    USER = "user"

class SocialLinks(CamelModel):
    """Links de redes sociais exibidos no perfil público. Todos opcionais."""
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    youtube: Optional[str] = None
    tiktok: Optional[str] = None
    facebook: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None

# ========================
# --- Modelos de Entrada ---
# ========================
class UserCreate(CamelModel):
    """
    Payload de registro. Username e e-mail são normalizados para minúsculas
    antes de qualquer verificação de unicidade.
    """
    username: str = Field(
        ...,
        title="Nome de Usuário",
        min_length=3,
        max_length=20,
        pattern=USERNAME_PATTERN,
        description="Letras, números e underscore; armazenado em minúsculas."
    )
    email: EmailStr = Field(..., title="Endereço de E-mail")
    password: str = Field(..., title="Senha", min_length=6, description="Senha (será hasheada antes de salvar).")
    first_name: Optional[str] = Field(None, title="Nome", max_length=50)
    last_name: Optional[str] = Field(None, title="Sobrenome", max_length=50)

    @field_validator("username", "email", mode="after")
    @classmethod
    def normalize_lowercase(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, value):
        return value.strip() if isinstance(value, str) else value

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "username": "userTest",
                    "email": "userTest@example.com",
                    "password": "asecurepassword",
                    "firstName": "User",
                    "lastName": "Test"
                }
            ]
        }
    }

class UserLogin(CamelModel):
    """Login por username OU e-mail (`identifier`) mais senha."""
    identifier: str = Field(..., min_length=1, title="Username ou E-mail")
    password: str = Field(..., min_length=1, title="Senha")

    @field_validator("identifier", mode="after")
    @classmethod
    def normalize_identifier(cls, value: str) -> str:
        return value.strip().lower()

class UserProfileUpdate(CamelModel):
    """
    Campos do perfil que o próprio usuário pode alterar.
    Todos opcionais, permitindo atualizações parciais.
    """
    first_name: Optional[str] = Field(None, title="Nome", max_length=50)
    last_name: Optional[str] = Field(None, title="Sobrenome", max_length=50)
    bio: Optional[str] = Field(None, title="Biografia", max_length=500)
    profile_image: Optional[str] = Field(None, title="URL da Imagem de Perfil")
    social_links: Optional[SocialLinks] = Field(None, title="Redes Sociais")

class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, title="Senha Atual")
    new_password: str = Field(..., min_length=6, title="Nova Senha")

class RoleUpdate(CamelModel):
    role: UserRole = Field(..., title="Novo Papel")

# ========================
# --- Representação no Banco de Dados ---
# ========================
class UserInDB(BaseModel):
    """
    Representação completa de um usuário como armazenado no banco de dados.
    Inclui a senha hasheada e é usado apenas internamente.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, title="ID Único do Usuário")
    username: str
    email: str
    hashed_password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    role: UserRole = UserRole.USER
    is_email_verified: bool = False
    is_premium: bool = False
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# ========================
# --- Modelos de Resposta ---
# ========================
class PublicUser(CamelModel):
    """Dados do usuário visíveis no perfil público (sem e-mail nem papel)."""
    id: uuid.UUID
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    social_links: SocialLinks = Field(default_factory=SocialLinks)

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @computed_field
    @property
    def profile_url(self) -> str:
        return f"/{self.username}"

class User(PublicUser):
    """
    Modelo de usuário devolvido ao próprio dono da conta.
    Omite a senha hasheada.
    """
    email: str
    role: UserRole
    is_email_verified: bool = False
    is_premium: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

class AuthResponse(TokenPair):
    """Resposta de registro e login: o usuário mais o par de tokens."""
    user: User

class UserListResponse(CamelModel):
    users: List[User]
    pagination: PaginationMeta

class UsernameAvailability(CamelModel):
    username: str
    available: bool
