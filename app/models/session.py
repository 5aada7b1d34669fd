"""
Modelo da sessão de refresh: cada refresh token emitido é registrado para
que possa ser revogado individualmente (logout) ou em massa (logout-all).
"""

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field

from app.core.security import REFRESH_TOKEN_EXPIRE_DAYS

def _default_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)

# ========================
# --- Sessão ---
# ========================
class Session(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: uuid.UUID
    token: str = Field(..., title="Refresh Token")
    ip_address: str = Field(default="unknown", title="Endereço IP")
    device_info: Optional[str] = Field(None, title="User-Agent do Cliente")
    expires_at: datetime = Field(default_factory=_default_expiry)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
