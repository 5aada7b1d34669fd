# app/models/theme.py
"""
Modelos Pydantic da entidade Tema (Theme): a aparência da página pública de
um usuário. Cada usuário possui no máximo um tema; na ausência dele, os
valores padrão definidos em `ThemeSettings` são usados.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from app.models.common import CamelModel

# ========================
# --- Opções Enumeradas ---
# ========================
class FontFamily(str, Enum):
    INTER = "Inter"
    ROBOTO = "Roboto"
    OPEN_SANS = "Open Sans"
    LATO = "Lato"
    MONTSERRAT = "Montserrat"
    POPPINS = "Poppins"
    SOURCE_SANS_PRO = "Source Sans Pro"
    NUNITO = "Nunito"
    RALEWAY = "Raleway"
    UBUNTU = "Ubuntu"

class ElementSize(str, Enum):
    """Usado por `fontSize` e `profileImageSize`."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

class FontWeight(str, Enum):
    LIGHT = "light"
    NORMAL = "normal"
    MEDIUM = "medium"
    SEMIBOLD = "semibold"
    BOLD = "bold"

class ButtonStyle(str, Enum):
    ROUNDED = "rounded"
    SQUARE = "square"
    PILL = "pill"

class ButtonAnimation(str, Enum):
    NONE = "none"
    HOVER_LIFT = "hover-lift"
    HOVER_SCALE = "hover-scale"
    HOVER_GLOW = "hover-glow"

class ProfileImageShape(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    ROUNDED_SQUARE = "rounded-square"

class LinkSpacing(str, Enum):
    COMPACT = "compact"
    NORMAL = "normal"
    RELAXED = "relaxed"

class MaxWidth(str, Enum):
    NARROW = "narrow"
    NORMAL = "normal"
    WIDE = "wide"

class GradientDirection(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    DIAGONAL = "diagonal"

CUSTOM_CSS_MAX_LENGTH = 5000

# ========================
# --- Configurações do Tema ---
# ========================
class ThemeSettings(CamelModel):
    """
    Conjunto de opções visuais com seus valores padrão.
    Também é a resposta devolvida para usuários que ainda não têm tema salvo.
    """
    # Cores
    background_color: str = Field("#ffffff", max_length=50)
    primary_color: str = Field("#16a34a", max_length=50)
    secondary_color: str = Field("#15803d", max_length=50)
    text_color: str = Field("#1f2937", max_length=50)
    accent_color: str = Field("#3b82f6", max_length=50)
    # Tipografia
    font_family: FontFamily = FontFamily.INTER
    font_size: ElementSize = ElementSize.MEDIUM
    font_weight: FontWeight = FontWeight.NORMAL
    # Botões
    button_style: ButtonStyle = ButtonStyle.ROUNDED
    button_shadow: bool = True
    button_border_width: int = Field(0, ge=0, le=5)
    button_animation: ButtonAnimation = ButtonAnimation.HOVER_SCALE
    # Layout
    profile_image_shape: ProfileImageShape = ProfileImageShape.CIRCLE
    profile_image_size: ElementSize = ElementSize.MEDIUM
    link_spacing: LinkSpacing = LinkSpacing.NORMAL
    max_width: MaxWidth = MaxWidth.NORMAL
    # Efeitos
    background_gradient: bool = False
    gradient_direction: GradientDirection = GradientDirection.VERTICAL
    backdrop_blur: bool = False
    # Marca
    hide_branding: bool = False
    custom_css: Optional[str] = Field(None, max_length=CUSTOM_CSS_MAX_LENGTH)

class ThemeUpdate(CamelModel):
    """
    Atualização parcial do tema. Apenas os campos enviados são gravados;
    campos desconhecidos são ignorados.
    """
    background_color: Optional[str] = Field(None, max_length=50)
    primary_color: Optional[str] = Field(None, max_length=50)
    secondary_color: Optional[str] = Field(None, max_length=50)
    text_color: Optional[str] = Field(None, max_length=50)
    accent_color: Optional[str] = Field(None, max_length=50)
    font_family: Optional[FontFamily] = None
    font_size: Optional[ElementSize] = None
    font_weight: Optional[FontWeight] = None
    button_style: Optional[ButtonStyle] = None
    button_shadow: Optional[bool] = None
    button_border_width: Optional[int] = Field(None, ge=0, le=5)
    button_animation: Optional[ButtonAnimation] = None
    profile_image_shape: Optional[ProfileImageShape] = None
    profile_image_size: Optional[ElementSize] = None
    link_spacing: Optional[LinkSpacing] = None
    max_width: Optional[MaxWidth] = None
    background_gradient: Optional[bool] = None
    gradient_direction: Optional[GradientDirection] = None
    backdrop_blur: Optional[bool] = None
    hide_branding: Optional[bool] = None
    custom_css: Optional[str] = Field(None, max_length=CUSTOM_CSS_MAX_LENGTH)

# ========================
# --- Tema Persistido ---
# ========================
class Theme(ThemeSettings):
    """Tema como armazenado no banco (snake_case) e devolvido ao dono (camelCase)."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: uuid.UUID
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
