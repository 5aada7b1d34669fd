# app/core/shortcode.py
"""
Geração e validação de short codes.

Os códigos gerados usam apenas o alfabeto alfanumérico de 62 caracteres;
códigos informados pelo usuário também podem conter hífen e underscore.
A verificação de unicidade é delegada ao chamador (predicado assíncrono), e o
índice único no banco continua sendo a garantia final contra corridas.
"""

# ========================
# --- Importações ---
# ========================
import logging
import re
import secrets
import string
from typing import Awaitable, Callable

# --- Módulos da Aplicação ---
from app.core.exceptions import ShortCodeExhaustedError

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Constantes ---
# ========================
ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
DEFAULT_LENGTH = 8
DEFAULT_MAX_ATTEMPTS = 10
MIN_LENGTH = 4
MAX_LENGTH = 20
SHORT_CODE_PATTERN = r"^[A-Za-z0-9_-]{4,20}$"
_SHORT_CODE_RE = re.compile(SHORT_CODE_PATTERN)

AvailabilityCheck = Callable[[str], Awaitable[bool]]

# ========================
# --- Geração ---
# ========================
def generate_short_code(length: int = DEFAULT_LENGTH) -> str:
    """
    Sorteia `length` caracteres uniformemente do alfabeto base62.

    Usa `secrets` para que os códigos não sejam previsíveis a partir de
    códigos anteriores.
    """
    if length < 1:
        raise ValueError(f"O tamanho do short code deve ser positivo (recebido: {length}).")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))

async def allocate_short_code(
    is_available: AvailabilityCheck,
    length: int = DEFAULT_LENGTH,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Gera candidatos até encontrar um que o predicado informe como livre.

    Args:
        is_available: Predicado assíncrono; deve retornar True se o código NÃO
                      estiver em uso.
        length: Tamanho dos códigos gerados (padrão 8).
        max_attempts: Número máximo de candidatos testados (padrão 10).

    Returns:
        O primeiro código livre encontrado.

    Raises:
        ShortCodeExhaustedError: Se `max_attempts` candidatos estiverem ocupados.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate_short_code(length)
        if await is_available(candidate):
            if attempt > 1:
                logger.info(f"Short code livre encontrado na tentativa {attempt}.")
            return candidate
        logger.warning(f"Colisão de short code na tentativa {attempt}/{max_attempts}.")

    raise ShortCodeExhaustedError(attempts=max_attempts)

# ========================
# --- Validação ---
# ========================
def is_valid_short_code(code: str) -> bool:
    """Aceita apenas `[A-Za-z0-9_-]` com 4 a 20 caracteres."""
    if not isinstance(code, str):
        return False
    return _SHORT_CODE_RE.fullmatch(code) is not None
