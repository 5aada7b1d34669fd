# app/core/exceptions.py
"""
Exceções de domínio da aplicação e handlers globais que as convertem em
respostas HTTP consistentes.

- Família `TokenError`: falhas de emissão/verificação de JWT, separadas por tipo
  (configuração ausente, expirado, inválido, tipo de token errado) para que o
  chamador possa decidir entre reautenticar ou tentar novamente.
- `ShortCodeExhaustedError`: o alocador de short codes esgotou as tentativas.
- `ShortCodeTakenError`: o short code pedido pelo cliente já está em uso.
- `register_exception_handlers`: instala os handlers na aplicação FastAPI.
"""

# ========================
# --- Importações ---
# ========================
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Exceções de Token ---
# ========================
class TokenError(Exception):
    """Base para qualquer falha de emissão ou verificação de token."""
    default_message = "Token inválido"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class MissingSigningKeyError(TokenError):
    """A chave de assinatura JWT não está configurada."""
    default_message = "JWT_SECRET_KEY não está definida"

class TokenExpiredError(TokenError):
    """O token tem assinatura válida, mas já expirou."""
    default_message = "Token expirado"

class InvalidTokenError(TokenError):
    """Token malformado, com assinatura inválida, emissor errado ou payload incompleto."""
    default_message = "Token inválido"

class WrongTokenKindError(TokenError):
    """Token válido, mas do tipo errado (ex: refresh usado como access)."""
    default_message = "Tipo de token inválido"

# ========================
# --- Exceções de Short Code ---
# ========================
class ShortCodeExhaustedError(Exception):
    """
    Nenhum short code livre foi encontrado dentro do limite de tentativas.

    Indica que o par espaço de códigos / verificação de unicidade está se
    comportando de forma inesperada; deve ser tratado como erro 5xx re-tentável.
    """
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Não foi possível gerar um short code único após {attempts} tentativas")

class ShortCodeTakenError(Exception):
    """O short code informado pelo cliente já pertence a outro link ou produto."""
    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"O short code '{short_code}' já está em uso.")

# ========================
# --- Formatação de Erros de Validação ---
# ========================
def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Converte a lista de erros do Pydantic/FastAPI em uma estrutura serializável,
    mantendo TODOS os erros (não apenas o primeiro).
    """
    formatted = []
    for error in errors:
        loc = list(error.get("loc", ()))
        location = str(loc[0]) if loc else "body"
        field = ".".join(str(part) for part in loc[1:]) if len(loc) > 1 else location
        formatted.append({
            "location": location,
            "field": field,
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        })
    return formatted

# ========================
# --- Registro dos Handlers ---
# ========================
def register_exception_handlers(app: FastAPI) -> None:
    """Instala os handlers globais de exceção na aplicação."""

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        errors = format_validation_errors(exc.errors())
        logger.info(f"Requisição rejeitada na validação ({request.method} {request.url.path}): {len(errors)} erro(s).")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Falha na validação", "errors": errors},
        )

    @app.exception_handler(ShortCodeExhaustedError)
    async def _short_code_exhausted_handler(request: Request, exc: ShortCodeExhaustedError):
        logger.error(f"Alocação de short code esgotada após {exc.attempts} tentativas ({request.url.path}).")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "message": "Não foi possível gerar um short code único. Tente novamente."},
        )

    @app.exception_handler(ShortCodeTakenError)
    async def _short_code_taken_handler(request: Request, exc: ShortCodeTakenError):
        logger.info(f"Short code '{exc.short_code}' recusado: já está em uso ({request.url.path}).")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"success": False, "message": str(exc)},
        )

    @app.exception_handler(MissingSigningKeyError)
    async def _missing_signing_key_handler(request: Request, exc: MissingSigningKeyError):
        logger.critical(f"Configuração ausente ao processar {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Erro de configuração do servidor"},
        )

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        logger.exception(f"Erro não tratado em {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Erro interno do servidor"},
        )
