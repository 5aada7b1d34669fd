"""
Este módulo configura o sistema de logging da aplicação utilizando Loguru.
Inclui um InterceptHandler para redirecionar logs do sistema de logging
padrão do Python para o Loguru, garantindo um formato de log consistente
entre a API, o driver do MongoDB e o cliente HTTP usado na busca de metadados.
"""

# ========================
# --- Importações ---
# ========================
import logging
import sys
from loguru import logger as loguru_logger

# ========================
# --- Handler de Intercepção ---
# ========================
class InterceptHandler(logging.Handler):
    """
    Handler do `logging` que redireciona mensagens para o Loguru.
    Permite que logs emitidos por bibliotecas que usam o `logging` padrão
    (uvicorn, motor, httpx) sejam formatados e gerenciados pelo Loguru.
    """
    def emit(self, record: logging.LogRecord) -> None:
        """
        Converte um `LogRecord` do `logging` em uma chamada ao Loguru,
        preservando o nível e o frame de origem da mensagem.
        """
        # Nível customizado sem equivalente no Loguru: usa o número
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Sobe a pilha até sair do módulo `logging` para apontar o chamador real
        frame, depth = logging.currentframe(), 2
        while hasattr(frame, "f_code") and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back # pragma: no cover
            if frame is None: # pragma: no cover
                break # pragma: no cover
            depth += 1 # pragma: no cover

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())

# ========================
# --- Função de Setup ---
# ========================
def setup_logging(log_level: str = "INFO"):
    """
    Configura o sistema de logging global da aplicação.

    - Remove handlers padrão do Loguru para evitar duplicação.
    - Adiciona um handler Loguru para `sys.stderr` com o nível informado.
    - Faz o `logging` padrão do Python passar pelo `InterceptHandler`.
    - Silencia o log de acesso do Uvicorn e os logs do httpx (muito verbosos
      durante a extração de metadados).

    Args:
        log_level: Nível mínimo de log a ser exibido (ex: "INFO", "DEBUG").
    """
    log_level = log_level.upper()

    loguru_logger.remove() # Limpa handlers pré-existentes do Loguru

    # Handler principal: tudo vai para stderr
    loguru_logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        enqueue=True,    # Escrita em fila, segura entre threads e processos
        diagnose=False   # Sem valores de variáveis nos tracebacks
    )

    # Todo logger do `logging` padrão passa pelo InterceptHandler
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # --- Bibliotecas de terceiros ---
    logging.getLogger("uvicorn.access").disabled = True # Sem log de acesso por requisição
    logging.getLogger("uvicorn.error").propagate = False # Evita erros do Uvicorn em dobro
    # Cada busca de metadados gera várias linhas no httpx/httpcore
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    loguru_logger.disable("httpx")
