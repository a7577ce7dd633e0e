"""
Sistema de logging das operações do motor de estoque.

Este módulo configura e fornece loggers para registrar a ingestão das
planilhas, as reconciliações de estoque e os pedidos de troca. O motor
de domínio é puro e não registra nada; quem loga são os casos de uso e
os adaptadores ao redor dele.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from implantes.config import LOG_DIR


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = False
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers anteriores (reconfiguração)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    # delay=True: o arquivo só é criado na primeira mensagem
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

LOGS_DIR = Path(LOG_DIR)

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "ingestao": LOGS_DIR / "ingestao.log",
    "reconciliacao": LOGS_DIR / "reconciliacao.log",
    "pedidos": LOGS_DIR / "pedidos.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('implantes.transactions', str(LOG_FILES["transactions"]))
ingestao_logger = setup_logger('implantes.ingestao', str(LOG_FILES["ingestao"]))
reconciliacao_logger = setup_logger('implantes.reconciliacao', str(LOG_FILES["reconciliacao"]))
pedidos_logger = setup_logger('implantes.pedidos', str(LOG_FILES["pedidos"]))
system_logger = setup_logger('implantes.system', str(LOG_FILES["system"]))

def _enabled() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma operação completa (sucesso ou falha).

    Args:
        operation: Nome da operação (sincronizar, troca_fail, ...)
        data: Parâmetros da operação
        result: Resultado resumido (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_ingestao(action: str, file_path: str, rows_read: int = 0, rows_kept: int = 0, **kwargs) -> None:
    """Log da leitura e classificação de uma planilha."""
    if not _enabled():
        return
    log_data = {
        "action": action,
        "file_path": file_path,
        "rows_read": rows_read,
        "rows_kept": rows_kept,
        **kwargs
    }
    ingestao_logger.info(f"INGESTAO_{action.upper()}: {log_data}")

def log_reconciliacao(items: int, rows: int, orders: int, period_months: float, **kwargs) -> None:
    """Log de uma reconciliação completa do estoque."""
    if not _enabled():
        return
    log_data = {
        "items": items,
        "rows": rows,
        "orders": orders,
        "period_months": round(period_months, 2),
        **kwargs
    }
    reconciliacao_logger.info(f"RECONCILIACAO: {log_data}")

def log_pedido(action: str, manufacturer: str, quantity: int, **kwargs) -> None:
    """Log de pedidos (troca de FAIL, reposição)."""
    if not _enabled():
        return
    log_data = {
        "action": action,
        "manufacturer": manufacturer,
        "quantity": quantity,
        **kwargs
    }
    pedidos_logger.info(f"PEDIDO_{action.upper()}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação/exportação).

    Args:
        operation: Tipo de operação (import, export)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, ingestao, reconciliacao, pedidos, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    if not _enabled():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            return ''.join(all_lines[-lines:])
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"

def stamp() -> str:
    """Carimbo de data/hora usado nos resultados dos casos de uso."""
    return datetime.now().isoformat(timespec="seconds")
