"""
UC: Registrar pedido de troca de FAIL.
- run_troca_falha(cirurgias, pedido, saida): lê o registro cirúrgico e o
  pedido, dá baixa nos FAILs mais antigos e (opcionalmente) grava a planilha
  atualizada.

Obs.:
- Apenas pedidos do tipo `fail_exchange` são aplicados; outros tipos no
  arquivo de pedidos são ignorados.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from implantes.adapters.planilhas import (
    load_classified_rows_from_xlsx,
    load_orders_from_json,
    save_rows_to_xlsx,
)
from implantes.domain.models import ORDER_FAIL_EXCHANGE, Classification, ClassifiedRow, Order
from implantes.domain.troca_falha import pending_fail_rows, resolve
from implantes.infra.logger import (
    log_file_operation,
    log_pedido,
    log_system_event,
    log_transaction,
    print_system,
)


def aplicar_trocas(rows: List[ClassifiedRow], orders: List[Order]) -> List[Dict[str, Any]]:
    """Aplica cada pedido de troca em ordem e resume o que foi baixado."""
    resumo: List[Dict[str, Any]] = []
    for order in orders:
        if order.type != ORDER_FAIL_EXCHANGE:
            continue
        disponiveis = len(pending_fail_rows(rows, order.manufacturer))
        antes = sum(1 for r in rows if r.classification is Classification.FAIL_EXCHANGED)
        resolve(rows, order)
        depois = sum(1 for r in rows if r.classification is Classification.FAIL_EXCHANGED)
        baixados = depois - antes
        log_pedido("fail_exchange", order.manufacturer, order.total_quantity, resolved=baixados)
        if baixados < order.total_quantity:
            print_system(f"Pedido {order.id}: apenas {baixados} de {order.total_quantity} FAIL(s) disponíveis.")
        resumo.append({
            "pedido": order.id,
            "fabricante": order.manufacturer,
            "solicitado": order.total_quantity,
            "pendentes_antes": disponiveis,
            "baixados": baixados,
        })
    return resumo


def run_troca_falha(cirurgias: str, pedido: str, saida: Optional[str] = None) -> Dict[str, Any]:
    log_system_event("troca_falha_start", {"cirurgias": cirurgias, "pedido": pedido})
    try:
        rows = load_classified_rows_from_xlsx(cirurgias)
        orders = load_orders_from_json(pedido)
        resumo = aplicar_trocas(rows, orders)

        if saida:
            n = save_rows_to_xlsx(rows, saida)
            log_file_operation("export", saida, rows_processed=n)

        result = {"arquivo": cirurgias, "saida": saida, "pedidos": resumo}
        log_transaction("troca_falha", {"cirurgias": cirurgias, "pedido": pedido}, result=resumo)
        return result
    except Exception as e:
        error_msg = str(e)
        log_transaction("troca_falha", {"cirurgias": cirurgias, "pedido": pedido}, error=error_msg)
        log_system_event("troca_falha_error", {"error": error_msg}, level="error")
        raise
