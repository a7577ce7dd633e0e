# implantes/usecases/sincronizar_estoque.py
"""
Caso de uso: sincronizar estoque (uso cirúrgico + pedidos → estoque atual e recomendado).

Fluxo:
1) Lê e classifica o(s) registro(s) cirúrgico(s) (`수술기록지`).
2) Lê o cadastro de fixtures (estoque) e, se houver, os pedidos. SKUs
   repetidos no cadastro entram uma vez; os descartados voltam em
   ``duplicados`` para o usuário corrigir a planilha.
3) Reconcilia tudo do zero (`reconcile`): consumo, média mensal, pico diário,
   estoque atual e recomendado.
4) Anexa status e quantidade sugerida e ordena por criticidade.

Observações:
- A reconciliação é sempre completa; o divisor da média mensal depende do
  período de TODO o registro cirúrgico.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from implantes.adapters.planilhas import (
    load_classified_rows_from_xlsx,
    load_inventory_from_xlsx,
    load_orders_from_json,
)
from implantes.config import COL_DATA
from implantes.domain.classificador import is_total_row
from implantes.domain.models import ClassifiedRow, InventoryItem, Order
from implantes.domain.politicas import quantidade_sugerida, status_estoque
from implantes.domain.reconciliacao import period_in_months, reconcile
from implantes.domain.valores import parse_date
from implantes.infra.logger import (
    log_file_operation,
    log_ingestao,
    log_reconciliacao,
    log_system_event,
    log_transaction,
    stamp,
)

PRIORIDADE = {"FALTA": 0, "BAIXO": 1, "REPOR": 2, "OK": 3, "VERIFICAR": 4}


def load_surgery_files(paths: Sequence[str]) -> List[ClassifiedRow]:
    """Lê e classifica vários arquivos de registro cirúrgico (concatenados)."""
    rows: List[ClassifiedRow] = []
    for path in paths:
        parsed = load_classified_rows_from_xlsx(path)
        log_ingestao("classify", path, rows_kept=len(parsed))
        rows.extend(parsed)
    return rows


def item_to_record(item: InventoryItem) -> Dict[str, Any]:
    rec = asdict(item)
    rec["status"] = status_estoque(item.current_stock, item.recommended_stock)
    rec["qtd_sugerida"] = quantidade_sugerida(item.current_stock, item.recommended_stock)
    return rec


def montar_painel(
    inventory: Sequence[InventoryItem],
    rows: Sequence[ClassifiedRow],
    orders: Sequence[Order],
) -> Dict[str, Any]:
    """Reconcilia e monta o painel ordenado (FALTA primeiro)."""
    itens = reconcile(inventory, rows, orders)
    periodo = period_in_months(
        parse_date(r.raw.get(COL_DATA)) for r in rows if not is_total_row(r.to_row())
    )
    log_reconciliacao(len(inventory), len(rows), len(orders), periodo)

    registros = [item_to_record(i) for i in itens]
    registros.sort(key=lambda r: (PRIORIDADE.get(r["status"], 9), r["current_stock"]))
    return {
        "itens": registros,
        "periodo_meses": round(periodo, 1),
        "timestamp": stamp(),
    }


def run_sincronizar(
    cirurgias: Sequence[str],
    estoque: str,
    pedidos: Optional[str] = None,
) -> Dict[str, Any]:
    log_system_event("sincronizar_start", {"cirurgias": list(cirurgias), "estoque": estoque, "pedidos": pedidos})
    try:
        rows = load_surgery_files(cirurgias)
        duplicados: List[Dict[str, Any]] = []
        inventory = load_inventory_from_xlsx(estoque, duplicados)
        log_file_operation("import", estoque, rows_processed=len(inventory), duplicates=len(duplicados))
        if duplicados:
            log_system_event("estoque_duplicados", {"estoque": estoque, "linhas": duplicados}, level="warning")
        orders: List[Order] = load_orders_from_json(pedidos) if pedidos else []
        if pedidos:
            log_file_operation("import", pedidos, rows_processed=len(orders))

        painel = montar_painel(inventory, rows, orders)
        painel["duplicados"] = duplicados

        log_transaction("sincronizar", {"estoque": estoque}, result={"itens": len(painel["itens"])})
        log_system_event("sincronizar_success", {"itens": len(painel["itens"])})
        return painel
    except Exception as e:
        error_msg = str(e)
        log_transaction("sincronizar", {"estoque": estoque}, error=error_msg)
        log_system_event("sincronizar_error", {"error": error_msg}, level="error")
        raise
