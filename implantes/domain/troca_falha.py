"""
Baixa de FAILs intraoperatórios por pedidos de troca.

Um pedido de troca (``fail_exchange``) para o fabricante M com
quantidade total Q resolve os Q registros `수술중 FAIL` mais antigos
daquele fabricante, que passam a `FAIL 교환완료`. Datas ausentes ou
inválidas ordenam como texto vazio, ou seja, primeiro.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Sequence

from implantes.domain.models import ORDER_FAIL_EXCHANGE, Classification, ClassifiedRow, Order
from implantes.domain.normalizacao import normalize


def pending_fail_rows(rows: Sequence[ClassifiedRow], manufacturer: str) -> List[ClassifiedRow]:
    """FAILs ainda não trocados do fabricante, do mais antigo ao mais novo."""
    alvo = normalize(manufacturer)
    pendentes = [
        r for r in rows
        if r.classification is Classification.INTRAOP_FAIL and normalize(r.manufacturer) == alvo
    ]
    # sort estável: empate de data preserva a ordem da planilha
    return sorted(pendentes, key=lambda r: r.date)


def resolve(surgery_rows: List[ClassifiedRow], fail_exchange_order: Order) -> List[ClassifiedRow]:
    """Marca como trocados os FAILs mais antigos cobertos pelo pedido.

    Altera as linhas selecionadas no próprio lugar e devolve a mesma
    lista. Se houver menos FAILs que a quantidade pedida, resolve os que
    existirem.
    """
    if fail_exchange_order.type != ORDER_FAIL_EXCHANGE:
        return surgery_rows
    quantidade = max(0, fail_exchange_order.total_quantity)
    for row in pending_fail_rows(surgery_rows, fail_exchange_order.manufacturer)[:quantidade]:
        row.classification = Classification.FAIL_EXCHANGED
    return surgery_rows


def fail_summary(rows: Sequence[ClassifiedRow]) -> Dict[str, Dict[str, int]]:
    """Totais de FAIL por fabricante: total, trocadas e pendentes."""
    stats: Dict[str, Dict[str, int]] = OrderedDict()
    for r in rows:
        if r.classification not in (Classification.INTRAOP_FAIL, Classification.FAIL_EXCHANGED):
            continue
        m = r.manufacturer or "-"
        s = stats.setdefault(m, {"total": 0, "trocadas": 0, "pendentes": 0})
        s["total"] += 1
        if r.classification is Classification.FAIL_EXCHANGED:
            s["trocadas"] += 1
        else:
            s["pendentes"] += 1
    return stats
