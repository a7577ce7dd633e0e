"""
Reconciliação de uso cirúrgico, pedidos recebidos e estoque cadastrado.

Para cada item do estoque calcula:

- ``usage_count``: implantes consumidos no registro cirúrgico;
- ``daily_max_usage``: maior consumo num único dia;
- ``monthly_avg_usage``: consumo médio mensal (1 casa decimal);
- ``current_stock``: inicial + ajuste + recebidos − consumidos;
- ``recommended_stock``: ``max(2 × pico diário, ceil(média mensal))``.

O divisor da média mensal é o período observado em TODO o registro
cirúrgico (menor e maior data entre todas as linhas), igual para todos
os itens. Por isso o cálculo é sempre refeito do zero: não existe
atualização incremental, e qualquer mudança nas três coleções exige
chamar :func:`reconcile` novamente.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from implantes.config import COL_DATA, DEFAULTS, MARCADOR_GBR
from implantes.domain.classificador import is_total_row, pick_description
from implantes.domain.models import (
    CONSOME_ESTOQUE,
    ORDER_REPLENISHMENT,
    STATUS_RECEIVED,
    ClassifiedRow,
    InventoryItem,
    MatchKey,
    Order,
)
from implantes.domain.normalizacao import is_category_item, manufacturer_matches, normalize
from implantes.domain.politicas import recommended_stock, round_half_up
from implantes.domain.tamanhos import get_size_match_key
from implantes.domain.valores import coerce_quantity, parse_date, to_date_iso

DATA_DESCONHECIDA = "unknown"


def match_key(manufacturer: str, brand: str, size: str) -> MatchKey:
    """Chave de junção; o fabricante também escolhe a gramática do tamanho."""
    return MatchKey(
        normalize(manufacturer),
        normalize(brand),
        get_size_match_key(size, manufacturer),
    )


def keys_match(row_key: MatchKey, item_key: MatchKey) -> bool:
    """Fabricante tolera substring; marca e tamanho exigem igualdade."""
    return (
        manufacturer_matches(row_key.manufacturer, item_key.manufacturer)
        and row_key.brand == item_key.brand
        and row_key.size == item_key.size
    )


def period_in_months(dates: Iterable[Optional[date]]) -> float:
    """Período observado em meses (mínimo 1)."""
    validas = [d for d in dates if d is not None]
    if not validas:
        return 1.0
    inicio, fim = min(validas), max(validas)
    if inicio == fim:
        return 1.0
    return max(1.0, (fim - inicio).days / DEFAULTS.dias_por_mes)


def consumes_stock(row: ClassifiedRow) -> bool:
    """Só colocação e FAIL intraoperatório retiram um implante do estoque."""
    if row.classification not in CONSOME_ESTOQUE:
        return False
    return MARCADOR_GBR not in pick_description(row.raw)


@dataclass
class _UsageRow:
    key: MatchKey
    quantity: float
    date_key: str


def _usage_rows(rows: Sequence[ClassifiedRow]) -> List[_UsageRow]:
    out: List[_UsageRow] = []
    for row in rows:
        if not consumes_stock(row):
            continue
        out.append(_UsageRow(
            key=match_key(row.manufacturer, row.brand, row.size),
            quantity=coerce_quantity(row.quantity),
            date_key=to_date_iso(row.raw.get(COL_DATA)) or DATA_DESCONHECIDA,
        ))
    return out


def total_received(item_key: MatchKey, orders: Iterable[Order]) -> float:
    """Soma das linhas de pedidos de reposição recebidos que casam com o item."""
    total = 0
    for order in orders:
        if order.status != STATUS_RECEIVED or order.type != ORDER_REPLENISHMENT:
            continue
        if normalize(order.manufacturer) != item_key.manufacturer:
            continue
        for line in order.items:
            if normalize(line.brand) != item_key.brand:
                continue
            if get_size_match_key(line.size, order.manufacturer) != item_key.size:
                continue
            total += coerce_quantity(line.quantity)
    return total


def _reset_category(item: InventoryItem) -> InventoryItem:
    return replace(
        item,
        usage_count=0,
        current_stock=item.initial_stock + item.stock_adjustment,
        recommended_stock=0,
        monthly_avg_usage=0.0,
        daily_max_usage=0,
    )


def reconcile(
    inventory_items: Sequence[InventoryItem],
    surgery_rows: Sequence[ClassifiedRow],
    orders: Sequence[Order],
) -> List[InventoryItem]:
    """Recalcula os campos derivados de todos os itens do estoque.

    Função pura: os itens recebidos não são alterados; retorna cópias.
    Quantidades não numéricas contam como 0 e datas inválidas ficam fora
    do período, mas a linha ainda conta no balde ``"unknown"``.
    """
    validas = [r for r in surgery_rows if not is_total_row(r.to_row())]
    periodo = period_in_months(parse_date(r.raw.get(COL_DATA)) for r in validas)
    usos = _usage_rows(validas)

    resultado: List[InventoryItem] = []
    for item in inventory_items:
        if is_category_item(item.manufacturer):
            resultado.append(_reset_category(item))
            continue

        alvo = match_key(item.manufacturer, item.brand, item.size)
        uso_total = 0
        por_dia: Dict[str, float] = defaultdict(int)
        for uso in usos:
            if keys_match(uso.key, alvo):
                uso_total += uso.quantity
                por_dia[uso.date_key] += uso.quantity

        pico = max(por_dia.values()) if por_dia else 0
        media = round_half_up(uso_total / periodo, 1)
        recebido = total_received(alvo, orders)

        resultado.append(replace(
            item,
            usage_count=uso_total,
            current_stock=item.initial_stock + item.stock_adjustment + recebido - uso_total,
            recommended_stock=recommended_stock(pico, media),
            monthly_avg_usage=media,
            daily_max_usage=pico,
        ))
    return resultado
