"""
Políticas de cálculo e utilidades para o estoque de implantes.

Este módulo contém as regras de negócio de estoque recomendado,
arredondamento e classificação de status. As funções aqui expostas são
utilizadas pelo reconciliador e pela camada de aplicação ao montar o
painel de estoque e sugerir quantidades de reposição.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from math import ceil
from typing import Optional, Union

from implantes.config import DEFAULTS

Number = Union[int, float]


def round_half_up(x: Number, casas: int = 1) -> float:
    """Arredonda o valor binário exato com meio para cima (0.25 → 0.3).

    Args:
        x: Valor a ser arredondado.
        casas: Número de casas decimais.

    Returns:
        O valor arredondado como ``float``.
    """
    q = Decimal(1).scaleb(-casas)
    return float(Decimal(float(x)).quantize(q, rounding=ROUND_HALF_UP))


def recommended_stock(daily_max: Number, monthly_avg: Number) -> Number:
    """Estoque recomendado: o maior entre 2× o pico diário e a média mensal.

    Regras:
        - ``daily_max × fator_pico_diario`` cobre o pior dia observado;
        - ``ceil(monthly_avg)`` cobre um mês típico.

    Exemplo:
        ``recommended_stock(3, 4.4)`` → ``max(6, 5)`` → ``6``
    """
    pico = (daily_max or 0) * DEFAULTS.fator_pico_diario
    return max(pico, ceil(float(monthly_avg or 0.0)))


def status_estoque(current: Optional[Number], recommended: Optional[Number]) -> str:
    """Classifica o status do estoque de um item.

    Regras:
        - Se algum dos parâmetros for ``None``, retorna ``'VERIFICAR'``.
        - Sem demanda (``recommended <= 0``) → ``'OK'``
        - ``current <= 0`` → ``'FALTA'``
        - ``current <= recommended × razao_estoque_baixo`` → ``'BAIXO'``
        - ``current < recommended`` → ``'REPOR'``
        - caso contrário → ``'OK'``

    Args:
        current: Estoque atual calculado.
        recommended: Estoque recomendado calculado.

    Returns:
        Uma string: ``'FALTA'``, ``'BAIXO'``, ``'REPOR'``, ``'OK'`` ou
        ``'VERIFICAR'``.
    """
    try:
        cur = float(current) if current is not None else None
        rec = float(recommended) if recommended is not None else None
    except (TypeError, ValueError):
        return "VERIFICAR"

    if cur is None or rec is None:
        return "VERIFICAR"
    if rec <= 0:
        return "OK"
    if cur <= 0:
        return "FALTA"
    if cur <= rec * DEFAULTS.razao_estoque_baixo:
        return "BAIXO"
    if cur < rec:
        return "REPOR"
    return "OK"


def quantidade_sugerida(current: Optional[Number], recommended: Optional[Number]) -> int:
    """Quantidade a pedir para voltar ao estoque recomendado (nunca negativa)."""
    try:
        cur = float(current or 0)
        rec = float(recommended or 0)
    except (TypeError, ValueError):
        return 0
    return int(ceil(max(0.0, rec - cur)))
