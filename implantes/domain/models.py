# implantes/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- As linhas brutas das planilhas continuam sendo dicionários (rótulo → valor);
  as dataclasses representam apenas o que o motor deriva ou consome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from implantes.config import (
    COL_CLASSIFICACAO,
    COL_DATA,
    COL_FABRICANTE,
    COL_FIXACAO_INICIAL,
    COL_MARCA,
    COL_QUALIDADE_OSSEA,
    COL_QUANTIDADE,
    COL_TAMANHO,
)


class Classification(str, Enum):
    """Tipo de evento cirúrgico (valores gravados na coluna `구분`)."""
    PLACEMENT = "식립"
    BONE_GRAFT_ONLY = "골이식만"
    INTRAOP_FAIL = "수술중 FAIL"
    INSURANCE_CLAIM = "청구"
    FAIL_EXCHANGED = "FAIL 교환완료"


# Classificações que consomem um implante do estoque
CONSOME_ESTOQUE = (Classification.PLACEMENT, Classification.INTRAOP_FAIL)


class MatchKey(NamedTuple):
    """Chave (fabricante, marca, tamanho) normalizada."""
    manufacturer: str
    brand: str
    size: str


@dataclass
class ParsedSize:
    """Resultado da interpretação de um texto de tamanho."""
    raw: str
    match_key: str
    diameter: Optional[float] = None
    length: Optional[float] = None
    cuff: Optional[str] = None
    suffix: Optional[str] = None


@dataclass
class ClassifiedRow:
    """Linha do registro cirúrgico já classificada."""
    raw: Dict[str, Any]
    classification: Classification
    manufacturer: str = ""
    brand: str = ""
    size: str = ""
    quantity: int = 0
    bone_quality: str = ""
    initial_fixation: str = ""

    @property
    def date(self) -> str:
        val = self.raw.get(COL_DATA)
        if val is None:
            return ""
        return str(val).strip()

    def to_row(self) -> Dict[str, Any]:
        """Retorna a linha original com os campos derivados gravados."""
        return {
            **self.raw,
            COL_CLASSIFICACAO: self.classification.value,
            COL_QUANTIDADE: self.quantity,
            COL_FABRICANTE: self.manufacturer,
            COL_MARCA: self.brand,
            COL_TAMANHO: self.size,
            COL_QUALIDADE_OSSEA: self.raw.get(COL_QUALIDADE_OSSEA) or self.bone_quality,
            COL_FIXACAO_INICIAL: self.raw.get(COL_FIXACAO_INICIAL) or self.initial_fixation,
        }


@dataclass
class InventoryItem:
    """Item do cadastro de estoque (um SKU de fixture)."""
    id: str
    manufacturer: str
    brand: str
    size: str
    initial_stock: int = 0
    stock_adjustment: int = 0
    # campos calculados pelo motor
    usage_count: int = 0
    current_stock: int = 0
    recommended_stock: int = 0
    monthly_avg_usage: float = 0.0
    daily_max_usage: int = 0


ORDER_REPLENISHMENT = "replenishment"
ORDER_FAIL_EXCHANGE = "fail_exchange"
STATUS_ORDERED = "ordered"
STATUS_RECEIVED = "received"


@dataclass
class OrderItem:
    brand: str
    size: str
    quantity: int = 0


@dataclass
class Order:
    """Pedido ao fabricante (reposição ou troca de FAIL)."""
    id: str
    type: str                      # 'replenishment' | 'fail_exchange'
    manufacturer: str
    items: List[OrderItem] = field(default_factory=list)
    status: str = STATUS_ORDERED   # 'ordered' | 'received'
    date: Optional[str] = None
    received_date: Optional[str] = None
    manager: Optional[str] = None

    @property
    def total_quantity(self) -> int:
        total = 0
        for it in self.items:
            try:
                total += int(it.quantity or 0)
            except (TypeError, ValueError):
                continue
        return total
