"""
Loaders para as planilhas exportadas pelo sistema da clínica.

Essas funções:
- leem XLSX usando pandas;
- normalizam células (NaN → "", datas → ISO YYYY-MM-DD);
- devolvem dicionários/dataclasses no formato esperado pelo domínio.

Observações:
- A interpretação do texto das descrições NÃO acontece aqui; isso é
  trabalho do classificador (`implantes.domain.classificador`).
- Uma aba `수술기록지` já processada (coluna `구분` preenchida com uma
  classificação conhecida e `제조사` preenchido) é recarregada sem
  reclassificar, preservando baixas de FAIL feitas anteriormente.
- No cadastro de fixtures, o mesmo SKU escrito de formas diferentes
  entra uma única vez (ver `inventory_duplicate_key`).
"""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from implantes.adapters.parsers import is_blank, to_date_iso
from implantes.config import (
    COL_CLASSIFICACAO,
    COL_DATA,
    COL_FABRICANTE,
    COL_FIXACAO_INICIAL,
    COL_MARCA,
    COL_NAO_USAR,
    COL_QUALIDADE_OSSEA,
    COL_QUANTIDADE,
    COL_TAMANHO,
    COLUNAS_CIRURGIA,
    SHEET_CIRURGIAS,
)
from implantes.domain.classificador import classify, is_ingestible
from implantes.domain.models import (
    Classification,
    ClassifiedRow,
    InventoryItem,
    Order,
    OrderItem,
    ORDER_REPLENISHMENT,
    STATUS_ORDERED,
)
from implantes.domain.normalizacao import fix_swapped_brand, inventory_duplicate_key
from implantes.domain.valores import coerce_quantity


# ---------------------------
# utilitários de normalização
# ---------------------------

def _cabecalho(s: Any) -> str:
    """Normaliza cabeçalhos: minúsculas e sem espaços."""
    return "".join(str(s or "").split()).lower()


def _cell(val: Any) -> Any:
    """Converte uma célula do pandas em valor simples (str/número/data ISO)."""
    if is_blank(val):
        return ""
    if isinstance(val, (pd.Timestamp, datetime)):
        return val.date().isoformat()
    if isinstance(val, date):
        return val.isoformat()
    return val


def _pick(row: Dict[str, Any], *aliases: str) -> Any:
    """Primeiro valor não vazio entre colunas equivalentes."""
    by_slug = {_cabecalho(k): v for k, v in row.items()}
    for alias in aliases:
        val = by_slug.get(_cabecalho(alias))
        if not is_blank(val):
            return val
    return None


def _to_flag(val: Any) -> bool:
    """Marcação `사용안함` (TRUE/1/v) → bool."""
    if isinstance(val, bool):
        return val
    s = str(val if val is not None else "").strip().lower()
    return s in {"true", "1", "1.0", "v", "y", "yes", "o"}


def _df_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.astype(object)
    return [{str(k): _cell(v) for k, v in rec.items()} for rec in df.to_dict(orient="records")]


# ---------------------------
# registro cirúrgico
# ---------------------------

def load_surgery_rows_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê a aba `수술기록지` e devolve as linhas brutas aproveitáveis.

    Linhas de total (`합계`) e linhas com uma célula preenchida ou menos
    são descartadas.

    Raises:
        FileNotFoundError: se o arquivo não existir.
        ValueError: se a aba `수술기록지` não existir.
    """
    if not Path(path).exists():
        raise FileNotFoundError(path)
    sheets = pd.read_excel(path, sheet_name=None, dtype=object)
    if SHEET_CIRURGIAS not in sheets:
        raise ValueError(f"Aba '{SHEET_CIRURGIAS}' não encontrada em {path}")
    rows = [r for r in _df_to_rows(sheets[SHEET_CIRURGIAS]) if is_ingestible(r)]
    for row in rows:
        # datas digitadas como texto ("2024.03.05", "5 Mar 2024") viram ISO
        if COL_DATA in row:
            row[COL_DATA] = to_date_iso(row[COL_DATA]) or row[COL_DATA]
    return rows


def from_classified_row(row: Dict[str, Any]) -> Optional[ClassifiedRow]:
    """Reconstrói uma ClassifiedRow de uma linha já gravada com `구분`.

    Retorna ``None`` se a linha não tiver uma classificação conhecida.
    """
    valor = str(row.get(COL_CLASSIFICACAO) or "").strip()
    try:
        classification = Classification(valor)
    except ValueError:
        return None
    return ClassifiedRow(
        raw=dict(row),
        classification=classification,
        manufacturer=str(row.get(COL_FABRICANTE) or ""),
        brand=str(row.get(COL_MARCA) or ""),
        size=str(row.get(COL_TAMANHO) or ""),
        quantity=coerce_quantity(row.get(COL_QUANTIDADE)),
        bone_quality=str(row.get(COL_QUALIDADE_OSSEA) or ""),
        initial_fixation=str(row.get(COL_FIXACAO_INICIAL) or ""),
    )


def to_classified_rows(rows: Iterable[Dict[str, Any]]) -> List[ClassifiedRow]:
    """Classifica linhas brutas, reaproveitando as já classificadas.

    Uma linha com `구분` mas sem `제조사` veio de uma exportação crua e é
    reclassificada; uma baixa de FAIL gravada nela é mantida.
    """
    out: List[ClassifiedRow] = []
    for row in rows:
        gravada = from_classified_row(row)
        if gravada is not None and gravada.manufacturer:
            out.append(gravada)
            continue
        nova = classify(row)
        if (
            gravada is not None
            and gravada.classification is Classification.FAIL_EXCHANGED
            and nova.classification is Classification.INTRAOP_FAIL
        ):
            nova.classification = Classification.FAIL_EXCHANGED
        out.append(nova)
    return out


def load_classified_rows_from_xlsx(path: str) -> List[ClassifiedRow]:
    return to_classified_rows(load_surgery_rows_from_xlsx(path))


def save_rows_to_xlsx(rows: Iterable[ClassifiedRow], path: str) -> int:
    """Grava as linhas classificadas numa aba `수술기록지` (colunas canônicas primeiro)."""
    records = [r.to_row() for r in rows]
    extras: List[str] = []
    for rec in records:
        for k in rec:
            if k not in COLUNAS_CIRURGIA and k not in extras:
                extras.append(k)
    df = pd.DataFrame(records, columns=list(COLUNAS_CIRURGIA) + extras)
    df.to_excel(path, sheet_name=SHEET_CIRURGIAS, index=False)
    return len(records)


# ---------------------------
# cadastro de estoque (fixtures)
# ---------------------------

def load_fixture_rows_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê a primeira aba da lista de fixtures como linhas brutas."""
    if not Path(path).exists():
        raise FileNotFoundError(path)
    df = pd.read_excel(path, sheet_name=0, dtype=object)
    return _df_to_rows(df)


def fixture_fields(row: Dict[str, Any]) -> Dict[str, str]:
    """Fabricante/marca/tamanho de uma linha de fixture (cabeçalhos variados)."""
    return {
        "manufacturer": str(_pick(row, COL_FABRICANTE, "Manufacturer") or ""),
        "brand": str(_pick(row, COL_MARCA, "Brand") or ""),
        "size": str(_pick(row, COL_TAMANHO, "규격", "사이즈", "Size") or ""),
    }


def is_active_fixture(row: Dict[str, Any]) -> bool:
    return not _to_flag(row.get(COL_NAO_USAR))


def inventory_from_rows(
    rows: Iterable[Dict[str, Any]],
    duplicados: Optional[List[Dict[str, Any]]] = None,
) -> List[InventoryItem]:
    """Converte linhas de fixture ativas em itens de estoque.

    Args:
        rows: linhas brutas do cadastro
        duplicados: se informado, recebe as linhas descartadas por
            repetirem um SKU já cadastrado

    Returns:
        Itens na ordem da planilha; para SKUs repetidos fica a primeira linha.
    """
    items: List[InventoryItem] = []
    vistos: Dict[str, InventoryItem] = {}
    for idx, row in enumerate(rows, start=1):
        if not is_active_fixture(row):
            continue
        campos = fixture_fields(row)
        if not campos["manufacturer"] and not campos["brand"]:
            continue
        manufacturer, brand = fix_swapped_brand(campos["manufacturer"], campos["brand"])
        item_id = _pick(row, "id", "ID")
        item = InventoryItem(
            id=str(item_id) if item_id is not None else str(idx),
            manufacturer=manufacturer,
            brand=brand,
            size=campos["size"],
            initial_stock=int(coerce_quantity(_pick(row, "초기재고", "재고", "initial_stock"))),
            stock_adjustment=int(coerce_quantity(_pick(row, "재고조정", "stock_adjustment"))),
        )

        chave = inventory_duplicate_key(manufacturer, brand, item.size)
        if chave in vistos:
            if duplicados is not None:
                duplicados.append({
                    "linha": idx,
                    "fabricante": manufacturer,
                    "marca": brand,
                    "tamanho": item.size,
                    "duplicado_de": vistos[chave].id,
                })
            continue
        vistos[chave] = item
        items.append(item)
    return items


def load_inventory_from_xlsx(path: str, duplicados: Optional[List[Dict[str, Any]]] = None) -> List[InventoryItem]:
    return inventory_from_rows(load_fixture_rows_from_xlsx(path), duplicados)


# ---------------------------
# pedidos (JSON)
# ---------------------------

def order_from_dict(d: Dict[str, Any]) -> Order:
    items = [
        OrderItem(
            brand=str(i.get("brand") or ""),
            size=str(i.get("size") or ""),
            quantity=coerce_quantity(i.get("quantity")),
        )
        for i in d.get("items") or []
    ]
    return Order(
        id=str(d.get("id") or ""),
        type=str(d.get("type") or ORDER_REPLENISHMENT),
        manufacturer=str(d.get("manufacturer") or ""),
        items=items,
        status=str(d.get("status") or STATUS_ORDERED),
        date=d.get("date"),
        received_date=d.get("receivedDate") or d.get("received_date"),
        manager=d.get("manager"),
    )


def load_orders_from_json(path: str) -> List[Order]:
    """Lê um JSON com um pedido (objeto) ou uma lista de pedidos."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = [data]
    return [order_from_dict(d) for d in data]
