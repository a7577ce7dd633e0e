"""
Utilidades de parsing para células das planilhas.

As células chegam como texto, número, data do pandas ou vazias,
dependendo de como a clínica exportou o arquivo. Aqui fica o que
depende do pandas (NaN/NaT, formatos de data variados); a conversão
básica de quantidades e datas ISO mora em `implantes.domain.valores`.
Nenhuma função levanta exceção: uma data que não pode ser interpretada
vira ``None``.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import pandas as pd

from implantes.domain import valores


def is_blank(val: Any) -> bool:
    """Célula vazia: None, NaN/NaT do pandas ou texto só com espaços."""
    if val is None:
        return True
    try:
        if pd.isna(val):
            return True
    except (TypeError, ValueError):
        return False
    return isinstance(val, str) and not val.strip()


def parse_date(val: Any) -> Optional[date]:
    """Interpreta uma data (ISO, "YYYY.MM.DD", Timestamp, "5 Mar 2024"...) ou retorna None."""
    if is_blank(val):
        return None
    d = valores.parse_date(val)
    if d is not None:
        return d
    try:
        ts = pd.to_datetime(str(val).strip(), errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.date()


def to_date_iso(val: Any) -> Optional[str]:
    """Converte para data ISO (YYYY-MM-DD) se possível."""
    d = parse_date(val)
    return d.isoformat() if d else None
