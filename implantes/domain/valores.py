"""
Conversão de quantidades e datas vindas das linhas do registro.

Só biblioteca padrão: o domínio recebe valores já limpos pelos
adapters (datas do Excel em ISO, células vazias como ""), mas ainda
precisa tolerar texto digitado à mão. Nada aqui levanta exceção.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional, Union

# "2024-03-05", "2024.3.5.", "2024/03/05 14:30"
_DATA_RE = re.compile(r"^(\d{4})[-./](\d{1,2})[-./](\d{1,2})\.?(?:[ T].*)?$")


def coerce_quantity(val: Any) -> Union[int, float]:
    """Converte uma quantidade em número; valores não numéricos viram 0.

    Exemplos:
        3       → 3
        "5"     → 5
        "2.5"   → 2.5
        "abc"   → 0
        None    → 0
    """
    if val is None:
        return 0
    if isinstance(val, bool):
        return int(val)
    try:
        num = float(str(val).strip())
    except (TypeError, ValueError):
        return 0
    if math.isnan(num) or math.isinf(num):
        return 0
    return int(num) if num.is_integer() else num


def parse_date(val: Any) -> Optional[date]:
    """Data de uma célula (date/datetime ou texto ano-mês-dia), ou None."""
    if val is None:
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    m = _DATA_RE.match(str(val).strip())
    if not m:
        return None
    try:
        return date(*(int(g) for g in m.groups()))
    except ValueError:
        return None


def to_date_iso(val: Any) -> Optional[str]:
    d = parse_date(val)
    return d.isoformat() if d else None
