"""
Interpretação dos campos de tamanho de fixture (texto livre).

As exportações das clínicas escrevem o tamanho de várias formas:
diâmetro×comprimento ("Φ4.0×10"), prefixo "L" ("L11.5"), o par
"D: L:" ou um código numérico cujos últimos dígitos são o comprimento
("3510"). As funções daqui extraem desses textos o comprimento (usado
no filtro de comprimentos) e a chave canônica de tamanho (usada para
juntar uso cirúrgico, estoque e linhas de pedido).

Gramáticas por fabricante
-------------------------
Só uma família de fabricantes tem regra própria: os listados em
``NUMERIC_CODE_MANUFACTURERS`` (Dentium e Point Implant) publicam
tamanhos como código numérico, então um texto de 4 a 6 dígitos deles é
lido como ``DDLL`` / ``xxDDLL`` mesmo sem sufixo de letras. Os demais
fabricantes passam pela mesma lista ordenada de gramáticas.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from implantes.config import DEFAULTS
from implantes.domain.models import ParsedSize

NUMERIC_CODE_MANUFACTURERS = ("dentium", "덴티움", "포인트", "포인트임플란트", "point")

_NUM = r"(\d+(?:\.\d+)?)"
_SEP = r"[xX×*]"

_DOUBLE_X_RE = re.compile(_SEP + r"\s*" + _NUM + r"\s*" + _SEP)
_SINGLE_X_RE = re.compile(_SEP + r"\s*" + _NUM)
_L_PREFIX_RE = re.compile(r"[lL]\s*" + _NUM)
_CODE_WITH_ALPHA_RE = re.compile(r"\b(\d{4}|\d{6})[a-zA-Z]*\b", re.ASCII)
_CODE_RE = re.compile(r"\b(\d{4}|\d{6})\b", re.ASCII)

_CUFF_PHI_RE = re.compile(r"^(C\d+)\s*[Φφ]\s*(\d+\.?\d*)\s*[xX×]\s*(\d+\.?\d*)", re.I)
_DL_RE = re.compile(r"D[:\s]*(\d+\.?\d*)\s*L[:\s]*(\d+\.?\d*)", re.I)
_DL_CUFF_RE = re.compile(r"Cuff[:\s]*(\d+\.?\d*)", re.I)
_OSLASH_L_RE = re.compile(r"[Øø]\s*(\d+\.?\d*)\s*/\s*L\s*(\d+\.?\d*)", re.I)
_OSLASH_L_DT_RE = re.compile(r"/\s*DT\b", re.I)
_OSLASH_MM_RE = re.compile(r"[Øø]\s*(\d+\.?\d*)\s*[xX×]\s*0?(\d+\.?\d*)\s*mm", re.I)
_OSLASH_MM_SUFFIX_RE = re.compile(r"mm\s*[,\s]*([LSls])\b", re.I)
_PHI_RE = re.compile(
    r"[Φφ]\s*(\d+\.?\d*)\s*[×xX*]\s*(\d+\.?\d*)(?:\s*[×xX*]\s*(\d+\.?\d*))?"
)
_BARE_RE = re.compile(r"(\d+\.?\d*)\s*[×xX*]\s*(\d+\.?\d*)")
_CODE_ONLY_RE = re.compile(r"^\d{4,6}[a-zA-Z]*$")
_CODE_SUFFIX_RE = re.compile(r"^(\d{4,6})(BS|SW|S|W)$", re.I)
_FALLBACK_STRIP_RE = re.compile(r"[\s\-_.()]")


def extract_length(size_text: Any) -> str:
    """Comprimento contido no texto do tamanho, ou ``""``.

    Precedência (vence o primeiro que casar):
    1. número do meio em "a×b×c";
    2. número após um único separador;
    3. número com prefixo "L";
    4. dois últimos dígitos de um código de 4/6 dígitos seguido de letras;
    5. dois últimos dígitos de um código de 4/6 dígitos puro.
    """
    if size_text is None:
        return ""
    s = str(size_text).strip()
    if not s:
        return ""
    for pattern in (_DOUBLE_X_RE, _SINGLE_X_RE, _L_PREFIX_RE):
        m = pattern.search(s)
        if m:
            return m.group(1)
    for pattern in (_CODE_WITH_ALPHA_RE, _CODE_RE):
        m = pattern.search(s)
        if m:
            return m.group(1)[-2:]
    return ""


def normalize_length(raw_length: Any) -> str:
    """Remove zeros à esquerda e o ``.0`` final ("08.0" → "8")."""
    try:
        num = float(str(raw_length).strip())
    except (TypeError, ValueError):
        return ""
    if num != num or num in (float("inf"), float("-inf")):
        return ""
    if num.is_integer():
        return str(int(num))
    return repr(num)


def _fmt(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else repr(float(n))


def _key(diameter: float, length: float, cuff: Optional[str] = None) -> str:
    key = f"d{_fmt(diameter)}_l{_fmt(length)}"
    if cuff:
        key += f"_c{cuff}"
    return key


def is_numeric_code_manufacturer(manufacturer: Any) -> bool:
    m = re.sub(r"[\s\-_]", "", str(manufacturer or "").lower())
    return any(nm in m for nm in NUMERIC_CODE_MANUFACTURERS)


# ---------------------------
# gramáticas (ordem importa)
# ---------------------------

def _parse_cuff_phi(raw: str) -> Optional[ParsedSize]:
    # Magicore: "C2 Φ4.0x10"
    m = _CUFF_PHI_RE.search(raw)
    if not m:
        return None
    cuff = m.group(1).upper()
    d, l = float(m.group(2)), float(m.group(3))
    return ParsedSize(raw=raw, match_key=_key(d, l, cuff), diameter=d, length=l, cuff=cuff)


def _parse_dl_cuff(raw: str) -> Optional[ParsedSize]:
    # "D:4.0 L:10 Cuff:3"
    m = _DL_RE.search(raw)
    if not m:
        return None
    d, l = float(m.group(1)), float(m.group(2))
    cm = _DL_CUFF_RE.search(raw)
    cuff = cm.group(1) if cm else None
    return ParsedSize(raw=raw, match_key=_key(d, l, cuff), diameter=d, length=l, cuff=cuff)


def _parse_oslash_l(raw: str) -> Optional[ParsedSize]:
    # "Ø4.0/L10/DT"
    m = _OSLASH_L_RE.search(raw)
    if not m:
        return None
    d, l = float(m.group(1)), float(m.group(2))
    suffix = "DT" if _OSLASH_L_DT_RE.search(raw) else None
    return ParsedSize(raw=raw, match_key=_key(d, l), diameter=d, length=l, suffix=suffix)


def _parse_oslash_mm(raw: str) -> Optional[ParsedSize]:
    # "Ø4.0 x 10mm, L"
    m = _OSLASH_MM_RE.search(raw)
    if not m:
        return None
    d, l = float(m.group(1)), float(m.group(2))
    sm = _OSLASH_MM_SUFFIX_RE.search(raw)
    suffix = sm.group(1).upper() if sm else None
    return ParsedSize(raw=raw, match_key=_key(d, l), diameter=d, length=l, suffix=suffix)


def _parse_phi(raw: str) -> Optional[ParsedSize]:
    # "Φ4.0×10" ou "Φ4.0×10×3"
    m = _PHI_RE.search(raw)
    if not m:
        return None
    d, l = float(m.group(1)), float(m.group(2))
    cuff = m.group(3)
    return ParsedSize(raw=raw, match_key=_key(d, l, cuff), diameter=d, length=l, cuff=cuff)


def _parse_numeric_code(raw: str) -> Optional[ParsedSize]:
    # 4 dígitos: 3507 → D3.5 L7; 6 dígitos: 483410 → D3.4 L10
    cleaned = re.sub(r"[^0-9a-zA-Z]", "", raw)
    sm = _CODE_SUFFIX_RE.match(cleaned)
    if sm:
        digits, suffix = sm.group(1), sm.group(2).upper()
    else:
        digits = re.sub(r"[a-zA-Z]+$", "", cleaned)
        suffix = re.sub(r"^\d+", "", cleaned) or None
    if len(digits) == 4:
        d, l = int(digits[0:2]) / 10, int(digits[2:4])
    elif len(digits) == 6:
        d, l = int(digits[2:4]) / 10, int(digits[4:6])
    else:
        return None
    if 0 < d < 10 and 0 < l < 30:
        return ParsedSize(raw=raw, match_key=_key(d, l), diameter=d, length=float(l), suffix=suffix)
    return None


def _parse_bare(raw: str) -> Optional[ParsedSize]:
    # "4.0 x 10"
    m = _BARE_RE.search(raw)
    if not m:
        return None
    d, l = float(m.group(1)), float(m.group(2))
    if 0 < d < 10 and 0 < l < 30:
        return ParsedSize(raw=raw, match_key=_key(d, l), diameter=d, length=l)
    return None


_GRAMATICAS: List[Callable[[str], Optional[ParsedSize]]] = [
    _parse_cuff_phi,
    _parse_dl_cuff,
    _parse_oslash_l,
    _parse_oslash_mm,
    _parse_phi,
]


def parse_size(raw: Any, manufacturer: Any = "") -> ParsedSize:
    """Interpreta o tamanho em diâmetro/comprimento/cuff e chave de junção.

    Se nenhuma gramática servir, a chave é o próprio texto em minúsculas,
    sem separadores e com o símbolo de diâmetro trocado por ``d``; dois
    tamanhos ilegíveis mas digitados igual continuam casando.
    """
    trimmed = str(raw if raw is not None else "").strip()
    if not trimmed:
        return ParsedSize(raw="", match_key="")

    for gramatica in _GRAMATICAS:
        parsed = gramatica(trimmed)
        if parsed:
            return parsed

    if is_numeric_code_manufacturer(manufacturer) or _CODE_ONLY_RE.match(trimmed):
        parsed = _parse_numeric_code(trimmed)
        if parsed:
            return parsed

    parsed = _parse_bare(trimmed)
    if parsed:
        return parsed

    key = _FALLBACK_STRIP_RE.sub("", trimmed.lower())
    key = re.sub(r"[Φφ]", "d", key)
    return ParsedSize(raw=trimmed, match_key=key)


def get_size_match_key(size: Any, manufacturer: Any = "") -> str:
    return parse_size(size, manufacturer).match_key


def detect_size_format(size: Any) -> str:
    """Notação em que o tamanho foi escrito."""
    s = str(size or "")
    if re.search(r"[Φφ]", s):
        return "Phi"
    if re.search(r"[Øø]", s):
        return "Oslash"
    if re.search(r"[DdLl]:", s):
        return "DL_colon"
    if _CODE_ONLY_RE.match(s):
        return "NumericCode"
    if re.search(r"\d+\.?\d*\s*[×xX*]\s*\d+", s):
        return "BareNumeric"
    return "Other"


def fixture_lengths(sizes: Iterable[Any], minimo: float = DEFAULTS.comprimento_minimo) -> Dict[str, int]:
    """Contagem de fixtures por comprimento normalizado, em ordem crescente.

    Valores abaixo de ``minimo`` são diâmetros capturados pelos padrões
    mais soltos e ficam de fora.
    """
    counts: Counter = Counter()
    for size in sizes:
        raw = extract_length(size)
        if not raw:
            continue
        norm = normalize_length(raw)
        if not norm or float(norm) < minimo:
            continue
        counts[norm] += 1
    return {k: counts[k] for k in sorted(counts, key=float)}
