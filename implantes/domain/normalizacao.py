"""
Normalização de textos de fabricante/marca para comparação.

Fabricantes e marcas são digitados à mão ou exportados de forma
inconsistente ("OSSTEM", "Osstem Implant", "수술중FAIL_오스템"...). As
funções deste módulo produzem chaves insensíveis a caixa, espaços,
pontuação e aos marcadores de categoria, sem perder o que diferencia
um produto de outro.

Todas as funções são puras e totais: aceitam qualquer valor (inclusive
``None``) e nunca levantam exceção.
"""

from __future__ import annotations

import re
from typing import Any, Tuple

from implantes.config import CATEGORIA_SEGURO, MARCADOR_FALHA, MARCADOR_SEGURO, MARCADOR_TROCA
from implantes.domain.tamanhos import get_size_match_key

# Marcadores removidos da chave (já em minúsculas)
_MARCADORES = (
    MARCADOR_SEGURO.lower(),
    MARCADOR_TROCA.lower(),
    MARCADOR_FALHA.lower().rstrip("_"),
)
_PONTUACAO_RE = re.compile(r"[\s\-_.()]")
_INVENTARIO_RE = re.compile(r"[\s\-_]")
_PHI_RE = re.compile(r"[Φφ]")

# Marcas da IBS Implant que algumas exportações gravam no lugar do fabricante
_IBS_MARCAS_TROCADAS = {"Magicore", "Magic FC Mini", "Magic FC"}
IBS_IMPLANT = "IBS Implant"


def _texto(val: Any) -> str:
    if val is None:
        return ""
    return str(val)


def normalize(text: Any) -> str:
    """Chave de comparação usada entre registro cirúrgico, estoque e pedidos.

    Exemplos:
        "OSSTEM Implant"       → "osstemimplant"
        "수술중FAIL_오스템"      → "오스템"
        "Φ4.0"                 → "d40"
    """
    s = _texto(text).strip().lower()
    s = _PONTUACAO_RE.sub("", s)
    s = _PHI_RE.sub("d", s)
    # remoção até ponto fixo: retirar um marcador pode "juntar" outro
    anterior = None
    while anterior != s:
        anterior = s
        for marcador in _MARCADORES:
            s = s.replace(marcador, "")
    return s


def normalize_inventory(text: Any) -> str:
    """Chave para detectar duplicidades no cadastro de estoque.

    Diferente de :func:`normalize`, preserva os marcadores de categoria,
    de modo que "수술중교환_OSSTEM" e "OSSTEM" continuam itens distintos.
    """
    return _INVENTARIO_RE.sub("", _texto(text).strip().lower())


def is_exchange_prefix(manufacturer: Any) -> bool:
    """Fabricante da categoria de troca (prefixo antigo ou novo)."""
    s = _texto(manufacturer)
    return s.startswith(MARCADOR_TROCA + "_") or s.startswith(MARCADOR_FALHA)


def is_category_item(manufacturer: Any) -> bool:
    """Itens-marcador do estoque (FAIL/troca e 보험청구) não representam fixtures."""
    return is_exchange_prefix(manufacturer) or _texto(manufacturer) == CATEGORIA_SEGURO


def manufacturer_alias_key(raw: Any) -> str:
    """Chave de apelido de fabricante (ignora caixa e o sufixo 'implant')."""
    value = _texto(raw).strip()
    if not value:
        return ""
    compact = re.sub(r"\s+", "", value.lower())
    if compact.startswith(MARCADOR_TROCA) or compact.startswith("수술중fail"):
        # categoria de troca fica num espaço de nomes separado
        return "fail:" + normalize_inventory(value)
    return normalize(value).replace("implant", "")


def manufacturer_matches(left: str, right: str) -> bool:
    """Compara chaves de fabricante já normalizadas.

    Tolera abreviação em qualquer um dos lados (substring nos dois
    sentidos). Limitação conhecida: uma chave vazia, ou o nome de um
    fabricante contido no nome de outro, também casa.
    """
    return left == right or left in right or right in left


def fix_swapped_brand(manufacturer: Any, brand: Any) -> Tuple[str, str]:
    """Corrige linhas da IBS Implant com fabricante e marca invertidos."""
    m, b = _texto(manufacturer), _texto(brand)
    if m in _IBS_MARCAS_TROCADAS and b == IBS_IMPLANT:
        return IBS_IMPLANT, m
    return m, b


def inventory_duplicate_key(manufacturer: Any, brand: Any, size: Any) -> str:
    """Chave que identifica o mesmo SKU escrito de formas diferentes.

    "OSSTEM / TS III / Φ4.0×10" e "Osstem Implant / TS-III / D:4.0 L:10"
    geram a mesma chave. Linhas da IBS Implant com fabricante e marca
    trocados são corrigidas antes.
    """
    m, b = fix_swapped_brand(manufacturer, brand)
    return "|".join((manufacturer_alias_key(m), normalize_inventory(b), get_size_match_key(size, m)))
