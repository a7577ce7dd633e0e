"""
Classificação das linhas do registro cirúrgico (`수술기록지`).

Cada linha exportada traz uma descrição livre, por exemplo::

    "수술중FAIL_오스템-TS III SA D:4.0 L:10/골질 D2/초기고정 35"
    "[GBR Only] G-Bone(0.5cc)"

A partir dela derivamos o tipo de evento, o fabricante, a marca e o
tamanho. A interpretação é uma cadeia ordenada de heurísticas; cada
etapa é uma função própria para poder ser testada isoladamente, e a
ordem das etapas não deve ser alterada (ela decide o resultado quando
a descrição é ambígua).

Nenhuma função deste módulo levanta exceção para texto malformado.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Tuple

from implantes.config import (
    COL_DENTE,
    COLUNAS_DESCRICAO,
    MARCADOR_FALHA,
    MARCADOR_GBR,
    MARCADOR_SEGURO,
    MARCADOR_TOTAL,
)
from implantes.domain.models import Classification, ClassifiedRow

# Início do tamanho dentro de "marca + tamanho":
# "D:"/"L:"/"M:", símbolo de diâmetro, D/L/M solto ou um dígito após espaço
_INDICADOR_TAMANHO_RE = re.compile(r"([DdLlMm]:|[Φφ]|(?:\s|^)[DdLlMm]\s|(?:\s|^)\d)")
# Marca sem indicador de tamanho: letras/dígitos/espaços/hífens + algarismo romano
_MARCA_FALLBACK_RE = re.compile(r"^([a-zA-Z\s\d-]+(?:\s[IVX]+)?)")
_GBR_FABRICANTE_RE = re.compile(r"\[(.*?)\]")
_GBR_MARCA_RE = re.compile(r"\]\s*(G.*?\))")

_PREFIXO_QUALIDADE = "골질"
_PREFIXO_FIXACAO = "초기고정"


def _texto(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, float) and val != val:  # NaN vindo do pandas
        return ""
    return str(val)


# ---------------------------
# etapas
# ---------------------------

def pick_description(row: Dict[str, Any]) -> str:
    """Primeira coluna de descrição não vazia (na ordem de prioridade)."""
    for col in COLUNAS_DESCRICAO:
        val = _texto(row.get(col))
        if val:
            return val
    return ""


def count_teeth(tooth_text: Any, description: str) -> int:
    """Quantidade de implantes: uma por posição dentária listada."""
    dentes = _texto(tooth_text).strip()
    if dentes:
        return dentes.count(",") + 1
    if description:
        return 1
    return 0


def classify_description(description: str) -> Classification:
    if MARCADOR_GBR in description:
        return Classification.BONE_GRAFT_ONLY
    if MARCADOR_FALHA in description:
        return Classification.INTRAOP_FAIL
    if MARCADOR_SEGURO in description:
        return Classification.INSURANCE_CLAIM
    return Classification.PLACEMENT


def strip_markers(text: str) -> str:
    """Remove a primeira ocorrência de cada marcador de categoria."""
    return text.replace(MARCADOR_FALHA, "", 1).replace(MARCADOR_SEGURO, "", 1).strip()


def extract_bone_graft(description: str) -> Tuple[str, str]:
    """Fabricante entre colchetes e marca no formato "G...)"."""
    m = _GBR_FABRICANTE_RE.search(description)
    manufacturer = m.group(1) if m else "GBR Only"
    b = _GBR_MARCA_RE.search(description)
    brand = b.group(1) if b else ""
    return manufacturer, brand


def split_manufacturer(description: str) -> Tuple[str, str]:
    """Separa o fabricante (antes do primeiro hífen) do restante.

    Se o fabricante ficar vazio depois de retirar os marcadores, o
    segundo segmento passa a ser o fabricante.
    """
    partes = [p.strip() for p in description.split("-")]
    manufacturer = strip_markers(partes[0])
    if manufacturer == "" and len(partes) > 1:
        manufacturer = partes[1]
    rest = "-".join(partes[1:])
    return manufacturer, rest


def split_brand_and_size(brand_size: str) -> Tuple[str, str]:
    """Divide "marca + tamanho" no primeiro indicador de tamanho."""
    m = _INDICADOR_TAMANHO_RE.search(brand_size)
    if m:
        return brand_size[:m.start()].strip(), brand_size[m.start():].strip()
    fb = _MARCA_FALLBACK_RE.match(brand_size)
    if not fb:
        return brand_size, ""
    return fb.group(1).strip(), brand_size[fb.end():].strip()


def extract_clinical_notes(segments: Iterable[str]) -> Tuple[str, str]:
    """Qualidade óssea e fixação inicial dos segmentos após a barra."""
    bone_quality = initial_fixation = ""
    for seg in segments:
        if seg.startswith(_PREFIXO_QUALIDADE):
            bone_quality = seg.replace(_PREFIXO_QUALIDADE, "", 1).strip()
        elif seg.startswith(_PREFIXO_FIXACAO):
            initial_fixation = seg.replace(_PREFIXO_FIXACAO, "", 1).strip()
    return bone_quality, initial_fixation


def extract_hyphenated(description: str) -> Dict[str, str]:
    manufacturer, rest = split_manufacturer(description)
    segments = [s.strip() for s in rest.split("/")]
    brand, size = split_brand_and_size(segments[0] if segments else "")
    if manufacturer == "" or manufacturer == MARCADOR_SEGURO:
        manufacturer = brand
    bone_quality, initial_fixation = extract_clinical_notes(segments[1:])
    return {
        "manufacturer": manufacturer,
        "brand": brand,
        "size": size,
        "bone_quality": bone_quality,
        "initial_fixation": initial_fixation,
    }


# ---------------------------
# pipeline
# ---------------------------

def classify(raw_row: Dict[str, Any]) -> ClassifiedRow:
    """Classifica uma linha bruta do registro cirúrgico."""
    description = pick_description(raw_row)
    quantity = count_teeth(raw_row.get(COL_DENTE), description)
    classification = classify_description(description)
    out = ClassifiedRow(raw=dict(raw_row), classification=classification, quantity=quantity)

    if classification is Classification.BONE_GRAFT_ONLY:
        out.manufacturer, out.brand = extract_bone_graft(description)
    elif "-" in description:
        campos = extract_hyphenated(description)
        out.manufacturer = campos["manufacturer"]
        out.brand = campos["brand"]
        out.size = campos["size"]
        out.bone_quality = campos["bone_quality"]
        out.initial_fixation = campos["initial_fixation"]
    else:
        out.manufacturer = strip_markers(description)
    return out


def is_total_row(row: Dict[str, Any]) -> bool:
    """Linha de subtotal/total da planilha (qualquer célula com `합계`)."""
    return any(MARCADOR_TOTAL in _texto(v) for v in row.values())


def content_count(row: Dict[str, Any]) -> int:
    return sum(1 for v in row.values() if _texto(v).strip() != "")


def is_ingestible(row: Dict[str, Any]) -> bool:
    """Descarta totais e linhas praticamente vazias (uma célula ou menos)."""
    return not is_total_row(row) and content_count(row) > 1
