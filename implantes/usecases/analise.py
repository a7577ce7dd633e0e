# implantes/usecases/analise.py
"""
Diagnóstico de qualidade dos dados (cadastro de fixtures × registro cirúrgico).

Seis verificações pontuadas (total 100):
1) FAIL separado no cadastro ............................. 15
2) 보험임플란트 marcado no cadastro e no registro ......... 15
3) itens do registro encontrados no cadastro ............. 25
4) fixtures ativas usadas em alguma cirurgia ............. 20
5) consistência de nomes (fabricante/marca) .............. 15
6) formato de tamanho uniforme por fabricante+marca ...... 10

Além da nota, o relatório traz itens sem correspondência, variantes de nome,
recomendações, padrões de uso e um resumo.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from implantes.adapters.planilhas import (
    fixture_fields,
    is_active_fixture,
    load_fixture_rows_from_xlsx,
)
from implantes.config import MARCADOR_SEGURO
from implantes.domain.models import Classification, ClassifiedRow
from implantes.domain.normalizacao import manufacturer_matches, normalize
from implantes.domain.tamanhos import detect_size_format, get_size_match_key
from implantes.domain.valores import coerce_quantity
from implantes.usecases.relatorios import resumo_uso
from implantes.usecases.sincronizar_estoque import load_surgery_files
from implantes.infra.logger import log_system_event, log_transaction, stamp

_PALAVRAS_FAIL = ("수술중fail", "fail", "수술중 fail")
MAX_EXEMPLOS = 5


@dataclass
class Diagnostico:
    categoria: str
    status: str          # 'good' | 'warning' | 'critical'
    score: int
    max_score: int
    titulo: str
    detalhe: str
    itens: List[str] = field(default_factory=list)


@dataclass
class _Fixture:
    manufacturer: str
    brand: str
    size: str
    ativo: bool
    seguro: bool
    fail: bool


# ----------------------
# util
# ----------------------

def _tem_marcador_seguro(row: Dict[str, Any]) -> bool:
    return any(MARCADOR_SEGURO in str(v) for v in row.values())


def _fabricante_fail(manufacturer: str) -> bool:
    m = manufacturer.lower()
    return "수술중fail" in m or "fail_" in m


def _fabricante_categoria(manufacturer: str) -> bool:
    return _fabricante_fail(manufacturer) or MARCADOR_SEGURO in manufacturer.lower()


def _item_key(manufacturer: str, brand: str, size: str) -> Tuple[str, str, str]:
    return normalize(manufacturer), normalize(brand), get_size_match_key(size, manufacturer)


def _casa(a: Tuple[str, str, str], b: Tuple[str, str, str]) -> bool:
    return manufacturer_matches(a[0], b[0]) and a[1] == b[1] and a[2] == b[2]


def _pct(x: float) -> int:
    return int(x * 100 + 0.5)


def detect_name_variants(names: Iterable[str]) -> Dict[str, List[str]]:
    """Agrupa grafias diferentes do mesmo nome.

    Nomes com a mesma chave ``normalize`` formam um grupo; grupos cuja
    chave contém a de outro são fundidos no de chave mais longa
    ("IBS" e "IBS Implant"). Só grupos com mais de uma grafia voltam.

    Args:
        names: Nomes de fabricante ou marca, como escritos nas planilhas.

    Returns:
        Dict chave normalizada → grafias originais (ordem de aparição).
    """
    grupos: Dict[str, List[str]] = OrderedDict()
    for name in names:
        original = str(name or "").strip()
        if not original:
            continue
        chave = normalize(original)
        if not chave:
            continue
        grafias = grupos.setdefault(chave, [])
        if original not in grafias:
            grafias.append(original)

    chaves = list(grupos)
    for i, a in enumerate(chaves):
        for b in chaves[i + 1:]:
            if a not in grupos or b not in grupos:
                continue
            if a in b or b in a:
                destino, origem = (a, b) if len(a) >= len(b) else (b, a)
                for g in grupos.pop(origem):
                    if g not in grupos[destino]:
                        grupos[destino].append(g)

    return OrderedDict((k, v) for k, v in grupos.items() if len(v) > 1)


# ----------------------
# diagnósticos
# ----------------------

def _diag_fail(fixture_rows: Sequence[Dict[str, Any]]) -> Diagnostico:
    tem_fail = any(
        kw in str(v).lower()
        for row in fixture_rows for v in row.values() for kw in _PALAVRAS_FAIL
    )
    if tem_fail:
        return Diagnostico(
            "FAIL separado", "good", 15, 15,
            "Trocas de FAIL rastreáveis",
            "O cadastro separa os itens FAIL, que servem de comprovante nos pedidos de troca ao fabricante.",
        )
    return Diagnostico(
        "FAIL separado", "critical", 0, 15,
        "FAIL misturado ao estoque",
        "As fixtures FAIL estão junto do estoque comum e trocas com o fabricante podem se perder. Separe os itens FAIL.",
    )


def _diag_seguro(fixture_rows: Sequence[Dict[str, Any]], surgery_rows: Sequence[ClassifiedRow]) -> Diagnostico:
    no_cadastro = any(_tem_marcador_seguro(r) for r in fixture_rows)
    no_registro = any(
        r.classification is Classification.INSURANCE_CLAIM or _tem_marcador_seguro(r.raw)
        for r in surgery_rows
    )
    if no_cadastro and no_registro:
        return Diagnostico(
            "Seguro em duas etapas", "good", 15, 15,
            "보험임플란트 marcado nos dois lados",
            "Cadastro e registro cirúrgico marcam 보험임플란트, evitando contar a fixture duas vezes.",
        )
    if no_cadastro or no_registro:
        falta = "registro cirúrgico" if no_cadastro else "cadastro de fixtures"
        return Diagnostico(
            "Seguro em duas etapas", "warning", 7, 15,
            f"보험임플란트 ausente no {falta}",
            f"O {falta} não marca 보험임플란트. Os dois lados precisam marcar para não contar a fixture duas vezes.",
        )
    return Diagnostico(
        "Seguro em duas etapas", "critical", 0, 15,
        "보험임플란트 não identificado",
        "Nenhum lado marca 보험임플란트. Marque no cadastro e no registro cirúrgico.",
    )


def _uso_por_item(surgery_rows: Sequence[ClassifiedRow]) -> Dict[Tuple[str, str, str], Dict[str, Any]]:
    """Itens distintos do registro (sem GBR e seguro) com quantidade somada."""
    uso: Dict[Tuple[str, str, str], Dict[str, Any]] = OrderedDict()
    for r in surgery_rows:
        if r.classification in (Classification.BONE_GRAFT_ONLY, Classification.INSURANCE_CLAIM):
            continue
        if _tem_marcador_seguro(r.raw):
            continue
        key = _item_key(r.manufacturer, r.brand, r.size)
        slot = uso.setdefault(key, {"manufacturer": r.manufacturer, "brand": r.brand, "size": r.size, "count": 0})
        slot["count"] += coerce_quantity(r.quantity)
    return uso


def run_analise(
    fixture_rows: Sequence[Dict[str, Any]],
    surgery_rows: Sequence[ClassifiedRow],
) -> Dict[str, Any]:
    """
    Monta o relatório de qualidade dos dados.

    Args:
        fixture_rows: Linhas brutas do cadastro de fixtures.
        surgery_rows: Linhas classificadas do registro cirúrgico.

    Returns:
        Dict com ``score``, ``diagnosticos``, ``itens_sem_correspondencia``,
        ``variantes``, ``recomendacoes``, ``padroes_uso`` e ``resumo``.
    """
    fixtures: List[_Fixture] = []
    for row in fixture_rows:
        campos = fixture_fields(row)
        fixtures.append(_Fixture(
            manufacturer=campos["manufacturer"],
            brand=campos["brand"],
            size=campos["size"],
            ativo=is_active_fixture(row),
            seguro=_tem_marcador_seguro(row),
            fail=_fabricante_fail(campos["manufacturer"]),
        ))
    comparaveis = [f for f in fixtures if not f.seguro and not f.fail]
    chaves_fixture = [(f, _item_key(f.manufacturer, f.brand, f.size)) for f in comparaveis]

    uso = _uso_por_item(surgery_rows)
    diagnosticos: List[Diagnostico] = [_diag_fail(fixture_rows), _diag_seguro(fixture_rows, surgery_rows)]
    seguro_ok = diagnosticos[1].score == 15

    # 3) registro → cadastro
    casados = 0
    so_registro: List[Dict[str, Any]] = []
    for key, item in uso.items():
        if any(_casa(key, fk) for _, fk in chaves_fixture):
            casados += 1
        elif item["manufacturer"] or item["brand"]:
            so_registro.append({
                "manufacturer": item["manufacturer"], "brand": item["brand"], "size": item["size"],
                "origem": "surgery_only", "motivo": "Só no registro cirúrgico (não cadastrado)",
            })
    taxa_match = casados / len(uso) if uso else 1.0
    faltando = len(uso) - casados
    diagnosticos.append(Diagnostico(
        "Registro → cadastro",
        "good" if taxa_match >= 0.8 else "warning" if taxa_match >= 0.5 else "critical",
        int(taxa_match * 25 + 0.5), 25,
        f"Correspondência {_pct(taxa_match)}% ({casados}/{len(uso)})",
        "Quase todos os itens do registro estão cadastrados."
        if taxa_match >= 0.8 else
        f"{faltando} item(ns) do registro não estão no cadastro. Pode ser erro de digitação ou item não cadastrado.",
        [f"{i['manufacturer']} {i['brand']} {i['size']}" for i in so_registro[:MAX_EXEMPLOS]],
    ))

    # 4) cadastro → registro
    ativos = [(f, fk) for f, fk in chaves_fixture if f.ativo]
    usados = 0
    so_cadastro: List[Dict[str, Any]] = []
    for f, fk in ativos:
        if any(_casa(sk, fk) for sk in uso):
            usados += 1
        elif f.manufacturer or f.brand:
            so_cadastro.append({
                "manufacturer": f.manufacturer, "brand": f.brand, "size": f.size,
                "origem": "fixture_only", "motivo": "Só no cadastro (nenhuma cirurgia, possível estoque parado)",
            })
    taxa_uso = usados / len(ativos) if ativos else 1.0
    parados = len(ativos) - usados
    diagnosticos.append(Diagnostico(
        "Cadastro → registro",
        "good" if taxa_uso >= 0.7 else "warning" if taxa_uso >= 0.4 else "critical",
        int(taxa_uso * 20 + 0.5), 20,
        f"Utilização {_pct(taxa_uso)}% ({usados}/{len(ativos)})",
        "A maior parte das fixtures cadastradas é usada em cirurgias."
        if taxa_uso >= 0.7 else
        f"{parados} de {len(ativos)} fixture(s) ativas não aparecem no registro. Revise o estoque parado.",
        [f"{i['manufacturer']} {i['brand']} {i['size']}" for i in so_cadastro[:MAX_EXEMPLOS]],
    ))

    # 5) consistência de nomes (linhas de categoria não contam como variante)
    nomes: List[Tuple[str, str, str]] = []
    for f in fixtures:
        if not _fabricante_categoria(f.manufacturer):
            nomes.append((f.manufacturer, f.brand, f.size))
    for r in surgery_rows:
        if r.classification in (
            Classification.BONE_GRAFT_ONLY, Classification.INSURANCE_CLAIM, Classification.INTRAOP_FAIL,
        ):
            continue
        if not _fabricante_categoria(r.manufacturer):
            nomes.append((r.manufacturer, r.brand, r.size))
    var_fabricante = detect_name_variants(n[0] for n in nomes)
    var_marca = detect_name_variants(n[1] for n in nomes)
    n_variantes = len(var_fabricante) + len(var_marca)
    exemplos = [f"Fabricante: {' / '.join(v)}" for v in var_fabricante.values()]
    exemplos += [f"Marca: {' / '.join(v)}" for v in var_marca.values()]
    diagnosticos.append(Diagnostico(
        "Consistência de nomes",
        "good" if n_variantes == 0 else "warning" if n_variantes <= 3 else "critical",
        15 if n_variantes == 0 else 10 if n_variantes <= 2 else 5 if n_variantes <= 5 else 0, 15,
        "Nomes consistentes" if n_variantes == 0 else f"{n_variantes} variante(s) de nome",
        "Fabricantes e marcas aparecem sempre com a mesma grafia."
        if n_variantes == 0 else
        "O mesmo fabricante ou marca aparece com grafias diferentes. Padronize os nomes.",
        exemplos[:MAX_EXEMPLOS],
    ))

    # 6) formato de tamanho por fabricante+marca
    formatos: Dict[Tuple[str, str], Dict[str, Any]] = OrderedDict()
    for m, b, s in nomes:
        m, b, s = m.strip(), b.strip(), s.strip()
        if not m or not s:
            continue
        grupo = formatos.setdefault((normalize(m), normalize(b)), {"nome": f"{m} {b}".strip(), "formatos": []})
        fmt = detect_size_format(s)
        if fmt not in grupo["formatos"]:
            grupo["formatos"].append(fmt)
    mistos = [f"{g['nome']} ({', '.join(g['formatos'])})" for g in formatos.values() if len(g["formatos"]) > 1]
    n_mistos = len(mistos)
    diagnosticos.append(Diagnostico(
        "Formato de tamanho",
        "good" if n_mistos == 0 else "warning" if n_mistos <= 2 else "critical",
        10 if n_mistos == 0 else 7 if n_mistos <= 1 else 4 if n_mistos <= 3 else 0, 10,
        "Formato de tamanho uniforme" if n_mistos == 0 else f"{n_mistos} marca(s) com formatos misturados",
        "Cada fabricante+marca usa uma única notação de tamanho."
        if n_mistos == 0 else
        "Uma mesma marca usa notações diferentes (ex.: Φ5.0×8.5 e 5.0×8.5). A correspondência não é afetada, mas padronize.",
        mistos[:MAX_EXEMPLOS],
    ))

    recomendacoes: List[str] = []
    if diagnosticos[0].score == 0:
        recomendacoes.append("Separe as fixtures FAIL em itens próprios para comprovar os pedidos de troca.")
    if not seguro_ok:
        recomendacoes.append("Marque 보험임플란트 (segunda etapa) no cadastro e no registro para não contar a fixture duas vezes.")
    if taxa_match < 0.8:
        recomendacoes.append(f"Cadastre os {faltando} item(ns) do registro que faltam ou corrija a grafia no registro.")
    if taxa_uso < 0.7:
        recomendacoes.append(f"Revise as {parados} fixture(s) ativas sem nenhuma cirurgia.")
    if n_variantes:
        recomendacoes.append(f"Padronize as {n_variantes} variante(s) de nome encontradas.")
    if n_mistos:
        recomendacoes.append(f"Use uma única notação de tamanho nos {n_mistos} grupo(s) fabricante+marca com formatos misturados.")
    if not recomendacoes:
        recomendacoes.append("Dados consistentes; nenhuma ação necessária.")

    padroes = resumo_uso(surgery_rows)
    padroes["top_itens"] = sorted(uso.values(), key=lambda d: d["count"], reverse=True)[:10]

    return {
        "score": sum(d.score for d in diagnosticos),
        "diagnosticos": diagnosticos,
        "itens_casados": casados,
        "total_itens_registro": len(uso),
        "itens_sem_correspondencia": so_registro + so_cadastro,
        "variantes": {"fabricante": var_fabricante, "marca": var_marca},
        "recomendacoes": recomendacoes,
        "padroes_uso": padroes,
        "resumo": {
            "total_fixtures": len([f for f in fixtures if not f.fail]),
            "ativas": len(ativos),
            "usadas": usados,
            "paradas": parados,
            "so_registro": len(so_registro),
            "variantes_nome": n_variantes,
        },
        "timestamp": stamp(),
    }


def run_analise_arquivos(estoque: str, cirurgias: Sequence[str]) -> Dict[str, Any]:
    """Lê o cadastro de fixtures e os registros cirúrgicos e roda a análise."""
    log_system_event("analise_start", {"estoque": estoque, "cirurgias": list(cirurgias)})
    try:
        fixture_rows = load_fixture_rows_from_xlsx(estoque)
        surgery_rows = load_surgery_files(cirurgias)
        report = run_analise(fixture_rows, surgery_rows)
        log_transaction("analise", {"estoque": estoque}, result={"score": report["score"]})
        return report
    except Exception as e:
        error_msg = str(e)
        log_transaction("analise", {"estoque": estoque}, error=error_msg)
        log_system_event("analise_error", {"error": error_msg}, level="error")
        raise
