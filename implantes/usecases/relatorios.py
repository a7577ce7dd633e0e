# implantes/usecases/relatorios.py
"""
Relatórios de estoque de implantes:
- reposição (itens com status FALTA/BAIXO/REPOR e quantidade sugerida)
- falhas (FAIL intraoperatório por fabricante: total, trocadas, pendentes)
- uso (contagens por classificação, média mensal de cirurgias, distribuição
  por fabricante e itens mais usados)

Todos devolvem (colunas, linhas, mensagem) para exibição tabular.
"""

from __future__ import annotations

from collections import Counter, OrderedDict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from implantes.config import COL_DATA, MARCADOR_SEGURO
from implantes.domain.classificador import is_total_row
from implantes.domain.models import Classification, ClassifiedRow
from implantes.domain.normalizacao import normalize
from implantes.domain.politicas import round_half_up
from implantes.domain.reconciliacao import period_in_months
from implantes.domain.troca_falha import fail_summary
from implantes.domain.valores import coerce_quantity, parse_date
from implantes.usecases.sincronizar_estoque import load_surgery_files, run_sincronizar
from implantes.infra.logger import log_system_event, system_logger

Tabela = Tuple[List[str], List[List[Any]], Optional[str]]


# ----------------------
# util
# ----------------------

def _e_fabricante_categoria(manufacturer: str) -> bool:
    m = manufacturer.lower()
    return MARCADOR_SEGURO in manufacturer or "수술중fail" in m or "fail_" in m


def resumo_uso(rows: Sequence[ClassifiedRow], top: int = 10) -> Dict[str, Any]:
    """Padrões de uso do registro cirúrgico.

    Args:
        rows: Linhas classificadas (linhas de total são ignoradas).
        top: Quantos itens mais usados retornar.

    Returns:
        Dict com contagens por classificação, quantidades, período em meses,
        média mensal de cirurgias, distribuição por fabricante e top itens.
    """
    rows = [r for r in rows if not is_total_row(r.to_row())]
    periodo = period_in_months(parse_date(r.raw.get(COL_DATA)) for r in rows)

    por_classe = Counter(r.classification for r in rows)
    qtd_por_classe: Dict[Classification, float] = Counter()
    for r in rows:
        qtd_por_classe[r.classification] += coerce_quantity(r.quantity)

    total = len(rows) - por_classe[Classification.BONE_GRAFT_ONLY]

    # fabricante normalizado → (nome exibido, quantidade); primeiro nome visto é o exibido
    fabricantes: Dict[str, List[Any]] = OrderedDict()
    itens: Dict[Tuple[str, str, str], Dict[str, Any]] = OrderedDict()
    for r in rows:
        if r.classification in (Classification.BONE_GRAFT_ONLY, Classification.INSURANCE_CLAIM):
            continue
        m = r.manufacturer.strip()
        if not m or _e_fabricante_categoria(m):
            continue
        qtd = coerce_quantity(r.quantity)
        slot = fabricantes.setdefault(normalize(m), [m, 0])
        slot[1] += qtd
        chave = (normalize(m), normalize(r.brand), r.size.strip())
        item = itens.setdefault(chave, {"manufacturer": m, "brand": r.brand, "size": r.size, "count": 0})
        item["count"] += qtd

    distribuicao = sorted(
        ({"label": nome, "count": qtd} for nome, qtd in fabricantes.values()),
        key=lambda d: d["count"], reverse=True,
    )
    top_itens = sorted(itens.values(), key=lambda d: d["count"], reverse=True)[:top]

    return {
        "periodo_meses": round_half_up(periodo, 1),
        "total_cirurgias": total,
        "cirurgias_primarias": por_classe[Classification.PLACEMENT],
        "cirurgias_secundarias": por_classe[Classification.INSURANCE_CLAIM],
        "cirurgias_fail": por_classe[Classification.INTRAOP_FAIL],
        "fails_trocadas": por_classe[Classification.FAIL_EXCHANGED],
        "media_mensal_cirurgias": round_half_up(total / periodo, 1),
        "implantes_usados": qtd_por_classe[Classification.PLACEMENT],
        "implantes_seguro": qtd_por_classe[Classification.INSURANCE_CLAIM],
        "implantes_fail": qtd_por_classe[Classification.INTRAOP_FAIL],
        "distribuicao_fabricantes": distribuicao,
        "top_itens": top_itens,
    }


# ----------------------
# 1) Reposição
# ----------------------

def relatorio_reposicao(
    cirurgias: Sequence[str],
    estoque: str,
    pedidos: Optional[str] = None,
) -> Tabela:
    """
    Itens que precisam de pedido (status FALTA, BAIXO ou REPOR), já
    ordenados por criticidade pelo painel de sincronização.
    """
    log_system_event("relatorio_reposicao_start", {"estoque": estoque})
    try:
        painel = run_sincronizar(cirurgias, estoque, pedidos)
        out = [i for i in painel["itens"] if i["status"] in ("FALTA", "BAIXO", "REPOR")]
        system_logger.info(f"REPORT_REPOSICAO: {len(out)}/{len(painel['itens'])} itens para repor")

        columns = [
            "Fabricante", "Marca", "Tamanho", "Atual", "Recomendado",
            "Média/mês", "Pico/dia", "Status", "Qtd Sugerida",
        ]
        rows = [
            [
                i["manufacturer"], i["brand"], i["size"], i["current_stock"],
                i["recommended_stock"], i["monthly_avg_usage"], i["daily_max_usage"],
                i["status"], i["qtd_sugerida"],
            ]
            for i in out
        ]
        msg = None if rows else "Nenhum item precisa de reposição."
        log_system_event("relatorio_reposicao_success", {"itens": len(rows)})
        return columns, rows, msg
    except Exception as e:
        log_system_event("relatorio_reposicao_error", {"error": str(e)}, level="error")
        raise


# ----------------------
# 2) Falhas
# ----------------------

def relatorio_falhas(cirurgias: Sequence[str]) -> Tabela:
    """FAILs intraoperatórios por fabricante (trocadas vs. pendentes)."""
    log_system_event("relatorio_falhas_start", {"cirurgias": list(cirurgias)})
    try:
        rows_cls = load_surgery_files(cirurgias)
        stats = fail_summary(rows_cls)

        columns = ["Fabricante", "Total", "Trocadas", "Pendentes"]
        rows = [[m, s["total"], s["trocadas"], s["pendentes"]] for m, s in stats.items()]
        rows.sort(key=lambda r: (-r[3], r[0]))
        msg = None if rows else "Nenhum FAIL registrado."
        log_system_event("relatorio_falhas_success", {"fabricantes": len(rows)})
        return columns, rows, msg
    except Exception as e:
        log_system_event("relatorio_falhas_error", {"error": str(e)}, level="error")
        raise


# ----------------------
# 3) Uso
# ----------------------

def relatorio_uso(cirurgias: Sequence[str], top: int = 10) -> Tabela:
    """
    Itens mais usados no período. A mensagem resume as contagens por
    classificação e a média mensal de cirurgias.
    """
    log_system_event("relatorio_uso_start", {"cirurgias": list(cirurgias), "top": top})
    try:
        resumo = resumo_uso(load_surgery_files(cirurgias), top=top)

        columns = ["Fabricante", "Marca", "Tamanho", "Quantidade"]
        rows = [[i["manufacturer"], i["brand"], i["size"], i["count"]] for i in resumo["top_itens"]]
        msg = (
            f"{resumo['total_cirurgias']} cirurgias em {resumo['periodo_meses']} mês(es) "
            f"(média {resumo['media_mensal_cirurgias']}/mês): "
            f"{resumo['cirurgias_primarias']} 식립, {resumo['cirurgias_secundarias']} 청구, "
            f"{resumo['cirurgias_fail']} FAIL, {resumo['fails_trocadas']} trocadas."
        )
        log_system_event("relatorio_uso_success", {"itens": len(rows)})
        return columns, rows, msg
    except Exception as e:
        log_system_event("relatorio_uso_error", {"error": str(e)}, level="error")
        raise
