# implantes/adapters/cli.py
"""
CLI do motor de estoque de implantes (Typer).

Comandos principais:
- classificar <xlsx>          -> classifica o registro cirúrgico (opcionalmente grava)
- sincronizar                 -> reconcilia uso, pedidos e estoque
- troca-fail                  -> aplica um pedido de troca de FAIL
- comprimento <tamanho>       -> comprimento e chave de correspondência de um tamanho
- comprimento --estoque       -> comprimentos cadastrados no estoque
- analisar                    -> diagnóstico de qualidade dos dados
- rel reposicao|falhas|uso    -> relatórios
- logs                        -> últimas linhas dos arquivos de log
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from implantes.adapters.planilhas import (
    fixture_fields,
    is_active_fixture,
    load_classified_rows_from_xlsx,
    load_fixture_rows_from_xlsx,
    save_rows_to_xlsx,
)
from implantes.domain.tamanhos import extract_length, fixture_lengths, normalize_length, parse_size
from implantes.infra.logger import get_log_summary, log_file_operation, log_ingestao
from implantes.usecases.analise import run_analise_arquivos
from implantes.usecases.relatorios import relatorio_falhas, relatorio_reposicao, relatorio_uso
from implantes.usecases.sincronizar_estoque import run_sincronizar
from implantes.usecases.troca_falha import run_troca_falha


app = typer.Typer(help="Estoque de Implantes (CLI)")
console = Console()

_CORES_STATUS = {"FALTA": "bold red", "BAIXO": "bold yellow", "REPOR": "yellow", "OK": "green"}
_CORES_DIAGNOSTICO = {"good": "green", "warning": "yellow", "critical": "red"}


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _fmt(val: Any) -> str:
    """Números no formato brasileiro (1.234,5); inteiros sem casas."""
    if isinstance(val, bool):
        return str(val)
    if isinstance(val, int):
        return f"{val:,}".replace(",", ".")
    if isinstance(val, float):
        if val.is_integer():
            return f"{int(val):,}".replace(",", ".")
        return f"{val:,.1f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return str(val)


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado", status_col: Optional[str] = None) -> None:
    """Exibe uma lista de dicts como tabela Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    table = Table(title=title, box=box.ROUNDED)
    columns = list(data[0].keys())
    for column in columns:
        sample = data[0].get(column)
        if isinstance(sample, (int, float)) and not isinstance(sample, bool):
            table.add_column(column, justify="right")
        else:
            table.add_column(column)

    for row in data:
        values = []
        for col in columns:
            val = row.get(col, "")
            if col == status_col and val in _CORES_STATUS:
                values.append(f"[{_CORES_STATUS[val]}]{val}[/]")
            else:
                values.append(_fmt(val))
        table.add_row(*values)
    console.print(table)


def _display_report(res, title: str) -> None:
    """Exibe a tupla (colunas, linhas, mensagem) dos relatórios."""
    columns, rows, msg = res
    _display_table([dict(zip(columns, r)) for r in rows], title=title, status_col="Status")
    if msg:
        console.print(f"[dim]{msg}[/dim]")


def _report_to_json(res) -> List[Dict[str, Any]]:
    columns, rows, _ = res
    return [dict(zip(columns, r)) for r in rows]


def _fail(e: Exception) -> None:
    console.print(f"[bold red]Erro:[/] {e}")
    raise typer.Exit(code=1)


# -----------------------
# ingestão
# -----------------------

@app.command("classificar")
def cmd_classificar(
    path: str = typer.Argument(..., help="XLSX com a aba 수술기록지"),
    saida: Optional[str] = typer.Option(None, "--saida", help="Grava as linhas classificadas neste XLSX"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Classifica as linhas do registro cirúrgico."""
    try:
        rows = load_classified_rows_from_xlsx(path)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)
    log_ingestao("classify", path, rows_kept=len(rows))

    if saida:
        n = save_rows_to_xlsx(rows, saida)
        log_file_operation("export", saida, rows_processed=n)

    out = [
        {
            "data": r.date,
            "구분": r.classification.value,
            "제조사": r.manufacturer,
            "브랜드": r.brand,
            "규격(SIZE)": r.size,
            "갯수": r.quantity,
        }
        for r in rows
    ]
    if as_json:
        _print_json(out)
        return
    _display_table(out, title=f"Registro Cirúrgico ({len(out)} linhas)")
    if saida:
        console.print(f"[dim]Gravado em: {saida}[/dim]")


@app.command("comprimento")
def cmd_comprimento(
    tamanho: Optional[str] = typer.Argument(None, help="Texto do tamanho, ex.: 'Φ4.0×10'"),
    fabricante: str = typer.Option("", "--fabricante", help="Fabricante (decodifica códigos numéricos)"),
    estoque: Optional[str] = typer.Option(None, "--estoque", help="XLSX de fixtures: conta os comprimentos cadastrados"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Mostra o comprimento e a chave de um tamanho, ou os comprimentos do cadastro."""
    if estoque:
        try:
            fixtures = load_fixture_rows_from_xlsx(estoque)
        except (FileNotFoundError, ValueError) as e:
            _fail(e)
        sizes = [fixture_fields(r)["size"] for r in fixtures if is_active_fixture(r)]
        hist = fixture_lengths(sizes)
        if as_json:
            _print_json(hist)
            return
        _display_table(
            [{"comprimento": k, "fixtures": v} for k, v in hist.items()],
            title="Comprimentos Cadastrados",
        )
        return
    if not tamanho:
        _fail(ValueError("Informe um tamanho ou --estoque"))

    parsed = parse_size(tamanho, fabricante)
    out = {
        "tamanho": tamanho,
        "comprimento": normalize_length(extract_length(tamanho)),
        "diametro": parsed.diameter,
        "comprimento_chave": parsed.length,
        "cuff": parsed.cuff,
        "chave": parsed.match_key,
    }
    if as_json:
        _print_json(out)
        return
    _display_table([out], title="Tamanho")


# -----------------------
# estoque
# -----------------------

@app.command("sincronizar")
def cmd_sincronizar(
    cirurgias: List[str] = typer.Option(..., "--cirurgias", help="XLSX de registro cirúrgico (repetível)"),
    estoque: str = typer.Option(..., "--estoque", help="XLSX com o cadastro de fixtures"),
    pedidos: Optional[str] = typer.Option(None, "--pedidos", help="JSON com os pedidos"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Reconcilia uso cirúrgico e pedidos com o estoque (do zero)."""
    try:
        res = run_sincronizar(cirurgias, estoque, pedidos)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)
    if as_json:
        _print_json(res)
        return

    colunas = [
        "manufacturer", "brand", "size", "usage_count", "monthly_avg_usage",
        "daily_max_usage", "current_stock", "recommended_stock", "status", "qtd_sugerida",
    ]
    _display_table(
        [{c: i[c] for c in colunas} for i in res["itens"]],
        title="Estoque de Implantes",
        status_col="status",
    )
    console.print(f"[dim]Período: {_fmt(res['periodo_meses'])} mês(es) • {res['timestamp']}[/dim]")
    for d in res.get("duplicados", []):
        console.print(
            f"[yellow]Linha {d['linha']} ignorada: {d['fabricante']} {d['marca']} {d['tamanho']} "
            f"repete o item {d['duplicado_de']}[/yellow]"
        )


@app.command("troca-fail")
def cmd_troca_fail(
    cirurgias: str = typer.Option(..., "--cirurgias", help="XLSX do registro cirúrgico"),
    pedido: str = typer.Option(..., "--pedido", help="JSON do pedido de troca"),
    saida: Optional[str] = typer.Option(None, "--saida", help="Grava o registro atualizado neste XLSX"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Dá baixa nos FAILs mais antigos cobertos por um pedido de troca."""
    try:
        res = run_troca_falha(cirurgias, pedido, saida)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)
    if as_json:
        _print_json(res)
        return
    _display_table(res["pedidos"], title="Troca de FAIL")
    if saida:
        console.print(f"[dim]Gravado em: {saida}[/dim]")


@app.command("analisar")
def cmd_analisar(
    estoque: str = typer.Option(..., "--estoque", help="XLSX com o cadastro de fixtures"),
    cirurgias: List[str] = typer.Option(..., "--cirurgias", help="XLSX de registro cirúrgico (repetível)"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Diagnóstico de qualidade dos dados (nota de 0 a 100)."""
    try:
        res = run_analise_arquivos(estoque, cirurgias)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)
    res["diagnosticos"] = [asdict(d) for d in res["diagnosticos"]]
    if as_json:
        _print_json(res)
        return

    table = Table(title=f"Qualidade dos Dados: {res['score']}/100", box=box.ROUNDED)
    for col in ("Categoria", "Pontos", "Resultado", "Exemplos"):
        table.add_column(col, justify="right" if col == "Pontos" else "left")
    for d in res["diagnosticos"]:
        cor = _CORES_DIAGNOSTICO.get(d["status"], "white")
        table.add_row(
            d["categoria"],
            f"[{cor}]{d['score']}/{d['max_score']}[/]",
            d["titulo"],
            "\n".join(d["itens"]),
        )
    console.print(table)
    console.print(Panel("\n".join(f"• {r}" for r in res["recomendacoes"]), title="Recomendações"))


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios")
app.add_typer(rel_app, name="rel")


@rel_app.command("reposicao")
def rel_reposicao_cmd(
    cirurgias: List[str] = typer.Option(..., "--cirurgias", help="XLSX de registro cirúrgico (repetível)"),
    estoque: str = typer.Option(..., "--estoque", help="XLSX com o cadastro de fixtures"),
    pedidos: Optional[str] = typer.Option(None, "--pedidos", help="JSON com os pedidos"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Itens abaixo do estoque recomendado e quantidade sugerida."""
    try:
        res = relatorio_reposicao(cirurgias, estoque, pedidos)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)
    if as_json:
        _print_json(_report_to_json(res))
        return
    _display_report(res, title="Reposição de Implantes")


@rel_app.command("falhas")
def rel_falhas_cmd(
    cirurgias: List[str] = typer.Option(..., "--cirurgias", help="XLSX de registro cirúrgico (repetível)"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """FAILs intraoperatórios por fabricante."""
    try:
        res = relatorio_falhas(cirurgias)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)
    if as_json:
        _print_json(_report_to_json(res))
        return
    _display_report(res, title="FAIL por Fabricante")


@rel_app.command("uso")
def rel_uso_cmd(
    cirurgias: List[str] = typer.Option(..., "--cirurgias", help="XLSX de registro cirúrgico (repetível)"),
    top_n: int = typer.Option(10, "--top", help="Top N itens"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
):
    """Itens mais usados e resumo do registro cirúrgico."""
    try:
        res = relatorio_uso(cirurgias, top=top_n)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)
    if as_json:
        _print_json(_report_to_json(res))
        return
    _display_report(res, title=f"Top {top_n} Itens Usados")


# -----------------------
# logs
# -----------------------

@app.command("logs")
def cmd_logs(
    tipo: str = typer.Option("transactions", "--tipo", help="transactions|ingestao|reconciliacao|pedidos|system"),
    linhas: int = typer.Option(50, "--linhas", help="Últimas N linhas"),
):
    """Mostra as últimas linhas de um arquivo de log."""
    resumo = get_log_summary(tipo, linhas)
    if resumo is None:
        console.print("[yellow]Logging desativado (ENABLE_LOGGING=False).[/yellow]")
        return
    typer.echo(resumo)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
