"""
Testes do sistema de logging (arquivos por assunto, gated por ENABLE_LOGGING).
"""

import pytest

from implantes.infra import logger as log


@pytest.fixture
def logs_tmp(tmp_path, monkeypatch):
    originais = dict(log.LOG_FILES)
    arquivos = {nome: tmp_path / f"{nome}.log" for nome in originais}
    monkeypatch.setattr(log, "ENABLE_LOGGING", True)
    monkeypatch.setattr(log, "LOG_FILES", arquivos)
    for nome, path in arquivos.items():
        log.setup_logger(f"implantes.{nome}", str(path))
    yield arquivos
    # devolve os handlers aos arquivos padrão
    for nome, path in originais.items():
        for h in log.logging.getLogger(f"implantes.{nome}").handlers:
            h.close()
        log.setup_logger(f"implantes.{nome}", str(path))


def test_logging_desligado_nao_escreve(tmp_path, monkeypatch):
    monkeypatch.setattr(log, "ENABLE_LOGGING", False)
    monkeypatch.setattr(log, "ENABLE_OUTPUT", False)
    assert log.get_log_summary("system") is None


def test_logs_por_assunto(logs_tmp):
    log.log_system_event("teste_inicio", {"id": 1})
    log.log_ingestao("classify", "cirurgias.xlsx", rows_read=10, rows_kept=8)
    log.log_reconciliacao(items=3, rows=8, orders=1, period_months=1.234)
    log.log_pedido("fail_exchange", "OSSTEM", 2, resolved=1)
    log.log_transaction("sincronizar", {"estoque": "x.xlsx"}, result={"itens": 3})
    log.log_transaction("sincronizar", {"estoque": "x.xlsx"}, error="arquivo ausente")

    assert "SYSTEM_EVENT: teste_inicio" in log.get_log_summary("system")
    assert "INGESTAO_CLASSIFY" in log.get_log_summary("ingestao")
    assert "'period_months': 1.23" in log.get_log_summary("reconciliacao")
    assert "PEDIDO_FAIL_EXCHANGE" in log.get_log_summary("pedidos")
    transacoes = log.get_log_summary("transactions")
    assert "TRANSACTION_SUCCESS: sincronizar" in transacoes
    assert "TRANSACTION_FAILED: sincronizar - arquivo ausente" in transacoes


def test_get_log_summary_tipo_desconhecido(logs_tmp):
    assert log.get_log_summary("nao_existe") == "Log nao_existe não encontrado."


def test_print_system_respeita_flag(capsys, monkeypatch):
    monkeypatch.setattr(log, "ENABLE_OUTPUT", False)
    log.print_system("silencio")
    monkeypatch.setattr(log, "ENABLE_OUTPUT", True)
    log.print_system("aviso")
    assert capsys.readouterr().out == "aviso\n"
