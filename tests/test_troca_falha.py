from implantes.domain.models import Classification, ClassifiedRow, Order, OrderItem
from implantes.domain.troca_falha import fail_summary, pending_fail_rows, resolve


def _fail(data, manufacturer="OSSTEM", classification=Classification.INTRAOP_FAIL):
    return ClassifiedRow(
        raw={"날짜": data},
        classification=classification,
        manufacturer=manufacturer,
        brand="TS III",
        size="D:4.0 L:10",
        quantity=1,
    )


def _pedido(qtd, manufacturer="OSSTEM", tipo="fail_exchange"):
    return Order(
        id="t1",
        type=tipo,
        manufacturer=manufacturer,
        items=[OrderItem(brand="TS III", size="D:4.0 L:10", quantity=qtd)],
    )


def test_resolve_baixa_o_mais_antigo():
    novo, antigo = _fail("2024-01-05"), _fail("2024-01-01")
    rows = [novo, antigo]
    out = resolve(rows, _pedido(1))
    assert out is rows
    assert antigo.classification is Classification.FAIL_EXCHANGED
    assert novo.classification is Classification.INTRAOP_FAIL


def test_resolve_soma_as_linhas_do_pedido():
    rows = [_fail("2024-01-01"), _fail("2024-01-02"), _fail("2024-01-03")]
    pedido = _pedido(1)
    pedido.items.append(OrderItem(brand="TS IV", size="", quantity=1))
    resolve(rows, pedido)
    assert [r.classification for r in rows] == [
        Classification.FAIL_EXCHANGED,
        Classification.FAIL_EXCHANGED,
        Classification.INTRAOP_FAIL,
    ]


def test_resolve_data_vazia_vem_primeiro():
    datado, sem_data = _fail("2024-01-01"), _fail("")
    resolve([datado, sem_data], _pedido(1))
    assert sem_data.classification is Classification.FAIL_EXCHANGED
    assert datado.classification is Classification.INTRAOP_FAIL


def test_resolve_quantidade_maior_que_disponivel():
    rows = [_fail("2024-01-01"), _fail("2024-01-02")]
    resolve(rows, _pedido(5))
    assert all(r.classification is Classification.FAIL_EXCHANGED for r in rows)


def test_resolve_filtra_fabricante_normalizado():
    outro = _fail("2024-01-01", manufacturer="Dentium")
    mesmo = _fail("2024-01-02", manufacturer="Osstem")
    resolve([outro, mesmo], _pedido(1, manufacturer="OSSTEM"))
    assert outro.classification is Classification.INTRAOP_FAIL
    assert mesmo.classification is Classification.FAIL_EXCHANGED


def test_resolve_ignora_pedido_de_reposicao():
    rows = [_fail("2024-01-01")]
    resolve(rows, _pedido(1, tipo="replenishment"))
    assert rows[0].classification is Classification.INTRAOP_FAIL


def test_resolve_ignora_linhas_ja_trocadas():
    trocada = _fail("2024-01-01", classification=Classification.FAIL_EXCHANGED)
    pendente = _fail("2024-01-02")
    resolve([trocada, pendente], _pedido(1))
    assert pendente.classification is Classification.FAIL_EXCHANGED


def test_pending_fail_rows_ordem_estavel():
    a, b, c = _fail("2024-01-02"), _fail("2024-01-01"), _fail("2024-01-02")
    assert pending_fail_rows([a, b, c], "osstem") == [b, a, c]


def test_fail_summary():
    rows = [
        _fail("2024-01-01"),
        _fail("2024-01-02", classification=Classification.FAIL_EXCHANGED),
        _fail("2024-01-03", manufacturer="Dentium"),
        _fail("2024-01-04", classification=Classification.PLACEMENT),
    ]
    stats = fail_summary(rows)
    assert stats["OSSTEM"] == {"total": 2, "trocadas": 1, "pendentes": 1}
    assert stats["Dentium"] == {"total": 1, "trocadas": 0, "pendentes": 1}
    assert list(stats) == ["OSSTEM", "Dentium"]
