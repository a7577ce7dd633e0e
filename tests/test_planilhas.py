"""
Testes dos loaders de planilha (XLSX via pandas/openpyxl) e de pedidos (JSON).
"""

import json
from pathlib import Path

import pandas as pd
import pytest

from implantes.adapters.planilhas import (
    from_classified_row,
    inventory_from_rows,
    load_classified_rows_from_xlsx,
    load_inventory_from_xlsx,
    load_orders_from_json,
    load_surgery_rows_from_xlsx,
    save_rows_to_xlsx,
    to_classified_rows,
)
from implantes.domain.classificador import classify
from implantes.domain.models import Classification
from implantes.domain.reconciliacao import reconcile


def _cirurgias_xlsx(path: Path, linhas) -> str:
    pd.DataFrame(linhas).to_excel(path, sheet_name="수술기록지", index=False)
    return str(path)


LINHAS = [
    {"날짜": "2024-01-01", "환자정보": "김*", "치아번호": "36", "수술기록": "OSSTEM-TS III D:4.0 L:10"},
    {"날짜": "2024-01-05", "환자정보": "이*", "치아번호": "11, 12", "수술기록": "수술중FAIL_OSSTEM-TS III D:4.0 L:10"},
    {"날짜": None, "환자정보": "합계", "치아번호": None, "수술기록": None},
    {"날짜": "2024-01-09", "환자정보": None, "치아번호": None, "수술기록": None},
]


def test_load_surgery_rows_descarta_totais_e_vazias(tmp_path: Path):
    path = _cirurgias_xlsx(tmp_path / "cirurgias.xlsx", LINHAS)
    rows = load_surgery_rows_from_xlsx(path)
    assert len(rows) == 2
    assert rows[0]["날짜"] == "2024-01-01"
    assert rows[1]["치아번호"] == "11, 12"


def test_load_surgery_rows_datas_do_excel_viram_iso(tmp_path: Path):
    linhas = [{"날짜": pd.Timestamp("2024-02-03"), "수술기록": "OSSTEM-TS III D:4.0 L:10"}]
    path = _cirurgias_xlsx(tmp_path / "c.xlsx", linhas)
    [row] = load_surgery_rows_from_xlsx(path)
    assert row["날짜"] == "2024-02-03"


def test_load_surgery_rows_erros(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_surgery_rows_from_xlsx(str(tmp_path / "nao_existe.xlsx"))

    outra = tmp_path / "outra.xlsx"
    pd.DataFrame(LINHAS).to_excel(outra, sheet_name="Sheet1", index=False)
    with pytest.raises(ValueError):
        load_surgery_rows_from_xlsx(str(outra))


def test_load_classified_rows(tmp_path: Path):
    path = _cirurgias_xlsx(tmp_path / "cirurgias.xlsx", LINHAS)
    rows = load_classified_rows_from_xlsx(path)
    assert [r.classification for r in rows] == [Classification.PLACEMENT, Classification.INTRAOP_FAIL]
    assert rows[1].quantity == 2
    assert rows[1].manufacturer == "OSSTEM"


def test_save_e_recarrega_preserva_baixas(tmp_path: Path):
    rows = load_classified_rows_from_xlsx(_cirurgias_xlsx(tmp_path / "in.xlsx", LINHAS))
    rows[1].classification = Classification.FAIL_EXCHANGED

    out = tmp_path / "out.xlsx"
    assert save_rows_to_xlsx(rows, str(out)) == 2

    df = pd.read_excel(out, sheet_name="수술기록지")
    assert list(df.columns[:6]) == ["날짜", "환자정보", "치아번호", "갯수", "수술기록", "구분"]

    recarregadas = load_classified_rows_from_xlsx(str(out))
    assert recarregadas[1].classification is Classification.FAIL_EXCHANGED
    assert recarregadas[1].quantity == 2
    assert recarregadas[0].brand == "TS III"


def test_from_classified_row_sem_classificacao():
    assert from_classified_row({"구분": "", "수술기록": "x"}) is None
    assert from_classified_row({"구분": "outra", "수술기록": "x"}) is None
    row = from_classified_row({"구분": "청구", "제조사": "OSSTEM", "갯수": "2"})
    assert row.classification is Classification.INSURANCE_CLAIM
    assert row.quantity == 2


def test_inventory_from_rows_cabecalhos_variados():
    items = inventory_from_rows([
        {"Manufacturer": "OSSTEM", "Brand": "TS III", "Size": "Φ4.0×10", "재고": 10},
        {"제조사": "Dentium", "브랜드": "SuperLine", "규격": "3510", "초기재고": "4", "재고조정": -1},
        {"제조사": "Neo", "브랜드": "IS-II", "규격(SIZE)": "4.0x10", "사용안함": True},
        {"제조사": None, "브랜드": None},
    ])
    assert [i.manufacturer for i in items] == ["OSSTEM", "Dentium"]
    assert items[0].initial_stock == 10
    assert items[0].size == "Φ4.0×10"
    assert items[1].initial_stock == 4
    assert items[1].stock_adjustment == -1
    assert items[1].id == "2"


def test_load_inventory_from_xlsx(tmp_path: Path):
    path = tmp_path / "fixtures.xlsx"
    pd.DataFrame([
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10", "재고": 10, "사용안함": False},
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:11.5", "재고": 3, "사용안함": True},
    ]).to_excel(path, index=False)
    items = load_inventory_from_xlsx(str(path))
    assert len(items) == 1
    assert items[0].initial_stock == 10


def test_load_orders_from_json(tmp_path: Path):
    path = tmp_path / "pedidos.json"
    path.write_text(json.dumps([
        {
            "id": "p1", "type": "replenishment", "manufacturer": "OSSTEM", "status": "received",
            "receivedDate": "2024-02-01",
            "items": [{"brand": "TS III", "size": "D:4.0 L:10", "quantity": 5}],
        },
        {"id": "p2", "manufacturer": "Dentium"},
    ], ensure_ascii=False), encoding="utf-8")

    p1, p2 = load_orders_from_json(str(path))
    assert p1.received_date == "2024-02-01"
    assert p1.total_quantity == 5
    assert p2.type == "replenishment"
    assert p2.status == "ordered"
    assert p2.items == []


def test_load_orders_objeto_unico(tmp_path: Path):
    path = tmp_path / "troca.json"
    path.write_text(json.dumps({"id": "t1", "type": "fail_exchange", "manufacturer": "OSSTEM"}), encoding="utf-8")
    [pedido] = load_orders_from_json(str(path))
    assert pedido.type == "fail_exchange"


def test_load_surgery_rows_datas_em_texto_viram_iso(tmp_path: Path):
    linhas = [
        {"날짜": "2024.03.05", "수술기록": "OSSTEM-TS III D:4.0 L:10"},
        {"날짜": "sem data", "수술기록": "OSSTEM-TS III D:4.0 L:10"},
    ]
    path = _cirurgias_xlsx(tmp_path / "c.xlsx", linhas)
    rows = load_surgery_rows_from_xlsx(path)
    assert [r["날짜"] for r in rows] == ["2024-03-05", "sem data"]


def test_to_classified_rows_reclassifica_exportacao_crua():
    [row] = to_classified_rows([
        {"날짜": "2024-01-01", "구분": "식립", "수술기록": "OSSTEM-TS III D:4.0 L:10", "갯수": 1},
    ])
    assert row.classification is Classification.PLACEMENT
    assert (row.manufacturer, row.brand, row.size) == ("OSSTEM", "TS III", "D:4.0 L:10")


def test_to_classified_rows_mantem_baixa_de_fail_ao_reclassificar():
    [row] = to_classified_rows([
        {"날짜": "2024-01-01", "구분": "FAIL 교환완료", "수술기록": "수술중FAIL_OSSTEM-TS III D:4.0 L:10"},
    ])
    assert row.classification is Classification.FAIL_EXCHANGED
    assert row.manufacturer == "OSSTEM"


def test_inventory_from_rows_corrige_marca_ibs_trocada():
    [item] = inventory_from_rows([
        {"제조사": "Magicore", "브랜드": "IBS Implant", "규격(SIZE)": "Φ4.0x10", "재고": 5},
    ])
    assert (item.manufacturer, item.brand) == ("IBS Implant", "Magicore")

    rows = [classify({"날짜": "2024-01-01", "수술기록": "IBS Implant-Magicore Φ4.0x10"})]
    [out] = reconcile([item], rows, [])
    assert out.usage_count == 1
    assert out.current_stock == 4


def test_inventory_from_rows_descarta_sku_repetido():
    duplicados = []
    items = inventory_from_rows([
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "Φ4.0×10", "재고": 10},
        {"제조사": "Osstem Implant", "브랜드": "TS-III", "규격(SIZE)": "D:4.0 L:10", "재고": 3},
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:11.5", "재고": 2},
    ], duplicados)
    assert [i.size for i in items] == ["Φ4.0×10", "D:4.0 L:11.5"]
    assert duplicados == [{
        "linha": 2, "fabricante": "Osstem Implant", "marca": "TS-III",
        "tamanho": "D:4.0 L:10", "duplicado_de": "1",
    }]

    rows = [classify({"날짜": "2024-01-01", "수술기록": "OSSTEM-TS III D:4.0 L:10"})]
    out = [i for i in reconcile(items, rows, []) if i.usage_count]
    assert len(out) == 1
    assert out[0].current_stock == 9


def test_inventory_from_rows_categoria_fail_nao_e_duplicado():
    items = inventory_from_rows([
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10"},
        {"제조사": "수술중FAIL_OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10"},
    ])
    assert len(items) == 2
