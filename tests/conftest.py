import json
from pathlib import Path

import pandas as pd
import pytest


@pytest.fixture
def cirurgias_xlsx(tmp_path: Path) -> str:
    """Registro cirúrgico com 8 implantes OSSTEM TS III (3 + 5) e dois FAILs."""
    path = tmp_path / "cirurgias.xlsx"
    pd.DataFrame([
        {"날짜": "2024-01-01", "환자정보": "김*", "치아번호": "11, 12, 13", "수술기록": "OSSTEM-TS III D:4.0 L:10"},
        {"날짜": "2024-01-05", "환자정보": "이*", "치아번호": "21,22,23,24,25", "수술기록": "OSSTEM-TS III D:4.0 L:10"},
        {"날짜": "2024-01-07", "환자정보": "박*", "치아번호": "36", "수술기록": "수술중FAIL_OSSTEM-TS III D:4.0 L:10"},
        {"날짜": "2024-01-03", "환자정보": "최*", "치아번호": "46", "수술기록": "수술중FAIL_OSSTEM-TS III D:4.0 L:10"},
        {"날짜": "2024-01-08", "환자정보": "정*", "치아번호": "47", "수술기록": "보험임플란트-OSSTEM-TS III D:4.0 L:10"},
        {"날짜": None, "환자정보": "합계", "치아번호": None, "수술기록": None},
    ]).to_excel(path, sheet_name="수술기록지", index=False)
    return str(path)


@pytest.fixture
def estoque_xlsx(tmp_path: Path) -> str:
    path = tmp_path / "fixtures.xlsx"
    pd.DataFrame([
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10", "재고": 12, "사용안함": False},
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:11.5", "재고": 4, "사용안함": False},
        {"제조사": "수술중FAIL_OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10", "재고": 0, "사용안함": False},
    ]).to_excel(path, index=False)
    return str(path)


@pytest.fixture
def pedidos_json(tmp_path: Path) -> str:
    path = tmp_path / "pedidos.json"
    path.write_text(json.dumps([
        {
            "id": "p1", "type": "replenishment", "manufacturer": "OSSTEM", "status": "received",
            "items": [{"brand": "TS III", "size": "Φ4.0×10", "quantity": 2}],
        },
    ], ensure_ascii=False), encoding="utf-8")
    return str(path)


@pytest.fixture
def troca_json(tmp_path: Path) -> str:
    path = tmp_path / "troca.json"
    path.write_text(json.dumps({
        "id": "t1", "type": "fail_exchange", "manufacturer": "OSSTEM",
        "items": [{"brand": "TS III", "size": "D:4.0 L:10", "quantity": 1}],
    }), encoding="utf-8")
    return str(path)
