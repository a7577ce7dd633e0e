from implantes.domain.classificador import classify
from implantes.usecases.analise import detect_name_variants, run_analise, run_analise_arquivos


FIXTURES = [
    {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10"},
    {"제조사": "수술중FAIL_OSSTEM", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10"},
    {"제조사": "보험임플란트", "브랜드": "보험임플란트", "규격(SIZE)": ""},
]


def _scores(report):
    return [d.score for d in report["diagnosticos"]]


def test_detect_name_variants_funde_substrings():
    variantes = detect_name_variants(["IBS", "IBS Implant", "ibs implant", "Osstem", "", None])
    assert list(variantes) == ["ibsimplant"]
    assert sorted(variantes["ibsimplant"]) == ["IBS", "IBS Implant", "ibs implant"]


def test_detect_name_variants_sem_variantes():
    assert detect_name_variants(["OSSTEM", "OSSTEM", "Dentium"]) == {}


def test_run_analise_dados_consistentes():
    surgery = [
        classify({"날짜": "2024-01-01", "수술기록": "OSSTEM-TS III D:4.0 L:10"}),
        classify({"날짜": "2024-01-02", "수술기록": "보험임플란트-OSSTEM-TS III D:4.0 L:10"}),
    ]
    report = run_analise(FIXTURES, surgery)
    assert _scores(report) == [15, 15, 25, 20, 15, 10]
    assert report["score"] == 100
    assert report["itens_sem_correspondencia"] == []
    assert report["recomendacoes"] == ["Dados consistentes; nenhuma ação necessária."]
    assert report["resumo"]["total_fixtures"] == 2


def test_run_analise_vazia():
    report = run_analise([], [])
    assert _scores(report) == [0, 0, 25, 20, 15, 10]
    assert report["score"] == 70
    assert len(report["recomendacoes"]) == 2


def test_run_analise_itens_sem_correspondencia():
    surgery = [classify({"날짜": "2024-01-01", "수술기록": "Dentium-SuperLine 4.0x10"})]
    report = run_analise(FIXTURES[:1], surgery)
    diag = report["diagnosticos"]
    assert diag[2].score == 0
    assert diag[2].status == "critical"
    assert diag[2].itens == ["Dentium SuperLine 4.0x10"]
    assert diag[3].score == 0
    origens = [i["origem"] for i in report["itens_sem_correspondencia"]]
    assert origens == ["surgery_only", "fixture_only"]
    assert report["resumo"]["paradas"] == 1


def test_run_analise_variantes_e_formatos():
    fixtures = [
        {"제조사": "OSSTEM", "브랜드": "TS III", "규격(SIZE)": "Φ4.0×10"},
        {"제조사": "Osstem Implant", "브랜드": "TS III", "규격(SIZE)": "D:4.0 L:10"},
    ]
    report = run_analise(fixtures, [])
    nomes, formato = report["diagnosticos"][4], report["diagnosticos"][5]
    assert nomes.score == 10
    assert nomes.itens == ["Fabricante: Osstem Implant / OSSTEM"]
    assert formato.score == 10


def test_run_analise_arquivos(cirurgias_xlsx, estoque_xlsx):
    report = run_analise_arquivos(estoque_xlsx, [cirurgias_xlsx])
    assert _scores(report) == [15, 7, 25, 10, 15, 10]
    assert report["score"] == 82
    assert report["padroes_uso"]["total_cirurgias"] == 5
