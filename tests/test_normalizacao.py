import pytest

from implantes.domain.normalizacao import (
    fix_swapped_brand,
    inventory_duplicate_key,
    is_category_item,
    is_exchange_prefix,
    manufacturer_alias_key,
    manufacturer_matches,
    normalize,
    normalize_inventory,
)


@pytest.mark.parametrize(
    "texto, esperado",
    [
        ("OSSTEM Implant", "osstemimplant"),
        ("  Osstem-Implant ", "osstemimplant"),
        ("수술중FAIL_오스템", "오스템"),
        ("수술중교환_오스템", "오스템"),
        ("보험임플란트 TS III", "tsiii"),
        ("Φ4.0", "d40"),
        ("(Ø4.0)", "ø40"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_casos(texto, esperado):
    assert normalize(texto) == esperado


@pytest.mark.parametrize(
    "texto",
    [
        "OSSTEM Implant",
        "수술중FAIL_수술중FAIL_오스템",
        "수수술중교환술중교환",
        "보험임보험임플란트플란트",
        "수술중 FAIL_Dentium",
        "Φ4.0 x 10 (L)",
        "  ",
    ],
)
def test_normalize_idempotente(texto):
    uma = normalize(texto)
    assert normalize(uma) == uma


def test_normalize_inventory_mantem_marcadores():
    assert normalize_inventory("수술중교환_OSSTEM") == "수술중교환osstem"
    assert normalize_inventory("OSSTEM") == "osstem"
    assert normalize_inventory("Φ4.0") == "φ4.0"


def test_prefixos_de_categoria():
    assert is_exchange_prefix("수술중FAIL_OSSTEM")
    assert is_exchange_prefix("수술중교환_OSSTEM")
    assert not is_exchange_prefix("OSSTEM")
    assert is_category_item("보험청구")
    assert is_category_item("수술중교환_Dentium")
    assert not is_category_item("Dentium")


def test_manufacturer_alias_key():
    assert manufacturer_alias_key("IBS Implant") == manufacturer_alias_key("ibs")
    assert manufacturer_alias_key("수술중교환_IBS").startswith("fail:")
    assert manufacturer_alias_key("  ") == ""


def test_manufacturer_matches_substring_nos_dois_sentidos():
    assert manufacturer_matches("osstem", "osstemts")
    assert manufacturer_matches("osstemts", "osstem")
    assert manufacturer_matches("osstem", "osstem")
    assert not manufacturer_matches("osstem", "dentium")


def test_manufacturer_matches_falso_positivo_conhecido():
    # nomes contidos em outros e chave vazia também casam
    assert manufacturer_matches("dio", "dionavi")
    assert manufacturer_matches("", "osstem")


@pytest.mark.parametrize("marca", ["Magicore", "Magic FC Mini", "Magic FC"])
def test_fix_swapped_brand(marca):
    assert fix_swapped_brand(marca, "IBS Implant") == ("IBS Implant", marca)


def test_fix_swapped_brand_sem_troca():
    assert fix_swapped_brand("IBS Implant", "Magicore") == ("IBS Implant", "Magicore")
    assert fix_swapped_brand("OSSTEM", "IBS Implant") == ("OSSTEM", "IBS Implant")


def test_inventory_duplicate_key_grafias_diferentes():
    a = inventory_duplicate_key("OSSTEM", "TS III", "Φ4.0×10")
    b = inventory_duplicate_key("Osstem Implant", "TS-III", "D:4.0 L:10")
    assert a == b == "osstem|tsiii|d4_l10"
    assert inventory_duplicate_key("OSSTEM", "TS III", "D:4.0 L:11.5") != a


def test_inventory_duplicate_key_ibs_trocado_e_categoria():
    assert inventory_duplicate_key("Magicore", "IBS Implant", "Φ4.0x10") == \
        inventory_duplicate_key("IBS Implant", "Magicore", "Φ4.0x10")
    assert inventory_duplicate_key("수술중FAIL_OSSTEM", "TS III", "D:4.0 L:10").startswith("fail:")
