import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from scripts.prices import (
    discount_badge,
    discount_percent,
    format_date_de,
    format_eur,
    format_price,
    parse_price_number,
)


def test_format_eur_uses_german_separators():
    assert format_eur(1234.5) == "1.234,50\u00a0€"
    assert format_eur(999) == "999,00\u00a0€"
    assert format_eur(-5) == "-5,00\u00a0€"


def test_format_price_passes_strings_through_trimmed():
    assert format_price("  ab 499 €  ") == "ab 499 €"
    assert format_price(None) == ""
    assert format_price({"value": 1}) == ""
    assert format_price(True) == ""


@pytest.mark.parametrize("value", [0, 0.99, 12.5, 999, 1234.56, 2499, 1000000.01, -19.9])
def test_parse_inverts_format(value):
    assert parse_price_number(format_price(value)) == pytest.approx(value)


def test_parse_accepts_author_strings():
    assert parse_price_number("2.499 €") == 2499
    assert parse_price_number("1.299,-") == 1299
    assert parse_price_number("EUR 49,90") == pytest.approx(49.9)


def test_parse_returns_nan_for_garbage():
    assert math.isnan(parse_price_number("auf Anfrage"))
    assert math.isnan(parse_price_number(""))
    assert math.isnan(parse_price_number(None))


def test_discount_badge_examples():
    assert discount_badge("1.000 €", "1.500 €") == "-33%"
    assert discount_badge("1.000 €", "1.000 €") == ""
    assert discount_badge("1.000 €", "") == ""
    assert discount_badge("1.500 €", "1.000 €") == ""


def test_discount_needs_both_prices():
    assert discount_percent("auf Anfrage", "1.000 €") is None
    assert discount_percent("999,00 €", "auf Anfrage") is None


def test_discount_rounds_half_up():
    # 12.5 % off
    assert discount_badge("87,50 €", "100,00 €") == "-13%"


def test_tiny_discount_rounds_to_no_badge():
    assert discount_badge("999,99 €", "1.000,00 €") == ""


def test_format_date_de():
    assert format_date_de("2026-12-31") == "31.12.2026"
    assert format_date_de("Ende Dezember") == "Ende Dezember"
    assert format_date_de("") == ""
