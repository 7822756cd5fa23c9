import os
import sys

import pytest

# Ensure src/ is importable when tests run from repo root
sys.path.insert(0, os.path.abspath("src"))

from shelfscan.extraction.patterns import DEFAULT_PATTERNS, PatternSet


def test_token_matching_both_shapes_is_a_sku():
    token = "112345678901"  # 12 digits: SKU prefix family and UPC length
    assert DEFAULT_PATTERNS.is_sku(token)
    assert not DEFAULT_PATTERNS.is_upc(token)

    scan = DEFAULT_PATTERNS.scan(f"ITEM {token}")
    assert scan.skus == (token,)
    assert scan.upcs == ()


def test_sku_must_be_a_whole_digit_run():
    # 122-prefixed but 14 digits long: too long for a SKU, still a UPC
    scan = DEFAULT_PATTERNS.scan("12234567890123")
    assert scan.skus == ()
    assert scan.upcs == ("12234567890123",)

    # A SKU-looking tail inside a longer number is not a SKU
    scan = DEFAULT_PATTERNS.scan("9912234567890")
    assert scan.skus == ()
    assert scan.upcs == ("9912234567890",)


def test_scan_keeps_line_order_and_ignores_short_numbers():
    scan = DEFAULT_PATTERNS.scan("16 OZ 1234567890123 12234567890 123456789")
    assert scan.identifiers == ("1234567890123", "12234567890", "123456789")
    assert scan.skus == ("12234567890",)
    assert scan.upcs == ("1234567890123",)
    assert scan.others == ("123456789",)


def test_strip_identifiers_keeps_sizes():
    assert DEFAULT_PATTERNS.strip_identifiers("PEANUT BUTTER  16 OZ 12234567890") == "PEANUT BUTTER 16 OZ"


@pytest.mark.parametrize(
    "line",
    [
        "SHELF",
        "shelf",
        "SKU NO",
        "UPC 1234567890123",
        "Location: A12",
        "SHELF/3",
        "Depth: 24",
        "Gondol:",
        "HYPERMARKET",
    ],
)
def test_vocabulary_headers(line):
    assert DEFAULT_PATTERNS.skip_reason(line) == "vocabulary"


@pytest.mark.parametrize("line", ["12", "4.99", "3,50", "AISLE: FOUR", "Bay:"])
def test_shape_skips(line):
    assert DEFAULT_PATTERNS.skip_reason(line) == "shape"


@pytest.mark.parametrize("line", ["CRUNCHY PEANUT BUTTER", "STOREHOUSE COOKIES", "12234567890"])
def test_product_text_is_not_header(line):
    assert DEFAULT_PATTERNS.skip_reason(line) is None


def test_with_skip_words_returns_new_set():
    extended = DEFAULT_PATTERNS.with_skip_words(["aisle"])
    assert extended.is_header("AISLE 4")
    assert not DEFAULT_PATTERNS.is_header("AISLE 4")
    assert extended.is_sku("12234567890")


def test_custom_prefix_family():
    patterns = PatternSet(sku_prefixes=("77",), sku_min_digits=11, sku_max_digits=11)
    assert patterns.is_sku("77123456789")
    assert not patterns.is_sku("12234567890")


def test_invalid_digit_range_rejected():
    with pytest.raises(ValueError):
        PatternSet(upc_min_digits=15, upc_max_digits=12)
