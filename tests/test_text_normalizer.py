"""Tests for text normalization helpers."""

import pytest

from order_extractor.utils.text_normalizer import (
    normalize_date,
    parse_float,
    parse_int,
    to_half_width,
)


def test_to_half_width():
    assert to_half_width("ＡＢＣ１２３") == "ABC123"


@pytest.mark.parametrize("value,expected", [
    ("12.5", 12.5),
    ("12.5kg", 12.5),
    ("１２．５", 12.5),
    ("1,200", 1200.0),
    (7, 7.0),
    ("", 0.0),
    ("abc", 0.0),
    (None, 0.0),
    (True, 0.0),
])
def test_parse_float(value, expected):
    assert parse_float(value) == expected


def test_parse_int_truncates():
    assert parse_int("3.9") == 3
    assert parse_int("１,２００個") == 1200
    assert parse_int("none") == 0
    assert parse_int(float("nan")) == 0
    assert parse_int(float("inf")) == 0


@pytest.mark.parametrize("value,expected", [
    ("2024年3月5日", "2024-03-05"),
    ("２０２４年１２月２５日", "2024-12-25"),
    ("2024/03/05", "2024-03-05"),
    ("2024-3-5", "2024-03-05"),
    ("03/05/2024", "2024-03-05"),
    ("来月末", "来月末"),
    ("", ""),
])
def test_normalize_date(value, expected):
    assert normalize_date(value) == expected
