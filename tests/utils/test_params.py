"""Tests for request parameter parsing."""

import pytest

from polywatch.utils.errors import InvalidInputError
from polywatch.utils.params import parse_int, require


def test_parse_int_uses_default_when_missing() -> None:
    assert parse_int(None, 20) == 20
    assert parse_int("", 20) == 20


def test_parse_int_parses_strings() -> None:
    assert parse_int(" 15 ", 20) == 15
    assert parse_int(7, 20) == 7


def test_parse_int_clamps_into_range() -> None:
    assert parse_int("500", 20, minimum=1, maximum=200) == 200
    assert parse_int("0", 20, minimum=1, maximum=200) == 1
    assert parse_int("-3", 0, minimum=0) == 0


@pytest.mark.parametrize("value", ["ten", "1.5", True])
def test_parse_int_rejects_non_integers(value) -> None:
    with pytest.raises(InvalidInputError, match="limit must be an integer"):
        parse_int(value, 20, name="limit")


def test_require_strips_value() -> None:
    assert require("  516950 ", "polymarketId") == "516950"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_require_rejects_blank(value) -> None:
    with pytest.raises(InvalidInputError, match="polymarketId is required"):
        require(value, "polymarketId")
