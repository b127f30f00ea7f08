"""Pure helpers and the conflict classifier."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from common.helpers import build_pagination, format_money, round_money, safe_int
from common.security import create_token, decode_token, extract_bearer
from common.exceptions import ValidationError
from config.database import is_retryable_conflict


@pytest.mark.parametrize("raw,expected", [
    ("0.125", "0.12"),
    ("0.135", "0.14"),
    ("2.675", "2.68"),
    (10, "10.00"),
    (Decimal("19.999"), "20.00"),
])
def test_round_money_is_half_even(raw, expected):
    assert round_money(raw) == Decimal(expected)


def test_format_money():
    assert format_money("30") == "30.00"
    assert format_money(None) == "0.00"


@pytest.mark.parametrize("total,pages", [(0, 0), (1, 1), (10, 1), (11, 2)])
def test_build_pagination(total, pages):
    assert build_pagination(1, 10, total) == {"page": 1, "limit": 10, "total": total, "pages": pages}


def test_safe_int():
    assert safe_int(" 42 ") == 42
    assert safe_int("x") is None
    assert safe_int(None) is None


class TestTokens:

    def test_round_trip(self):
        payload = decode_token(create_token({"sub": "7"}))
        assert payload["sub"] == "7"

    def test_expired(self):
        assert decode_token(create_token({"sub": "7"}, expires_minutes=-1)) is None

    @pytest.mark.parametrize("header,expected", [
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Basic abc", None),
        ("Bearer ", None),
        (None, None),
    ])
    def test_extract_bearer(self, header, expected):
        assert extract_bearer(header) == expected


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__("pg")
        self.pgcode = pgcode


@pytest.mark.parametrize("orig,expected", [
    (_PgError("40001"), True),
    (_PgError("40P01"), True),
    (_PgError("23505"), False),
    (Exception("database is locked"), True),
    (Exception("no such table: products"), False),
])
def test_is_retryable_conflict(orig, expected):
    assert is_retryable_conflict(OperationalError("SELECT 1", {}, orig)) is expected


def test_validation_error_maps_to_422():
    err = ValidationError("bad")
    assert err.status_code == 422
    assert err.to_dict()["code"] == "VALIDATION_FAILED"
