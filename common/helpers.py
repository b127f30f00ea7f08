"""
Storefront - Shared Helpers
=============================
Pure utility functions with NO database or module dependencies.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Optional

CENT = Decimal("0.01")


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def safe_int(value: Optional[str]) -> Optional[int]:
    """Safely convert a string to int. Returns None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def to_decimal(value) -> Decimal:
    """Coerce a DB/float/str money value to Decimal without float artifacts."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round a money amount to 2 decimals (banker's rounding, used for every total)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_EVEN)


def format_money(value) -> str:
    """Render a money amount as a fixed 2-decimal string, e.g. '30.00'."""
    return str(round_money(value))


def build_pagination(page: int, limit: int, total: int) -> dict:
    """Pagination block returned alongside every paged listing."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
