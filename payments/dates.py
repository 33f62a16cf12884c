"""
Date component helpers.

Forms collect dates as three separate day/month/year inputs while the backend
works with ISO `YYYY-MM-DD` strings. Every date crossing that boundary goes
through `combine_date` or `split_date`.
"""

from __future__ import annotations

from typing import Any


def combine_date(day: Any, month: Any, year: Any) -> str | None:
    """
    Build `YYYY-MM-DD` from components.

    Returns None unless all three parts are present and truthy (0 counts as
    missing). Calendar validity is not checked: 31/2/2024 gives "2024-02-31".
    """

    if not day or not month or not year:
        return None
    return f"{year}-{int(month):02d}-{int(day):02d}"


def split_date(value: Any) -> dict[str, int]:
    """
    Split an ISO date (time part allowed) into integer day/month/year.

    Anything that is not three dash-separated integers gives {}.
    """

    if not value:
        return {}
    date_part = str(value).split("T")[0]
    try:
        year, month, day = (int(part) for part in date_part.split("-"))
    except ValueError:
        return {}
    return {"day": day, "month": month, "year": year}


def date_fields(prefix: str, value: Any) -> dict[str, int]:
    """Name split components for a form, e.g. paymentDateDay/Month/Year."""

    parts = split_date(value)
    return {f"{prefix}{name.capitalize()}": part for name, part in parts.items()}
