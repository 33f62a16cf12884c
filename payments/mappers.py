"""
Field mapping between backend records and view models.

The backend speaks snake_case, templates and forms use camelCase. Only the
fields listed below survive a mapping; anything else is dropped.
"""

from __future__ import annotations

from typing import Any, Mapping

# (backend name, view name)
PAYMENT_FIELDS: tuple[tuple[str, str], ...] = (
    ("payee_name", "payeeName"),
    ("part_postcode", "partPostcode"),
    ("town", "town"),
    ("parliamentary_constituency", "parliamentaryConstituency"),
    ("county_council", "countyCouncil"),
    ("scheme", "scheme"),
    ("amount", "amount"),
    ("financial_year", "financialYear"),
    ("payment_date", "paymentDate"),
    ("scheme_detail", "schemeDetail"),
    ("activity_level", "activityLevel"),
)

# Optional text columns are always sent and shown as strings, never missing.
OPTIONAL_PAYMENT_TEXT = frozenset(
    {"town", "parliamentary_constituency", "county_council", "scheme", "scheme_detail", "activity_level"}
)

SUMMARY_FIELDS: tuple[tuple[str, str], ...] = (
    ("financial_year", "financialYear"),
    ("scheme", "scheme"),
    ("total_amount", "totalAmount"),
)


def _with_id(source: Mapping[str, Any], target: dict[str, Any]) -> dict[str, Any]:
    if source.get("id") is not None:
        target["id"] = source["id"]
    return target


def payment_to_view_model(payment: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not payment:
        return None

    view: dict[str, Any] = {}
    for api_name, view_name in PAYMENT_FIELDS:
        value = payment.get(api_name)
        if api_name in OPTIONAL_PAYMENT_TEXT:
            value = value or ""
        view[view_name] = value
    return _with_id(payment, view)


def payment_to_api_model(view: Mapping[str, Any]) -> dict[str, Any]:
    api: dict[str, Any] = {}
    for api_name, view_name in PAYMENT_FIELDS:
        value = view.get(view_name)
        if api_name in OPTIONAL_PAYMENT_TEXT:
            value = value or ""
        elif api_name == "payment_date":
            value = value or None
        api[api_name] = value
    return _with_id(view, api)


def payments_to_view_model(envelope: Mapping[str, Any]) -> dict[str, Any]:
    """Map a paginated backend envelope; only `rows` is touched."""
    return {
        "count": envelope.get("count", 0),
        "rows": [payment_to_view_model(row) for row in envelope.get("rows") or []],
        "page": envelope.get("page", 1),
        "totalPages": envelope.get("totalPages", 0),
    }


def summary_to_view_model(summary: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not summary:
        return None
    view = {view_name: summary.get(api_name) for api_name, view_name in SUMMARY_FIELDS}
    return _with_id(summary, view)


def summary_to_api_model(view: Mapping[str, Any]) -> dict[str, Any]:
    api = {api_name: view.get(view_name) for api_name, view_name in SUMMARY_FIELDS}
    return _with_id(view, api)


def summaries_to_view_model(summaries: list[Mapping[str, Any]] | None) -> list[dict[str, Any]]:
    return [summary_to_view_model(s) for s in summaries or []]
