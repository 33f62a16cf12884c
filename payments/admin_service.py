"""
Payment operations against the backend admin API.

Every function takes the `BackendClient` first and returns `Ok` or `Failure`;
backend errors never escape this module. Mutating operations validate their
form input before any backend call is made.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import quote

from backend.client import BackendClient, BackendError

from .dates import combine_date
from .mappers import payment_to_api_model, payment_to_view_model, payments_to_view_model
from .results import BACKEND, NOT_FOUND, VALIDATION, Failure, Ok, ValidationFailure
from .validation import (
    BULK_SET_PUBLISHED_DATE_RULES,
    DELETE_BY_PUBLISHED_DATE_RULES,
    DELETE_BY_YEAR_RULES,
    PAYMENT_RULES,
    validate,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 20
EMPTY_PAGE = {"count": 0, "rows": [], "page": 1, "totalPages": 0}

PAYMENT_DATE_PARTS = ("paymentDateDay", "paymentDateMonth", "paymentDateYear")
PUBLISHED_DATE_PARTS = ("publishedDateDay", "publishedDateMonth", "publishedDateYear")


def _backend_failure(exc: BackendError, message: str) -> Failure:
    if exc.status_code == 404:
        return Failure(NOT_FOUND, message)
    return Failure(BACKEND, message)


def _year_route(financial_year: str) -> str:
    # "23/24" must stay a single path segment
    return f"admin/payments/year/{quote(financial_year, safe='')}"


def build_payment_view(values: Mapping[str, Any]) -> dict[str, Any]:
    """Fold validated form values into a payment view model."""

    view = {k: v for k, v in values.items() if k not in PAYMENT_DATE_PARTS}
    view["paymentDate"] = combine_date(*(values.get(part) for part in PAYMENT_DATE_PARTS))
    return view


def fetch_admin_payments(
    client: BackendClient, page: int = 1, limit: int = PAGE_SIZE, search_string: str = ""
) -> Ok | Failure:
    route = client.url_with_params(
        "admin/payments",
        {"page": page, "limit": limit, "searchString": search_string or None},
    )
    try:
        body = client.get_json(route)
    except BackendError:
        return Failure(BACKEND, "Payments could not be loaded. Please try again.")
    if not body:
        return Ok(dict(EMPTY_PAGE))
    return Ok(payments_to_view_model(body))


def fetch_payment_by_id(client: BackendClient, payment_id: int) -> Ok | Failure:
    try:
        body = client.get_json(f"admin/payments/{payment_id}")
    except BackendError:
        return Failure(BACKEND, "The payment could not be loaded. Please try again.")
    return Ok(payment_to_view_model(body))


def create_payment(client: BackendClient, form: Mapping[str, Any]) -> Ok | Failure:
    result = validate(PAYMENT_RULES, form)
    if not result.ok:
        return Failure(VALIDATION, result.failure())

    payload = payment_to_api_model(build_payment_view(result.values))
    try:
        body = client.send_json("POST", "admin/payments", payload, expected=(200, 201))
    except BackendError as exc:
        return _backend_failure(exc, "Failed to add payment. Please try again.")
    if not body:
        return Failure(BACKEND, "Failed to add payment. Please try again.")

    created = payment_to_view_model(body)
    logger.info("Created payment %s", created.get("id") if created else None)
    return Ok(created)


def update_payment(client: BackendClient, payment_id: int, form: Mapping[str, Any]) -> Ok | Failure:
    result = validate(PAYMENT_RULES, form)
    if not result.ok:
        return Failure(VALIDATION, result.failure())

    payload = payment_to_api_model(build_payment_view(result.values))
    try:
        body = client.send_json("PUT", f"admin/payments/{payment_id}", payload, expected=(200,))
    except BackendError as exc:
        return _backend_failure(exc, "Failed to update payment. Please try again.")

    logger.info("Updated payment %s", payment_id)
    return Ok(payment_to_view_model(body))


def delete_payment_by_id(client: BackendClient, payment_id: int) -> Ok | Failure:
    try:
        body = client.delete(f"admin/payments/{payment_id}", expected=(200,))
    except BackendError as exc:
        return _backend_failure(exc, "Failed to delete payment. Please try again.")

    logger.info("Deleted payment %s", payment_id)
    return Ok(body)


def fetch_financial_years(client: BackendClient) -> Ok | Failure:
    try:
        body = client.get_json("admin/financial-years")
    except BackendError:
        return Failure(BACKEND, "Financial years could not be loaded.")
    return Ok(list(body or []))


def delete_payments_by_year(client: BackendClient, form: Mapping[str, Any]) -> Ok | Failure:
    result = validate(DELETE_BY_YEAR_RULES, form)
    if not result.ok:
        return Failure(VALIDATION, result.failure())

    financial_year = result.values["financialYear"]
    try:
        body = client.delete(_year_route(financial_year), expected=(200,))
    except BackendError as exc:
        return _backend_failure(exc, "Failed to delete payments. Please try again.")

    logger.info("Deleted payments for financial year %s", financial_year)
    return Ok({"financialYear": financial_year, "result": body or {}})


def delete_payments_by_published_date(client: BackendClient, form: Mapping[str, Any]) -> Ok | Failure:
    result = validate(DELETE_BY_PUBLISHED_DATE_RULES, form)
    if not result.ok:
        return Failure(VALIDATION, result.failure())

    published_date = combine_date(*(result.values[part] for part in PUBLISHED_DATE_PARTS))
    try:
        body = client.delete(f"admin/payments/published-date/{published_date}", expected=(200,))
    except BackendError as exc:
        return _backend_failure(exc, "Failed to delete payments. Please try again.")

    logger.info("Deleted payments published on %s", published_date)
    return Ok({"publishedDate": published_date, "result": body or {}})


def bulk_set_published_date(client: BackendClient, form: Mapping[str, Any]) -> Ok | Failure:
    result = validate(BULK_SET_PUBLISHED_DATE_RULES, form)
    if not result.ok:
        return Failure(VALIDATION, result.failure())

    financial_year = result.values["financialYear"]
    published_date = combine_date(*(result.values[part] for part in PUBLISHED_DATE_PARTS))
    try:
        body = client.send_json(
            "PUT",
            f"{_year_route(financial_year)}/published-date",
            {"published_date": published_date},
            expected=(200,),
        )
    except BackendError as exc:
        return _backend_failure(exc, "Failed to set the published date. Please try again.")

    logger.info("Set published date %s for financial year %s", published_date, financial_year)
    return Ok({"financialYear": financial_year, "publishedDate": published_date, "result": body or {}})


def upload_payments_csv(client: BackendClient, upload: Any) -> Ok | Failure:
    """Stream an uploaded CSV (a werkzeug `FileStorage`) to the backend."""

    if upload is None or not getattr(upload, "filename", ""):
        return Failure(
            VALIDATION,
            ValidationFailure(errors={"file": "Please select a CSV file to upload"}, values={}),
        )

    try:
        body = client.post_stream("admin/payments/bulk-upload", upload.stream, "text/csv", expected=(201,))
    except BackendError as exc:
        return Failure(BACKEND, f"Upload failed: {exc}")

    result = body or {}
    logger.info("Bulk upload imported %s payments", result.get("imported"))
    return Ok(result)
