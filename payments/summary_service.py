"""Payment summary operations against the backend admin API."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from backend.client import BackendClient, BackendError

from .mappers import summaries_to_view_model, summary_to_api_model, summary_to_view_model
from .results import BACKEND, NOT_FOUND, VALIDATION, Failure, Ok
from .validation import SUMMARY_RULES, validate

logger = logging.getLogger(__name__)


def fetch_payment_summaries(client: BackendClient) -> Ok | Failure:
    try:
        body = client.get_json("admin/summary")
    except BackendError:
        return Failure(BACKEND, "Payment summaries could not be loaded. Please try again.")
    return Ok(summaries_to_view_model(body))


def fetch_payment_summary_by_id(client: BackendClient, summary_id: int) -> Ok | Failure:
    try:
        body = client.get_json(f"admin/summary/{summary_id}")
    except BackendError:
        return Failure(BACKEND, "The payment summary could not be loaded. Please try again.")
    return Ok(summary_to_view_model(body))


def create_payment_summary(client: BackendClient, form: Mapping[str, Any]) -> Ok | Failure:
    result = validate(SUMMARY_RULES, form)
    if not result.ok:
        return Failure(VALIDATION, result.failure())

    try:
        body = client.send_json("POST", "admin/summary", summary_to_api_model(result.values), expected=(200, 201))
    except BackendError:
        return Failure(BACKEND, "Failed to add payment summary. Please try again.")

    logger.info("Created payment summary for %s / %s", result.values["financialYear"], result.values["scheme"])
    return Ok(summary_to_view_model(body))


def update_payment_summary(client: BackendClient, summary_id: int, form: Mapping[str, Any]) -> Ok | Failure:
    result = validate(SUMMARY_RULES, form)
    if not result.ok:
        return Failure(VALIDATION, result.failure())

    try:
        body = client.send_json(
            "PUT", f"admin/summary/{summary_id}", summary_to_api_model(result.values), expected=(200,)
        )
    except BackendError as exc:
        kind = NOT_FOUND if exc.status_code == 404 else BACKEND
        return Failure(kind, "Failed to update payment summary. Please try again.")

    logger.info("Updated payment summary %s", summary_id)
    return Ok(summary_to_view_model(body))


def delete_payment_summary_by_id(client: BackendClient, summary_id: int) -> Ok | Failure:
    try:
        client.delete(f"admin/summary/{summary_id}", expected=(200, 204))
    except BackendError as exc:
        kind = NOT_FOUND if exc.status_code == 404 else BACKEND
        return Failure(kind, "Failed to delete payment summary. Please try again.")

    logger.info("Deleted payment summary %s", summary_id)
    return Ok(True)
