"""
Admin routes for payments and payment summaries.

Views only translate between HTTP and the service layer: they pass the
submitted form to a service function and turn the returned `Ok`/`Failure`
into a redirect, a rendered page and a status code.

All routes require the admin role; POST routes additionally need a valid
crumb (see `admin.crumb`).
"""

from __future__ import annotations

from typing import Any, Mapping

from flask import Blueprint, abort, current_app, redirect, render_template, request, url_for

from auth.decorators import admin_required
from backend.client import BackendClient
from payments import admin_service, summary_service
from payments.dates import date_fields
from payments.results import NOT_FOUND, VALIDATION, Failure
from payments.validation import LISTING_RULES, PAYMENT_ID_RULES, validate

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

PAYMENT_SUCCESS_MESSAGES = {
    "added": "Payment successfully added",
    "updated": "Payment successfully updated",
    "deleted": "Payment successfully deleted",
}

SUMMARY_SUCCESS_MESSAGES = {
    "added": "Payment summary successfully added",
    "updated": "Payment summary successfully updated",
    "deleted": "Payment summary successfully deleted",
}


def _client() -> BackendClient:
    client = current_app.config.get("BACKEND_CLIENT")
    if not isinstance(client, BackendClient):
        raise RuntimeError("Backend client not initialized. Set BACKEND_CLIENT during app startup.")
    return client


def _require_id(value: int) -> int:
    if not validate(PAYMENT_ID_RULES, {"id": value}).ok:
        abort(400)
    return value


def _render_failure(template: str, failure: Failure, values: Mapping[str, Any], **context: Any):  # type: ignore[no-untyped-def]
    """Render a failed form: 400 for field errors, 404 when missing, 500 when the backend failed."""

    if failure.kind == VALIDATION:
        detail = failure.detail
        return (
            render_template(
                template,
                error_list=detail.error_list,
                errors=detail.errors,
                values=detail.values,
                **context,
            ),
            400,
        )
    if failure.kind == NOT_FOUND:
        abort(404)
    return (
        render_template(template, error_list=[{"text": failure.detail}], errors={}, values=dict(values), **context),
        500,
    )


def _financial_years() -> list:
    result = admin_service.fetch_financial_years(_client())
    return result.value if result.ok else []


# ---------- PAYMENTS ----------


@admin_bp.get("/payments")
@admin_required
def manage_payments():
    query = validate(LISTING_RULES, request.args)
    if not query.ok:
        abort(400)

    page = query.values.get("page") or 1
    search_string = query.values.get("searchString") or ""

    result = admin_service.fetch_admin_payments(_client(), page, admin_service.PAGE_SIZE, search_string)
    payments = result.value if result.ok else dict(admin_service.EMPTY_PAGE)

    return render_template(
        "admin/manage_payments.html",
        page_title="Manage Payments",
        payments=payments,
        search_string=search_string,
        current_page=page,
        prev_page=page - 1 if page > 1 else None,
        next_page=page + 1 if page < payments["totalPages"] else None,
        success_message=PAYMENT_SUCCESS_MESSAGES.get(request.args.get("success", "")),
        error_message=None if result.ok else result.detail,
    )


@admin_bp.route("/payments/add", methods=["GET", "POST"])
@admin_required
def add_payment():
    context = {"page_title": "Add Payment"}
    if request.method == "GET":
        return render_template("admin/add_payment.html", values={}, errors={}, **context)

    result = admin_service.create_payment(_client(), request.form)
    if result.ok:
        return redirect(url_for("admin.manage_payments", success="added"))
    return _render_failure("admin/add_payment.html", result, request.form.to_dict(), **context)


@admin_bp.route("/payments/<int:payment_id>/edit", methods=["GET", "POST"])
@admin_required
def edit_payment(payment_id: int):
    _require_id(payment_id)
    context = {"page_title": "Edit Payment", "payment_id": payment_id}

    if request.method == "GET":
        result = admin_service.fetch_payment_by_id(_client(), payment_id)
        payment = result.value if result.ok else None
        if not payment:
            abort(404)
        values = {**payment, **date_fields("paymentDate", payment.get("paymentDate"))}
        return render_template("admin/edit_payment.html", values=values, errors={}, **context)

    result = admin_service.update_payment(_client(), payment_id, request.form)
    if result.ok:
        return redirect(url_for("admin.manage_payments", success="updated"))
    return _render_failure("admin/edit_payment.html", result, request.form.to_dict(), **context)


@admin_bp.route("/payments/<int:payment_id>/delete", methods=["GET", "POST"])
@admin_required
def delete_payment(payment_id: int):
    _require_id(payment_id)
    client = _client()

    if request.method == "POST":
        result = admin_service.delete_payment_by_id(client, payment_id)
        if result.ok:
            return redirect(url_for("admin.manage_payments", success="deleted"))
        if result.kind == NOT_FOUND:
            abort(404)
        error_list = [{"text": result.detail}]
        status = 500
    else:
        error_list = []
        status = 200

    fetched = admin_service.fetch_payment_by_id(client, payment_id)
    payment = fetched.value if fetched.ok else None
    if not payment:
        abort(404)
    return (
        render_template("admin/delete_payment.html", page_title="Delete Payment", payment=payment, error_list=error_list),
        status,
    )


@admin_bp.route("/payments/bulk-upload", methods=["GET", "POST"])
@admin_required
def bulk_upload():
    context = {"page_title": "Bulk Upload Payments"}
    if request.method == "GET":
        return render_template("admin/bulk_upload.html", values={}, errors={}, **context)

    result = admin_service.upload_payments_csv(_client(), request.files.get("file"))
    if not result.ok:
        return _render_failure("admin/bulk_upload.html", result, {}, **context)

    return render_template(
        "admin/bulk_upload.html",
        success_message=f"Successfully uploaded {result.value.get('imported', 0)} payments",
        upload_result=result.value,
        values={},
        errors={},
        **context,
    )


@admin_bp.route("/payments/delete-by-year", methods=["GET", "POST"])
@admin_required
def delete_by_year():
    context = {"page_title": "Delete Payments by Financial Year", "years": _financial_years()}
    if request.method == "GET":
        return render_template("admin/delete_by_year.html", values={}, errors={}, **context)

    result = admin_service.delete_payments_by_year(_client(), request.form)
    if not result.ok:
        return _render_failure("admin/delete_by_year.html", result, request.form.to_dict(), **context)

    return render_template(
        "admin/delete_by_year_success.html",
        page_title="Deletion Complete",
        financial_year=result.value["financialYear"],
        result=result.value["result"],
    )


@admin_bp.route("/payments/delete-by-published-date", methods=["GET", "POST"])
@admin_required
def delete_by_published_date():
    context = {"page_title": "Delete Payments by Published Date"}
    if request.method == "GET":
        return render_template("admin/delete_by_published_date.html", values={}, errors={}, **context)

    result = admin_service.delete_payments_by_published_date(_client(), request.form)
    if not result.ok:
        return _render_failure("admin/delete_by_published_date.html", result, request.form.to_dict(), **context)

    return render_template(
        "admin/delete_by_published_date_success.html",
        page_title="Deletion Complete",
        published_date=result.value["publishedDate"],
        result=result.value["result"],
    )


@admin_bp.route("/payments/bulk-set-published-date", methods=["GET", "POST"])
@admin_required
def bulk_set_published_date():
    context = {"page_title": "Bulk Set Published Date", "years": _financial_years()}
    if request.method == "GET":
        return render_template("admin/bulk_set_published_date.html", values={}, errors={}, **context)

    result = admin_service.bulk_set_published_date(_client(), request.form)
    if not result.ok:
        return _render_failure("admin/bulk_set_published_date.html", result, request.form.to_dict(), **context)

    return render_template(
        "admin/bulk_set_published_date_success.html",
        page_title="Published Date Updated",
        financial_year=result.value["financialYear"],
        published_date=result.value["publishedDate"],
        result=result.value["result"],
    )


# ---------- SUMMARIES ----------


@admin_bp.get("/summary")
@admin_required
def manage_summaries():
    result = summary_service.fetch_payment_summaries(_client())
    return render_template(
        "admin/manage_summaries.html",
        page_title="Manage payment summaries",
        summaries=result.value if result.ok else [],
        success_message=SUMMARY_SUCCESS_MESSAGES.get(request.args.get("success", "")),
        error_message=None if result.ok else result.detail,
    )


@admin_bp.route("/summary/add", methods=["GET", "POST"])
@admin_required
def add_summary():
    context = {"page_title": "Add payment summary"}
    if request.method == "GET":
        return render_template("admin/add_summary.html", values={}, errors={}, **context)

    result = summary_service.create_payment_summary(_client(), request.form)
    if result.ok:
        return redirect(url_for("admin.manage_summaries", success="added"))
    return _render_failure("admin/add_summary.html", result, request.form.to_dict(), **context)


@admin_bp.route("/summary/edit/<int:summary_id>", methods=["GET", "POST"])
@admin_required
def edit_summary(summary_id: int):
    _require_id(summary_id)
    context = {"page_title": "Edit payment summary", "summary_id": summary_id}

    if request.method == "GET":
        result = summary_service.fetch_payment_summary_by_id(_client(), summary_id)
        summary = result.value if result.ok else None
        if not summary:
            abort(404)
        return render_template("admin/edit_summary.html", values=summary, errors={}, **context)

    result = summary_service.update_payment_summary(_client(), summary_id, request.form)
    if result.ok:
        return redirect(url_for("admin.manage_summaries", success="updated"))
    return _render_failure("admin/edit_summary.html", result, request.form.to_dict(), **context)


@admin_bp.route("/summary/delete/<int:summary_id>", methods=["GET", "POST"])
@admin_required
def delete_summary(summary_id: int):
    _require_id(summary_id)
    client = _client()

    if request.method == "POST":
        result = summary_service.delete_payment_summary_by_id(client, summary_id)
        if result.ok:
            return redirect(url_for("admin.manage_summaries", success="deleted"))
        if result.kind == NOT_FOUND:
            abort(404)
        error_list = [{"text": result.detail}]
        status = 500
    else:
        error_list = []
        status = 200

    fetched = summary_service.fetch_payment_summary_by_id(client, summary_id)
    summary = fetched.value if fetched.ok else None
    if not summary:
        abort(404)
    return (
        render_template(
            "admin/delete_summary.html", page_title="Delete payment summary", summary=summary, error_list=error_list
        ),
        status,
    )
