import io

from werkzeug.datastructures import FileStorage

from payments import admin_service
from payments.results import BACKEND, NOT_FOUND, VALIDATION

PAYMENT_FORM = {
    "payeeName": "Farmer Giles",
    "partPostcode": "SW1A",
    "town": "London",
    "amount": "1500.50",
    "financialYear": "23/24",
    "paymentDateDay": "5",
    "paymentDateMonth": "1",
    "paymentDateYear": "2024",
    "crumb": "ignored",
}

API_ROW = {
    "id": 3,
    "payee_name": "Farmer Giles",
    "part_postcode": "SW1A",
    "amount": 1500.5,
    "financial_year": "23/24",
    "payment_date": "2024-01-05",
}


def test_fetch_admin_payments_maps_rows(backend_client, backend_session):
    backend_session.add("GET", "admin/payments", 200, {"count": 1, "rows": [API_ROW], "page": 1, "totalPages": 1})
    result = admin_service.fetch_admin_payments(backend_client, page=1, search_string="Giles")
    assert result.ok
    assert result.value["rows"][0]["payeeName"] == "Farmer Giles"
    assert result.value["rows"][0]["town"] == ""
    assert backend_session.calls[0].query == "page=1&limit=20&searchString=Giles"


def test_fetch_admin_payments_empty_body(backend_client, backend_session):
    backend_session.add("GET", "admin/payments", 200, None)
    result = admin_service.fetch_admin_payments(backend_client)
    assert result.ok
    assert result.value == {"count": 0, "rows": [], "page": 1, "totalPages": 0}
    assert "searchString" not in backend_session.calls[0].query


def test_fetch_admin_payments_backend_failure(backend_client, backend_session):
    backend_session.add("GET", "admin/payments", 503, None)
    result = admin_service.fetch_admin_payments(backend_client)
    assert not result.ok
    assert result.kind == BACKEND


def test_fetch_payment_by_id_absent(backend_client):
    result = admin_service.fetch_payment_by_id(backend_client, 42)
    assert result.ok
    assert result.value is None


def test_create_payment_sends_api_model(backend_client, backend_session):
    backend_session.add("POST", "admin/payments", 201, API_ROW)
    result = admin_service.create_payment(backend_client, PAYMENT_FORM)
    assert result.ok
    assert result.value["id"] == 3

    payload = backend_session.calls[0].kwargs["json"]
    assert payload["payee_name"] == "Farmer Giles"
    assert payload["amount"] == 1500.5
    assert payload["payment_date"] == "2024-01-05"
    assert payload["scheme"] == ""
    assert "crumb" not in payload
    assert "paymentDateDay" not in payload


def test_create_payment_without_date(backend_client, backend_session):
    backend_session.add("POST", "admin/payments", 200, API_ROW)
    form = {k: v for k, v in PAYMENT_FORM.items() if not k.startswith("paymentDate")}
    assert admin_service.create_payment(backend_client, form).ok
    assert backend_session.calls[0].kwargs["json"]["payment_date"] is None


def test_create_payment_validation_makes_no_call(backend_client, backend_session):
    form = dict(PAYMENT_FORM)
    del form["payeeName"]
    result = admin_service.create_payment(backend_client, form)
    assert not result.ok
    assert result.kind == VALIDATION
    assert "payeeName" in result.detail.errors
    assert result.detail.values["partPostcode"] == "SW1A"
    assert backend_session.calls == []


def test_create_payment_backend_error(backend_client, backend_session):
    backend_session.add("POST", "admin/payments", 500, {"error": "nope"})
    result = admin_service.create_payment(backend_client, PAYMENT_FORM)
    assert result.kind == BACKEND
    assert result.detail == "Failed to add payment. Please try again."


def test_update_payment_requires_200(backend_client, backend_session):
    backend_session.add("PUT", "admin/payments/3", 201, API_ROW)
    result = admin_service.update_payment(backend_client, 3, PAYMENT_FORM)
    assert not result.ok
    assert result.kind == BACKEND


def test_update_payment_not_found(backend_client, backend_session):
    result = admin_service.update_payment(backend_client, 3, PAYMENT_FORM)
    assert result.kind == NOT_FOUND
    assert backend_session.methods() == [("PUT", "admin/payments/3")]


def test_delete_payment_by_id(backend_client, backend_session):
    backend_session.add("DELETE", "admin/payments/3", 200, {"deleted": True})
    assert admin_service.delete_payment_by_id(backend_client, 3).ok


def test_fetch_financial_years(backend_client, backend_session):
    assert admin_service.fetch_financial_years(backend_client).value == []
    backend_session.add("GET", "admin/financial-years", 200, ["23/24", "22/23"])
    assert admin_service.fetch_financial_years(backend_client).value == ["23/24", "22/23"]


def test_delete_by_year_needs_confirmation(backend_client, backend_session):
    result = admin_service.delete_payments_by_year(backend_client, {"financialYear": "23/24"})
    assert result.kind == VALIDATION
    assert "confirm" in result.detail.errors
    assert backend_session.calls == []


def test_delete_by_year_encodes_financial_year(backend_client, backend_session):
    backend_session.add("DELETE", "admin/payments/year/23%2F24", 200, {"paymentCount": 12})
    result = admin_service.delete_payments_by_year(backend_client, {"financialYear": "23/24", "confirm": "yes"})
    assert result.ok
    assert result.value == {"financialYear": "23/24", "result": {"paymentCount": 12}}
    assert backend_session.calls[0].url.endswith("/admin/payments/year/23%2F24")


def test_delete_by_published_date(backend_client, backend_session):
    backend_session.add("DELETE", "admin/payments/published-date/2024-03-05", 200, {"paymentCount": 2})
    form = {"publishedDateDay": "5", "publishedDateMonth": "3", "publishedDateYear": "2024", "confirm": "yes"}
    result = admin_service.delete_payments_by_published_date(backend_client, form)
    assert result.ok
    assert result.value["publishedDate"] == "2024-03-05"


def test_bulk_set_published_date(backend_client, backend_session):
    backend_session.add("PUT", "admin/payments/year/23%2F24/published-date", 200, {"paymentCount": 7})
    form = {"financialYear": "23/24", "publishedDateDay": "1", "publishedDateMonth": "4", "publishedDateYear": "2024"}
    result = admin_service.bulk_set_published_date(backend_client, form)
    assert result.ok
    assert result.value["result"] == {"paymentCount": 7}
    assert backend_session.calls[0].kwargs["json"] == {"published_date": "2024-04-01"}


def test_bulk_set_published_date_validation(backend_client, backend_session):
    result = admin_service.bulk_set_published_date(backend_client, {"financialYear": "23/24"})
    assert result.kind == VALIDATION
    assert set(result.detail.errors) == {"publishedDateDay", "publishedDateMonth", "publishedDateYear"}
    assert backend_session.calls == []


def _upload(content=b"payee_name,amount\nA,1\n", filename="payments.csv"):
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type="text/csv")


def test_upload_requires_file(backend_client, backend_session):
    assert admin_service.upload_payments_csv(backend_client, None).kind == VALIDATION
    assert admin_service.upload_payments_csv(backend_client, _upload(filename="")).kind == VALIDATION
    assert backend_session.calls == []


def test_upload_streams_csv(backend_client, backend_session):
    backend_session.add("POST", "admin/payments/bulk-upload", 201, {"imported": 2})
    result = admin_service.upload_payments_csv(backend_client, _upload())
    assert result.ok
    assert result.value == {"imported": 2}
    assert backend_session.calls[0].kwargs["headers"]["Content-Type"] == "text/csv"


def test_upload_requires_201(backend_client, backend_session):
    backend_session.add("POST", "admin/payments/bulk-upload", 200, {"imported": 2})
    result = admin_service.upload_payments_csv(backend_client, _upload())
    assert result.kind == BACKEND
    assert result.detail.startswith("Upload failed:")


def test_create_payment_rejects_non_finite_amount(backend_client, backend_session):
    result = admin_service.create_payment(backend_client, {**PAYMENT_FORM, "amount": "1e400"})
    assert result.kind == VALIDATION
    assert set(result.detail.errors) == {"amount"}
    assert backend_session.calls == []
