from werkzeug.datastructures import MultiDict

from payments.validation import (
    BULK_SET_PUBLISHED_DATE_RULES,
    DELETE_BY_PUBLISHED_DATE_RULES,
    DELETE_BY_YEAR_RULES,
    LISTING_RULES,
    PAYMENT_RULES,
    SUMMARY_RULES,
    validate,
)

VALID_PAYMENT = {
    "payeeName": "Farmer Giles",
    "partPostcode": "SW1A",
    "amount": "1500.50",
    "financialYear": "23/24",
}


def test_valid_payment_coerces_values():
    result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "paymentDateDay": "5", "town": "  Leeds "})
    assert result.ok
    assert result.values["amount"] == 1500.5
    assert result.values["paymentDateDay"] == 5
    assert result.values["town"] == "Leeds"


def test_missing_payee_name_is_keyed_to_field():
    data = dict(VALID_PAYMENT)
    del data["payeeName"]
    result = validate(PAYMENT_RULES, data)
    assert not result.ok
    assert set(result.errors) == {"payeeName"}
    assert "required" in result.errors["payeeName"]


def test_collects_all_errors():
    result = validate(
        PAYMENT_RULES,
        {"payeeName": "x" * 129, "partPostcode": "TOO-LONG-1", "amount": "lots", "paymentDateMonth": "13"},
    )
    assert set(result.errors) == {"payeeName", "partPostcode", "amount", "financialYear", "paymentDateMonth"}


def test_optional_strings_allow_empty_and_absence():
    result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "town": ""})
    assert result.ok
    assert result.values["town"] == ""
    assert "scheme" not in result.values


def test_optional_date_parts_blank_are_absent():
    result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "paymentDateDay": "", "paymentDateMonth": "", "paymentDateYear": ""})
    assert result.ok
    assert "paymentDateDay" not in result.values


def test_date_parts_range_checked_independently():
    result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "paymentDateDay": "31", "paymentDateMonth": "2", "paymentDateYear": "2024"})
    assert result.ok
    bad = validate(PAYMENT_RULES, {**VALID_PAYMENT, "paymentDateDay": "0", "paymentDateYear": "1899"})
    assert set(bad.errors) == {"paymentDateDay", "paymentDateYear"}


def test_integer_rejects_fractions():
    result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "paymentDateDay": "1.5"})
    assert "must be an integer" in result.errors["paymentDateDay"]


def test_delete_by_year_requires_confirmation():
    assert not validate(DELETE_BY_YEAR_RULES, {"financialYear": "23/24"}).ok
    assert "confirm" in validate(DELETE_BY_YEAR_RULES, {"financialYear": "23/24", "confirm": "no"}).errors
    assert validate(DELETE_BY_YEAR_RULES, {"financialYear": "23/24", "confirm": "yes"}).ok


def test_published_date_year_windows():
    data = {"publishedDateDay": "1", "publishedDateMonth": "1", "publishedDateYear": "1999", "confirm": "yes"}
    assert "publishedDateYear" in validate(DELETE_BY_PUBLISHED_DATE_RULES, data).errors
    bulk = validate(BULK_SET_PUBLISHED_DATE_RULES, {**data, "financialYear": "99/00"})
    assert bulk.ok


def test_unknown_keys_ignored_and_submission_echoed():
    form = MultiDict({"financialYear": "23/24", "scheme": "", "totalAmount": "x", "crumb": "abc", "extra": "1"})
    result = validate(SUMMARY_RULES, form)
    assert set(result.errors) == {"scheme", "totalAmount"}
    assert "extra" not in result.values
    failure = result.failure()
    assert failure.values == {"financialYear": "23/24", "scheme": "", "totalAmount": "x", "extra": "1"}
    assert {"text": result.errors["scheme"], "href": "#scheme"} in failure.error_list


def test_huge_exponent_integer_is_rejected_without_expanding():
    result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "paymentDateDay": "1e50000000"})
    assert result.errors == {"paymentDateDay": '"paymentDateDay" must be a safe number'}
    assert "page" in validate(LISTING_RULES, {"page": "1e50000000"}).errors


def test_integer_written_with_exponent_in_range_is_accepted():
    assert validate(LISTING_RULES, {"page": "2e0"}).values["page"] == 2


def test_non_finite_amounts_are_rejected():
    for amount in ("1e400", "-1e400", "Infinity", "NaN"):
        result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "amount": amount})
        assert "amount" in result.errors, amount
    assert "totalAmount" in validate(SUMMARY_RULES, {"financialYear": "23/24", "scheme": "SFI", "totalAmount": "1e400"}).errors


def test_max_length_boundary():
    assert validate(PAYMENT_RULES, {**VALID_PAYMENT, "payeeName": "x" * 128}).ok
    result = validate(PAYMENT_RULES, {**VALID_PAYMENT, "payeeName": "x" * 129})
    assert result.errors == {"payeeName": '"payeeName" length must be less than or equal to 128 characters long'}
