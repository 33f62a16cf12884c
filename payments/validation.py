"""
Declarative validation of form submissions.

Each form is described by a table of `FieldRule`s; `validate()` applies the
table to submitted data, collects every error (keyed by field name) and
returns the coerced values ready for mapping.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from .results import ValidationFailure

STRING = "string"
NUMBER = "number"
INTEGER = "integer"

CONFIRM_SENTINEL = "yes"

# largest integer a JSON number (IEEE double) holds exactly
MAX_SAFE_INTEGER = 2**53 - 1


@dataclass(frozen=True)
class FieldRule:
    kind: str = STRING
    required: bool = False
    max_length: int | None = None
    minimum: int | None = None
    maximum: int | None = None
    allowed: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ValidationResult:
    values: dict[str, Any]
    errors: dict[str, str]
    submitted: dict[str, Any]

    @property
    def ok(self) -> bool:
        return not self.errors

    def failure(self) -> ValidationFailure:
        return ValidationFailure(errors=dict(self.errors), values=dict(self.submitted))


def _date_rules(prefix: str, year_min: int, required: bool) -> dict[str, FieldRule]:
    return {
        f"{prefix}Day": FieldRule(INTEGER, required=required, minimum=1, maximum=31),
        f"{prefix}Month": FieldRule(INTEGER, required=required, minimum=1, maximum=12),
        f"{prefix}Year": FieldRule(INTEGER, required=required, minimum=year_min, maximum=2100),
    }


PAYMENT_RULES: dict[str, FieldRule] = {
    "payeeName": FieldRule(STRING, required=True, max_length=128),
    "partPostcode": FieldRule(STRING, required=True, max_length=8),
    "town": FieldRule(STRING, max_length=128),
    "parliamentaryConstituency": FieldRule(STRING, max_length=64),
    "countyCouncil": FieldRule(STRING, max_length=128),
    "scheme": FieldRule(STRING, max_length=64),
    "amount": FieldRule(NUMBER, required=True),
    "financialYear": FieldRule(STRING, required=True, max_length=8),
    "schemeDetail": FieldRule(STRING, max_length=128),
    "activityLevel": FieldRule(STRING, max_length=64),
    **_date_rules("paymentDate", 1900, required=False),
}

SUMMARY_RULES: dict[str, FieldRule] = {
    "financialYear": FieldRule(STRING, required=True, max_length=8),
    "scheme": FieldRule(STRING, required=True, max_length=64),
    "totalAmount": FieldRule(NUMBER, required=True),
}

CONFIRM_RULE = FieldRule(STRING, required=True, allowed=(CONFIRM_SENTINEL,))

DELETE_BY_YEAR_RULES: dict[str, FieldRule] = {
    "financialYear": FieldRule(STRING, required=True, max_length=8),
    "confirm": CONFIRM_RULE,
}

DELETE_BY_PUBLISHED_DATE_RULES: dict[str, FieldRule] = {
    **_date_rules("publishedDate", 2000, required=True),
    "confirm": CONFIRM_RULE,
}

BULK_SET_PUBLISHED_DATE_RULES: dict[str, FieldRule] = {
    "financialYear": FieldRule(STRING, required=True, max_length=8),
    **_date_rules("publishedDate", 1900, required=True),
}

PAYMENT_ID_RULES: dict[str, FieldRule] = {
    "id": FieldRule(INTEGER, required=True, minimum=1),
}

LISTING_RULES: dict[str, FieldRule] = {
    "page": FieldRule(INTEGER, minimum=1),
    "searchString": FieldRule(STRING),
}


def _check(name: str, rule: FieldRule, raw: Any) -> tuple[Any, str | None]:
    """Return (coerced value, error message or None) for a present value."""

    if rule.kind == STRING:
        value = str(raw).strip()
        if rule.max_length is not None and len(value) > rule.max_length:
            return None, f'"{name}" length must be less than or equal to {rule.max_length} characters long'
        if rule.allowed is not None and value not in rule.allowed:
            return None, f'"{name}" must be [{"|".join(rule.allowed)}]'
        return value, None

    if rule.kind == NUMBER:
        try:
            number = Decimal(str(raw).strip())
        except InvalidOperation:
            return None, f'"{name}" must be a number'
        if not number.is_finite():
            return None, f'"{name}" must be a number'
        if abs(number) > MAX_SAFE_INTEGER:
            return None, f'"{name}" must be a safe number'
        value = float(number)
        if not math.isfinite(value):
            return None, f'"{name}" must be a number'
        return value, None

    try:
        number = Decimal(str(raw).strip())
    except InvalidOperation:
        return None, f'"{name}" must be a number'
    if not number.is_finite():
        return None, f'"{name}" must be an integer'
    # bounded before int(), which expands a huge exponent digit by digit
    if abs(number) > MAX_SAFE_INTEGER:
        return None, f'"{name}" must be a safe number'
    if number != number.to_integral_value():
        return None, f'"{name}" must be an integer'
    value = int(number)
    if rule.minimum is not None and value < rule.minimum:
        return None, f'"{name}" must be greater than or equal to {rule.minimum}'
    if rule.maximum is not None and value > rule.maximum:
        return None, f'"{name}" must be less than or equal to {rule.maximum}'
    return value, None


def validate(rules: Mapping[str, FieldRule], data: Mapping[str, Any]) -> ValidationResult:
    """
    Apply a rule table to submitted data.

    - every failing field contributes one message; validation never stops early
    - strings are trimmed; an optional string submitted empty stays ""
    - an optional number submitted empty is treated as absent
    - keys without a rule (e.g. the crumb field) are ignored
    """

    values: dict[str, Any] = {}
    errors: dict[str, str] = {}
    submitted = {k: data.get(k) for k in data if k != "crumb"}

    for name, rule in rules.items():
        raw = data.get(name)
        blank = raw is None or (isinstance(raw, str) and not raw.strip())

        if blank:
            if rule.required:
                errors[name] = f'"{name}" is required'
            elif raw is not None and rule.kind == STRING:
                values[name] = ""
            continue

        value, error = _check(name, rule, raw)
        if error:
            errors[name] = error
        else:
            values[name] = value

    return ValidationResult(values=values, errors=errors, submitted=submitted)
