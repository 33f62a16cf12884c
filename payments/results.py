"""Typed results returned by the service layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

VALIDATION = "validation"
BACKEND = "backend"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Ok:
    value: Any = None
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Failure:
    kind: str
    detail: Any = None
    ok: bool = field(default=False, init=False)


@dataclass(frozen=True)
class ValidationFailure:
    """Field errors plus the submission as it was received."""

    errors: dict[str, str]
    values: dict[str, Any]

    @property
    def error_list(self) -> list[dict[str, str]]:
        """Shape used by the error summary component."""
        return [{"text": message, "href": f"#{name}"} for name, message in self.errors.items()]
