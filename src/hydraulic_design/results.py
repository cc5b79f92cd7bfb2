"""Result containers returned by the public calculation entry points."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, TypedDict, TypeVar

from .classes_references import ValidationError
from .type_helpers import Severity

T = TypeVar("T")


class IssueDict(TypedDict):
    """Serialized form of a `ValidationIssue`."""

    field: str
    message: str
    severity: str


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """Single field-tagged validation message."""

    field: str
    message: str
    severity: Severity = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> IssueDict:
        return {"field": self.field, "message": self.message, "severity": self.severity.value}

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


def error(field_name: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field_name, message=message, severity=Severity.ERROR)


def warning(field_name: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field_name, message=message, severity=Severity.WARNING)


def split_issues(issues: list[ValidationIssue]) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    """Partition issues into (errors, warnings)."""

    errors: list[ValidationIssue] = [issue for issue in issues if issue.is_error]
    warnings: list[ValidationIssue] = [issue for issue in issues if not issue.is_error]
    return errors, warnings


def _issue_list() -> list[ValidationIssue]:
    return []


def _string_list() -> list[str]:
    return []


@dataclass(slots=True)
class CalculationResult(Generic[T]):
    """Success or failure of a calculation request.

    Attributes:
        success: ``True`` when `data` holds a computed payload.
        data: The payload, or ``None`` when the calculation could not proceed.
        errors: Field-tagged errors explaining why the calculation failed.
        warnings: Engineering concerns attached to an otherwise usable result.
    """

    success: bool
    data: T | None = None
    errors: list[ValidationIssue] = field(default_factory=_issue_list)
    warnings: list[str] = field(default_factory=_string_list)

    @classmethod
    def ok(cls, data: T, warnings: list[str] | None = None) -> "CalculationResult[T]":
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def failure(
        cls, errors: list[ValidationIssue], warnings: list[str] | None = None
    ) -> "CalculationResult[T]":
        return cls(success=False, data=None, errors=list(errors), warnings=list(warnings or []))

    def unwrap(self) -> T:
        """Return the payload or raise `ValidationError` with the collected errors."""

        if not self.success or self.data is None:
            raise ValidationError.from_issues(self.errors)
        return self.data

    def error_messages(self) -> list[str]:
        return [str(issue) for issue in self.errors]


def format_float(value: float, places: int = 3) -> str:
    """Format a float for tabular output, rendering non-finite values as '-'."""

    if math.isnan(value) or math.isinf(value):
        return "-"
    return f"{value:.{places}f}"


__all__: list[str] = [
    "CalculationResult",
    "IssueDict",
    "ValidationIssue",
    "error",
    "format_float",
    "split_issues",
    "warning",
]
