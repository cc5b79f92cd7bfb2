"""Core data classes and references for hydraulic-design."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .results import ValidationIssue


class UnitSystem(Enum):
    """Supported unit systems and the physical constants that go with them."""

    METRIC = ("metric", 9.81, 1.0, 1.004e-6)
    IMPERIAL = ("imperial", 32.2, 1.486, 1.08e-5)

    def __init__(self, flag: str, gravity: float, manning_k: float, kinematic_viscosity: float) -> None:
        self.flag: str = flag
        self.gravity: float = gravity
        self.manning_k: float = manning_k
        self.kinematic_viscosity: float = kinematic_viscosity

    @property
    def friction_constant(self) -> float:
        """Denominator constant of the full-barrel friction loss formula."""
        return 2.22 if self is UnitSystem.IMPERIAL else 1.0

    @property
    def length_label(self) -> str:
        return "m" if self is UnitSystem.METRIC else "ft"

    @property
    def flow_label(self) -> str:
        return "m³/s" if self is UnitSystem.METRIC else "ft³/s"

    @classmethod
    def parse(cls, value: object) -> "UnitSystem":
        """Return the unit system matching a flag such as ``"metric"`` or ``"SI"``."""

        if isinstance(value, UnitSystem):
            return value
        text: str = str(value).strip().lower()
        if text in {"metric", "si"}:
            return cls.METRIC
        if text in {"imperial", "english", "en", "us"}:
            return cls.IMPERIAL
        raise ValueError(f"Unknown unit system '{value}'. Use 'metric' or 'imperial'.")


class ValidationError(ValueError):
    """Exception raised when design parameters fail validation."""

    def __init__(self, errors: Sequence[str], issues: Sequence["ValidationIssue"] | None = None) -> None:
        self.errors: list[str] = list(errors)
        self.issues: list[ValidationIssue] = list(issues or [])
        message: str = "; ".join(self.errors) if self.errors else "Unknown validation error."
        super().__init__(message)

    @classmethod
    def from_issues(cls, issues: Sequence["ValidationIssue"]) -> "ValidationError":
        return cls([f"{issue.field}: {issue.message}" for issue in issues], issues)


class InvalidAreaError(ValidationError):
    """Raised when a candidate size has no usable flow area."""
