"""Shared base helpers for the design-parameter dataclasses."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping as ABCMapping, Sequence as ABCSequence
from typing import Any, Mapping, Sequence, cast

from loguru import logger

from ..classes_references import ValidationError
from ..results import ValidationIssue, split_issues


class Validatable:
    """
    A mixin class that provides a validation interface for design parameters.

    Classes that inherit from `Validatable` must implement the `validate` method,
    which returns field-tagged issues. Warnings are returned alongside errors so
    that callers can surface them with a successful result.
    """

    def assert_valid(self, prefix: str = "") -> list[ValidationIssue]:
        """
        Raise a `ValidationError` if any error-severity issue is found.

        Returns:
            The warning-severity issues, so callers can attach them to results.
        """
        errors, warnings = split_issues(self.validate(prefix=prefix))
        if errors:
            logger.debug(
                "Validation failed for {model}: {errors}",
                model=self.__class__.__name__,
                errors=[str(issue) for issue in errors],
            )
            raise ValidationError.from_issues(errors)
        logger.debug("Validation succeeded for {model}.", model=self.__class__.__name__)
        return warnings

    def is_valid(self) -> bool:
        errors, _ = split_issues(self.validate())
        return not errors

    @abstractmethod
    def validate(self, prefix: str = "") -> list[ValidationIssue]:
        """
        Return every validation issue, or an empty list if the model is valid.

        Args:
            prefix: A string to prepend to each field name for context.
        """
        pass


def normalize_sequence(value: Any) -> list[Any]:
    """Return a list or fall back to an empty list for non-sequence values."""

    if isinstance(value, ABCSequence) and not isinstance(value, (str, bytes)):
        return list(cast(Sequence[Any], value))
    return []


def normalize_mapping(value: Any) -> Mapping[str, Any]:
    """Return a mapping or an empty dict if the value is not mapping-like."""

    if isinstance(value, ABCMapping):
        return cast(Mapping[str, Any], value)
    return {}


def optional_float(data: Mapping[str, Any], key: str) -> float | None:
    value: Any = data.get(key)
    return float(value) if value is not None else None
