"""Manning's n reference values and roughness checks."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from hydraulic_design import ChannelInputs, design_from_mapping
from hydraulic_design.manning import (
    MANNING_COEFFICIENTS,
    ManningCoefficient,
    find_manning_coefficient,
    validate_manning_n,
)
from hydraulic_design.results import ValidationIssue
from hydraulic_design.type_helpers import LiningType, Severity

from .sample_data import CHANNEL_MAPPING, build_channel_inputs


def test_reference_table_is_consistent() -> None:
    assert len(MANNING_COEFFICIENTS) == 12
    for coefficient in MANNING_COEFFICIENTS:
        assert coefficient.minimum <= coefficient.n <= coefficient.maximum
    hard: list[ManningCoefficient] = [c for c in MANNING_COEFFICIENTS if c.lining is LiningType.HARD]
    assert len(hard) == 6


def test_lookup_ignores_case_and_padding() -> None:
    concrete: ManningCoefficient | None = find_manning_coefficient("  concrete ")
    assert concrete is not None
    assert concrete.n == 0.013
    assert find_manning_coefficient("velvet") is None


@pytest.mark.parametrize(
    ("n", "valid", "note"),
    [
        (0.0, False, "greater than 0"),
        (0.005, False, "unusually low"),
        (0.3, False, "unusually high"),
        (0.15, True, "dense vegetation"),
        (0.03, True, None),
    ],
)
def test_validate_manning_n(n: float, valid: bool, note: str | None) -> None:
    is_valid, message = validate_manning_n(n)
    assert is_valid is valid
    if note is None:
        assert message is None
    else:
        assert message is not None and note in message


def test_rough_channel_gets_a_warning() -> None:
    issues: list[ValidationIssue] = build_channel_inputs(manning_n=0.15).validate()
    assert [(issue.field, issue.severity) for issue in issues] == [("manning_n", Severity.WARNING)]


def test_lining_material_resolves_roughness() -> None:
    mapping: dict[str, Any] = copy.deepcopy(CHANNEL_MAPPING)
    del mapping["parameters"]["manning_n"]
    mapping["parameters"]["lining_material"] = "Grass, Short"
    inputs = design_from_mapping(mapping).parameters
    assert isinstance(inputs, ChannelInputs)
    assert inputs.manning_n == 0.030

    mapping["parameters"]["lining_material"] = "velvet"
    with pytest.raises(ValueError, match="Unknown lining material 'velvet'"):
        design_from_mapping(mapping)
