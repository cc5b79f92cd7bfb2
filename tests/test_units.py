"""Unit conversions between the imperial and metric systems."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from hydraulic_design import CulvertMaterial, CulvertShape, CulvertSize, PipeMaterial, PipeSize, UnitSystem
from hydraulic_design.catalog import StandardSizeCatalog, pipe_sizes
from hydraulic_design.models import PipeSizingInputs
from hydraulic_design.pipe import convert_pipe_sizing_units
from hydraulic_design.units import (
    celsius_to_fahrenheit,
    cfs_to_cms,
    cms_to_cfs,
    fahrenheit_to_celsius,
    feet_to_metres,
    gpm_to_litres_per_second,
    kpa_to_psi,
    litres_per_second_to_gpm,
    metres_to_feet,
    psi_to_kpa,
)

from .sample_data import build_pipe_inputs

Conversion = Callable[[float], float]


@pytest.mark.parametrize(
    ("forward", "backward"),
    [
        (feet_to_metres, metres_to_feet),
        (cfs_to_cms, cms_to_cfs),
        (gpm_to_litres_per_second, litres_per_second_to_gpm),
        (psi_to_kpa, kpa_to_psi),
        (fahrenheit_to_celsius, celsius_to_fahrenheit),
    ],
)
def test_scalar_conversions_round_trip(forward: Conversion, backward: Conversion) -> None:
    for value in (0.0, 1.0, 123.456):
        assert backward(forward(value)) == pytest.approx(value, abs=1e-6)


def test_reference_values() -> None:
    assert feet_to_metres(1.0) == 0.3048
    assert fahrenheit_to_celsius(68.0) == pytest.approx(20.0)
    assert cfs_to_cms(35.3147) == pytest.approx(1.0, rel=1e-5)


def test_unit_system_parsing() -> None:
    assert UnitSystem.parse("SI") is UnitSystem.METRIC
    assert UnitSystem.parse(" English ") is UnitSystem.IMPERIAL
    assert UnitSystem.parse(UnitSystem.METRIC) is UnitSystem.METRIC
    with pytest.raises(ValueError, match="Unknown unit system"):
        UnitSystem.parse("furlongs")
    assert UnitSystem.METRIC.manning_k == 1.0
    assert UnitSystem.IMPERIAL.manning_k == 1.486


def test_pipe_inputs_round_trip() -> None:
    original: PipeSizingInputs = build_pipe_inputs(
        elevation_change=12.0, min_velocity=2.5, operating_pressure=80.0, temperature=68.0
    )
    metric: PipeSizingInputs = convert_pipe_sizing_units(original, UnitSystem.METRIC)
    assert metric.units is UnitSystem.METRIC
    assert metric.pipe_length == pytest.approx(304.8)
    assert metric.temperature == pytest.approx(20.0)
    assert metric.max_velocity is None

    back: PipeSizingInputs = convert_pipe_sizing_units(metric, UnitSystem.IMPERIAL)
    for name in ("design_flow", "pipe_length", "elevation_change", "min_velocity", "operating_pressure", "temperature"):
        assert getattr(back, name) == pytest.approx(getattr(original, name), abs=1e-6)
    assert convert_pipe_sizing_units(original, UnitSystem.IMPERIAL) is original


def test_pipe_size_round_trip() -> None:
    size: PipeSize = pipe_sizes(PipeMaterial.PVC)[0]
    metric: PipeSize = size.to_units(UnitSystem.METRIC)
    assert metric.nominal_diameter == pytest.approx(101.6)
    assert metric.describe().startswith("101.6 mm pvc")
    back: PipeSize = metric.to_units(UnitSystem.IMPERIAL)
    assert back.area == pytest.approx(size.area, abs=1e-9)
    assert back.internal_diameter == pytest.approx(size.internal_diameter, abs=1e-9)


def test_metric_culvert_catalog() -> None:
    catalog = StandardSizeCatalog()
    imperial: list[CulvertSize] = catalog.get_available_sizes(CulvertMaterial.CONCRETE, CulvertShape.CIRCULAR)
    metric: list[CulvertSize] = catalog.get_available_sizes(
        CulvertMaterial.CONCRETE, CulvertShape.CIRCULAR, UnitSystem.METRIC
    )
    assert len(metric) == len(imperial)
    assert metric[0].diameter == pytest.approx(0.3048)
    assert metric[0].area == pytest.approx(imperial[0].area * 0.3048**2)
    assert catalog.get_available_sizes(CulvertMaterial.HDPE, CulvertShape.BOX) == []
