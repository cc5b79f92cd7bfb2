"""Uniform-flow channel hydraulics."""

from __future__ import annotations

import math

import pytest

from hydraulic_design import CalculationResult, ChannelHydraulics, FlowState
from hydraulic_design.geometry import CircularSection, TrapezoidalSection, hydraulic_properties
from hydraulic_design.models import ChannelInputs
from hydraulic_design.open_channel import (
    FreeboardPolicy,
    calculate_channel_hydraulics,
    calculate_freeboard,
    classify_flow_state,
    conveyance,
    critical_slope,
    froude_number,
)
from hydraulic_design.classes_references import UnitSystem

from .sample_data import build_channel_inputs


def _solve(inputs: ChannelInputs) -> ChannelHydraulics:
    result: CalculationResult[ChannelHydraulics] = calculate_channel_hydraulics(inputs)
    assert result.success, result.error_messages()
    return result.unwrap()


def test_normal_depth_reproduces_design_flow() -> None:
    inputs: ChannelInputs = build_channel_inputs()
    data: ChannelHydraulics = _solve(inputs)

    assert 0 < data.normal_depth < 10
    carried: float = conveyance(inputs.geometry, data.normal_depth, inputs.manning_n, inputs.units) * math.sqrt(
        inputs.channel_slope
    )
    assert carried == pytest.approx(inputs.flow_rate, abs=1e-4)
    assert data.velocity == pytest.approx(inputs.flow_rate / (5.0 * data.normal_depth))
    assert data.flow_state is FlowState.SUBCRITICAL
    assert data.specific_energy == pytest.approx(data.normal_depth + data.velocity**2 / (2 * 9.81))
    assert data.normal_depth_solve.converged


def test_critical_depth_of_rectangle() -> None:
    inputs: ChannelInputs = build_channel_inputs()
    data: ChannelHydraulics = _solve(inputs)

    unit_flow: float = inputs.flow_rate / 5.0
    assert data.critical_depth == pytest.approx((unit_flow**2 / 9.81) ** (1 / 3), rel=1e-4)

    props = hydraulic_properties(inputs.geometry, data.critical_depth)
    froude: float = froude_number(inputs.flow_rate / props.area, props.hydraulic_depth, inputs.units)
    assert froude == pytest.approx(1.0, abs=1e-3)


def test_subcritical_channel_is_milder_than_critical_slope() -> None:
    inputs: ChannelInputs = build_channel_inputs()
    data: ChannelHydraulics = _solve(inputs)
    assert critical_slope(inputs, data.critical_depth) > inputs.channel_slope
    assert data.critical_slope == pytest.approx(inputs.channel_slope, rel=1e-3)


def test_normal_depth_increases_with_flow() -> None:
    depths: list[float] = [_solve(build_channel_inputs(flow_rate=flow)).normal_depth for flow in (5.0, 10.0, 20.0)]
    assert depths == sorted(depths)
    assert depths[0] < depths[-1]


def test_repeated_calls_give_identical_results() -> None:
    inputs: ChannelInputs = build_channel_inputs()
    assert _solve(inputs) == _solve(inputs)


def test_freeboard_for_reference_flow() -> None:
    data: ChannelHydraulics = _solve(build_channel_inputs())
    assert data.freeboard.lining == pytest.approx(0.3)
    assert data.freeboard.bank == pytest.approx(0.36)
    assert data.freeboard.controlling == pytest.approx(0.36)
    assert data.freeboard.total_depth == pytest.approx(data.normal_depth + 0.36)


def test_freeboard_policy_override() -> None:
    policy = FreeboardPolicy(base_imperial=2.0)
    freeboard = calculate_freeboard(3.0, 350.0, UnitSystem.IMPERIAL, policy)
    assert freeboard.lining == pytest.approx(2.0)
    assert freeboard.controlling == pytest.approx(2.4)


def test_invalid_flow_rate_fails_with_field() -> None:
    result: CalculationResult[ChannelHydraulics] = calculate_channel_hydraulics(build_channel_inputs(flow_rate=0.0))
    assert not result.success
    assert result.data is None
    assert [issue.field for issue in result.errors] == ["flow_rate"]


def test_steep_slope_is_only_a_warning() -> None:
    result: CalculationResult[ChannelHydraulics] = calculate_channel_hydraulics(
        build_channel_inputs(channel_slope=0.2)
    )
    assert result.success
    assert "Channel slope is very steep (> 10%)" in result.warnings
    assert result.unwrap().flow_state is FlowState.SUPERCRITICAL
    assert any(message.startswith("High Froude number") for message in result.warnings)


def test_partially_full_circular_channel() -> None:
    inputs: ChannelInputs = build_channel_inputs(
        flow_rate=0.5, channel_slope=0.01, geometry=CircularSection(diameter=1.0)
    )
    data: ChannelHydraulics = _solve(inputs)
    assert 0 < data.normal_depth < 0.95
    carried: float = conveyance(inputs.geometry, data.normal_depth, inputs.manning_n, inputs.units) * 0.1
    assert carried == pytest.approx(0.5, abs=1e-4)


def test_imperial_trapezoid_uses_imperial_constant() -> None:
    inputs: ChannelInputs = build_channel_inputs(
        flow_rate=350.0,
        channel_slope=0.002,
        manning_n=0.025,
        geometry=TrapezoidalSection(bottom_width=10.0, side_slope=2.0),
        units=UnitSystem.IMPERIAL,
    )
    data: ChannelHydraulics = _solve(inputs)
    props = hydraulic_properties(inputs.geometry, data.normal_depth)
    carried: float = 1.486 / 0.025 * props.area * props.hydraulic_radius ** (2 / 3) * math.sqrt(0.002)
    assert carried == pytest.approx(350.0, abs=1e-3)
    assert data.freeboard.lining == pytest.approx(1.0)


def test_flow_state_bands() -> None:
    assert classify_flow_state(0.5) is FlowState.SUBCRITICAL
    assert classify_flow_state(1.0) is FlowState.CRITICAL
    assert classify_flow_state(1.2) is FlowState.SUPERCRITICAL
