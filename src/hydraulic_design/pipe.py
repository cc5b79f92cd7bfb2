"""Pressurised pipe hydraulics.

Inputs are normalised to imperial units first. The selected head-loss
formulation then runs there and the results are converted back. Hazen-Williams
and Manning rearrange their velocity equations for the friction slope;
Darcy-Weisbach uses the Swamee-Jain friction factor for non-laminar flow.
Minor losses from fittings are added to the friction loss in all three.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from loguru import logger

from .catalog import MaterialProperties, material_properties
from .classes_references import UnitSystem
from .models import PipeFitting, PipeSize, PipeSizingInputs
from .results import CalculationResult, ValidationIssue, split_issues
from .type_helpers import CalculationMethod, FittingType, FlowRegime
from .units import (
    FT_TO_METRES,
    KPA_TO_PSI,
    METRES_TO_FEET,
    PSI_PER_FT_OF_WATER,
    PSI_TO_KPA,
    celsius_to_fahrenheit,
    fahrenheit_to_celsius,
    gpm_to_cfs,
    gpm_to_litres_per_second,
    litres_per_second_to_gpm,
)

GRAVITY_FT = 32.174
KINEMATIC_VISCOSITY_FT = 1.08e-5
LAMINAR_LIMIT = 2000.0
TURBULENT_LIMIT = 4000.0
PRESSURE_RATING_FRACTION = 0.8

FITTING_LOSS_COEFFICIENTS: dict[FittingType, float] = {
    FittingType.ELBOW_90: 0.9,
    FittingType.ELBOW_45: 0.42,
    FittingType.TEE_BRANCH: 1.8,
    FittingType.TEE_THROUGH: 0.6,
    FittingType.GATE_VALVE: 0.19,
    FittingType.GLOBE_VALVE: 10.0,
    FittingType.CHECK_VALVE: 2.5,
    FittingType.REDUCER: 0.5,
    FittingType.ENTRANCE: 0.5,
    FittingType.EXIT: 1.0,
}


@dataclass(frozen=True, slots=True)
class PipeHydraulics:
    """Hydraulic performance of one pipe size.

    ``head_loss`` is the friction gradient per 1000 length units; the loss
    totals are lengths (ft or m) and ``pressure_drop`` is in psi or kPa.
    """

    velocity: float
    head_loss: float
    total_head_loss: float
    pressure_drop: float
    reynolds_number: float
    flow_regime: FlowRegime
    friction_factor: float
    minor_losses: float
    major_losses: float


def classify_flow_regime(reynolds: float) -> FlowRegime:
    if reynolds < LAMINAR_LIMIT:
        return FlowRegime.LAMINAR
    if reynolds > TURBULENT_LIMIT:
        return FlowRegime.TURBULENT
    return FlowRegime.TRANSITIONAL


def fitting_k(fitting: PipeFitting) -> float:
    if fitting.k_value is not None:
        return fitting.k_value
    return FITTING_LOSS_COEFFICIENTS.get(fitting.type, 0.0)


def minor_losses(fittings: tuple[PipeFitting, ...] | list[PipeFitting], velocity: float) -> float:
    """Sum of ``K·V²/2g`` over the fittings (feet of water)."""

    if not fittings:
        return 0.0
    total_k: float = sum(fitting_k(fitting) * fitting.quantity for fitting in fittings)
    return total_k * velocity**2 / (2 * GRAVITY_FT)


def swamee_jain_friction_factor(reynolds: float, roughness: float, diameter: float) -> float:
    """Darcy friction factor; ``64/Re`` in the laminar range."""

    if reynolds < LAMINAR_LIMIT:
        return 64 / reynolds
    term: float = math.log10(roughness / diameter / 3.7 + 5.74 / reynolds**0.9)
    return 0.25 / term**2


@dataclass(frozen=True, slots=True)
class _FlowState:
    velocity: float
    diameter: float
    hydraulic_radius: float
    reynolds: float


def _flow_state(inputs: PipeSizingInputs, pipe: PipeSize) -> _FlowState:
    velocity: float = gpm_to_cfs(inputs.design_flow) / pipe.area
    diameter: float = math.sqrt(4 * pipe.area / math.pi)
    return _FlowState(
        velocity=velocity,
        diameter=diameter,
        hydraulic_radius=diameter / 4,
        reynolds=velocity * diameter / KINEMATIC_VISCOSITY_FT,
    )


def _assemble(
    inputs: PipeSizingInputs, state: _FlowState, slope: float, major: float, friction_factor: float
) -> PipeHydraulics:
    minor: float = minor_losses(inputs.fittings, state.velocity)
    total: float = major + minor + abs(inputs.elevation_change)
    return PipeHydraulics(
        velocity=state.velocity,
        head_loss=slope * 1000,
        total_head_loss=total,
        pressure_drop=total * PSI_PER_FT_OF_WATER,
        reynolds_number=state.reynolds,
        flow_regime=classify_flow_regime(state.reynolds),
        friction_factor=friction_factor,
        minor_losses=minor,
        major_losses=major,
    )


def hazen_williams(inputs: PipeSizingInputs, pipe: PipeSize) -> PipeHydraulics:
    props: MaterialProperties = material_properties(pipe.material)
    c: float = props.hazen_williams_c
    state: _FlowState = _flow_state(inputs, pipe)
    slope: float = (state.velocity / (1.318 * c * state.hydraulic_radius**0.63)) ** (1 / 0.54)
    friction_factor: float = 0.02 * (100 / c) ** 1.85 / state.hydraulic_radius**0.16
    return _assemble(inputs, state, slope, slope * inputs.pipe_length, friction_factor)


def darcy_weisbach(inputs: PipeSizingInputs, pipe: PipeSize) -> PipeHydraulics:
    props: MaterialProperties = material_properties(pipe.material)
    state: _FlowState = _flow_state(inputs, pipe)
    friction_factor: float = swamee_jain_friction_factor(state.reynolds, props.roughness_height, state.diameter)
    major: float = friction_factor * (inputs.pipe_length / state.diameter) * state.velocity**2 / (2 * GRAVITY_FT)
    return _assemble(inputs, state, major / inputs.pipe_length, major, friction_factor)


def manning(inputs: PipeSizingInputs, pipe: PipeSize) -> PipeHydraulics:
    props: MaterialProperties = material_properties(pipe.material)
    n: float = props.manning_n
    state: _FlowState = _flow_state(inputs, pipe)
    slope: float = (state.velocity * n / (1.486 * state.hydraulic_radius ** (2 / 3))) ** 2
    friction_factor: float = 8 * GRAVITY_FT * n * n / state.hydraulic_radius ** (1 / 3)
    return _assemble(inputs, state, slope, slope * inputs.pipe_length, friction_factor)


_METHODS = {
    CalculationMethod.HAZEN_WILLIAMS: hazen_williams,
    CalculationMethod.DARCY_WEISBACH: darcy_weisbach,
    CalculationMethod.MANNING: manning,
}


def convert_pipe_sizing_units(inputs: PipeSizingInputs, target: UnitSystem) -> PipeSizingInputs:
    """Express ``inputs`` in ``target`` units (gpm/ft/psi/°F or L/s/m/kPa/°C).

    Head-loss limits are gradients per 1000 length units and need no conversion.
    """

    if inputs.units is target:
        return inputs
    to_metric: bool = target is UnitSystem.METRIC
    flow = gpm_to_litres_per_second if to_metric else litres_per_second_to_gpm
    length: float = FT_TO_METRES if to_metric else METRES_TO_FEET
    pressure: float = PSI_TO_KPA if to_metric else KPA_TO_PSI
    temperature = fahrenheit_to_celsius if to_metric else celsius_to_fahrenheit

    def scaled(value: float | None, factor: float) -> float | None:
        return value * factor if value is not None else None

    return replace(
        inputs,
        design_flow=flow(inputs.design_flow),
        pipe_length=inputs.pipe_length * length,
        elevation_change=inputs.elevation_change * length,
        min_velocity=scaled(inputs.min_velocity, length),
        max_velocity=scaled(inputs.max_velocity, length),
        operating_pressure=scaled(inputs.operating_pressure, pressure),
        temperature=temperature(inputs.temperature) if inputs.temperature is not None else None,
        units=target,
    )


def convert_results(results: PipeHydraulics, target: UnitSystem) -> PipeHydraulics:
    """Convert imperial results into ``target`` units."""

    if target is UnitSystem.IMPERIAL:
        return results
    return replace(
        results,
        velocity=results.velocity * FT_TO_METRES,
        total_head_loss=results.total_head_loss * FT_TO_METRES,
        pressure_drop=results.pressure_drop * PSI_TO_KPA,
        minor_losses=results.minor_losses * FT_TO_METRES,
        major_losses=results.major_losses * FT_TO_METRES,
    )


def validate_calculation_inputs(inputs: PipeSizingInputs, pipe_size: PipeSize) -> list[ValidationIssue]:
    return inputs.validate() + pipe_size.validate(prefix="pipe_size.")


def hydraulic_warnings(inputs: PipeSizingInputs, pipe: PipeSize, results: PipeHydraulics) -> list[str]:
    """Warnings for ``results`` expressed in the units of ``inputs``."""

    props: MaterialProperties = material_properties(pipe.material)
    metric: bool = inputs.units is UnitSystem.METRIC
    speed: str = "m/s" if metric else "ft/s"
    velocity_scale: float = FT_TO_METRES if metric else 1.0
    min_velocity: float = props.min_velocity * velocity_scale
    max_velocity: float = props.max_velocity * velocity_scale
    warnings: list[str] = []

    if results.velocity < min_velocity:
        warnings.append(
            f"Velocity ({results.velocity:.2f} {speed}) is below minimum recommended "
            f"({min_velocity:.2f} {speed}) - may cause sediment deposition"
        )
    if results.velocity > max_velocity:
        warnings.append(
            f"Velocity ({results.velocity:.2f} {speed}) exceeds maximum recommended "
            f"({max_velocity:.2f} {speed}) - may cause erosion or noise"
        )
    limit: float = inputs.max_head_loss or (10.0 if metric else 30.0)
    if results.head_loss > limit:
        label: str = "m/km" if metric else "ft/kft"
        warnings.append(f"Head loss ({results.head_loss:.2f} {label}) exceeds typical design limits - consider larger pipe")
    if results.flow_regime is FlowRegime.TRANSITIONAL:
        warnings.append("Flow is in transitional regime - consider laminar or turbulent design assumptions")
    if results.flow_regime is FlowRegime.LAMINAR:
        warnings.append("Laminar flow detected - Manning's or Hazen-Williams equations may not be accurate")
    rating: float = props.max_pressure * (PSI_TO_KPA if metric else 1.0)
    if results.pressure_drop > rating * PRESSURE_RATING_FRACTION:
        warnings.append("Pressure drop approaches material pressure rating limits")
    return warnings


def calculate_hydraulics(
    inputs: PipeSizingInputs,
    pipe_size: PipeSize,
    method: CalculationMethod = CalculationMethod.HAZEN_WILLIAMS,
) -> CalculationResult[PipeHydraulics]:
    """Hydraulic performance of ``pipe_size`` carrying the design flow."""

    errors, issues = split_issues(validate_calculation_inputs(inputs, pipe_size))
    warnings: list[str] = [issue.message for issue in issues]
    if errors:
        return CalculationResult.failure(errors, warnings)

    imperial_inputs: PipeSizingInputs = convert_pipe_sizing_units(inputs, UnitSystem.IMPERIAL)
    imperial_pipe: PipeSize = pipe_size.to_units(UnitSystem.IMPERIAL)
    raw: PipeHydraulics = _METHODS[method](imperial_inputs, imperial_pipe)
    results: PipeHydraulics = convert_results(raw, inputs.units)
    logger.debug(
        "{method} on {pipe}: V={velocity:.3f}, hf={head_loss:.3f}",
        method=method.value,
        pipe=pipe_size.describe(),
        velocity=results.velocity,
        head_loss=results.head_loss,
    )
    warnings.extend(hydraulic_warnings(inputs, pipe_size, results))
    return CalculationResult.ok(results, warnings)


__all__: list[str] = [
    "FITTING_LOSS_COEFFICIENTS",
    "PipeHydraulics",
    "calculate_hydraulics",
    "classify_flow_regime",
    "convert_pipe_sizing_units",
    "convert_results",
    "darcy_weisbach",
    "hazen_williams",
    "hydraulic_warnings",
    "manning",
    "minor_losses",
    "swamee_jain_friction_factor",
    "validate_calculation_inputs",
]
