"""Uniform-flow hydraulics for prismatic open channels.

`calculate_channel_hydraulics` is the public entry point. It validates the
inputs, solves Manning's equation for the normal depth, solves the
critical-flow condition for the critical depth and derives the remaining
quantities at the normal depth. Validation problems and a non-convergent
normal depth are reported through a failed `CalculationResult`; everything
else comes back as warnings on a successful one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from loguru import logger

from .classes_references import UnitSystem
from .geometry import (
    ArchSection,
    BoxSection,
    CircularSection,
    CrossSection,
    HydraulicProperties,
    hydraulic_properties,
    maximum_depth,
)
from .models import ChannelInputs
from .results import CalculationResult, ValidationIssue, error, split_issues
from .solver import SolverOptions, SolverResult, find_bracket, solve_robust
from .type_helpers import FlowState

SUBCRITICAL_LIMIT = 0.95
SUPERCRITICAL_LIMIT = 1.05
LAMINAR_REYNOLDS = 2000.0
HIGH_FROUDE = 1.5
SOLVER_BRACKET_FLOOR = 0.0001
CLOSED_SECTIONS = (CircularSection, BoxSection, ArchSection)


@dataclass(frozen=True, slots=True)
class FreeboardPolicy:
    """Empirical freeboard rule scaled by design flow.

    ``lining = max(base, base * (Q / reference_flow) ** exponent)`` and
    ``bank = max(base * bank_factor, lining * lining_factor)``.
    """

    base_metric: float = 0.3
    base_imperial: float = 1.0
    reference_flow_metric: float = 10.0
    reference_flow_imperial: float = 350.0
    exponent: float = 0.25
    bank_factor: float = 1.2
    lining_factor: float = 1.1

    def base(self, units: UnitSystem) -> float:
        return self.base_metric if units is UnitSystem.METRIC else self.base_imperial

    def reference_flow(self, units: UnitSystem) -> float:
        return self.reference_flow_metric if units is UnitSystem.METRIC else self.reference_flow_imperial


DEFAULT_FREEBOARD = FreeboardPolicy()


@dataclass(frozen=True, slots=True)
class Freeboard:
    lining: float
    bank: float
    controlling: float
    total_depth: float


@dataclass(frozen=True, slots=True)
class ChannelHydraulics:
    """Uniform-flow state of a channel at its normal depth.

    Attributes:
        normal_depth: Depth satisfying Manning's equation.
        critical_depth: Depth at Froude number 1, or 0 when it could not be solved.
        velocity: Mean velocity at the normal depth.
        froude_number: Froude number at the normal depth.
        reynolds_number: Reynolds number using ``4 * hydraulic_radius``.
        specific_energy: ``y + V² / 2g`` at the normal depth.
        critical_slope: Slope that would make the normal depth critical.
        flow_state: Subcritical, critical or supercritical.
        properties: Section properties at the normal depth.
        freeboard: Recommended freeboard allowances.
        normal_depth_solve: Raw solver output for the normal depth.
    """

    normal_depth: float
    critical_depth: float
    velocity: float
    froude_number: float
    reynolds_number: float
    specific_energy: float
    critical_slope: float
    flow_state: FlowState
    properties: HydraulicProperties
    freeboard: Freeboard
    normal_depth_solve: SolverResult


def conveyance(section: CrossSection, depth: float, manning_n: float, units: UnitSystem) -> float:
    """Manning conveyance ``(k/n)·A·R^(2/3)`` at ``depth``."""

    props: HydraulicProperties = hydraulic_properties(section, depth)
    return units.manning_k / manning_n * props.area * props.hydraulic_radius ** (2 / 3)


def normal_depth(inputs: ChannelInputs, options: SolverOptions | None = None) -> SolverResult:
    """Solve Manning's equation for the uniform-flow depth."""

    root_slope: float = math.sqrt(inputs.channel_slope)

    def residual(depth: float) -> float:
        if depth <= 0:
            return -inputs.flow_rate
        try:
            return conveyance(inputs.geometry, depth, inputs.manning_n, inputs.units) * root_slope - inputs.flow_rate
        except ValueError:
            return -inputs.flow_rate

    opts: SolverOptions = options or SolverOptions()
    limit: float = maximum_depth(inputs.geometry)
    closed: bool = isinstance(inputs.geometry, CLOSED_SECTIONS)
    guess: float = opts.initial_guess or 1.0
    if closed:
        guess = min(guess, limit / 2)
    bracket = opts.bracket or find_bracket(residual, guess)
    # a closed section's residual jumps at the crown, keep the bracket inside it
    if bracket is None or (closed and bracket[1] > limit):
        bracket = (SOLVER_BRACKET_FLOOR, limit)
    result: SolverResult = solve_robust(
        residual,
        SolverOptions(tolerance=opts.tolerance, max_iterations=opts.max_iterations, bracket=bracket),
    )
    logger.debug(
        "Normal depth {depth} (converged={converged}, iterations={iterations})",
        depth=result.value,
        converged=result.converged,
        iterations=result.iterations,
    )
    return result


def critical_depth(inputs: ChannelInputs, options: SolverOptions | None = None) -> SolverResult:
    """Solve ``Q²·T − g·A³ = 0`` for the critical depth."""

    gravity: float = inputs.units.gravity
    flow_squared: float = inputs.flow_rate**2

    def residual(depth: float) -> float:
        if depth <= 0:
            return -1.0
        try:
            props: HydraulicProperties = hydraulic_properties(inputs.geometry, depth)
        except ValueError:
            return -1.0
        return flow_squared * props.top_width - gravity * props.area**3

    opts: SolverOptions = options or SolverOptions()
    bracket = opts.bracket or (SOLVER_BRACKET_FLOOR, maximum_depth(inputs.geometry))
    return solve_robust(
        residual,
        SolverOptions(tolerance=opts.tolerance, max_iterations=opts.max_iterations, bracket=bracket),
    )


def critical_slope(inputs: ChannelInputs, depth: float) -> float:
    """Back-calculate ``S_c = (Q / K)²`` from the conveyance at ``depth``."""

    try:
        k: float = conveyance(inputs.geometry, depth, inputs.manning_n, inputs.units)
    except ValueError:
        return 0.0
    if k <= 0:
        return 0.0
    return (inputs.flow_rate / k) ** 2


def froude_number(velocity: float, hydraulic_depth: float, units: UnitSystem) -> float:
    if hydraulic_depth <= 0 or math.isinf(hydraulic_depth):
        return 0.0
    return velocity / math.sqrt(units.gravity * hydraulic_depth)


def reynolds_number(velocity: float, hydraulic_radius: float, units: UnitSystem) -> float:
    """Reynolds number with ``4·R`` as the equivalent hydraulic diameter."""

    return velocity * hydraulic_radius * 4 / units.kinematic_viscosity


def specific_energy(depth: float, velocity: float, units: UnitSystem) -> float:
    return depth + velocity**2 / (2 * units.gravity)


def classify_flow_state(froude: float) -> FlowState:
    if froude < SUBCRITICAL_LIMIT:
        return FlowState.SUBCRITICAL
    if froude > SUPERCRITICAL_LIMIT:
        return FlowState.SUPERCRITICAL
    return FlowState.CRITICAL


def calculate_freeboard(
    depth: float, flow_rate: float, units: UnitSystem, policy: FreeboardPolicy = DEFAULT_FREEBOARD
) -> Freeboard:
    """Apply the flow-scaled freeboard rule of thumb."""

    base: float = policy.base(units)
    flow_factor: float = (flow_rate / policy.reference_flow(units)) ** policy.exponent
    lining: float = max(base, base * flow_factor)
    bank: float = max(base * policy.bank_factor, lining * policy.lining_factor)
    controlling: float = max(lining, bank)
    return Freeboard(lining=lining, bank=bank, controlling=controlling, total_depth=depth + controlling)


def validate_channel_inputs(inputs: ChannelInputs) -> list[ValidationIssue]:
    return inputs.validate()


def _engineering_warnings(velocity: float, froude: float, reynolds: float, units: UnitSystem) -> list[str]:
    warnings: list[str] = []
    if froude > HIGH_FROUDE:
        warnings.append("High Froude number indicates very supercritical flow - check for hydraulic jumps")
    erosive: float = 6.0 if units is UnitSystem.METRIC else 20.0
    if velocity > erosive:
        warnings.append("High velocity may cause erosion - consider channel protection")
    if reynolds < LAMINAR_REYNOLDS:
        warnings.append("Low Reynolds number indicates laminar flow - Manning's n may not be accurate")
    return warnings


def calculate_channel_hydraulics(
    inputs: ChannelInputs,
    options: SolverOptions | None = None,
    freeboard_policy: FreeboardPolicy = DEFAULT_FREEBOARD,
) -> CalculationResult[ChannelHydraulics]:
    """Compute the full uniform-flow state of a channel."""

    errors, validation_warnings = split_issues(validate_channel_inputs(inputs))
    warnings: list[str] = [issue.message for issue in validation_warnings]
    if errors:
        logger.debug("Channel inputs rejected: {errors}", errors=[str(issue) for issue in errors])
        return CalculationResult.failure(errors, warnings)

    normal: SolverResult = normal_depth(inputs, options)
    if not normal.converged:
        message: str = normal.error or "Normal depth did not converge"
        logger.warning("Normal depth solve failed: {message}", message=message)
        return CalculationResult.failure([error("normal_depth", message)], warnings)

    critical: SolverResult = critical_depth(inputs, options)
    critical_value: float = critical.value if critical.converged else 0.0
    if not critical.converged:
        logger.warning("Critical depth solve failed ({error}); using 0", error=critical.error)
        warnings.append("Critical depth could not be determined")

    depth: float = normal.value
    props: HydraulicProperties = hydraulic_properties(inputs.geometry, depth)
    velocity: float = inputs.flow_rate / props.area
    froude: float = froude_number(velocity, props.hydraulic_depth, inputs.units)
    reynolds: float = reynolds_number(velocity, props.hydraulic_radius, inputs.units)
    warnings.extend(_engineering_warnings(velocity, froude, reynolds, inputs.units))

    hydraulics = ChannelHydraulics(
        normal_depth=depth,
        critical_depth=critical_value,
        velocity=velocity,
        froude_number=froude,
        reynolds_number=reynolds,
        specific_energy=specific_energy(depth, velocity, inputs.units),
        critical_slope=critical_slope(inputs, depth),
        flow_state=classify_flow_state(froude),
        properties=props,
        freeboard=calculate_freeboard(depth, inputs.flow_rate, inputs.units, freeboard_policy),
        normal_depth_solve=normal,
    )
    return CalculationResult.ok(hydraulics, warnings)


__all__: list[str] = [
    "ChannelHydraulics",
    "Freeboard",
    "FreeboardPolicy",
    "calculate_channel_hydraulics",
    "calculate_freeboard",
    "classify_flow_state",
    "conveyance",
    "critical_depth",
    "critical_slope",
    "froude_number",
    "normal_depth",
    "reynolds_number",
    "specific_energy",
    "validate_channel_inputs",
]
