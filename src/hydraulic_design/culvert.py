"""Culvert barrel hydraulics following the FHWA HDS-5 control concept.

For every (size, flow) pair the calculator computes the headwater needed
under inlet control and under outlet control independently. The larger of
the two governs. Results are memoised in a `HydraulicsCache` bound to one
parameter set and keyed by size, flow, material and entrance type.

Numeric policy:

* Degenerate values (NaN, infinities, negatives) are replaced by
  `validate_numeric_result` and logged rather than raised.
* A size with no usable flow area raises `InvalidAreaError`; the scenario
  evaluator turns that into a `fallback_hydraulics` estimate.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from .classes_references import InvalidAreaError, UnitSystem
from .geometry import (
    ArchSection,
    CircularSection,
    CrossSection,
    HydraulicProperties,
    hydraulic_properties,
)
from .models import CulvertParameters, CulvertSize
from .rating_curve import tailwater_depth
from .results import ValidationIssue
from .solver import SolverOptions, SolverResult, solve_robust
from .type_helpers import CulvertMaterial, CulvertShape, EntranceType, FlowType
from .units import CMS_TO_CFS, METRES_TO_FEET

MIN_NORMAL_DEPTH_SLOPE = 0.001
MIN_FROUDE_DEPTH = 0.01
HEADWATER_RATIO_LIMIT = 1.5
HIGH_FROUDE = 1.5
MAX_SKEW_WARNING = 30.0
PERFORMANCE_FACTORS: tuple[float, ...] = tuple(round(0.1 * step, 1) for step in range(1, 21))

MANNING_N: dict[CulvertMaterial, float] = {
    CulvertMaterial.CONCRETE: 0.013,
    CulvertMaterial.CORRUGATED_METAL: 0.024,
    CulvertMaterial.HDPE: 0.009,
}


@dataclass(frozen=True, slots=True)
class EntranceLoss:
    base: float
    skew_factor: float


ENTRANCE_LOSS: dict[EntranceType, EntranceLoss] = {
    EntranceType.PROJECTING: EntranceLoss(base=0.9, skew_factor=1.2),
    EntranceType.HEADWALL: EntranceLoss(base=0.5, skew_factor=1.1),
    EntranceType.WINGWALL: EntranceLoss(base=0.2, skew_factor=1.05),
}


@dataclass(frozen=True, slots=True)
class InletCoefficients:
    """Coefficients of ``HW/D = c·x^Y + c2·x^Y2 + S``."""

    c: float
    y: float
    c2: float
    y2: float
    s: float


_CONCRETE_BOX = InletCoefficients(0.0083, 2.0, 0.0379, 0.69, 0.0)
_CONCRETE_ARCH = InletCoefficients(0.0145, 0.75, 0.0317, 0.75, 0.0)

INLET_COEFFICIENTS: dict[tuple[CulvertShape, CulvertMaterial], InletCoefficients] = {
    (CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE): InletCoefficients(0.0398, 0.67, 0.0, 0.0, -0.5),
    (CulvertShape.CIRCULAR, CulvertMaterial.CORRUGATED_METAL): InletCoefficients(0.0553, 0.54, 0.0, 0.0, -0.5),
    (CulvertShape.CIRCULAR, CulvertMaterial.HDPE): InletCoefficients(0.0347, 0.69, 0.0, 0.0, -0.5),
    (CulvertShape.BOX, CulvertMaterial.CONCRETE): _CONCRETE_BOX,
    (CulvertShape.BOX, CulvertMaterial.CORRUGATED_METAL): InletCoefficients(0.0145, 1.75, 0.0317, 0.69, 0.0),
    (CulvertShape.BOX, CulvertMaterial.HDPE): _CONCRETE_BOX,
    (CulvertShape.ARCH, CulvertMaterial.CONCRETE): _CONCRETE_ARCH,
    (CulvertShape.ARCH, CulvertMaterial.CORRUGATED_METAL): InletCoefficients(0.0196, 0.75, 0.0317, 0.75, 0.0),
    (CulvertShape.ARCH, CulvertMaterial.HDPE): _CONCRETE_ARCH,
}


@dataclass(frozen=True, slots=True)
class CulvertHydraulics:
    """Hydraulic state of one culvert size at one flow.

    Attributes:
        flow_type: Governing control (inlet or outlet).
        headwater: Governing headwater depth above the upstream invert.
        velocity: Mean barrel velocity of one barrel.
        froude_number: Froude number at the governing depth.
        critical_depth: Barrel critical depth.
        normal_depth: Barrel normal depth.
        outlet_velocity: Velocity leaving the barrel.
        energy_grade: ``headwater + V² / 2g``.
        inlet_headwater: Headwater under inlet control.
        outlet_headwater: Headwater under outlet control.
        tailwater: Tailwater depth used for outlet control.
        fallback: ``True`` when the values are an estimate, not a solution.
    """

    flow_type: FlowType
    headwater: float
    velocity: float
    froude_number: float
    critical_depth: float
    normal_depth: float
    outlet_velocity: float
    energy_grade: float
    inlet_headwater: float = math.nan
    outlet_headwater: float = math.nan
    tailwater: float = 0.0
    fallback: bool = False


@dataclass(frozen=True, slots=True)
class FishPassageAssessment:
    passable: bool
    velocity_barrier: bool
    depth_barrier: bool
    jump_height: float
    baffle_recommendation: str


@dataclass(frozen=True, slots=True)
class PerformancePoint:
    """One point of a culvert performance curve."""

    flow: float
    headwater: float
    outlet_velocity: float
    froude_number: float
    flow_type: FlowType


def cache_key(size: CulvertSize, flow: float, material: CulvertMaterial, entrance_type: EntranceType) -> str:
    """Composite key of shape, dimensions, flow, material and entrance type."""

    dims: str = "-".join(f"{value or 0:g}" for value in size.dimensions())
    return f"{size.shape.value}-{dims}-{flow!r}-{material.value}-{entrance_type.value}"


CacheKeyFunction = Callable[[CulvertSize, float, CulvertMaterial, EntranceType], str]


class HydraulicsCache:
    """Memo of culvert results for one set of design parameters.

    The key only covers size, flow, material and entrance type, so the cache
    is bound to the `CulvertParameters` it was filled for and empties itself
    when bound to different ones. Not safe to share between threads; give each
    worker its own cache.
    """

    def __init__(self, key_function: CacheKeyFunction = cache_key) -> None:
        self.key_function: CacheKeyFunction = key_function
        self.params: CulvertParameters | None = None
        self._entries: dict[str, CulvertHydraulics] = {}
        self.hits: int = 0
        self.misses: int = 0

    def bind(self, params: CulvertParameters) -> None:
        """Attach the cache to ``params``, dropping results computed for other parameters."""

        if self.params is not None and self.params != params:
            logger.debug("Design parameters changed; discarding {count} cached results", count=len(self._entries))
            self.clear()
        self.params = params

    def key(self, size: CulvertSize, flow: float, material: CulvertMaterial, entrance_type: EntranceType) -> str:
        return self.key_function(size, flow, material, entrance_type)

    def get(self, key: str) -> CulvertHydraulics | None:
        result: CulvertHydraulics | None = self._entries.get(key)
        if result is None:
            self.misses += 1
        else:
            self.hits += 1
        return result

    def put(self, key: str, result: CulvertHydraulics) -> None:
        self._entries[key] = result

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


def validate_numeric_result(value: float, name: str) -> float:
    """Replace non-finite or negative values with safe ones, logging the change."""

    if not math.isfinite(value):
        replacement: float = 0.1 if "depth" in name else 1.0
        logger.warning(
            "Invalid {name} calculated: {value}. Using fallback value {replacement}.",
            name=name,
            value=value,
            replacement=replacement,
        )
        return replacement
    if value < 0:
        logger.warning("Negative {name} calculated: {value}. Using absolute value.", name=name, value=value)
        return abs(value)
    return value


def estimate_fallback_hydraulics(size: CulvertSize, flow: float, gravity: float) -> CulvertHydraulics:
    """Rough estimate from the nominal area alone, flagged with ``fallback=True``."""

    area: float = max(size.area, 1.0)
    velocity: float = flow / area
    depth: float = math.sqrt(area)
    return CulvertHydraulics(
        flow_type=FlowType.INLET,
        headwater=depth * 1.5,
        velocity=max(velocity, 1.0),
        froude_number=min(velocity / math.sqrt(gravity * depth), 3.0),
        critical_depth=depth * 0.8,
        normal_depth=depth * 0.9,
        outlet_velocity=velocity,
        energy_grade=depth * 2,
        fallback=True,
    )


class CulvertCalculator:
    """Evaluate culvert sizes against one set of validated design parameters."""

    def __init__(self, params: CulvertParameters, cache: HydraulicsCache | None = None) -> None:
        self.validation_warnings: list[ValidationIssue] = params.assert_valid()
        self.params: CulvertParameters = params
        self.units: UnitSystem = params.units
        self.gravity: float = params.units.gravity
        self.cache: HydraulicsCache = cache if cache is not None else HydraulicsCache()
        self.cache.bind(params)

    @property
    def manning_n(self) -> float:
        return MANNING_N.get(self.params.material, MANNING_N[CulvertMaterial.CONCRETE])

    @property
    def entrance_loss_coefficient(self) -> float:
        """Ke adjusted for the skew angle of the crossing."""

        loss: EntranceLoss = ENTRANCE_LOSS.get(self.params.entrance_type, ENTRANCE_LOSS[EntranceType.HEADWALL])
        skew: float = math.radians(self.params.skew_angle)
        return loss.base * (1 + (loss.skew_factor - 1) * math.sin(skew))

    def inlet_coefficients(self, shape: CulvertShape) -> InletCoefficients:
        return INLET_COEFFICIENTS[(shape, self.params.material)]

    def effective_flow(self, flow: float) -> float:
        """Flow carried by a single barrel."""

        if self.params.multiple_culverts > 1:
            share: float = self.params.unequal_distribution_factor or 1.0
            return flow / (self.params.multiple_culverts * share)
        return flow

    def effective_area(self, size: CulvertSize) -> float:
        return size.area * (1 - self.params.blockage_factor)

    def tailwater_depth(self, flow: float) -> float:
        return tailwater_depth(self.params.tailwater_rating_curve, flow)

    def inlet_control_headwater(self, size: CulvertSize, flow: float) -> float:
        """Headwater depth required by the inlet.

        The HDS-5 coefficients are fitted in cfs and feet, so metric sizes
        and flows are converted before the ratio is evaluated and the
        headwater is converted back to metres.
        """

        barrel_flow: float = self.effective_flow(flow)
        coeffs: InletCoefficients = self.inlet_coefficients(size.shape)
        metric: bool = self.units is UnitSystem.METRIC
        to_feet: float = METRES_TO_FEET if metric else 1.0

        reference: float
        scale: float
        if size.shape is CulvertShape.CIRCULAR and size.diameter:
            reference = size.diameter * to_feet
            scale = reference * math.sqrt(reference)
        elif size.shape is CulvertShape.BOX and size.width and size.height:
            reference = size.height * to_feet
            scale = size.width * to_feet * math.sqrt(reference)
        elif size.shape is CulvertShape.ARCH and size.span and size.rise:
            reference = size.rise * to_feet
            scale = size.span * to_feet * math.sqrt(reference)
        else:
            velocity: float = barrel_flow / self.effective_area(size)
            rise: float = size.rise_dimension
            return max(self.entrance_loss_coefficient * velocity**2 / (2 * self.gravity), 0.1 * rise)

        discharge_term: float = barrel_flow * (CMS_TO_CFS if metric else 1.0) / scale
        ratio: float = coeffs.c * discharge_term**coeffs.y + coeffs.c2 * discharge_term**coeffs.y2 + coeffs.s
        return max(ratio * reference, 0.1 * reference) / to_feet

    def full_flow_hydraulic_radius(self, size: CulvertSize, area: float) -> float:
        if size.shape is CulvertShape.CIRCULAR and size.diameter:
            return size.diameter / 4
        if size.shape is CulvertShape.BOX and size.width and size.height:
            return area / (2 * size.width + 2 * size.height)
        if size.shape is CulvertShape.ARCH and size.span and size.rise:
            a: float = size.span / 2
            b: float = size.rise
            perimeter: float = math.pi * (3 * (a + b) - math.sqrt((3 * a + b) * (a + 3 * b)))
            return area / perimeter
        return area / (4 * math.sqrt(math.pi * area))

    def outlet_control_headwater(self, size: CulvertSize, flow: float) -> float:
        """Headwater depth from the energy balance through the barrel."""

        area: float = self.effective_area(size)
        velocity: float = self.effective_flow(flow) / area
        velocity_head: float = velocity**2 / (2 * self.gravity)
        radius: float = self.full_flow_hydraulic_radius(size, area)

        entrance: float = self.entrance_loss_coefficient * velocity_head
        friction: float = (
            self.manning_n**2 * velocity**2 * self.params.culvert_length
            / (self.units.friction_constant * radius ** (4 / 3))
        )
        exit_loss: float = velocity_head
        downstream: float = self.params.downstream_invert + max(self.tailwater_depth(flow), 0.0)
        return max(downstream + entrance + friction + exit_loss - self.params.upstream_invert, 0.1)

    def critical_depth(self, size: CulvertSize, flow: float) -> float:
        barrel_flow: float = self.effective_flow(flow)
        rise: float = size.rise_dimension
        if size.shape is CulvertShape.BOX and size.width:
            unit_flow: float = barrel_flow / size.width
            return min((unit_flow**2 / self.gravity) ** (1 / 3), 0.95 * rise)

        section: CrossSection = size.section()
        flow_squared: float = barrel_flow**2

        def residual(depth: float) -> float:
            if depth <= 0:
                return flow_squared
            props: HydraulicProperties = hydraulic_properties(section, min(depth, rise))
            return flow_squared * props.top_width - self.gravity * props.area**3

        result: SolverResult = solve_robust(
            residual, SolverOptions(tolerance=1e-6, max_iterations=100, bracket=(1e-4 * rise, rise))
        )
        cap: float = 0.9 * rise if isinstance(section, ArchSection) else 0.95 * rise
        if not result.converged:
            logger.debug("Critical depth did not converge for {size}; capping at {cap}", size=size, cap=cap)
            return cap
        return min(result.value, cap)

    def normal_depth(self, size: CulvertSize, flow: float) -> float:
        barrel_flow: float = self.effective_flow(flow)
        rise: float = size.rise_dimension
        slope: float = max(self.params.slope, MIN_NORMAL_DEPTH_SLOPE)
        section: CrossSection = size.section()
        factor: float = self.units.manning_k / self.manning_n * math.sqrt(slope)

        def residual(depth: float) -> float:
            if depth <= 0:
                return -barrel_flow
            props: HydraulicProperties = hydraulic_properties(section, min(depth, rise))
            return factor * props.area * props.hydraulic_radius ** (2 / 3) - barrel_flow

        result: SolverResult = solve_robust(
            residual, SolverOptions(tolerance=1e-6, max_iterations=100, bracket=(1e-4 * rise, rise))
        )
        if not result.converged:
            logger.debug("Normal depth exceeds barrel capacity for {size}; barrel surcharged", size=size)
            return 0.95 * rise
        depth: float = min(result.value, 0.95 * rise)
        if not isinstance(section, (CircularSection, ArchSection)):
            depth = max(depth, 0.05 * rise)
        return depth

    def calculate_hydraulics(self, size: CulvertSize, flow: float | None = None) -> CulvertHydraulics:
        """Governing hydraulics of ``size`` at ``flow`` (design flow by default).

        Raises:
            InvalidAreaError: If the blocked flow area is not positive.
        """

        design_flow: float = self.params.design_flow if flow is None else flow
        key: str = self.cache.key(size, design_flow, self.params.material, self.params.entrance_type)
        cached: CulvertHydraulics | None = self.cache.get(key)
        if cached is not None:
            return cached

        area: float = self.effective_area(size)
        if not area > 0:
            raise InvalidAreaError([f"Invalid effective area {area} for {size}: validation failed"])

        inlet: float = self.inlet_control_headwater(size, design_flow)
        outlet: float = self.outlet_control_headwater(size, design_flow)
        flow_type: FlowType = FlowType.INLET if inlet > outlet else FlowType.OUTLET
        headwater: float = max(inlet, outlet)

        velocity: float = self.effective_flow(design_flow) / area
        critical: float = self.critical_depth(size, design_flow)
        normal: float = self.normal_depth(size, design_flow)
        governing_depth: float = critical if flow_type is FlowType.INLET else normal
        froude: float = velocity / math.sqrt(self.gravity * max(governing_depth, MIN_FROUDE_DEPTH))

        result = CulvertHydraulics(
            flow_type=flow_type,
            headwater=validate_numeric_result(headwater, "headwater"),
            velocity=validate_numeric_result(velocity, "velocity"),
            froude_number=validate_numeric_result(froude, "Froude number"),
            critical_depth=validate_numeric_result(critical, "critical depth"),
            normal_depth=validate_numeric_result(normal, "normal depth"),
            outlet_velocity=validate_numeric_result(velocity, "outlet velocity"),
            energy_grade=validate_numeric_result(headwater + velocity**2 / (2 * self.gravity), "energy grade"),
            inlet_headwater=inlet,
            outlet_headwater=outlet,
            tailwater=self.tailwater_depth(design_flow),
        )
        self.cache.put(key, result)
        return result

    def fallback_hydraulics(self, size: CulvertSize, flow: float | None = None) -> CulvertHydraulics:
        """Deterministic rough estimate used when a size cannot be solved."""

        design_flow: float = self.params.design_flow if flow is None else flow
        return estimate_fallback_hydraulics(size, design_flow, self.gravity)

    def evaluate_fish_passage(self, size: CulvertSize, hydraulics: CulvertHydraulics) -> FishPassageAssessment | None:
        criteria = self.params.fish_passage
        if criteria is None:
            return None
        velocity_barrier: bool = hydraulics.velocity > criteria.low_flow_velocity
        depth_barrier: bool = hydraulics.normal_depth < criteria.low_flow_depth
        drop: float = self.params.upstream_invert - self.params.downstream_invert
        jump_height: float = max(0.0, drop - hydraulics.normal_depth)

        recommendation: str = "None"
        if velocity_barrier or depth_barrier:
            if size.shape is CulvertShape.BOX:
                recommendation = "Spoiler baffles recommended"
            elif size.shape is CulvertShape.CIRCULAR:
                recommendation = "Roughening elements recommended"
            else:
                recommendation = "Stream simulation approach recommended"
        return FishPassageAssessment(
            passable=not velocity_barrier and not depth_barrier and jump_height < self._jump_limit,
            velocity_barrier=velocity_barrier,
            depth_barrier=depth_barrier,
            jump_height=jump_height,
            baffle_recommendation=recommendation,
        )

    @property
    def _jump_limit(self) -> float:
        return 0.3 if self.units is UnitSystem.METRIC else 1.0

    def generate_warnings(self, size: CulvertSize, hydraulics: CulvertHydraulics) -> list[str]:
        """Engineering concerns for a size that is otherwise acceptable."""

        metric: bool = self.units is UnitSystem.METRIC
        speed: str = "m/s" if metric else "ft/s"
        severe, erosive, sluggish = (4.5, 3.0, 0.6) if metric else (15.0, 10.0, 2.0)
        warnings: list[str] = []

        ratio: float = hydraulics.headwater / size.rise_dimension
        if ratio > HEADWATER_RATIO_LIMIT:
            warnings.append(f"Headwater to diameter ratio (HW/D) of {ratio:.2f} exceeds typical design limits")

        velocity: float = hydraulics.velocity
        if velocity > severe:
            warnings.append(f"Outlet velocity of {velocity:.1f} {speed} may cause severe erosion")
        elif velocity > erosive:
            warnings.append(f"Outlet velocity of {velocity:.1f} {speed} may cause erosion problems")
        elif velocity < sluggish:
            warnings.append(f"Low velocity of {velocity:.1f} {speed} may cause sediment deposition")

        if hydraulics.froude_number > HIGH_FROUDE:
            warnings.append(
                f"High Froude number ({hydraulics.froude_number:.2f}) indicates supercritical flow "
                "with potential hydraulic jump issues"
            )

        fish: FishPassageAssessment | None = self.evaluate_fish_passage(size, hydraulics)
        if fish is not None:
            if not fish.passable:
                warnings.append(f"Fish passage may be impaired - {fish.baffle_recommendation}")
            if fish.jump_height > self._jump_limit:
                warnings.append(f"Outlet drop of {fish.jump_height:.2f} may create fish passage barrier")

        if self.params.skew_angle > MAX_SKEW_WARNING:
            warnings.append(
                f"High skew angle ({self.params.skew_angle:g}°) will increase construction complexity"
            )
        if size.area > (50.0 if metric else 500.0):
            warnings.append("Large culvert size may require special construction considerations and equipment")
        if hydraulics.headwater > self.params.max_headwater:
            warnings.append(
                f"Headwater depth of {hydraulics.headwater:.2f} exceeds maximum allowable "
                f"({self.params.max_headwater:g})"
            )
        return warnings

    def performance_curve(self, size: CulvertSize) -> list[PerformancePoint]:
        """Headwater and outlet conditions from 10% to 200% of the design flow."""

        points: list[PerformancePoint] = []
        for factor in PERFORMANCE_FACTORS:
            flow: float = self.params.design_flow * factor
            hydraulics: CulvertHydraulics = self.calculate_hydraulics(size, flow)
            points.append(
                PerformancePoint(
                    flow=flow,
                    headwater=hydraulics.headwater,
                    outlet_velocity=hydraulics.outlet_velocity,
                    froude_number=hydraulics.froude_number,
                    flow_type=hydraulics.flow_type,
                )
            )
        return points


__all__: list[str] = [
    "CulvertCalculator",
    "CulvertHydraulics",
    "ENTRANCE_LOSS",
    "FishPassageAssessment",
    "HydraulicsCache",
    "INLET_COEFFICIENTS",
    "InletCoefficients",
    "MANNING_N",
    "PerformancePoint",
    "cache_key",
    "estimate_fallback_hydraulics",
    "validate_numeric_result",
]
