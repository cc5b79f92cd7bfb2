"""Scenario search and ranking over catalogued culvert and pipe sizes.

Culvert sizes are kept when their governing headwater does not exceed the
allowable maximum and are sorted ascending by headwater within each shape.
Pipe sizes are checked against velocity, head-loss, pressure and safety
criteria, scored 0-100 with `ScoreWeights` and sorted by descending score.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from .catalog import (
    MaterialProperties,
    SizeCatalog,
    StandardSizeCatalog,
    is_common_size,
    material_properties,
    pipe_sizes,
    size_availability,
)
from .classes_references import InvalidAreaError, UnitSystem
from .culvert import CulvertCalculator, CulvertHydraulics, HydraulicsCache, estimate_fallback_hydraulics
from .models import CulvertParameters, CulvertSize, PipeSize, PipeSizingInputs
from .pipe import PipeHydraulics, calculate_hydraulics, convert_pipe_sizing_units
from .results import CalculationResult, ValidationIssue, error, split_issues
from .type_helpers import CalculationMethod, CulvertShape, InstallationMethod, PipeMaterial
from .units import FT_TO_METRES, PSI_TO_KPA, gpm_to_cfs

if TYPE_CHECKING:
    import pandas as pd

EMERGENCY_WARNING = "Emergency fallback scenario - please verify input parameters"
EMERGENCY_DIAMETER_FT = 3.0
EMERGENCY_DIAMETER_M = 0.9144

# Pipe diameter search window, imperial.
SEARCH_MAX_VELOCITY = 10.0
SEARCH_MIN_VELOCITY = 2.0
SEARCH_OVERSIZE = 1.5
MIN_NOMINAL_IN = 4
MAX_NOMINAL_IN = 72

MAX_ALTERNATIVES = 5
NEAR_MISS_COUNT = 5
PRESSURE_RATING_FRACTION = 0.8
OPTIMAL_VELOCITY_FT = 5.0
REASONABLE_HEAD_LOSS = 15.0
TRENCHLESS_DIAMETER_LIMIT_IN = 36

MATERIAL_SUITABILITY: dict[PipeMaterial, float] = {
    PipeMaterial.PVC: 90.0,
    PipeMaterial.DUCTILE_IRON: 85.0,
    PipeMaterial.HDPE: 80.0,
    PipeMaterial.STEEL: 75.0,
    PipeMaterial.CONCRETE: 70.0,
    PipeMaterial.CAST_IRON: 60.0,
}


@dataclass(slots=True)
class ScenarioResult:
    """One evaluated culvert size."""

    size: CulvertSize
    hydraulics: CulvertHydraulics
    warnings: list[str] = field(default_factory=list)

    @property
    def shape(self) -> CulvertShape:
        return self.size.shape

    def to_dict(self) -> dict[str, Any]:
        return {
            "shape": self.shape.value,
            "size": self.size.describe(),
            "area": self.size.area,
            "flow_type": self.hydraulics.flow_type.value,
            "headwater": self.hydraulics.headwater,
            "inlet_headwater": self.hydraulics.inlet_headwater,
            "outlet_headwater": self.hydraulics.outlet_headwater,
            "velocity": self.hydraulics.velocity,
            "froude_number": self.hydraulics.froude_number,
            "critical_depth": self.hydraulics.critical_depth,
            "normal_depth": self.hydraulics.normal_depth,
            "fallback": self.hydraulics.fallback,
            "warnings": "; ".join(self.warnings),
        }


@dataclass(slots=True)
class ScenarioSummary:
    """Counts for one evaluation run; ``feasible_by_shape`` is never capped."""

    evaluated: int = 0
    feasible: int = 0
    exceeded_headwater: int = 0
    failed: int = 0
    feasible_by_shape: dict[CulvertShape, int] = field(default_factory=dict)
    cache_hits: int = 0


@dataclass(slots=True)
class CulvertScenarioSet:
    """Feasible culvert sizes grouped by shape, each list sorted by headwater.

    ``emergency`` marks the single placeholder scenario returned when the
    evaluation itself broke down.
    """

    scenarios: dict[CulvertShape, list[ScenarioResult]]
    summary: ScenarioSummary
    emergency: bool = False

    def all(self) -> list[ScenarioResult]:
        return [scenario for group in self.scenarios.values() for scenario in group]

    def best(self) -> ScenarioResult | None:
        """Lowest-headwater solved scenario across all shapes."""

        candidates: list[ScenarioResult] = [s for s in self.all() if not s.hydraulics.fallback]
        if not candidates:
            return None
        return min(candidates, key=lambda scenario: scenario.hydraulics.headwater)


def emergency_scenarios(params: CulvertParameters) -> CulvertScenarioSet:
    diameter: float = EMERGENCY_DIAMETER_M if params.units is UnitSystem.METRIC else EMERGENCY_DIAMETER_FT
    size: CulvertSize = CulvertSize.circular(diameter)
    hydraulics: CulvertHydraulics = estimate_fallback_hydraulics(size, params.design_flow, params.units.gravity)
    scenario = ScenarioResult(size=size, hydraulics=hydraulics, warnings=[EMERGENCY_WARNING])
    summary = ScenarioSummary(feasible=1, feasible_by_shape={CulvertShape.CIRCULAR: 1})
    return CulvertScenarioSet(scenarios={CulvertShape.CIRCULAR: [scenario]}, summary=summary, emergency=True)


def _evaluate_sizes(
    calculator: CulvertCalculator,
    catalog: SizeCatalog,
    max_per_shape: int | None,
) -> CulvertScenarioSet:
    params: CulvertParameters = calculator.params
    summary = ScenarioSummary()
    scenarios: dict[CulvertShape, list[ScenarioResult]] = {}

    for shape in CulvertShape:
        for size in catalog.get_available_sizes(params.material, shape, params.units):
            summary.evaluated += 1
            hydraulics: CulvertHydraulics
            warnings: list[str] | None = None
            try:
                hydraulics = calculator.calculate_hydraulics(size)
            except InvalidAreaError as exc:
                logger.warning("Scenario evaluation failed for {size}: {error}", size=size, error=exc)
                summary.failed += 1
                hydraulics = calculator.fallback_hydraulics(size)
                warnings = [f"Evaluation error: {exc}"]
            except (ValueError, ArithmeticError) as exc:
                logger.warning("Scenario evaluation failed for {size}: {error}", size=size, error=exc)
                summary.failed += 1
                continue

            if hydraulics.headwater > params.max_headwater:
                summary.exceeded_headwater += 1
                continue
            if warnings is None:
                warnings = calculator.generate_warnings(size, hydraulics)
            scenarios.setdefault(shape, []).append(ScenarioResult(size=size, hydraulics=hydraulics, warnings=warnings))
            summary.feasible += 1

    for shape, group in scenarios.items():
        group.sort(key=lambda scenario: scenario.hydraulics.headwater)
        summary.feasible_by_shape[shape] = len(group)
        if max_per_shape is not None:
            del group[max_per_shape:]
    summary.cache_hits = calculator.cache.hits
    return CulvertScenarioSet(scenarios=scenarios, summary=summary)


def evaluate_culvert_scenarios(
    params: CulvertParameters,
    catalog: SizeCatalog | None = None,
    cache: HydraulicsCache | None = None,
    max_per_shape: int | None = None,
) -> CalculationResult[CulvertScenarioSet]:
    """Evaluate every catalogued size of ``params.material`` at the design flow.

    Invalid parameters give an unsuccessful result, and so does a run in which
    no catalogued size could be evaluated at all. Sizes that fail to solve are
    logged and dropped; sizes with no flow area are kept as flagged estimates
    when the estimate meets the headwater limit. Any other breakdown yields a
    single emergency scenario. A run where every solved size exceeds the
    headwater limit is still successful, with empty groups and a warning.
    """

    errors, issues = split_issues(params.validate())
    warnings: list[str] = [issue.message for issue in issues]
    if errors:
        return CalculationResult.failure(errors, warnings)

    try:
        calculator = CulvertCalculator(params, cache=cache)
        result: CulvertScenarioSet = _evaluate_sizes(calculator, catalog or StandardSizeCatalog(), max_per_shape)
    except Exception:
        logger.exception("Critical error in culvert scenario evaluation for {params}", params=params)
        return CalculationResult.ok(emergency_scenarios(params), warnings + [EMERGENCY_WARNING])

    summary: ScenarioSummary = result.summary
    logger.info(
        "Culvert evaluation completed: {feasible}/{evaluated} scenarios feasible",
        feasible=summary.feasible,
        evaluated=summary.evaluated,
    )
    if summary.failed == summary.evaluated:
        logger.error("None of the {count} catalogued culvert sizes could be evaluated", count=summary.evaluated)
        return CalculationResult.failure([error("calculation", "No culvert size could be evaluated")], warnings)
    if summary.feasible == 0:
        warnings.append(f"No culvert sizes satisfy the maximum headwater of {params.max_headwater:g}")
    return CalculationResult.ok(result, warnings)


def scenarios_dataframe(scenario_set: CulvertScenarioSet) -> "pd.DataFrame":
    """Return a pandas DataFrame with one row per culvert scenario."""
    import pandas as pd

    rows: list[dict[str, Any]] = [scenario.to_dict() for scenario in scenario_set.all()]
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.set_index(["shape", "size"])
    return df


@dataclass(frozen=True, slots=True)
class ScoreWeights:
    """Weights of the pipe suitability score; they should sum to 1."""

    velocity: float = 0.30
    head_loss: float = 0.25
    cost: float = 0.20
    availability: float = 0.15
    material: float = 0.10

    def total(self) -> float:
        return self.velocity + self.head_loss + self.cost + self.availability + self.material


DEFAULT_WEIGHTS = ScoreWeights()


@dataclass(slots=True)
class PipeOption:
    pipe_size: PipeSize
    hydraulics: PipeHydraulics
    warnings: list[str]
    score: float
    meets_criteria: bool
    head_loss_ratio: float
    velocity_ratio: float
    capacity_factor: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "material": self.pipe_size.material.value,
            "nominal_diameter": self.pipe_size.nominal_diameter,
            "internal_diameter": self.pipe_size.internal_diameter,
            "velocity": self.hydraulics.velocity,
            "head_loss": self.hydraulics.head_loss,
            "total_head_loss": self.hydraulics.total_head_loss,
            "pressure_drop": self.hydraulics.pressure_drop,
            "reynolds_number": self.hydraulics.reynolds_number,
            "flow_regime": self.hydraulics.flow_regime.value,
            "score": self.score,
            "meets_criteria": self.meets_criteria,
            "head_loss_ratio": self.head_loss_ratio,
            "velocity_ratio": self.velocity_ratio,
            "capacity_factor": self.capacity_factor,
            "warnings": "; ".join(self.warnings),
        }


@dataclass(frozen=True, slots=True)
class VelocityRange:
    minimum: float
    maximum: float


@dataclass(frozen=True, slots=True)
class PipeSizingSummary:
    total_options: int
    viable_options: int
    velocity_range: VelocityRange | None


@dataclass(slots=True)
class PipeSizingResults:
    """Ranked pipe options.

    ``recommendations`` holds only options meeting every design criterion.
    When there are none, ``best_option`` is ``None`` and ``near_misses`` lists
    the highest-scoring failures instead.
    """

    recommendations: list[PipeOption]
    best_option: PipeOption | None
    alternative_options: list[PipeOption]
    near_misses: list[PipeOption]
    summary: PipeSizingSummary


class PipeSizingCalculator:
    """Rank catalogued pipe sizes for one sizing request."""

    def __init__(
        self,
        inputs: PipeSizingInputs,
        method: CalculationMethod = CalculationMethod.HAZEN_WILLIAMS,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
    ) -> None:
        self.inputs: PipeSizingInputs = inputs
        self.method: CalculationMethod = method
        self.weights: ScoreWeights = weights
        self.imperial: PipeSizingInputs = convert_pipe_sizing_units(inputs, UnitSystem.IMPERIAL)

    @property
    def metric(self) -> bool:
        return self.inputs.units is UnitSystem.METRIC

    def _nominal_window(self) -> tuple[float, float]:
        """Smallest and largest nominal diameters (inches) worth evaluating."""

        flow: float = gpm_to_cfs(self.imperial.design_flow)
        smallest: float = math.sqrt(4 * flow / SEARCH_MAX_VELOCITY / math.pi) * 12
        largest: float = math.sqrt(4 * flow / SEARCH_MIN_VELOCITY / math.pi) * 12
        return (
            max(MIN_NOMINAL_IN, math.floor(smallest)),
            min(MAX_NOMINAL_IN, math.ceil(largest * SEARCH_OVERSIZE)),
        )

    def candidate_sizes(self) -> list[PipeSize]:
        """Catalogued sizes of the candidate materials inside the search window."""

        low, high = self._nominal_window()
        sizes: list[PipeSize] = []
        for material in self.inputs.candidate_materials():
            for size in pipe_sizes(material):
                if low <= size.nominal_diameter <= high:
                    sizes.append(size.to_units(self.inputs.units))
        return sizes

    def _velocity_limits(self, props: MaterialProperties) -> tuple[float, float]:
        scale: float = FT_TO_METRES if self.metric else 1.0
        minimum: float = self.inputs.min_velocity or props.min_velocity * scale
        maximum: float = self.inputs.max_velocity or props.max_velocity * scale
        return minimum, maximum

    def _imperial_velocity(self, hydraulics: PipeHydraulics) -> float:
        return hydraulics.velocity / FT_TO_METRES if self.metric else hydraulics.velocity

    def meets_design_criteria(self, size: PipeSize, hydraulics: PipeHydraulics) -> bool:
        props: MaterialProperties = material_properties(size.material)
        minimum, maximum = self._velocity_limits(props)
        if not minimum <= hydraulics.velocity <= maximum:
            return False
        if self.inputs.max_head_loss and hydraulics.head_loss > self.inputs.max_head_loss:
            return False
        rating: float = props.max_pressure * (PSI_TO_KPA if self.metric else 1.0)
        if hydraulics.pressure_drop > rating * PRESSURE_RATING_FRACTION:
            return False
        return props.max_velocity / self._imperial_velocity(hydraulics) >= self.inputs.safety_factor

    def suitability_score(self, size: PipeSize, hydraulics: PipeHydraulics) -> float:
        """Weighted 0-100 score; scored on imperial values so units do not shift rankings."""

        props: MaterialProperties = material_properties(size.material)
        nominal_in: float = size.to_units(UnitSystem.IMPERIAL).nominal_diameter
        velocity_score: float = max(0.0, 100 - abs(self._imperial_velocity(hydraulics) - OPTIMAL_VELOCITY_FT) * 10)
        head_loss_score: float = max(0.0, 100 - hydraulics.head_loss / REASONABLE_HEAD_LOSS * 100)
        cost_score: float = min(100.0, max(0.0, 100 - (props.cost_factor - 1) * 50))
        availability_score: float = 100.0 if is_common_size(nominal_in, size.material) else 70.0
        material_score: float = MATERIAL_SUITABILITY.get(size.material, 70.0)

        weights: ScoreWeights = self.weights
        score: float = (
            velocity_score * weights.velocity
            + head_loss_score * weights.head_loss
            + cost_score * weights.cost
            + availability_score * weights.availability
            + material_score * weights.material
        )
        return round(max(0.0, min(100.0, score)), 1)

    def _size_warnings(self, size: PipeSize) -> list[str]:
        nominal_in: float = size.to_units(UnitSystem.IMPERIAL).nominal_diameter
        label: str = f'{nominal_in:g}" {size.material.value}'
        warnings: list[str] = []
        availability = size_availability(nominal_in, size.material)
        if availability == "special-order":
            warnings.append(f"{label} pipe requires special order - longer lead time and higher cost")
        elif availability == "unavailable":
            warnings.append(f"{label} pipe may not be readily available")
        if (
            self.inputs.installation_method is InstallationMethod.TRENCHLESS
            and nominal_in > TRENCHLESS_DIAMETER_LIMIT_IN
        ):
            warnings.append("Large diameter trenchless installation may be challenging")
        return warnings

    def evaluate(self, size: PipeSize) -> CalculationResult[PipeOption]:
        result: CalculationResult[PipeHydraulics] = calculate_hydraulics(self.inputs, size, self.method)
        if not result.success or result.data is None:
            return CalculationResult.failure(result.errors, result.warnings)
        hydraulics: PipeHydraulics = result.data
        props: MaterialProperties = material_properties(size.material)
        head_loss_limit: float = self.inputs.max_head_loss or (10.0 if self.metric else 30.0)
        imperial_size: PipeSize = size.to_units(UnitSystem.IMPERIAL)
        option = PipeOption(
            pipe_size=size,
            hydraulics=hydraulics,
            warnings=result.warnings + self._size_warnings(size),
            score=self.suitability_score(size, hydraulics),
            meets_criteria=self.meets_design_criteria(size, hydraulics),
            head_loss_ratio=hydraulics.head_loss / head_loss_limit,
            velocity_ratio=self._imperial_velocity(hydraulics) / ((props.min_velocity + props.max_velocity) / 2),
            capacity_factor=gpm_to_cfs(self.imperial.design_flow) / (props.max_velocity * imperial_size.area),
        )
        return CalculationResult.ok(option)

    def calculate_recommendations(self) -> CalculationResult[PipeSizingResults]:
        errors, issues = split_issues(self.inputs.validate())
        warnings: list[str] = [issue.message for issue in issues]
        if errors:
            return CalculationResult.failure(errors, warnings)

        sizes: list[PipeSize] = self.candidate_sizes()
        if not sizes:
            return CalculationResult.failure(
                [error("materials", "No pipe sizes available for selected materials")], warnings
            )

        evaluated: list[PipeOption] = []
        for size in sizes:
            try:
                outcome: CalculationResult[PipeOption] = self.evaluate(size)
            except (ValueError, ArithmeticError) as exc:
                logger.warning("Failed to evaluate pipe size {size}: {error}", size=size, error=exc)
                continue
            if outcome.success and outcome.data is not None:
                evaluated.append(outcome.data)
            else:
                warnings.extend(outcome.warnings)

        if not evaluated:
            failure: list[ValidationIssue] = [
                error("calculation", "No viable pipe sizes found for the given parameters")
            ]
            return CalculationResult.failure(failure, warnings)

        evaluated.sort(key=lambda option: option.score, reverse=True)
        viable: list[PipeOption] = [option for option in evaluated if option.meets_criteria]
        near_misses: list[PipeOption] = [] if viable else evaluated[:NEAR_MISS_COUNT]
        reported: list[PipeOption] = viable or near_misses
        velocities: list[float] = [option.hydraulics.velocity for option in reported]
        results = PipeSizingResults(
            recommendations=viable,
            best_option=viable[0] if viable else None,
            alternative_options=viable[1 : 1 + MAX_ALTERNATIVES],
            near_misses=near_misses,
            summary=PipeSizingSummary(
                total_options=len(evaluated),
                viable_options=len(viable),
                velocity_range=VelocityRange(min(velocities), max(velocities)) if velocities else None,
            ),
        )
        logger.info(
            "Pipe sizing evaluated {total} options, {viable} meet the design criteria",
            total=len(evaluated),
            viable=len(viable),
        )
        if not viable:
            warnings.append("No pipe size meets every design criterion; showing the closest options")
        return CalculationResult.ok(results, warnings)


def pipe_options_dataframe(options: list[PipeOption]) -> "pd.DataFrame":
    """Return a pandas DataFrame with one row per pipe option."""
    import pandas as pd

    df = pd.DataFrame([option.to_dict() for option in options])
    if not df.empty:
        df = df.set_index(["material", "nominal_diameter"])
    return df


__all__: list[str] = [
    "CulvertScenarioSet",
    "DEFAULT_WEIGHTS",
    "EMERGENCY_WARNING",
    "PipeOption",
    "PipeSizingCalculator",
    "PipeSizingResults",
    "PipeSizingSummary",
    "ScenarioResult",
    "ScenarioSummary",
    "ScoreWeights",
    "VelocityRange",
    "emergency_scenarios",
    "evaluate_culvert_scenarios",
    "pipe_options_dataframe",
    "scenarios_dataframe",
]
