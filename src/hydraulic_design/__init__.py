"""Public API for hydraulic-design."""

from .catalog import StandardSizeCatalog, material_properties, pipe_sizes
from .classes_references import InvalidAreaError, UnitSystem, ValidationError
from .config import DesignOptions, DesignRequest, design_from_mapping, load_design_from_json
from .culvert import CulvertCalculator, CulvertHydraulics, HydraulicsCache
from .geometry import (
    ArchSection,
    BoxSection,
    CircularSection,
    HydraulicProperties,
    RectangularSection,
    TrapezoidalSection,
    TriangularSection,
    hydraulic_properties,
)
from .models import (
    ChannelInputs,
    CulvertParameters,
    CulvertSize,
    FishPassageCriteria,
    PipeFitting,
    PipeSize,
    PipeSizingInputs,
    RatingCurvePoint,
)
from .open_channel import ChannelHydraulics, FreeboardPolicy, calculate_channel_hydraulics
from .pipe import PipeHydraulics, calculate_hydraulics
from .rating_curve import RatingPoint, generate_rating_curve
from .results import CalculationResult, ValidationIssue
from .scenarios import (
    CulvertScenarioSet,
    PipeSizingCalculator,
    PipeSizingResults,
    ScenarioResult,
    ScoreWeights,
    evaluate_culvert_scenarios,
    pipe_options_dataframe,
    scenarios_dataframe,
)
from .solver import SolverOptions, SolverResult, find_bracket, solve_brent, solve_newton_raphson, solve_robust
from .type_helpers import (
    CalculationMethod,
    ChannelShape,
    CulvertMaterial,
    CulvertShape,
    EntranceType,
    FittingType,
    FlowState,
    FlowType,
    PipeMaterial,
)

__all__: list[str] = [
    "ArchSection",
    "BoxSection",
    "CalculationMethod",
    "CalculationResult",
    "ChannelHydraulics",
    "ChannelInputs",
    "ChannelShape",
    "CircularSection",
    "CulvertCalculator",
    "CulvertHydraulics",
    "CulvertMaterial",
    "CulvertParameters",
    "CulvertScenarioSet",
    "CulvertShape",
    "CulvertSize",
    "DesignOptions",
    "DesignRequest",
    "EntranceType",
    "FishPassageCriteria",
    "FittingType",
    "FlowState",
    "FlowType",
    "FreeboardPolicy",
    "HydraulicProperties",
    "HydraulicsCache",
    "InvalidAreaError",
    "PipeFitting",
    "PipeHydraulics",
    "PipeMaterial",
    "PipeSize",
    "PipeSizingCalculator",
    "PipeSizingInputs",
    "PipeSizingResults",
    "RatingCurvePoint",
    "RatingPoint",
    "RectangularSection",
    "ScenarioResult",
    "ScoreWeights",
    "SolverOptions",
    "SolverResult",
    "StandardSizeCatalog",
    "TrapezoidalSection",
    "TriangularSection",
    "UnitSystem",
    "ValidationError",
    "ValidationIssue",
    "calculate_channel_hydraulics",
    "calculate_hydraulics",
    "design_from_mapping",
    "evaluate_culvert_scenarios",
    "find_bracket",
    "generate_rating_curve",
    "hydraulic_properties",
    "load_design_from_json",
    "material_properties",
    "pipe_options_dataframe",
    "pipe_sizes",
    "scenarios_dataframe",
    "solve_brent",
    "solve_newton_raphson",
    "solve_robust",
]
