"""Helpers for loading design requests from configuration files."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Union, cast

import json

from .catalog import find_pipe_size
from .classes_references import UnitSystem
from .manning import ManningCoefficient, find_manning_coefficient
from .models import ChannelInputs, CulvertParameters, PipeSize, PipeSizingInputs
from .open_channel import DEFAULT_FREEBOARD, FreeboardPolicy
from .scenarios import DEFAULT_WEIGHTS, ScoreWeights
from .solver import SolverOptions
from .type_helpers import AnalysisType, CalculationMethod, PipeMaterial, coerce_enum

JSONMapping = Mapping[str, Any]
DesignParameters = Union[ChannelInputs, CulvertParameters, PipeSizingInputs]


@dataclass(frozen=True, slots=True)
class DesignOptions:
    """Per-request overrides of the engineering policy defaults."""

    solver: SolverOptions = field(default_factory=SolverOptions)
    freeboard: FreeboardPolicy = DEFAULT_FREEBOARD
    method: CalculationMethod = CalculationMethod.HAZEN_WILLIAMS
    weights: ScoreWeights = DEFAULT_WEIGHTS
    max_per_shape: int | None = None
    rating_curve_points: int = 0
    pipe_size: PipeSize | None = None


@dataclass(frozen=True, slots=True)
class DesignRequest:
    analysis: AnalysisType
    units: UnitSystem
    parameters: DesignParameters
    options: DesignOptions = field(default_factory=DesignOptions)


def load_design_from_json(path: Path) -> DesignRequest:
    """Read a JSON file from disk and create a `DesignRequest`."""

    raw_data: Any = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw_data, Mapping):
        raise ValueError("Top-level JSON document must be an object.")
    data: JSONMapping = cast(JSONMapping, raw_data)
    return design_from_mapping(data)


def design_from_mapping(config: JSONMapping) -> DesignRequest:
    """Build a DesignRequest from the parsed configuration mapping."""

    analysis_raw: Any = config.get("analysis")
    if analysis_raw is None:
        raise ValueError("Configuration must name an 'analysis' (channel, culvert or pipe).")
    try:
        analysis: AnalysisType = coerce_enum(AnalysisType, analysis_raw, default=AnalysisType.CHANNEL)
    except ValueError as exc:
        raise ValueError(f"Unsupported analysis '{analysis_raw}'") from exc

    default_units: UnitSystem = UnitSystem.METRIC if analysis is AnalysisType.CHANNEL else UnitSystem.IMPERIAL
    units: UnitSystem = UnitSystem.parse(config.get("units", default_units.flag))
    parameters: JSONMapping = _require_mapping(config, "parameters")
    options: DesignOptions = options_from_mapping(_optional_mapping(config, "options"), units)

    design: DesignParameters
    if analysis is AnalysisType.CHANNEL:
        design = channel_from_mapping(parameters, units)
    elif analysis is AnalysisType.CULVERT:
        design = culvert_from_mapping(parameters, units)
    else:
        design = pipe_from_mapping(parameters, units)
    return DesignRequest(analysis=analysis, units=units, parameters=design, options=options)


def channel_from_mapping(entry: JSONMapping, units: UnitSystem) -> ChannelInputs:
    """Build channel inputs; ``lining_material`` may stand in for ``manning_n``."""

    if not isinstance(entry.get("geometry"), Mapping):
        raise ValueError("Channel parameters require a 'geometry' object.")
    if "manning_n" not in entry and "lining_material" in entry:
        coefficient: ManningCoefficient | None = find_manning_coefficient(str(entry["lining_material"]))
        if coefficient is None:
            raise ValueError(f"Unknown lining material '{entry['lining_material']}'")
        entry = {**entry, "manning_n": coefficient.n}
    _require_numbers(entry, ("flow_rate", "channel_slope", "manning_n"), context="channel")
    return ChannelInputs.from_dict(entry, units=units)


def culvert_from_mapping(entry: JSONMapping, units: UnitSystem) -> CulvertParameters:
    _require_numbers(
        entry,
        ("design_flow", "upstream_invert", "downstream_invert", "culvert_length", "max_headwater"),
        context="culvert",
    )
    return CulvertParameters.from_dict(entry, units=units)


def pipe_from_mapping(entry: JSONMapping, units: UnitSystem) -> PipeSizingInputs:
    _require_numbers(entry, ("design_flow", "pipe_length"), context="pipe")
    return PipeSizingInputs.from_dict(entry, units=units)


def options_from_mapping(entry: JSONMapping, units: UnitSystem) -> DesignOptions:
    """
    Parse the optional ``options`` block.

    Args:
        entry: The dictionary representing the options configuration.
        units: Unit system of the request; an explicit pipe size is converted to it.

    Returns:
        A populated DesignOptions object.
    """
    solver_data: JSONMapping = _optional_mapping(entry, "solver")
    defaults = SolverOptions()
    solver = SolverOptions(
        tolerance=float(solver_data.get("tolerance", defaults.tolerance)),
        max_iterations=int(solver_data.get("max_iterations", defaults.max_iterations)),
    )

    max_per_shape_raw: Any = entry.get("max_per_shape")
    max_per_shape: int | None = int(max_per_shape_raw) if max_per_shape_raw is not None else None
    if max_per_shape is not None and max_per_shape < 1:
        raise ValueError("'max_per_shape' must be at least 1")

    rating_points: int = int(entry.get("rating_curve_points", 0))
    if rating_points < 0:
        raise ValueError("'rating_curve_points' must not be negative")

    try:
        method: CalculationMethod = coerce_enum(
            CalculationMethod, entry.get("method"), default=CalculationMethod.HAZEN_WILLIAMS
        )
    except ValueError as exc:
        raise ValueError(f"Unsupported calculation method '{entry.get('method')}'") from exc

    return DesignOptions(
        solver=solver,
        freeboard=_dataclass_overrides(FreeboardPolicy, _optional_mapping(entry, "freeboard"), DEFAULT_FREEBOARD),
        method=method,
        weights=_dataclass_overrides(ScoreWeights, _optional_mapping(entry, "weights"), DEFAULT_WEIGHTS),
        max_per_shape=max_per_shape,
        rating_curve_points=rating_points,
        pipe_size=_parse_pipe_size(_optional_mapping(entry, "pipe_size"), units),
    )


def _parse_pipe_size(entry: JSONMapping, units: UnitSystem) -> PipeSize | None:
    """Resolve a catalogue size by material and nominal inches, or a custom size."""

    if not entry:
        return None
    if "area" in entry:
        return PipeSize.from_dict(entry, units=units)
    material: PipeMaterial = coerce_enum(PipeMaterial, entry.get("material"), default=PipeMaterial.PVC)
    nominal: float = float(_require_value(entry, "nominal_diameter", context="pipe_size"))
    size: PipeSize | None = find_pipe_size(nominal, material)
    if size is None:
        raise ValueError(f"No catalogued {material.value} pipe with nominal diameter {nominal:g} in")
    return size.to_units(units)


def _dataclass_overrides(cls: type[Any], entry: JSONMapping, default: Any) -> Any:
    known: set[str] = {item.name for item in fields(cls)}
    unknown: list[str] = sorted(set(entry) - known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} option(s): {', '.join(unknown)}")
    values: dict[str, Any] = {name: getattr(default, name) for name in known}
    values.update({key: float(value) for key, value in entry.items()})
    return cls(**values)


def _require_mapping(entry: JSONMapping, key: str) -> JSONMapping:
    value: Any = entry.get(key)
    if not isinstance(value, Mapping):
        raise ValueError(f"'{key}' section must be an object.")
    return cast(JSONMapping, value)


def _optional_mapping(entry: JSONMapping, key: str) -> JSONMapping:
    value: Any = entry.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{key}' section must be an object.")
    return cast(JSONMapping, value)


def _require_value(entry: JSONMapping, key: str, context: str) -> Any:
    if key not in entry:
        raise ValueError(f"Missing '{key}' in {context}")
    return entry[key]


def _require_numbers(entry: JSONMapping, keys: tuple[str, ...], context: str) -> None:
    for key in keys:
        value: Any = _require_value(entry, key, context)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"'{key}' in {context} must be a number")


__all__: list[str] = [
    "DesignOptions",
    "DesignRequest",
    "channel_from_mapping",
    "culvert_from_mapping",
    "design_from_mapping",
    "load_design_from_json",
    "options_from_mapping",
    "pipe_from_mapping",
]
