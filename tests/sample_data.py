"""Shared sample data structures used across tests."""

from __future__ import annotations

import json

from hydraulic_design import (
    ChannelInputs,
    CulvertMaterial,
    CulvertParameters,
    CulvertShape,
    CulvertSize,
    EntranceType,
    PipeFitting,
    PipeMaterial,
    PipeSizingInputs,
    RectangularSection,
    UnitSystem,
)
from hydraulic_design.type_helpers import FittingType

CHANNEL_MAPPING: dict[str, object] = {
    "analysis": "channel",
    "units": "metric",
    "parameters": {
        "flow_rate": 10.0,
        "channel_slope": 0.001,
        "manning_n": 0.013,
        "geometry": {"shape": "rectangular", "bottom_width": 5.0},
    },
    "options": {"solver": {"tolerance": 1e-8}, "rating_curve_points": 5},
}

CULVERT_MAPPING: dict[str, object] = {
    "analysis": "culvert",
    "units": "imperial",
    "parameters": {
        "design_flow": 50.0,
        "upstream_invert": 100.0,
        "downstream_invert": 99.5,
        "culvert_length": 100.0,
        "max_headwater": 5.0,
        "material": "concrete",
        "entrance_type": "headwall",
        "tailwater_rating_curve": [{"flow": 10.0, "depth": 0.5}, {"flow": 100.0, "depth": 1.5}],
    },
    "options": {"max_per_shape": 3},
}

PIPE_MAPPING: dict[str, object] = {
    "analysis": "pipe",
    "units": "imperial",
    "parameters": {
        "design_flow": 500.0,
        "pipe_length": 1000.0,
        "preferred_materials": ["pvc"],
        "fittings": [{"type": "elbow-90", "quantity": 2}],
    },
    "options": {"method": "hazen-williams"},
}

CONFIG_JSON: str = json.dumps(CULVERT_MAPPING, indent=2)


class ListCatalog:
    """Size catalog returning a fixed list for one shape and nothing else."""

    def __init__(self, sizes: list[CulvertSize], shape: CulvertShape = CulvertShape.CIRCULAR) -> None:
        self.sizes: list[CulvertSize] = sizes
        self.shape: CulvertShape = shape
        self.calls: int = 0

    def get_available_sizes(
        self, material: CulvertMaterial, shape: CulvertShape, units: UnitSystem = UnitSystem.IMPERIAL
    ) -> list[CulvertSize]:
        self.calls += 1
        return list(self.sizes) if shape is self.shape else []


def build_channel_inputs(**overrides: object) -> ChannelInputs:
    """Rectangular 5 m channel carrying 10 m³/s on a 0.1% slope."""

    values: dict[str, object] = {
        "flow_rate": 10.0,
        "channel_slope": 0.001,
        "manning_n": 0.013,
        "geometry": RectangularSection(bottom_width=5.0),
        "units": UnitSystem.METRIC,
    }
    values.update(overrides)
    return ChannelInputs(**values)  # type: ignore[arg-type]


def build_culvert_params(**overrides: object) -> CulvertParameters:
    """Single concrete barrel, 50 cfs, headwall entrance, no skew."""

    values: dict[str, object] = {
        "design_flow": 50.0,
        "upstream_invert": 100.0,
        "downstream_invert": 99.5,
        "culvert_length": 100.0,
        "max_headwater": 5.0,
        "material": CulvertMaterial.CONCRETE,
        "entrance_type": EntranceType.HEADWALL,
        "units": UnitSystem.IMPERIAL,
    }
    values.update(overrides)
    return CulvertParameters(**values)  # type: ignore[arg-type]


def build_pipe_inputs(**overrides: object) -> PipeSizingInputs:
    """500 gpm through 1000 ft of PVC with two 90° elbows."""

    values: dict[str, object] = {
        "design_flow": 500.0,
        "pipe_length": 1000.0,
        "preferred_materials": (PipeMaterial.PVC,),
        "fittings": (PipeFitting(type=FittingType.ELBOW_90, quantity=2),),
        "units": UnitSystem.IMPERIAL,
    }
    values.update(overrides)
    return PipeSizingInputs(**values)  # type: ignore[arg-type]
