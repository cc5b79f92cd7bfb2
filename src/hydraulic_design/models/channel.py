"""Design inputs for an open channel."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .base import Validatable, normalize_mapping
from ..classes_references import UnitSystem
from ..geometry import CrossSection, TrapezoidalSection, section_from_dict, validate_geometry
from ..manning import validate_manning_n
from ..results import ValidationIssue, error, warning


@dataclass(frozen=True, slots=True)
class ChannelInputs(Validatable):
    """Uniform-flow design request for a prismatic channel."""

    flow_rate: float
    channel_slope: float
    manning_n: float
    geometry: CrossSection
    units: UnitSystem = UnitSystem.METRIC

    def describe(self) -> str:
        return (
            f"ChannelInputs(shape={self.geometry.shape.value}, Q={self.flow_rate:g} {self.units.flow_label}, "
            f"S={self.channel_slope:g}, n={self.manning_n:g})"
        )

    def __str__(self) -> str:
        return self.describe()

    def to_dict(self) -> dict[str, Any]:
        return {
            "flow_rate": self.flow_rate,
            "channel_slope": self.channel_slope,
            "manning_n": self.manning_n,
            "geometry": self.geometry.to_dict(),
            "units": self.units.flag,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], units: UnitSystem | None = None) -> "ChannelInputs":
        return cls(
            flow_rate=float(data.get("flow_rate", 0.0)),
            channel_slope=float(data.get("channel_slope", 0.0)),
            manning_n=float(data.get("manning_n", 0.0)),
            geometry=section_from_dict(normalize_mapping(data.get("geometry"))),
            units=units or UnitSystem.parse(data.get("units", UnitSystem.METRIC.flag)),
        )

    def validate(self, prefix: str = "") -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        if self.flow_rate <= 0:
            issues.append(error(f"{prefix}flow_rate", "Flow rate must be greater than 0"))
        if self.channel_slope <= 0:
            issues.append(error(f"{prefix}channel_slope", "Channel slope must be greater than 0"))
        elif self.channel_slope > 0.1:
            issues.append(warning(f"{prefix}channel_slope", "Channel slope is very steep (> 10%)"))
        _, roughness_note = validate_manning_n(self.manning_n)
        if self.manning_n <= 0:
            issues.append(error(f"{prefix}manning_n", "Manning's n must be greater than 0"))
        elif roughness_note is not None:
            issues.append(warning(f"{prefix}manning_n", roughness_note))
        issues.extend(validate_geometry(self.geometry, prefix=f"{prefix}geometry"))
        if isinstance(self.geometry, TrapezoidalSection) and self.geometry.side_slope > 10:
            issues.append(warning(f"{prefix}geometry.side_slope", "Side slope is very flat (> 10:1)"))
        return issues
