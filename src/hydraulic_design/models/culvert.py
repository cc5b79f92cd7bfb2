"""Culvert crossing design parameters and catalog sizes."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .base import Validatable, normalize_mapping, normalize_sequence, optional_float
from ..classes_references import UnitSystem
from ..geometry import ArchSection, BoxSection, CircularSection, CrossSection
from ..results import ValidationIssue, error, warning
from ..type_helpers import CulvertMaterial, CulvertShape, EntranceType, coerce_enum

MIN_SLOPE = 0.001
MAX_SLOPE = 0.1
MAX_BLOCKAGE = 0.5
MAX_SKEW_DEGREES = 45.0
MAX_BARRELS = 6


def _label(dimension: float | None) -> str:
    return "?" if dimension is None else f"{dimension:g}"


@dataclass(frozen=True, slots=True)
class RatingCurvePoint:
    """Single tailwater rating curve point."""

    flow: float
    depth: float


@dataclass(frozen=True, slots=True)
class FishPassageCriteria:
    """Low-flow limits that a barrel must satisfy for aquatic passage."""

    low_flow_velocity: float
    low_flow_depth: float
    baffles: bool = False


@dataclass(frozen=True, slots=True)
class CulvertSize:
    """Catalog entry for a culvert barrel.

    Only the dimensions relevant to `shape` are populated: ``diameter`` for
    circular barrels, ``width``/``height`` for boxes and ``span``/``rise`` for
    arches.
    """

    shape: CulvertShape
    area: float
    diameter: float | None = None
    width: float | None = None
    height: float | None = None
    span: float | None = None
    rise: float | None = None

    @classmethod
    def circular(cls, diameter: float) -> "CulvertSize":
        return cls(shape=CulvertShape.CIRCULAR, diameter=diameter, area=math.pi * diameter * diameter / 4)

    @classmethod
    def box(cls, width: float, height: float) -> "CulvertSize":
        return cls(shape=CulvertShape.BOX, width=width, height=height, area=width * height)

    @classmethod
    def arch(cls, span: float, rise: float, area: float) -> "CulvertSize":
        return cls(shape=CulvertShape.ARCH, span=span, rise=rise, area=area)

    @property
    def rise_dimension(self) -> float:
        """Vertical opening used to normalise headwater (D, H or rise)."""
        return self.diameter or self.height or self.rise or 1.0

    def section(self) -> CrossSection:
        """Return the matching cross-section geometry."""

        if self.shape is CulvertShape.CIRCULAR:
            return CircularSection(diameter=float(self.diameter or 0.0))
        if self.shape is CulvertShape.BOX:
            return BoxSection(width=float(self.width or 0.0), height=float(self.height or 0.0))
        return ArchSection(span=float(self.span or 0.0), rise=float(self.rise or 0.0))

    def dimensions(self) -> tuple[float | None, ...]:
        return self.diameter, self.width, self.height, self.span, self.rise

    def describe(self) -> str:
        if self.shape is CulvertShape.CIRCULAR:
            return f"{_label(self.diameter)} circular"
        if self.shape is CulvertShape.BOX:
            return f"{_label(self.width)} x {_label(self.height)} box"
        return f"{_label(self.span)} x {_label(self.rise)} arch"

    def __str__(self) -> str:
        return self.describe()

    def to_dict(self) -> dict[str, Any]:
        return {
            "shape": self.shape.value,
            "area": self.area,
            "diameter": self.diameter,
            "width": self.width,
            "height": self.height,
            "span": self.span,
            "rise": self.rise,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CulvertSize":
        return cls(
            shape=coerce_enum(CulvertShape, data.get("shape"), default=CulvertShape.CIRCULAR),
            area=float(data.get("area", 0.0)),
            diameter=optional_float(data, "diameter"),
            width=optional_float(data, "width"),
            height=optional_float(data, "height"),
            span=optional_float(data, "span"),
            rise=optional_float(data, "rise"),
        )


@dataclass(frozen=True, slots=True)
class CulvertParameters(Validatable):
    """Site, flow and barrel description for one culvert crossing."""

    design_flow: float
    upstream_invert: float
    downstream_invert: float
    culvert_length: float
    max_headwater: float
    material: CulvertMaterial = CulvertMaterial.CONCRETE
    entrance_type: EntranceType = EntranceType.HEADWALL
    skew_angle: float = 0.0
    blockage_factor: float = 0.0
    multiple_culverts: int = 1
    unequal_distribution_factor: float | None = None
    min_cover_depth: float | None = None
    tailwater_rating_curve: tuple[RatingCurvePoint, ...] = ()
    fish_passage: FishPassageCriteria | None = None
    units: UnitSystem = UnitSystem.IMPERIAL

    @property
    def slope(self) -> float:
        """Barrel slope derived from the invert elevations."""

        if self.culvert_length <= 0:
            return 0.0
        return (self.upstream_invert - self.downstream_invert) / self.culvert_length

    def describe(self) -> str:
        return (
            f"CulvertParameters(Q={self.design_flow:g} {self.units.flow_label}, L={self.culvert_length:g}, "
            f"material={self.material.value}, entrance={self.entrance_type.value})"
        )

    def __str__(self) -> str:
        return self.describe()

    def to_dict(self) -> dict[str, Any]:
        return {
            "design_flow": self.design_flow,
            "upstream_invert": self.upstream_invert,
            "downstream_invert": self.downstream_invert,
            "culvert_length": self.culvert_length,
            "max_headwater": self.max_headwater,
            "material": self.material.value,
            "entrance_type": self.entrance_type.value,
            "skew_angle": self.skew_angle,
            "blockage_factor": self.blockage_factor,
            "multiple_culverts": self.multiple_culverts,
            "unequal_distribution_factor": self.unequal_distribution_factor,
            "min_cover_depth": self.min_cover_depth,
            "tailwater_rating_curve": [
                {"flow": point.flow, "depth": point.depth} for point in self.tailwater_rating_curve
            ],
            "fish_passage": (
                {
                    "low_flow_velocity": self.fish_passage.low_flow_velocity,
                    "low_flow_depth": self.fish_passage.low_flow_depth,
                    "baffles": self.fish_passage.baffles,
                }
                if self.fish_passage is not None
                else None
            ),
            "units": self.units.flag,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], units: UnitSystem | None = None) -> "CulvertParameters":
        curve: list[RatingCurvePoint] = []
        for entry in normalize_sequence(data.get("tailwater_rating_curve")):
            point: Mapping[str, Any] = normalize_mapping(entry)
            if not point:
                raise ValueError("Tailwater rating curve entries must be objects with 'flow' and 'depth'.")
            curve.append(RatingCurvePoint(flow=float(point["flow"]), depth=float(point["depth"])))

        fish_raw: Mapping[str, Any] = normalize_mapping(data.get("fish_passage"))
        fish: FishPassageCriteria | None = None
        if fish_raw:
            fish = FishPassageCriteria(
                low_flow_velocity=float(fish_raw.get("low_flow_velocity", 0.0)),
                low_flow_depth=float(fish_raw.get("low_flow_depth", 0.0)),
                baffles=bool(fish_raw.get("baffles", False)),
            )

        return cls(
            design_flow=float(data.get("design_flow", 0.0)),
            upstream_invert=float(data.get("upstream_invert", 0.0)),
            downstream_invert=float(data.get("downstream_invert", 0.0)),
            culvert_length=float(data.get("culvert_length", 0.0)),
            max_headwater=float(data.get("max_headwater", 0.0)),
            material=coerce_enum(CulvertMaterial, data.get("material"), default=CulvertMaterial.CONCRETE),
            entrance_type=coerce_enum(EntranceType, data.get("entrance_type"), default=EntranceType.HEADWALL),
            skew_angle=float(data.get("skew_angle", 0.0)),
            blockage_factor=float(data.get("blockage_factor", 0.0)),
            multiple_culverts=int(data.get("multiple_culverts", 1)),
            unequal_distribution_factor=optional_float(data, "unequal_distribution_factor"),
            min_cover_depth=optional_float(data, "min_cover_depth"),
            tailwater_rating_curve=tuple(curve),
            fish_passage=fish,
            units=units or UnitSystem.parse(data.get("units", UnitSystem.IMPERIAL.flag)),
        )

    def validate(self, prefix: str = "") -> list[ValidationIssue]:
        metric: bool = self.units is UnitSystem.METRIC
        max_flow: float = 1000.0 if metric else 35000.0
        max_length: float = 200.0 if metric else 650.0
        min_cover: float = 0.3 if metric else 1.0

        issues: list[ValidationIssue] = []
        if self.design_flow <= 0:
            issues.append(error(f"{prefix}design_flow", "Design flow must be greater than 0"))
        elif self.design_flow > max_flow:
            issues.append(error(f"{prefix}design_flow", f"Design flow exceeds reasonable limit ({max_flow:g})"))
        if self.culvert_length <= 0:
            issues.append(error(f"{prefix}culvert_length", "Culvert length must be greater than 0"))
        elif self.culvert_length > max_length:
            issues.append(
                error(f"{prefix}culvert_length", f"Culvert length exceeds reasonable limit ({max_length:g})")
            )
        if self.upstream_invert <= self.downstream_invert:
            issues.append(
                error(f"{prefix}upstream_invert", "Upstream invert must be higher than downstream invert")
            )
        elif self.culvert_length > 0 and not MIN_SLOPE <= self.slope <= MAX_SLOPE:
            issues.append(
                error(
                    f"{prefix}slope",
                    f"Culvert slope {self.slope:.4f} is outside the allowed range [{MIN_SLOPE}, {MAX_SLOPE}]",
                )
            )
        if self.max_headwater <= 0:
            issues.append(error(f"{prefix}max_headwater", "Maximum headwater must be greater than 0"))
        if not 0 <= self.blockage_factor <= MAX_BLOCKAGE:
            issues.append(error(f"{prefix}blockage_factor", f"Blockage factor must be between 0 and {MAX_BLOCKAGE}"))
        if not 0 <= self.skew_angle <= MAX_SKEW_DEGREES:
            issues.append(error(f"{prefix}skew_angle", f"Skew angle must be between 0 and {MAX_SKEW_DEGREES:g} degrees"))
        if not 1 <= self.multiple_culverts <= MAX_BARRELS:
            issues.append(error(f"{prefix}multiple_culverts", f"Number of barrels must be between 1 and {MAX_BARRELS}"))
        if self.unequal_distribution_factor is not None and self.unequal_distribution_factor <= 0:
            issues.append(
                error(f"{prefix}unequal_distribution_factor", "Unequal distribution factor must be greater than 0")
            )
        if self.min_cover_depth is not None and self.min_cover_depth < min_cover:
            issues.append(
                warning(
                    f"{prefix}min_cover_depth",
                    f"Minimum cover depth is below the recommended minimum ({min_cover:g})",
                )
            )
        for index, point in enumerate(self.tailwater_rating_curve):
            if point.flow < 0 or point.depth < 0:
                issues.append(
                    error(f"{prefix}tailwater_rating_curve[{index}]", "Rating curve values must be non-negative")
                )
        return issues
