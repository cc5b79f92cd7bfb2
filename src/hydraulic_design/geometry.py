"""Cross-section geometry for channels and closed conduits.

Every section type is a small frozen dataclass that only carries the
dimensions relevant to its shape. `hydraulic_properties` dispatches on the
section type and returns a `HydraulicProperties` record for a given depth.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from .results import ValidationIssue, error
from .type_helpers import ChannelShape, coerce_enum

PRACTICAL_MAX_DEPTH = 50.0
_ARC_INTERVALS = 64


@dataclass(frozen=True, slots=True)
class RectangularSection:
    bottom_width: float
    shape: ClassVar[ChannelShape] = ChannelShape.RECTANGULAR

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "bottom_width": self.bottom_width}


@dataclass(frozen=True, slots=True)
class TrapezoidalSection:
    bottom_width: float
    side_slope: float
    shape: ClassVar[ChannelShape] = ChannelShape.TRAPEZOIDAL

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "bottom_width": self.bottom_width, "side_slope": self.side_slope}


@dataclass(frozen=True, slots=True)
class TriangularSection:
    side_slope: float
    shape: ClassVar[ChannelShape] = ChannelShape.TRIANGULAR

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "side_slope": self.side_slope}


@dataclass(frozen=True, slots=True)
class CircularSection:
    diameter: float
    shape: ClassVar[ChannelShape] = ChannelShape.CIRCULAR

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "diameter": self.diameter}


@dataclass(frozen=True, slots=True)
class BoxSection:
    """Rectangular closed conduit; partially full flow behaves like a rectangle."""

    width: float
    height: float
    shape: ClassVar[ChannelShape] = ChannelShape.BOX

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class ArchSection:
    """Flat-bottomed arch idealised as the upper half of an ellipse.

    The invert is the full span wide and the crown sits ``rise`` above it.
    """

    span: float
    rise: float
    shape: ClassVar[ChannelShape] = ChannelShape.ARCH

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "span": self.span, "rise": self.rise}


CrossSection = Union[
    RectangularSection,
    TrapezoidalSection,
    TriangularSection,
    CircularSection,
    BoxSection,
    ArchSection,
]


@dataclass(frozen=True, slots=True)
class HydraulicProperties:
    """Depth-dependent section properties.

    Attributes:
        depth: Flow depth the properties were evaluated at.
        area: Flow area.
        wetted_perimeter: Wetted perimeter.
        hydraulic_radius: ``area / wetted_perimeter``.
        top_width: Free-surface width.
        hydraulic_depth: ``area / top_width``; infinite when the top width is zero
            (a closed conduit flowing exactly full).
    """

    depth: float
    area: float
    wetted_perimeter: float
    hydraulic_radius: float
    top_width: float
    hydraulic_depth: float


def maximum_depth(section: CrossSection) -> float:
    """Return the deepest physically meaningful depth for ``section``."""

    if isinstance(section, CircularSection):
        return section.diameter
    if isinstance(section, BoxSection):
        return section.height
    if isinstance(section, ArchSection):
        return section.rise
    return PRACTICAL_MAX_DEPTH


def hydraulic_properties(section: CrossSection, depth: float) -> HydraulicProperties:
    """Compute area, perimeter and derived properties of ``section`` at ``depth``.

    Raises:
        ValueError: If a dimension or the depth is not positive, or if the depth
            exceeds the height of a closed section.
    """

    if not depth > 0:
        raise ValueError(f"Depth must be positive, got {depth}")
    _require_positive_dimensions(section)

    area: float
    perimeter: float
    top_width: float
    if isinstance(section, RectangularSection):
        area = section.bottom_width * depth
        perimeter = section.bottom_width + 2 * depth
        top_width = section.bottom_width
    elif isinstance(section, TrapezoidalSection):
        b, z = section.bottom_width, section.side_slope
        area = (b + z * depth) * depth
        perimeter = b + 2 * depth * math.sqrt(1 + z * z)
        top_width = b + 2 * z * depth
    elif isinstance(section, TriangularSection):
        z = section.side_slope
        area = z * depth * depth
        perimeter = 2 * depth * math.sqrt(1 + z * z)
        top_width = 2 * z * depth
    elif isinstance(section, CircularSection):
        area, perimeter, top_width = _circular(section.diameter, depth)
    elif isinstance(section, BoxSection):
        if depth > section.height:
            raise ValueError(f"Depth {depth} exceeds box height {section.height}")
        area = section.width * depth
        perimeter = section.width + 2 * depth
        top_width = section.width
    elif isinstance(section, ArchSection):
        area, perimeter, top_width = _arch(section.span, section.rise, depth)
    else:
        raise TypeError(f"Unsupported cross section {type(section).__name__}")

    return _finish(depth, area, perimeter, top_width)


def _finish(depth: float, area: float, perimeter: float, top_width: float) -> HydraulicProperties:
    hydraulic_radius: float = area / perimeter if perimeter > 0 else 0.0
    hydraulic_depth: float = area / top_width if top_width > 0 else math.inf
    return HydraulicProperties(
        depth=depth,
        area=area,
        wetted_perimeter=perimeter,
        hydraulic_radius=hydraulic_radius,
        top_width=top_width,
        hydraulic_depth=hydraulic_depth,
    )


def _circular(diameter: float, depth: float) -> tuple[float, float, float]:
    if depth > diameter:
        raise ValueError(f"Depth {depth} exceeds pipe diameter {diameter}")
    radius: float = diameter / 2
    cos_half: float = max(-1.0, min(1.0, (radius - depth) / radius))
    theta: float = 2 * math.acos(cos_half)
    area: float = radius * radius / 2 * (theta - math.sin(theta))
    perimeter: float = radius * theta
    top_width: float = 2 * math.sqrt(max(depth * (diameter - depth), 0.0))
    return area, perimeter, top_width


def _arch(span: float, rise: float, depth: float) -> tuple[float, float, float]:
    if depth > rise:
        raise ValueError(f"Depth {depth} exceeds arch rise {rise}")
    ratio: float = min(depth / rise, 1.0)
    root: float = math.sqrt(1 - ratio * ratio)
    area: float = span * rise / 2 * (ratio * root + math.asin(ratio))
    top_width: float = span * root

    # wall length from the springline up to the water surface, Simpson's rule
    half_span: float = span / 2
    t_end: float = math.asin(ratio)
    step: float = t_end / _ARC_INTERVALS
    total: float = 0.0
    for index in range(_ARC_INTERVALS + 1):
        t: float = index * step
        weight: int = 1 if index in (0, _ARC_INTERVALS) else (4 if index % 2 else 2)
        total += weight * math.hypot(half_span * math.sin(t), rise * math.cos(t))
    wall: float = total * step / 3
    return area, span + 2 * wall, top_width


def _require_positive_dimensions(section: CrossSection) -> None:
    problems: list[ValidationIssue] = validate_geometry(section)
    if problems:
        raise ValueError("; ".join(issue.message for issue in problems))


def validate_geometry(section: CrossSection, prefix: str = "geometry") -> list[ValidationIssue]:
    """Return field-tagged errors for non-physical dimensions."""

    issues: list[ValidationIssue] = []

    def positive(name: str, value: float, label: str) -> None:
        if not value > 0:
            issues.append(error(f"{prefix}.{name}", f"{label} must be greater than 0"))

    if isinstance(section, RectangularSection):
        positive("bottom_width", section.bottom_width, "Bottom width")
    elif isinstance(section, TrapezoidalSection):
        positive("bottom_width", section.bottom_width, "Bottom width")
        if section.side_slope < 0:
            issues.append(error(f"{prefix}.side_slope", "Side slope must be non-negative"))
    elif isinstance(section, TriangularSection):
        positive("side_slope", section.side_slope, "Side slope")
    elif isinstance(section, CircularSection):
        positive("diameter", section.diameter, "Diameter")
    elif isinstance(section, BoxSection):
        positive("width", section.width, "Width")
        positive("height", section.height, "Height")
    elif isinstance(section, ArchSection):
        positive("span", section.span, "Span")
        positive("rise", section.rise, "Rise")
    return issues


def optimal_trapezoidal_section(area: float, side_slope: float) -> TrapezoidalSection:
    """Return the best hydraulic trapezoid (minimum perimeter) for ``area``."""

    if area <= 0:
        raise ValueError("Area must be greater than 0")
    if side_slope < 0:
        raise ValueError("Side slope must be non-negative")
    secant: float = math.sqrt(1 + side_slope * side_slope)
    depth: float = math.sqrt(area / (2 * secant - side_slope))
    return TrapezoidalSection(bottom_width=2 * depth * (secant - side_slope), side_slope=side_slope)


def section_from_dict(data: Mapping[str, Any]) -> CrossSection:
    """Build a cross section from a mapping with a ``shape`` key."""

    shape: ChannelShape = coerce_enum(ChannelShape, data.get("shape"), default=ChannelShape.RECTANGULAR)
    try:
        if shape is ChannelShape.RECTANGULAR:
            return RectangularSection(bottom_width=float(data["bottom_width"]))
        if shape is ChannelShape.TRAPEZOIDAL:
            return TrapezoidalSection(
                bottom_width=float(data["bottom_width"]), side_slope=float(data["side_slope"])
            )
        if shape is ChannelShape.TRIANGULAR:
            return TriangularSection(side_slope=float(data["side_slope"]))
        if shape is ChannelShape.CIRCULAR:
            return CircularSection(diameter=float(data["diameter"]))
        if shape is ChannelShape.BOX:
            return BoxSection(width=float(data["width"]), height=float(data["height"]))
        return ArchSection(span=float(data["span"]), rise=float(data["rise"]))
    except KeyError as exc:
        raise ValueError(f"{shape.value} geometry requires '{exc.args[0]}'") from exc


__all__: list[str] = [
    "ArchSection",
    "BoxSection",
    "CircularSection",
    "CrossSection",
    "HydraulicProperties",
    "RectangularSection",
    "TrapezoidalSection",
    "TriangularSection",
    "hydraulic_properties",
    "maximum_depth",
    "optimal_trapezoidal_section",
    "section_from_dict",
    "validate_geometry",
]
