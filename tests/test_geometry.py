"""Section properties for open channels and closed conduits."""

from __future__ import annotations

import math

import pytest

from hydraulic_design.geometry import (
    ArchSection,
    BoxSection,
    CircularSection,
    CrossSection,
    HydraulicProperties,
    RectangularSection,
    TrapezoidalSection,
    TriangularSection,
    hydraulic_properties,
    maximum_depth,
    optimal_trapezoidal_section,
    section_from_dict,
    validate_geometry,
)
from hydraulic_design.results import ValidationIssue

SECTIONS: list[tuple[CrossSection, float]] = [
    (RectangularSection(bottom_width=5.0), 2.0),
    (TrapezoidalSection(bottom_width=2.0, side_slope=1.5), 1.0),
    (TriangularSection(side_slope=2.0), 1.0),
    (CircularSection(diameter=2.0), 0.7),
    (BoxSection(width=3.0, height=2.0), 1.5),
    (ArchSection(span=4.0, rise=2.5), 1.2),
]


@pytest.mark.parametrize(("section", "depth"), SECTIONS)
def test_derived_properties_are_consistent(section: CrossSection, depth: float) -> None:
    props: HydraulicProperties = hydraulic_properties(section, depth)
    assert props.depth == depth
    assert props.area > 0
    assert props.wetted_perimeter > 0
    assert props.hydraulic_radius == pytest.approx(props.area / props.wetted_perimeter)
    assert props.hydraulic_depth == pytest.approx(props.area / props.top_width)


def test_rectangle_and_trapezoid_formulas() -> None:
    rectangle: HydraulicProperties = hydraulic_properties(RectangularSection(bottom_width=5.0), 2.0)
    assert (rectangle.area, rectangle.wetted_perimeter, rectangle.top_width) == (10.0, 9.0, 5.0)

    trapezoid: HydraulicProperties = hydraulic_properties(TrapezoidalSection(bottom_width=2.0, side_slope=1.5), 1.0)
    assert trapezoid.area == pytest.approx(3.5)
    assert trapezoid.wetted_perimeter == pytest.approx(2.0 + 2.0 * math.sqrt(3.25))
    assert trapezoid.top_width == pytest.approx(5.0)


def test_circular_half_and_full() -> None:
    half: HydraulicProperties = hydraulic_properties(CircularSection(diameter=2.0), 1.0)
    assert half.area == pytest.approx(math.pi / 2)
    assert half.wetted_perimeter == pytest.approx(math.pi)
    assert half.top_width == pytest.approx(2.0)

    full: HydraulicProperties = hydraulic_properties(CircularSection(diameter=2.0), 2.0)
    assert full.area == pytest.approx(math.pi)
    assert full.hydraulic_radius == pytest.approx(0.5)
    assert full.top_width == pytest.approx(0.0, abs=1e-12)
    assert math.isinf(full.hydraulic_depth)


def test_arch_full_area_is_half_ellipse() -> None:
    full: HydraulicProperties = hydraulic_properties(ArchSection(span=4.0, rise=2.5), 2.5)
    assert full.area == pytest.approx(math.pi * 4.0 * 2.5 / 4)
    assert full.top_width == pytest.approx(0.0, abs=1e-12)
    # invert plus both walls of a semi-ellipse
    assert 4.0 + 2 * 2.5 < full.wetted_perimeter < 4.0 + 2 * (2.0 + 2.5)


def test_depth_must_be_positive() -> None:
    with pytest.raises(ValueError, match="Depth must be positive"):
        hydraulic_properties(RectangularSection(bottom_width=5.0), 0.0)


def test_closed_sections_reject_overfull_depth() -> None:
    with pytest.raises(ValueError, match="exceeds box height"):
        hydraulic_properties(BoxSection(width=3.0, height=2.0), 2.5)
    with pytest.raises(ValueError, match="exceeds pipe diameter"):
        hydraulic_properties(CircularSection(diameter=1.0), 1.2)


def test_non_physical_dimensions_are_tagged() -> None:
    issues: list[ValidationIssue] = validate_geometry(TrapezoidalSection(bottom_width=0.0, side_slope=-1.0))
    assert [issue.field for issue in issues] == ["geometry.bottom_width", "geometry.side_slope"]
    with pytest.raises(ValueError, match="Bottom width must be greater than 0"):
        hydraulic_properties(RectangularSection(bottom_width=-1.0), 1.0)


def test_maximum_depth_by_section() -> None:
    assert maximum_depth(CircularSection(diameter=1.5)) == 1.5
    assert maximum_depth(BoxSection(width=3.0, height=2.0)) == 2.0
    assert maximum_depth(ArchSection(span=4.0, rise=2.5)) == 2.5
    assert maximum_depth(RectangularSection(bottom_width=5.0)) == 50.0


def test_optimal_trapezoid_carries_requested_area() -> None:
    section: TrapezoidalSection = optimal_trapezoidal_section(area=10.0, side_slope=1.0)
    depth: float = math.sqrt(10.0 / (2 * math.sqrt(2.0) - 1.0))
    props: HydraulicProperties = hydraulic_properties(section, depth)
    assert props.area == pytest.approx(10.0)
    # best hydraulic section has R = y / 2
    assert props.hydraulic_radius == pytest.approx(depth / 2)


def test_section_from_dict() -> None:
    section: CrossSection = section_from_dict({"shape": "trapezoidal", "bottom_width": 3, "side_slope": 2})
    assert section == TrapezoidalSection(bottom_width=3.0, side_slope=2.0)
    assert section_from_dict(section.to_dict()) == section
    with pytest.raises(ValueError, match="requires 'side_slope'"):
        section_from_dict({"shape": "triangular"})
