"""Read-only catalog of manufactured sizes and material properties.

Culvert dimensions are stored in feet and pipe dimensions in inches and
square feet. Lookups convert to metric on request so callers always receive
sizes in the unit system of their design parameters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Literal, Protocol

from .classes_references import UnitSystem
from .models import CulvertSize, PipeSize
from .type_helpers import CulvertMaterial, CulvertShape, PipeMaterial
from .units import FT_TO_METRES, SQFT_TO_SQM

Availability = Literal["common", "special-order", "unavailable"]

CIRCULAR_DIAMETERS_IN: dict[CulvertMaterial, tuple[int, ...]] = {
    CulvertMaterial.CONCRETE: (
        12, 15, 18, 21, 24, 27, 30, 33, 36, 42, 48, 54, 60, 66, 72, 78, 84, 90, 96, 102, 108, 120, 144,
    ),
    CulvertMaterial.CORRUGATED_METAL: (12, 15, 18, 24, 30, 36, 42, 48, 54, 60, 66, 72, 84, 96, 108, 120, 144),
    CulvertMaterial.HDPE: (4, 6, 8, 10, 12, 15, 18, 24, 30, 36, 42, 48, 54, 60, 72),
}

BOX_SIZES_FT: tuple[tuple[float, float], ...] = (
    (2, 2), (2, 3), (2, 4),
    (3, 2), (3, 3), (3, 4), (3, 5),
    (4, 2), (4, 3), (4, 4), (4, 5), (4, 6),
    (5, 3), (5, 4), (5, 5), (5, 6),
    (6, 3), (6, 4), (6, 5), (6, 6), (6, 7),
    (7, 4), (7, 5), (7, 6), (7, 7),
    (8, 4), (8, 5), (8, 6), (8, 7), (8, 8),
    (10, 4), (10, 5), (10, 6), (10, 8), (10, 10),
    (12, 6), (12, 8), (12, 10), (12, 12),
    (14, 8), (14, 10), (14, 12), (14, 14),
    (16, 10), (16, 12), (16, 14), (16, 16),
)  # fmt: skip

ARCH_SIZES_FT: tuple[tuple[float, float, float], ...] = (
    (2.17, 1.58, 2.8),
    (2.83, 2.08, 4.8),
    (3.5, 2.5, 7.2),
    (4.17, 3.0, 10.2),
    (5.0, 3.5, 14.2),
    (5.83, 4.0, 18.8),
    (6.5, 4.5, 23.7),
    (7.17, 5.0, 29.0),
    (8.0, 5.5, 35.2),
    (9.0, 6.0, 42.8),
    (10.0, 6.5, 51.2),
    (11.0, 7.0, 60.5),
)

_RIGID_MATERIALS: frozenset[CulvertMaterial] = frozenset({CulvertMaterial.CONCRETE, CulvertMaterial.CORRUGATED_METAL})


@dataclass(frozen=True, slots=True)
class MaterialProperties:
    """Roughness and operating limits of a pipe material (imperial units)."""

    material: PipeMaterial
    hazen_williams_c: float
    manning_n: float
    roughness_height: float
    max_velocity: float
    min_velocity: float
    max_pressure: float
    design_life: int
    cost_factor: float


MATERIAL_PROPERTIES: dict[PipeMaterial, MaterialProperties] = {
    PipeMaterial.PVC: MaterialProperties(PipeMaterial.PVC, 150, 0.009, 0.0005, 8, 2, 235, 100, 1.0),
    PipeMaterial.DUCTILE_IRON: MaterialProperties(PipeMaterial.DUCTILE_IRON, 130, 0.013, 0.0008, 12, 2, 350, 100, 1.8),
    PipeMaterial.STEEL: MaterialProperties(PipeMaterial.STEEL, 120, 0.015, 0.0015, 15, 2, 400, 75, 2.2),
    PipeMaterial.HDPE: MaterialProperties(PipeMaterial.HDPE, 155, 0.008, 0.0003, 10, 2, 200, 100, 1.4),
    PipeMaterial.CONCRETE: MaterialProperties(PipeMaterial.CONCRETE, 140, 0.013, 0.002, 10, 2, 100, 75, 1.6),
    PipeMaterial.CAST_IRON: MaterialProperties(PipeMaterial.CAST_IRON, 110, 0.015, 0.0025, 8, 2, 250, 50, 2.0),
}

# (nominal in, internal diameter in, wall in, area ft²)
_PIPE_TABLE: dict[PipeMaterial, tuple[str, tuple[str, ...], tuple[tuple[float, float, float, float], ...]]] = {
    PipeMaterial.PVC: (
        "DR18",
        ("Bell & Spigot", "Mechanical Joint"),
        (
            (4, 4.154, 0.192, 0.0942), (6, 6.235, 0.288, 0.212), (8, 8.315, 0.385, 0.377),
            (10, 10.396, 0.481, 0.590), (12, 12.476, 0.577, 0.849), (14, 14.557, 0.673, 1.155),
            (16, 16.638, 0.769, 1.509), (18, 18.718, 0.865, 1.910), (20, 20.799, 0.962, 2.358),
            (24, 24.960, 1.154, 3.398), (30, 31.201, 1.442, 5.301), (36, 37.441, 1.731, 7.646),
        ),
    ),
    PipeMaterial.DUCTILE_IRON: (
        "Class 350",
        ("Mechanical Joint", "Push-on Joint", "Flanged"),
        (
            (4, 4.80, 0.25, 0.126), (6, 6.90, 0.25, 0.260), (8, 9.05, 0.27, 0.446),
            (10, 11.10, 0.29, 0.672), (12, 13.20, 0.31, 0.950), (14, 15.30, 0.33, 1.277),
            (16, 17.40, 0.35, 1.650), (18, 19.50, 0.37, 2.073), (20, 21.60, 0.39, 2.545),
            (24, 25.80, 0.43, 3.631), (30, 32.00, 0.49, 5.585), (36, 38.30, 0.55, 8.006),
            (42, 44.50, 0.61, 10.799), (48, 50.80, 0.67, 14.071),
        ),
    ),
    PipeMaterial.STEEL: (
        "Std Weight",
        ("Welded", "Flanged", "Grooved"),
        (
            (6, 6.625, 0.280, 0.240), (8, 8.625, 0.322, 0.406), (10, 10.750, 0.365, 0.631),
            (12, 12.750, 0.375, 0.888), (14, 13.250, 0.375, 0.958), (16, 15.250, 0.375, 1.268),
            (18, 17.250, 0.375, 1.623), (20, 19.250, 0.375, 2.024), (24, 23.250, 0.375, 2.948),
            (30, 30.000, 0.312, 4.909), (36, 36.000, 0.312, 7.069), (42, 42.000, 0.312, 9.621),
            (48, 48.000, 0.312, 12.566),
        ),
    ),
    PipeMaterial.HDPE: (
        "DR17",
        ("Butt Fusion", "Electrofusion", "Mechanical"),
        (
            (4, 3.682, 0.217, 0.0740), (6, 5.524, 0.325, 0.166), (8, 7.365, 0.434, 0.295),
            (10, 9.206, 0.542, 0.462), (12, 11.047, 0.651, 0.666), (14, 12.888, 0.759, 0.907),
            (16, 14.729, 0.868, 1.183), (18, 16.571, 0.976, 1.497), (20, 18.412, 1.084, 1.848),
            (24, 22.094, 1.301, 2.663), (30, 27.618, 1.626, 4.166), (36, 33.141, 1.952, 5.995),
        ),
    ),
    PipeMaterial.CONCRETE: (
        "Class III",
        ("Bell & Spigot", "Tongue & Groove"),
        (
            (12, 12.0, 1.5, 0.785), (15, 15.0, 1.75, 1.227), (18, 18.0, 2.0, 1.767),
            (21, 21.0, 2.25, 2.405), (24, 24.0, 2.5, 3.142), (27, 27.0, 2.75, 3.976),
            (30, 30.0, 3.0, 4.909), (36, 36.0, 3.5, 7.069), (42, 42.0, 4.0, 9.621),
            (48, 48.0, 4.5, 12.566), (60, 60.0, 5.5, 19.635), (72, 72.0, 6.5, 28.274),
        ),
    ),
    PipeMaterial.CAST_IRON: (
        "Class 150",
        ("Mechanical Joint", "Flanged"),
        (
            (4, 4.26, 0.35, 0.099), (6, 6.30, 0.35, 0.217), (8, 8.38, 0.41, 0.383),
            (10, 10.42, 0.43, 0.592), (12, 12.48, 0.45, 0.850), (16, 16.54, 0.52, 1.491),
            (20, 20.60, 0.59, 2.313), (24, 24.70, 0.66, 3.327),
        ),
    ),
}  # fmt: skip

# (common sizes, special-order sizes), nominal inches
PIPE_AVAILABILITY: dict[PipeMaterial, tuple[tuple[int, ...], tuple[int, ...]]] = {
    PipeMaterial.PVC: ((4, 6, 8, 10, 12, 16, 20, 24), (14, 18, 30, 36)),
    PipeMaterial.DUCTILE_IRON: ((4, 6, 8, 10, 12, 16, 20, 24), (14, 18, 30, 36, 42, 48)),
    PipeMaterial.STEEL: ((6, 8, 10, 12, 16, 20, 24), (14, 18, 30, 36, 42, 48)),
    PipeMaterial.HDPE: ((4, 6, 8, 10, 12, 16, 20), (14, 18, 24, 30, 36)),
    PipeMaterial.CONCRETE: ((12, 15, 18, 24, 30, 36), (21, 27, 42, 48, 60, 72)),
    PipeMaterial.CAST_IRON: ((4, 6, 8, 12), (10, 16, 20, 24)),
}


class SizeCatalog(Protocol):
    """Anything that can list candidate culvert sizes for a material and shape."""

    def get_available_sizes(
        self, material: CulvertMaterial, shape: CulvertShape, units: UnitSystem = UnitSystem.IMPERIAL
    ) -> list[CulvertSize]: ...


class StandardSizeCatalog:
    """Standard manufactured culvert sizes."""

    def get_available_sizes(
        self, material: CulvertMaterial, shape: CulvertShape, units: UnitSystem = UnitSystem.IMPERIAL
    ) -> list[CulvertSize]:
        """Return catalog sizes, or an empty list for unsupported combinations."""

        sizes: list[CulvertSize]
        if shape is CulvertShape.CIRCULAR:
            sizes = [CulvertSize.circular(inches / 12) for inches in CIRCULAR_DIAMETERS_IN.get(material, ())]
        elif material not in _RIGID_MATERIALS:
            return []
        elif shape is CulvertShape.BOX:
            sizes = [CulvertSize.box(float(width), float(height)) for width, height in BOX_SIZES_FT]
        else:
            sizes = [CulvertSize.arch(span, rise, area) for span, rise, area in ARCH_SIZES_FT]
        if units is UnitSystem.METRIC:
            return [_culvert_to_metric(size) for size in sizes]
        return sizes


def _culvert_to_metric(size: CulvertSize) -> CulvertSize:
    def scale(value: float | None) -> float | None:
        return value * FT_TO_METRES if value is not None else None

    return replace(
        size,
        area=size.area * SQFT_TO_SQM,
        diameter=scale(size.diameter),
        width=scale(size.width),
        height=scale(size.height),
        span=scale(size.span),
        rise=scale(size.rise),
    )


def material_properties(material: PipeMaterial) -> MaterialProperties:
    return MATERIAL_PROPERTIES[material]


def pipe_sizes(material: PipeMaterial, units: UnitSystem = UnitSystem.IMPERIAL) -> list[PipeSize]:
    """Catalogued pipe sizes for ``material`` in the requested unit system."""

    entry = _PIPE_TABLE.get(material)
    if entry is None:
        return []
    pressure_class, joints, rows = entry
    return [
        PipeSize(
            nominal_diameter=float(nominal),
            internal_diameter=internal,
            wall_thickness=wall,
            area=area,
            material=material,
            pressure_class=pressure_class,
            available_joints=joints,
        ).to_units(units)
        for nominal, internal, wall, area in rows
    ]


def find_pipe_size(nominal_diameter: float, material: PipeMaterial) -> PipeSize | None:
    for size in pipe_sizes(material):
        if math.isclose(size.nominal_diameter, nominal_diameter):
            return size
    return None


def size_availability(nominal_diameter: float, material: PipeMaterial) -> Availability:
    """Classify a nominal size (inches) as common, special-order or unavailable."""

    common, special = PIPE_AVAILABILITY.get(material, ((), ()))
    nominal: int = round(nominal_diameter)
    if not math.isclose(nominal, nominal_diameter, abs_tol=1e-6):
        return "unavailable"
    if nominal in common:
        return "common"
    if nominal in special:
        return "special-order"
    return "unavailable"


def is_common_size(nominal_diameter: float, material: PipeMaterial) -> bool:
    return size_availability(nominal_diameter, material) == "common"


__all__: list[str] = [
    "MATERIAL_PROPERTIES",
    "MaterialProperties",
    "SizeCatalog",
    "StandardSizeCatalog",
    "find_pipe_size",
    "is_common_size",
    "material_properties",
    "pipe_sizes",
    "size_availability",
]
