"""Reference Manning's n values for channel linings."""

from __future__ import annotations

from dataclasses import dataclass

from .type_helpers import LiningType


@dataclass(frozen=True, slots=True)
class ManningCoefficient:
    """Typical roughness for a lining material with its usual range."""

    material: str
    n: float
    minimum: float
    maximum: float
    lining: LiningType
    description: str = ""


MANNING_COEFFICIENTS: tuple[ManningCoefficient, ...] = (
    ManningCoefficient("Concrete", 0.013, 0.010, 0.016, LiningType.HARD, "Finished concrete lining"),
    ManningCoefficient("Earth, Clean, Straight", 0.022, 0.020, 0.025, LiningType.EARTH, "Uniform earth channel"),
    ManningCoefficient("Earth, Winding, Some Weeds", 0.025, 0.023, 0.030, LiningType.EARTH, "Sinuous earth channel"),
    ManningCoefficient("Gravel, Firm, Clean", 0.025, 0.023, 0.027, LiningType.EARTH, "Gravel bed"),
    ManningCoefficient("Rock Cut, Smooth", 0.035, 0.030, 0.040, LiningType.HARD, "Smooth and uniform rock cut"),
    ManningCoefficient("Rock Cut, Jagged", 0.040, 0.035, 0.045, LiningType.HARD, "Jagged and irregular rock cut"),
    ManningCoefficient("Grass, Short", 0.030, 0.025, 0.035, LiningType.EARTH, "Short grass lining"),
    ManningCoefficient("Grass, High", 0.035, 0.030, 0.050, LiningType.EARTH, "Tall grass lining"),
    ManningCoefficient("Brush & Weeds, Dense", 0.050, 0.035, 0.080, LiningType.EARTH, "Dense brush and weeds"),
    ManningCoefficient("Asphalt", 0.016, 0.013, 0.020, LiningType.HARD, "Asphalt lining"),
    ManningCoefficient("Brick", 0.015, 0.012, 0.018, LiningType.HARD, "Brick in cement mortar"),
    ManningCoefficient("Rubble Masonry", 0.030, 0.025, 0.035, LiningType.HARD, "Cemented rubble masonry"),
)


def find_manning_coefficient(material: str) -> ManningCoefficient | None:
    """Case-insensitive lookup by material name."""

    key: str = material.strip().lower()
    for coefficient in MANNING_COEFFICIENTS:
        if coefficient.material.lower() == key:
            return coefficient
    return None


def validate_manning_n(n: float) -> tuple[bool, str | None]:
    """Return ``(is_valid, message)`` for a roughness value."""

    if n <= 0:
        return False, "Manning's n must be greater than 0"
    if n < 0.008:
        return False, "Manning's n value is unusually low (< 0.008)"
    if n > 0.2:
        return False, "Manning's n value is unusually high (> 0.2)"
    if n > 0.1:
        return True, "Manning's n is high; typical for dense vegetation or very rough channels"
    return True, None


__all__: list[str] = [
    "MANNING_COEFFICIENTS",
    "ManningCoefficient",
    "find_manning_coefficient",
    "validate_manning_n",
]
