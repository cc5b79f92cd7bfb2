"""Enums and enum helpers shared between the hydraulic design models."""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

TEnum = TypeVar("TEnum", bound=Enum)


def coerce_enum(enum_cls: type[TEnum], value: Any, *, default: TEnum) -> TEnum:
    """Return enum member from the provided value, accepting names/values."""

    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key: str = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return enum_cls[key]
        except KeyError:
            pass
        for member in enum_cls:
            if str(member.value).lower() == value.strip().lower():
                return member
    return enum_cls(value)


class ChannelShape(str, Enum):
    """Open-channel and conduit cross-section shapes."""

    RECTANGULAR = "rectangular"
    TRAPEZOIDAL = "trapezoidal"
    TRIANGULAR = "triangular"
    CIRCULAR = "circular"
    BOX = "box"
    ARCH = "arch"


class CulvertShape(str, Enum):
    """Culvert barrel shapes available in the size catalog."""

    CIRCULAR = "circular"
    BOX = "box"
    ARCH = "arch"


class CulvertMaterial(str, Enum):
    """Culvert barrel materials."""

    CONCRETE = "concrete"
    CORRUGATED_METAL = "corrugatedMetal"
    HDPE = "hdpe"


class EntranceType(str, Enum):
    """Culvert inlet treatments."""

    PROJECTING = "projecting"
    HEADWALL = "headwall"
    WINGWALL = "wingwall"


class FlowType(str, Enum):
    """Governing culvert control."""

    INLET = "inlet"
    OUTLET = "outlet"


class FlowState(str, Enum):
    """Open-channel flow classification by Froude number."""

    SUBCRITICAL = "Subcritical"
    CRITICAL = "Critical"
    SUPERCRITICAL = "Supercritical"


class FlowRegime(str, Enum):
    """Pipe flow regime by Reynolds number."""

    LAMINAR = "laminar"
    TRANSITIONAL = "transitional"
    TURBULENT = "turbulent"


class PipeMaterial(str, Enum):
    """Pressure pipe materials with catalogued sizes."""

    PVC = "pvc"
    DUCTILE_IRON = "ductileIron"
    STEEL = "steel"
    HDPE = "hdpe"
    CONCRETE = "concrete"
    CAST_IRON = "cast-iron"


class CalculationMethod(str, Enum):
    """Head-loss formulation used for pressure pipes."""

    HAZEN_WILLIAMS = "hazen-williams"
    DARCY_WEISBACH = "darcy-weisbach"
    MANNING = "manning"


class FittingType(str, Enum):
    """Pipe fittings with tabulated minor loss coefficients."""

    ELBOW_90 = "elbow-90"
    ELBOW_45 = "elbow-45"
    TEE_BRANCH = "tee-branch"
    TEE_THROUGH = "tee-through"
    GATE_VALVE = "gate-valve"
    GLOBE_VALVE = "globe-valve"
    CHECK_VALVE = "check-valve"
    REDUCER = "reducer"
    ENTRANCE = "entrance"
    EXIT = "exit"


class SystemType(str, Enum):
    """Service category of a pipe system."""

    WATER_DISTRIBUTION = "water-distribution"
    WASTEWATER = "wastewater"
    STORMWATER = "stormwater"
    IRRIGATION = "irrigation"
    INDUSTRIAL = "industrial"


class InstallationMethod(str, Enum):
    """How a pipe is installed."""

    OPEN_CUT = "open-cut"
    TRENCHLESS = "trenchless"
    ABOVE_GROUND = "above-ground"


class Severity(str, Enum):
    """Severity attached to a validation issue."""

    ERROR = "error"
    WARNING = "warning"


class LiningType(str, Enum):
    """Channel lining categories for Manning's n ranges."""

    HARD = "hard"
    EARTH = "earth"
    CUSTOM = "custom"


class AnalysisType(str, Enum):
    """Kind of design request held in a configuration file."""

    CHANNEL = "channel"
    CULVERT = "culvert"
    PIPE = "pipe"
