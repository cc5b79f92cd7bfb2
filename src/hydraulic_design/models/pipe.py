"""Pressure-pipe sizing inputs and catalogued pipe sizes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from .base import Validatable, normalize_mapping, normalize_sequence, optional_float
from ..classes_references import UnitSystem
from ..results import ValidationIssue, error, warning
from ..type_helpers import (
    FittingType,
    InstallationMethod,
    PipeMaterial,
    SystemType,
    coerce_enum,
)
from ..units import (
    IN_TO_MM,
    MM_TO_IN,
    SQFT_TO_SQM,
    SQM_TO_SQFT,
)


@dataclass(frozen=True, slots=True)
class PipeFitting:
    """Fitting along a pipe run; ``k_value`` overrides the tabulated coefficient."""

    type: FittingType
    quantity: int = 1
    k_value: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PipeFitting":
        return cls(
            type=coerce_enum(FittingType, data.get("type"), default=FittingType.ELBOW_90),
            quantity=int(data.get("quantity", 1)),
            k_value=optional_float(data, "k_value"),
        )


@dataclass(frozen=True, slots=True)
class PipeSize:
    """A manufactured pipe size.

    Diameters are in inches and the area in square feet for imperial sizes;
    millimetres and square metres for metric sizes.
    """

    nominal_diameter: float
    internal_diameter: float
    wall_thickness: float
    area: float
    material: PipeMaterial
    pressure_class: str = ""
    available_joints: tuple[str, ...] = ()
    units: UnitSystem = UnitSystem.IMPERIAL

    def to_units(self, units: UnitSystem) -> "PipeSize":
        """Return this size expressed in ``units``."""

        if units is self.units:
            return self
        if units is UnitSystem.METRIC:
            length, area = IN_TO_MM, SQFT_TO_SQM
        else:
            length, area = MM_TO_IN, SQM_TO_SQFT
        return replace(
            self,
            nominal_diameter=self.nominal_diameter * length,
            internal_diameter=self.internal_diameter * length,
            wall_thickness=self.wall_thickness * length,
            area=self.area * area,
            units=units,
        )

    def describe(self) -> str:
        label: str = "mm" if self.units is UnitSystem.METRIC else "in"
        return f"{self.nominal_diameter:g} {label} {self.material.value} ({self.pressure_class or 'n/a'})"

    def __str__(self) -> str:
        return self.describe()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], units: UnitSystem | None = None) -> "PipeSize":
        return cls(
            nominal_diameter=float(data.get("nominal_diameter", 0.0)),
            internal_diameter=float(data.get("internal_diameter", 0.0)),
            wall_thickness=float(data.get("wall_thickness", 0.0)),
            area=float(data.get("area", 0.0)),
            material=coerce_enum(PipeMaterial, data.get("material"), default=PipeMaterial.PVC),
            pressure_class=str(data.get("pressure_class", "")),
            available_joints=tuple(str(joint) for joint in normalize_sequence(data.get("available_joints"))),
            units=units or UnitSystem.parse(data.get("units", UnitSystem.IMPERIAL.flag)),
        )

    def validate(self, prefix: str = "") -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        if self.area <= 0:
            issues.append(error(f"{prefix}area", "Pipe area must be greater than 0"))
        if self.internal_diameter <= 0:
            issues.append(error(f"{prefix}internal_diameter", "Internal diameter must be greater than 0"))
        return issues


@dataclass(frozen=True, slots=True)
class PipeSizingInputs(Validatable):
    """Pressure-pipe design request.

    Flow is in gallons per minute (imperial) or litres per second (metric);
    lengths in feet or metres; pressures in psi or kPa.
    """

    design_flow: float
    pipe_length: float
    elevation_change: float = 0.0
    system_type: SystemType = SystemType.WATER_DISTRIBUTION
    safety_factor: float = 1.5
    preferred_materials: tuple[PipeMaterial, ...] = tuple(PipeMaterial)
    excluded_materials: tuple[PipeMaterial, ...] = ()
    fittings: tuple[PipeFitting, ...] = ()
    installation_method: InstallationMethod = InstallationMethod.OPEN_CUT
    max_head_loss: float | None = None
    min_velocity: float | None = None
    max_velocity: float | None = None
    operating_pressure: float | None = None
    temperature: float | None = None
    units: UnitSystem = UnitSystem.IMPERIAL

    def candidate_materials(self) -> list[PipeMaterial]:
        return [material for material in self.preferred_materials if material not in self.excluded_materials]

    def describe(self) -> str:
        flow_label: str = "L/s" if self.units is UnitSystem.METRIC else "gpm"
        return (
            f"PipeSizingInputs(Q={self.design_flow:g} {flow_label}, L={self.pipe_length:g} "
            f"{self.units.length_label}, fittings={len(self.fittings)})"
        )

    def __str__(self) -> str:
        return self.describe()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], units: UnitSystem | None = None) -> "PipeSizingInputs":
        preferred_raw: list[Any] = normalize_sequence(data.get("preferred_materials"))
        preferred: tuple[PipeMaterial, ...] = (
            tuple(coerce_enum(PipeMaterial, value, default=PipeMaterial.PVC) for value in preferred_raw)
            if preferred_raw
            else tuple(PipeMaterial)
        )
        excluded: tuple[PipeMaterial, ...] = tuple(
            coerce_enum(PipeMaterial, value, default=PipeMaterial.PVC)
            for value in normalize_sequence(data.get("excluded_materials"))
        )
        fittings: list[PipeFitting] = []
        for entry in normalize_sequence(data.get("fittings")):
            fitting_data: Mapping[str, Any] = normalize_mapping(entry)
            if not fitting_data:
                raise ValueError("Fittings must be objects with a 'type'.")
            fittings.append(PipeFitting.from_dict(fitting_data))
        return cls(
            design_flow=float(data.get("design_flow", 0.0)),
            pipe_length=float(data.get("pipe_length", 0.0)),
            elevation_change=float(data.get("elevation_change", 0.0)),
            system_type=coerce_enum(SystemType, data.get("system_type"), default=SystemType.WATER_DISTRIBUTION),
            safety_factor=float(data.get("safety_factor", 1.5)),
            preferred_materials=preferred,
            excluded_materials=excluded,
            fittings=tuple(fittings),
            installation_method=coerce_enum(
                InstallationMethod, data.get("installation_method"), default=InstallationMethod.OPEN_CUT
            ),
            max_head_loss=optional_float(data, "max_head_loss"),
            min_velocity=optional_float(data, "min_velocity"),
            max_velocity=optional_float(data, "max_velocity"),
            operating_pressure=optional_float(data, "operating_pressure"),
            temperature=optional_float(data, "temperature"),
            units=units or UnitSystem.parse(data.get("units", UnitSystem.IMPERIAL.flag)),
        )

    def validate(self, prefix: str = "") -> list[ValidationIssue]:
        metric: bool = self.units is UnitSystem.METRIC
        high_flow: float = 10000.0 if metric else 40000.0
        long_pipe: float = 5000.0 if metric else 16000.0

        issues: list[ValidationIssue] = []
        if self.design_flow <= 0:
            issues.append(error(f"{prefix}design_flow", "Design flow must be greater than 0"))
        elif self.design_flow > high_flow:
            issues.append(warning(f"{prefix}design_flow", "Very high flow rate - verify units and requirements"))
        if self.pipe_length <= 0:
            issues.append(error(f"{prefix}pipe_length", "Pipe length must be greater than 0"))
        elif self.pipe_length > long_pipe:
            issues.append(warning(f"{prefix}pipe_length", "Very long pipe - consider intermediate pumping"))
        if self.safety_factor < 1.0:
            issues.append(warning(f"{prefix}safety_factor", "Safety factor below 1.0 is not recommended"))
        elif self.safety_factor > 3.0:
            issues.append(warning(f"{prefix}safety_factor", "Safety factor above 3.0 may lead to oversizing"))
        if (
            self.min_velocity is not None
            and self.max_velocity is not None
            and self.min_velocity >= self.max_velocity
        ):
            issues.append(error(f"{prefix}min_velocity", "Minimum velocity must be less than maximum velocity"))
        if not self.candidate_materials():
            issues.append(error(f"{prefix}preferred_materials", "No pipe materials left after exclusions"))
        for index, fitting in enumerate(self.fittings):
            if fitting.quantity < 0:
                issues.append(error(f"{prefix}fittings[{index}].quantity", "Fitting quantity must be non-negative"))
            if fitting.k_value is not None and fitting.k_value < 0:
                issues.append(error(f"{prefix}fittings[{index}].k_value", "Fitting K value must be non-negative"))
        return issues
