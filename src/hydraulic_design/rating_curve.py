"""Stage-discharge rating curves for channels and tailwater lookups for culverts."""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path

from loguru import logger

from .classes_references import UnitSystem
from .geometry import HydraulicProperties, hydraulic_properties, maximum_depth
from .models import ChannelInputs, RatingCurvePoint
from .open_channel import normal_depth
from .results import CalculationResult, error
from .solver import SolverOptions, SolverResult

DEFAULT_POINTS = 20
CURVATURE_THRESHOLD = 0.01
RATING_SOLVER_FLOOR = 0.001


@dataclass(frozen=True, slots=True)
class RatingPoint:
    """Normal-flow state of a channel at one discharge."""

    flow: float
    depth: float
    velocity: float
    area: float


def _flow_range(minimum: float, maximum: float, count: int) -> list[float]:
    if count < 2:
        return [minimum]
    step: float = (maximum - minimum) / (count - 1)
    return [minimum + index * step for index in range(count)]


def generate_rating_curve(
    inputs: ChannelInputs,
    min_flow: float | None = None,
    max_flow: float | None = None,
    number_of_points: int = DEFAULT_POINTS,
    flow_multipliers: Sequence[float] | None = None,
) -> CalculationResult[list[RatingPoint]]:
    """Solve the normal depth over a range of discharges.

    By default the curve spans ``0.1·Q`` to ``2·Q`` in ``number_of_points`` equal
    steps. ``flow_multipliers`` replaces the range with explicit multiples of
    the design flow. Discharges that fail to converge are skipped with a warning.
    """

    flows: list[float]
    if flow_multipliers is not None:
        flows = [inputs.flow_rate * multiplier for multiplier in flow_multipliers]
    else:
        low: float = inputs.flow_rate * 0.1 if min_flow is None else min_flow
        high: float = inputs.flow_rate * 2.0 if max_flow is None else max_flow
        flows = _flow_range(low, high, number_of_points)

    options = SolverOptions(
        tolerance=1e-6,
        max_iterations=50,
        bracket=(RATING_SOLVER_FLOOR, maximum_depth(inputs.geometry)),
    )
    points: list[RatingPoint] = []
    warnings: list[str] = []
    for flow in flows:
        if flow <= 0:
            continue
        result: SolverResult = normal_depth(replace(inputs, flow_rate=flow), options)
        if not result.converged:
            warnings.append(f"Failed to calculate depth for flow rate {flow:.2f}")
            continue
        props: HydraulicProperties = hydraulic_properties(inputs.geometry, result.value)
        points.append(RatingPoint(flow=flow, depth=result.value, velocity=flow / props.area, area=props.area))

    if not points:
        return CalculationResult.failure(
            [error("rating_curve", "Failed to generate any points for the rating curve")], warnings
        )
    logger.debug("Generated rating curve with {count} points", count=len(points))
    return CalculationResult.ok(points, warnings)


def generate_optimized_rating_curve(
    inputs: ChannelInputs, target_points: int = 25
) -> CalculationResult[list[RatingPoint]]:
    """Rating curve with extra points where the depth-discharge relation bends."""

    basic: CalculationResult[list[RatingPoint]] = generate_rating_curve(
        inputs, min_flow=inputs.flow_rate * 0.2, max_flow=inputs.flow_rate * 1.8, number_of_points=10
    )
    if not basic.success or not basic.data:
        return basic

    base: list[RatingPoint] = basic.data
    adaptive: list[float] = [inputs.flow_rate, base[0].flow, base[-1].flow]
    for index in range(1, len(base) - 1):
        prev, curr, nxt = base[index - 1], base[index], base[index + 1]
        half_span: float = (nxt.flow - prev.flow) / 2
        curvature: float = (nxt.depth - 2 * curr.depth + prev.depth) / half_span**2
        if abs(curvature) > CURVATURE_THRESHOLD:
            adaptive.extend(((prev.flow + curr.flow) / 2, (curr.flow + nxt.flow) / 2))
        adaptive.append(curr.flow)

    unique: list[float] = sorted(set(adaptive))
    if len(unique) > target_points:
        step: int = max(1, len(unique) // target_points)
        unique = [
            flow
            for index, flow in enumerate(unique)
            if index % step == 0 or abs(flow - inputs.flow_rate) < inputs.flow_rate * 0.01
        ][:target_points]

    return generate_rating_curve(inputs, flow_multipliers=[flow / inputs.flow_rate for flow in unique])


def interpolate_from_rating_curve(points: Sequence[RatingPoint], flow: float) -> RatingPoint | None:
    """Linearly interpolate depth, velocity and area; ``None`` outside the curve."""

    if not points:
        return None
    ordered: list[RatingPoint] = sorted(points, key=lambda point: point.flow)
    if flow < ordered[0].flow or flow > ordered[-1].flow:
        return None
    for lower, upper in zip(ordered, ordered[1:]):
        if lower.flow <= flow <= upper.flow:
            if upper.flow == lower.flow:
                return lower
            ratio: float = (flow - lower.flow) / (upper.flow - lower.flow)
            return RatingPoint(
                flow=flow,
                depth=lower.depth + ratio * (upper.depth - lower.depth),
                velocity=lower.velocity + ratio * (upper.velocity - lower.velocity),
                area=lower.area + ratio * (upper.area - lower.area),
            )
    return ordered[0]


def rating_curve_to_csv(points: Sequence[RatingPoint], units: UnitSystem, path: Path | None = None) -> str:
    """Render the curve as CSV text, optionally writing it to ``path``."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([f"Flow Rate ({units.flow_label})", "Depth", "Velocity", "Area"])
    for point in points:
        writer.writerow([f"{point.flow:.3f}", f"{point.depth:.3f}", f"{point.velocity:.3f}", f"{point.area:.3f}"])
    text: str = buffer.getvalue()
    if path is not None:
        path.write_text(text, encoding="utf-8")
    return text


def tailwater_depth(curve: Sequence[RatingCurvePoint], flow: float) -> float:
    """Tailwater depth at ``flow`` from a (flow, depth) rating curve.

    The curve is sorted by flow before interpolating. Flows beyond either end
    take the depth of the nearest end point; an empty curve means no tailwater.
    """

    if not curve:
        return 0.0
    ordered: list[RatingCurvePoint] = sorted(curve, key=lambda point: point.flow)
    if flow <= ordered[0].flow:
        return ordered[0].depth
    for lower, upper in zip(ordered, ordered[1:]):
        if lower.flow <= flow <= upper.flow:
            if upper.flow == lower.flow:
                return upper.depth
            ratio: float = (flow - lower.flow) / (upper.flow - lower.flow)
            return lower.depth + ratio * (upper.depth - lower.depth)
    return ordered[-1].depth


__all__: list[str] = [
    "RatingPoint",
    "generate_optimized_rating_curve",
    "generate_rating_curve",
    "interpolate_from_rating_curve",
    "rating_curve_to_csv",
    "tailwater_depth",
]
