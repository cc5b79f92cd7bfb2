"""Simple CLI entry point for hydraulic-design."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence, cast

from loguru import logger

from .config import DesignRequest, load_design_from_json
from .models import ChannelInputs, CulvertParameters, PipeSizingInputs
from .open_channel import ChannelHydraulics, calculate_channel_hydraulics
from .pipe import PipeHydraulics, calculate_hydraulics
from .rating_curve import RatingPoint, generate_rating_curve, rating_curve_to_csv
from .results import CalculationResult, format_float
from .scenarios import (
    CulvertScenarioSet,
    PipeOption,
    PipeSizingCalculator,
    PipeSizingResults,
    evaluate_culvert_scenarios,
    pipe_options_dataframe,
    scenarios_dataframe,
)
from .type_helpers import AnalysisType


def main(argv: Sequence[str] | None = None) -> int:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Hydraulic design of open channels, culverts and pressure pipes."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for analysis, help_text in (
        (AnalysisType.CHANNEL, "Solve normal depth, critical depth and freeboard for an open channel."),
        (AnalysisType.CULVERT, "Evaluate catalogued culvert sizes against the allowable headwater."),
        (AnalysisType.PIPE, "Rank pipe sizes, or analyse one size given under options.pipe_size."),
    ):
        sub: argparse.ArgumentParser = subparsers.add_parser(name=analysis.value, help=help_text)
        sub.add_argument("--config", type=Path, required=True, help="Path to the JSON configuration file.")
        sub.add_argument(
            "--validate-only",
            action="store_true",
            help="Validate the configuration without running any calculation.",
        )
        sub.add_argument("--csv", type=Path, help="Write the tabular results to this CSV file.")
        sub.add_argument("--verbose", action="store_true", help="Log solver and evaluation details.")

    args: argparse.Namespace = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(verbose=args.verbose)
    analysis: AnalysisType = AnalysisType(args.command)

    try:
        request: DesignRequest = _load_request(args.config, analysis)
        warnings: list[str] = [str(issue) for issue in request.parameters.assert_valid()]
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    if args.validate_only:
        print(f"{args.config} is valid.")
        _print_warnings(warnings)
        return 0

    if analysis is AnalysisType.CHANNEL:
        return _run_channel(request, args.csv)
    if analysis is AnalysisType.CULVERT:
        return _run_culvert(request, args.csv)
    return _run_pipe(request, args.csv)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _load_request(config_path: Path, analysis: AnalysisType) -> DesignRequest:
    suffix: str = config_path.suffix.lower()
    if suffix != ".json":
        raise ValueError(f"Unsupported configuration extension '{config_path.suffix}'. Use .json.")
    request: DesignRequest = load_design_from_json(config_path)
    if request.analysis is not analysis:
        raise ValueError(f"Configuration describes a {request.analysis.value} analysis, not {analysis.value}.")
    return request


def _report_failure(result: CalculationResult[Any]) -> int:
    print("Calculation failed:")
    for message in result.error_messages():
        print(f"  - {message}")
    _print_warnings(result.warnings)
    return 1


def _print_warnings(warnings: list[str]) -> None:
    if not warnings:
        return
    print("Warnings:")
    for message in warnings:
        print(f"  - {message}")


def _run_channel(request: DesignRequest, csv_path: Path | None) -> int:
    inputs: ChannelInputs = cast(ChannelInputs, request.parameters)
    result: CalculationResult[ChannelHydraulics] = calculate_channel_hydraulics(
        inputs, request.options.solver, request.options.freeboard
    )
    if not result.success or result.data is None:
        return _report_failure(result)

    data: ChannelHydraulics = result.data
    length: str = inputs.units.length_label
    print(inputs.describe())
    print(f"Normal depth:    {format_float(data.normal_depth)} {length}")
    print(f"Critical depth:  {format_float(data.critical_depth)} {length}")
    print(f"Velocity:        {format_float(data.velocity)} {length}/s")
    print(f"Froude number:   {format_float(data.froude_number)} ({data.flow_state.value})")
    print(f"Specific energy: {format_float(data.specific_energy)} {length}")
    print(f"Critical slope:  {format_float(data.critical_slope, 5)}")
    print(f"Freeboard:       {format_float(data.freeboard.controlling)} {length}")
    _print_warnings(result.warnings)

    if csv_path is not None:
        points: int = request.options.rating_curve_points or 20
        curve: CalculationResult[list[RatingPoint]] = generate_rating_curve(inputs, number_of_points=points)
        if not curve.success or curve.data is None:
            return _report_failure(curve)
        rating_curve_to_csv(curve.data, inputs.units, path=csv_path)
        print(f"Wrote rating curve to {csv_path}")
    return 0


def _run_culvert(request: DesignRequest, csv_path: Path | None) -> int:
    params: CulvertParameters = cast(CulvertParameters, request.parameters)
    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(
        params, max_per_shape=request.options.max_per_shape
    )
    if not result.success or result.data is None:
        return _report_failure(result)

    scenario_set: CulvertScenarioSet = result.data
    print(params.describe())
    for shape, group in scenario_set.scenarios.items():
        total: int = scenario_set.summary.feasible_by_shape.get(shape, len(group))
        print(f"{shape.value} ({len(group)} of {total} shown)")
        for scenario in group:
            hydraulics = scenario.hydraulics
            print(
                f"  {scenario.size.describe():<16} HW={format_float(hydraulics.headwater)} "
                f"V={format_float(hydraulics.velocity)} {hydraulics.flow_type.value} control"
            )
            for message in scenario.warnings:
                print(f"    ! {message}")
    _print_warnings(result.warnings)

    if csv_path is not None:
        scenarios_dataframe(scenario_set).to_csv(csv_path)
        print(f"Wrote scenarios to {csv_path}")
    return 0


def _run_pipe(request: DesignRequest, csv_path: Path | None) -> int:
    inputs: PipeSizingInputs = cast(PipeSizingInputs, request.parameters)
    if request.options.pipe_size is not None:
        single: CalculationResult[PipeHydraulics] = calculate_hydraulics(
            inputs, request.options.pipe_size, request.options.method
        )
        if not single.success or single.data is None:
            return _report_failure(single)
        print(f"{request.options.pipe_size.describe()} ({request.options.method.value})")
        for name, value in (
            ("Velocity", single.data.velocity),
            ("Head loss /1000", single.data.head_loss),
            ("Total head loss", single.data.total_head_loss),
            ("Pressure drop", single.data.pressure_drop),
            ("Reynolds number", single.data.reynolds_number),
        ):
            print(f"{name + ':':<17}{format_float(value)}")
        print(f"Flow regime:     {single.data.flow_regime.value}")
        _print_warnings(single.warnings)
        return 0

    calculator = PipeSizingCalculator(inputs, request.options.method, request.options.weights)
    result: CalculationResult[PipeSizingResults] = calculator.calculate_recommendations()
    if not result.success or result.data is None:
        return _report_failure(result)

    results: PipeSizingResults = result.data
    options: list[PipeOption] = results.recommendations or results.near_misses
    print(inputs.describe())
    print(f"{results.summary.viable_options} of {results.summary.total_options} options meet the design criteria")
    for option in options[:6]:
        marker: str = "*" if option is results.best_option else " "
        print(
            f"{marker} {option.pipe_size.describe():<32} score={option.score:5.1f} "
            f"V={format_float(option.hydraulics.velocity, 2)} hf={format_float(option.hydraulics.head_loss, 2)}"
        )
    _print_warnings(result.warnings)

    if csv_path is not None:
        pipe_options_dataframe(options).to_csv(csv_path)
        print(f"Wrote pipe options to {csv_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
