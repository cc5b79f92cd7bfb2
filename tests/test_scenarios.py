"""Culvert scenario search and pipe size ranking."""

from __future__ import annotations

import pytest

from hydraulic_design import (
    CalculationResult,
    CulvertCalculator,
    CulvertScenarioSet,
    CulvertShape,
    CulvertSize,
    HydraulicsCache,
    PipeMaterial,
    PipeSizingCalculator,
    PipeSizingResults,
    ScenarioResult,
    UnitSystem,
)
from hydraulic_design.pipe import convert_pipe_sizing_units
from hydraulic_design.scenarios import (
    EMERGENCY_WARNING,
    emergency_scenarios,
    evaluate_culvert_scenarios,
    pipe_options_dataframe,
    scenarios_dataframe,
)
from hydraulic_design.type_helpers import InstallationMethod

from .sample_data import ListCatalog, build_culvert_params, build_pipe_inputs

DIAMETERS: list[float] = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]


def _catalog() -> ListCatalog:
    return ListCatalog([CulvertSize.circular(diameter) for diameter in DIAMETERS])


def _circular_diameters(scenario_set: CulvertScenarioSet) -> list[float | None]:
    return [scenario.size.diameter for scenario in scenario_set.scenarios[CulvertShape.CIRCULAR]]


def test_sizes_over_headwater_are_dropped_and_rest_sorted() -> None:
    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(
        build_culvert_params(), catalog=_catalog()
    )
    scenario_set: CulvertScenarioSet = result.unwrap()

    assert list(scenario_set.scenarios) == [CulvertShape.CIRCULAR]
    assert _circular_diameters(scenario_set) == [4.0, 5.0, 6.0, 3.0]
    headwaters: list[float] = [scenario.hydraulics.headwater for scenario in scenario_set.all()]
    assert headwaters == sorted(headwaters)
    assert all(headwater <= 5.0 for headwater in headwaters)

    summary = scenario_set.summary
    assert (summary.evaluated, summary.feasible, summary.exceeded_headwater, summary.failed) == (6, 4, 2, 0)
    assert not scenario_set.emergency

    best: ScenarioResult | None = scenario_set.best()
    assert best is not None and best.size.diameter == 4.0


def test_max_per_shape_caps_each_group() -> None:
    scenario_set: CulvertScenarioSet = evaluate_culvert_scenarios(
        build_culvert_params(), catalog=_catalog(), max_per_shape=2
    ).unwrap()
    assert _circular_diameters(scenario_set) == [4.0, 5.0]
    assert scenario_set.summary.feasible_by_shape[CulvertShape.CIRCULAR] == 4


def test_shared_cache_is_reused_for_the_same_parameters() -> None:
    cache = HydraulicsCache()
    evaluate_culvert_scenarios(build_culvert_params(), catalog=_catalog(), cache=cache)
    second: CulvertScenarioSet = evaluate_culvert_scenarios(
        build_culvert_params(), catalog=_catalog(), cache=cache
    ).unwrap()
    assert second.summary.cache_hits == len(DIAMETERS)


def test_shared_cache_never_serves_other_parameters() -> None:
    cache = HydraulicsCache()
    catalog = ListCatalog([CulvertSize.circular(4.0)])
    evaluate_culvert_scenarios(
        build_culvert_params(design_flow=150.0, max_headwater=40.0), catalog=catalog, cache=cache
    )

    changed = build_culvert_params(
        design_flow=150.0, downstream_invert=97.0, culvert_length=600.0, blockage_factor=0.4, max_headwater=40.0
    )
    shared: CulvertScenarioSet = evaluate_culvert_scenarios(changed, catalog=catalog, cache=cache).unwrap()
    fresh: CulvertScenarioSet = evaluate_culvert_scenarios(changed, catalog=catalog).unwrap()

    assert shared.summary.cache_hits == 0
    assert [s.hydraulics for s in shared.all()] == [s.hydraulics for s in fresh.all()]


def test_zero_area_size_kept_as_flagged_estimate() -> None:
    catalog = ListCatalog(
        [CulvertSize(shape=CulvertShape.CIRCULAR, area=0.0, diameter=3.0), CulvertSize.circular(4.0)]
    )
    scenario_set: CulvertScenarioSet = evaluate_culvert_scenarios(build_culvert_params(), catalog=catalog).unwrap()

    group: list[ScenarioResult] = scenario_set.scenarios[CulvertShape.CIRCULAR]
    assert [scenario.hydraulics.fallback for scenario in group] == [False, True]
    assert group[1].warnings[0].startswith("Evaluation error:")
    summary = scenario_set.summary
    assert (summary.evaluated, summary.feasible, summary.exceeded_headwater, summary.failed) == (2, 2, 0, 1)
    assert summary.feasible_by_shape[CulvertShape.CIRCULAR] == summary.feasible
    best: ScenarioResult | None = scenario_set.best()
    assert best is not None and not best.hydraulics.fallback


def test_flagged_estimate_above_headwater_limit_is_dropped() -> None:
    catalog = ListCatalog(
        [CulvertSize(shape=CulvertShape.CIRCULAR, area=0.0, diameter=3.0), CulvertSize.circular(4.0)]
    )
    # the estimate for the zero-area size has a headwater of 1.5
    scenario_set: CulvertScenarioSet = evaluate_culvert_scenarios(
        build_culvert_params(max_headwater=1.0), catalog=catalog
    ).unwrap()

    assert not any(scenario.hydraulics.fallback for scenario in scenario_set.all())
    assert all(scenario.hydraulics.headwater <= 1.0 for scenario in scenario_set.all())
    summary = scenario_set.summary
    assert summary.failed == 1
    assert summary.feasible + summary.exceeded_headwater == summary.evaluated == 2


def test_every_size_failing_is_an_error() -> None:
    catalog = ListCatalog(
        [CulvertSize.arch(span=0.0, rise=3.0, area=5.0), CulvertSize.arch(span=0.0, rise=4.0, area=8.0)],
        shape=CulvertShape.ARCH,
    )
    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(build_culvert_params(), catalog=catalog)
    assert not result.success
    assert result.data is None
    assert [issue.message for issue in result.errors] == ["No culvert size could be evaluated"]
    assert not any(message.startswith("No culvert sizes satisfy") for message in result.warnings)


def test_empty_catalog_is_an_error() -> None:
    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(
        build_culvert_params(), catalog=ListCatalog([])
    )
    assert not result.success
    assert [issue.message for issue in result.errors] == ["No culvert size could be evaluated"]


def test_size_with_missing_dimensions_does_not_sink_the_batch() -> None:
    catalog = ListCatalog([CulvertSize.circular(4.0), CulvertSize(shape=CulvertShape.CIRCULAR, area=5.0)])
    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(build_culvert_params(), catalog=catalog)
    scenario_set: CulvertScenarioSet = result.unwrap()

    assert not scenario_set.emergency
    assert EMERGENCY_WARNING not in result.warnings
    assert _circular_diameters(scenario_set) == [4.0]
    assert scenario_set.summary.failed == 1


def test_arithmetic_failures_drop_the_size(monkeypatch: pytest.MonkeyPatch) -> None:
    original = CulvertCalculator.inlet_control_headwater

    def flaky(self: CulvertCalculator, size: CulvertSize, flow: float) -> float:
        if size.diameter == 5.0:
            raise ZeroDivisionError("float division by zero")
        return original(self, size, flow)

    monkeypatch.setattr(CulvertCalculator, "inlet_control_headwater", flaky)
    scenario_set: CulvertScenarioSet = evaluate_culvert_scenarios(
        build_culvert_params(), catalog=_catalog()
    ).unwrap()
    assert _circular_diameters(scenario_set) == [4.0, 6.0, 3.0]
    assert scenario_set.summary.failed == 1


def test_unexpected_failure_returns_emergency_scenario() -> None:
    class BrokenCatalog:
        def get_available_sizes(
            self, material: object, shape: object, units: UnitSystem = UnitSystem.IMPERIAL
        ) -> list[CulvertSize]:
            raise RuntimeError("catalog offline")

    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(
        build_culvert_params(), catalog=BrokenCatalog()
    )
    assert result.success
    assert EMERGENCY_WARNING in result.warnings
    scenario_set: CulvertScenarioSet = result.unwrap()
    assert scenario_set.emergency
    only: ScenarioResult = scenario_set.all()[0]
    assert only.size.diameter == 3.0
    assert only.hydraulics.fallback
    assert only.warnings == [EMERGENCY_WARNING]


def test_metric_emergency_diameter() -> None:
    params = build_culvert_params(
        design_flow=1.5,
        upstream_invert=30.0,
        downstream_invert=29.85,
        culvert_length=30.0,
        max_headwater=3.0,
        units=UnitSystem.METRIC,
    )
    assert emergency_scenarios(params).all()[0].size.diameter == pytest.approx(0.9144)


def test_no_feasible_size_is_still_successful() -> None:
    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(
        build_culvert_params(max_headwater=0.05), catalog=_catalog()
    )
    assert result.success
    assert result.unwrap().scenarios == {}
    assert "No culvert sizes satisfy the maximum headwater of 0.05" in result.warnings


def test_invalid_parameters_fail_with_fields() -> None:
    result: CalculationResult[CulvertScenarioSet] = evaluate_culvert_scenarios(
        build_culvert_params(design_flow=-1.0, blockage_factor=0.8)
    )
    assert not result.success
    assert [issue.field for issue in result.errors] == ["design_flow", "blockage_factor"]


def test_standard_catalog_covers_every_shape() -> None:
    scenario_set: CulvertScenarioSet = evaluate_culvert_scenarios(
        build_culvert_params(), max_per_shape=3
    ).unwrap()
    assert set(scenario_set.scenarios) == set(CulvertShape)
    for group in scenario_set.scenarios.values():
        assert 0 < len(group) <= 3
        headwaters: list[float] = [scenario.hydraulics.headwater for scenario in group]
        assert headwaters == sorted(headwaters)


def test_scenarios_dataframe_index() -> None:
    scenario_set: CulvertScenarioSet = evaluate_culvert_scenarios(
        build_culvert_params(), catalog=_catalog()
    ).unwrap()
    df = scenarios_dataframe(scenario_set)
    assert list(df.index.names) == ["shape", "size"]
    assert len(df) == 4
    assert df["headwater"].is_monotonic_increasing


def test_pipe_ranking_prefers_moderate_velocity() -> None:
    result: CalculationResult[PipeSizingResults] = PipeSizingCalculator(build_pipe_inputs()).calculate_recommendations()
    results: PipeSizingResults = result.unwrap()

    assert results.summary.total_options == 7
    assert results.summary.viable_options == 2
    assert [option.pipe_size.nominal_diameter for option in results.recommendations] == [8.0, 6.0]
    assert results.best_option is results.recommendations[0]
    assert results.alternative_options == results.recommendations[1:]
    assert results.near_misses == []
    scores: list[float] = [option.score for option in results.recommendations]
    assert scores == sorted(scores, reverse=True)
    assert all(0 <= score <= 100 for score in scores)
    assert results.summary.velocity_range is not None
    assert results.summary.velocity_range.minimum < results.summary.velocity_range.maximum


def test_no_viable_pipe_reports_near_misses() -> None:
    result: CalculationResult[PipeSizingResults] = PipeSizingCalculator(
        build_pipe_inputs(safety_factor=100.0)
    ).calculate_recommendations()
    results: PipeSizingResults = result.unwrap()
    assert results.best_option is None
    assert results.recommendations == []
    assert len(results.near_misses) == 5
    assert not any(option.meets_criteria for option in results.near_misses)
    assert "No pipe size meets every design criterion; showing the closest options" in result.warnings


def test_excluding_every_material_is_invalid() -> None:
    result: CalculationResult[PipeSizingResults] = PipeSizingCalculator(
        build_pipe_inputs(excluded_materials=(PipeMaterial.PVC,))
    ).calculate_recommendations()
    assert not result.success
    assert result.errors[0].field == "preferred_materials"


def test_no_catalogued_size_in_search_window() -> None:
    result: CalculationResult[PipeSizingResults] = PipeSizingCalculator(
        build_pipe_inputs(design_flow=20000.0, preferred_materials=(PipeMaterial.CAST_IRON,))
    ).calculate_recommendations()
    assert not result.success
    assert result.errors[0].field == "materials"


def test_metric_request_ranks_the_same_sizes() -> None:
    imperial: PipeSizingResults = PipeSizingCalculator(build_pipe_inputs()).calculate_recommendations().unwrap()
    metric_inputs = convert_pipe_sizing_units(build_pipe_inputs(), UnitSystem.METRIC)
    metric: PipeSizingResults = PipeSizingCalculator(metric_inputs).calculate_recommendations().unwrap()

    assert metric.best_option is not None and imperial.best_option is not None
    assert metric.best_option.pipe_size.nominal_diameter == pytest.approx(8.0 * 25.4)
    assert metric.best_option.score == pytest.approx(imperial.best_option.score)
    assert metric.summary.viable_options == imperial.summary.viable_options


def test_trenchless_large_diameter_warning() -> None:
    calculator = PipeSizingCalculator(
        build_pipe_inputs(
            design_flow=10000.0,
            preferred_materials=(PipeMaterial.DUCTILE_IRON,),
            installation_method=InstallationMethod.TRENCHLESS,
        )
    )
    warnings: list[str] = [
        message
        for size in calculator.candidate_sizes()
        if size.nominal_diameter > 36
        for message in calculator.evaluate(size).unwrap().warnings
    ]
    assert "Large diameter trenchless installation may be challenging" in warnings


def test_pipe_options_dataframe_index() -> None:
    results: PipeSizingResults = PipeSizingCalculator(build_pipe_inputs()).calculate_recommendations().unwrap()
    df = pipe_options_dataframe(results.recommendations)
    assert list(df.index.names) == ["material", "nominal_diameter"]
    assert len(df) == 2
    assert pipe_options_dataframe([]).empty
