"""Root-finding behaviour shared by every depth solve."""

from __future__ import annotations

import pytest

from hydraulic_design.solver import (
    SolverOptions,
    SolverResult,
    find_bracket,
    solve_brent,
    solve_newton_raphson,
    solve_robust,
)


def _square_minus_four(x: float) -> float:
    return x * x - 4


def _always_positive(x: float) -> float:
    return x * x + 1


def test_brent_finds_root_in_bracket() -> None:
    result: SolverResult = solve_brent(_square_minus_four, (0.0, 5.0), tolerance=1e-10)
    assert result.converged
    assert result.error is None
    assert result.value == pytest.approx(2.0, abs=1e-6)
    assert result.residual < 1e-6


def test_brent_reports_missing_sign_change() -> None:
    result: SolverResult = solve_brent(_always_positive, (0.0, 5.0))
    assert not result.converged
    assert result.iterations == 0
    assert result.error is not None and "No root" in result.error


def test_brent_accepts_root_on_bracket_end() -> None:
    result: SolverResult = solve_brent(_square_minus_four, (2.0, 3.0))
    assert result.converged
    assert result.value == 2.0
    assert result.iterations == 0


def test_newton_raphson_converges_from_guess() -> None:
    result: SolverResult = solve_newton_raphson(_square_minus_four, initial_guess=1.0, tolerance=1e-10)
    assert result.converged
    assert result.value == pytest.approx(2.0, abs=1e-6)


def test_newton_raphson_stops_on_flat_derivative() -> None:
    result: SolverResult = solve_newton_raphson(lambda x: 5.0, initial_guess=1.0)
    assert not result.converged
    assert result.error == "Derivative too small, cannot continue"


def test_robust_uses_default_bracket() -> None:
    result: SolverResult = solve_robust(_square_minus_four)
    assert result.converged
    assert result.value == pytest.approx(2.0, abs=1e-5)


def test_robust_returns_best_estimate_when_everything_fails() -> None:
    result: SolverResult = solve_robust(_always_positive, SolverOptions(max_iterations=20))
    assert not result.converged
    assert result.error is not None
    assert result.error.startswith("Convergence failed")


def test_find_bracket_expands_until_sign_change() -> None:
    bracket = find_bracket(lambda x: x - 3.0, initial_guess=1.0)
    assert bracket is not None
    lower, upper = bracket
    assert lower <= 3.0 <= upper
    assert (lower - 3.0) * (upper - 3.0) < 0


def test_find_bracket_gives_up_without_root() -> None:
    assert find_bracket(_always_positive, initial_guess=1.0) is None


def _step(x: float) -> float:
    return -1.0 if x < 1.3 else 1.0


def test_brent_does_not_converge_on_a_jump() -> None:
    result: SolverResult = solve_brent(_step, (0.0, 5.0))
    assert not result.converged
    assert result.value == pytest.approx(1.3, abs=1e-9)
    assert result.residual == 1.0
    assert result.error == "Bracket collapsed on a discontinuity"


def test_robust_keeps_a_jump_unconverged() -> None:
    result: SolverResult = solve_robust(_step, SolverOptions(bracket=(0.0, 5.0)))
    assert not result.converged
    assert result.residual == 1.0


def test_converged_results_always_meet_the_tolerance() -> None:
    def steep(x: float) -> float:
        return 1e6 * (x * x - 4)

    for result in (
        solve_brent(steep, (0.0, 5.0)),
        solve_newton_raphson(steep, initial_guess=3.0),
        solve_robust(steep),
    ):
        assert result.converged
        assert result.residual < 1e-6
