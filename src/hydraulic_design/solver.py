"""Scalar root finding used by every depth and flow iteration.

The helpers solve ``f(x) = 0`` for a single unknown and always hand back a
`SolverResult` instead of raising, so callers can decide how to treat a
non-converged solve:

* `solve_brent` needs a bracket with a sign change and is the workhorse.
* `solve_newton_raphson` starts from a guess and uses a central-difference
  derivative.
* `solve_robust` tries Brent first and falls back to Newton-Raphson.
* `find_bracket` expands outwards from a guess until the sign changes.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

ScalarFunction = Callable[[float], float]
Bracket = tuple[float, float]

DEFAULT_TOLERANCE = 1e-6
DEFAULT_BRACKET: Bracket = (0.0001, 50.0)
DERIVATIVE_STEP = 1e-8
MIN_DERIVATIVE = 1e-12


def _collapsed_width(x: float) -> float:
    """Smallest bracket width that can still be split around ``x``."""

    return 4 * sys.float_info.epsilon * max(abs(x), 1.0)


@dataclass(frozen=True, slots=True)
class SolverResult:
    """Outcome of a root-finding call.

    Attributes:
        value: Best estimate of the root.
        converged: ``True`` only when ``residual`` fell below the tolerance.
        iterations: Number of iterations performed.
        residual: ``|f(value)|`` at the returned estimate.
        error: Diagnostic message when the solve failed or was degraded.
    """

    value: float
    converged: bool
    iterations: int
    residual: float
    error: str | None = None


@dataclass(frozen=True, slots=True)
class SolverOptions:
    """Tuning knobs shared by the solvers."""

    tolerance: float = DEFAULT_TOLERANCE
    max_iterations: int = 100
    initial_guess: float | None = None
    bracket: Bracket | None = None


def solve_brent(
    f: ScalarFunction,
    bracket: Bracket = DEFAULT_BRACKET,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = 100,
) -> SolverResult:
    """Find a root inside ``bracket`` with Brent's method."""

    a, b = bracket
    fa: float = f(a)
    fb: float = f(b)

    if not (math.isfinite(fa) and math.isfinite(fb)) or fa * fb > 0:
        return SolverResult(
            value=a,
            converged=False,
            iterations=0,
            residual=abs(fa) if math.isfinite(fa) else math.inf,
            error=f"No root found in bracket [{a}, {b}]",
        )
    if abs(fa) < tolerance:
        return SolverResult(value=a, converged=True, iterations=0, residual=abs(fa))
    if abs(fb) < tolerance:
        return SolverResult(value=b, converged=True, iterations=0, residual=abs(fb))

    c: float = b
    fc: float = fb
    d: float = b - a
    mflag: bool = True

    for i in range(max_iterations):
        if abs(fa) < abs(fb):
            a, b = b, a
            fa, fb = fb, fa

        if abs(fb) < tolerance:
            return SolverResult(value=b, converged=True, iterations=i + 1, residual=abs(fb))
        if abs(a - b) <= _collapsed_width(b):
            logger.debug("Brent bracket collapsed at {value} with residual {residual}", value=b, residual=abs(fb))
            return SolverResult(
                value=b,
                converged=False,
                iterations=i + 1,
                residual=abs(fb),
                error="Bracket collapsed on a discontinuity",
            )

        s: float
        if abs(fa - fc) > tolerance and abs(fb - fc) > tolerance:
            # inverse quadratic interpolation
            s = (
                a * fb * fc / ((fa - fb) * (fa - fc))
                + b * fa * fc / ((fb - fa) * (fb - fc))
                + c * fa * fb / ((fc - fa) * (fc - fb))
            )
        else:
            s = b - fb * (b - a) / (fb - fa)

        lower_limit: float = (3 * a + b) / 4
        outside: bool = not (min(lower_limit, b) < s < max(lower_limit, b))
        if (
            outside
            or (mflag and abs(s - b) >= abs(b - c) / 2)
            or (not mflag and abs(s - b) >= abs(c - d) / 2)
            or (mflag and abs(b - c) < tolerance)
            or (not mflag and abs(c - d) < tolerance)
        ):
            s = (a + b) / 2
            mflag = True
        else:
            mflag = False

        fs: float = f(s)
        d = c
        c, fc = b, fb
        if fa * fs < 0:
            b, fb = s, fs
        else:
            a, fa = s, fs

    logger.debug("Brent solver exhausted {n} iterations near {value}", n=max_iterations, value=b)
    return SolverResult(
        value=b,
        converged=False,
        iterations=max_iterations,
        residual=abs(fb),
        error="Maximum iterations reached without convergence",
    )


def solve_newton_raphson(
    f: ScalarFunction,
    initial_guess: float = 1.0,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = 50,
) -> SolverResult:
    """Newton-Raphson iteration with a central-difference derivative."""

    x: float = initial_guess
    fx: float = f(x)
    for i in range(max_iterations):
        fx = f(x)
        if abs(fx) < tolerance:
            return SolverResult(value=x, converged=True, iterations=i, residual=abs(fx))

        derivative: float = (f(x + DERIVATIVE_STEP) - f(x - DERIVATIVE_STEP)) / (2 * DERIVATIVE_STEP)
        if not math.isfinite(derivative) or abs(derivative) < MIN_DERIVATIVE:
            return SolverResult(
                value=x,
                converged=False,
                iterations=i,
                residual=abs(fx),
                error="Derivative too small, cannot continue",
            )

        x_new: float = x - fx / derivative
        if x_new < 0:
            # depths are never negative
            x_new = abs(x_new) * 0.1
        if abs(x_new - x) < tolerance:
            residual: float = abs(f(x_new))
            if residual < tolerance:
                return SolverResult(value=x_new, converged=True, iterations=i + 1, residual=residual)
        x = x_new

    return SolverResult(
        value=x,
        converged=False,
        iterations=max_iterations,
        residual=abs(f(x)),
        error="Maximum iterations reached without convergence",
    )


def solve_robust(f: ScalarFunction, options: SolverOptions | None = None) -> SolverResult:
    """Try Brent's method, then Newton-Raphson, and return the better attempt."""

    opts: SolverOptions = options or SolverOptions()
    bracket: Bracket = opts.bracket or DEFAULT_BRACKET

    brent: SolverResult = solve_brent(f, bracket, opts.tolerance, opts.max_iterations)
    if brent.converged:
        return brent
    logger.debug("Brent solve failed ({error}); trying Newton-Raphson", error=brent.error)

    guess: float
    if opts.bracket is not None:
        guess = (opts.bracket[0] + opts.bracket[1]) / 2
    elif opts.initial_guess is not None:
        guess = opts.initial_guess
    else:
        guess = 1.0
    newton: SolverResult = solve_newton_raphson(f, guess, opts.tolerance, opts.max_iterations)
    if newton.converged:
        return newton

    if brent.residual <= newton.residual:
        best, name = brent, "Brent"
    else:
        best, name = newton, "Newton-Raphson"
    logger.warning(
        "Root finding did not converge; returning {name} estimate {value} (residual {residual})",
        name=name,
        value=best.value,
        residual=best.residual,
    )
    return SolverResult(
        value=best.value,
        converged=False,
        iterations=best.iterations,
        residual=best.residual,
        error=f"Convergence failed, returning best {name} result",
    )


def find_bracket(
    f: ScalarFunction,
    initial_guess: float = 1.0,
    factor: float = 2.0,
    max_attempts: int = 20,
) -> Bracket | None:
    """Expand a bracket around ``initial_guess`` until ``f`` changes sign.

    Returns ``None`` when no sign change turns up within ``max_attempts`` or
    when ``f`` stops returning finite values.
    """

    lower: float = initial_guess
    upper: float = initial_guess
    f_lower: float = f(lower)
    f_upper: float = f(upper)

    for _ in range(max_attempts):
        if not (math.isfinite(f_lower) and math.isfinite(f_upper)):
            return None
        if f_lower * f_upper < 0:
            return lower, upper
        if abs(f_lower) < abs(f_upper):
            lower /= factor
            f_lower = f(lower)
        else:
            upper *= factor
            f_upper = f(upper)

    if math.isfinite(f_lower) and math.isfinite(f_upper) and f_lower * f_upper < 0:
        return lower, upper
    return None


__all__: list[str] = [
    "Bracket",
    "SolverOptions",
    "SolverResult",
    "find_bracket",
    "solve_brent",
    "solve_newton_raphson",
    "solve_robust",
]
