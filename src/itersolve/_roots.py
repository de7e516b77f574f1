"""Root finding for a single nonlinear equation f(x) = 0.

RootFinder owns a compiled expression, a tolerance, and an iteration cap, and
exposes five classical methods:
1. Bisection - halve a sign-changing bracket
2. False position - secant through the bracket ends
3. Fixed point - iterate x = g(x) for a user-supplied g
4. Newton-Raphson - tangent steps using the symbolic derivative
5. Secant - finite secant steps from two starting points

Every method returns a RootResult holding the full per-iteration trace.
An instance is meant for one caller at a time; nothing here is locked.
"""

import math
from typing import List, Optional, Union

import numpy as np

from itersolve._expression import EvaluationError, Expression, compile_expression
from itersolve._loop import StopIterating, iterate
from itersolve._types import (
    BracketRecord,
    OpenRecord,
    RootResult,
    SecantRecord,
    SolverConfig,
    Termination,
)

ExpressionLike = Union[str, Expression]


class RootFindingError(Exception):
    """Base class for root-finding failures."""


class NotBracketedError(RootFindingError, ValueError):
    """Raised when a bracketing method is called without a sign change."""


def _as_expression(expression: ExpressionLike) -> Expression:
    if isinstance(expression, Expression):
        return expression
    return compile_expression(expression)


def _step_error(x_next: float, x_prev: float) -> float:
    # An exact fixed point at zero would otherwise never report convergence.
    if x_next != 0:
        return abs(x_next - x_prev)
    return 0.0


class RootFinder:
    """Root finder for f(x) = 0 over a compiled expression.

    Args:
        expression: Expression text (e.g. "x^3 - 2*x - 5") or a compiled
            Expression.
        tol: Convergence tolerance on the step error. Must be positive.
        maxiter: Iteration cap per method call. Default 100.
        verbose: Verbosity level:
            -1: Silent (no output)
             0: One summary line per method call (default)
             1: Per-iteration output
             2: Also the expression and its derivative

    Raises:
        ExpressionError: If the expression text does not compile.
        ValueError: If tol or maxiter is not positive.

    Example:
        >>> finder = RootFinder("x**2 - 2", tol=1e-6, verbose=-1)
        >>> result = finder.newton_raphson(1.0)
        >>> round(result.root, 6)
        1.414214
    """

    def __init__(
        self,
        expression: ExpressionLike,
        tol: float = 1e-6,
        *,
        maxiter: int = 100,
        verbose: int = 0,
    ) -> None:
        if not tol > 0:
            raise ValueError(f"tol must be positive, got {tol}")
        if maxiter < 1:
            raise ValueError(f"maxiter must be at least 1, got {maxiter}")

        self.expression = _as_expression(expression)
        self.source = self.expression.source
        self.tol = float(tol)
        self.maxiter = int(maxiter)
        self.verbose = verbose

    @classmethod
    def from_config(cls, expression: ExpressionLike, config: SolverConfig) -> "RootFinder":
        return cls(expression, config.tol, maxiter=config.maxiter, verbose=config.verbose)

    # =========================================================================
    # Function Evaluation
    # =========================================================================

    def f(self, x: float) -> float:
        """Evaluate f at x; nan where the expression is undefined."""
        try:
            return self.expression(x)
        except EvaluationError:
            return math.nan

    def derivative(self, x: float) -> float:
        """Evaluate the symbolic derivative f'(x); nan where undefined."""
        try:
            return self.expression.derivative()(x)
        except EvaluationError:
            return math.nan

    # =========================================================================
    # Bracketing Methods
    # =========================================================================

    def _check_bracket(self, method: str, a: float, b: float) -> None:
        fa, fb = self.f(a), self.f(b)
        if not fa * fb < 0:
            raise NotBracketedError(
                f"{method} requires f(a) and f(b) of opposite sign, "
                f"got f({a})={fa}, f({b})={fb}"
            )

    def bisection(self, a: float, b: float) -> RootResult:
        """Bisection on [a, b].

        c is the bracket midpoint; the error is the change in c between
        iterations and is None on the first. Stops at once if f(c) == 0.

        Raises:
            NotBracketedError: If f(a) and f(b) do not have opposite signs.
        """
        a, b = float(a), float(b)
        self._check_bracket("Bisection", a, b)
        self._report_start("bisection")

        trace: List[BracketRecord] = []
        state = {"a": a, "b": b, "c": a}

        def step(k: int) -> Optional[float]:
            lo, hi = state["a"], state["b"]
            c = (lo + hi) / 2
            fc = self.f(c)
            error = abs(c - state["c"]) if k > 1 else None

            record = BracketRecord(k, lo, hi, c, float(np.sign(fc)), error)
            trace.append(record)
            self._report_iteration(record)
            state["c"] = c

            if fc == 0:
                raise StopIterating(Termination.EXACT_ROOT, f"Exact root at x={c}")
            if fc * self.f(lo) < 0:
                state["b"] = c
            else:
                state["a"] = c
            return error

        return self._finish("bisection", trace, step, state, "c")

    def false_position(self, a: float, b: float) -> RootResult:
        """False position (regula falsi) on [a, b].

        Function values at the bracket ends are cached and replaced as the
        ends move. Stops without error if f(b) - f(a) becomes zero.

        Raises:
            NotBracketedError: If f(a) and f(b) do not have opposite signs.
        """
        a, b = float(a), float(b)
        self._check_bracket("False position", a, b)
        self._report_start("false position")

        trace: List[BracketRecord] = []
        state = {"a": a, "b": b, "fa": self.f(a), "fb": self.f(b), "c": a}

        def step(k: int) -> Optional[float]:
            lo, hi, fa, fb = state["a"], state["b"], state["fa"], state["fb"]
            if fb - fa == 0:
                raise StopIterating(Termination.DEGENERATE, "f(b) - f(a) = 0")

            c = (lo * fb - hi * fa) / (fb - fa)
            fc = self.f(c)
            error = abs(c - state["c"]) if k > 1 else None

            record = BracketRecord(k, lo, hi, c, float(np.sign(fc)), error)
            trace.append(record)
            self._report_iteration(record)
            state["c"] = c

            if fc == 0:
                raise StopIterating(Termination.EXACT_ROOT, f"Exact root at x={c}")
            if fa * fc < 0:
                state["b"], state["fb"] = c, fc
            else:
                state["a"], state["fa"] = c, fc
            return error

        return self._finish("false position", trace, step, state, "c")

    # =========================================================================
    # Open Methods
    # =========================================================================

    def fixed_point(self, g: ExpressionLike, x0: float) -> RootResult:
        """Fixed-point iteration x = g(x) from x0.

        g is compiled independently of f. Unlike f, a failed evaluation of g
        ends the method with Termination.EVALUATION_ERROR.

        Raises:
            ExpressionError: If g is text that does not compile.
        """
        g_expr = _as_expression(g)
        self._report_start("fixed point", extra=f"g(x) = {g_expr.source}")

        trace: List[OpenRecord] = []
        state = {"x": float(x0)}

        def step(k: int) -> Optional[float]:
            x_prev = state["x"]
            try:
                x_next = g_expr(x_prev)
            except EvaluationError as exc:
                raise StopIterating(Termination.EVALUATION_ERROR, str(exc)) from exc

            error = _step_error(x_next, x_prev)
            record = OpenRecord(k, x_prev, x_next, error)
            trace.append(record)
            self._report_iteration(record)
            state["x"] = x_next
            return error

        return self._finish("fixed point", trace, step, state, "x")

    def newton_raphson(self, x0: float) -> RootResult:
        """Newton-Raphson from x0 using the symbolic derivative of f.

        Stops with Termination.DEGENERATE when f'(x) == 0.
        """
        if self.verbose >= 2:
            self._print(f"f'(x) = {self.expression.derivative().sym_expr}")
        self._report_start("Newton-Raphson")

        trace: List[OpenRecord] = []
        state = {"x": float(x0)}

        def step(k: int) -> Optional[float]:
            x = state["x"]
            f_x = self.f(x)
            df_x = self.derivative(x)
            if df_x == 0:
                raise StopIterating(Termination.DEGENERATE, f"f'(x) = 0 at x={x}")

            x_next = x - f_x / df_x
            error = _step_error(x_next, x)
            record = OpenRecord(k, x, x_next, error)
            trace.append(record)
            self._report_iteration(record)
            state["x"] = x_next
            return error

        return self._finish("Newton-Raphson", trace, step, state, "x")

    def secant(self, x0: float, x1: float) -> RootResult:
        """Secant method from the two starting points x0, x1.

        Stops with Termination.DEGENERATE when f(x1) - f(x0) == 0.
        """
        self._report_start("secant")

        trace: List[SecantRecord] = []
        state = {"x0": float(x0), "x1": float(x1)}

        def step(k: int) -> Optional[float]:
            p0, p1 = state["x0"], state["x1"]
            f0, f1 = self.f(p0), self.f(p1)
            if f1 - f0 == 0:
                raise StopIterating(
                    Termination.DEGENERATE, f"f(x{k - 1}) - f(x{k}) = 0"
                )

            p2 = p1 - f1 * ((p1 - p0) / (f1 - f0))
            error = abs(p2 - p1)
            record = SecantRecord(k, p0, p1, p2, error)
            trace.append(record)
            self._report_iteration(record)
            state["x0"], state["x1"] = p1, p2
            return error

        return self._finish("secant", trace, step, state, "x1")

    # =========================================================================
    # Shared Driver and Output
    # =========================================================================

    def _finish(self, method, trace, step, state, key) -> RootResult:
        _, termination, message = iterate(step, self.tol, self.maxiter)
        root = state[key]

        result = RootResult(
            method=method,
            root=float(root),
            trace=tuple(trace),
            termination=termination,
            message=message,
            iterations=len(trace),
        )
        self._report_summary(result)
        return result

    def _print(self, text: str) -> None:
        print(f"[RootFinder] {text}")

    def _report_start(self, method: str, extra: Optional[str] = None) -> None:
        if self.verbose >= 1:
            self._print(f"{method}: f(x) = {self.source}, tol={self.tol:.1e}, maxiter={self.maxiter}")
        if extra is not None and self.verbose >= 2:
            print(f"    {extra}")

    def _report_iteration(self, record) -> None:
        if self.verbose >= 1:
            error = "--" if record.error is None else f"{record.error:.4e}"
            if isinstance(record, BracketRecord):
                sign = {1.0: "+ve", -1.0: "-ve", 0.0: "0"}.get(record.f_sign, "nan")
                print(
                    f"    {record.iteration:4d}: a={record.a:.10g} b={record.b:.10g} "
                    f"c={record.c:.10g} f(c) {sign} err={error}"
                )
            elif isinstance(record, SecantRecord):
                print(
                    f"    {record.iteration:4d}: x(i-1)={record.x_prev:.10g} "
                    f"x(i)={record.x_curr:.10g} x(i+1)={record.x_next:.10g} err={error}"
                )
            else:
                print(
                    f"    {record.iteration:4d}: x(i-1)={record.x_prev:.10g} "
                    f"x(i)={record.x_curr:.10g} err={error}"
                )

    def _report_summary(self, result: RootResult) -> None:
        if self.verbose >= 0:
            status = "CONVERGED" if result.converged else "NOT CONVERGED"
            self._print(f"{result.method}: {status}")
            print(f"    root = {result.root:.12g} after {result.iterations} iterations")
            print(f"    {result.message}")
