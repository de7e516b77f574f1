"""Expression compilation and symbolic differentiation using SymPy.

This module turns user-supplied text such as ``x^3 - 2*x - 5`` or
``cos(x) - x*e^x`` into an evaluable function of one variable. Parsing,
lambdification, and differentiation are delegated to SymPy; this module only
normalises the contract: compile failures raise ExpressionError, evaluation
failures raise EvaluationError, and every successful evaluation is a float.
"""

from tokenize import TokenError
from typing import Callable, Optional

import sympy as sp
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)


class ExpressionError(ValueError):
    """Raised when expression text cannot be compiled."""


class EvaluationError(ArithmeticError):
    """Raised when a compiled expression has no real value at a point."""


def _to_float(value: object, x: float) -> float:
    if isinstance(value, complex):
        if value.imag != 0.0:
            raise EvaluationError(f"Non-real value {value} at x={x}")
        return float(value.real)
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise EvaluationError(f"Non-numeric value {value!r} at x={x}") from exc


class Expression:
    """A compiled real function of one variable.

    Calling the instance evaluates it. derivative() returns the symbolic
    derivative as another Expression, computed once and cached.
    """

    def __init__(self, source: str, sym_expr: sp.Expr, variable: sp.Symbol) -> None:
        self.source = source
        self.sym_expr = sym_expr
        self.variable = variable
        self._func: Callable[[float], object] = sp.lambdify(variable, sym_expr, "math")
        self._derivative: Optional["Expression"] = None

    def __call__(self, x: float) -> float:
        try:
            value = self._func(x)
        except (ArithmeticError, ValueError, TypeError) as exc:
            raise EvaluationError(f"Cannot evaluate {self.source!r} at x={x}: {exc}") from exc
        return _to_float(value, x)

    def derivative(self) -> "Expression":
        if self._derivative is None:
            d_expr = sp.diff(self.sym_expr, self.variable)
            self._derivative = Expression(f"d/d{self.variable}({self.source})", d_expr, self.variable)
        return self._derivative

    def __repr__(self) -> str:
        return f"Expression({self.source!r})"


def compile_expression(text: str, variable: str = "x") -> Expression:
    """Compile expression text into an Expression of one variable.

    Accepts ``^`` for powers, implicit multiplication (``2x``), and the
    constants ``e`` and ``pi``.

    Args:
        text: Expression source, e.g. "x**2 - 2".
        variable: Name of the free variable. Default "x".

    Returns:
        Compiled Expression.

    Raises:
        ExpressionError: If the text is empty, does not parse, or contains
            free symbols other than the variable.
    """
    if text is None or not str(text).strip():
        raise ExpressionError("Expression cannot be empty")

    symbol = sp.Symbol(variable)
    local_dict = {variable: symbol, "e": sp.E, "pi": sp.pi}

    try:
        sym_expr = parse_expr(str(text), local_dict=local_dict, transformations=TRANSFORMATIONS)
    except (
        sp.SympifyError,
        SyntaxError,
        TypeError,
        TokenError,
        AttributeError,
        NameError,
    ) as exc:
        raise ExpressionError(f"Invalid expression {text!r}: {exc}") from exc

    if not isinstance(sym_expr, sp.Expr):
        raise ExpressionError(f"Invalid expression {text!r}: not an arithmetic expression")

    undefined = sorted(str(f.func) for f in sym_expr.atoms(AppliedUndef))
    if undefined:
        raise ExpressionError(
            f"Invalid expression {text!r}: unknown function(s) {', '.join(undefined)}"
        )

    unknown = sorted(str(s) for s in sym_expr.free_symbols if s != symbol)
    if unknown:
        raise ExpressionError(
            f"Invalid expression {text!r}: undefined symbol(s) {', '.join(unknown)}"
        )

    return Expression(str(text), sym_expr, symbol)
