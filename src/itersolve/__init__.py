"""itersolve: classical iterative methods for f(x) = 0 and Ax = B."""

try:
    from itersolve._version import __version__
except ImportError:
    __version__ = "0.1.0"

from itersolve._dominance import diagonally_dominant_order, is_diagonally_dominant
from itersolve._expression import EvaluationError, Expression, ExpressionError, compile_expression
from itersolve._linear import LinearSystemSolver, ZeroDiagonalError
from itersolve._roots import NotBracketedError, RootFinder, RootFindingError
from itersolve._types import (
    BracketRecord,
    LinearRecord,
    LinearResult,
    OpenRecord,
    RootResult,
    SecantRecord,
    SolverConfig,
    Termination,
)

__all__ = [
    "__version__",
    "RootFinder",
    "LinearSystemSolver",
    "compile_expression",
    "Expression",
    "diagonally_dominant_order",
    "is_diagonally_dominant",
    "SolverConfig",
    "Termination",
    "RootResult",
    "LinearResult",
    "BracketRecord",
    "OpenRecord",
    "SecantRecord",
    "LinearRecord",
    "ExpressionError",
    "EvaluationError",
    "RootFindingError",
    "NotBracketedError",
    "ZeroDiagonalError",
]
