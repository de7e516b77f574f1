"""Public type definitions for the itersolve package.

This module defines the core data structures shared by both solver families:
- SolverConfig: Documents available settings and their defaults
- Termination: Why an iterative method stopped
- BracketRecord, OpenRecord, SecantRecord, LinearRecord: One trace row each
- RootResult, LinearResult: Immutable result containers returned by the solvers

These types form the public API contract for the solvers.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class SolverConfig:
    """Configuration parameters shared by RootFinder and LinearSystemSolver.

    Note: the solvers take these as keyword arguments; from_config() on each
    solver accepts an instance of this class instead.

    Attributes:
        tol: Convergence tolerance on the per-iteration error. Default 1e-6.
        maxiter: Maximum number of iterations per method call. Default 100.
        verbose: Verbosity level (-1=silent, 0=summary, 1=iterations,
            2=setup details). Default 0.
    """

    tol: float = 1e-6
    maxiter: int = 100
    verbose: int = 0


class Termination(str, Enum):
    """Reason an iterative method stopped."""

    CONVERGED = "converged"
    EXACT_ROOT = "exact_root"
    MAX_ITERATIONS = "max_iterations"
    DEGENERATE = "degenerate"
    EVALUATION_ERROR = "evaluation_error"
    NOT_A_NUMBER = "not_a_number"


# =============================================================================
# Trace Records
# =============================================================================


@dataclass(frozen=True)
class BracketRecord:
    """One iteration of bisection or false position.

    f_sign is the sign of f(c) (1.0, -1.0, 0.0, or nan), not its value.
    error is None on the first iteration, where no previous c exists.
    """

    iteration: int
    a: float
    b: float
    c: float
    f_sign: float
    error: Optional[float]


@dataclass(frozen=True)
class OpenRecord:
    """One iteration of fixed point or Newton-Raphson."""

    iteration: int
    x_prev: float
    x_curr: float
    error: float


@dataclass(frozen=True)
class SecantRecord:
    """One iteration of the secant method."""

    iteration: int
    x_prev: float
    x_curr: float
    x_next: float
    error: float


@dataclass(frozen=True)
class LinearRecord:
    """One iteration of a linear-system method; iteration 0 has error None."""

    iteration: int
    x: NDArray[np.float64]
    error: Optional[float]


# =============================================================================
# Results
# =============================================================================


class _MappingAccess:
    """Dict-style read access over dataclass fields."""

    def __getitem__(self, key: str) -> object:
        """Enable dict-style access: result['root']."""
        return getattr(self, key)

    def keys(self) -> List[str]:
        """Return list of field names for dict-like iteration."""
        return [f.name for f in fields(self)]  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[str]:
        """Iterate over field names."""
        return iter(self.keys())

    def __contains__(self, key: str) -> bool:
        """Check if key is a valid field name."""
        return key in self.keys()


@dataclass(frozen=True)
class RootResult(_MappingAccess):
    """Result of a RootFinder method - immutable container with dict-like access.

    Attributes:
        method: Name of the method that produced this result.
        root: Final estimate (last c for bracketing methods, last x otherwise).
        trace: Iteration records in order, one per completed iteration.
        termination: Why the loop stopped.
        message: Human-readable status message describing the outcome.
        iterations: Number of iterations performed.
    """

    method: str
    root: float
    trace: Tuple[Union[BracketRecord, OpenRecord, SecantRecord], ...]
    termination: Termination
    message: str
    iterations: int = field(default=0)

    @property
    def converged(self) -> bool:
        """True if the error met the tolerance or an exact root was hit."""
        return self.termination in (Termination.CONVERGED, Termination.EXACT_ROOT)

    @property
    def errors(self) -> List[Optional[float]]:
        """Error column of the trace."""
        return [record.error for record in self.trace]


@dataclass(frozen=True)
class LinearResult(_MappingAccess):
    """Result of a LinearSystemSolver method - immutable container with dict-like access.

    Attributes:
        method: Name of the method that produced this result.
        x: Final solution vector. Shape (n,).
        trace: LinearRecord per iteration, starting with iteration 0.
        termination: Why the loop stopped.
        message: Human-readable status message describing the outcome.
        iterations: Number of iterations performed (iteration 0 not counted).
        dominant: Whether the reordered system is diagonally dominant.
        residual_norm: Infinity norm of B - A @ x at the final estimate.
    """

    method: str
    x: NDArray[np.float64]
    trace: Tuple[LinearRecord, ...]
    termination: Termination
    message: str
    iterations: int = field(default=0)
    dominant: bool = field(default=False)
    residual_norm: float = field(default=0.0)

    @property
    def converged(self) -> bool:
        """True if the error met the tolerance."""
        return self.termination is Termination.CONVERGED

    @property
    def errors(self) -> List[Optional[float]]:
        """Error column of the trace."""
        return [record.error for record in self.trace]
