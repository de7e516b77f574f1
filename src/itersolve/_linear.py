"""Iterative solvers for square linear systems Ax = B.

LinearSystemSolver owns copies of A and B and exposes three methods, all
starting from x = 0:
1. Jacobi - simultaneous displacement from the previous iterate
2. Gauss-Seidel - successive displacement, updated in place
3. Relaxation - correct the component with the largest residual

Before iterating, each method reorders the rows toward diagonal dominance
(once per solver; see make_diagonally_dominant()). Dominance is advisory:
the methods run regardless, and convergence is then not guaranteed.
An instance is meant for one caller at a time; nothing here is locked.
"""

from typing import Callable, Dict, List, Optional

import numpy as np
import scipy.linalg as la
from numpy.typing import ArrayLike, NDArray

from itersolve._dominance import diagonally_dominant_order
from itersolve._loop import StopIterating, iterate
from itersolve._types import LinearRecord, LinearResult, SolverConfig, Termination


class ZeroDiagonalError(ValueError):
    """Raised when a diagonal entry is zero after reordering."""


class LinearSystemSolver:
    """Iterative solver for Ax = B.

    Args:
        A: Coefficient matrix. Array-like of shape (n, n).
        B: Right-hand side. Array-like of shape (n,).
        tol: Convergence tolerance on the per-iteration error. Must be positive.
        n: Optional system size; checked against the shapes if given.
        maxiter: Iteration cap per method call. Default 100.
        verbose: Verbosity level:
            -1: Silent (no output)
             0: One summary line per method call (default)
             1: Per-iteration output
             2: Also the row permutation applied

    Raises:
        ValueError: If shapes disagree, n is not positive, or tol/maxiter
            is not positive.

    Example:
        >>> solver = LinearSystemSolver([[4, 1], [2, 3]], [1, 2], tol=1e-6, verbose=-1)
        >>> solver.gauss_seidel().x.round(6)
        array([0.1, 0.6])
    """

    def __init__(
        self,
        A: ArrayLike,
        B: ArrayLike,
        tol: float = 1e-6,
        *,
        n: Optional[int] = None,
        maxiter: int = 100,
        verbose: int = 0,
    ) -> None:
        A = np.array(A, dtype=np.float64)
        B = np.array(B, dtype=np.float64).reshape(-1)

        if A.ndim != 2 or A.shape[0] != A.shape[1] or A.shape[0] == 0:
            raise ValueError(f"A must be a non-empty square matrix, got shape {A.shape}")
        if B.shape != (A.shape[0],):
            raise ValueError(f"B must have shape ({A.shape[0]},) to match A, got {B.shape}")
        if n is not None and n != A.shape[0]:
            raise ValueError(f"n={n} does not match A of shape {A.shape}")
        if not tol > 0:
            raise ValueError(f"tol must be positive, got {tol}")
        if maxiter < 1:
            raise ValueError(f"maxiter must be at least 1, got {maxiter}")

        self.n = A.shape[0]
        self.A = A
        self.B = B
        self.tol = float(tol)
        self.maxiter = int(maxiter)
        self.verbose = verbose

        # Reordering status
        self.reordered = False
        self.dominant: Optional[bool] = None
        self.permutation: NDArray[np.intp] = np.arange(self.n)

    @classmethod
    def from_config(cls, A: ArrayLike, B: ArrayLike, config: SolverConfig) -> "LinearSystemSolver":
        return cls(A, B, config.tol, maxiter=config.maxiter, verbose=config.verbose)

    # =========================================================================
    # Reordering
    # =========================================================================

    def make_diagonally_dominant(self) -> bool:
        """Reorder rows toward diagonal dominance, once.

        The first call replaces A and B with their reordered copies and records
        the permutation; later calls change nothing and return the same status.

        Returns:
            True if every row could be placed dominantly. Advisory only.
        """
        if self.reordered:
            return bool(self.dominant)

        self.A, self.B, self.permutation, self.dominant = diagonally_dominant_order(self.A, self.B)
        self.reordered = True

        if self.verbose >= 2:
            self._print(f"Row order: {self.permutation.tolist()} (dominant={self.dominant})")
        return self.dominant

    def _prepare(self, method: str) -> None:
        self.make_diagonally_dominant()
        zero_rows = np.flatnonzero(np.diag(self.A) == 0)
        if zero_rows.size:
            raise ZeroDiagonalError(
                f"{method} needs non-zero diagonal entries, "
                f"A[i, i] == 0 for i in {zero_rows.tolist()}"
            )
        if self.verbose >= 1:
            self._print(f"{method}: n={self.n}, tol={self.tol:.1e}, maxiter={self.maxiter}")

    # =========================================================================
    # Iterative Methods
    # =========================================================================

    def jacobi(self) -> LinearResult:
        """Jacobi iteration.

        Every component of the new iterate is computed from the previous
        iterate only. The error is the infinity norm of the update.
        """
        self._prepare("Jacobi")
        A, B = self.A, self.B
        diag = np.diag(A)
        off_diag = A - np.diag(diag)
        x = np.zeros(self.n)

        def step(k: int) -> Optional[float]:
            nonlocal x
            x_new = (B - off_diag @ x) / diag
            error = float(np.max(np.abs(x_new - x)))
            x = x_new
            return error

        return self._run("Jacobi", step, lambda: x)

    def gauss_seidel(self) -> LinearResult:
        """Gauss-Seidel iteration.

        Components are updated in place in row order, so row i already sees
        the new values of rows j < i. The error is the infinity norm of the
        change over the whole sweep.
        """
        self._prepare("Gauss-Seidel")
        A, B = self.A, self.B
        x = np.zeros(self.n)

        def step(k: int) -> Optional[float]:
            x_old = x.copy()
            for i in range(self.n):
                total = A[i, :i] @ x[:i] + A[i, i + 1:] @ x[i + 1:]
                x[i] = (B[i] - total) / A[i, i]
            return float(np.max(np.abs(x - x_old)))

        return self._run("Gauss-Seidel", step, lambda: x)

    def relaxation(self) -> LinearResult:
        """Relaxation by largest residual (Gauss-Southwell).

        Each iteration corrects only the component k with the largest
        |r[k]| and updates the residual r = B - A x incrementally. The error
        reported is max |r| measured before the correction.
        """
        self._prepare("Relaxation")
        A = self.A
        x = np.zeros(self.n)
        residuals = self.B.copy()

        def step(k: int) -> Optional[float]:
            idx = int(np.argmax(np.abs(residuals)))
            max_res = float(abs(residuals[idx]))
            if max_res == 0:
                raise StopIterating(Termination.CONVERGED, "All residuals are zero")

            dx = residuals[idx] / A[idx, idx]
            x[idx] += dx
            residuals[:] -= A[:, idx] * dx
            return max_res

        return self._run("Relaxation", step, lambda: x)

    def solve_all(self) -> Dict[str, LinearResult]:
        """Run Jacobi, Gauss-Seidel, and relaxation in that order."""
        return {
            "jacobi": self.jacobi(),
            "gauss_seidel": self.gauss_seidel(),
            "relaxation": self.relaxation(),
        }

    # =========================================================================
    # Reference Solutions
    # =========================================================================

    def residual(self, x: ArrayLike) -> NDArray[np.float64]:
        """Residual B - A @ x for the system in its current row order."""
        return self.B - self.A @ np.asarray(x, dtype=np.float64)

    def direct(self) -> NDArray[np.float64]:
        """Direct solution via LU factorization, for comparison."""
        return la.solve(self.A, self.B)

    # =========================================================================
    # Shared Driver and Output
    # =========================================================================

    def _run(
        self,
        method: str,
        step: Callable[[int], Optional[float]],
        current: Callable[[], NDArray[np.float64]],
    ) -> LinearResult:
        trace: List[LinearRecord] = [LinearRecord(0, current().copy(), None)]
        self._report_iteration(trace[0])

        def recorded_step(k: int) -> Optional[float]:
            error = step(k)
            record = LinearRecord(k, current().copy(), error)
            trace.append(record)
            self._report_iteration(record)
            return error

        _, termination, message = iterate(recorded_step, self.tol, self.maxiter)

        x_final = current().copy()
        residual_norm = float(np.max(np.abs(self.residual(x_final))))
        result = LinearResult(
            method=method,
            x=x_final,
            trace=tuple(trace),
            termination=termination,
            message=message,
            iterations=len(trace) - 1,
            dominant=bool(self.dominant),
            residual_norm=residual_norm,
        )
        self._report_summary(result)
        return result

    def _print(self, text: str) -> None:
        print(f"[LinearSystemSolver] {text}")

    def _report_iteration(self, record: LinearRecord) -> None:
        if self.verbose >= 1:
            error = "--" if record.error is None else f"{record.error:.4e}"
            values = " ".join(f"x{i + 1}={v:.10g}" for i, v in enumerate(record.x))
            print(f"    {record.iteration:4d}: {values} err={error}")

    def _report_summary(self, result: LinearResult) -> None:
        if self.verbose >= 0:
            status = "CONVERGED" if result.converged else "NOT CONVERGED"
            self._print(f"{result.method}: {status}")
            print(f"    Iterations: {result.iterations}, residual norm: {result.residual_norm:.4e}")
            print(f"    {result.message}")
