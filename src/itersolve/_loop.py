"""Shared iterate-until-converged control for every method in the package.

Each method supplies a step function that performs one iteration and returns
that iteration's error. The loop owns the stopping rule so that it is written
once: keep going while ``error > tol`` and the iteration cap is not reached.
"""

import math
from typing import Callable, Optional, Tuple

from itersolve._types import Termination


class StopIterating(Exception):
    """Raised by a step function to end the loop early.

    Carries the termination reason and a message for the result. This is
    control flow, not a failure: the caller still returns its partial trace.
    """

    def __init__(self, termination: Termination, message: str) -> None:
        super().__init__(message)
        self.termination = termination
        self.message = message


def iterate(
    step: Callable[[int], Optional[float]],
    tol: float,
    maxiter: int,
) -> Tuple[int, Termination, str]:
    """Run step(1), step(2), ... until the error meets the tolerance.

    Args:
        step: Performs iteration k (1-based) and returns its error, or None
            when the error is not defined yet (treated as above tolerance).
        tol: Convergence tolerance.
        maxiter: Iteration cap.

    Returns:
        Tuple of:
            - iterations: Number of steps run (including one that stopped early).
            - termination: Why the loop ended.
            - message: Human-readable status message.
    """
    error: Optional[float] = math.inf
    k = 0

    while (error is None or error > tol) and k < maxiter:
        k += 1
        try:
            error = step(k)
        except StopIterating as stop:
            return k, stop.termination, stop.message

    if error is not None and math.isnan(error):
        return k, Termination.NOT_A_NUMBER, f"Error became NaN at iteration {k}"
    if error is not None and error <= tol:
        return k, Termination.CONVERGED, f"Converged: error {error:.2e} <= tol {tol:.1e}"
    return k, Termination.MAX_ITERATIONS, f"Reached max iterations ({maxiter})"
