"""Row reordering toward diagonal dominance.

Jacobi and Gauss-Seidel are guaranteed to converge when every row satisfies
|A[i, i]| >= sum_{j != i} |A[i, j]|. This module permutes the rows of A (and
the matching entries of B) so that as many rows as possible satisfy it.
The functions here are pure: inputs are never modified.
"""

from typing import Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray


def _dominant_at(row: NDArray[np.float64], i: int) -> bool:
    """True if row would be diagonally dominant when placed at position i."""
    magnitudes = np.abs(row)
    off_diagonal = np.delete(magnitudes, i).sum()
    return bool(magnitudes[i] >= off_diagonal)


def is_diagonally_dominant(A: ArrayLike) -> bool:
    """Check the row diagonal-dominance condition for A as given."""
    A = np.asarray(A, dtype=np.float64)
    return all(_dominant_at(A[i], i) for i in range(A.shape[0]))


def diagonally_dominant_order(
    A: ArrayLike,
    B: ArrayLike,
) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.intp], bool]:
    """Reorder the rows of (A, B) toward diagonal dominance.

    Target positions are filled in increasing order. For position i the first
    unused row that is dominant at column i is taken (first fit). If there is
    none, the unused row with the largest |A[r, i]| is taken instead and the
    attempt is marked as failed.
    Every position is always filled, so the output is a full permutation.

    Args:
        A: Coefficient matrix. Shape (n, n).
        B: Right-hand side. Shape (n,).

    Returns:
        Tuple of:
            - A_new: Reordered copy of A.
            - B_new: Reordered copy of B.
            - permutation: permutation[i] is the original index of row i.
            - dominant: True if every position got a dominant row.
    """
    A = np.asarray(A, dtype=np.float64)
    B = np.asarray(B, dtype=np.float64)
    n = A.shape[0]

    used = np.zeros(n, dtype=bool)
    permutation = np.empty(n, dtype=np.intp)
    dominant = True

    for i in range(n):
        selected = -1
        for r in range(n):
            if not used[r] and _dominant_at(A[r], i):
                selected = r
                break

        if selected == -1:
            # Greedy fallback: largest entry in column i, first one on ties
            candidates = np.flatnonzero(~used)
            selected = int(candidates[np.argmax(np.abs(A[candidates, i]))])
            dominant = False

        used[selected] = True
        permutation[i] = selected

    return A[permutation].copy(), B[permutation].copy(), permutation, dominant
