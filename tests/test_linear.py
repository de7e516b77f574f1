"""Behaviour tests for LinearSystemSolver and the row reordering heuristic.

This module validates:
- Row reordering: identity on dominant input, full permutation otherwise,
  idempotence, and purity of the standalone function
- Trace shape: iteration-0 record, copies of x, error definitions
- Relaxation residual bookkeeping
- Input validation
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from itersolve import (
    LinearSystemSolver,
    Termination,
    ZeroDiagonalError,
    diagonally_dominant_order,
    is_diagonally_dominant,
)
from tests.conftest import (
    DOMINANT_SYSTEMS,
    NON_DOMINANT_A,
    NON_DOMINANT_B,
    SMALL_A,
    SMALL_B,
    SMALL_SOLUTION,
    SWAPPED_A,
    SWAPPED_B,
    THREE_A,
    THREE_B,
)


# =============================================================================
# Row Reordering
# =============================================================================


def test_reorder_keeps_dominant_matrix():
    """An already dominant matrix maps every row to itself."""
    solver = LinearSystemSolver(THREE_A, THREE_B, verbose=-1)
    assert solver.make_diagonally_dominant() is True
    assert_array_equal(solver.permutation, [0, 1, 2])
    assert_array_equal(solver.A, THREE_A)
    assert_array_equal(solver.B, THREE_B)


def test_reorder_swaps_rows():
    solver = LinearSystemSolver(SWAPPED_A, SWAPPED_B, verbose=-1)
    assert solver.dominant is None
    assert solver.make_diagonally_dominant() is True
    assert_array_equal(solver.permutation, [1, 0])
    assert_array_equal(solver.A, SMALL_A)
    assert_array_equal(solver.B, SMALL_B)


def test_reorder_without_valid_permutation():
    """No dominant order exists, but every row is still placed once."""
    A_new, B_new, permutation, dominant = diagonally_dominant_order(NON_DOMINANT_A, NON_DOMINANT_B)
    assert dominant is False
    assert sorted(permutation.tolist()) == [0, 1, 2]
    # Greedy fallback: first largest entry of each column among unused rows
    assert permutation.tolist() == [1, 0, 2]
    assert_array_equal(A_new, NON_DOMINANT_A[permutation])
    assert_array_equal(B_new, NON_DOMINANT_B[permutation])


def test_reorder_is_idempotent():
    solver = LinearSystemSolver(SWAPPED_A, SWAPPED_B, verbose=-1)
    first = solver.make_diagonally_dominant()
    A_once, B_once = solver.A.copy(), solver.B.copy()
    second = solver.make_diagonally_dominant()
    assert first == second
    assert solver.reordered
    assert_array_equal(solver.A, A_once)
    assert_array_equal(solver.B, B_once)


def test_reorder_failure_status_is_stable():
    solver = LinearSystemSolver(NON_DOMINANT_A, NON_DOMINANT_B, verbose=-1)
    assert solver.make_diagonally_dominant() is False
    assert solver.make_diagonally_dominant() is False


def test_reorder_function_does_not_touch_inputs():
    A = SWAPPED_A.copy()
    B = SWAPPED_B.copy()
    diagonally_dominant_order(A, B)
    assert_array_equal(A, SWAPPED_A)
    assert_array_equal(B, SWAPPED_B)


def test_solver_owns_its_arrays():
    A = SWAPPED_A.copy()
    solver = LinearSystemSolver(A, SWAPPED_B, verbose=-1)
    solver.jacobi()
    assert_array_equal(A, SWAPPED_A)


def test_is_diagonally_dominant():
    assert is_diagonally_dominant(SMALL_A)
    assert not is_diagonally_dominant(SWAPPED_A)
    # Equality counts as dominant
    assert is_diagonally_dominant([[2.0, 1.0, 1.0], [0.0, 1.0, 1.0], [0.0, 0.0, 3.0]])
    # Decimal rows exactly on the boundary
    assert is_diagonally_dominant([[0.4 + 0.3, 0.4, 0.3], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
    assert is_diagonally_dominant([[0.6, 0.5, 0.1], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])


def test_reordering_accepts_boundary_row():
    """A row with |a_ii| equal to its off-diagonal sum is taken by first fit."""
    A = np.array([[0.0, 0.0, 1.0], [0.6, 0.5, 0.1], [0.0, 1.0, 0.0]])
    B = np.array([1.0, 1.2, 1.0])
    _, _, permutation, dominant = diagonally_dominant_order(A, B)
    assert permutation.tolist() == [1, 2, 0]
    assert dominant is True


# =============================================================================
# Trace Shape
# =============================================================================


@pytest.mark.parametrize("method", ["jacobi", "gauss_seidel", "relaxation"])
def test_trace_starts_at_iteration_zero(method):
    result = getattr(LinearSystemSolver(SMALL_A, SMALL_B, tol=1e-6, verbose=-1), method)()
    first = result.trace[0]
    assert first.iteration == 0
    assert first.error is None
    assert_array_equal(first.x, [0.0, 0.0])

    assert [r.iteration for r in result.trace] == list(range(len(result.trace)))
    assert result.iterations == len(result.trace) - 1
    assert all(e >= 0 for e in result.errors[1:])
    assert result.errors[-1] <= 1e-6
    assert_allclose(result.x, SMALL_SOLUTION, rtol=0, atol=1e-5)


def test_trace_vectors_are_snapshots():
    result = LinearSystemSolver(SMALL_A, SMALL_B, verbose=-1).gauss_seidel()
    xs = [r.x for r in result.trace]
    assert not np.shares_memory(xs[1], xs[2])
    assert not np.array_equal(xs[1], xs[2])
    assert_array_equal(xs[-1], result.x)


def test_jacobi_first_step_uses_previous_iterate():
    """From x = 0 the first Jacobi step is B / diag(A) for every row."""
    result = LinearSystemSolver(SMALL_A, SMALL_B, verbose=-1).jacobi()
    assert_allclose(result.trace[1].x, [1.0 / 4.0, 2.0 / 3.0])
    assert result.trace[1].error == pytest.approx(2.0 / 3.0)


def test_gauss_seidel_first_step_uses_updated_values():
    """Row 2 already sees the new x1 within the first sweep."""
    result = LinearSystemSolver(SMALL_A, SMALL_B, verbose=-1).gauss_seidel()
    x1 = 1.0 / 4.0
    x2 = (2.0 - 2.0 * x1) / 3.0
    assert_allclose(result.trace[1].x, [x1, x2])
    assert result.trace[1].error == pytest.approx(max(x1, x2))


def test_jacobi_error_is_infinity_norm_of_update():
    result = LinearSystemSolver(THREE_A, THREE_B, verbose=-1).jacobi()
    for prev, curr in zip(result.trace, result.trace[1:]):
        assert curr.error == pytest.approx(np.max(np.abs(curr.x - prev.x)))


# =============================================================================
# Relaxation
# =============================================================================


def test_relaxation_picks_largest_residual():
    """First correction goes to the row with the largest |B|."""
    result = LinearSystemSolver(SMALL_A, SMALL_B, verbose=-1).relaxation()
    first = result.trace[1]
    # r = [1, 2]: k = 1, dx = 2/3
    assert_allclose(first.x, [0.0, 2.0 / 3.0])
    assert first.error == 2.0
    second = result.trace[2]
    # r = [1 - 2/3, 0]: k = 0, dx = (1/3) / 4
    assert_allclose(second.x, [1.0 / 12.0, 2.0 / 3.0])
    assert second.error == pytest.approx(1.0 / 3.0)


@pytest.mark.parametrize(
    "name,A,B",
    DOMINANT_SYSTEMS,
    ids=[s[0] for s in DOMINANT_SYSTEMS],
)
def test_relaxation_residual_is_small(name, A, B):
    """Independent check of B - A x at the returned estimate."""
    tol = 1e-6
    solver = LinearSystemSolver(A, B, tol=tol, verbose=-1)
    result = solver.relaxation()
    assert result.converged
    residual = np.asarray(B) - np.asarray(A) @ result.x
    assert np.all(np.abs(residual) <= tol)
    assert result.residual_norm == pytest.approx(np.max(np.abs(residual)), abs=1e-15)


def test_relaxation_stops_on_zero_residual():
    """B = 0 means x = 0 already solves the system."""
    result = LinearSystemSolver(SMALL_A, [0.0, 0.0], verbose=-1).relaxation()
    assert result.termination is Termination.CONVERGED
    assert result.iterations == 0
    assert len(result.trace) == 1
    assert_array_equal(result.x, [0.0, 0.0])


# =============================================================================
# Input Validation
# =============================================================================


def test_zero_diagonal_raises():
    """No row order puts a non-zero entry on the diagonal of column 1."""
    A = [[1.0, 0.0], [1.0, 0.0]]
    solver = LinearSystemSolver(A, [1.0, 1.0], verbose=-1)
    with pytest.raises(ZeroDiagonalError):
        solver.jacobi()


@pytest.mark.parametrize(
    "A,B,kwargs",
    [
        ([[1.0, 2.0]], [1.0], {}),
        ([[1.0, 0.0], [0.0, 1.0]], [1.0, 2.0, 3.0], {}),
        ([[1.0, 0.0], [0.0, 1.0]], [1.0, 2.0], {"n": 3}),
        ([[1.0, 0.0], [0.0, 1.0]], [1.0, 2.0], {"tol": 0.0}),
        ([[1.0, 0.0], [0.0, 1.0]], [1.0, 2.0], {"maxiter": 0}),
        ([], [], {}),
    ],
    ids=["not_square", "b_shape", "n_mismatch", "tol", "maxiter", "empty"],
)
def test_invalid_inputs(A, B, kwargs):
    with pytest.raises(ValueError):
        LinearSystemSolver(A, B, verbose=-1, **kwargs)


def test_direct_matches_known_solution():
    solver = LinearSystemSolver(SWAPPED_A, SWAPPED_B, verbose=-1)
    assert_allclose(solver.direct(), SMALL_SOLUTION)
    assert_allclose(solver.residual(SMALL_SOLUTION), [0.0, 0.0], atol=1e-15)
