"""Pytest fixtures and benchmark problems for itersolve testing.

This module provides:
- Benchmark equations f(x) = 0 with a known root and a bracketing interval
- Benchmark linear systems with their exact solutions
- Marker registration for the robustness/slow test split
"""

import math

import numpy as np


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "robustness: mark test as robustness/edge case test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow (run on limited CI matrix)"
    )


# =============================================================================
# Benchmark Equations
# =============================================================================

# (name, f(x) text, bracket (a, b), Newton start x0, root)
EQUATIONS = [
    ("sqrt2", "x**2 - 2", (0.0, 2.0), 1.0, math.sqrt(2.0)),
    ("cubic", "x^3 - 2*x - 5", (2.0, 3.0), 2.0, 2.0945514815423265),
    ("cos_minus_x", "cos(x) - x", (0.0, 1.0), 0.5, 0.7390851332151607),
    ("exp_minus_3", "exp(x) - 3", (0.0, 2.0), 1.0, math.log(3.0)),
]

SQRT2 = math.sqrt(2.0)


# =============================================================================
# Benchmark Linear Systems
# =============================================================================

# 4x + y = 1, 2x + 3y = 2
SMALL_A = np.array([[4.0, 1.0], [2.0, 3.0]])
SMALL_B = np.array([1.0, 2.0])
SMALL_SOLUTION = np.array([0.1, 0.6])

# Classic strictly dominant 3x3 system
THREE_A = np.array([[10.0, -1.0, 2.0], [-1.0, 11.0, -1.0], [2.0, -1.0, 10.0]])
THREE_B = np.array([6.0, 25.0, -11.0])

# Tridiagonal 4x4 system with solution [1, 2, 3, 4]
TRIDIAG_A = np.array(
    [
        [4.0, -1.0, 0.0, 0.0],
        [-1.0, 4.0, -1.0, 0.0],
        [0.0, -1.0, 4.0, -1.0],
        [0.0, 0.0, -1.0, 4.0],
    ]
)
TRIDIAG_SOLUTION = np.array([1.0, 2.0, 3.0, 4.0])
TRIDIAG_B = TRIDIAG_A @ TRIDIAG_SOLUTION

# SMALL system with its rows swapped, so reordering has work to do
SWAPPED_A = SMALL_A[::-1].copy()
SWAPPED_B = SMALL_B[::-1].copy()

# No row ordering makes this dominant: every off-diagonal sum exceeds the row max
NON_DOMINANT_A = np.array([[1.0, 2.0, 2.0], [2.0, 1.0, 2.0], [2.0, 2.0, 1.0]])
NON_DOMINANT_B = np.array([5.0, 5.0, 5.0])

# Not dominant in any order and Jacobi diverges; solution [1, 1]
DIVERGENT_A = np.array([[1.0, 3.0], [1.0, 2.0]])
DIVERGENT_B = np.array([4.0, 3.0])

DOMINANT_SYSTEMS = [
    ("small", SMALL_A, SMALL_B),
    ("three", THREE_A, THREE_B),
    ("tridiag", TRIDIAG_A, TRIDIAG_B),
]
