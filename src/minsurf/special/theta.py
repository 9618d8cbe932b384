"""Jacobi theta functions as truncated q-series.

All four kinds follow DLMF 20.2 with the nome convention q = exp(i*pi*tau).
Each series is summed until the magnitude of the newest term drops to EPS;
for array arguments the largest magnitude over the array is used, so every
entry is summed with at least that many terms.

References
----------
https://dlmf.nist.gov/20.2
https://dlmf.nist.gov/20.5#E10
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from ..errors import InvalidConfigurationError, NumericalInstabilityError, SeriesConvergenceError

EPS = 1.0e-14
MAX_TERMS = 512


def check_finite(values, what: str = "value"):
    """Raise NumericalInstabilityError if any entry is NaN or infinite."""
    if not np.all(np.isfinite(values)):
        raise NumericalInstabilityError(f"Non-finite {what} encountered")
    return values


def _sum_series(term: Callable[[int], np.ndarray], start: int, name: str) -> np.ndarray:
    """Sum term(n) for n = start, start+1, ... until the newest term is below EPS."""
    total = 0.0
    for n in range(start, start + MAX_TERMS):
        t = term(n)
        total = total + t
        if np.max(np.abs(t)) <= EPS:
            return total
    raise SeriesConvergenceError(
        f"{name} series did not converge within {MAX_TERMS} terms"
    )


def _nome(q) -> complex:
    q = complex(q)
    if not abs(q) < 1.0:
        raise InvalidConfigurationError(f"Nome must satisfy |q| < 1, got |q|={abs(q):.3g}")
    return q


def elliptic_theta(kind: int, u, q):
    """Jacobi theta function theta_kind(u, q) for kind in 1..4.

    Parameters
    ----------
    kind : int
        Theta function kind (1, 2, 3 or 4).
    u : complex or array_like
        Argument.
    q : complex
        Nome, |q| < 1.

    Returns
    -------
    complex or np.ndarray
        Series value with the shape of ``u``.
    """
    q = _nome(q)
    u = np.asarray(u, dtype=complex)
    quarter = q ** 0.25

    if kind == 1:
        J = _sum_series(
            lambda n: (-1) ** n * q ** (n * (n + 1)) * np.sin((2 * n + 1) * u), 0, "theta1"
        )
        result = 2.0 * quarter * J
    elif kind == 2:
        J = _sum_series(
            lambda n: q ** (n * (n + 1)) * np.cos((2 * n + 1) * u), 0, "theta2"
        )
        result = 2.0 * quarter * J
    elif kind == 3:
        J = _sum_series(lambda n: q ** (n * n) * np.cos(2 * n * u), 1, "theta3")
        result = 1.0 + 2.0 * J
    elif kind == 4:
        J = _sum_series(
            lambda n: (-1) ** n * q ** (n * n) * np.cos(2 * n * u), 1, "theta4"
        )
        result = 1.0 + 2.0 * J
    else:
        raise InvalidConfigurationError(f"Unknown theta kind: {kind}. Use 1, 2, 3 or 4")

    return np.asarray(result, dtype=complex)[()]


def elliptic_theta1_prime(k: int, u, q):
    """k-th derivative of theta_1 with respect to u.

    Uses d^k/du^k sin(a u) = a^k sin(a u + k pi / 2) term by term.
    """
    q = _nome(q)
    u = np.asarray(u, dtype=complex)

    def term(n):
        alpha = 2.0 * n + 1.0
        d_sine = alpha ** k * np.sin(k * np.pi / 2.0 + alpha * u)
        return (-1) ** n * q ** (n * (n + 1)) * d_sine

    J = _sum_series(term, 0, "theta1 derivative")
    return np.asarray(2.0 * q ** 0.25 * J, dtype=complex)[()]


def log_elliptic_theta1_prime(u, q):
    """Logarithmic derivative theta_1'(u) / theta_1(u) (DLMF 20.5.10)."""
    q = _nome(q)
    u = np.asarray(u, dtype=complex)

    def term(n):
        q2n = q ** (2 * n)
        if abs(q2n) < EPS:
            q2n = 0.0
        return q2n / (1.0 - q2n) * np.sin(2.0 * n * u)

    J = _sum_series(term, 1, "log theta1 derivative")
    return np.asarray(1.0 / np.tan(u) + 4.0 * J, dtype=complex)[()]
