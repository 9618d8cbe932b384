"""Weierstrass elliptic functions from Jacobi theta series.

The lattice is spanned by the half-periods w1 and w3 (defaults give the
square lattice used by the Costa surface).

References
----------
https://dlmf.nist.gov/23.6#E2
https://dlmf.nist.gov/23.6#E8
https://dlmf.nist.gov/23.6#E13
"""

import numpy as np

from .theta import elliptic_theta, elliptic_theta1_prime, log_elliptic_theta1_prime

W1 = 0.5
W3 = 0.5j


def lattice_nome(w1: complex = W1, w3: complex = W3) -> complex:
    """Nome q = exp(i pi tau) with tau = w3 / w1."""
    tau = w3 / w1
    return complex(np.exp(1j * np.pi * tau))


def weierstrass_e1(w1: complex = W1, w3: complex = W3) -> complex:
    """Root e1 = P(w1) of the Weierstrass cubic."""
    q = lattice_nome(w1, w3)
    return complex(
        np.pi ** 2 / (12.0 * w1 * w1)
        * (elliptic_theta(2, 0, q) ** 4 + 2.0 * elliptic_theta(4, 0, q) ** 4)
    )


def weierstrass_p(z, w1: complex = W1, w3: complex = W3):
    """Weierstrass P function."""
    q = lattice_nome(w1, w3)
    e1 = weierstrass_e1(w1, w3)
    u = np.pi * np.asarray(z, dtype=complex) / (2.0 * w1)
    P = (
        np.pi
        * elliptic_theta(3, 0, q)
        * elliptic_theta(4, 0, q)
        * elliptic_theta(2, u, q)
        / (2.0 * w1 * elliptic_theta(1, u, q))
    )
    return P * P + e1


def weierstrass_zeta(z, w1: complex = W1, w3: complex = W3):
    """Weierstrass zeta function, zeta' = -P."""
    q = lattice_nome(w1, w3)
    eta1 = (
        -np.pi ** 2
        / (12.0 * w1)
        * (elliptic_theta1_prime(3, 0, q) / elliptic_theta1_prime(1, 0, q))
    )
    z = np.asarray(z, dtype=complex)
    u = np.pi * z / (2.0 * w1)
    return z * eta1 / w1 + np.pi / (2.0 * w1) * log_elliptic_theta1_prime(u, q)
