"""Special functions used by the Costa surface parametrization."""

from .theta import (
    EPS,
    MAX_TERMS,
    check_finite,
    elliptic_theta,
    elliptic_theta1_prime,
    log_elliptic_theta1_prime,
)
from .weierstrass import (
    lattice_nome,
    weierstrass_e1,
    weierstrass_p,
    weierstrass_zeta,
)

__all__ = [
    "EPS",
    "MAX_TERMS",
    "check_finite",
    "elliptic_theta",
    "elliptic_theta1_prime",
    "log_elliptic_theta1_prime",
    "lattice_nome",
    "weierstrass_e1",
    "weierstrass_p",
    "weierstrass_zeta",
]
