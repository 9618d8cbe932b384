"""Update policies: componentwise scalar diffusion and vector diffusion."""

import logging

import numpy as np

from ..errors import InvalidConfigurationError
from ..fem.space import from_layout, to_layout
from .base import SurfaceSolver, relative_change

log = logging.getLogger(__name__)


def radial_projection(X_old: np.ndarray, X_sol: np.ndarray) -> np.ndarray:
    """Component of the displacement along each node's position vector.

    dr = (n . d / n . n) n with n = X_old and d = X_sol - X_old; zero at the origin.
    """
    delta = X_sol - X_old
    nn = np.einsum("ij,ij->i", X_old, X_old)
    nd = np.einsum("ij,ij->i", X_old, delta)
    coef = np.divide(nd, nn, out=np.zeros_like(nn), where=nn > 0.0)
    return coef[:, None] * X_old


class ByComponentSolver(SurfaceSolver):
    """Three scalar diffusion solves per iteration, one per coordinate.

    The residual is the largest of the three component residuals, so the
    session converges only when every component does.
    """

    vdim = 1

    def _check_options(self):
        if self.params.lambda_ != 0.0:
            raise InvalidConfigurationError(
                f"Componentwise relaxation requires lambda = 0, got {self.params.lambda_}"
            )
        if self.params.radial:
            raise InvalidConfigurationError("Componentwise relaxation does not support radial projection")

    def step(self) -> float:
        X_old = self.coordinates()
        X_new = np.empty_like(X_old)
        residuals = []
        for d in range(3):
            X_new[:, d] = self._linear_solve(X_old[:, d])
            residuals.append(relative_change(X_new[:, d], X_old[:, d]))
        log.debug(f"Component residuals: {residuals}")
        self._set_coordinates(X_new)
        return max(residuals)


class ByVectorSolver(SurfaceSolver):
    """One block-diagonal vector diffusion solve per iteration.

    Update: new = lambda * old + (1 - lambda) * solution, or with radial
    projection new = old + (1 - lambda) * dr.
    """

    vdim = 3

    def step(self) -> float:
        lam = self.params.lambda_
        X_old = self.coordinates()
        x = to_layout(X_old, self.space.ordering)
        X_sol = from_layout(self._linear_solve(x), 3, self.space.ordering)

        if self.params.radial:
            X_new = X_old + (1.0 - lam) * radial_projection(X_old, X_sol)
        else:
            X_new = lam * X_old + (1.0 - lam) * X_sol

        rnorm = relative_change(X_sol, X_old)
        self._set_coordinates(X_new)
        return rnorm
