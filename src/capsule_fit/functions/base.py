"""
Common contract of the capsule objective and constraint functions.

Every function takes a capsule parameter vector
[x0, y0, z0, x1, y1, z1, radius] and returns a scalar value and a
gradient of shape (7,).
"""

from typing import Protocol, runtime_checkable

import numpy as np

from ..core.geometry import N_PARAMS


@runtime_checkable
class CapsuleFunction(Protocol):
    """Scalar function of the capsule parameters with its gradient."""

    name: str

    def evaluate(self, params: np.ndarray) -> float:
        ...

    def gradient(self, params: np.ndarray) -> np.ndarray:
        ...


def finite_difference_gradient(
    function: CapsuleFunction,
    params: np.ndarray,
    step: float = 1e-6
) -> np.ndarray:
    """
    Central finite-difference approximation of a function gradient.

    Parameters
    ----------
    function : CapsuleFunction
        Function whose evaluate() is differentiated.
    params : np.ndarray
        Parameter vector of shape (7,).
    step : float
        Perturbation applied to each parameter. Default 1e-6.

    Returns
    -------
    np.ndarray
        Gradient approximation of shape (7,).
    """
    params = np.asarray(params, dtype=np.float64)
    grad = np.zeros(N_PARAMS)

    for i in range(N_PARAMS):
        forward = params.copy()
        backward = params.copy()
        forward[i] += step
        backward[i] -= step
        grad[i] = (function.evaluate(forward) - function.evaluate(backward)) / (2.0 * step)

    return grad


def check_gradient(
    function: CapsuleFunction,
    params: np.ndarray,
    rtol: float = 1e-4,
    atol: float = 1e-6,
    step: float = 1e-6
) -> bool:
    """
    Compare an analytic gradient with its finite-difference approximation.

    Returns True when every component agrees within rtol/atol.
    """
    analytic = function.gradient(params)
    numeric = finite_difference_gradient(function, params, step=step)
    return bool(np.allclose(analytic, numeric, rtol=rtol, atol=atol))
