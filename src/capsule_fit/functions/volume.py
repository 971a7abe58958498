"""
Capsule volume, the cost of the fitting problem.
"""

import numpy as np

from ..core.geometry import EPS, validate_params


class Volume:
    """
    Volume of a capsule: length * pi * r^2 + 4/3 * pi * r^3.

    The gradient with respect to the end points involves the unit axis
    direction, which is undefined for a zero-length axis. Below EPS the
    end point part of the gradient is set to zero; this is a singularity of
    the formula at point-like (spherical) capsules, not an error.
    """

    def __init__(self, name: str = "capsule volume"):
        self.name = name

    def evaluate(self, params: np.ndarray) -> float:
        params = validate_params(params, allow_negative_radius=True)
        r = params[6]
        length = float(np.linalg.norm(params[0:3] - params[3:6]))
        return length * np.pi * r * r + 4.0 / 3.0 * np.pi * r * r * r

    def gradient(self, params: np.ndarray) -> np.ndarray:
        params = validate_params(params, allow_negative_radius=True)
        r = params[6]
        axis = params[0:3] - params[3:6]
        length = float(np.linalg.norm(axis))

        grad = np.zeros(7)
        if length > EPS:
            grad[0:3] = axis / length * np.pi * r * r
            grad[3:6] = -grad[0:3]
        grad[6] = length * 2.0 * np.pi * r + 4.0 * np.pi * r * r
        return grad

    def __repr__(self) -> str:
        return f"Volume(name={self.name!r})"
