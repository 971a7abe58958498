"""
Distance between a capsule and a point, the per-point fitting constraint.
"""

import numpy as np

from ..core.geometry import (
    EPS,
    as_points,
    validate_params,
    segment_parameter,
    distance_point_to_segment,
)


class PointDistanceConstraint:
    """
    Signed distance from the capsule surface to a point.

    The value is the distance from the point to the capsule axis minus the
    radius: negative or zero when the point lies inside or on the capsule,
    positive when outside.

    Parameters
    ----------
    point : array_like
        Point of shape (3,).
    name : str
        Label used in logs and solver messages.
    """

    def __init__(self, point, name: str = "distance to point"):
        self.point = as_points(point)[0]
        self.name = name

    def evaluate(self, params: np.ndarray) -> float:
        params = validate_params(params, allow_negative_radius=True)
        return distance_point_to_segment(self.point, params[0:3], params[3:6]) - params[6]

    def gradient(self, params: np.ndarray) -> np.ndarray:
        """
        Gradient with respect to the 7 capsule parameters.

        With lam the clamped projection parameter and unit the direction
        from the point to its closest axis point, the distance derivative
        is (1 - lam) * unit for the first end point and lam * unit for the
        second one. The radius enters with coefficient -1.
        """
        params = validate_params(params, allow_negative_radius=True)
        p0 = params[0:3]
        p1 = params[3:6]

        lam = segment_parameter(self.point, p0, p1)
        closest = p0 + lam * (p1 - p0)
        offset = closest - self.point
        dist = float(np.linalg.norm(offset))

        grad = np.zeros(7)
        # A point on the axis has no defined direction to the axis
        if dist > EPS:
            unit = offset / dist
            grad[0:3] = (1.0 - lam) * unit
            grad[3:6] = lam * unit
        grad[6] = -1.0
        return grad

    def __repr__(self) -> str:
        return f"PointDistanceConstraint(point={self.point.tolist()}, name={self.name!r})"
