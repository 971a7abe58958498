"""
Distances between a capsule and a polyhedron.

Both functions delegate the geometric query to a collision engine and do
not implement any mesh-level computation. Their gradients are obtained by
central finite differences.
"""

from typing import Optional

import numpy as np

from ..collision.engine import CollisionEngine, ConvexPolyhedronEngine
from ..core.geometry import as_points, validate_params
from .base import finite_difference_gradient


class SegmentPolyhedronDistance:
    """
    Signed separation between the capsule axis and a polyhedron.

    Positive when the axis does not touch the polyhedron. The engine raises
    CollisionQueryError when the axis penetrates the polyhedron; the error
    is propagated instead of returning a placeholder value.

    Parameters
    ----------
    polyhedron : array_like
        Polyhedron vertices of shape (N, 3).
    engine : CollisionEngine, optional
        Distance query provider. Defaults to ConvexPolyhedronEngine().
    step : float
        Finite-difference step for the gradient. Default 1e-6.
    """

    def __init__(
        self,
        polyhedron,
        engine: Optional[CollisionEngine] = None,
        name: str = "distance segment to polyhedron",
        step: float = 1e-6
    ):
        self.polyhedron = as_points(polyhedron)
        self.engine = engine if engine is not None else ConvexPolyhedronEngine()
        self.name = name
        self.step = step

    def evaluate(self, params: np.ndarray) -> float:
        params = validate_params(params, allow_negative_radius=True)
        report = self.engine.segment_distance(params[0:3], params[3:6], self.polyhedron)
        return float(report.distance)

    def gradient(self, params: np.ndarray) -> np.ndarray:
        return finite_difference_gradient(self, validate_params(params, allow_negative_radius=True), step=self.step)


class CapsulePolyhedronDistance:
    """
    Signed separation between the capsule and a polyhedron.

    Positive when apart, negative when the capsule surface overlaps the
    polyhedron. Same engine contract and failure mode as
    SegmentPolyhedronDistance.
    """

    def __init__(
        self,
        polyhedron,
        engine: Optional[CollisionEngine] = None,
        name: str = "distance capsule to polyhedron",
        step: float = 1e-6
    ):
        self.polyhedron = as_points(polyhedron)
        self.engine = engine if engine is not None else ConvexPolyhedronEngine()
        self.name = name
        self.step = step

    def evaluate(self, params: np.ndarray) -> float:
        params = validate_params(params, allow_negative_radius=True)
        report = self.engine.capsule_distance(params[0:3], params[3:6], params[6], self.polyhedron)
        return float(report.distance)

    def gradient(self, params: np.ndarray) -> np.ndarray:
        return finite_difference_gradient(self, validate_params(params, allow_negative_radius=True), step=self.step)
