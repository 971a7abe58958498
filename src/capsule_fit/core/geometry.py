"""
Core geometry operations for capsule fitting.

Contains utility functions for:
- Point set and parameter vector validation
- Point-to-segment projection and distance
- Point-to-line distance
- Conversion between Capsule objects and 7-component parameter vectors
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .errors import InvalidInputError


# Numerical tolerance for floating point comparisons
EPS = 1e-10

# Number of capsule parameters: two end points and a radius
N_PARAMS = 7


def as_points(points) -> np.ndarray:
    """
    Convert input to a float array of 3D points.

    Parameters
    ----------
    points : array_like
        Points of shape (N, 3), or a single point of shape (3,).

    Returns
    -------
    np.ndarray
        Array of shape (N, 3) with dtype float64.

    Raises
    ------
    InvalidInputError
        If the set is empty, not 3D, or contains non-finite values.
    """
    try:
        points = np.asarray(points, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Cannot interpret points as an array: {e}") from e

    if points.ndim == 1 and points.shape[0] == 3:
        points = points.reshape(1, 3)

    if points.ndim != 2 or points.shape[1] != 3:
        raise InvalidInputError(f"Expected points of shape (N, 3), got {points.shape}")

    if len(points) == 0:
        raise InvalidInputError("Empty point set.")

    if not np.all(np.isfinite(points)):
        raise InvalidInputError("Points must be finite.")

    return points


def merge_polyhedra(polyhedra: Sequence) -> np.ndarray:
    """
    Merge a collection of polyhedra into a single point set.

    The result is the union of all polyhedron points. Duplicates are kept,
    they are harmless for every algorithm of the package.

    Parameters
    ----------
    polyhedra : sequence of array_like
        Each element is an array of shape (N_i, 3).

    Returns
    -------
    np.ndarray
        Array of shape (sum N_i, 3).
    """
    if polyhedra is None or len(polyhedra) == 0:
        raise InvalidInputError("Empty polyhedron set.")

    return np.vstack([as_points(polyhedron) for polyhedron in polyhedra])


def validate_params(params, allow_negative_radius: bool = False) -> np.ndarray:
    """
    Check and convert a capsule parameter vector.

    The vector contains in this order: the axis first end point
    coordinates, the axis second end point coordinates and the radius.
    Objective and constraint callbacks pass allow_negative_radius=True
    since solvers may probe slightly outside the radius bound.

    Raises
    ------
    InvalidInputError
        If the vector does not have 7 finite components or the radius
        is negative.
    """
    try:
        params = np.asarray(params, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Cannot interpret capsule parameters: {e}") from e

    if params.shape[0] != N_PARAMS:
        raise InvalidInputError(
            f"Incorrect parameter vector size, expected {N_PARAMS}, got {params.shape[0]}"
        )
    if not np.all(np.isfinite(params)):
        raise InvalidInputError("Capsule parameters must be finite.")
    if params[6] < 0 and not allow_negative_radius:
        raise InvalidInputError(f"Invalid radius {params[6]}, expected non-negative value.")

    return params


def segment_parameter(point: np.ndarray, seg_start: np.ndarray, seg_end: np.ndarray) -> float:
    """
    Clamped projection parameter of a point on a segment.

    Returns lambda in [0, 1] such that seg_start + lambda * (seg_end - seg_start)
    is the closest point of the segment. A degenerate segment gives 0.
    """
    direction = seg_end - seg_start
    length_sq = float(np.dot(direction, direction))
    if length_sq < EPS * EPS:
        return 0.0

    lam = float(np.dot(point - seg_start, direction)) / length_sq
    return min(max(lam, 0.0), 1.0)


def projection_on_segment(point: np.ndarray, seg_start: np.ndarray, seg_end: np.ndarray) -> np.ndarray:
    """
    Orthogonal projection of a point on a finite segment.

    Parameters
    ----------
    point : np.ndarray
        Point of shape (3,).
    seg_start, seg_end : np.ndarray
        Segment end points of shape (3,).

    Returns
    -------
    np.ndarray
        Closest point of the segment, shape (3,).
    """
    point = np.asarray(point, dtype=np.float64)
    seg_start = np.asarray(seg_start, dtype=np.float64)
    seg_end = np.asarray(seg_end, dtype=np.float64)

    lam = segment_parameter(point, seg_start, seg_end)
    return seg_start + lam * (seg_end - seg_start)


def distance_point_to_segment(point: np.ndarray, seg_start: np.ndarray, seg_end: np.ndarray) -> float:
    """
    Euclidean distance from a point to a finite segment.

    When seg_start == seg_end this is the distance between two points.
    """
    closest = projection_on_segment(point, seg_start, seg_end)
    return float(np.linalg.norm(np.asarray(point, dtype=np.float64) - closest))


def distances_to_segment(points: np.ndarray, seg_start: np.ndarray, seg_end: np.ndarray) -> np.ndarray:
    """
    Vectorized distance from many points to a segment.

    Parameters
    ----------
    points : np.ndarray
        Points of shape (N, 3).
    seg_start, seg_end : np.ndarray
        Segment end points of shape (3,).

    Returns
    -------
    np.ndarray
        Distances of shape (N,).
    """
    points = np.atleast_2d(np.asarray(points, dtype=np.float64))
    seg_start = np.asarray(seg_start, dtype=np.float64)
    direction = np.asarray(seg_end, dtype=np.float64) - seg_start

    length_sq = float(np.dot(direction, direction))
    if length_sq < EPS * EPS:
        return np.linalg.norm(points - seg_start, axis=1)

    lam = np.clip((points - seg_start) @ direction / length_sq, 0.0, 1.0)
    closest = seg_start + lam[:, None] * direction
    return np.linalg.norm(points - closest, axis=1)


def distance_point_to_line(point: np.ndarray, line_point: np.ndarray, direction: np.ndarray) -> float:
    """
    Distance from a point to the infinite line (line_point, direction).

    The direction does not need to be normalized, but must be non-zero.
    """
    norm = np.linalg.norm(direction)
    if norm < EPS:
        return float(np.linalg.norm(point - line_point))
    return float(np.linalg.norm(np.cross(direction, line_point - point)) / norm)


@dataclass
class Capsule:
    """
    Capsule given by the two end points of its axis and a radius.

    Attributes
    ----------
    p0 : np.ndarray
        Axis first end point of shape (3,).
    p1 : np.ndarray
        Axis second end point of shape (3,).
    radius : float
        Capsule radius.
    """
    p0: np.ndarray
    p1: np.ndarray
    radius: float

    @property
    def length(self) -> float:
        """Length of the capsule axis."""
        return float(np.linalg.norm(self.p1 - self.p0))

    @property
    def volume(self) -> float:
        """Volume of the cylinder plus the two hemispherical caps."""
        r = self.radius
        return self.length * np.pi * r * r + 4.0 / 3.0 * np.pi * r * r * r

    def contains(self, points: np.ndarray, tol: float = 1e-9) -> np.ndarray:
        """
        Test which points lie inside or on the capsule.

        Returns a boolean array of shape (N,).
        """
        return distances_to_segment(points, self.p0, self.p1) <= self.radius + tol

    def to_params(self) -> np.ndarray:
        return capsule_to_params(self.p0, self.p1, self.radius)

    @classmethod
    def from_params(cls, params) -> "Capsule":
        return params_to_capsule(params)


def capsule_to_params(p0: np.ndarray, p1: np.ndarray, radius: float) -> np.ndarray:
    """
    Convert capsule end points and radius to a solver parameter vector.

    Returns
    -------
    np.ndarray
        Array [x0, y0, z0, x1, y1, z1, radius] of shape (7,).
    """
    params = np.empty(N_PARAMS, dtype=np.float64)
    params[0:3] = p0
    params[3:6] = p1
    params[6] = radius
    return params


def params_to_capsule(params) -> Capsule:
    """Convert a solver parameter vector to a Capsule."""
    params = validate_params(params)
    return Capsule(p0=params[0:3].copy(), p1=params[3:6].copy(), radius=float(params[6]))
