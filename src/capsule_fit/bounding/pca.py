"""
PCA Bounding Capsule Module

Computes a capsule that contains every point of a set, to be used as the
starting point of the volume minimization. The capsule axis follows the
direction of largest spread of the points (first principal component), the
radius is the largest distance from a point to that axis, and both caps are
then pulled in as far as the points allow.

The result is feasible but not minimal.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from ..core.geometry import (
    EPS,
    Capsule,
    as_points,
    merge_polyhedra,
    distance_point_to_line,
    distances_to_segment,
)

logger = logging.getLogger(__name__)


def covariance_matrix(points: np.ndarray) -> np.ndarray:
    """
    Compute the covariance matrix of a point set about its centroid.

    Parameters
    ----------
    points : np.ndarray
        Array of shape (N, 3).

    Returns
    -------
    np.ndarray
        Symmetric matrix of shape (3, 3), normalized by N.
    """
    points = as_points(points)
    centered = points - points.mean(axis=0)
    return centered.T @ centered / len(points)


def largest_spread_direction(points: np.ndarray) -> np.ndarray:
    """
    Unit direction of largest spread of a point set.

    This is the eigenvector of the covariance matrix with the largest
    absolute eigenvalue. For a single point, or any set with zero
    covariance, eigh still returns an orthonormal basis so a valid unit
    vector comes out.
    """
    eigenvalues, eigenvectors = np.linalg.eigh(covariance_matrix(points))
    direction = eigenvectors[:, int(np.argmax(np.abs(eigenvalues)))]
    return direction / np.linalg.norm(direction)


def extreme_points_along_direction(points: np.ndarray, direction: np.ndarray) -> Tuple[int, int]:
    """
    Indices of the least and most distant points along a direction.

    Returns
    -------
    tuple of int
        (imin, imax) indices into points.
    """
    proj = np.asarray(points) @ np.asarray(direction)
    return int(np.argmin(proj)), int(np.argmax(proj))


def capsule_from_points(points: np.ndarray) -> Capsule:
    """
    Compute a bounding capsule of a point set.

    Algorithm:
    1. Axis direction from the largest covariance eigenvector
    2. Radius from the farthest point to the line (centroid, direction)
    3. Axis length and center from the extreme points along the direction
    4. Start and end points moved outward until every point near the two
       caps lies inside its hemisphere

    Parameters
    ----------
    points : np.ndarray
        Array of shape (N, 3), N >= 1.

    Returns
    -------
    Capsule
        Capsule containing every point (up to rounding).
    """
    points = as_points(points)

    direction = largest_spread_direction(points)
    imin, imax = extreme_points_along_direction(points, direction)
    min_pt = points[imin]
    max_pt = points[imax]

    average = points.mean(axis=0)

    radius = 0.0
    for point in points:
        radius = max(radius, distance_point_to_line(point, average, direction))

    length = float(np.linalg.norm(max_pt - min_pt))

    # Center along the axis, placed from the farthest extreme point
    max_from_average = abs(float(np.dot(max_pt - average, direction)))
    center = average + (max_from_average - 0.5 * length) * direction

    # Caps start where the cylinder would end if it were as long as the
    # spread, or at the center when the radius exceeds half the length
    half_offset = max(0.5 * length - radius, 0.0)
    start = center - half_offset * direction
    end = center + half_offset * direction

    axial = (points - center) @ direction
    near_start = points[-axial > half_offset]
    near_end = points[axial > half_offset]

    for point in near_start:
        if np.linalg.norm(point - start) > radius:
            h = distance_point_to_line(point, center, direction)
            offset = float(np.dot(point - start, -direction))
            radicand = radius * radius - h * h
            if radicand >= 0 and offset - np.sqrt(radicand) > 0:
                start = start - (offset - np.sqrt(radicand)) * direction

    for point in near_end:
        if np.linalg.norm(point - end) > radius:
            h = distance_point_to_line(point, center, direction)
            offset = float(np.dot(point - end, direction))
            radicand = radius * radius - h * h
            if radicand >= 0 and offset - np.sqrt(radicand) > 0:
                end = end + (offset - np.sqrt(radicand)) * direction

    # Absorb rounding so that the capsule is feasible for the optimizer
    max_dist = float(np.max(distances_to_segment(points, start, end)))
    if max_dist > radius:
        if max_dist - radius > 1e3 * EPS * max(1.0, radius):
            logger.debug("Bounding capsule radius raised from %g to %g", radius, max_dist)
        radius = max_dist

    return Capsule(p0=start, p1=end, radius=radius)


def bounding_capsule(polyhedra: Sequence) -> Capsule:
    """
    Compute the bounding capsule of the union of several polyhedra.

    Parameters
    ----------
    polyhedra : sequence of array_like
        Each element is an array of shape (N_i, 3).
    """
    return capsule_from_points(merge_polyhedra(polyhedra))


def bounding_capsule_params(points: np.ndarray) -> np.ndarray:
    """
    Bounding capsule of a point set as a solver parameter vector.

    Returns
    -------
    np.ndarray
        Array [x0, y0, z0, x1, y1, z1, radius] of shape (7,).
    """
    capsule = capsule_from_points(points)
    logger.debug(
        "Bounding capsule: length %.6g, radius %.6g, volume %.6g",
        capsule.length, capsule.radius, capsule.volume
    )
    return capsule.to_params()
