"""
Convex hull reduction.

Replacing a point set by the vertices of its convex hull does not change
the minimal enclosing capsule, but removes one constraint per interior
point from the optimization problem.
"""

import logging
from typing import Sequence

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from .geometry import as_points, merge_polyhedra

logger = logging.getLogger(__name__)


def convex_hull_points(points: np.ndarray) -> np.ndarray:
    """
    Reduce a point set to the vertices of its convex hull.

    Uses Qhull through scipy. Degenerate sets (fewer than 4 points,
    coplanar or collinear points) cannot be triangulated in 3D; in that
    case the de-duplicated input is returned unchanged.

    Parameters
    ----------
    points : np.ndarray
        Array of shape (N, 3).

    Returns
    -------
    np.ndarray
        Hull vertices of shape (M, 3), M <= N.
    """
    points = as_points(points)
    unique = np.unique(points, axis=0)

    if len(unique) < 4:
        return unique

    try:
        hull = ConvexHull(unique)
    except QhullError as e:
        logger.debug("Convex hull failed (%s), keeping %d points", str(e).splitlines()[0], len(unique))
        return unique

    reduced = unique[np.sort(hull.vertices)]
    logger.debug("Convex hull reduced %d points to %d", len(points), len(reduced))
    return reduced


def convex_polyhedron(polyhedra: Sequence) -> np.ndarray:
    """
    Compute the convex hull of the union of several polyhedra.

    Parameters
    ----------
    polyhedra : sequence of array_like
        Each element is an array of shape (N_i, 3).

    Returns
    -------
    np.ndarray
        Hull vertices of shape (M, 3).
    """
    return convex_hull_points(merge_polyhedra(polyhedra))
