"""
Collision Engine Module

Signed separation queries between a capsule (or its axis) and a
polyhedron. The fitting functions only depend on the CollisionEngine
protocol; ConvexPolyhedronEngine is a reference implementation for convex
polyhedra given by their vertices, built on scipy's Qhull wrapper.

Any other engine (FCL, a mesh library, ...) can be plugged in by
implementing the two query methods. Engine settings are passed to the
constructor, there is no process-wide registry.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol, Tuple, runtime_checkable

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from ..core.errors import CollisionQueryError
from ..core.geometry import EPS, as_points


@dataclass
class DistanceReport:
    """
    Result of a distance query.

    Attributes
    ----------
    distance : float
        Signed separation distance. Positive when the geometries are apart.
    segment_point : np.ndarray
        Nearest point on the segment (or capsule surface) of shape (3,).
    polyhedron_point : np.ndarray
        Nearest point on the polyhedron surface of shape (3,).
    """
    distance: float
    segment_point: np.ndarray
    polyhedron_point: np.ndarray


@runtime_checkable
class CollisionEngine(Protocol):
    """Distance queries between a segment or capsule and a polyhedron."""

    def segment_distance(self, start: np.ndarray, end: np.ndarray, polyhedron) -> DistanceReport:
        ...

    def capsule_distance(self, start: np.ndarray, end: np.ndarray, radius: float, polyhedron) -> DistanceReport:
        ...


def closest_point_on_triangle(p: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """
    Closest point to p on the triangle (a, b, c).

    Voronoi-region walk over the vertices, edges and face of the triangle.
    """
    ab = b - a
    ac = c - a
    ap = p - a
    d1 = np.dot(ab, ap)
    d2 = np.dot(ac, ap)
    if d1 <= 0 and d2 <= 0:
        return a.copy()

    bp = p - b
    d3 = np.dot(ab, bp)
    d4 = np.dot(ac, bp)
    if d3 >= 0 and d4 <= d3:
        return b.copy()

    vc = d1 * d4 - d3 * d2
    if vc <= 0 and d1 >= 0 and d3 <= 0:
        v = d1 / (d1 - d3)
        return a + v * ab

    cp = p - c
    d5 = np.dot(ab, cp)
    d6 = np.dot(ac, cp)
    if d6 >= 0 and d5 <= d6:
        return c.copy()

    vb = d5 * d2 - d1 * d6
    if vb <= 0 and d2 >= 0 and d6 <= 0:
        w = d2 / (d2 - d6)
        return a + w * ac

    va = d3 * d6 - d5 * d4
    if va <= 0 and (d4 - d3) >= 0 and (d5 - d6) >= 0:
        w = (d4 - d3) / ((d4 - d3) + (d5 - d6))
        return b + w * (c - b)

    denom = va + vb + vc
    if abs(denom) < EPS:
        # Degenerate (flat) triangle
        return a.copy()
    v = vb / denom
    w = vc / denom
    return a + ab * v + ac * w


def closest_points_on_segments(
    p1: np.ndarray, q1: np.ndarray, p2: np.ndarray, q2: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Closest points between segments [p1, q1] and [p2, q2].

    Returns
    -------
    tuple of np.ndarray
        Closest point on the first segment and on the second segment.
    """
    d1 = q1 - p1
    d2 = q2 - p2
    r = p1 - p2
    a = np.dot(d1, d1)
    e = np.dot(d2, d2)
    f = np.dot(d2, r)

    if a <= EPS and e <= EPS:
        return p1.copy(), p2.copy()

    if a <= EPS:
        s = 0.0
        t = np.clip(f / e, 0.0, 1.0)
    else:
        c = np.dot(d1, r)
        if e <= EPS:
            t = 0.0
            s = np.clip(-c / a, 0.0, 1.0)
        else:
            b = np.dot(d1, d2)
            denom = a * e - b * b
            # Parallel segments: any s works, pick the start
            s = np.clip((b * f - c * e) / denom, 0.0, 1.0) if denom > EPS else 0.0
            t = (b * s + f) / e
            if t < 0.0:
                t = 0.0
                s = np.clip(-c / a, 0.0, 1.0)
            elif t > 1.0:
                t = 1.0
                s = np.clip((b - c) / a, 0.0, 1.0)

    return p1 + d1 * s, p2 + d2 * t


class ConvexPolyhedronEngine:
    """
    Reference collision engine for convex polyhedra.

    A polyhedron is given by its vertices, an array of shape (N, 3); its
    solid is the convex hull of those vertices. Distances are exact for
    separated geometries. A segment that crosses the solid has no
    separation report and raises CollisionQueryError.

    Parameters
    ----------
    tolerance : float
        Depth below which a segment touching the surface is still
        considered separated. Default 1e-9.
    cache_size : int
        Number of polyhedron hulls kept by this engine, keyed by the
        vertex bytes. 0 disables the cache. Default 64.
    """

    def __init__(self, tolerance: float = 1e-9, cache_size: int = 64):
        self.tolerance = tolerance
        self.cache_size = cache_size
        # Per-engine cache, two engines never share hulls
        self._hull_from_bytes = lru_cache(maxsize=cache_size)(self._build_hull)

    @staticmethod
    def _build_hull(data: bytes, n_points: int) -> ConvexHull:
        vertices = np.frombuffer(data, dtype=np.float64).reshape(n_points, 3)
        return ConvexHull(vertices)

    def _hull(self, polyhedron) -> ConvexHull:
        vertices = np.ascontiguousarray(as_points(polyhedron))
        try:
            return self._hull_from_bytes(vertices.tobytes(), len(vertices))
        except (QhullError, ValueError) as e:
            raise CollisionQueryError(f"Cannot build polyhedron hull: {e}") from e

    def _penetrates(self, hull: ConvexHull, start: np.ndarray, end: np.ndarray) -> bool:
        """Test if the segment crosses the inside of the hull."""
        normals = hull.equations[:, :3]
        offsets = hull.equations[:, 3]
        direction = end - start

        lo, hi = 0.0, 1.0
        for s, k in zip(normals @ start + offsets, normals @ direction):
            if abs(k) < EPS:
                if s > -self.tolerance:
                    return False
            elif k > 0:
                hi = min(hi, (-self.tolerance - s) / k)
            else:
                lo = max(lo, (-self.tolerance - s) / k)
            if lo > hi:
                return False
        return True

    def segment_distance(self, start: np.ndarray, end: np.ndarray, polyhedron) -> DistanceReport:
        """
        Separation distance between a segment and a convex polyhedron.

        Raises
        ------
        CollisionQueryError
            If the segment penetrates the polyhedron or the hull is degenerate.
        """
        start = np.asarray(start, dtype=np.float64)
        end = np.asarray(end, dtype=np.float64)
        hull = self._hull(polyhedron)

        if self._penetrates(hull, start, end):
            raise CollisionQueryError("Segment penetrates the polyhedron, no distance report.")

        best = (np.inf, start, start)
        for simplex in hull.simplices:
            a, b, c = hull.points[simplex]

            candidates = [
                (start, closest_point_on_triangle(start, a, b, c)),
                (end, closest_point_on_triangle(end, a, b, c)),
            ]
            for e0, e1 in ((a, b), (b, c), (c, a)):
                candidates.append(closest_points_on_segments(start, end, e0, e1))

            for seg_pt, poly_pt in candidates:
                dist = float(np.linalg.norm(seg_pt - poly_pt))
                if dist < best[0]:
                    best = (dist, seg_pt, poly_pt)

        return DistanceReport(distance=best[0], segment_point=best[1], polyhedron_point=best[2])

    def capsule_distance(self, start: np.ndarray, end: np.ndarray, radius: float, polyhedron) -> DistanceReport:
        """
        Signed separation between a capsule and a convex polyhedron.

        Negative values measure how deep the capsule surface reaches into
        the polyhedron. The axis itself must stay outside.
        """
        report = self.segment_distance(start, end, polyhedron)
        segment_point = report.segment_point
        if report.distance > EPS:
            segment_point = segment_point + radius * (report.polyhedron_point - segment_point) / report.distance
        return DistanceReport(
            distance=report.distance - radius,
            segment_point=segment_point,
            polyhedron_point=report.polyhedron_point
        )
