"""
Collision queries between capsules and polyhedra.
"""

from .engine import (
    DistanceReport,
    CollisionEngine,
    ConvexPolyhedronEngine,
    closest_point_on_triangle,
    closest_points_on_segments,
)

__all__ = [
    'DistanceReport',
    'CollisionEngine',
    'ConvexPolyhedronEngine',
    'closest_point_on_triangle',
    'closest_points_on_segments',
]
