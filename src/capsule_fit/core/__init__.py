"""
Core geometry operations.
"""

from .errors import CapsuleFitError, InvalidInputError, CollisionQueryError
from .geometry import (
    EPS,
    N_PARAMS,
    Capsule,
    as_points,
    merge_polyhedra,
    validate_params,
    segment_parameter,
    projection_on_segment,
    distance_point_to_segment,
    distances_to_segment,
    distance_point_to_line,
    capsule_to_params,
    params_to_capsule,
)
from .hull import convex_hull_points, convex_polyhedron

__all__ = [
    'CapsuleFitError',
    'InvalidInputError',
    'CollisionQueryError',
    'EPS',
    'N_PARAMS',
    'Capsule',
    'as_points',
    'merge_polyhedra',
    'validate_params',
    'segment_parameter',
    'projection_on_segment',
    'distance_point_to_segment',
    'distances_to_segment',
    'distance_point_to_line',
    'capsule_to_params',
    'params_to_capsule',
    'convex_hull_points',
    'convex_polyhedron',
]
