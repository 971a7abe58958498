"""
Bounding capsule heuristics.
"""

from .pca import (
    covariance_matrix,
    largest_spread_direction,
    extreme_points_along_direction,
    capsule_from_points,
    bounding_capsule,
    bounding_capsule_params,
)

__all__ = [
    'covariance_matrix',
    'largest_spread_direction',
    'extreme_points_along_direction',
    'capsule_from_points',
    'bounding_capsule',
    'bounding_capsule_params',
]
