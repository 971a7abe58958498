"""
Objective and constraint functions of the capsule fitting problem.
"""

from .base import CapsuleFunction, finite_difference_gradient, check_gradient
from .volume import Volume
from .distance import PointDistanceConstraint
from .polyhedron import SegmentPolyhedronDistance, CapsulePolyhedronDistance

__all__ = [
    'CapsuleFunction',
    'finite_difference_gradient',
    'check_gradient',
    'Volume',
    'PointDistanceConstraint',
    'SegmentPolyhedronDistance',
    'CapsulePolyhedronDistance',
]
