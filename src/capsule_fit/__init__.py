"""
capsule_fit - Minimum-volume bounding capsules for 3D point sets.

This package computes the capsule (a cylinder with hemispherical caps,
given by two axis end points and a radius) of locally minimal volume that
encloses a set of points or polyhedra:
- A PCA heuristic gives a bounding capsule used as starting point
- The volume is minimized under one containment constraint per point
- Point sets can be reduced to their convex hull beforehand

Capsules are exchanged as parameter vectors
[x0, y0, z0, x1, y1, z1, radius].

Main Functions
--------------
fit_capsule : Full pipeline (hull reduction, bounding capsule, optimization)
compute_best_fit_capsule : Optimize from a given starting capsule
bounding_capsule_params : PCA bounding capsule of a point set
plot_capsule : Draw a capsule and the points it encloses

Example
-------
>>> import numpy as np
>>> from capsule_fit import fit_capsule

>>> points = np.random.randn(100, 3) * [3.0, 1.0, 1.0]
>>> result = fit_capsule(points)
>>> result.solution_volume <= result.initial_volume
True
"""

from .core.errors import CapsuleFitError, InvalidInputError, CollisionQueryError
from .core.geometry import (
    Capsule,
    distance_point_to_segment,
    projection_on_segment,
    capsule_to_params,
    params_to_capsule,
)
from .core.hull import convex_hull_points, convex_polyhedron
from .bounding.pca import capsule_from_points, bounding_capsule, bounding_capsule_params
from .functions import (
    Volume,
    PointDistanceConstraint,
    SegmentPolyhedronDistance,
    CapsulePolyhedronDistance,
)
from .collision.engine import CollisionEngine, ConvexPolyhedronEngine, DistanceReport
from .fitting.solvers import SolverStatus
from .fitting.fitter import (
    FitterOptions,
    FitResult,
    Fitter,
    compute_best_fit_capsule,
    fit_capsule,
)
from .visualization.plotting import plot_capsule, plot_fit_result

__all__ = [
    # Errors
    'CapsuleFitError',
    'InvalidInputError',
    'CollisionQueryError',
    # Geometry
    'Capsule',
    'distance_point_to_segment',
    'projection_on_segment',
    'capsule_to_params',
    'params_to_capsule',
    'convex_hull_points',
    'convex_polyhedron',
    # Bounding capsule
    'capsule_from_points',
    'bounding_capsule',
    'bounding_capsule_params',
    # Objective and constraints
    'Volume',
    'PointDistanceConstraint',
    'SegmentPolyhedronDistance',
    'CapsulePolyhedronDistance',
    # Collision
    'CollisionEngine',
    'ConvexPolyhedronEngine',
    'DistanceReport',
    # Fitting
    'SolverStatus',
    'FitterOptions',
    'FitResult',
    'Fitter',
    'compute_best_fit_capsule',
    'fit_capsule',
    # Visualization
    'plot_capsule',
    'plot_fit_result',
]
