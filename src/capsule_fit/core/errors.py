"""
Exception types raised by the capsule fitting package.
"""


class CapsuleFitError(Exception):
    """Base class for all capsule fitting errors."""


class InvalidInputError(CapsuleFitError, ValueError):
    """
    Raised when a point set, polyhedron set or parameter vector is malformed.

    Examples are empty point sets, arrays that are not of shape (N, 3),
    parameter vectors that do not have 7 components, a negative radius or
    an unknown solver name.
    """


class CollisionQueryError(CapsuleFitError, RuntimeError):
    """
    Raised when the collision engine cannot produce a distance report.

    This happens for instance when the capsule axis penetrates the
    polyhedron, or when the polyhedron is too degenerate to build a hull.
    """
