"""
Tests for the PCA bounding capsule.
"""

import numpy as np
import pytest

from capsule_fit.bounding.pca import (
    bounding_capsule,
    bounding_capsule_params,
    capsule_from_points,
    covariance_matrix,
    extreme_points_along_direction,
    largest_spread_direction,
)
from capsule_fit.core.errors import InvalidInputError
from capsule_fit.core.geometry import distances_to_segment


def assert_encloses(params, points, tol=1e-9):
    """Every point must lie inside the capsule up to tol."""
    dists = distances_to_segment(points, params[0:3], params[3:6])
    assert np.all(dists <= params[6] + tol), f"max excess {np.max(dists - params[6]):.3g}"


class TestCovariance:
    """Tests for covariance_matrix() and largest_spread_direction()."""

    def test_matches_numpy(self):
        np.random.seed(42)
        points = np.random.randn(50, 3)
        np.testing.assert_allclose(
            covariance_matrix(points), np.cov(points.T, bias=True), atol=1e-12
        )

    def test_elongated_direction(self):
        """The main direction of a cloud stretched along x is +-x."""
        np.random.seed(42)
        points = np.random.randn(200, 3) * [10.0, 1.0, 0.5]
        direction = largest_spread_direction(points)

        assert abs(np.linalg.norm(direction) - 1.0) < 1e-12
        assert abs(abs(direction[0]) - 1.0) < 1e-2

    def test_single_point_direction(self):
        """Zero covariance still gives a unit vector."""
        direction = largest_spread_direction(np.array([[1.0, 2.0, 3.0]]))
        assert abs(np.linalg.norm(direction) - 1.0) < 1e-12

    def test_extreme_points(self):
        points = np.array([[0.0, 0.0, 0.0], [-2.0, 1.0, 0.0], [3.0, -1.0, 0.0]])
        imin, imax = extreme_points_along_direction(points, np.array([1.0, 0.0, 0.0]))
        assert (imin, imax) == (1, 2)


class TestBoundingCapsule:
    """Tests for capsule_from_points() and its wrappers."""

    @pytest.mark.parametrize("seed", range(5))
    def test_random_clouds_enclosed(self, seed):
        np.random.seed(seed)
        scale = np.random.uniform(0.1, 5.0, 3)
        points = np.random.randn(100, 3) * scale + np.random.uniform(-10, 10, 3)
        assert_encloses(bounding_capsule_params(points), points)

    def test_cube_enclosed(self, cube_points):
        assert_encloses(bounding_capsule_params(cube_points), cube_points)

    def test_elongated_enclosed(self, elongated_points):
        params = bounding_capsule_params(elongated_points)
        assert_encloses(params, elongated_points)
        # The axis is longer than the radius for a 4 x 1 x 1 box
        assert np.linalg.norm(params[3:6] - params[0:3]) > params[6]

    def test_single_point(self):
        """A single point gives a zero-volume capsule located at the point."""
        point = np.array([[1.0, -2.0, 0.5]])
        capsule = capsule_from_points(point)

        assert capsule.radius == pytest.approx(0.0, abs=1e-12)
        assert capsule.length == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(capsule.p0, point[0], atol=1e-12)

    def test_collinear_points(self):
        """Points on a line give a capsule with (almost) zero radius."""
        points = np.outer(np.linspace(-1, 2, 7), [1.0, 1.0, 0.0])
        capsule = capsule_from_points(points)

        assert capsule.radius < 1e-9
        assert_encloses(capsule.to_params(), points)

    def test_union_of_polyhedra(self, cube_points):
        polyhedra = [cube_points, cube_points + [3.0, 0.0, 0.0]]
        capsule = bounding_capsule(polyhedra)
        assert_encloses(capsule.to_params(), np.vstack(polyhedra))

    def test_radius_non_negative(self):
        np.random.seed(42)
        params = bounding_capsule_params(np.random.randn(10, 3))
        assert params.shape == (7,)
        assert params[6] >= 0.0

    def test_empty(self):
        with pytest.raises(InvalidInputError):
            bounding_capsule_params(np.empty((0, 3)))

    def test_empty_polyhedra(self):
        with pytest.raises(InvalidInputError):
            bounding_capsule([])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
