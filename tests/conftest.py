"""
Shared fixtures for the capsule fitting tests.
"""

import matplotlib

# Tests never open windows
matplotlib.use("Agg")

import numpy as np
import pytest


@pytest.fixture
def cube_points():
    """Corners of the unit cube centered at the origin."""
    half_length = 0.5
    return np.array([
        [x, y, z]
        for x in (-half_length, half_length)
        for y in (-half_length, half_length)
        for z in (-half_length, half_length)
    ], dtype=float)


@pytest.fixture
def elongated_points():
    """Box of size 4 x 1 x 1 (corners plus interior points), rotated."""
    np.random.seed(42)
    corners = np.array([
        [x, y, z] for x in (-2.0, 2.0) for y in (-0.5, 0.5) for z in (-0.5, 0.5)
    ])
    interior = np.random.uniform(-1, 1, (40, 3)) * [2.0, 0.5, 0.5]
    points = np.vstack([corners, interior])

    theta = np.pi / 6
    rotation = np.array([
        [np.cos(theta), -np.sin(theta), 0],
        [np.sin(theta), np.cos(theta), 0],
        [0, 0, 1]
    ])
    return points @ rotation.T + [1.0, -2.0, 0.5]
