"""
Visualization utilities for capsule plotting.

Contains plotting functions for:
- A capsule wireframe with the enclosed points
- Initial and solution capsules of a fit side by side
"""

from typing import Optional, Tuple, TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d import Axes3D

from ..core.geometry import as_points, params_to_capsule

if TYPE_CHECKING:
    from ..fitting.fitter import FitResult


def capsule_surface(params, resolution: int = 24) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Sample the surface of a capsule for surface or wireframe plots.

    The surface is swept along the axis: a hemisphere around the first end
    point, the cylinder, then a hemisphere around the second end point.

    Parameters
    ----------
    params : array_like
        Capsule parameters of shape (7,).
    resolution : int
        Number of samples around the axis and per hemisphere.

    Returns
    -------
    tuple of np.ndarray
        X, Y, Z grids of shape (2 * resolution, resolution + 1).
    """
    capsule = params_to_capsule(params)
    axis = capsule.p1 - capsule.p0
    length = capsule.length

    if length > 0:
        w = axis / length
    else:
        w = np.array([0.0, 0.0, 1.0])

    # Orthonormal frame (u, v, w) around the axis
    helper = np.array([1.0, 0.0, 0.0]) if abs(w[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    u = np.cross(w, helper)
    u /= np.linalg.norm(u)
    v = np.cross(w, u)

    theta = np.linspace(0.0, 2.0 * np.pi, resolution + 1)
    # Polar angle from -pi/2 (first cap pole) to pi/2 (second cap pole)
    phi = np.linspace(-np.pi / 2, np.pi / 2, 2 * resolution)

    r = capsule.radius
    ring = r * np.cos(phi)[:, None]
    height = r * np.sin(phi)[:, None] + np.where(phi >= 0, length, 0.0)[:, None]

    points = (
        capsule.p0[None, None, :]
        + height[..., None] * w
        + (ring * np.cos(theta)[None, :])[..., None] * u
        + (ring * np.sin(theta)[None, :])[..., None] * v
    )
    return points[..., 0], points[..., 1], points[..., 2]


def plot_capsule(
    params,
    points: Optional[np.ndarray] = None,
    ax: Optional[Axes3D] = None,
    title: str = "Capsule",
    show_stats: bool = True,
    color: str = 'green'
) -> Axes3D:
    """
    Visualize a capsule and the points it should contain in 3D.

    Parameters
    ----------
    params : array_like
        Capsule parameters of shape (7,).
    points : np.ndarray, optional
        Points of shape (N, 3), drawn blue inside and coral outside.
    ax : Axes3D, optional
        Matplotlib 3D axes to plot on. Creates new figure if None.
    title : str
        Plot title.
    show_stats : bool
        Whether to show the capsule dimensions.
    color : str
        Wireframe color.

    Returns
    -------
    Axes3D
        The matplotlib axes object.
    """
    if ax is None:
        fig = plt.figure(figsize=(8, 8))
        ax = fig.add_subplot(1, 1, 1, projection='3d')

    capsule = params_to_capsule(params)
    X, Y, Z = capsule_surface(params)
    ax.plot_wireframe(X, Y, Z, color=color, alpha=0.25, linewidth=0.5)

    ax.plot(
        [capsule.p0[0], capsule.p1[0]],
        [capsule.p0[1], capsule.p1[1]],
        [capsule.p0[2], capsule.p1[2]],
        'k-', linewidth=2, label='Axis'
    )

    if points is not None:
        points = as_points(points)
        inside_mask = capsule.contains(points, tol=1e-6)
        ax.scatter(
            points[inside_mask, 0], points[inside_mask, 1], points[inside_mask, 2],
            c='steelblue', alpha=0.6, s=15, label='Inside'
        )
        if np.any(~inside_mask):
            ax.scatter(
                points[~inside_mask, 0], points[~inside_mask, 1], points[~inside_mask, 2],
                c='coral', alpha=0.6, s=15, label='Outside'
            )

    if show_stats:
        stats_text = (
            f"Length: {capsule.length:.4g}\n"
            f"Radius: {capsule.radius:.4g}\n"
            f"Volume: {capsule.volume:.4g}"
        )
        ax.text2D(
            0.02, 0.98, stats_text,
            transform=ax.transAxes,
            verticalalignment='top',
            fontfamily='monospace',
            fontsize=9,
            bbox=dict(boxstyle='round', facecolor='white', alpha=0.8)
        )

    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_zlabel('Z')
    ax.set_title(title)
    ax.legend(loc='upper right', fontsize=8)
    ax.set_box_aspect((1, 1, 1))

    return ax


def plot_fit_result(
    result: "FitResult",
    points: Optional[np.ndarray] = None,
    figsize: Tuple[int, int] = (14, 6)
) -> plt.Figure:
    """
    Visualize the initial and the solution capsule of a fit.

    Parameters
    ----------
    result : FitResult
        Result from fit_capsule() or Fitter.compute_best_fit_capsule().
    points : np.ndarray, optional
        Fitted points of shape (N, 3).
    figsize : tuple
        Figure size (width, height).

    Returns
    -------
    plt.Figure
        The matplotlib figure object.
    """
    fig = plt.figure(figsize=figsize)

    ax1 = fig.add_subplot(1, 2, 1, projection='3d')
    plot_capsule(result.initial_params, points, ax=ax1, title="Initial capsule", color='gray')

    ax2 = fig.add_subplot(1, 2, 2, projection='3d')
    plot_capsule(
        result.solution_params, points, ax=ax2,
        title=f"Solution capsule ({result.status.value})"
    )

    plt.tight_layout()
    return fig
