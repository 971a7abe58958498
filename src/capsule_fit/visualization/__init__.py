"""
Visualization utilities.
"""

from .plotting import capsule_surface, plot_capsule, plot_fit_result

__all__ = ['capsule_surface', 'plot_capsule', 'plot_fit_result']
