"""
Capsule fitting by constrained volume minimization.
"""

from .solvers import SolverStatus, Constraint, NonlinearProblem, SolverOutcome, SOLVERS, solve
from .fitter import (
    FitterState,
    FitterOptions,
    FitResult,
    Fitter,
    compute_best_fit_capsule,
    fit_capsule,
)

__all__ = [
    'SolverStatus',
    'Constraint',
    'NonlinearProblem',
    'SolverOutcome',
    'SOLVERS',
    'solve',
    'FitterState',
    'FitterOptions',
    'FitResult',
    'Fitter',
    'compute_best_fit_capsule',
    'fit_capsule',
]
