"""
Nonlinear Solver Module

Thin adapters around scipy.optimize.minimize. A NonlinearProblem holds the
objective, the bounded constraint functions, the parameter bounds and the
starting point; solve() runs one of the registered solvers and classifies
its outcome. The solver is treated as a black box: no timeout, retry or
multi-start happens here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from scipy.optimize import BFGS, Bounds, NonlinearConstraint, OptimizeResult, minimize

from ..core.errors import CapsuleFitError, InvalidInputError
from ..core.geometry import N_PARAMS
from ..functions.base import CapsuleFunction


class SolverStatus(Enum):
    """Outcome of a solver run."""
    OPTIMAL = "optimal"
    OPTIMAL_WITH_WARNINGS = "optimal with warnings"
    NO_SOLUTION = "no solution"
    SOLVER_ERROR = "solver error"


@dataclass
class Constraint:
    """
    Constraint lower <= function(params) <= upper.

    Use -inf or inf for a one-sided constraint.
    """
    function: CapsuleFunction
    lower: float = -np.inf
    upper: float = np.inf

    def violation(self, params: np.ndarray) -> float:
        value = self.function.evaluate(params)
        return max(self.lower - value, value - self.upper, 0.0)


@dataclass
class NonlinearProblem:
    """
    Container for a capsule fitting program.

    Attributes
    ----------
    objective : CapsuleFunction
        Cost function to minimize.
    constraints : list of Constraint
        Bounded constraint functions.
    start : np.ndarray
        Starting point of shape (7,).
    lower_bounds : np.ndarray
        Parameter lower bounds of shape (7,).
    upper_bounds : np.ndarray
        Parameter upper bounds of shape (7,).
    """
    objective: CapsuleFunction
    constraints: List[Constraint]
    start: np.ndarray
    lower_bounds: np.ndarray = field(default_factory=lambda: np.full(N_PARAMS, -np.inf))
    upper_bounds: np.ndarray = field(default_factory=lambda: np.full(N_PARAMS, np.inf))

    def max_violation(self, params: np.ndarray) -> float:
        """Largest violation of a constraint or a bound at params."""
        params = np.asarray(params, dtype=np.float64)
        bound_violation = max(
            float(np.max(self.lower_bounds - params)),
            float(np.max(params - self.upper_bounds)),
            0.0
        )
        violations = [c.violation(params) for c in self.constraints]
        return max([bound_violation] + violations)


@dataclass
class SolverOutcome:
    """
    Classified result of a solver run.

    Attributes
    ----------
    status : SolverStatus
        How the run ended.
    x : np.ndarray or None
        Point returned by the solver, None on solver error.
    message : str
        Solver message or error description.
    iterations : int
        Number of solver iterations, 0 when unknown.
    """
    status: SolverStatus
    x: Optional[np.ndarray]
    message: str = ""
    iterations: int = 0


def _constraint_rows(constraints: List[Constraint]) -> List[Tuple[Constraint, float, float]]:
    """
    Split constraints into rows of the form sign * (f - bound) >= 0.

    Returns (constraint, sign, bound) triples, one per finite bound.
    """
    rows = []
    for constraint in constraints:
        if np.isfinite(constraint.upper):
            rows.append((constraint, -1.0, constraint.upper))
        if np.isfinite(constraint.lower):
            rows.append((constraint, 1.0, constraint.lower))
    return rows


def _solve_slsqp(problem: NonlinearProblem, max_iterations: int, tolerance: float) -> OptimizeResult:
    rows = _constraint_rows(problem.constraints)

    def values(x):
        return np.array([sign * (c.function.evaluate(x) - bound) for c, sign, bound in rows])

    def jacobian(x):
        return np.array([sign * c.function.gradient(x) for c, sign, _ in rows]).reshape(-1, N_PARAMS)

    constraints = [{'type': 'ineq', 'fun': values, 'jac': jacobian}] if rows else []

    return minimize(
        problem.objective.evaluate,
        problem.start,
        jac=problem.objective.gradient,
        method='SLSQP',
        bounds=Bounds(problem.lower_bounds, problem.upper_bounds),
        constraints=constraints,
        options={'maxiter': max_iterations, 'ftol': tolerance}
    )


def _solve_trust_constr(problem: NonlinearProblem, max_iterations: int, tolerance: float) -> OptimizeResult:
    functions = [c.function for c in problem.constraints]
    constraints = []
    if functions:
        constraints.append(NonlinearConstraint(
            lambda x: np.array([f.evaluate(x) for f in functions]),
            np.array([c.lower for c in problem.constraints]),
            np.array([c.upper for c in problem.constraints]),
            jac=lambda x: np.array([f.gradient(x) for f in functions]).reshape(-1, N_PARAMS),
            hess=BFGS()
        ))

    return minimize(
        problem.objective.evaluate,
        problem.start,
        jac=problem.objective.gradient,
        hess=BFGS(),
        method='trust-constr',
        bounds=Bounds(problem.lower_bounds, problem.upper_bounds),
        constraints=constraints,
        options={'maxiter': max_iterations, 'gtol': tolerance, 'xtol': tolerance}
    )


# Registered solvers: name -> adapter(problem, max_iterations, tolerance)
SOLVERS: Dict[str, Callable[[NonlinearProblem, int, float], OptimizeResult]] = {
    'slsqp': _solve_slsqp,
    'trust-constr': _solve_trust_constr,
}


def solve(
    problem: NonlinearProblem,
    solver: str = 'slsqp',
    max_iterations: int = 500,
    tolerance: float = 1e-9,
    feasibility_tolerance: float = 1e-6
) -> SolverOutcome:
    """
    Run a registered solver on a problem and classify the result.

    Classification:
    - OPTIMAL: the solver converged to a feasible point
    - OPTIMAL_WITH_WARNINGS: the solver stopped early (iteration limit,
      line search trouble) on a feasible point
    - NO_SOLUTION: the returned point violates a constraint or a bound by
      more than feasibility_tolerance
    - SOLVER_ERROR: the solver or a callback raised, or the returned point
      is not finite

    Parameters
    ----------
    problem : NonlinearProblem
        Program to solve.
    solver : str
        Key of SOLVERS. Default 'slsqp'.
    max_iterations : int
        Iteration limit passed to the solver. Default 500.
    tolerance : float
        Convergence tolerance passed to the solver. Default 1e-9.
    feasibility_tolerance : float
        Largest accepted constraint violation. Default 1e-6.

    Returns
    -------
    SolverOutcome
        Status, returned point, message and iteration count.

    Raises
    ------
    InvalidInputError
        If the solver name is unknown.
    """
    key = solver.lower()
    if key not in SOLVERS:
        raise InvalidInputError(f"Unknown solver {solver!r}, expected one of {sorted(SOLVERS)}")

    try:
        result = SOLVERS[key](problem, max_iterations, tolerance)
    except (CapsuleFitError, ValueError, ArithmeticError, np.linalg.LinAlgError) as e:
        return SolverOutcome(SolverStatus.SOLVER_ERROR, None, f"{type(e).__name__}: {e}")

    x = np.asarray(result.x, dtype=np.float64)
    message = str(result.message)
    iterations = int(getattr(result, 'nit', 0) or 0)

    if not np.all(np.isfinite(x)):
        return SolverOutcome(SolverStatus.SOLVER_ERROR, None, f"Non-finite solution: {message}", iterations)

    try:
        violation = problem.max_violation(x)
    except CapsuleFitError as e:
        return SolverOutcome(SolverStatus.SOLVER_ERROR, None, f"{type(e).__name__}: {e}", iterations)

    if violation > feasibility_tolerance:
        status = SolverStatus.NO_SOLUTION
        message = f"{message} (constraint violation {violation:.3g})"
    elif result.success:
        status = SolverStatus.OPTIMAL
    else:
        status = SolverStatus.OPTIMAL_WITH_WARNINGS

    return SolverOutcome(status, x, message, iterations)
