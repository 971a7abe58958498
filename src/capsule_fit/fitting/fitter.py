"""
Capsule Fitter Module

Computes the minimum-volume capsule enclosing a set of polyhedra:
- Builds a nonlinear program with the capsule volume as cost
- Adds one "point inside capsule" constraint per polyhedron point, or
  two polyhedron-level distance constraints when a collision engine is used
- Runs an external solver from a feasible starting capsule
- Falls back to the starting capsule when the solver fails

The optimum is local: it depends on the starting capsule, which defaults to
the PCA bounding capsule.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from ..bounding.pca import bounding_capsule_params
from ..collision.engine import CollisionEngine
from ..core.errors import InvalidInputError
from ..core.geometry import N_PARAMS, Capsule, as_points, merge_polyhedra, params_to_capsule, validate_params
from ..core.hull import convex_hull_points
from ..functions.distance import PointDistanceConstraint
from ..functions.polyhedron import CapsulePolyhedronDistance, SegmentPolyhedronDistance
from ..functions.volume import Volume
from .solvers import SOLVERS, Constraint, NonlinearProblem, SolverStatus, solve

logger = logging.getLogger(__name__)


class FitterState(Enum):
    """Life cycle of a Fitter."""
    UNINITIALIZED = "uninitialized"
    PROBLEM_BUILT = "problem built"
    SOLVING = "solving"
    SOLVED = "solved"
    FAILED = "failed"


@dataclass
class FitterOptions:
    """
    Settings of the capsule fitting problem.

    Attributes
    ----------
    solver : str
        Name of the nonlinear solver, see fitting.solvers.SOLVERS.
    max_iterations : int
        Solver iteration limit.
    tolerance : float
        Solver convergence tolerance.
    feasibility_tolerance : float
        Largest constraint violation accepted in a solution.
    use_convex_hull : bool
        Reduce the points to their convex hull before fitting (fit_capsule only).
    """
    solver: str = 'slsqp'
    max_iterations: int = 500
    tolerance: float = 1e-9
    feasibility_tolerance: float = 1e-6
    use_convex_hull: bool = True


@dataclass
class FitResult:
    """
    Container for the capsule fitting results.

    Attributes
    ----------
    solution_params : np.ndarray
        Solution capsule parameters of shape (7,). Equal to initial_params
        when the solver failed.
    solution_volume : float
        Volume of the solution capsule.
    initial_params : np.ndarray
        Starting capsule parameters of shape (7,).
    initial_volume : float
        Volume of the starting capsule.
    status : SolverStatus
        Solver outcome.
    message : str
        Solver message.
    iterations : int
        Solver iterations.
    """
    solution_params: np.ndarray
    solution_volume: float
    initial_params: np.ndarray
    initial_volume: float
    status: SolverStatus
    message: str = ""
    iterations: int = 0

    @property
    def succeeded(self) -> bool:
        """True when the solution comes from the solver."""
        return self.status in (SolverStatus.OPTIMAL, SolverStatus.OPTIMAL_WITH_WARNINGS)

    @property
    def initial_capsule(self) -> Capsule:
        return params_to_capsule(self.initial_params)

    @property
    def solution_capsule(self) -> Capsule:
        return params_to_capsule(self.solution_params)

    def __str__(self) -> str:
        return (
            "Capsule parameters:\n"
            f"  Initial parameters: {np.array2string(self.initial_params, precision=6)}\n"
            f"  Initial volume: {self.initial_volume:.6g}\n"
            f"  Solution parameters: {np.array2string(self.solution_params, precision=6)}\n"
            f"  Solution volume: {self.solution_volume:.6g}\n"
            f"  Status: {self.status.value}"
        )


class Fitter:
    """
    Best fitting capsule over a set of polyhedra.

    Parameters
    ----------
    polyhedra : sequence of array_like
        Polyhedra to enclose, each an array of shape (N_i, 3).
    solver : str, optional
        Solver name. Overrides options.solver when given.
    options : FitterOptions, optional
        Problem settings.
    collision_engine : CollisionEngine, optional
        When given, the problem uses polyhedron-level constraints
        (axis-to-polyhedron distance >= 0, capsule-to-polyhedron
        distance <= 0) instead of one constraint per point. The bounding
        capsule cannot seed this mode, its axis crosses the polyhedra, so
        initial_params must then be passed explicitly.

    Raises
    ------
    InvalidInputError
        If the polyhedron set is empty or the solver name is unknown.
    """

    def __init__(
        self,
        polyhedra: Sequence,
        solver: Optional[str] = None,
        options: Optional[FitterOptions] = None,
        collision_engine: Optional[CollisionEngine] = None
    ):
        self.options = options if options is not None else FitterOptions()
        if solver is not None:
            self.options = replace(self.options, solver=solver)
        if self.options.solver.lower() not in SOLVERS:
            raise InvalidInputError(
                f"Unknown solver {self.options.solver!r}, expected one of {sorted(SOLVERS)}"
            )
        self.collision_engine = collision_engine
        self.polyhedra = polyhedra

        self.state = FitterState.UNINITIALIZED
        self.problem: Optional[NonlinearProblem] = None
        self.result: Optional[FitResult] = None

    @property
    def polyhedra(self) -> List[np.ndarray]:
        return self._polyhedra

    @polyhedra.setter
    def polyhedra(self, polyhedra: Sequence) -> None:
        if polyhedra is None or len(polyhedra) == 0:
            raise InvalidInputError("Empty polyhedron vector.")
        self._polyhedra = [as_points(p) for p in polyhedra]
        self.state = FitterState.UNINITIALIZED
        self.problem = None

    def build_problem(self, initial_params=None) -> NonlinearProblem:
        """
        Assemble the nonlinear program.

        Parameters
        ----------
        initial_params : array_like, optional
            Starting capsule of shape (7,). Defaults to the bounding
            capsule of the polyhedra; required with a collision engine.

        Returns
        -------
        NonlinearProblem
            Volume cost, constraints, radius >= 0 bound and start point.

        Raises
        ------
        InvalidInputError
            If initial_params is malformed, or missing with a collision engine.
        CollisionQueryError
            If the engine cannot evaluate the start configuration.
        """
        if initial_params is None and self.collision_engine is not None:
            raise InvalidInputError(
                "Polyhedron constraints need explicit initial parameters with the axis outside the polyhedra."
            )

        if initial_params is None:
            start = bounding_capsule_params(merge_polyhedra(self._polyhedra))
        else:
            start = validate_params(initial_params).copy()

        if self.collision_engine is None:
            constraints = self._point_constraints()
        else:
            constraints = self._polyhedron_constraints(start)

        lower_bounds = np.full(N_PARAMS, -np.inf)
        lower_bounds[6] = 0.0

        self.problem = NonlinearProblem(
            objective=Volume(),
            constraints=constraints,
            start=start,
            lower_bounds=lower_bounds,
        )
        self.state = FitterState.PROBLEM_BUILT
        logger.debug("Built capsule problem with %d constraints", len(constraints))
        return self.problem

    def _point_constraints(self) -> List[Constraint]:
        # Points must stay inside the capsule while it shrinks
        constraints = []
        for i, polyhedron in enumerate(self._polyhedra):
            for j, point in enumerate(polyhedron):
                distance = PointDistanceConstraint(point, name=f"distance to point {i}:{j}")
                constraints.append(Constraint(distance, upper=0.0))
        return constraints

    def _polyhedron_constraints(self, start: np.ndarray) -> List[Constraint]:
        constraints = []
        for i, polyhedron in enumerate(self._polyhedra):
            segment = SegmentPolyhedronDistance(
                polyhedron, self.collision_engine, name=f"distance segment to polyhedron {i}"
            )
            capsule = CapsulePolyhedronDistance(
                polyhedron, self.collision_engine, name=f"distance capsule to polyhedron {i}"
            )
            constraints.append(Constraint(segment, lower=0.0))
            constraints.append(Constraint(capsule, upper=0.0))

        # Fail now on a start configuration the engine cannot analyze
        for constraint in constraints:
            constraint.function.evaluate(start)
        return constraints

    def compute_best_fit_capsule(self, initial_params=None, polyhedra: Optional[Sequence] = None) -> FitResult:
        """
        Compute the best fitting capsule.

        Parameters
        ----------
        initial_params : array_like, optional
            Starting capsule of shape (7,), expected to contain the
            polyhedra. Defaults to the bounding capsule.
        polyhedra : sequence of array_like, optional
            Replaces the polyhedra given at construction.

        Returns
        -------
        FitResult
            Initial and solution parameters and volumes, and solver status.
        """
        if polyhedra is not None:
            self.polyhedra = polyhedra

        problem = self.build_problem(initial_params)
        volume = problem.objective
        initial_params = problem.start.copy()
        initial_volume = volume.evaluate(initial_params)

        self.state = FitterState.SOLVING
        outcome = solve(
            problem,
            solver=self.options.solver,
            max_iterations=self.options.max_iterations,
            tolerance=self.options.tolerance,
            feasibility_tolerance=self.options.feasibility_tolerance,
        )

        if outcome.status == SolverStatus.OPTIMAL:
            logger.info("A solution has been found")
            solution_params = outcome.x
        elif outcome.status == SolverStatus.OPTIMAL_WITH_WARNINGS:
            logger.info("A solution has been found (minor problems occurred): %s", outcome.message)
            solution_params = outcome.x
        elif outcome.status == SolverStatus.NO_SOLUTION:
            logger.warning("No solution: %s", outcome.message)
            solution_params = initial_params.copy()
        else:
            logger.warning("An error happened: %s", outcome.message)
            solution_params = initial_params.copy()

        # Rounding may leave the radius a hair below its bound
        solution_params = np.asarray(solution_params, dtype=np.float64).copy()
        solution_params[6] = max(solution_params[6], 0.0)

        self.result = FitResult(
            solution_params=solution_params,
            solution_volume=volume.evaluate(solution_params),
            initial_params=initial_params,
            initial_volume=initial_volume,
            status=outcome.status,
            message=outcome.message,
            iterations=outcome.iterations,
        )
        self.state = FitterState.SOLVED if self.result.succeeded else FitterState.FAILED
        return self.result

    def compute_best_fit_capsule_params(self, initial_params=None, polyhedra: Optional[Sequence] = None) -> np.ndarray:
        """Same as compute_best_fit_capsule, returning only the solution parameters."""
        return self.compute_best_fit_capsule(initial_params, polyhedra).solution_params

    def _require_result(self) -> FitResult:
        if self.result is None:
            raise RuntimeError("No capsule has been fitted yet, call compute_best_fit_capsule() first.")
        return self.result

    @property
    def initial_params(self) -> np.ndarray:
        return self._require_result().initial_params

    @property
    def initial_volume(self) -> float:
        return self._require_result().initial_volume

    @property
    def solution_params(self) -> np.ndarray:
        return self._require_result().solution_params

    @property
    def solution_volume(self) -> float:
        return self._require_result().solution_volume

    def __str__(self) -> str:
        if self.result is None:
            return f"Fitter(state={self.state.value}, polyhedra={len(self._polyhedra)})"
        return str(self.result)


def compute_best_fit_capsule(
    points: np.ndarray,
    initial_params,
    solver: str = 'slsqp',
    options: Optional[FitterOptions] = None
) -> FitResult:
    """
    Minimize the volume of a capsule containing a point set.

    Parameters
    ----------
    points : np.ndarray
        Array of shape (N, 3).
    initial_params : array_like
        Starting capsule of shape (7,) with non-negative radius.
    solver : str
        Solver name. Default 'slsqp'.
    options : FitterOptions, optional
        Problem settings; its solver field is overridden by solver.

    Returns
    -------
    FitResult
        Initial and solution parameters and volumes, and solver status.
    """
    fitter = Fitter([as_points(points)], solver=solver, options=options)
    return fitter.compute_best_fit_capsule(initial_params)


def fit_capsule(
    points: np.ndarray,
    solver: Optional[str] = None,
    initial_params=None,
    options: Optional[FitterOptions] = None
) -> FitResult:
    """
    Fit a minimum-volume capsule around a point set.

    This is the main entry point:
    1. Optionally reduces the points to their convex hull
    2. Computes the PCA bounding capsule as starting point (unless given)
    3. Minimizes the capsule volume under the containment constraints

    Parameters
    ----------
    points : np.ndarray
        Array of shape (N, 3), or a list of such arrays (one per polyhedron).
    solver : str, optional
        Solver name. Defaults to options.solver.
    initial_params : array_like, optional
        Starting capsule of shape (7,).
    options : FitterOptions, optional
        Problem settings.

    Returns
    -------
    FitResult
        Initial and solution parameters and volumes, and solver status.
    """
    options = options if options is not None else FitterOptions()

    if isinstance(points, (list, tuple)) and len(points) > 0 and np.ndim(points[0]) == 2:
        points = merge_polyhedra(points)
    points = as_points(points)

    if options.use_convex_hull:
        points = convex_hull_points(points)

    if initial_params is None:
        initial_params = bounding_capsule_params(points)

    fitter = Fitter([points], solver=solver, options=options)
    return fitter.compute_best_fit_capsule(initial_params)
