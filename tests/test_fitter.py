"""
Tests for the capsule fitter and the fit_capsule() pipeline.
"""

import logging

import numpy as np
import pytest
from scipy.optimize import OptimizeResult

from capsule_fit import (
    CapsulePolyhedronDistance,
    ConvexPolyhedronEngine,
    Fitter,
    FitterOptions,
    FitResult,
    SegmentPolyhedronDistance,
    SolverStatus,
    compute_best_fit_capsule,
    fit_capsule,
)
from capsule_fit.core.errors import CollisionQueryError, InvalidInputError
from capsule_fit.core.geometry import distances_to_segment
from capsule_fit.fitting.fitter import FitterState
from capsule_fit.fitting.solvers import SOLVERS


def max_excess(params, points):
    """Largest distance of a point outside the capsule (<= 0 when enclosed)."""
    return float(np.max(distances_to_segment(points, params[0:3], params[3:6]) - params[6]))


class TestCubeFit:
    """Fitting the unit cube from a very loose starting capsule."""

    INITIAL = np.array([0.0, 0.0, -0.125, 0.0, 0.0, 0.125, 50.0])

    def test_volume_decreases(self, cube_points):
        result = compute_best_fit_capsule(cube_points, self.INITIAL)

        assert isinstance(result, FitResult)
        assert result.solution_volume <= result.initial_volume
        assert max_excess(result.solution_params, cube_points) <= 1e-6
        np.testing.assert_array_equal(result.initial_params, self.INITIAL)

    def test_solution_beats_circumscribed_sphere(self, cube_points):
        """The sphere through the corners has volume sqrt(3)*pi/2."""
        result = compute_best_fit_capsule(cube_points, self.INITIAL)

        assert result.status in (SolverStatus.OPTIMAL, SolverStatus.OPTIMAL_WITH_WARNINGS)
        assert result.solution_volume <= np.sqrt(3.0) * np.pi / 2.0 + 1e-6

    def test_trust_constr(self, cube_points):
        result = compute_best_fit_capsule(cube_points, self.INITIAL, solver="trust-constr")

        assert result.solution_volume <= result.initial_volume
        assert max_excess(result.solution_params, cube_points) <= 1e-6


class TestFitCapsule:
    """Tests for the fit_capsule() pipeline."""

    def test_elongated_box(self, elongated_points):
        result = fit_capsule(elongated_points)

        assert result.succeeded
        assert result.solution_volume <= result.initial_volume + 1e-9
        assert max_excess(result.solution_params, elongated_points) <= 1e-6
        assert result.solution_params[6] >= 0.0

    def test_without_hull(self, elongated_points):
        options = FitterOptions(use_convex_hull=False)
        result = fit_capsule(elongated_points, options=options)

        assert result.solution_volume <= result.initial_volume + 1e-9
        assert max_excess(result.solution_params, elongated_points) <= 1e-6

    def test_polyhedron_list(self, cube_points):
        """A list of polyhedra is fitted as the union of their points."""
        polyhedra = [cube_points, cube_points + [3.0, 0.0, 0.0]]
        result = fit_capsule(polyhedra)
        assert max_excess(result.solution_params, np.vstack(polyhedra)) <= 1e-6

    def test_initial_params(self, cube_points):
        initial = np.array([0.0, 0.0, -0.125, 0.0, 0.0, 0.125, 50.0])
        result = fit_capsule(cube_points, initial_params=initial)
        np.testing.assert_array_equal(result.initial_params, initial)

    def test_single_point(self):
        result = fit_capsule(np.array([[1.0, 2.0, 3.0]]))
        assert result.solution_volume == pytest.approx(0.0, abs=1e-9)

    def test_empty(self):
        with pytest.raises(InvalidInputError):
            fit_capsule(np.empty((0, 3)))

    def test_str(self, cube_points):
        text = str(fit_capsule(cube_points))
        assert "Initial volume" in text
        assert "Solution volume" in text
        assert "Status" in text


class TestFitter:
    """Tests for the Fitter class."""

    def test_state_machine(self, cube_points):
        fitter = Fitter([cube_points])
        assert fitter.state == FitterState.UNINITIALIZED

        problem = fitter.build_problem()
        assert fitter.state == FitterState.PROBLEM_BUILT
        assert len(problem.constraints) == len(cube_points)
        assert problem.lower_bounds[6] == 0.0

        result = fitter.compute_best_fit_capsule()
        expected = FitterState.SOLVED if result.succeeded else FitterState.FAILED
        assert fitter.state == expected

    def test_results_before_solving(self, cube_points):
        fitter = Fitter([cube_points])
        with pytest.raises(RuntimeError):
            _ = fitter.solution_params
        assert "uninitialized" in str(fitter)

    def test_accessors(self, cube_points):
        fitter = Fitter([cube_points])
        params = fitter.compute_best_fit_capsule_params()

        np.testing.assert_array_equal(params, fitter.solution_params)
        assert fitter.solution_volume <= fitter.initial_volume + 1e-9
        assert fitter.initial_params.shape == (7,)

    def test_replace_polyhedra(self, cube_points):
        fitter = Fitter([cube_points])
        fitter.compute_best_fit_capsule()

        larger = 2.0 * cube_points
        result = fitter.compute_best_fit_capsule(polyhedra=[larger])
        assert max_excess(result.solution_params, larger) <= 1e-6

    def test_empty_polyhedra(self):
        with pytest.raises(InvalidInputError, match="Empty polyhedron"):
            Fitter([])

    def test_invalid_initial_params(self, cube_points):
        fitter = Fitter([cube_points])
        with pytest.raises(InvalidInputError):
            fitter.compute_best_fit_capsule(np.zeros(6))
        with pytest.raises(InvalidInputError):
            fitter.compute_best_fit_capsule([0, 0, 0, 1, 0, 0, -1.0])

    def test_unknown_solver(self, cube_points):
        """The solver name is checked before any problem is built."""
        with pytest.raises(InvalidInputError, match="Unknown solver"):
            Fitter([cube_points], solver="ipopt")

    def test_unknown_solver_in_options(self, cube_points):
        with pytest.raises(InvalidInputError, match="Unknown solver"):
            Fitter([cube_points], options=FitterOptions(solver="ipopt"))

    def test_unknown_solver_functional(self, cube_points):
        with pytest.raises(InvalidInputError):
            compute_best_fit_capsule(cube_points, TestCubeFit.INITIAL, solver="ipopt")

    def test_solver_name_case_insensitive(self, cube_points):
        fitter = Fitter([cube_points], solver="SLSQP")
        assert fitter.state == FitterState.UNINITIALIZED

    def test_solver_override_keeps_options(self):
        options = FitterOptions(max_iterations=10)
        fitter = Fitter([np.zeros((1, 3))], solver="trust-constr", options=options)

        assert fitter.options.solver == "trust-constr"
        assert fitter.options.max_iterations == 10
        assert options.solver == "slsqp"


class TestFallback:
    """Solver failures fall back to the starting capsule."""

    def test_solver_error(self, monkeypatch, cube_points, caplog):
        def adapter(problem, n, tol):
            raise ValueError("broken solver")

        monkeypatch.setitem(SOLVERS, "broken", adapter)
        fitter = Fitter([cube_points], solver="broken")

        with caplog.at_level(logging.WARNING, logger="capsule_fit"):
            result = fitter.compute_best_fit_capsule()

        assert result.status == SolverStatus.SOLVER_ERROR
        assert not result.succeeded
        np.testing.assert_array_equal(result.solution_params, result.initial_params)
        assert result.solution_volume == result.initial_volume
        assert fitter.state == FitterState.FAILED
        assert "An error happened" in caplog.text

    def test_no_solution(self, monkeypatch, cube_points, caplog):
        monkeypatch.setitem(SOLVERS, "infeasible", lambda problem, n, tol: OptimizeResult(
            x=np.zeros(7), success=True, message="converged", nit=1
        ))
        fitter = Fitter([cube_points], solver="infeasible")

        with caplog.at_level(logging.WARNING, logger="capsule_fit"):
            result = fitter.compute_best_fit_capsule()

        assert result.status == SolverStatus.NO_SOLUTION
        np.testing.assert_array_equal(result.solution_params, result.initial_params)
        assert "No solution" in caplog.text

    def test_negative_radius_clamped(self, monkeypatch):
        """A radius slightly below its bound is reported as zero."""
        monkeypatch.setitem(SOLVERS, "rounding", lambda problem, n, tol: OptimizeResult(
            x=np.array([0.0, 0.0, 0.0, 0.0, 0.0, 0.0, -1e-12]), success=True, message="", nit=1
        ))
        result = Fitter([np.zeros((1, 3))], solver="rounding").compute_best_fit_capsule()

        assert result.status == SolverStatus.OPTIMAL
        assert result.solution_params[6] == 0.0


class TestPolyhedronMode:
    """Fitting with polyhedron-level constraints from a collision engine."""

    @pytest.fixture
    def raised_cube(self, cube_points):
        return cube_points + [0.0, 0.0, 3.0]

    def test_problem_constraints(self, raised_cube):
        fitter = Fitter([raised_cube], collision_engine=ConvexPolyhedronEngine())
        problem = fitter.build_problem([-1.0, 0.0, 0.0, 1.0, 0.0, 0.0, 3.0])

        assert len(problem.constraints) == 2
        lower, upper = problem.constraints
        assert lower.lower == 0.0 and np.isinf(lower.upper)
        assert upper.upper == 0.0 and np.isinf(upper.lower)
        assert problem.max_violation(problem.start) == 0.0

    def test_fit_from_corner(self, cube_points):
        """
        A short capsule facing a cube corner along the diagonal shrinks to
        a point touching the corner.
        """
        corner = np.array([0.5, 0.5, 0.5])
        diagonal = np.ones(3) / np.sqrt(3.0)
        initial = np.concatenate([corner + 0.05 * diagonal, corner + 0.55 * diagonal, [0.1]])

        engine = ConvexPolyhedronEngine()
        fitter = Fitter([cube_points], collision_engine=engine)
        result = fitter.compute_best_fit_capsule(initial)

        assert result.status in (SolverStatus.OPTIMAL, SolverStatus.OPTIMAL_WITH_WARNINGS)
        assert fitter.state == FitterState.SOLVED
        assert result.solution_volume < result.initial_volume
        assert result.solution_params[6] < 0.1

        axis_distance = SegmentPolyhedronDistance(cube_points, engine).evaluate(result.solution_params)
        capsule_distance = CapsulePolyhedronDistance(cube_points, engine).evaluate(result.solution_params)
        assert axis_distance >= -1e-6
        assert capsule_distance <= 1e-6

    def test_missing_initial_params(self, cube_points):
        """The bounding capsule axis crosses the polyhedron, so no default seed."""
        fitter = Fitter([cube_points], collision_engine=ConvexPolyhedronEngine())
        with pytest.raises(InvalidInputError, match="initial parameters"):
            fitter.compute_best_fit_capsule()
        assert fitter.state == FitterState.UNINITIALIZED

    def test_penetrating_start_raises(self, cube_points):
        """The engine cannot analyze an axis crossing the polyhedron."""
        fitter = Fitter([cube_points], collision_engine=ConvexPolyhedronEngine())
        with pytest.raises(CollisionQueryError):
            fitter.compute_best_fit_capsule([0.0, 0.0, -1.0, 0.0, 0.0, 1.0, 2.0])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
