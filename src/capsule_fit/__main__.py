"""
Command line capsule generator.

Usage:
    capsule-fit --points x0 y0 z0 x1 y1 z1 ... [--solver slsqp]
    python -m capsule_fit --points 0 0 0 1 0 0 0 1 0 0 0 1 --plot capsule.png
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from .core.errors import InvalidInputError
from .fitting.fitter import FitterOptions, fit_capsule
from .fitting.solvers import SOLVERS
from .logging_config import setup_logging
from .visualization.plotting import plot_fit_result

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="capsule-fit",
        description="Compute a minimum-volume capsule enclosing a set of 3D points"
    )
    parser.add_argument(
        "--points", type=float, nargs="+", required=True,
        help="Points that will be encapsulated, e.g. x0 y0 z0 x1 y1 z1 etc."
    )
    parser.add_argument(
        "--solver", default="slsqp", choices=sorted(SOLVERS),
        help="Nonlinear solver used (default: slsqp)"
    )
    parser.add_argument(
        "--initial", type=float, nargs=7, default=None,
        metavar=("X0", "Y0", "Z0", "X1", "Y1", "Z1", "R"),
        help="Initial capsule, defaults to the PCA bounding capsule"
    )
    parser.add_argument(
        "--no-hull", action="store_true",
        help="Do not reduce the points to their convex hull"
    )
    parser.add_argument(
        "--max-iterations", type=int, default=500,
        help="Solver iteration limit (default: 500)"
    )
    parser.add_argument(
        "--plot", default=None, metavar="FILE",
        help="Save a figure of the initial and solution capsules"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose logging"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if len(args.points) % 3 != 0:
        print(
            "Error: points should be an array of 3D points, e.g. x0 y0 z0 x1 y1 z1 etc.",
            file=sys.stderr
        )
        return 1

    points = np.array(args.points, dtype=np.float64).reshape(-1, 3)
    options = FitterOptions(
        solver=args.solver,
        max_iterations=args.max_iterations,
        use_convex_hull=not args.no_hull,
    )

    try:
        result = fit_capsule(points, initial_params=args.initial, options=options)
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result)

    if args.plot:
        fig = plot_fit_result(result, points)
        fig.savefig(args.plot)
        logger.info("Figure saved to %s", args.plot)

    return 0


if __name__ == "__main__":
    sys.exit(main())
