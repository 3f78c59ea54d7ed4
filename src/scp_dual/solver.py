"""Public solver entrypoints."""

from __future__ import annotations

from pathlib import Path

from .basic import BasicSubgradientSolver
from .data import DualResult, Instance, ProgressCallback, SolverOptions
from .io import load_instance as load_instance_file
from .spectral import SpectralProjectedSolver


def solve_spectral(
    instance: Instance,
    max_iterations: int = 300,
    options: SolverOptions | None = None,
    progress_callback: ProgressCallback | None = None,
    progress_interval: int = 100,
) -> DualResult:
    """Compute a Lagrangian lower bound with the spectral projected subgradient method.

    Args:
        instance: The set-covering instance. It is only read, so it may be shared
                  with other solves.
        max_iterations: Maximum number of dual updates (default: 300).
        options: Solver configuration options. If None, uses defaults.
        progress_callback: Optional callback function to receive progress updates.
        progress_interval: Number of iterations between progress callbacks (default: 100).

    Returns:
        DualResult containing:
        - objective: The lower bound
        - status: 'optimal', 'converged' or 'iteration_limit'
        - iterations: Number of dual updates performed
        - dual: The dual vector achieving the bound

    Raises:
        SolverConfigurationError: If max_iterations is negative.
        ResourceExhaustionError: If a working buffer cannot be allocated.

    Time Complexity:
        O(num_nonzero) per iteration for the subgradient, plus work proportional
        to the columns of the rows that moved for reduced-cost maintenance.

    Examples:
        >>> from scp_dual import build_instance, solve_spectral
        >>> instance = build_instance(2, 3, [1, 1, 2], [[0, 1], [1, 2]])
        >>> result = solve_spectral(instance)
        >>> print(result.status, result.objective)
        optimal 1.0
    """
    # Instantiate a fresh solver each call to avoid cross-run state sharing.
    solver = SpectralProjectedSolver(instance, options=options)
    return solver.solve(
        max_iterations=max_iterations,
        progress_callback=progress_callback,
        progress_interval=progress_interval,
    )


def solve_basic(
    instance: Instance,
    upperbound: float,
    max_iterations: int = 300,
    options: SolverOptions | None = None,
    progress_callback: ProgressCallback | None = None,
    progress_interval: int = 100,
) -> DualResult:
    """Compute a Lagrangian lower bound with Polyak-step subgradient optimization.

    Args:
        instance: The set-covering instance.
        upperbound: Cost of a known feasible cover, used as the step-size target.
                    It is not checked against the instance.
        max_iterations: Maximum number of dual updates (default: 300).
        options: Solver configuration options. If None, uses defaults.
        progress_callback: Optional callback function to receive progress updates.
        progress_interval: Number of iterations between progress callbacks (default: 100).

    Returns:
        DualResult (see solve_spectral()).

    Raises:
        SolverConfigurationError: If max_iterations is negative or upperbound not finite.
        ResourceExhaustionError: If a working buffer cannot be allocated.
    """
    solver = BasicSubgradientSolver(instance, options=options)
    return solver.solve(
        max_iterations=max_iterations,
        upperbound=upperbound,
        progress_callback=progress_callback,
        progress_interval=progress_interval,
    )


def load_instance(path: str | Path) -> Instance:
    """Load a set-covering instance from an OR-Library format file.

    Args:
        path: Path to the instance file.

    Returns:
        Instance ready to solve.

    Raises:
        FileNotFoundError: If file does not exist.
        MalformedInputError: If the file content is invalid.

    Examples:
        >>> from scp_dual import load_instance, solve_spectral
        >>> instance = load_instance("examples/scp_small.txt")
        >>> print(f"{instance.num_rows} rows, {instance.num_cols} columns")
        6 rows, 8 columns
    """
    # Reuse the IO helpers so callers interact with a single parsing implementation.
    return load_instance_file(path)
