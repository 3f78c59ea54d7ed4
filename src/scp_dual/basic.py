"""Classical subgradient optimization with Polyak steps for the SCP Lagrangian dual.

Follows Beasley (1990), "A Lagrangian heuristic for set-covering problems",
Naval Research Logistics 37(1), 151-164.
"""

from __future__ import annotations

import logging
import math
import time

import numpy as np

from .base import SubgradientSolver
from .buffers import BestDual, ChangedRowSet
from .data import DualResult, DualStatus, ProgressCallback
from .dual import DualState
from .exceptions import SolverConfigurationError
from .subgradient import compute_adjusted_subgradient


class BasicSubgradientSolver(SubgradientSolver):
    """Polyak-step subgradient solver.

    The step length is ``lambda * (factor * upperbound - L(u)) / |g|^2`` where
    ``upperbound`` is the cost of a known cover, used purely as a target. Lambda
    starts at ``SolverOptions.initial_lambda`` and is halved whenever the best
    bound has not improved for more than ``stall_limit`` consecutive iterations,
    which makes the step sizes decay without an explicit schedule.

    The upper bound is trusted: a value below the true optimum slows or stalls
    progress but never makes the solver fail.

    Examples:
        >>> solver = BasicSubgradientSolver(instance)
        >>> result = solver.solve(max_iterations=300, upperbound=512)
        >>> result.objective <= 512
        True
    """

    method = "basic"

    def solve(
        self,
        max_iterations: int,
        upperbound: float,
        progress_callback: ProgressCallback | None = None,
        progress_interval: int = 100,
    ) -> DualResult:
        """Maximize the Lagrangian dual for at most ``max_iterations`` steps.

        Args:
            max_iterations: Iteration cap (0 returns the initial bound).
            upperbound: Objective value of a feasible cover (Polyak target).
            progress_callback: Optional callback receiving ProgressInfo.
            progress_interval: Iterations between progress callbacks (default: 100).

        Returns:
            DualResult with the best bound (or the optimal one) and its dual vector.

        Raises:
            SolverConfigurationError: If max_iterations is negative or upperbound is
                not a finite number.
            ResourceExhaustionError: If a working buffer cannot be allocated.
        """
        self._check_limits(max_iterations, progress_interval)
        if not math.isfinite(upperbound):
            raise SolverConfigurationError(f"upperbound must be finite, got {upperbound}.")
        opts = self.options
        instance = self.instance
        start_time = time.time()

        state = DualState.initialize(instance)
        objective = state.objective()
        best = BestDual(instance.num_rows, state.dual, objective)
        changed = ChangedRowSet(instance.num_rows)
        monitor = self._new_monitor()
        monitor.record_iteration(objective, best.objective, iteration=0)

        self.logger.info(
            "Starting basic subgradient",
            extra={
                "rows": instance.num_rows,
                "cols": instance.num_cols,
                "nonzeros": instance.num_nonzero,
                "max_iterations": max_iterations,
                "upperbound": upperbound,
                "initial_objective": objective,
            },
        )

        target = opts.upperbound_factor * upperbound
        scale = opts.initial_lambda
        stalled = 0
        step_size = 0.0
        status: DualStatus = "iteration_limit"
        iterations = 0

        while True:
            subgradient = compute_adjusted_subgradient(
                instance, state.reduced_cost, state.dual, opts.free_column_tolerance
            )
            if subgradient.optimal:
                status = "optimal"
                break
            if iterations >= max_iterations:
                break

            step_size = scale * (target - objective) / subgradient.norm_squared
            increments = np.maximum(state.dual + step_size * subgradient.vector, 0.0) - state.dual
            moved = np.flatnonzero(np.abs(increments) > opts.zero_tolerance)
            changed.clear()
            changed.extend(moved, increments[moved])
            state.shift(changed.rows, changed.increments)
            objective = state.objective()
            iterations += 1

            if objective > best.objective:
                best.promote(state.dual, objective)
                stalled = 0
            else:
                stalled += 1

            if stalled > opts.stall_limit:
                scale *= 0.5
                stalled = 0
                self.logger.debug(
                    "Halving step scale after stall",
                    extra={"iteration": iterations, "lambda": scale},
                )

            monitor.record_iteration(objective, best.objective, iteration=iterations)
            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(
                    "Basic iteration",
                    extra={
                        "iteration": iterations,
                        "objective": objective,
                        "best_objective": best.objective,
                        "step_size": step_size,
                        "lambda": scale,
                        "moved_rows": len(changed),
                    },
                )
            self._report_progress(
                progress_callback,
                progress_interval,
                iterations,
                max_iterations,
                objective,
                best.objective,
                step_size,
                start_time,
            )

            if self._should_stop_early(monitor):
                status = "converged"
                break

        if status == "optimal":
            return self._finish(state.dual, objective, status, iterations, monitor, start_time)
        return self._finish(best.dual, best.objective, status, iterations, monitor, start_time)
