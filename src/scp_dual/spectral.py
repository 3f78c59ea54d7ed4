"""Spectral projected subgradient with momentum for the SCP Lagrangian dual.

Follows Crema, Loreto & Raydan (2007), "Spectral projected subgradient with a
momentum term for the Lagrangian dual approach", Computers & Operations
Research 34(10), 3174-3186.

Each iteration moves along a momentum direction, projects onto the
non-negative orthant, and validates the step with a non-monotone backtracking
line search whose slack ``eta_t`` shrinks to zero. The step length is then
re-estimated from the last step and the change in subgradient
(Barzilai-Borwein). Only rows whose multiplier actually moved are revisited
when updating reduced costs, undoing part of a step, or computing the next
step length.
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque

import numpy as np

from .base import SubgradientSolver
from .buffers import BestDual, ChangedRowSet, allocate
from .data import DualResult, DualStatus, ProgressCallback
from .dual import DualState
from .subgradient import compute_strict_subgradient


class NonMonotoneLineSearch:
    """Acceptance rule of the spectral method's backtracking line search.

    A trial point at iteration ``t`` with step fraction ``tau`` is accepted when
    its objective reaches

        min(recent objectives) + gamma * tau * <d, m> / alpha - eta_t

    where ``recent`` holds the last ``window`` accepted objectives (the initial
    objective included) and ``eta_t = eta_zero / t**exponent`` is a summable
    slack, infinite at ``t = 0``.
    """

    def __init__(
        self,
        initial_objective: float,
        gamma: float,
        window: int,
        eta_zero: float,
        eta_exponent: float,
    ):
        self.gamma = gamma
        self.eta_zero = eta_zero
        self.eta_exponent = eta_exponent
        self.recent: deque[float] = deque([initial_objective], maxlen=window)

    def slack(self, iteration: int) -> float:
        if iteration == 0:
            return math.inf
        return self.eta_zero / iteration**self.eta_exponent

    def threshold(self, iteration: int, tau: float, product: float) -> float:
        """Smallest acceptable objective; ``product`` is ``<d, m> / alpha``."""
        return min(self.recent) + self.gamma * tau * product - self.slack(iteration)

    def record(self, objective: float) -> None:
        self.recent.append(objective)


class SpectralProjectedSolver(SubgradientSolver):
    """Spectral projected subgradient solver.

    Implementation Details:
        - Momentum: ``m <- alpha * g + mu * m``, proposal ``max(0, u + m)``
        - Acceptance: ``L(u') >= min(last M objectives) + gamma * tau * <d, m> / alpha - eta_t``
        - Backtracking halves ``tau`` and undoes ``tau * d`` on the moved rows
        - Step update: ``alpha = tau * |d|^2 / <d, g_old - g_new>``, reset to the
          initial step when the denominator is negligible
        - Optimality: the strict subgradient vanishes; the current dual is returned

    Examples:
        >>> solver = SpectralProjectedSolver(instance)
        >>> result = solver.solve(max_iterations=300)
        >>> result.status in ("optimal", "iteration_limit")
        True

    See Also:
        - solve_spectral(): Functional wrapper
        - BasicSubgradientSolver: Polyak-step alternative
    """

    method = "spectral"

    def solve(
        self,
        max_iterations: int,
        progress_callback: ProgressCallback | None = None,
        progress_interval: int = 100,
    ) -> DualResult:
        """Maximize the Lagrangian dual for at most ``max_iterations`` steps.

        Args:
            max_iterations: Iteration cap (0 returns the initial bound).
            progress_callback: Optional callback receiving ProgressInfo.
            progress_interval: Iterations between progress callbacks (default: 100).

        Returns:
            DualResult with the best bound (or the optimal one) and its dual vector.

        Raises:
            SolverConfigurationError: If max_iterations is negative.
            ResourceExhaustionError: If a working buffer cannot be allocated.
        """
        self._check_limits(max_iterations, progress_interval)
        opts = self.options
        instance = self.instance
        start_time = time.time()

        state = DualState.initialize(instance)
        objective = state.objective()
        best = BestDual(instance.num_rows, state.dual, objective)
        monitor = self._new_monitor()
        monitor.record_iteration(objective, best.objective, iteration=0)

        self.logger.info(
            "Starting spectral projected subgradient",
            extra={
                "rows": instance.num_rows,
                "cols": instance.num_cols,
                "nonzeros": instance.num_nonzero,
                "max_iterations": max_iterations,
                "initial_objective": objective,
            },
        )

        subgradient = compute_strict_subgradient(
            instance, state.reduced_cost, opts.free_column_tolerance
        )
        if subgradient.optimal:
            self.logger.info("Initial dual vector is optimal")
            return self._finish(state.dual, objective, "optimal", 0, monitor, start_time)

        momentum = allocate(instance.num_rows, np.float64, "momentum")
        changed = ChangedRowSet(instance.num_rows)
        line_search = NonMonotoneLineSearch(
            objective,
            gamma=opts.line_search_gamma,
            window=opts.line_search_window,
            eta_zero=math.sqrt(subgradient.norm_squared),
            eta_exponent=opts.eta_exponent,
        )
        gradient = subgradient.vector
        alpha = opts.initial_step
        status: DualStatus = "iteration_limit"
        iterations = 0

        while iterations < max_iterations:
            # Direction: momentum step projected onto u >= 0.
            momentum *= opts.momentum
            momentum += alpha * gradient
            step = np.maximum(state.dual + momentum, 0.0) - state.dual
            moved = np.flatnonzero(np.abs(step) > opts.zero_tolerance)
            changed.clear()
            changed.extend(moved, step[moved])
            rows = changed.rows
            direction = changed.increments
            product = float(direction @ momentum[rows]) / alpha

            state.shift(rows, direction)
            objective = state.objective()

            tau = 1.0
            threshold = line_search.threshold(iterations, tau, product)
            backtracks = 0
            while objective < threshold and backtracks < opts.max_backtracks:
                tau *= 0.5
                backoff = tau * direction
                significant = np.abs(backoff) > opts.zero_tolerance
                state.shift(rows[significant], -backoff[significant])
                objective = state.objective()
                threshold = line_search.threshold(iterations, tau, product)
                backtracks += 1
            if objective < threshold:
                self.logger.warning(
                    "Line search backtracking limit reached, accepting current step",
                    extra={"iteration": iterations, "backtracks": backtracks, "tau": tau},
                )

            if objective > best.objective:
                best.promote(state.dual, objective)

            iterations += 1
            next_subgradient = compute_strict_subgradient(
                instance, state.reduced_cost, opts.free_column_tolerance
            )
            monitor.record_iteration(objective, best.objective, iteration=iterations)

            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(
                    "Spectral iteration",
                    extra={
                        "iteration": iterations,
                        "objective": objective,
                        "best_objective": best.objective,
                        "alpha": alpha,
                        "tau": tau,
                        "backtracks": backtracks,
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
                alpha,
                start_time,
            )

            if next_subgradient.optimal:
                status = "optimal"
                break

            # Barzilai-Borwein step over the moved rows only.
            denominator = float(direction @ (gradient[rows] - next_subgradient.vector[rows]))
            if denominator < opts.zero_tolerance:
                alpha = opts.initial_step
            else:
                alpha = tau * float(direction @ direction) / denominator

            line_search.record(objective)
            gradient = next_subgradient.vector

            if self._should_stop_early(monitor):
                status = "converged"
                break

        if status == "optimal":
            return self._finish(state.dual, objective, status, iterations, monitor, start_time)
        return self._finish(best.dual, best.objective, status, iterations, monitor, start_time)
