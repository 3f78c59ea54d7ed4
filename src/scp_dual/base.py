"""Shared plumbing for the subgradient solvers."""

from __future__ import annotations

import logging
import time

import numpy as np
from numpy.typing import NDArray

from .data import DualResult, DualStatus, Instance, ProgressCallback, ProgressInfo, SolverOptions
from .diagnostics import ConvergenceMonitor
from .exceptions import SolverConfigurationError


class SubgradientSolver:
    """Base class for Lagrangian dual solvers over one shared Instance.

    A solver object holds only read-only inputs; every call to ``solve`` builds
    its own DualState and working buffers, so one solver (or one Instance) can
    serve any number of sequential or independent solves.

    Subclasses implement ``solve`` and set ``method``.
    """

    method = "subgradient"

    def __init__(self, instance: Instance, options: SolverOptions | None = None):
        self.instance = instance
        self.options = options if options is not None else SolverOptions()
        self.logger = logging.getLogger(type(self).__module__)

    def _check_limits(self, max_iterations: int, progress_interval: int) -> None:
        if max_iterations < 0:
            raise SolverConfigurationError(
                f"max_iterations must be non-negative, got {max_iterations}."
            )
        if progress_interval <= 0:
            raise SolverConfigurationError(
                f"progress_interval must be positive, got {progress_interval}."
            )

    def _new_monitor(self) -> ConvergenceMonitor:
        tolerance = self.options.convergence_tolerance
        return ConvergenceMonitor(
            window_size=self.options.convergence_window,
            stall_threshold=tolerance if tolerance is not None else 0.0,
            record_history=self.options.record_history,
        )

    def _should_stop_early(self, monitor: ConvergenceMonitor) -> bool:
        return self.options.convergence_tolerance is not None and monitor.is_stalled()

    def _report_progress(
        self,
        progress_callback: ProgressCallback | None,
        progress_interval: int,
        iteration: int,
        max_iterations: int,
        objective: float,
        best_objective: float,
        step_size: float,
        start_time: float,
    ) -> None:
        if progress_callback is None or iteration % progress_interval != 0:
            return
        progress_callback(
            ProgressInfo(
                iteration=iteration,
                max_iterations=max_iterations,
                method=self.method,
                objective=objective,
                best_objective=best_objective,
                step_size=step_size,
                elapsed_time=time.time() - start_time,
            )
        )

    def _finish(
        self,
        dual: NDArray[np.float64],
        objective: float,
        status: DualStatus,
        iterations: int,
        monitor: ConvergenceMonitor,
        start_time: float,
    ) -> DualResult:
        elapsed_ms = (time.time() - start_time) * 1000
        self.logger.info(
            "Solver complete",
            extra={
                "method": self.method,
                "status": status,
                "objective": objective,
                "iterations": iterations,
                "elapsed_ms": elapsed_ms,
            },
        )
        return DualResult(
            objective=objective,
            status=status,
            iterations=iterations,
            method=self.method,
            dual=dual.copy(),
            objective_history=list(monitor.objective_history),
            best_history=list(monitor.best_history),
            diagnostics=monitor.get_diagnostic_summary(),
        )
