"""Convergence diagnostics and stalling detection for subgradient solvers.

Subgradient methods are not monotone: the objective at the current dual vector
may drop while the best bound found so far can only rise. This module tracks
both sequences, detects when the best bound stops improving, and summarizes
the run for the result record.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field


@dataclass
class ConvergenceMonitor:
    """Monitors the best Lagrangian bound and detects stalling.

    Attributes:
        window_size: Number of recent best objectives kept, and the default number
                     of consecutive stalled records that make ``is_stalled()`` true
        stall_threshold: Relative improvement of the best objective under which a
                         record counts as stalled
        record_history: Keep full objective and best-objective histories

    Examples:
        >>> monitor = ConvergenceMonitor(window_size=30, stall_threshold=1e-6)
        >>> monitor.record_iteration(objective, best_objective, iteration=0)
        >>> for iteration in range(1, num_iterations + 1):
        ...     monitor.record_iteration(objective, best_objective, iteration)
        ...     if monitor.is_stalled():
        ...         break
    """

    window_size: int = 50
    stall_threshold: float = 1e-8
    record_history: bool = True

    # History tracking
    best_window: deque[float] = field(default_factory=lambda: deque(maxlen=50))
    objective_history: list[float] = field(default_factory=list)
    best_history: list[float] = field(default_factory=list)
    records: int = 0

    # Stalling detection
    consecutive_no_improvement: int = 0
    last_improvement_iter: int = 0

    # Range of the (non-monotone) current objective
    lowest_objective: float = math.inf
    highest_objective: float = -math.inf

    def __post_init__(self) -> None:
        """Initialize window with correct maxlen."""
        self.best_window = deque(maxlen=self.window_size)

    def record_iteration(self, objective: float, best_objective: float, iteration: int = 0) -> None:
        """Record the state after an iteration (or the initial state).

        Args:
            objective: Objective at the current dual vector
            best_objective: Best objective found so far
            iteration: Number of completed iterations
        """
        if self.best_window:
            previous = self.best_window[-1]
            if abs(previous) > 1e-12:
                rel_improvement = (best_objective - previous) / abs(previous)
            else:
                rel_improvement = best_objective - previous

            if rel_improvement <= self.stall_threshold:
                self.consecutive_no_improvement += 1
            else:
                self.consecutive_no_improvement = 0
                self.last_improvement_iter = iteration

        self.best_window.append(best_objective)
        self.records += 1
        self.lowest_objective = min(self.lowest_objective, objective)
        self.highest_objective = max(self.highest_objective, objective)
        if self.record_history:
            self.objective_history.append(objective)
            self.best_history.append(best_objective)

    def is_stalled(self, min_consecutive: int | None = None) -> bool:
        """Check if the best bound has stopped improving.

        Args:
            min_consecutive: Consecutive stalled records required (default: window_size)

        Returns:
            True if stalled for at least min_consecutive records
        """
        if min_consecutive is None:
            min_consecutive = self.window_size
        return self.consecutive_no_improvement >= min_consecutive

    def is_bounded(self) -> bool:
        """Check that every recorded objective was finite."""
        if self.records == 0:
            return True
        return math.isfinite(self.lowest_objective) and math.isfinite(self.highest_objective)

    def get_recent_improvement(self) -> float | None:
        """Get relative improvement of the best bound over the window.

        Returns:
            Relative improvement from oldest to newest in window, or None if insufficient data
        """
        if len(self.best_window) < 2:
            return None

        oldest = self.best_window[0]
        newest = self.best_window[-1]

        if abs(oldest) > 1e-12:
            return (newest - oldest) / abs(oldest)
        else:
            return newest - oldest

    def get_diagnostic_summary(self) -> dict[str, float | bool | int]:
        """Get summary of convergence diagnostics.

        Returns:
            Dictionary with diagnostic metrics
        """
        return {
            'records': self.records,
            'is_stalled': self.is_stalled(),
            'is_bounded': self.is_bounded(),
            'consecutive_no_improvement': self.consecutive_no_improvement,
            'last_improvement_iteration': self.last_improvement_iter,
            'recent_improvement': self.get_recent_improvement() or 0.0,
            'lowest_objective': self.lowest_objective,
            'highest_objective': self.highest_objective,
        }
