"""Session facade: one instance, repeated solves, and access to the best dual vector."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from .basic import BasicSubgradientSolver
from .data import DualResult, Instance, ProgressCallback, SolverOptions
from .dual import compute_reduced_costs
from .exceptions import ResultUnavailableError
from .io import load_instance
from .spectral import SpectralProjectedSolver


class DualSession:
    """Owns the best-dual snapshot of the solves run against one Instance.

    The Instance itself is read-only and may be shared with other sessions.
    Each solve allocates its own working state; when it returns, its dual vector
    replaces the session snapshot, which ``get_dual`` and ``get_reduced_costs``
    read. A session is meant to be driven from one thread at a time.

    Examples:
        >>> session = DualSession.load("examples/scp_small.txt")
        >>> result = session.solve_spectral(max_iterations=300)
        >>> dual = session.get_dual()
        >>> reduced_costs = session.get_reduced_costs()
        >>> session.release()
    """

    def __init__(self, instance: Instance):
        self._instance: Instance | None = instance
        self._best_dual: NDArray[np.float64] | None = None
        self.last_result: DualResult | None = None

    @classmethod
    def load(cls, path: str | Path) -> DualSession:
        """Create a session from an OR-Library format file."""
        return cls(load_instance(path))

    @property
    def instance(self) -> Instance:
        if self._instance is None:
            raise ResultUnavailableError("Session has been released; its instance is gone.")
        return self._instance

    @property
    def released(self) -> bool:
        return self._instance is None

    def num_rows(self) -> int:
        return self.instance.num_rows

    def num_cols(self) -> int:
        return self.instance.num_cols

    def solve_spectral(
        self,
        max_iterations: int = 300,
        options: SolverOptions | None = None,
        progress_callback: ProgressCallback | None = None,
        progress_interval: int = 100,
    ) -> DualResult:
        """Run the spectral projected subgradient method and keep its dual vector."""
        solver = SpectralProjectedSolver(self.instance, options=options)
        result = solver.solve(
            max_iterations=max_iterations,
            progress_callback=progress_callback,
            progress_interval=progress_interval,
        )
        return self._store(result)

    def solve_basic(
        self,
        max_iterations: int,
        upperbound: float,
        options: SolverOptions | None = None,
        progress_callback: ProgressCallback | None = None,
        progress_interval: int = 100,
    ) -> DualResult:
        """Run the Polyak-step subgradient method and keep its dual vector."""
        solver = BasicSubgradientSolver(self.instance, options=options)
        result = solver.solve(
            max_iterations=max_iterations,
            upperbound=upperbound,
            progress_callback=progress_callback,
            progress_interval=progress_interval,
        )
        return self._store(result)

    def _store(self, result: DualResult) -> DualResult:
        self._best_dual = result.dual.copy()
        self.last_result = result
        return result

    def _snapshot(self) -> NDArray[np.float64]:
        if self._instance is None:
            raise ResultUnavailableError("Session has been released; no dual vector is available.")
        if self._best_dual is None:
            raise ResultUnavailableError("No solve has completed in this session yet.")
        return self._best_dual

    @staticmethod
    def _copy_out(values: NDArray[np.float64], out: NDArray[np.float64] | None) -> NDArray[np.float64]:
        if out is None:
            return values.copy()
        if out.shape != values.shape:
            raise ValueError(
                f"Output buffer has shape {out.shape}, expected {values.shape}."
            )
        np.copyto(out, values)
        return out

    def get_dual(self, out: NDArray[np.float64] | None = None) -> NDArray[np.float64]:
        """Copy the best dual vector (length num_rows) into ``out`` or a new array.

        Raises:
            ResultUnavailableError: Before a successful solve or after release().
            ValueError: If ``out`` has the wrong shape.
        """
        return self._copy_out(self._snapshot(), out)

    def get_reduced_costs(self, out: NDArray[np.float64] | None = None) -> NDArray[np.float64]:
        """Reduced costs of the best dual vector, recomputed from scratch.

        Solvers may finish with working reduced costs that belong to a different
        iterate, so nothing is cached here.

        Raises:
            ResultUnavailableError: Before a successful solve or after release().
            ValueError: If ``out`` has the wrong shape.
        """
        reduced_costs = compute_reduced_costs(self.instance, self._snapshot())
        return self._copy_out(reduced_costs, out)

    def release(self) -> None:
        """Drop the instance reference and the dual snapshot."""
        self._instance = None
        self._best_dual = None
        self.last_result = None
