"""Dual vector initialization, reduced costs and the Lagrangian objective.

For multipliers ``u >= 0`` on the covering rows, the Lagrangian relaxation of
the set-covering problem decomposes per column:

    L(u) = sum_i u[i] + sum_j min(0, c[j] - sum_{i covers j} u[i])

Every such value is a lower bound on the optimum. ``DualState`` keeps the
reduced costs ``c[j] - sum_{i covers j} u[i]`` in step with ``u`` while the
solvers move it, touching only the columns of rows that actually changed.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .buffers import allocate
from .data import Instance
from .exceptions import ResourceExhaustionError


def initial_dual(instance: Instance) -> NDArray[np.float64]:
    """Start each row at the cheapest per-row cost among its covering columns.

    ``dual[i] = min_{j covers i} costs[j] / col_size[j]``. The values are
    non-negative and give a reasonable bound without any iteration.
    """
    dual = allocate(instance.num_rows, np.float64, "dual")
    if instance.num_rows == 0:
        return dual
    try:
        unit_cost = np.divide(
            instance.costs,
            instance.col_size,
            out=np.zeros(instance.num_cols, dtype=np.float64),
            where=instance.col_size > 0,
        )
        np.minimum.reduceat(unit_cost[instance.row_cols], instance.row_offsets[:-1], out=dual)
    except MemoryError as exc:
        raise ResourceExhaustionError(
            "Cannot allocate per-column unit costs.", resource="unit cost", size=instance.num_cols
        ) from exc
    return dual


def compute_reduced_costs(instance: Instance, dual: NDArray[np.float64]) -> NDArray[np.float64]:
    """Recompute ``costs[j] - sum_{i covers j} dual[i]`` for every column from scratch.

    O(num_nonzero). The solvers call this once at initialization; the result
    accessor calls it on the exported dual vector, so both sides share the same
    arithmetic.
    """
    try:
        return instance.costs - instance.incidence.T @ dual
    except MemoryError as exc:
        raise ResourceExhaustionError(
            "Cannot allocate reduced-cost vector.", resource="reduced cost", size=instance.num_cols
        ) from exc


def lagrangian_objective(dual: NDArray[np.float64], reduced_cost: NDArray[np.float64]) -> float:
    """Lagrangian value: multiplier sum plus every negative reduced cost."""
    return float(dual.sum() + reduced_cost[reduced_cost < 0].sum())


@dataclass
class DualState:
    """Mutable dual point of one solve.

    Attributes:
        instance: Shared, read-only problem data.
        dual: Current multipliers, all non-negative.
        reduced_cost: Reduced costs at ``dual``, maintained incrementally.
    """

    instance: Instance
    dual: NDArray[np.float64]
    reduced_cost: NDArray[np.float64]

    @classmethod
    def initialize(cls, instance: Instance) -> DualState:
        dual = initial_dual(instance)
        reduced_cost = allocate(instance.num_cols, np.float64, "reduced cost")
        np.copyto(reduced_cost, compute_reduced_costs(instance, dual))
        return cls(instance=instance, dual=dual, reduced_cost=reduced_cost)

    def objective(self) -> float:
        return lagrangian_objective(self.dual, self.reduced_cost)

    def shift(
        self, rows: NDArray[np.int64], increments: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Add ``increments`` to ``dual[rows]``, clipped at zero.

        Reduced costs of every column covering a shifted row are lowered by the
        increment actually applied. ``rows`` must not contain duplicates.

        Returns:
            The applied increments (equal to ``increments`` unless clipped).
        """
        if len(rows) == 0:
            return np.empty(0, dtype=np.float64)
        current = self.dual[rows]
        updated = np.maximum(current + increments, 0.0)
        applied = updated - current
        self.dual[rows] = updated
        columns, degrees = self.instance.columns_of_rows(rows)
        np.subtract.at(self.reduced_cost, columns, np.repeat(applied, degrees))
        return applied

    def reduced_cost_drift(self) -> float:
        """Largest gap between the maintained and the recomputed reduced costs."""
        if self.instance.num_cols == 0:
            return 0.0
        exact = compute_reduced_costs(self.instance, self.dual)
        return float(np.max(np.abs(exact - self.reduced_cost)))
