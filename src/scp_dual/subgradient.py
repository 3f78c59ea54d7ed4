"""Subgradient vectors of the Lagrangian dual.

At multipliers ``u`` the Lagrangian subproblem selects every column with
(effectively) negative reduced cost. Row ``i`` then receives the subgradient
component ``1 - (number of selected columns covering i)``: positive when the
row is left uncovered, negative when it is over-covered. A zero vector means
the selection is an exact cover and ``u`` maximizes the dual.

Two variants exist because the two methods define optimality differently:

- ``compute_strict_subgradient`` (spectral method) reports the raw vector.
- ``compute_adjusted_subgradient`` (basic method) drops components that would
  push a multiplier already at zero below zero before taking the norm.

Both declare optimality exactly when the raw vector is zero; they differ in
the direction and the norm handed to the step rule.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .data import Instance

FREE_COLUMN_TOLERANCE = 1e-14


@dataclass(frozen=True)
class Subgradient:
    """A subgradient vector with its optimality verdict.

    Attributes:
        vector: Integer subgradient, one entry per row.
        norm_squared: Squared L2 norm of ``vector``. For the adjusted variant this
                      is floored to 1 whenever the point is not optimal.
        optimal: True when the raw (unadjusted) subgradient is the zero vector.
    """

    vector: NDArray[np.int64]
    norm_squared: int
    optimal: bool


def _coverage_gap(
    instance: Instance, reduced_cost: NDArray[np.float64], tolerance: float
) -> NDArray[np.int64]:
    selected = (reduced_cost < tolerance).astype(np.int64)
    return 1 - instance.incidence @ selected


def compute_strict_subgradient(
    instance: Instance,
    reduced_cost: NDArray[np.float64],
    tolerance: float = FREE_COLUMN_TOLERANCE,
) -> Subgradient:
    """Raw subgradient; optimal iff every component is zero.

    Complexity is O(num_nonzero).
    """
    vector = _coverage_gap(instance, reduced_cost, tolerance)
    norm_squared = int(vector @ vector)
    return Subgradient(vector=vector, norm_squared=norm_squared, optimal=norm_squared == 0)


def compute_adjusted_subgradient(
    instance: Instance,
    reduced_cost: NDArray[np.float64],
    dual: NDArray[np.float64],
    tolerance: float = FREE_COLUMN_TOLERANCE,
) -> Subgradient:
    """Subgradient with infeasible descent components removed.

    A negative component on a row whose multiplier is already at zero cannot
    move the projected point, so it is zeroed before the norm is taken. The
    norm is floored to 1 so that Polyak step formulas never divide by zero.
    """
    vector = _coverage_gap(instance, reduced_cost, tolerance)
    if not np.any(vector):
        return Subgradient(vector=vector, norm_squared=0, optimal=True)
    vector[(vector < 0) & (dual < tolerance)] = 0
    norm_squared = int(vector @ vector)
    return Subgradient(vector=vector, norm_squared=max(norm_squared, 1), optimal=False)
