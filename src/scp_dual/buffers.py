"""Working buffers owned by a single solve.

Every array a solver needs for the duration of one call is obtained through
``allocate`` so that allocation failure surfaces uniformly as
ResourceExhaustionError.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import DTypeLike, NDArray

from .exceptions import ResourceExhaustionError


def allocate(size: int, dtype: DTypeLike = np.float64, resource: str = "buffer") -> NDArray:
    """Return a zero-filled array of ``size`` entries.

    Raises:
        ResourceExhaustionError: If the array cannot be allocated.
    """
    try:
        return np.zeros(size, dtype=dtype)
    except MemoryError as exc:
        raise ResourceExhaustionError(
            f"Cannot allocate {resource} buffer of {size} entries.",
            resource=resource,
            size=size,
        ) from exc


class ChangedRowSet:
    """Append-only set of rows whose multiplier moved in the current iteration.

    Holds the row indices together with the increment applied to each of them.
    Capacity is fixed at construction (one slot per row); the set is cleared at
    the start of every iteration and refilled, so no allocation happens on the
    hot path.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._rows = allocate(capacity, np.int64, "changed-row index")
        self._increments = allocate(capacity, np.float64, "changed-row increment")
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def clear(self) -> None:
        self._size = 0

    def extend(self, rows: NDArray[np.int64], increments: NDArray[np.float64]) -> None:
        count = len(rows)
        if self._size + count > self.capacity:
            raise ValueError(
                f"Changed-row set overflow: {self._size + count} entries, capacity "
                f"{self.capacity}."
            )
        self._rows[self._size : self._size + count] = rows
        self._increments[self._size : self._size + count] = increments
        self._size += count

    @property
    def rows(self) -> NDArray[np.int64]:
        return self._rows[: self._size]

    @property
    def increments(self) -> NDArray[np.float64]:
        return self._increments[: self._size]


class BestDual:
    """Best dual vector seen by a solve, kept in its own buffer.

    ``promote`` copies the current vector in; the holder never aliases the
    solver's working buffer.
    """

    def __init__(self, num_rows: int, dual: NDArray[np.float64], objective: float):
        self.dual = allocate(num_rows, np.float64, "best dual")
        np.copyto(self.dual, dual)
        self.objective = objective

    def promote(self, dual: NDArray[np.float64], objective: float) -> None:
        np.copyto(self.dual, dual)
        self.objective = objective
