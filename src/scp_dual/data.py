"""Core data structures for Lagrangian dual bounds of set-covering problems."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray
from scipy.sparse import csr_matrix

from .exceptions import MalformedInputError, ResourceExhaustionError, SolverConfigurationError

DualStatus = Literal["optimal", "converged", "iteration_limit"]


@dataclass(frozen=True, eq=False)
class Instance:
    """Immutable sparse row/column incidence model of a set-covering problem.

    Row i must be covered by at least one selected column; selecting column j
    costs ``costs[j]``. The covering relation is stored twice, once per
    orientation, in compressed form:

    - ``row_cols[row_offsets[i]:row_offsets[i + 1]]`` are the columns covering row i
    - ``col_rows[col_offsets[j]:col_offsets[j + 1]]`` are the rows covered by column j

    Both encodings hold exactly ``num_nonzero`` entries and describe the same
    bipartite relation. ``incidence`` is the same relation as a CSR matrix of
    shape ``(num_rows, num_cols)``.

    All arrays are read-only, so one instance can be shared by any number of
    independent solver sessions.

    Examples:
        >>> instance = build_instance(2, 3, [1, 1, 2], [[0, 1], [1, 2]])
        >>> instance.num_nonzero
        4
        >>> instance.col_size.tolist()
        [1, 2, 1]

    See Also:
        - build_instance(): Validating factory (use this instead of the constructor).
        - load_instance(): Read an instance from the OR-Library text format.
    """

    num_rows: int
    num_cols: int
    num_nonzero: int
    costs: NDArray[np.float64]
    row_offsets: NDArray[np.int64]
    row_cols: NDArray[np.int64]
    col_offsets: NDArray[np.int64]
    col_rows: NDArray[np.int64]
    col_size: NDArray[np.int64]
    incidence: csr_matrix

    def columns_of_row(self, row: int) -> NDArray[np.int64]:
        """Columns covering ``row``, in input order."""
        return self.row_cols[self.row_offsets[row] : self.row_offsets[row + 1]]

    def rows_of_column(self, col: int) -> NDArray[np.int64]:
        """Rows covered by ``col``, in ascending order."""
        return self.col_rows[self.col_offsets[col] : self.col_offsets[col + 1]]

    def columns_of_rows(
        self, rows: NDArray[np.int64]
    ) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        """Gather the covering columns of several rows at once.

        Returns:
            Tuple ``(columns, degrees)`` where ``columns`` concatenates the column
            lists of ``rows`` in the given order and ``degrees[k]`` is the length of
            the list belonging to ``rows[k]``. Cost is proportional to the number
            of gathered entries, not to ``num_nonzero``.
        """
        starts = self.row_offsets[rows]
        degrees = self.row_offsets[rows + 1] - starts
        total = int(degrees.sum())
        if total == 0:
            return np.empty(0, dtype=np.int64), degrees
        # Shift each row's block so that a single arange walks every slice.
        block_shift = np.repeat(starts - np.cumsum(degrees) + degrees, degrees)
        positions = block_shift + np.arange(total, dtype=np.int64)
        return self.row_cols[positions], degrees


def _incidence_exhausted(num_nonzero: int) -> ResourceExhaustionError:
    return ResourceExhaustionError(
        f"Cannot allocate the column-wise incidence for {num_nonzero} nonzeros.",
        resource="incidence",
        size=num_nonzero,
    )


def _allocate_index_arrays(num_rows: int, num_cols: int, num_nonzero: int) -> dict[str, Any]:
    try:
        return {
            "row_offsets": np.zeros(num_rows + 1, dtype=np.int64),
            "row_cols": np.empty(num_nonzero, dtype=np.int64),
            "col_offsets": np.zeros(num_cols + 1, dtype=np.int64),
        }
    except MemoryError as exc:
        raise ResourceExhaustionError(
            f"Cannot allocate incidence arrays for {num_rows} rows, {num_cols} columns "
            f"and {num_nonzero} nonzeros.",
            resource="incidence",
            size=num_nonzero,
        ) from exc


def build_instance(
    num_rows: int,
    num_cols: int,
    costs: Sequence[float] | NDArray[np.float64],
    rows: Sequence[Sequence[int]],
) -> Instance:
    """Factory used by the IO layer (and by callers holding arrays) to assemble an Instance.

    Args:
        num_rows: Number of rows (elements to cover).
        num_cols: Number of columns (candidate sets).
        costs: Cost of each column; non-negative and finite.
        rows: ``rows[i]`` lists the 0-based indices of the columns covering row i.

    Returns:
        Fully built, read-only Instance.

    Raises:
        MalformedInputError: If counts disagree with the data, a cost is negative or
            not finite, a column index is out of range or repeated within a row, or a
            row is covered by no column.
        ResourceExhaustionError: If the incidence arrays cannot be allocated.

    Time Complexity:
        O(num_nonzero log num_nonzero) for the duplicate check and column ordering.
    """
    num_rows = int(num_rows)
    num_cols = int(num_cols)
    if num_rows < 0 or num_cols < 0:
        raise MalformedInputError(
            f"Row and column counts must be non-negative, got {num_rows} rows and "
            f"{num_cols} columns."
        )

    try:
        cost_array = np.array(costs, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"Column costs must be numeric: {exc}") from exc
    except MemoryError as exc:
        raise ResourceExhaustionError(
            f"Cannot allocate cost vector of {num_cols} columns.", resource="costs", size=num_cols
        ) from exc
    if cost_array.shape != (num_cols,):
        raise MalformedInputError(
            f"Expected {num_cols} column costs, got {cost_array.size}."
        )
    if not np.all(np.isfinite(cost_array)):
        raise MalformedInputError("Column costs must be finite.")
    if np.any(cost_array < 0):
        bad = int(np.flatnonzero(cost_array < 0)[0])
        raise MalformedInputError(
            f"Column {bad} has negative cost {cost_array[bad]}. Set-covering costs must be "
            f"non-negative."
        )

    row_list = list(rows)
    if len(row_list) != num_rows:
        raise MalformedInputError(f"Expected {num_rows} rows, got {len(row_list)}.")

    num_nonzero = sum(len(row) for row in row_list)
    arrays = _allocate_index_arrays(num_rows, num_cols, num_nonzero)
    row_offsets = arrays["row_offsets"]
    row_cols = arrays["row_cols"]
    col_offsets = arrays["col_offsets"]

    position = 0
    for i, row in enumerate(row_list):
        entries = np.asarray(row)
        if entries.size == 0:
            raise MalformedInputError(
                f"Row {i} is not covered by any column. Its multiplier would be unbounded."
            )
        if entries.ndim != 1 or entries.dtype.kind not in "iu":
            raise MalformedInputError(f"Row {i} contains non-integer column indices: {row!r}")
        row_cols[position : position + entries.size] = entries
        position += entries.size
        row_offsets[i + 1] = position

    out_of_range = (row_cols < 0) | (row_cols >= num_cols)
    if np.any(out_of_range):
        pos = int(np.flatnonzero(out_of_range)[0])
        row = int(np.searchsorted(row_offsets, pos, side="right")) - 1
        raise MalformedInputError(
            f"Row {row} references column {int(row_cols[pos])}, outside the valid range "
            f"0..{num_cols - 1}."
        )

    try:
        degrees = np.diff(row_offsets)
        row_ids = np.repeat(np.arange(num_rows, dtype=np.int64), degrees)
        keys = np.sort(row_ids * max(num_cols, 1) + row_cols)
    except MemoryError as exc:
        raise _incidence_exhausted(num_nonzero) from exc
    repeated = np.flatnonzero(keys[1:] == keys[:-1])
    if repeated.size:
        key = int(keys[repeated[0]])
        raise MalformedInputError(
            f"Row {key // max(num_cols, 1)} lists column {key % max(num_cols, 1)} more than once."
        )

    try:
        # Stable ordering keeps each column's rows ascending.
        order = np.argsort(row_cols, kind="stable")
        col_rows = row_ids[order]
        col_size = np.bincount(row_cols, minlength=num_cols).astype(np.int64)
        np.cumsum(col_size, out=col_offsets[1:])
        incidence = csr_matrix(
            (np.ones(num_nonzero, dtype=np.int64), row_cols.copy(), row_offsets.copy()),
            shape=(num_rows, num_cols),
        )
    except MemoryError as exc:
        raise _incidence_exhausted(num_nonzero) from exc

    for array in (cost_array, row_offsets, row_cols, col_offsets, col_rows, col_size):
        array.setflags(write=False)

    return Instance(
        num_rows=num_rows,
        num_cols=num_cols,
        num_nonzero=num_nonzero,
        costs=cost_array,
        row_offsets=row_offsets,
        row_cols=row_cols,
        col_offsets=col_offsets,
        col_rows=col_rows,
        col_size=col_size,
        incidence=incidence,
    )


@dataclass(frozen=True)
class ProgressInfo:
    """Progress information provided during solver execution.

    Attributes:
        iteration: Number of completed iterations.
        max_iterations: Iteration cap of the running solve.
        method: 'spectral' or 'basic'.
        objective: Lagrangian objective at the current dual vector.
        best_objective: Best objective found so far (the current lower bound).
        step_size: Current step length (spectral alpha or Polyak step).
        elapsed_time: Elapsed time in seconds since the solve started.
    """

    iteration: int
    max_iterations: int
    method: str
    objective: float
    best_objective: float
    step_size: float
    elapsed_time: float


# Type alias for progress callback function
ProgressCallback = Callable[[ProgressInfo], None]


@dataclass
class SolverOptions:
    """Configuration options shared by both subgradient solvers.

    Attributes:
        zero_tolerance: Dual changes at or below this magnitude are treated as no
                        change (default: 1e-12). Also the threshold under which the
                        spectral step denominator is considered negligible.
        free_column_tolerance: Columns with reduced cost below this value count as
                               selected by the Lagrangian subproblem (default: 1e-14).
                               Also the "multiplier at its floor" threshold of the
                               feasibility-adjusted subgradient.
        initial_step: Initial spectral step alpha, and the value alpha is reset to when
                      the Barzilai-Borwein denominator vanishes (default: 0.1).
        momentum: Momentum factor mu of the spectral method, in [0, 1) (default: 0.7).
        line_search_gamma: Sufficient-increase factor gamma (default: 0.1).
        line_search_window: Number M of recent accepted objectives whose minimum is the
                            non-monotone reference value (default: 10).
        eta_exponent: Exponent of the slack schedule eta_t = eta_0 / t**exponent
                      (default: 1.1).
        max_backtracks: Maximum step halvings per line search (default: 64). When it
                        is reached the current point is accepted and a warning logged.
        initial_lambda: Initial Polyak step scale of the basic method (default: 2.0).
        upperbound_factor: Multiplier applied to the caller's upper bound to form the
                           Polyak target (default: 1.05).
        stall_limit: Non-improving iterations tolerated before lambda is halved
                     (default: 10). Lambda is halved once the counter exceeds it.
        convergence_tolerance: Relative best-objective improvement under which an
                               iteration counts as stalled. None (default) disables
                               early termination; solves then end only on optimality
                               or the iteration limit.
        convergence_window: Consecutive stalled iterations after which the solve ends
                            with status 'converged' (default: 50). Only used when
                            convergence_tolerance is set.
        record_history: Keep per-iteration objective histories on the result
                        (default: True).

    Examples:
        >>> # Defaults reproduce the published parameter choices
        >>> options = SolverOptions()

        >>> # Stop once the bound stops moving
        >>> options = SolverOptions(convergence_tolerance=1e-6, convergence_window=30)

        >>> # Slower lambda decay for the basic method
        >>> options = SolverOptions(stall_limit=20)
    """

    zero_tolerance: float = 1e-12
    free_column_tolerance: float = 1e-14
    initial_step: float = 0.1
    momentum: float = 0.7
    line_search_gamma: float = 0.1
    line_search_window: int = 10
    eta_exponent: float = 1.1
    max_backtracks: int = 64
    initial_lambda: float = 2.0
    upperbound_factor: float = 1.05
    stall_limit: int = 10
    convergence_tolerance: float | None = None
    convergence_window: int = 50
    record_history: bool = True

    def __post_init__(self) -> None:
        for name in ("zero_tolerance", "free_column_tolerance", "initial_step", "initial_lambda"):
            value = getattr(self, name)
            if not (value > 0 and math.isfinite(value)):
                raise SolverConfigurationError(
                    f"{name} must be positive and finite, got {value}."
                )
        if not 0.0 <= self.momentum < 1.0:
            raise SolverConfigurationError(
                f"Momentum must lie in [0, 1), got {self.momentum}. Larger values let the "
                f"momentum term grow without bound."
            )
        if not 0.0 < self.line_search_gamma < 1.0:
            raise SolverConfigurationError(
                f"Line search gamma must lie in (0, 1), got {self.line_search_gamma}."
            )
        if self.line_search_window <= 0:
            raise SolverConfigurationError(
                f"Line search window must be positive, got {self.line_search_window}."
            )
        if self.eta_exponent <= 1.0:
            raise SolverConfigurationError(
                f"eta_exponent must exceed 1 so that the slack sequence is summable, "
                f"got {self.eta_exponent}."
            )
        if self.max_backtracks < 0:
            raise SolverConfigurationError(
                f"max_backtracks must be non-negative, got {self.max_backtracks}."
            )
        if self.upperbound_factor <= 0:
            raise SolverConfigurationError(
                f"upperbound_factor must be positive, got {self.upperbound_factor}."
            )
        if self.stall_limit < 0:
            raise SolverConfigurationError(
                f"stall_limit must be non-negative, got {self.stall_limit}."
            )
        if self.convergence_tolerance is not None and self.convergence_tolerance < 0:
            raise SolverConfigurationError(
                f"convergence_tolerance must be non-negative, got {self.convergence_tolerance}."
            )
        if self.convergence_window <= 0:
            raise SolverConfigurationError(
                f"convergence_window must be positive, got {self.convergence_window}."
            )


@dataclass
class DualResult:
    """Represents the output of a Lagrangian dual optimization.

    Attributes:
        objective: Lagrangian lower bound delivered by the solve. For status
                   'optimal' this is the objective at the optimal dual vector,
                   otherwise the best objective seen.
        status: Solve status:
                - 'optimal': The subgradient vanished; the dual vector is optimal
                - 'converged': The best objective stalled (see SolverOptions)
                - 'iteration_limit': The iteration cap was reached
        iterations: Number of dual updates performed.
        method: 'spectral' or 'basic'.
        dual: Copy of the dual vector the objective belongs to.
        objective_history: Objective after each iteration (initial value first).
        best_history: Best objective after each iteration (initial value first).
        diagnostics: Summary produced by the ConvergenceMonitor.

    Examples:
        >>> result = solve_spectral(instance, max_iterations=300)
        >>> print(f"{result.status}: bound {result.objective:.3f} after {result.iterations}")
        iteration_limit: bound 510.212 after 300
    """

    objective: float
    status: DualStatus
    iterations: int
    method: str
    dual: NDArray[np.float64]
    objective_history: list[float] = field(default_factory=list)
    best_history: list[float] = field(default_factory=list)
    diagnostics: dict[str, float | bool | int] = field(default_factory=dict)
