"""Tests for the spectral projected subgradient solver."""

import logging
import math
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from scp_dual import buffers  # noqa: E402
from scp_dual.data import SolverOptions, build_instance  # noqa: E402
from scp_dual.dual import DualState, compute_reduced_costs  # noqa: E402
from scp_dual.exceptions import ResourceExhaustionError, SolverConfigurationError  # noqa: E402
from scp_dual import spectral  # noqa: E402
from scp_dual.spectral import NonMonotoneLineSearch, SpectralProjectedSolver  # noqa: E402


def _small_instance():
    return build_instance(2, 3, [1, 1, 2], [[0, 1], [1, 2]])


def _chain_instance():
    # Row 1 is only covered by the expensive column, so the bound must climb from 6 to 10.
    return build_instance(2, 2, [1, 10], [[0, 1], [1]])


def _triangle_instance():
    # LP optimum 1.5 is reached by the initial dual, but the subgradient never vanishes.
    return build_instance(3, 3, [1, 1, 1], [[0, 2], [0, 1], [1, 2]])


def _random_instance(seed: int, num_rows: int = 60, num_cols: int = 90):
    rng = np.random.default_rng(seed)
    rows = [
        rng.choice(num_cols, size=int(rng.integers(2, 7)), replace=False).tolist()
        for _ in range(num_rows)
    ]
    costs = rng.integers(1, 40, size=num_cols)
    return build_instance(num_rows, num_cols, costs, rows)


def test_initial_dual_optimal_returns_without_iterating():
    result = SpectralProjectedSolver(_small_instance()).solve(max_iterations=300)

    assert result.status == "optimal"
    assert result.iterations == 0
    assert result.objective == pytest.approx(1.0)
    assert result.dual.tolist() == [0.5, 0.5]
    assert result.method == "spectral"


def test_zero_cost_column_covering_everything():
    instance = build_instance(3, 3, [0, 3, 2], [[0, 1], [0, 2], [0, 2]])

    result = SpectralProjectedSolver(instance).solve(max_iterations=50)

    assert result.status == "optimal"
    assert result.iterations == 0
    assert result.objective == pytest.approx(float(result.dual.sum()))
    assert result.objective == 0.0


def test_zero_iterations_returns_initial_bound():
    result = SpectralProjectedSolver(_chain_instance()).solve(max_iterations=0)

    assert result.status == "iteration_limit"
    assert result.iterations == 0
    assert result.objective == pytest.approx(6.0)
    assert result.dual.tolist() == [1.0, 5.0]


def test_chain_instance_reaches_lp_bound():
    result = SpectralProjectedSolver(_chain_instance()).solve(max_iterations=200)

    assert result.objective == pytest.approx(10.0, abs=1e-6)
    assert result.objective <= 10.0 + 1e-9
    assert np.all(result.dual >= 0.0)


def test_triangle_bound_never_exceeds_lp_optimum():
    result = SpectralProjectedSolver(_triangle_instance()).solve(max_iterations=100)

    assert result.status == "iteration_limit"
    assert result.iterations == 100
    assert result.objective == pytest.approx(1.5)
    assert max(result.objective_history) <= 1.5 + 1e-9


def test_best_objective_is_monotone():
    result = SpectralProjectedSolver(_random_instance(seed=5)).solve(max_iterations=150)

    best = result.best_history
    assert len(best) == result.iterations + 1
    assert all(later >= earlier for earlier, later in zip(best, best[1:]))
    assert result.objective == pytest.approx(max(result.objective_history))
    assert best[-1] >= best[0]


def test_returned_dual_reproduces_objective():
    instance = _random_instance(seed=8)

    result = SpectralProjectedSolver(instance).solve(max_iterations=120)

    reduced = compute_reduced_costs(instance, result.dual)
    value = float(result.dual.sum() + reduced[reduced < 0].sum())
    assert value == pytest.approx(result.objective, abs=1e-7)


def test_updates_keep_dual_non_negative_and_reduced_costs_exact(monkeypatch):
    original_shift = DualState.shift
    checked = []

    def checking_shift(self, rows, increments):
        applied = original_shift(self, rows, increments)
        assert np.all(self.dual >= 0.0)
        assert self.reduced_cost_drift() < 1e-7
        checked.append(len(rows))
        return applied

    monkeypatch.setattr(DualState, "shift", checking_shift)

    SpectralProjectedSolver(_random_instance(seed=13)).solve(max_iterations=80)

    assert checked


def test_convergence_tolerance_stops_stalled_run():
    options = SolverOptions(convergence_tolerance=1e-9, convergence_window=5)

    result = SpectralProjectedSolver(_triangle_instance(), options=options).solve(
        max_iterations=100
    )

    assert result.status == "converged"
    assert result.iterations == 5
    assert result.diagnostics["is_stalled"] is True


def test_history_can_be_disabled():
    options = SolverOptions(record_history=False)

    result = SpectralProjectedSolver(_chain_instance(), options=options).solve(max_iterations=10)

    assert result.objective_history == []
    assert result.best_history == []
    assert result.diagnostics["records"] == result.iterations + 1


def test_backtracking_limit_zero_still_terminates():
    options = SolverOptions(max_backtracks=0)

    result = SpectralProjectedSolver(_random_instance(seed=21), options=options).solve(
        max_iterations=60
    )

    assert result.iterations <= 60
    assert result.diagnostics["is_bounded"] is True


def test_negative_iteration_limit_rejected():
    with pytest.raises(SolverConfigurationError, match="max_iterations"):
        SpectralProjectedSolver(_chain_instance()).solve(max_iterations=-1)


def test_allocation_failure_propagates(monkeypatch):
    class _ExhaustedNumpy:
        def __getattr__(self, name):
            return getattr(np, name)

        @staticmethod
        def zeros(*args, **kwargs):
            raise MemoryError

    instance = _chain_instance()
    monkeypatch.setattr(buffers, "np", _ExhaustedNumpy())

    with pytest.raises(ResourceExhaustionError) as exc_info:
        SpectralProjectedSolver(instance).solve(max_iterations=10)

    assert exc_info.value.resource == "dual"


def test_solver_can_be_reused_on_shared_instance():
    instance = _random_instance(seed=2)
    solver = SpectralProjectedSolver(instance)

    first = solver.solve(max_iterations=40)
    second = solver.solve(max_iterations=40)

    assert first.objective == second.objective
    assert np.array_equal(first.dual, second.dual)


def test_logs_start_and_completion(caplog):
    with caplog.at_level(logging.INFO, logger="scp_dual.spectral"):
        SpectralProjectedSolver(_chain_instance()).solve(max_iterations=5)

    messages = [record.getMessage() for record in caplog.records]
    assert "Starting spectral projected subgradient" in messages
    complete = [record for record in caplog.records if record.getMessage() == "Solver complete"]
    assert complete
    assert complete[-1].method == "spectral"


def test_line_search_threshold_formula():
    line_search = NonMonotoneLineSearch(5.0, gamma=0.1, window=3, eta_zero=2.0, eta_exponent=1.1)
    for value in (4.0, 6.0, 7.0):
        line_search.record(value)

    # The initial 5.0 has left the window, so the reference is 4.0.
    assert list(line_search.recent) == [4.0, 6.0, 7.0]
    expected = 4.0 + 0.1 * 0.5 * 2.0 - 2.0 / 2**1.1
    assert line_search.threshold(2, tau=0.5, product=2.0) == pytest.approx(expected)


def test_line_search_accepts_any_first_step():
    line_search = NonMonotoneLineSearch(1.0, gamma=0.1, window=10, eta_zero=3.0, eta_exponent=1.1)

    assert line_search.slack(0) == math.inf
    assert line_search.threshold(0, tau=1.0, product=1e6) == -math.inf
    assert line_search.slack(1) == pytest.approx(3.0)


def _record_line_search(monkeypatch):
    """Capture threshold evaluations, accepted objectives and dual shifts of a solve."""
    thresholds = []
    recorded = []
    shifts = []

    class RecordingLineSearch(NonMonotoneLineSearch):
        def threshold(self, iteration, tau, product):
            value = super().threshold(iteration, tau, product)
            thresholds.append((iteration, tau, product, value))
            return value

        def record(self, objective):
            recorded.append(objective)
            super().record(objective)

    original_shift = DualState.shift

    def recording_shift(self, rows, increments):
        shifts.append((rows.copy(), np.array(increments, dtype=np.float64)))
        return original_shift(self, rows, increments)

    monkeypatch.setattr(spectral, "NonMonotoneLineSearch", RecordingLineSearch)
    monkeypatch.setattr(DualState, "shift", recording_shift)
    return thresholds, recorded, shifts


def test_line_search_trajectory_on_triangle(monkeypatch, caplog):
    # A one-entry window with a fast-vanishing slack forces backtracking at t = 3:
    # u = 0.466 + 0.1602 overshoots to 1.1214, halving twice lands on 1.48185.
    thresholds, recorded, shifts = _record_line_search(monkeypatch)
    options = SolverOptions(line_search_window=1, eta_exponent=8.0)

    with caplog.at_level(logging.DEBUG, logger="scp_dual.spectral"):
        result = SpectralProjectedSolver(_triangle_instance(), options=options).solve(
            max_iterations=4
        )

    iterations = [r for r in caplog.records if r.getMessage() == "Spectral iteration"]
    assert [r.backtracks for r in iterations] == [0, 0, 0, 2]
    assert iterations[-1].tau == 0.25
    assert result.objective_history == pytest.approx([1.5, 1.2, 1.14, 1.398, 1.48185])
    assert recorded == pytest.approx([1.2, 1.14, 1.398, 1.48185])

    eta_zero = math.sqrt(3.0)
    assert [(t, tau) for t, tau, _, _ in thresholds] == [
        (0, 1.0),
        (1, 1.0),
        (2, 1.0),
        (3, 1.0),
        (3, 0.5),
        (3, 0.25),
    ]
    products = [product for _, _, product, _ in thresholds]
    # <d, m> / alpha with d = m on every row.
    assert products == pytest.approx(
        [0.3, 0.024, 0.22188, 0.7699212, 0.7699212, 0.7699212]
    )
    values = [value for _, _, _, value in thresholds]
    assert values[0] == -math.inf
    assert values[1] == pytest.approx(1.2 + 0.1 * 0.024 - eta_zero)
    assert values[2] == pytest.approx(1.14 + 0.1 * 0.22188 - eta_zero / 2**8)
    for value, tau in zip(values[3:], (1.0, 0.5, 0.25)):
        assert value == pytest.approx(1.398 + 0.1 * tau * 0.7699212 - eta_zero / 3**8)

    # Rejected trials undo tau * d on the moved rows: one step, then two halvings.
    step_rows, step = shifts[3]
    assert step_rows.tolist() == [0, 1, 2]
    assert step == pytest.approx([0.1602] * 3)
    for k, (rows, increments) in enumerate(shifts[4:6], start=1):
        assert rows.tolist() == [0, 1, 2]
        assert increments == pytest.approx(-(0.5**k) * step)
    assert len(shifts) == 6


def test_accepted_objectives_meet_their_threshold(monkeypatch, caplog):
    thresholds, recorded, _ = _record_line_search(monkeypatch)
    options = SolverOptions(line_search_window=2, eta_exponent=4.0)

    with caplog.at_level(logging.DEBUG, logger="scp_dual.spectral"):
        SpectralProjectedSolver(_random_instance(seed=31), options=options).solve(
            max_iterations=80
        )

    iterations = [r for r in caplog.records if r.getMessage() == "Spectral iteration"]
    assert len(thresholds) == sum(r.backtracks + 1 for r in iterations)

    position = 0
    for record in iterations:
        calls = thresholds[position : position + record.backtracks + 1]
        position += record.backtracks + 1
        assert all(t == record.iteration - 1 for t, _, _, _ in calls)
        assert [tau for _, tau, _, _ in calls] == [0.5**k for k in range(record.backtracks + 1)]
        assert record.objective >= calls[-1][3] or record.backtracks == options.max_backtracks
    # Every accepted objective except a terminal optimal one enters the window.
    assert recorded == [r.objective for r in iterations][: len(recorded)]
    assert len(iterations) - len(recorded) in (0, 1)
