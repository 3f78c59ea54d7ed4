"""Tests for progress callbacks during solver execution."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from scp_dual import ProgressInfo, build_instance, solve_basic, solve_spectral  # noqa: E402
from scp_dual.exceptions import SolverConfigurationError  # noqa: E402


def _triangle_instance():
    return build_instance(3, 3, [1, 1, 1], [[0, 2], [0, 1], [1, 2]])


def test_progress_callback_called():
    """Test that the progress callback is invoked during a spectral solve."""
    progress_calls = []

    def callback(info: ProgressInfo) -> None:
        progress_calls.append(info)

    result = solve_spectral(
        _triangle_instance(), max_iterations=20, progress_callback=callback, progress_interval=1
    )

    assert result.status == "iteration_limit"
    assert len(progress_calls) == 20
    assert [info.iteration for info in progress_calls] == list(range(1, 21))


def test_progress_info_fields():
    """Test that ProgressInfo carries the running bound."""
    progress_calls = []

    solve_basic(
        _triangle_instance(),
        upperbound=3,
        max_iterations=5,
        progress_callback=progress_calls.append,
        progress_interval=1,
    )

    info = progress_calls[0]
    assert info.iteration == 1
    assert info.max_iterations == 5
    assert info.method == "basic"
    assert info.best_objective == pytest.approx(1.5)
    # First Polyak step: 2 * (1.05 * 3 - 1.5) / 3.
    assert info.step_size == pytest.approx(1.1)
    assert info.elapsed_time >= 0


def test_progress_interval():
    """Test that progress_interval controls callback frequency."""
    progress_calls = []

    solve_basic(
        _triangle_instance(),
        upperbound=3,
        max_iterations=30,
        progress_callback=progress_calls.append,
        progress_interval=10,
    )

    assert [info.iteration for info in progress_calls] == [10, 20, 30]


def test_no_callback_when_initial_dual_optimal():
    progress_calls = []
    instance = build_instance(2, 3, [1, 1, 2], [[0, 1], [1, 2]])

    solve_spectral(instance, progress_callback=progress_calls.append, progress_interval=1)

    assert progress_calls == []


def test_invalid_progress_interval():
    with pytest.raises(SolverConfigurationError, match="progress_interval"):
        solve_spectral(_triangle_instance(), progress_callback=print, progress_interval=0)
