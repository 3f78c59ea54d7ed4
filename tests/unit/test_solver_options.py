"""Tests for SolverOptions defaults and validation."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from scp_dual import SolverOptions, SolverConfigurationError  # noqa: E402


def test_defaults_match_published_parameters():
    options = SolverOptions()

    assert options.zero_tolerance == 1e-12
    assert options.free_column_tolerance == 1e-14
    assert options.initial_step == 0.1
    assert options.momentum == 0.7
    assert options.line_search_gamma == 0.1
    assert options.line_search_window == 10
    assert options.eta_exponent == 1.1
    assert options.initial_lambda == 2.0
    assert options.upperbound_factor == 1.05
    assert options.stall_limit == 10
    assert options.convergence_tolerance is None
    assert options.record_history is True


def test_zero_momentum_allowed():
    assert SolverOptions(momentum=0.0).momentum == 0.0


@pytest.mark.parametrize(
    ("field", "value", "match"),
    [
        ("zero_tolerance", 0.0, "zero_tolerance"),
        ("free_column_tolerance", -1e-14, "free_column_tolerance"),
        ("initial_step", float("inf"), "initial_step"),
        ("initial_lambda", 0.0, "initial_lambda"),
        ("momentum", 1.0, "Momentum"),
        ("momentum", -0.1, "Momentum"),
        ("line_search_gamma", 0.0, "gamma"),
        ("line_search_gamma", 1.0, "gamma"),
        ("line_search_window", 0, "window"),
        ("eta_exponent", 1.0, "eta_exponent"),
        ("max_backtracks", -1, "max_backtracks"),
        ("upperbound_factor", 0.0, "upperbound_factor"),
        ("stall_limit", -1, "stall_limit"),
        ("convergence_tolerance", -1e-6, "convergence_tolerance"),
        ("convergence_window", 0, "convergence_window"),
    ],
)
def test_invalid_values_rejected(field, value, match):
    with pytest.raises(SolverConfigurationError, match=match):
        SolverOptions(**{field: value})


def test_nan_tolerance_rejected():
    with pytest.raises(SolverConfigurationError):
        SolverOptions(zero_tolerance=float("nan"))
