"""Example demonstrating progress callbacks and logging for long-running solves."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from scp_dual import ProgressInfo, SolverOptions, build_instance, solve_spectral  # noqa: E402


def main() -> None:
    """Solve a random instance while printing the bound as it improves."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("PROGRESS LOGGING DEMONSTRATION")
    print("=" * 70)

    # 2000 rows, 4000 columns, each row covered by 10 random columns
    rng = np.random.default_rng(2024)
    num_rows, num_cols = 2000, 4000
    costs = rng.integers(1, 101, size=num_cols)
    rows = [rng.choice(num_cols, size=10, replace=False).tolist() for _ in range(num_rows)]
    instance = build_instance(num_rows, num_cols, costs, rows)

    print(f"\n  Rows: {instance.num_rows}")
    print(f"  Columns: {instance.num_cols}")
    print(f"  Nonzeros: {instance.num_nonzero}")

    def progress_callback(info: ProgressInfo) -> None:
        percent = int(100 * info.iteration / info.max_iterations)
        print(
            f"  [{percent:3d}%] iteration {info.iteration:4d}  "
            f"objective={info.objective:12.4f}  best={info.best_objective:12.4f}  "
            f"step={info.step_size:.3e}  ({info.elapsed_time:.2f}s)"
        )

    # Stop early once the best bound has not moved for 100 iterations
    options = SolverOptions(convergence_tolerance=1e-9, convergence_window=100)

    result = solve_spectral(
        instance,
        max_iterations=1000,
        options=options,
        progress_callback=progress_callback,
        progress_interval=50,
    )

    print(f"\nStatus: {result.status}")
    print(f"Lower bound: {result.objective:.4f}")
    print(f"Iterations: {result.iterations}")
    print(f"Last improvement at iteration {result.diagnostics['last_improvement_iteration']}")


if __name__ == "__main__":
    main()
