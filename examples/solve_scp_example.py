"""Example script computing Lagrangian lower bounds for a small set-covering instance."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from scp_dual import DualSession  # noqa: E402


def main() -> None:
    base_dir = Path(__file__).resolve().parent
    instance_path = base_dir / "scp_small.txt"

    session = DualSession.load(instance_path)
    print(f"Loaded {instance_path.name}: {session.num_rows()} rows, {session.num_cols()} columns")

    # Columns 2, 4 and 6 form a cover of cost 5, used as the Polyak target.
    basic = session.solve_basic(max_iterations=300, upperbound=5.0)
    print(
        f"Basic subgradient:    status={basic.status}, bound={basic.objective:.6f}, "
        f"iterations={basic.iterations}"
    )

    spectral = session.solve_spectral(max_iterations=300)
    print(
        f"Spectral subgradient: status={spectral.status}, bound={spectral.objective:.6f}, "
        f"iterations={spectral.iterations}"
    )

    # The session keeps the dual vector of the most recent solve
    print("\nDual multipliers (row prices):")
    for row, value in enumerate(session.get_dual(), start=1):
        print(f"  row {row}: {value:.6f}")

    print("\nReduced costs:")
    for col, value in enumerate(session.get_reduced_costs(), start=1):
        print(f"  column {col}: {value:.6f}")

    session.release()


if __name__ == "__main__":
    main()
