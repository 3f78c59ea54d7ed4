#!/usr/bin/env python3
"""Quick verification script to test package installation."""

import sys


def main():
    """Verify the scp_dual package is properly installed."""
    print("=" * 60)
    print("SCP Dual Bounds - Installation Verification")
    print("=" * 60)

    # Test 1: Import package
    print("\n[1/4] Testing package import...")
    try:
        import scp_dual

        print("    ✓ Package imported successfully")
        print(f"    ✓ Version: {scp_dual.__version__}")
    except ImportError as e:
        print(f"    ✗ Failed to import package: {e}")
        return 1

    # Test 2: Check API exports
    print("\n[2/4] Testing API exports...")
    try:
        from scp_dual import DualSession, load_instance, solve_basic, solve_spectral  # noqa: F401

        print(f"    ✓ All public APIs available: {scp_dual.__all__}")
    except ImportError as e:
        print(f"    ✗ Failed to import APIs: {e}")
        return 1

    # Test 3: Check dependencies
    print("\n[3/4] Testing dependencies...")
    try:
        import numpy as np
        import scipy

        print(f"    ✓ NumPy {np.__version__}")
        print(f"    ✓ SciPy {scipy.__version__}")
    except ImportError as e:
        print(f"    ✗ Missing dependency: {e}")
        return 1

    # Test 4: Run a simple solve
    print("\n[4/4] Testing solver with simple instance...")
    try:
        from scp_dual import build_instance

        instance = build_instance(2, 3, [1, 1, 2], [[0, 1], [1, 2]])
        session = DualSession(instance)
        result = session.solve_spectral(max_iterations=10)

        if result.status == "optimal" and result.objective == 1.0:
            print("    ✓ Solver works correctly")
            print(f"    ✓ Status: {result.status}, Bound: {result.objective}")
            print(f"    ✓ Dual vector: {session.get_dual().tolist()}")
        else:
            print(f"    ✗ Unexpected result: {result.status}, {result.objective}")
            return 1
    except Exception as e:
        print(f"    ✗ Solver test failed: {e}")
        import traceback

        traceback.print_exc()
        return 1

    # Success
    print("\n" + "=" * 60)
    print("✓ All tests passed! Package is ready to use.")
    print("=" * 60)
    print("\nTry running an example:")
    print("    python examples/solve_scp_example.py")
    print("\nOr run the test suite:")
    print("    pytest")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
