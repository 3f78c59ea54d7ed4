"""Custom exceptions for the SCP dual bound library."""

from __future__ import annotations


class DualSolverError(Exception):
    """Base exception for all dual solver errors.

    All custom exceptions in the scp_dual package inherit from this class,
    allowing users to catch all solver-related errors with a single except clause.

    Example:
        try:
            result = solve_spectral(instance, max_iterations=300)
        except DualSolverError as e:
            print(f"Solver error: {e}")
    """


class MalformedInputError(DualSolverError):
    """Raised when an instance definition is invalid or malformed.

    This includes:
    - Missing tokens before the expected number of values is read
    - Unparsable numeric tokens
    - Column indices outside 1..num_cols in the file (0..num_cols-1 in memory)
    - Rows that no column covers
    - Negative or non-finite column costs

    Example:
        MalformedInputError("Unexpected end of input while reading cost of column 3", position=5)
    """

    def __init__(self, message: str, position: int | None = None):
        """Initialize with message and optional token position."""
        super().__init__(message)
        self.position = position


class ResourceExhaustionError(DualSolverError):
    """Raised when a working array cannot be allocated.

    The operation that raised it is abandoned as a whole: no partially built
    instance or half-initialized solver state is left behind for reuse.

    Example:
        ResourceExhaustionError(
            "Cannot allocate momentum buffer",
            resource="momentum",
            size=4_000_000,
        )
    """

    def __init__(self, message: str, resource: str | None = None, size: int | None = None):
        """Initialize with message and allocation details."""
        super().__init__(message)
        self.resource = resource
        self.size = size


class SolverConfigurationError(DualSolverError):
    """Raised when solver configuration or arguments are invalid.

    This includes:
    - Negative iteration limits
    - Non-positive tolerances or step parameters
    - A momentum factor outside [0, 1)

    Example:
        SolverConfigurationError("max_iterations must be non-negative, got -1")
    """


class ResultUnavailableError(DualSolverError):
    """Raised when results are requested before a solve or after release.

    Example:
        session = DualSession(instance)
        session.get_dual()  # raises: no solve has completed yet
    """
