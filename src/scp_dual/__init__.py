"""Lagrangian dual lower bounds for set-covering problems via subgradient optimization."""

from .basic import BasicSubgradientSolver
from .data import DualResult, Instance, ProgressCallback, ProgressInfo, SolverOptions, build_instance
from .diagnostics import ConvergenceMonitor
from .dual import DualState, compute_reduced_costs, initial_dual, lagrangian_objective
from .exceptions import (
    DualSolverError,
    MalformedInputError,
    ResourceExhaustionError,
    ResultUnavailableError,
    SolverConfigurationError,
)
from .io import parse_instance_string
from .session import DualSession
from .solver import load_instance, solve_basic, solve_spectral
from .spectral import SpectralProjectedSolver
from .subgradient import Subgradient, compute_adjusted_subgradient, compute_strict_subgradient

__version__ = "0.1.0"

__all__ = [
    # Main API
    "build_instance",
    "load_instance",
    "parse_instance_string",
    "solve_spectral",
    "solve_basic",
    "DualSession",
    # Data model
    "Instance",
    "DualResult",
    "DualState",
    # Configuration
    "SolverOptions",
    # Progress tracking
    "ProgressCallback",
    "ProgressInfo",
    # Solvers
    "SpectralProjectedSolver",
    "BasicSubgradientSolver",
    # Dual evaluation
    "initial_dual",
    "compute_reduced_costs",
    "lagrangian_objective",
    "Subgradient",
    "compute_strict_subgradient",
    "compute_adjusted_subgradient",
    # Diagnostics
    "ConvergenceMonitor",
    # Exceptions
    "DualSolverError",
    "MalformedInputError",
    "ResourceExhaustionError",
    "SolverConfigurationError",
    "ResultUnavailableError",
    # Version
    "__version__",
]
