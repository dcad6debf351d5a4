"""Analyses driven by a log-posterior: mode finding and goodness of fit."""

from .optimize import optimize, OptimizationResult, initial_step_sizes
from .goodness_of_fit import goodness_of_fit, GoodnessOfFitResult

__all__ = [
    "optimize",
    "OptimizationResult",
    "initial_step_sizes",
    "goodness_of_fit",
    "GoodnessOfFitResult",
]
