"""logdensity utility modules."""

from .config import OptimizationOptions
from .exceptions import (
    LogDensityError,
    PriorRangeError,
    PriorDimensionError,
    PriorSyntaxError,
    UnknownPriorError,
    ParameterLookupError,
    DimensionMismatchError,
    ParameterOutOfRangeError,
    UndefinedPriorError,
    DegenerateStatisticsWarning,
)
from .numerics import lu_log_determinant, gaussian_log_norm, cholesky_with_inverse, random_rotation

__all__ = [
    "OptimizationOptions",
    "LogDensityError",
    "PriorRangeError",
    "PriorDimensionError",
    "PriorSyntaxError",
    "UnknownPriorError",
    "ParameterLookupError",
    "DimensionMismatchError",
    "ParameterOutOfRangeError",
    "UndefinedPriorError",
    "DegenerateStatisticsWarning",
    "lu_log_determinant",
    "gaussian_log_norm",
    "cholesky_with_inverse",
    "random_rotation",
]
