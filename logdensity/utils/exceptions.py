"""Exception and warning types raised by the log-density engine."""

from typing import Optional


class LogDensityError(Exception):
    """Base class for all errors raised by logdensity."""


class PriorRangeError(LogDensityError, ValueError):
    """Raised when a prior is constructed from malformed distribution parameters.

    Covers inverted or degenerate ranges, non-positive scales and
    covariance matrices that cannot be factorised.
    """

    def __init__(self, prior: str, message: str, name: Optional[str] = None):
        self.prior = prior
        self.name = name
        where = f"{prior}({name})" if name is not None else prior
        super().__init__(f"Range Error: {where}: {message}")


class PriorDimensionError(PriorRangeError):
    """Raised when mean vector, covariance matrix and names disagree in size."""


class PriorSyntaxError(LogDensityError, ValueError):
    """Raised when a textual prior specification has a malformed field."""

    def __init__(self, text: str, field: str, message: str = ""):
        self.text = text
        self.field = field
        detail = f": {message}" if message else ""
        super().__init__(f"Cannot parse field '{field}' of prior '{text}'{detail}")


class UnknownPriorError(LogDensityError, LookupError):
    """Raised when a textual prior names a prior type that cannot be built."""

    def __init__(self, text: str, prior_type: Optional[str] = None):
        self.text = text
        self.prior_type = prior_type
        super().__init__(f"Unknown prior error: cannot construct prior from '{text}'")


class ParameterLookupError(LogDensityError, LookupError):
    """Raised when a parameter name is not known to a registry or posterior."""

    def __init__(self, name: str, where: str = "parameters"):
        self.name = name
        super().__init__(f"{where}: no such parameter '{name}'")


class DimensionMismatchError(LogDensityError, ValueError):
    """Raised when a point does not have one component per parameter."""

    def __init__(self, where: str, got: int, expected: int):
        self.got = got
        self.expected = expected
        super().__init__(
            f"{where}: point doesn't have the correct dimension: {got} vs {expected}"
        )


class ParameterOutOfRangeError(LogDensityError, ValueError):
    """Raised when a parameter value lies outside its allowed range."""

    def __init__(self, name: str, value: float, minimum: float, maximum: float):
        self.name = name
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"parameter {name} out of bounds [{minimum}, {maximum}]: {value}"
        )


class UndefinedPriorError(LogDensityError, RuntimeError):
    """Raised when a posterior is evaluated before any prior was added."""


class DegenerateStatisticsWarning(UserWarning):
    """Issued when a goodness-of-fit statistic has non-positive degrees of freedom."""
