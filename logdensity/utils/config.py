"""Configuration records for logdensity."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class OptimizationOptions:
    """Options for the simplex mode finder.

    Attributes:
        initial_step_size: Initial simplex step as a fraction of each
            parameter's allowed range, in [0, 1]
        maximum_iterations: Iteration cap of the simplex search
        tolerance: Simplex size below which the search stops, in [0, 1]
        strategy_level: Effort level in [0, 2]; level 2 adapts the simplex
            coefficients to the number of parameters
        seed: Seed for the random orientation of the initial simplex
            (None draws from the posterior's parameter generator)
    """

    initial_step_size: float = 0.1
    maximum_iterations: int = 8000
    tolerance: float = 0.1
    strategy_level: int = 1
    seed: Optional[int] = None

    @classmethod
    def defaults(cls) -> "OptimizationOptions":
        """Return the default options."""
        return cls()

    def validate(self) -> tuple[bool, list[str]]:
        """Validate option values.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = []

        if not 0.0 <= self.initial_step_size <= 1.0:
            errors.append(f"initial_step_size = {self.initial_step_size} not in [0, 1]")

        if self.maximum_iterations < 1:
            errors.append(f"maximum_iterations = {self.maximum_iterations} must be >= 1")

        if not 0.0 <= self.tolerance <= 1.0:
            errors.append(f"tolerance = {self.tolerance} not in [0, 1]")

        if self.strategy_level not in (0, 1, 2):
            errors.append(f"strategy_level = {self.strategy_level} not in [0, 2]")

        return len(errors) == 0, errors
