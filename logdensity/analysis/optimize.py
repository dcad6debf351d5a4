"""Mode finding for a log-posterior.

Derivative-free Nelder-Mead simplex search on the negative log-posterior.
The objective is stateful: evaluating a trial point writes it into the
posterior's parameters before the densities are computed.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging
import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from ..posterior import LogPosterior
from ..utils.config import OptimizationOptions
from ..utils.exceptions import DimensionMismatchError
from ..utils.numerics import random_rotation

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """Result of a mode search."""

    parameters: NDArray[np.floating]  # Point reported as the mode
    log_posterior: float  # Log-posterior at that point
    iterations: int
    converged: bool  # Simplex size fell below the tolerance
    improved: bool  # Simplex beat the initial guess

    def as_tuple(self) -> tuple:
        """Return (parameters, log_posterior)."""
        return self.parameters, self.log_posterior


def initial_step_sizes(posterior: LogPosterior, initial_step_size: float) -> NDArray[np.floating]:
    """Per-parameter simplex steps relative to the allowed ranges.

    Unbounded parameters (multivariate priors) use the prior standard
    deviation in place of the range.
    """
    steps = np.zeros(len(posterior))
    for i, description in enumerate(posterior.parameter_descriptions):
        width = description.max - description.min
        if not np.isfinite(width):
            prior = posterior.log_prior_for(description.name)
            width = np.sqrt(prior.variance(description.name))
        steps[i] = width * initial_step_size
    return steps


def _initial_simplex(
    x0: NDArray[np.floating],
    steps: NDArray[np.floating],
    rng: np.random.Generator,
) -> NDArray[np.floating]:
    """Simplex around x0 with edges along a randomly rotated basis."""
    n = x0.size
    rotation = random_rotation(n, rng)
    simplex = np.empty((n + 1, n))
    simplex[0] = x0
    for i in range(n):
        simplex[i + 1] = x0 + rotation[:, i] * steps
    return simplex


def optimize(
    posterior: LogPosterior,
    initial_guess: Sequence[float],
    options: Optional[OptimizationOptions] = None,
) -> OptimizationResult:
    """Maximize the log-posterior starting from ``initial_guess``.

    Args:
        posterior: Posterior to maximize
        initial_guess: One value per parameter, in description order
        options: Optimization options (default: OptimizationOptions())

    Returns:
        OptimizationResult. If the simplex does not strictly improve on the
        initial guess, the initial guess is reported.
    """
    options = options or OptimizationOptions.defaults()
    valid, errors = options.validate()
    if not valid:
        raise ValueError(f"invalid optimization options: {'; '.join(errors)}")

    x0 = np.asarray(initial_guess, dtype=float).ravel()
    if x0.size != len(posterior):
        raise DimensionMismatchError("optimize", x0.size, len(posterior))

    objective = posterior.negative_log_posterior

    # save minimum for later comparison
    initial_minimum = objective(x0)

    rng = (
        np.random.default_rng(options.seed)
        if options.seed is not None
        else posterior.parameters.generator
    )
    steps = initial_step_sizes(posterior, options.initial_step_size)

    result = minimize(
        objective,
        x0,
        method="Nelder-Mead",
        options={
            "initial_simplex": _initial_simplex(x0, steps, rng),
            "maxiter": options.maximum_iterations,
            "xatol": options.tolerance,
            "fatol": np.inf,
            "adaptive": options.strategy_level == 2,
        },
    )

    iterations = int(result.nit)
    converged = bool(result.success)
    logger.debug("f() = %s after %d iterations", result.fun, iterations)
    if converged:
        logger.info("Simplex algorithm converged after %d iterations", iterations)

    mode = float(result.fun)

    # check if algorithm actually found a better minimum
    if not mode < initial_minimum:
        logger.warning("Simplex algorithm did not improve on initial guess")
        posterior.set_parameters(x0)
        return OptimizationResult(
            parameters=x0.copy(),
            log_posterior=-initial_minimum,
            iterations=iterations,
            converged=converged,
            improved=False,
        )

    parameters_at_mode = np.array(result.x, dtype=float)
    posterior.set_parameters(parameters_at_mode)
    logger.info(
        "Results: maximum of posterior = %s at ( %s )",
        -mode,
        " ".join(str(v) for v in parameters_at_mode),
    )

    # minus sign to convert to posterior
    return OptimizationResult(
        parameters=parameters_at_mode,
        log_posterior=-mode,
        iterations=iterations,
        converged=converged,
        improved=True,
    )
