"""Goodness-of-fit and significance statistics at a point of parameter space."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging
import warnings
import h5py
import numpy as np
from scipy.stats import chi2

from ..posterior import LogPosterior
from ..serialization import dump_descriptions
from ..utils.exceptions import (
    DegenerateStatisticsWarning,
    DimensionMismatchError,
    ParameterOutOfRangeError,
)

logger = logging.getLogger(__name__)


@dataclass
class GoodnessOfFitResult:
    """Statistics of a goodness-of-fit evaluation.

    p-values that are undefined because their degrees of freedom are not
    positive are reported as -inf.
    """

    p_simulated: float  # From simulated pseudo-experiments
    p_analytical: float  # chi^2 law with dof = n_obs - n_par
    p_analytical_scan: float  # chi^2 law with dof = n_obs - n_scan
    chi2_simulation: float  # chi^2 matching p_simulated for n_obs dof
    chi2_significance: float  # Sum of squared significances
    p_significance: float
    p_significance_scan: float
    dof: int
    dof_scan: int
    log_likelihood: float
    log_posterior: float
    significances: List[float] = field(default_factory=list)

    def as_tuple(self) -> Tuple[float, float]:
        """Return (p_simulated, p_analytical)."""
        return self.p_simulated, self.p_analytical


def _p_value(chi_squared: float, dof: int, label: str) -> float:
    """Upper tail of the chi^2 law, -inf with a warning for dof <= 0."""
    if dof > 0:
        return float(chi2.sf(chi_squared, dof))

    logger.warning(
        "Cannot compute %s p-value for non-positive dof (%d). Need more constraints / less parameters",
        label,
        dof,
    )
    warnings.warn(
        f"Cannot compute {label} p-value for non-positive dof ({dof}). "
        "Need more constraints / less parameters",
        DegenerateStatisticsWarning,
        stacklevel=3,
    )
    return -np.inf


def goodness_of_fit(
    posterior: LogPosterior,
    parameter_values: Sequence[float],
    simulated_datasets: int,
    output_file: Optional[str] = None,
) -> GoodnessOfFitResult:
    """Compute p-values of the fit at ``parameter_values``.

    Args:
        posterior: Posterior whose likelihood is tested
        parameter_values: One value per parameter, in description order,
            each within its allowed range
        simulated_datasets: Number of pseudo-experiments for the simulated p-value
        output_file: Optional HDF5 file receiving descriptions, the point and
            the significances

    Returns:
        GoodnessOfFitResult
    """
    values = np.asarray(parameter_values, dtype=float).ravel()
    descriptions = posterior.parameter_descriptions

    if values.size != len(descriptions):
        raise DimensionMismatchError("goodness_of_fit", values.size, len(descriptions))

    if simulated_datasets < 1:
        raise ValueError(f"need at least one simulated data set, got {simulated_datasets}")

    for description, value in zip(descriptions, values):
        if not description.contains(value):
            raise ParameterOutOfRangeError(description.name, value, description.min, description.max)

    scan_parameters = sum(1 for d in descriptions if not d.nuisance)

    posterior.set_parameters(values)

    likelihood = posterior.likelihood

    # update observables for new parameter values
    log_likelihood = likelihood.evaluate()
    log_posterior = log_likelihood + posterior.log_prior()
    logger.info(
        "Calculating p-values at parameters %s with log(post) = %s", values.tolist(), log_posterior
    )

    p_simulated, _ = likelihood.bootstrap_p_value(simulated_datasets)

    n_obs = likelihood.number_of_observations()
    chi_squared = float(chi2.isf(p_simulated, n_obs)) if n_obs > 0 else np.nan

    # approximate chi^2 law with (n_obs - n_par) degrees of freedom
    dof = n_obs - len(descriptions)
    logger.debug("dof = %d, parameters = %d, observations = %d", dof, len(descriptions), n_obs)
    p_analytical = _p_value(chi_squared, dof, "analytical")
    if dof > 0:
        logger.info(
            "p-value from simulating pseudo experiments after applying DoF correction "
            "and using the chi^2-distribution has a value of %s",
            p_analytical,
        )

    dof_scan = n_obs - scan_parameters
    p_analytical_scan = _p_value(chi_squared, dof_scan, "analytical (scan parameters only)")
    if dof_scan > 0:
        logger.info(
            "p-value from simulating pseudo experiments after applying DoF correction "
            "(scan parameters only) and using the chi^2-distribution has a value of %s",
            p_analytical_scan,
        )

    significances = []
    logger.info("Significances for each constraint:")
    for constraint in likelihood:
        for block in constraint:
            significance = float(block.significance())
            logger.info("%s: %s sigma", constraint.name, significance)
            significances.append(significance)
    total_significance_squared = float(np.sum(np.square(significances)))

    logger.info("Listing the individual observables' predicted values:")
    cache = likelihood.observable_cache
    for i in range(len(cache)):
        logger.info("%s = %s", cache.observable(i).name, cache[i])

    p_significance = -np.inf
    if dof > 0:
        p_significance = float(chi2.sf(total_significance_squared, dof))
        logger.info(
            "p-value from calculating significances, treating them as coming from a Gaussian, "
            "is %s. The pseudo chi_squared/dof is %s/%d = %s",
            p_significance,
            total_significance_squared,
            dof,
            total_significance_squared / dof,
        )

    p_significance_scan = -np.inf
    if dof_scan > 0:
        p_significance_scan = float(chi2.sf(total_significance_squared, dof_scan))
        logger.info(
            "p-value from calculating significances, treating them as coming from a Gaussian, "
            "is %s. The pseudo chi_squared/dof (dof from scan parameters only) is %s/%d = %s",
            p_significance_scan,
            total_significance_squared,
            dof_scan,
            total_significance_squared / dof_scan,
        )

    if output_file:
        with h5py.File(output_file, "w") as f:
            dump_descriptions(posterior, f, "/descriptions")
            f.create_dataset("/data/parameters", data=values)
            data_set = f.create_dataset("/data/significances", data=np.asarray(significances, dtype=float))
            data_set.attrs["chi2_significance"] = total_significance_squared
            data_set.attrs["chi2_simulation"] = chi_squared

    return GoodnessOfFitResult(
        p_simulated=p_simulated,
        p_analytical=p_analytical,
        p_analytical_scan=p_analytical_scan,
        chi2_simulation=chi_squared,
        chi2_significance=total_significance_squared,
        p_significance=p_significance,
        p_significance_scan=p_significance_scan,
        dof=dof,
        dof_scan=dof_scan,
        log_likelihood=log_likelihood,
        log_posterior=log_posterior,
        significances=significances,
    )
