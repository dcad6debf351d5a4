"""Proposal covariance for samplers seeded from the prior."""

from typing import TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..posterior import LogPosterior


def proposal_covariance(
    log_posterior: "LogPosterior",
    scale_reduction: float = 1.0,
    scale_nuisance: bool = True,
) -> NDArray[np.floating]:
    """Diagonal proposal covariance built from the prior variances.

    Args:
        log_posterior: Posterior whose priors provide the variances
        scale_reduction: Variances of rescaled parameters are divided by
            scale_reduction**2
        scale_nuisance: Rescale nuisance parameters too (scan parameters
            are always rescaled)

    Returns:
        Array of shape (n_params, n_params) with zero off-diagonal
    """
    if scale_reduction <= 0:
        raise ValueError(f"scale_reduction ({scale_reduction}) must be > 0")

    npar = len(log_posterior)

    # zero off-diagonal
    covariance = np.zeros((npar, npar))

    # prior variance on the diagonal
    for i, description in enumerate(log_posterior.parameter_descriptions):
        prior = log_posterior.log_prior_for(description.name)
        covariance[i, i] = prior.variance(description.name)

        # rescale variance of scan parameters in order to avoid drawing too
        # many samples outside the allowed range
        if not description.nuisance or scale_nuisance:
            covariance[i, i] /= scale_reduction**2

    return covariance
