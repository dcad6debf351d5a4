"""Prior distributions and sampler seeding for logdensity."""

from .priors import (
    Prior,
    FlatPrior,
    CurtailedGaussPrior,
    ScalePrior,
    MultivariateGaussianPrior,
    PRIOR_REGISTRY,
)
from .prior_parser import PriorSpec, parse_prior, make_prior
from .proposal import proposal_covariance

__all__ = [
    "Prior",
    "FlatPrior",
    "CurtailedGaussPrior",
    "ScalePrior",
    "MultivariateGaussianPrior",
    "PRIOR_REGISTRY",
    "PriorSpec",
    "parse_prior",
    "make_prior",
    "proposal_covariance",
]
