"""logdensity - prior and posterior densities for Bayesian parameter inference.

A ``LogPosterior`` combines a likelihood with independent priors over named
parameters and can be evaluated, optimized, diagnosed and persisted.

Key modules:
    parameters: Parameter registry, handles and descriptions
    sampling: Prior distributions, textual prior format, proposal covariance
    observables: Gaussian likelihood over cached observables
    posterior: Posterior composition and parameter bookkeeping
    analysis: Mode finding and goodness-of-fit statistics
    serialization: HDF5 storage of parameter descriptions

Densities read the CURRENT values of their parameters. Set the values, then
evaluate; use one ``LogPosterior.clone()`` per thread.

Example usage:
    >>> from logdensity import LogLikelihood, LogPosterior, Parameters, FlatPrior
    >>> parameters = Parameters()
    >>> posterior = LogPosterior(LogLikelihood(parameters))
    >>> posterior.add(FlatPrior(parameters, "x", (0.0, 1.0)))
    True
    >>> posterior.log_posterior()
    0.0
"""

__version__ = "1.0.0"

from .parameters import Parameter, Parameters, ParameterRange, ParameterDescription

from .sampling import (
    Prior,
    FlatPrior,
    CurtailedGaussPrior,
    ScalePrior,
    MultivariateGaussianPrior,
    PRIOR_REGISTRY,
    PriorSpec,
    parse_prior,
    make_prior,
    proposal_covariance,
)

from .observables import (
    Observable,
    ObservableCache,
    GaussianBlock,
    Constraint,
    LogLikelihood,
)

from .posterior import LogPosterior

from .analysis import (
    optimize,
    OptimizationResult,
    goodness_of_fit,
    GoodnessOfFitResult,
)

from .serialization import (
    AnalysisRecord,
    dump_descriptions,
    read_descriptions,
    read_analysis,
)

from .utils import (
    OptimizationOptions,
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


__all__ = [
    # Version
    "__version__",
    # Parameters
    "Parameter",
    "Parameters",
    "ParameterRange",
    "ParameterDescription",
    # Priors
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
    # Likelihood
    "Observable",
    "ObservableCache",
    "GaussianBlock",
    "Constraint",
    "LogLikelihood",
    # Posterior
    "LogPosterior",
    # Analysis
    "optimize",
    "OptimizationResult",
    "goodness_of_fit",
    "GoodnessOfFitResult",
    # Serialization
    "AnalysisRecord",
    "dump_descriptions",
    "read_descriptions",
    "read_analysis",
    # Configuration and errors
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
]
