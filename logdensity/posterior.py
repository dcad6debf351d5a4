"""Posterior density: a likelihood combined with independent priors.

The posterior owns its likelihood, and through it the parameter registry
that every prior and observable reads from. Adding a prior clones it onto
that registry, so the caller's prior object is never bound to the
posterior's parameters.
"""

from typing import Iterator, List, Optional, Sequence, Set, Tuple
import logging
import numpy as np
from numpy.typing import ArrayLike

from .observables.likelihood import LogLikelihood
from .parameters import Parameter, Parameters, ParameterDescription
from .sampling.priors import Prior
from .utils.config import OptimizationOptions
from .utils.exceptions import DimensionMismatchError, ParameterLookupError, UndefinedPriorError

logger = logging.getLogger(__name__)


class LogPosterior:
    """Log-posterior = sum of log-priors + log-likelihood."""

    def __init__(self, log_likelihood: LogLikelihood):
        """Initialize posterior.

        Args:
            log_likelihood: Likelihood; its parameter registry becomes the
                registry of the posterior
        """
        self._log_likelihood = log_likelihood
        self._parameters = log_likelihood.parameters
        self._priors: List[Prior] = []
        self._parameter_descriptions: List[ParameterDescription] = []
        self._parameter_names: Set[str] = set()
        self._informative_priors = 0

    # ------------------------------------------------------------------
    # composition

    def add(self, prior: Prior, nuisance: bool = False) -> bool:
        """Add a prior for one or more parameters.

        Args:
            prior: Prior to add; a clone bound to this posterior's parameters
                is stored
            nuisance: Tag all parameters of the prior as nuisance parameters

        Returns:
            False (and nothing added) if a parameter of the prior is already
            present, True otherwise
        """
        names = prior.names
        duplicates = [n for n in names if n in self._parameter_names]
        if duplicates or len(set(names)) != len(names):
            logger.warning(
                "Cannot add prior %r: parameter(s) %s already present",
                prior,
                ", ".join(duplicates or names),
            )
            return False

        # clone has the correct Parameters object selected
        prior_clone = prior.clone(self._parameters)

        for description in prior_clone:
            copied = description.copy()
            copied.nuisance = nuisance
            self._parameter_descriptions.append(copied)
            self._parameter_names.add(copied.name)

        self._priors.append(prior_clone)
        if prior_clone.informative:
            self._informative_priors += 1

        return True

    def clone(self) -> "LogPosterior":
        """Independent copy with a cloned likelihood and cloned parameters."""
        result = LogPosterior(self._log_likelihood.clone())

        for prior in self._priors:
            result.add(prior, nuisance=self.nuisance(prior.names[0]))

        # copy ranges and roles, matched by parameter name
        originals = {d.name: d for d in self._parameter_descriptions}
        for description in result._parameter_descriptions:
            original = originals[description.name]
            description.min = original.min
            description.max = original.max
            description.nuisance = original.nuisance

        return result

    # ------------------------------------------------------------------
    # evaluation

    def log_prior(self) -> float:
        """Sum of the log-densities of all (independent) priors."""
        if not self._priors:
            raise UndefinedPriorError("LogPosterior.log_prior(): prior is undefined")

        return float(sum(prior.evaluate() for prior in self._priors))

    def log_prior_for(self, name: str) -> Optional[Prior]:
        """Return the prior that owns parameter ``name``, or None."""
        for prior in self._priors:
            if name in prior.names:
                return prior
        return None

    def log_likelihood(self) -> float:
        return self._log_likelihood.evaluate()

    def log_posterior(self) -> float:
        """Log-posterior at the current parameter values."""
        return self.log_prior() + self.log_likelihood()

    def evaluate(self) -> float:
        return self.log_posterior()

    def set_parameters(self, values: ArrayLike) -> None:
        """Write one value per parameter, in description order."""
        values = np.asarray(values, dtype=float).ravel()
        if values.size != len(self._parameter_descriptions):
            raise DimensionMismatchError(
                "LogPosterior.set_parameters", values.size, len(self._parameter_descriptions)
            )
        for description, value in zip(self._parameter_descriptions, values):
            description.parameter.set(value)

    def negative_log_posterior(self, values: ArrayLike) -> float:
        """Set all parameters to ``values`` and return -log-posterior."""
        self.set_parameters(values)
        return -(self.log_prior() + self.log_likelihood())

    # ------------------------------------------------------------------
    # bookkeeping

    def index(self, name: str) -> int:
        """Position of parameter ``name`` in the parameter descriptions."""
        for i, description in enumerate(self._parameter_descriptions):
            if description.name == name:
                return i

        raise ParameterLookupError(name, where="LogPosterior.index")

    def nuisance(self, name: str, strict: bool = False) -> bool:
        """Whether parameter ``name`` is a nuisance parameter.

        Unknown names give False unless ``strict`` is set, in which case
        they raise ParameterLookupError like ``index``.
        """
        try:
            return self._parameter_descriptions[self.index(name)].nuisance
        except ParameterLookupError:
            if strict:
                raise
            return False

    @property
    def informative_priors(self) -> int:
        """Number of added priors that are not flat."""
        return self._informative_priors

    @property
    def parameter_descriptions(self) -> List[ParameterDescription]:
        return self._parameter_descriptions

    @property
    def parameter_names(self) -> List[str]:
        return [d.name for d in self._parameter_descriptions]

    @property
    def priors(self) -> List[Prior]:
        return list(self._priors)

    @property
    def likelihood(self) -> LogLikelihood:
        return self._log_likelihood

    @property
    def parameters(self) -> Parameters:
        return self._parameters

    def values(self) -> np.ndarray:
        """Current parameter values in description order."""
        return np.array([d.parameter.evaluate() for d in self._parameter_descriptions])

    def __getitem__(self, index: int) -> Parameter:
        return self._parameter_descriptions[index].parameter

    def __len__(self) -> int:
        return len(self._parameter_descriptions)

    def __iter__(self) -> Iterator[ParameterDescription]:
        return iter(self._parameter_descriptions)

    # ------------------------------------------------------------------
    # analysis

    def optimize(
        self,
        initial_guess: Sequence[float],
        options: Optional[OptimizationOptions] = None,
    ) -> Tuple[np.ndarray, float]:
        """Find the mode; see ``logdensity.analysis.optimize``.

        Returns:
            Tuple of (parameters at mode, log-posterior at mode)
        """
        from .analysis.optimize import optimize

        result = optimize(self, initial_guess, options)
        return result.parameters, result.log_posterior

    def goodness_of_fit(
        self,
        parameter_values: Sequence[float],
        simulated_datasets: int,
        output_file: Optional[str] = None,
    ) -> Tuple[float, float]:
        """p-values at a point; see ``logdensity.analysis.goodness_of_fit``.

        Returns:
            Tuple of (simulated p-value, analytical p-value)
        """
        from .analysis.goodness_of_fit import goodness_of_fit

        return goodness_of_fit(self, parameter_values, simulated_datasets, output_file).as_tuple()

    def __repr__(self) -> str:
        return f"LogPosterior(parameters={self.parameter_names}, priors={len(self._priors)})"
