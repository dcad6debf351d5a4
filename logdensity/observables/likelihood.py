"""Gaussian likelihood over cached observable predictions.

A ``LogLikelihood`` is a list of named constraints. Each constraint holds
one or more Gaussian blocks, each comparing the cached prediction of one
observable with a measurement ``central +upper -lower``. Observables are
plain callables of the parameter registry, evaluated once per likelihood
evaluation and cached.
"""

from typing import Callable, Iterator, List, Optional, Tuple
import numpy as np

from ..parameters import Parameters


class Observable:
    """Named prediction computed from the current parameter values."""

    def __init__(self, name: str, function: Callable[[Parameters], float], parameters: Parameters):
        self.name = name
        self.function = function
        self.parameters = parameters

    def evaluate(self) -> float:
        return float(self.function(self.parameters))

    def clone(self, parameters: Parameters) -> "Observable":
        return Observable(self.name, self.function, parameters)

    def __repr__(self) -> str:
        return f"Observable({self.name!r})"


class ObservableCache:
    """Observables of a likelihood together with their latest predictions."""

    def __init__(self, parameters: Parameters):
        self.parameters = parameters
        self._observables: List[Observable] = []
        self._predictions: List[float] = []

    def add(self, observable: Observable) -> int:
        """Register an observable and return its index.

        Observables are identified by name; adding a name twice returns the
        index of the first registration.
        """
        for i, known in enumerate(self._observables):
            if known.name == observable.name:
                return i

        if observable.parameters is not self.parameters:
            observable = observable.clone(self.parameters)
        self._observables.append(observable)
        self._predictions.append(np.nan)
        return len(self._observables) - 1

    def update(self) -> None:
        """Re-evaluate all observables at the current parameter values."""
        self._predictions = [o.evaluate() for o in self._observables]

    def observable(self, index: int) -> Observable:
        return self._observables[index]

    def __getitem__(self, index: int) -> float:
        return self._predictions[index]

    def __len__(self) -> int:
        return len(self._observables)

    def clone(self, parameters: Parameters) -> "ObservableCache":
        result = ObservableCache(parameters)
        for o in self._observables:
            result.add(o.clone(parameters))
        result._predictions = list(self._predictions)
        return result


class GaussianBlock:
    """Asymmetric Gaussian measurement of one cached observable."""

    def __init__(
        self,
        cache: ObservableCache,
        index: int,
        central: float,
        sigma_lower: float,
        sigma_upper: Optional[float] = None,
    ):
        if sigma_upper is None:
            sigma_upper = sigma_lower
        if sigma_lower <= 0 or sigma_upper <= 0:
            raise ValueError(f"uncertainties must be > 0, got -{sigma_lower} +{sigma_upper}")

        self.cache = cache
        self.index = index
        self.central = float(central)
        self.sigma_lower = float(sigma_lower)
        self.sigma_upper = float(sigma_upper)
        self._log_norm = -np.log(np.sqrt(2.0 * np.pi) * 0.5 * (self.sigma_lower + self.sigma_upper))

    @property
    def prediction(self) -> float:
        return self.cache[self.index]

    def _sigma(self, prediction: float) -> float:
        return self.sigma_upper if prediction > self.central else self.sigma_lower

    def significance(self) -> float:
        """Signed pull of the prediction, in units of the relevant uncertainty."""
        prediction = self.prediction
        return (prediction - self.central) / self._sigma(prediction)

    def evaluate(self) -> float:
        """Log-likelihood of the measurement given the cached prediction."""
        return float(self._log_norm - 0.5 * self.significance() ** 2)

    def clone(self, cache: ObservableCache) -> "GaussianBlock":
        return GaussianBlock(cache, self.index, self.central, self.sigma_lower, self.sigma_upper)


class Constraint:
    """Named group of measurement blocks."""

    def __init__(self, name: str, blocks: List[GaussianBlock]):
        self.name = name
        self.blocks = list(blocks)

    def __iter__(self) -> Iterator[GaussianBlock]:
        return iter(self.blocks)

    def clone(self, cache: ObservableCache) -> "Constraint":
        return Constraint(self.name, [b.clone(cache) for b in self.blocks])

    def __repr__(self) -> str:
        return f"Constraint({self.name!r}, blocks={len(self.blocks)})"


class LogLikelihood:
    """Sum of Gaussian block log-likelihoods.

    A likelihood without constraints evaluates to 0 and can be used as the
    trivial likelihood of a prior-only posterior.
    """

    def __init__(self, parameters: Optional[Parameters] = None):
        self.parameters = parameters if parameters is not None else Parameters()
        self.observable_cache = ObservableCache(self.parameters)
        self._constraints: List[Constraint] = []

    def add_gaussian(
        self,
        name: str,
        observable: Observable,
        central: float,
        sigma_lower: float,
        sigma_upper: Optional[float] = None,
    ) -> Constraint:
        """Add a single-observable Gaussian constraint.

        Args:
            name: Constraint name
            observable: Predicted observable
            central: Measured central value
            sigma_lower: Uncertainty below the central value
            sigma_upper: Uncertainty above the central value (default: symmetric)

        Returns:
            The added constraint
        """
        index = self.observable_cache.add(observable)
        constraint = Constraint(
            name, [GaussianBlock(self.observable_cache, index, central, sigma_lower, sigma_upper)]
        )
        self._constraints.append(constraint)
        return constraint

    def add(self, constraint: Constraint) -> None:
        """Add a constraint whose blocks use this likelihood's observable cache."""
        for block in constraint:
            if block.cache is not self.observable_cache:
                raise ValueError(f"constraint {constraint.name} uses a foreign observable cache")
        self._constraints.append(constraint)

    def __iter__(self) -> Iterator[Constraint]:
        return iter(self._constraints)

    def __len__(self) -> int:
        return len(self._constraints)

    def blocks(self) -> Iterator[GaussianBlock]:
        for constraint in self._constraints:
            yield from constraint

    def number_of_observations(self) -> int:
        """One observation per measurement block."""
        return sum(len(c.blocks) for c in self._constraints)

    def evaluate(self) -> float:
        """Refresh the observable cache and return the total log-likelihood."""
        self.observable_cache.update()
        return float(sum(b.evaluate() for b in self.blocks()))

    def __call__(self) -> float:
        return self.evaluate()

    def bootstrap_p_value(self, datasets: int) -> Tuple[float, float]:
        """Monte Carlo p-value of the current fit.

        Pseudo-measurements are drawn around the cached predictions with
        the measurement uncertainties; the test statistic is the sum of
        squared pulls. Call ``evaluate()`` first to refresh the predictions.

        Args:
            datasets: Number of simulated data sets

        Returns:
            Tuple of (p-value, binomial uncertainty of the p-value)
        """
        if datasets < 1:
            raise ValueError(f"need at least one simulated data set, got {datasets}")

        observed = sum(b.significance() ** 2 for b in self.blocks())
        n_obs = self.number_of_observations()

        pulls = self.parameters.generator.standard_normal((datasets, n_obs))
        simulated = np.sum(pulls**2, axis=1)

        p_value = float(np.mean(simulated >= observed))
        uncertainty = float(np.sqrt(p_value * (1.0 - p_value) / datasets))
        return p_value, uncertainty

    def clone(self) -> "LogLikelihood":
        """Deep copy bound to a cloned parameter registry."""
        result = LogLikelihood(self.parameters.clone())
        result.observable_cache = self.observable_cache.clone(result.parameters)
        result._constraints = [c.clone(result.observable_cache) for c in self._constraints]
        return result
