"""Prior distributions over named parameters.

A prior owns one ``ParameterDescription`` per scalar parameter it controls
and evaluates its log-density at the current values of those parameters.
The set of prior kinds is closed; ``PRIOR_REGISTRY`` maps each kind tag to
its class.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Type
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.stats import norm

from ..parameters import Parameter, Parameters, ParameterDescription, ParameterRange
from ..utils.exceptions import ParameterLookupError, PriorDimensionError, PriorRangeError
from ..utils.numerics import cholesky_with_inverse, gaussian_log_norm, lu_log_determinant


def stringify(value: float) -> str:
    """Shortest text that reads back as the same float."""
    return repr(float(value))


class Prior(ABC):
    """Base class for prior distributions."""

    kind: str = ""
    informative: bool = True
    has_text_form: bool = True

    def __init__(self, parameters: Parameters):
        self._parameters = parameters
        self._descriptions: List[ParameterDescription] = []

    def _describe(self, name: str, minimum: float, maximum: float, initial: float) -> Parameter:
        """Bind parameter ``name`` and record its description."""
        parameter = self._parameters.declare(name, initial)
        self._descriptions.append(ParameterDescription(parameter.clone(), minimum, maximum, False))
        return parameter

    @property
    def parameters(self) -> Parameters:
        """Registry the prior reads its parameters from."""
        return self._parameters

    @property
    def parameter_descriptions(self) -> List[ParameterDescription]:
        return list(self._descriptions)

    @property
    def names(self) -> List[str]:
        return [d.name for d in self._descriptions]

    def __iter__(self) -> Iterator[ParameterDescription]:
        return iter(self._descriptions)

    def __len__(self) -> int:
        return len(self._descriptions)

    @abstractmethod
    def evaluate(self) -> float:
        """Log-density at the current parameter values."""
        pass

    @abstractmethod
    def sample(self) -> None:
        """Draw from the prior and write the draw into the parameters."""
        pass

    @abstractmethod
    def clone(self, parameters: Parameters) -> "Prior":
        """Same distribution, bound to another registry."""
        pass

    @abstractmethod
    def as_string(self) -> str:
        """Canonical one-line text of the prior."""
        pass

    @abstractmethod
    def variance(self, name: Optional[str] = None) -> float:
        """Prior variance of one owned parameter."""
        pass

    def _check_name(self, name: Optional[str]) -> None:
        if name is not None and name not in self.names:
            raise ParameterLookupError(name, where=self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({', '.join(self.names)})"


class FlatPrior(Prior):
    """Uniform prior on [min, max]."""

    kind = "flat"
    informative = False

    def __init__(self, parameters: Parameters, name: str, prior_range: Tuple[float, float]):
        super().__init__(parameters)
        minimum, maximum = float(prior_range[0]), float(prior_range[1])
        if minimum >= maximum:
            raise PriorRangeError(
                "FlatPrior",
                f"minimum ({minimum}) must be smaller than maximum ({maximum})",
                name,
            )

        self.name = name
        self.range = ParameterRange(minimum, maximum)
        # the flat prior always returns this value
        self._value = float(np.log(1.0 / (maximum - minimum)))
        self._parameter = self._describe(name, minimum, maximum, 0.5 * (minimum + maximum))

    def evaluate(self) -> float:
        return self._value

    def sample(self) -> None:
        low, high = self.range
        self._parameter.set(self._parameter.evaluate_generator() * (high - low) + low)

    def clone(self, parameters: Parameters) -> "FlatPrior":
        return FlatPrior(parameters, self.name, self.range)

    def as_string(self) -> str:
        low, high = self.range
        return f"Parameter: {self.name}, prior type: flat, range: [{stringify(low)},{stringify(high)}]"

    def variance(self, name: Optional[str] = None) -> float:
        self._check_name(name)
        low, high = self.range
        return (high - low) ** 2 / 12.0


def _z_pdf(z: float) -> float:
    """z * phi(z), continued to 0 at infinite z."""
    if not np.isfinite(z):
        return 0.0
    return z * norm.pdf(z)


class CurtailedGaussPrior(Prior):
    """[Asymmetric] Gaussian prior with finite support.

    The density of y given x^{+a}_{-b} is piecewise

        P(y) = theta(y - x) c_a N(y | x, a) + theta(x - y) c_b N(y | x, b)

    with c_a, c_b fixed by continuity at x and by unit mass on [min, max].
    """

    kind = "Gaussian"

    def __init__(
        self,
        parameters: Parameters,
        name: str,
        prior_range: Tuple[float, float],
        lower: float,
        central: float,
        upper: float,
    ):
        super().__init__(parameters)
        minimum, maximum = float(prior_range[0]), float(prior_range[1])
        if minimum >= maximum:
            raise PriorRangeError(
                "CurtailedGaussPrior",
                f"minimum ({minimum}) must be smaller than maximum ({maximum})",
                name,
            )
        if lower >= central:
            raise PriorRangeError(
                "CurtailedGaussPrior", f"lower value ({lower}) >= central value ({central})", name
            )
        if upper <= central:
            raise PriorRangeError(
                "CurtailedGaussPrior", f"upper value ({upper}) <= central value ({central})", name
            )

        self.name = name
        self.range = ParameterRange(minimum, maximum)
        self.lower = float(lower)
        self.central = float(central)
        self.upper = float(upper)
        self.sigma_lower = self.central - self.lower
        self.sigma_upper = self.upper - self.central

        ratio = self.sigma_lower / self.sigma_upper
        self._z_min = (minimum - self.central) / self.sigma_lower
        self._z_max = (maximum - self.central) / self.sigma_upper
        mass_lower = 0.5 - norm.cdf(self._z_min)
        mass_upper = norm.cdf(self._z_max) - 0.5

        self._c_a = 1.0 / (ratio * mass_lower + mass_upper)
        self._c_b = ratio * self._c_a
        # probability to the left of the central value
        self._prob_lower = self._c_b * mass_lower
        self._norm_lower = np.log(self._c_b / np.sqrt(2.0 * np.pi) / self.sigma_lower)
        self._norm_upper = np.log(self._c_a / np.sqrt(2.0 * np.pi) / self.sigma_upper)

        self._parameter = self._describe(name, minimum, maximum, self.central)

    @property
    def probability_lower(self) -> float:
        """Prior mass below the central value."""
        return float(self._prob_lower)

    def evaluate(self) -> float:
        x = self._parameter.evaluate()

        if x < self.central:
            sigma, log_norm = self.sigma_lower, self._norm_lower
        else:
            sigma, log_norm = self.sigma_upper, self._norm_upper

        return float(log_norm - 0.5 * ((x - self.central) / sigma) ** 2)

    def sample(self) -> None:
        # CDF = c Phi((x - central) / sigma) + b on either side
        p = self._parameter.evaluate_generator()

        if p < self._prob_lower:
            z = norm.ppf((p - self._prob_lower) / self._c_b + 0.5)
            self._parameter.set(self.central + self.sigma_lower * z)
        else:
            z = norm.ppf((p - self._prob_lower) / self._c_a + 0.5)
            self._parameter.set(self.central + self.sigma_upper * z)

    def clone(self, parameters: Parameters) -> "CurtailedGaussPrior":
        return CurtailedGaussPrior(parameters, self.name, self.range, self.lower, self.central, self.upper)

    def as_string(self) -> str:
        low, high = self.range
        result = (
            f"Parameter: {self.name}, prior type: Gaussian, range: [{stringify(low)},{stringify(high)}]"
            f", x = {stringify(self.central)}"
        )
        if abs(self.sigma_upper - self.sigma_lower) < 1e-15:
            result += f" +- {stringify(self.sigma_upper)}"
        else:
            result += f" + {stringify(self.sigma_upper)} - {stringify(self.sigma_lower)}"
        return result

    def variance(self, name: Optional[str] = None) -> float:
        self._check_name(name)
        sl, su = self.sigma_lower, self.sigma_upper
        z_a, z_b = self._z_min, self._z_max
        phi_0 = norm.pdf(0.0)

        # truncated half-Gaussian moments of y = x - central
        m1 = self._c_b * sl * (norm.pdf(z_a) - phi_0) + self._c_a * su * (phi_0 - norm.pdf(z_b))
        m2 = self._c_b * sl**2 * ((0.5 - norm.cdf(z_a)) + _z_pdf(z_a)) + self._c_a * su**2 * (
            (norm.cdf(z_b) - 0.5) - _z_pdf(z_b)
        )
        return float(m2 - m1**2)


class ScalePrior(Prior):
    """Log-uniform prior for scales on [mu_0 / lambda, mu_0 * lambda].

    Models an uncertainty by a multiplicative factor lambda around mu_0,
    e.g. for renormalisation scales.
    """

    kind = "Scale"

    def __init__(self, parameters: Parameters, name: str, mu_0: float, lambda_: float):
        super().__init__(parameters)
        if mu_0 <= 0.0:
            raise PriorRangeError("ScalePrior", "default value mu_0 must be strictly positive", name)
        if lambda_ <= 1.0:
            raise PriorRangeError("ScalePrior", "scale factor lambda must be strictly larger than 1", name)

        self.name = name
        self.mu_0 = float(mu_0)
        self.lambda_ = float(lambda_)
        self.range = ParameterRange(self.mu_0 / self.lambda_, self.mu_0 * self.lambda_)
        self._ln_lambda = float(np.log(self.lambda_))
        self._parameter = self._describe(name, self.range.min, self.range.max, self.mu_0)

    def evaluate(self) -> float:
        x = self._parameter.evaluate()

        if x < self.range.min or self.range.max < x:
            return -np.inf

        return float(-np.log(2.0 * self._ln_lambda * x))

    def sample(self) -> None:
        # CDF: p = [ln x - ln mu_0 + ln lambda] / (2 ln lambda)
        u = self._parameter.evaluate_generator()
        self._parameter.set(self.mu_0 * self.lambda_ ** (2.0 * u - 1.0))

    def clone(self, parameters: Parameters) -> "ScalePrior":
        return ScalePrior(parameters, self.name, self.mu_0, self.lambda_)

    def as_string(self) -> str:
        low, high = self.range
        return (
            f"Parameter: {self.name}, prior type: Scale, range: [{stringify(low)},{stringify(high)}]"
            f", mu_0 = {stringify(self.mu_0)}, lambda = {stringify(self.lambda_)}"
        )

    def variance(self, name: Optional[str] = None) -> float:
        self._check_name(name)
        low, high = self.range
        log_width = 2.0 * self._ln_lambda
        mean = (high - low) / log_width
        second = (high**2 - low**2) / (2.0 * log_width)
        return float(second - mean**2)


class MultivariateGaussianPrior(Prior):
    """Joint Gaussian prior over several parameters.

    The parameters are unconstrained, their descriptions span (-inf, +inf).
    Mean, covariance, Cholesky factor and inverse covariance are private
    arrays of each instance; clones copy them.
    """

    kind = "MultivariateGaussian"
    has_text_form = False

    def __init__(
        self,
        parameters: Parameters,
        names: Sequence[str],
        mean: ArrayLike,
        covariance: ArrayLike,
    ):
        super().__init__(parameters)
        mean = np.array(mean, dtype=float, ndmin=1)
        covariance = np.array(covariance, dtype=float, ndmin=2)
        names = list(names)

        if covariance.ndim != 2 or covariance.shape[0] != covariance.shape[1]:
            raise PriorDimensionError(
                "MultivariateGaussianPrior", "covariance matrix is not a square matrix"
            )
        if covariance.shape[0] != mean.shape[0]:
            raise PriorDimensionError(
                "MultivariateGaussianPrior",
                "dimension of mean vector and covariance matrix are not identical",
            )
        if len(names) != mean.shape[0]:
            raise PriorDimensionError(
                "MultivariateGaussianPrior",
                "number of parameters and dimension of mean vector are not identical",
            )
        if len(set(names)) != len(names):
            raise PriorDimensionError("MultivariateGaussianPrior", "parameter names are not unique")

        try:
            # cholesky decomposition (informally: the sqrt of the covariance matrix)
            chol, covariance_inv = cholesky_with_inverse(covariance)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise PriorRangeError(
                "MultivariateGaussianPrior", f"Cholesky decomposition failed: {e}"
            ) from e

        self._names = names
        self._dim = len(names)
        self._mean = mean
        self._covariance = covariance
        self._chol = chol
        self._covariance_inv = covariance_inv
        for array in (self._mean, self._covariance, self._chol, self._covariance_inv):
            array.flags.writeable = False

        # -k/2 log(2 pi) - 1/2 log|det(C)|
        self._norm = gaussian_log_norm(self._dim, lu_log_determinant(covariance))

        self._handles = [
            self._describe(name, -np.inf, np.inf, value) for name, value in zip(names, mean)
        ]

    @property
    def mean(self) -> NDArray[np.floating]:
        return self._mean.copy()

    @property
    def covariance(self) -> NDArray[np.floating]:
        return self._covariance.copy()

    @property
    def cholesky(self) -> NDArray[np.floating]:
        """Lower Cholesky factor of the covariance."""
        return self._chol.copy()

    @property
    def log_norm(self) -> float:
        return float(self._norm)

    def evaluate(self) -> float:
        observables = np.array([p.evaluate() for p in self._handles])

        # center the gaussian
        delta = self._mean - observables
        chi_square = float(delta @ self._covariance_inv @ delta)

        return float(self._norm - 0.5 * chi_square)

    def sample(self) -> None:
        u = np.array([p.evaluate_generator() for p in self._handles])
        z = norm.ppf(u)
        values = self._mean + self._chol @ z

        for parameter, value in zip(self._handles, values):
            parameter.set(value)

    def clone(self, parameters: Parameters) -> "MultivariateGaussianPrior":
        return MultivariateGaussianPrior(parameters, self._names, self._mean, self._covariance)

    def as_string(self) -> str:
        raise NotImplementedError("MultivariateGaussianPrior.as_string() not implemented")

    def variance(self, name: Optional[str] = None) -> float:
        if name is None:
            if self._dim != 1:
                raise ValueError("MultivariateGaussianPrior.variance() needs a parameter name")
            return float(self._covariance[0, 0])
        self._check_name(name)
        i = self._names.index(name)
        return float(self._covariance[i, i])


PRIOR_REGISTRY: Dict[str, Type[Prior]] = {
    FlatPrior.kind: FlatPrior,
    CurtailedGaussPrior.kind: CurtailedGaussPrior,
    ScalePrior.kind: ScalePrior,
    MultivariateGaussianPrior.kind: MultivariateGaussianPrior,
}
