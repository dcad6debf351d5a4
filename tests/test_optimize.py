"""Tests for the simplex mode finder."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from logdensity.analysis.optimize import OptimizationResult, initial_step_sizes, optimize
from logdensity.observables.likelihood import LogLikelihood, Observable
from logdensity.parameters import Parameters
from logdensity.posterior import LogPosterior
from logdensity.sampling.priors import CurtailedGaussPrior, FlatPrior, MultivariateGaussianPrior
from logdensity.utils.config import OptimizationOptions
from logdensity.utils.exceptions import DimensionMismatchError


def _measured_posterior():
    """Flat prior on x in [0, 2] and a measurement x = 1.2 +- 0.1."""
    p = Parameters(seed=4)
    llh = LogLikelihood(p)
    post = LogPosterior(llh)
    post.add(FlatPrior(p, "x", (0.0, 2.0)))
    llh.add_gaussian("x", Observable("x", lambda q: q["x"].evaluate(), p), 1.2, 0.1)
    return post


class TestOptimizationOptions:
    """Tests for OptimizationOptions."""

    def test_defaults_valid(self):
        """Default options pass validation."""
        valid, errors = OptimizationOptions.defaults().validate()
        assert valid
        assert errors == []

    def test_invalid_values(self):
        """Out-of-range settings are reported."""
        options = OptimizationOptions(initial_step_size=2.0, tolerance=-1.0, strategy_level=3)
        valid, errors = options.validate()
        assert not valid
        assert len(errors) == 3


class TestOptimize:
    """Tests for optimize()."""

    def test_finds_measured_value(self):
        """The mode sits at the measurement."""
        post = _measured_posterior()
        options = OptimizationOptions(tolerance=1e-6, seed=1)
        result = optimize(post, [0.4], options)

        assert isinstance(result, OptimizationResult)
        assert result.improved
        assert result.converged
        assert_allclose(result.parameters, [1.2], atol=1e-4)
        assert_allclose(result.log_posterior, np.log(0.5) - np.log(np.sqrt(2.0 * np.pi) * 0.1), atol=1e-6)

    def test_leaves_parameters_at_mode(self):
        """The posterior's parameters hold the reported point afterwards."""
        post = _measured_posterior()
        result = optimize(post, [0.4], OptimizationOptions(tolerance=1e-6, seed=1))
        assert_allclose(post.values(), result.parameters)
        assert_allclose(post.log_posterior(), result.log_posterior)

    def test_default_options_improve(self):
        """Default options still improve on a poor starting point."""
        post = _measured_posterior()
        initial = -post.negative_log_posterior([0.4])
        result = optimize(post, [0.4])
        assert result.log_posterior > initial

    def test_multivariate_mode(self):
        """Unbounded parameters converge to the prior mean."""
        p = Parameters()
        post = LogPosterior(LogLikelihood(p))
        post.add(MultivariateGaussianPrior(p, ["a", "b"], [1.0, -1.0], [[1.0, 0.3], [0.3, 0.5]]))
        result = optimize(post, [0.0, 0.0], OptimizationOptions(tolerance=1e-7, seed=3))
        assert_allclose(result.parameters, [1.0, -1.0], atol=1e-4)

    def test_adaptive_strategy(self):
        """Strategy level 2 reaches the same mode."""
        p = Parameters()
        post = LogPosterior(LogLikelihood(p))
        post.add(CurtailedGaussPrior(p, "x", (-1.0, 1.0), 0.2, 0.3, 0.4))
        result = optimize(post, [0.8], OptimizationOptions(tolerance=1e-6, strategy_level=2, seed=2))
        assert_allclose(result.parameters, [0.3], atol=1e-4)

    def test_no_improvement_reports_initial_guess(self):
        """A constant posterior cannot be improved; the start is returned."""
        p = Parameters()
        post = LogPosterior(LogLikelihood(p))
        post.add(FlatPrior(p, "x", (0.0, 4.0)))
        result = optimize(post, [1.5], OptimizationOptions(seed=0))

        assert not result.improved
        assert_allclose(result.parameters, [1.5])
        assert_allclose(result.log_posterior, np.log(0.25))
        assert post.values()[0] == 1.5

    def test_dimension_mismatch(self):
        """Starting points must have one value per parameter."""
        post = _measured_posterior()
        with pytest.raises(DimensionMismatchError):
            optimize(post, [0.4, 0.5])

    def test_invalid_options(self):
        """Invalid options are rejected before any evaluation."""
        post = _measured_posterior()
        with pytest.raises(ValueError):
            optimize(post, [0.4], OptimizationOptions(maximum_iterations=0))

    def test_posterior_method(self):
        """LogPosterior.optimize returns (parameters, log-posterior)."""
        post = _measured_posterior()
        parameters, log_posterior = post.optimize([0.4], OptimizationOptions(tolerance=1e-6, seed=1))
        assert_allclose(parameters, [1.2], atol=1e-4)
        assert log_posterior == pytest.approx(post.log_posterior())


class TestInitialStepSizes:
    """Tests for the initial simplex steps."""

    def test_bounded_and_unbounded(self):
        """Bounded parameters step by a fraction of the range, others of the prior width."""
        p = Parameters()
        post = LogPosterior(LogLikelihood(p))
        post.add(FlatPrior(p, "x", (0.0, 2.0)))
        post.add(MultivariateGaussianPrior(p, ["a"], [0.0], [[4.0]]))
        assert_allclose(initial_step_sizes(post, 0.1), [0.2, 0.2])
