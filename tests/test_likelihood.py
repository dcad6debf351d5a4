"""Tests for the Gaussian likelihood."""

import pytest
import numpy as np
from numpy.testing import assert_allclose
from scipy.stats import norm

from logdensity.observables.likelihood import (
    Constraint,
    GaussianBlock,
    LogLikelihood,
    Observable,
    ObservableCache,
)
from logdensity.parameters import Parameters


def _identity(name):
    return lambda parameters: parameters[name].evaluate()


@pytest.fixture
def likelihood():
    """Single measurement x = 1.0 +0.4 -0.2 of the parameter x."""
    p = Parameters({"x": 1.0}, seed=1)
    llh = LogLikelihood(p)
    llh.add_gaussian("x-measurement", Observable("x", _identity("x"), p), 1.0, 0.2, 0.4)
    return llh


class TestObservableCache:
    """Tests for ObservableCache."""

    def test_deduplicates_by_name(self):
        """The same observable name is stored once."""
        p = Parameters({"x": 2.0})
        cache = ObservableCache(p)
        i = cache.add(Observable("x", _identity("x"), p))
        j = cache.add(Observable("x", _identity("x"), p))
        k = cache.add(Observable("x^2", lambda q: q["x"].evaluate() ** 2, p))
        assert i == j == 0
        assert k == 1
        assert len(cache) == 2

    def test_update(self):
        """Predictions follow the current parameter values."""
        p = Parameters({"x": 2.0})
        cache = ObservableCache(p)
        cache.add(Observable("x^2", lambda q: q["x"].evaluate() ** 2, p))
        cache.update()
        assert cache[0] == 4.0
        p["x"].set(3.0)
        cache.update()
        assert cache[0] == 9.0

    def test_rebinds_foreign_observables(self):
        """Observables built on another registry are cloned onto the cache's."""
        p, q = Parameters({"x": 1.0}), Parameters({"x": 5.0})
        cache = ObservableCache(p)
        cache.add(Observable("x", _identity("x"), q))
        cache.update()
        assert cache[0] == 1.0
        assert cache.observable(0).parameters is p


class TestGaussianBlock:
    """Tests for GaussianBlock."""

    def test_rejects_non_positive_uncertainty(self):
        """Uncertainties must be positive."""
        cache = ObservableCache(Parameters())
        with pytest.raises(ValueError):
            GaussianBlock(cache, 0, 1.0, 0.0)
        with pytest.raises(ValueError):
            GaussianBlock(cache, 0, 1.0, 0.1, -0.1)

    def test_symmetric_matches_normal(self):
        """A symmetric block is the normal log-density."""
        p = Parameters({"x": 1.3})
        llh = LogLikelihood(p)
        llh.add_gaussian("m", Observable("x", _identity("x"), p), 1.0, 0.5)
        assert_allclose(llh.evaluate(), norm.logpdf(1.3, 1.0, 0.5))

    def test_significance_uses_side(self, likelihood):
        """Pulls above the central value use the upper uncertainty."""
        p = likelihood.parameters
        block = next(likelihood.blocks())

        p["x"].set(1.8)
        likelihood.evaluate()
        assert_allclose(block.significance(), 2.0)

        p["x"].set(0.6)
        likelihood.evaluate()
        assert_allclose(block.significance(), -2.0)

    def test_asymmetric_value(self, likelihood):
        """Normalisation uses the mean of both uncertainties."""
        likelihood.parameters["x"].set(1.0)
        assert_allclose(likelihood.evaluate(), -np.log(np.sqrt(2.0 * np.pi) * 0.3))


class TestLogLikelihood:
    """Tests for LogLikelihood."""

    def test_empty(self):
        """The trivial likelihood is zero and has no observations."""
        llh = LogLikelihood()
        assert llh.evaluate() == 0.0
        assert llh() == 0.0
        assert llh.number_of_observations() == 0
        assert len(llh) == 0

    def test_sum_of_constraints(self):
        """Independent constraints add up."""
        p = Parameters({"x": 0.5, "y": -1.0})
        llh = LogLikelihood(p)
        llh.add_gaussian("mx", Observable("x", _identity("x"), p), 0.0, 1.0)
        llh.add_gaussian("my", Observable("y", _identity("y"), p), 0.0, 2.0)
        expected = norm.logpdf(0.5, 0.0, 1.0) + norm.logpdf(-1.0, 0.0, 2.0)
        assert_allclose(llh.evaluate(), expected)
        assert llh.number_of_observations() == 2
        assert [c.name for c in llh] == ["mx", "my"]

    def test_multi_block_constraint(self):
        """A constraint with several blocks counts each as an observation."""
        p = Parameters({"x": 0.0})
        llh = LogLikelihood(p)
        cache = llh.observable_cache
        i = cache.add(Observable("x", _identity("x"), p))
        j = cache.add(Observable("2x", lambda q: 2.0 * q["x"].evaluate(), p))
        llh.add(Constraint("pair", [GaussianBlock(cache, i, 0.0, 1.0), GaussianBlock(cache, j, 0.0, 1.0)]))
        assert llh.number_of_observations() == 2
        assert len(llh) == 1

    def test_add_rejects_foreign_cache(self):
        """Blocks must read from this likelihood's cache."""
        llh = LogLikelihood()
        foreign = ObservableCache(Parameters())
        with pytest.raises(ValueError):
            llh.add(Constraint("c", [GaussianBlock(foreign, 0, 0.0, 1.0)]))

    def test_clone_is_independent(self, likelihood):
        """A clone evaluates identically but on its own parameters."""
        clone = likelihood.clone()
        assert_allclose(clone.evaluate(), likelihood.evaluate())

        clone.parameters["x"].set(3.0)
        clone.evaluate()
        likelihood.evaluate()
        assert likelihood.parameters["x"].evaluate() == 1.0
        assert likelihood.observable_cache[0] == 1.0
        assert clone.observable_cache[0] == 3.0


class TestBootstrapPValue:
    """Tests for the simulated p-value."""

    def test_perfect_fit(self, likelihood):
        """A prediction equal to the measurement has p = 1."""
        likelihood.evaluate()
        p_value, uncertainty = likelihood.bootstrap_p_value(1000)
        assert p_value == 1.0
        assert uncertainty == 0.0

    def test_bad_fit(self, likelihood):
        """A ten sigma pull has a vanishing p-value."""
        likelihood.parameters["x"].set(5.0)
        likelihood.evaluate()
        p_value, _ = likelihood.bootstrap_p_value(1000)
        assert p_value == 0.0

    def test_one_sigma(self, likelihood):
        """A one sigma pull for one observation gives p close to 0.317."""
        likelihood.parameters["x"].set(1.4)
        likelihood.evaluate()
        p_value, uncertainty = likelihood.bootstrap_p_value(20000)
        assert abs(p_value - 0.3173) < 0.02
        assert 0.0 < uncertainty < 0.01

    def test_requires_datasets(self, likelihood):
        """At least one data set must be simulated."""
        with pytest.raises(ValueError):
            likelihood.bootstrap_p_value(0)
