"""Tests for the prior-based proposal covariance."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from logdensity.observables.likelihood import LogLikelihood
from logdensity.parameters import Parameters
from logdensity.posterior import LogPosterior
from logdensity.sampling.priors import CurtailedGaussPrior, FlatPrior, MultivariateGaussianPrior
from logdensity.sampling.proposal import proposal_covariance


@pytest.fixture
def posterior():
    p = Parameters()
    post = LogPosterior(LogLikelihood(p))
    post.add(FlatPrior(p, "x", (0.0, 6.0)))
    post.add(CurtailedGaussPrior(p, "y", (-10.0, 10.0), -0.5, 0.0, 0.5), nuisance=True)
    post.add(MultivariateGaussianPrior(p, ["a", "b"], [0.0, 0.0], [[4.0, 1.0], [1.0, 9.0]]))
    return post


class TestProposalCovariance:
    """Tests for proposal_covariance()."""

    def test_diagonal(self, posterior):
        """Diagonal holds the prior variances, off-diagonal is zero."""
        cov = proposal_covariance(posterior)
        assert cov.shape == (4, 4)
        assert_allclose(np.diag(cov), [3.0, 0.25, 4.0, 9.0], rtol=1e-9)
        assert np.all(cov[~np.eye(4, dtype=bool)] == 0.0)

    def test_scale_reduction(self, posterior):
        """All variances shrink by scale_reduction squared."""
        cov = proposal_covariance(posterior, scale_reduction=2.0)
        assert_allclose(np.diag(cov), [0.75, 0.0625, 1.0, 2.25], rtol=1e-9)

    def test_unscaled_nuisance(self, posterior):
        """Nuisance variances can be left unscaled."""
        cov = proposal_covariance(posterior, scale_reduction=2.0, scale_nuisance=False)
        assert_allclose(np.diag(cov), [0.75, 0.25, 1.0, 2.25], rtol=1e-9)

    def test_invalid_scale_reduction(self, posterior):
        """scale_reduction must be positive."""
        with pytest.raises(ValueError):
            proposal_covariance(posterior, scale_reduction=0.0)
