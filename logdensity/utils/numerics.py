"""Numerical utilities shared by priors, optimizer and statistics."""

from typing import Tuple
import numpy as np
from numpy.typing import NDArray
from scipy import linalg


def lu_log_determinant(matrix: NDArray[np.floating]) -> float:
    """Compute log|det(M)| from an LU decomposition.

    Args:
        matrix: Square matrix

    Returns:
        Natural logarithm of the absolute determinant
    """
    lu, _ = linalg.lu_factor(np.array(matrix, dtype=float, copy=True))
    return float(np.sum(np.log(np.abs(np.diag(lu)))))


def gaussian_log_norm(dim: int, log_det: float) -> float:
    """Log-normalisation of a dim-dimensional Gaussian with log|det(C)| = log_det."""
    return -0.5 * dim * np.log(2.0 * np.pi) - 0.5 * log_det


def cholesky_with_inverse(
    covariance: NDArray[np.floating],
) -> Tuple[NDArray[np.floating], NDArray[np.floating]]:
    """Lower Cholesky factor of a covariance matrix and the inverse built from it.

    Args:
        covariance: Symmetric positive-definite matrix

    Returns:
        Tuple of (L, C^-1) with L lower-triangular (upper triangle zero)

    Raises:
        numpy.linalg.LinAlgError: if the matrix is not positive definite
    """
    chol = linalg.cholesky(covariance, lower=True)
    identity = np.eye(covariance.shape[0])
    inverse = linalg.cho_solve((chol, True), identity)
    # keep only the lower and diagonal parts
    return np.tril(chol), inverse


def random_rotation(dim: int, rng: np.random.Generator) -> NDArray[np.floating]:
    """Draw a random orthonormal basis (columns) uniformly over O(dim).

    Args:
        dim: Dimension
        rng: Random number generator

    Returns:
        Orthogonal matrix of shape (dim, dim)
    """
    q, r = np.linalg.qr(rng.standard_normal((dim, dim)))
    signs = np.sign(np.diag(r))
    signs[signs == 0] = 1.0
    return q * signs
