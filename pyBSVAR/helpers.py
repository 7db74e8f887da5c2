"""
Helper functions for the SVAR Gibbs sampler
"""

import numpy as np
from typing import Optional
from scipy.linalg import cholesky, solve_triangular, null_space, LinAlgError
from scipy.stats import invgamma, gamma, chi2

from .errors import NumericalFailure


def cholesky_precision(P: np.ndarray,
                       component: str,
                       index: Optional[int] = None) -> np.ndarray:
    """
    Upper Cholesky factor U of a posterior precision matrix, P = U'U.

    The matrix is symmetrised first. A matrix that is not positive definite
    raises NumericalFailure for the given component.
    """
    P = 0.5 * (P + P.T)
    if not np.all(np.isfinite(P)):
        raise NumericalFailure("Posterior precision matrix contains non-finite values.",
                               component=component, index=index)
    try:
        return cholesky(P, lower=False)
    except LinAlgError as exc:
        raise NumericalFailure(f"Posterior precision matrix is not positive definite: {exc}",
                               component=component, index=index) from exc


def draw_from_precision(U: np.ndarray, b: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Draw x ~ N(P^{-1} b, P^{-1}) given the upper Cholesky factor U of P.

    Two triangular solves give the mean; the noise is U^{-1} z with
    z ~ N(0, I).
    """
    mean = solve_triangular(U, solve_triangular(U, b, trans='T'))
    z = rng.standard_normal(U.shape[0])
    return mean + solve_triangular(U, z)


def orthogonal_complement(M: np.ndarray) -> np.ndarray:
    """
    Orthonormal basis of the orthogonal complement of the columns of M.

    Parameters
    ----------
    M : array
        n x m matrix.

    Returns
    -------
    array
        n x (n - rank(M)) matrix with orthonormal columns.
    """
    M = np.atleast_2d(M)
    if M.shape[1] == 0:
        return np.eye(M.shape[0])
    return null_space(M.T)


def rig2(scale: float, shape: float, rng: np.random.Generator) -> float:
    """
    Draw from the inverted-gamma 2 distribution IG2(scale, shape).

    The density is proportional to x^{-(shape+2)/2} exp(-scale / (2x)), which
    is an inverse gamma with shape shape/2 and scale scale/2.
    """
    return float(invgamma.rvs(a=0.5 * shape, scale=0.5 * scale, random_state=rng))


def rgamma(shape: float, rate: float, rng: np.random.Generator) -> float:
    """Draw from the gamma distribution with the given shape and rate."""
    return float(gamma.rvs(a=shape, scale=1.0 / rate, random_state=rng))


def rchisq(df: float, rng: np.random.Generator) -> float:
    return float(chi2.rvs(df, random_state=rng))


def is_symmetric_positive_definite(M: np.ndarray) -> bool:
    M = np.asarray(M, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        return False
    if not np.allclose(M, M.T, rtol=1e-8, atol=1e-10):
        return False
    try:
        cholesky(M, lower=True)
    except LinAlgError:
        return False
    return True


def get_companion(A: np.ndarray, N: int, p: int) -> np.ndarray:
    """
    Construct the companion matrix of the autoregressive part of A.

    Parameters
    ----------
    A : array
        N x K coefficient matrix with the lag blocks in its first N*p columns.
    N : int
        Number of variables.
    p : int
        Number of lags.

    Returns
    -------
    array
        (N*p) x (N*p) companion matrix.
    """
    MM = np.zeros((N * p, N * p))
    MM[:N, :] = A[:, :N * p]
    if p > 1:
        MM[N:, :N * (p - 1)] = np.eye(N * (p - 1))
    return MM
