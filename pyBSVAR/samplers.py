"""
Full conditional samplers of the homoskedastic SVAR

Each sampler receives the current state of the Markov chain and overwrites
its block in place:

- sample_hyperparameters: the 3-level hierarchy of shrinkage parameters
- sample_A: rows of A, equation by equation (Chan, Koop & Yu, 2021)
- sample_B: columns of B under exclusion restrictions (Waggoner & Zha, 2003)

Model: Y = A X + E and B' E = U, with U standard normal. Column n of B holds
the coefficients of the n-th structural equation.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.linalg import solve_triangular

from . import helpers
from .errors import NumericalFailure
from .restrictions import RestrictionSet
from .specification import Prior, StartingValues


@dataclass
class GibbsState:
    """Current position of the chain, mutated in place by the samplers."""
    A: np.ndarray
    B: np.ndarray
    hyper: np.ndarray

    @classmethod
    def from_starting_values(cls, starting_values: StartingValues) -> 'GibbsState':
        return cls(A=starting_values.A.copy(),
                   B=starting_values.B.copy(),
                   hyper=starting_values.hyper.copy())

    def to_starting_values(self) -> StartingValues:
        return StartingValues(A=self.A, B=self.B, hyper=self.hyper)


def sample_hyperparameters(state: GibbsState,
                           prior: Prior,
                           restrictions: RestrictionSet,
                           rng: np.random.Generator) -> np.ndarray:
    """
    Draw the shrinkage hyperparameters from their full conditionals.

    The vector ``state.hyper = (gamma_A, gamma_B, s_A, s_B, s_AB)`` is
    overwritten in place. The hierarchy is

        gamma_A | s_A ~ IG2(s_A, hyper_nu),   s_A | s_AB ~ G(s_AB, hyper_a)
        gamma_B | s_B ~ IG2(s_B, hyper_nu),   s_B | s_AB ~ G(s_AB, hyper_a)
        s_AB ~ IG2(hyper_S, hyper_V)

    Returns
    -------
    array
        The updated hyperparameter vector (the same object as state.hyper).
    """
    hyper = state.hyper
    N, K = state.A.shape

    # level 3: common scale
    hyper[4] = helpers.rig2(prior.hyper_S + 2.0 * (hyper[2] + hyper[3]),
                            prior.hyper_V + 4.0 * prior.hyper_a, rng)

    # level 2: scales of the overall shrinkage parameters
    shape_s = prior.hyper_a + 0.5 * prior.hyper_nu
    hyper[2] = helpers.rgamma(shape_s, 1.0 / hyper[4] + 0.5 / hyper[0], rng)
    hyper[3] = helpers.rgamma(shape_s, 1.0 / hyper[4] + 0.5 / hyper[1], rng)

    # level 1: overall shrinkage of A
    A_dev = state.A - prior.A
    scale_A = hyper[2] + np.trace(A_dev @ prior.A_V_inv @ A_dev.T)
    hyper[0] = helpers.rig2(scale_A, prior.hyper_nu + N * K, rng)

    # level 1: overall shrinkage of B
    scale_B = hyper[3] + np.trace(state.B.T @ prior.B_V_inv @ state.B)
    shape_B = prior.hyper_nu + restrictions.total_free + N * (prior.B_nu - N)
    hyper[1] = helpers.rig2(scale_B, shape_B, rng)

    if not np.all(np.isfinite(hyper)) or np.any(hyper <= 0):
        raise NumericalFailure(f"Hyperparameter draw is not strictly positive: {hyper}",
                               component='hyper')
    return hyper


def sample_A(state: GibbsState,
             Y: np.ndarray,
             X: np.ndarray,
             prior: Prior,
             rng: np.random.Generator,
             XXt: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Draw the rows of A one equation at a time.

    Row n is drawn from its multivariate normal full conditional given B,
    the overall shrinkage gamma_A and all other rows of A, and written back
    before row n+1 is drawn.

    Parameters
    ----------
    state : GibbsState
        Current state; ``state.A`` is overwritten in place.
    Y : array
        N x T dependent variables.
    X : array
        K x T regressors.
    prior : Prior
        Prior specification.
    rng : Generator
        Source of random numbers.
    XXt : array, optional
        Precomputed X @ X.T.

    Returns
    -------
    array
        The updated matrix A (the same object as state.A).

    Raises
    ------
    NumericalFailure
        If a posterior precision matrix is not positive definite.
    """
    A = state.A
    N = A.shape[0]
    if XXt is None:
        XXt = X @ X.T

    Omega = state.B @ state.B.T
    prior_precision = prior.A_V_inv / state.hyper[0]
    prior_location = prior.A @ prior_precision

    for n in range(N):
        # residuals with the contribution of row n removed
        Z = Y - A @ X
        Z[n] += A[n] @ X

        precision = prior_precision + Omega[n, n] * XXt
        location = prior_location[n] + X @ (Omega[n] @ Z)

        U = helpers.cholesky_precision(precision, component='A', index=n)
        A[n] = helpers.draw_from_precision(U, location, rng)

    return A


def sample_B(state: GibbsState,
             Y: np.ndarray,
             X: np.ndarray,
             prior: Prior,
             restrictions: RestrictionSet,
             rng: np.random.Generator) -> np.ndarray:
    """
    Draw the columns of B one structural equation at a time.

    Column n is B[:, n] = VB[n] @ g_n. Given the other columns, the free
    coordinates g_n have density proportional to

        |det B|^(T + B_nu - N) exp(-0.5 g_n' Omega_n g_n),
        Omega_n = VB[n]' (B_V_inv / gamma_B + E E') VB[n],

    with E = Y - A X. Following Waggoner & Zha (2003), g_n is rotated so that
    the determinant depends on a single coordinate beta_1, with
    beta_1^2 ~ chi2(T + B_nu - N + 1) and the remaining coordinates standard
    normal. The column is sign normalised so that its pivot entry is
    positive.

    Returns
    -------
    array
        The updated matrix B (the same object as state.B).

    Raises
    ------
    NumericalFailure
        If Omega_n is not positive definite or the other columns of B are
        collinear.
    """
    B = state.B
    N = B.shape[0]
    T = Y.shape[1]

    E = Y - state.A @ X
    S_inv = prior.B_V_inv / state.hyper[1] + E @ E.T
    df = T + prior.B_nu - N + 1

    for n in range(N):
        V = restrictions[n]
        r = V.shape[1]

        U = helpers.cholesky_precision(V.T @ S_inv @ V, component='B', index=n)

        # direction orthogonal to all other columns
        w = helpers.orthogonal_complement(np.delete(B, n, axis=1))
        if w.shape[1] != 1:
            raise NumericalFailure("Structural matrix B is singular.", component='B', index=n)

        w1 = solve_triangular(U, V.T @ w[:, 0], trans='T')
        w1_norm = np.linalg.norm(w1)
        if not np.isfinite(w1_norm) or w1_norm <= np.finfo(float).tiny:
            raise NumericalFailure("Admissible subspace is orthogonal to the determinant direction.",
                                   component='B', index=n)
        w1 = w1 / w1_norm

        if r > 1:
            W = np.column_stack([w1, helpers.orthogonal_complement(w1[:, np.newaxis])])
        else:
            W = w1[:, np.newaxis]

        beta = np.empty(r)
        beta[0] = np.sqrt(helpers.rchisq(df, rng))
        if rng.random() < 0.5:
            beta[0] = -beta[0]
        beta[1:] = rng.standard_normal(r - 1)

        column = V @ solve_triangular(U, W @ beta)
        if column[restrictions.pivots[n]] < 0:
            column = -column
        B[:, n] = column

    return B
