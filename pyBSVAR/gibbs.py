"""
Gibbs sampler for the homoskedastic Structural VAR

Estimates the SVAR using the Waggoner & Zha (2003) sampler for the structural
matrix B and the equation-by-equation sampler of Chan, Koop & Yu (2021) for
the autoregressive matrix A. A follows a normal prior and B a
generalised-normal prior, with matrix-specific overall shrinkage parameters
estimated under a 3-level hierarchical prior.

The model is

    Y = A X + E,    B' E = U,    U ~ N(0, I_N),

where Y is N x T, X is K x T with K = N*p + d, A is N x K and B is N x N.
"""

import logging
from typing import Callable, Mapping, Optional, Sequence, Union

import numpy as np

from . import helpers
from .errors import ConfigurationError, NumericalFailure, RestrictionError
from .restrictions import RestrictionSet, coerce_restrictions
from .results import BSVARResult, PosteriorDraws
from .samplers import GibbsState, sample_A, sample_B, sample_hyperparameters
from .specification import Prior, StartingValues, coerce_prior, coerce_starting_values

logger = logging.getLogger('pyBSVAR')

PROGRESS_POINTS = 50
CANCEL_CHECK_EVERY = 200


def estimate_bsvar(S: int,
                   Y: np.ndarray,
                   X: np.ndarray,
                   VB: Union[RestrictionSet, Sequence[np.ndarray], None],
                   prior: Union[Prior, Mapping],
                   starting_values: Union[StartingValues, Mapping],
                   report_progress: Optional[Callable[[int], None]] = None,
                   should_cancel: Optional[Callable[[], bool]] = None,
                   cancel_check_every: int = CANCEL_CHECK_EVERY,
                   rng: Union[np.random.Generator, int, None] = None,
                   verbose: bool = False) -> BSVARResult:
    """
    Draw S times from the posterior of the homoskedastic SVAR.

    Every iteration draws the hyperparameters, then the rows of A, then the
    columns of B, each conditional on the values just drawn, and stores the
    resulting state.

    Parameters
    ----------
    S : int
        Number of posterior draws.
    Y : array
        N x T dependent variables.
    X : array
        K x T regressors (lags of Y and deterministic terms).
    VB : RestrictionSet or sequence of arrays
        N restriction bases; column n of B lies in the column space of VB[n].
        None means no restrictions.
    prior : Prior or mapping
        Prior with fields A, A_V_inv, B_V_inv, B_nu, hyper_nu, hyper_a,
        hyper_V and hyper_S.
    starting_values : StartingValues or mapping
        Initial A, B and hyper. B must be invertible and satisfy VB.
    report_progress : callable, optional
        Called with the iteration index at 50 evenly spaced iterations.
    should_cancel : callable, optional
        Polled every ``cancel_check_every`` iterations. When it returns True
        the loop stops and the draws committed so far are returned.
    cancel_check_every : int, default=200
        Stride of the cancellation poll.
    rng : Generator or int, optional
        Random number generator or seed.
    verbose : bool, default=False
        Whether to print a banner and progress.

    Returns
    -------
    BSVARResult
        Posterior draws, the last draw, and the cancellation flag.

    Raises
    ------
    ConfigurationError
        If dimensions or values of the inputs are invalid.
    RestrictionError
        If the restrictions cannot support an invertible B, or the starting
        B violates them.
    NumericalFailure
        If a posterior precision matrix fails to decompose. The iteration
        and sampler are recorded on the exception.
    """
    # Initializing
    Y, X, restrictions, prior, starting_values = validate_inputs(
        S, Y, X, VB, prior, starting_values)
    if cancel_check_every < 1:
        raise ConfigurationError("'cancel_check_every' must be a positive integer.")
    rng = np.random.default_rng(rng)

    N, T = Y.shape
    K = X.shape[0]
    XXt = X @ X.T

    state = GibbsState.from_starting_values(starting_values)

    posterior_A = np.zeros((N, K, S))
    posterior_B = np.zeros((N, N, S))
    posterior_hyper = np.zeros((5, S))

    if verbose:
        _print_banner(S)
        if report_progress is None:
            report_progress = _print_progress(S)
    prog_rep_points = set(np.round(np.linspace(0, S, PROGRESS_POINTS)).astype(int).tolist())

    logger.debug("Starting Gibbs sampler: S=%d, N=%d, K=%d, T=%d, free parameters in B=%d",
                 S, N, K, T, restrictions.total_free)

    # Iterating
    count = 0
    cancelled = False
    for s in range(S):
        if report_progress is not None and s in prog_rep_points:
            report_progress(s)
        if should_cancel is not None and s % cancel_check_every == 0 and should_cancel():
            cancelled = True
            logger.info("Gibbs sampler cancelled at iteration %d of %d", s, S)
            break

        try:
            sample_hyperparameters(state, prior, restrictions, rng)
            sample_A(state, Y, X, prior, rng, XXt=XXt)
            sample_B(state, Y, X, prior, restrictions, rng)
        except NumericalFailure as exc:
            exc.iteration = s
            logger.error("Gibbs sampler failed: %s", exc)
            raise

        posterior_A[:, :, s] = state.A
        posterior_B[:, :, s] = state.B
        posterior_hyper[:, s] = state.hyper
        count += 1

    # Finalizing
    if report_progress is not None and not cancelled:
        report_progress(S)

    if cancelled:
        posterior_A = posterior_A[:, :, :count].copy()
        posterior_B = posterior_B[:, :, :count].copy()
        posterior_hyper = posterior_hyper[:, :count].copy()

    return BSVARResult(
        posterior=PosteriorDraws(A=posterior_A, B=posterior_B, hyper=posterior_hyper),
        last_draw=state.to_starting_values(),
        cancelled=cancelled,
        n_draws=count
    )


def validate_inputs(S, Y, X, VB, prior, starting_values):
    """
    Check that all inputs agree in dimension and carry valid values.

    Returns
    -------
    tuple
        (Y, X, restrictions, prior, starting_values) coerced to float arrays,
        a RestrictionSet, a Prior and a fresh StartingValues.
    """
    if isinstance(S, bool) or not isinstance(S, (int, np.integer)) or S < 1:
        raise ConfigurationError("'S' must be a positive integer.")

    Y = np.atleast_2d(np.asarray(Y, dtype=float))
    X = np.atleast_2d(np.asarray(X, dtype=float))
    prior = coerce_prior(prior)
    starting_values = coerce_starting_values(starting_values)

    errors = []
    if Y.ndim != 2 or X.ndim != 2:
        raise ConfigurationError("'Y' and 'X' must be matrices.")
    N, T = Y.shape
    K = X.shape[0]

    if X.shape[1] != T:
        errors.append(f"Y has T={T} observations but X has {X.shape[1]}.")
    if not np.all(np.isfinite(Y)) or not np.all(np.isfinite(X)):
        errors.append("Y and X must not contain NaN or infinite values.")

    # prior
    if (prior.N, prior.K) != (N, K):
        errors.append(f"prior.A must be {N}x{K}, got {prior.N}x{prior.K}.")
    if prior.A_V_inv.shape != (K, K):
        errors.append(f"prior.A_V_inv must be {K}x{K}, got {prior.A_V_inv.shape}.")
    elif not helpers.is_symmetric_positive_definite(prior.A_V_inv):
        errors.append("prior.A_V_inv must be symmetric positive definite.")
    if prior.B_V_inv.shape != (N, N):
        errors.append(f"prior.B_V_inv must be {N}x{N}, got {prior.B_V_inv.shape}.")
    elif not helpers.is_symmetric_positive_definite(prior.B_V_inv):
        errors.append("prior.B_V_inv must be symmetric positive definite.")
    if not prior.B_nu >= N:
        errors.append(f"prior.B_nu must be at least N={N}, got {prior.B_nu}.")
    for name in ('hyper_nu', 'hyper_a', 'hyper_V', 'hyper_S'):
        value = getattr(prior, name)
        if not np.isfinite(value) or value <= 0:
            errors.append(f"prior.{name} must be positive, got {value}.")

    # starting values
    if starting_values.A.shape != (N, K):
        errors.append(f"starting_values.A must be {N}x{K}, got {starting_values.A.shape}.")
    if starting_values.B.shape != (N, N):
        errors.append(f"starting_values.B must be {N}x{N}, got {starting_values.B.shape}.")
    if starting_values.hyper.shape != (5,):
        errors.append(f"starting_values.hyper must have 5 elements, got {starting_values.hyper.size}.")
    elif not np.all(np.isfinite(starting_values.hyper)) or np.any(starting_values.hyper <= 0):
        errors.append("starting_values.hyper must be strictly positive.")

    if errors:
        raise ConfigurationError("Invalid SVAR configuration:\n  " + "\n  ".join(errors))

    restrictions = coerce_restrictions(VB, N)

    B0 = starting_values.B
    if not np.all(np.isfinite(B0)) or np.linalg.matrix_rank(B0) < N:
        raise RestrictionError("starting_values.B must be invertible.")
    if not restrictions.conforms(B0):
        bad = np.flatnonzero(restrictions.residual(B0) > 1e-8 * max(1.0, np.abs(B0).max()))
        raise RestrictionError(
            f"Columns {bad.tolist()} of starting_values.B violate the restrictions in VB.")

    return Y, X, restrictions, prior, starting_values


def _print_banner(S: int):
    print("*" * 50 + "|")
    print(" Gibbs sampler for the SVAR model".ljust(50) + "|")
    print("*" * 50 + "|")
    print(f" Progress of the MCMC simulation for {S} draws")
    print("*" * 50 + "|")


def _print_progress(S: int) -> Callable[[int], None]:
    def report(s: int):
        print(f"Iteration {s}/{S}")
    return report
