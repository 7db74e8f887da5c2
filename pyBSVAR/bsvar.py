"""
Main BSVAR estimation module
"""

import numpy as np
import pandas as pd
from typing import Callable, Dict, List, Optional, Union
import warnings
from datetime import datetime

from . import utils
from .errors import ConfigurationError
from .gibbs import estimate_bsvar, CANCEL_CHECK_EVERY
from .restrictions import RestrictionSet
from .results import BSVARResult
from .specification import (HYPER_NAMES, Prior, StartingValues, coerce_prior,
                            coerce_starting_values, specify_prior,
                            specify_starting_values)


class BSVAR:
    """
    Bayesian homoskedastic Structural Vector Autoregression

    The model is Y = A X + E with B' E = U and standard normal structural
    shocks U. Column n of B holds the coefficients of the n-th structural
    equation. A follows a normal prior and B a generalised-normal prior, both
    with overall shrinkage estimated under a 3-level hierarchical prior.

    Parameters
    ----------
    data : DataFrame or array
        Observations of size T x N (time x variables).
    p : int, default=1
        Number of lags.
    B_restrictions : str, RestrictionSet, array or list, default='lower'
        Exclusion restrictions on B: 'lower' (lower-triangular B),
        'unrestricted', a RestrictionSet, an N x N 0/1 pattern of free
        entries, or a list of N restriction bases.
    prior : Prior or dict, optional
        Prior specification. Defaults to :func:`specify_prior`.
    starting_values : StartingValues or dict, optional
        Initial state of the chain. Defaults to :func:`specify_starting_values`.
    constant : bool, default=True
        Whether to include a constant.
    trend : bool, default=False
        Whether to include a linear trend.
    exogenous : DataFrame or array, optional
        Additional deterministic terms (T x d_ex).
    hyperpara : dict, optional
        Overrides for the scalar prior constants B_nu, hyper_nu, hyper_a,
        hyper_V and hyper_S of the default prior.
    seed : int, optional
        Seed of the random number generator.
    verbose : bool, default=True
        Whether to print progress messages.

    Examples
    --------
    >>> import numpy as np
    >>> from pyBSVAR import BSVAR
    >>> data = np.random.randn(100, 2).cumsum(axis=0)
    >>> model = BSVAR(data, p=1, seed=1, verbose=False)
    >>> result = model.estimate(S=100)
    >>> result.posterior.B.shape
    (2, 2, 100)
    """

    def __init__(self,
                 data: Union[pd.DataFrame, np.ndarray],
                 p: int = 1,
                 B_restrictions: Union[str, RestrictionSet, np.ndarray, List[np.ndarray]] = 'lower',
                 prior: Optional[Union[Prior, Dict]] = None,
                 starting_values: Optional[Union[StartingValues, Dict]] = None,
                 constant: bool = True,
                 trend: bool = False,
                 exogenous: Optional[Union[pd.DataFrame, np.ndarray]] = None,
                 hyperpara: Optional[Dict] = None,
                 seed: Optional[int] = None,
                 verbose: bool = True):

        self.args = {
            'p': p,
            'constant': constant,
            'trend': trend,
            'hyperpara': hyperpara,
            'seed': seed,
            'verbose': verbose
        }

        self._process_data(data, p, constant, trend, exogenous)
        self._set_restrictions(B_restrictions)
        self._set_prior(prior, hyperpara)
        self._set_starting_values(starting_values)

        self.rng = np.random.default_rng(seed)
        self.result: Optional[BSVARResult] = None
        self.total_draws = 0

    def _process_data(self, data, p, constant, trend, exogenous):
        """Build Y and X from the raw data."""
        if not isinstance(data, (pd.DataFrame, np.ndarray)):
            raise TypeError("'data' must be a DataFrame or an array.")
        if not isinstance(p, (int, np.integer)) or p < 0:
            raise TypeError("'p' must be a non-negative integer.")

        self.Y, self.X, self.variable_names, self.regressor_names = \
            utils.build_data_matrices(data, p, constant=constant, trend=trend, exogenous=exogenous)
        self.N, self.T = self.Y.shape
        self.K = self.X.shape[0]
        self.d = self.K - self.N * p

        if self.N < 2:
            warnings.warn("The model has a single variable; B reduces to a scalar.")

    def _set_restrictions(self, B_restrictions):
        if isinstance(B_restrictions, str):
            if B_restrictions == 'lower':
                self.restrictions = RestrictionSet.lower_triangular(self.N)
            elif B_restrictions == 'unrestricted':
                self.restrictions = RestrictionSet.unrestricted(self.N)
            else:
                raise ValueError("'B_restrictions' must be 'lower', 'unrestricted', "
                                 "a RestrictionSet, a pattern matrix or a list of bases.")
        elif isinstance(B_restrictions, RestrictionSet):
            if B_restrictions.N != self.N:
                raise ConfigurationError(
                    f"Restriction set is for N={B_restrictions.N} variables, data has N={self.N}.")
            self.restrictions = B_restrictions
        elif isinstance(B_restrictions, (np.ndarray, pd.DataFrame)):
            self.restrictions = RestrictionSet.from_pattern(B_restrictions)
        else:
            self.restrictions = RestrictionSet(B_restrictions, N=self.N)

    def _set_prior(self, prior, hyperpara):
        if prior is not None:
            self.prior = coerce_prior(prior)
            if hyperpara:
                warnings.warn("'hyperpara' is ignored when a full prior is provided.")
            return

        self.prior = specify_prior(self.N, self.args['p'], self.d)
        if hyperpara:
            for key, value in hyperpara.items():
                if key in ('B_nu', 'hyper_nu', 'hyper_a', 'hyper_V', 'hyper_S'):
                    setattr(self.prior, key, float(value))
                else:
                    warnings.warn(f"Unknown hyperparameter: {key}. Ignoring.")

    def _set_starting_values(self, starting_values):
        if starting_values is None:
            self.last_draw = specify_starting_values(self.N, self.K)
        else:
            self.last_draw = coerce_starting_values(starting_values)

    def estimate(self,
                 S: int,
                 report_progress: Optional[Callable[[int], None]] = None,
                 should_cancel: Optional[Callable[[], bool]] = None,
                 cancel_check_every: int = CANCEL_CHECK_EVERY) -> BSVARResult:
        """
        Run the Gibbs sampler for S iterations.

        Repeated calls continue the chain from the last draw of the previous
        call.

        Parameters
        ----------
        S : int
            Number of posterior draws.
        report_progress : callable, optional
            Progress callback receiving the iteration index.
        should_cancel : callable, optional
            Cancellation poll; returning True stops the run early.
        cancel_check_every : int, default=200
            Stride of the cancellation poll.

        Returns
        -------
        BSVARResult
        """
        start_time = datetime.now()
        verbose = self.args['verbose']

        result = estimate_bsvar(
            S, self.Y, self.X, self.restrictions, self.prior, self.last_draw,
            report_progress=report_progress,
            should_cancel=should_cancel,
            cancel_check_every=cancel_check_every,
            rng=self.rng,
            verbose=verbose
        )

        self.result = result
        self.last_draw = result.last_draw
        self.total_draws += result.n_draws

        if verbose:
            elapsed = (datetime.now() - start_time).total_seconds()
            if result.cancelled:
                print(f"\nEstimation cancelled after {result.n_draws} of {S} draws.")
            print(f"Total estimation time: {elapsed:.2f} seconds")

        return result

    def _check_estimated(self):
        if self.result is None or self.result.n_draws == 0:
            raise ValueError("No posterior draws available. Please run 'estimate' first.")

    def posterior_mean(self) -> Dict[str, Union[pd.DataFrame, pd.Series]]:
        """Posterior means of A, B and the hyperparameters with labels."""
        self._check_estimated()
        means = self.result.posterior_mean()
        return {
            'A': pd.DataFrame(means['A'], index=self.variable_names, columns=self.regressor_names),
            'B': pd.DataFrame(means['B'], index=self.variable_names,
                              columns=[f"eq.{name}" for name in self.variable_names]),
            'hyper': pd.Series(means['hyper'], index=list(HYPER_NAMES))
        }

    def summary(self, probs: tuple = (0.05, 0.95)) -> Dict[str, pd.DataFrame]:
        """Print and return posterior summaries of the last run."""
        self._check_estimated()
        tables = self.result.summary(self.variable_names, self.regressor_names, probs=probs)

        print("-" * 75)
        print("Model Info:")
        print(f"Number of variables: {self.N}")
        print(f"Number of lags: {self.args['p']}")
        print(f"Sample size: {self.T}")
        print(f"Free parameters in B: {self.restrictions.total_free}")
        print(f"Number of posterior draws: {self.result.n_draws} (total {self.total_draws})")
        print("-" * 75)
        print("Structural matrix B (posterior mean):")
        print(self.posterior_mean()['B'].round(3))
        print("-" * 75)
        print("Hyperparameters:")
        print(tables['hyper'].round(3))
        print("-" * 75)
        return tables

    def __repr__(self):
        return (f"BSVAR(N={self.N}, p={self.args['p']}, T={self.T}, K={self.K}, "
                f"draws={self.total_draws})")
