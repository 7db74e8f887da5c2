"""
Containers for the output of the Gibbs sampler
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .specification import HYPER_NAMES, StartingValues


@dataclass
class PosteriorDraws:
    """
    Posterior draws stored along the last axis.

    Attributes
    ----------
    A : array
        N x K x S draws of the autoregressive matrix.
    B : array
        N x N x S draws of the structural matrix.
    hyper : array
        5 x S draws of (gamma_A, gamma_B, s_A, s_B, s_AB).
    """
    A: np.ndarray
    B: np.ndarray
    hyper: np.ndarray

    @property
    def S(self) -> int:
        return self.hyper.shape[1]

    def to_dict(self) -> Dict[str, np.ndarray]:
        return {'A': self.A, 'B': self.B, 'hyper': self.hyper}


@dataclass
class BSVARResult:
    """
    Output of :func:`pyBSVAR.gibbs.estimate_bsvar`.

    Attributes
    ----------
    posterior : PosteriorDraws
        Draws of every committed iteration.
    last_draw : StartingValues
        State after the last committed iteration, to be passed as starting
        values of a follow-up run.
    cancelled : bool
        True if the host requested cancellation before all draws were made.
    n_draws : int
        Number of committed iterations.
    """
    posterior: PosteriorDraws
    last_draw: StartingValues
    cancelled: bool = False
    n_draws: int = 0

    def to_dict(self) -> Dict[str, Dict[str, np.ndarray]]:
        return {
            'posterior': self.posterior.to_dict(),
            'last_draw': self.last_draw.to_dict()
        }

    def posterior_mean(self) -> Dict[str, np.ndarray]:
        """Posterior means of A, B and hyper."""
        if self.n_draws == 0:
            raise ValueError("No posterior draws available.")
        return {
            'A': self.posterior.A.mean(axis=2),
            'B': self.posterior.B.mean(axis=2),
            'hyper': self.posterior.hyper.mean(axis=1)
        }

    def hyper_frame(self) -> pd.DataFrame:
        """Hyperparameter draws as an S x 5 DataFrame."""
        return pd.DataFrame(self.posterior.hyper.T, columns=list(HYPER_NAMES))

    def summary(self,
                variable_names: Optional[List[str]] = None,
                regressor_names: Optional[List[str]] = None,
                probs: tuple = (0.05, 0.95)) -> Dict[str, pd.DataFrame]:
        """
        Posterior summaries of A, B and the hyperparameters.

        Parameters
        ----------
        variable_names : list of str, optional
            Names of the N dependent variables.
        regressor_names : list of str, optional
            Names of the K regressors.
        probs : tuple, default=(0.05, 0.95)
            Probabilities of the reported posterior quantiles.

        Returns
        -------
        dict
            'A' and 'B' hold long-format DataFrames with one row per matrix
            entry; 'hyper' holds one row per hyperparameter.
        """
        if self.n_draws == 0:
            raise ValueError("No posterior draws available.")
        N, K, _ = self.posterior.A.shape
        if variable_names is None:
            variable_names = [f"y{i}" for i in range(N)]
        if regressor_names is None:
            regressor_names = [f"x{k}" for k in range(K)]

        def _long(draws, rows, cols):
            records = []
            for i, row in enumerate(rows):
                for j, col in enumerate(cols):
                    chain = draws[i, j, :]
                    record = {'row': row, 'column': col,
                              'mean': chain.mean(), 'sd': chain.std(ddof=1) if chain.size > 1 else 0.0}
                    for q in probs:
                        record[f"q{q:g}"] = np.quantile(chain, q)
                    records.append(record)
            return pd.DataFrame(records)

        hyper = self.hyper_frame()
        hyper_summary = pd.DataFrame({
            'mean': hyper.mean(),
            'sd': hyper.std(ddof=1) if self.posterior.S > 1 else 0.0,
            **{f"q{q:g}": hyper.quantile(q) for q in probs}
        })

        return {
            'A': _long(self.posterior.A, variable_names, regressor_names),
            'B': _long(self.posterior.B, variable_names, [f"eq.{name}" for name in variable_names]),
            'hyper': hyper_summary
        }
