"""
Utility functions for pyBSVAR package
"""

import numpy as np
import pandas as pd
from typing import List, Optional, Tuple, Union
import warnings

from . import helpers
from .errors import ConfigurationError


def mlag(X: Union[np.ndarray, pd.DataFrame], lag: int) -> pd.DataFrame:
    """
    Create lagged variables.

    Parameters
    ----------
    X : array-like or DataFrame
        Input data of size T x N (time x variables).
    lag : int
        Number of lags.

    Returns
    -------
    DataFrame
        Lagged data of size T x (N*lag). The first ``lag`` rows are zero.

    Examples
    --------
    >>> data = pd.DataFrame({'y': [1, 2, 3, 4, 5], 'x': [0.5, 0.6, 0.7, 0.8, 0.9]})
    >>> lagged = mlag(data, lag=2)
    >>> print(lagged.shape)
    (5, 4)
    """
    if isinstance(X, pd.DataFrame):
        X_array = X.values.astype(float)
        colnames = [str(col) for col in X.columns]
    else:
        X_array = np.asarray(X, dtype=float)
        if X_array.ndim == 1:
            X_array = X_array.reshape(-1, 1)
        colnames = [f'var{i}' for i in range(X_array.shape[1])]

    Traw, N = X_array.shape
    p = lag

    Xlag = np.zeros((Traw, p * N))

    lag_colnames = []
    for ii in range(1, p + 1):
        start_idx = N * (ii - 1)
        end_idx = N * ii
        Xlag[p:, start_idx:end_idx] = X_array[(p - ii):(Traw - ii), :]
        lag_colnames.extend([f"{col}.lag{ii}" for col in colnames])

    return pd.DataFrame(Xlag, columns=lag_colnames, index=X.index if isinstance(X, pd.DataFrame) else None)


def build_data_matrices(data: Union[np.ndarray, pd.DataFrame],
                        p: int,
                        constant: bool = True,
                        trend: bool = False,
                        exogenous: Optional[Union[np.ndarray, pd.DataFrame]] = None
                        ) -> Tuple[np.ndarray, np.ndarray, List[str], List[str]]:
    """
    Build the matrices of dependent variables and regressors.

    Parameters
    ----------
    data : array or DataFrame
        Observations of size T x N (time x variables).
    p : int
        Lag order.
    constant : bool, default=True
        Whether to include a constant term.
    trend : bool, default=False
        Whether to include a linear trend.
    exogenous : array or DataFrame, optional
        Additional deterministic terms of size T x d_ex.

    Returns
    -------
    tuple
        (Y, X, variable_names, regressor_names) where Y is N x (T-p) and X is
        K x (T-p) with K = N*p + d. Regressors are ordered as lag 1 of all
        variables, lag 2 of all variables, ..., then constant, trend and
        exogenous terms.
    """
    if isinstance(data, pd.DataFrame):
        if data.isna().any().any():
            raise ConfigurationError("The data you have submitted contains NaNs. Please check the data.")
        variable_names = [str(col) for col in data.columns]
        values = data.values.astype(float)
    else:
        values = np.asarray(data, dtype=float)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if np.isnan(values).any():
            raise ConfigurationError("The data you have submitted contains NaNs. Please check the data.")
        variable_names = [f'var{i}' for i in range(values.shape[1])]

    if not isinstance(p, (int, np.integer)) or p < 0:
        raise ConfigurationError("'p' must be a non-negative integer.")
    Traw, N = values.shape
    if Traw <= p:
        raise ConfigurationError(f"Need more than p={p} observations, got {Traw}.")

    Ylag = mlag(pd.DataFrame(values, columns=variable_names), p)
    regressor_names = list(Ylag.columns)
    blocks = [Ylag.values[p:, :]]
    bigT = Traw - p

    if constant:
        blocks.append(np.ones((bigT, 1)))
        regressor_names.append("cons")
    if trend:
        blocks.append(np.arange(1, bigT + 1, dtype=float).reshape(-1, 1))
        regressor_names.append("trend")
    if exogenous is not None:
        if isinstance(exogenous, pd.DataFrame):
            ex_names = [str(col) for col in exogenous.columns]
            ex_values = exogenous.values.astype(float)
        else:
            ex_values = np.asarray(exogenous, dtype=float)
            if ex_values.ndim == 1:
                ex_values = ex_values.reshape(-1, 1)
            ex_names = [f'ex{i}' for i in range(ex_values.shape[1])]
        if ex_values.shape[0] != Traw:
            raise ConfigurationError("Exogenous terms must have the same number of observations as the data.")
        blocks.append(ex_values[p:, :])
        regressor_names.extend(ex_names)

    Xmat = np.hstack(blocks) if blocks else np.zeros((bigT, 0))
    if Xmat.shape[1] == 0:
        raise ConfigurationError("The model must contain at least one regressor.")

    Y = values[p:, :].T.copy()
    X = Xmat.T.copy()
    return Y, X, variable_names, regressor_names


def simulate_svar(A: np.ndarray,
                  B: np.ndarray,
                  T: int,
                  constant: bool = True,
                  rng: Union[np.random.Generator, int, None] = None,
                  burn: int = 100) -> Tuple[np.ndarray, np.ndarray]:
    """
    Simulate data from a homoskedastic SVAR.

    Observations follow y_t = A x_t + e_t with B' e_t = u_t and u_t standard
    normal, where x_t stacks p lags of y_t and, if ``constant``, a one.

    Parameters
    ----------
    A : array
        N x K autoregressive matrix, K = N*p + constant.
    B : array
        N x N invertible structural matrix.
    T : int
        Number of observations returned.
    constant : bool, default=True
        Whether the last column of A multiplies a constant.
    rng : Generator or int, optional
        Random number generator or seed.
    burn : int, default=100
        Number of initial observations discarded.

    Returns
    -------
    tuple
        (Y, X): N x T dependent variables and K x T regressors.
    """
    A = np.atleast_2d(np.asarray(A, dtype=float))
    B = np.atleast_2d(np.asarray(B, dtype=float))
    N, K = A.shape
    d = 1 if constant else 0
    if (K - d) % N != 0 or K - d < 0:
        raise ConfigurationError(f"A has {K} columns, which is not N*p + {d} for N={N}.")
    p = (K - d) // N
    if B.shape != (N, N):
        raise ConfigurationError(f"B must be {N}x{N}, got {B.shape}.")
    rng = np.random.default_rng(rng)

    if p > 0:
        eigen = np.abs(np.linalg.eigvals(helpers.get_companion(A, N, p)))
        if eigen.max() >= 1:
            warnings.warn(f"The autoregressive matrix is not stable (max. eigenvalue {eigen.max():.3f}).")

    B_inv_t = np.linalg.inv(B.T)
    total = T + burn + p
    y = np.zeros((total, N))
    for t in range(p, total):
        x_t = np.concatenate([y[t - ii] for ii in range(1, p + 1)] + [np.ones(d)])
        y[t] = A @ x_t + B_inv_t @ rng.standard_normal(N)

    Y, X, _, _ = build_data_matrices(y[burn:], p, constant=constant)
    return Y, X
