"""
Prior and starting-value specifications for the homoskedastic SVAR

The prior for the autoregressive matrix A is normal with a Minnesota-type
mean and a row-invariant precision matrix. The structural matrix B follows a
generalised-normal prior. Both are scaled by overall shrinkage parameters
that are estimated with a 3-level hierarchical prior.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, Mapping, Union

import numpy as np

from .errors import ConfigurationError


HYPER_NAMES = ('gamma_A', 'gamma_B', 's_A', 's_B', 's_AB')


@dataclass
class Prior:
    """
    Prior specification.

    Attributes
    ----------
    A : array
        N x K prior mean of the autoregressive matrix.
    A_V_inv : array
        K x K prior precision shared by every row of A.
    B_V_inv : array
        N x N prior precision shared by every column of B.
    B_nu : float
        Shape of the generalised-normal prior for B, at least N.
    hyper_nu : float
        Shape of the inverted-gamma 2 priors of the overall shrinkage
        parameters of A and B.
    hyper_a : float
        Shape of the gamma priors of the scales s_A and s_B.
    hyper_V : float
        Shape of the inverted-gamma 2 prior of the level 3 scale s_AB.
    hyper_S : float
        Scale of the inverted-gamma 2 prior of the level 3 scale s_AB.
    """
    A: np.ndarray
    A_V_inv: np.ndarray
    B_V_inv: np.ndarray
    B_nu: float
    hyper_nu: float = 3.0
    hyper_a: float = 1.0
    hyper_V: float = 3.0
    hyper_S: float = 1.0

    def __post_init__(self):
        self.A = np.atleast_2d(np.asarray(self.A, dtype=float))
        self.A_V_inv = np.atleast_2d(np.asarray(self.A_V_inv, dtype=float))
        self.B_V_inv = np.atleast_2d(np.asarray(self.B_V_inv, dtype=float))
        for name in ('B_nu', 'hyper_nu', 'hyper_a', 'hyper_V', 'hyper_S'):
            setattr(self, name, float(getattr(self, name)))

    @classmethod
    def from_dict(cls, prior: Mapping) -> 'Prior':
        names = [f.name for f in fields(cls)]
        missing = [name for name in names[:4] if name not in prior]
        if missing:
            raise ConfigurationError(f"Prior is missing required fields: {missing}.")
        return cls(**{name: prior[name] for name in names if name in prior})

    def to_dict(self) -> Dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def N(self) -> int:
        return self.A.shape[0]

    @property
    def K(self) -> int:
        return self.A.shape[1]


@dataclass
class StartingValues:
    """
    Position of the Markov chain: A (N x K), B (N x N) and the 5-vector
    hyper = (gamma_A, gamma_B, s_A, s_B, s_AB).

    The ``last_draw`` of an estimation run is a ``StartingValues`` and can be
    passed verbatim to the next run to continue the chain.
    """
    A: np.ndarray
    B: np.ndarray
    hyper: np.ndarray = field(default_factory=lambda: np.ones(5))

    def __post_init__(self):
        self.A = np.atleast_2d(np.array(self.A, dtype=float))
        self.B = np.atleast_2d(np.array(self.B, dtype=float))
        self.hyper = np.array(self.hyper, dtype=float).ravel()

    @classmethod
    def from_dict(cls, starting_values: Mapping) -> 'StartingValues':
        missing = [name for name in ('A', 'B') if name not in starting_values]
        if missing:
            raise ConfigurationError(f"Starting values are missing required fields: {missing}.")
        if 'hyper' in starting_values:
            return cls(starting_values['A'], starting_values['B'], starting_values['hyper'])
        return cls(starting_values['A'], starting_values['B'])

    def to_dict(self) -> Dict[str, np.ndarray]:
        return {'A': self.A.copy(), 'B': self.B.copy(), 'hyper': self.hyper.copy()}


def specify_prior(N: int, p: int, d: int = 1,
                  B_nu: Union[float, None] = None,
                  hyper_nu: float = 3.0,
                  hyper_a: float = 1.0,
                  hyper_V: float = 3.0,
                  hyper_S: float = 1.0) -> Prior:
    """
    Construct the default prior.

    The prior mean of A implies a random walk for every variable. The prior
    precision of the coefficients on lag l is l^2, so that the prior variance
    decays with the lag order as in the Minnesota prior. Deterministic terms
    get unit precision.

    Parameters
    ----------
    N : int
        Number of dependent variables.
    p : int
        Lag order.
    d : int, default=1
        Number of deterministic terms in X.
    B_nu : float, optional
        Shape of the generalised-normal prior for B. Defaults to N.

    Returns
    -------
    Prior
    """
    if N < 1 or p < 0 or d < 0:
        raise ConfigurationError("N must be positive and p, d non-negative.")
    K = N * p + d
    if K < 1:
        raise ConfigurationError("The model must contain at least one regressor.")

    A = np.zeros((N, K))
    if p > 0:
        A[:, :N] = np.eye(N)

    lag_precision = np.kron(np.arange(1, p + 1) ** 2, np.ones(N))
    A_V_inv = np.diag(np.concatenate([lag_precision, np.ones(d)]))

    return Prior(
        A=A,
        A_V_inv=A_V_inv,
        B_V_inv=np.eye(N),
        B_nu=float(N) if B_nu is None else B_nu,
        hyper_nu=hyper_nu,
        hyper_a=hyper_a,
        hyper_V=hyper_V,
        hyper_S=hyper_S
    )


def specify_starting_values(N: int, K: int) -> StartingValues:
    """Starting values: A = [I_N, 0], B = I_N and unit hyperparameters."""
    A = np.zeros((N, K))
    A[:, :min(N, K)] = np.eye(N)[:, :min(N, K)]
    return StartingValues(A=A, B=np.eye(N), hyper=np.ones(5))


def coerce_prior(prior: Union[Prior, Mapping]) -> Prior:
    if isinstance(prior, Prior):
        return prior
    if isinstance(prior, Mapping):
        return Prior.from_dict(prior)
    raise ConfigurationError("'prior' must be a Prior or a mapping with the prior fields.")


def coerce_starting_values(starting_values: Union[StartingValues, Mapping]) -> StartingValues:
    if isinstance(starting_values, StartingValues):
        # copy so the caller's arrays are never mutated by the sampler
        return StartingValues(starting_values.A, starting_values.B, starting_values.hyper)
    if isinstance(starting_values, Mapping):
        return StartingValues.from_dict(starting_values)
    raise ConfigurationError("'starting_values' must be StartingValues or a mapping with A, B and hyper.")
