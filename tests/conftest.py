"""
Pytest configuration and shared fixtures for pyBSVAR tests.
"""

import numpy as np
import pytest

from pyBSVAR.restrictions import RestrictionSet
from pyBSVAR.specification import specify_prior, specify_starting_values
from pyBSVAR.utils import simulate_svar


A_TRUE = np.array([[0.5, 0.1, 0.2],
                   [0.0, 0.4, -0.1]])
B_TRUE = np.array([[1.0, 0.0],
                   [0.5, 1.0]])


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def true_parameters():
    """(A, B) that generate the bivariate test data."""
    return A_TRUE.copy(), B_TRUE.copy()


@pytest.fixture
def svar_data(rng_seed):
    """Bivariate SVAR with one lag and a constant, T=200."""
    Y, X = simulate_svar(A_TRUE, B_TRUE, T=200, rng=rng_seed)
    return Y, X


@pytest.fixture
def large_svar_data():
    """Same model with T=500, for posterior recovery checks."""
    Y, X = simulate_svar(A_TRUE, B_TRUE, T=500, rng=2024)
    return Y, X


@pytest.fixture
def prior():
    return specify_prior(N=2, p=1, d=1)


@pytest.fixture
def starting_values():
    return specify_starting_values(N=2, K=3)


@pytest.fixture
def lower_restrictions():
    return RestrictionSet.lower_triangular(2)


@pytest.fixture
def trivariate_setup():
    """Three variables, one lag, cyclic exclusion pattern on B."""
    A = np.array([[0.5, 0.0, 0.0, 0.1],
                  [0.1, 0.3, 0.0, 0.0],
                  [0.0, 0.2, 0.4, -0.1]])
    B = np.array([[1.0, 0.3, 0.0],
                  [0.0, 1.0, -0.4],
                  [0.2, 0.0, 1.0]])
    pattern = (B != 0).astype(int)
    Y, X = simulate_svar(A, B, T=150, rng=7)
    return {
        'Y': Y,
        'X': X,
        'restrictions': RestrictionSet.from_pattern(pattern),
        'prior': specify_prior(N=3, p=1, d=1),
        'starting_values': specify_starting_values(N=3, K=4),
    }
