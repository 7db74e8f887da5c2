"""
pyBSVAR: Bayesian estimation of homoskedastic Structural Vector Autoregressions

This package provides a Gibbs sampler for the homoskedastic SVAR combining the
Waggoner & Zha (2003) sampler for the structural matrix, the equation-by-equation
sampler of Chan, Koop & Yu (2021) for the autoregressive matrix, and a
3-level hierarchical prior for the overall shrinkage parameters.
"""

__version__ = "0.1.0"
__author__ = "Python BSVAR Team"

from .bsvar import BSVAR
from . import utils
from . import helpers
from . import samplers
from . import gibbs

from .gibbs import estimate_bsvar
from .errors import (
    BSVARError,
    ConfigurationError,
    RestrictionError,
    NumericalFailure
)
from .restrictions import RestrictionSet
from .results import BSVARResult, PosteriorDraws
from .samplers import GibbsState, sample_hyperparameters, sample_A, sample_B
from .specification import (
    Prior,
    StartingValues,
    specify_prior,
    specify_starting_values
)
from .utils import build_data_matrices, mlag, simulate_svar

__all__ = [
    # Main class and entry point
    "BSVAR",
    "estimate_bsvar",

    # Modules
    "utils",
    "helpers",
    "samplers",
    "gibbs",

    # Specification
    "Prior",
    "StartingValues",
    "specify_prior",
    "specify_starting_values",
    "RestrictionSet",

    # Samplers
    "GibbsState",
    "sample_hyperparameters",
    "sample_A",
    "sample_B",

    # Results
    "BSVARResult",
    "PosteriorDraws",

    # Errors
    "BSVARError",
    "ConfigurationError",
    "RestrictionError",
    "NumericalFailure",

    # Data
    "build_data_matrices",
    "mlag",
    "simulate_svar",
]
