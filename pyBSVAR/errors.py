"""
Exceptions raised by the pyBSVAR sampler
"""

from typing import Optional


class BSVARError(Exception):
    """Base class for all pyBSVAR errors."""


class ConfigurationError(BSVARError, ValueError):
    """Inputs disagree in dimension or carry invalid values.

    Raised once, before the Gibbs loop starts.
    """


class RestrictionError(ConfigurationError):
    """A restriction basis cannot support an invertible structural matrix."""


class NumericalFailure(BSVARError):
    """
    A posterior precision matrix failed to decompose during sampling.

    Parameters
    ----------
    message : str
        Description of the failure.
    component : str, optional
        Sampler that failed: 'hyper', 'A' or 'B'.
    iteration : int, optional
        Gibbs iteration index (0-based) at which the failure occurred.
    index : int, optional
        Row of A or column of B being drawn.
    """

    def __init__(self, message: str,
                 component: Optional[str] = None,
                 iteration: Optional[int] = None,
                 index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.iteration = iteration
        self.index = index

    def __str__(self):
        where = []
        if self.component is not None:
            where.append(f"component={self.component}")
        if self.index is not None:
            where.append(f"index={self.index}")
        if self.iteration is not None:
            where.append(f"iteration={self.iteration}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message
