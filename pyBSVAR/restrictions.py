"""
Exclusion restrictions on the structural matrix B

Column n of B is restricted to the column space of an N x r_n basis matrix
VB[n], i.e. B[:, n] = VB[n] @ g_n for a free r_n-vector g_n.
"""

import logging
from typing import Iterator, List, Sequence, Union

import numpy as np
import pandas as pd

from .errors import ConfigurationError, RestrictionError

logger = logging.getLogger('pyBSVAR')


class RestrictionSet:
    """
    Indexed collection of restriction bases, one per column of B.

    Parameters
    ----------
    bases : sequence of arrays
        N matrices; entry n is N x r_n and its columns span the admissible
        subspace of column n of B. One-dimensional entries are read as a
        single basis column.
    N : int, optional
        Expected number of variables. Defaults to ``len(bases)``.

    Raises
    ------
    ConfigurationError
        If the collection length or the row dimension of an entry is not N.
    RestrictionError
        If an entry is rank deficient, or if no invertible B can be formed
        from the admissible columns.
    """

    def __init__(self, bases: Sequence[np.ndarray], N: int = None):
        if isinstance(bases, RestrictionSet):
            bases = bases.bases
        bases = list(bases)
        if N is None:
            N = len(bases)
        if len(bases) != N:
            raise ConfigurationError(
                f"Restriction set must contain N={N} matrices, got {len(bases)}.")
        if N < 1:
            raise ConfigurationError("Restriction set must not be empty.")

        self.N = N
        self.bases: List[np.ndarray] = []
        for n, V in enumerate(bases):
            V = np.asarray(V, dtype=float)
            if V.ndim == 1:
                V = V.reshape(-1, 1)
            if V.ndim != 2 or V.shape[0] != N:
                raise ConfigurationError(
                    f"VB[{n}] must have N={N} rows, got shape {V.shape}.")
            if V.shape[1] < 1 or V.shape[1] > N:
                raise RestrictionError(
                    f"VB[{n}] must have between 1 and N={N} columns, got {V.shape[1]}.")
            if not np.all(np.isfinite(V)):
                raise ConfigurationError(f"VB[{n}] contains non-finite values.")
            if np.linalg.matrix_rank(V) < V.shape[1]:
                raise RestrictionError(
                    f"VB[{n}] is rank deficient: its {V.shape[1]} columns do not span "
                    f"a {V.shape[1]}-dimensional subspace.")
            self.bases.append(V)

        self.n_free = np.array([V.shape[1] for V in self.bases], dtype=int)
        self.pivots = np.array([self._pivot_row(n, V) for n, V in enumerate(self.bases)], dtype=int)
        self._projectors = [V @ np.linalg.solve(V.T @ V, V.T) for V in self.bases]
        self._check_identifiable()

    def __len__(self) -> int:
        return self.N

    def __getitem__(self, n: int) -> np.ndarray:
        return self.bases[n]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.bases)

    def __repr__(self):
        return f"RestrictionSet(N={self.N}, n_free={self.n_free.tolist()})"

    @property
    def total_free(self) -> int:
        """Total number of free parameters in B."""
        return int(self.n_free.sum())

    @staticmethod
    def _pivot_row(n: int, V: np.ndarray, tol: float = 1e-12) -> int:
        # row whose sign fixes the column normalisation
        reach = np.abs(V).max(axis=1) > tol
        if reach[n]:
            return n
        return int(np.argmax(reach))

    def _check_identifiable(self, attempts: int = 3):
        """
        Check that the admissible columns can form an invertible matrix.

        The determinant of B is a polynomial in the free coordinates, so it
        is either identically zero or non-zero for almost every coordinate
        draw.
        """
        rng = np.random.default_rng(20030101)
        for _ in range(attempts):
            B = np.column_stack([V @ rng.standard_normal(V.shape[1]) for V in self.bases])
            if np.linalg.matrix_rank(B) == self.N:
                return
        raise RestrictionError(
            "The restriction bases cannot support an invertible structural matrix B: "
            "some columns are forced into a common lower-dimensional subspace.")

    def residual(self, B: np.ndarray) -> np.ndarray:
        """Distance of every column of B from its admissible subspace."""
        B = np.asarray(B, dtype=float)
        return np.array([np.linalg.norm(B[:, n] - self._projectors[n] @ B[:, n])
                         for n in range(self.N)])

    def conforms(self, B: np.ndarray, tol: float = 1e-8) -> bool:
        """Whether every column of B lies in its admissible subspace."""
        B = np.asarray(B, dtype=float)
        scale = max(1.0, np.abs(B).max())
        return bool(np.all(self.residual(B) <= tol * scale))

    def coordinates(self, B: np.ndarray) -> List[np.ndarray]:
        """Free coordinates g_n with B[:, n] = VB[n] @ g_n (least squares)."""
        B = np.asarray(B, dtype=float)
        return [np.linalg.lstsq(V, B[:, n], rcond=None)[0] for n, V in enumerate(self.bases)]

    def pattern(self) -> pd.DataFrame:
        """0/1 table marking which entries of B are free."""
        free = np.column_stack([np.abs(V).max(axis=1) > 1e-12 for V in self.bases])
        return pd.DataFrame(free.astype(int),
                            index=[f"row{i}" for i in range(self.N)],
                            columns=[f"eq{n}" for n in range(self.N)])

    @classmethod
    def unrestricted(cls, N: int) -> 'RestrictionSet':
        """Every column of B is free."""
        return cls([np.eye(N) for _ in range(N)])

    @classmethod
    def lower_triangular(cls, N: int) -> 'RestrictionSet':
        """B is lower triangular: column n is free in rows n..N-1."""
        return cls([np.eye(N)[:, n:] for n in range(N)])

    @classmethod
    def from_pattern(cls, pattern: Union[np.ndarray, pd.DataFrame]) -> 'RestrictionSet':
        """
        Build the restriction set from an N x N pattern.

        Parameters
        ----------
        pattern : array or DataFrame
            Entry (i, n) is non-zero if B[i, n] is free and zero if it is
            restricted to zero.
        """
        pattern = np.asarray(pattern)
        if pattern.ndim != 2 or pattern.shape[0] != pattern.shape[1]:
            raise ConfigurationError(f"Restriction pattern must be square, got shape {pattern.shape}.")
        N = pattern.shape[0]
        eye = np.eye(N)
        bases = []
        for n in range(N):
            free_rows = np.flatnonzero(pattern[:, n] != 0)
            if free_rows.size == 0:
                raise RestrictionError(f"Column {n} of the restriction pattern has no free entries.")
            bases.append(eye[:, free_rows])
        logger.debug("Built restriction set with %d free parameters in B", int(np.count_nonzero(pattern)))
        return cls(bases)


def coerce_restrictions(VB, N: int) -> RestrictionSet:
    if isinstance(VB, RestrictionSet):
        if VB.N != N:
            raise ConfigurationError(f"Restriction set is for N={VB.N} variables, data has N={N}.")
        return VB
    if VB is None:
        return RestrictionSet.unrestricted(N)
    return RestrictionSet(VB, N=N)
