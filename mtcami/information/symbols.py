"""
Symbolic Encoding

Maps real-valued samples to a finite alphabet using ordered partition
breakpoints. A value v falls into the smallest bin i with v < breakpoints[i];
values beyond the last breakpoint fall into bin ns-1.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .validation import check_breakpoints


@dataclass(frozen=True)
class Partition:
    """Strictly increasing breakpoints defining ns = len(breakpoints) + 1 symbols."""
    breakpoints: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, 'breakpoints', check_breakpoints(self.breakpoints))

    @property
    def n_symbols(self) -> int:
        return len(self.breakpoints) + 1

    @classmethod
    def of(cls, breakpoints) -> 'Partition':
        """Build from a scalar or any sequence of breakpoints."""
        if isinstance(breakpoints, Partition):
            return breakpoints
        return cls(tuple(np.atleast_1d(np.asarray(breakpoints, dtype=float)).tolist()))

    def __repr__(self):
        return f"Partition(ns={self.n_symbols}, breakpoints={list(self.breakpoints)})"


def symbolize(values: np.ndarray, partition) -> np.ndarray:
    """
    Assign a partition symbol to every sample.

    Parameters
    ----------
    values : array
        Samples of any shape
    partition : Partition or sequence of float
        Sorted breakpoints

    Returns
    -------
    symbols : array of int64
        Same shape as values, entries in [0, ns-1]

    Notes
    -----
    The comparison is strict: a value equal to a breakpoint goes to the
    higher bin. searchsorted(side='right') counts breakpoints <= value,
    which is exactly that bin index. NaN sorts past every breakpoint and
    therefore lands in the last bin.
    """
    partition = Partition.of(partition)
    bps = np.asarray(partition.breakpoints, dtype=float)
    values = np.asarray(values, dtype=float)

    return np.searchsorted(bps, values, side='right').astype(np.int64)


def quantile_partition(data: np.ndarray, n_symbols: int = 2) -> Partition:
    """
    Build equiprobable breakpoints from pooled data.

    With n_symbols=2 this is the median split.

    Parameters
    ----------
    data : array
        Samples (pooled over all experiments)
    n_symbols : int
        Alphabet size

    Returns
    -------
    partition : Partition
    """
    if n_symbols < 2:
        raise ValueError(f"n_symbols must be >= 2, got {n_symbols}")

    data = np.asarray(data, dtype=float).ravel()
    data = data[np.isfinite(data)]
    if data.size == 0:
        raise ValueError("Cannot build a partition from empty data")

    quantiles = np.linspace(0, 1, n_symbols + 1)[1:-1]
    breakpoints = np.quantile(data, quantiles)

    # Ties in heavily discretized data collapse quantiles
    if np.any(np.diff(breakpoints) <= 0):
        raise ValueError(
            f"Data has too few distinct values for {n_symbols} equiprobable symbols"
        )

    return Partition(tuple(float(b) for b in breakpoints))


def symbol_counts(symbols: np.ndarray, n_symbols: int) -> np.ndarray:
    """Histogram of symbol occurrences pooled over all experiments."""
    return np.bincount(np.asarray(symbols).ravel(), minlength=n_symbols)
