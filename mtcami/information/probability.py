"""
Joint Probability Estimation

Pools symbol-embedding occurrences over every (time, experiment) pair and
normalizes them into the marginal and joint tables used by MI and CaMI:

    p_xp    P(X_past)
    p_yp    P(Y_past)
    p_yf    P(Y_future)
    p_ypf   P(Y_past, Y_future)
    p_xyp   P(X_past, Y_past)
    p_xypf  P(X_past, Y_past, Y_future)

Counting is order-independent: FrequencyCounts from disjoint experiment
chunks merge by addition, so chunks can be counted anywhere and reduced.
"""

import operator
from dataclasses import dataclass
from functools import reduce

import numpy as np

from .embedding import EmbeddingSet


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class FrequencyCounts:
    """Immutable occurrence counts; a + b returns a new merged instance."""
    xp: np.ndarray
    yp: np.ndarray
    yf: np.ndarray
    ypf: np.ndarray
    xyp: np.ndarray
    xypf: np.ndarray
    total: int

    def __add__(self, other: 'FrequencyCounts') -> 'FrequencyCounts':
        if not isinstance(other, FrequencyCounts):
            return NotImplemented
        if self.xypf.shape != other.xypf.shape:
            raise ValueError(
                f"Cannot merge counts of different table shapes: "
                f"{self.xypf.shape} vs {other.xypf.shape}"
            )
        return FrequencyCounts(
            xp=_readonly(self.xp + other.xp),
            yp=_readonly(self.yp + other.yp),
            yf=_readonly(self.yf + other.yf),
            ypf=_readonly(self.ypf + other.ypf),
            xyp=_readonly(self.xyp + other.xyp),
            xypf=_readonly(self.xypf + other.xypf),
            total=self.total + other.total,
        )

    @property
    def shape(self):
        return self.xypf.shape


def count_embeddings(embeddings: EmbeddingSet, columns=None) -> FrequencyCounts:
    """
    Count embedding occurrences over the selected experiment columns.

    Parameters
    ----------
    embeddings : EmbeddingSet
        Streams for one direction
    columns : slice, array or None
        Experiment columns to include (all when None)

    Returns
    -------
    counts : FrequencyCounts
    """
    n_x = embeddings.past_driver.n_states
    n_y = embeddings.past_driven.n_states
    n_f = embeddings.future_driven.n_states

    x = embeddings.past_driver.valid(columns)
    y = embeddings.past_driven.valid(columns)
    f = embeddings.future_driven.valid(columns)

    # flat index into the (n_x, n_y, n_f) cube
    flat = (x * n_y + y) * n_f + f
    xypf = np.bincount(flat, minlength=n_x * n_y * n_f).reshape(n_x, n_y, n_f)

    # every lower-order table is a marginal of the triple-joint cube
    xyp = xypf.sum(axis=2)
    ypf = xypf.sum(axis=0)

    return FrequencyCounts(
        xp=_readonly(xyp.sum(axis=1)),
        yp=_readonly(xyp.sum(axis=0)),
        yf=_readonly(ypf.sum(axis=0)),
        ypf=_readonly(ypf),
        xyp=_readonly(xyp),
        xypf=_readonly(xypf),
        total=int(flat.size),
    )


def accumulate_counts(embeddings: EmbeddingSet, n_chunks: int = 1) -> FrequencyCounts:
    """
    Count per chunk of experiment columns and merge by addition.

    The result is identical for any n_chunks.
    """
    n_experiments = embeddings.n_experiments
    n_chunks = max(1, min(n_chunks, n_experiments))

    chunks = np.array_split(np.arange(n_experiments), n_chunks)
    return reduce(operator.add, (count_embeddings(embeddings, cols) for cols in chunks))


@dataclass(frozen=True, eq=False)
class ProbabilityTables:
    """Normalized, read-only marginal and joint probability tables."""
    p_xp: np.ndarray
    p_yp: np.ndarray
    p_yf: np.ndarray
    p_ypf: np.ndarray
    p_xyp: np.ndarray
    p_xypf: np.ndarray
    n_samples: int

    @classmethod
    def from_counts(cls, counts: FrequencyCounts) -> 'ProbabilityTables':
        """Divide every bin by the number of valid pooled samples."""
        if counts.total == 0:
            raise ValueError("No valid samples to normalize")

        total = float(counts.total)
        return cls(
            p_xp=_readonly(counts.xp / total),
            p_yp=_readonly(counts.yp / total),
            p_yf=_readonly(counts.yf / total),
            p_ypf=_readonly(counts.ypf / total),
            p_xyp=_readonly(counts.xyp / total),
            p_xypf=_readonly(counts.xypf / total),
            n_samples=counts.total,
        )

    def items(self):
        """(name, table) pairs in a stable order."""
        return [
            ('p_xp', self.p_xp),
            ('p_yp', self.p_yp),
            ('p_yf', self.p_yf),
            ('p_ypf', self.p_ypf),
            ('p_xyp', self.p_xyp),
            ('p_xypf', self.p_xypf),
        ]


def estimate_probabilities(
    embeddings: EmbeddingSet,
    n_chunks: int = 1,
) -> ProbabilityTables:
    """Pooled frequency counting followed by normalization."""
    return ProbabilityTables.from_counts(accumulate_counts(embeddings, n_chunks))
