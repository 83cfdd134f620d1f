"""
Symbolic Embedding

Encodes L tau-spaced symbols as a single base-ns integer (phi), earliest
time step as the most significant digit:

    past   at anchor n:  S[n - tau*L], ..., S[n - tau]
    future at anchor n:  S[n], S[n + tau], ..., S[n + tau*(L-1)]

Valid anchors form the half-open range [tau*lx, T - tau*lf). Rows outside it
are marked undefined and never reach the frequency counts.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .validation import DegenerateWindowError


@dataclass(frozen=True, eq=False)
class Embedding:
    """
    Embedding indices with an explicit defined/undefined mask.

    index and defined have shape (time, experiment). Undefined rows hold 0
    in index; only valid() values are ever counted.
    """
    index: np.ndarray
    defined: np.ndarray
    length: int
    n_symbols: int

    @property
    def n_states(self) -> int:
        return self.n_symbols ** self.length

    def valid(self, columns=None) -> np.ndarray:
        """Defined indices pooled over experiments (column-major order)."""
        index, defined = self.index, self.defined
        if columns is not None:
            index, defined = index[:, columns], defined[:, columns]
        return index.T[defined.T]

    def masked(self) -> np.ndarray:
        """Float copy with NaN at undefined rows."""
        out = self.index.astype(float)
        out[~self.defined] = np.nan
        return out


@dataclass(frozen=True, eq=False)
class EmbeddingSet:
    """The three streams for one direction of analysis."""
    past_driver: Embedding
    past_driven: Embedding
    future_driven: Embedding
    anchors: range

    @property
    def n_experiments(self) -> int:
        return self.past_driver.index.shape[1]


def anchor_range(
    n_samples: int,
    past_length: int,
    future_length: int,
    tau: int = 1,
) -> range:
    """
    Anchors able to host a full past and future window.

    Raises
    ------
    DegenerateWindowError
        If no anchor fits (tau*(lx + lf) >= n_samples)
    """
    anchors = range(tau * past_length, n_samples - tau * future_length)
    if len(anchors) == 0:
        raise DegenerateWindowError(
            f"No valid embedding anchor: tau={tau}, lx={past_length}, "
            f"lf={future_length}, n_samples={n_samples}"
        )
    return anchors


def encode_symbols(sequence: Sequence[int], n_symbols: int) -> int:
    """Encode a symbol sequence as a base-ns integer, first symbol most significant."""
    index = 0
    for s in sequence:
        index = index * n_symbols + int(s)
    return index


def decode_index(index: int, length: int, n_symbols: int) -> list:
    """Inverse of encode_symbols via repeated base-ns division."""
    digits = []
    for _ in range(length):
        index, digit = divmod(int(index), n_symbols)
        digits.append(digit)
    return digits[::-1]


def _encode_offsets(
    symbols: np.ndarray,
    offsets: Sequence[int],
    anchors: range,
    n_symbols: int,
    length: int,
) -> Embedding:
    n_samples = symbols.shape[0]
    index = np.zeros(symbols.shape, dtype=np.int64)
    defined = np.zeros(symbols.shape, dtype=bool)

    rows = np.arange(anchors.start, anchors.stop)
    if rows.size and (rows[0] + min(offsets) < 0 or rows[-1] + max(offsets) >= n_samples):
        raise DegenerateWindowError("Embedding offsets reach outside the series")

    acc = np.zeros((len(rows), symbols.shape[1]), dtype=np.int64)
    # offsets are ordered earliest first; Horner accumulation makes it most significant
    for offset in offsets:
        acc = acc * n_symbols + symbols[rows + offset]

    index[rows] = acc
    defined[rows] = True

    return Embedding(index=index, defined=defined, length=length, n_symbols=n_symbols)


def past_embedding(
    symbols: np.ndarray,
    length: int,
    tau: int,
    n_symbols: int,
    anchors: range,
) -> Embedding:
    """Encode S[n - tau*L], ..., S[n - tau] at every anchor n."""
    offsets = [-tau * m for m in range(length, 0, -1)]
    return _encode_offsets(np.asarray(symbols), offsets, anchors, n_symbols, length)


def future_embedding(
    symbols: np.ndarray,
    length: int,
    tau: int,
    n_symbols: int,
    anchors: range,
) -> Embedding:
    """Encode S[n], S[n + tau], ..., S[n + tau*(L-1)] at every anchor n."""
    offsets = [tau * m for m in range(length)]
    return _encode_offsets(np.asarray(symbols), offsets, anchors, n_symbols, length)


def build_embeddings(
    driver_symbols: np.ndarray,
    driven_symbols: np.ndarray,
    past_length: int,
    future_length: int,
    tau: int,
    n_symbols: int,
) -> EmbeddingSet:
    """
    Build past-of-driver, past-of-driven and future-of-driven embeddings.

    Called once with cause as driver and once with effect as driver; the
    construction is direction-specific.
    """
    anchors = anchor_range(driver_symbols.shape[0], past_length, future_length, tau)

    return EmbeddingSet(
        past_driver=past_embedding(driver_symbols, past_length, tau, n_symbols, anchors),
        past_driven=past_embedding(driven_symbols, past_length, tau, n_symbols, anchors),
        future_driven=future_embedding(driven_symbols, future_length, tau, n_symbols, anchors),
        anchors=anchors,
    )
