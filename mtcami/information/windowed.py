"""
Sliding-Window (Local) Measures

Recomputes the full pipeline on every block of W + 1 consecutive samples,
shared across all experiment columns. Window starts cover the half-open
range [0, n_samples - W), one sample apart, giving n_samples - W results.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

import numpy as np
from joblib import Parallel, delayed

from .measures import MeasureResult
from .validation import DegenerateWindowError, check_embedding_fits

logger = logging.getLogger(__name__)

MEASURES = ('cami_xy', 'cami_yx', 'mutual_info', 'diridx', 'te_xy', 'te_yx')


@dataclass(frozen=True, eq=False)
class WindowedResult:
    """One MeasureResult per window start, ordered by start."""
    starts: np.ndarray
    window_length: int
    results: List[MeasureResult]

    def __len__(self) -> int:
        return len(self.results)

    @property
    def units(self) -> str:
        return self.results[0].units if self.results else 'bits'

    def series(self, name: str) -> np.ndarray:
        """Time-indexed values of one scalar measure."""
        if name not in MEASURES:
            raise KeyError(f"Unknown measure {name!r}. Available: {', '.join(MEASURES)}")
        return np.array([getattr(r, name) for r in self.results], dtype=float)

    def as_dict(self) -> Dict[str, np.ndarray]:
        out = {'window_start': self.starts}
        for name in MEASURES:
            out[name] = self.series(name)
        return out


def window_starts(n_samples: int, window_length: int) -> range:
    """
    Start indices of every window of window_length + 1 samples.

    Raises
    ------
    DegenerateWindowError
        If window_length < 1 or no full window fits
    """
    if window_length < 1:
        raise DegenerateWindowError(f"window_length must be >= 1, got {window_length}")
    if window_length >= n_samples:
        raise DegenerateWindowError(
            f"window_length {window_length} needs at least {window_length + 1} samples, "
            f"series has {n_samples}"
        )
    return range(0, n_samples - window_length)


class WindowAnalyzer:
    """
    Local (in time) CaMI measures over a sliding rectangular window.

    Each window is independent; with n_jobs > 1 windows are dispatched
    through joblib and reassembled in start order.
    """

    def __init__(self, engine, window_length: int, n_jobs: int = 1, keep_trace: bool = False):
        self.engine = engine
        self.window_length = window_length
        self.n_jobs = n_jobs
        self.keep_trace = keep_trace

    def compute_for_window(
        self,
        cause: np.ndarray,
        effect: np.ndarray,
        window_start: int,
    ) -> MeasureResult:
        """Measures on rows [window_start, window_start + W]."""
        stop = window_start + self.window_length + 1
        return self.engine.analyze(
            cause[window_start:stop],
            effect[window_start:stop],
            keep_trace=self.keep_trace,
        )

    def run(self, cause: np.ndarray, effect: np.ndarray) -> WindowedResult:
        """
        Measures for every window position of a prepared pair.

        Parameters
        ----------
        cause, effect : array, shape (time, experiment)
            Already validated and delay-aligned

        Returns
        -------
        windowed : WindowedResult
        """
        starts = window_starts(cause.shape[0], self.window_length)
        config = self.engine.config
        check_embedding_fits(
            self.window_length + 1, config.past_length, config.future_length, config.tau
        )

        logger.info(
            f"Computing {len(starts)} windows of {self.window_length + 1} samples "
            f"{'(PARALLEL)' if self.n_jobs != 1 else '(SEQUENTIAL)'}"
        )

        if self.n_jobs != 1:
            results = Parallel(n_jobs=self.n_jobs)(
                delayed(self.compute_for_window)(cause, effect, start)
                for start in starts
            )
        else:
            results = [self.compute_for_window(cause, effect, start) for start in starts]

        logger.info(f"  windowed measures: {len(results)} windows")

        return WindowedResult(
            starts=np.arange(starts.start, starts.stop),
            window_length=self.window_length,
            results=list(results),
        )
