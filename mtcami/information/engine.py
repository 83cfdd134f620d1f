"""
MTCAMI Causal Information Engine

Main orchestration for multithread CaMI: validates a cause/effect pair,
aligns it for an optional delay, and runs

    samples -> symbols -> embeddings -> probability tables -> measures

once with cause as driver and once with effect as driver.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from mtcami.config.analysis import AnalysisConfig

from .embedding import EmbeddingSet, build_embeddings
from .measures import AnalysisTrace, MeasureResult, compute_measures, resolve_units
from .probability import ProbabilityTables, estimate_probabilities
from .symbols import Partition, symbolize
from .validation import DegenerateWindowError, check_embedding_fits, validate_inputs

logger = logging.getLogger(__name__)


def apply_delay(
    cause: np.ndarray,
    effect: np.ndarray,
    delay: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Align effect `delay` samples after cause, trimming both to the overlap.

    delay > 0 pairs cause[t] with effect[t + delay]; delay < 0 pairs
    cause[t + |delay|] with effect[t] (anticipated response).
    """
    if delay == 0:
        return cause, effect

    n_samples = cause.shape[0]
    if abs(delay) >= n_samples:
        raise DegenerateWindowError(
            f"Delay {delay} leaves no overlap in a series of {n_samples} samples"
        )

    if delay > 0:
        return cause[:n_samples - delay], effect[delay:]
    return cause[-delay:], effect[:n_samples + delay]


def direction_tables(
    driver_symbols: np.ndarray,
    driven_symbols: np.ndarray,
    past_length: int,
    future_length: int,
    tau: int,
    n_symbols: int,
) -> Tuple[EmbeddingSet, ProbabilityTables]:
    """Embeddings and probability tables with `driver` playing the cause."""
    embeddings = build_embeddings(
        driver_symbols, driven_symbols, past_length, future_length, tau, n_symbols
    )
    tables = estimate_probabilities(embeddings)
    logger.debug(
        f"Tables {tables.p_xypf.shape} from {tables.n_samples} pooled samples "
        f"({embeddings.n_experiments} experiments x {len(embeddings.anchors)} anchors)"
    )
    return embeddings, tables


def analyze_pair(
    cause: np.ndarray,
    effect: np.ndarray,
    cause_partition: Partition,
    effect_partition: Partition,
    past_length: int,
    future_length: int,
    tau: int = 1,
    units: str = 'bits',
    keep_trace: bool = True,
) -> MeasureResult:
    """
    Run the full pipeline on an already validated and aligned pair.

    Parameters
    ----------
    cause, effect : array, shape (time, experiment)
    cause_partition, effect_partition : Partition
        Must share n_symbols
    past_length : int
        lx
    future_length : int
        ly - lx
    tau : int
        Delay between embedded symbols
    units : str
        'bits' or 'nats'
    keep_trace : bool
        Attach symbols, embeddings and tables to the result

    Returns
    -------
    result : MeasureResult
    """
    check_embedding_fits(cause.shape[0], past_length, future_length, tau)
    n_symbols = cause_partition.n_symbols

    cause_symbols = symbolize(cause, cause_partition)
    effect_symbols = symbolize(effect, effect_partition)

    forward_embeddings, forward = direction_tables(
        cause_symbols, effect_symbols, past_length, future_length, tau, n_symbols
    )
    reverse_embeddings, reverse = direction_tables(
        effect_symbols, cause_symbols, past_length, future_length, tau, n_symbols
    )

    trace = None
    if keep_trace:
        trace = AnalysisTrace(
            cause=cause,
            effect=effect,
            cause_symbols=cause_symbols,
            effect_symbols=effect_symbols,
            forward_embeddings=forward_embeddings,
            reverse_embeddings=reverse_embeddings,
            forward_tables=forward,
            reverse_tables=reverse,
        )

    return compute_measures(forward, reverse, units=units, trace=trace)


class CaMIEngine:
    """
    Compute CaMI, MI, TE and directionality for many parallel experiments.

    Usage:
        engine = CaMIEngine(config)
        result = engine.run(cause, effect)
    """

    def __init__(self, config: AnalysisConfig):
        self.config = config.validate()
        self.units = resolve_units(config.units)
        self.cause_partition = config.cause_partition
        self.effect_partition = config.effect_partition

    def prepare(self, cause, effect) -> Tuple[np.ndarray, np.ndarray]:
        """Validate inputs and apply the configured delay."""
        cause, effect = validate_inputs(
            cause,
            effect,
            self.config.cause_breakpoints,
            self.config.effect_breakpoints,
        )
        return apply_delay(cause, effect, self.config.delay)

    def analyze(
        self,
        cause: np.ndarray,
        effect: np.ndarray,
        keep_trace: bool = True,
    ) -> MeasureResult:
        """Pipeline on a prepared pair (no validation, no delay)."""
        return analyze_pair(
            cause,
            effect,
            self.cause_partition,
            self.effect_partition,
            self.config.past_length,
            self.config.future_length,
            tau=self.config.tau,
            units=self.units,
            keep_trace=keep_trace,
        )

    def compute_global(self, cause, effect) -> MeasureResult:
        """Measures over the whole series."""
        cause, effect = self.prepare(cause, effect)
        logger.info(
            f"Calculating {self.config} on {cause.shape[0]} samples x "
            f"{cause.shape[1]} experiments"
        )
        result = self.analyze(cause, effect, keep_trace=True)
        logger.info(f"done: {result}")
        return result

    def compute_local(self, cause, effect):
        """Measures over a sliding window of config.window_length samples."""
        from .windowed import WindowAnalyzer

        if self.config.window_length is None:
            raise ValueError("compute_local requires config.window_length")

        cause, effect = self.prepare(cause, effect)
        analyzer = WindowAnalyzer(self, self.config.window_length, n_jobs=self.config.n_jobs)
        return analyzer.run(cause, effect)

    def run(self, cause, effect):
        """Global or local analysis depending on config.window_length."""
        if self.config.is_local:
            return self.compute_local(cause, effect)
        return self.compute_global(cause, effect)


def multithread_cami(
    cause,
    effect,
    past_length: int,
    future_length: int,
    cause_breakpoints,
    effect_breakpoints,
    tau: int = 1,
    units: str = 'bits',
    delay: int = 0,
    window_length: Optional[int] = None,
    n_jobs: int = 1,
):
    """
    Causal Mutual Information for many short parallel experiments.

    Parameters
    ----------
    cause, effect : array, shape (time, experiment)
        Column k of cause and column k of effect come from experiment k
    past_length : int
        Length of the past symbolic sequence (lx)
    future_length : int
        Length of the future symbolic sequence (ly - lx)
    cause_breakpoints, effect_breakpoints : float or sequence of float
        Partition division lines; must have the same count
    tau : int
        Time delay between embedded symbols
    units : str
        'bits' (log base 2) or 'nats' (natural log); typos fall back to bits
    delay : int
        Response delay of effect relative to cause (may be negative)
    window_length : int, optional
        Sliding window length for local (in time) measures
    n_jobs : int
        Parallel workers for local measures

    Returns
    -------
    result : MeasureResult or WindowedResult

    Examples
    --------
    >>> result = multithread_cami(x, y, 2, 1, 0.5, 0.5, tau=1, units='nats')
    >>> result.cami_xy, result.diridx
    """
    config = AnalysisConfig(
        past_length=past_length,
        future_length=future_length,
        cause_breakpoints=cause_breakpoints,
        effect_breakpoints=effect_breakpoints,
        tau=tau,
        units=units,
        delay=delay,
        window_length=window_length,
        n_jobs=n_jobs,
    )
    return CaMIEngine(config).run(cause, effect)
