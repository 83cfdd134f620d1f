"""
Surrogate Confidence Margins

Runs the forward pipeline on max_runs surrogate pairs with no causal
structure and keeps, per measure, the largest value observed. A measure on
real data is read as evidence of coupling only when it exceeds its margin.

Surrogates:
    random   fresh uniform values on [0, 1) with the input's shape
    shuffle  each column of cause and effect independently permuted in time

The max-over-runs margin is a heuristic upper bound for finite-sample and
floating-point noise, not a significance test.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from joblib import Parallel, delayed

from mtcami.config.analysis import SURROGATE_METHODS, AnalysisConfig

from .engine import apply_delay, direction_tables
from .measures import MeasureResult, forward_measures, resolve_units
from .symbols import symbolize
from .validation import check_embedding_fits, validate_inputs
from .windowed import window_starts

logger = logging.getLogger(__name__)

MARGIN_MEASURES = ('cami', 'mutual_info', 'transfer_entropy')


@dataclass(frozen=True, eq=False)
class ConfidenceMargins:
    """Per-measure maxima over surrogate runs, plus every run's values."""
    cami: float
    mutual_info: float
    transfer_entropy: float
    samples: Dict[str, np.ndarray]
    runs: int
    method: str
    seed: Optional[int]
    units: str
    shape: Tuple[int, int] = (0, 0)

    def as_dict(self) -> Dict[str, float]:
        return {
            'cami': self.cami,
            'mutual_info': self.mutual_info,
            'transfer_entropy': self.transfer_entropy,
        }

    def exceeded_by(self, result: MeasureResult) -> Dict[str, bool]:
        """Which forward measures of a real result lie above their margin."""
        if result.units != self.units:
            raise ValueError(
                f"Units differ: result in {result.units}, margins in {self.units}"
            )
        return {
            'cami_xy': result.cami_xy > self.cami,
            'mutual_info': result.mutual_info > self.mutual_info,
            'te_xy': result.te_xy > self.transfer_entropy,
        }

    def __repr__(self):
        return (f"ConfidenceMargins(cami={self.cami:.6g}, mi={self.mutual_info:.6g}, "
                f"te={self.transfer_entropy:.6g}, runs={self.runs}, {self.method}, "
                f"shape={self.shape})")


def make_surrogate(
    cause: np.ndarray,
    effect: np.ndarray,
    method: str,
    rng: np.random.Generator,
):
    """One surrogate pair with the same shape as the input."""
    if method == 'random':
        return rng.random(cause.shape), rng.random(effect.shape)
    if method == 'shuffle':
        return rng.permuted(cause, axis=0), rng.permuted(effect, axis=0)
    raise ValueError(f"Unknown surrogate method {method!r}. Available: {SURROGATE_METHODS}")


class ConfidenceEstimator:
    """
    Empirical confidence margins from surrogate data.

    Per-run generators are spawned from a single SeedSequence, so the same
    seed reproduces the same margins regardless of n_jobs.
    """

    def __init__(
        self,
        config: AnalysisConfig,
        max_runs: Optional[int] = None,
        method: Optional[str] = None,
        seed: Optional[int] = None,
        n_jobs: Optional[int] = None,
    ):
        self.config = config.validate()
        self.max_runs = config.confidence.max_runs if max_runs is None else max_runs
        self.method = config.confidence.method if method is None else method
        self.seed = config.confidence.seed if seed is None else seed
        self.n_jobs = config.n_jobs if n_jobs is None else n_jobs
        self.units = resolve_units(config.units)

        if self.max_runs < 1:
            raise ValueError(f"max_runs must be >= 1, got {self.max_runs}")
        if self.method not in SURROGATE_METHODS:
            raise ValueError(
                f"Unknown surrogate method {self.method!r}. Available: {SURROGATE_METHODS}"
            )

    def run_once(
        self,
        cause: np.ndarray,
        effect: np.ndarray,
        seed_sequence: np.random.SeedSequence,
    ) -> Dict[str, float]:
        """Forward CaMI, MI and TE on one surrogate pair."""
        rng = np.random.default_rng(seed_sequence)
        x, y = make_surrogate(cause, effect, self.method, rng)

        config = self.config
        _, tables = direction_tables(
            symbolize(x, config.cause_partition),
            symbolize(y, config.effect_partition),
            config.past_length,
            config.future_length,
            config.tau,
            config.n_symbols,
        )
        return forward_measures(tables, self.units)

    def estimate(self, cause, effect) -> ConfidenceMargins:
        """
        Confidence margins for data shaped like (cause, effect).

        The input is validated and delay-aligned exactly like a real
        analysis, so surrogates match the analyzed shape. With a
        window_length configured, every local analysis sees W + 1 rows, so
        the surrogates are built from the first window only.
        """
        cause, effect = validate_inputs(
            cause, effect, self.config.cause_breakpoints, self.config.effect_breakpoints
        )
        cause, effect = apply_delay(cause, effect, self.config.delay)

        window_length = self.config.window_length
        if window_length is not None:
            window_starts(cause.shape[0], window_length)
            cause, effect = cause[:window_length + 1], effect[:window_length + 1]

        check_embedding_fits(
            cause.shape[0], self.config.past_length, self.config.future_length, self.config.tau
        )

        children = np.random.SeedSequence(self.seed).spawn(self.max_runs)
        logger.info(
            f"Confidence margins: {self.max_runs} {self.method} surrogates "
            f"of shape {cause.shape}"
        )

        if self.n_jobs != 1:
            runs = Parallel(n_jobs=self.n_jobs)(
                delayed(self.run_once)(cause, effect, child) for child in children
            )
        else:
            runs = [self.run_once(cause, effect, child) for child in children]

        samples = {
            name: np.array([run[name] for run in runs], dtype=float)
            for name in MARGIN_MEASURES
        }

        margins = ConfidenceMargins(
            cami=float(samples['cami'].max()),
            mutual_info=float(samples['mutual_info'].max()),
            transfer_entropy=float(samples['transfer_entropy'].max()),
            samples=samples,
            runs=self.max_runs,
            method=self.method,
            seed=self.seed,
            units=self.units,
            shape=tuple(cause.shape),
        )
        logger.info(f"  {margins}")
        return margins


def confidence_margins(
    cause,
    effect,
    config: AnalysisConfig,
    max_runs: int = 10,
    method: str = 'random',
    seed: Optional[int] = None,
) -> ConfidenceMargins:
    """Convenience wrapper around ConfidenceEstimator."""
    estimator = ConfidenceEstimator(config, max_runs=max_runs, method=method, seed=seed)
    return estimator.estimate(cause, effect)
