"""
Causal Mutual Information Measures

From the probability tables of both directions:

    MI        = sum p_xyp  log( p_xyp  / (p_xp p_yp)  )
    CaMI(X->Y) = sum p_xypf log( p_xypf / (p_xp p_ypf) )
    TE(X->Y)   = CaMI(X->Y) - MI
    DI         = CaMI(X->Y) - CaMI(Y->X)

A bin contributes only when both the joint probability and the product of
marginals exceed PROBABILITY_FLOOR; otherwise its term is exactly zero.
Logs are natural; bits are obtained by dividing by ln(2) at the end.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from .embedding import EmbeddingSet
from .probability import ProbabilityTables

logger = logging.getLogger(__name__)

PROBABILITY_FLOOR = 1e-14

UNITS = ('bits', 'nats')


def resolve_units(units: Optional[str]) -> str:
    """
    Return 'nats' or 'bits'.

    Matching is exact: 'NATS', ' nats' or any other string falls back to bits.
    """
    if units in UNITS:
        return units
    logger.warning(f"Unrecognized units {units!r}, using 'bits'")
    return 'bits'


def unit_scale(units: str) -> float:
    """Divisor applied to natural-log quantities."""
    return 1.0 if resolve_units(units) == 'nats' else float(np.log(2.0))


def gated_terms(joint: np.ndarray, product: np.ndarray) -> np.ndarray:
    """
    Per-bin terms joint * log(joint / product), zero below the floor.

    Parameters
    ----------
    joint : array
        Joint probabilities
    product : array
        Product of marginals, broadcastable to joint

    Returns
    -------
    terms : array
        Same shape as joint, in nats
    """
    joint, product = np.broadcast_arrays(
        np.asarray(joint, dtype=float), np.asarray(product, dtype=float)
    )
    keep = (product > PROBABILITY_FLOOR) & (joint > PROBABILITY_FLOOR)

    ratio = np.ones_like(joint)
    np.divide(joint, product, out=ratio, where=keep)

    terms = np.zeros_like(joint)
    np.multiply(joint, np.log(ratio), out=terms, where=keep)
    return terms


def pointwise_mutual_information(tables: ProbabilityTables) -> np.ndarray:
    """Per-bin MI terms, shape (ns^lx, ns^lx), in nats."""
    return gated_terms(tables.p_xyp, np.outer(tables.p_xp, tables.p_yp))


def pointwise_cami(tables: ProbabilityTables) -> np.ndarray:
    """Per-bin CaMI terms, shape (ns^lx, ns^lx, ns^lf), in nats."""
    product = tables.p_xp[:, np.newaxis, np.newaxis] * tables.p_ypf[np.newaxis, :, :]
    return gated_terms(tables.p_xypf, product)


@dataclass(frozen=True, eq=False)
class PointwiseMeasures:
    """Per-bin contributions, aligned with the joint tables they come from."""
    pmi: np.ndarray
    pcami_xy: np.ndarray
    pcami_yx: np.ndarray
    pdiridx: np.ndarray
    pte_xy: np.ndarray
    pte_yx: np.ndarray

    def as_dict(self) -> Dict[str, np.ndarray]:
        return {
            'pmi': self.pmi,
            'pcami_xy': self.pcami_xy,
            'pcami_yx': self.pcami_yx,
            'pdiridx': self.pdiridx,
            'pte_xy': self.pte_xy,
            'pte_yx': self.pte_yx,
        }


@dataclass(frozen=True, eq=False)
class MeasureResult:
    """Scalar measures, pointwise bundle and (optionally) the full trace."""
    cami_xy: float
    cami_yx: float
    mutual_info: float
    diridx: float
    te_xy: float
    te_yx: float
    units: str
    pointwise: PointwiseMeasures
    trace: Optional['AnalysisTrace'] = None

    def scalars(self) -> Dict[str, float]:
        return {
            'cami_xy': self.cami_xy,
            'cami_yx': self.cami_yx,
            'mutual_info': self.mutual_info,
            'diridx': self.diridx,
            'te_xy': self.te_xy,
            'te_yx': self.te_yx,
        }

    def __repr__(self):
        values = ', '.join(f"{k}={v:.6g}" for k, v in self.scalars().items())
        return f"MeasureResult({values}, units={self.units})"


@dataclass(frozen=True, eq=False)
class AnalysisTrace:
    """Intermediate streams and tables kept for export."""
    cause: np.ndarray
    effect: np.ndarray
    cause_symbols: np.ndarray
    effect_symbols: np.ndarray
    forward_embeddings: EmbeddingSet
    reverse_embeddings: EmbeddingSet
    forward_tables: ProbabilityTables
    reverse_tables: ProbabilityTables


def forward_measures(tables: ProbabilityTables, units: str = 'bits') -> Dict[str, float]:
    """
    CaMI, MI and TE for a single direction.

    Used by the surrogate runs, which only need the driver -> driven side.
    """
    scale = unit_scale(units)
    mutual_info = float(pointwise_mutual_information(tables).sum()) / scale
    cami = float(pointwise_cami(tables).sum()) / scale
    return {
        'cami': cami,
        'mutual_info': mutual_info,
        'transfer_entropy': cami - mutual_info,
    }


def compute_measures(
    forward: ProbabilityTables,
    reverse: ProbabilityTables,
    units: str = 'bits',
    trace: Optional[AnalysisTrace] = None,
) -> MeasureResult:
    """
    Derive all scalar and pointwise measures from both directions' tables.

    Parameters
    ----------
    forward : ProbabilityTables
        Tables with cause as driver (X past, Y past, Y future)
    reverse : ProbabilityTables
        Tables with effect as driver (Y past, X past, X future)
    units : str
        'bits' or 'nats'
    trace : AnalysisTrace, optional
        Attached unchanged to the result

    Returns
    -------
    result : MeasureResult
    """
    units = resolve_units(units)
    scale = unit_scale(units)

    pmi = pointwise_mutual_information(forward) / scale
    pcami_xy = pointwise_cami(forward) / scale
    pcami_yx = pointwise_cami(reverse) / scale

    mutual_info = float(pmi.sum())
    cami_xy = float(pcami_xy.sum())
    cami_yx = float(pcami_yx.sum())

    # reverse tables are indexed (Y past, X past, X future)
    pointwise = PointwiseMeasures(
        pmi=pmi,
        pcami_xy=pcami_xy,
        pcami_yx=pcami_yx,
        pdiridx=pcami_xy - pcami_yx,
        pte_xy=pcami_xy - pmi[:, :, np.newaxis],
        pte_yx=pcami_yx - pmi.T[:, :, np.newaxis],
    )

    logger.debug(
        f"Measures from {forward.n_samples} pooled samples: "
        f"MI={mutual_info:.6g}, CaMI_xy={cami_xy:.6g}, CaMI_yx={cami_yx:.6g} {units}"
    )

    return MeasureResult(
        cami_xy=cami_xy,
        cami_yx=cami_yx,
        mutual_info=mutual_info,
        diridx=cami_xy - cami_yx,
        te_xy=cami_xy - mutual_info,
        te_yx=cami_yx - mutual_info,
        units=units,
        pointwise=pointwise,
        trace=trace,
    )
