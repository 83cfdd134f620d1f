"""
MTCAMI Result Export

Turns computed measures into Polars frames, a text summary and files on
disk. Nothing here computes a measure; everything reads finished results.

Files written by save_results():
    measures.parquet                one row, six scalar measures
    timeseries.parquet              samples, symbols and phi streams per (time, experiment)
    probabilities_forward.parquet   populated bins, cause as driver
    probabilities_reverse.parquet   populated bins, effect as driver
    pointwise.npz                   pointwise arrays
    windowed_measures.parquet       (local mode) one row per window start
    output.txt                      text summary
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import polars as pl

from mtcami.config.analysis import AnalysisConfig
from mtcami.information.confidence import ConfidenceMargins
from mtcami.information.measures import MeasureResult
from mtcami.information.probability import ProbabilityTables
from mtcami.information.windowed import WindowedResult

from .polars_io import write_parquet_atomic

logger = logging.getLogger(__name__)

RULE = '-' * 35


# =============================================================================
# FRAMES
# =============================================================================

def measures_frame(result: MeasureResult) -> pl.DataFrame:
    """One-row frame with the six scalar measures."""
    row = {name: [value] for name, value in result.scalars().items()}
    row['units'] = [result.units]
    return pl.DataFrame(row)


def windowed_frame(windowed: WindowedResult) -> pl.DataFrame:
    """One row per window start."""
    data = windowed.as_dict()
    df = pl.DataFrame({name: np.asarray(values) for name, values in data.items()})
    return df.with_columns(
        pl.lit(windowed.window_length).alias('window_length'),
        pl.lit(windowed.units).alias('units'),
    )


def trace_frame(result: MeasureResult) -> pl.DataFrame:
    """
    Long-format samples, symbols and embedding streams.

    One row per (time, experiment). phi columns are null where the
    embedding is undefined.
    """
    trace = result.trace
    if trace is None:
        raise ValueError("Result has no trace; run the analysis with keep_trace=True")

    n_time, n_exp = trace.cause.shape

    def flat(arr):
        return np.asarray(arr).ravel(order='F')

    fwd, rev = trace.forward_embeddings, trace.reverse_embeddings
    phi_cols = {
        'phi_x': fwd.past_driver.index,
        'phi_yp': fwd.past_driven.index,
        'phi_yf': fwd.future_driven.index,
        'inv_phi_y': rev.past_driver.index,
        'inv_phi_xp': rev.past_driven.index,
        'inv_phi_xf': rev.future_driven.index,
    }

    df = pl.DataFrame({
        'time': np.tile(np.arange(n_time), n_exp),
        'experiment': np.repeat(np.arange(n_exp), n_time),
        'x': flat(trace.cause),
        'y': flat(trace.effect),
        'sx': flat(trace.cause_symbols),
        'sy': flat(trace.effect_symbols),
        'defined': flat(fwd.past_driver.defined),
        **{name: flat(values) for name, values in phi_cols.items()},
    })

    return df.with_columns([
        pl.when(pl.col('defined')).then(pl.col(name)).otherwise(None).alias(name)
        for name in phi_cols
    ])


def probability_frame(tables: ProbabilityTables) -> pl.DataFrame:
    """
    Populated bins of every table in long format.

    Columns: table, i, j, k, probability (unused axes are null).
    """
    frames = []
    for name, table in tables.items():
        idx = np.nonzero(table)
        data = {'table': [name] * len(idx[0])}
        for axis, label in zip(idx, ('i', 'j', 'k')):
            data[label] = axis.astype(np.int64)
        data['probability'] = table[idx]
        frames.append(pl.DataFrame(data))

    return pl.concat(frames, how='diagonal')


# =============================================================================
# TEXT REPORT
# =============================================================================

def format_report(
    result: Union[MeasureResult, WindowedResult],
    config: AnalysisConfig,
    margins: Optional[ConfidenceMargins] = None,
) -> str:
    """Human-readable summary of parameters, measures and margins."""
    lines = [
        'CaMI calculation (multithread)',
        RULE,
        'Selected parameters by the user:',
        f'- Number of symbols (ns): {config.n_symbols}',
        f'- Length of symbolic sequence in x (lx): {config.past_length}',
        f'- Length of symbolic sequence in y (ly): {config.total_length}',
        f'- Time delay (tau): {config.tau}',
        f'- Delay between x and y: {config.delay}',
        '- Position of partition delimiter lines:',
        '* in x: ' + '\t'.join(f'{b:.5g}' for b in config.cause_breakpoints),
        '* in y: ' + '\t'.join(f'{b:.5g}' for b in config.effect_breakpoints),
        RULE,
        'Output:',
    ]

    if isinstance(result, WindowedResult):
        lines.append(
            f'- Local measures over {len(result)} windows of {result.window_length + 1} samples'
        )
        for name in ('cami_xy', 'cami_yx', 'diridx', 'mutual_info', 'te_xy', 'te_yx'):
            values = result.series(name)
            if values.size:
                lines.append(
                    f'- {name}: mean {values.mean():.6g}, min {values.min():.6g}, '
                    f'max {values.max():.6g}'
                )
    else:
        lines.extend([
            f'- CaMI X->Y: {result.cami_xy:.6g}',
            f'- CaMI Y->X: {result.cami_yx:.6g}',
            f'- Directionality Index (CaMI_{{X->Y}} - CaMI_{{Y->X}}): {result.diridx:.6g}',
            f'- Mutual Information of X and Y: {result.mutual_info:.6g}',
            f'- Transfer Entropy X->Y: {result.te_xy:.6g}',
            f'- Transfer Entropy Y->X: {result.te_yx:.6g}',
        ])
    lines.append(f'- Units: {result.units}')

    if margins is not None:
        lines.extend([
            RULE,
            'Confidence margins:',
            f'- Number of runs of {margins.method} surrogates (for confidence levels): {margins.runs}',
            f'- Surrogate shape (samples x experiments): {margins.shape[0]} x {margins.shape[1]}',
            f'- CaMI: {margins.cami:.6g}',
            f'- Mutual Information: {margins.mutual_info:.6g}',
            f'- Transfer Entropy: {margins.transfer_entropy:.6g}',
        ])
        if isinstance(result, MeasureResult):
            exceeded = margins.exceeded_by(result)
            above = [name for name, flag in exceeded.items() if flag]
            lines.append(f"- Above margin: {', '.join(above) if above else 'none'}")

    lines.append(RULE)
    return '\n'.join(lines) + '\n'


# =============================================================================
# FILES
# =============================================================================

def save_results(
    result: Union[MeasureResult, WindowedResult],
    output_dir: Union[str, Path],
    config: AnalysisConfig,
    margins: Optional[ConfidenceMargins] = None,
) -> Dict[str, Path]:
    """
    Write results to output_dir.

    Returns:
        Mapping of artifact name to written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}

    if isinstance(result, WindowedResult):
        path = output_dir / 'windowed_measures.parquet'
        write_parquet_atomic(windowed_frame(result), path)
        written['windowed_measures'] = path
    else:
        path = output_dir / 'measures.parquet'
        write_parquet_atomic(measures_frame(result), path)
        written['measures'] = path

        path = output_dir / 'pointwise.npz'
        np.savez_compressed(path, **result.pointwise.as_dict())
        written['pointwise'] = path

        if result.trace is not None:
            path = output_dir / 'timeseries.parquet'
            write_parquet_atomic(trace_frame(result), path)
            written['timeseries'] = path

            for direction, tables in (
                ('forward', result.trace.forward_tables),
                ('reverse', result.trace.reverse_tables),
            ):
                path = output_dir / f'probabilities_{direction}.parquet'
                write_parquet_atomic(probability_frame(tables), path)
                written[f'probabilities_{direction}'] = path

    path = output_dir / 'output.txt'
    path.write_text(format_report(result, config, margins))
    written['report'] = path

    for name, path in written.items():
        logger.info(f"  {name}: {path}")

    return written
