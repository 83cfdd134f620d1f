"""
MTCAMI Polars I/O Utilities

Matrix input and atomic Parquet output.

Key Functions:
    read_matrix(path) - Load a (time x experiment) matrix from csv/parquet/npy
    write_parquet_atomic(df, path) - Write to temp file, rename (atomic)
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import polars as pl

logger = logging.getLogger(__name__)

MATRIX_SUFFIXES = ('.csv', '.txt', '.parquet', '.npy')


def read_matrix(path: Union[str, Path]) -> np.ndarray:
    """
    Read a time-series matrix: rows are time, columns are experiments.

    Supported formats:
        .csv / .txt   comma-separated, no header
        .parquet      one column per experiment
        .npy          numpy array (1-D or 2-D)

    Args:
        path: Path to matrix file

    Returns:
        2-D float array

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If the suffix is not supported
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Matrix file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in ('.csv', '.txt'):
        df = pl.read_csv(path, has_header=False)
        matrix = df.to_numpy().astype(float)
    elif suffix == '.parquet':
        matrix = pl.read_parquet(path).to_numpy().astype(float)
    elif suffix == '.npy':
        matrix = np.load(path).astype(float)
    else:
        raise ValueError(
            f"Unsupported matrix format '{suffix}'. Use one of: {', '.join(MATRIX_SUFFIXES)}"
        )

    if matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)

    logger.debug(f"Read {path.name}: {matrix.shape[0]} samples x {matrix.shape[1]} experiments")
    return matrix


def write_parquet_atomic(
    df: pl.DataFrame,
    path: Union[str, Path],
    compression: str = "zstd",
) -> int:
    """
    Write a result frame next to its target, then move it into place.

    A reader never sees a half-written measures or trace file; an existing
    file from an earlier run is replaced in one step.

    Returns:
        Number of rows written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = path.with_name(path.name + ".partial")

    try:
        df.write_parquet(partial, compression=compression)
        partial.replace(path)
    except Exception:
        partial.unlink(missing_ok=True)
        raise

    logger.debug(f"Wrote {len(df)} rows to {path}")
    return len(df)
