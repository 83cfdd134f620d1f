"""MTCAMI input/output: matrix reading, Parquet export and text reports."""

from mtcami.db.polars_io import read_matrix, write_parquet_atomic
from mtcami.db.export import (
    measures_frame,
    windowed_frame,
    trace_frame,
    probability_frame,
    format_report,
    save_results,
)

__all__ = [
    'read_matrix',
    'write_parquet_atomic',
    'measures_frame',
    'windowed_frame',
    'trace_frame',
    'probability_frame',
    'format_report',
    'save_results',
]
