"""
Input Validation
================

Every check here runs before any symbol is assigned. A failure aborts the
whole analysis; there is no partial recovery.

Usage:
    from mtcami.information.validation import validate_inputs, ShapeMismatchError

    cause, effect = validate_inputs(cause, effect, cause_partition, effect_partition)
"""

from typing import Tuple

import numpy as np


class ValidationError(ValueError):
    """Base class for input validation failures."""
    pass


class ShapeMismatchError(ValidationError):
    """Raised when cause and effect series differ in row or column count."""
    pass


class PartitionMismatchError(ValidationError):
    """Raised when cause and effect partitions have different breakpoint counts."""
    pass


class InvalidPartitionError(ValidationError):
    """Raised when breakpoints are empty, non-finite or not strictly increasing."""
    pass


class DegenerateWindowError(ValidationError):
    """Raised when no time anchor can host a full embedding window."""
    pass


def as_series_matrix(values) -> np.ndarray:
    """
    Coerce input to a 2-D float matrix (rows = time, columns = experiment).

    A 1-D input is treated as a single experiment.
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ShapeMismatchError(
            f"Time series must be 1-D or 2-D (time x experiment), got {arr.ndim}-D"
        )
    return arr


def check_breakpoints(breakpoints, label: str = 'partition') -> Tuple[float, ...]:
    """Return breakpoints as a tuple after checking they are strictly increasing."""
    bps = np.asarray(breakpoints, dtype=float).ravel()

    if bps.size == 0:
        raise InvalidPartitionError(f"{label}: at least one breakpoint is required")
    if not np.all(np.isfinite(bps)):
        raise InvalidPartitionError(f"{label}: breakpoints must be finite, got {bps.tolist()}")
    if bps.size > 1 and not np.all(np.diff(bps) > 0):
        raise InvalidPartitionError(
            f"{label}: breakpoints must be strictly increasing, got {bps.tolist()}"
        )

    return tuple(float(b) for b in bps)


def check_same_shape(cause: np.ndarray, effect: np.ndarray) -> None:
    if cause.shape != effect.shape:
        raise ShapeMismatchError(
            f"cause and effect must be of same size: {cause.shape} != {effect.shape}"
        )


def check_partition_counts(cause_breakpoints, effect_breakpoints) -> None:
    if len(cause_breakpoints) != len(effect_breakpoints):
        raise PartitionMismatchError(
            f"cause and effect partitions must have the same number of breakpoints: "
            f"{len(cause_breakpoints)} != {len(effect_breakpoints)}"
        )


def check_embedding_fits(
    n_samples: int,
    past_length: int,
    future_length: int,
    tau: int,
) -> None:
    """
    Check that at least one anchor can host a full past and future window.

    Valid anchors form [tau*lx, n_samples - tau*lf), so the window is
    degenerate whenever tau*(lx + lf) >= n_samples.
    """
    span = tau * (past_length + future_length)
    if span >= n_samples:
        raise DegenerateWindowError(
            f"Embedding span tau*ly = {tau}*{past_length + future_length} = {span} "
            f"needs more than {n_samples} time samples"
        )


def validate_inputs(
    cause,
    effect,
    cause_breakpoints,
    effect_breakpoints,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate a cause/effect pair and its partitions.

    Returns the series coerced to 2-D float matrices.

    Raises
    ------
    ShapeMismatchError, PartitionMismatchError, InvalidPartitionError
    """
    cause = as_series_matrix(cause)
    effect = as_series_matrix(effect)

    check_same_shape(cause, effect)
    check_partition_counts(cause_breakpoints, effect_breakpoints)
    check_breakpoints(cause_breakpoints, 'cause partition')
    check_breakpoints(effect_breakpoints, 'effect partition')

    return cause, effect
