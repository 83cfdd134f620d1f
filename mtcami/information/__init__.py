"""
MTCAMI Information Flow Engine

Symbolic information measures for many short parallel experiments:
- Causal Mutual Information (both directions)
- Mutual Information
- Transfer Entropy (both directions)
- Directionality Index
- Pointwise (per-bin) decomposition of each
- Sliding-window (local) measures
- Surrogate confidence margins

Captures WHO DRIVES WHOM when no single long trace is available.
"""

from .validation import (
    ValidationError,
    ShapeMismatchError,
    PartitionMismatchError,
    InvalidPartitionError,
    DegenerateWindowError,
    validate_inputs,
)
from .symbols import (
    Partition,
    symbolize,
    quantile_partition,
    symbol_counts,
)
from .embedding import (
    Embedding,
    EmbeddingSet,
    anchor_range,
    build_embeddings,
    encode_symbols,
    decode_index,
)
from .probability import (
    FrequencyCounts,
    ProbabilityTables,
    count_embeddings,
    accumulate_counts,
    estimate_probabilities,
)
from .measures import (
    PROBABILITY_FLOOR,
    MeasureResult,
    PointwiseMeasures,
    AnalysisTrace,
    compute_measures,
)
from .engine import (
    CaMIEngine,
    analyze_pair,
    apply_delay,
    multithread_cami,
)
from .windowed import (
    WindowAnalyzer,
    WindowedResult,
    window_starts,
)
from .confidence import (
    ConfidenceEstimator,
    ConfidenceMargins,
    confidence_margins,
)

__all__ = [
    # Errors
    'ValidationError',
    'ShapeMismatchError',
    'PartitionMismatchError',
    'InvalidPartitionError',
    'DegenerateWindowError',
    'validate_inputs',
    # Symbols
    'Partition',
    'symbolize',
    'quantile_partition',
    'symbol_counts',
    # Embedding
    'Embedding',
    'EmbeddingSet',
    'anchor_range',
    'build_embeddings',
    'encode_symbols',
    'decode_index',
    # Probabilities
    'FrequencyCounts',
    'ProbabilityTables',
    'count_embeddings',
    'accumulate_counts',
    'estimate_probabilities',
    # Measures
    'PROBABILITY_FLOOR',
    'MeasureResult',
    'PointwiseMeasures',
    'AnalysisTrace',
    'compute_measures',
    # Engine
    'CaMIEngine',
    'analyze_pair',
    'apply_delay',
    'multithread_cami',
    # Local measures
    'WindowAnalyzer',
    'WindowedResult',
    'window_starts',
    # Confidence
    'ConfidenceEstimator',
    'ConfidenceMargins',
    'confidence_margins',
]
