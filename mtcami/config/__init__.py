"""MTCAMI Configuration Module."""

from mtcami.config.analysis import (
    AnalysisConfig,
    ConfidenceConfig,
    ConfigError,
    SURROGATE_METHODS,
    load_analysis_config,
    clear_config_cache,
)

__all__ = [
    'AnalysisConfig',
    'ConfidenceConfig',
    'ConfigError',
    'SURROGATE_METHODS',
    'load_analysis_config',
    'clear_config_cache',
]
