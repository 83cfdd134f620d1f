"""
Analysis configuration loader.

Reads a YAML file describing one CaMI analysis: embedding lengths,
partitions, delay, sliding window and surrogate settings.

Usage:
    from mtcami.config.analysis import load_analysis_config

    config = load_analysis_config('config/analysis.yaml')
    print(config.n_symbols, config.total_length)

Example YAML:
    past_length: 1
    future_length: 1
    cause_breakpoints: [0.5]
    effect_breakpoints: [0.5]
    tau: 1
    units: bits
    delay: 0
    window_length: null
    persist_results: false
    n_jobs: 1
    confidence:
      max_runs: 10
      method: random
      seed: 42
"""

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when an analysis configuration is malformed."""
    pass


SURROGATE_METHODS = ('random', 'shuffle')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class ConfidenceConfig:
    """Surrogate runs used for confidence margins."""
    max_runs: int = 0
    method: str = 'random'
    seed: Optional[int] = None

    @property
    def enabled(self) -> bool:
        return self.max_runs > 0

    def validate(self) -> None:
        if self.max_runs < 0:
            raise ConfigError(f"confidence.max_runs must be >= 0, got {self.max_runs}")
        if self.method not in SURROGATE_METHODS:
            raise ConfigError(
                f"confidence.method must be one of {SURROGATE_METHODS}, got {self.method!r}"
            )


@dataclass
class AnalysisConfig:
    """
    Complete configuration of one analysis.

    past_length is lx; future_length is ly - lx, so ly = total_length.
    """
    past_length: int
    future_length: int
    cause_breakpoints: Tuple[float, ...]
    effect_breakpoints: Tuple[float, ...]
    tau: int = 1
    units: str = 'bits'
    delay: int = 0
    window_length: Optional[int] = None
    persist_results: bool = False
    n_jobs: int = 1
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)

    def __post_init__(self):
        self.cause_breakpoints = tuple(
            float(b) for b in _as_list(self.cause_breakpoints)
        )
        self.effect_breakpoints = tuple(
            float(b) for b in _as_list(self.effect_breakpoints)
        )
        if isinstance(self.confidence, dict):
            self.confidence = ConfidenceConfig(**self.confidence)

    @property
    def total_length(self) -> int:
        return self.past_length + self.future_length

    @property
    def n_symbols(self) -> int:
        return len(self.cause_breakpoints) + 1

    @property
    def cause_partition(self):
        from mtcami.information.symbols import Partition
        return Partition(self.cause_breakpoints)

    @property
    def effect_partition(self):
        from mtcami.information.symbols import Partition
        return Partition(self.effect_breakpoints)

    @property
    def is_local(self) -> bool:
        return self.window_length is not None

    def validate(self) -> 'AnalysisConfig':
        """Check parameter ranges. Returns self for chaining."""
        for name in ('past_length', 'future_length', 'tau'):
            value = getattr(self, name)
            if not isinstance(value, (int,)) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{name} must be an integer >= 1, got {value!r}")
        if not isinstance(self.delay, int) or isinstance(self.delay, bool):
            raise ConfigError(f"delay must be an integer, got {self.delay!r}")
        if self.window_length is not None and (
            not isinstance(self.window_length, int)
            or isinstance(self.window_length, bool)
            or self.window_length < 1
        ):
            raise ConfigError(
                f"window_length must be an integer >= 1, got {self.window_length!r}"
            )
        if self.n_jobs == 0:
            raise ConfigError("n_jobs must be non-zero (use -1 for all cores)")
        self.confidence.validate()
        return self

    def with_overrides(self, **overrides) -> 'AnalysisConfig':
        """Copy with non-None overrides applied."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        confidence_keys = {f.name for f in fields(ConfidenceConfig)}
        confidence = {k: overrides.pop(k) for k in list(overrides) if k in confidence_keys}
        config = replace(self, **overrides)
        if confidence:
            config.confidence = replace(self.confidence, **confidence)
        return config

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'AnalysisConfig':
        """
        Build from a plain dict (e.g. parsed YAML).

        Raises
        ------
        ConfigError
            On unknown or missing keys
        """
        raw = dict(raw or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"Unknown analysis config keys: {unknown}")

        required = ('past_length', 'future_length', 'cause_breakpoints', 'effect_breakpoints')
        missing = [k for k in required if k not in raw]
        if missing:
            raise ConfigError(f"Missing analysis config keys: {missing}")

        confidence = raw.pop('confidence', None) or {}
        unknown = sorted(set(confidence) - {f.name for f in fields(ConfidenceConfig)})
        if unknown:
            raise ConfigError(f"Unknown confidence config keys: {unknown}")

        return cls(confidence=ConfidenceConfig(**confidence), **raw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'past_length': self.past_length,
            'future_length': self.future_length,
            'cause_breakpoints': list(self.cause_breakpoints),
            'effect_breakpoints': list(self.effect_breakpoints),
            'tau': self.tau,
            'units': self.units,
            'delay': self.delay,
            'window_length': self.window_length,
            'persist_results': self.persist_results,
            'n_jobs': self.n_jobs,
            'confidence': {
                'max_runs': self.confidence.max_runs,
                'method': self.confidence.method,
                'seed': self.confidence.seed,
            },
        }

    def __repr__(self):
        mode = f"local(W={self.window_length})" if self.is_local else "global"
        return (f"AnalysisConfig(lx={self.past_length}, ly={self.total_length}, "
                f"ns={self.n_symbols}, tau={self.tau}, {self.units}, {mode})")


def _as_list(value) -> list:
    if isinstance(value, (int, float)):
        return [value]
    return list(value)


# =============================================================================
# LOADER FUNCTIONS
# =============================================================================

_config_cache: Dict[Path, AnalysisConfig] = {}


def load_analysis_config(path: Union[str, Path]) -> AnalysisConfig:
    """
    Load and validate an analysis configuration from YAML.

    Results are cached per resolved path; use clear_config_cache()
    after editing the file.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    ConfigError
        If the content is malformed
    """
    path = Path(path).resolve()

    if path in _config_cache:
        return _config_cache[path]

    if not path.exists():
        raise FileNotFoundError(f"Analysis config not found: {path}")

    with open(path, 'r') as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError(f"Analysis config must be a mapping: {path}")

    config = AnalysisConfig.from_dict(raw).validate()
    logger.info(f"Loaded {config} from {path}")

    _config_cache[path] = config
    return config


def clear_config_cache() -> None:
    """Forget every cached configuration."""
    _config_cache.clear()
