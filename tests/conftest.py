"""Shared fixtures: synthetic cause/effect ensembles and configurations."""

import numpy as np
import pytest

from mtcami.config.analysis import AnalysisConfig, clear_config_cache


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def independent_pair(rng):
    """Two unrelated uniform ensembles, 200 samples x 50 experiments."""
    return rng.random((200, 50)), rng.random((200, 50))


@pytest.fixture
def lagged_pair(rng):
    """Effect copies cause one step later: y[t] = x[t-1]."""
    cause = rng.random((200, 50))
    return cause, np.roll(cause, 1, axis=0)


@pytest.fixture
def make_config():
    """Factory for configurations with a median split at 0.5."""
    def _make(**overrides):
        params = dict(
            past_length=1,
            future_length=1,
            cause_breakpoints=[0.5],
            effect_breakpoints=[0.5],
        )
        params.update(overrides)
        return AnalysisConfig(**params)
    return _make


@pytest.fixture(autouse=True)
def _fresh_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()
