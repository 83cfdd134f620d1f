"""
MTCAMI - Multithread Causal Mutual Information
==============================================

Directional information flow from many short parallel experiments.

Architecture:
    - information/:  Symbols, embeddings, probabilities, measures, drivers
    - config/:       AnalysisConfig (YAML)
    - db/:           Matrix input, parquet/npz export, text report
    - cli.py:        Command line interface

Usage:
    # CLI
    python -m mtcami run --cause x.csv --effect y.csv --config analysis.yaml
    python -m mtcami confidence --cause x.csv --effect y.csv --config analysis.yaml

    # Python
    from mtcami import multithread_cami
    result = multithread_cami(x, y, 2, 1, 0.5, 0.5, tau=1, units='nats')
"""

__version__ = "1.0.0"

# Lazy imports to avoid circular dependencies
__all__ = ['information', 'config', 'db', 'multithread_cami', '__version__']


def __getattr__(name):
    """Lazy import of submodules."""
    if name == 'information':
        from . import information
        return information
    elif name == 'config':
        from . import config
        return config
    elif name == 'db':
        from . import db
        return db
    elif name == 'multithread_cami':
        from .information.engine import multithread_cami
        return multithread_cami
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
