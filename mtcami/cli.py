"""
MTCAMI Command Line Interface

Usage:
    python -m mtcami <command> [args]

Commands:
    run         Compute CaMI, MI, TE and directionality (global or local)
    confidence  Compute surrogate confidence margins only

Examples:
    python -m mtcami run --cause x.csv --effect y.csv --config config/analysis.yaml
    python -m mtcami run --cause x.csv --effect y.csv --config config/analysis.yaml \\
        --window-length 500 --save -o results/
    python -m mtcami confidence --cause x.csv --effect y.csv \\
        --config config/analysis.yaml --runs 20 --method shuffle --seed 7

Matrices are read from .csv (no header), .parquet or .npy; rows are time
and columns are parallel experiments.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mtcami.config.analysis import (
    SURROGATE_METHODS,
    AnalysisConfig,
    load_analysis_config,
)
from mtcami.db.export import format_report, save_results
from mtcami.db.polars_io import read_matrix
from mtcami.information.confidence import ConfidenceEstimator
from mtcami.information.engine import CaMIEngine

logger = logging.getLogger(__name__)


def _load_config(args) -> AnalysisConfig:
    """Config file plus command-line overrides."""
    config = load_analysis_config(args.config)
    return config.with_overrides(
        past_length=args.past_length,
        future_length=args.future_length,
        tau=args.tau,
        units=args.units,
        delay=args.delay,
        window_length=args.window_length,
        n_jobs=args.n_jobs,
        persist_results=True if args.save else None,
        max_runs=args.runs,
        method=args.method,
        seed=args.seed,
    ).validate()


def _load_pair(args):
    cause, effect = read_matrix(args.cause), read_matrix(args.effect)
    logger.debug(f"cause {cause.shape}, effect {effect.shape}")
    return cause, effect


def cmd_run(args) -> int:
    """Compute measures and optional confidence margins."""
    try:
        config = _load_config(args)
        cause, effect = _load_pair(args)

        result = CaMIEngine(config).run(cause, effect)

        margins = None
        if config.confidence.enabled:
            margins = ConfidenceEstimator(config).estimate(cause, effect)
    except (ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(format_report(result, config, margins), end='')

    if config.persist_results:
        written = save_results(result, args.output, config, margins)
        print(f"Results written to {Path(args.output)} ({len(written)} files)")

    return 0


def cmd_confidence(args) -> int:
    """Compute surrogate confidence margins."""
    try:
        config = _load_config(args)
        cause, effect = _load_pair(args)
        if not config.confidence.enabled:
            config = config.with_overrides(max_runs=10)
        margins = ConfidenceEstimator(config).estimate(cause, effect)
    except (ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print('Confidence margins:')
    print(f'- Number of runs of {margins.method} surrogates: {margins.runs}')
    print(f'- Surrogate shape (samples x experiments): {margins.shape[0]} x {margins.shape[1]}')
    print(f'- CaMI: {margins.cami:.6g}')
    print(f'- Mutual Information: {margins.mutual_info:.6g}')
    print(f'- Transfer Entropy: {margins.transfer_entropy:.6g}')
    print(f'- Units: {margins.units}')
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--cause', required=True, metavar='FILE',
                        help='[INPUT] cause matrix (time x experiment)')
    parser.add_argument('--effect', required=True, metavar='FILE',
                        help='[INPUT] effect matrix (time x experiment)')
    parser.add_argument('--config', '-c', required=True, metavar='FILE',
                        help='[INPUT] analysis.yaml')
    parser.add_argument('--past-length', type=int, help='Override lx')
    parser.add_argument('--future-length', type=int, help='Override ly - lx')
    parser.add_argument('--tau', type=int, help='Override time delay between symbols')
    parser.add_argument('--units', help='bits or nats')
    parser.add_argument('--delay', type=int, help='Response delay of effect (may be negative)')
    parser.add_argument('--n-jobs', type=int, help='Parallel workers (-1 for all cores)')
    parser.add_argument('--runs', type=int, help='Number of surrogate runs')
    parser.add_argument('--method', choices=SURROGATE_METHODS, help='Surrogate method')
    parser.add_argument('--seed', type=int, help='Surrogate random seed')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mtcami',
        description='Multithread Causal Mutual Information',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m mtcami run --cause x.csv --effect y.csv --config analysis.yaml
    python -m mtcami confidence --cause x.csv --effect y.csv --config analysis.yaml
        """,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # run command
    run_parser = subparsers.add_parser(
        'run',
        help='Compute CaMI, MI, TE and directionality',
    )
    _add_common_arguments(run_parser)
    run_parser.add_argument('--window-length', type=int,
                            help='Sliding window length for local measures')
    run_parser.add_argument('--save', action='store_true',
                            help='Write parquet/npz/text results to --output')
    run_parser.add_argument('--output', '-o', default='results', metavar='DIR',
                            help='[OUTPUT] results directory (default: results)')

    # confidence command
    confidence_parser = subparsers.add_parser(
        'confidence',
        help='Compute surrogate confidence margins',
    )
    _add_common_arguments(confidence_parser)
    confidence_parser.set_defaults(window_length=None, save=False)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """MTCAMI CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    # Dispatch to command handler
    handlers = {
        'run': cmd_run,
        'confidence': cmd_confidence,
    }

    handler = handlers.get(args.command)
    return handler(args)


if __name__ == '__main__':
    sys.exit(main())
