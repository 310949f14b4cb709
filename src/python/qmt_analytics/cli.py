#!/usr/bin/env python3
"""
QMT Analytics - Command Line Interface

Usage:
    qmt-analytics metrics --strategy <id> [--benchmark <code>] [--start <date>] [--end <date>] [--json]
    qmt-analytics metrics --performance <file> [--transactions <file>] [--benchmark-file <file>] [--json]
    qmt-analytics chart --strategy <id> --benchmark <code> [--output <file>]
    qmt-analytics strategies
    qmt-analytics config [--show | --generate <file>]
    qmt-analytics version
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

from . import __version__
from .config import Config, load_config, setup_logging
from .structured_logging import BoundLogger

logger = logging.getLogger(__name__)


def configure_cli_logging(config: Config, verbose: bool = False, debug: bool = False,
                          json_logs: bool = False) -> None:
    """Apply CLI verbosity flags on top of the configured logging."""
    if debug:
        config.logging.level = "DEBUG"
    elif verbose:
        config.logging.level = "INFO"
    elif config.logging.level.upper() == "INFO" and not config.debug:
        config.logging.level = "WARNING"
    if json_logs:
        config.logging.json_format = True
    setup_logging(config.logging)


def _load_json(path: str) -> Any:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    with open(file_path) as f:
        return json.load(f)


def load_inputs_from_files(args) -> Tuple[Any, Optional[Any], List[Any]]:
    """Read performance, benchmark and transactions payloads from JSON files."""
    performance = _load_json(args.performance)

    transactions: List[Any] = []
    if args.transactions:
        data = _load_json(args.transactions)
        transactions = data.get("transactions", []) if isinstance(data, dict) else data

    benchmark = None
    if args.benchmark_file:
        data = _load_json(args.benchmark_file)
        benchmark = {"data": data} if isinstance(data, list) else data

    return performance, benchmark, transactions


def load_inputs_from_backend(args, config: Config):
    """Fetch performance, benchmark and transactions from the backend."""
    from .client import BackendClient

    client = BackendClient(config.backend)
    performance, benchmark, transactions = client.fetch_dashboard_inputs(
        args.strategy,
        benchmark_code=args.benchmark or config.backend.default_benchmark,
        start_date=args.start,
        end_date=args.end,
    )
    return performance, benchmark, transactions


def cmd_metrics(args, config: Config) -> int:
    """Compute and print dashboard metrics."""
    from .analytics import calculate_all_metrics

    if args.performance:
        performance, benchmark, transactions = load_inputs_from_files(args)
        label = args.performance
    elif args.strategy:
        performance, benchmark, transactions = load_inputs_from_backend(args, config)
        label = args.strategy
    else:
        raise ValueError("Must specify either --strategy or --performance")

    with BoundLogger(strategy_id=label):
        result = calculate_all_metrics(performance, benchmark, transactions, config.analytics)

    if args.json:
        print(result.to_json(indent=2))
        return 0

    print(f"\n{'='*60}")
    print(f"QMT ANALYTICS - {label}")
    print(f"{'='*60}")
    print(result.summary())
    return 0


def cmd_chart(args, config: Config) -> int:
    """Write the strategy versus benchmark comparison series."""
    from .analytics import build_comparison_frame
    from .analytics.orchestrator import coerce_benchmark, coerce_performance

    if args.performance:
        performance, benchmark, _ = load_inputs_from_files(args)
        performance = coerce_performance(performance)
        benchmark = coerce_benchmark(benchmark)
    elif args.strategy:
        performance, benchmark, _ = load_inputs_from_backend(args, config)
    else:
        raise ValueError("Must specify either --strategy or --performance")

    frame = build_comparison_frame(
        performance.daily_performances,
        benchmark.data if benchmark else [],
    )

    if args.output:
        frame.to_csv(args.output, index=False, float_format="%.4f")
        print(f"Comparison series ({len(frame)} rows) saved to: {args.output}")
    else:
        print(frame.to_string(index=False, float_format=lambda v: f"{v:.2f}"))
    return 0


def cmd_strategies(args, config: Config) -> int:
    """List strategies known to the backend."""
    from .client import BackendClient

    strategies = BackendClient(config.backend).get_strategies()
    if not strategies:
        print("No strategies found.")
        return 0
    for strategy in strategies:
        print(strategy)
    return 0


def cmd_config(args, config: Config) -> int:
    """Manage configuration."""
    if args.generate:
        Config().save(args.generate)
        print(f"Configuration template saved to: {args.generate}")
        return 0

    if args.show:
        print(json.dumps(config.to_dict(), indent=2))
        return 0

    print("Configuration management:")
    print("  --show          Show current configuration")
    print("  --generate FILE Generate configuration template")
    return 0


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--strategy", help="Strategy id (fetches from backend)")
    source.add_argument("--performance", "-p", help="Performance JSON file")
    parser.add_argument("--transactions", "-t", help="Transactions JSON file")
    parser.add_argument("--benchmark-file", help="Benchmark JSON file")
    parser.add_argument("--benchmark", "-b", help="Benchmark code (backend mode)")
    parser.add_argument("--start", "-s", help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", "-e", help="End date (YYYY-MM-DD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qmt-analytics",
        description="QMT Analytics - strategy performance metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Metrics for a strategy served by the backend
  qmt-analytics metrics --strategy ma_cross --benchmark 000300.SH

  # Metrics from exported JSON payloads
  qmt-analytics metrics -p performance.json -t transactions.json --benchmark-file hs300.json --json

  # Strategy vs benchmark series as CSV
  qmt-analytics chart --strategy ma_cross --benchmark 000300.SH -o comparison.csv

  # Generate config template
  qmt-analytics config --generate config.json
        """
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")
    parser.add_argument("--config", "-c", help="Config file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    metrics_parser = subparsers.add_parser("metrics", help="Compute dashboard metrics")
    _add_input_arguments(metrics_parser)
    metrics_parser.add_argument("--json", action="store_true", help="Print the metrics payload as JSON")

    chart_parser = subparsers.add_parser("chart", help="Strategy vs benchmark comparison series")
    _add_input_arguments(chart_parser)
    chart_parser.add_argument("--output", "-o", help="Output CSV file")

    subparsers.add_parser("strategies", help="List backend strategies")

    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_parser.add_argument("--show", action="store_true", help="Show current config")
    config_parser.add_argument("--generate", metavar="FILE", help="Generate config template")

    subparsers.add_parser("version", help="Show version")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    from .client import BackendError

    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_cli_logging(config, args.verbose, args.debug, args.json_logs)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "metrics": cmd_metrics,
        "chart": cmd_chart,
        "strategies": cmd_strategies,
        "config": cmd_config,
    }

    if args.command == "version":
        print(f"qmt-analytics {__version__}")
        return 0

    try:
        return commands[args.command](args, config)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except (BackendError, FileNotFoundError, ValueError) as e:
        if args.debug:
            raise
        logger.error(str(e))
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
