"""
Main entry point for admitstats.

Loads one dataset, runs the correlation and PCA analysis and writes the
report directory.
"""

import argparse
import logging
import sys
from typing import List, Optional

from admitstats.analysis import run_analysis
from admitstats.components.config import ConfigManager, load_file
from admitstats.errors import AnalysisError
from admitstats.report.export import write_report

logger = logging.getLogger('admitstats')


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='Correlation and PCA report for a tabular dataset')

    parser.add_argument(
        'path',
        help='Spreadsheet or CSV file to analyse'
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file (JSON or YAML)'
    )

    parser.add_argument(
        '--log-level',
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level'
    )

    parser.add_argument(
        '--output-dir',
        help='Directory for the rendered report'
    )

    parser.add_argument(
        '--sheet',
        help='Sheet name or position'
    )

    parser.add_argument(
        '--threshold',
        type=float,
        help='Absolute correlation above which a pair is reported'
    )

    parser.add_argument(
        '--components',
        type=int,
        help='Number of leading components used for contribution scores'
    )

    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Skip rendering figures'
    )

    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict:
    """
    Merge the configuration file and command line flags into one override dictionary.

    Args:
        args: Parsed arguments

    Returns:
        Configuration overrides
    """
    overrides = {}

    if args.config:
        overrides.update(load_file(args.config))

    def section(name):
        return overrides.setdefault(name, {})

    if args.sheet is not None:
        section('input')['sheet'] = int(args.sheet) if args.sheet.isdigit() else args.sheet

    if args.threshold is not None:
        section('analysis')['correlation-threshold'] = args.threshold

    if args.components is not None:
        section('analysis')['contribution-components'] = args.components

    if args.output_dir:
        section('report')['output-dir'] = args.output_dir

    if args.no_plots:
        section('report')['plots'] = False

    if args.log_level:
        section('logging')['level'] = args.log_level.lower()

    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit status
    """
    args = parse_args(argv)

    try:
        config = ConfigManager.get_config(build_overrides(args))
    except (OSError, ValueError) as e:
        setup_logging(args.log_level or 'INFO')
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.get('logging.level', 'info'))

    try:
        analysis = run_analysis(args.path, config)
        summary = write_report(analysis)
    except AnalysisError as e:
        logger.error(str(e))
        return 1

    for key, value in analysis.get_summary().items():
        print(f"{key}: {value}")
    print(f"Report saved to {config.get('report.output-dir')} ({len(summary.files)} files)")

    return 0


if __name__ == '__main__':
    sys.exit(main())
