#!/usr/bin/env python3
"""
Command Line Interface for Sweep Spectrogram

    log2png [SOURCE] [-o PREFIX] [-t TITLE] [-c CONFIG] ...

SOURCE is a sweep log file, a directory of .log files, or '-' for stdin.
"""

import sys
import logging
import argparse
from typing import List, Optional

from .config import SpectrogramConfig, load_config
from .errors import FormatError
from .pipeline import render_log
from .version import get_version_string

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    """Configure the root logger (INFO, or DEBUG with --debug)"""
    level = logging.DEBUG if debug else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(levelname)s:%(name)s:%(message)s'))
        root_logger.addHandler(handler)
    else:
        for handler in root_logger.handlers:
            handler.setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='log2png',
        description='Render a sweep log (or a directory of logs) as a spectrogram PNG',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('source', nargs='?', default=None,
                        help="Log file, directory of .log files, or '-' for stdin")
    parser.add_argument('--output-prefix', '-o', dest='prefix',
                        help='Output filename prefix (<prefix>.<end_time>.png)')
    parser.add_argument('--output-dir', help='Directory for the PNG')
    parser.add_argument('--title', '-t', help='Banner title')
    parser.add_argument('--config', '-c', help='Configuration file path (TOML)')
    parser.add_argument('--no-gridlines', dest='gridlines', action='store_false', default=None,
                        help='Do not draw frequency gridlines')
    parser.add_argument('--min-gridlines', type=int, help='Minimum number of gridlines')
    parser.add_argument('--banner-height', type=int, help='Banner height in pixels')
    parser.add_argument('--footer-height', type=int, help='Footer height in pixels')
    parser.add_argument('--min-power', dest='min_power_dbm', type=float,
                        help='Power (dBm) at the dark end of the palette')
    parser.add_argument('--max-power', dest='max_power_dbm', type=float,
                        help='Power (dBm) at the bright end of the palette')
    parser.add_argument('--workers', type=int, help='Threads used to color the spectrogram body')
    parser.add_argument('--no-timing-check', dest='check_timing', action='store_false', default=None,
                        help='Skip the sweep timing consistency check')
    parser.add_argument('--debug', '-d', action='store_true', help='Enable DEBUG logging')
    parser.add_argument('--version', action='version', version=get_version_string())
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the log2png command"""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    overrides = {
        'source': args.source,
        'prefix': args.prefix,
        'output_dir': args.output_dir,
        'title': args.title,
        'gridlines': args.gridlines,
        'min_gridlines': args.min_gridlines,
        'banner_height': args.banner_height,
        'footer_height': args.footer_height,
        'min_power_dbm': args.min_power_dbm,
        'max_power_dbm': args.max_power_dbm,
        'workers': args.workers,
        'check_timing': args.check_timing,
    }

    try:
        config = load_config(args.config) if args.config else SpectrogramConfig()
        config = config.with_overrides(**overrides)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        output = render_log(config)
    except FormatError as e:
        logger.error(f"Invalid log: {e}")
        return 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return 1

    print(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
