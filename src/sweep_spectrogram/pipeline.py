"""
Log-to-PNG pipeline

parse -> timing check (advisory) -> render -> write `<prefix>.<end_time>.png`
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import SpectrogramConfig
from .log_parser import LogParser, LogSource
from .models import LogDocument
from .renderer import SpectrogramRenderer, output_filename
from .time_consistency import TimeConsistencyChecker

logger = logging.getLogger(__name__)


def load_document(config: SpectrogramConfig, stream: Optional[LogSource] = None) -> LogDocument:
    """
    Parse the configured log source.

    Args:
        config: Configuration (config.source: file, directory or '-')
        stream: Explicit stream, used instead of config.source when given

    Raises:
        FormatError: On malformed logs
        OSError: If the source cannot be read
    """
    parser = LogParser()
    if stream is not None:
        return parser.parse(stream)
    if config.reads_stdin:
        return parser.parse(sys.stdin.buffer, source='<stdin>')

    source = Path(config.source)
    if source.is_dir():
        return parser.parse_directory(source)
    return parser.parse_file(source)


def render_log(config: SpectrogramConfig, stream: Optional[LogSource] = None) -> Path:
    """
    Run the whole pipeline and write the PNG.

    Returns:
        Path of the written image
    """
    document = load_document(config, stream)

    if config.check_timing:
        report = TimeConsistencyChecker().check(document.records)
        if report.has_problems:
            logger.warning(f"Timing check: {len(report.anomalies)} anomaly(s), "
                           f"nominal interval {report.nominal_interval}s; rendering anyway")
        elif not report.skipped:
            logger.info(f"Timing check passed, interval {report.nominal_interval}s")

    buffer = SpectrogramRenderer(config).render(document)

    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    return buffer.save_png(output_dir / output_filename(config.prefix, document))
