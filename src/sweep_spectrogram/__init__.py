"""
Sweep Spectrogram - spectrum sweep logs to false-color spectrogram images

Parses the sweep log written by a spectrum analyzer logger (one header line,
one power sample per step, a blank line per sweep), checks sweep timing, and
renders the sweeps as a spectrogram PNG with a title banner, a summary footer
and frequency gridlines.

Quick Start:
    from sweep_spectrogram import LogParser, SpectrogramRenderer, output_filename

    document = LogParser().parse_file('hf.20230101T000000.log')
    image = SpectrogramRenderer().render(document, title='HF 1-30 MHz')
    image.save_png(output_filename('hf', document))
"""

from .version import SWEEP_SPECTROGRAM_VERSION as __version__

from .errors import FormatError, FormatErrorKind
from .models import Record, LogDocument
from .log_parser import (
    LogParser, ParseOutcome,
    parse_log, parse_log_file, parse_log_directory,
    serialize_log, write_log,
)
from .time_consistency import (
    TimeConsistencyChecker, TimingReport, TimingAnomaly, TimingAnomalyKind,
    check_timing,
)
from .gridlines import GridlineCalculator
from .colormap import ColorMapper
from .renderer import PixelBuffer, SpectrogramRenderer, output_filename, render_spectrogram
from .config import SpectrogramConfig, load_config
from .pipeline import render_log

__all__ = [
    '__version__',
    'FormatError', 'FormatErrorKind',
    'Record', 'LogDocument',
    'LogParser', 'ParseOutcome',
    'parse_log', 'parse_log_file', 'parse_log_directory',
    'serialize_log', 'write_log',
    'TimeConsistencyChecker', 'TimingReport', 'TimingAnomaly', 'TimingAnomalyKind',
    'check_timing',
    'GridlineCalculator',
    'ColorMapper',
    'PixelBuffer', 'SpectrogramRenderer', 'output_filename', 'render_spectrogram',
    'SpectrogramConfig', 'load_config',
    'render_log',
]
