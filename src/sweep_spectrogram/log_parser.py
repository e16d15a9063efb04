#!/usr/bin/env python3
"""
Sweep Log Parser

Reads the line-oriented sweep log written by the spectrum analyzer logger and
produces a LogDocument (ordered Records + flat float32 sample buffer).

Log format (one or more records per file):
------------------------------------------
    # comment lines may appear anywhere
    $ <start_MHz>,<stop_MHz>,<steps>,<rbw_kHz>,<YYYYMMDDTHHMMSS>,<YYYYMMDDTHHMMSS>
    <power_1 dBm>
    ...
    <power_steps dBm>
    <blank line>

Every record is exactly `steps + 2` non-comment lines. The first header fixes
the instrument configuration; every later header must repeat it bit for bit.
Any violation raises FormatError naming the source and 1-based line number.
Parsing is strictly sequential: line order encodes the record structure.

Usage:
------
    from sweep_spectrogram.log_parser import LogParser

    document = LogParser().parse_file('sweep.20230101T000000.log')
    document = LogParser().parse_directory('logs/')   # *.log in name order
"""

import io
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

import numpy as np

from .errors import FormatError, FormatErrorKind
from .models import LogDocument, MAX_RBW_KHZ, Record
from .version import format_log_timestamp, parse_log_timestamp

logger = logging.getLogger(__name__)

HEADER_SIGIL = '$'
COMMENT_PREFIX = '#'
MAX_TIMESTAMP_WIDTH = 31

HEADER_COMMENT = "# start_freq(MHz),stop_freq(MHz),steps,rbw(kHz),start_time,end_time"

_FLOAT_TOKEN_RE = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')
_UINT_TOKEN_RE = re.compile(r'\d+')
_HEADER_RE = re.compile(
    r'\$\s*(?P<start_freq>[^,]*),(?P<stop_freq>[^,]*),(?P<steps>[^,]*),(?P<rbw>[^,]*),'
    r'\s*(?P<start_time>[^,]{1,%d}),\s*(?P<end_time>[^,]{1,%d})' % (MAX_TIMESTAMP_WIDTH, MAX_TIMESTAMP_WIDTH)
)

# Samples are stored as float32; anything beyond this overflows to inf
FLOAT32_MAX = float(np.finfo(np.float32).max)

# Configuration fields every header must repeat exactly
CONFIGURATION_FIELDS = ('start_freq_mhz', 'stop_freq_mhz', 'steps', 'rbw_khz')

LogSource = Union[str, bytes, Iterable[str], Iterable[bytes]]


@dataclass(frozen=True)
class ParseOutcome:
    """Result value of LogParser.try_parse: a document or the error that stopped parsing"""
    document: Optional[LogDocument] = None
    error: Optional[FormatError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _same_bits(a, b) -> bool:
    if isinstance(a, float) and isinstance(b, float):
        return a.hex() == b.hex()
    return a == b


def _iter_raw_lines(stream: LogSource) -> Iterator[Union[str, bytes]]:
    if isinstance(stream, str):
        return iter(io.StringIO(stream, newline='\n'))
    if isinstance(stream, (bytes, bytearray)):
        return iter(io.BytesIO(bytes(stream)))
    return iter(stream)


def _is_comment(raw: Union[str, bytes]) -> bool:
    if isinstance(raw, (bytes, bytearray)):
        return raw.startswith(COMMENT_PREFIX.encode('ascii'))
    return raw.startswith(COMMENT_PREFIX)


class LogParser:
    """
    Incremental sweep log parser.

    `parse()` handles a single stream; `feed()`/`finish()` let several
    streams (e.g. a directory of log files) form one document, with line
    numbers restarting per source.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Discard all parser state"""
        self._records: List[Record] = []
        self._samples: List[float] = []
        self._reference: Optional[Record] = None
        self._lines_per_record: Optional[int] = None
        self._position = 0  # non-comment line index within the current record
        self._source = '<stream>'
        self._line_number = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, stream: LogSource, source: Optional[str] = None) -> LogDocument:
        """
        Parse one complete log stream.

        Args:
            stream: Text, bytes, a text/binary file object or an iterable of lines
            source: Name used in error messages (defaults to the file name or '<stream>')

        Returns:
            LogDocument

        Raises:
            FormatError: On any structural violation
        """
        self.reset()
        self.feed(stream, source)
        return self.finish()

    def try_parse(self, stream: LogSource, source: Optional[str] = None) -> ParseOutcome:
        """Like parse(), but returns the FormatError in a ParseOutcome instead of raising"""
        try:
            return ParseOutcome(document=self.parse(stream, source))
        except FormatError as e:
            return ParseOutcome(error=e)

    def parse_file(self, path: Union[str, Path]) -> LogDocument:
        """Parse a single log file"""
        path = Path(path)
        with open(path, 'rb') as f:
            return self.parse(f, source=path.name)

    def parse_directory(self, directory: Union[str, Path], pattern: str = '*.log') -> LogDocument:
        """
        Parse every matching file in a directory as one document.

        Files are taken in file-name order; logger output files are named
        `<prefix>.<YYYYMMDDTHHMMSS>.log`, so name order is time order. Each
        file must end on a record boundary.
        """
        directory = Path(directory)
        files = sorted(p for p in directory.glob(pattern) if p.is_file())
        logger.info(f"Found {len(files)} log file(s) in {directory}")

        self.reset()
        for path in files:
            with open(path, 'rb') as f:
                self.feed(f, source=path.name)
            self._check_record_boundary()
        if not files:
            self._source = str(directory)
        return self.finish()

    def feed(self, stream: LogSource, source: Optional[str] = None) -> None:
        """Consume all lines of a stream, keeping record state across calls"""
        if source is None:
            source = getattr(stream, 'name', None)
            source = Path(source).name if isinstance(source, str) else '<stream>'
        self._source = source
        self._line_number = 0

        for raw in _iter_raw_lines(stream):
            self._line_number += 1
            # Comments are skipped before decoding; they may hold any bytes
            if _is_comment(raw):
                continue
            self._consume(self._decode(raw))

    def finish(self) -> LogDocument:
        """Check end-of-stream conditions and build the LogDocument"""
        self._check_record_boundary()

        if not self._records:
            raise self._error(FormatErrorKind.NO_RECORDS, "log contains no records", line=False)

        steps = self._reference.steps
        expected = len(self._records) * steps
        if len(self._samples) != expected:
            raise self._error(
                FormatErrorKind.SAMPLE_COUNT_MISMATCH,
                f"{len(self._samples)} samples for {len(self._records)} records of {steps} steps "
                f"(expected {expected})",
                line=False,
                samples=len(self._samples), expected=expected,
            )

        document = LogDocument(tuple(self._records), np.asarray(self._samples, dtype=np.float32))
        logger.info(f"Parsed {document.record_count} record(s) x {steps} steps")
        return document

    # ------------------------------------------------------------------
    # Line handling
    # ------------------------------------------------------------------

    def _decode(self, raw: Union[str, bytes]) -> str:
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode('ascii')
            except UnicodeDecodeError as e:
                raise self._error(
                    self._expected_line_kind(),
                    f"line contains non-ASCII byte 0x{raw[e.start]:02x}",
                ) from e
        if raw.endswith('\n'):
            raw = raw[:-1]
        if raw.endswith('\r'):
            raw = raw[:-1]
        return raw

    def _expected_line_kind(self) -> FormatErrorKind:
        """Error kind for a bad line at the next record position"""
        position = self._position + 1
        if position == 1:
            return FormatErrorKind.MALFORMED_HEADER
        if position == self._lines_per_record:
            return FormatErrorKind.MISSING_BLANK_LINE
        return FormatErrorKind.INVALID_SAMPLE

    def _consume(self, text: str) -> None:
        self._position += 1
        if self._position == 1:
            self._consume_header(text)
        elif self._position == self._lines_per_record:
            if text != '':
                raise self._error(
                    FormatErrorKind.MISSING_BLANK_LINE,
                    f"expected blank line after {self._reference.steps} samples, got {text!r}",
                    line_text=text,
                )
            self._position = 0
        else:
            self._consume_sample(text)

    def _consume_header(self, text: str) -> None:
        if not text.startswith(HEADER_SIGIL):
            raise self._error(
                FormatErrorKind.UNEXPECTED_LINE,
                f"expected header line starting with '{HEADER_SIGIL}', got {text!r}",
                line_text=text,
            )

        record = self._parse_header(text)

        if self._reference is None:
            self._reference = record
            self._lines_per_record = record.steps + 2
            logger.debug(f"Reference header at {self._source}:{self._line_number}: {record}")
        else:
            for field in CONFIGURATION_FIELDS:
                expected = getattr(self._reference, field)
                actual = getattr(record, field)
                if not _same_bits(expected, actual):
                    raise self._error(
                        FormatErrorKind.HEADER_MISMATCH,
                        f"header field {field} is {actual!r}, first header has {expected!r}",
                        field=field, expected=expected, actual=actual,
                    )

        self._records.append(record)

    def _consume_sample(self, text: str) -> None:
        if text == '' or text.startswith(HEADER_SIGIL):
            got = self._position - 2
            raise self._error(
                FormatErrorKind.UNEXPECTED_LINE,
                f"record ended after {got} of {self._reference.steps} samples",
                line_text=text, samples=got, steps=self._reference.steps,
            )

        try:
            value = float(text)
        except ValueError:
            raise self._error(
                FormatErrorKind.INVALID_SAMPLE,
                f"sample {text!r} is not a number",
                line_text=text,
            ) from None

        if not math.isfinite(value) or abs(value) > FLOAT32_MAX:
            raise self._error(
                FormatErrorKind.NON_FINITE_SAMPLE,
                f"sample {text!r} is not finite",
                line_text=text,
            )
        if not _FLOAT_TOKEN_RE.fullmatch(text):
            raise self._error(
                FormatErrorKind.INVALID_SAMPLE,
                f"sample {text!r} is not a plain decimal number",
                line_text=text,
            )

        self._samples.append(value)

    def _parse_header(self, text: str) -> Record:
        match = _HEADER_RE.fullmatch(text)
        if match is None:
            raise self._error(
                FormatErrorKind.MALFORMED_HEADER,
                "header must be '$ start_freq,stop_freq,steps,rbw,start_time,end_time'",
                line_text=text,
            )

        start_freq = self._header_float(match, 'start_freq')
        stop_freq = self._header_float(match, 'stop_freq')
        rbw = self._header_float(match, 'rbw')

        steps_text = match.group('steps').strip()
        if not _UINT_TOKEN_RE.fullmatch(steps_text):
            raise self._error(
                FormatErrorKind.INVALID_HEADER_VALUE,
                f"steps {steps_text!r} is not an unsigned integer",
                field='steps', value=steps_text,
            )
        steps = int(steps_text)

        start_time = self._header_timestamp(match, 'start_time')
        end_time = self._header_timestamp(match, 'end_time')

        if not start_freq < stop_freq:
            raise self._error(
                FormatErrorKind.INVALID_HEADER_VALUE,
                f"start_freq {start_freq} MHz must be below stop_freq {stop_freq} MHz",
                field='start_freq', start_freq=start_freq, stop_freq=stop_freq,
            )
        if steps == 0:
            raise self._error(
                FormatErrorKind.INVALID_HEADER_VALUE,
                "steps must be greater than 0",
                field='steps', value=steps,
            )
        if not 0.0 < rbw <= MAX_RBW_KHZ:
            raise self._error(
                FormatErrorKind.INVALID_HEADER_VALUE,
                f"rbw {rbw} kHz outside (0, {MAX_RBW_KHZ:g}]",
                field='rbw', value=rbw,
            )

        return Record(
            start_freq_mhz=start_freq,
            stop_freq_mhz=stop_freq,
            steps=steps,
            rbw_khz=rbw,
            start_time=start_time,
            end_time=end_time,
        )

    def _header_float(self, match, field: str) -> float:
        token = match.group(field).strip()
        if not _FLOAT_TOKEN_RE.fullmatch(token):
            raise self._error(
                FormatErrorKind.INVALID_HEADER_VALUE,
                f"{field} {token!r} is not a decimal number",
                field=field, value=token,
            )
        value = float(token)
        if not math.isfinite(value):
            raise self._error(
                FormatErrorKind.INVALID_HEADER_VALUE,
                f"{field} {token!r} is not finite",
                field=field, value=token,
            )
        return value

    def _header_timestamp(self, match, field: str):
        token = match.group(field).strip()
        try:
            return parse_log_timestamp(token)
        except ValueError as e:
            raise self._error(
                FormatErrorKind.INVALID_HEADER_VALUE,
                f"{field}: {e}",
                field=field, value=token,
            ) from e

    def _check_record_boundary(self) -> None:
        if self._position != 0:
            steps = self._reference.steps if self._reference else None
            raise self._error(
                FormatErrorKind.TRUNCATED_RECORD,
                f"stream ends inside record #{len(self._records)} "
                f"(line {self._position} of {self._lines_per_record})",
                position=self._position, steps=steps,
            )

    def _error(self, kind: FormatErrorKind, message: str, line: bool = True, **context) -> FormatError:
        return FormatError(
            kind,
            message,
            line_number=self._line_number if line else None,
            source=self._source,
            context=context,
        )


# ----------------------------------------------------------------------
# Writing
# ----------------------------------------------------------------------

def _format_fixed(value: float, digits: int) -> str:
    """Fixed-point text when it reproduces the value exactly, else shortest repr"""
    text = f"{value:.{digits}f}"
    return text if float(text) == value else repr(value)


def format_sample(value) -> str:
    """Shortest text that reads back to the same float32"""
    return np.format_float_positional(np.float32(value), unique=True, trim='-')


def format_header(record: Record) -> str:
    return (
        f"{HEADER_SIGIL} "
        f"{_format_fixed(record.start_freq_mhz, 6)},"
        f"{_format_fixed(record.stop_freq_mhz, 6)},"
        f"{record.steps},"
        f"{_format_fixed(record.rbw_khz, 3)},"
        f"{format_log_timestamp(record.start_time)},"
        f"{format_log_timestamp(record.end_time)}"
    )


def iter_log_lines(document: LogDocument, comment: bool = True) -> Iterator[str]:
    """Yield the log text of a document line by line (newline-terminated)"""
    if comment:
        yield HEADER_COMMENT + '\n'
    matrix = document.sample_matrix()
    for record, row in zip(document.records, matrix):
        yield format_header(record) + '\n'
        for value in row:
            yield format_sample(value) + '\n'
        yield '\n'


def serialize_log(document: LogDocument, comment: bool = True) -> str:
    """Render a LogDocument back into log text; parsing it yields an equal document"""
    return ''.join(iter_log_lines(document, comment=comment))


def write_log(document: LogDocument, path: Union[str, Path], comment: bool = True) -> Path:
    path = Path(path)
    with open(path, 'w', newline='\n') as f:
        f.writelines(iter_log_lines(document, comment=comment))
    logger.info(f"Wrote {document.record_count} record(s) to {path}")
    return path


# ----------------------------------------------------------------------
# Convenience functions
# ----------------------------------------------------------------------

def parse_log(stream: LogSource, source: Optional[str] = None) -> LogDocument:
    return LogParser().parse(stream, source)


def parse_log_file(path: Union[str, Path]) -> LogDocument:
    return LogParser().parse_file(path)


def parse_log_directory(directory: Union[str, Path], pattern: str = '*.log') -> LogDocument:
    return LogParser().parse_directory(directory, pattern)
