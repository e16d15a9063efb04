"""
Structured parse/format errors.

A FormatError always says what went wrong (kind), where (source and 1-based
line number when the problem is tied to a line) and with which values
(context), so callers can report or inspect it without string matching.
"""

from enum import Enum
from typing import Any, Dict, Optional


class FormatErrorKind(Enum):
    """Kinds of fatal log/format problems"""
    MALFORMED_HEADER = "malformed_header"
    INVALID_HEADER_VALUE = "invalid_header_value"
    HEADER_MISMATCH = "header_mismatch"
    INVALID_SAMPLE = "invalid_sample"
    NON_FINITE_SAMPLE = "non_finite_sample"
    UNEXPECTED_LINE = "unexpected_line"
    MISSING_BLANK_LINE = "missing_blank_line"
    TRUNCATED_RECORD = "truncated_record"
    NO_RECORDS = "no_records"
    SAMPLE_COUNT_MISMATCH = "sample_count_mismatch"
    DEGENERATE_STEPS = "degenerate_steps"


class FormatError(Exception):
    """
    Fatal structural violation in a sweep log (or in values derived from it).
    
    Attributes:
        kind: FormatErrorKind
        message: Human-readable description of the violated rule
        line_number: 1-based line number, or None for whole-stream conditions
        source: File name or '<stream>'
        context: Offending values (field names, expected/actual, ...)
    """
    
    def __init__(
        self,
        kind: FormatErrorKind,
        message: str,
        line_number: Optional[int] = None,
        source: str = '<stream>',
        context: Optional[Dict[str, Any]] = None
    ):
        self.kind = kind
        self.message = message
        self.line_number = line_number
        self.source = source
        self.context = dict(context or {})
        super().__init__(self._format())
    
    def _format(self) -> str:
        if self.line_number is None:
            return f"{self.source}: {self.message}"
        return f"{self.source}:{self.line_number}: {self.message}"
    
    def __repr__(self):
        return (f"FormatError(kind={self.kind.name}, line_number={self.line_number}, "
                f"source='{self.source}', message='{self.message}')")
