"""
Sweep Spectrogram Version Information

Centralized version constants plus the timestamp utilities shared by the
log parser, the renderer footer and the output file naming.

Log timestamps are fixed-width `YYYYMMDDTHHMMSS` strings, second resolution,
read as naive UTC wall clock.
"""

import re
from datetime import datetime, timezone
from typing import Optional

# =============================================================================
# VERSION CONSTANTS
# =============================================================================

SWEEP_SPECTROGRAM_VERSION = "1.0.0"


# =============================================================================
# TIMESTAMP UTILITIES
# =============================================================================

LOG_TIMESTAMP_FORMAT = '%Y%m%dT%H%M%S'

_LOG_TIMESTAMP_RE = re.compile(r'\d{8}T\d{6}')


def utc_now() -> datetime:
    """Get current time in UTC with timezone info."""
    return datetime.now(timezone.utc)


def parse_log_timestamp(text: str) -> datetime:
    """Parse a `YYYYMMDDTHHMMSS` log timestamp.
    
    Args:
        text: Timestamp text, exactly 15 characters
        
    Returns:
        Naive datetime (UTC wall clock)
        
    Raises:
        ValueError: If the text is not a valid fixed-width timestamp
    """
    if not _LOG_TIMESTAMP_RE.fullmatch(text):
        raise ValueError(f"timestamp {text!r} is not in YYYYMMDDTHHMMSS form")
    return datetime.strptime(text, LOG_TIMESTAMP_FORMAT)


def format_log_timestamp(when: datetime) -> str:
    """Format a datetime as a `YYYYMMDDTHHMMSS` log timestamp."""
    return when.strftime(LOG_TIMESTAMP_FORMAT)


def generation_timestamp(now: Optional[datetime] = None) -> str:
    """Current UTC time in log timestamp form (used for image footers)."""
    return format_log_timestamp(now or utc_now())


def get_version_string() -> str:
    """Get formatted version string for logging."""
    return f"Sweep Spectrogram v{SWEEP_SPECTROGRAM_VERSION}"
