#!/usr/bin/env python3
"""
Sweep Timing Consistency Checker

Inspects the start/end timestamps of a parsed log and reports cadence
problems. The check is advisory: it never raises, and rendering proceeds
regardless of what it finds.

Checks:
-------
- Total span not divisible by the number of intervals
- Nominal interval not a divisor of 60 s (downstream tools align on minutes)
- Start/end ordering between adjacent records (overlap)
- End time earlier than start time within a record
- Interval between consecutive starts changing (reported once per change)
- Negative interval between consecutive starts
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from .models import Record

logger = logging.getLogger(__name__)


class TimingAnomalyKind(Enum):
    RANGE_NOT_DIVISIBLE = "range_not_divisible"
    INTERVAL_NOT_DIVISOR_OF_60 = "interval_not_divisor_of_60"
    OVERLAP = "overlap"
    END_BEFORE_START = "end_before_start"
    VARIANT_INTERVAL = "variant_interval"
    NEGATIVE_INTERVAL = "negative_interval"


@dataclass(frozen=True)
class TimingAnomaly:
    """One advisory timing problem; record_index is 0-based (None for whole-log checks)"""
    kind: TimingAnomalyKind
    message: str
    record_index: Optional[int] = None


@dataclass
class TimingReport:
    """Result of a timing consistency check"""
    record_count: int = 0
    nominal_interval: Optional[int] = None  # seconds
    skipped: bool = False

    range_not_divisible: bool = False
    interval_not_divisor_of_60: bool = False
    overlap: bool = False
    end_before_start: bool = False
    variant_interval: bool = False
    negative_interval: bool = False

    inconsistency_count: int = 0
    anomalies: List[TimingAnomaly] = field(default_factory=list)

    @property
    def has_problems(self) -> bool:
        return bool(self.anomalies)

    def to_dict(self) -> dict:
        return {
            'record_count': self.record_count,
            'nominal_interval': self.nominal_interval,
            'skipped': self.skipped,
            'range_not_divisible': self.range_not_divisible,
            'interval_not_divisor_of_60': self.interval_not_divisor_of_60,
            'overlap': self.overlap,
            'end_before_start': self.end_before_start,
            'variant_interval': self.variant_interval,
            'negative_interval': self.negative_interval,
            'inconsistency_count': self.inconsistency_count,
            'anomalies': [
                {'kind': a.kind.value, 'record_index': a.record_index, 'message': a.message}
                for a in self.anomalies
            ],
        }


def _seconds_between(earlier: datetime, later: datetime) -> int:
    return int((later - earlier).total_seconds())


def _truncating_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


class TimeConsistencyChecker:
    """
    Checks sweep cadence across the records of one log.

    Usage:
        report = TimeConsistencyChecker().check(document.records)
        if report.has_problems:
            ...
    """

    def check(self, records: Sequence[Record]) -> TimingReport:
        """
        Check timing of a record sequence.

        Args:
            records: Records in log order

        Returns:
            TimingReport (never raises)
        """
        report = TimingReport(record_count=len(records))

        if len(records) < 2:
            # No interval to derive from a single sweep
            report.skipped = True
            logger.debug(f"Timing check skipped for {len(records)} record(s)")
            return report

        intervals = len(records) - 1
        span = _seconds_between(records[0].start_time, records[-1].start_time)
        interval = _truncating_div(span, intervals)
        report.nominal_interval = interval

        if span % intervals != 0:
            report.range_not_divisible = True
            self._add(report, TimingAnomalyKind.RANGE_NOT_DIVISIBLE,
                      f"time range in seconds ({span}) is not divisible by "
                      f"interval count ({intervals})")

        if interval == 0 or 60 % abs(interval) != 0:
            report.interval_not_divisor_of_60 = True
            self._add(report, TimingAnomalyKind.INTERVAL_NOT_DIVISOR_OF_60,
                      f"time interval {interval}s is not a factor of 60")

        reference_interval = interval
        for i in range(intervals):
            current, following = records[i], records[i + 1]
            s1, e1 = current.start_time, current.end_time
            s2, e2 = following.start_time, following.end_time

            if not (s1 <= e1 <= s2 <= e2 and s1 < s2):
                report.overlap = True
                self._add(report, TimingAnomalyKind.OVERLAP,
                          f"timestamp overlap between record #{i + 1} and #{i + 2}",
                          record_index=i, counted=True)

            if e1 < s1:
                self._end_before_start(report, i)
            if i == intervals - 1 and e2 < s2:
                self._end_before_start(report, i + 1)

            gap = _seconds_between(s1, s2)
            if gap != reference_interval:
                report.variant_interval = True
                self._add(report, TimingAnomalyKind.VARIANT_INTERVAL,
                          f"interval between record #{i + 1} and #{i + 2} changed "
                          f"from {reference_interval}s to {gap}s",
                          record_index=i, counted=True)
            if gap < 0:
                report.negative_interval = True
                self._add(report, TimingAnomalyKind.NEGATIVE_INTERVAL,
                          f"record #{i + 2} starts {-gap}s before record #{i + 1}",
                          record_index=i, counted=True)
            reference_interval = gap

        if report.inconsistency_count > 0:
            logger.warning(f"{report.inconsistency_count} inconsistency(s) found")
        if report.has_problems:
            logger.warning("Problems found, operations involving time may not be correct")

        return report

    def _end_before_start(self, report: TimingReport, index: int) -> None:
        report.end_before_start = True
        self._add(report, TimingAnomalyKind.END_BEFORE_START,
                  f"end time is earlier than start time in record #{index + 1}",
                  record_index=index, counted=True)

    @staticmethod
    def _add(report: TimingReport, kind: TimingAnomalyKind, message: str,
             record_index: Optional[int] = None, counted: bool = False) -> None:
        report.anomalies.append(TimingAnomaly(kind=kind, message=message, record_index=record_index))
        if counted:
            report.inconsistency_count += 1
        logger.warning(message)


def check_timing(records: Sequence[Record]) -> TimingReport:
    return TimeConsistencyChecker().check(records)
