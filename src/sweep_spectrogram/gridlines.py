"""
Frequency gridline placement

Picks a "nice" gridline spacing (5, 2 or 1 times a power of ten, largest
first, starting at 100 GHz) giving at least `min_gridlines` lines over the
swept range, then converts gridline frequencies to pixel columns (one column
per sweep step).
"""

import logging
import math
from typing import Tuple

from .errors import FormatError, FormatErrorKind

logger = logging.getLogger(__name__)

DEFAULT_MIN_GRIDLINES = 6

# Exponent search range for spacing candidates (Hz)
MAX_SPACING_EXPONENT = 11
MIN_SPACING_EXPONENT = 0
SPACING_MANTISSAS = (5, 2, 1)

# Used when the range is too narrow for any candidate
FALLBACK_SPACING_HZ = 1.0


class GridlineCalculator:
    """
    Computes vertical gridline pixel positions for a sweep.

    Usage:
        calc = GridlineCalculator(min_gridlines=6)
        columns = calc.compute(start_hz, stop_hz, steps)   # rightmost first
    """

    def __init__(self, min_gridlines: int = DEFAULT_MIN_GRIDLINES):
        if min_gridlines < 1:
            raise ValueError(f"min_gridlines must be at least 1, got {min_gridlines}")
        self.min_gridlines = min_gridlines

    def spacing(self, freq_range_hz: float) -> float:
        """Largest nice spacing (Hz) giving at least min_gridlines over the range"""
        for exponent in range(MAX_SPACING_EXPONENT, MIN_SPACING_EXPONENT - 1, -1):
            for mantissa in SPACING_MANTISSAS:
                candidate = mantissa * 10.0 ** exponent
                if freq_range_hz / candidate >= self.min_gridlines:
                    return candidate
        logger.debug(f"Range {freq_range_hz} Hz too narrow, using {FALLBACK_SPACING_HZ} Hz spacing")
        return FALLBACK_SPACING_HZ

    def compute(self, start_freq_hz: float, stop_freq_hz: float, steps: int) -> Tuple[int, ...]:
        """
        Compute gridline pixel columns.

        Args:
            start_freq_hz: Frequency of step 0
            stop_freq_hz: Frequency of step `steps - 1`
            steps: Steps per sweep (image width)

        Returns:
            Strictly decreasing pixel columns within [0, steps)

        Raises:
            FormatError: DEGENERATE_STEPS if steps <= 1 or the range is empty
        """
        if steps <= 1:
            raise FormatError(
                FormatErrorKind.DEGENERATE_STEPS,
                f"gridlines need at least 2 steps per sweep, got {steps}",
                context={'steps': steps},
            )
        freq_range = stop_freq_hz - start_freq_hz
        if not freq_range > 0:
            raise FormatError(
                FormatErrorKind.DEGENERATE_STEPS,
                f"empty frequency range {start_freq_hz}-{stop_freq_hz} Hz",
                context={'start_freq_hz': start_freq_hz, 'stop_freq_hz': stop_freq_hz},
            )

        spacing = self.spacing(freq_range)
        step_hz = freq_range / (steps - 1)
        count = int(freq_range / spacing) + 1

        # Rightmost gridline on the largest multiple of spacing not above stop
        anchor = math.floor(stop_freq_hz / spacing) * spacing

        columns = []
        for k in range(count):
            freq = anchor - k * spacing
            if freq < start_freq_hz:
                break
            column = min(int(round((freq - start_freq_hz) / step_hz)), steps - 1)
            if columns and column >= columns[-1]:
                continue
            columns.append(column)

        logger.debug(f"Gridlines every {spacing:g} Hz: {len(columns)} column(s)")
        return tuple(columns)
