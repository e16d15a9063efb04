"""
Sweep log data model

Record describes one sweep (frequency range, step count, RBW and the sweep's
begin/end timestamps). LogDocument owns the ordered Records and the flat
float32 sample buffer, record-major then step-minor.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

import numpy as np

from .version import format_log_timestamp


# Instrument RBW upper bound (kHz)
MAX_RBW_KHZ = 1000.0


@dataclass(frozen=True)
class Record:
    """
    Metadata of one sweep.
    
    Attributes:
        start_freq_mhz: First step frequency in MHz
        stop_freq_mhz: Last step frequency in MHz
        steps: Number of power samples in the sweep
        rbw_khz: Resolution bandwidth in kHz
        start_time: Sweep start (naive UTC)
        end_time: Sweep end (naive UTC)
    """
    start_freq_mhz: float
    stop_freq_mhz: float
    steps: int
    rbw_khz: float
    start_time: datetime
    end_time: datetime
    
    @property
    def start_freq_hz(self) -> float:
        return self.start_freq_mhz * 1e6
    
    @property
    def stop_freq_hz(self) -> float:
        return self.stop_freq_mhz * 1e6
    
    def __str__(self):
        return (f"{self.start_freq_mhz:.6f}-{self.stop_freq_mhz:.6f}MHz/"
                f"{self.steps} steps/RBW {self.rbw_khz:.3f}kHz/"
                f"{format_log_timestamp(self.start_time)}-{format_log_timestamp(self.end_time)}")


class LogDocument:
    """
    Parsed sweep log: ordered Records plus the flat sample buffer.
    
    Immutable once constructed; the sample buffer is a read-only float32
    array of length `record_count * steps`.
    """
    
    def __init__(self, records: Tuple[Record, ...], samples: np.ndarray):
        if not records:
            raise ValueError("LogDocument requires at least one record")
        samples = np.array(samples, dtype=np.float32).reshape(-1)
        expected = len(records) * records[0].steps
        if samples.size != expected:
            raise ValueError(
                f"sample buffer holds {samples.size} values, expected {expected} "
                f"({len(records)} records x {records[0].steps} steps)"
            )
        samples.setflags(write=False)
        self._records = tuple(records)
        self._samples = samples
    
    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records
    
    @property
    def samples(self) -> np.ndarray:
        return self._samples
    
    @property
    def record_count(self) -> int:
        return len(self._records)
    
    @property
    def steps(self) -> int:
        return self._records[0].steps
    
    @property
    def first(self) -> Record:
        return self._records[0]
    
    @property
    def last(self) -> Record:
        return self._records[-1]
    
    def sample_matrix(self) -> np.ndarray:
        """Samples as a (record_count, steps) read-only view"""
        return self._samples.reshape(self.record_count, self.steps)
    
    def __len__(self):
        return len(self._records)
    
    def __eq__(self, other):
        if not isinstance(other, LogDocument):
            return NotImplemented
        return (self._records == other._records and
                np.array_equal(self._samples, other._samples))
    
    def __repr__(self):
        return f"LogDocument(records={self.record_count}, steps={self.steps})"
