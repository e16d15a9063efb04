"""
Spectrogram configuration

A single immutable SpectrogramConfig is built once at startup (defaults,
then an optional TOML file, then command line overrides) and passed into the
parser/renderer pipeline.

Example TOML:
    [spectrogram]
    source = "/var/log/tinysa"
    prefix = "hf"
    title = "HF 1-30 MHz"
    gridlines = true
    min_gridlines = 6
"""

import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import toml

from .colormap import DEFAULT_CMAP, DEFAULT_MAX_DBM, DEFAULT_MIN_DBM
from .gridlines import DEFAULT_MIN_GRIDLINES

logger = logging.getLogger(__name__)

CONFIG_SECTION = 'spectrogram'
STDIN_SOURCE = '-'


@dataclass(frozen=True)
class SpectrogramConfig:
    """Configuration for log parsing and spectrogram rendering."""
    # Input / output
    source: str = STDIN_SOURCE       # log file, directory of .log files, or '-' for stdin
    prefix: str = 'spectrogram'      # output file is <prefix>.<end_time>.png
    output_dir: str = '.'

    # Layout
    title: str = ''
    banner_height: int = 24
    footer_height: int = 16
    font_family: str = 'monospace'

    # Gridlines
    gridlines: bool = True
    min_gridlines: int = DEFAULT_MIN_GRIDLINES
    gridline_alpha: float = 0.35

    # Display window (dBm) and palette
    min_power_dbm: float = DEFAULT_MIN_DBM
    max_power_dbm: float = DEFAULT_MAX_DBM
    cmap: str = DEFAULT_CMAP

    # Processing
    workers: int = 1
    check_timing: bool = True

    def __post_init__(self):
        if self.banner_height < 0 or self.footer_height < 0:
            raise ValueError(
                f"banner/footer heights must be >= 0, got {self.banner_height}/{self.footer_height}"
            )
        if self.min_gridlines < 1:
            raise ValueError(f"min_gridlines must be >= 1, got {self.min_gridlines}")
        if not self.min_power_dbm < self.max_power_dbm:
            raise ValueError(
                f"min_power_dbm ({self.min_power_dbm}) must be below max_power_dbm ({self.max_power_dbm})"
            )
        if not 0.0 <= self.gridline_alpha <= 1.0:
            raise ValueError(f"gridline_alpha must be within [0, 1], got {self.gridline_alpha}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    @property
    def reads_stdin(self) -> bool:
        return self.source == STDIN_SOURCE

    def with_overrides(self, **overrides) -> 'SpectrogramConfig':
        """Copy with the given fields replaced; None values are ignored"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'SpectrogramConfig':
        """
        Build from a mapping (e.g. the [spectrogram] TOML table).

        Raises:
            ValueError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(unknown)}")
        return cls(**values)


def load_config(config_path: Union[str, Path], base: Optional[SpectrogramConfig] = None) -> SpectrogramConfig:
    """
    Load configuration from a TOML file.

    Args:
        config_path: Path to TOML file with a [spectrogram] table
        base: Defaults to start from

    Returns:
        SpectrogramConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        try:
            config = toml.load(f)
        except toml.TomlDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    section = config.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ValueError(f"[{CONFIG_SECTION}] in {config_path} must be a table")

    base = base or SpectrogramConfig()
    try:
        loaded = SpectrogramConfig.from_dict({**asdict(base), **section})
    except ValueError as e:
        raise ValueError(f"{config_path}: {e}") from e

    logger.info(f"Loaded configuration from {config_path}")
    return loaded
