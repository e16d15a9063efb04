"""
Power to color mapping

Maps calibrated power (dBm) onto a sequential palette over a fixed display
window, -120 dBm (dark end) to -20 dBm (bright end) by default. The default
palette is cubehelix: lightness rises monotonically while the hue rotates.
Out-of-window values clamp to the nearest end.
"""

from typing import Tuple

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import numpy as np

DEFAULT_MIN_DBM = -120.0
DEFAULT_MAX_DBM = -20.0
DEFAULT_CMAP = 'cubehelix'


class ColorMapper:
    """
    Power (dBm) -> 8-bit RGB.

    Args:
        min_dbm: Power mapped to the palette's low end
        max_dbm: Power mapped to the palette's high end
        cmap: Name of a registered matplotlib colormap
    """

    def __init__(self, min_dbm: float = DEFAULT_MIN_DBM, max_dbm: float = DEFAULT_MAX_DBM,
                 cmap: str = DEFAULT_CMAP):
        if not min_dbm < max_dbm:
            raise ValueError(f"display window is empty: {min_dbm} dBm .. {max_dbm} dBm")
        self.min_dbm = float(min_dbm)
        self.max_dbm = float(max_dbm)
        self.cmap_name = cmap
        self._cmap = matplotlib.colormaps[cmap]

    def normalize(self, power_dbm) -> np.ndarray:
        """Clamp power into [0, 1] over the display window (NaN -> 0)"""
        values = np.asarray(power_dbm, dtype=np.float64)
        scaled = (values - self.min_dbm) / (self.max_dbm - self.min_dbm)
        return np.clip(np.nan_to_num(scaled, nan=0.0), 0.0, 1.0)

    def map_array(self, power_dbm) -> np.ndarray:
        """Vectorised mapping: array of any shape -> uint8 array of shape + (3,)"""
        # Colormaps return a tuple for 0-d input
        rgba = np.asarray(self._cmap(self.normalize(power_dbm), bytes=True))
        return np.ascontiguousarray(rgba[..., :3])

    def map(self, power_dbm: float) -> Tuple[int, int, int]:
        r, g, b = self.map_array(np.array([power_dbm], dtype=np.float64))[0]
        return int(r), int(g), int(b)

    def __repr__(self):
        return f"ColorMapper(min_dbm={self.min_dbm}, max_dbm={self.max_dbm}, cmap='{self.cmap_name}')"
