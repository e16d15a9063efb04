import unittest
from pathlib import Path

import numpy as np

# Adjust path to import the actual classes
import sys
src_path = str(Path(__file__).parent.parent / 'src')
if src_path not in sys.path:
    sys.path.append(src_path)

from sweep_spectrogram.colormap import ColorMapper


def luminance(rgb):
    # Luminance weights the cubehelix scheme is built around
    r, g, b = rgb
    return 0.30 * r + 0.59 * g + 0.11 * b


class TestColorMapper(unittest.TestCase):
    def setUp(self):
        self.mapper = ColorMapper()

    def test_window_ends_are_palette_extremes(self):
        self.assertEqual(self.mapper.map(-120.0), (0, 0, 0))
        self.assertEqual(self.mapper.map(-20.0), (255, 255, 255))

    def test_out_of_window_values_clamp(self):
        self.assertEqual(self.mapper.map(-150.0), self.mapper.map(-120.0))
        self.assertEqual(self.mapper.map(-1000.0), self.mapper.map(-120.0))
        self.assertEqual(self.mapper.map(0.0), self.mapper.map(-20.0))
        self.assertEqual(self.mapper.map(35.0), self.mapper.map(-20.0))

    def test_lightness_increases_over_window(self):
        levels = [luminance(self.mapper.map(p)) for p in np.linspace(-120.0, -20.0, 11)]
        for lower, higher in zip(levels, levels[1:]):
            self.assertGreater(higher, lower)

    def test_hue_varies_inside_window(self):
        r, g, b = self.mapper.map(-70.0)
        self.assertFalse(r == g == b)

    def test_nan_maps_to_low_end(self):
        self.assertEqual(self.mapper.map(float('nan')), (0, 0, 0))

    def test_map_array_matches_scalar_map(self):
        powers = np.array([[-130.0, -100.0, -70.0], [-45.5, -20.0, 10.0]], dtype=np.float32)
        colors = self.mapper.map_array(powers)

        self.assertEqual(colors.shape, (2, 3, 3))
        self.assertEqual(colors.dtype, np.uint8)
        for index in np.ndindex(powers.shape):
            self.assertEqual(tuple(int(c) for c in colors[index]), self.mapper.map(float(powers[index])))

    def test_custom_window(self):
        mapper = ColorMapper(min_dbm=-100.0, max_dbm=0.0)
        self.assertEqual(mapper.map(0.0), (255, 255, 255))
        self.assertEqual(mapper.map(-100.0), (0, 0, 0))
        self.assertNotEqual(mapper.map(-20.0), (255, 255, 255))

    def test_empty_window_rejected(self):
        with self.assertRaises(ValueError):
            ColorMapper(min_dbm=-20.0, max_dbm=-20.0)


if __name__ == '__main__':
    unittest.main()
