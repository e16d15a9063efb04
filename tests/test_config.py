import unittest
import tempfile
import shutil
from pathlib import Path

# Adjust path to import the actual classes
import sys
src_path = str(Path(__file__).parent.parent / 'src')
if src_path not in sys.path:
    sys.path.append(src_path)

from sweep_spectrogram.config import SpectrogramConfig, load_config


class TestSpectrogramConfig(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_defaults(self):
        config = SpectrogramConfig()

        self.assertTrue(config.reads_stdin)
        self.assertTrue(config.gridlines)
        self.assertEqual(config.min_gridlines, 6)
        self.assertEqual((config.min_power_dbm, config.max_power_dbm), (-120.0, -20.0))
        self.assertEqual(config.workers, 1)

    def test_invalid_values_rejected(self):
        for kwargs in ({'banner_height': -1}, {'footer_height': -5}, {'min_gridlines': 0},
                       {'min_power_dbm': -20.0}, {'gridline_alpha': 1.5}, {'workers': 0}):
            with self.subTest(**kwargs):
                with self.assertRaises(ValueError):
                    SpectrogramConfig(**kwargs)

    def test_with_overrides_ignores_none(self):
        config = SpectrogramConfig(title='base').with_overrides(title=None, prefix='hf', gridlines=False)

        self.assertEqual(config.title, 'base')
        self.assertEqual(config.prefix, 'hf')
        self.assertFalse(config.gridlines)

    def test_from_dict_rejects_unknown_keys(self):
        with self.assertRaises(ValueError):
            SpectrogramConfig.from_dict({'title': 'x', 'colour': 'red'})
        self.assertEqual(SpectrogramConfig.from_dict({'title': 'x'}).title, 'x')

    def test_load_config(self):
        path = self.test_dir / 'log2png.toml'
        path.write_text(
            '[spectrogram]\n'
            'source = "/var/log/tinysa"\n'
            'prefix = "hf"\n'
            'title = "HF 1-30 MHz"\n'
            'gridlines = false\n'
            'min_power_dbm = -110.0\n'
            'banner_height = 30\n'
        )
        config = load_config(path)

        self.assertEqual(config.source, '/var/log/tinysa')
        self.assertEqual(config.title, 'HF 1-30 MHz')
        self.assertFalse(config.gridlines)
        self.assertEqual(config.min_power_dbm, -110.0)
        self.assertEqual(config.banner_height, 30)
        self.assertEqual(config.footer_height, 16)

    def test_load_config_merges_onto_base(self):
        path = self.test_dir / 'log2png.toml'
        path.write_text('[spectrogram]\nprefix = "vhf"\n')
        base = SpectrogramConfig(title='Rooftop', workers=4)

        config = load_config(path, base=base)

        self.assertEqual(config.prefix, 'vhf')
        self.assertEqual(config.title, 'Rooftop')
        self.assertEqual(config.workers, 4)

    def test_load_config_unknown_key_names_file(self):
        path = self.test_dir / 'unknown.toml'
        path.write_text('[spectrogram]\nbogus = 1\n')

        with self.assertRaises(ValueError) as ctx:
            load_config(path)
        self.assertIn('bogus', str(ctx.exception))
        self.assertIn('unknown.toml', str(ctx.exception))

    def test_load_config_errors(self):
        with self.assertRaises(FileNotFoundError):
            load_config(self.test_dir / 'missing.toml')

        unknown = self.test_dir / 'unknown.toml'
        unknown.write_text('[spectrogram]\nbogus = 1\n')
        with self.assertRaises(ValueError):
            load_config(unknown)

        invalid = self.test_dir / 'invalid.toml'
        invalid.write_text('[spectrogram]\nworkers = 0\n')
        with self.assertRaises(ValueError):
            load_config(invalid)

        broken = self.test_dir / 'broken.toml'
        broken.write_text('[spectrogram\n')
        with self.assertRaises(ValueError):
            load_config(broken)


if __name__ == '__main__':
    unittest.main()
