"""
Tests for run configuration loading and validation
"""

import unittest
import sys
import tempfile
import shutil
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from evoimage.config_loader import (
    DEFAULT_CONFIG,
    ConfigurationError,
    load_config,
    merge_config,
    resolve_thread_count,
    validate_config,
)


class TestLoadConfig(unittest.TestCase):
    """Test YAML loading and default merging"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, text):
        path = self.temp_path / "config.yaml"
        path.write_text(text)
        return str(path)

    def test_merges_over_defaults(self):
        path = self._write("image: lenna.png\ngeneration:\n  size: 50\n")
        config = load_config(path)

        self.assertEqual(config['image'], "lenna.png")
        self.assertEqual(config['generation']['size'], 50)
        # Untouched nested defaults survive
        self.assertEqual(config['generation']['threads'], 1)
        self.assertEqual(config['strategies']['mutator'], "rectangle")
        self.assertEqual(config['strategies']['crossover'], "left_or_right")

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            load_config(str(self.temp_path / "missing.yaml"))

    def test_invalid_yaml(self):
        path = self._write("generation: [unclosed\n")
        with self.assertRaises(ConfigurationError):
            load_config(path)

    def test_empty_file(self):
        path = self._write("")
        with self.assertRaises(ConfigurationError):
            load_config(path)

    def test_non_mapping_root(self):
        path = self._write("- a\n- b\n")
        with self.assertRaises(ConfigurationError):
            load_config(path)

    def test_null_section_is_rejected(self):
        for text in ("strategies: null\n", "generation: null\n", "display:\n", "output: null\n"):
            with self.subTest(text=text):
                path = self._write("image: lenna.png\n" + text)
                with self.assertRaises(ConfigurationError) as ctx:
                    load_config(path)
                self.assertIn("must be a mapping", str(ctx.exception))

    def test_scalar_section_is_rejected(self):
        path = self._write("generation: 50\n")
        with self.assertRaises(ConfigurationError):
            load_config(path)

    def test_merge_does_not_modify_defaults(self):
        merged = merge_config(DEFAULT_CONFIG, {'generation': {'size': 7}})
        self.assertEqual(merged['generation']['size'], 7)
        self.assertEqual(DEFAULT_CONFIG['generation']['size'], 100)


class TestValidateConfig(unittest.TestCase):
    """Test engine parameter validation"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config = merge_config(DEFAULT_CONFIG, {'image': 'target.png'})

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_defaults_are_valid(self):
        self.assertEqual(validate_config(self.config), [])

    def test_section_set_to_none_is_reported(self):
        self.config['generation'] = None
        issues = validate_config(self.config)
        self.assertEqual(len(issues), 1)
        self.assertIn("'generation' must be a mapping", issues[0])

    def test_generation_size_below_three(self):
        self.config['generation']['size'] = 2
        issues = validate_config(self.config)
        self.assertEqual(len(issues), 1)
        self.assertIn("smaller than 3", issues[0])

    def test_generation_size_three_is_valid(self):
        self.config['generation']['size'] = 3
        self.assertEqual(validate_config(self.config), [])

    def test_unknown_color_mode(self):
        self.config['color_mode'] = "cmyk"
        self.assertEqual(len(validate_config(self.config)), 1)

    def test_non_positive_threads(self):
        self.config['generation']['threads'] = 0
        self.assertEqual(len(validate_config(self.config)), 1)

    def test_auto_threads(self):
        self.config['generation']['threads'] = "auto"
        self.assertEqual(validate_config(self.config), [])
        self.assertGreaterEqual(resolve_thread_count("auto"), 1)

    def test_display_every_needs_positive_gap(self):
        self.config['display'] = {'mode': 'every', 'every': 0}
        self.assertEqual(len(validate_config(self.config)), 1)

        self.config['display'] = {'mode': 'every', 'every': 50}
        self.assertEqual(validate_config(self.config), [])

    def test_unknown_display_mode(self):
        self.config['display']['mode'] = "sometimes"
        self.assertEqual(len(validate_config(self.config)), 1)

    def test_save_requires_directory(self):
        self.config['output']['save'] = "all"
        issues = validate_config(self.config)
        self.assertEqual(len(issues), 1)
        self.assertIn("output.directory", issues[0])

    def test_save_directory_must_exist(self):
        self.config['output']['save'] = "all"
        self.config['output']['directory'] = str(Path(self.temp_dir) / "nope")
        self.assertEqual(len(validate_config(self.config)), 1)

    def test_save_each_needs_positive_gap(self):
        self.config['output'].update({'save': 'each', 'each': 0, 'directory': self.temp_dir})
        self.assertEqual(len(validate_config(self.config)), 1)

        self.config['output']['each'] = 100
        self.assertEqual(validate_config(self.config), [])

    def test_negative_seed(self):
        self.config['random_seed'] = -1
        self.assertEqual(len(validate_config(self.config)), 1)

    def test_max_generations(self):
        self.config['generation']['max_generations'] = 0
        self.assertEqual(len(validate_config(self.config)), 1)

        self.config['generation']['max_generations'] = 10
        self.assertEqual(validate_config(self.config), [])


if __name__ == '__main__':
    unittest.main()
