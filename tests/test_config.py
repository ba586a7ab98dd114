"""Tests for ConfigManager class."""

import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

import yaml

from kanata_observer.utils.config import (
    DEFAULT_PORT,
    DEFAULT_SCRIPT_PATH,
    ConfigCreated,
    ConfigError,
    ConfigManager,
    ObserverConfig,
    get_config,
    reset_config,
)


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, "config.yaml")
        reset_config()

    def tearDown(self):
        reset_config()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, content: str):
        with open(self.config_path, 'w') as f:
            f.write(content)

    def test_load_valid_config(self):
        self._write_config('port: 10000\nscript_path: "~/bin/layer.sh"\nlog_level: debug\n')

        config = ConfigManager(self.config_path).load_config()

        self.assertEqual(config, ObserverConfig(port=10000, script_path="~/bin/layer.sh", log_level="debug"))

    def test_log_level_defaults_to_info(self):
        self._write_config('port: 10000\nscript_path: /bin/true\n')

        config = ConfigManager(self.config_path).load_config()

        self.assertEqual(config.log_level, "info")

    def test_unknown_keys_ignored(self):
        self._write_config('port: 1\nscript_path: /bin/true\nbrightness: 50\n')

        self.assertEqual(ConfigManager(self.config_path).load_config().port, 1)

    def test_missing_file_creates_default(self):
        """Test a missing config file is generated and reported."""
        nested = os.path.join(self.temp_dir, "nested", "dir", "config.yaml")

        with self.assertRaises(ConfigCreated) as ctx:
            ConfigManager(nested).load_config()

        self.assertEqual(ctx.exception.path, nested)
        self.assertTrue(os.path.exists(nested))
        with open(nested) as f:
            data = yaml.safe_load(f)
        self.assertEqual(data, {
            'port': DEFAULT_PORT,
            'script_path': DEFAULT_SCRIPT_PATH,
            'log_level': 'info',
        })

    def test_generated_default_loads(self):
        with self.assertRaises(ConfigCreated):
            ConfigManager(self.config_path).load_config()

        config = ConfigManager(self.config_path).load_config()

        self.assertEqual(config, ObserverConfig())

    def test_default_creation_failure(self):
        """Test an unwritable config location is a ConfigError."""
        blocker = os.path.join(self.temp_dir, "file")
        self._write_config("")
        os.rename(self.config_path, blocker)

        with self.assertRaises(ConfigError):
            ConfigManager(os.path.join(blocker, "config.yaml")).load_config()

    def test_malformed_yaml(self):
        self._write_config('port: [1, 2\n')

        with self.assertRaises(ConfigError) as ctx:
            ConfigManager(self.config_path).load_config()

        self.assertIn("Failed to parse", str(ctx.exception))

    def test_missing_required_fields(self):
        for content in ('script_path: /bin/true\n', 'port: 5829\n', ''):
            with self.subTest(content=content):
                self._write_config(content)
                with self.assertRaises(ConfigError):
                    ConfigManager(self.config_path).load_config()

    def test_invalid_values(self):
        for content in ('port: "5829"\nscript_path: /bin/true\n',
                        'port: true\nscript_path: /bin/true\n',
                        'port: 70000\nscript_path: /bin/true\n',
                        'port: 0\nscript_path: /bin/true\n',
                        'port: 5829\nscript_path: 12\n',
                        'port: 5829\nscript_path: /bin/true\nlog_level: 3\n',
                        '- just\n- a list\n'):
            with self.subTest(content=content):
                self._write_config(content)
                with self.assertRaises(ConfigError):
                    ConfigManager(self.config_path).load_config()

    def test_config_path_tilde_expanded(self):
        with patch.dict(os.environ, {"HOME": self.temp_dir}):
            manager = ConfigManager("~/config.yaml")

        self.assertEqual(manager.config_path, self.config_path)

    def test_config_cached(self):
        self._write_config('port: 1\nscript_path: /bin/true\n')
        manager = ConfigManager(self.config_path)
        first = manager.load_config()

        self._write_config('port: 2\nscript_path: /bin/true\n')

        self.assertIs(manager.load_config(), first)

    def test_global_config(self):
        """Test get_config returns one shared instance per path."""
        first = get_config(self.config_path)

        self.assertIs(get_config(), first)
        self.assertIs(get_config(self.config_path), first)
        self.assertIsNot(get_config(os.path.join(self.temp_dir, "other.yaml")), first)


if __name__ == '__main__':
    unittest.main()
