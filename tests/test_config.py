"""
Unit tests for dvsync.config module
"""
import unittest
import tempfile
import os
import shutil
import json
import logging
from pathlib import Path
from unittest.mock import patch

import yaml

from dvsync.config import (
    SyncSettings,
    apply_env_overrides,
    configure_logging,
    get_config_path,
    get_default_config,
    load_config,
    merge_configs,
    save_config,
)
from dvsync.exit_codes import ConfigError


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up an isolated HOME without DVSYNC_ variables"""
        self.temp_dir = tempfile.mkdtemp()
        clean_env = {k: v for k, v in os.environ.items() if not k.startswith('DVSYNC_')}
        clean_env['HOME'] = self.temp_dir
        self.env = patch.dict(os.environ, clean_env, clear=True)
        self.env.start()
        self.config_dir = Path(self.temp_dir) / '.dvsync'

    def tearDown(self):
        """Clean up test environment"""
        self.env.stop()
        shutil.rmtree(self.temp_dir)

    def test_get_default_config(self):
        """Test default configuration structure"""
        config = get_default_config()

        self.assertIn('diversion', config)
        self.assertIn('sync', config)
        self.assertIn('patch', config)
        self.assertIn('logging', config)
        self.assertEqual(config['diversion']['branch_name'], 'main')
        self.assertEqual(config['sync']['max_checkout_retries'], 10)
        self.assertEqual(config['sync']['checkout_retry_delay_ms'], 1000)

    def test_load_config_no_file(self):
        """Test loading config when no file exists"""
        config = load_config()
        self.assertEqual(config, get_default_config())

    def test_default_config_path(self):
        """Test the default path when nothing exists yet"""
        self.assertEqual(get_config_path(), self.config_dir / 'config.json')

    def test_load_config_json_file(self):
        """Test loading a JSON config file from ~/.dvsync"""
        self.config_dir.mkdir()
        with open(self.config_dir / 'config.json', 'w') as f:
            json.dump({'diversion': {'repository_id': 'dv.repo.7'}}, f)

        config = load_config()

        self.assertEqual(config['diversion']['repository_id'], 'dv.repo.7')
        # Defaults are kept for keys the file does not set
        self.assertEqual(config['diversion']['executable'], 'dv')

    def test_load_config_toml_file(self):
        """Test loading a TOML config file"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.toml').write_text(
            '[sync]\nlog_fetch_buffer = 25\n'
        )

        config = load_config()

        self.assertEqual(config['sync']['log_fetch_buffer'], 25)

    def test_load_config_yaml_file(self):
        """Test loading a YAML config file"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.yaml').write_text(
            yaml.safe_dump({'diversion': {'branch_name': 'release'}})
        )

        config = load_config()

        self.assertEqual(config['diversion']['branch_name'], 'release')

    def test_config_env_variable(self):
        """Test DVSYNC_CONFIG pointing at a file"""
        path = Path(self.temp_dir) / 'custom.json'
        path.write_text(json.dumps({'diversion': {'executable': '/opt/dv/bin/dv'}}))
        os.environ['DVSYNC_CONFIG'] = str(path)

        self.assertEqual(get_config_path(), path)
        self.assertEqual(load_config()['diversion']['executable'], '/opt/dv/bin/dv')

    def test_explicit_missing_file(self):
        """Test that an explicit path must exist"""
        with self.assertRaises(ConfigError):
            load_config(Path(self.temp_dir) / 'missing.json')

    def test_explicit_invalid_file(self):
        """Test that an explicit unreadable file is an error"""
        path = Path(self.temp_dir) / 'broken.json'
        path.write_text('{not json')

        with self.assertRaises(ConfigError):
            load_config(path)

    def test_non_mapping_file(self):
        """Test that a config file must hold a mapping"""
        path = Path(self.temp_dir) / 'list.yaml'
        path.write_text('- a\n- b\n')

        with self.assertRaises(ConfigError):
            load_config(path)

    def test_environment_override(self):
        """Test environment variable override"""
        os.environ['DVSYNC_SYNC_LOG_FETCH_BUFFER'] = '25'
        config = load_config()
        self.assertEqual(config['sync']['log_fetch_buffer'], 25)

    def test_nested_environment_override(self):
        """Test multi-word keys and string values"""
        os.environ['DVSYNC_DIVERSION_REPOSITORY_ID'] = 'dv.repo.99'
        os.environ['DVSYNC_DIVERSION_BRANCH_NAME'] = 'release'
        config = load_config()
        self.assertEqual(config['diversion']['repository_id'], 'dv.repo.99')
        self.assertEqual(config['diversion']['branch_name'], 'release')

    def test_boolean_and_unknown_overrides(self):
        """Test boolean coercion and ignoring unknown keys"""
        config = {'feature': {'enabled': False}}
        with patch.dict(os.environ, {'DVSYNC_FEATURE_ENABLED': 'yes', 'DVSYNC_NOPE': '1'}):
            result = apply_env_overrides(config)
        self.assertIs(result['feature']['enabled'], True)
        self.assertNotIn('nope', result)

    def test_save_config_json(self):
        """Test saving configuration as JSON"""
        path = save_config({'diversion': {'repository_id': 'dv.repo.1'}})

        self.assertEqual(path, self.config_dir / 'config.json')
        with open(path) as f:
            self.assertEqual(json.load(f)['diversion']['repository_id'], 'dv.repo.1')

    def test_save_config_yaml(self):
        """Test saving configuration as YAML"""
        path = save_config({'sync': {'log_fetch_buffer': 5}}, self.config_dir / 'config.yml')

        self.assertEqual(yaml.safe_load(path.read_text()), {'sync': {'log_fetch_buffer': 5}})

    def test_save_config_toml_falls_back_to_json(self):
        """Test that TOML paths are written as JSON"""
        path = save_config({'a': 1}, self.config_dir / 'config.toml')

        self.assertEqual(path.suffix, '.json')
        self.assertEqual(json.loads(path.read_text()), {'a': 1})

    def test_merge_configs(self):
        """Test recursive merging"""
        base = {'a': {'x': 1, 'y': 2}, 'b': 1}
        override = {'a': {'y': 3}, 'c': 4}

        merged = merge_configs(base, override)

        self.assertEqual(merged, {'a': {'x': 1, 'y': 3}, 'b': 1, 'c': 4})
        self.assertEqual(base['a']['y'], 2)


class TestSyncSettings(unittest.TestCase):
    """Test typed settings built from config"""

    def test_defaults(self):
        settings = SyncSettings.from_config(get_default_config())

        self.assertEqual(settings.branch_name, 'main')
        self.assertEqual(settings.executable, 'dv')
        self.assertIsNone(settings.working_directory)
        self.assertEqual(settings.max_checkout_retries, 10)
        self.assertEqual(settings.checkout_retry_delay, 1.0)
        self.assertEqual(settings.log_fetch_buffer, 10)
        self.assertEqual(settings.max_refetch_rounds, 2)
        self.assertIsNone(settings.command_timeout)
        self.assertEqual(settings.metadata_directories, ('.dv', '.diversion'))

    def test_converts_values(self):
        config = merge_configs(get_default_config(), {
            'diversion': {'working_directory': '/srv/ws', 'repository_id': ' dv.repo.3 '},
            'sync': {'checkout_retry_delay_ms': 250, 'command_timeout_seconds': 30},
        })

        settings = SyncSettings.from_config(config)

        self.assertEqual(settings.working_directory, Path('/srv/ws'))
        self.assertEqual(settings.repository_id, 'dv.repo.3')
        self.assertEqual(settings.checkout_retry_delay, 0.25)
        self.assertEqual(settings.command_timeout, 30.0)

    def test_rejects_invalid_numbers(self):
        with self.assertRaises(ConfigError):
            SyncSettings.from_config({'sync': {'log_fetch_buffer': 'many'}})
        with self.assertRaises(ConfigError):
            SyncSettings.from_config({'sync': {'max_checkout_retries': 0}})
        with self.assertRaises(ConfigError):
            SyncSettings.from_config({'sync': {'max_refetch_rounds': -1}})


class TestConfigureLogging(unittest.TestCase):
    """Test logger setup"""

    def tearDown(self):
        logging.getLogger('dvsync').handlers[:] = []

    def test_level_from_config(self):
        configure_logging({'logging': {'level': 'warning'}})
        self.assertEqual(logging.getLogger('dvsync').level, logging.WARNING)

    def test_verbose_wins(self):
        configure_logging({'logging': {'level': 'ERROR'}}, verbose=True)
        logger = logging.getLogger('dvsync')
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(logger.handlers), 1)


if __name__ == '__main__':
    unittest.main()
