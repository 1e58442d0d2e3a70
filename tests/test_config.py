"""
Unit tests for pawndex.config module
"""
import json
import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from pawndex.config import (
    apply_env_overrides,
    configure_logging,
    daemon_settings,
    get_config_path,
    get_default_config,
    load_config,
    merge_configs,
    save_config,
)
from pawndex.database.connection import get_db_path
from pawndex.exit_codes import CONFIG_ERROR, ConfigError


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'HOME': self.temp_dir}, clear=True)
        self.env.start()

    def tearDown(self):
        """Clean up test environment"""
        self.env.stop()
        shutil.rmtree(self.temp_dir)

    def _write(self, name, text):
        config_dir = Path(self.temp_dir) / '.pawndex'
        config_dir.mkdir(exist_ok=True)
        path = config_dir / name
        path.write_text(text)
        return path

    def test_default_config(self):
        config = get_default_config()
        self.assertEqual(config['daemon']['workers'], 4)
        self.assertEqual(config['search']['max_results'], 1000)
        self.assertIn('topic:pawn-package', config['search']['queries'])
        self.assertIn('level', config['logging'])

    def test_load_config_no_file(self):
        self.assertEqual(load_config(), get_default_config())

    def test_default_config_path(self):
        self.assertEqual(get_config_path(), Path(self.temp_dir) / '.pawndex' / 'config.json')

    def test_load_json(self):
        self._write('config.json', json.dumps({'daemon': {'workers': 8}}))
        config = load_config()
        self.assertEqual(config['daemon']['workers'], 8)
        # Unrelated defaults survive the merge
        self.assertEqual(config['daemon']['scrape_interval_seconds'], 60)

    def test_load_toml(self):
        self._write('config.toml', '[search]\nqueries = ["topic:pawn-package"]\n')
        config = load_config()
        self.assertEqual(config['search']['queries'], ['topic:pawn-package'])

    def test_load_yaml(self):
        self._write('config.yaml', yaml.safe_dump({'github': {'max_retries': 5}}))
        self.assertEqual(load_config()['github']['max_retries'], 5)

    def test_config_env_var_path(self):
        path = Path(self.temp_dir) / 'elsewhere.json'
        path.write_text(json.dumps({'logging': {'level': 'DEBUG'}}))
        os.environ['PAWNDEX_CONFIG'] = str(path)

        self.assertEqual(get_config_path(), path)
        self.assertEqual(load_config()['logging']['level'], 'DEBUG')

    def test_broken_file_falls_back_to_defaults(self):
        self._write('config.json', '{"daemon": ')
        self.assertEqual(load_config(), get_default_config())

    def test_save_and_reload_toml(self):
        path = Path(self.temp_dir) / '.pawndex' / 'config.toml'
        config = get_default_config()
        config['daemon']['workers'] = 2
        save_config(config, path)

        self.assertEqual(load_config(path)['daemon']['workers'], 2)


class TestEnvOverrides:
    """Tests for PAWNDEX_* environment overrides."""

    def test_nested_keys_with_underscores(self):
        env = {
            'PAWNDEX_DAEMON_SCRAPE_INTERVAL_SECONDS': '30',
            'PAWNDEX_DAEMON_SEARCH_ON_START': 'false',
            'PAWNDEX_GITHUB_BASE_DELAY_SECONDS': '0.5',
        }
        with patch.dict(os.environ, env, clear=True):
            config = apply_env_overrides(get_default_config())

        assert config['daemon']['scrape_interval_seconds'] == 30
        assert config['daemon']['search_on_start'] is False
        assert config['github']['base_delay_seconds'] == 0.5

    def test_string_setting_kept_as_string(self):
        with patch.dict(os.environ, {'PAWNDEX_GITHUB_TOKEN': '12345'}, clear=True):
            config = apply_env_overrides(get_default_config())
        assert config['github']['token'] == '12345'

    def test_list_setting_split_on_commas(self):
        env = {'PAWNDEX_SEARCH_QUERIES': 'topic:pawn-package, language:pawn'}
        with patch.dict(os.environ, env, clear=True):
            config = apply_env_overrides(get_default_config())
        assert config['search']['queries'] == ['topic:pawn-package', 'language:pawn']

    def test_unknown_keys_ignored(self):
        env = {'PAWNDEX_DB': '/tmp/x.db', 'PAWNDEX_NOPE_VALUE': '1'}
        with patch.dict(os.environ, env, clear=True):
            config = apply_env_overrides(get_default_config())
        assert config == get_default_config()


def test_merge_configs():
    base = {'a': {'b': 1, 'c': 2}, 'd': [1]}
    merged = merge_configs(base, {'a': {'c': 3}, 'd': [2]})
    assert merged == {'a': {'b': 1, 'c': 3}, 'd': [2]}
    assert base['a']['c'] == 2


class TestDaemonSettings:
    """Tests for daemon_settings validation."""

    def test_defaults(self):
        settings = daemon_settings(get_default_config())
        assert settings['daemon']['search_interval'] == 3600
        assert settings['daemon']['workers'] == 4
        assert settings['daemon']['queries'] == ('topic:pawn-package', 'language:pawn', 'topic:sa-mp')
        assert settings['search']['page_size'] == 100
        assert settings['github']['token'] is None

    @pytest.mark.parametrize("section,key,value", [
        ('daemon', 'scrape_interval_seconds', 0),
        ('daemon', 'search_interval_seconds', -5),
        ('daemon', 'workers', 0),
        ('daemon', 'workers', 'many'),
        ('search', 'page_size', 500),
        ('search', 'max_results', 2000),
        ('search', 'max_results', 0),
        ('search', 'queries', []),
        ('github', 'timeout_seconds', 0),
    ])
    def test_invalid(self, section, key, value):
        config = get_default_config()
        config[section][key] = value
        with pytest.raises(ConfigError) as exc:
            daemon_settings(config)
        assert exc.value.exit_code == CONFIG_ERROR

    def test_zero_page_delay_allowed(self):
        config = get_default_config()
        config['search']['page_delay_seconds'] = 0
        assert daemon_settings(config)['search']['page_delay'] == 0


class TestLoggingAndPaths:
    """Tests for configure_logging and get_db_path."""

    def test_configure_logging_level(self):
        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging(get_default_config(), level='warning')
            assert root.level == logging.WARNING
        finally:
            root.setLevel(previous)

    def test_configure_logging_bad_level(self):
        config = get_default_config()
        config['logging']['level'] = 'LOUD'
        with pytest.raises(ConfigError):
            configure_logging(config)

    def test_db_path_env_override(self, tmp_path):
        with patch.dict(os.environ, {'PAWNDEX_DB': str(tmp_path / 'x.db')}):
            assert get_db_path({'database': {'path': '/elsewhere.db'}}) == tmp_path / 'x.db'

    def test_db_path_from_config(self, tmp_path):
        with patch.dict(os.environ, {}, clear=True):
            assert get_db_path({'database': {'path': str(tmp_path / 'y.db')}}) == tmp_path / 'y.db'

    def test_db_path_default(self, tmp_path):
        with patch.dict(os.environ, {'HOME': str(tmp_path)}, clear=True):
            assert get_db_path(get_default_config()) == tmp_path / '.pawndex' / 'index.db'
