"""
Tests for ConfigManager and FrameConfig.

Tests loading, fail-open defaults, schema validation and atomic saves.
"""

import json
from unittest.mock import patch

import pytest

from smart_display.config_manager import (
    DEFAULT_DURATION_SECS,
    ConfigManager,
    FrameConfig,
)
from smart_display.exceptions import ConfigLoadError, ConfigSaveError


class TestFrameConfig:
    """Test FrameConfig conversion to and from the persisted document."""

    def test_defaults(self):
        config = FrameConfig()
        assert config.duration_secs == DEFAULT_DURATION_SECS
        assert config.urls == set()
        assert config.url is None

    def test_from_dict_empty_url_means_no_selection(self):
        config = FrameConfig.from_dict({'durationSecs': 5, 'urls': ['a'], 'url': ''})
        assert config.url is None
        assert config.duration_secs == 5.0

    def test_from_dict_collapses_duplicate_urls(self):
        config = FrameConfig.from_dict({'urls': ['a', 'b', 'a']})
        assert config.urls == {'a', 'b'}

    def test_to_dict_sorts_urls_and_writes_empty_url(self):
        config = FrameConfig(duration_secs=10.0, urls={'b', 'a'}, url=None)
        assert config.to_dict() == {'durationSecs': 10.0, 'urls': ['a', 'b'], 'url': ''}

    def test_copy_is_independent(self):
        config = FrameConfig(urls={'a'})
        clone = config.copy()
        clone.urls.add('b')
        assert config.urls == {'a'}


class TestConfigManagerLoad:
    """Test ConfigManager.load and load_or_default."""

    def test_load_missing_file_raises(self, config_manager):
        with pytest.raises(ConfigLoadError):
            config_manager.load()

    def test_load_or_default_missing_file(self, config_manager):
        config = config_manager.load_or_default()
        assert config == FrameConfig()

    def test_load_or_default_corrupt_file(self, config_manager, write_config):
        write_config("{not json")
        config = config_manager.load_or_default()
        assert config == FrameConfig()

    def test_load_schema_error(self, config_manager, write_config):
        write_config({'durationSecs': 'soon', 'urls': []})
        with pytest.raises(ConfigLoadError) as exc_info:
            config_manager.load()
        assert 'durationSecs' in str(exc_info.value)

    def test_load_negative_duration_rejected(self, config_manager, write_config):
        write_config({'durationSecs': -1})
        with pytest.raises(ConfigLoadError):
            config_manager.load()

    @pytest.mark.parametrize('raw', ['{"durationSecs": Infinity}', '{"durationSecs": NaN}'])
    def test_load_non_finite_duration_rejected(self, config_manager, write_config, raw):
        write_config(raw)
        with pytest.raises(ConfigLoadError) as exc_info:
            config_manager.load()
        assert exc_info.value.field == 'durationSecs'
        assert config_manager.load_or_default() == FrameConfig()

    def test_load_huge_finite_duration_accepted(self, config_manager, write_config):
        write_config({'durationSecs': 1e10})
        assert config_manager.load().duration_secs == 1e10

    def test_load_non_object_rejected(self, config_manager, write_config):
        write_config([1, 2, 3])
        assert config_manager.load_or_default() == FrameConfig()

    def test_load_ignores_unknown_fields(self, config_manager, write_config):
        write_config({'durationSecs': 15, 'urls': ['http://x/1.png'], 'url': 'http://x/1.png',
                      'theme': 'dark'})
        config = config_manager.load()
        assert config.duration_secs == 15.0
        assert config.urls == {'http://x/1.png'}
        assert config.url == 'http://x/1.png'

    def test_load_missing_fields_use_defaults(self, config_manager, write_config):
        write_config({})
        assert config_manager.load() == FrameConfig()

    def test_validate_returns_messages(self, config_manager):
        errors = config_manager.validate({'urls': 'not-a-list'})
        assert len(errors) == 1
        assert 'urls' in errors[0]
        assert config_manager.validate({'urls': []}) == []


class TestConfigManagerSave:
    """Test atomic saves."""

    def test_save_and_load_round_trip(self, config_manager):
        config = FrameConfig(duration_secs=42.5, urls={'http://x/b.png', 'http://x/a.png'},
                             url='http://x/a.png')
        config_manager.save(config)
        assert config_manager.load() == config

    def test_saved_document_format(self, config_manager, config_path):
        config_manager.save(FrameConfig(duration_secs=1.0, urls={'b', 'a'}))
        data = json.loads(config_path.read_text())
        assert data == {'durationSecs': 1.0, 'urls': ['a', 'b'], 'url': ''}

    def test_save_leaves_no_temp_files(self, config_manager, config_path):
        config_manager.save(FrameConfig())
        config_manager.save(FrameConfig(duration_secs=2.0))
        assert [p.name for p in config_path.parent.iterdir()] == [config_path.name]

    def test_save_creates_parent_directory(self, tmp_path):
        manager = ConfigManager(str(tmp_path / 'nested' / 'dir' / 'frame.json'))
        manager.save(FrameConfig())
        assert (tmp_path / 'nested' / 'dir' / 'frame.json').exists()

    def test_save_failure_raises_and_keeps_previous_file(self, config_manager, config_path):
        config_manager.save(FrameConfig(duration_secs=5.0))

        with patch('smart_display.config_manager.tempfile.NamedTemporaryFile',
                   side_effect=OSError("disk full")):
            with pytest.raises(ConfigSaveError):
                config_manager.save(FrameConfig(duration_secs=99.0))

        assert config_manager.load().duration_secs == 5.0

    def test_save_failure_on_rename_cleans_temp_file(self, config_manager, config_path):
        with patch('smart_display.config_manager.Path.replace', side_effect=OSError("busy")):
            with pytest.raises(ConfigSaveError) as exc_info:
                config_manager.save(FrameConfig())

        assert exc_info.value.config_path == str(config_path)
        assert list(config_path.parent.iterdir()) == []
