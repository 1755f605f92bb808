import pytest
import json
from pathlib import Path
from src.core.config_manager import ConfigManager, ConfigError, ReloadConfig

@pytest.fixture
def config_manager(tmp_path):
    config_path = tmp_path / "test_config.json"
    return ConfigManager(str(config_path))

class TestConfigManager:
    def test_default_config(self, config_manager):
        assert isinstance(config_manager.config, ReloadConfig)
        assert config_manager.config.server_port == 3449
        assert config_manager.config.compile_wait_time == 10
        assert config_manager.config.http_server_root == "public"
        assert config_manager.config.css_dirs == []

    def test_save_and_load(self, config_manager):
        config_manager.update('server_port', 9500)
        config_manager.update('css_dirs', ['resources/public/css'])

        new_config = ConfigManager(str(config_manager.config_path))

        assert new_config.get('server_port') == 9500
        assert new_config.get('css_dirs') == ['resources/public/css']

    def test_invalid_key(self, config_manager):
        with pytest.raises(KeyError):
            config_manager.update('invalid_key', 'value')

    def test_config_file_format(self, config_manager):
        config_manager.save_config()

        with open(config_manager.config_path) as f:
            config_data = json.load(f)

        assert isinstance(config_data, dict)
        assert config_data['server_port'] == 3449
        assert 'resource_paths' in config_data

    def test_unknown_keys_in_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"server_port": 1, "ring_handler": "x"}))
        with pytest.raises(ConfigError, match="ring_handler"):
            ConfigManager(str(path))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            ConfigManager(str(path))

    def test_overrides_skip_none(self, config_manager):
        config = config_manager.apply_overrides({'server_port': 4000, 'host': None})
        assert config.server_port == 4000
        assert config.host == "localhost"
        # overrides are not persisted
        assert not Path(config_manager.config_path).exists()

    def test_js_dirs_not_a_setting(self, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"js_dirs": ["src"]}))
        with pytest.raises(ConfigError, match="js_dirs"):
            ConfigManager(str(path))
