"""
Unit tests for the configuration manager singleton.
"""

import pytest

from buildagent.config import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)
from buildagent.validation import ValidationError


@pytest.mark.unit
class TestConfigManager:
    """Test cases for loading and caching the agent configuration."""

    def test_get_config_loads_file(self, config_files):
        set_config_path(config_files["config"])

        config = get_config()

        assert config.server.max_attempts == 2
        assert config.heartbeat.interval_seconds == 0.05
        assert is_config_loaded()

    def test_get_config_is_cached(self, config_files):
        set_config_path(config_files["config"])

        assert get_config() is get_config()

    def test_clear_config_cache_forces_reload(self, config_files):
        set_config_path(config_files["config"])
        first = get_config()

        clear_config_cache()

        assert not is_config_loaded()
        assert get_config() is not first

    def test_missing_file_raises(self, temp_dir):
        set_config_path(temp_dir / "nope.toml")

        with pytest.raises(FileNotFoundError):
            get_config()

    def test_invalid_value_raises(self, temp_dir):
        config_file = temp_dir / "config.toml"
        config_file.write_text("[agent.server]\nmax_attempts = 0\n")
        set_config_path(config_file)

        with pytest.raises(ValidationError):
            get_config()

    def test_default_config_file_is_valid(self):
        config = get_config()

        assert config.process.shell == "/bin/sh"
        assert config.logs.flush_size_bytes == 4096

    def test_get_config_info(self, config_files):
        set_config_path(config_files["config"])
        get_config()

        info = get_config_info()

        assert info["config_loaded"] is True
        assert info["config_path"] == str(config_files["config"])
        assert info["log_level"] == "DEBUG"
