"""Unit tests for configuration loading and environment overrides."""

import os
from pathlib import Path

import pytest

from contact_enrichment.config.loader import (
    _apply_env_overrides,
    _convert_env_value,
    _deep_merge_dicts,
    build_config,
    get_config,
    load_config_files,
    load_config_from_file,
    reload_config,
)
from contact_enrichment.config.schemas import ClientConfig, LoggingConfig, RateLimiterPolicy
from contact_enrichment.exceptions import ConfigurationError, ErrorCode


pytestmark = pytest.mark.fast

REPO_ROOT = Path(__file__).resolve().parents[3]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove any CONTACT_ENRICHMENT overrides inherited from the shell."""
    for key in list(os.environ):
        if key.startswith("CONTACT_ENRICHMENT"):
            monkeypatch.delenv(key)
    return monkeypatch


class TestDeepMerge:
    """Test nested dictionary merging."""

    def test_override_wins_and_nested_keys_survive(self):
        base = {"worker_count": 4, "logging": {"level": "INFO", "format": "text"}}
        override = {"logging": {"level": "DEBUG"}}

        merged = _deep_merge_dicts(base, override)

        assert merged == {"worker_count": 4, "logging": {"level": "DEBUG", "format": "text"}}
        assert base["logging"]["level"] == "INFO"


class TestConvertEnvValue:
    """Test environment string conversion."""

    @pytest.mark.parametrize(
        "raw, expected",
        [("true", True), ("FALSE", False), ("8", 8), ("2.5", 2.5), ("burst", "burst")],
    )
    def test_conversion(self, raw, expected):
        assert _convert_env_value(raw) == expected


class TestApplyEnvOverrides:
    """Test CONTACT_ENRICHMENT__* overrides."""

    def test_top_level_and_nested_overrides(self, clean_env):
        clean_env.setenv("CONTACT_ENRICHMENT__WORKER_COUNT", "8")
        clean_env.setenv("CONTACT_ENRICHMENT__LOGGING__LEVEL", "DEBUG")
        original = {"worker_count": 4, "logging": {"level": "INFO"}}

        result = _apply_env_overrides(original)

        assert result["worker_count"] == 8
        assert result["logging"]["level"] == "DEBUG"
        assert original["logging"]["level"] == "INFO"

    def test_unrelated_variables_are_ignored(self, clean_env):
        clean_env.setenv("OTHER__WORKER_COUNT", "8")
        assert _apply_env_overrides({"worker_count": 4}) == {"worker_count": 4}


class TestLoadConfigFromFile:
    """Test YAML loading."""

    def test_reads_shipped_base_config(self):
        data = load_config_from_file(REPO_ROOT / "config" / "base.yaml")
        assert data["rate_limiter_policy"] == "smooth"
        assert data["worker_count"] == 4

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found") as exc_info:
            load_config_from_file(tmp_path / "missing.yaml")
        assert exc_info.value.status_code == ErrorCode.CONFIG_LOAD_FAILED

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("worker_count: [unclosed\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_file(path)
        assert exc_info.value.status_code == ErrorCode.CONFIG_LOAD_FAILED

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping") as exc_info:
            load_config_from_file(path)
        assert exc_info.value.status_code == ErrorCode.CONFIG_LOAD_FAILED

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_from_file(path) == {}


class TestBuildConfig:
    """Test validation into ClientConfig."""

    def test_defaults(self, clean_env):
        config = build_config()
        assert config.rate_limiter_policy is RateLimiterPolicy.SMOOTH
        assert config.worker_count == 4
        assert config.base_url == "https://api.fullcontact.com/v2"

    def test_policy_is_case_insensitive(self):
        config = build_config({"rate_limiter_policy": "BURST"}, apply_env_overrides_flag=False)
        assert config.rate_limiter_policy is RateLimiterPolicy.BURST

    def test_trailing_slash_is_stripped(self):
        config = build_config({"base_url": "https://example.com/v2/"}, apply_env_overrides_flag=False)
        assert config.base_url == "https://example.com/v2"

    def test_env_override_applied(self, clean_env):
        clean_env.setenv("CONTACT_ENRICHMENT__RATE_LIMITER_POLICY", "disabled")
        assert build_config({}).rate_limiter_policy is RateLimiterPolicy.DISABLED

    def test_env_override_skipped_when_disabled(self, clean_env):
        clean_env.setenv("CONTACT_ENRICHMENT__WORKER_COUNT", "9")
        assert build_config({}, apply_env_overrides_flag=False).worker_count == 4

    @pytest.mark.parametrize(
        "bad",
        [
            {"worker_count": 0},
            {"rate_limiter_policy": "aggressive"},
            {"burst_seconds": 0},
            {"retry_attempts": 0},
        ],
    )
    def test_invalid_values_raise_configuration_error(self, bad):
        with pytest.raises(ConfigurationError) as exc_info:
            build_config(bad, apply_env_overrides_flag=False)
        assert exc_info.value.cause is not None


class TestGetConfig:
    """Test cached configuration access."""

    def test_is_cached_until_reload(self, clean_env):
        first = get_config()
        assert get_config() is first

        reload_config()
        assert get_config() is not first

    def test_reads_file_from_environment(self, clean_env, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("worker_count: 7\nlogging:\n  level: DEBUG\n")
        clean_env.setenv("CONTACT_ENRICHMENT_CONFIG", str(path))

        config = get_config()

        assert config.worker_count == 7
        assert config.logging.level == "DEBUG"

    def test_env_overrides_beat_file_values(self, clean_env, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("worker_count: 7\n")
        clean_env.setenv("CONTACT_ENRICHMENT__WORKER_COUNT", "2")

        assert get_config(path).worker_count == 2


class TestLoggingConfigSchema:
    """Test logging section normalization."""

    @pytest.mark.parametrize("raw, expected", [("pretty", "text"), ("STRUCTURED", "json"), ("json", "json")])
    def test_format_aliases(self, raw, expected):
        assert LoggingConfig(format=raw).format == expected

    def test_nested_in_client_config(self):
        config = ClientConfig(logging={"log_http_traffic": True})
        assert config.logging.log_http_traffic is True


class TestLayeredConfigFiles:
    """Test several YAML files deep-merged in order."""

    def _write(self, tmp_path, name, text):
        path = tmp_path / name
        path.write_text(text)
        return path

    def test_later_files_win_and_nested_keys_survive(self, tmp_path):
        base = self._write(
            tmp_path, "base.yaml", "worker_count: 4\nlogging:\n  level: INFO\n  format: text\n"
        )
        prod = self._write(tmp_path, "prod.yaml", "worker_count: 16\nlogging:\n  level: WARNING\n")

        merged = load_config_files([base, prod])

        assert merged == {"worker_count": 16, "logging": {"level": "WARNING", "format": "text"}}

    def test_no_files_is_empty_mapping(self):
        assert load_config_files([]) == {}

    def test_missing_layer_raises(self, tmp_path):
        base = self._write(tmp_path, "base.yaml", "worker_count: 4\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_files([base, tmp_path / "missing.yaml"])
        assert exc_info.value.status_code == ErrorCode.CONFIG_LOAD_FAILED

    def test_get_config_accepts_tuple_of_files(self, clean_env, tmp_path):
        base = self._write(tmp_path, "base.yaml", "worker_count: 4\nburst_seconds: 2.0\n")
        override = self._write(tmp_path, "override.yaml", "worker_count: 8\n")

        config = get_config((base, override))

        assert config.worker_count == 8
        assert config.burst_seconds == 2.0

    def test_get_config_reads_path_list_from_environment(self, clean_env, tmp_path):
        base = self._write(tmp_path, "base.yaml", "worker_count: 4\nlogging:\n  level: INFO\n")
        override = self._write(tmp_path, "override.yaml", "logging:\n  log_http_traffic: true\n")
        clean_env.setenv("CONTACT_ENRICHMENT_CONFIG", os.pathsep.join([str(base), str(override)]))

        config = get_config()

        assert config.worker_count == 4
        assert config.logging.level == "INFO"
        assert config.logging.log_http_traffic is True
