"""
Unit tests for daemon configuration validation.

Tests the conversion of raw TOML data into a DaemonConfig, including
defaults, normalization and error reporting.
"""

from pathlib import Path

import pytest

from ccdgamed.config.validators import validate_daemon_config, validate_slice_list
from ccdgamed.validation import ValidationError

CONFIG_DIR = Path("/home/user/.config/ccd-gamed")


def validate(data):
    return validate_daemon_config(data, config_dir=CONFIG_DIR, default_state_file=Path("/s.json"))


@pytest.mark.unit
class TestDaemonConfigValidation:
    """Test cases for validate_daemon_config."""

    def test_empty_uses_defaults(self):
        config = validate({})
        assert config.interval == 2.0
        assert config.state_file == Path("/s.json")
        assert config.ignore_file == CONFIG_DIR / "ignore.txt"
        assert config.os_cpus_override == ""

    @pytest.mark.parametrize(
        "value,expected", [("500ms", 0.5), ("1m", 60.0), ("1m30s", 90.0), (3, 3.0), (0.25, 0.25)]
    )
    def test_interval_forms(self, value, expected):
        assert validate({"interval": value}).interval == expected

    @pytest.mark.parametrize("value", ["0s", "-1s", "fast", "", "2d", True, "2h"])
    def test_interval_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate({"interval": value})
        assert "interval" in str(exc_info.value)

    def test_env_keys_trimmed(self):
        assert validate({"env_keys": [" A ", "", "B"]}).env_keys == ["A", "B"]

    def test_env_keys_must_be_strings(self):
        with pytest.raises(ValidationError):
            validate({"env_keys": ["A", 3]})

    def test_lists_lower_cased(self):
        config = validate({"exe_allowlist": ["Game"], "ignore_exe": ["STEAM"]})
        assert config.exe_allowlist == ["game"]
        assert config.ignore_exe == ["steam"]

    def test_pin_session_slice_must_be_bool(self):
        with pytest.raises(ValidationError):
            validate({"pin_session_slice": "yes"})

    def test_slices_must_be_slices(self):
        with pytest.raises(ValidationError):
            validate({"pin_slices": ["app.service"]})
        with pytest.raises(ValidationError):
            validate({"game_slice": "game.scope"})

    def test_game_slice_cannot_be_pinned_to_os(self):
        with pytest.raises(ValidationError):
            validate({"pin_slices": ["app.slice", "game.slice"]})

    def test_cpu_overrides_canonicalized(self):
        config = validate({"os_cpus": "0,1,2,3", "game_cpus": "7,6,5,4"})
        assert (config.os_cpus_override, config.game_cpus_override) == ("0-3", "4-7")

    def test_cpu_overrides_must_pair(self):
        with pytest.raises(ValidationError) as exc_info:
            validate({"os_cpus": "0-3"})
        assert exc_info.value.field_name == "game_cpus"

    def test_cpu_override_malformed(self):
        with pytest.raises(ValidationError):
            validate({"os_cpus": "3-0", "game_cpus": "4-7"})

    def test_absolute_paths_kept(self):
        config = validate({"state_file": "/var/tmp/s.json", "ignore_file": "/etc/ignore"})
        assert config.state_file == Path("/var/tmp/s.json")
        assert config.ignore_file == Path("/etc/ignore")

    def test_default_ignore_file_is_independent_of_config_dir(self):
        config = validate_daemon_config(
            {}, config_dir=Path("/tmp"), default_ignore_file=CONFIG_DIR / "ignore.txt"
        )
        assert config.ignore_file == CONFIG_DIR / "ignore.txt"

    def test_unknown_keys_warn(self, caplog):
        validate({"intervall": "2s"})
        assert "intervall" in caplog.text

    def test_log_level(self):
        with pytest.raises(ValidationError):
            validate({"log_level": "loud"})

    def test_validate_slice_list(self):
        assert validate_slice_list([" app.slice "]) == ["app.slice"]
