"""
Unit tests for the command-line interface.
"""

from unittest.mock import Mock, patch

import pytest

from ccdgamed.cli.main import build_parser, main
from ccdgamed.models.runtime import GameProcess
from ccdgamed.models.state import StateFile
from ccdgamed.state import load_state, save_state


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point XDG directories at tmp_path and write a config with CPU overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    config_dir = tmp_path / "config" / "ccd-gamed"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text('os_cpus = "0-3"\ngame_cpus = "4-7"\n')
    return tmp_path


def scanner_returning(groups):
    scanner_cls = Mock()
    scanner_cls.from_config.return_value.scan.return_value = groups
    return scanner_cls


@pytest.mark.unit
class TestParser:
    """Test cases for argument parsing."""

    def test_global_flags(self):
        args = build_parser().parse_args(["--dry-run", "-v", "--state", "/tmp/s.json", "run", "--once"])
        assert args.dry_run and args.verbose and args.once
        assert str(args.state) == "/tmp/s.json"
        assert args.command == "run"

    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code == 2


@pytest.mark.unit
class TestCommands:
    """Test cases for the individual commands."""

    def test_detect_uses_overrides(self, cli_env, capsys):
        assert main(["detect"]) == 0
        out = capsys.readouterr().out
        assert "os_cpus:   0-3" in out
        assert "game_cpus: 4-7" in out
        assert "override" in out

    def test_scan(self, cli_env, capsys):
        groups = {
            "570": [GameProcess(pid=10, start_time=5, exe="dota2", game_id="570", id_source="SteamAppId")]
        }
        with patch("ccdgamed.cli.main.ProcessScanner", scanner_returning(groups)):
            assert main(["scan"]) == 0
        out = capsys.readouterr().out
        assert "570 -> game-570.scope" in out
        assert "pid=10 start=5 exe=dota2 source=SteamAppId" in out

    def test_scan_nothing(self, cli_env, capsys):
        with patch("ccdgamed.cli.main.ProcessScanner", scanner_returning({})):
            assert main(["scan"]) == 0
        assert "no game processes found" in capsys.readouterr().out

    def test_status(self, cli_env, capsys):
        path = cli_env / "custom.json"
        save_state(path, StateFile(pin_applied=True, os_cpus="0-3"))

        assert main(["--state", str(path), "status"]) == 0

        out = capsys.readouterr().out
        assert str(path) in out
        assert '"pin_applied": true' in out

    def test_run_once_dry_run_idle(self, cli_env):
        with patch("ccdgamed.cli.main.ProcessScanner", scanner_returning({})):
            assert main(["--dry-run", "run", "--once"]) == 0
        assert not (cli_env / "state" / "ccd-gamed" / "state.json").exists()

    def test_run_requires_systemctl(self, cli_env):
        with patch("ccdgamed.cli.main.check_systemctl_installed", return_value=False):
            assert main(["run", "--once"]) == 1

    def test_restore_nothing(self, cli_env):
        assert main(["--dry-run", "restore"]) == 0

    def test_restore_dry_run_keeps_state(self, cli_env):
        path = cli_env / "state" / "ccd-gamed" / "state.json"
        save_state(path, StateFile(pin_applied=True, original_allowed_cpus={"app.slice": ""}))

        assert main(["--dry-run", "restore"]) == 0

        assert load_state(path).pin_applied is True

    def test_invalid_config_exits(self, cli_env):
        (cli_env / "config" / "ccd-gamed" / "config.toml").write_text('interval = "never"\n')
        with pytest.raises(SystemExit) as exc_info:
            main(["status"])
        assert exc_info.value.code == 1

    def test_operational_error_exits(self, cli_env):
        path = cli_env / "broken.json"
        path.write_text("{")
        with pytest.raises(SystemExit) as exc_info:
            main(["--state", str(path), "status"])
        assert exc_info.value.code == 1
