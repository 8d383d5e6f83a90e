"""
Unit tests for the systemctl transport and the systemd controller.
"""

from unittest.mock import Mock

import pytest

from ccdgamed.control.systemctl import SystemctlTransport
from ccdgamed.control.systemd import SystemdUnitController
from ccdgamed.validation import UnitControlError, ValidationError


class FakeRunner:
    """Records argv and returns canned results."""

    def __init__(self, result=(0, "", "")):
        self.result = result
        self.calls = []

    def __call__(self, argv, timeout):
        self.calls.append((list(argv), timeout))
        return self.result


@pytest.mark.unit
class TestSystemctlTransport:
    """Test cases for SystemctlTransport."""

    def test_get_affinity(self):
        runner = FakeRunner((0, "0-3\n", ""))
        transport = SystemctlTransport(timeout=7, runner=runner)

        assert transport.get_affinity("app.slice") == "0-3"
        assert runner.calls == [
            (["systemctl", "--user", "show", "-p", "AllowedCPUs", "--value", "app.slice"], 7)
        ]

    def test_get_affinity_unset_is_empty(self):
        transport = SystemctlTransport(runner=FakeRunner((0, "\n", "")))
        assert transport.get_affinity("app.slice") == ""

    def test_set_affinity(self):
        runner = FakeRunner()
        SystemctlTransport(runner=runner).set_affinity("game-1.scope", "4-7")
        assert runner.calls[0][0] == [
            "systemctl", "--user", "set-property", "--runtime", "game-1.scope", "AllowedCPUs=4-7"
        ]

    def test_set_affinity_empty_resets(self):
        runner = FakeRunner()
        SystemctlTransport(runner=runner).set_affinity("app.slice", "")
        assert runner.calls[0][0][-1] == "AllowedCPUs="

    def test_start_unit(self):
        runner = FakeRunner()
        SystemctlTransport(runner=runner).start_unit("game.slice")
        assert runner.calls[0][0] == ["systemctl", "--user", "start", "game.slice"]

    def test_failure_carries_output(self):
        runner = FakeRunner((1, "", "  Unit app.slice not loaded.\n"))
        transport = SystemctlTransport(runner=runner)

        with pytest.raises(UnitControlError) as exc_info:
            transport.set_affinity("app.slice", "0-3")

        assert exc_info.value.unit == "app.slice"
        assert exc_info.value.output == "Unit app.slice not loaded."
        assert "exit status 1" in str(exc_info.value)

    def test_static_argv_helpers_match_calls(self):
        runner = FakeRunner()
        transport = SystemctlTransport(runner=runner)
        transport.set_affinity("u.slice", "1")
        transport.start_unit("u.slice")
        assert runner.calls[0][0] == SystemctlTransport.set_affinity_args("u.slice", "1")
        assert runner.calls[1][0] == SystemctlTransport.start_unit_args("u.slice")


@pytest.mark.unit
class TestSystemdUnitController:
    """Test cases for routing between the two transports."""

    def test_routes_scope_calls_to_bus(self):
        bus = Mock()
        bus.start_transient_scope.return_value = True
        systemctl = Mock()
        controller = SystemdUnitController(bus=bus, systemctl=systemctl)

        assert controller.ensure_scope("game-1.scope", [5], "game.slice", "Game 1") is True
        controller.attach_processes("game-1.scope", "", [6])

        bus.start_transient_scope.assert_called_once_with("game-1.scope", [5], "game.slice", "Game 1")
        bus.attach_processes.assert_called_once_with("game-1.scope", "", [6])
        systemctl.assert_not_called()

    def test_routes_property_calls_to_systemctl(self):
        bus = Mock()
        systemctl = Mock()
        systemctl.get_affinity.return_value = "0-31"
        controller = SystemdUnitController(bus=bus, systemctl=systemctl)

        assert controller.get_affinity("app.slice") == "0-31"
        controller.set_affinity("app.slice", "0-7")
        controller.start_unit("game.slice")

        systemctl.set_affinity.assert_called_once_with("app.slice", "0-7")
        systemctl.start_unit.assert_called_once_with("game.slice")
        assert controller.dry_run is False

    def test_close_closes_bus_once(self):
        bus = Mock()
        controller = SystemdUnitController(bus=bus, systemctl=Mock())
        controller.close()
        controller.close()
        bus.close.assert_called_once()

    def test_bad_scope_name_rejected_before_connecting(self, monkeypatch):
        opened = Mock()
        monkeypatch.setattr("ccdgamed.control.systemd.UserBusTransport", opened)
        controller = SystemdUnitController(systemctl=Mock())

        with pytest.raises(ValidationError):
            controller.ensure_scope("not-a-scope.service", [123])

        opened.assert_not_called()
        assert controller._bus is None

    def test_attach_without_pids_does_not_connect(self, monkeypatch):
        opened = Mock()
        monkeypatch.setattr("ccdgamed.control.systemd.UserBusTransport", opened)
        controller = SystemdUnitController(systemctl=Mock())

        controller.attach_processes("game-1.scope", "", [0, -1])

        opened.assert_not_called()

    def test_close_without_bus_does_not_connect(self):
        controller = SystemdUnitController(systemctl=Mock())
        controller.close()
        assert controller._bus is None
