"""
Unit tests for the D-Bus transport, using a fake jeepney connection.
"""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
from jeepney import DBusErrorResponse
from jeepney.low_level import HeaderFields

from ccdgamed.control import dbus_manager
from ccdgamed.control.dbus_manager import (
    UNIT_EXISTS_ERROR,
    UserBusTransport,
    is_unit_exists_error,
    user_bus_address,
)
from ccdgamed.validation import UnitControlError, ValidationError


def dbus_error(name, text="failed"):
    """A DBusErrorResponse as jeepney raises it from unwrap_msg."""
    msg = SimpleNamespace(
        header=SimpleNamespace(fields={HeaderFields.error_name: name}),
        body=(text,),
    )
    return DBusErrorResponse(msg)


class FakeConnection:
    """Stands in for jeepney's blocking connection."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error
        self.closed = False

    def send_and_get_reply(self, message, timeout=None):
        self.sent.append((message, timeout))
        if self.error is not None:
            raise self.error
        return message

    def close(self):
        self.closed = True


@pytest.fixture
def passthrough_unwrap(monkeypatch):
    """unwrap_msg that returns the reply body unchanged."""
    monkeypatch.setattr(dbus_manager, "unwrap_msg", lambda reply: reply.body)


def member(message):
    return message.header.fields[HeaderFields.member]


@pytest.mark.unit
class TestUserBusAddress:
    """Test cases for bus address resolution."""

    def test_session_address_wins(self):
        env = {"DBUS_SESSION_BUS_ADDRESS": "unix:path=/tmp/bus", "XDG_RUNTIME_DIR": "/run/user/5"}
        assert user_bus_address(env) == "unix:path=/tmp/bus"

    def test_runtime_dir(self):
        assert user_bus_address({"XDG_RUNTIME_DIR": "/run/user/5"}) == "unix:path=/run/user/5/bus"

    def test_uid_fallback(self):
        assert user_bus_address({}, uid=1234) == "unix:path=/run/user/1234/bus"


@pytest.mark.unit
class TestUserBusTransport:
    """Test cases for StartTransientUnit and AttachProcessesToUnit."""

    def test_start_transient_scope(self, passthrough_unwrap):
        conn = FakeConnection()
        transport = UserBusTransport(connection=conn, timeout=2.5)

        created = transport.start_transient_scope("game-570.scope", [10, 0, -3, 11], "", "Game 570")

        assert created is True
        message, timeout = conn.sent[0]
        assert timeout == 2.5
        assert member(message) == "StartTransientUnit"
        name, mode, properties, aux = message.body
        assert (name, mode, aux) == ("game-570.scope", "fail", [])
        assert dict(properties) == {
            "Description": ("s", "Game 570"),
            "Slice": ("s", "game.slice"),
            "PIDs": ("au", [10, 11]),
        }

    def test_unit_exists_is_not_created(self, monkeypatch):
        def raise_exists(reply):
            raise dbus_error(UNIT_EXISTS_ERROR, "Unit game-570.scope already exists.")

        monkeypatch.setattr(dbus_manager, "unwrap_msg", raise_exists)
        transport = UserBusTransport(connection=FakeConnection())

        assert transport.start_transient_scope("game-570.scope", [10]) is False

    def test_other_fault_raises(self, monkeypatch):
        def raise_denied(reply):
            raise dbus_error("org.freedesktop.DBus.Error.AccessDenied", "denied")

        monkeypatch.setattr(dbus_manager, "unwrap_msg", raise_denied)
        transport = UserBusTransport(connection=FakeConnection())

        with pytest.raises(UnitControlError) as exc_info:
            transport.start_transient_scope("game-570.scope", [10])
        assert exc_info.value.unit == "game-570.scope"

    def test_timeout_raises(self):
        transport = UserBusTransport(connection=FakeConnection(error=TimeoutError()))
        with pytest.raises(UnitControlError, match="no reply"):
            transport.start_transient_scope("game-1.scope", [1])

    def test_connection_failure_raises(self):
        transport = UserBusTransport(connection=FakeConnection(error=ConnectionResetError("gone")))
        with pytest.raises(UnitControlError):
            transport.attach_processes("game-1.scope", "", [1])

    def test_rejects_non_scope_before_calling(self):
        conn = FakeConnection()
        transport = UserBusTransport(connection=conn)
        with pytest.raises(ValidationError):
            transport.start_transient_scope("game.slice", [1])
        assert conn.sent == []

    def test_attach_processes(self, passthrough_unwrap):
        conn = FakeConnection()
        UserBusTransport(connection=conn).attach_processes("game-1.scope", "", [7, 8])

        message, _ = conn.sent[0]
        assert member(message) == "AttachProcessesToUnit"
        assert message.body == ("game-1.scope", "", [7, 8])

    def test_attach_empty_is_noop(self):
        conn = FakeConnection()
        UserBusTransport(connection=conn).attach_processes("game-1.scope", "", [0, -1])
        assert conn.sent == []

    def test_close(self):
        conn = FakeConnection()
        transport = UserBusTransport(connection=conn)
        transport.close()
        transport.close()
        assert conn.closed

    @patch("ccdgamed.control.dbus_manager.open_dbus_connection", side_effect=FileNotFoundError("no bus"))
    def test_open_failure(self, mock_open, monkeypatch):
        monkeypatch.setenv("DBUS_SESSION_BUS_ADDRESS", "unix:path=/nonexistent/bus")
        with pytest.raises(UnitControlError, match="cannot connect"):
            UserBusTransport()
        mock_open.assert_called_once_with(bus="unix:path=/nonexistent/bus")


@pytest.mark.unit
def test_is_unit_exists_error():
    assert is_unit_exists_error(dbus_error(UNIT_EXISTS_ERROR))
    assert not is_unit_exists_error(dbus_error("org.freedesktop.DBus.Error.Failed"))
    assert not is_unit_exists_error(Mock(spec=[]))
