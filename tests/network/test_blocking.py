"""Test that network access is blocked in tests."""

import socket

import pytest

from tests.support.errors import NetworkIsolationError


def test_socket_connect_is_blocked() -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        with pytest.raises(NetworkIsolationError) as exc_info:
            sock.connect(("127.0.0.1", 8080))
        assert "Tests must not make network connections" in str(exc_info.value)
    finally:
        sock.close()
