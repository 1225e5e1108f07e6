import os
import shutil
import socket
import tempfile

import pytest

from vpnswitch.notifier import Notifier


@pytest.fixture
def sock_path():
    directory = tempfile.mkdtemp(prefix="vs")
    yield os.path.join(directory, "s.sock")
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def server(sock_path):
    srv = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    srv.bind(sock_path)
    srv.listen(4)
    srv.settimeout(5)
    yield srv
    srv.close()


def _receive(server):
    conn, _ = server.accept()
    with conn:
        conn.settimeout(5)
        return conn.recv(1024)


def test_send_message_delivers_bytes(sock_path, server):
    with Notifier(sock_path) as notifier:
        result = notifier.send_message("STATUS Connected")
        received = _receive(server)
    assert result is None
    assert received == b"STATUS Connected"


def test_messages_arrive_in_order(sock_path, server):
    notifier = Notifier(sock_path)
    results = [
        notifier.send_message("STATUS Connected"),
        notifier.send_message("STATUS Disconnected"),
    ]
    notifier.close()
    conn, _ = server.accept()
    with conn:
        conn.settimeout(5)
        data = b""
        while chunk := conn.recv(1024):
            data += chunk
    assert results == [None, None]
    assert data == b"STATUS ConnectedSTATUS Disconnected"


def test_reconnects_after_broken_socket(sock_path, server):
    notifier = Notifier(sock_path)
    first, _ = server.accept()
    first.close()
    notifier.close()
    result = notifier.send_message("FAIL - oops")
    received = _receive(server)
    notifier.close()
    assert result is None
    assert received == b"FAIL - oops"


def test_no_listener_raises(sock_path):
    with pytest.raises(FileNotFoundError, match="Failed to connect to socket"):
        Notifier(sock_path)