"""Client side of the status socket read by the desktop notification listener."""

from __future__ import annotations

import os
import socket
import time

DEFAULT_STATUS_SOCKET = "/tmp/vpn-status.sock"
CONNECT_ATTEMPTS = 10
CONNECT_DELAY = 0.05
SEND_ATTEMPTS = 10
SEND_DELAY = 0.25


def _connect(path: str) -> socket.socket:
    for _ in range(CONNECT_ATTEMPTS):
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(path)
        except OSError:
            sock.close()
            time.sleep(CONNECT_DELAY)
        else:
            return sock
    raise FileNotFoundError("Failed to connect to socket")


class Notifier:
    """Sends status lines over a Unix stream socket, reconnecting when needed."""

    def __init__(self, socket_path: str | os.PathLike[str] | None = None) -> None:
        self.socket_path = (
            os.fspath(socket_path) if socket_path is not None else DEFAULT_STATUS_SOCKET
        )
        self._socket = _connect(self.socket_path)

    def send_message(self, message: str) -> None:
        """Write a message, reconnecting and retrying if the write fails."""
        data = message.encode("utf-8")
        for _ in range(SEND_ATTEMPTS):
            try:
                self._socket.sendall(data)
            except OSError:
                self._socket.close()
                self._socket = _connect(self.socket_path)
                time.sleep(SEND_DELAY)
            else:
                return
        raise BrokenPipeError("Failed to send message")

    def close(self) -> None:
        """Close the connection to the listener."""
        self._socket.close()

    def __enter__(self) -> Notifier:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()