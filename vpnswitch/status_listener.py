"""Listener that turns VPN status messages into desktop notifications."""

from __future__ import annotations

import argparse
import contextlib
import json
import os
import socket
import subprocess
import sys
import time
import urllib.request
from dataclasses import dataclass

STATUS_SOCKET_PATH = "/tmp/vpn-status.sock"
IP_LOOKUP_URL = "https://api.ipify.org?format=json"
IP_LOOKUP_TIMEOUT = 10
NOTIFICATION_TIMEOUT_MS = 6000
DISPLAY_SECONDS = 5.0
BUFFER_SIZE = 1024


class _InvalidStatus(ValueError):
    pass


@dataclass(frozen=True)
class StatusMessage:
    """One parsed message: a ``STATUS`` change or a ``FAIL`` report."""

    kind: str
    connected: bool | None = None
    detail: str = ""


def parse_message(text: str) -> StatusMessage:
    """Parse ``STATUS Connected``, ``STATUS Disconnected`` or ``FAIL - <text>``."""
    status = text.strip()
    words = status.split(" ")
    command = words[0]
    if command == "STATUS":
        state = words[1] if len(words) > 1 else ""
        if state == "Connected":
            return StatusMessage("STATUS", connected=True)
        if state == "Disconnected":
            return StatusMessage("STATUS", connected=False)
        raise _InvalidStatus(f"Invalid status: {status}")
    if command == "FAIL":
        detail = " ".join(status.split("-")[1:]).strip()
        return StatusMessage("FAIL", detail=detail)
    raise ValueError(f"Unknown command: {status}")


def _run(args: list[str]) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(args, check=True, capture_output=True, text=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise OSError(f"Notify Error: {exc}") from exc


class _Notification:
    def __init__(self, notification_id: int | None) -> None:
        self.notification_id = notification_id

    def close(self) -> None:
        if self.notification_id is None:
            return
        with contextlib.suppress(OSError):
            _run([
                "gdbus", "call", "--session",
                "--dest", "org.freedesktop.Notifications",
                "--object-path", "/org/freedesktop/Notifications",
                "--method", "org.freedesktop.Notifications.CloseNotification",
                str(self.notification_id),
            ])


def _show(summary: str, body: str, urgency: str = "normal") -> _Notification:
    result = _run([
        "notify-send",
        "--print-id",
        "--icon=system",
        f"--urgency={urgency}",
        f"--expire-time={NOTIFICATION_TIMEOUT_MS}",
        "--",
        summary,
        body,
    ])
    try:
        notification_id: int | None = int(result.stdout.strip())
    except ValueError:
        notification_id = None
    return _Notification(notification_id)


def get_public_ip() -> str:
    """Look up this machine's public IP address."""
    try:
        with urllib.request.urlopen(IP_LOOKUP_URL, timeout=IP_LOOKUP_TIMEOUT) as response:
            payload = json.load(response)
        return str(payload["ip"])
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise OSError(f"IP Error: {exc}") from exc


def vpn_status_change(status: bool) -> _Notification:
    """Show the new VPN state together with the current public IP."""
    try:
        ip = get_public_ip()
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise
    state = "Connected" if status else "Disconnected"
    return _show("VPN Status", f"VPN {state}. IP: {ip}")


def report_failure(message: str) -> _Notification:
    """Show a critical notification carrying an error from the daemon."""
    return _show("VPN Handler Error", message, urgency="critical")


def handle_message(text: str) -> bool:
    """Act on one message; return False when the listener should stop."""
    try:
        message = parse_message(text)
    except _InvalidStatus as exc:
        print(exc)
        return True
    except ValueError:
        return False

    if message.kind == "STATUS":
        try:
            notification = vpn_status_change(bool(message.connected))
        except OSError as exc:
            print(f"Error {exc}")
            return True
    else:
        try:
            notification = report_failure(message.detail)
        except OSError:
            return False

    print("Notification Sent")
    time.sleep(DISPLAY_SECONDS)
    notification.close()
    print("Notification Closed")
    return True


def serve(socket_path: str | os.PathLike[str] = STATUS_SOCKET_PATH) -> None:
    """Listen for status messages until an unknown command arrives."""
    with contextlib.suppress(OSError):
        os.remove(socket_path)
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        server.bind(os.fspath(socket_path))
    except OSError:
        server.close()
        return
    with server:
        server.listen()
        print(f"Listening on {os.fspath(socket_path)}")
        while True:
            try:
                conn, _ = server.accept()
            except OSError:
                return
            with conn:
                try:
                    data = conn.recv(BUFFER_SIZE)
                except OSError as exc:
                    print(f"Error: {exc}")
                    continue
                if not data:
                    continue
                if not handle_message(data.decode("utf-8", errors="replace")):
                    return


def main(argv: list[str] | None = None) -> int:
    """Run the notification listener."""
    parser = argparse.ArgumentParser(
        prog="vpnswitch-notify",
        description="Show desktop notifications for VPN status changes.",
    )
    parser.add_argument("--socket", default=STATUS_SOCKET_PATH)
    args = parser.parse_args(argv)
    serve(args.socket)
    return 0