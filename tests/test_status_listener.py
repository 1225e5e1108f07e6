import io
import os
import socket
import subprocess
import tempfile
import threading
import time
import urllib.error
from unittest.mock import patch

import pytest

from vpnswitch.status_listener import (
    StatusMessage,
    get_public_ip,
    handle_message,
    parse_message,
    report_failure,
    serve,
    vpn_status_change,
)

IP = "203.0.113.7"


def _ip_response(*args, **kwargs):
    return io.BytesIO(('{"ip": "%s"}' % IP).encode())


def _completed(args, *a, **kw):
    return subprocess.CompletedProcess(args, 0, stdout="17\n", stderr="")


def test_parse_connected():
    assert parse_message("STATUS Connected") == StatusMessage("STATUS", connected=True)


def test_parse_disconnected_with_whitespace():
    assert parse_message("  STATUS Disconnected\n") == StatusMessage(
        "STATUS", connected=False
    )


def test_parse_failure_detail():
    message = parse_message("FAIL - Failed to update logger: broken")
    assert message.kind == "FAIL"
    assert message.detail == "Failed to update logger: broken"


def test_parse_failure_joins_dashes():
    assert parse_message("FAIL - a-b").detail == "a b"


def test_parse_invalid_status():
    with pytest.raises(ValueError, match="Invalid status"):
        parse_message("STATUS Weird")


def test_parse_unknown_command():
    with pytest.raises(ValueError, match="Unknown command"):
        parse_message("HELLO there")


def test_get_public_ip():
    with patch("urllib.request.urlopen", side_effect=_ip_response):
        assert get_public_ip() == IP


def test_get_public_ip_failure():
    with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
        with pytest.raises(OSError, match="IP Error"):
            get_public_ip()


def test_vpn_status_change_shows_ip_and_closes():
    with patch("urllib.request.urlopen", side_effect=_ip_response), \
            patch("subprocess.run", side_effect=_completed) as run:
        notification = vpn_status_change(True)
        assert run.call_count == 1
        shown = run.call_args_list[0].args[0]
        assert "VPN Status" in shown
        assert f"VPN Connected. IP: {IP}" in shown
        assert notification.close() is None
        assert run.call_count == 2
        closed = run.call_args_list[1].args[0]
        assert closed[-1] == "17"


def test_vpn_status_change_without_notifier_program():
    with patch("urllib.request.urlopen", side_effect=_ip_response), \
            patch("subprocess.run", side_effect=FileNotFoundError("notify-send")):
        with pytest.raises(OSError, match="Notify Error"):
            vpn_status_change(False)


def test_report_failure_is_critical():
    with patch("subprocess.run", side_effect=_completed) as run:
        notification = report_failure("openvpn died")
        assert run.call_count == 1
        args = run.call_args.args[0]
        assert "VPN Handler Error" in args
        assert "openvpn died" in args
        assert "--urgency=critical" in args
        assert notification.close() is None
        assert run.call_count == 2
        assert run.call_args_list[1].args[0][-1] == "17"


def test_handle_invalid_status_keeps_listening():
    with patch("subprocess.run") as run:
        assert handle_message("STATUS Weird") is True
    assert run.call_count == 0


def test_handle_unknown_command_stops():
    assert handle_message("BOGUS") is False


def test_handle_failure_shows_and_closes():
    with patch("subprocess.run", side_effect=_completed) as run, \
            patch("time.sleep"):
        assert handle_message("FAIL - boom") is True
    assert run.call_count == 2
    assert "boom" in run.call_args_list[0].args[0]


def test_handle_status_with_ip_error_keeps_listening():
    with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")), \
            patch("subprocess.run") as run, \
            patch("time.sleep"):
        assert handle_message("STATUS Connected") is True
    assert run.call_count == 0


def _connect(path, timeout=5.0):
    deadline = time.monotonic() + timeout
    while True:
        client = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            client.connect(path)
            return client
        except OSError:
            client.close()
            if time.monotonic() > deadline:
                raise
            time.sleep(0.01)


def test_serve_stops_on_unknown_command():
    sent = []

    def _client(path):
        for payload in (b"STATUS Weird", b"BOGUS"):
            with _connect(path) as client:
                client.sendall(payload)
            sent.append(payload)

    with tempfile.TemporaryDirectory(prefix="vs") as directory:
        path = os.path.join(directory, "s.sock")
        worker = threading.Thread(target=_client, args=(path,), daemon=True)
        worker.start()
        with patch("subprocess.run") as run:
            serve(path)
        worker.join(timeout=5)
        assert not worker.is_alive()
        assert sent == [b"STATUS Weird", b"BOGUS"]
        assert run.call_count == 0