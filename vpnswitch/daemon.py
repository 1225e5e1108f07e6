"""Control daemon that switches the VPN according to a serial-attached switch."""

from __future__ import annotations

import argparse
import contextlib
import os
import socket
import threading
import time
from typing import Any

import serial

from vpnswitch.errors import LoggerError
from vpnswitch.handler import Handler
from vpnswitch.logger import Logger
from vpnswitch.notifier import DEFAULT_STATUS_SOCKET, Notifier

CONTROL_SOCKET_PATH = "/tmp/vpn-control.sock"
DEFAULT_PORT = "/dev/ttyACM0"
BAUD_RATE = 57600
SERIAL_TIMEOUT = 10
UPDATE_INTERVAL = 3600.0
NOTIFIER_ATTEMPTS = 10
NOTIFIER_DELAY = 0.25
WRITE_ATTEMPTS = 5
WRITE_DELAY = 0.05
CONNECT_SETTLE = 10.0
DISCONNECT_SETTLE = 5.0
COMMAND_SIZE = 7

_notifier_lock = threading.Lock()


def _send(notifier: Any, message: str) -> None:
    with _notifier_lock:
        notifier.send_message(message)


def create_notifier(socket_path: str | os.PathLike[str] | None = None) -> Notifier:
    """Connect to the status listener, retrying while it is not yet up."""
    for _ in range(NOTIFIER_ATTEMPTS):
        try:
            return Notifier(socket_path)
        except OSError:
            time.sleep(NOTIFIER_DELAY)
    raise OSError(f"Failed to initialize Notifier after {NOTIFIER_ATTEMPTS} attempts")


def write_to_stream(stream: socket.socket, message: str, logger: Logger) -> None:
    """Send a reply line to a control client, logging if every attempt fails."""
    data = f"{message}\n\n".encode("utf-8")
    for attempt in range(WRITE_ATTEMPTS + 1):
        try:
            stream.sendall(data)
        except OSError as exc:
            if attempt < WRITE_ATTEMPTS:
                time.sleep(WRITE_DELAY)
            else:
                logger.log(f"Failed to write to stream: {exc}")
        else:
            return


def check_for_updates(logger: Logger, notifier: Any, stop_event: threading.Event) -> None:
    """Rotate the log every ``UPDATE_INTERVAL`` seconds, reporting failures."""
    while not stop_event.wait(UPDATE_INTERVAL):
        try:
            logger.update()
        except LoggerError as exc:
            msg = f"Failed to update logger: {exc}"
            try:
                logger.log(msg)
                _send(notifier, f"FAIL - {msg}")
            except (LoggerError, OSError):
                continue


def _report_switch(logger: Logger, notifier: Any, state: str) -> None:
    _send(notifier, f"STATUS {state}")
    with contextlib.suppress(LoggerError):
        logger.log(f"VPN STATUS CHANGE: {state}")


def _follow_switch(
    logger: Logger,
    notifier: Any,
    kill_event: threading.Event,
    port: Any,
    handler: Any,
    port_name: str,
    connect_settle: float = CONNECT_SETTLE,
    disconnect_settle: float = DISCONNECT_SETTLE,
) -> None:
    connected = False
    while True:
        if kill_event.is_set():
            handler.stop()
            return
        line = port.readline()
        if not line:
            raise TimeoutError(
                f"no data from {port_name} within {SERIAL_TIMEOUT} seconds"
            )
        message = line.decode("utf-8", errors="replace").strip()
        if message == "Turn On" and not connected:
            print("Turning VPN On")
            connected = True
            handler.start()
            time.sleep(connect_settle)
            _report_switch(logger, notifier, "Connected")
        elif message == "Turn Off" and connected:
            print("Turning VPN Off")
            connected = False
            handler.stop()
            time.sleep(disconnect_settle)
            _report_switch(logger, notifier, "Disconnected")


def runner(
    logger: Logger,
    notifier: Any,
    kill_event: threading.Event,
    port_name: str = DEFAULT_PORT,
) -> None:
    """Follow the switch on the serial port until ``kill_event`` is set."""
    with serial.Serial(port_name, BAUD_RATE, timeout=SERIAL_TIMEOUT) as port:
        handler = Handler()
        _follow_switch(logger, notifier, kill_event, port, handler, port_name)


class ControlDaemon:
    """Answers the commands status, start and stop on the control socket."""

    def __init__(self, logger: Logger, notifier: Any, port_name: str = DEFAULT_PORT) -> None:
        self.logger = logger
        self.notifier = notifier
        self.port_name = port_name
        self.kill_event = threading.Event()
        # Called as (logger, notifier, kill_event, port_name) in the worker thread.
        self.switch_runner = runner
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None

    def handle_command(self, command: str, stream: socket.socket) -> None:
        """Carry out one control command, replying on ``stream``."""
        if command == "status":
            reply = "Daemon is running" if self.running else "Daemon is not running"
            write_to_stream(stream, reply, self.logger)
        elif command == "start":
            self._start(stream)
        elif command == "stop":
            self._stop(stream)
        else:
            write_to_stream(stream, "Received invalid command!", self.logger)

    def serve(self, socket_path: str | os.PathLike[str] = CONTROL_SOCKET_PATH) -> None:
        """Listen on the control socket and handle clients forever."""
        with contextlib.suppress(FileNotFoundError):
            os.remove(socket_path)
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as server:
            server.bind(os.fspath(socket_path))
            server.listen()
            print("VPN Control Daemon listening...")
            while True:
                conn, _ = server.accept()
                with conn:
                    self._serve_connection(conn)

    def _serve_connection(self, conn: socket.socket) -> None:
        try:
            data = conn.recv(COMMAND_SIZE)
        except OSError as exc:
            msg = f"Error reading from socket: {exc}"
            write_to_stream(conn, msg, self.logger)
            with contextlib.suppress(LoggerError):
                self.logger.log(msg)
            return
        command = data.decode("utf-8", errors="replace").strip()
        print(f"Received command: {command}!")
        self.handle_command(command, conn)

    def _start(self, stream: socket.socket) -> None:
        if self._thread is not None:
            write_to_stream(stream, "Daemon is already running", self.logger)
            return
        self.kill_event.clear()
        self._error = None
        self._thread = threading.Thread(target=self._run, name="vpn-runner", daemon=True)
        self._thread.start()
        msg = "Daemon started"
        try:
            self.logger.log(msg)
        except LoggerError:
            return
        write_to_stream(stream, msg, self.logger)

    def _run(self) -> None:
        try:
            self.switch_runner(self.logger, self.notifier, self.kill_event, self.port_name)
        except Exception as exc:
            self._error = exc
            msg = f"Runner encountered error: {exc!r}"
            print(msg)
            with contextlib.suppress(LoggerError):
                self.logger.log(msg)
            return
        self.kill_event.clear()

    def _stop(self, stream: socket.socket) -> None:
        self.kill_event.set()
        thread, self._thread = self._thread, None
        if thread is None:
            return
        write_to_stream(stream, "Killing VPN if needed...", self.logger)
        thread.join()
        write_to_stream(stream, "Stopped listening to Arduino...", self.logger)
        if self._error is not None:
            write_to_stream(
                stream,
                "Process threw error when terminating...\n"
                f"Thrown error: {self._error!r}",
                self.logger,
            )
        with contextlib.suppress(LoggerError):
            self.logger.log("Stopped listening")


def main(argv: list[str] | None = None) -> int:
    """Run the control daemon."""
    parser = argparse.ArgumentParser(
        prog="vpnswitch-daemon",
        description="Switch OpenVPN on and off from a serial-attached switch.",
    )
    parser.add_argument("--control-socket", default=CONTROL_SOCKET_PATH)
    parser.add_argument("--status-socket", default=DEFAULT_STATUS_SOCKET)
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--port", default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    logger = Logger(args.log_file)
    logger.update()

    try:
        notifier = create_notifier(args.status_socket)
    except OSError as exc:
        msg = f"Failed to initialize Notifier: {exc}"
        logger.log(msg)
        raise SystemExit(msg) from exc

    stop_event = threading.Event()
    updater = threading.Thread(
        target=check_for_updates,
        args=(logger, notifier, stop_event),
        name="log-updater",
        daemon=True,
    )
    updater.start()
    try:
        ControlDaemon(logger, notifier, args.port).serve(args.control_socket)
    finally:
        stop_event.set()
        updater.join()
        notifier.close()
    return 0