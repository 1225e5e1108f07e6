"""Daily-rotated log file used by the VPN control daemon."""

from __future__ import annotations

import os
import threading
from datetime import datetime, timedelta
from pathlib import Path

from vpnswitch.errors import DateTimeParseError, LoggerError, MissingPrefixError

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
HEADER_PREFIX = "LOG CREATED AT: "
MAX_AGE = timedelta(hours=24)
DEFAULT_LOG_PATH = Path.home() / ".vpnswitch" / "log.txt"


class Logger:
    """Appends timestamped lines to a log file that is replaced once a day.

    The first line of the file records when it was created; a file older
    than 24 hours is discarded and started afresh by :meth:`update`.
    """

    def __init__(self, log_path: str | os.PathLike[str] | None = None) -> None:
        self.log_path = Path(log_path) if log_path is not None else DEFAULT_LOG_PATH
        self.timestamp = datetime.now()
        self._lock = threading.RLock()

    def update(self) -> None:
        """Start a new log file if the current one is missing or too old."""
        with self._lock:
            if self.rotate_needed():
                self.rotate_logs()

    def rotate_needed(self) -> bool:
        """Tell whether the log file must be recreated.

        A fresh file leaves its creation time in :attr:`timestamp`.
        """
        with self._lock:
            try:
                with self.log_path.open(encoding="utf-8") as handle:
                    first_line = handle.readline()
            except FileNotFoundError:
                return True
            except OSError as exc:
                raise LoggerError(f"I/O Error: {exc}") from exc

            if not first_line:
                raise LoggerError("I/O Error: Log File Is Empty")
            first_line = first_line.rstrip("\n").removesuffix("\r")

            if not first_line.startswith(HEADER_PREFIX):
                raise MissingPrefixError()
            raw = first_line[len(HEADER_PREFIX):]
            try:
                created = datetime.strptime(raw, TIME_FORMAT)
            except ValueError as exc:
                raise DateTimeParseError(exc) from exc

            if datetime.now() - created > MAX_AGE:
                return True
            self.timestamp = created
            return False

    def rotate_logs(self) -> None:
        """Replace the log file with an empty one headed by the current time."""
        with self._lock:
            now = datetime.now()
            try:
                if self.log_path.exists():
                    self.log_path.unlink()
                self.log_path.parent.mkdir(parents=True, exist_ok=True)
                self.log_path.write_text(
                    f"{HEADER_PREFIX}{now.strftime(TIME_FORMAT)}\n", encoding="utf-8"
                )
            except OSError as exc:
                raise LoggerError(f"I/O Error: {exc}") from exc
            self.timestamp = now

    def log(self, msg: str) -> None:
        """Append one timestamped message; the log file must already exist."""
        with self._lock:
            line = f"[{datetime.now().strftime(TIME_FORMAT)}] > {msg}\n"
            try:
                fd = os.open(self.log_path, os.O_WRONLY | os.O_APPEND)
                with os.fdopen(fd, "a", encoding="utf-8") as handle:
                    handle.write(line)
            except OSError as exc:
                raise LoggerError(f"I/O Error: {exc}") from exc