"""Starts and stops the OpenVPN process."""

from __future__ import annotations

import subprocess
import time

from vpnswitch.config import ConfigFiles

ATTEMPTS = 10
RETRY_DELAY = 1.0
DEFAULT_COMMAND = "openvpn"


class Handler:
    """Runs one OpenVPN process with a randomly chosen configuration."""

    def __init__(
        self, config: ConfigFiles | None = None, command: str = DEFAULT_COMMAND
    ) -> None:
        if config is None:
            config = ConfigFiles()
            config.init()
        self.config = config
        self.command = command
        self.process: subprocess.Popen[bytes] | None = None

    @property
    def running(self) -> bool:
        return self.process is not None

    def start(self) -> None:
        """Launch OpenVPN, retrying a few times if it cannot be spawned."""
        if self.process is not None:
            raise FileExistsError("OpenVPN is already running")
        for _ in range(ATTEMPTS):
            args = [
                self.command,
                "--config",
                self.config.random_file_path(),
                "--auth-user-pass",
                self.config.auth,
            ]
            try:
                self.process = subprocess.Popen(args)
            except OSError:
                time.sleep(RETRY_DELAY)
            else:
                print("OpenVPN process started.")
                return
        raise OSError("Failed to start OpenVPN")

    def stop(self) -> None:
        """Kill the running OpenVPN process, if there is one."""
        process, self.process = self.process, None
        if process is None:
            return
        for _ in range(ATTEMPTS):
            try:
                process.kill()
                process.wait(timeout=RETRY_DELAY * 5)
            except (OSError, subprocess.TimeoutExpired):
                time.sleep(RETRY_DELAY)
            else:
                return
        raise OSError("Failed to stop OpenVPN")