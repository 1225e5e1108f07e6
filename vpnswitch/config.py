"""Discovery of the OpenVPN configuration files to choose from."""

from __future__ import annotations

import os
import random
import threading
from collections.abc import Iterator
from pathlib import Path

AUTH_FILE_NAME = "auth.txt"


class ConfigFiles:
    """Collects every configuration file below a directory, except the auth file."""

    def __init__(
        self,
        main_dir: str | os.PathLike[str] | None = None,
        auth: str | os.PathLike[str] | None = None,
    ) -> None:
        self.main_dir = Path(main_dir) if main_dir is not None else Path.home() / "VPN"
        self.auth = str(auth) if auth is not None else str(self.main_dir / AUTH_FILE_NAME)
        self._files: list[str] = []
        self._lock = threading.Lock()

    def init(self) -> None:
        """Walk the main directory recursively and record every file found."""
        self._collect(self.main_dir)

    def random_file_path(self) -> str:
        """Return the path of one recorded configuration file, chosen at random."""
        with self._lock:
            if not self._files:
                raise IndexError("no configuration files have been found")
            return random.choice(self._files)

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            snapshot = list(self._files)
        return iter(snapshot)

    def _collect(self, directory: Path) -> None:
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.name == AUTH_FILE_NAME:
                    continue
                path = Path(entry.path)
                if path.is_dir():
                    self._collect(path)
                else:
                    with self._lock:
                        self._files.append(str(path))