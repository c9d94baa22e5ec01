"""Local state for one environment.

The config store maps flat string keys to opaque bytes. The filesystem
implementation keeps one file per key in the environment's state directory,
so operators can inspect it directly (e.g. environments/<name>/ssh-key).
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from .errors import NotFoundError

SSH_KEY = "ssh-key"
DIRECTOR_MANIFEST = "director.yml"


class ConfigStore(Protocol):
    """Key -> bytes store for one environment."""

    def get(self, key: str) -> bytes: ...

    def set(self, key: str, value: bytes) -> None: ...

    def is_empty(self) -> bool: ...


def _check_key(key: str) -> None:
    if not key or key in (".", "..") or "/" in key or os.sep in key:
        raise ValueError(f"invalid config store key: {key!r}")


class FilesystemConfigStore:
    """Config store backed by files under a root directory."""

    def __init__(self, root_dir: Path | str):
        """Initialize the store.

        Args:
            root_dir: Existing directory holding this environment's state
        """
        self.root_dir = Path(root_dir)

    def _path(self, key: str) -> Path:
        _check_key(key)
        return self.root_dir / key

    def get(self, key: str) -> bytes:
        """Read a value.

        Raises:
            NotFoundError: If the key has never been set
        """
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(message=f"key not found: {key}", data={"path": str(path)}) from e

    def set(self, key: str, value: bytes) -> None:
        """Write a value durably.

        The bytes go to a temp file in the same directory, which is fsynced
        and renamed over the target; the directory is fsynced last so the
        rename itself survives a crash.
        """
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", dir=self.root_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._fsync_dir()

    def _fsync_dir(self) -> None:
        dir_fd = os.open(self.root_dir, os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)

    def is_empty(self) -> bool:
        """True if the root directory has no entries at all.

        Raises:
            OSError: If the directory cannot be listed
        """
        with os.scandir(self.root_dir) as entries:
            return next(entries, None) is None
