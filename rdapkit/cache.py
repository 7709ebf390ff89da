"""Caches for bootstrap Service Registry files, in memory or on disk."""

from __future__ import annotations

import abc
import enum
import os
import stat
import time
from pathlib import Path

DEFAULT_TIMEOUT = 24 * 60 * 60.0
DEFAULT_CACHE_DIR_NAME = ".openrdap"


class FileState(enum.Enum):
    """Cache state of a single Service Registry file."""

    ABSENT = "absent"
    """The file is not in the cache."""
    GOOD = "good"
    """The file is cached and its latest version has been loaded or saved."""
    SHOULD_RELOAD = "should_reload"
    """The file is cached and a newer version is available to load."""
    EXPIRED = "expired"
    """The file is cached but has expired; it can still be loaded."""

    def __str__(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    FileState.ABSENT: "not cached",
    FileState.GOOD: "good",
    FileState.SHOULD_RELOAD: "good",
    FileState.EXPIRED: "expired",
}


class CacheMissError(LookupError):
    """Raised when a file is requested that the cache does not hold."""


class RegistryCache(abc.ABC):
    """A cache of Service Registry files."""

    @abc.abstractmethod
    def load(self, filename: str) -> bytes:
        """Return the cached contents of ``filename``."""

    @abc.abstractmethod
    def save(self, filename: str, data: bytes) -> None:
        """Store ``data`` as ``filename``."""

    @abc.abstractmethod
    def state(self, filename: str) -> FileState:
        """Return the cache state of ``filename``."""

    @abc.abstractmethod
    def set_timeout(self, timeout: float) -> None:
        """Set how many seconds a file is kept before it expires."""


class MemoryCache(RegistryCache):
    """Caches Service Registry files in memory."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self._data: dict[str, bytes] = {}
        self._saved_at: dict[str, float] = {}

    def set_timeout(self, timeout: float) -> None:
        self.timeout = timeout

    def save(self, filename: str, data: bytes) -> None:
        self._data[filename] = bytes(data)
        self._saved_at[filename] = time.monotonic()

    def load(self, filename: str) -> bytes:
        """Return the file even if it has expired."""
        try:
            return self._data[filename]
        except KeyError:
            raise CacheMissError(f"File {filename} not in cache") from None

    def state(self, filename: str) -> FileState:
        saved_at = self._saved_at.get(filename)
        if saved_at is None:
            return FileState.ABSENT
        if saved_at + self.timeout < time.monotonic():
            return FileState.EXPIRED
        return FileState.GOOD


class DiskCache(RegistryCache):
    """Caches Service Registry files in a directory, using mtimes for expiry.

    The directory defaults to ``~/.openrdap`` and is created as needed.
    """

    def __init__(
        self, dir: str | os.PathLike[str] | None = None, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self.dir = Path(dir) if dir is not None else Path.home() / DEFAULT_CACHE_DIR_NAME
        self.timeout = timeout
        self._last_loaded: dict[str, int] = {}

    def init_dir(self) -> bool:
        """Create the cache directory; return True if it was created now."""
        try:
            info = os.stat(self.dir)
        except FileNotFoundError:
            os.mkdir(self.dir, 0o775)
            return True
        if not stat.S_ISDIR(info.st_mode):
            raise NotADirectoryError(f"Cache dir {self.dir} is not a dir")
        return False

    def set_timeout(self, timeout: float) -> None:
        self.timeout = timeout

    def save(self, filename: str, data: bytes) -> None:
        self.init_dir()
        self._path(filename).write_bytes(bytes(data))
        try:
            self._last_loaded[filename] = self._mtime(filename)
        except OSError as exc:
            raise OSError(f"File {filename} failed to save correctly: {exc}") from exc

    def load(self, filename: str) -> bytes:
        """Return the file even if it has expired."""
        try:
            mtime = self._mtime(filename)
        except OSError as exc:
            raise CacheMissError(f"Unable to load {filename}: {exc}") from exc
        data = self._path(filename).read_bytes()
        self._last_loaded[filename] = mtime
        return data

    def state(self, filename: str) -> FileState:
        try:
            mtime = self._mtime(filename)
        except OSError:
            return FileState.ABSENT
        expiry = time.time_ns() - int(self.timeout * 1_000_000_000)
        if mtime <= expiry:
            return FileState.EXPIRED
        last_loaded = self._last_loaded.get(filename)
        if last_loaded is not None and mtime <= last_loaded:
            return FileState.GOOD
        return FileState.SHOULD_RELOAD

    def _mtime(self, filename: str) -> int:
        return os.stat(self._path(filename)).st_mtime_ns

    def _path(self, filename: str) -> Path:
        return self.dir / filename