"""
Storage driver interface, size-bounded blob reader and the filesystem driver.

Drivers address content by "/"-separated absolute paths (as produced by
``PathResolver``). The blob server only needs three capabilities from a
driver: stat a path, open a reader at an offset, and optionally hand out a
direct-access redirect URL.
"""

import io
import logging
import stat as stat_module
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable
from urllib.parse import quote

from .errors import StorageReadFailed

logger = logging.getLogger(__name__)


class StorageDriverError(Exception):
    """A storage driver operation failed."""


class PathNotFoundError(StorageDriverError):
    def __init__(self, path: str):
        super().__init__(f"path not found: {path}")
        self.path = path


@dataclass(frozen=True)
class FileInfo:
    path: str
    size: int
    is_dir: bool = False


@runtime_checkable
class StorageDriver(Protocol):
    """Capabilities the blob server consumes from a storage backend."""

    def stat(self, path: str) -> FileInfo:
        """
        Return metadata for ``path``.

        Raises:
            PathNotFoundError: if nothing exists at ``path``
            StorageDriverError: for other backend failures
        """
        ...

    def reader(self, path: str, offset: int = 0) -> BinaryIO:
        """
        Open a binary stream over ``path`` positioned at ``offset``.

        Raises:
            PathNotFoundError: if nothing exists at ``path``
            StorageDriverError: for other backend failures
        """
        ...

    def redirect_url(self, request, path: str) -> str:
        """
        Return a URL the client can fetch ``path`` from directly.

        An empty string means the driver declines and the content must be
        served by the caller. ``request`` is the inbound request, for drivers
        that key signed URLs off request attributes.
        """
        ...


class FileReader(io.RawIOBase):
    """
    Seekable reader over a driver path, bounded to ``size`` bytes.

    The underlying driver stream is opened lazily at the current offset and
    reopened after a seek. Reads stop at ``size`` regardless of how much the
    backend holds. A backend that ends early or fails mid-read raises
    ``StorageReadFailed``.
    """

    def __init__(self, driver: StorageDriver, path: str, size: int):
        super().__init__()
        self.driver = driver
        self.path = path
        self.size = size
        self._offset = 0
        self._stream = None

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._offset

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed reader")

        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._offset + offset
        elif whence == io.SEEK_END:
            position = self.size + offset
        else:
            raise ValueError(f"invalid whence: {whence}")

        if position < 0:
            raise ValueError(f"negative seek position: {position}")

        if position != self._offset:
            self._close_stream()
            self._offset = position
        return position

    def open(self) -> None:
        """Open the backend stream at the current offset if not already open."""
        if self._stream is not None:
            return
        try:
            self._stream = self.driver.reader(self.path, self._offset)
        except (StorageDriverError, OSError) as exc:
            raise StorageReadFailed(
                f"failed to open blob data at {self.path}: {exc}", {"path": self.path}
            ) from exc

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed reader")

        remaining = self.size - self._offset
        if remaining <= 0 or len(buffer) == 0:
            return 0

        self.open()
        want = min(len(buffer), remaining)
        try:
            data = self._stream.read(want)
        except OSError as exc:
            self._close_stream()
            raise StorageReadFailed(
                f"failed reading blob data at {self.path}: {exc}", {"path": self.path}
            ) from exc

        if not data:
            # Metadata promised more bytes than the backend holds
            raise StorageReadFailed(
                f"unexpected end of blob data at {self.path}: "
                f"got {self._offset} of {self.size} bytes",
                {"path": self.path},
            )

        n = len(data)
        buffer[:n] = data
        self._offset += n
        return n

    def close(self) -> None:
        if not self.closed:
            logger.debug(f"Closing reader for {self.path} at offset {self._offset}")
            self._close_stream()
        super().close()

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()


def open_file_reader(driver: StorageDriver, path: str, size: int) -> FileReader:
    """
    Open a size-bounded reader on ``path``.

    The backend stream is opened eagerly so a missing path is reported here,
    not halfway through a response.

    Raises:
        StorageReadFailed: if the backend cannot open ``path``
    """
    reader = FileReader(driver, path, size)
    try:
        reader.open()
    except BaseException:
        reader.close()
        raise
    return reader


class FilesystemDriver:
    """
    Storage driver over a local directory.

    Driver paths are resolved under ``root_directory``. When
    ``redirect_base_url`` is set, ``redirect_url`` points clients at
    ``<redirect_base_url>/<path>`` (for a CDN or static file server fronting
    the same directory); otherwise it declines with an empty string.
    """

    name = "filesystem"

    def __init__(self, root_directory: str | Path, redirect_base_url: str = ""):
        self.root_directory = Path(root_directory)
        self.redirect_base_url = redirect_base_url.rstrip("/")

    def _full_path(self, path: str) -> Path:
        if not path.startswith("/") or ".." in path.split("/"):
            raise StorageDriverError(f"invalid path: {path}")
        return self.root_directory / path.lstrip("/")

    def stat(self, path: str) -> FileInfo:
        full_path = self._full_path(path)
        try:
            st = full_path.stat()
        except FileNotFoundError as exc:
            raise PathNotFoundError(path) from exc
        except OSError as exc:
            raise StorageDriverError(f"stat {path}: {exc}") from exc
        return FileInfo(path=path, size=st.st_size, is_dir=stat_module.S_ISDIR(st.st_mode))

    def reader(self, path: str, offset: int = 0) -> BinaryIO:
        full_path = self._full_path(path)
        try:
            fp = open(full_path, "rb")
        except FileNotFoundError as exc:
            raise PathNotFoundError(path) from exc
        except OSError as exc:
            raise StorageDriverError(f"open {path}: {exc}") from exc

        try:
            fp.seek(offset)
        except OSError as exc:
            fp.close()
            raise StorageDriverError(f"seek {path} to {offset}: {exc}") from exc
        return fp

    def redirect_url(self, request, path: str) -> str:
        if not self.redirect_base_url:
            return ""
        return f"{self.redirect_base_url}/{quote(path.lstrip('/'))}"

    def __repr__(self):
        return f"FilesystemDriver(root_directory={str(self.root_directory)!r})"
