"""
Blob metadata resolution.

A statter answers "what is the blob at this digest?" with a descriptor, or
``BlobNotFound``. The server only depends on the ``BlobStatter`` protocol.
"""

import logging
from functools import lru_cache
from typing import Protocol, runtime_checkable

from .digest import BlobDescriptor, Digest
from .errors import BlobNotFound
from .paths import PathResolver
from .storage import PathNotFoundError, StorageDriver, StorageDriverError

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@runtime_checkable
class BlobStatter(Protocol):
    def stat(self, digest: Digest) -> BlobDescriptor:
        """
        Return the descriptor for ``digest``.

        Raises:
            BlobNotFound: if there is no record of the blob
        """
        ...


class DriverBlobStatter:
    """Resolve descriptors by stat-ing the blob data path on the driver."""

    def __init__(self, driver: StorageDriver, paths: PathResolver | None = None):
        self.driver = driver
        self.paths = paths or PathResolver()

    def stat(self, digest: Digest) -> BlobDescriptor:
        path = self.paths.resolve(digest)
        try:
            info = self.driver.stat(path)
        except PathNotFoundError as exc:
            logger.debug(f"No blob data at {path}")
            raise BlobNotFound("blob unknown to registry", {"digest": str(digest)}) from exc

        if info.is_dir:
            # Blob data paths are always files
            raise StorageDriverError(f"blob path should not be a directory: {path}")

        return BlobDescriptor(digest=digest, size=info.size, media_type=DEFAULT_MEDIA_TYPE)


class CachedBlobStatter:
    """
    LRU cache in front of another statter.

    Safe because descriptors for a digest never change. Failures, including
    ``BlobNotFound``, are not cached, so a blob that appears later is found.
    """

    def __init__(self, statter: BlobStatter, maxsize: int = 1024):
        self.statter = statter
        self._stat = lru_cache(maxsize=maxsize)(statter.stat)

    def stat(self, digest: Digest) -> BlobDescriptor:
        return self._stat(digest)

    def cache_info(self):
        return self._stat.cache_info()
