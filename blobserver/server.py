"""
Blob server: resolve a digest and either redirect to storage or stream it.

For each request the server:

    1. stats the digest to get its descriptor
    2. derives the storage path from the descriptor's digest
    3. if redirects are enabled, asks the driver for a direct URL and
       answers 307 when one is offered
    4. otherwise opens a size-bounded reader and hands it to
       ``serve_content`` with immutable-content caching headers

Content at a digest never changes, so the digest is a strong ETag and the
response may be cached for a year.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from flask import Response
from werkzeug.datastructures import Headers

from .content import DEFAULT_CHUNK_SIZE, serve_content
from .digest import Digest
from .errors import BlobNotFound, MetadataResolutionFailed, RedirectFailed, StorageReadFailed
from .paths import PathResolver
from .statter import BlobStatter
from .storage import StorageDriver, open_file_reader

logger = logging.getLogger(__name__)

# One year, in seconds
BLOB_CACHE_CONTROL_MAX_AGE = 365 * 24 * 60 * 60


@dataclass(frozen=True)
class Redirect:
    """Send the client to ``url`` on the storage backend."""

    url: str


@dataclass(frozen=True)
class Stream:
    """Serve the data at driver ``path`` from this server."""

    path: str


class BlobServer:
    """
    Serve blobs from a storage driver, using a statter for metadata.

    Args:
        driver: Storage backend holding blob data
        statter: Metadata resolver producing descriptors
        path_fn: Maps a digest to the driver path of its data
        redirect: Whether to try driver redirect URLs before streaming.
            Disable for backends that cannot serve clients directly.
        cache_max_age: Seconds for the Cache-Control max-age directive
        chunk_size: Bytes per body chunk when streaming

    The server holds no per-request state and is safe to share between
    concurrent requests.
    """

    def __init__(
        self,
        driver: StorageDriver,
        statter: BlobStatter,
        path_fn: Callable[[Digest], str] | None = None,
        redirect: bool = True,
        cache_max_age: int = BLOB_CACHE_CONTROL_MAX_AGE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.driver = driver
        self.statter = statter
        self.path_fn = path_fn or PathResolver().resolve
        self.redirect = redirect
        self.cache_max_age = cache_max_age
        self.chunk_size = chunk_size

    def serve_blob(self, request, digest: Digest, headers: Headers | None = None) -> Response:
        """
        Build the response for the blob at ``digest``.

        Args:
            request: Inbound GET or HEAD request
            digest: Validated blob digest
            headers: Headers already set by an outer layer. They are kept as
                they are; this method only fills in what is missing.

        Returns:
            307 redirect to the storage backend, or the content response
            (200/206/304/412/416) from ``serve_content``

        Raises:
            BlobNotFound: statter has no record of the blob
            MetadataResolutionFailed: statter failed otherwise
            RedirectFailed: driver failed generating a redirect URL
            StorageReadFailed: blob data could not be opened
        """
        headers = Headers(headers)

        try:
            desc = self.statter.stat(digest)
        except BlobNotFound:
            raise
        except Exception as exc:
            logger.error(f"Failed to stat blob {digest}: {exc}")
            raise MetadataResolutionFailed(
                f"failed to resolve blob metadata: {exc}", {"digest": str(digest)}
            ) from exc

        path = self.path_fn(desc.digest)
        logger.debug(f"Blob {desc.digest} resolved to {path}, size: {desc.size} bytes")

        strategy = self.strategy(request, path) if self.redirect else Stream(path)
        if isinstance(strategy, Redirect):
            logger.info(f"Blob redirected: digest='{desc.digest}'")
            headers["Location"] = strategy.url
            return Response(status=307, headers=headers)

        try:
            reader = open_file_reader(self.driver, strategy.path, desc.size)
        except StorageReadFailed as exc:
            logger.error(f"Blob {desc.digest} has metadata but no readable data: {exc}")
            raise

        headers.setdefault("ETag", f'"{desc.digest}"')
        headers.setdefault("Cache-Control", f"max-age={self.cache_max_age}")
        headers.setdefault("Docker-Content-Digest", str(desc.digest))
        headers.setdefault("Content-Type", desc.media_type)
        headers.setdefault("Content-Length", str(desc.size))

        try:
            response = serve_content(
                request, str(desc.digest), reader, desc.size, headers, chunk_size=self.chunk_size
            )
        except BaseException:
            reader.close()
            raise

        # Runs when the WSGI server closes the response, including on disconnect
        response.call_on_close(reader.close)
        logger.info(
            f"Blob served: digest='{desc.digest}', status={response.status_code}, method={request.method}"
        )
        return response

    def strategy(self, request, path: str) -> Redirect | Stream:
        """
        Decide between redirecting to the driver and streaming ``path``.

        An empty URL from the driver means it declines; a driver error is a
        fault and is not converted into a stream.

        Raises:
            RedirectFailed: driver failed generating the URL
        """
        try:
            url = self.driver.redirect_url(request, path)
        except Exception as exc:
            logger.error(f"Driver failed to generate redirect URL for {path}: {exc}")
            raise RedirectFailed(f"failed to generate redirect URL: {exc}", {"path": path}) from exc

        if url:
            return Redirect(url)
        return Stream(path)
