"""
Content-addressed blob server.

Serves immutable blobs by digest over the OCI Distribution blob API. Each
blob is either redirected to its storage backend or streamed directly with
strong caching, conditional request and byte range support.

Features:
    - OCI Distribution blob endpoints (GET/HEAD /v2/<name>/blobs/<digest>)
    - Storage redirects with fallback to direct streaming
    - Strong ETag and one-year Cache-Control for immutable content
    - If-None-Match / If-Match / If-Range conditional requests
    - Single and multi-range partial content
    - LRU caching for blob metadata
    - Configurable via environment variables

Storage Layout:
    <STORAGE_ROOT><STORAGE_NAMESPACE_ROOT>/blobs/<algorithm>/<hex[:2]>/<hex>/data
"""

__version__ = "0.1.0"

# Import key components for convenience
from .config import Config
from .content import serve_content
from .digest import BlobDescriptor, Digest
from .errors import (
    BlobNotFound,
    BlobServerError,
    MalformedDigest,
    MetadataResolutionFailed,
    NameInvalid,
    RedirectFailed,
    StorageReadFailed,
)
from .paths import PathResolver
from .server import BlobServer, Redirect, Stream
from .statter import CachedBlobStatter, DriverBlobStatter
from .storage import FileReader, FilesystemDriver, open_file_reader

__all__ = [
    "Config",
    "serve_content",
    "BlobDescriptor",
    "Digest",
    "BlobNotFound",
    "BlobServerError",
    "MalformedDigest",
    "MetadataResolutionFailed",
    "NameInvalid",
    "RedirectFailed",
    "StorageReadFailed",
    "PathResolver",
    "BlobServer",
    "Redirect",
    "Stream",
    "CachedBlobStatter",
    "DriverBlobStatter",
    "FileReader",
    "FilesystemDriver",
    "open_file_reader",
]
