"""
Storage path layout for blobs.

Blob data lives at::

    <root>/blobs/<algorithm>/<first two hex chars>/<hex>/data

The two-character shard keeps any single directory from growing unbounded.
"""

from .digest import Digest

DEFAULT_ROOT = "/docker/registry/v2"


class PathResolver:
    """Map digests to driver paths under a namespace root. No I/O."""

    def __init__(self, root: str = DEFAULT_ROOT):
        self.root = "/" + root.strip("/") if root.strip("/") else ""

    def resolve(self, digest: Digest | str) -> str:
        """
        Return the blob data path for ``digest``.

        Raises:
            MalformedDigest: if the digest is empty or invalid
        """
        if isinstance(digest, str):
            digest = Digest.parse(digest)
        digest.validate()
        return f"{self.root}/blobs/{digest.algorithm}/{digest.hex[:2]}/{digest.hex}/data"

    def __repr__(self):
        return f"PathResolver(root={self.root!r})"
