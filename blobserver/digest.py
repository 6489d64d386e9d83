"""
Digest and descriptor value types.

A digest is the content identifier ``<algorithm>:<hex>`` used both as the
request key and as the strong validator in response headers.
"""

import hashlib
import logging
import re
from dataclasses import dataclass

from .errors import MalformedDigest

logger = logging.getLogger(__name__)

# Hex length per supported algorithm
DIGEST_HEX_LENGTHS = {
    "sha256": 64,
    "sha384": 96,
    "sha512": 128,
}

CANONICAL_ALGORITHM = "sha256"

_ALGORITHM_RE = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*$")
_HEX_RE = re.compile(r"^[a-f0-9]+$")


@dataclass(frozen=True)
class Digest:
    """
    Content digest in OCI format.

    Instances compare and hash structurally. Construction does not validate;
    use ``Digest.parse`` for untrusted input or ``validate`` before use.

    Examples:
        >>> d = Digest.parse("sha256:" + "a" * 64)
        >>> d.algorithm
        'sha256'
        >>> str(Digest.from_bytes(b"hello"))
        'sha256:2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """

    algorithm: str
    hex: str

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.hex}"

    @classmethod
    def parse(cls, value: str) -> "Digest":
        """
        Parse and validate a digest string.

        Args:
            value: Digest in format "<algorithm>:<hex>"

        Returns:
            Validated Digest

        Raises:
            MalformedDigest: if the string is not a valid, supported digest
        """
        if not isinstance(value, str) or ":" not in value:
            logger.warning(f"Invalid digest format: {value!r}")
            raise MalformedDigest("invalid checksum digest format", {"digest": str(value)})

        algorithm, _, hex_part = value.partition(":")
        digest = cls(algorithm, hex_part)
        digest.validate()
        return digest

    @classmethod
    def from_bytes(cls, data: bytes, algorithm: str = CANONICAL_ALGORITHM) -> "Digest":
        """Compute the digest of ``data``."""
        if algorithm not in DIGEST_HEX_LENGTHS:
            raise MalformedDigest(f"unsupported digest algorithm: {algorithm}", {"algorithm": algorithm})
        return cls(algorithm, hashlib.new(algorithm, data).hexdigest())

    def validate(self) -> None:
        """
        Check syntax and algorithm support.

        Raises:
            MalformedDigest: empty component, bad characters, unsupported
                algorithm or wrong hex length
        """
        detail = {"digest": str(self)}
        if not self.algorithm or not self.hex:
            raise MalformedDigest("digest algorithm and hex must be non-empty", detail)
        if not _ALGORITHM_RE.match(self.algorithm):
            raise MalformedDigest("invalid digest algorithm", detail)
        if self.algorithm not in DIGEST_HEX_LENGTHS:
            raise MalformedDigest(f"unsupported digest algorithm: {self.algorithm}", detail)
        if not _HEX_RE.match(self.hex):
            raise MalformedDigest("digest hex must be lowercase hexadecimal", detail)
        if len(self.hex) != DIGEST_HEX_LENGTHS[self.algorithm]:
            raise MalformedDigest(
                f"invalid {self.algorithm} digest length: expected "
                f"{DIGEST_HEX_LENGTHS[self.algorithm]}, got {len(self.hex)}",
                detail,
            )


@dataclass(frozen=True)
class BlobDescriptor:
    """Metadata for one blob. ``size`` bounds every read of its content."""

    digest: Digest
    size: int
    media_type: str = "application/octet-stream"

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"blob size must be >= 0, got {self.size}")
