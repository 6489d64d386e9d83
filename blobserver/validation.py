"""
Input validation module for the blob server.

Provides validation for repository names and digests taken from request paths.
"""

import logging
import re

from .config import config
from .digest import Digest
from .errors import MalformedDigest, NameInvalid

logger = logging.getLogger(__name__)

# OCI distribution repository name grammar
_NAME_COMPONENT = r"[a-z0-9]+(?:(?:\.|_|__|-+)[a-z0-9]+)*"
_REPOSITORY_NAME_RE = re.compile(rf"^{_NAME_COMPONENT}(?:/{_NAME_COMPONENT})*$")


def validate_repository_name(name: str, max_length: int | None = None) -> None:
    """
    Validate repository name from the request path.

    Args:
        name: Repository name (e.g., "library/ubuntu")
        max_length: Length limit, defaults to MAX_REPOSITORY_NAME_LENGTH

    Raises:
        NameInvalid: if the name is empty, too long, or breaks the grammar

    Validation Rules:
        - Must be 1-{MAX_REPOSITORY_NAME_LENGTH} characters (configurable)
        - Slash-separated components of lowercase alphanumerics
        - Components may be joined by ".", "_", "__" or runs of "-"

    Examples:
        >>> validate_repository_name("library/ubuntu")  # OK
        >>> validate_repository_name("my-org/app.web")  # OK
        >>> validate_repository_name("Library/Ubuntu")  # Raises NameInvalid
    """
    limit = max_length if max_length is not None else config.MAX_REPOSITORY_NAME_LENGTH
    if not name or len(name) > limit:
        logger.warning(f"Invalid repository name length: {len(name or '')}")
        raise NameInvalid(f"invalid repository name: must be 1-{limit} characters", {"name": name})

    if not _REPOSITORY_NAME_RE.match(name):
        logger.warning(f"Invalid repository name format: {name}")
        raise NameInvalid("invalid repository name", {"name": name})

    logger.debug(f"Repository name validated: {name}")


def validate_digest(value: str) -> Digest:
    """
    Parse a digest from the request path.

    Returns:
        Validated Digest

    Raises:
        MalformedDigest: if the value is not "<algorithm>:<hex>" with a
            supported algorithm and matching lowercase hex

    Example:
        Valid: "sha256:abc123...def" (64 hex chars after colon)
        Invalid: "sha256:ABC123" (uppercase), "md5:123" (unsupported algorithm)
    """
    try:
        digest = Digest.parse(value)
    except MalformedDigest:
        logger.warning(f"Invalid digest: {value}")
        raise

    logger.debug(f"Digest validated: {digest}")
    return digest
