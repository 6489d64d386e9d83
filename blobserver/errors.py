"""
Error taxonomy for the blob server.

Every error carries the HTTP status and the OCI distribution error code the
HTTP layer reports for it. The core only raises these; mapping to responses
happens in ``routes``.
"""


class BlobServerError(Exception):
    """Base class for all blob serving failures."""

    status_code = 500
    code = "UNKNOWN"

    def __init__(self, message: str, detail: dict | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        """Render as one entry of an OCI ``errors`` array."""
        return {"code": self.code, "message": self.message, "detail": self.detail}


class MalformedDigest(BlobServerError):
    status_code = 400
    code = "DIGEST_INVALID"


class NameInvalid(BlobServerError):
    status_code = 400
    code = "NAME_INVALID"


class BlobNotFound(BlobServerError):
    status_code = 404
    code = "BLOB_UNKNOWN"


class MetadataResolutionFailed(BlobServerError):
    pass


class RedirectFailed(BlobServerError):
    pass


class StorageReadFailed(BlobServerError):
    """Metadata says the blob exists but the backend could not deliver it."""
