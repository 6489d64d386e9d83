"""
Configuration module for the blob server.

Loads all configuration from environment variables with sensible defaults.
"""

import os

_TRUE_VALUES = ("1", "true", "yes", "on")


def _getenv_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


class Config:
    """
    Blob server configuration from environment variables.

    All settings can be overridden by setting the corresponding environment variable.
    """

    def __init__(self):
        """
        Initialize configuration from environment variables.

        Environment Variables:
            LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO
            FLASK_HOST: Server bind address. Default: 0.0.0.0
            FLASK_PORT: Server bind port. Default: 6443
            STORAGE_ROOT: Filesystem directory holding blob data. Default: /var/lib/blobserver
            STORAGE_NAMESPACE_ROOT: Driver path prefix for blob data. Default: /docker/registry/v2
            REDIRECT_ENABLED: Try storage redirects before streaming. Default: true
            REDIRECT_BASE_URL: Base URL clients are redirected to. Default: empty (no redirects)
            BLOB_CACHE_MAX_AGE: Cache-Control max-age for blobs in seconds. Default: 31536000
            CACHE_SIZE: Number of blob descriptors to cache, 0 disables. Default: 1024
            READ_CHUNK_SIZE: Streaming chunk size in bytes. Default: 65536
            MAX_REPOSITORY_NAME_LENGTH: Maximum repository name length. Default: 255
        """
        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

        # Server
        self.FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
        self.FLASK_PORT = int(os.getenv("FLASK_PORT", "6443"))

        # Storage
        self.STORAGE_ROOT = os.getenv("STORAGE_ROOT", "/var/lib/blobserver")
        self.STORAGE_NAMESPACE_ROOT = os.getenv("STORAGE_NAMESPACE_ROOT", "/docker/registry/v2")

        # Serving
        self.REDIRECT_ENABLED = _getenv_bool("REDIRECT_ENABLED", "true")
        self.REDIRECT_BASE_URL = os.getenv("REDIRECT_BASE_URL", "")
        self.BLOB_CACHE_MAX_AGE = int(os.getenv("BLOB_CACHE_MAX_AGE", "31536000"))  # seconds
        self.READ_CHUNK_SIZE = int(os.getenv("READ_CHUNK_SIZE", "65536"))

        # Cache
        self.CACHE_SIZE = int(os.getenv("CACHE_SIZE", "1024"))

        # Validation limits
        self.MAX_REPOSITORY_NAME_LENGTH = int(os.getenv("MAX_REPOSITORY_NAME_LENGTH", "255"))

    def __repr__(self):
        """String representation for logging."""
        return (
            f"Config(LOG_LEVEL={self.LOG_LEVEL}, "
            f"FLASK_HOST={self.FLASK_HOST}, "
            f"FLASK_PORT={self.FLASK_PORT}, "
            f"STORAGE_ROOT={self.STORAGE_ROOT}, "
            f"REDIRECT_ENABLED={self.REDIRECT_ENABLED}, "
            f"CACHE_SIZE={self.CACHE_SIZE})"
        )


# Global config instance
config = Config()
