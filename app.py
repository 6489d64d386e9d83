"""
Content-addressed blob server.

Serves immutable blobs by digest over the OCI Distribution blob API,
redirecting clients to the storage backend when it can serve them directly
and streaming the content otherwise.

Architecture:
    1. Client requests a blob (GET/HEAD /v2/<name>/blobs/<digest>)
    2. Server validates the name and digest
    3. Server stats the blob data to build its descriptor
    4. If redirects are enabled and storage offers a URL, answers 307
    5. Otherwise streams the data with ETag, Cache-Control and
       Docker-Content-Digest, honoring conditional and Range requests

Endpoints:
    - GET /v2/ - Version check
    - GET/HEAD /v2/<name>/blobs/<digest> - Get/check blob

Environment Variables:
    LOG_LEVEL, FLASK_HOST, FLASK_PORT, STORAGE_ROOT, STORAGE_NAMESPACE_ROOT,
    REDIRECT_ENABLED, REDIRECT_BASE_URL, BLOB_CACHE_MAX_AGE, CACHE_SIZE,
    READ_CHUNK_SIZE, MAX_REPOSITORY_NAME_LENGTH

Example:
    $ STORAGE_ROOT=/srv/registry LOG_LEVEL=DEBUG python app.py
    $ curl -I localhost:6443/v2/library/ubuntu/blobs/sha256:<hex>
"""

import logging

from blobserver.config import config
from blobserver.routes import create_app

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = create_app(config)


def main():
    """Main entry point for the blob server."""
    debug_mode = logger.getEffectiveLevel() == logging.DEBUG
    logger.info(f"Starting blob server on {config.FLASK_HOST}:{config.FLASK_PORT}")
    logger.info(f"Configuration: {config}")
    logger.info(f"Log level: {logging.getLevelName(logger.getEffectiveLevel())}")
    if debug_mode:
        logger.info("Flask debug mode enabled")
    app.run(host=config.FLASK_HOST, port=config.FLASK_PORT, debug=debug_mode, threaded=True)


if __name__ == "__main__":
    main()
