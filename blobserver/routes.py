"""
Flask application and blob endpoints.

Implements the read side of the OCI Distribution Specification blob API.
"""

import logging

from flask import Blueprint, Flask, Response, current_app, jsonify, request
from werkzeug.datastructures import Headers

from .config import Config, config as default_config
from .errors import BlobServerError
from .paths import PathResolver
from .server import BlobServer
from .statter import CachedBlobStatter, DriverBlobStatter
from .storage import FilesystemDriver
from .validation import validate_digest, validate_repository_name

logger = logging.getLogger(__name__)

API_VERSION_HEADER = "Docker-Distribution-API-Version"
API_VERSION = "registry/2.0"

registry = Blueprint("registry", __name__)


# -------------------------------
# Wiring
# -------------------------------


def build_blob_server(cfg: Config) -> BlobServer:
    """Assemble the filesystem-backed blob server described by ``cfg``."""
    driver = FilesystemDriver(cfg.STORAGE_ROOT, redirect_base_url=cfg.REDIRECT_BASE_URL)
    paths = PathResolver(cfg.STORAGE_NAMESPACE_ROOT)
    statter = DriverBlobStatter(driver, paths)
    if cfg.CACHE_SIZE > 0:
        statter = CachedBlobStatter(statter, maxsize=cfg.CACHE_SIZE)

    return BlobServer(
        driver,
        statter,
        path_fn=paths.resolve,
        redirect=cfg.REDIRECT_ENABLED,
        cache_max_age=cfg.BLOB_CACHE_MAX_AGE,
        chunk_size=cfg.READ_CHUNK_SIZE,
    )


def create_app(cfg: Config | None = None, blob_server: BlobServer | None = None) -> Flask:
    """
    Create the Flask application.

    Args:
        cfg: Configuration, defaults to the global config
        blob_server: Blob server to use instead of one built from ``cfg``
    """
    cfg = cfg or default_config
    app = Flask(__name__)
    app.config["MAX_REPOSITORY_NAME_LENGTH"] = cfg.MAX_REPOSITORY_NAME_LENGTH
    app.extensions["blob_server"] = blob_server or build_blob_server(cfg)
    app.register_blueprint(registry)
    app.register_error_handler(BlobServerError, handle_blob_server_error)
    return app


def handle_blob_server_error(error: BlobServerError):
    """Render errors as an OCI error envelope with the error's status."""
    if error.status_code >= 500:
        logger.error(f"{type(error).__name__}: {error.message}")
    else:
        logger.warning(f"{type(error).__name__}: {error.message}")

    resp = jsonify({"errors": [error.to_dict()]})
    resp.status_code = error.status_code
    resp.headers[API_VERSION_HEADER] = API_VERSION
    return resp


# -------------------------------
# Registry Endpoints
# -------------------------------


@registry.route("/v2/")
def v2_root():
    """
    OCI Distribution API version check endpoint.

    Returns:
        Response with status 200 and Docker-Distribution-API-Version header
    """
    logger.info("Registry v2 API root accessed")
    resp = Response(status=200)
    resp.headers[API_VERSION_HEADER] = API_VERSION
    return resp


@registry.route("/v2/<path:name>/blobs/<digest>", methods=["GET", "HEAD"])
def get_blob(name, digest):
    """
    Get or check a blob by digest (OCI Distribution Spec).

    Args:
        name: Repository name (validated)
        digest: Digest in format "<algorithm>:<hex>" (validated)

    Methods:
        GET: Returns blob content, whole or by Range
        HEAD: Returns only headers

    Response Headers:
        ETag: Quoted digest
        Cache-Control: max-age=<BLOB_CACHE_MAX_AGE>
        Docker-Content-Digest: Canonical digest
        Content-Type, Content-Length, Accept-Ranges, Content-Range (206)

    Returns:
        200, 206, 304, 307 (redirect to storage), 412 or 416

    Raises:
        400: Invalid name or digest
        404: Blob unknown
        500: Metadata or storage failure
    """
    validate_repository_name(name, max_length=current_app.config["MAX_REPOSITORY_NAME_LENGTH"])
    dgst = validate_digest(digest)

    logger.info(f"Blob requested: name='{name}', digest='{dgst}', method={request.method}")

    headers = Headers()
    headers[API_VERSION_HEADER] = API_VERSION
    return current_app.extensions["blob_server"].serve_blob(request, dgst, headers)
