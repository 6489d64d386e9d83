import io

import pytest

from blobserver.config import Config
from blobserver.digest import BlobDescriptor, Digest
from blobserver.errors import BlobNotFound
from blobserver.paths import PathResolver
from blobserver.routes import create_app
from blobserver.storage import FileInfo, PathNotFoundError


class FakeDriver:
    """In-memory storage driver that records every call."""

    def __init__(self, files=None, redirect=""):
        self.files = dict(files or {})
        # URL string to offer, or an exception to raise
        self.redirect = redirect
        self.calls = []
        self.streams = []

    def stat(self, path):
        self.calls.append(("stat", path))
        if path not in self.files:
            raise PathNotFoundError(path)
        return FileInfo(path=path, size=len(self.files[path]))

    def reader(self, path, offset=0):
        self.calls.append(("reader", path, offset))
        if path not in self.files:
            raise PathNotFoundError(path)
        stream = io.BytesIO(self.files[path])
        stream.seek(offset)
        self.streams.append(stream)
        return stream

    def redirect_url(self, request, path):
        self.calls.append(("redirect_url", path))
        if isinstance(self.redirect, Exception):
            raise self.redirect
        return self.redirect

    def called(self, name):
        return [call for call in self.calls if call[0] == name]


class FakeStatter:
    """Statter answering from a fixed set of descriptors."""

    def __init__(self, descriptors=(), error=None):
        self.descriptors = {desc.digest: desc for desc in descriptors}
        self.error = error
        self.calls = []

    def stat(self, digest):
        self.calls.append(digest)
        if self.error is not None:
            raise self.error
        if digest not in self.descriptors:
            raise BlobNotFound("blob unknown to registry", {"digest": str(digest)})
        return self.descriptors[digest]


@pytest.fixture
def blob_data():
    return bytes(range(256)) * 4


@pytest.fixture
def blob_digest(blob_data):
    return Digest.from_bytes(blob_data)


@pytest.fixture
def blob_path(blob_digest):
    return PathResolver().resolve(blob_digest)


@pytest.fixture
def descriptor(blob_digest, blob_data):
    return BlobDescriptor(blob_digest, len(blob_data), "application/octet-stream")


@pytest.fixture
def driver(blob_path, blob_data):
    return FakeDriver({blob_path: blob_data})


@pytest.fixture
def statter(descriptor):
    return FakeStatter([descriptor])


@pytest.fixture
def storage_root(tmp_path, blob_data, blob_digest):
    """Filesystem storage root holding ``blob_data`` at its blob path."""
    data_path = tmp_path / PathResolver().resolve(blob_digest).lstrip("/")
    data_path.parent.mkdir(parents=True)
    data_path.write_bytes(blob_data)
    return tmp_path


@pytest.fixture
def make_config(monkeypatch, storage_root):
    def _make(**env):
        monkeypatch.setenv("STORAGE_ROOT", str(storage_root))
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return Config()

    return _make


@pytest.fixture
def client(make_config):
    """Test client for an app serving ``storage_root`` without redirects."""
    app = create_app(make_config(REDIRECT_ENABLED="false"))
    with app.test_client() as client:
        yield client
