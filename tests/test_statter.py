import pytest

from blobserver.digest import Digest
from blobserver.errors import BlobNotFound
from blobserver.paths import PathResolver
from blobserver.statter import BlobStatter, CachedBlobStatter, DriverBlobStatter
from blobserver.storage import FileInfo, StorageDriverError

from conftest import FakeDriver


class TestDriverBlobStatter:
    def test_stat_existing_blob(self, driver, blob_digest, blob_data):
        desc = DriverBlobStatter(driver).stat(blob_digest)
        assert desc.digest == blob_digest
        assert desc.size == len(blob_data)
        assert desc.media_type == "application/octet-stream"

    def test_stat_uses_path_layout(self, driver, blob_digest, blob_path):
        DriverBlobStatter(driver, PathResolver()).stat(blob_digest)
        assert driver.called("stat") == [("stat", blob_path)]

    def test_stat_unknown_blob(self):
        with pytest.raises(BlobNotFound) as exc_info:
            DriverBlobStatter(FakeDriver()).stat(Digest.from_bytes(b"nope"))
        assert exc_info.value.status_code == 404

    def test_directory_at_data_path_is_an_error(self, blob_digest, blob_path):
        driver = FakeDriver()
        driver.stat = lambda path: FileInfo(path=path, size=0, is_dir=True)
        with pytest.raises(StorageDriverError):
            DriverBlobStatter(driver).stat(blob_digest)

    def test_satisfies_protocol(self, driver):
        assert isinstance(DriverBlobStatter(driver), BlobStatter)


class TestCachedBlobStatter:
    def test_caches_descriptors(self, driver, blob_digest):
        statter = CachedBlobStatter(DriverBlobStatter(driver), maxsize=4)
        first = statter.stat(blob_digest)
        second = statter.stat(blob_digest)
        assert first == second
        assert len(driver.called("stat")) == 1
        assert statter.cache_info().hits == 1

    def test_not_found_is_not_cached(self, blob_digest, blob_path, blob_data):
        driver = FakeDriver()
        statter = CachedBlobStatter(DriverBlobStatter(driver))
        with pytest.raises(BlobNotFound):
            statter.stat(blob_digest)

        driver.files[blob_path] = blob_data
        assert statter.stat(blob_digest).size == len(blob_data)
