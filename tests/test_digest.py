import hashlib

import pytest

from blobserver.digest import BlobDescriptor, Digest
from blobserver.errors import MalformedDigest
from blobserver.validation import validate_digest

SHA256_HEX = "a" * 64


class TestDigest:
    def test_parse_valid_sha256(self):
        digest = Digest.parse(f"sha256:{SHA256_HEX}")
        assert digest.algorithm == "sha256"
        assert digest.hex == SHA256_HEX
        assert str(digest) == f"sha256:{SHA256_HEX}"

    def test_parse_other_supported_algorithms(self):
        assert Digest.parse("sha384:" + "b" * 96).algorithm == "sha384"
        assert Digest.parse("sha512:" + "c" * 128).algorithm == "sha512"

    def test_equality_is_structural(self):
        assert Digest.parse(f"sha256:{SHA256_HEX}") == Digest("sha256", SHA256_HEX)
        assert hash(Digest("sha256", SHA256_HEX)) == hash(Digest("sha256", SHA256_HEX))
        assert Digest("sha256", SHA256_HEX) != Digest("sha256", "b" * 64)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "sha256",
            f":{SHA256_HEX}",
            "sha256:",
            f"sha256:{SHA256_HEX.upper()}",
            "sha256:abc",
            "md5:d41d8cd98f00b204e9800998ecf8427e",
            f"SHA256:{SHA256_HEX}",
            f"sha256:{'g' * 64}",
        ],
    )
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(MalformedDigest):
            Digest.parse(value)

    def test_malformed_digest_reports_code_and_status(self):
        with pytest.raises(MalformedDigest) as exc_info:
            Digest.parse("sha256:xyz")
        assert exc_info.value.status_code == 400
        assert exc_info.value.to_dict()["code"] == "DIGEST_INVALID"

    def test_validate_rejects_empty_components(self):
        with pytest.raises(MalformedDigest):
            Digest("", SHA256_HEX).validate()
        with pytest.raises(MalformedDigest):
            Digest("sha256", "").validate()

    def test_from_bytes(self):
        digest = Digest.from_bytes(b"hello")
        assert str(digest) == "sha256:2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"

    def test_from_bytes_sha512(self):
        digest = Digest.from_bytes(b"hello", "sha512")
        assert digest.hex == hashlib.sha512(b"hello").hexdigest()
        digest.validate()

    def test_from_bytes_unsupported_algorithm(self):
        with pytest.raises(MalformedDigest):
            Digest.from_bytes(b"hello", "md5")

    def test_validate_digest_returns_parsed(self):
        assert validate_digest(f"sha256:{SHA256_HEX}") == Digest("sha256", SHA256_HEX)


class TestBlobDescriptor:
    def test_defaults_media_type(self):
        desc = BlobDescriptor(Digest("sha256", SHA256_HEX), 10)
        assert desc.media_type == "application/octet-stream"

    def test_rejects_negative_size(self):
        with pytest.raises(ValueError):
            BlobDescriptor(Digest("sha256", SHA256_HEX), -1)

    def test_is_immutable(self):
        desc = BlobDescriptor(Digest("sha256", SHA256_HEX), 10)
        with pytest.raises(AttributeError):
            desc.size = 20
