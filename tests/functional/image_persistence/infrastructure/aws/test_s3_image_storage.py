from datetime import datetime, timezone
from unittest import mock

import pytest

from image_persistence.infrastructure.aws import s3_image_storage
from image_persistence.infrastructure.aws.s3_image_storage import S3ImageStorage
from image_persistence.models.errors import NotFoundError
from image_persistence.utils.constants import ENV_IMAGE_S3_BUCKET_NAME


@pytest.fixture
def storage(s3_buckets) -> S3ImageStorage:
    return S3ImageStorage()


class TestS3ImageStorage:
    def test_store_and_fetch(self, storage, sample_image_binary, s3_get_object) -> None:
        with mock.patch.object(s3_image_storage, "now_timestamp", return_value=1_700_000_000):
            assert storage.store("alice", "img1", sample_image_binary) is True

        assert storage.fetch("alice", "img1") == sample_image_binary
        assert storage.exists("alice", "img1") is True
        assert s3_get_object(ENV_IMAGE_S3_BUCKET_NAME, "alice.img1")["metadata"] == {
            "owner": "alice",
            "image-identifier": "img1",
            "updated": "1700000000",
        }

    def test_second_store_only_touches(self, storage, s3_get_object) -> None:
        with mock.patch.object(s3_image_storage, "now_timestamp", return_value=1_700_000_000):
            storage.store("alice", "img1", b"original")
        with mock.patch.object(s3_image_storage, "now_timestamp", return_value=1_700_000_500):
            storage.store("alice", "img1", b"replacement")

        assert storage.fetch("alice", "img1") == b"original"
        assert storage.last_modified("alice", "img1") == datetime.fromtimestamp(1_700_000_500, tz=timezone.utc)
        assert s3_get_object(ENV_IMAGE_S3_BUCKET_NAME, "alice.img1")["metadata"]["owner"] == "alice"

    def test_non_ascii_owner(self, storage) -> None:
        with mock.patch.object(s3_image_storage, "now_timestamp", return_value=1_700_000_000):
            assert storage.store("jürgen", "img1", b"data") is True

        assert storage.fetch("jürgen", "img1") == b"data"
        assert storage.exists("jürgen", "img1") is True
        assert storage.last_modified("jürgen", "img1") == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)

        assert storage.delete("jürgen", "img1") is True
        assert storage.exists("jürgen", "img1") is False

    def test_fetch_missing(self, storage) -> None:
        with pytest.raises(NotFoundError):
            storage.fetch("alice", "missing")

    def test_delete(self, storage) -> None:
        storage.store("alice", "img1", b"bytes")
        storage.store("alice", "img10", b"other")

        assert storage.delete("alice", "img1") is True

        assert storage.exists("alice", "img1") is False
        assert storage.exists("alice", "img10") is True

    def test_delete_missing(self, storage) -> None:
        with pytest.raises(NotFoundError):
            storage.delete("alice", "img1")

    def test_last_modified_missing(self, storage) -> None:
        with pytest.raises(NotFoundError):
            storage.last_modified("alice", "img1")

    def test_health_check(self, storage) -> None:
        assert storage.health_check() is True
