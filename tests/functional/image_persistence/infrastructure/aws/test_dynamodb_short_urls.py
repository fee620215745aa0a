import pytest

from image_persistence.infrastructure.aws.dynamodb_short_urls import DynamoDBShortUrls
from image_persistence.models.errors import InternalError
from image_persistence.models.short_url import ShortUrlParams


@pytest.fixture
def repo(short_url_table) -> DynamoDBShortUrls:
    return DynamoDBShortUrls()


class TestDynamoDBShortUrls:
    def test_create_and_resolve(self, repo) -> None:
        repo.create("aaBBcc1", "alice", "img1", "png", {"t": ["thumbnail"]})

        assert repo.resolve("aaBBcc1") == ShortUrlParams(
            owner="alice",
            image_identifier="img1",
            extension="png",
            query={"t": ["thumbnail"]},
        )

    def test_find_id_ignores_query_key_order(self, repo) -> None:
        repo.create("aaBBcc1", "alice", "img1", None, {"b": "2", "a": "1"})

        assert repo.find_id("alice", "img1", None, {"a": "1", "b": "2"}) == "aaBBcc1"

    def test_find_id_requires_exact_tuple(self, repo) -> None:
        repo.create("aaBBcc1", "alice", "img1", "png", {"t": ["thumbnail"]})

        assert repo.find_id("alice", "img1", None, {"t": ["thumbnail"]}) is None
        assert repo.find_id("alice", "img1", "jpg", {"t": ["thumbnail"]}) is None
        assert repo.find_id("alice", "img1", "png", {}) is None
        assert repo.find_id("bob", "img1", "png", {"t": ["thumbnail"]}) is None

    def test_find_id_without_rows_returns_none(self, repo) -> None:
        assert repo.find_id("alice", "img1", None, {}) is None

    def test_resolve_missing(self, repo) -> None:
        assert repo.resolve("missing") is None

    def test_resolve_empty_query_is_internal_error(self, repo, short_url_table) -> None:
        short_url_table.put_item(
            Item={"short_url_id": "broken", "owner": "alice", "image_identifier": "img1", "query": None}
        )

        with pytest.raises(InternalError):
            repo.resolve("broken")

    def test_resolve_empty_query_map(self, repo) -> None:
        repo.create("aaBBcc1", "alice", "img1")

        resolved = repo.resolve("aaBBcc1")

        assert resolved is not None
        assert resolved.query == {}
        assert resolved.extension is None

    def test_delete_all(self, repo) -> None:
        repo.create("one", "alice", "img1")
        repo.create("two", "alice", "img1", "png")
        repo.create("three", "alice", "img2")

        assert repo.delete_all("alice", "img1") is True

        assert repo.resolve("one") is None
        assert repo.resolve("two") is None
        assert repo.resolve("three") is not None

    def test_delete_single(self, repo) -> None:
        repo.create("one", "alice", "img1")
        repo.create("two", "alice", "img1", "png")

        repo.delete_all("alice", "img1", "one")

        assert repo.resolve("one") is None
        assert repo.resolve("two") is not None

    def test_delete_single_of_other_image_is_ignored(self, repo) -> None:
        repo.create("one", "alice", "img1")

        repo.delete_all("alice", "img2", "one")

        assert repo.resolve("one") is not None
