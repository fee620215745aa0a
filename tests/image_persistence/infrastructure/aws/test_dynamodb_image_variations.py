from typing import Any

import pytest

from image_persistence.infrastructure.aws.dynamodb_image_variations import DynamoDBImageVariations
from image_persistence.models.errors import PersistenceError


class DummyCollection:
    def __init__(self, exc: Exception | None = None) -> None:
        self._exc = exc
        self.find_calls: list[dict[str, Any]] = []

    def insert_one(self, *_: Any, **__: Any) -> Any:
        if self._exc:
            raise self._exc
        return {}

    def find_one(self, criteria: Any, **kwargs: Any) -> Any:
        if self._exc:
            raise self._exc
        self.find_calls.append({"criteria": criteria, **kwargs})
        return None

    def delete_many(self, *_: Any, **__: Any) -> int:
        if self._exc:
            raise self._exc
        return 0


class TestDynamoDBImageVariations:
    def test_best_match_query_shape(self) -> None:
        collection = DummyCollection()

        assert DynamoDBImageVariations(collection).best_match("alice", "img1", 300) is None
        assert collection.find_calls == [
            {
                "criteria": {"owner": "alice", "image_identifier": "img1", "width": {"$gte": 300}},
                "projection": {"width": True, "height": True},
                "sort": [("width", 1)],
            }
        ]

    @pytest.mark.parametrize("operation", ["record", "match", "delete"])
    def test_store_failures(self, client_error, operation) -> None:
        repo = DynamoDBImageVariations(DummyCollection(client_error("InternalServerError", "Op")))

        with pytest.raises(PersistenceError):
            if operation == "record":
                repo.record_variant("alice", "img1", 100, 75)
            elif operation == "match":
                repo.best_match("alice", "img1", 100)
            else:
                repo.delete_variants("alice", "img1")
