"""Unit tests for DynamoDBAccessControl error handling."""

from typing import Any

import pytest

from image_persistence.infrastructure.adapters.dynamodb_adapter import UpdateResult
from image_persistence.infrastructure.aws.dynamodb_access_control import DynamoDBAccessControl
from image_persistence.models.errors import ConflictError, FilterError, PersistenceError
from image_persistence.utils.constants import ERROR_CODE_INVALID_ACCESS_RULE


class DummyCollection:
    """Gateway stub recording updates and optionally failing."""

    def __init__(self, *, exc: Exception | None = None) -> None:
        self._exc = exc
        self.updates: list[dict[str, Any]] = []

    def _maybe_raise(self) -> None:
        if self._exc:
            raise self._exc

    def find_one(self, *_: Any, **__: Any) -> dict[str, Any] | None:
        self._maybe_raise()
        return None

    def insert_one(self, document: Any) -> Any:
        self._maybe_raise()
        return document

    def update_one(self, criteria: Any, **kwargs: Any) -> UpdateResult:
        self._maybe_raise()
        self.updates.append(kwargs)
        return UpdateResult(1, 1)

    def delete_one(self, *_: Any, **__: Any) -> int:
        self._maybe_raise()
        return 0


class TestDynamoDBAccessControl:
    def test_create_duplicate(self, client_error) -> None:
        repo = DynamoDBAccessControl(DummyCollection(exc=client_error("ConditionalCheckFailedException", "PutItem")))

        with pytest.raises(ConflictError):
            repo.create_key_pair("pub", "priv")

    def test_create_failure(self, client_error) -> None:
        repo = DynamoDBAccessControl(DummyCollection(exc=client_error("InternalServerError", "PutItem")))

        with pytest.raises(PersistenceError):
            repo.create_key_pair("pub", "priv")

    def test_create_unexpected_failure(self) -> None:
        repo = DynamoDBAccessControl(DummyCollection(exc=RuntimeError("boom")))

        with pytest.raises(PersistenceError):
            repo.create_key_pair("pub", "priv")

    def test_read_failure(self, client_error) -> None:
        repo = DynamoDBAccessControl(DummyCollection(exc=client_error("InternalServerError", "GetItem")))

        with pytest.raises(PersistenceError):
            repo.get_private_key("pub")

    def test_delete_rule_conflict_is_a_persistence_error(self, client_error) -> None:
        repo = DynamoDBAccessControl(DummyCollection(exc=client_error("ConditionalCheckFailedException", "UpdateItem")))

        with pytest.raises(PersistenceError):
            repo.delete_rule("pub", "abc")

    def test_add_rule_pushes_generated_id(self) -> None:
        collection = DummyCollection()
        repo = DynamoDBAccessControl(collection)

        rule_id = repo.add_rule("pub", {"id": "caller", "resources": ["r"], "group": "g1"})

        assert collection.updates == [
            {"push": {"acl": {"id": rule_id, "resources": ["r"], "group": "g1"}}}
        ]

    def test_add_rule_rejects_malformed_rule(self) -> None:
        collection = DummyCollection()
        repo = DynamoDBAccessControl(collection)

        with pytest.raises(FilterError) as exc_info:
            repo.add_rule("pub", {"users": "alice"})

        assert exc_info.value.error_code == ERROR_CODE_INVALID_ACCESS_RULE
        assert exc_info.value.details["public_key"] == "pub"
        assert collection.updates == []
