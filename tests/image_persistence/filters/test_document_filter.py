from decimal import Decimal
from typing import Any

import pytest

from image_persistence.filters.document_filter import ASCENDING, DESCENDING, DocumentFilter


@pytest.fixture
def documents() -> list[dict[str, Any]]:
    return [
        {"owner": "alice", "id": "a", "added": Decimal(30), "size": Decimal(300)},
        {"owner": "bob", "id": "b", "added": Decimal(10), "size": Decimal(100)},
        {"owner": "alice", "id": "c", "added": Decimal(20), "size": Decimal(100)},
        {"owner": "carol", "id": "d", "size": Decimal(50)},
    ]


class TestMatches:
    def test_empty_filter_matches_everything(self) -> None:
        assert DocumentFilter().matches({"a": 1}, None)
        assert DocumentFilter().matches({"a": 1}, {})

    def test_equality(self) -> None:
        assert DocumentFilter().matches({"owner": "alice"}, {"owner": "alice"})
        assert not DocumentFilter().matches({"owner": "bob"}, {"owner": "alice"})

    def test_decimal_equals_int(self) -> None:
        assert DocumentFilter().matches({"width": Decimal(800)}, {"width": 800})

    def test_missing_field_equals_none(self) -> None:
        assert DocumentFilter().matches({"owner": "alice"}, {"extension": None})
        assert not DocumentFilter().matches({"owner": "alice"}, {"extension": "png"})

    def test_in(self) -> None:
        criteria = {"owner": {"$in": ["alice", "bob"]}}

        assert DocumentFilter().matches({"owner": "bob"}, criteria)
        assert not DocumentFilter().matches({"owner": "carol"}, criteria)

    def test_range(self) -> None:
        criteria = {"added": {"$gte": 10, "$lt": 30}}

        assert DocumentFilter().matches({"added": Decimal(10)}, criteria)
        assert not DocumentFilter().matches({"added": Decimal(30)}, criteria)
        assert not DocumentFilter().matches({}, criteria)

    def test_gt_and_lte(self) -> None:
        assert DocumentFilter().matches({"w": 5}, {"w": {"$gt": 4, "$lte": 5}})
        assert not DocumentFilter().matches({"w": 4}, {"w": {"$gt": 4}})

    def test_incomparable_types_do_not_match(self) -> None:
        assert not DocumentFilter().matches({"w": "wide"}, {"w": {"$gte": 1}})

    def test_ne(self) -> None:
        assert DocumentFilter().matches({"owner": "bob"}, {"owner": {"$ne": "alice"}})
        assert not DocumentFilter().matches({"owner": "alice"}, {"owner": {"$ne": "alice"}})

    def test_elem_match(self) -> None:
        document = {"acl": [{"id": "1", "users": ["u"]}, {"id": "2", "group": "g1"}]}

        assert DocumentFilter().matches(document, {"acl": {"$elemMatch": {"group": "g1"}}})
        assert not DocumentFilter().matches(document, {"acl": {"$elemMatch": {"group": "g2"}}})
        assert not DocumentFilter().matches({"acl": "x"}, {"acl": {"$elemMatch": {"group": "g1"}}})

    def test_dotted_path(self) -> None:
        document = {"metadata": {"camera": {"make": "Canon"}}}

        assert DocumentFilter().matches(document, {"metadata.camera.make": "Canon"})

    def test_plain_map_is_an_equality_match(self) -> None:
        assert DocumentFilter().matches({"m": {"a": 1}}, {"m": {"a": 1}})

    def test_unknown_operator(self) -> None:
        with pytest.raises(ValueError):
            DocumentFilter().matches({"a": 1}, {"a": {"$regex": "x"}})


class TestSelect:
    def test_multi_key_order_with_mixed_directions(self, documents) -> None:
        result = DocumentFilter().select(documents, sort=[("size", ASCENDING), ("id", DESCENDING)])

        assert [document["id"] for document in result] == ["d", "c", "b", "a"]

    def test_missing_values_sort_first(self, documents) -> None:
        result = DocumentFilter().select(documents, sort=[("added", ASCENDING)])

        assert result[0]["id"] == "d"

    def test_filter_sort_window_project(self, documents) -> None:
        result = DocumentFilter().select(
            documents,
            {"owner": "alice"},
            projection={"id": True},
            sort=[("added", DESCENDING)],
            skip=1,
            limit=5,
        )

        assert result == [{"id": "c"}]

    def test_exclude_projection(self) -> None:
        result = DocumentFilter().project({"a": 1, "b": 2}, {"b": False})

        assert result == {"a": 1}

    def test_select_does_not_mutate_input(self, documents) -> None:
        DocumentFilter().select(documents, projection={"id": True})

        assert "owner" in documents[0]
