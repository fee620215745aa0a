"""
In-memory evaluation of document filters.

The gateway filter language is a small subset of the familiar query-document
style used by document stores:

    {"owner": "alice"}                              equality (missing == None)
    {"owner": {"$in": ["alice", "bob"]}}            membership
    {"added": {"$gte": 1700000000, "$lte": 1800000000}}
    {"width": {"$gt": 100}}, {"$lt": ...}, {"$ne": ...}
    {"acl": {"$elemMatch": {"group": "g1"}}}        any list element matches

Multiple fields are AND-ed. Dotted field names walk nested maps. This module
also owns sorting, projection and the skip/limit window so the DynamoDB
gateway can offer query semantics the table itself cannot express.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from image_persistence.filters.offset_pagination import OffsetPagination

Document = dict[str, Any]
Filter = Mapping[str, Any]
Projection = Mapping[str, bool]
Sort = Sequence[tuple[str, int]]

ASCENDING = 1
DESCENDING = -1

_MISSING = object()


class DocumentFilter:
    """
    Stateless helper that filters, orders, projects and windows documents.

    Typical usage by a gateway:
    1. Fetch candidate documents from the store
    2. Keep those that ``matches`` the filter
    3. ``order`` them, ``window`` them, then ``project`` each one
    """

    def __init__(self) -> None:
        self._pagination: OffsetPagination = OffsetPagination()

    def matches(self, document: Mapping[str, Any], criteria: Filter | None) -> bool:
        """Return True when the document satisfies every criterion."""
        if not criteria:
            return True

        for field, condition in criteria.items():
            value = self._resolve(document, field)

            if self._is_operator_map(condition):
                if not all(
                    self._apply(operator, value, operand)
                    for operator, operand in condition.items()
                ):
                    return False
            elif not self._equals(value, condition):
                return False

        return True

    def select(
        self,
        documents: Sequence[Mapping[str, Any]],
        criteria: Filter | None = None,
        *,
        projection: Projection | None = None,
        sort: Sort | None = None,
        skip: int | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Run the full filter → order → window → project pipeline."""
        matched = [dict(document) for document in documents if self.matches(document, criteria)]
        ordered = self.order(matched, sort)
        windowed = self._pagination.paginate(ordered, skip, limit)

        return [self.project(document, projection) for document in windowed]

    def order(self, documents: list[Document], sort: Sort | None) -> list[Document]:
        """
        Sort documents by several (field, direction) pairs.

        Python's sort is stable, so applying the keys from least to most
        significant yields a correct multi-key order with mixed directions.
        Missing values sort before any present value in ascending order.
        """
        if not sort:
            return documents

        ordered = list(documents)

        for field, direction in reversed(list(sort)):
            ordered.sort(
                key=lambda document: self._sort_key(self._resolve(document, field)),
                reverse=direction == DESCENDING,
            )

        return ordered

    @staticmethod
    def project(document: Document, projection: Projection | None) -> Document:
        """
        Apply an include or exclude projection.

        If any field maps to True only those fields are kept; otherwise fields
        mapped to False are removed.
        """
        if not projection:
            return document

        included = [field for field, keep in projection.items() if keep]

        if included:
            return {field: document[field] for field in included if field in document}

        excluded = {field for field, keep in projection.items() if not keep}
        return {field: value for field, value in document.items() if field not in excluded}

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _apply(self, operator: str, value: Any, operand: Any) -> bool:
        if operator == "$in":
            return any(self._equals(value, candidate) for candidate in operand)

        if operator == "$ne":
            return not self._equals(value, operand)

        if operator == "$elemMatch":
            if not isinstance(value, list):
                return False
            return any(
                isinstance(element, Mapping) and self.matches(element, operand)
                for element in value
            )

        if operator in ("$gt", "$gte", "$lt", "$lte"):
            return self._compare(operator, value, operand)

        raise ValueError(f"Unsupported filter operator: {operator}")

    def _compare(self, operator: str, value: Any, operand: Any) -> bool:
        if value is _MISSING or value is None or not self._comparable(value, operand):
            return False

        if operator == "$gt":
            return value > operand
        if operator == "$gte":
            return value >= operand
        if operator == "$lt":
            return value < operand
        return value <= operand

    @staticmethod
    def _comparable(left: Any, right: Any) -> bool:
        numeric = (int, float, Decimal)

        if isinstance(left, bool) or isinstance(right, bool):
            return False

        if isinstance(left, numeric) and isinstance(right, numeric):
            return True

        return type(left) is type(right)

    @staticmethod
    def _equals(value: Any, expected: Any) -> bool:
        if value is _MISSING:
            return expected is None

        return bool(value == expected)

    @staticmethod
    def _is_operator_map(condition: Any) -> bool:
        return (
            isinstance(condition, Mapping)
            and bool(condition)
            and all(isinstance(key, str) and key.startswith("$") for key in condition)
        )

    @staticmethod
    def _resolve(document: Mapping[str, Any], field: str) -> Any:
        current: Any = document

        for part in field.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return _MISSING
            current = current[part]

        return current

    @staticmethod
    def _sort_key(value: Any) -> tuple[int, Any]:
        if value is _MISSING or value is None:
            return (0, 0)
        if isinstance(value, bool):
            return (3, int(value))
        if isinstance(value, (int, float, Decimal)):
            return (1, value)
        if isinstance(value, str):
            return (2, value)
        return (4, repr(value))
