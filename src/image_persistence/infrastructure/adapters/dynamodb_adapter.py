"""Thin DynamoDB adapter exposing a document-collection interface."""

from collections.abc import Iterator, Mapping, Sequence
from decimal import Decimal
import os
import threading
from typing import Any, NamedTuple, Protocol, cast
import uuid

import boto3
from boto3.dynamodb.conditions import Key

from image_persistence.filters.document_filter import (
    Document,
    DocumentFilter,
    Filter,
    Projection,
    Sort,
)
from image_persistence.utils.constants import ENV_AWS_ENDPOINT_URL, ENV_AWS_REGION
from image_persistence.utils.normalize import to_store


class UpdateResult(NamedTuple):
    """Outcome of an update: documents matched and documents changed."""

    matched_count: int
    modified_count: int


class DynamoDBTable(Protocol):
    """Minimal DynamoDB Table protocol."""

    table_status: str

    def put_item(self, **kwargs: Any) -> dict[str, Any]: ...
    def get_item(self, **kwargs: Any) -> dict[str, Any]: ...
    def update_item(self, **kwargs: Any) -> dict[str, Any]: ...
    def delete_item(self, **kwargs: Any) -> dict[str, Any]: ...
    def query(self, **kwargs: Any) -> dict[str, Any]: ...
    def scan(self, **kwargs: Any) -> dict[str, Any]: ...
    def batch_writer(self) -> Any: ...
    def reload(self) -> None: ...


class DocumentStoreGateway(Protocol):
    """Document collection operations repositories depend on.

    Implementations raise their native exceptions; repositories translate.
    """

    def find_one(
        self,
        criteria: Filter | None = None,
        *,
        projection: Projection | None = None,
        sort: Sort | None = None,
    ) -> Document | None: ...

    def find_many(
        self,
        criteria: Filter | None = None,
        *,
        projection: Projection | None = None,
        sort: Sort | None = None,
        skip: int | None = None,
        limit: int | None = None,
    ) -> list[Document]: ...

    def count(self, criteria: Filter | None = None) -> int: ...

    def insert_one(self, document: Mapping[str, Any]) -> Document: ...

    def update_one(
        self,
        criteria: Filter,
        *,
        set_values: Mapping[str, Any] | None = None,
        push: Mapping[str, Any] | None = None,
        pull: Mapping[str, Filter] | None = None,
    ) -> UpdateResult: ...

    def update_many(
        self,
        criteria: Filter,
        *,
        set_values: Mapping[str, Any] | None = None,
        push: Mapping[str, Any] | None = None,
        pull: Mapping[str, Filter] | None = None,
    ) -> UpdateResult: ...

    def delete_one(self, criteria: Filter) -> int: ...

    def delete_many(self, criteria: Filter | None = None) -> int: ...

    def aggregate_sum(self, field: str, criteria: Filter | None = None) -> int | float | Decimal: ...

    def distinct(self, field: str, criteria: Filter | None = None) -> set[Any]: ...

    def ping(self) -> bool: ...


class DynamoDBCollection:
    """Low-level DynamoDB operations (mechanical, no error handling).

    This adapter:
    - Wraps one boto3 DynamoDB table as a document collection
    - Narrows reads to get_item or query when the filter pins the key,
      otherwise scans; filtering, ordering and windowing happen in memory
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(
        self,
        *,
        key_fields: Sequence[str],
        table_name: str | None = None,
        table_name_env: str | None = None,
        enforce_unique: bool = True,
        resource: Any | None = None,
    ) -> None:
        """Bind to a table by explicit name or by environment variable.

        Args:
            key_fields: Key attribute names, hash key first
            table_name: Table name; falls back to ``table_name_env``
            table_name_env: Environment variable holding the table name
            enforce_unique: Reject inserts whose key already exists
            resource: Pre-configured boto3 DynamoDB resource
        """
        name = table_name or (os.getenv(table_name_env) if table_name_env else None)
        if not name:
            raise RuntimeError(f"{table_name_env or 'table_name'} environment variable is not set")

        if not key_fields:
            raise ValueError("key_fields must name at least the hash key")

        self.table_name = name
        self._resource = resource
        self._local = threading.local()
        self._key_fields = tuple(key_fields)
        self._enforce_unique = enforce_unique
        self._filter = DocumentFilter()

    @property
    def table(self) -> DynamoDBTable:
        """The table handle owned by the calling thread.

        boto3 resources are not thread-safe, so each thread builds its own
        from a private session unless a resource was injected.
        """
        table = getattr(self._local, "table", None)

        if table is None:
            dynamodb = self._resource or boto3.session.Session().resource(
                "dynamodb",
                endpoint_url=os.getenv(ENV_AWS_ENDPOINT_URL),
                region_name=os.getenv(ENV_AWS_REGION),
            )
            table = cast(DynamoDBTable, dynamodb.Table(self.table_name))
            self._local.table = table

        return table

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_one(
        self,
        criteria: Filter | None = None,
        *,
        projection: Projection | None = None,
        sort: Sort | None = None,
    ) -> Document | None:
        """Return the first matching document or None.

        Raises boto3 exceptions - caught by domain implementation.
        """
        documents = self.find_many(criteria, projection=projection, sort=sort, limit=1)
        return documents[0] if documents else None

    def find_many(
        self,
        criteria: Filter | None = None,
        *,
        projection: Projection | None = None,
        sort: Sort | None = None,
        skip: int | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Return matching documents, ordered, windowed and projected.

        Raises boto3 exceptions - caught by domain implementation.
        """
        return self._filter.select(
            list(self._candidates(criteria)),
            criteria,
            projection=projection,
            sort=sort,
            skip=skip,
            limit=limit,
        )

    def count(self, criteria: Filter | None = None) -> int:
        """Count matching documents, ignoring any window."""
        return sum(1 for item in self._candidates(criteria) if self._filter.matches(item, criteria))

    def aggregate_sum(self, field: str, criteria: Filter | None = None) -> int | float | Decimal:
        """Sum a numeric field over matching documents."""
        total: int | float | Decimal = 0

        for item in self._candidates(criteria):
            value = item.get(field)
            if self._filter.matches(item, criteria) and isinstance(value, (int, float, Decimal)):
                total += value

        return total

    def distinct(self, field: str, criteria: Filter | None = None) -> set[Any]:
        """Collect the distinct values of a field over matching documents."""
        return {
            item[field]
            for item in self._candidates(criteria)
            if field in item and self._filter.matches(item, criteria)
        }

    def ping(self) -> bool:
        """Describe the table and report whether it is usable."""
        self.table.reload()
        return self.table.table_status in ("ACTIVE", "UPDATING")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_one(self, document: Mapping[str, Any]) -> Document:
        """Insert a document, generating a single hash key when absent.

        Raises boto3 exceptions - caught by domain implementation.
        A key collision surfaces as ConditionalCheckFailedException when
        ``enforce_unique`` is set.
        """
        item = dict(document)
        missing = [field for field in self._key_fields if field not in item]

        if missing and len(self._key_fields) == 1:
            item[self._key_fields[0]] = uuid.uuid4().hex
        elif missing:
            raise ValueError(f"Document is missing key attributes: {missing}")

        kwargs: dict[str, Any] = {"Item": to_store(item)}

        if self._enforce_unique:
            kwargs["ConditionExpression"] = "attribute_not_exists(#k0)"
            kwargs["ExpressionAttributeNames"] = {"#k0": self._key_fields[0]}

        self.table.put_item(**kwargs)
        return item

    def update_one(
        self,
        criteria: Filter,
        *,
        set_values: Mapping[str, Any] | None = None,
        push: Mapping[str, Any] | None = None,
        pull: Mapping[str, Filter] | None = None,
    ) -> UpdateResult:
        """Update the first matching document.

        ``set_values`` overwrites top-level fields, ``push`` appends one
        element per list field, ``pull`` removes every element of a list
        field that matches the given sub-filter.

        Raises boto3 exceptions - caught by domain implementation.
        """
        document = self.find_one(criteria)

        if document is None:
            return UpdateResult(0, 0)

        modified = self._update_document(document, set_values, push, pull)
        return UpdateResult(1, int(modified))

    def update_many(
        self,
        criteria: Filter,
        *,
        set_values: Mapping[str, Any] | None = None,
        push: Mapping[str, Any] | None = None,
        pull: Mapping[str, Filter] | None = None,
    ) -> UpdateResult:
        """Apply the same update to every matching document, one at a time.

        Each document update is atomic on its own; the batch is not.
        """
        matched = modified = 0

        for document in self.find_many(criteria):
            matched += 1
            modified += int(self._update_document(document, set_values, push, pull))

        return UpdateResult(matched, modified)

    def delete_one(self, criteria: Filter) -> int:
        """Delete the first matching document and return how many were removed."""
        document = self.find_one(criteria)

        if document is None:
            return 0

        response = self.table.delete_item(Key=self._key_of(document), ReturnValues="ALL_OLD")
        return 1 if response.get("Attributes") else 0

    def delete_many(self, criteria: Filter | None = None) -> int:
        """Delete every matching document and return how many were removed."""
        documents = self.find_many(criteria)

        with self.table.batch_writer() as batch:
            for document in documents:
                batch.delete_item(Key=self._key_of(document))

        return len(documents)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _candidates(self, criteria: Filter | None) -> Iterator[dict[str, Any]]:
        """Yield raw items that may match, using the narrowest read available."""
        pinned = {
            field: criteria[field]
            for field in self._key_fields
            if criteria and field in criteria and self._is_plain_value(criteria[field])
        }

        if len(pinned) == len(self._key_fields):
            response = self.table.get_item(Key=pinned, ConsistentRead=True)
            item = response.get("Item")
            if item is not None:
                yield item
            return

        hash_key = self._key_fields[0]
        if hash_key in pinned:
            yield from self._paginate(
                self.table.query,
                KeyConditionExpression=Key(hash_key).eq(pinned[hash_key]),
                ConsistentRead=True,
            )
            return

        yield from self._paginate(self.table.scan, ConsistentRead=True)

    @staticmethod
    def _paginate(operation: Any, **kwargs: Any) -> Iterator[dict[str, Any]]:
        last_evaluated_key: dict[str, Any] | None = None

        while True:
            if last_evaluated_key:
                kwargs["ExclusiveStartKey"] = last_evaluated_key

            response = operation(**kwargs)
            items = response.get("Items", [])

            if not isinstance(items, list):
                raise TypeError("Invalid response from DynamoDB: Items is not a list")

            yield from items

            last_evaluated_key = response.get("LastEvaluatedKey")
            if not last_evaluated_key:
                break

    def _update_document(
        self,
        document: Mapping[str, Any],
        set_values: Mapping[str, Any] | None,
        push: Mapping[str, Any] | None,
        pull: Mapping[str, Filter] | None,
    ) -> bool:
        names: dict[str, str] = {"#k0": self._key_fields[0]}
        values: dict[str, Any] = {}
        set_clauses: list[str] = []
        conditions: list[str] = ["attribute_exists(#k0)"]

        for i, (field, value) in enumerate((set_values or {}).items()):
            names[f"#s{i}"] = field
            values[f":s{i}"] = to_store(value)
            set_clauses.append(f"#s{i} = :s{i}")

        for i, (field, element) in enumerate((push or {}).items()):
            names[f"#p{i}"] = field
            values[f":p{i}"] = [to_store(element)]
            values[":empty"] = []
            set_clauses.append(f"#p{i} = list_append(if_not_exists(#p{i}, :empty), :p{i})")

        for i, (field, element_filter) in enumerate((pull or {}).items()):
            current = list(document.get(field) or [])
            remaining = [
                element
                for element in current
                if not (isinstance(element, Mapping) and self._filter.matches(element, element_filter))
            ]

            if len(remaining) == len(current):
                continue

            # The list is rewritten whole; the condition rejects the write if
            # another writer changed it since it was read.
            names[f"#l{i}"] = field
            values[f":l{i}old"] = current
            values[f":l{i}new"] = remaining
            set_clauses.append(f"#l{i} = :l{i}new")
            conditions.append(f"#l{i} = :l{i}old")

        if not set_clauses:
            return False

        kwargs: dict[str, Any] = {
            "Key": self._key_of(document),
            "UpdateExpression": "SET " + ", ".join(set_clauses),
            "ConditionExpression": " AND ".join(conditions),
            "ExpressionAttributeNames": names,
        }
        if values:
            kwargs["ExpressionAttributeValues"] = values

        self.table.update_item(**kwargs)
        return True

    def _key_of(self, document: Mapping[str, Any]) -> dict[str, Any]:
        return {field: document[field] for field in self._key_fields}

    @staticmethod
    def _is_plain_value(value: Any) -> bool:
        return value is not None and not isinstance(value, (Mapping, list, tuple, set))
