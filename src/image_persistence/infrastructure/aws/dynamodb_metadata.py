"""DynamoDB-backed implementation of ImageMetadataRepository."""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from image_persistence.filters.offset_pagination import OffsetPagination
from image_persistence.infrastructure.adapters.dynamodb_adapter import (
    DocumentStoreGateway,
    DynamoDBCollection,
)
from image_persistence.models.errors import (
    DuplicateIdentifierError,
    FilterError,
    InternalError,
    NotFoundError,
    PersistenceError,
)
from image_persistence.models.image import ImageRecord, ImageSearchQuery, SearchResult
from image_persistence.models.pagination import PaginationInfo
from image_persistence.repositories.metadata_repository import ImageMetadataRepository, Metadata
from image_persistence.utils.constants import (
    ALLOWED_SORT_FIELDS,
    DEFAULT_SORT_FIELD,
    ENV_IMAGE_TABLE_NAME,
    ERROR_CODE_IMAGE_DELETE_FAILED,
    ERROR_CODE_IMAGE_FETCH_FAILED,
    ERROR_CODE_IMAGE_NOT_FOUND,
    ERROR_CODE_IMAGE_SAVE_FAILED,
    ERROR_CODE_IMAGE_SEARCH_FAILED,
    ERROR_CODE_INVALID_METADATA,
    ERROR_CODE_LAST_MODIFIED_FAILED,
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_UPDATE_FAILED,
    ERROR_CODE_STATS_FAILED,
    IMAGE_PROPERTY_FIELDS,
    IMAGE_SEARCH_FIELDS,
    IMAGE_TABLE_KEY,
)
from image_persistence.utils.error_handling import aws_error_code, store_errors
from image_persistence.utils.normalize import to_plain
from image_persistence.utils.time import from_timestamp, now_timestamp, to_timestamp, utc_now

logger = Logger(UTC=True)

_TIMESTAMP_FIELDS = ("added", "updated")


class DynamoDBImageMetadata(ImageMetadataRepository):
    """DynamoDB-backed image records with error handling.

    All boto3 errors are caught and translated into domain-specific errors
    with stable semantics.

    Multi-step operations are not transactional. ``update_metadata`` reads,
    merges and writes back, so two concurrent updates can lose one side's
    keys; ``delete_image`` and ``delete_metadata`` check existence first, so
    a concurrent delete between the two steps goes unnoticed.
    """

    def __init__(self, collection: DocumentStoreGateway | None = None) -> None:
        """Initialize with an image collection gateway."""
        self._db: DocumentStoreGateway = collection or DynamoDBCollection(
            key_fields=IMAGE_TABLE_KEY,
            table_name_env=ENV_IMAGE_TABLE_NAME,
        )
        self._pagination = OffsetPagination()

    def store_image(
        self,
        owner: str,
        image_identifier: str,
        image: ImageRecord,
        *,
        touch_if_exists: bool = True,
    ) -> bool:
        """Store an image record, or touch it if it already exists.

        Raises:
            DuplicateIdentifierError: If the (owner, identifier) pair is taken
            PersistenceError: If the write fails
        """
        details = {"owner": owner, "image_identifier": image_identifier}
        now = now_timestamp()

        if touch_if_exists and self.image_exists(owner, image_identifier):
            with store_errors(
                message="Unable to save image data",
                error_code=ERROR_CODE_IMAGE_SAVE_FAILED,
                details=details,
            ):
                self._db.update_one(
                    self._key(owner, image_identifier),
                    set_values={"updated": now},
                )

            logger.info("Existing image touched", extra=details)
            return True

        document: dict[str, Any] = {
            "owner": owner,
            "image_identifier": image_identifier,
            "size": image.size,
            "extension": image.extension,
            "mime_type": image.mime_type,
            "metadata": {},
            "added": to_timestamp(image.added) if image.added else now,
            "updated": to_timestamp(image.updated) if image.updated else now,
            "width": image.width,
            "height": image.height,
            "checksum": image.checksum,
            "original_checksum": image.original_checksum,
        }

        logger.debug("Inserting image", extra=details)

        try:
            self._db.insert_one(document)

        except ClientError as exc:
            logger.error("DynamoDB put_item failed", extra=details)

            if aws_error_code(exc) == "ConditionalCheckFailedException":
                raise DuplicateIdentifierError(
                    message="Duplicate image identifier when attempting to insert image",
                    details=details,
                ) from exc

            raise PersistenceError(
                message="Unable to save image data",
                error_code=ERROR_CODE_IMAGE_SAVE_FAILED,
                details=details,
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error inserting image")
            raise PersistenceError(
                message="Unable to save image data",
                error_code=ERROR_CODE_IMAGE_SAVE_FAILED,
                details=details,
            ) from exc

        logger.info("Image inserted", extra=details)
        return True

    def delete_image(self, owner: str, image_identifier: str) -> bool:
        """Delete an image record after confirming it exists."""
        self._get_image_data(owner, image_identifier)

        with store_errors(
            message="Unable to delete image data",
            error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
            details={"owner": owner, "image_identifier": image_identifier},
        ):
            self._db.delete_one(self._key(owner, image_identifier))

        logger.info("Image deleted", extra={"owner": owner, "image_identifier": image_identifier})
        return True

    def image_exists(self, owner: str, image_identifier: str) -> bool:
        try:
            self._get_image_data(owner, image_identifier, fields=("image_identifier",))
        except NotFoundError:
            return False

        return True

    def update_metadata(self, owner: str, image_identifier: str, metadata: Metadata) -> bool:
        """Shallow-merge ``metadata`` over the stored map and write it back whole."""
        merged = {**self.get_metadata(owner, image_identifier), **metadata}

        with store_errors(
            message="Unable to update metadata",
            error_code=ERROR_CODE_METADATA_UPDATE_FAILED,
            details={"owner": owner, "image_identifier": image_identifier},
        ):
            self._db.update_one(
                self._key(owner, image_identifier),
                set_values={"metadata": merged},
            )

        logger.info(
            "Metadata updated",
            extra={"owner": owner, "image_identifier": image_identifier, "keys": sorted(metadata)},
        )
        return True

    def get_metadata(self, owner: str, image_identifier: str) -> Metadata:
        data = self._get_image_data(owner, image_identifier, fields=("metadata",))
        metadata = data.get("metadata")

        if not isinstance(metadata, Mapping):
            raise InternalError(
                message="Incorrect metadata for image",
                error_code=ERROR_CODE_INVALID_METADATA,
                details={"owner": owner, "image_identifier": image_identifier},
            )

        result: Metadata = to_plain(metadata)
        return result

    def delete_metadata(self, owner: str, image_identifier: str) -> bool:
        self._get_image_data(owner, image_identifier)

        with store_errors(
            message="Unable to delete metadata",
            error_code=ERROR_CODE_METADATA_DELETE_FAILED,
            details={"owner": owner, "image_identifier": image_identifier},
        ):
            self._db.update_one(
                self._key(owner, image_identifier),
                set_values={"metadata": {}},
            )

        return True

    def search(self, owners: Iterable[str], query: ImageSearchQuery) -> SearchResult:
        """Search image records.

        NOTE:
        - ``hits`` is counted with a second, separate store call and ignores
          paging, so it can drift from the page under concurrent writes.
        - A caller supplied sort replaces the default entirely.
        """
        is_valid, error_message = self._pagination.validate(query.page, query.limit)
        if not is_valid:
            raise FilterError(
                message=error_message,
                details={"page": query.page, "limit": query.limit},
            )

        for sort_field in query.sort:
            if sort_field.field not in ALLOWED_SORT_FIELDS:
                raise FilterError(
                    message=f"Invalid sort field: {sort_field.field}",
                    details={"field": sort_field.field},
                )

        criteria = self._search_criteria(list(owners), query)

        sort = [
            (sort_field.field, 1 if sort_field.direction == "asc" else -1)
            for sort_field in query.sort
        ] or [(DEFAULT_SORT_FIELD, -1)]

        projection = dict.fromkeys(IMAGE_SEARCH_FIELDS, True)
        if query.return_metadata:
            projection["metadata"] = True

        logger.debug(
            "Searching images",
            extra={"page": query.page, "limit": query.limit, "sort": sort},
        )

        with store_errors(
            message="Unable to search for images",
            error_code=ERROR_CODE_IMAGE_SEARCH_FAILED,
        ):
            documents = self._db.find_many(
                criteria,
                projection=projection,
                sort=sort,
                skip=self._pagination.skip_for_page(query.page, query.limit),
                limit=query.limit,
            )
            hits = self._db.count(criteria)

        return SearchResult(
            images=[self._present(document) for document in documents],
            pagination=PaginationInfo(
                page=query.page,
                limit=query.limit,
                hits=hits,
                has_more=self._pagination.has_more(query.page, query.limit, hits),
            ),
        )

    def get_image_properties(self, owner: str, image_identifier: str) -> dict[str, Any]:
        return self._present(
            self._get_image_data(owner, image_identifier, fields=IMAGE_PROPERTY_FIELDS)
        )

    def get_mime_type(self, owner: str, image_identifier: str) -> str:
        data = self._get_image_data(owner, image_identifier, fields=("mime_type",))
        return str(data.get("mime_type", ""))

    def load(self, owner: str, image_identifier: str) -> ImageRecord:
        data = self._present(self._get_image_data(owner, image_identifier))

        return ImageRecord(
            size=int(data["size"]),
            extension=str(data["extension"]),
            mime_type=str(data["mime_type"]),
            width=int(data["width"]),
            height=int(data["height"]),
            checksum=str(data["checksum"]),
            original_checksum=data.get("original_checksum"),
            added=data.get("added"),
            updated=data.get("updated"),
        )

    def get_last_modified(
        self,
        owners: Iterable[str],
        image_identifier: str | None = None,
    ) -> datetime:
        """Return the latest ``updated`` time among matching images.

        When nothing matches and no identifier was asked for, there is simply
        no data yet and the current time is returned.
        """
        criteria: dict[str, Any] = {}
        owner_list = list(owners)

        if owner_list:
            criteria["owner"] = {"$in": owner_list}

        if image_identifier is not None:
            criteria["image_identifier"] = image_identifier

        with store_errors(
            message="Unable to fetch image data",
            error_code=ERROR_CODE_LAST_MODIFIED_FAILED,
            details={"image_identifier": image_identifier},
        ):
            data = self._db.find_one(
                criteria,
                projection={"updated": True},
                sort=[("updated", -1)],
            )

        if data is None and image_identifier is not None:
            raise NotFoundError(
                message="Image not found",
                error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                details={"image_identifier": image_identifier},
            )

        if data is None:
            return utc_now()

        return from_timestamp(data["updated"])

    def set_last_modified_now(self, owner: str, image_identifier: str) -> datetime:
        return self.set_last_modified_time(owner, image_identifier, utc_now())

    def set_last_modified_time(
        self,
        owner: str,
        image_identifier: str,
        time: datetime,
    ) -> datetime:
        if not self.image_exists(owner, image_identifier):
            raise NotFoundError(
                message="Image not found",
                error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                details={"owner": owner, "image_identifier": image_identifier},
            )

        with store_errors(
            message="Unable to update last modified time",
            error_code=ERROR_CODE_IMAGE_SAVE_FAILED,
            details={"owner": owner, "image_identifier": image_identifier},
        ):
            self._db.update_one(
                self._key(owner, image_identifier),
                set_values={"updated": to_timestamp(time)},
            )

        return time

    def count_images(self, owner: str | None = None) -> int:
        with store_errors(
            message="Unable to fetch information from the database",
            error_code=ERROR_CODE_STATS_FAILED,
        ):
            return self._db.count(self._owner_criteria(owner))

    def sum_bytes(self, owner: str | None = None) -> int:
        with store_errors(
            message="Unable to fetch information from the database",
            error_code=ERROR_CODE_STATS_FAILED,
        ):
            return int(self._db.aggregate_sum("size", self._owner_criteria(owner)))

    def count_distinct_owners(self) -> int:
        return len(self.list_owners())

    def list_owners(self) -> set[str]:
        with store_errors(
            message="Unable to fetch information from the database",
            error_code=ERROR_CODE_STATS_FAILED,
        ):
            return {str(owner) for owner in self._db.distinct("owner")}

    def health_check(self) -> bool:
        try:
            return bool(self._db.ping())
        except Exception:
            logger.warning("Image table health check failed", exc_info=True)
            return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _key(owner: str, image_identifier: str) -> dict[str, str]:
        return {"owner": owner, "image_identifier": image_identifier}

    @staticmethod
    def _owner_criteria(owner: str | None) -> dict[str, Any]:
        return {"owner": owner} if owner is not None else {}

    @staticmethod
    def _search_criteria(owners: list[str], query: ImageSearchQuery) -> dict[str, Any]:
        criteria: dict[str, Any] = {}

        if owners:
            criteria["owner"] = {"$in": owners}

        added: dict[str, int] = {}
        if query.added_from is not None:
            added["$gte"] = to_timestamp(query.added_from)
        if query.added_to is not None:
            added["$lte"] = to_timestamp(query.added_to)
        if added:
            criteria["added"] = added

        if query.image_identifiers:
            criteria["image_identifier"] = {"$in": query.image_identifiers}

        if query.checksums:
            criteria["checksum"] = {"$in": query.checksums}

        if query.original_checksums:
            criteria["original_checksum"] = {"$in": query.original_checksums}

        return criteria

    @staticmethod
    def _present(document: Mapping[str, Any]) -> dict[str, Any]:
        """Normalize a stored document and turn its timestamps into datetimes."""
        result: dict[str, Any] = to_plain(document)

        for field in _TIMESTAMP_FIELDS:
            if result.get(field) is not None:
                result[field] = from_timestamp(result[field])

        return result

    def _get_image_data(
        self,
        owner: str,
        image_identifier: str,
        fields: Iterable[str] = (),
    ) -> dict[str, Any]:
        """Fetch one image record, optionally restricted to ``fields``.

        Raises:
            NotFoundError: If the image does not exist
            PersistenceError: If the read fails
        """
        projection = dict.fromkeys(fields, True) or None
        details = {"owner": owner, "image_identifier": image_identifier}

        logger.debug("Fetching image", extra=details)

        with store_errors(
            message="Unable to find image data",
            error_code=ERROR_CODE_IMAGE_FETCH_FAILED,
            details=details,
        ):
            data = self._db.find_one(self._key(owner, image_identifier), projection=projection)

        if data is None:
            raise NotFoundError(
                message="Image not found",
                error_code=ERROR_CODE_IMAGE_NOT_FOUND,
                details=details,
            )

        return data
