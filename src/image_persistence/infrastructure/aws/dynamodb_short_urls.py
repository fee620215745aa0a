"""DynamoDB-backed implementation of ShortUrlRepository."""

from typing import Any

from aws_lambda_powertools import Logger

from image_persistence.infrastructure.adapters.dynamodb_adapter import (
    DocumentStoreGateway,
    DynamoDBCollection,
)
from image_persistence.models.errors import InternalError
from image_persistence.models.short_url import ShortUrlParams
from image_persistence.repositories.short_url_repository import ShortUrlRepository
from image_persistence.utils.constants import (
    ENV_SHORT_URL_TABLE_NAME,
    ERROR_CODE_MISSING_QUERY,
    ERROR_CODE_SHORT_URL_CREATE_FAILED,
    ERROR_CODE_SHORT_URL_DELETE_FAILED,
    SHORT_URL_TABLE_KEY,
)
from image_persistence.utils.error_handling import store_errors
from image_persistence.utils.normalize import to_plain
from image_persistence.utils.query_string import deserialize_query, serialize_query

logger = Logger(UTC=True)


class DynamoDBShortUrls(ShortUrlRepository):
    """Short URL rows keyed by ``short_url_id``.

    ``query`` is stored as a deterministic JSON string so that an exact
    equality filter matches equal query maps regardless of key order.
    """

    def __init__(self, collection: DocumentStoreGateway | None = None) -> None:
        self._db: DocumentStoreGateway = collection or DynamoDBCollection(
            key_fields=SHORT_URL_TABLE_KEY,
            table_name_env=ENV_SHORT_URL_TABLE_NAME,
            enforce_unique=False,
        )

    def create(
        self,
        short_url_id: str,
        owner: str,
        image_identifier: str,
        extension: str | None = None,
        query: dict[str, Any] | None = None,
    ) -> bool:
        document = {
            "short_url_id": short_url_id,
            "owner": owner,
            "image_identifier": image_identifier,
            "extension": extension,
            "query": serialize_query(query),
        }

        with store_errors(
            message="Unable to create short URL",
            error_code=ERROR_CODE_SHORT_URL_CREATE_FAILED,
            details={"short_url_id": short_url_id, "owner": owner},
        ):
            self._db.insert_one(document)

        logger.info("Short URL created", extra={"short_url_id": short_url_id, "owner": owner})
        return True

    def find_id(
        self,
        owner: str,
        image_identifier: str,
        extension: str | None = None,
        query: dict[str, Any] | None = None,
    ) -> str | None:
        criteria = {
            "owner": owner,
            "image_identifier": image_identifier,
            "extension": extension,
            "query": serialize_query(query),
        }

        try:
            document = self._db.find_one(criteria, projection={"short_url_id": True})
        except Exception:
            logger.warning(
                "Short URL lookup failed",
                extra={"owner": owner, "image_identifier": image_identifier},
                exc_info=True,
            )
            return None

        if document is None:
            return None

        return str(document["short_url_id"])

    def resolve(self, short_url_id: str) -> ShortUrlParams | None:
        try:
            document = self._db.find_one({"short_url_id": short_url_id})
        except Exception:
            logger.warning(
                "Short URL resolve failed",
                extra={"short_url_id": short_url_id},
                exc_info=True,
            )
            return None

        if document is None:
            return None

        raw_query = document.get("query")

        if not raw_query:
            raise InternalError(
                message="Short URL is missing its query",
                error_code=ERROR_CODE_MISSING_QUERY,
                details={"short_url_id": short_url_id},
            )

        try:
            query = deserialize_query(str(raw_query))
        except ValueError as exc:
            raise InternalError(
                message="Short URL query is malformed",
                error_code=ERROR_CODE_MISSING_QUERY,
                details={"short_url_id": short_url_id},
            ) from exc

        data = to_plain(document)

        return ShortUrlParams(
            owner=data["owner"],
            image_identifier=data["image_identifier"],
            extension=data.get("extension"),
            query=query,
        )

    def delete_all(
        self,
        owner: str,
        image_identifier: str,
        short_url_id: str | None = None,
    ) -> bool:
        criteria: dict[str, Any] = {"owner": owner, "image_identifier": image_identifier}

        if short_url_id is not None:
            criteria["short_url_id"] = short_url_id

        with store_errors(
            message="Unable to delete short URLs",
            error_code=ERROR_CODE_SHORT_URL_DELETE_FAILED,
            details={"owner": owner, "image_identifier": image_identifier},
        ):
            removed = self._db.delete_many(criteria)

        logger.info(
            "Short URLs deleted",
            extra={"owner": owner, "image_identifier": image_identifier, "removed": removed},
        )
        return True
