"""DynamoDB-backed implementation of ImageVariationMetadataRepository."""

from typing import Any

from aws_lambda_powertools import Logger

from image_persistence.infrastructure.adapters.dynamodb_adapter import (
    DocumentStoreGateway,
    DynamoDBCollection,
)
from image_persistence.models.variation import VariantMatch
from image_persistence.repositories.variation_repository import (
    ImageVariationMetadataRepository,
)
from image_persistence.utils.constants import (
    ENV_IMAGE_VARIATION_TABLE_NAME,
    ERROR_CODE_VARIATION_DELETE_FAILED,
    ERROR_CODE_VARIATION_FETCH_FAILED,
    ERROR_CODE_VARIATION_SAVE_FAILED,
    IMAGE_VARIATION_TABLE_KEY,
)
from image_persistence.utils.error_handling import store_errors
from image_persistence.utils.normalize import to_plain
from image_persistence.utils.time import now_timestamp

logger = Logger(UTC=True)


class DynamoDBImageVariations(ImageVariationMetadataRepository):
    """Append-only rows describing which resized variations exist."""

    def __init__(self, collection: DocumentStoreGateway | None = None) -> None:
        self._db: DocumentStoreGateway = collection or DynamoDBCollection(
            key_fields=IMAGE_VARIATION_TABLE_KEY,
            table_name_env=ENV_IMAGE_VARIATION_TABLE_NAME,
        )

    def record_variant(self, owner: str, image_identifier: str, width: int, height: int) -> bool:
        details = {"owner": owner, "image_identifier": image_identifier, "width": width}

        with store_errors(
            message="Unable to save image variation",
            error_code=ERROR_CODE_VARIATION_SAVE_FAILED,
            details=details,
        ):
            self._db.insert_one(
                {
                    "owner": owner,
                    "image_identifier": image_identifier,
                    "width": width,
                    "height": height,
                    "added": now_timestamp(),
                }
            )

        logger.info("Image variation recorded", extra=details)
        return True

    def best_match(self, owner: str, image_identifier: str, width: int) -> VariantMatch | None:
        """Return the smallest variation that is at least ``width`` wide.

        Never picks a narrower variation, so callers only ever scale down.
        """
        with store_errors(
            message="Unable to fetch image variation",
            error_code=ERROR_CODE_VARIATION_FETCH_FAILED,
            details={"owner": owner, "image_identifier": image_identifier, "width": width},
        ):
            document = self._db.find_one(
                {
                    "owner": owner,
                    "image_identifier": image_identifier,
                    "width": {"$gte": width},
                },
                projection={"width": True, "height": True},
                sort=[("width", 1)],
            )

        if document is None:
            return None

        data = to_plain(document)
        return VariantMatch(width=int(data["width"]), height=int(data["height"]))

    def delete_variants(self, owner: str, image_identifier: str, width: int | None = None) -> bool:
        criteria: dict[str, Any] = {"owner": owner, "image_identifier": image_identifier}

        if width is not None:
            criteria["width"] = width

        with store_errors(
            message="Unable to delete image variations",
            error_code=ERROR_CODE_VARIATION_DELETE_FAILED,
            details={"owner": owner, "image_identifier": image_identifier, "width": width},
        ):
            removed = self._db.delete_many(criteria)

        logger.info(
            "Image variations deleted",
            extra={"owner": owner, "image_identifier": image_identifier, "removed": removed},
        )
        return True
