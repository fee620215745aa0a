"""S3-backed implementation of ImageVariationStorageRepository."""

from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from image_persistence.infrastructure.adapters.s3_adapter import BlobStoreGateway, S3BlobBucket
from image_persistence.models.errors import BlobTransportError, NotFoundError
from image_persistence.repositories.variation_repository import ImageVariationStorageRepository
from image_persistence.utils.constants import (
    BLOB_META_ADDED,
    BLOB_META_IMAGE_IDENTIFIER,
    BLOB_META_OWNER,
    BLOB_META_WIDTH,
    BLOB_NAME_SEPARATOR,
    ENV_IMAGE_VARIATION_S3_BUCKET_NAME,
    ERROR_CODE_BLOB_DELETE_FAILED,
    ERROR_CODE_BLOB_DOWNLOAD_FAILED,
    ERROR_CODE_BLOB_LOOKUP_FAILED,
    ERROR_CODE_BLOB_UPLOAD_FAILED,
    ERROR_CODE_FILE_NOT_FOUND,
)
from image_persistence.utils.error_handling import aws_error_code, store_errors
from image_persistence.utils.time import now_timestamp

logger = Logger(UTC=True)


class S3ImageVariationStorage(ImageVariationStorageRepository):
    """Variation bytes stored as ``{owner}.{image_identifier}.{width}`` objects."""

    def __init__(self, bucket: BlobStoreGateway | None = None) -> None:
        self._s3: BlobStoreGateway = bucket or S3BlobBucket(
            bucket_name_env=ENV_IMAGE_VARIATION_S3_BUCKET_NAME,
        )

    def put(self, owner: str, image_identifier: str, width: int, data: bytes) -> bool:
        name = self._blob_name(owner, image_identifier, width)

        with store_errors(
            message="Unable to upload image variation",
            error_code=ERROR_CODE_BLOB_UPLOAD_FAILED,
            details={"blob_name": name},
            error_class=BlobTransportError,
        ):
            self._s3.upload_by_name(
                name=name,
                data=data,
                metadata={
                    BLOB_META_OWNER: owner,
                    BLOB_META_IMAGE_IDENTIFIER: image_identifier,
                    BLOB_META_WIDTH: width,
                    BLOB_META_ADDED: now_timestamp(),
                },
            )

        logger.info("Image variation stored", extra={"blob_name": name, "size": len(data)})
        return True

    def get(self, owner: str, image_identifier: str, width: int) -> bytes:
        name = self._blob_name(owner, image_identifier, width)

        try:
            return self._s3.download_by_name(name=name)

        except ClientError as exc:
            logger.error("S3 download failed", extra={"blob_name": name})

            if aws_error_code(exc) in ("NoSuchKey", "404"):
                raise NotFoundError(
                    message="Image variation not found",
                    error_code=ERROR_CODE_FILE_NOT_FOUND,
                    details={"blob_name": name},
                ) from exc

            raise BlobTransportError(
                message="Unable to download image variation",
                error_code=ERROR_CODE_BLOB_DOWNLOAD_FAILED,
                details={"blob_name": name},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error downloading image variation")
            raise BlobTransportError(
                message="Unable to download image variation",
                error_code=ERROR_CODE_BLOB_DOWNLOAD_FAILED,
                details={"blob_name": name},
            ) from exc

    def delete_variants(self, owner: str, image_identifier: str, width: int | None = None) -> bool:
        """Delete matching variation blobs one by one.

        There is no batch delete: the first failure stops the loop and the
        blobs not yet visited stay in place.
        """
        metadata_filter: dict[str, Any] = {
            BLOB_META_OWNER: owner,
            BLOB_META_IMAGE_IDENTIFIER: image_identifier,
        }
        if width is not None:
            metadata_filter[BLOB_META_WIDTH] = width

        prefix = f"{owner}{BLOB_NAME_SEPARATOR}{image_identifier}{BLOB_NAME_SEPARATOR}"

        with store_errors(
            message="Unable to look up image variations",
            error_code=ERROR_CODE_BLOB_LOOKUP_FAILED,
            details={"owner": owner, "image_identifier": image_identifier},
            error_class=BlobTransportError,
        ):
            blobs = self._s3.find_by_metadata(metadata_filter, prefix=prefix)

        for blob in blobs:
            with store_errors(
                message="Unable to delete image variation",
                error_code=ERROR_CODE_BLOB_DELETE_FAILED,
                details={"blob_id": blob["id"]},
                error_class=BlobTransportError,
            ):
                self._s3.delete_by_id(blob_id=blob["id"])

        logger.info(
            "Image variations deleted",
            extra={"owner": owner, "image_identifier": image_identifier, "removed": len(blobs)},
        )
        return True

    @staticmethod
    def _blob_name(owner: str, image_identifier: str, width: int) -> str:
        return BLOB_NAME_SEPARATOR.join((owner, image_identifier, str(width)))
