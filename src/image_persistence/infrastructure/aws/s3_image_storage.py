"""S3-backed implementation of ImageStorageRepository."""

from datetime import datetime

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from image_persistence.infrastructure.adapters.s3_adapter import (
    BlobInfo,
    BlobStoreGateway,
    S3BlobBucket,
)
from image_persistence.models.errors import BlobTransportError, NotFoundError
from image_persistence.repositories.storage_repository import ImageStorageRepository
from image_persistence.utils.constants import (
    BLOB_META_IMAGE_IDENTIFIER,
    BLOB_META_OWNER,
    BLOB_META_UPDATED,
    BLOB_NAME_SEPARATOR,
    ENV_IMAGE_S3_BUCKET_NAME,
    ERROR_CODE_BLOB_DELETE_FAILED,
    ERROR_CODE_BLOB_DOWNLOAD_FAILED,
    ERROR_CODE_BLOB_LOOKUP_FAILED,
    ERROR_CODE_BLOB_UPLOAD_FAILED,
    ERROR_CODE_FILE_NOT_FOUND,
)
from image_persistence.utils.error_handling import aws_error_code, store_errors
from image_persistence.utils.time import from_timestamp, now_timestamp

logger = Logger(UTC=True)


class S3ImageStorage(ImageStorageRepository):
    """Original image bytes stored as ``{owner}.{image_identifier}`` objects."""

    def __init__(self, bucket: BlobStoreGateway | None = None) -> None:
        """Create storage using the provided blob gateway."""
        self._s3: BlobStoreGateway = bucket or S3BlobBucket(
            bucket_name_env=ENV_IMAGE_S3_BUCKET_NAME,
        )

    def store(self, owner: str, image_identifier: str, data: bytes) -> bool:
        name = self._blob_name(owner, image_identifier)
        existing = self._find(owner, image_identifier)

        logger.debug(
            "Storing image",
            extra={"blob_name": name, "size": len(data), "exists": bool(existing)},
        )

        with store_errors(
            message="Unable to upload image at this time",
            error_code=ERROR_CODE_BLOB_UPLOAD_FAILED,
            details={"blob_name": name},
            error_class=BlobTransportError,
        ):
            if existing:
                self._s3.replace_metadata(
                    blob_id=existing[0]["id"],
                    metadata={**existing[0]["metadata"], BLOB_META_UPDATED: now_timestamp()},
                )
            else:
                self._s3.upload_by_name(
                    name=name,
                    data=data,
                    metadata={
                        BLOB_META_OWNER: owner,
                        BLOB_META_IMAGE_IDENTIFIER: image_identifier,
                        BLOB_META_UPDATED: now_timestamp(),
                    },
                )

        logger.info("Image stored", extra={"blob_name": name, "touched": bool(existing)})
        return True

    def fetch(self, owner: str, image_identifier: str) -> bytes:
        name = self._blob_name(owner, image_identifier)

        logger.debug("Downloading image", extra={"blob_name": name})

        try:
            return self._s3.download_by_name(name=name)

        except ClientError as exc:
            logger.error("S3 download failed", extra={"blob_name": name})

            if aws_error_code(exc) in ("NoSuchKey", "404"):
                raise NotFoundError(
                    message="File not found",
                    error_code=ERROR_CODE_FILE_NOT_FOUND,
                    details={"blob_name": name},
                ) from exc

            raise BlobTransportError(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_BLOB_DOWNLOAD_FAILED,
                details={"blob_name": name},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error downloading image")
            raise BlobTransportError(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_BLOB_DOWNLOAD_FAILED,
                details={"blob_name": name},
            ) from exc

    def delete(self, owner: str, image_identifier: str) -> bool:
        blob = self._require(owner, image_identifier)

        with store_errors(
            message="Unable to delete image at this time",
            error_code=ERROR_CODE_BLOB_DELETE_FAILED,
            details={"blob_id": blob["id"]},
            error_class=BlobTransportError,
        ):
            self._s3.delete_by_id(blob_id=blob["id"])

        logger.info("Image deleted", extra={"blob_id": blob["id"]})
        return True

    def last_modified(self, owner: str, image_identifier: str) -> datetime:
        blob = self._require(owner, image_identifier)
        return from_timestamp(blob["metadata"][BLOB_META_UPDATED])

    def exists(self, owner: str, image_identifier: str) -> bool:
        return bool(self._find(owner, image_identifier))

    def health_check(self) -> bool:
        try:
            return bool(self._s3.ping())
        except Exception:
            logger.warning("Image bucket health check failed", exc_info=True)
            return False

    @staticmethod
    def _blob_name(owner: str, image_identifier: str) -> str:
        return f"{owner}{BLOB_NAME_SEPARATOR}{image_identifier}"

    def _find(self, owner: str, image_identifier: str) -> list[BlobInfo]:
        with store_errors(
            message="Unable to look up image",
            error_code=ERROR_CODE_BLOB_LOOKUP_FAILED,
            details={"owner": owner, "image_identifier": image_identifier},
            error_class=BlobTransportError,
        ):
            return self._s3.find_by_metadata(
                {BLOB_META_OWNER: owner, BLOB_META_IMAGE_IDENTIFIER: image_identifier},
                prefix=self._blob_name(owner, image_identifier),
            )

    def _require(self, owner: str, image_identifier: str) -> BlobInfo:
        blobs = self._find(owner, image_identifier)

        if not blobs:
            raise NotFoundError(
                message="File not found",
                error_code=ERROR_CODE_FILE_NOT_FOUND,
                details={"owner": owner, "image_identifier": image_identifier},
            )

        return blobs[0]
