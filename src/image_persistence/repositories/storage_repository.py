"""Abstract contract for primary image byte storage."""

from abc import ABC, abstractmethod
from datetime import datetime


class ImageStorageRepository(ABC):
    """Contract for storing and retrieving original image bytes.

    Implementations could be S3, GCS, local disk, etc.
    Callers depend on this interface, not the implementation.
    """

    @abstractmethod
    def store(self, owner: str, image_identifier: str, data: bytes) -> bool:
        """Store image bytes.

        If a blob already exists for the image only its ``updated``
        timestamp is touched; the bytes are not uploaded again.

        Raises:
            BlobTransportError: If the upload fails
        """

    @abstractmethod
    def fetch(self, owner: str, image_identifier: str) -> bytes:
        """Return the stored bytes.

        Raises:
            NotFoundError: If no blob exists
            BlobTransportError: If the download fails
        """

    @abstractmethod
    def delete(self, owner: str, image_identifier: str) -> bool:
        """Delete the stored bytes.

        Raises:
            NotFoundError: If no blob exists
            BlobTransportError: If deletion fails
        """

    @abstractmethod
    def last_modified(self, owner: str, image_identifier: str) -> datetime:
        """Return the ``updated`` time recorded with the blob.

        Raises:
            NotFoundError: If no blob exists
        """

    @abstractmethod
    def exists(self, owner: str, image_identifier: str) -> bool:
        """Return whether a blob exists for the image."""

    @abstractmethod
    def health_check(self) -> bool:
        """Report whether the store is reachable. Never raises."""
