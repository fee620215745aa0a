"""Abstract contract for image record persistence."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from image_persistence.models.image import ImageRecord, ImageSearchQuery, SearchResult

Metadata = dict[str, Any]


class ImageMetadataRepository(ABC):
    """Contract for storing and querying image records and their metadata.

    Implementations could be DynamoDB, PostgreSQL, MongoDB, etc.
    Callers depend on this interface, not the implementation.
    """

    @abstractmethod
    def store_image(
        self,
        owner: str,
        image_identifier: str,
        image: ImageRecord,
        *,
        touch_if_exists: bool = True,
    ) -> bool:
        """Store an image record.

        If the record already exists and ``touch_if_exists`` is set, only the
        ``updated`` timestamp is bumped. Otherwise a full record with an empty
        metadata map is inserted.

        Raises:
            DuplicateIdentifierError: If the (owner, identifier) pair is taken
            PersistenceError: If the write fails for other reasons
        """

    @abstractmethod
    def delete_image(self, owner: str, image_identifier: str) -> bool:
        """Delete an image record.

        Raises:
            NotFoundError: If the image does not exist
            PersistenceError: If deletion fails
        """

    @abstractmethod
    def image_exists(self, owner: str, image_identifier: str) -> bool:
        """Return whether an image record exists."""

    @abstractmethod
    def update_metadata(self, owner: str, image_identifier: str, metadata: Metadata) -> bool:
        """Merge ``metadata`` over the stored map, key by key.

        The merge is shallow: a top-level key in ``metadata`` replaces the
        stored value for that key, untouched keys keep their values.

        Raises:
            NotFoundError: If the image does not exist
            InternalError: If the stored metadata is not a map
            PersistenceError: If the write fails
        """

    @abstractmethod
    def get_metadata(self, owner: str, image_identifier: str) -> Metadata:
        """Return the metadata map of an image.

        Raises:
            NotFoundError: If the image does not exist
            InternalError: If the stored metadata is not a map
        """

    @abstractmethod
    def delete_metadata(self, owner: str, image_identifier: str) -> bool:
        """Reset the metadata map of an image to an empty map.

        Raises:
            NotFoundError: If the image does not exist
        """

    @abstractmethod
    def search(self, owners: Iterable[str], query: ImageSearchQuery) -> SearchResult:
        """Search image records.

        Args:
            owners: Restrict to these owners; empty means all owners
            query: Filter, sort, paging and projection options

        Returns:
            One page of records plus the total number of hits

        Raises:
            FilterError: If sort or paging parameters are invalid
            PersistenceError: If the query fails
        """

    @abstractmethod
    def get_image_properties(self, owner: str, image_identifier: str) -> dict[str, Any]:
        """Return size, dimensions, mime type, extension and timestamps."""

    @abstractmethod
    def get_mime_type(self, owner: str, image_identifier: str) -> str:
        """Return the stored MIME type of an image."""

    @abstractmethod
    def load(self, owner: str, image_identifier: str) -> ImageRecord:
        """Load the stored properties of an image into a model."""

    @abstractmethod
    def get_last_modified(
        self,
        owners: Iterable[str],
        image_identifier: str | None = None,
    ) -> datetime:
        """Return the most recent ``updated`` time among matching images.

        Raises:
            NotFoundError: If ``image_identifier`` is given and nothing matches
        """

    @abstractmethod
    def set_last_modified_now(self, owner: str, image_identifier: str) -> datetime:
        """Set ``updated`` to the current time and return it."""

    @abstractmethod
    def set_last_modified_time(
        self,
        owner: str,
        image_identifier: str,
        time: datetime,
    ) -> datetime:
        """Set ``updated`` to ``time`` and return it.

        Raises:
            NotFoundError: If the image does not exist
        """

    @abstractmethod
    def count_images(self, owner: str | None = None) -> int:
        """Count images, optionally for a single owner."""

    @abstractmethod
    def sum_bytes(self, owner: str | None = None) -> int:
        """Sum image sizes, optionally for a single owner."""

    @abstractmethod
    def count_distinct_owners(self) -> int:
        """Count the owners that have at least one image."""

    @abstractmethod
    def list_owners(self) -> set[str]:
        """Return every owner that has at least one image."""

    @abstractmethod
    def health_check(self) -> bool:
        """Report whether the store is reachable. Never raises."""
