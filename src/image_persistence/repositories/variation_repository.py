"""Abstract contracts for resized image variations."""

from abc import ABC, abstractmethod

from image_persistence.models.variation import VariantMatch


class ImageVariationMetadataRepository(ABC):
    """Contract for the (owner, image, width) -> height rows of variations."""

    @abstractmethod
    def record_variant(self, owner: str, image_identifier: str, width: int, height: int) -> bool:
        """Record that a variation of the given size exists."""

    @abstractmethod
    def best_match(self, owner: str, image_identifier: str, width: int) -> VariantMatch | None:
        """Return the narrowest variation at least ``width`` wide, or None."""

    @abstractmethod
    def delete_variants(self, owner: str, image_identifier: str, width: int | None = None) -> bool:
        """Delete every variation row of an image, or only one width."""


class ImageVariationStorageRepository(ABC):
    """Contract for the bytes of variations."""

    @abstractmethod
    def put(self, owner: str, image_identifier: str, width: int, data: bytes) -> bool:
        """Store the bytes of a variation."""

    @abstractmethod
    def get(self, owner: str, image_identifier: str, width: int) -> bytes:
        """Return the bytes of a variation.

        Raises:
            NotFoundError: If the variation is not stored
            BlobTransportError: If the download fails
        """

    @abstractmethod
    def delete_variants(self, owner: str, image_identifier: str, width: int | None = None) -> bool:
        """Delete every stored variation of an image, or only one width.

        Raises:
            BlobTransportError: On the first failed deletion; remaining
                blobs are left in place
        """
