"""Abstract contract for short URL persistence."""

from abc import ABC, abstractmethod
from typing import Any

from image_persistence.models.short_url import ShortUrlParams


class ShortUrlRepository(ABC):
    """Maps (owner, image, extension, query) to a short identifier.

    The store does not enforce that a tuple maps to a single short id;
    callers look up with ``find_id`` before calling ``create``.
    """

    @abstractmethod
    def create(
        self,
        short_url_id: str,
        owner: str,
        image_identifier: str,
        extension: str | None = None,
        query: dict[str, Any] | None = None,
    ) -> bool:
        """Persist a short URL.

        Raises:
            PersistenceError: If the write fails
        """

    @abstractmethod
    def find_id(
        self,
        owner: str,
        image_identifier: str,
        extension: str | None = None,
        query: dict[str, Any] | None = None,
    ) -> str | None:
        """Return the short id for an exact tuple, or None.

        Never raises: store failures are reported as None.
        """

    @abstractmethod
    def resolve(self, short_url_id: str) -> ShortUrlParams | None:
        """Return the parameters behind a short id, or None.

        Raises:
            InternalError: If the stored row has an empty query
        """

    @abstractmethod
    def delete_all(
        self,
        owner: str,
        image_identifier: str,
        short_url_id: str | None = None,
    ) -> bool:
        """Delete every short URL of an image, or only ``short_url_id``."""
