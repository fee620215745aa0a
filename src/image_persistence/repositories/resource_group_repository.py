"""Abstract contract for named resource groups."""

from __future__ import annotations

from abc import ABC, abstractmethod

from image_persistence.models.access_control import GroupPage
from image_persistence.utils.constants import DEFAULT_LIMIT, DEFAULT_PAGE


class ResourceGroupRepository(ABC):
    """Contract for reusable, named lists of resources.

    Access rules refer to groups by name only. Deleting a group removes
    every rule that refers to it, as a second, separate step.
    """

    @abstractmethod
    def create(self, name: str, resources: list[str] | None = None) -> bool:
        """Create a group.

        Raises:
            ConflictError: If a group with that name exists
            PersistenceError: If the write fails
        """

    @abstractmethod
    def get(self, name: str) -> list[str] | None:
        """Return the resources of a group, or None."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return whether a group exists."""

    @abstractmethod
    def replace(self, name: str, resources: list[str]) -> bool:
        """Overwrite the resource list of a group."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Delete a group and the access rules that refer to it.

        Returns:
            True iff the group record was removed

        Raises:
            PersistenceError: If either step fails; a failure in the rule
                cleanup leaves the group deleted
        """

    @abstractmethod
    def list(self, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> GroupPage:
        """Return one page of groups ordered by name, with the total count."""
