"""Abstract contract for API key pairs and their access rules."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from image_persistence.models.access_control import AccessRule

Rule = dict[str, Any]


class AccessControlRepository(ABC):
    """Contract for key pairs and each key's ordered list of access rules.

    Rules are embedded in their key pair record. Rule ids are generated by
    the repository and never by the caller.
    """

    @abstractmethod
    def get_private_key(self, public_key: str) -> str | None:
        """Return the private key paired with ``public_key``, or None."""

    @abstractmethod
    def create_key_pair(self, public_key: str, private_key: str) -> bool:
        """Create a key pair with an empty rule list.

        Raises:
            ConflictError: If the public key already exists
            PersistenceError: If the write fails
        """

    @abstractmethod
    def delete_public_key(self, public_key: str) -> bool:
        """Delete a key pair. Returns True iff a record was removed."""

    @abstractmethod
    def update_private_key(self, public_key: str, private_key: str) -> bool:
        """Replace the private key. Returns True iff a record matched."""

    @abstractmethod
    def add_rule(self, public_key: str, rule: AccessRule | Mapping[str, Any]) -> str:
        """Append a rule and return its generated id."""

    @abstractmethod
    def get_rule(self, public_key: str, rule_id: str) -> Rule | None:
        """Return a single rule by id, or None."""

    @abstractmethod
    def delete_rule(self, public_key: str, rule_id: str) -> bool:
        """Remove a rule. Returns True iff a rule was removed."""

    @abstractmethod
    def list_rules(self, public_key: str) -> list[Rule]:
        """Return the rules of a key in insertion order."""

    @abstractmethod
    def key_exists(self, public_key: str) -> bool:
        """Return whether a key pair exists."""
