"""Access control models: embedded access rules and resource group pages."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from image_persistence.models.pagination import PaginationInfo


class AccessRule(BaseModel):
    """An access rule as supplied by a caller of ``add_rule``.

    A rule grants ``resources`` either to an explicit ``users`` list (or the
    wildcard ``"*"``) or to every resource of a named ``group``. The
    repository does not enforce that the two are mutually exclusive.
    """

    model_config = ConfigDict(extra="allow")

    resources: list[StrictStr] = Field(default_factory=list)
    users: list[StrictStr] | StrictStr | None = None
    group: StrictStr | None = None

    @field_validator("users")
    @classmethod
    def _users_wildcard_only(cls, value: list[str] | str | None) -> list[str] | str | None:
        if isinstance(value, str) and value != "*":
            raise ValueError("users must be a list of user names or '*'")
        return value

    def to_document(self, rule_id: str) -> dict[str, Any]:
        """Render the rule as an embedded document with the given id."""
        document = self.model_dump(exclude_none=True)
        document.pop("id", None)
        return {"id": rule_id, **document}


class GroupPage(BaseModel):
    """One page of resource groups, ordered by name."""

    groups: dict[str, list[str]] = Field(..., description="Group name to resource list")
    pagination: PaginationInfo = Field(..., description="Pagination metadata")

    @property
    def hits(self) -> int:
        return self.pagination.hits
