"""Image record and image search models."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, StrictInt, StrictStr

from image_persistence.models.pagination import PaginationInfo
from image_persistence.utils.constants import DEFAULT_LIMIT, DEFAULT_PAGE


class ImageRecord(BaseModel):
    """Properties of a stored image, as written by ``store_image``."""

    size: StrictInt = Field(..., description="Image size in bytes")
    extension: StrictStr = Field(..., description="File extension without the dot (e.g. png)")
    mime_type: StrictStr = Field(..., description="MIME type of the image (e.g. image/png)")
    width: StrictInt = Field(..., description="Width in pixels")
    height: StrictInt = Field(..., description="Height in pixels")
    checksum: StrictStr = Field(..., description="Checksum of the stored bytes")
    original_checksum: StrictStr | None = Field(
        None,
        description="Checksum of the bytes as originally uploaded",
    )

    added: datetime | None = Field(None, description="Creation time, defaults to now")
    updated: datetime | None = Field(None, description="Last modification time, defaults to now")


class SortField(BaseModel):
    """One (field, direction) pair of a caller supplied sort order."""

    field: StrictStr
    direction: Literal["asc", "desc"] = "desc"


class ImageSearchQuery(BaseModel):
    """Criteria accepted by ``search``.

    Every criterion is optional; empty lists mean "do not filter".
    """

    page: StrictInt = Field(DEFAULT_PAGE, description="1-based page number")
    limit: StrictInt = Field(DEFAULT_LIMIT, description="Page size")
    added_from: datetime | None = Field(None, description="Inclusive lower bound for `added`")
    added_to: datetime | None = Field(None, description="Inclusive upper bound for `added`")
    image_identifiers: list[StrictStr] = Field(default_factory=list)
    checksums: list[StrictStr] = Field(default_factory=list)
    original_checksums: list[StrictStr] = Field(default_factory=list)
    sort: list[SortField] = Field(
        default_factory=list,
        description="Replaces the default `added` descending order when non-empty",
    )
    return_metadata: bool = Field(False, description="Include the metadata map in results")


class SearchResult(BaseModel):
    """One page of image search results."""

    images: list[dict[str, Any]] = Field(..., description="Matching image records")
    pagination: PaginationInfo = Field(..., description="Pagination metadata")

    @property
    def hits(self) -> int:
        return self.pagination.hits
