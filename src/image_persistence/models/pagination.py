"""Pagination model."""

from pydantic import BaseModel, Field, StrictBool, StrictInt


class PaginationInfo(BaseModel):
    """Pagination metadata for list responses."""

    page: StrictInt = Field(..., description="1-based page number that was requested")
    limit: StrictInt = Field(..., description="Maximum number of items requested")
    hits: StrictInt = Field(..., description="Total number of items matching the filter")
    has_more: StrictBool = Field(..., description="Whether more items are available after this page")
