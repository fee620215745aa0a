"""Short URL model."""

from typing import Any

from pydantic import BaseModel, Field, StrictStr


class ShortUrlParams(BaseModel):
    """The image request a short URL resolves to."""

    owner: StrictStr = Field(..., description="Owner of the image")
    image_identifier: StrictStr = Field(..., description="Image identifier")
    extension: StrictStr | None = Field(None, description="Requested extension, if any")
    query: dict[str, Any] = Field(..., description="Query parameters of the original request")
