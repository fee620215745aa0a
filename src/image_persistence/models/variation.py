"""Image variation model."""

from pydantic import BaseModel, Field, StrictInt


class VariantMatch(BaseModel):
    """Dimensions of a stored image variation."""

    width: StrictInt = Field(..., description="Variation width in pixels")
    height: StrictInt = Field(..., description="Variation height in pixels")
