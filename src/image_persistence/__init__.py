"""Image Persistence Package."""

__version__ = "1.0.0"
__description__ = (
    "Repository layer for image metadata, image blobs, variants, "
    "access control and short URLs on DynamoDB and S3"
)

__all__ = ["filters", "infrastructure", "models", "repositories", "utils"]
