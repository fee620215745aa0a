"""
Offset-based pagination utilities.
"""

from typing import Any

from image_persistence.utils.constants import DEFAULT_LIMIT, DEFAULT_PAGE, MIN_LIMIT


class OffsetPagination:
    """
    Offset-based pagination helper.

    Pages are 1-based and translated to an offset of ``limit * (page - 1)``.
    The offset is only applied when ``page > 1`` so page 1 never pays for a
    skip on the store side.
    """

    @staticmethod
    def skip_for_page(page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> int | None:
        """
        Return the number of items to skip for a page, or None for page 1.

        Example:
            skip_for_page(page=3, limit=20) → 40
            skip_for_page(page=1, limit=20) → None
        """
        if page > 1:
            return limit * (page - 1)

        return None

    @staticmethod
    def paginate(
        items: list[dict[str, Any]],
        skip: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Slice an already ordered list of items.

        Args:
            items: Full ordered list of items
            skip: Number of items to skip from the start (None means 0)
            limit: Maximum number of items to include (None means no limit)

        Returns:
            The requested window of items
        """
        start = skip or 0

        if limit is None:
            return items[start:]

        return items[start : start + limit]

    @staticmethod
    def validate(page: int, limit: int) -> tuple[bool, str]:
        """
        Validate pagination parameters.

        Validation rules:
        - limit must be at least MIN_LIMIT
        - page must be 1 or greater

        Returns:
            A tuple of:
            - is_valid: Whether parameters are valid
            - error_message: Human-readable error message if invalid
        """
        if limit < MIN_LIMIT:
            return False, f"Limit must be at least {MIN_LIMIT}"

        if page < 1:
            return False, "Page must be a positive integer"

        return True, ""

    @staticmethod
    def has_more(page: int, limit: int, hits: int) -> bool:
        """Whether items exist beyond the given page."""
        return page * limit < hits
