"""Global constants used throughout the persistence layer.

This module centralizes error codes, collection layouts, field sets and
environment variable names so repositories and gateways never hardcode them.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
ERROR_CODE_FILE_NOT_FOUND = "FILE_NOT_FOUND"

# Conflict Errors
ERROR_CODE_DUPLICATE_IDENTIFIER = "DUPLICATE_IMAGE_IDENTIFIER"
ERROR_CODE_CONFLICT = "CONFLICT"

# Persistence Errors
ERROR_CODE_PERSISTENCE = "PERSISTENCE_ERROR"
ERROR_CODE_IMAGE_SAVE_FAILED = "IMAGE_SAVE_FAILED"
ERROR_CODE_IMAGE_FETCH_FAILED = "IMAGE_FETCH_FAILED"
ERROR_CODE_IMAGE_DELETE_FAILED = "IMAGE_DELETE_FAILED"
ERROR_CODE_IMAGE_SEARCH_FAILED = "IMAGE_SEARCH_FAILED"
ERROR_CODE_METADATA_UPDATE_FAILED = "METADATA_UPDATE_FAILED"
ERROR_CODE_METADATA_DELETE_FAILED = "METADATA_DELETE_FAILED"
ERROR_CODE_STATS_FAILED = "STATS_FAILED"
ERROR_CODE_LAST_MODIFIED_FAILED = "LAST_MODIFIED_FAILED"
ERROR_CODE_SHORT_URL_CREATE_FAILED = "SHORT_URL_CREATE_FAILED"
ERROR_CODE_SHORT_URL_DELETE_FAILED = "SHORT_URL_DELETE_FAILED"
ERROR_CODE_KEY_FETCH_FAILED = "KEY_FETCH_FAILED"
ERROR_CODE_KEY_CREATE_FAILED = "KEY_CREATE_FAILED"
ERROR_CODE_KEY_DELETE_FAILED = "KEY_DELETE_FAILED"
ERROR_CODE_KEY_UPDATE_FAILED = "KEY_UPDATE_FAILED"
ERROR_CODE_RULE_ADD_FAILED = "ACCESS_RULE_ADD_FAILED"
ERROR_CODE_RULE_DELETE_FAILED = "ACCESS_RULE_DELETE_FAILED"
ERROR_CODE_GROUP_FETCH_FAILED = "RESOURCE_GROUP_FETCH_FAILED"
ERROR_CODE_GROUP_CREATE_FAILED = "RESOURCE_GROUP_CREATE_FAILED"
ERROR_CODE_GROUP_UPDATE_FAILED = "RESOURCE_GROUP_UPDATE_FAILED"
ERROR_CODE_GROUP_DELETE_FAILED = "RESOURCE_GROUP_DELETE_FAILED"
ERROR_CODE_GROUP_CASCADE_FAILED = "RESOURCE_GROUP_CASCADE_FAILED"
ERROR_CODE_VARIATION_SAVE_FAILED = "IMAGE_VARIATION_SAVE_FAILED"
ERROR_CODE_VARIATION_FETCH_FAILED = "IMAGE_VARIATION_FETCH_FAILED"
ERROR_CODE_VARIATION_DELETE_FAILED = "IMAGE_VARIATION_DELETE_FAILED"

# Blob Transport Errors
ERROR_CODE_BLOB_TRANSPORT = "BLOB_TRANSPORT_ERROR"
ERROR_CODE_BLOB_UPLOAD_FAILED = "BLOB_UPLOAD_FAILED"
ERROR_CODE_BLOB_DOWNLOAD_FAILED = "BLOB_DOWNLOAD_FAILED"
ERROR_CODE_BLOB_DELETE_FAILED = "BLOB_DELETE_FAILED"
ERROR_CODE_BLOB_LOOKUP_FAILED = "BLOB_LOOKUP_FAILED"

# Data Shape Errors
ERROR_CODE_INTERNAL_ERROR = "INTERNAL_ERROR"
ERROR_CODE_INVALID_METADATA = "INVALID_METADATA"
ERROR_CODE_MISSING_QUERY = "MISSING_SHORT_URL_QUERY"

# Input Errors
ERROR_CODE_INVALID_FILTER = "INVALID_FILTER"
ERROR_CODE_INVALID_ACCESS_RULE = "INVALID_ACCESS_RULE"

# ============================================================================
# Collections
# ============================================================================

# Key attributes per table, hash key first
IMAGE_TABLE_KEY: Final[tuple[str, ...]] = ("owner", "image_identifier")
SHORT_URL_TABLE_KEY: Final[tuple[str, ...]] = ("short_url_id",)
ACCESS_CONTROL_TABLE_KEY: Final[tuple[str, ...]] = ("public_key",)
RESOURCE_GROUP_TABLE_KEY: Final[tuple[str, ...]] = ("name",)
IMAGE_VARIATION_TABLE_KEY: Final[tuple[str, ...]] = ("_id",)

# Embedded rule list on key pair records
ACL_FIELD = "acl"

# ============================================================================
# Image Search
# ============================================================================

IMAGE_SEARCH_FIELDS: Final[tuple[str, ...]] = (
    "owner",
    "image_identifier",
    "extension",
    "added",
    "updated",
    "checksum",
    "original_checksum",
    "mime_type",
    "size",
    "width",
    "height",
)

IMAGE_PROPERTY_FIELDS: Final[tuple[str, ...]] = (
    "size",
    "width",
    "height",
    "mime_type",
    "extension",
    "added",
    "updated",
)

ALLOWED_SORT_FIELDS: Final[frozenset[str]] = frozenset(IMAGE_SEARCH_FIELDS)

DEFAULT_SORT_FIELD = "added"

# ============================================================================
# Pagination Constraints
# ============================================================================

DEFAULT_LIMIT = 20
MIN_LIMIT = 1
DEFAULT_PAGE = 1

# ============================================================================
# Blob Naming
# ============================================================================

BLOB_NAME_SEPARATOR = "."

# S3 user metadata keys are always lower case
BLOB_META_OWNER = "owner"
BLOB_META_IMAGE_IDENTIFIER = "image_identifier"
BLOB_META_WIDTH = "width"
BLOB_META_UPDATED = "updated"
BLOB_META_ADDED = "added"

DEFAULT_BLOB_CONTENT_TYPE = "application/octet-stream"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_IMAGE_TABLE_NAME = "IMAGE_TABLE_NAME"
ENV_SHORT_URL_TABLE_NAME = "SHORT_URL_TABLE_NAME"
ENV_ACCESS_CONTROL_TABLE_NAME = "ACCESS_CONTROL_TABLE_NAME"
ENV_RESOURCE_GROUP_TABLE_NAME = "RESOURCE_GROUP_TABLE_NAME"
ENV_IMAGE_VARIATION_TABLE_NAME = "IMAGE_VARIATION_TABLE_NAME"
ENV_IMAGE_S3_BUCKET_NAME = "IMAGE_S3_BUCKET_NAME"
ENV_IMAGE_VARIATION_S3_BUCKET_NAME = "IMAGE_VARIATION_S3_BUCKET_NAME"
