"""
Pytest configuration and fixtures for image-persistence tests.
Provides AWS mocking, DynamoDB tables and S3 buckets with proper cleanup.
"""

import os
from collections.abc import Callable
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("IMAGE_TABLE_NAME", "images-test")
os.environ.setdefault("SHORT_URL_TABLE_NAME", "short-urls-test")
os.environ.setdefault("ACCESS_CONTROL_TABLE_NAME", "access-control-test")
os.environ.setdefault("RESOURCE_GROUP_TABLE_NAME", "resource-groups-test")
os.environ.setdefault("IMAGE_VARIATION_TABLE_NAME", "image-variations-test")
os.environ.setdefault("IMAGE_S3_BUCKET_NAME", "images-test")
os.environ.setdefault("IMAGE_VARIATION_S3_BUCKET_NAME", "image-variations-test")
os.environ.setdefault("POWERTOOLS_LOG_LEVEL", "DEBUG")
os.environ.pop("AWS_ENDPOINT_URL", None)

# Table name env var -> key schema, hash key first
TABLE_SCHEMAS: dict[str, tuple[tuple[str, str], ...]] = {
    "IMAGE_TABLE_NAME": (("owner", "HASH"), ("image_identifier", "RANGE")),
    "SHORT_URL_TABLE_NAME": (("short_url_id", "HASH"),),
    "ACCESS_CONTROL_TABLE_NAME": (("public_key", "HASH"),),
    "RESOURCE_GROUP_TABLE_NAME": (("name", "HASH"),),
    "IMAGE_VARIATION_TABLE_NAME": (("_id", "HASH"),),
}

BUCKET_ENV_NAMES = ("IMAGE_S3_BUCKET_NAME", "IMAGE_VARIATION_S3_BUCKET_NAME")


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


def _create_dynamodb_table(dynamodb_resource, env_name: str):
    """Helper to create one string-keyed DynamoDB table."""
    schema = TABLE_SCHEMAS[env_name]

    table = dynamodb_resource.create_table(
        TableName=os.getenv(env_name),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": name, "KeyType": kind} for name, kind in schema],
        AttributeDefinitions=[{"AttributeName": name, "AttributeType": "S"} for name, _ in schema],
    )
    table.wait_until_exists()
    return table


@pytest.fixture(scope="function")
def dynamodb_tables(dynamodb_resource) -> dict[str, Any]:
    """
    Create every table the repositories use.

    moto discards all state when the mock context exits, so no teardown is
    needed between tests.
    """
    return {env_name: _create_dynamodb_table(dynamodb_resource, env_name) for env_name in TABLE_SCHEMAS}


@pytest.fixture
def image_table(dynamodb_tables):
    return dynamodb_tables["IMAGE_TABLE_NAME"]


@pytest.fixture
def access_control_table(dynamodb_tables):
    return dynamodb_tables["ACCESS_CONTROL_TABLE_NAME"]


@pytest.fixture
def short_url_table(dynamodb_tables):
    return dynamodb_tables["SHORT_URL_TABLE_NAME"]


@pytest.fixture
def resource_group_table(dynamodb_tables):
    return dynamodb_tables["RESOURCE_GROUP_TABLE_NAME"]


@pytest.fixture
def image_variation_table(dynamodb_tables):
    return dynamodb_tables["IMAGE_VARIATION_TABLE_NAME"]


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_buckets(s3_client):
    """Create the image and variation buckets."""
    for env_name in BUCKET_ENV_NAMES:
        try:
            s3_client.create_bucket(Bucket=os.getenv(env_name))
        except ClientError as e:
            if e.response["Error"]["Code"] != "BucketAlreadyOwnedByYou":
                raise

    return s3_client


@pytest.fixture
def s3_get_object(s3_buckets) -> Callable[[str, str], dict[str, Any]]:
    """
    Helper to read an object and its user metadata.

    Usage:
        response = s3_get_object("IMAGE_S3_BUCKET_NAME", "alice.img1")
    """

    def _get(bucket_env: str, key: str) -> dict[str, Any]:
        response: dict[str, Any] = s3_buckets.get_object(Bucket=os.getenv(bucket_env), Key=key)
        return {
            "body": response["Body"].read(),
            "metadata": response.get("Metadata", {}),
            "content_type": response.get("ContentType"),
        }

    return _get


@pytest.fixture
def client_error() -> Callable[[str, str], ClientError]:
    """
    Build a botocore ClientError with the given code.

    Usage:
        raise client_error("ConditionalCheckFailedException", "PutItem")
    """

    def _build(code: str, operation: str = "Operation") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": code}}, operation)

    return _build


@pytest.fixture
def sample_image() -> dict[str, Any]:
    """Properties of a single stored image."""
    return {
        "size": 100,
        "extension": "png",
        "mime_type": "image/png",
        "width": 640,
        "height": 480,
        "checksum": "b1946ac92492d2347c6235b4d2611184",
        "original_checksum": "b1946ac92492d2347c6235b4d2611184",
    }


@pytest.fixture
def sample_image_binary() -> bytes:
    """Sample binary image data (1x1 PNG)."""
    import base64

    png_base64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
    return base64.b64decode(png_base64)
