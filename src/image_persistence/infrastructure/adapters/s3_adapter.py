"""Thin adapter for interacting with Amazon S3 as a named blob store."""

from collections.abc import Mapping
import os
from typing import Any, Protocol, TypedDict
from urllib.parse import quote, unquote

import boto3
from botocore.exceptions import ClientError

from image_persistence.utils.constants import (
    DEFAULT_BLOB_CONTENT_TYPE,
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_REGION,
)


class BlobInfo(TypedDict):
    """A stored blob as returned by ``find_by_metadata``."""

    id: str
    name: str
    size: int
    metadata: dict[str, str]


class BlobStoreGateway(Protocol):
    """Minimal blob store protocol (repository-facing)."""

    def upload_by_name(
        self,
        *,
        name: str,
        data: bytes,
        metadata: Mapping[str, Any],
        content_type: str = DEFAULT_BLOB_CONTENT_TYPE,
    ) -> None: ...

    def download_by_name(self, *, name: str) -> bytes: ...

    def find_by_metadata(
        self,
        metadata_filter: Mapping[str, Any],
        *,
        prefix: str = "",
    ) -> list[BlobInfo]: ...

    def replace_metadata(self, *, blob_id: str, metadata: Mapping[str, Any]) -> None: ...

    def delete_by_id(self, *, blob_id: str) -> None: ...

    def ping(self) -> bool: ...


class S3BlobBucket:
    """Low-level S3 operations (mechanical, no error handling).

    This adapter:
    - Wraps a boto3 S3 client bound to one bucket
    - Uses the blob name as the object key, so a blob's id is its name
    - Stores metadata as S3 user metadata: keys travel as ``x-amz-meta-*``
      headers, so ``_`` is written as ``-`` and values are percent-encoded;
      both are decoded again on read
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(
        self,
        *,
        bucket_name: str | None = None,
        bucket_name_env: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Create S3 client from explicit or environment configuration."""
        name = bucket_name or (os.getenv(bucket_name_env) if bucket_name_env else None)
        if not name:
            raise RuntimeError(f"{bucket_name_env or 'bucket_name'} environment variable is not set")

        self._bucket = name
        self._client = client or boto3.client(
            "s3",
            endpoint_url=os.getenv(ENV_AWS_ENDPOINT_URL),
            region_name=os.getenv(ENV_AWS_REGION),
        )

    @property
    def bucket_name(self) -> str:
        return self._bucket

    def upload_by_name(
        self,
        *,
        name: str,
        data: bytes,
        metadata: Mapping[str, Any],
        content_type: str = DEFAULT_BLOB_CONTENT_TYPE,
    ) -> None:
        """Store bytes under a name.
        Raises boto3 exceptions - caught by domain implementation.
        """
        self._client.put_object(
            Bucket=self._bucket,
            Key=name,
            Body=data,
            ContentType=content_type,
            Metadata=self._encode(metadata),
        )

    def download_by_name(self, *, name: str) -> bytes:
        """Fetch the bytes stored under a name.
        Raises boto3 exceptions (NoSuchKey when absent) - caught by domain implementation.
        """
        response = self._client.get_object(Bucket=self._bucket, Key=name)
        data: bytes = response["Body"].read()
        return data

    def find_by_metadata(
        self,
        metadata_filter: Mapping[str, Any],
        *,
        prefix: str = "",
    ) -> list[BlobInfo]:
        """List blobs whose metadata equals every entry of the filter.

        ``prefix`` narrows the listing before metadata is inspected.
        Objects removed between listing and inspection are skipped.
        """
        expected = {self._decode_key(str(k)): str(v) for k, v in metadata_filter.items()}
        matches: list[BlobInfo] = []
        paginator = self._client.get_paginator("list_objects_v2")

        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            for entry in page.get("Contents", []):
                key = entry["Key"]

                try:
                    head = self._client.head_object(Bucket=self._bucket, Key=key)
                except ClientError as exc:
                    if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey"):
                        continue
                    raise

                metadata = self._decode(head.get("Metadata", {}))

                if all(metadata.get(k) == v for k, v in expected.items()):
                    matches.append(
                        BlobInfo(
                            id=key,
                            name=key,
                            size=int(head.get("ContentLength", entry.get("Size", 0))),
                            metadata=metadata,
                        )
                    )

        return matches

    def replace_metadata(self, *, blob_id: str, metadata: Mapping[str, Any]) -> None:
        """Rewrite a blob's metadata in place without re-uploading its bytes.

        A ``REPLACE`` copy resets every stored header, so the current
        content type is read first and written back.
        """
        head = self._client.head_object(Bucket=self._bucket, Key=blob_id)

        self._client.copy_object(
            Bucket=self._bucket,
            Key=blob_id,
            CopySource={"Bucket": self._bucket, "Key": blob_id},
            ContentType=head.get("ContentType", DEFAULT_BLOB_CONTENT_TYPE),
            Metadata=self._encode(metadata),
            MetadataDirective="REPLACE",
        )

    def delete_by_id(self, *, blob_id: str) -> None:
        """Delete a blob.
        Raises boto3 exceptions - caught by domain implementation.
        """
        self._client.delete_object(Bucket=self._bucket, Key=blob_id)

    def ping(self) -> bool:
        """Check that the bucket exists and is reachable."""
        self._client.head_bucket(Bucket=self._bucket)
        return True

    @staticmethod
    def _decode_key(key: str) -> str:
        return key.lower().replace("-", "_")

    @staticmethod
    def _encode(metadata: Mapping[str, Any]) -> dict[str, str]:
        return {
            str(key).lower().replace("_", "-"): quote(str(value), safe="")
            for key, value in metadata.items()
        }

    @classmethod
    def _decode(cls, metadata: Mapping[str, str]) -> dict[str, str]:
        return {cls._decode_key(key): unquote(value) for key, value in metadata.items()}
