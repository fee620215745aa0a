"""
Translation of store exceptions into domain errors.

Every gateway call site in a repository runs inside :func:`store_errors` so
that boto3/botocore exceptions never escape the persistence layer.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from image_persistence.models.errors import ImageStoreError, PersistenceError

logger = Logger(UTC=True)


def aws_error_code(exc: ClientError) -> str | None:
    """Return the AWS error code carried by a ClientError, if any."""
    code: str | None = exc.response.get("Error", {}).get("Code")
    return code


@contextmanager
def store_errors(
    *,
    message: str,
    error_code: str,
    details: dict[str, Any] | None = None,
    error_class: type[PersistenceError] = PersistenceError,
) -> Iterator[None]:
    """
    Re-raise any store failure inside the block as ``error_class``.

    Domain errors raised inside the block pass through untouched, so a
    NotFoundError from a nested existence check still reaches the caller.

    Usage:
        with store_errors(message="Unable to delete key", error_code=...):
            self._db.delete_one({"public_key": public_key})
    """
    context = details or {}

    try:
        yield

    except ImageStoreError:
        raise

    except ClientError as exc:
        logger.error(
            message,
            extra={"error_code": error_code, "aws_error_code": aws_error_code(exc), **context},
        )
        raise error_class(message=message, error_code=error_code, details=context) from exc

    except Exception as exc:
        logger.exception(message, extra={"error_code": error_code, **context})
        raise error_class(message=message, error_code=error_code, details=context) from exc
