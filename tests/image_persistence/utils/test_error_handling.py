import pytest

from image_persistence.models.errors import (
    BlobTransportError,
    NotFoundError,
    PersistenceError,
)
from image_persistence.utils.error_handling import aws_error_code, store_errors


class TestAwsErrorCode:
    def test_reads_code(self, client_error) -> None:
        assert aws_error_code(client_error("NoSuchKey", "GetObject")) == "NoSuchKey"

    def test_missing_code_is_none(self) -> None:
        from botocore.exceptions import ClientError

        assert aws_error_code(ClientError({}, "GetObject")) is None


class TestStoreErrors:
    def test_client_error_is_rewrapped(self, client_error) -> None:
        original = client_error("InternalServerError", "GetItem")

        with pytest.raises(PersistenceError) as exc_info:
            with store_errors(message="Unable to read", error_code="READ_FAILED", details={"k": "v"}):
                raise original

        assert exc_info.value.error_code == "READ_FAILED"
        assert exc_info.value.details == {"k": "v"}
        assert exc_info.value.__cause__ is original

    def test_unexpected_error_is_rewrapped(self) -> None:
        with pytest.raises(PersistenceError) as exc_info:
            with store_errors(message="Unable to read", error_code="READ_FAILED"):
                raise RuntimeError("boom")

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_error_class_is_honoured(self, client_error) -> None:
        with pytest.raises(BlobTransportError):
            with store_errors(
                message="Unable to upload",
                error_code="UPLOAD_FAILED",
                error_class=BlobTransportError,
            ):
                raise client_error("SlowDown", "PutObject")

    def test_domain_errors_pass_through(self) -> None:
        with pytest.raises(NotFoundError):
            with store_errors(message="Unable to read", error_code="READ_FAILED"):
                raise NotFoundError(message="missing")

    def test_no_error_is_silent(self) -> None:
        with store_errors(message="Unable to read", error_code="READ_FAILED"):
            value = 1

        assert value == 1
