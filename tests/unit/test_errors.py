"""Unit tests for error classification utilities."""

import pytest

from src.core.errors import (
    ErrorCode,
    ErrorSeverity,
    ImageProcessingError,
    InvalidStateError,
    MissingCredentialError,
    NoImageInResponseError,
    ParsingError,
    RoomNotFoundError,
    ServiceError,
    StorageError,
    TaskNotFoundError,
    UnauthorizedError,
    classify_error,
)


@pytest.mark.unit
class TestErrorTypes:
    def test_service_error_carries_status(self):
        error = ServiceError(503, "unavailable")

        assert error.status_code == 503
        assert error.message == "unavailable"
        assert str(error) == "API error (503): unavailable"

    def test_no_image_is_a_service_error(self):
        assert isinstance(NoImageInResponseError(), ServiceError)

    def test_not_found_messages(self):
        assert str(RoomNotFoundError("r1")) == "Room r1 not found"
        assert str(TaskNotFoundError("r1", "t1")) == "Task t1 not found in room r1"


@pytest.mark.unit
class TestClassifyError:
    @pytest.mark.parametrize(
        ("exception", "code"),
        [
            (MissingCredentialError(), ErrorCode.ERR_MISSING_CREDENTIAL),
            (ImageProcessingError(), ErrorCode.ERR_IMAGE_PROCESSING),
            (UnauthorizedError(), ErrorCode.ERR_UNAUTHORIZED),
            (ParsingError(), ErrorCode.ERR_PARSING),
            (ServiceError(500, "boom"), ErrorCode.ERR_SERVICE),
            (NoImageInResponseError(), ErrorCode.ERR_SERVICE),
            (StorageError("disk full"), ErrorCode.ERR_STORAGE),
            (RoomNotFoundError("r1"), ErrorCode.ERR_NOT_FOUND),
            (TaskNotFoundError("r1", "t1"), ErrorCode.ERR_NOT_FOUND),
            (InvalidStateError("no override"), ErrorCode.ERR_INVALID_STATE),
        ],
    )
    def test_typed_errors(self, exception, code):
        response = classify_error(exception)

        assert response.code == code
        assert response.message == str(exception)
        assert response.suggestion

    def test_missing_credential_suggests_settings(self):
        response = classify_error(MissingCredentialError())

        assert "settings" in response.suggestion.lower()
        assert response.severity == ErrorSeverity.MEDIUM

    def test_storage_is_critical(self):
        assert classify_error(StorageError("x")).severity == ErrorSeverity.CRITICAL

    def test_untyped_network_error(self):
        response = classify_error(ConnectionError("Connection refused"))

        assert response.code == ErrorCode.ERR_NETWORK
        assert "connection" in response.suggestion.lower()

    def test_unknown_error(self):
        response = classify_error(RuntimeError("something odd"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert response.message == "An unexpected error occurred."
