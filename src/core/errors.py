"""Typed failures raised by the scan pipeline and their user-facing classification."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class BabciaError(Exception):
    """Base class for every failure surfaced by the scan/verify pipeline."""


class MissingCredentialError(BabciaError):
    """The analysis credential is empty; nothing was mutated."""

    def __init__(self, message: str = "Gemini API key is missing") -> None:
        super().__init__(message)


class ImageProcessingError(BabciaError):
    """An image could not be decoded, resized or encoded."""

    def __init__(self, message: str = "Failed to process the image") -> None:
        super().__init__(message)


class ServiceError(BabciaError):
    """An external service call failed (non-2xx, timeout or transport error)."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"API error ({status_code}): {message}")


class NoImageInResponseError(ServiceError):
    """The image model answered without an inline image part."""

    def __init__(self, status_code: int = 200, message: str = "No image found in API response") -> None:
        super().__init__(status_code, message)


class UnauthorizedError(BabciaError):
    """The credential was rejected by the remote service."""

    def __init__(self, message: str = "Invalid access token") -> None:
        super().__init__(message)


class ParsingError(BabciaError):
    """A service reply could not be turned into the expected structure."""

    def __init__(self, message: str = "Failed to parse API response") -> None:
        super().__init__(message)


class StorageError(BabciaError):
    """Rooms or images could not be read from or written to durable storage."""


class RoomNotFoundError(BabciaError, KeyError):
    """No room with the requested id exists."""

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")

    def __str__(self) -> str:
        return f"Room {self.room_id} not found"


class TaskNotFoundError(BabciaError, KeyError):
    """No task with the requested id exists in the room."""

    def __init__(self, room_id: str, task_id: str) -> None:
        self.room_id = room_id
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found in room {room_id}")

    def __str__(self) -> str:
        return f"Task {self.task_id} not found in room {self.room_id}"


class InvalidStateError(BabciaError, ValueError):
    """The requested action is not allowed in the room's current state."""


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_MISSING_CREDENTIAL = "ERR_MISSING_CREDENTIAL"
    ERR_IMAGE_PROCESSING = "ERR_IMAGE_PROCESSING"
    ERR_SERVICE = "ERR_SERVICE"
    ERR_PARSING = "ERR_PARSING"
    ERR_UNAUTHORIZED = "ERR_UNAUTHORIZED"
    ERR_STORAGE = "ERR_STORAGE"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_INVALID_STATE = "ERR_INVALID_STATE"
    ERR_NETWORK = "ERR_NETWORK"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_NETWORK_PATTERNS: dict[Literal["phrases", "exception_types"], list[str] | set[str]] = {
    "phrases": ["connection", "timeout", "timed out", "network", "unreachable"],
    "exception_types": {"ConnectionError", "TimeoutError", "ConnectError", "ReadTimeout"},
}


def _is_network_error(exception: Exception) -> bool:
    """Return True if an untyped exception looks like a transport failure."""
    error_str = str(exception).lower()
    exception_type = type(exception).__name__
    return (
        any(phrase in error_str for phrase in _NETWORK_PATTERNS["phrases"])
        or exception_type in _NETWORK_PATTERNS["exception_types"]
    )


def classify_error(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify a pipeline failure and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during a scan, verify or scheduling operation

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, MissingCredentialError):
        return ErrorResponse(
            code=ErrorCode.ERR_MISSING_CREDENTIAL,
            message=str(exception),
            suggestion="Add your Gemini API key in settings and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, ImageProcessingError):
        return ErrorResponse(
            code=ErrorCode.ERR_IMAGE_PROCESSING,
            message=str(exception),
            suggestion="Take another photo and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, UnauthorizedError):
        return ErrorResponse(
            code=ErrorCode.ERR_UNAUTHORIZED,
            message=str(exception),
            suggestion="Check the credential in settings.",
            severity=ErrorSeverity.HIGH,
        )

    if isinstance(exception, ParsingError):
        return ErrorResponse(
            code=ErrorCode.ERR_PARSING,
            message=str(exception),
            suggestion="Babcia could not read the answer. Please scan again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, ServiceError):
        return ErrorResponse(
            code=ErrorCode.ERR_SERVICE,
            message=str(exception),
            suggestion="Please try again in a moment.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, StorageError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORAGE,
            message=str(exception),
            suggestion="Check that the data directory is writable.",
            severity=ErrorSeverity.CRITICAL,
        )

    if isinstance(exception, (RoomNotFoundError, TaskNotFoundError)):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message=str(exception),
            suggestion="Refresh the room list and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, InvalidStateError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_STATE,
            message=str(exception),
            suggestion="Check the room status and try again.",
            severity=ErrorSeverity.LOW,
        )

    if _is_network_error(exception):
        return ErrorResponse(
            code=ErrorCode.ERR_NETWORK,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
