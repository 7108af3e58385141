from enum import Enum


class ErrorCode(str, Enum):
    """Shared error taxonomy for every adapter and the reporting core."""

    NETWORK_ERROR = "NETWORK_ERROR"
    AUTH_FAILED = "AUTH_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    UNKNOWN = "UNKNOWN"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_FAILED: "Unable to submit report. Check your API key configuration.",
    ErrorCode.RATE_LIMITED: "Too many reports submitted. Please try again in a moment.",
    ErrorCode.UPLOAD_FAILED: (
        "Screenshot upload failed. The report was not attached to the issue."
    ),
    ErrorCode.NETWORK_ERROR: "You're offline. Check your connection and try again.",
    ErrorCode.UNKNOWN: "An unexpected error occurred while submitting the report.",
}

RETRYABLE_CODES: frozenset[ErrorCode] = frozenset(
    {ErrorCode.NETWORK_ERROR, ErrorCode.RATE_LIMITED}
)


class ShakeNbakeError(Exception):
    """Typed error raised by all adapters and internal code.

    Args:
        message: Human readable description.
        code: Taxonomy kind.
        retryable: Overrides the default derived from ``code``.
        original_error: The underlying cause, kept as-is (may be any value).
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        *,
        retryable: bool | None = None,
        original_error: object = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code)
        self.retryable = self.is_retryable(self.code) if retryable is None else retryable
        self.original_error = original_error

    def __repr__(self) -> str:
        return (
            f"ShakeNbakeError({self.message!r}, code={self.code.value}, "
            f"retryable={self.retryable})"
        )

    @staticmethod
    def is_retryable(code: ErrorCode) -> bool:
        """Return True for error codes that are safe to retry without new input."""
        return code in RETRYABLE_CODES

    @staticmethod
    def message_for_code(code: ErrorCode) -> str:
        """Return the default user-facing message for a given error code."""
        return ERROR_MESSAGES[ErrorCode(code)]
