"""Failure kinds raised by the translation strategies."""

from __future__ import annotations

from enum import Enum

from core.errors import AppError, ErrorCode


class TranslationErrorKind(str, Enum):
    """Distinguishes translation failures in logs and error envelopes."""

    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    INVALID_JSON = "INVALID_JSON"
    MISSING_FIELD = "MISSING_FIELD"
    NO_TRANSLATION_AVAILABLE = "NO_TRANSLATION_AVAILABLE"
    TRANSLATION_FAILED = "TRANSLATION_FAILED"


class TranslationError(AppError):
    """Base class for all translation failures. Never retried."""

    kind: TranslationErrorKind = TranslationErrorKind.TRANSLATION_FAILED
    default_status = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(
            code=ErrorCode.TRANSLATION_ERROR,
            message=message,
            status_code=status_code or self.default_status,
            details={"kind": self.kind.value},
        )


class EmptyResponseError(TranslationError):
    kind = TranslationErrorKind.EMPTY_RESPONSE

    def __init__(self, operation: str = "Word translation") -> None:
        super().__init__(f"{operation} failed: No response")


class InvalidJsonError(TranslationError):
    kind = TranslationErrorKind.INVALID_JSON

    def __init__(self) -> None:
        super().__init__("Word translation failed: Invalid JSON")


class MissingFieldError(TranslationError):
    kind = TranslationErrorKind.MISSING_FIELD

    def __init__(self, field: str = "fullTranslation") -> None:
        super().__init__(f"Word translation failed: Missing {field}")
        self.field = field


class NoTranslationAvailableError(TranslationError):
    """The on-demand path had nothing to return or derive from.

    A legitimate terminal state rather than a provider fault.
    """

    kind = TranslationErrorKind.NO_TRANSLATION_AVAILABLE
    default_status = 422

    def __init__(self, message_id: int) -> None:
        super().__init__(f"No translation available for message {message_id}")
        self.message_id = message_id


class TranslationFailedError(TranslationError):
    kind = TranslationErrorKind.TRANSLATION_FAILED

    def __init__(
        self, cause: BaseException | str, *, operation: str = "Word translation"
    ) -> None:
        super().__init__(f"{operation} failed: {str(cause) or 'Unknown error'}")
