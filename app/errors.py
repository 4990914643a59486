"""
app/errors.py

Error taxonomy shared by analysis, scheduling, integrations and the HTTP layer.

Every error carries a machine code, a human message and a suggested remedial
action. The HTTP layer renders these three fields verbatim.
"""

from __future__ import annotations

from typing import Any


class ErrorKind:
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    FAILED_PRECONDITION = "failed_precondition"
    INTERNAL = "internal"


HTTP_STATUS_BY_KIND: dict[str, int] = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.RESOURCE_EXHAUSTED: 429,
    ErrorKind.DEADLINE_EXCEEDED: 504,
    ErrorKind.FAILED_PRECONDITION: 409,
    ErrorKind.INTERNAL: 500,
}


class AnalyticsError(Exception):
    """
    Base error with a taxonomy kind, machine code, message and suggestion.
    """

    def __init__(
        self,
        *,
        kind: str,
        code: str,
        message: str,
        suggestion: str,
    ) -> None:
        self.kind = kind
        self.code = code
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND.get(self.kind, 500)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
        }


def invalid_argument(code: str, message: str, suggestion: str) -> AnalyticsError:
    return AnalyticsError(
        kind=ErrorKind.INVALID_ARGUMENT,
        code=code,
        message=message,
        suggestion=suggestion,
    )


def not_found(code: str, message: str, suggestion: str) -> AnalyticsError:
    return AnalyticsError(
        kind=ErrorKind.NOT_FOUND,
        code=code,
        message=message,
        suggestion=suggestion,
    )


def failed_precondition(code: str, message: str, suggestion: str) -> AnalyticsError:
    return AnalyticsError(
        kind=ErrorKind.FAILED_PRECONDITION,
        code=code,
        message=message,
        suggestion=suggestion,
    )


def internal_error(code: str, message: str, suggestion: str) -> AnalyticsError:
    return AnalyticsError(
        kind=ErrorKind.INTERNAL,
        code=code,
        message=message,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Table parsing
# ---------------------------------------------------------------------------


class TableParseError(AnalyticsError):
    """Base class for CSV/Excel structure failures."""

    code = "CSV_PARSE_ERROR"

    def __init__(self, message: str, suggestion: str) -> None:
        super().__init__(
            kind=ErrorKind.INVALID_ARGUMENT,
            code=type(self).code,
            message=message,
            suggestion=suggestion,
        )


class EmptyInputError(TableParseError):
    code = "EMPTY_INPUT"

    def __init__(self) -> None:
        super().__init__(
            "The file contains no data.",
            "Upload a file with a header row and at least 2 data rows.",
        )


class MissingHeaderError(TableParseError):
    code = "MISSING_HEADER"

    def __init__(self) -> None:
        super().__init__(
            "The file must have a header row with at least 2 columns.",
            "Make sure the first line lists the column names separated by commas.",
        )


class DuplicateHeaderError(TableParseError):
    code = "DUPLICATE_HEADER"

    def __init__(self, header: str) -> None:
        self.header = header
        super().__init__(
            f"Duplicate column header: '{header}'.",
            "Rename columns so every header is unique (headers are case-insensitive).",
        )


class EmptyHeaderCellError(TableParseError):
    code = "EMPTY_HEADER_CELL"

    def __init__(self, column_index: int) -> None:
        self.column_index = column_index
        super().__init__(
            f"Header in column {column_index + 1} is empty.",
            "Give every column a non-empty name.",
        )


class RowColumnMismatchError(TableParseError):
    code = "ROW_COLUMN_MISMATCH"

    def __init__(self, line_number: int, actual: int, expected: int) -> None:
        self.line_number = line_number
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"Line {line_number} has {actual} columns, expected {expected}.",
            "Check for unquoted commas or missing values on that line.",
        )


class InsufficientRowsError(TableParseError):
    code = "INSUFFICIENT_DATA"

    def __init__(self, row_count: int) -> None:
        self.row_count = row_count
        super().__init__(
            f"The file has {row_count} data row(s); at least 2 are required for analysis.",
            "Upload a file with more data rows.",
        )


class InvalidEncodingError(TableParseError):
    code = "INVALID_ENCODING"

    def __init__(self) -> None:
        super().__init__(
            "The file is not valid UTF-8 text.",
            "Re-export the report as UTF-8 encoded CSV.",
        )


class UnreadableSpreadsheetError(TableParseError):
    code = "INVALID_SPREADSHEET"

    def __init__(self, detail: str) -> None:
        super().__init__(
            f"The spreadsheet could not be read: {detail}",
            "Open the file in a spreadsheet tool and save it again as .xlsx or .csv.",
        )


class UnsupportedFormatError(TableParseError):
    code = "UNSUPPORTED_FORMAT"

    def __init__(self, file_name: str) -> None:
        super().__init__(
            f"File type of '{file_name}' is not supported.",
            "Upload a .csv, .xls or .xlsx file.",
        )


class NoRowsAfterFilterError(AnalyticsError):
    def __init__(self) -> None:
        super().__init__(
            kind=ErrorKind.INVALID_ARGUMENT,
            code="NO_FILTERED_DATA",
            message="No rows match the applied filters.",
            suggestion="Widen the date range, category selection or value range.",
        )


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class StorageError(AnalyticsError):
    def __init__(
        self,
        message: str = "Blob storage operation failed.",
        *,
        code: str = "STORAGE_ERROR",
    ) -> None:
        super().__init__(
            kind=ErrorKind.INTERNAL,
            code=code,
            message=message,
            suggestion="Try again later. If the problem persists, check storage configuration.",
        )


class TokenExpiredError(AnalyticsError):
    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(
            kind=ErrorKind.UNAUTHENTICATED,
            code="TOKEN_EXPIRED",
            message=f"The {platform} access token has expired or is invalid.",
            suggestion="Reconnect the account to refresh its credentials.",
        )


class PermissionDeniedError(AnalyticsError):
    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(
            kind=ErrorKind.PERMISSION_DENIED,
            code="INSUFFICIENT_PERMISSIONS",
            message=f"The {platform} account does not grant access to the requested data.",
            suggestion="Grant reporting permissions to the connected account and try again.",
        )


class ProviderError(AnalyticsError):
    def __init__(self, platform: str, detail: str, *, code: str = "PROVIDER_ERROR") -> None:
        self.platform = platform
        super().__init__(
            kind=ErrorKind.INTERNAL,
            code=code,
            message=f"{platform} request failed: {detail}",
            suggestion="Verify the account id and requested metrics, then try again.",
        )


# ---------------------------------------------------------------------------
# Text generation
# ---------------------------------------------------------------------------


class GenerationError(AnalyticsError):
    """Base class for failures reported by the text-generation service."""


class GenerationRateLimitedError(GenerationError):
    def __init__(self) -> None:
        super().__init__(
            kind=ErrorKind.RESOURCE_EXHAUSTED,
            code="AI_RATE_LIMIT",
            message="The AI service rate limit was exceeded.",
            suggestion="Wait a minute and try the analysis again.",
        )


class GenerationTimeoutError(GenerationError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            kind=ErrorKind.DEADLINE_EXCEEDED,
            code="AI_TIMEOUT",
            message=f"The AI service did not respond within {timeout_seconds:g} seconds.",
            suggestion="Try again with a smaller dataset or narrower filters.",
        )


class GenerationConfigError(GenerationError):
    def __init__(self, detail: str = "The AI service is not configured correctly.") -> None:
        super().__init__(
            kind=ErrorKind.INTERNAL,
            code="AI_CONFIG_ERROR",
            message=detail,
            suggestion="Check the AI service API key configuration.",
        )


class GenerationServiceError(GenerationError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            kind=ErrorKind.INTERNAL,
            code="AI_ERROR",
            message=f"The AI service request failed: {detail}",
            suggestion="Try again later.",
        )
