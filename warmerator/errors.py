"""Error taxonomy for the design cache and the mapping to user-facing messages."""

from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)

_CREDENTIAL_ERROR_CODES = {
    "UnrecognizedClientException",
    "InvalidSignatureException",
    "ExpiredTokenException",
    "InvalidClientTokenId",
    "MissingAuthenticationToken",
}
_ACCESS_DENIED_CODES = {"AccessDeniedException", "AccessDenied"}


class WarmeratorError(Exception):
    message = "An error occurred while fetching designs. Please try again later."


class SourceConnectionError(WarmeratorError):
    message = "Unable to connect to AWS DynamoDB. Please check your internet connection and AWS configuration."


class CredentialsError(WarmeratorError):
    message = "AWS credentials are missing or invalid. Please check your AWS configuration."


class TableNotFoundError(WarmeratorError):
    message = "The specified DynamoDB table does not exist. Please check your table name configuration."


class AccessDeniedError(WarmeratorError):
    message = "Access denied to DynamoDB. Please check your AWS permissions."


class StaleLockError(WarmeratorError):
    """The scan lock expired or changed hands while a scan was running."""


class ScanSupersededError(WarmeratorError):
    """The cache was invalidated while a scan was running."""

    def __init__(self, started_generation: int, current_generation: int):
        super().__init__(f"Scan started under generation {started_generation} superseded by {current_generation}")
        self.started_generation = started_generation
        self.current_generation = current_generation


class UnknownCursorError(WarmeratorError):
    message = "The requested page cursor does not match any design."

    def __init__(self, cursor_id):
        super().__init__(f"Unknown cursor: {cursor_id!r}")
        self.cursor_id = cursor_id


class CacheStoreError(WarmeratorError):
    """The key-value cache store failed."""


def error_message(error: BaseException) -> str:
    """Human-readable message for an error raised while serving designs."""
    if isinstance(error, WarmeratorError):
        return error.message
    return WarmeratorError.message


def classify_source_error(error: BaseException) -> BaseException:
    """Map a botocore exception onto the taxonomy. Unknown errors are returned unchanged."""
    if isinstance(error, (EndpointConnectionError, ConnectTimeoutError)):
        return SourceConnectionError(str(error))
    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return CredentialsError(str(error))
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        if code == "ResourceNotFoundException":
            return TableNotFoundError(str(error))
        if code in _ACCESS_DENIED_CODES:
            return AccessDeniedError(str(error))
        if code in _CREDENTIAL_ERROR_CODES:
            return CredentialsError(str(error))
    return error
