"""Conversion of bridge failures into user-facing error info."""

from supernavi_bridge.exceptions import (
    ApiError,
    BridgeError,
    InvalidCaseIdentifierError,
    InvalidPairingCodeError,
    NotConfiguredError,
    TransportError,
)
from supernavi_bridge.models import ErrorInfo, MessageType

NOT_CONFIGURED_MESSAGE = "Not configured: pair this device or set an API key"
CONNECTION_ERROR_MESSAGE = "Could not reach the SuperNavi server"
RATE_LIMITED_MESSAGE = "Too many requests, try again shortly"
UNAUTHORIZED_MESSAGE = "Credential rejected: pair the device again or check the API key"


def _api_error_message(error: ApiError, request_type: MessageType) -> str:
    pairing = request_type == MessageType.CLAIM_PAIRING_CODE

    if error.is_not_found:
        return "Invalid pairing code" if pairing else "Not found"
    if error.is_expired:
        return "Pairing code expired or already used" if pairing else "Expired or already used"
    if error.is_rate_limited:
        return RATE_LIMITED_MESSAGE
    if error.is_unauthorized:
        return UNAUTHORIZED_MESSAGE
    return f"Server responded with status {error.status}"


def describe_error(error: BridgeError, request_type: MessageType) -> ErrorInfo:
    """Map a failure to a distinct user-facing message.

    Args:
        error: Failure raised by the engine
        request_type: Operation that failed (pairing codes get specific texts)

    Returns:
        ErrorInfo with kind, status (API errors only) and message
    """
    if isinstance(error, NotConfiguredError):
        return ErrorInfo(kind="not_configured", message=NOT_CONFIGURED_MESSAGE)
    if isinstance(error, ApiError):
        return ErrorInfo(
            kind="api_error",
            status=error.status,
            message=_api_error_message(error, request_type),
        )
    if isinstance(error, TransportError):
        return ErrorInfo(kind="transport_error", message=CONNECTION_ERROR_MESSAGE)
    if isinstance(error, (InvalidCaseIdentifierError, InvalidPairingCodeError)):
        return ErrorInfo(kind="invalid_input", message=str(error))
    return ErrorInfo(kind="error", message=str(error))
