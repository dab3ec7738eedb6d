"""Exception hierarchy for the SuperNavi bridge.

Client-layer failures are raised as one of these types and caught only at the
coordinator boundary, where they are turned into failed results.
"""

from typing import Optional


class BridgeError(Exception):
    """Base class for all bridge failures."""


class NotConfiguredError(BridgeError):
    """No credential is available (neither device token nor legacy key)."""

    def __init__(self, message: str = "Not configured: pair the device or set an API key"):
        super().__init__(message)


class ApiError(BridgeError):
    """The cloud API answered with a non-success HTTP status.

    Attributes:
        status: HTTP status code
        body: Raw response body (may be empty)
    """

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"API {status}: {body}" if body else f"API {status}")

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_expired(self) -> bool:
        return self.status == 410

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429

    @property
    def is_unauthorized(self) -> bool:
        return self.status in (401, 403)


class TransportError(BridgeError):
    """Network failure, timeout, or an undecodable response body."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class InvalidCaseIdentifierError(BridgeError, ValueError):
    """Text that cannot be canonicalized into a case identifier."""


class InvalidPairingCodeError(BridgeError, ValueError):
    """Pairing code that is not exactly six alphanumeric characters."""
