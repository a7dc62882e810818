"""
Error types for GnuDIP Gateway.

Every failure that can end a request is a `GatewayError` carrying the HTTP
status code and the short message rendered to the client. Authentication
failures share the `AuthError` base class.
"""

from __future__ import annotations

from starlette import status as st_status


class GatewayError(Exception):
    """
    Base class for request-terminating errors.

    Attributes
    ----------
    message : str
        Short machine-readable reason rendered in the response.
    status_code : int
        HTTP status code of the response.
    """

    status_code: int = st_status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        """
        Initialize a GatewayError.

        Parameters
        ----------
        message : str
            Short reason rendered in the response.
        """
        self.message = message
        super().__init__(message)


class AuthError(GatewayError):
    """Base class for challenge and credential verification failures."""


class MissingFieldError(AuthError):
    """A required query field is missing or empty."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing required field: {field}")


class MalformedTimeError(AuthError):
    """The challenge timestamp is not an integer."""

    def __init__(self) -> None:
        super().__init__("Malformed time")


class ExpiredError(AuthError):
    """The challenge is outside the freshness window."""

    def __init__(self) -> None:
        super().__init__("Challenge expired")


class SignatureMismatchError(AuthError):
    """The challenge signature was not issued by this process."""

    def __init__(self) -> None:
        super().__init__("Signature mismatch")


class CredentialMismatchError(AuthError):
    """Username or salted password does not match the configured credential."""

    def __init__(self) -> None:
        super().__init__("Credential mismatch")


class MalformedReqCodeError(GatewayError):
    """The request code is not an integer."""

    def __init__(self) -> None:
        super().__init__("Malformed reqc")


class MalformedAddressError(GatewayError):
    """The explicit address is not an IPv4 or IPv6 address."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Malformed addr: {address}")


class UnknownOperationError(GatewayError):
    """The request code is an integer outside the supported operations."""

    def __init__(self, req_code: int) -> None:
        self.req_code = req_code
        super().__init__(f"Unknown reqc: {req_code}")


class PeerAddressUnavailableError(GatewayError):
    """The transport-layer peer address could not be determined."""

    status_code = st_status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self) -> None:
        super().__init__("Peer address unavailable")


class ProviderFailureError(GatewayError):
    """The DNS provider rejected or failed the update."""

    status_code = st_status.HTTP_500_INTERNAL_SERVER_ERROR


class EntropySourceError(GatewayError):
    """The operating system random source is unavailable."""

    status_code = st_status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self) -> None:
        super().__init__("Entropy source unavailable")
