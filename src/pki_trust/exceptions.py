"""Structured exception taxonomy for OCSP and timestamp protocol clients."""


class PKITrustError(Exception):
    """Base exception for all pki-trust errors."""

    pass


class InvalidArgumentError(PKITrustError, ValueError):
    """A required input is missing or has an unusable value."""

    pass


class UnsupportedDigestError(InvalidArgumentError):
    """Digest algorithm is not supported in this context."""

    pass


class InvalidOperationError(PKITrustError):
    """Operation invoked out of order (e.g. processing before a request was built)."""

    pass


class TransportError(PKITrustError):
    """Non-success HTTP status or network fault while talking to an authority."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ProtocolError(PKITrustError):
    """Malformed response or server-reported non-success status."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class OCSPResponseStatusError(ProtocolError):
    """OCSP responder answered with a status other than successful."""

    def __init__(self, message: str, response_status: str, url: str | None = None):
        super().__init__(message, url=url)
        self.response_status = response_status


class TimestampRejectedError(ProtocolError):
    """Timestamp authority rejected the request."""

    def __init__(
        self,
        message: str,
        status: str,
        status_text: str | None = None,
        failure_info: list[str] | None = None,
        url: str | None = None,
    ):
        super().__init__(message, url=url)
        self.status = status
        self.status_text = status_text
        self.failure_info = failure_info or []


class ValidationError(PKITrustError):
    """Response does not correlate with the request it answers."""

    pass


class NonceMismatchError(ValidationError):
    """Nonce echoed by the responder differs from the one sent."""

    def __init__(self, message: str, expected: bytes | int, actual: bytes | int | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class TimestampValidationError(ValidationError):
    """Timestamp response failed validation against its request."""

    pass
