"""Error types raised by the ossmultipart client."""

from __future__ import annotations


class OSSClientError(Exception):
    """Base class for every failure surfaced by ossmultipart."""


class ProtocolDecodeError(OSSClientError):
    """A response body could not be decoded into the expected structure.

    Attributes:
        message: Description of what was missing or malformed.
        body: The raw response body, kept for diagnostics.
    """

    def __init__(self, message: str, body: bytes = b"") -> None:
        super().__init__(message)
        self.message = message
        self.body = body


class TransportError(OSSClientError):
    """The transport collaborator failed before a response was received."""


class ClientValidationError(OSSClientError, ValueError):
    """A caller-supplied argument was rejected before sending a request."""


class ServiceError(OSSClientError):
    """A response carrying an ``Error`` envelope.

    Raised regardless of the HTTP status: a 2xx response whose body is an
    ``Error`` envelope is reported the same way as a 4xx/5xx one.

    Attributes:
        code: The service error code (e.g. "NoSuchUpload").
        message: Human-readable error description from the envelope.
        request_id: The request identifier reported by the service.
        http_status: The HTTP status code of the response.
        extra_fields: Any other child elements of the envelope.
    """

    code: str = ""

    def __init__(
        self,
        code: str,
        message: str,
        request_id: str = "",
        http_status: int = 0,
        extra_fields: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.request_id = request_id
        self.http_status = http_status
        self.extra_fields = extra_fields or {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, message={self.message!r}, "
            f"request_id={self.request_id!r}, http_status={self.http_status})"
        )


# -- Well-known service error codes -------------------------------------------


class AccessDenied(ServiceError):
    """Access denied error."""

    code = "AccessDenied"


class NoSuchBucket(ServiceError):
    """The specified bucket does not exist."""

    code = "NoSuchBucket"


class NoSuchKey(ServiceError):
    """The specified key does not exist."""

    code = "NoSuchKey"


class NoSuchUpload(ServiceError):
    """The multipart transaction does not exist, or was committed or aborted."""

    code = "NoSuchUpload"


class InvalidArgument(ServiceError):
    """An invalid argument was provided."""

    code = "InvalidArgument"


class InvalidPart(ServiceError):
    """One or more of the specified parts could not be found."""

    code = "InvalidPart"


class InvalidPartOrder(ServiceError):
    """The list of parts was not in ascending order."""

    code = "InvalidPartOrder"


class InvalidDigest(ServiceError):
    """The Content-MD5 sent did not match what the service received."""

    code = "InvalidDigest"


class EntityTooSmall(ServiceError):
    """A part other than the last is smaller than the minimum part size."""

    code = "EntityTooSmall"


class EntityTooLarge(ServiceError):
    """The proposed upload exceeds the maximum allowed size."""

    code = "EntityTooLarge"


class PreconditionFailed(ServiceError):
    """At least one of the copy preconditions did not hold."""

    code = "PreconditionFailed"


class SignatureDoesNotMatch(ServiceError):
    """The request signature does not match."""

    code = "SignatureDoesNotMatch"


class MalformedXML(ServiceError):
    """The XML body sent was not well-formed or did not validate."""

    code = "MalformedXML"


class InternalError(ServiceError):
    """The service hit an internal error."""

    code = "InternalError"


_ERRORS_BY_CODE: dict[str, type[ServiceError]] = {
    cls.code: cls
    for cls in (
        AccessDenied,
        NoSuchBucket,
        NoSuchKey,
        NoSuchUpload,
        InvalidArgument,
        InvalidPart,
        InvalidPartOrder,
        InvalidDigest,
        EntityTooSmall,
        EntityTooLarge,
        PreconditionFailed,
        SignatureDoesNotMatch,
        MalformedXML,
        InternalError,
    )
}


def service_error(
    code: str,
    message: str,
    request_id: str = "",
    http_status: int = 0,
    extra_fields: dict[str, str] | None = None,
) -> ServiceError:
    """Build the most specific ``ServiceError`` subclass for an error code.

    Unknown codes produce a plain ``ServiceError``.
    """
    cls = _ERRORS_BY_CODE.get(code, ServiceError)
    return cls(
        code=code,
        message=message,
        request_id=request_id,
        http_status=http_status,
        extra_fields=extra_fields,
    )
