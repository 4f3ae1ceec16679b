"""Custom exceptions for the short-link rule store.

The taxonomy carries no HTTP vocabulary; the API layer owns the mapping
from error kind to status code.
"""

from enum import Enum


class ValidationReason(str, Enum):
    INVALID_PATHNAME = "invalid_pathname"
    INVALID_URL = "invalid_url"
    INVALID_EXPIRY = "invalid_expiry"


class ConflictReason(str, Enum):
    DUPLICATE_PATH = "duplicate_path"


class UpstreamReason(str, Enum):
    FETCH_FAILED = "fetch_failed"
    COMMIT_FAILED = "commit_failed"
    CORRUPT_DOCUMENT = "corrupt_document"


class ShortLinkError(Exception):
    """Base class for rule store exceptions."""

    def __init__(self, message: str = "Short link error"):
        self.message = message
        super().__init__(message)


class ValidationError(ShortLinkError):
    """Raised when caller input is rejected before any remote call."""

    def __init__(self, reason: ValidationReason, message: str):
        self.reason = reason
        super().__init__(message)


class ConflictError(ShortLinkError):
    """Raised when the requested path already exists in the rule table."""

    def __init__(
        self,
        path_key: str,
        reason: ConflictReason = ConflictReason.DUPLICATE_PATH,
        message: str = "Pathname already exists",
    ):
        self.path_key = path_key
        self.reason = reason
        super().__init__(message)


class UpstreamError(ShortLinkError):
    """Raised when the remote store or its document is unusable.

    Attributes:
        reason: Which step of the read-modify-write cycle failed
        upstream_status: HTTP status returned by the store, if any
    """

    def __init__(
        self,
        reason: UpstreamReason,
        message: str,
        upstream_status: int | None = None,
    ):
        self.reason = reason
        self.upstream_status = upstream_status
        super().__init__(message)


class ConfigurationError(ShortLinkError):
    """Raised when required server configuration is missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__("Server configuration error")


class DocumentDecodeError(ShortLinkError):
    """Base class for rule document decoding failures."""


class MalformedEnvelopeError(DocumentDecodeError):
    """No `{...}` span could be located in the document text."""

    def __init__(self, message: str = "Document contains no JSON object"):
        super().__init__(message)


class InvalidJSONError(DocumentDecodeError):
    """The `{...}` span is not a strict JSON object."""

    def __init__(self, message: str = "Document content is not valid JSON"):
        super().__init__(message)


class StoreError(ShortLinkError):
    """Raised by a content store when a request does not succeed.

    Attributes:
        status_code: HTTP status of the failed response, None for transport errors
        timed_out: True when the request hit its timeout
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        timed_out: bool = False,
    ):
        self.status_code = status_code
        self.timed_out = timed_out
        super().__init__(message)


class StoreReadError(StoreError):
    """Reading a document from the store failed."""


class StoreWriteError(StoreError):
    """Writing a document to the store failed (including sha mismatch)."""
