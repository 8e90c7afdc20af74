"""Exceptions raised inside the metadata pipeline.

None of these cross the service boundary: ``MetadataService`` turns them into
``fetch_error`` / ``decode_error`` strings on the returned record.
"""

from datetime import timedelta
from enum import Enum
from typing import Mapping, Optional


class MetadataError(Exception):
    """Base exception for metadata pipeline errors."""
    pass


class FetchError(MetadataError):
    """Raised when remote image bytes could not be acquired.

    Attributes:
        message: Error message
        elapsed: Time spent before the failure (if a request was sent)
    """

    def __init__(self, message: str, elapsed: Optional[timedelta] = None):
        super().__init__(message)
        self.message = message
        self.elapsed = elapsed


class TransportError(FetchError):
    """Raised on DNS, connect, TLS or timeout failures."""
    pass


class HTTPStatusError(FetchError):
    """Raised when the remote server answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code
        reason: HTTP reason phrase
        headers: Response headers, kept for diagnostics
    """

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        headers: Optional[Mapping[str, str]] = None,
        elapsed: Optional[timedelta] = None,
    ):
        self.status_code = status_code
        self.reason = reason
        self.headers = dict(headers or {})
        super().__init__(f"HTTP {status_code}: {self.status}", elapsed=elapsed)

    @property
    def status(self) -> str:
        """Status line as ``"<code> <reason>"``."""
        return f"{self.status_code} {self.reason}".strip()


class EmptyBodyError(FetchError):
    """Raised when a transfer or upload produced zero bytes."""
    pass


class DecodeErrorKind(str, Enum):
    EMPTY = "empty"
    UNSUPPORTED_OR_CORRUPT = "unsupported_or_corrupt"


class DecodeError(MetadataError):
    """Raised when the image header is missing, unrecognized or corrupt."""

    def __init__(self, kind: DecodeErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        message = f"{kind.value}: {detail}" if detail else kind.value
        super().__init__(message)
