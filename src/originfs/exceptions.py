"""
OriginFS Exceptions.

Generic exceptions raised by the client façade and the transport.
`status_code` is only a hint for callers that map errors onto HTTP responses.
"""
from typing import Optional, Any, Dict


class OriginFSException(Exception):
    """Base exception for all OriginFS errors."""

    status_code: int = 500

    def __init__(self, detail: str = "An error occurred", context: Optional[Dict[str, Any]] = None):
        self.detail = detail
        self.context = context or {}
        super().__init__(detail)


class ConfigError(OriginFSException):
    """Raised when the client configuration cannot be loaded or is invalid."""
    status_code = 400

    def __init__(self, detail: str = "Configuration error", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class NotFoundError(OriginFSException):
    """Raised when a path or record identifier is absent locally or remotely."""
    status_code = 404

    def __init__(self, detail: str = "Not found", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class InvalidTypeError(OriginFSException):
    """Raised when a record payload does not have the expected shape (e.g. reading a folder)."""
    status_code = 422

    def __init__(self, detail: str = "Invalid data type", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class RemoteError(OriginFSException):
    """
    Raised on transport failure, a non-200 status or an application-level error payload.

    The raw status and body are kept for diagnostics; `remote_status` is None
    when the request never produced a response.
    """
    status_code = 502

    def __init__(
        self,
        detail: str = "Remote store error",
        remote_status: Optional[int] = None,
        body: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = dict(context or {})
        context.setdefault("status", remote_status)
        context.setdefault("body", body)
        self.remote_status = remote_status
        self.body = body
        super().__init__(detail=detail, context=context)


# Short names used throughout the docs.
NotFound = NotFoundError
InvalidType = InvalidTypeError
