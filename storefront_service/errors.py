"""
errors.py — Error type shared by the adapter, translators and HTTP layer

All failures that reach the HTTP boundary are carried as a `ServiceError`.
The adapter classifies remote failures when they occur; nothing downstream
changes them, and the application's exception handler renders them as
`{status, message, error}`.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"
    CONFIGURATION = "configuration"


DEFAULT_STATUS = {
    ErrorKind.VALIDATION: 400,
    # Bad credentials are our misconfiguration, not the storefront's fault
    ErrorKind.AUTHENTICATION: 502,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.CONFIGURATION: 500,
}


class ServiceError(Exception):
    """
    A classified failure.

    Attributes:
        kind (ErrorKind): Failure category.
        http_status (int): Status code used for the HTTP response.
        message (str): Human readable summary.
        upstream_details (Any): The remote platform's error list, if any.
    """

    def __init__(
            self,
            kind: ErrorKind,
            message: str,
            http_status: Optional[int] = None,
            upstream_details: Any = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.http_status = http_status or DEFAULT_STATUS.get(kind, 500)
        self.upstream_details = upstream_details

    def __repr__(self):
        return f"ServiceError(kind={self.kind.value!r}, http_status={self.http_status}, message={self.message!r})"
