"""
Service Errors

Error types raised by the lookup pipeline and the image proxy.
Route handlers convert them into HTTP responses via `status_code`.

- ValidationError: missing / malformed query parameters (400)
- InvalidUrlError: proxy target fails scheme or host check (400)
- UpstreamError: image origin returned non-success or was unreachable (502 / 500)
- FetchError: browser launch, navigation or timeout failure (500)
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for errors surfaced to HTTP clients."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class InvalidUrlError(ServiceError):
    status_code = 400

    def __init__(self, message: str = "Invalid url"):
        super().__init__(message)


class UpstreamError(ServiceError):
    """
    Raised when the upstream image fetch fails.

    `upstream_status` is set when the origin answered with a non-success
    status; it is None for transport failures (DNS, timeout, reset).
    """

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.status_code = 502 if upstream_status is not None else 500


class FetchError(ServiceError):
    status_code = 500
