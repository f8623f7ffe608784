"""
Error types and API error translation for ghparts.

Resolution and listing failures abort a download; per-item failures are
collected by the executor and surfaced once through PartialFailureError.
"""

import functools
from typing import Any, Callable, Dict, Optional, TypeVar

import httpx

from .logger import logger


F = TypeVar("F", bound=Callable[..., Any])


####
##      EXCEPTIONS
#####
class DownloadError(Exception):
    """Base exception for download-related errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.original_error is not None:
            return f"{self.message} (Original: {self.original_error})"
        return self.message


class NotFoundError(DownloadError):
    """The requested repository, ref or path does not exist upstream."""


class UpstreamError(DownloadError):
    """The remote API answered with a non-success status (possibly transient)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error)
        self.status_code = status_code


class RateLimitError(UpstreamError):
    """The GitHub API rate limit is exhausted."""


class MalformedResponseError(DownloadError):
    """The remote payload did not have the expected shape."""


class FilesystemError(DownloadError):
    """Local I/O failure unrelated to the network."""


class UnsafePathError(DownloadError):
    """A listing entry would be written outside the target directory."""


class PartialFailureError(DownloadError):
    """Some queued items could not be retrieved after retries."""

    def __init__(self, message: str, failures: Dict[str, str]):
        super().__init__(message)
        self.failures = failures

    def __str__(self) -> str:
        details = "; ".join(f"{path}: {reason}" for path, reason in sorted(self.failures.items()))
        return f"{self.message}: {details}" if details else self.message


####
##      STATUS TRANSLATION
#####
def raise_for_status(response: httpx.Response, what: str) -> None:
    """
    Translate a non-success response into the matching DownloadError.

    Args:
        response: Response to inspect
        what: Human readable description of the requested resource
    """

    status = response.status_code
    if 200 <= status < 300:
        return

    if status == 404:
        raise NotFoundError(f"{what} not found (HTTP 404)")

    if status == 429 or (
        status == 403 and response.headers.get("x-ratelimit-remaining") == "0"
    ):
        reset = response.headers.get("x-ratelimit-reset", "unknown")
        raise RateLimitError(
            f"GitHub API rate limit exceeded while fetching {what} (resets at {reset})",
            status_code=status
        )

    raise UpstreamError(f"HTTP {status} while fetching {what}", status_code=status)


def parse_json(response: httpx.Response, what: str) -> Any:
    """Decode a JSON payload, raising MalformedResponseError on garbage."""

    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(f"Unparsable response for {what}", e) from e


####
##      DECORATORS
#####
def handle_api_error(func: F) -> F:
    """
    Decorator for async service calls: translate transport errors from httpx
    into UpstreamError. Domain errors propagate unchanged.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)

        except DownloadError:
            raise

        except httpx.TimeoutException as e:
            logger.debug(f"Timeout in {func.__name__}: {e}")
            raise UpstreamError(f"Request timed out: {e}", original_error=e) from e

        except httpx.HTTPError as e:
            logger.debug(f"Transport error in {func.__name__}: {e}")
            raise UpstreamError(f"Network error: {e}", original_error=e) from e

    return wrapper  # type: ignore[return-value]


__all__ = [
    "DownloadError",
    "NotFoundError",
    "UpstreamError",
    "RateLimitError",
    "MalformedResponseError",
    "FilesystemError",
    "UnsafePathError",
    "PartialFailureError",
    "raise_for_status",
    "parse_json",
    "handle_api_error",
]
