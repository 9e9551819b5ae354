"""
Harness exceptions.

Per-attempt rejections are outcomes, not exceptions; these cover the
failures that happen around the load itself.
"""

from typing import Optional


class HarnessError(Exception):
    """Base class for harness failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnreachableService(HarnessError):
    """
    The target service did not produce a usable response.

    Raised on connection/transport failures and on unexpected status codes.
    """

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        if status_code is not None:
            message = f"{url} answered HTTP {status_code}: {reason}"
        else:
            message = f"{url} unreachable: {reason}"
        super().__init__(message)


class MalformedResponse(HarnessError):
    """The response body does not decode into the expected shape."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed response from {url}: {reason}")


class ProfileConfigurationError(HarnessError):
    """A load profile, preset or strategy setting cannot be interpreted."""
