"""Error taxonomy for the generation pipeline.

Only conditions that stop a unit of work are exceptions. A duplicate asset
routes to the update path, a missing duration becomes 0 and an exhausted
title pool falls back to placeholder titles; none of those raise.
"""


class TrackgenError(Exception):
    """Base class for pipeline errors."""


class ProviderUnavailable(TrackgenError):
    """No credential configured for a provider. Configuration error, never retried."""

    def __init__(self, provider: str, message: str | None = None):
        self.provider = provider
        super().__init__(message or f"{provider} API not configured")


class ProviderRejected(TrackgenError):
    """The provider answered with a non-success status or body code."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


class AssetDownloadFailed(TrackgenError):
    """Fetching a generated asset (audio or image) failed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Failed to download {url}: {reason}")


class InvalidTransition(TrackgenError):
    """A GenerationTask transition outside the state graph."""

    def __init__(self, current: str, target: str, reason: str = ""):
        self.current = current
        self.target = target
        detail = f"Cannot move task from {current} to {target}"
        super().__init__(f"{detail}: {reason}" if reason else detail)


class NotFound(TrackgenError):
    """Referenced schedule, task or catalog record does not exist."""


def error_message(e: BaseException) -> str:
    """Non-empty text for an exception; bare ``RuntimeError()`` becomes ``"RuntimeError"``."""
    return str(e) or type(e).__name__
