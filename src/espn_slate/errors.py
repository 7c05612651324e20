"""Error types for schedule resolution flows."""

from __future__ import annotations


class ResolutionError(RuntimeError):
    """Base error for schedule resolution and ranking."""


class HttpError(ResolutionError):
    """Raised when upstream answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP Error {status_code} for {url}")


class TransportError(ResolutionError):
    """Raised on network failures or unparseable bodies; never retried."""


class ExhaustedRetries(ResolutionError):
    """Raised after every attempt came back with an HTTP error."""

    def __init__(self, url: str, *, attempts: int, last_status: int) -> None:
        self.url = url
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            f"gave up on {url} after {attempts} attempts (last status {last_status})"
        )


class EmptyResult(ResolutionError):
    """Raised when resolution finished but produced no usable games."""


class StructuralError(ResolutionError):
    """Raised when one event lacks the shape needed to normalize it."""


class CLIError(ResolutionError):
    """User-facing CLI error."""
