"""Exceptions raised across the dashboard."""

from typing import Optional


class WhaleError(Exception):
    """Base class for dashboard errors."""


class TransportError(WhaleError):
    """Raised when the data source fails to answer a request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    def describe(self) -> str:
        if self.status is not None:
            return f"HTTP Error {self.status}"
        return str(self)


class InternalError(WhaleError):
    """Raised when a view-state invariant would be violated. Fatal."""


class ConfigError(WhaleError):
    """Raised for invalid startup configuration."""
