"""Exceptions raised by news_admin."""

from __future__ import annotations

from typing import Optional


class NewsAdminError(RuntimeError):
    """Base class for failures talking to the news backend."""


class BackendNotConfiguredError(NewsAdminError):
    """Raised when an operation needs the backend but no API URL is set."""

    def __init__(self, message: str = "Backend not configured") -> None:
        super().__init__(message)


class ApiError(NewsAdminError):
    """The backend rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(ValueError):
    """A form is missing required fields."""
