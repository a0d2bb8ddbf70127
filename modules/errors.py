"""
Exceptions raised by the Cues client modules.
"""
from typing import Optional


class CuesError(Exception):
    """Base exception for the Cues CLI."""
    pass


class ApiError(CuesError):
    """Raised when the Cues API can't be reached or answers garbage."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotLoggedIn(CuesError):
    """Raised when no usable token is stored locally."""
    pass


class ConfigError(CuesError):
    """Raised when a setting in the environment or .env is unusable."""
    pass
