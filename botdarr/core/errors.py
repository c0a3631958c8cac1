"""
Error taxonomy shared by the cache, the scheduler and the backends.
"""

from typing import Optional


class BotdarrError(Exception):
    """Base class for all application errors."""
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: Optional[str] = None):
        if detail:
            self.detail = detail
        super().__init__(self.detail)


class FetchError(BotdarrError):
    """
    A network or backend failure while fetching or searching entries.
    Always recoverable: callers keep their previous state.
    """
    detail = "Failed to fetch data from backend"

    def __init__(self, detail: Optional[str] = None, service: str = "", status_code: Optional[int] = None):
        super().__init__(detail)
        self.service = service
        self.status_code = status_code


class ConfigError(BotdarrError):
    """A backend is missing its URL or API key."""
    detail = "Backend is not configured"
