"""
Error Taxonomy

Every failure the tracking pipeline can report. Engine adapters, the batch
orchestrator and the scheduler turn these into structured results rather
than letting them cross their boundaries.
"""

from typing import Optional


class CitetrackError(Exception):
    """Base class for all citation tracking errors."""


class InvalidRequest(CitetrackError):
    """Required request fields are missing. Caller error, never retried."""


class ConfigurationError(CitetrackError):
    """A required setting (usually a provider API key) is absent."""


class ProviderError(CitetrackError):
    """Upstream AI engine answered with a non-success status."""

    def __init__(self, message: str, status_code: int = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class EmptyResponse(CitetrackError):
    """Provider returned no usable answer text."""


class NotFound(CitetrackError):
    """Referenced record does not exist."""


class PersistenceError(CitetrackError):
    """Reading from or writing to the store failed."""
