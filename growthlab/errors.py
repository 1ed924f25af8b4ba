"""Error taxonomy for the generation pipeline and the lifecycle API.

Every error carries the HTTP status it maps to, so the API layer can render
any of them with a single exception handler.
"""

from __future__ import annotations


class GrowthLabError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(GrowthLabError):
    """Missing store or model credentials. Fatal, never retried."""

    status_code = 500


class PreconditionError(GrowthLabError):
    """Caller must supply missing input (analysis, goal)."""

    status_code = 400


class AuthenticationError(GrowthLabError):
    status_code = 401


class NotFoundError(GrowthLabError):
    status_code = 404


class InvalidTransitionError(GrowthLabError):
    """Lifecycle action not defined for the record's current status."""

    status_code = 400


class GenerationError(GrowthLabError):
    """Base for failures while talking to the generative model."""

    status_code = 500


class GenerationRequestInvalidError(GenerationError):
    """The model provider rejected the request itself (HTTP 400 upstream)."""

    status_code = 400


class GenerationFailedError(GenerationError):
    """Transport failure, upstream error, timeout or empty response."""


class MalformedModelOutputError(GrowthLabError):
    """Model text could not be recovered into experiments. Remedy: generate again."""

    status_code = 500


class PersistenceError(GrowthLabError):
    """Store write failed; the message is the store's own, unmodified."""

    status_code = 500
