"""Error taxonomy shared by the interaction and assessment engines.

Unknown interaction event types are *not* errors: they score zero.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ScoringCoreError(Exception):
    """Base class carrying a machine-readable code and optional session id."""

    code = "SCORING_CORE_ERROR"

    def __init__(self, message: str, session_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.session_id = session_id


class ValidationError(ScoringCoreError):
    """A response violates a question's required/format/range rule."""

    code = "VALIDATION_ERROR"


class ProcessingError(ScoringCoreError):
    """A result was requested on an incomplete or already archived session."""

    code = "PROCESSING_ERROR"


class SessionNotFoundError(ScoringCoreError):
    code = "NOT_FOUND"


class ToolNotFoundError(ScoringCoreError):
    code = "NOT_FOUND"


class ConfigurationError(ScoringCoreError):
    """Malformed authored configuration (tier tables, strategies, duplicate ids)."""

    code = "CONFIG_ERROR"


def log_and_continue(*, what: str, subject: str, exc: Exception) -> str:
    """Log an isolated failure with its traceback and return a short summary."""
    logger.exception("%s failed for %s", what, subject, exc_info=exc)
    return f"{type(exc).__name__}: {exc}"
