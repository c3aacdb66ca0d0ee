"""
Custom exceptions for the contact deduplication engine.

The engine itself never raises for contact data it cannot classify; these
errors cover caller mistakes (bad thresholds, invalid review positions, merge
plans requested against the wrong kind of record).
"""

from typing import Any


class ContactDedupError(Exception):
    """Base exception for all contact deduplication errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class ConfigurationError(ContactDedupError):
    """Thresholds or settings are inconsistent."""

    pass


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(ContactDedupError):
    """Base class for pipeline-related errors."""

    pass


class ValidationError(PipelineError):
    """Input validation failed."""

    pass


class MatchingError(PipelineError):
    """Error during candidate scoring or classification."""

    pass


class MergeError(PipelineError):
    """Error while building a merge plan."""

    pass
