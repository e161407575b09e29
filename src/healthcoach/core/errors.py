"""Error taxonomy shared by the health coach core and its collaborators.

Core aggregation code raises only :class:`ValidationError` and
:class:`InsufficientDataError`. The remaining classes originate in the
storage and text-generation collaborators and pass through the core
unchanged; the tool layer translates all of them into error payloads.
"""

from __future__ import annotations


class HealthCoachError(Exception):
    """Base class for every error the tool layer knows how to report."""

    error_type = "error"


class ValidationError(HealthCoachError):
    """Malformed or missing required input (e.g. a non-numeric value)."""

    error_type = "validation_error"


class NotFoundError(HealthCoachError):
    """A referenced subject, profile or record does not exist."""

    error_type = "not_found"


class InsufficientDataError(HealthCoachError):
    """A narrative was requested over a window with no qualifying records."""

    error_type = "insufficient_data"


class UpstreamGenerationError(HealthCoachError):
    """The text-generation collaborator failed or returned no usable text."""

    error_type = "upstream_generation_error"


class PersistenceError(HealthCoachError):
    """Opaque failure reported by the storage layer."""

    error_type = "persistence_error"
