"""
Domain-specific exception hierarchy for the availability engine.

"No availability" and booking conflicts are ordinary results, not errors.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidRequestError(AvailabilityError):
    """Raised when request input is malformed and the engine must not run."""


class ProviderError(AvailabilityError):
    """Raised when schedule, appointment or catalog data cannot be fetched or parsed."""
