"""
Domain errors raised by the service layer.

Each carries the HTTP status and machine-readable ``error`` code that the
exception handler in ``carpark.main`` renders as an ``ErrorResponse``.
Routes never translate these by hand.
"""
from typing import Optional


class CarparkError(Exception):
    status_code = 400
    error = "bad_request"
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# Malformed input that slipped past schema validation (e.g. range checks
# that need the database).
class InvalidInput(CarparkError):
    status_code = 422
    error = "validation_error"
    default_message = "Invalid input"


class NotFound(CarparkError):
    status_code = 404
    error = "not_found"
    default_message = "Not found"


class PricingNotFound(NotFound):
    error = "pricing_not_found"
    default_message = "No active pricing for this lot and vehicle type"


# Recoverable, user-facing conditions. Not faults.
class Conflict(CarparkError):
    status_code = 409
    error = "conflict"
    default_message = "Request conflicts with the current state"


class NoSpotsAvailable(Conflict):
    error = "no_spots_available"
    default_message = "No spots available for these dates"


class CannotCancel(Conflict):
    error = "cannot_cancel"
    default_message = "This booking cannot be cancelled"


class InvalidStatusTransition(Conflict):
    error = "invalid_status_transition"
    default_message = "Status change not allowed"


class UpstreamFailure(CarparkError):
    """A payment, flight or registry provider failed or timed out."""

    status_code = 502
    error = "upstream_failure"
    default_message = "External provider failed"

    def __init__(self, provider: str, message: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ProviderNotConfigured(UpstreamFailure):
    status_code = 503
    error = "provider_not_configured"
    default_message = "External provider is not configured"
