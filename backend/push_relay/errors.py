"""Error taxonomy for registration and dispatch."""
from typing import Optional


class PushRelayError(Exception):
    """Base class for failures that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PushRelayError):
    """Malformed or missing required input."""

    status_code = 400
    default_message = "Bad request"


class SignatureRejected(PushRelayError):
    """The origin's signature did not verify."""

    status_code = 403
    default_message = "Invalid signature"


class RateLimitExceeded(PushRelayError):
    """The origin has sent too many messages in the current window."""

    status_code = 429
    default_message = "Too many requests"


class DeliveryError(PushRelayError):
    """The broker refused or failed a single delivery."""

    status_code = 502
    default_message = "Delivery failed"


class DependencyUnavailable(PushRelayError):
    """The database or the broker could not be reached."""

    status_code = 503
    default_message = "Service unavailable"
