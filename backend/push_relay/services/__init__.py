"""Services for registration, dispatch and delivery."""
from .broker import Broker, SnsBroker
from .dispatcher import DispatchService, DispatchResult
from .endpoints import EndpointProvisioner, PlatformApplications
from .rate_limiter import RateLimiter, WindowRateLimiter
from .registration import RegistrationService
from .signature import AcceptAllVerifier, SignatureVerifier
from .statistics import StatisticsService
from .store import RelayStore

__all__ = [
    "Broker",
    "SnsBroker",
    "DispatchService",
    "DispatchResult",
    "EndpointProvisioner",
    "PlatformApplications",
    "RateLimiter",
    "WindowRateLimiter",
    "RegistrationService",
    "AcceptAllVerifier",
    "SignatureVerifier",
    "StatisticsService",
    "RelayStore",
]
