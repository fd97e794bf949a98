"""Python client for the FullContact-style contact enrichment API.

Requests are dispatched on a fixed worker pool, paced by a rate limiter that
adopts the server's advertised limit, and delivered either synchronously
(``send_request``) or through a callback (``send_request_async``).
"""

from .client import ContactEnrichmentClient
from .config import ClientConfig, RateLimiterPolicy, get_config
from .dispatch import Callback, NoOpCallback, SyncCallback, UserCallback
from .exceptions import (
    ConfigurationError,
    ContactEnrichmentError,
    InterruptedWaitError,
    RateLimitError,
    ResponseParseError,
    TransportError,
    UsageError,
)
from .models import (
    AccountStatsRequest,
    AccountStatsResponse,
    CompanyRequest,
    CompanyResponse,
    EnrichmentRequest,
    NameNormalizationRequest,
    NameResponse,
    PersonRequest,
    PersonResponse,
)


__version__ = "0.1.0"

__all__ = [
    "AccountStatsRequest",
    "AccountStatsResponse",
    "Callback",
    "ClientConfig",
    "CompanyRequest",
    "CompanyResponse",
    "ConfigurationError",
    "ContactEnrichmentClient",
    "ContactEnrichmentError",
    "EnrichmentRequest",
    "InterruptedWaitError",
    "NameNormalizationRequest",
    "NameResponse",
    "NoOpCallback",
    "PersonRequest",
    "PersonResponse",
    "RateLimitError",
    "RateLimiterPolicy",
    "ResponseParseError",
    "SyncCallback",
    "TransportError",
    "UsageError",
    "UserCallback",
    "get_config",
]
