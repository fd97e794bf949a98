"""Request and response models for the enrichment API."""

from .request import (
    PARAM_WEBHOOK_URL,
    AccountStatsRequest,
    CompanyRequest,
    EnrichmentRequest,
    NameNormalizationRequest,
    ParamValue,
    PersonRequest,
)
from .responses import (
    AccountStatsResponse,
    ApiModel,
    ApiResponse,
    CompanyResponse,
    ContactInfo,
    Demographics,
    NameDetails,
    NameResponse,
    Organization,
    PersonResponse,
    Photo,
    SocialProfile,
    UsageMetric,
)


__all__ = [
    "PARAM_WEBHOOK_URL",
    "AccountStatsRequest",
    "AccountStatsResponse",
    "ApiModel",
    "ApiResponse",
    "CompanyRequest",
    "CompanyResponse",
    "ContactInfo",
    "Demographics",
    "EnrichmentRequest",
    "NameDetails",
    "NameNormalizationRequest",
    "NameResponse",
    "Organization",
    "ParamValue",
    "PersonRequest",
    "PersonResponse",
    "Photo",
    "SocialProfile",
    "UsageMetric",
]
