"""Typed result objects for enrichment API responses.

The API speaks camelCase JSON; fields are declared in snake_case and mapped
through a camelCase alias generator. Unknown fields are ignored so new server
fields never break deserialization.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for every response object: lenient, immutable, camelCase aware."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class ApiResponse(ApiModel):
    """Fields shared by every endpoint's response body."""

    status: int | None = None
    message: str | None = None
    request_id: str | None = None


# ---------------------------------------------------------------------------
# Person
# ---------------------------------------------------------------------------


class Website(ApiModel):
    url: str | None = None


class ContactInfo(ApiModel):
    full_name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    websites: list[Website] = Field(default_factory=list)


class Photo(ApiModel):
    type_id: str | None = None
    type_name: str | None = None
    url: str | None = None
    is_primary: bool = False


class Organization(ApiModel):
    name: str | None = None
    title: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    is_primary: bool = False
    current: bool = False


class Demographics(ApiModel):
    location_general: str | None = None
    gender: str | None = None
    age: str | None = None
    age_range: str | None = None


class SocialProfile(ApiModel):
    type_id: str | None = None
    type_name: str | None = None
    id: str | None = None
    username: str | None = None
    url: str | None = None
    bio: str | None = None
    followers: int | None = None
    following: int | None = None


class PersonResponse(ApiResponse):
    """Result of a person lookup (email, phone, twitter)."""

    likelihood: float | None = None
    contact_info: ContactInfo | None = None
    photos: list[Photo] = Field(default_factory=list)
    organizations: list[Organization] = Field(default_factory=list)
    demographics: Demographics | None = None
    social_profiles: list[SocialProfile] = Field(default_factory=list)

    @property
    def primary_photo(self) -> Photo | None:
        for photo in self.photos:
            if photo.is_primary:
                return photo
        return self.photos[0] if self.photos else None


# ---------------------------------------------------------------------------
# Company
# ---------------------------------------------------------------------------


class CompanyContactInfo(ApiModel):
    email_addresses: list[dict[str, str]] = Field(default_factory=list)
    phone_numbers: list[dict[str, str]] = Field(default_factory=list)


class CompanyOrganization(ApiModel):
    name: str | None = None
    approx_employees: int | None = None
    founded: str | None = None
    overview: str | None = None
    keywords: list[str] = Field(default_factory=list)
    contact_info: CompanyContactInfo | None = None


class CompanyResponse(ApiResponse):
    """Result of a company lookup by domain."""

    logo: str | None = None
    website: str | None = None
    language_locale: str | None = None
    organization: CompanyOrganization | None = None
    social_profiles: list[SocialProfile] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Name normalization
# ---------------------------------------------------------------------------


class NameDetails(ApiModel):
    full_name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    middle_names: list[str] = Field(default_factory=list)
    prefixes: list[str] = Field(default_factory=list)
    suffixes: list[str] = Field(default_factory=list)
    nicknames: list[str] = Field(default_factory=list)


class NameResponse(ApiResponse):
    """Result of name normalization."""

    name_details: NameDetails | None = None
    region: str | None = None
    likelihood: float | None = None


# ---------------------------------------------------------------------------
# Account statistics
# ---------------------------------------------------------------------------


class UsageMetric(ApiModel):
    metric_id: str | None = None
    metric_name: str | None = None
    plan_level: int | None = None
    usage: int | None = None
    remaining: int | None = None
    overage: int | None = None


class AccountStatsResponse(ApiResponse):
    """Account usage for a billing period."""

    period: str | None = None
    plan: str | None = None
    metrics: list[UsageMetric] = Field(default_factory=list)

    def metric(self, metric_id: str) -> UsageMetric | None:
        return next((m for m in self.metrics if m.metric_id == metric_id), None)


__all__ = [
    "AccountStatsResponse",
    "ApiModel",
    "ApiResponse",
    "CompanyResponse",
    "ContactInfo",
    "Demographics",
    "NameDetails",
    "NameResponse",
    "Organization",
    "PersonResponse",
    "Photo",
    "SocialProfile",
    "UsageMetric",
]
