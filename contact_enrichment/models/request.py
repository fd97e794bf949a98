"""Immutable request descriptions for the enrichment API.

A request names its endpoint (``path`` and ``method``), the result type it
expects back (``response_model``), and its query parameters. Instances are
frozen: once submitted they are never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .responses import (
    AccountStatsResponse,
    ApiResponse,
    CompanyResponse,
    NameResponse,
    PersonResponse,
)

ParamValue = Union[str, int, float, bool]

PARAM_WEBHOOK_URL = "webhookUrl"
PARAM_WEBHOOK_ID = "webhookId"
PARAM_WEBHOOK_BODY = "webhookBody"


class EnrichmentRequest(BaseModel):
    """One API call.

    ``extra_params`` is passed to the server verbatim; endpoint-specific fields
    win on key collisions. It is stored as a read-only mapping.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: ClassVar[str] = "/"
    method: ClassVar[str] = "GET"
    response_model: ClassVar[type[ApiResponse]] = ApiResponse

    webhook_url: str | None = None
    webhook_id: str | None = None
    webhook_body: Literal["json"] | None = None
    extra_params: Mapping[str, ParamValue] = Field(default_factory=lambda: MappingProxyType({}))

    @field_validator("extra_params", mode="after")
    @classmethod
    def _freeze_extra_params(cls, value: Mapping[str, ParamValue]) -> Mapping[str, ParamValue]:
        return MappingProxyType(dict(value))

    @model_validator(mode="after")
    def _webhook_options_need_url(self) -> "EnrichmentRequest":
        if self.webhook_url is None and (self.webhook_id or self.webhook_body):
            raise ValueError("webhook_id/webhook_body require webhook_url")
        return self

    @property
    def has_webhook(self) -> bool:
        return bool(self.webhook_url) or bool(self.extra_params.get(PARAM_WEBHOOK_URL))

    def endpoint_params(self) -> dict[str, ParamValue | None]:
        """Parameters specific to the endpoint; None values are dropped on the wire."""
        return {}

    def query_params(self) -> dict[str, ParamValue | None]:
        params: dict[str, ParamValue | None] = dict(self.extra_params)
        params.update(self.endpoint_params())
        if self.webhook_url:
            params[PARAM_WEBHOOK_URL] = self.webhook_url
            params[PARAM_WEBHOOK_ID] = self.webhook_id
            params[PARAM_WEBHOOK_BODY] = self.webhook_body
        return params

    def describe(self) -> str:
        return f"{type(self).__name__}({self.method} {self.path})"


class PersonRequest(EnrichmentRequest):
    """Person lookup by exactly one of email, email MD5, phone or twitter handle."""

    path: ClassVar[str] = "/person.json"
    response_model: ClassVar[type[ApiResponse]] = PersonResponse

    email: str | None = None
    email_md5: str | None = None
    phone: str | None = None
    twitter: str | None = None
    country_code: str | None = None
    macromeasures: bool | None = None

    @model_validator(mode="after")
    def _exactly_one_lookup_key(self) -> "PersonRequest":
        keys = [k for k in ("email", "email_md5", "phone", "twitter") if getattr(self, k)]
        if len(keys) != 1:
            raise ValueError(
                f"PersonRequest needs exactly one of email, email_md5, phone, twitter; got {keys}"
            )
        if self.country_code and not self.phone:
            raise ValueError("country_code only applies to phone lookups")
        return self

    def endpoint_params(self) -> dict[str, ParamValue | None]:
        return {
            "email": self.email,
            "emailMD5": self.email_md5,
            "phone": self.phone,
            "twitter": self.twitter,
            "countryCode": self.country_code,
            "macromeasures": self.macromeasures,
        }


class CompanyRequest(EnrichmentRequest):
    """Company lookup by domain."""

    path: ClassVar[str] = "/company/lookup.json"
    response_model: ClassVar[type[ApiResponse]] = CompanyResponse

    domain: str = Field(min_length=1)
    key_people: bool | None = None

    def endpoint_params(self) -> dict[str, ParamValue | None]:
        return {"domain": self.domain, "keyPeople": self.key_people}


class NameNormalizationRequest(EnrichmentRequest):
    """Split a free-form name into its parts."""

    path: ClassVar[str] = "/name/normalizer.json"
    response_model: ClassVar[type[ApiResponse]] = NameResponse

    q: str = Field(min_length=1)
    casing: Literal["uppercase", "lowercase", "titlecase"] | None = None

    def endpoint_params(self) -> dict[str, ParamValue | None]:
        return {"q": self.q, "casing": self.casing}


class AccountStatsRequest(EnrichmentRequest):
    """Usage statistics for the API key, optionally for a past period (YYYY-MM)."""

    path: ClassVar[str] = "/stats.json"
    response_model: ClassVar[type[ApiResponse]] = AccountStatsResponse

    period: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")

    def endpoint_params(self) -> dict[str, ParamValue | None]:
        return {"period": self.period}


__all__ = [
    "AccountStatsRequest",
    "CompanyRequest",
    "EnrichmentRequest",
    "NameNormalizationRequest",
    "PARAM_WEBHOOK_URL",
    "ParamValue",
    "PersonRequest",
]
