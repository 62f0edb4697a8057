"""Argument schemas for every command, validated with pydantic.

Validation failures are converted into the domain ValidationError so the
command handler can render them and exit without touching the network.
"""

import re
from typing import Any, Dict, Literal, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from simple_nominatim.domain.errors import ValidationError
from simple_nominatim.domain.models.common import FeatureType, OutputFormat, StatusFormat

ModelT = TypeVar("ModelT", bound=BaseModel)

COORDINATE_PATTERN = re.compile(r"^-?\d+\.?\d*$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_SEARCH_LIMIT = 40

Flag = Optional[Literal[0, 1]]


def _check_coordinate(value: str, name: str, bound: float) -> str:
    if not COORDINATE_PATTERN.match(value):
        raise ValueError(f"{name} must be a valid number")
    if not -bound <= float(value) <= bound:
        raise ValueError(f"{name} must be between -{bound:g} and {bound:g}")
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ResilienceArgs(_Schema):
    """Flags tuning the cache, rate limiter and retry executor."""
    no_cache: bool = False
    cache_ttl: Optional[int] = Field(default=None, ge=0)
    cache_max_size: Optional[int] = Field(default=None, ge=1)
    no_rate_limit: bool = False
    rate_limit: Optional[int] = Field(default=None, ge=1)
    rate_limit_interval: Optional[int] = Field(default=None, ge=1)
    no_retry: bool = False
    retry_max_attempts: Optional[int] = Field(default=None, ge=1)
    retry_initial_delay: Optional[int] = Field(default=None, ge=0)


class OutputArgs(_Schema):
    """Options shared by the reverse and search endpoints."""
    email: Optional[str] = None
    addressdetails: Flag = None
    extratags: Flag = None
    namedetails: Flag = None
    entrances: Flag = None
    accept_language: Optional[str] = None
    polygon_geojson: Flag = None
    polygon_kml: Flag = None
    polygon_svg: Flag = None
    polygon_text: Flag = None
    polygon_threshold: Optional[float] = Field(default=None, ge=0)
    json_callback: Optional[str] = None
    debug: Flag = None

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not EMAIL_PATTERN.match(value):
            raise ValueError("Email must be a valid email address")
        return value


class ReverseGeocodeArgs(OutputArgs):
    latitude: str
    longitude: str
    format: OutputFormat
    zoom: Optional[int] = Field(default=None, ge=0, le=18)
    layer: Optional[str] = None

    @field_validator("latitude")
    @classmethod
    def _valid_latitude(cls, value: str) -> str:
        return _check_coordinate(value, "Latitude", 90)

    @field_validator("longitude")
    @classmethod
    def _valid_longitude(cls, value: str) -> str:
        return _check_coordinate(value, "Longitude", 180)


class SearchArgs(OutputArgs):
    """Filters shared by both search flavours."""
    format: OutputFormat
    limit: Optional[int] = Field(default=None, ge=1, le=MAX_SEARCH_LIMIT)
    countrycodes: Optional[str] = None
    layer: Optional[str] = None
    featuretype: Optional[FeatureType] = None
    exclude_place_ids: Optional[str] = None
    viewbox: Optional[str] = None
    bounded: Flag = None
    dedupe: Flag = None


class FreeFormSearchArgs(SearchArgs):
    query: str

    @field_validator("query")
    @classmethod
    def _query_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query is required")
        return value


class StructuredSearchArgs(SearchArgs):
    country: str
    amenity: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    postalcode: Optional[str] = None

    @field_validator("country")
    @classmethod
    def _country_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Country is required")
        return value


class ServiceStatusArgs(_Schema):
    format: StatusFormat


def _issue_message(error: Dict[str, Any]) -> str:
    # Messages raised from field validators arrive prefixed with "Value error, "
    if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return error["msg"]


def validate_args(schema: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """Validates ``data`` against ``schema``.

    Raises:
        ValidationError: With one ``(field, message)`` issue per problem.
    """
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        issues = [
            (".".join(str(part) for part in error["loc"]) or "arguments", _issue_message(error))
            for error in e.errors()
        ]
        raise ValidationError(issues) from e
