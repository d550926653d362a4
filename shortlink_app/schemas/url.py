import re
from datetime import datetime
from typing import List, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError


ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

_ABSOLUTE_URL = TypeAdapter(AnyUrl)


def is_absolute_url(value: str) -> bool:
    """True when value parses as a URL with a scheme and a host."""
    try:
        parsed = _ABSOLUTE_URL.validate_python(value)
    except PydanticValidationError:
        return False
    return bool(parsed.scheme) and bool(parsed.host)


class ShortenRequest(BaseModel):
    """Body of POST /shorten.

    The URL is trimmed and must be absolute (scheme + host). An empty
    custom_alias is treated as "generate one for me".
    """
    url: str = Field("", description="The original URL to be shortened", validate_default=True)
    custom_alias: Optional[str] = Field(None, description="Optional caller-chosen alias")

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("url is required")
        # Stored as given, not in the parser's normalized form
        if not is_absolute_url(value):
            raise ValueError("invalid url format")
        return value

    @field_validator("custom_alias")
    @classmethod
    def validate_custom_alias(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not ALIAS_PATTERN.match(value):
            raise ValueError("invalid custom alias")
        return value


class ShortenResponse(BaseModel):
    alias: str
    short: str


class ClickRecord(BaseModel):
    """A single click as returned by the analytics endpoint"""
    id: int
    url_id: int
    user_agent: str
    ip_address: str
    clicked_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatDay(BaseModel):
    day: datetime
    count: int


class StatMonth(BaseModel):
    month: datetime
    count: int


class StatAgent(BaseModel):
    user_agent: str
    count: int


class AnalyticsResponse(BaseModel):
    alias: str
    clicks_total: int
    records: List[ClickRecord] = []
    by_day: List[StatDay] = []
    by_month: List[StatMonth] = []
    by_agent: List[StatAgent] = []
