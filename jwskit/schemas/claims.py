"""Registered JWT claims (RFC 7519 section 4.1).

``StandardClaims`` is a typed view over a token's claim set. Applications
with private claims subclass it:

    class SessionClaims(StandardClaims):
        fullname: str = Field(alias="example.com/fullname")
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_datetime(timestamp: int | None) -> datetime | None:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _to_timestamp(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


class StandardClaims(BaseModel):
    """The seven registered claim names."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = Field(
        default=None,
        alias="jti",
        description="Unique identifier for the JWT, usable to prevent replay",
    )
    subject: str | None = Field(
        default=None,
        alias="sub",
        description="Principal that is the subject of the JWT",
    )
    issuer: str | None = Field(
        default=None,
        alias="iss",
        description="Principal that issued the JWT",
    )
    audience: list[str] | None = Field(
        default=None,
        alias="aud",
        description="Recipients the JWT is intended for",
    )
    expiration_time: int | None = Field(
        default=None,
        alias="exp",
        description="NumericDate on or after which the JWT must not be accepted",
    )
    not_before: int | None = Field(
        default=None,
        alias="nbf",
        description="NumericDate before which the JWT must not be accepted",
    )
    issued_at: int | None = Field(
        default=None,
        alias="iat",
        description="NumericDate at which the JWT was issued",
    )

    @field_validator("audience", mode="before")
    @classmethod
    def _single_audience(cls, value):
        # RFC 7519 allows a single audience as a bare string
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("expiration_time", "not_before", "issued_at", mode="before")
    @classmethod
    def _numeric_date(cls, value):
        if isinstance(value, datetime):
            return _to_timestamp(value)
        if isinstance(value, float):
            return int(value)
        return value

    @property
    def expires_at(self) -> datetime | None:
        """Expiration time as an aware UTC datetime."""
        return _to_datetime(self.expiration_time)

    @property
    def not_before_at(self) -> datetime | None:
        """Not-before time as an aware UTC datetime."""
        return _to_datetime(self.not_before)

    @property
    def issued_at_time(self) -> datetime | None:
        """Issued-at time as an aware UTC datetime."""
        return _to_datetime(self.issued_at)

    def to_claims(self) -> dict:
        """Claims as a JSON-ready mapping keyed by registered claim names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
