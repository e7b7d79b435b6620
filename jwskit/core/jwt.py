"""JSON Web Tokens (RFC 7519) and claim verification.

A ``Token`` is a JWS whose payload is a JSON object. The claims are decoded
once, when the token is signed or decoded, and kept alongside the envelope.

Usage:
    token = Token.sign(new_signer("HS256", b"secret"), {"iss": "auth", "exp": exp})
    compact = token.compact()

    token = Token.decode(compact)
    token.verify(
        Signature(new_verifier("HS256", b"secret")),
        Issuer("auth"),
        ExpirationTime(leeway=30),
    )

``verify`` runs the verifiers in order and stops at the first failure,
raising ``VerificationFailedError`` with the failing check as ``__cause__``.
"""

import logging
import math
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from jwskit.config import get_settings
from jwskit.core.algorithms import Signer, Verifier
from jwskit.core.encoding import json_dumps, json_loads
from jwskit.core.errors import (
    InvalidAudienceError,
    InvalidClaimError,
    InvalidIssuerError,
    InvalidTokenError,
    JOSEError,
    MissingClaimError,
    TokenExpiredError,
    TokenNotYetValidError,
    TokenTooOldError,
    VerificationFailedError,
)
from jwskit.core.jws import JWS, parse_compact, sign
from jwskit.schemas.claims import StandardClaims
from jwskit.schemas.header import Header

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Registered claim names (RFC 7519 section 4.1)
CLAIM_ISSUER = "iss"
CLAIM_SUBJECT = "sub"
CLAIM_AUDIENCE = "aud"
CLAIM_EXPIRATION_TIME = "exp"
CLAIM_NOT_BEFORE = "nbf"
CLAIM_ISSUED_AT = "iat"
CLAIM_ID = "jti"


class Claims(Mapping[str, Any]):
    """Read-only mapping of claim names to their JSON values.

    Values are kept exactly as parsed. The ``get_*`` accessors return
    ``None`` for an absent claim and raise ``InvalidClaimError`` when the
    claim is present with the wrong type.
    """

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data = dict(data or {})

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Claims({self._data!r})"

    def has(self, name: str) -> bool:
        return name in self._data

    def get_string(self, name: str) -> str | None:
        if name not in self._data:
            return None
        value = self._data[name]
        if not isinstance(value, str):
            raise InvalidClaimError(f"Claim '{name}' is not a string")
        return value

    def get_int(self, name: str) -> int | None:
        """Numeric claim as an int; fractional values are truncated."""
        if name not in self._data:
            return None
        value = self._data[name]
        # bool is an int subclass but never a JSON number
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidClaimError(f"Claim '{name}' is not a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidClaimError(f"Claim '{name}' is not a finite number")
        return int(value)

    def get_time(self, name: str) -> datetime | None:
        """NumericDate claim as an aware UTC datetime."""
        timestamp = self.get_int(name)
        if timestamp is None:
            return None
        try:
            return datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidClaimError(f"Claim '{name}' is out of range: {e}") from e

    def get_string_list(self, name: str) -> list[str] | None:
        """String or array-of-strings claim as a list; a bare string becomes a singleton."""
        if name not in self._data:
            return None
        value = self._data[name]
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list):
            raise InvalidClaimError(f"Claim '{name}' is not a string or an array of strings")
        for item in value:
            if not isinstance(item, str):
                raise InvalidClaimError(f"Claim '{name}' contains a non-string element")
        return list(value)


def _claims_from_payload(payload: bytes) -> Claims:
    try:
        data = json_loads(payload)
    except ValueError as e:
        raise InvalidTokenError(f"Invalid claims JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidTokenError("Claims must be a JSON object")
    return Claims(data)


@dataclass(frozen=True)
class Token:
    """A signed JWT: an envelope plus its decoded claims."""

    jws: JWS
    claims: Claims

    @classmethod
    def from_jws(cls, jws: JWS) -> "Token":
        """Wrap ``jws``, decoding its payload as claims.

        Raises:
            InvalidTokenError: If the payload is not a JSON object
        """
        return cls(jws=jws, claims=_claims_from_payload(jws.payload))

    @classmethod
    def sign(
        cls,
        signer: Signer,
        claims: Mapping[str, Any] | BaseModel,
        kid: str | None = None,
    ) -> "Token":
        """Serialize ``claims`` and sign them with ``signer``.

        Args:
            signer: Signer for the envelope
            claims: Claim mapping or pydantic model (dumped by alias)
            kid: Optional key ID for the header

        Returns:
            Signed token
        """
        if isinstance(claims, BaseModel):
            data = claims.model_dump(mode="json", by_alias=True, exclude_none=True)
        elif isinstance(claims, Mapping):
            data = dict(claims)
        else:
            raise InvalidTokenError(f"Claims must be a mapping or a model, got {type(claims).__name__}")

        try:
            payload = json_dumps(data)
        except (TypeError, ValueError) as e:
            raise InvalidTokenError(f"Claims are not JSON serializable: {e}") from e

        header = Header(typ=get_settings().token_type, kid=kid)
        return cls.from_jws(sign(signer, payload, header))

    @classmethod
    def decode(cls, compact: str) -> "Token":
        """Parse a compact JWT. The signature is NOT verified.

        Raises:
            InvalidCompactJWSError: If the envelope is malformed
            InvalidTokenError: If the payload is not a JSON object
        """
        return cls.from_jws(parse_compact(compact))

    @property
    def header(self) -> Header:
        return self.jws.header

    def compact(self) -> str:
        return self.jws.compact()

    def verify_signature(self, verifier: Verifier) -> None:
        self.jws.verify_signature(verifier)

    def claims_as(self, model: type[ModelT]) -> ModelT:
        """Validate the claims into ``model``.

        Raises:
            InvalidTokenError: If the claims do not fit ``model``
        """
        try:
            return model.model_validate(dict(self.claims))
        except ValidationError as e:
            raise InvalidTokenError(f"Claims do not match {model.__name__}: {e}") from e

    @property
    def standard_claims(self) -> StandardClaims:
        return self.claims_as(StandardClaims)

    def verify(self, *verifiers: "ClaimsVerifier") -> None:
        """Apply ``verifiers`` in order, stopping at the first failure.

        Raises:
            VerificationFailedError: Wrapping the first verifier's error
        """
        for verifier in verifiers:
            try:
                verifier.verify(self)
            except JOSEError as e:
                logger.debug("Token rejected by %s: %s", type(verifier).__name__, e)
                raise VerificationFailedError(f"verification failed: {e}") from e

    def __str__(self) -> str:
        return self.compact()


# Claim verifiers


@runtime_checkable
class ClaimsVerifier(Protocol):
    """Checks one aspect of a token."""

    def verify(self, token: Token) -> None:
        """Return ``None`` if the token passes, raise ``JOSEError`` otherwise."""
        ...


@dataclass(frozen=True)
class VerifierFunc:
    """Adapts a plain function to ``ClaimsVerifier``."""

    func: Callable[[Token], None]

    def verify(self, token: Token) -> None:
        self.func(token)


def _seconds(value: timedelta | float | None) -> float:
    if value is None:
        return get_settings().default_leeway_seconds
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _require_int(token: Token, name: str) -> int:
    value = token.claims.get_int(name)
    if value is None:
        raise MissingClaimError(f"Token is missing '{name}'")
    return value


@dataclass(frozen=True)
class Signature:
    """Checks the envelope signature with a signature verifier."""

    verifier: Verifier

    def verify(self, token: Token) -> None:
        token.verify_signature(self.verifier)


@dataclass(frozen=True)
class Issuer:
    """Requires "iss" to equal ``expected``."""

    expected: str

    def verify(self, token: Token) -> None:
        iss = token.claims.get_string(CLAIM_ISSUER)
        if iss is None:
            raise MissingClaimError("Token is missing 'iss'")
        if iss != self.expected:
            raise InvalidIssuerError(f"Invalid issuer: {iss}")


@dataclass(frozen=True)
class Audience:
    """Requires "aud" to contain ``expected``."""

    expected: str

    def verify(self, token: Token) -> None:
        audiences = token.claims.get_string_list(CLAIM_AUDIENCE)
        if audiences is None:
            raise MissingClaimError("Token is missing 'aud'")
        if self.expected not in audiences:
            raise InvalidAudienceError(f"Missing audience: {self.expected}")


@dataclass(frozen=True)
class NotBefore:
    """Rejects a token used before "nbf", allowing ``leeway`` seconds of skew."""

    leeway: timedelta | float | None = None
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def verify(self, token: Token) -> None:
        nbf = _require_int(token, CLAIM_NOT_BEFORE)
        if self.clock() + _seconds(self.leeway) < nbf:
            raise TokenNotYetValidError(f"Token used before nbf: {nbf}")


@dataclass(frozen=True)
class ExpirationTime:
    """Rejects a token used after "exp", allowing ``leeway`` seconds of skew."""

    leeway: timedelta | float | None = None
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def verify(self, token: Token) -> None:
        exp = _require_int(token, CLAIM_EXPIRATION_TIME)
        if self.clock() - _seconds(self.leeway) > exp:
            raise TokenExpiredError(f"Token used after exp: {exp}")


@dataclass(frozen=True)
class MaxAge:
    """Rejects a token whose "iat" is more than ``max_age`` in the past."""

    max_age: timedelta | float
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def verify(self, token: Token) -> None:
        iat = _require_int(token, CLAIM_ISSUED_AT)
        if self.clock() - iat > _seconds(self.max_age):
            raise TokenTooOldError(f"Token too old: issued at {iat}")
