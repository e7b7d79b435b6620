"""JOSE header for JWS (RFC 7515 section 4).

Only the registered parameters this library acts on are modelled. Other
members present on the wire are ignored on parse but survive compact
re-serialization because the encoded header is kept verbatim.
"""

from pydantic import BaseModel, ConfigDict, Field

from jwskit.core.algorithms import SignatureAlgorithm


class Header(BaseModel):
    """JWS JOSE header."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    alg: SignatureAlgorithm | None = Field(
        default=None,
        description="Signature algorithm; stamped from the signer when signing",
    )
    typ: str | None = Field(
        default=None,
        description="Media type of the complete JWS, e.g. JWT",
    )
    kid: str | None = Field(
        default=None,
        description="Hint indicating which key secured the JWS",
    )

    def to_json_dict(self) -> dict:
        """Header members to serialize, excluding unset ones."""
        return self.model_dump(mode="json", exclude_none=True)
