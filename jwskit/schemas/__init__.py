"""Pydantic schemas for JOSE headers and JWT claims."""

from jwskit.schemas.claims import StandardClaims
from jwskit.schemas.header import Header

__all__ = ["Header", "StandardClaims"]
