"""
jwskit - JSON Web Signature, Key and Token toolkit.

Usage:
    from jwskit import Token, Signature, Issuer, ExpirationTime, new_signer, new_verifier

    # Issue a token
    signer = new_signer("HS256", b"secret")
    compact = Token.sign(signer, {"iss": "auth", "exp": exp}).compact()

    # Accept a token
    token = Token.decode(compact)
    token.verify(Signature(new_verifier("HS256", b"secret")), Issuer("auth"), ExpirationTime())

    # Verify with a key from a JWK Set
    keys = KeySet.from_json(jwks_json)
    key = keys.first(with_id(token.header.kid))  # None when the header has no kid
    token.verify(Signature(verifier_for(key)))
"""

from jwskit.config import Settings, get_settings
from jwskit.core.algorithms import (
    ECDSASigner,
    ECDSAVerifier,
    HMACSignerVerifier,
    NoneSignerVerifier,
    RSASigner,
    RSAVerifier,
    SignatureAlgorithm,
    Signer,
    Verifier,
    new_signer,
    new_verifier,
)
from jwskit.core.encoding import b64url_decode, b64url_encode
from jwskit.core.errors import (
    ConfigurationError,
    InvalidAudienceError,
    InvalidClaimError,
    InvalidCompactJWSError,
    InvalidEncodingError,
    InvalidHeaderError,
    InvalidIssuerError,
    InvalidKeyError,
    InvalidSignatureError,
    InvalidTokenError,
    JOSEError,
    MalformedInputError,
    MissingClaimError,
    TokenExpiredError,
    TokenNotYetValidError,
    TokenTooOldError,
    UnsupportedAlgorithmError,
    UnsupportedKeyTypeError,
    VerificationError,
    VerificationFailedError,
)
from jwskit.core.jwk import (
    ECDSAPublicKey,
    Key,
    KeyDescription,
    KeySet,
    KeyType,
    KeyUse,
    RSAPublicKey,
    SymmetricKey,
    decode_key,
    encode_key,
    parse_key,
    thumbprint,
    verifier_for,
    with_id,
    with_use,
)
from jwskit.core.jws import JWS, parse_compact, sign
from jwskit.core.jwt import (
    Audience,
    Claims,
    ClaimsVerifier,
    ExpirationTime,
    Issuer,
    MaxAge,
    NotBefore,
    Signature,
    Token,
    VerifierFunc,
)
from jwskit.schemas import Header, StandardClaims

__version__ = "0.1.0"
__all__ = [
    # config
    "Settings",
    "get_settings",
    # codec
    "b64url_encode",
    "b64url_decode",
    # algorithms
    "SignatureAlgorithm",
    "Signer",
    "Verifier",
    "HMACSignerVerifier",
    "RSASigner",
    "RSAVerifier",
    "ECDSASigner",
    "ECDSAVerifier",
    "NoneSignerVerifier",
    "new_signer",
    "new_verifier",
    # envelope
    "Header",
    "JWS",
    "sign",
    "parse_compact",
    # keys
    "Key",
    "KeyType",
    "KeyUse",
    "KeyDescription",
    "SymmetricKey",
    "RSAPublicKey",
    "ECDSAPublicKey",
    "KeySet",
    "decode_key",
    "encode_key",
    "parse_key",
    "thumbprint",
    "verifier_for",
    "with_id",
    "with_use",
    # tokens
    "Claims",
    "StandardClaims",
    "Token",
    "ClaimsVerifier",
    "VerifierFunc",
    "Signature",
    "Issuer",
    "Audience",
    "NotBefore",
    "ExpirationTime",
    "MaxAge",
    # errors
    "JOSEError",
    "ConfigurationError",
    "UnsupportedAlgorithmError",
    "MalformedInputError",
    "InvalidEncodingError",
    "InvalidCompactJWSError",
    "InvalidHeaderError",
    "InvalidKeyError",
    "UnsupportedKeyTypeError",
    "InvalidTokenError",
    "VerificationError",
    "InvalidSignatureError",
    "InvalidClaimError",
    "MissingClaimError",
    "InvalidIssuerError",
    "InvalidAudienceError",
    "TokenNotYetValidError",
    "TokenExpiredError",
    "TokenTooOldError",
    "VerificationFailedError",
]
