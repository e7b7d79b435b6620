"""JOSE exception hierarchy.

Three families are distinguished so callers can tell a setup mistake from
bad input and from a token that simply did not check out:

- ``ConfigurationError``: a signer or verifier can never work with the key
  or algorithm it was given. Raised eagerly at construction.
- ``MalformedInputError``: bytes on the wire are structurally invalid.
- ``VerificationError``: input is well formed but a signature or claim
  check failed.
"""


class JOSEError(Exception):
    """Base JOSE exception."""

    pass


# Configuration errors


class ConfigurationError(JOSEError):
    """Signer or verifier cannot be built from the given key/algorithm."""

    pass


class UnsupportedAlgorithmError(ConfigurationError):
    """Algorithm not supported by the requested provider."""

    pass


# Malformed input


class MalformedInputError(JOSEError):
    """Input is structurally invalid."""

    pass


class InvalidEncodingError(MalformedInputError):
    """Data is not valid unpadded base64url."""

    pass


class InvalidCompactJWSError(MalformedInputError):
    """String is not a JWS in compact serialization."""

    pass


class InvalidHeaderError(InvalidCompactJWSError):
    """JOSE header could not be decoded."""

    pass


class InvalidKeyError(MalformedInputError):
    """JWK could not be decoded."""

    pass


class UnsupportedKeyTypeError(InvalidKeyError):
    """JWK carries an unknown "kty"."""

    pass


class InvalidTokenError(MalformedInputError):
    """JWT payload is not a JSON object."""

    pass


# Verification failures


class VerificationError(JOSEError):
    """A signature or claim check failed."""

    pass


class InvalidSignatureError(VerificationError):
    """Signature is not valid for the data."""

    pass


class InvalidClaimError(VerificationError):
    """Claim is present but has the wrong type."""

    pass


class MissingClaimError(VerificationError):
    """Required claim is absent."""

    pass


class InvalidIssuerError(VerificationError):
    """Issuer does not match."""

    pass


class InvalidAudienceError(VerificationError):
    """Audience does not contain the expected value."""

    pass


class TokenNotYetValidError(VerificationError):
    """Token used before its "nbf" time."""

    pass


class TokenExpiredError(VerificationError):
    """Token used after its "exp" time."""

    pass


class TokenTooOldError(VerificationError):
    """Token "iat" is older than the accepted maximum age."""

    pass


class VerificationFailedError(VerificationError):
    """Raised by ``Token.verify``; the failing check is chained as ``__cause__``."""

    pass
