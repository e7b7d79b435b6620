"""JWS signature algorithms (RFC 7518 section 3).

Supported algorithms:
- HS256, HS384, HS512 (HMAC with SHA-2)
- RS256, RS384, RS512 (RSASSA-PKCS1-v1_5 with SHA-2)
- ES256, ES384, ES512 (ECDSA with P-256, P-384, P-521)
- none (unsecured JWS, RFC 7519 section 6)

Every provider is bound to exactly one algorithm at construction. Verifiers
refuse to check a signature presented under any other algorithm label.
"""

from enum import Enum
from typing import Any, Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac as crypto_hmac
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from jwskit.config import get_settings
from jwskit.core.encoding import bytes_to_int, int_to_bytes
from jwskit.core.errors import (
    ConfigurationError,
    InvalidSignatureError,
    UnsupportedAlgorithmError,
)


class SignatureAlgorithm(str, Enum):
    """Supported JWS signature algorithms."""

    NONE = "none"
    HS256 = "HS256"  # HMAC SHA-256
    HS384 = "HS384"  # HMAC SHA-384
    HS512 = "HS512"  # HMAC SHA-512
    RS256 = "RS256"  # RSASSA-PKCS1-v1_5 SHA-256
    RS384 = "RS384"  # RSASSA-PKCS1-v1_5 SHA-384
    RS512 = "RS512"  # RSASSA-PKCS1-v1_5 SHA-512
    ES256 = "ES256"  # ECDSA P-256 with SHA-256
    ES384 = "ES384"  # ECDSA P-384 with SHA-384
    ES512 = "ES512"  # ECDSA P-521 with SHA-512


HMAC_ALGORITHMS = (SignatureAlgorithm.HS256, SignatureAlgorithm.HS384, SignatureAlgorithm.HS512)
RSA_ALGORITHMS = (SignatureAlgorithm.RS256, SignatureAlgorithm.RS384, SignatureAlgorithm.RS512)
ECDSA_ALGORITHMS = (SignatureAlgorithm.ES256, SignatureAlgorithm.ES384, SignatureAlgorithm.ES512)

# Signers and verifiers of one algorithm both read these tables, so they
# cannot disagree on hash or coordinate width.
HASH_ALGORITHMS = {
    SignatureAlgorithm.HS256: hashes.SHA256(),
    SignatureAlgorithm.HS384: hashes.SHA384(),
    SignatureAlgorithm.HS512: hashes.SHA512(),
    SignatureAlgorithm.RS256: hashes.SHA256(),
    SignatureAlgorithm.RS384: hashes.SHA384(),
    SignatureAlgorithm.RS512: hashes.SHA512(),
    SignatureAlgorithm.ES256: hashes.SHA256(),
    SignatureAlgorithm.ES384: hashes.SHA384(),
    SignatureAlgorithm.ES512: hashes.SHA512(),
}

CURVE_BIT_SIZES = {
    SignatureAlgorithm.ES256: 256,
    SignatureAlgorithm.ES384: 384,
    SignatureAlgorithm.ES512: 521,
}


def coordinate_size(bit_size: int) -> int:
    """Byte width of one ECDSA coordinate, ceil(bit_size / 8)."""
    return (bit_size + 7) // 8


def parse_algorithm(alg: SignatureAlgorithm | str) -> SignatureAlgorithm:
    """Coerce ``alg`` to a ``SignatureAlgorithm``.

    Raises:
        UnsupportedAlgorithmError: If ``alg`` names no supported algorithm
    """
    if isinstance(alg, SignatureAlgorithm):
        return alg
    try:
        return SignatureAlgorithm(alg)
    except ValueError:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm: {alg}") from None


def _require_family(
    alg: SignatureAlgorithm | str,
    family: tuple[SignatureAlgorithm, ...],
    family_name: str,
) -> SignatureAlgorithm:
    algorithm = parse_algorithm(alg)
    if algorithm not in family:
        raise UnsupportedAlgorithmError(f"Unsupported {family_name} signature algorithm: {algorithm.value}")
    return algorithm


def _check_label(bound: SignatureAlgorithm, alg: SignatureAlgorithm | str) -> None:
    # Compare by value so a raw header string matches its enum member
    label = alg.value if isinstance(alg, SignatureAlgorithm) else alg
    if label != bound.value:
        raise InvalidSignatureError(f"Algorithm mismatch: expected {bound.value}, got {label}")


# Capability interfaces


@runtime_checkable
class Signer(Protocol):
    """Computes signatures or MACs for one algorithm."""

    @property
    def alg(self) -> SignatureAlgorithm:
        """Name of the algorithm (RFC 7518 section 3.1)."""
        ...

    def sign(self, data: bytes) -> bytes:
        """Return the signature bytes for ``data``."""
        ...


@runtime_checkable
class Verifier(Protocol):
    """Checks signatures for one algorithm."""

    def verify(self, alg: SignatureAlgorithm | str, data: bytes, signature: bytes) -> None:
        """Return ``None`` for a valid signature.

        Raises:
            InvalidSignatureError: If ``alg`` is not the bound algorithm or
                the signature does not match ``data``
        """
        ...


# HMAC


class HMACSignerVerifier:
    """HMAC with a pre-shared secret; signs and verifies."""

    def __init__(self, alg: SignatureAlgorithm | str, secret: bytes):
        self._alg = _require_family(alg, HMAC_ALGORITHMS, "HMAC")
        if not isinstance(secret, (bytes, bytearray)):
            raise ConfigurationError("HMAC requires symmetric key bytes")
        self._secret = bytes(secret)
        self._hash = HASH_ALGORITHMS[self._alg]

    @property
    def alg(self) -> SignatureAlgorithm:
        return self._alg

    def sign(self, data: bytes) -> bytes:
        h = crypto_hmac.HMAC(self._secret, self._hash)
        h.update(data)
        return h.finalize()

    def verify(self, alg: SignatureAlgorithm | str, data: bytes, signature: bytes) -> None:
        _check_label(self._alg, alg)
        h = crypto_hmac.HMAC(self._secret, self._hash)
        h.update(data)
        try:
            # constant-time comparison, any length mismatch fails
            h.verify(bytes(signature))
        except InvalidSignature:
            raise InvalidSignatureError("MAC mismatch") from None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(alg={self._alg.value!r})"


# RSA


def _check_rsa_key_size(key_size: int) -> None:
    min_size = get_settings().rsa_min_key_size
    if key_size < min_size:
        raise ConfigurationError(f"RSA key must be at least {min_size} bits, got {key_size}")


class RSASigner:
    """RSASSA-PKCS1-v1_5 signer (RFC 7518 section 3.3)."""

    def __init__(self, alg: SignatureAlgorithm | str, private_key: rsa.RSAPrivateKey):
        self._alg = _require_family(alg, RSA_ALGORITHMS, "RSA")
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise ConfigurationError("RSA signing requires an RSA private key")
        _check_rsa_key_size(private_key.key_size)
        self._private_key = private_key
        self._hash = HASH_ALGORITHMS[self._alg]

    @property
    def alg(self) -> SignatureAlgorithm:
        return self._alg

    def sign(self, data: bytes) -> bytes:
        return self._private_key.sign(data, padding.PKCS1v15(), self._hash)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(alg={self._alg.value!r})"


class RSAVerifier:
    """RSASSA-PKCS1-v1_5 verifier (RFC 7518 section 3.3)."""

    def __init__(self, alg: SignatureAlgorithm | str, public_key: rsa.RSAPublicKey):
        self._alg = _require_family(alg, RSA_ALGORITHMS, "RSA")
        if isinstance(public_key, rsa.RSAPrivateKey):
            public_key = public_key.public_key()
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise ConfigurationError("RSA verification requires an RSA public key")
        _check_rsa_key_size(public_key.key_size)
        self._public_key = public_key
        self._hash = HASH_ALGORITHMS[self._alg]

    def verify(self, alg: SignatureAlgorithm | str, data: bytes, signature: bytes) -> None:
        _check_label(self._alg, alg)
        try:
            self._public_key.verify(bytes(signature), data, padding.PKCS1v15(), self._hash)
        except InvalidSignature:
            raise InvalidSignatureError("RSA signature mismatch") from None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(alg={self._alg.value!r})"


# ECDSA


def _check_curve(algorithm: SignatureAlgorithm, curve: ec.EllipticCurve) -> int:
    expected = CURVE_BIT_SIZES[algorithm]
    if curve.key_size != expected:
        raise ConfigurationError(
            f"Invalid key: {algorithm.value} requires an elliptic curve key "
            f"with curve bit size of {expected}, got {curve.key_size}"
        )
    return coordinate_size(expected)


class ECDSASigner:
    """ECDSA signer producing fixed-width R || S signatures (RFC 7518 section 3.4)."""

    def __init__(self, alg: SignatureAlgorithm | str, private_key: ec.EllipticCurvePrivateKey):
        self._alg = _require_family(alg, ECDSA_ALGORITHMS, "ECDSA")
        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise ConfigurationError("ECDSA signing requires an EC private key")
        self._key_size = _check_curve(self._alg, private_key.curve)
        self._private_key = private_key
        self._hash = HASH_ALGORITHMS[self._alg]

    @property
    def alg(self) -> SignatureAlgorithm:
        return self._alg

    def sign(self, data: bytes) -> bytes:
        der_sig = self._private_key.sign(data, ec.ECDSA(self._hash))
        # Convert DER to raw R||S format
        r, s = decode_dss_signature(der_sig)
        return int_to_bytes(r, self._key_size) + int_to_bytes(s, self._key_size)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(alg={self._alg.value!r})"


class ECDSAVerifier:
    """ECDSA verifier for fixed-width R || S signatures (RFC 7518 section 3.4)."""

    def __init__(self, alg: SignatureAlgorithm | str, public_key: ec.EllipticCurvePublicKey):
        self._alg = _require_family(alg, ECDSA_ALGORITHMS, "ECDSA")
        if isinstance(public_key, ec.EllipticCurvePrivateKey):
            public_key = public_key.public_key()
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            raise ConfigurationError("ECDSA verification requires an EC public key")
        self._key_size = _check_curve(self._alg, public_key.curve)
        self._public_key = public_key
        self._hash = HASH_ALGORITHMS[self._alg]

    def verify(self, alg: SignatureAlgorithm | str, data: bytes, signature: bytes) -> None:
        _check_label(self._alg, alg)
        if len(signature) != 2 * self._key_size:
            raise InvalidSignatureError(
                f"Invalid ECDSA signature length: expected {2 * self._key_size}, got {len(signature)}"
            )

        # Convert raw R||S to DER
        r = bytes_to_int(signature[: self._key_size])
        s = bytes_to_int(signature[self._key_size :])
        der_sig = encode_dss_signature(r, s)
        try:
            self._public_key.verify(der_sig, data, ec.ECDSA(self._hash))
        except InvalidSignature:
            raise InvalidSignatureError("ECDSA signature mismatch") from None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(alg={self._alg.value!r})"


# none


class NoneSignerVerifier:
    """Unsecured JWS: empty signature, accepted only under label "none"."""

    @property
    def alg(self) -> SignatureAlgorithm:
        return SignatureAlgorithm.NONE

    def sign(self, data: bytes) -> bytes:
        return b""

    def verify(self, alg: SignatureAlgorithm | str, data: bytes, signature: bytes) -> None:
        _check_label(SignatureAlgorithm.NONE, alg)
        if signature:
            raise InvalidSignatureError("Unsecured JWS must have an empty signature")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# Factories


def new_signer(alg: SignatureAlgorithm | str, key: Any) -> Signer:
    """Create a signer for ``alg``.

    Args:
        alg: JWS algorithm name
        key: Secret bytes for HMAC, private key for RSA/ECDSA, ignored for none

    Returns:
        Signer bound to ``alg``

    Raises:
        UnsupportedAlgorithmError: If ``alg`` is unknown
        ConfigurationError: If ``key`` does not fit ``alg``
    """
    algorithm = parse_algorithm(alg)

    if algorithm in HMAC_ALGORITHMS:
        return HMACSignerVerifier(algorithm, key)
    elif algorithm in RSA_ALGORITHMS:
        return RSASigner(algorithm, key)
    elif algorithm in ECDSA_ALGORITHMS:
        return ECDSASigner(algorithm, key)
    elif algorithm == SignatureAlgorithm.NONE:
        return NoneSignerVerifier()
    else:
        raise UnsupportedAlgorithmError(f"Unsupported JWS algorithm: {algorithm}")


def new_verifier(alg: SignatureAlgorithm | str, key: Any) -> Verifier:
    """Create a verifier for ``alg``.

    Args:
        alg: JWS algorithm name
        key: Secret bytes for HMAC, public key for RSA/ECDSA, ignored for none

    Returns:
        Verifier bound to ``alg``

    Raises:
        UnsupportedAlgorithmError: If ``alg`` is unknown
        ConfigurationError: If ``key`` does not fit ``alg``
    """
    algorithm = parse_algorithm(alg)

    if algorithm in HMAC_ALGORITHMS:
        return HMACSignerVerifier(algorithm, key)
    elif algorithm in RSA_ALGORITHMS:
        return RSAVerifier(algorithm, key)
    elif algorithm in ECDSA_ALGORITHMS:
        return ECDSAVerifier(algorithm, key)
    elif algorithm == SignatureAlgorithm.NONE:
        return NoneSignerVerifier()
    else:
        raise UnsupportedAlgorithmError(f"Unsupported JWS algorithm: {algorithm}")
