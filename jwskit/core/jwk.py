"""JSON Web Keys (RFC 7517) and JWK Sets.

Key variants, dispatched on "kty":
- oct: ``SymmetricKey``
- RSA: ``RSAPublicKey``
- EC:  ``ECDSAPublicKey`` (P-256, P-384, P-521)

Each variant carries a ``KeyDescription`` holding the optional "use",
"key_ops", "alg" and "kid" members. An unknown "kty" is a decode error.
"""

import hashlib
import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from jwskit.core.algorithms import (
    ECDSA_ALGORITHMS,
    HMAC_ALGORITHMS,
    RSA_ALGORITHMS,
    SignatureAlgorithm,
    Verifier,
    coordinate_size,
    new_verifier,
    parse_algorithm,
)
from jwskit.core.encoding import (
    b64url_decode,
    b64url_encode,
    bytes_to_int,
    int_to_bytes,
    json_loads,
)
from jwskit.core.errors import (
    ConfigurationError,
    InvalidEncodingError,
    InvalidKeyError,
    UnsupportedKeyTypeError,
)

logger = logging.getLogger(__name__)


class KeyType(str, Enum):
    """Key types (RFC 7518 section 6.1)."""

    EC = "EC"
    RSA = "RSA"
    OCT = "oct"


class KeyUse(str, Enum):
    """Public key use (RFC 7517 section 4.2)."""

    SIGNATURE = "sig"
    ENCRYPTION = "enc"


class KeyOp(str, Enum):
    """Key operations (RFC 7517 section 4.3)."""

    SIGN = "sign"
    VERIFY = "verify"
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"
    WRAP_KEY = "wrapKey"
    UNWRAP_KEY = "unwrapKey"
    DERIVE_KEY = "deriveKey"
    DERIVE_BITS = "deriveBits"


# Supported curves: JWK name -> (cryptography curve, canonical JWS algorithm)
CURVES = {
    "P-256": (ec.SECP256R1, SignatureAlgorithm.ES256),
    "P-384": (ec.SECP384R1, SignatureAlgorithm.ES384),
    "P-521": (ec.SECP521R1, SignatureAlgorithm.ES512),
}

CURVE_NAMES = {
    "secp256r1": "P-256",
    "secp384r1": "P-384",
    "secp521r1": "P-521",
}


def _decode_member(data: Mapping[str, Any], name: str) -> bytes:
    value = data.get(name)
    if not isinstance(value, str):
        raise InvalidKeyError(f"Missing or invalid '{name}' member")
    try:
        return b64url_decode(value)
    except InvalidEncodingError as e:
        raise InvalidKeyError(f"Invalid '{name}' value: {e}") from e


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _optional_str(data: Mapping[str, Any], name: str) -> str | None:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise InvalidKeyError(f"'{name}' must be a string")
    return value


@dataclass(frozen=True)
class KeyDescription:
    """Metadata shared by all key types (RFC 7517 section 4)."""

    use: str | None = None
    key_ops: tuple[str, ...] = ()
    alg: str | None = None
    kid: str | None = None

    def to_dict(self) -> dict:
        """Set members only, keyed by their JWK parameter names."""
        data: dict[str, Any] = {}
        if self.use is not None:
            data["use"] = _plain(self.use)
        if self.key_ops:
            data["key_ops"] = [_plain(op) for op in self.key_ops]
        if self.alg is not None:
            data["alg"] = _plain(self.alg)
        if self.kid is not None:
            data["kid"] = self.kid
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyDescription":
        key_ops = data.get("key_ops", ())
        if not isinstance(key_ops, (list, tuple)) or not all(isinstance(op, str) for op in key_ops):
            raise InvalidKeyError("'key_ops' must be an array of strings")
        return cls(
            use=_optional_str(data, "use"),
            key_ops=tuple(key_ops),
            alg=_optional_str(data, "alg"),
            kid=_optional_str(data, "kid"),
        )


class _DescribedKey:
    """Forwards the shared getters to ``self.description``."""

    description: KeyDescription

    @property
    def use(self) -> str | None:
        return self.description.use

    @property
    def key_ops(self) -> tuple[str, ...]:
        return self.description.key_ops

    @property
    def alg(self) -> str | None:
        return self.description.alg

    @property
    def kid(self) -> str | None:
        return self.description.kid


@dataclass(frozen=True)
class SymmetricKey(_DescribedKey):
    """Symmetric secret, "kty": "oct" (RFC 7517 appendix A.3)."""

    kty: ClassVar[KeyType] = KeyType.OCT

    key: bytes
    description: KeyDescription = field(default_factory=KeyDescription)

    def __repr__(self) -> str:
        # never print the secret
        return f"SymmetricKey(kid={self.kid!r}, size={len(self.key)})"

    def to_dict(self) -> dict:
        return {"kty": self.kty.value, "k": b64url_encode(self.key), **self.description.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SymmetricKey":
        return cls(key=_decode_member(data, "k"), description=KeyDescription.from_dict(data))


@dataclass(frozen=True)
class RSAPublicKey(_DescribedKey):
    """RSA public key, "kty": "RSA" (RFC 7518 section 6.3.1)."""

    kty: ClassVar[KeyType] = KeyType.RSA

    n: int
    e: int
    description: KeyDescription = field(default_factory=KeyDescription)

    @classmethod
    def from_public_key(
        cls,
        public_key: rsa.RSAPublicKey,
        description: KeyDescription | None = None,
    ) -> "RSAPublicKey":
        """Describe a native RSA public key."""
        numbers = public_key.public_numbers()
        return cls(n=numbers.n, e=numbers.e, description=description or KeyDescription())

    def public_key(self) -> rsa.RSAPublicKey:
        """Materialize the native key.

        Raises:
            InvalidKeyError: If ``n``/``e`` do not form a usable RSA key
        """
        try:
            return rsa.RSAPublicNumbers(self.e, self.n).public_key()
        except ValueError as e:
            raise InvalidKeyError(f"Invalid RSA public key: {e}") from e

    def to_dict(self) -> dict:
        return {
            "kty": self.kty.value,
            "n": b64url_encode(int_to_bytes(self.n)),
            "e": b64url_encode(int_to_bytes(self.e)),
            **self.description.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RSAPublicKey":
        return cls(
            n=bytes_to_int(_decode_member(data, "n")),
            e=bytes_to_int(_decode_member(data, "e")),
            description=KeyDescription.from_dict(data),
        )


@dataclass(frozen=True)
class ECDSAPublicKey(_DescribedKey):
    """Elliptic curve public key, "kty": "EC" (RFC 7518 section 6.2.1)."""

    kty: ClassVar[KeyType] = KeyType.EC

    crv: str
    x: int
    y: int
    description: KeyDescription = field(default_factory=KeyDescription)

    def __post_init__(self):
        if not isinstance(self.crv, str) or self.crv not in CURVES:
            raise InvalidKeyError(f"Unsupported EC curve: {self.crv!r}")
        size = coordinate_size(CURVES[self.crv][0].key_size)
        for name, value in (('x', self.x), ('y', self.y)):
            if value < 0 or value.bit_length() > 8 * size:
                raise InvalidKeyError(f"EC coordinate '{name}' does not fit {self.crv}")

    @classmethod
    def from_public_key(
        cls,
        public_key: ec.EllipticCurvePublicKey,
        description: KeyDescription | None = None,
    ) -> "ECDSAPublicKey":
        """Describe a native EC public key."""
        crv = CURVE_NAMES.get(public_key.curve.name)
        if crv is None:
            raise ConfigurationError(f"Unsupported curve: {public_key.curve.name}")
        numbers = public_key.public_numbers()
        return cls(crv=crv, x=numbers.x, y=numbers.y, description=description or KeyDescription())

    @property
    def default_algorithm(self) -> SignatureAlgorithm:
        """The JWS algorithm bound to this key's curve."""
        return CURVES[self.crv][1]

    def public_key(self) -> ec.EllipticCurvePublicKey:
        """Materialize the native key.

        Raises:
            InvalidKeyError: If the point is not on the curve
        """
        curve_cls = CURVES[self.crv][0]
        try:
            return ec.EllipticCurvePublicNumbers(self.x, self.y, curve_cls()).public_key()
        except ValueError as e:
            raise InvalidKeyError(f"Invalid EC public key: {e}") from e

    def to_dict(self) -> dict:
        # Coordinates are full width (RFC 7518 section 6.2.1.2)
        size = coordinate_size(CURVES[self.crv][0].key_size)
        return {
            "kty": self.kty.value,
            "crv": self.crv,
            "x": b64url_encode(int_to_bytes(self.x, size)),
            "y": b64url_encode(int_to_bytes(self.y, size)),
            **self.description.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ECDSAPublicKey":
        crv = data.get("crv")
        if not isinstance(crv, str) or crv not in CURVES:
            raise InvalidKeyError(f"Invalid EC curve: {crv!r}")
        return cls(
            crv=crv,
            x=bytes_to_int(_decode_member(data, "x")),
            y=bytes_to_int(_decode_member(data, "y")),
            description=KeyDescription.from_dict(data),
        )


Key = Union[SymmetricKey, RSAPublicKey, ECDSAPublicKey]

_DECODERS: dict[str, Callable[[Mapping[str, Any]], Key]] = {
    KeyType.OCT.value: SymmetricKey.from_dict,
    KeyType.RSA.value: RSAPublicKey.from_dict,
    KeyType.EC.value: ECDSAPublicKey.from_dict,
}


def encode_key(key: Key) -> dict:
    """Encode ``key`` as a JWK JSON object."""
    if isinstance(key, (SymmetricKey, RSAPublicKey, ECDSAPublicKey)):
        return key.to_dict()
    raise UnsupportedKeyTypeError(f"Unsupported key type: {type(key).__name__}")


def decode_key(data: Mapping[str, Any]) -> Key:
    """Decode a JWK JSON object, dispatching on its "kty".

    Raises:
        UnsupportedKeyTypeError: If "kty" is missing or unknown
        InvalidKeyError: If a member of the chosen key type is invalid
    """
    if not isinstance(data, Mapping):
        raise InvalidKeyError("JWK must be a JSON object")

    kty = data.get("kty")
    decoder = _DECODERS.get(kty) if isinstance(kty, str) else None
    if decoder is None:
        logger.debug("Rejecting JWK with unsupported kty=%r", kty)
        raise UnsupportedKeyTypeError(f"Unsupported kty: {kty}")

    return decoder(data)


def parse_key(data: str | bytes) -> Key:
    """Decode a JWK from JSON text."""
    try:
        obj = json_loads(data)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid JWK JSON: {e}") from e
    return decode_key(obj)


def thumbprint(key: Key) -> str:
    """Compute the JWK thumbprint per RFC 7638 (SHA-256, base64url)."""
    encoded = encode_key(key)

    # Only required members, in lexicographic order
    if isinstance(key, ECDSAPublicKey):
        members = ("crv", "kty", "x", "y")
    elif isinstance(key, RSAPublicKey):
        members = ("e", "kty", "n")
    else:
        members = ("k", "kty")

    canonical = {name: encoded[name] for name in members}
    canonical_json = json.dumps(canonical, separators=(",", ":"), sort_keys=True)
    digest = hashlib.sha256(canonical_json.encode()).digest()
    return b64url_encode(digest)


def verifier_for(key: Key, alg: SignatureAlgorithm | str | None = None) -> Verifier:
    """Build a signature verifier from a JWK.

    The algorithm is taken from ``alg``, else from the key's "alg" hint,
    else (EC only) from the key's curve.

    Raises:
        ConfigurationError: If no algorithm can be determined or it does
            not fit the key type
    """
    chosen = alg or key.alg
    if chosen is None and isinstance(key, ECDSAPublicKey):
        chosen = key.default_algorithm
    if chosen is None:
        raise ConfigurationError(f"No algorithm given for {key.kty.value} key {key.kid!r}")

    algorithm = parse_algorithm(chosen)

    if isinstance(key, SymmetricKey):
        family = HMAC_ALGORITHMS
        material: Any = key.key
    elif isinstance(key, RSAPublicKey):
        family = RSA_ALGORITHMS
        material = key.public_key()
    elif isinstance(key, ECDSAPublicKey):
        family = ECDSA_ALGORITHMS
        material = key.public_key()
    else:
        raise UnsupportedKeyTypeError(f"Unsupported key type: {type(key).__name__}")

    if algorithm not in family:
        raise ConfigurationError(f"Algorithm {algorithm.value} cannot be used with a {key.kty.value} key")

    return new_verifier(algorithm, material)


# Key filters


KeyFilter = Callable[[Key], bool]


def with_id(kid: str) -> KeyFilter:
    """Filter keys by "kid"; a ``None`` kid matches nothing."""
    return lambda key: kid is not None and key.kid == kid


def with_use(use: KeyUse | str) -> KeyFilter:
    """Filter keys by "use"."""
    value = use.value if isinstance(use, KeyUse) else use
    return lambda key: key.use == value


@dataclass(frozen=True, init=False)
class KeySet:
    """An ordered JWK Set (RFC 7517 section 5)."""

    keys: tuple[Key, ...] = ()

    def __init__(self, keys: Iterable[Key] = ()):
        object.__setattr__(self, "keys", tuple(keys))

    def __iter__(self) -> Iterator[Key]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def has(self, key_filter: KeyFilter) -> bool:
        """Whether at least one key matches ``key_filter``."""
        return any(key_filter(key) for key in self.keys)

    def first(self, key_filter: KeyFilter) -> Key | None:
        """First key matching ``key_filter`` in set order, or ``None``."""
        for key in self.keys:
            if key_filter(key):
                return key
        return None

    def to_dict(self) -> dict:
        return {"keys": [encode_key(key) for key in self.keys]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeySet":
        """Decode a JWK Set; any invalid key fails the whole set."""
        if not isinstance(data, Mapping):
            raise InvalidKeyError("JWK Set must be a JSON object")
        keys = data.get("keys")
        if not isinstance(keys, list):
            raise InvalidKeyError("JWK Set must contain a 'keys' array")
        return cls(decode_key(item) for item in keys)

    @classmethod
    def from_json(cls, data: str | bytes) -> "KeySet":
        try:
            obj = json_loads(data)
        except ValueError as e:
            raise InvalidKeyError(f"Invalid JWK Set JSON: {e}") from e
        return cls.from_dict(obj)
