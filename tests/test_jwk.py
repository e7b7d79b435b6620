"""Tests for JSON Web Keys and JWK Sets."""

import hashlib
import json

import pytest

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from jwskit.core.algorithms import (
    ECDSAVerifier,
    HMACSignerVerifier,
    RSAVerifier,
    SignatureAlgorithm,
    new_signer,
)
from jwskit.core.encoding import b64url_encode
from jwskit.core.errors import (
    ConfigurationError,
    InvalidKeyError,
    UnsupportedKeyTypeError,
)
from jwskit.core.jwk import (
    ECDSAPublicKey,
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

# RFC 7517 appendix A.1
EC_JWK = {
    "kty": "EC",
    "crv": "P-256",
    "x": "MKBCTNIcKUSDii11ySs3526iDZ8AiTo7Tu6KPAqv7D4",
    "y": "4Etl6SRW2YiLUrN5vfvVHuhp7x8PxltmWWlbbM4IFyM",
    "use": "enc",
    "kid": "1",
}


@pytest.fixture(scope="module")
def rsa_key():
    """Generate a 2048-bit RSA key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def ec_key():
    """Generate a P-256 key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def key_set(rsa_key, ec_key):
    """Create a set holding one key of each type."""
    return KeySet(
        [
            SymmetricKey(b"s3cr3t", KeyDescription(use="sig", alg="HS256", kid="hmac")),
            RSAPublicKey.from_public_key(
                rsa_key.public_key(),
                KeyDescription(use="sig", key_ops=("verify",), alg="RS256", kid="rsa"),
            ),
            ECDSAPublicKey.from_public_key(ec_key.public_key(), KeyDescription(use="enc", kid="ec")),
        ]
    )


class TestSymmetricKey:
    """Tests for "oct" keys."""

    def test_decode(self):
        """Test decoding a minimal JWK."""
        key = decode_key({"kty": "oct", "k": "czNjcjN0"})

        assert isinstance(key, SymmetricKey)
        assert key.key == b"s3cr3t"
        assert key.kid is None
        assert key.key_ops == ()

    def test_encode(self):
        """Test that only set description members are written."""
        key = SymmetricKey(b"s3cr3t", KeyDescription(kid="k1"))

        assert encode_key(key) == {"kty": "oct", "k": "czNjcjN0", "kid": "k1"}

    def test_missing_k(self):
        """Test that "k" is required."""
        with pytest.raises(InvalidKeyError):
            decode_key({"kty": "oct"})

    def test_bad_k(self):
        """Test that "k" must be base64url."""
        with pytest.raises(InvalidKeyError):
            decode_key({"kty": "oct", "k": "czNjcjN0=="})

    def test_repr_hides_secret(self):
        """Test that the secret is not printed."""
        assert "s3cr3t" not in repr(SymmetricKey(b"s3cr3t"))
        assert "czNjcjN0" not in repr(SymmetricKey(b"s3cr3t"))


class TestRSAPublicKey:
    """Tests for "RSA" keys."""

    def test_roundtrip(self, rsa_key):
        """Test native key to JWK and back."""
        key = RSAPublicKey.from_public_key(rsa_key.public_key())

        decoded = decode_key(encode_key(key))

        assert decoded == key
        assert decoded.public_key().public_numbers() == rsa_key.public_key().public_numbers()

    def test_exponent_is_minimal(self, rsa_key):
        """Test that "e" has no leading zeros."""
        data = encode_key(RSAPublicKey.from_public_key(rsa_key.public_key()))

        assert data["e"] == "AQAB"
        assert data["kty"] == "RSA"

    def test_missing_member(self):
        """Test that "n" and "e" are required."""
        with pytest.raises(InvalidKeyError):
            decode_key({"kty": "RSA", "e": "AQAB"})
        with pytest.raises(InvalidKeyError):
            decode_key({"kty": "RSA", "n": "AQAB"})

    def test_unusable_numbers(self):
        """Test that an invalid modulus fails when materialized."""
        key = decode_key({"kty": "RSA", "n": "AA", "e": "AQAB"})

        with pytest.raises(InvalidKeyError):
            key.public_key()


class TestECDSAPublicKey:
    """Tests for "EC" keys."""

    def test_decode_rfc_example(self):
        """Test decoding the RFC 7517 example key."""
        key = decode_key(EC_JWK)

        assert isinstance(key, ECDSAPublicKey)
        assert key.crv == "P-256"
        assert key.use == "enc"
        assert key.kid == "1"
        assert key.public_key().curve.name == "secp256r1"

    def test_encode_rfc_example(self):
        """Test that the example key encodes to its input."""
        assert encode_key(decode_key(EC_JWK)) == EC_JWK

    def test_coordinates_are_full_width(self):
        """Test that small coordinates are left zero-padded."""
        data = encode_key(ECDSAPublicKey(crv="P-521", x=1, y=2))

        assert data["x"] == b64url_encode(b"\x00" * 65 + b"\x01")
        assert data["y"] == b64url_encode(b"\x00" * 65 + b"\x02")

    @pytest.mark.parametrize(
        "curve,crv,alg",
        [
            (ec.SECP256R1(), "P-256", SignatureAlgorithm.ES256),
            (ec.SECP384R1(), "P-384", SignatureAlgorithm.ES384),
            (ec.SECP521R1(), "P-521", SignatureAlgorithm.ES512),
        ],
    )
    def test_from_public_key(self, curve, crv, alg):
        """Test curve naming and the default algorithm."""
        public_key = ec.generate_private_key(curve).public_key()

        key = ECDSAPublicKey.from_public_key(public_key)

        assert key.crv == crv
        assert key.default_algorithm == alg
        assert key.public_key().public_numbers() == public_key.public_numbers()

    def test_unsupported_curve(self):
        """Test that unknown curves are rejected."""
        with pytest.raises(InvalidKeyError):
            decode_key({**EC_JWK, "crv": "P-192"})
        with pytest.raises(ConfigurationError):
            ECDSAPublicKey.from_public_key(ec.generate_private_key(ec.SECP256K1()).public_key())

    @pytest.mark.parametrize("crv", [["P-256"], {"name": "P-256"}, 256, None])
    def test_curve_must_be_string(self, crv):
        """Test that a non-string curve is a key error."""
        with pytest.raises(InvalidKeyError):
            decode_key({**EC_JWK, "crv": crv})
        with pytest.raises(InvalidKeyError):
            KeySet.from_dict({"keys": [{**EC_JWK, "crv": crv}]})

    def test_oversized_coordinate(self):
        """Test that a coordinate wider than the curve is rejected on decode."""
        data = {"kty": "EC", "crv": "P-256", "x": b64url_encode(b"\x01" * 40), "y": "AQ"}

        with pytest.raises(InvalidKeyError):
            decode_key(data)
        with pytest.raises(InvalidKeyError):
            ECDSAPublicKey(crv="P-256", x=1 << 256, y=1)

    def test_short_coordinate_roundtrip(self):
        """Test that a short coordinate is re-encoded at full width."""
        key = decode_key({"kty": "EC", "crv": "P-256", "x": "AQ", "y": "AQ"})

        assert decode_key(encode_key(key)) == key
        assert len(encode_key(key)["x"]) == 43

    def test_point_not_on_curve(self):
        """Test that an invalid point fails when materialized."""
        key = ECDSAPublicKey(crv="P-256", x=1, y=1)

        with pytest.raises(InvalidKeyError):
            key.public_key()


class TestDecodeKey:
    """Tests for "kty" dispatch."""

    @pytest.mark.parametrize("kty", ["OKP", "oct ", "ec", None, 1])
    def test_unsupported_kty(self, kty):
        """Test that unknown key types are rejected."""
        with pytest.raises(UnsupportedKeyTypeError):
            decode_key({"kty": kty, "k": "czNjcjN0"})

    def test_missing_kty(self):
        """Test that "kty" is required."""
        with pytest.raises(UnsupportedKeyTypeError):
            decode_key({"k": "czNjcjN0"})

    def test_not_an_object(self):
        """Test that non-object input is rejected."""
        with pytest.raises(InvalidKeyError):
            decode_key(["oct"])

    def test_description_members(self):
        """Test decoding shared members."""
        key = decode_key(
            {"kty": "oct", "k": "czNjcjN0", "use": "sig", "key_ops": ["sign", "verify"], "alg": "HS256", "kid": "a"}
        )

        assert key.description == KeyDescription(use="sig", key_ops=("sign", "verify"), alg="HS256", kid="a")
        assert key.use == KeyUse.SIGNATURE

    @pytest.mark.parametrize(
        "extra",
        [{"use": 1}, {"kid": ["a"]}, {"alg": 256}, {"key_ops": "sign"}, {"key_ops": [1]}],
    )
    def test_invalid_description_members(self, extra):
        """Test that shared members are type checked."""
        with pytest.raises(InvalidKeyError):
            decode_key({"kty": "oct", "k": "czNjcjN0", **extra})

    def test_parse_key(self):
        """Test decoding from JSON text."""
        key = parse_key('{"kty":"oct","k":"czNjcjN0"}')

        assert key == SymmetricKey(b"s3cr3t")

    def test_parse_key_invalid_json(self):
        """Test that invalid JSON is a key error."""
        with pytest.raises(InvalidKeyError):
            parse_key("{kty: oct}")

    def test_empty_string_members_survive(self):
        """Test that empty "use" and "kid" values are kept."""
        data = {"kty": "oct", "k": "czNjcjN0", "use": "", "kid": ""}

        assert encode_key(decode_key(data)) == data

    def test_encode_enum_description(self):
        """Test that enum values are written as plain strings."""
        key = SymmetricKey(b"s3cr3t", KeyDescription(use=KeyUse.SIGNATURE, alg=SignatureAlgorithm.HS256))

        data = encode_key(key)

        assert json.dumps(data) == '{"kty": "oct", "k": "czNjcjN0", "use": "sig", "alg": "HS256"}'


class TestThumbprint:
    """Tests for RFC 7638 thumbprints."""

    def test_symmetric(self):
        """Test the canonical member order for "oct" keys."""
        expected = b64url_encode(hashlib.sha256(b'{"k":"czNjcjN0","kty":"oct"}').digest())

        assert thumbprint(SymmetricKey(b"s3cr3t")) == expected

    def test_ignores_description(self):
        """Test that optional members do not affect the thumbprint."""
        plain = decode_key({k: v for k, v in EC_JWK.items() if k in ("kty", "crv", "x", "y")})

        assert thumbprint(decode_key(EC_JWK)) == thumbprint(plain)

    def test_ec_members(self):
        """Test the canonical member order for "EC" keys."""
        canonical = (
            '{"crv":"P-256","kty":"EC","x":"%s","y":"%s"}' % (EC_JWK["x"], EC_JWK["y"])
        ).encode()

        assert thumbprint(decode_key(EC_JWK)) == b64url_encode(hashlib.sha256(canonical).digest())

    def test_distinct_keys(self, rsa_key):
        """Test that different keys have different thumbprints."""
        other = rsa.generate_private_key(public_exponent=65537, key_size=2048)

        assert thumbprint(RSAPublicKey.from_public_key(rsa_key.public_key())) != thumbprint(
            RSAPublicKey.from_public_key(other.public_key())
        )


class TestVerifierFor:
    """Tests for building signature verifiers from JWKs."""

    def test_symmetric_with_alg_hint(self):
        """Test that the key's "alg" is used."""
        key = SymmetricKey(b"s3cr3t", KeyDescription(alg="HS384"))

        verifier = verifier_for(key)

        assert isinstance(verifier, HMACSignerVerifier)
        assert verifier.alg == SignatureAlgorithm.HS384

    def test_symmetric_requires_alg(self):
        """Test that an "oct" key without any algorithm is rejected."""
        with pytest.raises(ConfigurationError):
            verifier_for(SymmetricKey(b"s3cr3t"))

    def test_rsa(self, rsa_key):
        """Test that an RSA verifier checks signatures from the private key."""
        key = RSAPublicKey.from_public_key(rsa_key.public_key(), KeyDescription(alg="RS256"))
        signature = new_signer("RS256", rsa_key).sign(b"data")

        verifier = verifier_for(key)

        assert isinstance(verifier, RSAVerifier)
        verifier.verify("RS256", b"data", signature)

    def test_ec_defaults_to_curve_algorithm(self, ec_key):
        """Test that an EC key without "alg" uses its curve's algorithm."""
        key = ECDSAPublicKey.from_public_key(ec_key.public_key())
        signature = new_signer("ES256", ec_key).sign(b"data")

        verifier = verifier_for(key)

        assert isinstance(verifier, ECDSAVerifier)
        verifier.verify("ES256", b"data", signature)

    def test_explicit_alg_overrides_hint(self):
        """Test that the argument wins over the key's hint."""
        key = SymmetricKey(b"s3cr3t", KeyDescription(alg="HS256"))

        assert verifier_for(key, "HS512").alg == SignatureAlgorithm.HS512

    def test_family_mismatch(self, rsa_key):
        """Test that an algorithm of another family is rejected."""
        key = RSAPublicKey.from_public_key(rsa_key.public_key())

        with pytest.raises(ConfigurationError):
            verifier_for(key, "HS256")


class TestKeySet:
    """Tests for JWK Sets."""

    def test_roundtrip(self, key_set):
        """Test that encoding and decoding a set is lossless."""
        decoded = KeySet.from_json(key_set.to_json())

        assert decoded == key_set
        assert [key.kty for key in decoded] == [KeyType.OCT, KeyType.RSA, KeyType.EC]
        assert decoded.to_dict() == key_set.to_dict()

    def test_to_dict(self, key_set):
        """Test the "keys" wrapper."""
        data = key_set.to_dict()

        assert list(data) == ["keys"]
        assert len(data["keys"]) == 3
        assert data["keys"][1]["key_ops"] == ["verify"]

    def test_has_and_first(self, key_set):
        """Test key lookup by filters."""
        assert len(key_set) == 3
        assert key_set.has(with_id("rsa"))
        assert not key_set.has(with_id("missing"))
        assert key_set.first(with_id("ec")).kty == KeyType.EC
        assert key_set.first(with_id("missing")) is None

    def test_first_keeps_order(self, key_set):
        """Test that the first match in set order is returned."""
        assert key_set.first(with_use("sig")).kid == "hmac"
        assert key_set.first(with_use(KeyUse.ENCRYPTION)).kid == "ec"

    def test_missing_kid_matches_nothing(self):
        """Test that a header without "kid" does not select a key without one."""
        key_set = KeySet([SymmetricKey(b"s3cr3t"), SymmetricKey(b"other", KeyDescription(kid="k1"))])

        assert key_set.first(with_id(None)) is None
        assert not key_set.has(with_id(None))

    def test_empty_set(self):
        """Test an empty set."""
        key_set = KeySet.from_dict({"keys": []})

        assert len(key_set) == 0
        assert key_set.first(with_id("a")) is None
        assert KeySet().to_json() == '{"keys":[]}'

    def test_one_bad_key_fails_the_set(self):
        """Test that any invalid key fails decoding of the whole set."""
        data = {"keys": [{"kty": "oct", "k": "czNjcjN0"}, {"kty": "OKP", "crv": "Ed25519", "x": "AA"}]}

        with pytest.raises(UnsupportedKeyTypeError):
            KeySet.from_dict(data)

    @pytest.mark.parametrize("data", ['{"keys":{}}', "{}", "[]", "not json"])
    def test_invalid_set(self, data):
        """Test that malformed sets are rejected."""
        with pytest.raises(InvalidKeyError):
            KeySet.from_json(data)

    def test_set_is_immutable(self, key_set):
        """Test that the key tuple cannot be replaced."""
        with pytest.raises(AttributeError):
            key_set.keys = ()
