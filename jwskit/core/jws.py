"""JSON Web Signature (RFC 7515), compact serialization only.

A ``JWS`` holds each of header, payload and signature twice: decoded, and
in the exact base64url text it was built or parsed from. ``compact()`` is
therefore a plain join and round-trips parsed input byte for byte.

Two ways to obtain a JWS:

    jws = sign(signer, b"payload", Header(typ="JWT"))
    jws = parse_compact(text)       # structural checks only

Parsing never authenticates. Call ``verify_signature`` before trusting the
payload.
"""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from jwskit.core.algorithms import Signer, Verifier, parse_algorithm
from jwskit.core.encoding import b64url_decode, b64url_encode, json_dumps, json_loads
from jwskit.core.errors import (
    InvalidCompactJWSError,
    InvalidEncodingError,
    InvalidHeaderError,
    InvalidSignatureError,
    JOSEError,
)
from jwskit.schemas.header import Header

logger = logging.getLogger(__name__)


def encode_header(header: Header) -> str:
    """Serialize ``header`` to its base64url JSON form."""
    return b64url_encode(json_dumps(header.to_json_dict()))


def decode_header(encoded: str) -> Header:
    """Decode and structurally validate an encoded JOSE header.

    Raises:
        InvalidHeaderError: On bad base64url, bad JSON, a non-object value,
            or a missing/unrecognized "alg"
    """
    try:
        raw = b64url_decode(encoded)
    except InvalidEncodingError as e:
        raise InvalidHeaderError(f"Invalid header encoding: {e}") from e

    try:
        data = json_loads(raw)
    except ValueError as e:
        raise InvalidHeaderError(f"Invalid header JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidHeaderError("Header must be a JSON object")

    try:
        header = Header.model_validate(data)
    except ValidationError as e:
        raise InvalidHeaderError(f"Invalid header: {e.errors()[0]['msg']}") from e

    if header.alg is None:
        raise InvalidHeaderError("Missing 'alg' header")

    return header


@dataclass(frozen=True)
class JWS:
    """An immutable signed envelope.

    Instances come from ``sign`` or ``parse_compact``; the fields are kept
    mutually consistent by those two functions only.
    """

    header: Header
    header_encoded: str
    payload: bytes
    payload_encoded: str
    signature: bytes
    signature_encoded: str

    @property
    def signing_input(self) -> bytes:
        """ASCII bytes the signature is computed over."""
        return f"{self.header_encoded}.{self.payload_encoded}".encode("ascii")

    def compact(self) -> str:
        """Compact serialization (RFC 7515 section 7.1)."""
        return f"{self.header_encoded}.{self.payload_encoded}.{self.signature_encoded}"

    def verify_signature(self, verifier: Verifier) -> None:
        """Verify the signature with ``verifier`` under the header's algorithm.

        Raises:
            InvalidSignatureError: If the verifier rejects the signature
        """
        try:
            verifier.verify(self.header.alg, self.signing_input, self.signature)
        except JOSEError as e:
            logger.debug("JWS signature rejected (alg=%s): %s", self.header.alg.value, e)
            raise InvalidSignatureError(f"Invalid signature: {e}") from e

    def __str__(self) -> str:
        return self.compact()


def sign(signer: Signer, payload: bytes, header: Header | None = None) -> JWS:
    """Sign ``payload`` and return the resulting JWS.

    Args:
        signer: Signer whose algorithm is stamped into the header
        payload: Data to sign
        header: Header template; its "alg" is overwritten

    Returns:
        Fully populated JWS
    """
    if header is None:
        header = Header()
    header = header.model_copy(update={"alg": parse_algorithm(signer.alg)})

    header_encoded = encode_header(header)
    payload = bytes(payload)
    payload_encoded = b64url_encode(payload)
    signing_input = f"{header_encoded}.{payload_encoded}".encode("ascii")

    signature = signer.sign(signing_input)

    return JWS(
        header=header,
        header_encoded=header_encoded,
        payload=payload,
        payload_encoded=payload_encoded,
        signature=signature,
        signature_encoded=b64url_encode(signature),
    )


def parse_compact(compact: str) -> JWS:
    """Parse a compact serialized JWS.

    Only base64url syntax and the header JSON are checked; the signature
    is NOT verified.

    Raises:
        InvalidCompactJWSError: If ``compact`` is not three valid parts
        InvalidHeaderError: If the header part is invalid
    """
    if not isinstance(compact, str):
        raise InvalidCompactJWSError(f"Expected str, got {type(compact).__name__}")

    parts = compact.split(".")
    if len(parts) != 3:
        raise InvalidCompactJWSError(f"Invalid number of encoded parts: {len(parts)}")

    header_encoded, payload_encoded, signature_encoded = parts

    header = decode_header(header_encoded)

    try:
        payload = b64url_decode(payload_encoded)
    except InvalidEncodingError as e:
        raise InvalidCompactJWSError(f"Invalid payload: {e}") from e

    try:
        signature = b64url_decode(signature_encoded)
    except InvalidEncodingError as e:
        raise InvalidCompactJWSError(f"Invalid signature encoding: {e}") from e

    return JWS(
        header=header,
        header_encoded=header_encoded,
        payload=payload,
        payload_encoded=payload_encoded,
        signature=signature,
        signature_encoded=signature_encoded,
    )
