# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""AWS SigV4 (HMAC-SHA256) request signing for the signaling service.

Builds the ``Authorization`` header for HTTP and WebSocket requests to
the signaling endpoint:

- Canonical request construction
- Signing key derivation and signature computation
- Authorization header assembly, optionally into a caller buffer

Only header-based SigV4 with a single HMAC-SHA256 signature is supported.
No boto3/botocore dependency; uses only stdlib ``hmac``/``hashlib``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from kvsauth.errors import (
    BadParameterError,
    BufferTooSmallError,
    MalformedInputError,
    SigningError,
)
from kvsauth.timeutil import ISO8601_LENGTH, get_time_from_iso8601


logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"

#: Service name of the Kinesis Video Streams signaling endpoint.
KVS_SERVICE_NAME = "kinesisvideo"

_SCOPE_TERMINATOR = "aws4_request"

EMPTY_PAYLOAD_HASH = hashlib.sha256(b"").hexdigest()

#: Length of a hex-encoded signature.
SIGNATURE_HEX_LENGTH = 64

_AWS_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)

_AUTH_HEADER_RE = re.compile(
    r"(?P<algorithm>AWS4-HMAC-SHA256)\s+"
    r"Credential=(?P<key_id>[^/]+)/(?P<scope>[^,]+),\s*"
    r"SignedHeaders=(?P<signed_headers>[^,]+),\s*"
    r"Signature=(?P<signature>[0-9a-f]{64})$"
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class Verb(Enum):
    """HTTP verb of a request to sign."""

    NONE = "none"
    GET = "get"
    POST = "post"
    WSS = "wss"

    @property
    def token(self) -> str:
        """Method token used in the canonical request.

        A WebSocket upgrade is an HTTP GET on the wire.

        Raises:
            BadParameterError: For ``Verb.NONE``.
        """
        if self is Verb.NONE:
            raise BadParameterError("Request verb is not set")
        if self is Verb.WSS:
            return "GET"
        return self.name


@dataclass(frozen=True)
class CanonicalRequest:
    """Request description fed into the canonical request.

    The caller owns canonicalization of the path, query and headers:
    ``canonical_headers`` must already be lowercase, sorted and free of
    duplicates (see ``canonical_headers()`` for a helper that does this).

    Attributes:
        verb: Request verb.
        path: Canonical URI, used as given.  Empty means ``/``.
        canonical_query_string: Sorted, encoded query (no leading ``?``).
        canonical_headers: ``name:value\\n`` lines for the signed headers.
        payload: Raw request body; None for no body.
    """

    verb: Verb
    path: str
    canonical_query_string: str = ""
    canonical_headers: str = ""
    payload: bytes | str | None = None


@dataclass(frozen=True)
class Credentials:
    """AWS credentials.  Secret values are kept out of ``repr``.

    Attributes:
        access_key_id: Access key ID.
        secret_access_key: Secret access key.
        session_token: STS session token for temporary credentials.
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class SigningContext:
    """Region, service and time a signature is bound to.

    Attributes:
        region: AWS region, e.g. ``us-west-2``.
        timestamp: ISO-8601 basic timestamp (``YYYYMMDDTHHMMSSZ``).
        service: Signing service name.
    """

    region: str
    timestamp: str
    service: str = KVS_SERVICE_NAME

    def __post_init__(self) -> None:
        """Validate the context.

        Raises:
            BadParameterError: Empty region/service or a malformed
                timestamp.
        """
        if not self.region:
            raise BadParameterError("Region is required")
        if not self.service:
            raise BadParameterError("Service name is required")
        if not self.timestamp or len(self.timestamp) != ISO8601_LENGTH:
            raise BadParameterError(
                f"Timestamp must be {ISO8601_LENGTH} characters "
                f"(YYYYMMDDTHHMMSSZ): {self.timestamp!r}"
            )
        try:
            get_time_from_iso8601(self.timestamp)
        except MalformedInputError as e:
            raise BadParameterError(str(e)) from e

    @property
    def date(self) -> str:
        """Date part of the timestamp (``YYYYMMDD``)."""
        return self.timestamp[:8]

    @property
    def credential_scope(self) -> str:
        """Scope string ``date/region/service/aws4_request``."""
        return credential_scope(self.date, self.region, self.service)


@dataclass(frozen=True)
class SigningKeyChain:
    """Intermediate keys of the SigV4 HMAC chain."""

    k_date: bytes
    k_region: bytes
    k_service: bytes
    k_signing: bytes


@dataclass(frozen=True)
class AuthorizationHeader:
    """Result of ``generate_authorization_header``.

    Attributes:
        value: Full ``Authorization`` header value.
        signature: Raw 32-byte HMAC-SHA256 signature.
        signature_hex: Lowercase hex signature as it appears in ``value``.
        signature_offset: Index of ``signature_hex`` inside ``value``.
        signed_headers: ``;``-separated signed header names.
        credential_scope: ``date/region/service/aws4_request``.
        canonical_request: The canonical request that was signed.
        string_to_sign: The string to sign.
    """

    value: str
    signature: bytes = field(repr=False)
    signature_hex: str
    signature_offset: int
    signed_headers: str
    credential_scope: str
    canonical_request: str = field(repr=False)
    string_to_sign: str = field(repr=False)

    @property
    def signature_length(self) -> int:
        return len(self.signature_hex)


# ---------------------------------------------------------------------------
# Canonicalization helpers
# ---------------------------------------------------------------------------


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """URI-encode a value using AWS's rules.

    Unreserved characters (``A-Z a-z 0-9 - _ . ~``) pass through; every
    other byte of the UTF-8 encoding becomes ``%XX`` with uppercase hex.
    ``/`` is kept when ``encode_slash`` is False.
    """
    result: list[str] = []
    for byte in value.encode("utf-8"):
        if byte in _AWS_UNRESERVED:
            result.append(chr(byte))
        elif byte == 0x2F and not encode_slash:
            result.append("/")
        else:
            result.append(f"%{byte:02X}")
    return "".join(result)


def canonical_uri(path: str) -> str:
    """Build the canonical URI for a request path as it appears in a URL.

    The path is URI-encoded as given, so existing escapes are encoded
    again (``%3A`` becomes ``%253A``), which is what non-S3 services
    such as the signaling endpoint compute.  An empty path becomes ``/``.
    """
    return uri_encode(path or "/", encode_slash=False)


def canonical_query_string(
    params: Mapping[str, str] | Iterable[tuple[str, str]],
) -> str:
    """Build a canonical query string from unencoded parameters.

    Names and values are URI-encoded, then sorted by encoded name and
    value.
    """
    items = params.items() if isinstance(params, Mapping) else params
    encoded = sorted((uri_encode(k), uri_encode(str(v))) for k, v in items)
    return "&".join(f"{k}={v}" for k, v in encoded)


def canonical_headers(headers: Mapping[str, str]) -> str:
    """Build a canonical headers block from a header mapping.

    Names are lowercased and values trimmed with inner whitespace runs
    collapsed to one space.  Lines are sorted by name.

    Raises:
        BadParameterError: An empty name, or two names differing only in
            case.
    """
    lowered: dict[str, str] = {}
    for name, value in headers.items():
        key = name.strip().lower()
        if not key:
            raise BadParameterError("Header name must not be empty")
        if key in lowered:
            raise BadParameterError(f"Duplicate header: {key}")
        lowered[key] = " ".join(str(value).split())
    return "".join(f"{name}:{lowered[name]}\n" for name in sorted(lowered))


def signed_header_names(block: str) -> str:
    """Extract ``;``-joined header names from a canonical headers block.

    Names are taken in block order; the block is not re-sorted.

    Raises:
        BadParameterError: The block is not newline-terminated or a line
            has no ``:``.
    """
    if not block:
        return ""
    if not block.endswith("\n"):
        raise BadParameterError(
            "Canonical headers block must end with a newline"
        )
    names: list[str] = []
    for line in block[:-1].split("\n"):
        name, sep, _ = line.partition(":")
        if not sep or not name:
            raise BadParameterError(f"Malformed canonical header: {line!r}")
        names.append(name)
    return ";".join(names)


def hash_hex(data: bytes | str | None) -> str:
    """Lowercase hex SHA-256 of ``data`` (of ``b""`` when None)."""
    if data is None:
        return EMPTY_PAYLOAD_HASH
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------


def build_canonical_request(request: CanonicalRequest) -> str:
    """Build the canonical request string.

    Raises:
        BadParameterError: Unset verb or malformed headers block.
    """
    signed_headers = signed_header_names(request.canonical_headers)
    try:
        payload_hash = hash_hex(request.payload)
    except UnicodeEncodeError as e:
        raise BadParameterError(f"Payload is not encodable: {e}") from e

    # The headers block carries its own trailing newline, so joining
    # leaves the blank line SigV4 requires before the signed names.
    return "\n".join(
        [
            request.verb.token,
            request.path or "/",
            request.canonical_query_string,
            request.canonical_headers,
            signed_headers,
            payload_hash,
        ]
    )


# ---------------------------------------------------------------------------
# Signature calculation
# ---------------------------------------------------------------------------


def credential_scope(date: str, region: str, service: str) -> str:
    """Build the credential scope ``date/region/service/aws4_request``."""
    return f"{date}/{region}/{service}/{_SCOPE_TERMINATOR}"


def build_string_to_sign(
    timestamp: str, scope: str, canonical_request: str
) -> str:
    """Build the SigV4 string to sign.

    Raises:
        SigningError: The canonical request cannot be hashed.
    """
    try:
        request_hash = hash_hex(canonical_request)
    except UnicodeEncodeError as e:
        raise SigningError(f"Cannot hash canonical request: {e}") from e
    return "\n".join([ALGORITHM, timestamp, scope, request_hash])


def _hmac_sha256(key: bytes, msg: str | bytes) -> bytes:
    try:
        if isinstance(msg, str):
            msg = msg.encode("utf-8")
        return hmac.new(key, msg, hashlib.sha256).digest()
    except (TypeError, ValueError) as e:
        raise SigningError(f"HMAC-SHA256 step failed: {e}") from e


def derive_signing_key_chain(
    secret_key: str, date: str, region: str, service: str
) -> SigningKeyChain:
    """Derive every key of the SigV4 HMAC chain.

    Raises:
        SigningError: Any HMAC step fails.
    """
    try:
        seed = ("AWS4" + secret_key).encode("utf-8")
    except (TypeError, UnicodeEncodeError) as e:
        raise SigningError(f"Secret key is not encodable: {e}") from e
    k_date = _hmac_sha256(seed, date)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    k_signing = _hmac_sha256(k_service, _SCOPE_TERMINATOR)
    return SigningKeyChain(k_date, k_region, k_service, k_signing)


def derive_signing_key(
    secret_key: str, date: str, region: str, service: str
) -> bytes:
    """Derive the SigV4 signing key (``kSigning``)."""
    return derive_signing_key_chain(secret_key, date, region, service).k_signing


def compute_signature(signing_key: bytes, string_to_sign: str) -> bytes:
    """Compute the raw 32-byte signature over the string to sign."""
    return _hmac_sha256(signing_key, string_to_sign)


# ---------------------------------------------------------------------------
# Authorization header
# ---------------------------------------------------------------------------


def format_authorization_header(
    access_key_id: str,
    scope: str,
    signed_headers: str,
    signature_hex: str,
) -> str:
    """Format the ``Authorization`` header value."""
    return (
        f"{ALGORITHM} "
        f"Credential={access_key_id}/{scope}, "
        f"SignedHeaders={signed_headers}, "
        f"Signature={signature_hex}"
    )


def write_authorization_header(
    output: bytearray | memoryview,
    header: str,
    output_length: int | None = None,
) -> int:
    """Copy a header value into a caller buffer, all or nothing.

    Args:
        output: Writable destination.
        header: Header value to write.
        output_length: Usable capacity.  Defaults to ``len(output)``.

    Returns:
        Number of bytes written.

    Raises:
        BufferTooSmallError: The header does not fit.  Nothing is written.
    """
    if output_length is None:
        output_length = len(output)
    if output_length < 0 or output_length > len(output):
        raise BadParameterError(
            f"Output length {output_length} out of range for buffer of "
            f"size {len(output)}"
        )
    try:
        data = header.encode("ascii")
    except UnicodeEncodeError as e:
        raise BadParameterError(f"Header value must be ASCII: {e}") from e
    if len(data) > output_length:
        raise BufferTooSmallError(
            f"Authorization header needs {len(data)} bytes, "
            f"got {output_length}",
            required=len(data),
            capacity=output_length,
        )
    output[: len(data)] = data
    return len(data)


def generate_authorization_header(
    request: CanonicalRequest,
    credentials: Credentials,
    region: str,
    date: str,
    *,
    service: str = KVS_SERVICE_NAME,
    output: bytearray | memoryview | None = None,
    output_length: int | None = None,
) -> AuthorizationHeader:
    """Sign a request and assemble its ``Authorization`` header.

    Pure function of its inputs: identical arguments give identical
    output.

    Args:
        request: Request to sign.
        credentials: Signing credentials.
        region: AWS region.
        date: ISO-8601 basic timestamp of the request (the value sent as
            ``x-amz-date``).
        service: Signing service name.
        output: Optional buffer that receives the header value.
        output_length: Usable capacity of ``output``.

    Returns:
        The header value, the signature and the signing intermediates.

    Raises:
        BadParameterError: Missing credentials, region or a malformed
            date or request.
        SigningError: An HMAC step failed.
        BufferTooSmallError: ``output`` cannot hold the header.
    """
    if request is None or credentials is None:
        raise BadParameterError("Request and credentials are required")
    if not credentials.access_key_id or not credentials.secret_access_key:
        raise BadParameterError("Access key ID and secret key are required")

    context = SigningContext(region=region, timestamp=date, service=service)
    creq = build_canonical_request(request)
    signed_headers = signed_header_names(request.canonical_headers)
    scope = context.credential_scope
    string_to_sign = build_string_to_sign(context.timestamp, scope, creq)

    signing_key = derive_signing_key(
        credentials.secret_access_key, context.date, region, service
    )
    signature = compute_signature(signing_key, string_to_sign)
    signature_hex = signature.hex()

    value = format_authorization_header(
        credentials.access_key_id, scope, signed_headers, signature_hex
    )
    if not value.isascii():
        raise BadParameterError(
            "Access key ID and scope must be ASCII to form a header"
        )
    if output is not None:
        write_authorization_header(output, value, output_length)

    logger.debug(
        "Signed %s request, scope=%s, signed_headers=%s",
        request.verb.token,
        scope,
        signed_headers,
    )
    return AuthorizationHeader(
        value=value,
        signature=signature,
        signature_hex=signature_hex,
        signature_offset=len(value) - len(signature_hex),
        signed_headers=signed_headers,
        credential_scope=scope,
        canonical_request=creq,
        string_to_sign=string_to_sign,
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedAuth:
    """Fields of a SigV4 ``Authorization`` header."""

    algorithm: str
    key_id: str
    scope: str
    signed_headers: str
    signature: str

    @property
    def scope_parts(self) -> list[str]:
        """Scope split into date, region, service and terminator."""
        return self.scope.split("/")

    @property
    def date(self) -> str:
        """Date from the credential scope (``YYYYMMDD``)."""
        return self.scope_parts[0]


def parse_authorization_header(value: str) -> ParsedAuth | None:
    """Parse a SigV4 ``Authorization`` header value.

    Returns:
        ParsedAuth, or None if the value is not a SigV4 header.
    """
    m = _AUTH_HEADER_RE.match(value.strip())
    if not m:
        return None
    return ParsedAuth(
        algorithm=m.group("algorithm"),
        key_id=m.group("key_id"),
        scope=m.group("scope"),
        signed_headers=m.group("signed_headers"),
        signature=m.group("signature"),
    )
