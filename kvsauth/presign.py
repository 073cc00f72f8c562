# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Presigned WebSocket URLs for the signaling channel.

A browser-style WebSocket upgrade cannot carry an ``Authorization``
header, so the signaling endpoint accepts SigV4 in the query string
instead.  The signature covers the ``host`` header and every query
parameter except ``X-Amz-Signature`` itself.
"""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass, field

from kvsauth.errors import BadParameterError
from kvsauth.sigv4 import (
    ALGORITHM,
    KVS_SERVICE_NAME,
    CanonicalRequest,
    Credentials,
    SigningContext,
    Verb,
    canonical_headers,
    canonical_query_string,
    canonical_uri,
    generate_authorization_header,
    uri_encode,
)
from kvsauth.url import split_url


logger = logging.getLogger(__name__)

#: Longest validity AWS accepts for a presigned URL (7 days).
MAX_EXPIRES_SECONDS = 604_800

DEFAULT_EXPIRES_SECONDS = 300


@dataclass(frozen=True)
class PresignedUrl:
    """A presigned URL and the pieces it was built from.

    Attributes:
        url: Full URL including ``X-Amz-Signature``.
        signature: Raw 32-byte signature.
        signature_hex: Hex signature placed in the query string.
        canonical_query_string: Signed query string (no signature).
    """

    url: str
    signature: bytes = field(repr=False)
    signature_hex: str
    canonical_query_string: str


def presign_websocket_url(
    endpoint: str,
    credentials: Credentials,
    region: str,
    date: str,
    *,
    query: Mapping[str, str] | None = None,
    expires: int = DEFAULT_EXPIRES_SECONDS,
    service: str = KVS_SERVICE_NAME,
) -> PresignedUrl:
    """Build a presigned URL for a WebSocket upgrade.

    Args:
        endpoint: Absolute ``wss://`` (or ``https://``) endpoint URL.  Any
            query string in it is signed along with ``query``.
        credentials: Signing credentials.
        region: AWS region.
        date: ISO-8601 basic timestamp of the request.
        query: Extra query parameters such as ``X-Amz-ChannelARN`` and
            ``X-Amz-ClientId``.
        expires: Validity of the URL in seconds.
        service: Signing service name.

    Returns:
        The presigned URL and its signature.

    Raises:
        BadParameterError: Invalid expiry, or a caller parameter that
            collides with a signing parameter.
        MalformedInputError: ``endpoint`` is not an absolute URL.
    """
    if not 1 <= expires <= MAX_EXPIRES_SECONDS:
        raise BadParameterError(
            f"Expiry must be between 1 and {MAX_EXPIRES_SECONDS}s: {expires}"
        )
    if credentials is None:
        raise BadParameterError("Credentials are required")

    parts = split_url(endpoint)
    context = SigningContext(region=region, timestamp=date, service=service)

    params = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    for name, value in (query or {}).items():
        params.append((name, str(value)))

    signing_params = {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": (
            f"{credentials.access_key_id}/{context.credential_scope}"
        ),
        "X-Amz-Date": context.timestamp,
        "X-Amz-Expires": str(expires),
        "X-Amz-SignedHeaders": "host",
    }
    if credentials.session_token:
        signing_params["X-Amz-Security-Token"] = credentials.session_token

    collisions = {name for name, _ in params} & (
        set(signing_params) | {"X-Amz-Signature"}
    )
    if collisions:
        raise BadParameterError(
            f"Query parameters reserved for signing: {sorted(collisions)}"
        )
    params.extend(signing_params.items())

    query_string = canonical_query_string(params)
    request = CanonicalRequest(
        verb=Verb.WSS,
        path=canonical_uri(parts.path),
        canonical_query_string=query_string,
        canonical_headers=canonical_headers({"host": parts.host}),
    )
    header = generate_authorization_header(
        request, credentials, region, date, service=service
    )

    url = (
        f"{parts.scheme}://{parts.host}{parts.path or '/'}?{query_string}"
        f"&X-Amz-Signature={uri_encode(header.signature_hex)}"
    )
    logger.debug(
        "Presigned %s://%s%s, expires=%ds",
        parts.scheme,
        parts.host,
        parts.path or "/",
        expires,
    )
    return PresignedUrl(
        url=url,
        signature=header.signature,
        signature_hex=header.signature_hex,
        canonical_query_string=query_string,
    )
