# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""SigV4 authentication for Kinesis Video Streams signaling clients.

Produces ``Authorization`` headers and presigned WebSocket URLs without a
cloud SDK, plus the URL and time helpers signing depends on.
"""

from kvsauth.errors import (
    BadParameterError,
    BufferTooSmallError,
    InvalidUrlError,
    KvsAuthError,
    MalformedInputError,
    Result,
    SchemeDelimiterNotFoundError,
    SigningError,
)
from kvsauth.presign import PresignedUrl, presign_websocket_url
from kvsauth.sigv4 import (
    AuthorizationHeader,
    CanonicalRequest,
    Credentials,
    Verb,
    generate_authorization_header,
)


__version__ = "0.1.0"
__all__ = [
    "AuthorizationHeader",
    "BadParameterError",
    "BufferTooSmallError",
    "CanonicalRequest",
    "Credentials",
    "InvalidUrlError",
    "KvsAuthError",
    "MalformedInputError",
    "PresignedUrl",
    "Result",
    "SchemeDelimiterNotFoundError",
    "SigningError",
    "Verb",
    "generate_authorization_header",
    "presign_websocket_url",
]
