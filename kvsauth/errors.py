# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Error types for the signing core.

Every failure is raised as a subclass of ``KvsAuthError``.  Each exception
carries a ``result`` code so callers that route on a discriminator (for
example a signaling layer deciding whether to resync the clock and retry)
can do so without matching on exception classes.
"""

from __future__ import annotations

from enum import Enum


class Result(Enum):
    """Result discriminator reported by every failing operation."""

    OK = "ok"
    BAD_PARAMETER = "bad_parameter"
    TIME_BUFFER_OUT_OF_MEMORY = "time_buffer_out_of_memory"
    FAIL_SIGV4_GENAUTH = "fail_sigv4_genauth"
    SCHEMA_DELIMITER_NOT_FOUND = "schema_delimiter_not_found"
    INVALID_URL = "invalid_url"


class KvsAuthError(Exception):
    """Base exception for signing core errors.

    Attributes:
        result: Result code describing the failure.
    """

    default_result = Result.BAD_PARAMETER

    def __init__(self, message: str, *, result: Result | None = None) -> None:
        super().__init__(message)
        self.result = result if result is not None else self.default_result


class BadParameterError(KvsAuthError):
    """Input was missing, empty, or out of range."""


class BufferTooSmallError(BadParameterError):
    """Caller-supplied output buffer cannot hold the full result.

    Retrying with a larger buffer succeeds.  Nothing is written to the
    buffer when this is raised.

    Attributes:
        required: Number of bytes the operation needs.
        capacity: Number of bytes the caller provided.
    """

    def __init__(
        self,
        message: str,
        *,
        required: int,
        capacity: int,
        result: Result | None = None,
    ) -> None:
        super().__init__(message, result=result)
        self.required = required
        self.capacity = capacity


class MalformedInputError(KvsAuthError):
    """A URL or timestamp does not match the expected grammar."""


class SchemeDelimiterNotFoundError(MalformedInputError):
    """URL has no ``://`` scheme delimiter."""

    default_result = Result.SCHEMA_DELIMITER_NOT_FOUND


class InvalidUrlError(MalformedInputError):
    """URL has a scheme delimiter but no host."""

    default_result = Result.INVALID_URL


class SigningError(KvsAuthError):
    """An HMAC or hash step could not complete."""

    default_result = Result.FAIL_SIGV4_GENAUTH
