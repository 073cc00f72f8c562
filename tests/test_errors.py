# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for kvsauth/errors.py."""

import pytest

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


class TestResultCodes:
    """Tests for the result carried by each exception."""

    @pytest.mark.parametrize(
        ("exc_type", "result"),
        [
            (BadParameterError, Result.BAD_PARAMETER),
            (MalformedInputError, Result.BAD_PARAMETER),
            (SchemeDelimiterNotFoundError, Result.SCHEMA_DELIMITER_NOT_FOUND),
            (InvalidUrlError, Result.INVALID_URL),
            (SigningError, Result.FAIL_SIGV4_GENAUTH),
        ],
    )
    def test_default_result(
        self, exc_type: type[KvsAuthError], result: Result
    ) -> None:
        """Each exception type reports its own result code."""
        assert exc_type("boom").result is result

    def test_explicit_result_overrides_default(self) -> None:
        """A result passed at raise time wins."""
        exc = BadParameterError("x", result=Result.TIME_BUFFER_OUT_OF_MEMORY)
        assert exc.result is Result.TIME_BUFFER_OUT_OF_MEMORY

    def test_buffer_too_small_is_bad_parameter(self) -> None:
        """Buffer errors can be caught as bad parameters."""
        exc = BufferTooSmallError("small", required=17, capacity=16)
        assert isinstance(exc, BadParameterError)
        assert exc.result is Result.BAD_PARAMETER
        assert (exc.required, exc.capacity) == (17, 16)
        assert str(exc) == "small"
