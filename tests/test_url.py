# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for kvsauth/url.py."""

import pytest

from kvsauth.errors import (
    BadParameterError,
    InvalidUrlError,
    MalformedInputError,
    Result,
    SchemeDelimiterNotFoundError,
)
from kvsauth.url import UrlParts, get_path_from_url, get_url_host, split_url


def _slice(url: str | bytes, span: tuple[int, int]) -> str | bytes:
    start, length = span
    return url[start : start + length]


class TestGetUrlHost:
    """Tests for get_url_host."""

    def test_host_keeps_port(self) -> None:
        """A port number stays part of the host."""
        url = "https://example.com:443/path?q=1"
        assert _slice(url, get_url_host(url)) == "example.com:443"

    def test_offsets_point_into_input(self) -> None:
        """Returned offsets index the caller's string."""
        assert get_url_host("https://example.com/x") == (8, 11)

    def test_host_without_path(self) -> None:
        """Host runs to the end when nothing follows."""
        url = "wss://m-1234.kinesisvideo.us-west-2.amazonaws.com"
        assert (
            _slice(url, get_url_host(url))
            == "m-1234.kinesisvideo.us-west-2.amazonaws.com"
        )

    def test_query_ends_host(self) -> None:
        """'?' terminates the host."""
        url = "https://example.com?x=1"
        assert _slice(url, get_url_host(url)) == "example.com"

    def test_colon_without_port_ends_host(self) -> None:
        """':' not followed by digits terminates the host."""
        url = "https://example.com:abc/x"
        assert _slice(url, get_url_host(url)) == "example.com"

    def test_ipv6_literal(self) -> None:
        """Colons inside brackets belong to the host."""
        url = "http://[::1]:8080/test"
        assert _slice(url, get_url_host(url)) == "[::1]:8080"

    def test_missing_scheme_delimiter(self) -> None:
        """URL without '://' is rejected."""
        with pytest.raises(SchemeDelimiterNotFoundError) as exc_info:
            get_url_host("example.com/path")
        assert exc_info.value.result is Result.SCHEMA_DELIMITER_NOT_FOUND
        assert isinstance(exc_info.value, MalformedInputError)

    def test_empty_host(self) -> None:
        """Empty host is rejected."""
        with pytest.raises(InvalidUrlError) as exc_info:
            get_url_host("https:///path")
        assert exc_info.value.result is Result.INVALID_URL

    def test_empty_host_before_query(self) -> None:
        """Host made empty by '?' is rejected."""
        with pytest.raises(InvalidUrlError):
            get_url_host("https://?x=1")

    def test_bytes_input(self) -> None:
        """Bytes input yields byte offsets."""
        url = b"wss://a.example/c"
        assert _slice(url, get_url_host(url)) == b"a.example"

    def test_explicit_length_limits_parsing(self) -> None:
        """Only the first url_length characters are parsed."""
        url = "https://abc.example.com/xyz"
        assert _slice(url, get_url_host(url, 11)) == "abc"

    def test_length_cuts_delimiter(self) -> None:
        """A length that cuts '://' short loses the delimiter."""
        with pytest.raises(SchemeDelimiterNotFoundError):
            get_url_host("https://abc", 6)

    def test_length_out_of_range(self) -> None:
        """Length longer than the input is a bad parameter."""
        with pytest.raises(BadParameterError):
            get_url_host("https://abc", 100)

    def test_negative_length(self) -> None:
        """Negative length is a bad parameter."""
        with pytest.raises(BadParameterError):
            get_url_host("https://abc", -1)


class TestGetPathFromUrl:
    """Tests for get_path_from_url."""

    def test_path_includes_query(self) -> None:
        """Path runs from the first '/' after the host to the end."""
        url = "https://example.com:443/path?q=1"
        assert _slice(url, get_path_from_url(url)) == "/path?q=1"

    def test_no_path(self) -> None:
        """No '/' after the host gives an empty path at the end."""
        url = "https://example.com"
        assert get_path_from_url(url) == (len(url), 0)

    def test_root_path(self) -> None:
        """A lone '/' is the path."""
        url = "wss://example.com/"
        assert _slice(url, get_path_from_url(url)) == "/"

    def test_no_percent_decoding(self) -> None:
        """Percent escapes are returned untouched."""
        url = "https://example.com/a%20b"
        assert _slice(url, get_path_from_url(url)) == "/a%20b"

    def test_missing_scheme_delimiter(self) -> None:
        """Path lookup fails like host lookup without '://'."""
        with pytest.raises(SchemeDelimiterNotFoundError):
            get_path_from_url("example.com/path")

    def test_explicit_length(self) -> None:
        """Path stops at the explicit length."""
        url = "https://example.com/path/more"
        assert _slice(url, get_path_from_url(url, 24)) == "/path"


class TestSplitUrl:
    """Tests for split_url."""

    def test_full_url(self) -> None:
        """All components are separated."""
        assert split_url("wss://h.example.com:443/v1/ch?X=1&Y=2") == UrlParts(
            scheme="wss",
            host="h.example.com:443",
            path="/v1/ch",
            query="X=1&Y=2",
        )

    def test_query_directly_after_host(self) -> None:
        """Query with no path is still found."""
        assert split_url("https://h.example.com?a=/b") == UrlParts(
            scheme="https", host="h.example.com", path="", query="a=/b"
        )

    def test_host_only(self) -> None:
        """Host-only URL has empty path and query."""
        parts = split_url("https://h.example.com")
        assert parts.path == ""
        assert parts.query == ""

    def test_fragment_dropped(self) -> None:
        """A fragment is not part of the path or query."""
        assert split_url("wss://h.example.com/ch?a=1#frag") == UrlParts(
            scheme="wss", host="h.example.com", path="/ch", query="a=1"
        )

    def test_fragment_after_host(self) -> None:
        """A fragment directly after the host leaves the host intact."""
        parts = split_url("wss://h.example.com#frag")
        assert parts.host == "h.example.com"
        assert parts.path == ""
        assert parts.query == ""
