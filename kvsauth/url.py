# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Host and path extraction from absolute URLs.

Results are ``(start, length)`` offsets into the caller's string or bytes,
so nothing is copied.  Slicing ``url[start:start + length]`` yields the
component.  An explicit length may be passed to restrict parsing to a
prefix of the input.
"""

from __future__ import annotations

from typing import NamedTuple

from kvsauth.errors import (
    BadParameterError,
    InvalidUrlError,
    SchemeDelimiterNotFoundError,
)


_SCHEME_DELIMITER = "://"


class UrlParts(NamedTuple):
    """Decomposed absolute URL.

    Attributes:
        scheme: Scheme before ``://`` (e.g. ``wss``).
        host: Host including any port (e.g. ``example.com:443``).
        path: Path without the query string.  Empty if absent.
        query: Query string without the leading ``?``.
    """

    scheme: str
    host: str
    path: str
    query: str


def _as_text(url: str | bytes, url_length: int | None) -> str:
    if url is None:
        raise BadParameterError("URL is required")
    if url_length is None:
        url_length = len(url)
    if url_length < 0 or url_length > len(url):
        raise BadParameterError(
            f"URL length {url_length} out of range for input of "
            f"length {len(url)}"
        )
    view = url[:url_length]
    if isinstance(view, bytes):
        # latin-1 maps bytes 1:1 so offsets stay byte offsets
        return view.decode("latin-1")
    return view


def _host_end(text: str, start: int) -> int:
    """Return the index one past the last host character."""
    end = len(text)
    i = start
    if i < end and text[i] == "[":
        # IPv6 literal; colons inside the brackets belong to the host
        close = text.find("]", i)
        i = end if close == -1 else close + 1
    while i < end:
        ch = text[i]
        if ch in "/?":
            return i
        if ch == ":":
            j = i + 1
            while j < end and text[j].isdigit():
                j += 1
            if j == i + 1:
                # Not a port: ':' ends the host
                return i
            i = j
            continue
        i += 1
    return end


def _locate_host(text: str) -> tuple[int, int]:
    delimiter = text.find(_SCHEME_DELIMITER)
    if delimiter == -1:
        raise SchemeDelimiterNotFoundError(
            f"No '{_SCHEME_DELIMITER}' in URL: {text!r}"
        )
    start = delimiter + len(_SCHEME_DELIMITER)
    end = _host_end(text, start)
    if end == start:
        raise InvalidUrlError(f"URL has an empty host: {text!r}")
    return start, end - start


def get_url_host(
    url: str | bytes, url_length: int | None = None
) -> tuple[int, int]:
    """Locate the host in an absolute URL.

    The host starts right after the first ``://`` and ends at the first
    ``/``, ``?`` or ``:`` that does not introduce a port number.  A port
    stays part of the host (``example.com:443``).

    Args:
        url: Absolute URL.
        url_length: Number of leading characters to parse.  Defaults to
            the whole input.

    Returns:
        ``(host_start, host_length)``.

    Raises:
        SchemeDelimiterNotFoundError: No ``://`` in the URL.
        InvalidUrlError: The host is empty.
        BadParameterError: ``url_length`` is out of range.
    """
    return _locate_host(_as_text(url, url_length))


def get_path_from_url(
    url: str | bytes, url_length: int | None = None
) -> tuple[int, int]:
    """Locate the path (with any query string) in an absolute URL.

    The path starts at the first ``/`` after the host and runs to the end
    of the input.  If there is no such ``/`` the path is empty and
    ``path_start`` points at the end of the input.  No percent-decoding is
    performed.

    Raises:
        SchemeDelimiterNotFoundError: No ``://`` in the URL.
        InvalidUrlError: The host is empty.
        BadParameterError: ``url_length`` is out of range.
    """
    text = _as_text(url, url_length)
    host_start, host_length = _locate_host(text)
    slash = text.find("/", host_start + host_length)
    if slash == -1:
        return len(text), 0
    return slash, len(text) - slash


def split_url(url: str) -> UrlParts:
    """Split an absolute URL into scheme, host, path and query.

    A ``#fragment`` is dropped; it is never sent to the server.
    """
    url = url.partition("#")[0]
    host_start, host_length = get_url_host(url)
    path_start, path_length = get_path_from_url(url)
    host = url[host_start : host_start + host_length]
    scheme = url[: host_start - len(_SCHEME_DELIMITER)]

    # A query can follow the host directly ("https://h?x=1")
    rest_start = host_start + host_length
    if rest_start < len(url) and url[rest_start] == "?":
        rest = url[rest_start:]
    else:
        rest = url[path_start : path_start + path_length]

    path, _, query = rest.partition("?")
    return UrlParts(scheme=scheme, host=host, path=path, query=query)
