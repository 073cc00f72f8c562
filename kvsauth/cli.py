# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""kvsauth CLI: multi-command entry point.

Subcommands:

* ``time``    print the current ISO-8601, epoch and NTP time
* ``sign``    print the SigV4 headers for an HTTP request
* ``presign`` print a presigned WebSocket URL
* ``verify``  parse an Authorization header and print its fields

``sign`` and ``presign`` read region and credentials from the config
file (see ``kvsauth.config``).
"""

from __future__ import annotations

import argparse
import logging
import sys
import urllib.parse
from pathlib import Path

from kvsauth.config import ConfigError, SignerConfig
from kvsauth.errors import KvsAuthError
from kvsauth.logging import SecretFilter, configure_logging, get_logger
from kvsauth.presign import presign_websocket_url
from kvsauth.sigv4 import (
    CanonicalRequest,
    Verb,
    canonical_headers,
    canonical_query_string,
    canonical_uri,
    generate_authorization_header,
    parse_authorization_header,
)
from kvsauth.timeutil import (
    current_iso8601,
    get_current_time_us,
    get_ntp_time_from_unix_time_us,
)
from kvsauth.url import split_url


logger = get_logger(__name__)

_SUBCOMMANDS = frozenset({"time", "sign", "presign", "verify"})

_USAGE = """\
usage: kvsauth <command> [args]

commands:
  time      Print the current ISO-8601, epoch and NTP time
  sign      Print SigV4 headers for an HTTP request
  presign   Print a presigned WebSocket URL
  verify    Parse an Authorization header

Run 'kvsauth <command> --help' for command-specific help.\
"""

_DISPATCH = {
    "time": "cmd_time",
    "sign": "cmd_sign",
    "presign": "cmd_presign",
    "verify": "cmd_verify",
}


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to kvsauth.yaml (default: XDG config directory)",
    )
    parser.add_argument("--region", help="Override the configured region")
    parser.add_argument(
        "--date",
        metavar="YYYYMMDDTHHMMSSZ",
        help="Signing timestamp (default: now)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )


def _split_pair(value: str, separator: str) -> tuple[str, str]:
    name, sep, rest = value.partition(separator)
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(
            f"expected NAME{separator}VALUE, got {value!r}"
        )
    return name.strip(), rest.strip()


def _header_arg(value: str) -> tuple[str, str]:
    return _split_pair(value, ":")


def _param_arg(value: str) -> tuple[str, str]:
    return _split_pair(value, "=")


def _fail(message: str) -> int:
    print(f"kvsauth: error: {SecretFilter.redact(message)}", file=sys.stderr)
    return 1


def cmd_time(argv: list[str]) -> int:
    """Print the current time in the formats SigV4 and NTP use.

    Returns:
        Exit code (always 0).
    """
    parser = argparse.ArgumentParser(
        prog="kvsauth time", description="Print the current time"
    )
    parser.parse_args(argv)

    now_us = get_current_time_us()
    print(f"iso8601: {current_iso8601()}")
    print(f"epoch:   {now_us // 1_000_000}")
    print(f"ntp:     0x{get_ntp_time_from_unix_time_us(now_us):016x}")
    return 0


def cmd_sign(argv: list[str]) -> int:
    """Print the headers that authorize an HTTP request.

    Returns:
        Exit code: 0 on success, 1 on configuration or signing errors.
    """
    parser = argparse.ArgumentParser(
        prog="kvsauth sign", description="Print SigV4 request headers"
    )
    parser.add_argument("url", help="Absolute request URL")
    parser.add_argument(
        "--method",
        choices=["GET", "POST", "WSS"],
        default="POST",
        help="Request verb (default: POST)",
    )
    parser.add_argument("--data", default=None, help="Request body")
    parser.add_argument(
        "--header",
        type=_header_arg,
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra header to sign (repeatable)",
    )
    _add_common_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.WARNING)

    try:
        config = SignerConfig.from_yaml(args.config)
        region = args.region or config.region
        date = args.date or current_iso8601()
        parts = split_url(args.url)

        headers = {"host": parts.host, "x-amz-date": date}
        if config.credentials.session_token:
            headers["x-amz-security-token"] = config.credentials.session_token
        for name, value in args.header:
            headers[name] = value

        request = CanonicalRequest(
            verb=Verb[args.method],
            path=canonical_uri(parts.path),
            canonical_query_string=canonical_query_string(
                urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
            ),
            canonical_headers=canonical_headers(headers),
            payload=args.data.encode("utf-8") if args.data else None,
        )
        header = generate_authorization_header(
            request,
            config.credentials,
            region,
            date,
            service=config.service,
        )
    except (ConfigError, KvsAuthError) as e:
        return _fail(str(e))

    for name, value in headers.items():
        print(f"{name}: {value}")
    print(f"Authorization: {header.value}")
    return 0


def cmd_presign(argv: list[str]) -> int:
    """Print a presigned WebSocket URL.

    Returns:
        Exit code: 0 on success, 1 on configuration or signing errors.
    """
    parser = argparse.ArgumentParser(
        prog="kvsauth presign", description="Print a presigned URL"
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="WebSocket endpoint (default: configured endpoint)",
    )
    parser.add_argument(
        "--param",
        type=_param_arg,
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Query parameter to sign, e.g. X-Amz-ChannelARN=... "
        "(repeatable)",
    )
    parser.add_argument(
        "--expires", type=int, default=None, help="Validity in seconds"
    )
    _add_common_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.WARNING)

    try:
        config = SignerConfig.from_yaml(args.config)
        presigned = presign_websocket_url(
            args.url or config.endpoint,
            config.credentials,
            args.region or config.region,
            args.date or current_iso8601(),
            query=dict(args.param),
            expires=(
                args.expires
                if args.expires is not None
                else config.presign_expires
            ),
            service=config.service,
        )
    except (ConfigError, KvsAuthError) as e:
        return _fail(str(e))

    print(presigned.url)
    return 0


def cmd_verify(argv: list[str]) -> int:
    """Parse an Authorization header and print its fields.

    Returns:
        Exit code: 0 if the header parses, 1 otherwise.
    """
    parser = argparse.ArgumentParser(
        prog="kvsauth verify", description="Parse an Authorization header"
    )
    parser.add_argument("header", help="Authorization header value")
    args = parser.parse_args(argv)

    parsed = parse_authorization_header(args.header)
    if parsed is None:
        return _fail("not a SigV4 Authorization header")

    date, region, service, _ = (parsed.scope_parts + ["", "", "", ""])[:4]
    print(f"algorithm:      {parsed.algorithm}")
    print(f"access key id:  {parsed.key_id}")
    print(f"date:           {date}")
    print(f"region:         {region}")
    print(f"service:        {service}")
    print(f"signed headers: {parsed.signed_headers}")
    print(f"signature:      {parsed.signature}")
    return 0


def cli() -> None:
    """Entry point for ``kvsauth``."""
    argv = sys.argv[1:]

    if not argv or argv[0] == "--help":
        print(_USAGE)
        sys.exit(0)

    if argv[0] not in _SUBCOMMANDS:
        print(f"kvsauth: unknown command '{argv[0]}'", file=sys.stderr)
        print(_USAGE, file=sys.stderr)
        sys.exit(2)

    command = argv[0]
    rest = argv[1:]

    # Look up handler by name so tests can mock individual commands.
    import kvsauth.cli as _self

    handler = getattr(_self, _DISPATCH[command])
    logger.debug("Running command %s", command)
    sys.exit(handler(rest))
