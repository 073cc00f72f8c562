# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Time sources and timestamp conversions used by SigV4.

SigV4 needs the current UTC time in ISO-8601 basic format
(``YYYYMMDDTHHMMSSZ``).  Devices without a battery-backed clock learn the
time once from a sync source (SNTP) and extrapolate with a free-running
counter; ``TickClock`` models that.  Every function that reads the time
takes a ``Clock`` so signing code never depends on a platform global.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from kvsauth.errors import (
    BadParameterError,
    BufferTooSmallError,
    MalformedInputError,
    Result,
)


logger = logging.getLogger(__name__)

#: Visible length of ``YYYYMMDDTHHMMSSZ``.
ISO8601_LENGTH = 16

#: Buffer capacity required by ``get_iso8601_current_time`` (with NUL).
ISO8601_BUFFER_LENGTH = ISO8601_LENGTH + 1

#: Seconds between the NTP epoch (1900-01-01) and the Unix epoch.
NTP_EPOCH_OFFSET_SECONDS = 2_208_988_800

_US_PER_SECOND = 1_000_000
_ISO8601_FORMAT = "%Y%m%dT%H%M%SZ"
_ISO8601_RE = re.compile(
    r"(?P<year>[0-9]{4})(?P<month>[0-9]{2})(?P<day>[0-9]{2})"
    r"T(?P<hour>[0-9]{2})(?P<minute>[0-9]{2})(?P<second>[0-9]{2})Z"
)
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------


class Clock(Protocol):
    """Source of the current UTC time."""

    def now_us(self) -> int:
        """Return microseconds since the Unix epoch."""
        ...


class SystemClock:
    """Clock backed by the host's wall-clock time."""

    def now_us(self) -> int:
        return time.time_ns() // 1000


class TickClock:
    """Clock for devices that have a tick counter but no real-time clock.

    The clock is anchored to a reference epoch time (typically obtained
    via SNTP) captured together with a reading of the tick counter.  The
    current time is the reference plus the ticks elapsed since.  Readings
    never decrease, including across ``resync`` calls that move the
    reference backwards.

    Args:
        reference_epoch_us: Epoch time in microseconds at the moment of
            construction.
        ticks_ns: Monotonic nanosecond counter.  Defaults to
            ``time.monotonic_ns``.
    """

    def __init__(
        self,
        reference_epoch_us: int,
        ticks_ns: Callable[[], int] = time.monotonic_ns,
    ) -> None:
        if reference_epoch_us < 0:
            raise BadParameterError(
                f"Reference epoch must be >= 0: {reference_epoch_us}"
            )
        self._ticks_ns = ticks_ns
        self._lock = threading.Lock()
        self._reference_us = reference_epoch_us
        self._reference_tick_ns = ticks_ns()
        self._last_us = reference_epoch_us

    def now_us(self) -> int:
        with self._lock:
            elapsed_us = (self._ticks_ns() - self._reference_tick_ns) // 1000
            current = self._reference_us + max(elapsed_us, 0)
            if current < self._last_us:
                current = self._last_us
            self._last_us = current
            return current

    def resync(self, reference_epoch_us: int) -> None:
        """Apply a new time-sync reference.

        If the new reference is behind the last reported time, the clock
        holds at the last reported time until the reference catches up.
        """
        if reference_epoch_us < 0:
            raise BadParameterError(
                f"Reference epoch must be >= 0: {reference_epoch_us}"
            )
        with self._lock:
            drift_us = reference_epoch_us - self._last_us
            self._reference_us = reference_epoch_us
            self._reference_tick_ns = self._ticks_ns()
        logger.debug("Clock resynced, drift %d us", drift_us)


_SYSTEM_CLOCK = SystemClock()


def get_current_time_us(clock: Clock | None = None) -> int:
    """Return the current UTC time in microseconds since the epoch."""
    return (clock or _SYSTEM_CLOCK).now_us()


def get_current_time_sec(clock: Clock | None = None) -> int:
    """Return the current UTC time in whole seconds since the epoch."""
    return get_current_time_us(clock) // _US_PER_SECOND


# ---------------------------------------------------------------------------
# ISO-8601 basic format
# ---------------------------------------------------------------------------


def format_iso8601(epoch_seconds: int) -> str:
    """Format epoch seconds as ``YYYYMMDDTHHMMSSZ``.

    Raises:
        BadParameterError: If the time is negative or past year 9999.
    """
    if epoch_seconds < 0:
        raise BadParameterError(f"Epoch seconds must be >= 0: {epoch_seconds}")
    try:
        moment = datetime.fromtimestamp(epoch_seconds, UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise BadParameterError(
            f"Epoch seconds out of range: {epoch_seconds}"
        ) from e
    return moment.strftime(_ISO8601_FORMAT)


def get_time_from_iso8601(
    date: str | bytes, date_length: int | None = None
) -> int:
    """Parse ``YYYYMMDDTHHMMSSZ`` into epoch seconds.

    Exact inverse of ``format_iso8601``.

    Args:
        date: Timestamp text.
        date_length: Number of leading characters to parse.  Defaults to
            the whole input.

    Raises:
        MalformedInputError: Wrong length, non-digit fields, missing
            ``T``/``Z``, invalid calendar values, or a time before the
            Unix epoch.
    """
    if date_length is None:
        date_length = len(date)
    if date_length < 0 or date_length > len(date):
        raise BadParameterError(
            f"Date length {date_length} out of range for input of "
            f"length {len(date)}"
        )
    text = date[:date_length]
    if isinstance(text, bytes):
        text = text.decode("latin-1")

    m = _ISO8601_RE.fullmatch(text)
    if m is None:
        raise MalformedInputError(
            f"Not an ISO-8601 basic timestamp: {text!r}"
        )
    try:
        moment = datetime(
            int(m.group("year")),
            int(m.group("month")),
            int(m.group("day")),
            int(m.group("hour")),
            int(m.group("minute")),
            int(m.group("second")),
            tzinfo=UTC,
        )
    except ValueError as e:
        raise MalformedInputError(f"Invalid timestamp {text!r}: {e}") from e

    if moment < _EPOCH:
        raise MalformedInputError(f"Timestamp before Unix epoch: {text!r}")
    return int((moment - _EPOCH).total_seconds())


def get_iso8601_current_time(
    buffer: bytearray | memoryview,
    buffer_length: int | None = None,
    *,
    clock: Clock | None = None,
) -> int:
    """Write the current UTC time as a NUL-terminated ISO-8601 string.

    Args:
        buffer: Writable destination.
        buffer_length: Usable capacity.  Defaults to ``len(buffer)``.
        clock: Time source.  Defaults to the system clock.

    Returns:
        Number of visible characters written (always 16).

    Raises:
        BufferTooSmallError: Capacity is below 17 bytes.  Nothing is
            written.
    """
    if buffer_length is None:
        buffer_length = len(buffer)
    if buffer_length < 0 or buffer_length > len(buffer):
        raise BadParameterError(
            f"Buffer length {buffer_length} out of range for buffer of "
            f"size {len(buffer)}"
        )
    if buffer_length < ISO8601_BUFFER_LENGTH:
        raise BufferTooSmallError(
            f"Time buffer needs {ISO8601_BUFFER_LENGTH} bytes, "
            f"got {buffer_length}",
            required=ISO8601_BUFFER_LENGTH,
            capacity=buffer_length,
            result=Result.TIME_BUFFER_OUT_OF_MEMORY,
        )
    text = format_iso8601(get_current_time_sec(clock))
    buffer[:ISO8601_LENGTH] = text.encode("ascii")
    buffer[ISO8601_LENGTH] = 0
    return ISO8601_LENGTH


def current_iso8601(clock: Clock | None = None) -> str:
    """Return the current UTC time as ``YYYYMMDDTHHMMSSZ``."""
    return format_iso8601(get_current_time_sec(clock))


# ---------------------------------------------------------------------------
# NTP
# ---------------------------------------------------------------------------


def get_ntp_time_from_unix_time_us(unix_time_us: int) -> int:
    """Convert Unix microseconds to a 64-bit NTP timestamp.

    The high 32 bits hold seconds since 1900-01-01 (wrapping at the NTP
    era boundary), the low 32 bits the fraction of a second scaled to
    2**32.

    Raises:
        BadParameterError: If the time is negative.
    """
    if unix_time_us < 0:
        raise BadParameterError(f"Unix time must be >= 0: {unix_time_us}")
    seconds, micros = divmod(unix_time_us, _US_PER_SECOND)
    ntp_seconds = (seconds + NTP_EPOCH_OFFSET_SECONDS) & 0xFFFFFFFF
    fraction = (micros << 32) // _US_PER_SECOND
    return (ntp_seconds << 32) | fraction


# ---------------------------------------------------------------------------
# Clock skew detection
# ---------------------------------------------------------------------------


def check_clock_skew(
    amz_date: str,
    *,
    clock: Clock | None = None,
    tolerance_minutes: int = 5,
) -> tuple[bool, int]:
    """Compare a reference timestamp against the local clock.

    AWS rejects signatures whose timestamp is more than five minutes off.
    The signaling layer uses this to decide whether to resync the clock
    before retrying.

    Args:
        amz_date: Reference ISO-8601 basic timestamp.
        clock: Local time source.
        tolerance_minutes: Allowed drift.

    Returns:
        ``(is_skewed, drift_minutes)``.  Unparseable input yields
        ``(False, 0)``.
    """
    try:
        reference = get_time_from_iso8601(amz_date)
    except (MalformedInputError, BadParameterError, TypeError):
        return False, 0
    drift_minutes = abs(get_current_time_sec(clock) - reference) // 60
    return drift_minutes > tolerance_minutes, drift_minutes
