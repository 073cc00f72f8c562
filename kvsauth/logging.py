# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Log setup for the kvsauth entry points.

Signing handles two values that must stay out of any log stream: the
secret access key and the STS session token.  ``SignerConfig`` hands both
to ``SecretFilter.register_secret`` when it is built; the handler that
``configure_logging`` installs scrubs them from every record before it is
formatted.  ``SecretFilter.redact`` applies the same scrubbing to text
that is printed directly, such as CLI error messages.

Library modules only create their logger and never configure handlers::

    logger = logging.getLogger(__name__)
"""

import logging
import re
from typing import ClassVar


_REDACTED = "[REDACTED]"


class SecretFilter(logging.Filter):
    """Scrubs registered credential values from log records.

    Secrets live in one process-wide registry, so a key registered by
    the config loader is hidden by every handler that carries an
    instance of this filter, whenever the instance was created.
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def filter(self, record: logging.LogRecord) -> bool:
        """Rewrite the record's message and string arguments.

        Never drops a record.
        """
        if self._pattern is None:
            return True
        record.msg = self.redact(str(record.msg))
        if record.args:
            record.args = tuple(
                self.redact(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True

    @classmethod
    def register_secret(cls, secret: str | None) -> None:
        """Add a credential value to the registry.

        Optional credentials arrive as None or ``""``; those are skipped.
        """
        if not secret:
            return
        cls._secrets.add(secret)
        cls._rebuild_pattern()

    @classmethod
    def redact(cls, text: str) -> str:
        """Replace every registered value in ``text`` with ``[REDACTED]``."""
        if cls._pattern is None:
            return text
        return cls._pattern.sub(_REDACTED, text)

    @classmethod
    def clear_secrets(cls) -> None:
        """Empty the registry."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _rebuild_pattern(cls) -> None:
        if not cls._secrets:
            cls._pattern = None
            return
        # Longest first: a session token may contain a shorter secret.
        ordered = sorted(cls._secrets, key=len, reverse=True)
        cls._pattern = re.compile("|".join(map(re.escape, ordered)))


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Install a single stderr handler on the root logger.

    Handlers left by an earlier call are removed, so the CLI can call
    this once per command.

    Args:
        level: Level for the root logger.
        format_string: ``logging.Formatter`` format.  When None, records
            show time, logger name, level and message.
        add_secret_filter: Attach ``SecretFilter`` to the new handler.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            format_string
            or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )
    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Shorthand for ``logging.getLogger`` used by the CLI module."""
    return logging.getLogger(name)
