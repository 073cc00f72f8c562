# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for kvsauth/logging.py."""

import logging

from kvsauth.logging import SecretFilter, configure_logging, get_logger


def _record(msg: str, args: tuple = ()) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestSecretFilter:
    """Tests for SecretFilter class."""

    def setup_method(self) -> None:
        """Clear secrets before each test."""
        SecretFilter.clear_secrets()

    def teardown_method(self) -> None:
        """Clear secrets after each test."""
        SecretFilter.clear_secrets()

    def test_filter_returns_true(self) -> None:
        """Filter should always return True (never suppress records)."""
        assert SecretFilter().filter(_record("test message")) is True

    def test_no_secrets_no_redaction(self) -> None:
        """Without registered secrets, messages pass through unchanged."""
        record = _record("signing with AKIDEXAMPLE")
        SecretFilter().filter(record)
        assert record.msg == "signing with AKIDEXAMPLE"

    def test_redacts_secret_access_key(self) -> None:
        """Registered secret keys are redacted from messages."""
        SecretFilter.register_secret("wJalrXUtnFEMI/K7MDENG")
        record = _record("secret=wJalrXUtnFEMI/K7MDENG")
        SecretFilter().filter(record)
        assert record.msg == "secret=[REDACTED]"

    def test_redacts_in_args(self) -> None:
        """Secrets in log args are also redacted."""
        SecretFilter.register_secret("session-token-value")
        record = _record("token %s, count %d", ("session-token-value", 3))
        SecretFilter().filter(record)
        assert record.args == ("[REDACTED]", 3)

    def test_longer_secret_replaced_whole(self) -> None:
        """A secret containing another secret is replaced in full."""
        SecretFilter.register_secret("abc")
        SecretFilter.register_secret("abcdef")
        record = _record("value abcdef")
        SecretFilter().filter(record)
        assert record.msg == "value [REDACTED]"

    def test_ignores_empty_and_none(self) -> None:
        """Empty strings and None are not registered."""
        SecretFilter.register_secret("")
        SecretFilter.register_secret(None)
        assert len(SecretFilter._secrets) == 0
        assert SecretFilter._pattern is None

    def test_clear_secrets(self) -> None:
        """clear_secrets removes all registered secrets."""
        SecretFilter.register_secret("secret1")
        SecretFilter.clear_secrets()
        assert len(SecretFilter._secrets) == 0
        assert SecretFilter._pattern is None

    def test_rebuild_pattern_with_empty_secrets(self) -> None:
        """_rebuild_pattern sets pattern to None when secrets empty."""
        SecretFilter._rebuild_pattern()
        assert SecretFilter._pattern is None

    def test_redacts_special_regex_chars(self) -> None:
        """Secrets with regex special characters are escaped properly."""
        SecretFilter.register_secret("k+y/[a].*")
        record = _record("Secret: k+y/[a].*")
        SecretFilter().filter(record)
        assert record.msg == "Secret: [REDACTED]"

    def test_redact_text(self) -> None:
        """redact() applies the same replacement to arbitrary text."""
        SecretFilter.register_secret("hunter2")
        assert SecretFilter.redact("pw hunter2!") == "pw [REDACTED]!"

    def test_redact_without_secrets(self) -> None:
        """redact() is a no-op with nothing registered."""
        assert SecretFilter.redact("plain") == "plain"


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def teardown_method(self) -> None:
        """Reset logging after each test."""
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.WARNING)
        SecretFilter.clear_secrets()

    def test_sets_log_level(self) -> None:
        """configure_logging sets the root logger level."""
        configure_logging(level=logging.DEBUG)
        assert logging.getLogger().level == logging.DEBUG

    def test_adds_handler(self) -> None:
        """configure_logging adds a stream handler."""
        configure_logging()
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_custom_format(self) -> None:
        """configure_logging accepts a custom format string."""
        configure_logging(format_string="%(message)s")
        formatter = logging.getLogger().handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == "%(message)s"

    def test_adds_secret_filter_by_default(self) -> None:
        """Secret filter is added by default."""
        configure_logging()
        filters = logging.getLogger().handlers[0].filters
        assert any(isinstance(f, SecretFilter) for f in filters)

    def test_can_disable_secret_filter(self) -> None:
        """Secret filter can be disabled."""
        configure_logging(add_secret_filter=False)
        filters = logging.getLogger().handlers[0].filters
        assert not any(isinstance(f, SecretFilter) for f in filters)

    def test_removes_existing_handlers(self) -> None:
        """Calling configure_logging twice does not duplicate handlers."""
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_logger(self) -> None:
        """get_logger returns a Logger instance."""
        logger = get_logger("kvsauth.test")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "kvsauth.test"
