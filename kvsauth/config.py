# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Signer configuration.

Configuration is loaded from a YAML file.  The default location follows
the XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/kvsauth/kvsauth.yaml``
    (typically ``~/.config/kvsauth/kvsauth.yaml``)

``!env VAR_NAME`` tags resolve values from environment variables, so
credentials can stay out of the file::

    region: us-west-2
    endpoint: https://kinesisvideo.us-west-2.amazonaws.com
    credentials:
      access_key_id: !env AWS_ACCESS_KEY_ID
      secret_access_key: !env AWS_SECRET_ACCESS_KEY
      session_token: !env AWS_SESSION_TOKEN

Loaded secrets are registered with ``SecretFilter`` so they never appear
in log output.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_path

from kvsauth.dotenv_loader import load_dotenv_once
from kvsauth.errors import KvsAuthError
from kvsauth.logging import SecretFilter
from kvsauth.presign import DEFAULT_EXPIRES_SECONDS, MAX_EXPIRES_SECONDS
from kvsauth.sigv4 import KVS_SERVICE_NAME, Credentials
from kvsauth.url import get_url_host


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "kvsauth"


def get_config_path() -> Path:
    """Return the default config file path.

    Uses XDG: ``$XDG_CONFIG_HOME/kvsauth/kvsauth.yaml``.
    """
    return user_config_path(_APP_NAME) / "kvsauth.yaml"


def get_dotenv_path() -> Path:
    """Return the ``.env`` path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


class ConfigError(Exception):
    """Base exception for configuration errors."""


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is not set.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name)
    if value is None:
        return None
    return str(value)


_MISSING = object()


def _resolve(
    value: object,
    coerce: type[Any],
    *,
    default: object = _MISSING,
    required: str = "",
) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str`` or ``int``).
        default: Default when the value is absent.
        required: Human-readable field name.  When set, a missing or
            empty value raises ``ConfigError``.

    Returns:
        The resolved, coerced value, or None when optional and absent.
    """
    if (
        not isinstance(value, _EnvVar)
        and value is not None
        and isinstance(value, coerce)
        and not isinstance(value, bool)
    ):
        resolved: Any = value
    else:
        resolved = _raw_resolve(value)

    if resolved is None or resolved == "":
        if required:
            if isinstance(value, _EnvVar):
                raise ConfigError(
                    f"Required config '{required}': environment variable "
                    f"'{value.var_name}' is not set"
                )
            raise ConfigError(f"Required config '{required}' is missing")
        if default is not _MISSING:
            return default
        return None

    try:
        return coerce(resolved)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"Cannot convert {resolved!r} to {coerce.__name__}"
        ) from e


# ---------------------------------------------------------------------------
# Signer configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignerConfig:
    """Complete signer configuration.

    Attributes:
        region: AWS region used in the credential scope.
        endpoint: Signaling endpoint URL (``https://`` or ``wss://``).
        credentials: Credentials used to sign.
        service: Signing service name.
        presign_expires: Validity of presigned URLs in seconds.
    """

    region: str
    endpoint: str
    credentials: Credentials
    service: str = KVS_SERVICE_NAME
    presign_expires: int = DEFAULT_EXPIRES_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration and register secrets for redaction.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if not self.region:
            raise ConfigError("region must not be empty")
        if not self.service:
            raise ConfigError("service must not be empty")
        try:
            get_url_host(self.endpoint)
        except KvsAuthError as e:
            raise ConfigError(f"Invalid endpoint {self.endpoint!r}: {e}") from e
        if not 1 <= self.presign_expires <= MAX_EXPIRES_SECONDS:
            raise ConfigError(
                f"presign_expires must be between 1 and "
                f"{MAX_EXPIRES_SECONDS}: {self.presign_expires}"
            )

        SecretFilter.register_secret(self.credentials.secret_access_key)
        SecretFilter.register_secret(self.credentials.session_token)

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "SignerConfig":
        """Load configuration from a YAML file.

        A ``.env`` file is loaded first if present, then ``!env`` tags are
        resolved from the environment.

        Args:
            config_path: Path to the YAML file.  Defaults to
                ``~/.config/kvsauth/kvsauth.yaml`` (XDG).

        Raises:
            ConfigError: Missing file, non-mapping document, or missing
                or invalid values.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path) as f:
                raw = yaml.load(f, Loader=_make_loader())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        config = cls._from_raw(raw)
        logger.info(
            "Signer config loaded: region=%s, service=%s",
            config.region,
            config.service,
        )
        return config

    @classmethod
    def _from_raw(cls, raw: dict) -> "SignerConfig":
        """Build config from parsed (but unresolved) YAML dict."""
        raw_credentials = raw.get("credentials")
        if not isinstance(raw_credentials, dict):
            raise ConfigError("'credentials' must be a YAML mapping")

        credentials = Credentials(
            access_key_id=_resolve(
                raw_credentials.get("access_key_id"),
                str,
                required="credentials.access_key_id",
            ),
            secret_access_key=_resolve(
                raw_credentials.get("secret_access_key"),
                str,
                required="credentials.secret_access_key",
            ),
            session_token=_resolve(raw_credentials.get("session_token"), str),
        )

        return cls(
            region=_resolve(raw.get("region"), str, required="region"),
            endpoint=_resolve(raw.get("endpoint"), str, required="endpoint"),
            credentials=credentials,
            service=_resolve(
                raw.get("service"), str, default=KVS_SERVICE_NAME
            ),
            presign_expires=_resolve(
                raw.get("presign_expires"),
                int,
                default=DEFAULT_EXPIRES_SECONDS,
            ),
        )
