# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Idempotent ``.env`` loading for credential environment variables.

Config files reference credentials with ``!env`` tags.  Before resolving
them, environment variables are read from two files (in order):

1. ``~/.config/kvsauth/.env`` (XDG config directory)
2. ``.env`` in the current working directory

Variables already in the environment, including those set by the first
file, are **not** overwritten (``python-dotenv`` default).
"""

import logging
from pathlib import Path

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

_dotenv_loaded = False


def load_dotenv_once() -> None:
    """Load the ``.env`` files on first call; later calls do nothing."""
    global _dotenv_loaded
    if _dotenv_loaded:
        return

    from kvsauth.config import get_dotenv_path

    for env_path in (get_dotenv_path(), Path.cwd() / ".env"):
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug("Loaded .env from %s", env_path)

    _dotenv_loaded = True


def reset_dotenv_state() -> None:
    """Reset the loaded flag. For testing only."""
    global _dotenv_loaded
    _dotenv_loaded = False
