"""Root logger setup for the CLI.

``DEEDSYNC_LOG_LEVEL`` (a name such as ``DEBUG`` or a number) wins over
everything else; a truthy ``DEEDSYNC_DEBUG`` or ``DEEDSYNC_DEBUG_LOGGING``
forces DEBUG when no explicit level is set.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "DEEDSYNC_LOG_LEVEL"
DEBUG_ENVS = ("DEEDSYNC_DEBUG", "DEEDSYNC_DEBUG_LOGGING")
_TRUTHY = {"1", "true", "yes", "on"}


def parse_level(value: int | str | None, default: int = logging.INFO) -> int:
    if isinstance(value, int):
        return value
    text = (value or "").strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper()) if text else None
    return level if isinstance(level, int) else default


def env_level(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """Level forced by the environment, ``None`` when nothing is set."""
    env = os.environ if environ is None else environ
    explicit = env.get(LEVEL_ENV)
    if explicit:
        return parse_level(explicit)
    if any((env.get(name) or "").strip().lower() in _TRUTHY for name in DEBUG_ENVS):
        return logging.DEBUG
    return None


def configure_root(default_level: int | str = logging.INFO) -> int:
    """Install a stream handler once and set the root level; returns the level."""
    level = env_level()
    if level is None:
        level = parse_level(default_level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(level)
    return level


def apply_preferences(debug_enabled: bool) -> int:
    """Apply the saved ``debug_logging`` preference unless the environment overrides it."""
    level = env_level()
    if level is None:
        level = logging.DEBUG if debug_enabled else logging.INFO
    logging.getLogger().setLevel(level)
    return level


def env_requests_debug() -> bool:
    level = env_level()
    return level is not None and level <= logging.DEBUG
