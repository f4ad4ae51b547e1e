"""
logging_setup.py

One-time python logging configuration for TapDance entrypoints.

Level priority (highest first)
- env TAPDANCE_LOG_LEVEL
- CLI flags --quiet / --debug (when present on the parsed args)
- default: INFO
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional


_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%H:%M:%S"


def _parse_level(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    value = str(text).strip().upper()
    if not value:
        return None
    mapping = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
        "NOTSET": logging.NOTSET,
    }
    return mapping.get(value)


def resolve_level(args: Any = None) -> int:
    quiet = bool(getattr(args, "quiet", False)) if args is not None else False
    debug = bool(getattr(args, "debug", False)) if args is not None else False

    level = logging.INFO
    if quiet:
        level = logging.WARNING
    if debug:
        level = logging.DEBUG

    env_level = _parse_level(os.environ.get("TAPDANCE_LOG_LEVEL"))
    if env_level is not None:
        level = int(env_level)
    return level


def setup_logging(args: Any = None, *, name: str = "tapdance") -> None:
    """Configure python logging once. Later calls are no-ops."""
    root = logging.getLogger()
    if root.handlers:
        return

    level = resolve_level(args)
    logging.basicConfig(level=level, format=_LOG_FORMAT, datefmt=_DATE_FORMAT)

    # Werkzeug logs every controller poll at INFO.
    logging.getLogger("werkzeug").setLevel(max(level, logging.WARNING))

    logging.getLogger(name).debug("logging initialized (level=%s)", logging.getLevelName(level))
