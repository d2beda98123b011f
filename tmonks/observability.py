"""Logging set-up for the server.

The session token and cookie value are never logged; only the formatter and
level filter are configured here.
"""

from __future__ import annotations

import logging
import os

ENV_VAR = "TMONKS_LOG"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_installed: logging.Handler | None = None


def _level(name: str) -> int:
    value = logging.getLevelName(name.strip().upper())
    if name.strip().lower() == "trace":
        return logging.DEBUG
    if name.strip().lower() == "off":
        return logging.CRITICAL + 10
    if not isinstance(value, int):
        raise ValueError(f"unknown log level {name!r}")
    return value


def _parse_filter(spec: str) -> dict[str, int]:
    """Parse ``target=level,level`` directives; an empty target is the default."""
    directives: dict[str, int] = {}
    for raw in spec.split(","):
        piece = raw.strip()
        if not piece:
            continue
        target, sep, level = piece.partition("=")
        if sep:
            if not target.strip():
                raise ValueError(f"empty target in directive {piece!r}")
            directives[target.strip()] = _level(level)
        else:
            directives[""] = _level(target)
    if not directives:
        raise ValueError("empty log filter")
    return directives


def init(verbose: bool) -> dict[str, int]:
    """Configure logging to stderr and return the levels applied per logger.

    ``TMONKS_LOG`` overrides the default filter; ``verbose`` upgrades the
    default for this package to debug. An unparseable override falls back to
    the default.
    """
    global _installed

    default = "tmonks=debug,warn" if verbose else "tmonks=info,warn"
    try:
        directives = _parse_filter(os.environ.get(ENV_VAR, ""))
    except ValueError:
        directives = _parse_filter(default)

    root = logging.getLogger()
    if _installed is not None:
        root.removeHandler(_installed)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    _installed = handler

    root.setLevel(directives.get("", logging.ERROR))
    for target, level in directives.items():
        if target:
            logging.getLogger(target).setLevel(level)
    return directives