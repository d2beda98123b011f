"""Screen-content matchers for the supported agent CLIs.

A matcher returns ``Status.UNKNOWN`` both for an unrecognised command and
for nothing recognisable on screen; the front end renders both with a ``?``.
"""

from __future__ import annotations

import string
from enum import Enum

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


class Status(str, Enum):
    """Inferred state of an agent pane; values are the kebab-case wire names."""

    IDLE = "idle"
    WORKING = "working"
    NEEDS_INPUT = "needs-input"
    IDLE_NOTIFY = "idle-notify"
    UNKNOWN = "unknown"

    def as_str(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


# Calibration versions per matcher; bump alongside the recorded fixtures.
CALIBRATION: tuple[tuple[str, str], ...] = (
    ("claude", "2.x"),
    ("codex", "0.x"),
    ("opencode", "0.x"),
)


def _lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


def canonical_command(command: str) -> str | None:
    """Map a ``pane_current_command`` value (path or basename) to a known CLI name."""
    lower = _lower(command.strip())
    for name in ("claude", "codex", "opencode"):
        if name in lower:
            return name
    return None


def _match_claude(screen: str) -> Status:
    # Calibrated against 2.x.
    lower = _lower(screen)
    if "esc to interrupt" in lower:
        return Status.WORKING
    if "do you want to proceed" in lower or "❯ 1." in screen or "❯ 2." in screen:
        return Status.NEEDS_INPUT
    if "waiting for your input" in lower:
        return Status.IDLE_NOTIFY
    return Status.IDLE


def _match_codex(screen: str) -> Status:
    # Calibrated against 0.x.
    lower = _lower(screen)
    if "press esc to interrupt" in lower or "esc to interrupt" in lower:
        return Status.WORKING
    if "approve?" in lower or "[a]pprove" in lower or "(y/n)" in lower:
        return Status.NEEDS_INPUT
    return Status.IDLE


def _match_opencode(screen: str) -> Status:
    # Calibrated against 0.x.
    lower = _lower(screen)
    if "thinking" in lower or "working" in lower:
        return Status.WORKING
    if "approve" in lower and "?" in lower:
        return Status.NEEDS_INPUT
    return Status.IDLE


_MATCHERS = {
    "claude": _match_claude,
    "codex": _match_codex,
    "opencode": _match_opencode,
}


def match_status(command: str, screen: str) -> Status:
    """Infer the pane's state from its command and the last rendered rows."""
    name = canonical_command(command)
    if name is None:
        return Status.UNKNOWN
    return _MATCHERS[name](screen)