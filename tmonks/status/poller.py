"""Per-session status poller.

For each visible session a background task periodically asks tmux for the
active pane and the command running in it, captures the last few rendered
rows of that pane, runs the matchers and reports the inferred status.

A status event is emitted only when the inferred status changes. After
``ERROR_THRESHOLD`` consecutive failures an error event is emitted and the
cadence backs off (3 s, 9 s, 27 s, then 60 s). The first success after that
always emits a status event so the front end can clear its error marker.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence
from dataclasses import dataclass, field

from tmonks.status.matchers import Status, match_status

BASE_INTERVAL = 0.75
"""Baseline poll interval in seconds."""

ERROR_THRESHOLD = 5
"""Consecutive failures after which an error is reported and polling backs off."""

BACKOFFS: tuple[float, ...] = (3.0, 9.0, 27.0, 60.0)
"""Back-off intervals in seconds; the last one is the cap."""

CAPTURE_ROWS = 5


class TmuxCommandError(RuntimeError):
    """A tmux invocation exited unsuccessfully or produced unusable output."""


@dataclass(frozen=True)
class StatusChanged:
    """The inferred status of a session changed (or must be re-announced)."""

    session_id: str
    status: Status
    command: str


@dataclass(frozen=True)
class PollerError:
    """Polling a session failed ``ERROR_THRESHOLD`` times in a row."""

    session_id: str
    message: str


PollerEvent = StatusChanged | PollerError


@dataclass
class PollerHandle:
    """Handle to a running poller task."""

    session_id: str
    _task: asyncio.Task = field(repr=False)

    def stop(self) -> None:
        """Cancel the poller; no further events are emitted."""
        self._task.cancel()

    @property
    def stopped(self) -> bool:
        return self._task.done()


def tmux_base_command(socket: str | None = None, binary: str | None = None) -> list[str]:
    """The argument prefix for invoking tmux, with ``-L <socket>`` if given."""
    command = [binary or "tmux"]
    if socket is not None:
        command += ["-L", socket]
    return command


def interval_for(consecutive_errors: int) -> float:
    """Seconds to wait before the next poll after this many consecutive errors."""
    if consecutive_errors < ERROR_THRESHOLD:
        return BASE_INTERVAL
    index = consecutive_errors - ERROR_THRESHOLD
    return BACKOFFS[min(index, len(BACKOFFS) - 1)]


@dataclass
class _PollState:
    """Bookkeeping that decides which poll results turn into events."""

    session_id: str
    last_status: Status | None = None
    consecutive_errors: int = 0
    backed_off: bool = False

    def interval(self) -> float:
        return interval_for(self.consecutive_errors)

    def success(self, command: str, screen: str) -> StatusChanged | None:
        status = match_status(command, screen)
        event = None
        if self.backed_off or self.last_status != status:
            event = StatusChanged(self.session_id, status, command)
            self.last_status = status
        self.consecutive_errors = 0
        self.backed_off = False
        return event

    def failure(self, message: str) -> PollerError | None:
        self.consecutive_errors += 1
        if self.consecutive_errors == ERROR_THRESHOLD:
            self.last_status = None
            self.backed_off = True
            return PollerError(self.session_id, message)
        return None


async def _run(base_command: Sequence[str], *args: str) -> tuple[int, str, str]:
    proc = await asyncio.create_subprocess_exec(
        *base_command,
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return (
        proc.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


async def poll_once(base_command: Sequence[str], session_id: str) -> tuple[str, str]:
    """Return the active pane's current command and its last rendered rows."""
    code, out, err = await _run(
        base_command,
        "display-message",
        "-p",
        "-F",
        "#{pane_id}\t#{pane_current_command}",
        "-t",
        session_id,
    )
    if code != 0:
        raise TmuxCommandError(f"display-message failed: {err}")
    pane_id, sep, command = out.strip().partition("\t")
    if not sep:
        raise TmuxCommandError(f"malformed display-message output: {out!r}")

    code, screen, err = await _run(
        base_command, "capture-pane", "-p", "-e", "-t", pane_id, "-S", f"-{CAPTURE_ROWS}"
    )
    if code != 0:
        raise TmuxCommandError(f"capture-pane failed: {err}")
    return command, screen


async def list_sessions(base_command: Sequence[str]) -> list[tuple[str, str]]:
    """List ``(session_id, session_name)`` pairs; no running server means none."""
    code, out, err = await _run(base_command, "list-sessions", "-F", "#{session_id}\t#{session_name}")
    if code != 0:
        if "no server running" in err or "error connecting" in err:
            return []
        raise TmuxCommandError(f"list-sessions failed: {err}")
    sessions = []
    for line in out.split("\n"):
        session_id, sep, name = line.rstrip("\r").partition("\t")
        if sep:
            sessions.append((session_id, name))
    return sessions


async def _poll_loop(session_id: str, base_command: Sequence[str], events: asyncio.Queue) -> None:
    state = _PollState(session_id)
    while True:
        await asyncio.sleep(state.interval())
        try:
            command, screen = await poll_once(base_command, session_id)
        except (OSError, TmuxCommandError) as exc:
            event = state.failure(str(exc))
        else:
            event = state.success(command, screen)
        if event is not None:
            with contextlib.suppress(asyncio.QueueFull):
                events.put_nowait(event)


def spawn(session_id: str, base_command: Sequence[str], events: asyncio.Queue) -> PollerHandle:
    """Start polling ``session_id`` in the running event loop, posting to ``events``."""
    task = asyncio.get_running_loop().create_task(
        _poll_loop(session_id, list(base_command), events)
    )
    return PollerHandle(session_id=session_id, _task=task)