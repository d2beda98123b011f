# tmonks

Building blocks for a local, browser-based UI over your tmux sessions.

The package covers:

- **Auth and same-origin checks** (`tmonks.auth`): a random per-run `Token`
  handed out once in a `?t=...` URL and then kept in an `HttpOnly`,
  `SameSite=Strict` cookie; a `Host` check that accepts only loopback
  addresses (including legacy forms such as `127.1` and `2130706433`) to
  defeat DNS rebinding; and an exact `Origin` check for WebSocket upgrades
  (`check_origin_for_ws`).
- **Page and assets** (`tmonks.templates`, `tmonks.assets`): `index_page()`
  renders the HTML shell, and `serve_path(path, root)` returns a `Response`
  for a file below an asset directory (or a 404), each with a strict
  Content-Security-Policy and hardening headers.
- **Command-line options** (`tmonks.cli`): `parse_args` builds a `Cli`, and
  `Cli.validate()` raises `CliError` for non-loopback binds, `--no-auth`
  without `--i-understand-no-auth`, and unsafe tmux socket names.
- **Logging** (`tmonks.observability`): `init(verbose)` sends logs to stderr;
  the `TMONKS_LOG` environment variable (e.g. `tmonks=debug,warn`) overrides
  the default levels.
- **Agent status detection** (`tmonks.status`): infers whether a coding agent
  running in a pane (claude, codex, opencode) is idle, working, waiting for
  input or nudging for a reply, by matching the last rendered rows of the
  pane; a per-session poller with error backoff; and a startup probe of the
  agents' installed versions.

## Authentication

```python
from tmonks.auth import Token, authorize, startup_url

print(startup_url("127.0.0.1", 8765, Token.new_random()))
# http://127.0.0.1:8765/?t=<url-safe base64 value>

Token.new_random().matches("bogus")   # False
```

Tokens are compared in constant time. `token_redirect` handles `GET /?t=...`,
the only request that mints the session cookie. `authorize(...)` returns a
401 or 403 `Response` for a request that must be refused, or `None` to let it
through: every request must name a loopback host, and every request other
than the handshake must carry the cookie unless no-auth mode is on.

## Status detection

```python
from tmonks.status.matchers import match_status

match_status("claude", "... esc to interrupt ...")                 # Status.WORKING
match_status("/usr/local/bin/claude", "Do you want to proceed?")   # Status.NEEDS_INPUT
match_status("bash", "$ ")                                         # Status.UNKNOWN
```

`tmonks.status.poller.spawn(session_id, tmux_base_command(socket), queue)`
starts an asyncio task that polls a session every 0.75 s and puts
`StatusChanged` events on the queue when the inferred status changes. After
five consecutive failures it puts a `PollerError` and backs off to 3 s, 9 s,
27 s and then 60 s; the first success afterwards always reports a fresh
status and restores the base interval. `list_sessions` returns
`(session_id, name)` pairs, or an empty list when no tmux server is running.

```python
from tmonks.status.poller import interval_for

interval_for(0)   # 0.75
interval_for(5)   # 3.0
```

## Version calibration

The matchers are calibrated against particular major versions of each agent
CLI. `version_compatible` compares the calibrated version with what the
installed CLI reports, and `probe_all()` runs each CLI's `--version` and logs
the result.

```python
from tmonks.status.version_probe import version_compatible

version_compatible("2.x", "claude-code 2.4.1")   # True
version_compatible("2.x", "claude-code 3.0.0")   # False
```

## What this package does not do

It provides no command to run and no HTTP or WebSocket server: there is no
router wiring these pieces to sockets, no terminal bridge to tmux panes, and
no front-end assets ship with it. The functions here are the checks, pages
and status logic such a server would call.

## Requirements

Python 3.10 or later, and tmux on `PATH` for the poller.