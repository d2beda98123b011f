"""Command-line options for the web UI and their validation."""

from __future__ import annotations

import argparse
import ipaddress
import re
from collections.abc import Sequence
from dataclasses import dataclass

IpAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

_SOCKET_CHARS = re.compile(r"[A-Za-z0-9_-]+")
_MAX_SOCKET_LEN = 32
_IPV6_LOOPBACK = ipaddress.IPv6Address("::1")

_DESCRIPTION = (
    "Launches a local web server exposing a browser-based UI for your tmux sessions. "
    "Binds to 127.0.0.1 by default; print a single URL containing a one-time token "
    "on stdout. Open the URL in any browser."
)


class CliError(ValueError):
    """Command-line options that parsed but are not acceptable."""


def _is_loopback(addr: IpAddress) -> bool:
    if isinstance(addr, ipaddress.IPv6Address):
        return addr == _IPV6_LOOPBACK
    return addr.is_loopback


@dataclass(frozen=True)
class Cli:
    """Parsed command-line options."""

    bind: IpAddress = ipaddress.IPv4Address("127.0.0.1")
    port: int = 0
    socket: str | None = None
    no_auth: bool = False
    i_understand_no_auth: bool = False
    verbose: bool = False

    def validate(self) -> None:
        """Raise CliError for option combinations the parser cannot reject."""
        if not _is_loopback(self.bind):
            raise CliError(
                f"--bind {self.bind} is not a loopback address. tmonks MVP does not support "
                "non-loopback binds (no TLS, no multi-user auth). For remote access use SSH "
                "tunneling:\n\n    ssh -L 8080:127.0.0.1:<port> remote\n\n"
                "Then open http://127.0.0.1:8080/?t=<token> in your local browser."
            )

        if self.no_auth and not self.i_understand_no_auth:
            raise CliError(
                "--no-auth is dangerous: anyone on this host (any user, any process able to "
                f"connect to {self.bind}:{self.port}) can drive your tmux sessions. \n"
                "Re-run with --no-auth --i-understand-no-auth if you accept the risk."
            )

        if self.socket is not None:
            try:
                validate_socket_name(self.socket)
            except CliError as exc:
                raise CliError(f"--socket value is invalid: {exc}") from exc


def validate_socket_name(name: str) -> None:
    """Restrict a tmux ``-L`` socket name to a safe character class.

    The name may not be empty, longer than 32 bytes, contain anything outside
    ``[A-Za-z0-9_-]`` or start with ``-`` (which tmux would read as a flag).
    """
    if not name:
        raise CliError("must not be empty")
    length = len(name.encode("utf-8"))
    if length > _MAX_SOCKET_LEN:
        raise CliError(f"must be {_MAX_SOCKET_LEN} chars or fewer (got {length})")
    if not _SOCKET_CHARS.fullmatch(name):
        raise CliError(f"must match [A-Za-z0-9_-]+ (got {name!r})")
    if name.startswith("-"):
        raise CliError(f"must not start with '-' (got {name!r})")


def _port(text: str) -> int:
    try:
        value = int(text, 10)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port {text!r}") from exc
    if not 0 <= value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"port {value} is out of range 0-65535")
    return value


def _ip(text: str) -> IpAddress:
    try:
        return ipaddress.ip_address(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid IP address {text!r}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tmonks",
        description=_DESCRIPTION,
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument(
        "--bind",
        type=_ip,
        default=ipaddress.IPv4Address("127.0.0.1"),
        help="IP address to bind. Must be a loopback address. Use SSH tunneling for remote access.",
    )
    parser.add_argument(
        "--port", type=_port, default=0, help="TCP port. 0 picks an ephemeral port."
    )
    parser.add_argument(
        "--socket",
        default=None,
        help="tmux socket name (-L <socket>). When omitted, the default socket is used.",
    )
    parser.add_argument(
        "--no-auth",
        action="store_true",
        help="Disable authentication. DANGEROUS - requires --i-understand-no-auth.",
    )
    parser.add_argument(
        "--i-understand-no-auth",
        action="store_true",
        help="Required confirmation when passing --no-auth.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose logging (debug level)."
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Cli:
    """Parse ``argv`` (without the program name) into a Cli; exits on syntax errors."""
    ns = _build_parser().parse_args(argv)
    return Cli(
        bind=ns.bind,
        port=ns.port,
        socket=ns.socket,
        no_auth=ns.no_auth,
        i_understand_no_auth=ns.i_understand_no_auth,
        verbose=ns.verbose,
    )