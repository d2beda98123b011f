"""Token authentication and same-origin enforcement.

The server binds to loopback and trusts the host file system and the browser's
same-origin policy. A random token is shown once in the startup URL, exchanged
for an HttpOnly SameSite=Strict cookie, and compared in constant time on every
request. The Host header must name a loopback address (DNS-rebinding defence)
and WebSocket upgrades must carry an Origin matching the Host exactly.
"""

from __future__ import annotations

import base64
import hmac
import ipaddress
import logging
import re
import secrets
from collections.abc import Mapping
from urllib.parse import parse_qsl, urlsplit

from tmonks.assets import Response

COOKIE_NAME = "tmonks_session"

_log = logging.getLogger(__name__)

_B64URL = re.compile(r"[A-Za-z0-9_-]*")
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}
_TEXT_PLAIN = "text/plain; charset=utf-8"
_IPV6_LOOPBACK = ipaddress.IPv6Address("::1")

IpAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class AuthError(ValueError):
    """A request failed a Host, Origin or host:port check."""


def _encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _decode_no_pad(text: str) -> bytes | None:
    """Strict URL-safe, unpadded base64 decoding; None if the input is not canonical."""
    if not isinstance(text, str) or not _B64URL.fullmatch(text) or len(text) % 4 == 1:
        return None
    raw = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    if _encode(raw) != text:
        return None
    return raw


class Token:
    """The server-side secret, compared in constant time against cookies."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes) -> None:
        self._raw = bytes(raw)

    @staticmethod
    def new_random() -> Token:
        return Token(secrets.token_bytes(32))

    def encoded(self) -> str:
        """URL-safe, padding-less base64 of the raw bytes."""
        return _encode(self._raw)

    def matches(self, encoded: str) -> bool:
        provided = _decode_no_pad(encoded)
        if provided is None:
            return False
        return hmac.compare_digest(provided, self._raw)

    def __repr__(self) -> str:
        return "Token(<redacted>)"


def _unauthorized(message: str) -> Response:
    return Response(
        status=401,
        headers={"Content-Type": _TEXT_PLAIN},
        body=f"401 Unauthorized: {message}\n".encode("utf-8"),
    )


def _forbidden(message: str) -> Response:
    return Response(
        status=403,
        headers={"Content-Type": _TEXT_PLAIN},
        body=f"403 Forbidden: {message}\n".encode("utf-8"),
    )


def _redirect_home(extra: Mapping[str, str] | None = None) -> Response:
    return Response(status=302, headers={"Location": "/", **(extra or {})})


def token_redirect(token: Token, no_auth: bool, query: str | None) -> Response:
    """Handle ``GET /?t=<token>``: set the session cookie and redirect to ``/``."""
    if no_auth:
        return _redirect_home()
    provided = next(
        (value for key, value in parse_qsl(query or "", keep_blank_values=True) if key == "t"),
        None,
    )
    if provided is None:
        return _unauthorized("missing ?t=<token>")
    if not token.matches(provided):
        return _unauthorized("invalid token")
    cookie = f"{COOKIE_NAME}={token.encoded()}; HttpOnly; SameSite=Strict; Path=/"
    return _redirect_home({"Set-Cookie": cookie})


def authorize(
    token: Token,
    no_auth: bool,
    method: str,
    target: str,
    headers: Mapping[str, str],
) -> Response | None:
    """Gate a request. Returns a rejection response, or None to let it through.

    The Host check always applies. The cookie check is skipped in no-auth mode
    and for the ``GET /?t=...`` handshake that mints the cookie.
    """
    try:
        check_host(headers)
    except AuthError as exc:
        _log.warning("rejecting request: bad Host: %s", exc)
        return _forbidden(str(exc))

    if no_auth:
        return None

    parts = urlsplit(target)
    is_handshake = (
        parts.path == "/"
        and method == "GET"
        and any(piece.startswith("t=") for piece in parts.query.split("&"))
    )
    if is_handshake:
        return None

    if not check_cookie(headers, token):
        return _unauthorized("missing or invalid cookie; visit the URL printed at startup")
    return None


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            if all(ch == "\t" or " " <= ch <= "~" for ch in value):
                return value
            return None
    return None


def _parse_u16(text: str) -> int | None:
    value = _parse_radix(text, 10)
    if value is None or value > 0xFFFF:
        return None
    return value


def _parse_radix(text: str, radix: int) -> int | None:
    digits = text[1:] if text.startswith("+") else text
    valid = "0123456789abcdef"[:radix]
    if not digits or any(ch.lower() not in valid for ch in digits):
        return None
    value = int(digits, radix)
    return value if value <= 0xFFFFFFFF else None


def split_host_port(host: str) -> tuple[str, int]:
    """Split a Host header into host and port, defaulting the port to 80."""
    if host.startswith("["):
        stripped = host[1:]
        close = stripped.find("]")
        if close < 0:
            raise AuthError("malformed IPv6 host: missing ']'")
        host_part, after = stripped[:close], stripped[close + 1 :]
        if after.startswith(":"):
            port = _parse_u16(after[1:])
            if port is None:
                raise AuthError("invalid port")
            return host_part, port
        return host_part, 80

    head, sep, tail = host.rpartition(":")
    if sep:
        port = _parse_u16(tail)
        if port is not None:
            return head, port
    return host, 80


def _parse_legacy_u32(text: str) -> int | None:
    if text[:2] in ("0x", "0X"):
        return _parse_radix(text[2:], 16)
    rest = text[1:]
    if text.startswith("0") and rest and all(ch in "0123456789" for ch in rest):
        return _parse_radix(rest, 8)
    return _parse_radix(text, 10)


def parse_ip_with_legacy_forms(text: str) -> IpAddress | None:
    """Parse an IP address, including inet_aton-style shorthand IPv4 forms.

    Accepts e.g. ``127.0.0.1``, ``127.1``, ``127.0.1``, ``2130706433``,
    ``0x7f000001`` and IPv6 literals. Returns None if it is not an address.
    """
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        pass

    parts = text.split(".")
    if any(not part for part in parts):
        return None
    nums = [_parse_legacy_u32(part) for part in parts]
    if any(num is None for num in nums):
        return None

    if len(nums) == 1:
        combined = nums[0]
    elif len(nums) == 2:
        a, b = nums
        if a > 0xFF or b > 0x00FFFFFF:
            return None
        combined = (a << 24) | b
    elif len(nums) == 3:
        a, b, c = nums
        if a > 0xFF or b > 0xFF or c > 0xFFFF:
            return None
        combined = (a << 24) | (b << 16) | c
    else:
        return None
    return ipaddress.IPv4Address(combined)


def _is_loopback(addr: IpAddress) -> bool:
    if isinstance(addr, ipaddress.IPv6Address):
        return addr == _IPV6_LOOPBACK
    return addr.is_loopback


def _normalise_host(host: str) -> str:
    return host.rstrip(".").lower()


def check_host(headers: Mapping[str, str]) -> None:
    """Raise AuthError unless the Host header names a loopback address."""
    host = _header(headers, "Host")
    if host is None:
        raise AuthError("missing Host header")
    host_part, _port = split_host_port(host)
    host_part = _normalise_host(host_part)
    if host_part == "localhost":
        return
    addr = parse_ip_with_legacy_forms(host_part)
    if addr is None:
        raise AuthError(f"Host {host_part!r} is not a loopback IP and is not `localhost`")
    if not _is_loopback(addr):
        raise AuthError(f"Host {host_part!r} -> {addr} is not loopback")


def check_origin_for_ws(headers: Mapping[str, str]) -> None:
    """Raise AuthError unless Origin exactly matches Host (host and port)."""
    host = _header(headers, "Host")
    if host is None:
        raise AuthError("missing Host header")
    origin = _header(headers, "Origin")
    if origin is None:
        raise AuthError("missing Origin header")

    parts = urlsplit(origin)
    if not parts.scheme or not parts.netloc:
        raise AuthError("Origin is not a valid URL")
    try:
        origin_port = parts.port
    except ValueError as exc:
        raise AuthError("Origin is not a valid URL") from exc
    if not parts.hostname:
        raise AuthError("Origin has no host")
    origin_host = parts.hostname.lower()
    if origin_port is None:
        origin_port = _DEFAULT_PORTS.get(parts.scheme.lower())
        if origin_port is None:
            raise AuthError("Origin has no port")

    host_host, host_port = split_host_port(host)
    host_host = _normalise_host(host_host)

    if origin_host != host_host:
        raise AuthError(f"Origin host {origin_host!r} != Host host {host_host!r}")
    if origin_port != host_port:
        raise AuthError(f"Origin port {origin_port} != Host port {host_port}")


def check_cookie(headers: Mapping[str, str], token: Token) -> bool:
    """True if the Cookie header carries the session cookie matching ``token``."""
    cookie_header = _header(headers, "Cookie")
    if cookie_header is None:
        return False
    prefix = f"{COOKIE_NAME}="
    for piece in cookie_header.split(";"):
        piece = piece.strip()
        if piece.startswith(prefix):
            return token.matches(piece[len(prefix) :])
    return False


def startup_url(host: str | IpAddress, port: int, token: Token) -> str:
    """The URL printed at startup, carrying the token in the query string."""
    addr = ipaddress.ip_address(host)
    hostport = f"[{addr}]:{port}" if addr.version == 6 else f"{addr}:{port}"
    return f"http://{hostport}/?t={token.encoded()}"