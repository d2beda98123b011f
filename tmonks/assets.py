"""Static asset responses carrying the same strict security headers as the index page."""

from __future__ import annotations

import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

CSP = (
    "default-src 'self'; "
    "connect-src 'self'; "
    "script-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data:; "
    "frame-ancestors 'none'"
)

_TEXT_PLAIN = "text/plain; charset=utf-8"
_OCTET_STREAM = "application/octet-stream"


@dataclass
class Response:
    """A minimal HTTP response: status code, header map and body bytes."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def apply_security_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` with the CSP and hardening headers added."""
    return {
        **headers,
        "Content-Security-Policy": CSP,
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "no-referrer",
    }


def _resolve(root: Path, path: str) -> Path | None:
    base = root.resolve()
    candidate = (base / path).resolve()
    if candidate != base and base not in candidate.parents:
        return None
    return candidate if candidate.is_file() else None


def serve_path(path: str, root: str | Path) -> Response:
    """Serve the asset at ``path`` below ``root``, or a 404 if there is none."""
    path = path.lstrip("/")
    found = _resolve(Path(root), path) if path else None
    if found is None:
        return Response(
            status=404,
            headers=apply_security_headers({"Content-Type": _TEXT_PLAIN}),
            body=f"404: {path}\n".encode("utf-8"),
        )
    mime, _encoding = mimetypes.guess_type(path, strict=False)
    return Response(
        status=200,
        headers=apply_security_headers({"Content-Type": mime or _OCTET_STREAM}),
        body=found.read_bytes(),
    )