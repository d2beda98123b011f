"""Startup probe of the agent CLIs' ``--version`` output.

Logs one line per CLI comparing the calibrated and detected versions: a
major-version mismatch is a warning, a CLI that is not installed is just
informational.
"""

from __future__ import annotations

import asyncio
import logging
import string

from tmonks.status.matchers import CALIBRATION

PROBE_TIMEOUT = 0.5

_log = logging.getLogger(__name__)


async def probe_one(cli: str) -> str:
    """Run ``<cli> --version`` and return its trimmed stdout.

    Raises OSError if the CLI cannot be run, exits non-zero, or takes longer
    than ``PROBE_TIMEOUT`` seconds.
    """
    proc = await asyncio.create_subprocess_exec(
        cli,
        "--version",
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, _stderr = await asyncio.wait_for(proc.communicate(), PROBE_TIMEOUT)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise TimeoutError("probe timed out") from None
    if proc.returncode != 0:
        raise OSError("CLI --version exited non-zero")
    return stdout.decode("utf-8", errors="replace").strip()


def leading_token(text: str) -> str:
    """The run of ASCII digits at the start of ``text``."""
    digits = []
    for ch in text:
        if ch not in string.digits:
            break
        digits.append(ch)
    return "".join(digits)


def version_compatible(calibrated: str, detected: str) -> bool:
    """Loose check: compatible when the major versions agree.

    Unparseable output is given the benefit of the doubt.
    """
    calibrated_major = leading_token(calibrated)
    detected_major = next(
        (major for major in (leading_token(tok.lstrip("v")) for tok in detected.split()) if major),
        None,
    )
    if detected_major is None:
        return True
    return detected_major == calibrated_major


async def probe_all() -> dict[str, str | None]:
    """Probe every calibrated CLI; map each name to its detected version or None."""
    results: dict[str, str | None] = {}
    for cli, calibrated in CALIBRATION:
        try:
            detected = await probe_one(cli)
        except OSError:
            _log.info(
                "%s not on PATH; if you run it, status detection will be limited to Unknown",
                cli,
            )
            results[cli] = None
            continue
        if version_compatible(calibrated, detected):
            _log.info(
                "status calibration ok: cli=%s calibrated=%s detected=%s",
                cli,
                calibrated,
                detected,
            )
        else:
            _log.warning(
                "status calibration drift: cli=%s calibrated=%s detected=%s; status detection "
                "may misreport for this CLI; please file an issue if badges are wrong",
                cli,
                calibrated,
                detected,
            )
        results[cli] = detected
    return results