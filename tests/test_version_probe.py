import logging
import os
import sys

import pytest

from tmonks.status.version_probe import (
    leading_token,
    probe_all,
    probe_one,
    version_compatible,
)


def test_compatible_same_major():
    assert version_compatible("2.x", "claude-code 2.4.1")
    assert version_compatible("0.x", "codex 0.99")


def test_compatible_when_detected_is_unparseable():
    assert version_compatible("2.x", "claude (built from source)")


def test_incompatible_major_bump():
    assert not version_compatible("2.x", "claude-code 3.0.0")
    assert not version_compatible("0.x", "codex 1.0")


def test_version_probe_compatibility_check():
    assert version_compatible("2.x", "claude-code 2.5.0")
    assert not version_compatible("2.x", "claude-code 3.0.0")


def test_leading_v_is_stripped_in_detected():
    assert version_compatible("2.x", "claude v2.4.1")
    assert not version_compatible("2.x", "claude v3.0")


def test_leading_token_strips_letters():
    assert leading_token("2.x") == "2"
    assert leading_token("3.0.0") == "3"
    assert leading_token("v2.4.1") == ""


@pytest.mark.asyncio
async def test_probe_one_reads_version():
    detected = await probe_one(sys.executable)
    assert detected.startswith("Python")


@pytest.mark.asyncio
async def test_probe_one_missing_cli(tmp_path):
    with pytest.raises(OSError):
        await probe_one(str(tmp_path / "absent"))


def _install_cli(directory, name, body):
    path = directory / name
    path.write_text(f"#!{sys.executable}\nimport sys\n{body}\n")
    path.chmod(0o755)


@pytest.mark.asyncio
async def test_probe_one_nonzero_exit(tmp_path):
    _install_cli(tmp_path, "failing", "sys.exit(3)")
    with pytest.raises(OSError, match="non-zero"):
        await probe_one(str(tmp_path / "failing"))


@pytest.mark.asyncio
async def test_probe_one_times_out(tmp_path):
    _install_cli(tmp_path, "slow", "import time\ntime.sleep(5)")
    with pytest.raises(TimeoutError):
        await probe_one(str(tmp_path / "slow"))


@pytest.mark.asyncio
async def test_probe_all_reports_drift_and_missing(tmp_path, monkeypatch, caplog):
    _install_cli(tmp_path, "claude", 'print("claude-code 3.0.0")')
    monkeypatch.setenv("PATH", str(tmp_path))
    with caplog.at_level(logging.INFO, logger="tmonks.status.version_probe"):
        results = await probe_all()
    assert results == {"claude": "claude-code 3.0.0", "codex": None, "opencode": None}
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "claude" in warnings[0].getMessage()
    assert os.environ["PATH"] == str(tmp_path)


@pytest.mark.asyncio
async def test_probe_all_ok_when_major_matches(tmp_path, monkeypatch, caplog):
    _install_cli(tmp_path, "codex", 'print("codex 0.99")')
    monkeypatch.setenv("PATH", str(tmp_path))
    with caplog.at_level(logging.INFO, logger="tmonks.status.version_probe"):
        results = await probe_all()
    assert results["codex"] == "codex 0.99"
    assert results["claude"] is None
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]