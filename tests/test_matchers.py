import json

import pytest

from tmonks.status.matchers import CALIBRATION, Status, canonical_command, match_status


def test_claude_working():
    assert match_status("claude", "...\nesc to interrupt\n") is Status.WORKING
    assert match_status("claude", "ESC TO INTERRUPT") is Status.WORKING


def test_claude_needs_input_proceed():
    screen = "Do you want to proceed?\n  1. Yes\n  2. No\n"
    assert match_status("claude", screen) is Status.NEEDS_INPUT


def test_claude_needs_input_numbered_choice():
    screen = "❯ 1. Yes\n  2. No\n"
    assert match_status("claude", screen) is Status.NEEDS_INPUT


def test_claude_idle_notify():
    assert match_status("claude", "Claude is waiting for your input") is Status.IDLE_NOTIFY


def test_claude_idle_when_no_markers():
    screen = "╭──────╮\n│ > _  │\n╰──────╯\n"
    assert match_status("claude", screen) is Status.IDLE


def test_claude_working_takes_precedence():
    screen = "Do you want to proceed?\nesc to interrupt"
    assert match_status("claude", screen) is Status.WORKING


def test_codex_working():
    assert match_status("codex", "Press Esc to interrupt") is Status.WORKING


def test_codex_idle_when_no_markers():
    assert match_status("codex", "$ ") is Status.IDLE


@pytest.mark.parametrize("screen", ["Approve?", "[a]pprove", "Run it (y/n)"])
def test_codex_needs_input(screen):
    assert match_status("codex", screen) is Status.NEEDS_INPUT


def test_opencode_states():
    assert match_status("opencode", "Thinking...") is Status.WORKING
    assert match_status("opencode", "Approve this edit?") is Status.NEEDS_INPUT
    assert match_status("opencode", "> ") is Status.IDLE


@pytest.mark.parametrize("command,screen", [("vim", "anything"), ("bash", "$ "), ("python", ">>> ")])
def test_unknown_command_returns_unknown(command, screen):
    assert match_status(command, screen) is Status.UNKNOWN


def test_empty_screen_returns_idle_for_recognised_cmd():
    assert match_status("claude", "") is Status.IDLE


def test_canonical_command_handles_full_paths():
    assert canonical_command("/usr/local/bin/claude") == "claude"
    assert canonical_command("node claude") == "claude"
    assert canonical_command("opencode") == "opencode"
    assert canonical_command("OpenCode") == "opencode"
    assert canonical_command("zsh") is None


def test_status_serializes_as_kebab():
    needs_input = match_status("claude", "Do you want to proceed?")
    idle_notify = match_status("claude", "waiting for your input")
    assert json.dumps(needs_input) == '"needs-input"'
    assert json.dumps(idle_notify) == '"idle-notify"'
    assert needs_input.as_str() == "needs-input"
    assert idle_notify.as_str() == "idle-notify"


def test_status_round_trips_through_value():
    for status in Status:
        assert Status(status.as_str()) is status


def test_every_calibrated_cli_is_recognised():
    for cli, _version in CALIBRATION:
        assert canonical_command(cli) == cli
        assert match_status(cli, "") is Status.IDLE