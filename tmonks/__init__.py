"""Building blocks for a tmux web UI: auth checks, page rendering, CLI options and agent status detection."""

__version__ = "0.1.0"