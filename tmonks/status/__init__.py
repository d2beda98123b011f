"""Per-pane agent status inference, session polling and CLI version probing."""