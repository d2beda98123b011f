"""Server-rendered HTML shell for the web UI.

The page carries no inline scripts so the CSP can stay ``script-src 'self'``.
"""

from __future__ import annotations

_KEYS = (
    ("esc", "Esc"),
    ("tab", "Tab"),
    ("ctrl-c", "Ctrl-C"),
    ("up", "↑"),
    ("down", "↓"),
    ("left", "←"),
    ("right", "→"),
)


def _key_row() -> str:
    buttons = "".join(f'<button data-key="{key}">{label}</button>' for key, label in _KEYS)
    return (
        '<div class="hidden" id="key-row" role="toolbar" aria-label="terminal keys">'
        f"{buttons}</div>"
    )


def index_page() -> str:
    """Render the index page shell that loads the terminal front end."""
    head = (
        "<head>"
        '<meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1, viewport-fit=cover">'
        '<meta name="color-scheme" content="dark light">'
        "<title>tmonks</title>"
        '<link rel="stylesheet" href="/assets/vendor/xterm.css">'
        '<link rel="stylesheet" href="/assets/main.css">'
        '<link rel="icon" href="data:,">'
        "</head>"
    )
    sidebar = (
        '<aside id="sidebar">'
        "<header><h1>tmonks</h1>"
        '<button id="sidebar-toggle" aria-label="Toggle sidebar">☰</button>'
        "</header>"
        '<ul id="session-list" aria-live="polite" aria-label="tmux sessions">'
        '<li class="empty-hint">Loading sessions…</li>'
        "</ul>"
        "</aside>"
    )
    toolbar = (
        '<div id="pane-toolbar" role="toolbar" aria-label="pane actions">'
        '<button id="copy-scrollback" type="button">Copy scrollback</button>'
        '<button id="paste-clipboard" type="button">Paste</button>'
        '<button id="search-toggle" type="button" aria-label="Search (Ctrl/Cmd-F)">Search</button>'
        "</div>"
    )
    search = (
        '<div class="hidden" id="search-overlay" role="search">'
        '<input id="search-input" type="text" placeholder="Search…" aria-label="Search term">'
        '<button id="search-prev" type="button" aria-label="Previous match">↑</button>'
        '<button id="search-next" type="button" aria-label="Next match">↓</button>'
        '<button id="search-close" type="button" aria-label="Close search">×</button>'
        "</div>"
    )
    main = (
        '<main id="pane-area" aria-label="focused tmux pane">'
        f"{toolbar}{search}"
        '<div id="terminal-container"></div>'
        f"{_key_row()}"
        "</main>"
    )
    body = (
        "<body>"
        f'<div id="app">{sidebar}{main}</div>'
        '<script type="module" src="/assets/main.js"></script>'
        "</body>"
    )
    return f'<!DOCTYPE html><html lang="en">{head}{body}</html>'