"""Rich formatting helpers for the rlm CLI.

Diagnostics and debug output go to stderr so stdout carries nothing but
the model's final answer. Rich auto-detects TTY and degrades gracefully
when piped (no ANSI codes).
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape


def get_error_console() -> Console:
    """Create a Rich Console bound to stderr."""
    return Console(stderr=True)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)


def format_payload(payload: object, console: Console) -> None:
    """Pretty-print a request payload or tool result as JSON."""
    console.print_json(data=payload)
