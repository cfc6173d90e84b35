"""Rich Console factory and theme for ringside output.

Consoles render to a StringIO buffer so renderers return plain strings.
In non-TTY environments (tests, pipes) Rich disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

RINGSIDE_THEME = Theme(
    {
        "rs.ok": "bold green",
        "rs.error": "bold red",
        "rs.warning": "bold yellow",
        "rs.op": "bold cyan",
        "rs.key": "dim",
        "rs.id": "bold blue",
        "rs.name": "bold",
        "rs.status.employed": "green",
        "rs.status.future_employment": "cyan",
        "rs.status.suspended": "yellow",
        "rs.status.injured": "magenta",
        "rs.status.retired": "dim",
        "rs.status.released": "red",
        "rs.status.unemployed": "",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=RINGSIDE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    style = f"rs.status.{status}"
    return style if style in RINGSIDE_THEME.styles else ""
