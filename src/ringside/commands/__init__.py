"""Subcommand modules for ringside.

Provides register_commands() which uses deferred imports to keep
``ringside --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from ringside.commands.events import events
    from ringside.commands.stable import stable

    cli.add_command(stable)
    cli.add_command(events)

    # --- Standalone commands ---
    from ringside.commands.roster import add, attach, list_cmd, show, stats
    from ringside.commands.status import STATUS_COMMANDS

    for command in (add, list_cmd, show, stats, attach, *STATUS_COMMANDS):
        cli.add_command(command)
