"""Commands: lifecycle transitions (employ, suspend, release, retire, injure, reinstate, heal)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ringside.commands._base import RingsideCommand
from ringside.services.roster import RosterService

if TYPE_CHECKING:
    from ringside.commands._context import AppContext

_HELP = {
    "employ": "Employ an entity (ends an active retirement first).",
    "suspend": "Suspend an employed entity.",
    "release": "Release an entity from employment.",
    "retire": "Retire an entity and detach it from its groups.",
    "injure": "Record an injury.",
    "reinstate": "End a suspension or injury.",
    "heal": "End an injury (never ends a suspension).",
}


def _make_command(transition: str) -> click.Command:
    @click.command(
        transition,
        cls=RingsideCommand,
        help=_HELP[transition],
        examples=f"""\
  ringside {transition} 1
  ringside {transition} 1 --date 2024-03-01 --notes "Announced on TV\"""",
    )
    @click.argument("entity_id", type=int)
    @click.option("--date", default=None, help="Effective date (ISO format, defaults to now).")
    @click.option("--notes", default=None, help="Notes recorded on the status period.")
    @click.pass_obj
    def command(app: AppContext, entity_id: int, date: str | None, notes: str | None) -> None:
        result = RosterService(app.roster).transition(entity_id, transition, date=date, notes=notes)
        app.emit(result)

    return command


STATUS_COMMANDS = [_make_command(name) for name in _HELP]
