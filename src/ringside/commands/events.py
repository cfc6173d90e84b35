"""Command group: lifecycle event maintenance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ringside.commands._base import RingsideGroup
from ringside.services.roster import RosterService

if TYPE_CHECKING:
    from ringside.commands._context import AppContext


@click.group(cls=RingsideGroup, examples="  ringside events drain")
@click.pass_obj
def events(app: AppContext) -> None:
    """Inspect and retry plugin lifecycle events."""


@events.command()
@click.pass_obj
def drain(app: AppContext) -> None:
    """Retry pending and failed events; dead-letter after the retry limit."""
    app.emit(RosterService(app.roster).drain_events())
