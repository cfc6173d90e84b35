"""Commands: add, list, show, stats, and attach roster entities."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ringside.commands._base import RingsideCommand
from ringside.domain.types import EntityType
from ringside.services.roster import ATTACH_KINDS, RosterService

if TYPE_CHECKING:
    from ringside.commands._context import AppContext

_TYPES = click.Choice([str(t) for t in EntityType])


@click.command(
    cls=RingsideCommand,
    examples="""\
  ringside add wrestler "Bret Hart"
  ringside add tag_team "The Hart Foundation"
  ringside --json add stable "The Four Horsemen\"""",
)
@click.argument("entity_type", type=_TYPES)
@click.argument("name")
@click.pass_obj
def add(app: AppContext, entity_type: str, name: str) -> None:
    """Add a roster entity."""
    app.emit(RosterService(app.roster).add(entity_type, name))


@click.command(
    "list",
    cls=RingsideCommand,
    examples="""\
  ringside list
  ringside list --type wrestler
  ringside -q list --type stable""",
)
@click.option("--type", "entity_type", type=_TYPES, default=None, help="Filter by entity type.")
@click.pass_obj
def list_cmd(app: AppContext, entity_type: str | None) -> None:
    """List roster entities with their current status."""
    app.emit(RosterService(app.roster).list_entities(entity_type))


@click.command(cls=RingsideCommand, examples="  ringside show 3\n  ringside --json show 3")
@click.argument("entity_id", type=int)
@click.pass_obj
def show(app: AppContext, entity_id: int) -> None:
    """Show an entity's status, periods, and relationships."""
    app.emit(RosterService(app.roster).show(entity_id))


@click.command(cls=RingsideCommand, examples="  ringside stats\n  ringside stats --type wrestler")
@click.option("--type", "entity_type", type=_TYPES, default=None, help="Filter by entity type.")
@click.pass_obj
def stats(app: AppContext, entity_type: str | None) -> None:
    """Count entities per status bucket."""
    app.emit(RosterService(app.roster).stats(entity_type))


@click.command(
    cls=RingsideCommand,
    examples="""\
  ringside attach 7 1 --as wrestler      # wrestler 1 joins tag team or stable 7
  ringside attach 1 4 --as manager       # manager 4 now manages wrestler 1
  ringside attach 9 7 --as tag_team --date 2024-01-01""",
)
@click.argument("container_id", type=int)
@click.argument("member_id", type=int)
@click.option("--as", "kind", type=click.Choice(ATTACH_KINDS), required=True, help="Member role.")
@click.option("--date", default=None, help="Effective date (ISO format).")
@click.pass_obj
def attach(app: AppContext, container_id: int, member_id: int, kind: str, date: str | None) -> None:
    """Attach a member to a stable or tag team, or a manager to a client."""
    app.emit(RosterService(app.roster).attach(container_id, member_id, kind, date=date))
