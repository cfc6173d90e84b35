"""Command group: stable merges and splits."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ringside.commands._base import RingsideGroup
from ringside.services.roster import StableService

if TYPE_CHECKING:
    from ringside.commands._context import AppContext

_STABLE_EXAMPLES = """\
  ringside stable merge 3 5 --name "The Alliance"
  ringside stable split 3 "The New Breed\""""


@click.group(cls=RingsideGroup, examples=_STABLE_EXAMPLES)
@click.pass_obj
def stable(app: AppContext) -> None:
    """Merge and split stables."""


@stable.command(
    examples="""\
  ringside stable merge 3 5
  ringside stable merge 3 5 --name "The Alliance" --date 2024-06-01"""
)
@click.argument("primary_id", type=int)
@click.argument("secondary_id", type=int)
@click.option("--name", "new_name", default=None, help="Rename the merged stable.")
@click.option("--date", default=None, help="Effective date (ISO format).")
@click.pass_obj
def merge(
    app: AppContext,
    primary_id: int,
    secondary_id: int,
    new_name: str | None,
    date: str | None,
) -> None:
    """Move the secondary stable's members into the primary and retire it."""
    result = StableService(app.roster).merge(primary_id, secondary_id, new_name=new_name, date=date)
    app.emit(result)


@stable.command(examples='  ringside stable split 3 "The New Breed"')
@click.argument("original_id", type=int)
@click.argument("name")
@click.option("--date", default=None, help="Effective date (ISO format).")
@click.pass_obj
def split(app: AppContext, original_id: int, name: str, date: str | None) -> None:
    """Create a new, empty stable split off from ORIGINAL_ID."""
    app.emit(StableService(app.roster).split(original_id, name, date=date))
