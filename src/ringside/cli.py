"""Root CLI group for ringside with global flags and command registration."""

from __future__ import annotations

import click

from ringside import __version__
from ringside.commands import register_commands
from ringside.commands._context import AppContext
from ringside.config.settings import RingsideSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="ringside")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--db", "db_path", default=None, help="Override the database path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    db_path: str | None,
) -> None:
    """ringside: roster lifecycle management."""
    overrides = {"database": {"path": db_path}} if db_path else {}
    settings = RingsideSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        **overrides,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
