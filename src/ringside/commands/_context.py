"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Provides lazy Roster initialization and centralized
result emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ringside.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from ringside.config.settings import RingsideSettings
    from ringside.domain.dates import Clock
    from ringside.infrastructure.roster import Roster
    from ringside.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The roster is created on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: RingsideSettings, *, clock: Clock | None = None) -> None:
        self.settings = settings
        self._clock = clock
        self._roster: Roster | None = None

        from ringside.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            database=settings.database_path,
        )

        if settings.verbose:
            from ringside.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def roster(self) -> Roster:
        """The roster instance (created lazily on first access)."""
        if self._roster is None:
            from ringside.infrastructure.roster import Roster

            self._roster = Roster(self.settings, clock=self._clock)
        return self._roster

    def close(self) -> None:
        if self._roster is not None:
            self._roster.close()
            self._roster = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout and returns normally.
        * Failure: writes to stderr and exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
