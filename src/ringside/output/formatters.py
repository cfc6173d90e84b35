"""Output-mode dispatch for ServiceResult.

The CLI renders results for humans (Rich) or machines (``--json``);
``--quiet`` reduces output to ids or a status word.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ringside.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from ringside.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for the requested output mode."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
