"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ringside.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from ringside.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_entity)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    for warning in result.warnings:
        console.print(Text(f"  warning: {warning}", style="rs.warning"))

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet`` mode: ids for lists, else a status word."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if "id" in item)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="rs.ok"), Text(f"  {result.op}", style="rs.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="rs.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="rs.id")
    elif key == "name":
        v = Text(str(value), style="rs.name")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block including the telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    style = "bold red" if duration > 1000 else "yellow" if duration > 100 else "dim"
    name = span_data.get("name", "?")
    outcome = span_data.get("outcome")
    if outcome in ("skipped", "failed"):
        name = f"{name}  ({outcome})"
    console.print(f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}")
    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _entity_table(items: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="rs.id", no_wrap=True)
    table.add_column("Name", style="rs.name")
    table.add_column("Type")
    table.add_column("Status")
    for item in items:
        status = str(item.get("status", ""))
        table.add_row(
            str(item.get("id", "")),
            str(item.get("name", "")),
            str(item.get("type", "")),
            Text(status, style=style_for_status(status)),
        )
    return table


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="rs.error"), Text(f"  {result.op}{code}", style="rs.op"), Text(msg)
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")
    if verbose:
        _render_meta(console, result)


def _render_entity(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Mutations and the fallback: status line plus data fields."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_entity_table(items))
    console.print(f"\n{result.data.get('count', len(items))} entities")
    if verbose:
        _render_meta(console, result)


def _render_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    lines = [
        f"type: {d.get('type')}",
        f"status: {d.get('status')}",
        f"capabilities: {', '.join(d.get('capabilities', []))}",
        f"can: {', '.join(d.get('available_transitions', [])) or '-'}",
    ]
    for relation, value in d.get("relationships", {}).items():
        if isinstance(value, list):
            value = ", ".join(member["name"] for member in value) or "-"
        lines.append(f"{relation}: {value or '-'}")

    periods = d.get("periods", [])
    if periods:
        lines.append("")
        for period in periods:
            end = period.get("ended_at") or "open"
            line = f"{period['kind']}: {period['started_at']} .. {end}"
            if period.get("notes"):
                line += f"  ({period['notes']})"
            lines.append(line)

    title = f"{d.get('id', '?')}  {d.get('name', '')}"
    border = style_for_status(str(d.get("status", ""))) or "dim"
    console.print(Panel("\n".join(lines), title=title, border_style=border, expand=False))
    if verbose:
        _render_meta(console, result)


def _render_stats(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Bucket")
    table.add_column("Count", justify="right")
    for bucket, count in result.data.items():
        table.add_row(bucket, Text(str(count), style=style_for_status(bucket)))
    console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_merge(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    stable = result.data.get("stable", {})
    retired = result.data.get("retired", {})
    _field(console, "stable", f"{stable.get('name')} ({stable.get('id')})")
    relationships = stable.get("relationships", {})
    for relation in ("wrestlers", "tag_teams", "managers"):
        members = relationships.get(relation, [])
        _field(console, relation, ", ".join(m["name"] for m in members) or "-")
    _field(console, "retired", f"{retired.get('name')} ({retired.get('id')})")
    if verbose:
        _render_meta(console, result)


def _render_drain(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    events = result.data.get("events", [])
    _field(console, "retried", len(events))
    for event in events:
        console.print(f"    {event['id']}  {event['hook_name']}  {event['status']}")


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "list": _render_list,
    "show": _render_show,
    "stats": _render_stats,
    "merge": _render_merge,
    "drain": _render_drain,
}
