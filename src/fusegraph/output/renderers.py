"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console backed by StringIO; the caller
extracts the text via ``get_output(console)``. Renderers are dispatched by
``result.op``; unknown ops fall back to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from fusegraph.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from fusegraph.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: names of created or listed items."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    items = result.data.get("subgraphs") or result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item.get("name", "")) for item in items if isinstance(item, dict))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="fg.ok"), Text(f"  {result.op}", style="fg.op"))


def _field(console: Console, key: str, value: Any) -> None:
    style = "fg.name" if key in ("property", "graph", "name") else ""
    console.print(Text(f"  {key}:", style="fg.key"), Text(str(value), style=style))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the telemetry span tree (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_span(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    duration = span.get("duration_ms", 0.0)
    style = "bold red" if duration > 1000 else "yellow" if duration > 100 else "dim"
    line = f"{' ' * indent}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    annotations = span.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)
    for child in span.get("children", []):
        _render_span(console, child, indent + 4)


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="fg.error"), Text(f"  {result.op}", style="fg.op"), " — ", escape(msg)
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


def _render_rewrite(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("property", "graph", "seeds", "subgraph_count", "node_count"):
        _field(console, key, d.get(key, ""))

    if d.get("subgraphs"):
        table = Table(show_header=True, pad_edge=False)
        table.add_column("Name", style="fg.name", no_wrap=True)
        table.add_column("Op", style="fg.kind")
        table.add_column("In", justify="right")
        table.add_column("Out", justify="right")
        table.add_column("Members")
        for item in d["subgraphs"]:
            table.add_row(
                item["name"],
                item["op"],
                str(item["num_inputs"]),
                str(item["num_outputs"]),
                ", ".join(item["members"]),
            )
        console.print()
        console.print(table)

    for item in d.get("rejected", []):
        seed = escape(item["seed"])
        console.print(f"  [fg.warning]rejected[/fg.warning] {seed} ({item['code']})")
    if verbose:
        _render_meta(console, result)


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "graph", d.get("graph", ""))
    _field(console, "healthy", d.get("healthy", False))
    _field(console, "errors", d.get("error_count", 0))
    _field(console, "warnings", d.get("warning_count", 0))
    for issue in d.get("issues", []):
        style = "fg.error" if issue["severity"] == "error" else "fg.warning"
        label = f"[{style}]{issue['severity']}[/{style}]"
        console.print(f"  {label} {issue['category']}: {escape(issue['message'])}")
    if verbose:
        _render_meta(console, result)


def _render_properties(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    table = Table(show_header=True, pad_edge=False)
    table.add_column("Property", style="fg.name", no_wrap=True)
    table.add_column("Subgraph op", style="fg.kind")
    for item in result.data.get("items", []):
        table.add_row(item["name"], item["subgraph_op"])
    console.print(table)


_OP_RENDERERS: dict[str, Any] = {
    "rewrite": _render_rewrite,
    "check": _render_check,
    "list_properties": _render_properties,
}
