"""CLI entry point for permatrix."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pythonjsonlogger import jsonlogger
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from permatrix.catalog import DEFAULT_CATALOG, AccessCatalog
from permatrix.config import PermatrixConfig, load_config
from permatrix.config.loader import DEFAULT_CONFIG_TEMPLATE, PROJECT_CONFIG
from permatrix.editor import PermissionEditor
from permatrix.errors import PermatrixError
from permatrix.model import sample_model

app = typer.Typer(
    name="permatrix",
    help="Edit role x resource permission matrices as CSV or JSON.",
)

config_app = typer.Typer(help="Manage permatrix configuration.")
app.add_typer(config_app, name="config")

edit_app = typer.Typer(help="Apply one edit to a permission file.")
app.add_typer(edit_app, name="edit")

FORMATS = ("csv", "json")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Global state
_config: PermatrixConfig | None = None


def _get_config() -> PermatrixConfig:
    if _config is None:
        return load_config()
    return _config


def _configure_logging(cfg: PermatrixConfig) -> None:
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"asctime": "time", "levelname": "level", "name": "logger"},
            )
        )
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler], force=True)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to permatrix.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _configure_logging(_config)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _catalog(cfg: PermatrixConfig) -> AccessCatalog:
    return DEFAULT_CATALOG.extend(cfg.access_types)


def _detect_format(path: Path, fmt: str | None) -> str:
    """Pick csv/json from an explicit --format or the file suffix."""
    if fmt is not None:
        if fmt not in FORMATS:
            rprint(f"[red]Error:[/red] Unknown format '{escape(fmt)}'. Choose csv or json.")
            raise typer.Exit(1)
        return fmt
    suffix = path.suffix.lower().lstrip(".")
    if suffix in FORMATS:
        return suffix
    rprint(f"[red]Error:[/red] Cannot tell the format of {escape(str(path))}; pass --format.")
    raise typer.Exit(1)


def _load(path: Path, fmt: str) -> PermissionEditor:
    """Read *path* into a fresh editor, exiting with status 1 on any failure."""
    cfg = _get_config()
    editor = PermissionEditor(catalog=_catalog(cfg), json_indent=cfg.json_.indent)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        rprint(f"[red]Error:[/red] File not found: {escape(str(path))}")
        raise typer.Exit(1)

    try:
        if fmt == "csv":
            editor.decode_csv(text)
        else:
            editor.decode_json(text)
    except PermatrixError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    return editor


def _encode(editor: PermissionEditor, fmt: str) -> str:
    return editor.encode_csv() if fmt == "csv" else editor.encode_json()


def _write(dest: Path, text: str) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(text, encoding="utf-8")


def _matrix_table(editor: PermissionEditor, title: str) -> Table:
    snapshot = editor.snapshot()
    table = Table(title=title)
    table.add_column("Role", style="cyan")
    for resource in snapshot.resources:
        table.add_column(escape(resource.uri))

    for role in snapshot.roles:
        row = [escape(role)]
        for resource in snapshot.resources:
            grant = resource.grant_for(role)
            if grant is None:
                row.append("[dim]-[/dim]")
                continue
            labels = ", ".join(editor.catalog.label(kind) for kind in grant.access)
            cell = escape(labels) if labels else "[dim](none)[/dim]"
            if grant.filter:
                cell += " [yellow](filtered)[/yellow]"
            row.append(cell)
        table.add_row(*row)
    return table


# ---------------------------------------------------------------------------
# Inspection and conversion
# ---------------------------------------------------------------------------


@app.command()
def show(
    file: str = typer.Argument(..., help="Permission file (.csv or .json)"),
    format: Annotated[
        str | None, typer.Option("--format", "-f", help="Input format: csv or json")
    ] = None,
) -> None:
    """Show the permission matrix as a table."""
    path = Path(file)
    editor = _load(path, _detect_format(path, format))
    if not editor.uris():
        rprint("[yellow]No resources defined.[/yellow]")
        raise typer.Exit(0)
    rprint(_matrix_table(editor, f"Permissions ({escape(path.name)})"))

    for resource in editor.snapshot().resources:
        for grant in resource.grants:
            if grant.filter:
                rprint(
                    f"[dim]{escape(grant.role)} on {escape(resource.uri)}:[/dim] "
                    f"{escape(grant.filter)}"
                )


@app.command()
def roles(
    file: str = typer.Argument(..., help="Permission file (.csv or .json)"),
    format: Annotated[
        str | None, typer.Option("--format", "-f", help="Input format: csv or json")
    ] = None,
) -> None:
    """List every role referenced in the file."""
    path = Path(file)
    editor = _load(path, _detect_format(path, format))
    for role in editor.roles:
        typer.echo(role)


@app.command()
def validate(
    file: str = typer.Argument(..., help="Permission file (.csv or .json)"),
    format: Annotated[
        str | None, typer.Option("--format", "-f", help="Input format: csv or json")
    ] = None,
) -> None:
    """Check that a file decodes cleanly."""
    path = Path(file)
    editor = _load(path, _detect_format(path, format))
    snapshot = editor.snapshot()
    grants = sum(len(r.grants) for r in snapshot.resources)
    rprint(
        f"[green]OK[/green] {escape(str(path))}: {len(snapshot.resources)} resource(s), "
        f"{len(snapshot.roles)} role(s), {grants} grant(s)"
    )


@app.command()
def convert(
    file: str = typer.Argument(..., help="Permission file to convert"),
    to: Annotated[str, typer.Option("--to", "-t", help="Output format: csv or json")] = "csv",
    format: Annotated[
        str | None, typer.Option("--format", "-f", help="Input format: csv or json")
    ] = None,
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Write to this file")
    ] = None,
) -> None:
    """Convert between the CSV matrix and the JSON document."""
    if to not in FORMATS:
        rprint(f"[red]Error:[/red] Unknown format '{escape(to)}'. Choose csv or json.")
        raise typer.Exit(1)
    cfg = _get_config()
    path = Path(file)
    editor = _load(path, _detect_format(path, format))
    text = _encode(editor, to)

    if output is None and to == "csv":
        output = cfg.csv.export_filename
    if output is None:
        typer.echo(text)
        return
    _write(Path(output), text)
    rprint(f"[green]Written to[/green] {escape(output)}")


@app.command()
def sample(
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: csv or json")
    ] = "json",
) -> None:
    """Print the example policy."""
    if format not in FORMATS:
        rprint(f"[red]Error:[/red] Unknown format '{escape(format)}'. Choose csv or json.")
        raise typer.Exit(1)
    cfg = _get_config()
    editor = PermissionEditor(sample_model(), catalog=_catalog(cfg), json_indent=cfg.json_.indent)
    typer.echo(_encode(editor, format))


@app.command()
def catalog() -> None:
    """List the known access kinds."""
    cfg = _get_config()
    table = Table(title="Access Kinds")
    table.add_column("Kind", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Color")
    table.add_column("Text Color")
    for entry in _catalog(cfg):
        table.add_row(entry.kind, escape(entry.label), entry.color, entry.text_color)
    rprint(table)


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


def _apply_edit(
    file: str,
    format: str | None,
    output: str | None,
    action: Callable[[PermissionEditor], str],
) -> None:
    """Load *file*, run *action*, and write the result back in the same format."""
    path = Path(file)
    fmt = _detect_format(path, format)
    editor = _load(path, fmt)
    try:
        message = action(editor)
    except PermatrixError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    dest = Path(output) if output else path
    _write(dest, _encode(editor, fmt))
    rprint(f"{message} [dim]->[/dim] {escape(str(dest))}")


_FormatOption = Annotated[
    str | None, typer.Option("--format", "-f", help="File format: csv or json")
]
_OutputOption = Annotated[
    str | None, typer.Option("--output", "-o", help="Write here instead of in place")
]


@edit_app.command("add-resource")
def edit_add_resource(
    file: str = typer.Argument(..., help="Permission file"),
    uri: str = typer.Argument(..., help="Resource URI"),
    role: Annotated[
        list[str] | None,
        typer.Option("--role", "-r", help="Initial role (repeatable; default: all known roles)"),
    ] = None,
    format: _FormatOption = None,
    output: _OutputOption = None,
) -> None:
    """Add a resource with READ for its initial roles."""

    def action(editor: PermissionEditor) -> str:
        if editor.add_resource(uri, role or None) is None:
            return "[yellow]Blank URI ignored[/yellow]"
        return f"[green]Added resource[/green] {escape(uri)}"

    _apply_edit(file, format, output, action)


@edit_app.command("remove-resource")
def edit_remove_resource(
    file: str = typer.Argument(..., help="Permission file"),
    uri: str = typer.Argument(..., help="Resource URI"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    format: _FormatOption = None,
    output: _OutputOption = None,
) -> None:
    """Remove a resource."""
    if not yes and not typer.confirm(f'Remove the resource "{uri}"?'):
        raise typer.Exit(1)

    def action(editor: PermissionEditor) -> str:
        if editor.remove_resource(uri):
            return f"[green]Removed resource[/green] {escape(uri)}"
        return f"[yellow]No such resource[/yellow] {escape(uri)}"

    _apply_edit(file, format, output, action)


@edit_app.command("add-role")
def edit_add_role(
    file: str = typer.Argument(..., help="Permission file"),
    role: str = typer.Argument(..., help="Role name"),
    format: _FormatOption = None,
    output: _OutputOption = None,
) -> None:
    """Grant READ to a role on every resource that lacks it."""

    def action(editor: PermissionEditor) -> str:
        added = editor.add_role(role)
        return f"[green]Added role[/green] {escape(role)} to {added} resource(s)"

    _apply_edit(file, format, output, action)


@edit_app.command("remove-role")
def edit_remove_role(
    file: str = typer.Argument(..., help="Permission file"),
    role: str = typer.Argument(..., help="Role name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    format: _FormatOption = None,
    output: _OutputOption = None,
) -> None:
    """Remove a role from every resource."""
    if not yes and not typer.confirm(f'Remove the role "{role}" from all resources?'):
        raise typer.Exit(1)

    def action(editor: PermissionEditor) -> str:
        removed = editor.remove_role(role)
        return f"[green]Removed role[/green] {escape(role)} from {removed} resource(s)"

    _apply_edit(file, format, output, action)


@edit_app.command("toggle")
def edit_toggle(
    file: str = typer.Argument(..., help="Permission file"),
    role: str = typer.Argument(..., help="Role name"),
    uri: str = typer.Argument(..., help="Resource URI"),
    kind: str = typer.Argument(..., help="Access kind, e.g. CREATE"),
    format: _FormatOption = None,
    output: _OutputOption = None,
) -> None:
    """Grant an access kind if missing, revoke it if present."""

    def action(editor: PermissionEditor) -> str:
        granted = editor.toggle_access(role, uri, kind)
        verb = "[green]Granted[/green]" if granted else "[yellow]Revoked[/yellow]"
        return f"{verb} {escape(kind)} to {escape(role)} on {escape(uri)}"

    _apply_edit(file, format, output, action)


@edit_app.command("set-filter")
def edit_set_filter(
    file: str = typer.Argument(..., help="Permission file"),
    role: str = typer.Argument(..., help="Role name"),
    uri: str = typer.Argument(..., help="Resource URI"),
    text: str = typer.Argument(..., help="Filter expression; empty clears it"),
    format: _FormatOption = None,
    output: _OutputOption = None,
) -> None:
    """Set or clear the attribute filter of a grant."""

    def action(editor: PermissionEditor) -> str:
        editor.set_filter(role, uri, text)
        if editor.get_filter(role, uri) is None:
            return f"[yellow]Cleared filter[/yellow] for {escape(role)} on {escape(uri)}"
        return f"[green]Set filter[/green] for {escape(role)} on {escape(uri)}"

    _apply_edit(file, format, output, action)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(by_alias=True), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default permatrix.yaml in current directory."""
    target = Path(PROJECT_CONFIG)
    if target.exists() and not force:
        rprint("[yellow]permatrix.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
