"""CLI entry point for studyhost.

Invoked as::

    studyhost [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m studyhost.cli.main

Commands
--------
status      Load a plugin root and list loaded and failed studies
check       Evaluate, interface-check and lint one plugin file
export      Export the default settings of every study under a root
watch       Run a study runtime and hot-reload plugins on change
version     Show version information
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from studyhost.config import RuntimeConfig, load_config
from studyhost.errors import ConfigError

console = Console()
err_console = Console(stderr=True)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _config_for_root(ctx: click.Context, root: str) -> RuntimeConfig:
    config: RuntimeConfig = ctx.obj
    return config.with_overrides(plugin_root=root)


async def _load_snapshot(config: RuntimeConfig) -> dict[str, Any]:
    """Load every plugin under the configured root and collect a snapshot.

    Runs inside an event loop so plugins that schedule timers at import
    time load the same way they do in a host.
    """
    from studyhost.manager import StudyManager

    manager = StudyManager(config)
    try:
        manager.loader.load_all()
        return {
            "status": manager.status(),
            "studies": manager.get_available_studies(),
            "settings": manager.export_settings(),
        }
    finally:
        manager.loader.clear()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="studyhost")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file (defaults to ./studyhost.yaml if present)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """Plugin runtime for sandboxed, hot-reloadable chart studies."""
    try:
        config = load_config(config_path).with_overrides(log_level=log_level)
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)
    _configure_logging(config.log_level)
    ctx.obj = config


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from studyhost import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]studyhost[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# status command
# ---------------------------------------------------------------------------


@cli.command(name="status")
@click.argument("root", type=click.Path(exists=False, file_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format",
)
@click.pass_context
def status_command(ctx: click.Context, root: str, output_format: str) -> None:
    """Load every study under ROOT and report the outcome.

    ROOT is the plugin directory to scan recursively.
    """
    snapshot = asyncio.run(_load_snapshot(_config_for_root(ctx, root)))
    status = snapshot["status"]

    if output_format == "json":
        click.echo(json.dumps(status, indent=2, default=str))
        return

    if status["loaded_count"]:
        table = Table(title=f"Studies: {root}", show_lines=True)
        table.add_column("Id", style="bold", min_width=10)
        table.add_column("Name")
        table.add_column("Category")
        table.add_column("Enabled", min_width=7)
        for study in snapshot["studies"]:
            enabled = "[green]yes[/green]" if study["enabled"] else "[dim]no[/dim]"
            table.add_row(study["id"], str(study["name"]), str(study["category"]), enabled)
        console.print(table)

    if status["errors"]:
        failed = Table(title="Failed to load", show_lines=True)
        failed.add_column("Id", style="bold red", min_width=10)
        failed.add_column("Error")
        for study_id, message in status["errors"].items():
            failed.add_row(study_id, message)
        console.print(failed)

    console.print(
        f"\n[bold]Summary:[/bold] {status['loaded_count']} loaded, "
        f"{status['error_count']} failed [dim]({status['plugin_root']})[/dim]"
    )


# ---------------------------------------------------------------------------
# check command
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("file", type=click.Path(exists=False, dir_okay=False))
@click.option("--no-hints", is_flag=True, default=False, help="Suppress HINT-level findings")
def check_command(file: str, no_hints: bool) -> None:
    """Evaluate, interface-check and lint a single plugin file.

    FILE is the path to the plugin source to check.
    """
    from studyhost.checking import check_source
    from studyhost.loader.discovery import derive_study_id
    from studyhost.validator import Severity

    path = Path(file)
    try:
        source = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {file}")
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {file}: {exc}")
        sys.exit(1)

    study_id = derive_study_id(path, path.parent)

    async def _check() -> list[Any]:
        return check_source(source, study_id, str(path))

    diagnostics = asyncio.run(_check())
    if no_hints:
        diagnostics = [d for d in diagnostics if d.severity is not Severity.HINT]

    if not diagnostics:
        console.print(f"[green]OK[/green] {file}: no issues found")
        sys.exit(0)

    table = Table(title=f"Check: {file}", show_lines=True)
    table.add_column("Severity", style="bold", min_width=10)
    table.add_column("Code", min_width=8)
    table.add_column("Location", min_width=10)
    table.add_column("Message")

    for d in diagnostics:
        style = d.severity.style
        table.add_row(
            f"[{style}]{d.severity.value}[/{style}]",
            d.code,
            d.location,
            d.message + (f"\n[dim]hint: {d.suggestion}[/dim]" if d.suggestion else ""),
        )

    errors = [d for d in diagnostics if d.is_error]
    console.print(table)
    console.print(
        f"\n[bold]Summary:[/bold] {len(errors)} error(s), "
        f"{len(diagnostics) - len(errors)} other finding(s)"
    )

    if errors:
        sys.exit(1)


# ---------------------------------------------------------------------------
# export command
# ---------------------------------------------------------------------------


@cli.command(name="export")
@click.argument("root", type=click.Path(exists=False, file_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    help="Export format",
)
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
@click.pass_context
def export_command(ctx: click.Context, root: str, output_format: str, output: str | None) -> None:
    """Export the settings of every study under ROOT.

    ROOT is the plugin directory to scan recursively. The export maps each
    study id to its settings and can be replayed with
    ``StudyManager.import_settings``.
    """
    snapshot = asyncio.run(_load_snapshot(_config_for_root(ctx, root)))
    settings = snapshot["settings"]

    if output_format == "json":
        text = json.dumps(settings, indent=2, sort_keys=True, default=str)
        lang = "json"
    else:
        text = yaml.dump(settings, default_flow_style=False, allow_unicode=True)
        lang = "yaml"

    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]Settings of {len(settings)} study(ies) written to[/green] {output}")
    else:
        syntax = Syntax(text, lang, line_numbers=True)
        console.print(syntax)

    if snapshot["status"]["error_count"]:
        err_console.print(
            f"[yellow]Warning:[/yellow] {snapshot['status']['error_count']} study(ies) failed to load"
        )


# ---------------------------------------------------------------------------
# watch command
# ---------------------------------------------------------------------------


async def _watch(config: RuntimeConfig, duration: float | None) -> dict[str, Any]:
    from studyhost.lifecycle.context import StudyContext
    from studyhost.manager import StudyManager

    manager = StudyManager(config)
    await manager.initialize(StudyContext())
    manager.log_status()
    manager.start_watching()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
        return manager.status()
    finally:
        await manager.close()


@cli.command(name="watch")
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds (runs until interrupted by default)",
)
@click.pass_context
def watch_command(ctx: click.Context, root: str, duration: float | None) -> None:
    """Run a study runtime over ROOT and hot-reload plugins as they change.

    ROOT is the plugin directory to watch. Reconciliation events are
    written to the log.
    """
    console.print(f"[bold]Watching[/bold] {root} [dim](Ctrl+C to stop)[/dim]")
    try:
        status = asyncio.run(_watch(_config_for_root(ctx, root), duration))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
        return
    console.print(
        f"[bold]Stopped:[/bold] {status['loaded_count']} loaded, {status['error_count']} failed"
    )


if __name__ == "__main__":
    cli()
