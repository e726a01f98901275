"""Script CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
app = typer.Typer(no_args_is_help=True)


def _load_config(ctx: typer.Context):
    from mts.config.loader import load_config

    config_file = ctx.obj.get("config_file") if ctx.obj else None
    config = load_config(config_file=config_file)
    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    return config


def _script_path(file: Optional[Path], config) -> Path:
    if file is None and config.paths.script:
        file = Path(config.paths.script)
    if file is None:
        console.print("[red]No script given[/red] (pass a file or set MTS_SCRIPT)")
        raise typer.Exit(1)
    if not file.exists():
        console.print(f"[red]Script not found:[/red] {file}")
        raise typer.Exit(1)
    return file


@app.command("parse")
def parse_script(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Path to script file"),
    validate: bool = typer.Option(
        False, "--validate", "-v", help="Validate commands and libraries"
    ),
    output_json: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON"
    ),
):
    """Parse and display script commands."""
    from mts.core.script.capabilities import CapabilityRegistry
    from mts.core.script.parser import ScriptParser

    config = _load_config(ctx)
    file = _script_path(file, config)
    parser = ScriptParser()

    try:
        script = parser.parse(file)
    except Exception as e:
        console.print(f"[red]Error parsing script:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if validate:
        libraries = config.paths.libraries_dir
        registry = CapabilityRegistry(
            Path(libraries) if libraries else None,
            cache_key=config.capabilities.cache_key,
        )
        is_valid, errors, warnings = parser.validate(script, registry)

        if errors:
            console.print("[red]Validation Errors:[/red]")
            for error in errors:
                console.print(f"  [red]✗[/red] {escape(error)}")

        if warnings:
            console.print("[yellow]Warnings:[/yellow]")
            for warning in warnings:
                console.print(f"  [yellow]![/yellow] {warning}")

        if is_valid:
            console.print("[green]✓ Script is valid[/green]")
        else:
            raise typer.Exit(1)

    if output_json:
        console.print_json(json.dumps(script.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_command_table(script)


def _print_command_table(script) -> None:
    """Print parsed commands."""
    console.print()
    console.print(f"[bold]{script.name}[/bold]")

    table = Table(show_header=True, box=None)
    table.add_column("Line", style="dim", justify="right")
    table.add_column("Library", style="cyan")
    table.add_column("Command", style="bold")
    table.add_column("Arguments")

    for command in script:
        library = ".".join(command.namespace) if command.namespace else "-"
        args = " ".join(
            f'"{a}"' if getattr(a, "quoted", False) else str(a) for a in command.args
        )
        table.add_row(str(command.line_number), library, command.core_command, escape(args))

    console.print(table)
    console.print()
    console.print(
        f"[dim]Total: {len(script)} commands, {len(script.libraries)} libraries[/dim]"
    )


@app.command("libs")
def list_libraries(ctx: typer.Context):
    """List capability libraries under the libraries directory."""
    from mts.core.script.capabilities import CapabilityRegistry

    config = _load_config(ctx)
    if not config.paths.libraries_dir:
        console.print("[yellow]No libraries directory configured[/yellow] (set MTS_LIBRARIES)")
        raise typer.Exit(1)

    registry = CapabilityRegistry(
        Path(config.paths.libraries_dir), cache_key=config.capabilities.cache_key
    )
    table = Table(title="Libraries")
    table.add_column("Namespace", style="cyan")
    table.add_column("Commands")
    table.add_column("Path", style="dim")

    for namespace, path in registry.scan():
        try:
            capability = registry.load(tuple(namespace.split(".")))
            commands = ", ".join(sorted(capability.commands))
        except Exception as e:
            commands = f"[red]{escape(str(e))}[/red]"
        table.add_row(namespace, commands, str(path))

    console.print(table)


@app.command("run")
def run_script_cmd(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Path to script file"),
    output_dir: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output directory for results.json"
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-b", help="Base URL opened before the first command"
    ),
    ws_url: Optional[str] = typer.Option(
        None, "--ws-url", help="Playwright server WebSocket URL"
    ),
    headed: bool = typer.Option(
        False, "--headed", help="Show the browser window"
    ),
):
    """Run a script."""
    import asyncio
    from mts.core.script.models import CommandStatus
    from mts.core.script.runner import run_script

    config = _load_config(ctx)
    file = _script_path(file, config)

    if output_dir:
        config.output.directory = str(output_dir)
    if base_url:
        config.app.base_url = base_url
    if ws_url:
        config.browser.ws_url = ws_url
    if headed:
        config.browser.headless = False

    console.print(f"\n[bold blue]Running script:[/bold blue] {file.name}")

    def on_command_start(command, depth):
        indent = "  " * (depth + 1)
        nested = command.core_command == "runScript"
        console.print(
            f"{indent}\\[{command.line_number}] {escape(command.command_text.strip())}...",
            end="\n" if nested else " ",
        )

    def on_command_complete(command, result):
        if result.status == CommandStatus.PASSED:
            console.print("[green]✓[/green]")
        else:
            console.print(f"[red]✗ {escape(result.error or '')}[/red]")

    try:
        session = asyncio.run(run_script(
            script_path=file,
            config=config,
            output=lambda line: console.print(f"[dim]{escape(line)}[/dim]"),
            on_command_start=on_command_start,
            on_command_complete=on_command_complete,
        ))
    except Exception as e:
        console.print(f"[red]Error running script:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    result = session.result
    console.print()
    console.print("━" * 50)
    console.print(f"[green]✓ {result.status.value.upper()}[/green]")
    console.print(f"  Commands: {result.total_commands}")
    console.print(f"  Duration: {result.duration_ms / 1000:.1f}s")
    if result.output_dir:
        console.print(f"  Output: {result.output_dir}")
