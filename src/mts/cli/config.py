"""Config CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from mts.config.loader import load_config, save_config
from mts.config.schema import MtsConfig

console = Console()
app = typer.Typer(no_args_is_help=True)


@app.command("init")
def config_init(
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file path"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing config"
    ),
):
    """Create a new .mts.yaml configuration file."""
    if output is None:
        output = Path.cwd() / ".mts.yaml"

    if output.exists() and not force:
        console.print(f"[yellow]Warning:[/yellow] {output} already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    save_config(MtsConfig.get_default(), output, exclude_defaults=False)
    console.print(f"[green]✓[/green] Created: {output}")


@app.command("show")
def config_show(
    ctx: typer.Context,
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Output format (yaml, table)"
    ),
):
    """Display current configuration."""
    config_file = ctx.obj.get("config_file") if ctx.obj else None
    config = load_config(config_file=config_file)

    if format == "yaml":
        data = config.model_dump()
        yaml_str = yaml.dump(data, default_flow_style=False, allow_unicode=True)
        syntax = Syntax(yaml_str, "yaml", theme="monokai")
        console.print(syntax)

    elif format == "table":
        table = Table(title="MTS Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Script", config.paths.script or "-")
        table.add_row("Globals", config.paths.globals_file or "-")
        table.add_row("Elements", config.paths.elements_file or "-")
        table.add_row("Libraries", config.paths.libraries_dir or "-")
        table.add_row("Base URL", config.app.base_url or "-")
        table.add_row("Browser", config.browser.ws_url or f"{config.browser.browser} (local)")
        table.add_row("Command Delay", f"{config.execution.command_delay_ms}ms")
        table.add_row(
            "Element Wait",
            f"{config.execution.wait_timeout_ms}ms every {config.execution.poll_interval_ms}ms",
        )

        console.print(table)
