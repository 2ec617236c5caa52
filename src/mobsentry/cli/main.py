"""Command-line interface for mobsentry.

This module provides the Typer-based CLI for scanning React Native and
Expo projects, with options for exclusions, ignored rules, caching and
output format.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mobsentry import __version__
from mobsentry.api import scan_project
from mobsentry.config import (
    find_config_file,
    load_config,
    resolve_config,
    validate_config_file,
)
from mobsentry.config.env import get_env_var_docs
from mobsentry.config.schema import OutputFormatConfig
from mobsentry.core.exceptions import ConfigError, MobsentryError, ScanError
from mobsentry.core.logging import setup_logging
from mobsentry.core.progress import ScanProgress
from mobsentry.cli.output import format_json, format_table

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_FINDINGS = 2

app = typer.Typer(
    name="mobsentry",
    help="mobsentry - static security analysis for React Native and Expo apps.",
    add_completion=False,
)
console = Console()
error_console = Console(stderr=True)


def _display_error(error: Exception, title: str = "Error") -> None:
    """Display an error with rich formatting.

    Args:
        error: The exception to display.
        title: The title for the error panel.
    """
    if isinstance(error, ScanError):
        message = f"[bold red]Scan Error[/bold red]\n\n{error.message}"
        if error.path:
            message += f"\n\n[dim]Path:[/dim] {error.path}"
        error_console.print(Panel(message, title="[red]Scan Error[/red]", border_style="red"))
    elif isinstance(error, ConfigError):
        message = f"[bold red]Configuration Error[/bold red]\n\n{error.message}"
        if error.config_key:
            message += f"\n\n[dim]Config key:[/dim] {error.config_key}"
        error_console.print(Panel(message, title="[red]Config Error[/red]", border_style="red"))
    elif isinstance(error, MobsentryError):
        message = f"[bold red]Error[/bold red]\n\n{error.message}"
        error_console.print(Panel(message, title=f"[red]{title}[/red]", border_style="red"))
    else:
        error_console.print(
            Panel(
                f"[bold red]{title}[/bold red]\n\n{error}",
                title="[red]Error[/red]",
                border_style="red",
            )
        )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]mobsentry[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.command()
def scan(
    path: Annotated[
        Path,
        typer.Argument(help="Project directory or single file to scan"),
    ],
    concurrency: Annotated[
        Optional[int],
        typer.Option("--concurrency", "-j", help="Number of files processed at once"),
    ] = None,
    exclude: Annotated[
        Optional[List[str]],
        typer.Option("--exclude", "-e", help="Glob pattern to exclude (repeatable)"),
    ] = None,
    ignore: Annotated[
        Optional[List[str]],
        typer.Option("--ignore", "-i", help="Rule id to skip (repeatable)"),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Scan every file without the incremental cache"),
    ] = False,
    clear_cache: Annotated[
        bool,
        typer.Option("--clear-cache", help="Drop the incremental cache before scanning"),
    ] = False,
    format: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help="Output format (table, json)", case_sensitive=False),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a configuration file"),
    ] = None,
    verbose: Annotated[
        Optional[bool],
        typer.Option("--verbose", "-v", help="Show skipped files and rule failures"),
    ] = None,
    quiet: Annotated[
        Optional[bool],
        typer.Option("--quiet", "-q", help="Only print findings output and errors"),
    ] = None,
) -> None:
    """Scan a project for mobile app security issues.

    Exit codes:
        0: No findings
        1: Error occurred
        2: Findings reported
    """
    path = path.resolve()
    if not path.exists():
        _display_error(ScanError("Path does not exist", path=str(path)))
        raise typer.Exit(code=EXIT_ERROR)

    cli_args = {
        "concurrency": concurrency,
        "exclude": exclude,
        "ignore": ignore,
        "no_cache": no_cache,
        "format": format,
        "verbose": verbose,
        "quiet": quiet,
    }

    try:
        config = load_config(
            config_path=config_file,
            cli_args=cli_args,
            start_path=path if path.is_dir() else path.parent,
        )
    except ConfigError as e:
        _display_error(e)
        raise typer.Exit(code=EXIT_ERROR) from None

    quiet_mode = config.output.quiet
    verbose_mode = config.output.verbose and not quiet_mode
    logger = setup_logging(verbose=verbose_mode, level=config.log_level.value)

    if verbose_mode:
        console.print(f"[dim]Scanning:[/dim] {path}")
        console.print(f"[dim]Concurrency:[/dim] {config.scan.concurrency}")
        console.print(f"[dim]Cache:[/dim] {'on' if config.cache.enabled else 'off'}")

    def report_progress(progress: ScanProgress) -> None:
        logger.debug(
            "Progress: %d/%d files (%.0f%%)",
            progress.current,
            progress.total,
            progress.percent_complete,
        )

    try:
        result = asyncio.run(
            scan_project(
                path,
                config,
                logger=logger,
                clear_cache=clear_cache,
                on_progress=report_progress if verbose_mode else None,
            )
        )
    except MobsentryError as e:
        _display_error(e)
        raise typer.Exit(code=EXIT_ERROR) from None
    except KeyboardInterrupt:
        if not quiet_mode:
            error_console.print("\n[yellow]Scan interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_ERROR) from None
    except Exception as e:
        _display_error(e, title="Error during scan")
        raise typer.Exit(code=EXIT_ERROR) from None

    if config.output.format == OutputFormatConfig.JSON:
        # Plain print keeps Rich from wrapping the JSON
        print(format_json(result))
    elif not quiet_mode or result.findings:
        table_output = format_table(result, title=f"Scan Results: {path}")
        console.print(table_output, markup=False, highlight=False)

    raise typer.Exit(code=EXIT_FINDINGS if result.findings else EXIT_SUCCESS)


config_app = typer.Typer(
    name="config",
    help="Inspect and validate mobsentry configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app)


@config_app.command("show")
def config_show(
    path: Annotated[
        Optional[Path],
        typer.Argument(help="Directory where config file discovery starts"),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a configuration file"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (yaml, json)", case_sensitive=False),
    ] = "yaml",
    sources: Annotated[
        bool,
        typer.Option("--sources", help="Show where each setting came from"),
    ] = False,
) -> None:
    """Display the effective configuration after merging every layer."""
    format = format.lower()
    if format not in ("yaml", "json"):
        _display_error(ConfigError(f"Unsupported format: {format}. Use yaml or json."))
        raise typer.Exit(code=EXIT_ERROR)

    try:
        resolved = resolve_config(config_path=config_file, start_path=path)
    except ConfigError as e:
        _display_error(e)
        raise typer.Exit(code=EXIT_ERROR) from None

    data = resolved.config.model_dump(mode="json")
    if format == "json":
        print(json.dumps(data, indent=2))
        return

    if resolved.config_file is not None:
        console.print(f"[dim]Config file:[/dim] {resolved.config_file}")
    else:
        console.print("[dim]No config file found, using defaults[/dim]")
    print(yaml.safe_dump(data, sort_keys=False), end="")

    if sources:
        table = Table(title="Configuration Sources", header_style="bold cyan")
        table.add_column("Setting")
        table.add_column("Source")
        for key in sorted(resolved.sources):
            table.add_row(key, resolved.sources[key].value)
        console.print(table)

        env_table = Table(title="Environment Variables", header_style="bold cyan")
        env_table.add_column("Variable")
        env_table.add_column("Description")
        env_table.add_column("Value")
        for name, description in get_env_var_docs().items():
            env_table.add_row(name, description, os.environ.get(name, "-"))
        console.print(env_table)


@config_app.command("validate")
def config_validate(
    config_file: Annotated[
        Optional[Path],
        typer.Argument(help="Config file to check (default: nearest discovered file)"),
    ] = None,
) -> None:
    """Validate a configuration file and report every problem found."""
    if config_file is None:
        config_file = find_config_file()
        if config_file is None:
            _display_error(ConfigError("No config file found"))
            raise typer.Exit(code=EXIT_ERROR)

    errors = validate_config_file(config_file)
    if errors:
        details = "\n".join(f"- {escape(error)}" for error in errors)
        heading = f"[bold red]Validation failed[/bold red] for {escape(str(config_file))}"
        error_console.print(
            Panel(
                f"{heading}\n\n{details}",
                title="[red]Config Error[/red]",
                border_style="red",
            )
        )
        raise typer.Exit(code=EXIT_ERROR)

    console.print(f"[green]Configuration is valid:[/green] {escape(str(config_file))}")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """mobsentry - static security analysis for React Native and Expo apps.

    Use 'mobsentry scan <path>' to scan a project and 'mobsentry config' to
    inspect or validate its configuration.
    """
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


if __name__ == "__main__":
    app()
