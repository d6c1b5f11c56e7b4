"""Command-line interface for autorip."""

import asyncio
import logging
import os
import subprocess
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import AutoRipConfig, create_sample_config, load_config
from .core.daemon import AutoRipDaemon
from .core.service import build_service
from .disc.inventory import MakeMKVInventory
from .disc.models import DiscRecord
from .error_handling import (
    AutoRipError,
    ConfigurationError,
    check_dependencies,
    graceful_exit,
    handle_error,
)
from .notify.ntfy import NtfyNotifier
from .process_lock import ProcessLock

console = Console()

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "autorip" / "config.toml"


def setup_logging(
    *,
    verbose: bool = False,
    config: AutoRipConfig | None = None,
) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    cleanup_logging()

    show_path = level == logging.DEBUG
    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, show_path=show_path),
    ]

    if config and config.log_dir:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_dir / "autorip.log")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            ),
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


def cleanup_logging() -> None:
    """Close file handlers on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root_logger.removeHandler(handler)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """autorip - Rip every disc inserted into your optical drives, once."""
    try:
        ctx.ensure_object(dict)
        loaded_config = load_config(config)
        ctx.obj["config"] = loaded_config
        ctx.obj["verbose"] = verbose

        setup_logging(verbose=verbose, config=loaded_config)
    except (OSError, ValueError, ValidationError) as e:
        config_error = ConfigurationError(
            f"Failed to load configuration: {e}",
            config_path=config,
            solution="Run 'autorip config validate' to check your configuration file",
        )
        console.print(f"[red]Configuration Error:[/red] {config_error}")
        sys.exit(1)


@cli.group("config")
def config_cmd() -> None:
    """Configuration management commands."""


@config_cmd.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: AutoRipConfig = ctx.obj["config"]

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Mode", config.mode.value)
    table.add_row("Poll Interval", f"{config.poll_interval:g}s")
    table.add_row("Rip Directory", str(config.rip_dir))
    table.add_row("Backup Directory", str(config.backup_dir))
    table.add_row("Log Directory", str(config.log_dir))
    table.add_row("MakeMKV", config.makemkv_con)
    table.add_row("Eject After", "yes" if config.eject_after else "no")
    table.add_row("Ntfy Topic", config.ntfy_topic or "Not configured")

    console.print(table)


@config_cmd.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate current configuration."""
    config: AutoRipConfig = ctx.obj["config"]

    console.print("[bold]Configuration Validation[/bold]")
    errors = []

    for name, path in [
        ("Rip", config.rip_dir),
        ("Backup", config.backup_dir),
        ("Log", config.log_dir),
    ]:
        try:
            path.mkdir(parents=True, exist_ok=True)
            console.print(f"[green]✓[/green] {name} directory: {path}")
        except OSError as e:
            console.print(f"[red]✗[/red] {name} directory: {e}")
            errors.append(f"{name} directory: {e}")

    for dep in check_dependencies(config.makemkv_con):
        if dep.log_level >= logging.ERROR:
            console.print(f"[red]✗[/red] {dep.message}")
            errors.append(dep.message)
        else:
            console.print(f"[yellow]⚠[/yellow] {dep.message}")

    if errors:
        console.print(f"\n[red]Found {len(errors)} configuration errors[/red]")
        sys.exit(1)
    else:
        console.print("\n[green]Configuration is valid[/green]")


@config_cmd.command("init")
@click.option(
    "--path",
    "-p",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Path for the configuration file",
)
def config_init(path: Path) -> None:
    """Create a sample configuration file."""
    try:
        create_sample_config(path)
        console.print(f"[green]Created sample configuration at {path}[/green]")
        console.print("Please edit the configuration file with your settings.")
    except OSError as e:
        console.print(f"[red]Error creating configuration: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--systemd", is_flag=True, help="Running under systemd (internal)")
@click.pass_context
def start(ctx: click.Context, systemd: bool) -> None:
    """Start polling the drives and process every new disc."""
    config: AutoRipConfig = ctx.obj["config"]

    daemon = AutoRipDaemon(config)
    try:
        if systemd or os.getenv("INVOCATION_ID"):
            daemon.start_systemd_mode()
        else:
            daemon.start_daemon()
    except RuntimeError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


@cli.command()
def stop() -> None:
    """Stop the running autorip process."""
    process_info = ProcessLock.find_autorip_process()

    if not process_info:
        console.print("[yellow]autorip is not running[/yellow]")
        return

    pid, mode = process_info
    console.print(f"[blue]Stopping autorip {mode} mode (PID {pid})...[/blue]")

    if ProcessLock.stop_process(pid):
        console.print("[green]autorip stopped[/green]")
    else:
        console.print(f"[red]Failed to stop autorip process {pid}[/red]")
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show whether autorip is running and which discs are inserted."""
    config: AutoRipConfig = ctx.obj["config"]

    console.print("[bold]System Status[/bold]")

    process_info = ProcessLock.find_autorip_process()
    if process_info:
        pid, mode = process_info
        console.print(f"autorip: [green]Running in {mode} mode (PID {pid})[/green]")
    else:
        console.print("autorip: [red]Not running[/red]")

    console.print(f"Mode: {config.mode.value}, polling every {config.poll_interval:g}s")

    try:
        discs = MakeMKVInventory(config).list_discs()
    except AutoRipError as e:
        console.print(f"Drives: [yellow]{e.message}[/yellow]")
        return

    if discs:
        console.print(format_disc_table(discs))
    else:
        console.print("Drives: No disc detected")


@cli.command()
@click.option("--full", is_flag=True, help="Also scan titles on each disc (slow)")
@click.pass_context
def drives(ctx: click.Context, full: bool) -> None:
    """List discs currently reported by MakeMKV."""
    config: AutoRipConfig = ctx.obj["config"]
    inventory = MakeMKVInventory(config)

    async def collect() -> list[DiscRecord]:
        found = await inventory.detect_available()
        if full and found:
            found = await inventory.enrich(found)
        return found

    try:
        discs = asyncio.run(collect())
    except AutoRipError as e:
        e.display_to_user()
        sys.exit(1)

    if not discs:
        console.print("No disc detected")
        return

    console.print(format_disc_table(discs))


@cli.command("scan-once")
@click.pass_context
def scan_once(ctx: click.Context) -> None:
    """Run a single scan cycle in the foreground and process new discs."""
    config: AutoRipConfig = ctx.obj["config"]
    service = build_service(config)

    try:
        dispatched = asyncio.run(service.scan_once())
    except Exception as e:
        handle_error(e)
        graceful_exit(1)
        return

    if not dispatched:
        console.print("No new discs to process")
        return

    console.print(format_disc_table(dispatched))
    if service.dispatcher.last_run_ok:
        console.print(
            f"[green]Finished {config.mode.value} of {len(dispatched)} disc(s)[/green]",
        )
    else:
        console.print(
            f"[red]{config.mode.value.capitalize()} failed for "
            f"{len(dispatched)} disc(s)[/red]",
        )
        console.print("[dim]Run 'autorip show' for details[/dim]")
        sys.exit(1)


@cli.command()
@click.option("--follow", "-f", is_flag=True, help="Follow log output")
@click.option("--lines", "-n", type=int, default=10, help="Number of lines to show")
@click.pass_context
def show(ctx: click.Context, follow: bool, lines: int) -> None:
    """Show autorip log output with colors."""
    config: AutoRipConfig = ctx.obj["config"]
    log_file = config.log_dir / "autorip.log"

    if not log_file.exists():
        console.print("[yellow]No log file found[/yellow]")
        console.print(f"Expected location: {log_file}")
        sys.exit(1)

    if follow:
        cmd = ["tail", "-f", str(log_file)]
    else:
        cmd = ["tail", "-n", str(lines), str(log_file)]

    try:
        with subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
        ) as proc:
            try:
                for line in proc.stdout:
                    _colorize_log_line(line.rstrip())
            except KeyboardInterrupt:
                proc.terminate()
                sys.exit(0)
    except FileNotFoundError:
        console.print("[red]tail command not found - install coreutils[/red]")
        sys.exit(1)

    if proc.returncode != 0:
        console.print("[red]Error running tail command[/red]")
        sys.exit(1)


@cli.command("test-notify")
@click.pass_context
def test_notify(ctx: click.Context) -> None:
    """Send a test notification."""
    config: AutoRipConfig = ctx.obj["config"]

    if not config.ntfy_topic:
        console.print("[yellow]No ntfy_topic configured[/yellow]")
        return

    if NtfyNotifier(config).test_notification():
        console.print("[green]Test notification sent successfully[/green]")
    else:
        console.print("[red]Failed to send test notification[/red]")


def format_duration(seconds: int) -> str:
    """Format duration in seconds as H:MM:SS."""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours}:{minutes:02d}:{secs:02d}"


def format_disc_table(discs: list[DiscRecord]) -> Table:
    """Format disc records into a table."""
    table = Table()
    table.add_column("Drive", justify="right")
    table.add_column("Title")
    table.add_column("Device")
    table.add_column("Titles", justify="right")
    table.add_column("Longest")

    for disc in discs:
        if disc.file_info:
            title_count = str(len(disc.file_info))
            longest = format_duration(max(t.duration for t in disc.file_info))
        else:
            title_count = "-"
            longest = "-"

        table.add_row(
            str(disc.drive_id),
            disc.title,
            disc.device or "-",
            title_count,
            longest,
        )

    return table


def _colorize_log_line(line: str) -> None:
    """Colorize a single log line based on log level."""
    if " ERROR " in line:
        console.print(f"[red]{line}[/red]")
    elif " WARNING " in line:
        console.print(f"[yellow]{line}[/yellow]")
    elif " INFO " in line:
        console.print(f"[blue]{line}[/blue]")
    elif " DEBUG " in line:
        console.print(f"[dim]{line}[/dim]")
    else:
        console.print(line)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
