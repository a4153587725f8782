"""CLI entry point for fileguard."""

import logging
import sys
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from fileguard import __version__
from fileguard.cli.constants import ExitCodes
from fileguard.cli.utils import get_console, get_error_console, setup_logging
from fileguard.config import (
    ConfigurationError,
    FileGuardSettings,
    get_config_path,
    load_settings,
    save_config,
)
from fileguard.config.constants import DEFAULT_STREAM_CHUNK_SIZE
from fileguard.exceptions import FileGuardError
from fileguard.sandbox import SecureFileManager
from fileguard.tools import SourceFileTools

app = typer.Typer(help="fileguard - Sandboxed file access for automated agents")

console = get_console()
error_console = get_error_console()

logger = logging.getLogger(__name__)


class CLIState:
    """Settings resolved by the top-level callback, shared with subcommands."""

    def __init__(self, settings: FileGuardSettings, config_path: Path):
        self.settings = settings
        self.config_path = config_path
        self._manager: SecureFileManager | None = None

    @property
    def manager(self) -> SecureFileManager:
        if self._manager is None:
            self._manager = SecureFileManager(self.settings.sandbox)
        return self._manager


def _fail(message: str) -> None:
    error_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(ExitCodes.GENERAL_ERROR)


def _interrupted() -> None:
    error_console.print("\n[yellow]Interrupted by user[/yellow]")
    raise typer.Exit(ExitCodes.INTERRUPTED)


def _state(ctx: typer.Context) -> CLIState:
    return ctx.find_root().obj


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    root: Path = typer.Option(None, "--root", help="Sandbox root directory"),
    config: Path = typer.Option(None, "--config", help="Path to settings.json"),
    log_level: str = typer.Option(
        None, "--log-level", help="Log level (debug, info, warning, error, critical)"
    ),
    version_flag: bool = typer.Option(False, "--version", help="Show version"),
) -> None:
    """fileguard - Sandboxed file access for automated agents.

    \b
    Examples:
        fileguard --root ./workspace ls                    # List files in the root
        fileguard read src/main.py                         # Print a file
        echo "x = 1" | fileguard write src/x.py            # Write from stdin
        fileguard patch src/x.py --old "x = 1" --new "x = 2"
        fileguard search TODO -r -C 2                      # Recursive search with context
        fileguard backups main.py                          # Backups of one file
        fileguard config show                              # Effective configuration
    """
    if version_flag:
        console.print(f"fileguard version {__version__}")
        raise typer.Exit(ExitCodes.SUCCESS)

    overrides: dict = {}
    if root is not None:
        overrides.setdefault("sandbox", {})["root_directory"] = str(root)
    if log_level:
        overrides["log_level"] = log_level

    config_path = config or get_config_path()
    try:
        settings = load_settings(config_path, overrides)
    except ConfigurationError as e:
        _fail(str(e))

    setup_logging(settings.log_level, settings.log_file)
    logger.debug(f"Sandbox root: {settings.sandbox.root_directory}")
    ctx.obj = CLIState(settings, config_path)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command("read")
def read_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path relative to the sandbox root"),
) -> None:
    """Print the content of a file."""
    try:
        content = _state(ctx).manager.read(path)
    except FileGuardError as e:
        _fail(str(e))
    typer.echo(content, nl=False)


@app.command("write")
def write_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path relative to the sandbox root"),
    content: str = typer.Option(None, "--content", "-c", help="Content (reads stdin if omitted)"),
    backup: bool = typer.Option(False, "--backup", help="Back up the existing file first"),
) -> None:
    """Write a file, replacing its content."""
    try:
        if content is None:
            content = sys.stdin.read()
        written = _state(ctx).manager.write(path, content, backup=backup)
    except FileGuardError as e:
        _fail(str(e))
    except KeyboardInterrupt:
        _interrupted()
    console.print(f"[green]Successfully wrote {written} bytes to {escape(path)}[/green]")


@app.command("stream-write")
def stream_write_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path relative to the sandbox root"),
) -> None:
    """Stream stdin into a file. The file is only replaced once stdin is fully read."""
    chunks = iter(lambda: sys.stdin.read(DEFAULT_STREAM_CHUNK_SIZE), "")
    try:
        written = _state(ctx).manager.stream_write(path, chunks)
    except FileGuardError as e:
        _fail(str(e))
    except KeyboardInterrupt:
        # the partially streamed temp file is already discarded
        _interrupted()
    console.print(f"[green]Successfully stream wrote {written} bytes to {escape(path)}[/green]")


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path relative to the sandbox root"),
    no_backup: bool = typer.Option(False, "--no-backup", help="Skip the backup"),
) -> None:
    """Delete a file (backed up first unless --no-backup)."""
    try:
        _state(ctx).manager.delete(path, backup=not no_backup)
    except FileGuardError as e:
        _fail(str(e))
    suffix = "" if no_backup else " (backup created)"
    console.print(f"[green]Successfully deleted {escape(path)}{suffix}[/green]")


@app.command("rename")
def rename_command(
    ctx: typer.Context,
    old_path: str = typer.Argument(..., help="Current file path"),
    new_path: str = typer.Argument(..., help="New file path"),
    no_backup: bool = typer.Option(False, "--no-backup", help="Skip the backup"),
) -> None:
    """Rename or move a file. Refuses to overwrite an existing destination."""
    try:
        _state(ctx).manager.rename(old_path, new_path, backup=not no_backup)
    except FileGuardError as e:
        _fail(str(e))
    console.print(
        f"[green]Successfully renamed/moved {escape(old_path)} to {escape(new_path)}[/green]"
    )


@app.command("patch")
def patch_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path relative to the sandbox root"),
    old: str = typer.Option(..., "--old", help="Exact text to replace (must occur once)"),
    new: str = typer.Option(..., "--new", help="Replacement text"),
) -> None:
    """Replace one unique fragment of a file (always backed up)."""
    try:
        outcome = _state(ctx).manager.partial_write(path, old, new)
    except FileGuardError as e:
        _fail(str(e))
    console.print(
        f"[green]Successfully updated {escape(path)} "
        f"(size change: {outcome.size_change} bytes)[/green]"
    )
    console.print(f"[dim]Backup: {escape(outcome.backup_path)}[/dim]")


@app.command("ls")
def list_command(
    ctx: typer.Context,
    directory: str = typer.Argument("", help="Directory relative to the sandbox root"),
) -> None:
    """List source files in a directory."""
    try:
        files = _state(ctx).manager.list_files(directory)
    except FileGuardError as e:
        _fail(str(e))

    location = directory or "workspace"
    if not files:
        console.print(f"No source files found in {escape(location)}")
        return

    table = Table(title=f"Files in {escape(location)}", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for info in files:
        table.add_row(escape(info.name), str(info.size), info.modified.isoformat())
    console.print(table)


@app.command("backups")
def backups_command(
    ctx: typer.Context,
    name: str = typer.Argument(None, help="Only show backups of this file name (e.g. main.py)"),
) -> None:
    """List backups taken before destructive operations."""
    backups = _state(ctx).manager.list_backups(name)
    if not backups:
        console.print(f"No backups found{f' for {escape(name)}' if name else ''}")
        return

    table = Table(title="Backups", show_header=True, header_style="bold cyan")
    table.add_column("Backup", style="cyan")
    table.add_column("Size", justify="right")
    for backup in backups:
        table.add_row(escape(backup.name), str(backup.stat().st_size))
    console.print(table)


@app.command("search")
def search_command(
    ctx: typer.Context,
    pattern: str = typer.Argument(..., help="Literal text to search for"),
    directory: str = typer.Argument("", help="Directory relative to the sandbox root"),
    recursive: bool = typer.Option(False, "-r", "--recursive", help="Search subdirectories"),
    ignore_case: bool = typer.Option(False, "-i", "--ignore-case", help="Case-insensitive"),
    context_lines: int = typer.Option(0, "-C", "--context", help="Lines of context", min=0),
) -> None:
    """Search file contents for a literal pattern."""
    try:
        report = _state(ctx).manager.search(
            pattern,
            directory=directory,
            recursive=recursive,
            ignore_case=ignore_case,
            context_lines=context_lines,
        )
    except FileGuardError as e:
        _fail(str(e))

    if not report.results:
        console.print(f'No matches found for pattern "{escape(pattern)}"')
    for result in report.results:
        console.print(f"[bold cyan]{escape(result.file)}[/bold cyan]")
        for match in result.matches:
            if match.context:
                first = match.line_number - len(match.context.before)
                for offset, line in enumerate(match.context.before):
                    console.print(f"  [dim]{first + offset}- {escape(line)}[/dim]")
            console.print(f"  [green]{match.line_number}:[/green] {escape(match.line)}")
            if match.context:
                for offset, line in enumerate(match.context.after, start=1):
                    console.print(f"  [dim]{match.line_number + offset}- {escape(line)}[/dim]")

    if report.truncated:
        error_console.print(
            f"[yellow]Search stopped after {report.directories_scanned} directories; "
            "results may be incomplete[/yellow]"
        )


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show sandbox statistics."""
    stats = _state(ctx).manager.stats()
    table = Table(title="Sandbox Statistics", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Active Operations", str(stats.active_operations))
    table.add_row("Workspace Directory", escape(stats.root_directory))
    table.add_row(
        "Max File Size", f"{stats.max_file_size} bytes ({stats.max_file_size / 1024 / 1024:.1f} MB)"
    )
    table.add_row("Max Concurrent Operations", str(stats.max_concurrent_operations))
    table.add_row("Version", __version__)
    console.print(table)


@app.command("tools")
def tools_command(ctx: typer.Context) -> None:
    """List the tools exposed to agents."""
    toolset = SourceFileTools(_state(ctx).manager)
    table = Table(title="Tools", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for tool in toolset.get_tools():
        doc = (tool.__doc__ or "").strip()
        summary = doc.splitlines()[0] if doc else ""
        table.add_row(tool.__name__, summary)
    console.print(table)


config_app = typer.Typer(help="Inspect fileguard configuration")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show_command(ctx: typer.Context) -> None:
    """Display current effective configuration."""
    state = _state(ctx)
    settings = state.settings
    sandbox = settings.sandbox

    table = Table(title="fileguard Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Config File", escape(str(state.config_path)))
    table.add_row("Root Directory", escape(str(sandbox.root_directory)))
    table.add_row("Max File Size", f"{sandbox.max_file_size} bytes")
    table.add_row("Max Concurrent Operations", str(sandbox.max_concurrent_operations))
    table.add_row("Max Search Directories", str(sandbox.max_search_directories))
    table.add_row("Backup Directory", escape(str(sandbox.backup_directory)))
    extensions = ", ".join(ext or "(none)" for ext in sorted(sandbox.allowed_extensions))
    table.add_row("Allowed Extensions", extensions or "(any)")
    table.add_row("Blacklist Policies", str(len(sandbox.blacklist)))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Log File", escape(settings.log_file or "stderr"))
    console.print(table)


@config_app.command("init")
def config_init_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write the current effective configuration to the settings file."""
    state = _state(ctx)
    if state.config_path.exists() and not force:
        _fail(f"Configuration file already exists at {state.config_path} (use --force)")

    try:
        save_config(state.settings, state.config_path)
    except ConfigurationError as e:
        _fail(str(e))
    console.print(f"[green]Configuration saved to {escape(str(state.config_path))}[/green]")


if __name__ == "__main__":
    app()
