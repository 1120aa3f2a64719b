"""hotload CLI entry point."""

import logging
import time
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hotload.config import DEFAULT_CONFIG_FILE, load_config
from hotload.errors import ConfigError
from hotload.reload import Reloader

console = Console()

# Exit status of `hotload check` when a file changed after it was loaded;
# 1 is a load or config failure and 2 a usage error
EXIT_CHANGED = 3


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def _build_reloader(ctx: click.Context) -> Reloader:
    try:
        config = load_config(ctx.obj["config"])
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    return Reloader.from_config(config)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Configuration file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path) -> None:
    """hotload - incremental hot-reload engine."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config_path
    setup_logging(verbose)


@cli.command()
@click.option(
    "--wait",
    type=click.FloatRange(min=0),
    default=0.0,
    show_default=True,
    help="Seconds to watch for edits after loading",
)
@click.pass_context
def check(ctx: click.Context, wait: float) -> None:
    """Load every source file, then report whether any was modified since.

    Exits with status 1 when a file fails to load and with status 3 when
    something changed after it was loaded.
    """
    reloader = _build_reloader(ctx)

    try:
        report = reloader.reload()
    except Exception as e:
        console.print(f"[red]Load failed: {type(e).__name__}: {e}[/red]")
        raise SystemExit(1) from e

    if wait:
        time.sleep(wait)

    loaded = len(report.loaded)
    if reloader.changed():
        console.print(f"[yellow]Changes detected after loading {loaded} files[/yellow]")
        raise SystemExit(EXIT_CHANGED)
    console.print(f"[green]No changes after loading {loaded} files[/green]")


@cli.command()
@click.pass_context
def load(ctx: click.Context) -> None:
    """Load every source file once and show what each one defined."""
    reloader = _build_reloader(ctx)

    try:
        report = reloader.reload()
    except Exception as e:
        console.print(f"[red]Load failed: {type(e).__name__}: {e}[/red]")
        raise SystemExit(1) from e

    records = reloader.records()
    if not records:
        console.print("[yellow]Nothing loaded[/yellow]")
        return

    root = reloader.config.root
    table = Table(title=f"Loaded {len(report.loaded)} files")
    table.add_column("File", style="cyan")
    table.add_column("Symbols")
    table.add_column("Features", style="dim")

    for path in sorted(records):
        record = records[path]
        table.add_row(
            _relative(path, root),
            ", ".join(sorted(record.symbols)) or "-",
            ", ".join(_relative(f, root) for f in sorted(record.features)) or "-",
        )

    console.print(table)
    if report.reloaded_apps:
        console.print(f"Reloaded apps: {', '.join(report.reloaded_apps)}")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, help="Port to bind to")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the API server, reloading changed files on incoming requests."""
    import uvicorn

    from hotload.api.app import create_app

    reloader = _build_reloader(ctx)
    app = create_app(reloader)

    console.print(f"[bold green]Starting hotload API server on {host}:{port}[/bold green]")
    uvicorn.run(app, host=host, port=port)


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
