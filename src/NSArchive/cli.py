# === NAVMAP v1 ===
# {
#   "module": "NSArchive.cli",
#   "purpose": "Typer CLI running the archive jobs (dumps, foundings, site, render)",
#   "sections": [
#     {"id": "clicontext", "name": "CliContext", "anchor": "class-clicontext", "kind": "class"},
#     {"id": "main", "name": "main", "anchor": "function-main", "kind": "function"},
#     {"id": "dumps", "name": "dumps", "anchor": "function-dumps", "kind": "function"},
#     {"id": "foundings", "name": "foundings", "anchor": "function-foundings", "kind": "function"},
#     {"id": "site", "name": "site", "anchor": "function-site", "kind": "function"},
#     {"id": "render-cmd", "name": "render_cmd", "anchor": "function-render-cmd", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Command line entry point for the archive jobs.

Each subcommand is one scheduled job. Global options come before the
subcommand::

    nsarchive --config nsarchive.yaml dumps
    nsarchive -v foundings --date 2024-01-05
    nsarchive site
    nsarchive render --output index.html

Any :class:`~NSArchive.errors.ArchiveError` is logged and turned into exit
code 1; nothing is published after a failure.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import typer

from . import __version__
from .dumps import upload_dumps
from .errors import ArchiveError
from .foundings import collect_foundings
from .logging_utils import setup_logging
from .net import build_http_client
from .render import render
from .settings import ArchiveConfig, load_config
from .site import build_catalog, publish_site
from .storage import get_object_store

LOGGER = logging.getLogger("NSArchive.cli")


class CliContext:
    """Per-invocation state shared by the subcommands."""

    def __init__(self, config: ArchiveConfig, verbosity: int = 0) -> None:
        self.config = config
        self.verbosity = verbosity

    def store(self):
        return get_object_store(self.config.storage.url)


app = typer.Typer(
    name="nsarchive",
    help="NSArchive - archive NationStates daily dumps and publish the catalog page",
    no_args_is_help=True,
)

_context: Optional[CliContext] = None


def get_context() -> CliContext:
    """Return the current CLI context.

    Raises:
        RuntimeError: If the callback has not run yet.
    """
    if _context is None:
        raise RuntimeError("CLI context not initialized")
    return _context


@contextmanager
def _job(name: str) -> Iterator[None]:
    try:
        yield
    except ArchiveError as exc:
        LOGGER.error("%s failed: %s", name, exc, extra={"stage": name})
        raise typer.Exit(1) from exc


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"nsarchive {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="NSARCHIVE_CONFIG",
        help="Path to a YAML config file",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v for DEBUG)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Archive jobs for NationStates data."""
    global _context

    try:
        resolved = load_config(config)
    except ArchiveError as exc:
        typer.echo(f"Error loading settings: {exc}", err=True)
        raise typer.Exit(2) from exc
    if verbosity:
        resolved.logging.level = "DEBUG"
    setup_logging(resolved.logging)
    _context = CliContext(resolved, verbosity=verbosity)


@app.command()
def dumps(
    date: Optional[datetime] = typer.Option(
        None, "--date", formats=["%Y-%m-%d"], help="Archive date (default: today, UTC)"
    ),
) -> None:
    """Download the nations and regions dumps and store them."""
    ctx = get_context()
    with _job("dumps"), build_http_client(ctx.config.http) as client:
        names = upload_dumps(
            client,
            ctx.store(),
            day=date.date() if date else None,
            settings=ctx.config.http,
        )
    for name in names:
        typer.echo(name)


@app.command()
def foundings(
    date: Optional[datetime] = typer.Option(
        None, "--date", formats=["%Y-%m-%d"], help="Day to collect (default: yesterday, UTC)"
    ),
) -> None:
    """Collect one UTC day of foundings and store them as JSON."""
    ctx = get_context()
    with _job("foundings"), build_http_client(ctx.config.http) as client:
        name = collect_foundings(
            client,
            ctx.store(),
            day=date.date() if date else None,
            settings=ctx.config.http,
        )
    typer.echo(name)


@app.command()
def site() -> None:
    """Rebuild the catalog page from a full listing and publish it."""
    ctx = get_context()
    with _job("site"), build_http_client(ctx.config.http) as client:
        catalog = publish_site(ctx.store(), ctx.config, client=client)
    typer.echo(f"published {ctx.config.storage.index_name} ({len(catalog)} objects)")


@app.command("render")
def render_cmd(
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the page"),
) -> None:
    """Render the catalog page to a local file without publishing it."""
    ctx = get_context()
    with _job("render"):
        catalog = build_catalog(ctx.store(), url_template=ctx.config.storage.public_url_template)
        page = render(catalog, title=ctx.config.site.title, intro=ctx.config.site.intro_html)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(page)
    typer.echo(f"wrote {output} ({len(catalog)} objects)")


__all__ = ["app", "CliContext", "get_context", "main"]
