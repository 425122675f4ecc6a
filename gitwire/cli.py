"""CLI commands for git-wire."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from gitwire.config import (
    check_soundness,
    find_repository_root,
    load_config,
    write_config_file,
)
from gitwire.errors import ConfigMalformedError, GitWireError
from gitwire.models.entry import CheckoutMethod, ConfigEntry
from gitwire.models.result import AggregateResult
from gitwire.pinning import pin_entries
from gitwire.sequence import Mode
from gitwire.settings import GitWireSettings
from gitwire.wire import GitWire

console = Console()

mode_option = click.option(
    "--mode",
    "-m",
    type=click.Choice([m.value for m in Mode]),
    default=Mode.PARALLEL.value,
    help="Run entries one at a time or on a worker pool",
)
singlethread_option = click.option(
    "--singlethread", "-s", is_flag=True, help="Shorthand for --mode sequential"
)
workers_option = click.option("--workers", "-j", type=int, default=None, help="Worker threads")
name_option = click.option("--name", "-n", default=None, help="Only the entry with this name")


def direct_options(func):
    """Options describing a single entry on the command line."""
    options = [
        click.option("--url", required=True, help="Remote repository URL"),
        click.option("--rev", required=True, help="Branch or tag"),
        click.option("--src", required=True, help="Path inside the remote"),
        click.option("--dst", required=True, help="Path inside this repository"),
        click.option("--commit", "commit_hash", default=None, help="Pinned commit"),
        click.option("--filter", "filters", multiple=True, help="File filter (can repeat)"),
        click.option(
            "--mtd",
            type=click.Choice([m.value for m in CheckoutMethod]),
            default=CheckoutMethod.SHALLOW.value,
            help="Checkout method",
        ),
        click.option("--no-prune", is_flag=True, help="Keep files no longer present upstream"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _mode(mode: str, singlethread: bool) -> Mode:
    return Mode.SEQUENTIAL if singlethread else Mode(mode)


def _settings(ctx: click.Context, workers: int | None) -> GitWireSettings:
    settings: GitWireSettings = ctx.obj["settings"]
    if workers is not None:
        settings = settings.model_copy(update={"workers": workers})
    return settings


def _fail(error: GitWireError) -> NoReturn:
    console.print(f"[red]error:[/red] {escape(str(error))}")
    raise SystemExit(1)


def _report(title: str, result: AggregateResult) -> None:
    table = Table(title=title)
    table.add_column("Entry", style="cyan")
    table.add_column("Result")
    table.add_column("Detail", style="dim")

    for r in result.results:
        status = "[green]ok[/green]" if r.success else "[red]failed[/red]"
        table.add_row(escape(r.label), status, escape(r.summary))

    console.print(table)

    for r in result.results:
        for problem in r.problems:
            console.print(f"  [red]{escape(r.label)}: ! {escape(problem)}[/red]")

    if result.success:
        console.print(f"[green]{title} succeeded[/green]")
    else:
        console.print(f"[red]{title} failed for {len(result.failed)} entries[/red]")


def _direct_entry(
    url: str,
    rev: str,
    src: str,
    dst: str,
    commit_hash: str | None,
    filters: tuple[str, ...],
    mtd: str,
    no_prune: bool,
) -> ConfigEntry:
    try:
        entry = ConfigEntry(
            url=url,
            rev=rev,
            src=src,
            dst=dst,
            commit_hash=commit_hash,
            filters=filters,
            mtd=CheckoutMethod(mtd),
            prune=not no_prune,
        )
    except ValueError as e:
        raise ConfigMalformedError(f"invalid entry: {e}") from e
    check_soundness(entry)
    return entry


def _run(ctx: click.Context, command: str, wire: GitWire, name: str | None, mode: Mode) -> None:
    try:
        if command == "sync":
            result = wire.sync(name, mode)
        else:
            result = wire.check(name, mode)
    except GitWireError as e:
        _fail(e)

    _report(f"git-wire {command}", result)
    if wire.last_stats:
        console.print(
            f"[dim]{wire.last_stats['fetches']} fetched, {wire.last_stats['hits']} reused[/dim]"
        )
    ctx.exit(0 if result.success else 1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log progress")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Repository root (default: discovered with git)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, root: Path | None) -> None:
    """git-wire - wire parts of other repositories into this one."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = GitWireSettings()
    ctx.obj["root"] = root


def _wire(ctx: click.Context, settings: GitWireSettings) -> GitWire:
    try:
        return GitWire.from_repository(ctx.obj["root"], settings=settings)
    except GitWireError as e:
        _fail(e)


@main.command()
@name_option
@mode_option
@singlethread_option
@workers_option
@click.pass_context
def sync(
    ctx: click.Context, name: str | None, mode: str, singlethread: bool, workers: int | None
) -> None:
    """Copy wired sources from upstream into this repository."""
    wire = _wire(ctx, _settings(ctx, workers))
    _run(ctx, "sync", wire, name, _mode(mode, singlethread))


@main.command()
@name_option
@mode_option
@singlethread_option
@workers_option
@click.pass_context
def check(
    ctx: click.Context, name: str | None, mode: str, singlethread: bool, workers: int | None
) -> None:
    """Verify wired sources match upstream. Exits non-zero on any difference."""
    wire = _wire(ctx, _settings(ctx, workers))
    _run(ctx, "check", wire, name, _mode(mode, singlethread))


@main.command("direct-sync")
@direct_options
@click.pass_context
def direct_sync(ctx: click.Context, **kwargs) -> None:
    """Sync one entry given on the command line, without a config file."""
    _direct(ctx, "sync", **kwargs)


@main.command("direct-check")
@direct_options
@click.pass_context
def direct_check(ctx: click.Context, **kwargs) -> None:
    """Check one entry given on the command line, without a config file."""
    _direct(ctx, "check", **kwargs)


def _direct(ctx: click.Context, command: str, **kwargs) -> None:
    settings = _settings(ctx, None)
    try:
        entry = _direct_entry(**kwargs)
        root = ctx.obj["root"]
        if root is None:
            root = find_repository_root(git_executable=settings.git_executable)
    except GitWireError as e:
        _fail(e)
    wire = GitWire(root, [entry], settings=settings)
    _run(ctx, command, wire, None, Mode.SEQUENTIAL)


@main.command()
@name_option
@click.option("--update", "-u", is_flag=True, help="Re-pin entries that already have a commit")
@click.option("--dry-run", is_flag=True, help="Show new pins without writing the config")
@click.pass_context
def pin(ctx: click.Context, name: str | None, update: bool, dry_run: bool) -> None:
    """Pin entries to the current upstream commit of their branch."""
    settings: GitWireSettings = ctx.obj["settings"]
    try:
        root, entries = load_config(
            ctx.obj["root"],
            config_file=settings.config_file,
            git_executable=settings.git_executable,
        )
    except GitWireError as e:
        _fail(e)

    try:
        pinned, results = pin_entries(
            entries, update=update, name=name, git_executable=settings.git_executable
        )
    except GitWireError as e:
        _fail(e)

    table = Table(title="Commit pins")
    table.add_column("Entry", style="cyan")
    table.add_column("Old", style="dim")
    table.add_column("New", style="green")
    failed = False
    for r in results:
        if r.new_commit is None:
            failed = True
        table.add_row(
            r.label,
            (r.old_commit or "-")[:12],
            r.new_commit[:12] if r.new_commit else "[red]unresolved[/red]",
        )
    console.print(table)

    if not dry_run and any(r.changed for r in results):
        write_config_file(root / settings.config_file, pinned)
        console.print(f"[green]Updated {settings.config_file}[/green]")
    ctx.exit(1 if failed else 0)


@main.command("list")
@click.pass_context
def list_entries(ctx: click.Context) -> None:
    """Show the entries of the config."""
    settings: GitWireSettings = ctx.obj["settings"]
    try:
        _, entries = load_config(
            ctx.obj["root"],
            config_file=settings.config_file,
            git_executable=settings.git_executable,
        )
    except GitWireError as e:
        _fail(e)

    table = Table(title=f"{settings.config_file} entries")
    table.add_column("Entry", style="cyan")
    table.add_column("Source", style="blue")
    table.add_column("Rev")
    table.add_column("Destination", style="yellow")
    table.add_column("Method", style="dim")

    for index, entry in enumerate(entries):
        rev = entry.branch
        if entry.commit_hash:
            rev = f"{rev}@{entry.commit_hash[:8]}"
        table.add_row(
            entry.label(index),
            f"{entry.source_url}:{entry.source_subpath}",
            rev,
            entry.destination_subpath,
            entry.checkout_method.value,
        )

    console.print(table)
    console.print(f"[dim]{len(entries)} entries[/dim]")
