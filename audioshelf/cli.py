"""CLI interface for audioshelf."""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from audioshelf.config import Config
from audioshelf.database import Catalog, Database
from audioshelf.errors import FingerprintError, PersistenceError, RootNotFoundError, ScanRootError
from audioshelf.library import LibraryScanner, ScanComplete
from audioshelf.scanner.filesystem import absolute_path
from audioshelf.scanner.fingerprint import strong_digest
from audioshelf.scanner.progress import format_bytes

database_option = click.option(
    "--database", type=click.Path(path_type=Path), help="Path to database file"
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log scanner and catalog activity")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    ctx.ensure_object(dict)
    ctx.obj["config"] = Config()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _get_db_path(ctx: click.Context, database: Path | None) -> Path:
    config: Config = ctx.obj["config"]
    return database or config.database_path


def _require_db(db_path: Path) -> None:
    if not db_path.exists():
        click.echo("Error: No database found. Run 'audioshelf add' first.", err=True)
        sys.exit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--quiet", is_flag=True, help="Do not print scan progress")
@database_option
@click.pass_context
def add(ctx: click.Context, path: Path, quiet: bool, database: Path | None) -> None:
    """Register a directory as a scan root and scan it."""
    config: Config = ctx.obj["config"]
    db_path = _get_db_path(ctx, database)

    try:
        with Database(db_path) as db:
            scanner = LibraryScanner(db, config.scanner, quiet=quiet)
            event = scanner.add_root(path)
    except (ScanRootError, RootNotFoundError, PersistenceError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

    _echo_scan_complete(event)


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@database_option
@click.pass_context
def remove(ctx: click.Context, path: Path, database: Path | None) -> None:
    """Unregister a scan root and delete its audiobooks from the catalog."""
    db_path = _get_db_path(ctx, database)
    _require_db(db_path)

    try:
        with Database(db_path) as db:
            LibraryScanner(db, quiet=True).remove_root(path)
    except (ScanRootError, PersistenceError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Removed: {path}")


@cli.command()
@click.argument("path", type=click.Path(path_type=Path), required=False)
@click.option("--quiet", is_flag=True, help="Do not print scan progress")
@database_option
@click.pass_context
def scan(ctx: click.Context, path: Path | None, quiet: bool, database: Path | None) -> None:
    """Rescan one registered root, or all of them when PATH is omitted."""
    config: Config = ctx.obj["config"]
    db_path = _get_db_path(ctx, database)
    _require_db(db_path)

    try:
        with Database(db_path) as db:
            scanner = LibraryScanner(db, config.scanner, quiet=quiet)
            if path is not None:
                events = [scanner.scan_root(path)]
                failures = []
            else:
                if not scanner.roots():
                    click.echo("No scan roots registered. Run 'audioshelf add PATH' first.")
                    return
                events, failures = scanner.scan_all()
    except (ScanRootError, RootNotFoundError, PersistenceError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

    for event in events:
        _echo_scan_complete(event)
    for failure in failures:
        click.echo(f"Error: {failure.error}", err=True)
    if failures:
        sys.exit(1)


def _echo_scan_complete(event: ScanComplete) -> None:
    stats = event.stats
    click.echo(f"Scanned {event.root}")
    click.echo(f"  Audiobooks found: {len(event.audiobooks):,} ({stats.audiobooks_inserted:,} new)")
    click.echo(f"  Files found: {event.files_discovered:,} ({stats.files_inserted:,} new)")
    click.echo(f"  Changed on disk (progress reset): {stats.files_changed:,}")
    click.echo(f"  Restored: {stats.files_restored:,}")
    click.echo(f"  Missing: {stats.files_missing:,}")
    if event.unreadable:
        click.echo(f"  Warning: {len(event.unreadable):,} unreadable entries skipped", err=True)


@cli.command()
@database_option
@click.pass_context
def status(ctx: click.Context, database: Path | None) -> None:
    """Show registered scan roots."""
    db_path = _get_db_path(ctx, database)

    if not db_path.exists():
        click.echo("No database found. Run 'audioshelf add' first.")
        return

    with Database(db_path) as db:
        catalog = Catalog(db)
        roots = catalog.get_scan_roots()

        if not roots:
            click.echo("No scan roots registered.")
            return

        click.echo("\nScan Roots:")
        click.echo("-" * 80)
        header = "Root".ljust(45) + "Audiobooks".rjust(12) + "  " + "Last scanned".ljust(15)
        click.echo(header)
        click.echo("-" * 80)

        for root in roots:
            scanned = _format_relative_time(root.last_scanned_at_unix)
            count = catalog.count_audiobooks(root.path)
            click.echo(f"{_truncate(root.path, 44):<45}{count:>12,}  {scanned:<15}")


@cli.command("list")
@click.option("--root", type=click.Path(path_type=Path), help="Only list this scan root")
@database_option
@click.pass_context
def list_audiobooks(ctx: click.Context, root: Path | None, database: Path | None) -> None:
    """List audiobooks with their completeness."""
    db_path = _get_db_path(ctx, database)
    _require_db(db_path)

    with Database(db_path) as db:
        catalog = Catalog(db)
        audiobooks = (
            catalog.get_audiobooks_by_root(absolute_path(root))
            if root
            else catalog.get_all_audiobooks()
        )
        if not audiobooks:
            click.echo("No audiobooks found.")
            return

        for audiobook in audiobooks:
            file_count = catalog.count_audiobook_files(audiobook.id)
            click.echo(
                f"{audiobook.id:>5}  {audiobook.completeness:>3}%  "
                f"{file_count:>4} files  {_truncate(audiobook.name, 50)}"
            )


@cli.command()
@click.argument("audiobook_id", type=int)
@database_option
@click.pass_context
def files(ctx: click.Context, audiobook_id: int, database: Path | None) -> None:
    """List the files of an audiobook in playback order."""
    db_path = _get_db_path(ctx, database)
    _require_db(db_path)

    with Database(db_path) as db:
        catalog = Catalog(db)
        audiobook = catalog.get_audiobook_by_id(audiobook_id)
        if audiobook is None:
            click.echo(f"Error: No audiobook with id {audiobook_id}", err=True)
            sys.exit(1)

        click.echo(f"{audiobook.name} ({audiobook.full_path})")
        for file in catalog.get_audiobook_files(audiobook_id):
            missing = "" if file.file_exists else "  [missing]"
            click.echo(f"{file.position + 1:>4}. {file.completeness:>3}%  {file.name}{missing}")


@cli.command()
@click.argument("audiobook_id", type=int)
@database_option
@click.pass_context
def reset(ctx: click.Context, audiobook_id: int, database: Path | None) -> None:
    """Clear the playback progress of an audiobook."""
    db_path = _get_db_path(ctx, database)
    _require_db(db_path)

    with Database(db_path) as db:
        catalog = Catalog(db)
        if catalog.get_audiobook_by_id(audiobook_id) is None:
            click.echo(f"Error: No audiobook with id {audiobook_id}", err=True)
            sys.exit(1)
        catalog.reset_audiobook_progress(audiobook_id)

    click.echo(f"Progress reset for audiobook {audiobook_id}")


@cli.command("mark-complete")
@click.argument("audiobook_id", type=int)
@database_option
@click.pass_context
def mark_complete(ctx: click.Context, audiobook_id: int, database: Path | None) -> None:
    """Mark every file of an audiobook as finished."""
    db_path = _get_db_path(ctx, database)
    _require_db(db_path)

    with Database(db_path) as db:
        catalog = Catalog(db)
        if catalog.get_audiobook_by_id(audiobook_id) is None:
            click.echo(f"Error: No audiobook with id {audiobook_id}", err=True)
            sys.exit(1)
        catalog.mark_audiobook_complete(audiobook_id)

    click.echo(f"Audiobook {audiobook_id} marked complete")


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def digest(file_path: Path) -> None:
    """Print the SHA-256 digest of a file."""
    try:
        value = strong_digest(file_path)
    except FingerprintError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"{value}  {file_path} ({format_bytes(file_path.stat().st_size)})")


def _format_relative_time(unix_timestamp: float | None) -> str:
    if not unix_timestamp:
        return "never"

    now = datetime.now()
    then = datetime.fromtimestamp(unix_timestamp)
    delta = now - then

    if delta.days > 1:
        return f"{delta.days} days ago"
    if delta.days == 1:
        return "yesterday"
    if delta.seconds > 3600:
        hours = delta.seconds // 3600
        return f"{hours}h ago"
    if delta.seconds > 60:
        minutes = delta.seconds // 60
        return f"{minutes}m ago"
    return "just now"


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return "..." + text[-(max_len - 3) :]


def main() -> None:
    """Entry point for the CLI."""
    cli(standalone_mode=True)  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    main()
