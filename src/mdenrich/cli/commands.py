"""CLI command implementations"""

from contextlib import contextmanager
from typing import Annotated, Iterator, Optional

import typer

from mdenrich.config import Settings, load_config
from mdenrich.core.enrich.enricher import Enricher, build_enricher
from mdenrich.core.enrich.providers import make_client
from mdenrich.core.loader import ContentLoader, LoaderState, LoaderStatus
from mdenrich.core.pipeline import (
    clean_stored_excerpts,
    fill_missing_tags,
    fill_read_times,
    regenerate_excerpts,
)
from mdenrich.crud.database import init_db, make_engine, reset_db
from mdenrich.crud.sql_repo import SQLRecordRepo
from mdenrich.util.errors import ConfigurationError, PersistenceError
from mdenrich.util.logging import configure_logging


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ConfigurationError as e:
        _fail(str(e))
    configure_logging(settings.log_level, settings.json_logs)
    return settings


@contextmanager
def _runtime(settings: Settings) -> Iterator[tuple[SQLRecordRepo, Enricher]]:
    """Yield a repository and an enricher; closes the HTTP client on exit."""
    engine = make_engine(settings.db_url)
    init_db(engine)
    client = make_client(settings)
    try:
        try:
            enricher = build_enricher(settings, client)
        except ConfigurationError as e:
            _fail(str(e))
        yield SQLRecordRepo(engine), enricher
    finally:
        client.close()
        engine.dispose()


def _echo_status(status: LoaderStatus) -> None:
    """Print loader state, counts and any per-document errors."""
    typer.echo(f"State: {status.state.value}")
    typer.echo(f"Documents processed: {status.documents_processed}")
    for error in status.errors:
        typer.echo(f"  ! {error}")
    if status.state == LoaderState.error:
        raise typer.Exit(1)


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def load_cmd(
    content: Annotated[Optional[str], typer.Option("--content-dir", help="Directory of .md/.mdx articles")] = None,
    clear: Annotated[Optional[bool], typer.Option("--clear/--keep", help="Delete existing records first")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Documents processed concurrently")] = None,
    ):
    """Run a load now, regardless of the startup gate."""
    settings = _settings(overrides={
        "content_dir": content, "clear_existing_before_load": clear, "max_workers": workers,
    })
    with _runtime(settings) as (repo, enricher):
        loader = ContentLoader(settings, repo, enricher)
        loader.trigger(wait=True)
        _echo_status(loader.status())


def start_cmd(
    content: Annotated[Optional[str], typer.Option("--content-dir", help="Directory of .md/.mdx articles")] = None,
    ):
    """Start the loader as a host process would: wait, check the gate, load if it opens."""
    settings = _settings(overrides={"content_dir": content})
    with _runtime(settings) as (repo, enricher):
        loader = ContentLoader(settings, repo, enricher)
        loader.start()
        try:
            loader.wait()
        except KeyboardInterrupt:
            typer.echo("Stopping after the current document...", err=True)
        finally:
            loader.stop()
        _echo_status(loader.status())


def list_cmd():
    """List stored records with their derived metadata."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)
    try:
        records = SQLRecordRepo(engine).list_all()
    except PersistenceError as e:
        _fail("Could not read records", e)
    if not records:
        typer.echo("No records found in database.")
        raise typer.Exit(1)
    for r in records:
        flag = "*" if r.featured else " "
        typer.echo(f"{flag} {r.slug}  [{r.estimated_read_minutes} min]  {', '.join(r.tags)}")


def tag_cmd(
    all_records: Annotated[bool, typer.Option("--all", help="Re-tag every record, not just untagged ones")] = False,
    ):
    """Generate tags for records that have none."""
    settings = _settings()
    with _runtime(settings) as (repo, enricher):
        updated = fill_missing_tags(repo, enricher, retag_all=all_records)
    typer.echo(f"Tagged {updated} record(s).")


def read_time_cmd(
    all_records: Annotated[bool, typer.Option("--all", help="Re-estimate every record")] = False,
    ):
    """Estimate read time for records with a missing or implausibly low value."""
    settings = _settings()
    with _runtime(settings) as (repo, enricher):
        updated = fill_read_times(repo, enricher, settings.read_time_floor, reestimate_all=all_records)
    typer.echo(f"Estimated read time for {updated} record(s).")


def excerpts_cmd(
    slug: Annotated[Optional[str], typer.Option("--slug", help="Only regenerate this record's excerpt")] = None,
    preview: Annotated[bool, typer.Option("--preview", "-p", help="Show excerpts without saving")] = False,
    ):
    """Generate excerpts (AI when configured, synthesized otherwise) for records without one."""
    settings = _settings()
    with _runtime(settings) as (repo, enricher):
        try:
            changes = regenerate_excerpts(repo, enricher, slug=slug, preview=preview)
        except PersistenceError as e:
            _fail(str(e))
    for record_slug, old, new in changes:
        typer.echo(f"{record_slug}")
        typer.echo(f"  Current:   {old!r}")
        typer.echo(f"  Generated: {new!r} ({len(new)} chars)")
    verb = "Previewed" if preview else "Updated"
    typer.echo(f"{verb} {len(changes)} excerpt(s).")


def clean_excerpts_cmd():
    """Strip markdown formatting from stored excerpts."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)
    try:
        changes = clean_stored_excerpts(SQLRecordRepo(engine))
    except PersistenceError as e:
        _fail("Cleaning excerpts failed", e)
    for record_slug, before, after in changes:
        typer.echo(f"  {record_slug}: {before!r} -> {after!r}")
    if not changes:
        typer.echo("All excerpts are already clean.")
    else:
        typer.echo(f"Cleaned {len(changes)} excerpt(s).")
