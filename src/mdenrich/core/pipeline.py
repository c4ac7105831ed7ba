"""Pipeline step functions: per-document ingestion, the load pass, and enrichment post-passes"""

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

from mdenrich.config import Settings
from mdenrich.core.enrich.enricher import Enricher
from mdenrich.core.models import DocumentResult, LoadReport
from mdenrich.core.parse import decode_document, discover_files, parse_document, read_document
from mdenrich.core.synthesize import clean_excerpt, synthesize
from mdenrich.crud.records import SlugLocks, set_fields, upsert_record
from mdenrich.crud.repo import RecordRepo
from mdenrich.util.errors import ParseError, PersistenceError, PipelineError
from mdenrich.util.logging import get_logger


logger = get_logger(__name__)


def process_document(
    path: Path,
    settings: Settings,
    enricher: Enricher,
    repo: RecordRepo,
    locks: SlugLocks | None = None,
    ) -> DocumentResult:
    """Parse → synthesize → enrich → upsert one file.

    Parse and persistence failures are returned in the result; any other
    exception propagates and aborts the load.
    """
    result = DocumentResult(path=path)
    try:
        text = decode_document(read_document(path))
        meta, body = parse_document(text)
        attrs = synthesize(meta, body, path.name, settings)
        result.slug = attrs.slug
        # enrichment completes before any write so no transaction waits on a remote call
        enriched = enricher.enrich(attrs, excerpt_declared=bool(meta.excerpt and meta.excerpt.strip()))
        record, result.status = upsert_record(repo, enriched, locks)
    except (ParseError, PersistenceError) as e:
        result.error = str(e)
        logger.warning("document_failed", file=path.name, error=result.error)
        return result

    logger.debug("document_loaded", file=path.name, slug=record.slug, status=result.status, title=record.title)
    return result


def _run_sequential(files, settings, enricher, repo, stop) -> tuple[list[DocumentResult], bool]:
    results = []
    for path in files:
        if stop is not None and stop.is_set():
            return results, True
        results.append(process_document(path, settings, enricher, repo))
    return results, False


def _run_pooled(files, settings, enricher, repo, stop) -> tuple[list[DocumentResult], bool]:
    locks = SlugLocks()
    results: list[DocumentResult] = []
    pending: set[Future] = set()
    queue = list(files)
    cancelled = False

    with ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="mdenrich") as pool:
        while queue or pending:
            while queue and len(pending) < settings.max_workers and not cancelled:
                if stop is not None and stop.is_set():
                    cancelled = True
                    break
                pending.add(pool.submit(process_document, queue.pop(0), settings, enricher, repo, locks))
            if cancelled:
                queue.clear()
            if not pending:
                break
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                results.append(future.result())   # re-raises unexpected errors
    return results, cancelled


def run_load(
    settings: Settings,
    repo: RecordRepo,
    enricher: Enricher,
    stop: threading.Event | None = None,
    ) -> LoadReport:
    """Ingest every article under settings.content_dir, then run the post-passes.

    Raises PipelineError if the content directory does not exist.
    """
    content_dir = Path(settings.content_dir)
    if not content_dir.is_dir():
        raise PipelineError(f"Content directory not found: {content_dir}")

    if settings.clear_existing_before_load:
        removed = repo.clear()
        logger.info("records_cleared", count=removed)

    files = discover_files(content_dir)
    logger.info("load_started", content_dir=str(content_dir), files=len(files), workers=settings.max_workers)

    if settings.max_workers > 1:
        results, cancelled = _run_pooled(files, settings, enricher, repo, stop)
    else:
        results, cancelled = _run_sequential(files, settings, enricher, repo, stop)
    report = LoadReport(results=results, cancelled=cancelled)

    if report.processed and not cancelled:
        fill_missing_tags(repo, enricher)
        fill_read_times(repo, enricher, settings.read_time_floor)
    return report


# --- post-passes and maintenance ---

def fill_missing_tags(repo: RecordRepo, enricher: Enricher, retag_all: bool = False) -> int:
    """Generate tags for records with an empty tag set (or every record). Returns records updated."""
    try:
        records = repo.list_all()
    except PersistenceError as e:
        logger.error("tagging_failed", error=str(e))
        return 0

    targets = records if retag_all else [r for r in records if not [t for t in (r.tags or []) if t.strip()]]
    if not targets:
        logger.info("tagging_skipped", reason="all records already have tags")
        return 0

    updated = 0
    for record in targets:
        tags = enricher.tags(record.slug, record.title, record.excerpt, record.body)
        try:
            set_fields(repo, record, tags=tags)
            updated += 1
        except PersistenceError as e:
            logger.warning("tagging_record_failed", slug=record.slug, error=str(e))
    logger.info("tagging_finished", updated=updated, candidates=len(targets))
    return updated


def fill_read_times(repo: RecordRepo, enricher: Enricher, floor: int = 1, reestimate_all: bool = False) -> int:
    """Estimate read time for records whose value is missing or below floor. Returns records updated."""
    try:
        records = repo.list_all()
    except PersistenceError as e:
        logger.error("read_time_failed", error=str(e))
        return 0

    targets = records if reestimate_all else [
        r for r in records if not r.estimated_read_minutes or r.estimated_read_minutes < max(floor, 1)
    ]
    if not targets:
        logger.info("read_time_skipped", reason="all records already have read times")
        return 0

    updated = 0
    for record in targets:
        minutes = enricher.read_time(record.slug, record.body)
        try:
            set_fields(repo, record, estimated_read_minutes=minutes)
            updated += 1
        except PersistenceError as e:
            logger.warning("read_time_record_failed", slug=record.slug, error=str(e))
    logger.info("read_time_finished", updated=updated, candidates=len(targets))
    return updated


def regenerate_excerpts(repo: RecordRepo, enricher: Enricher, slug: str | None = None,
                        preview: bool = False) -> list[tuple[str, str, str]]:
    """Write new excerpts for records with an empty excerpt, or for one slug.

    Returns (slug, old, new) triples; nothing is stored when preview is set.
    """
    if slug is not None:
        record = repo.find_by_slug(slug)
        if record is None:
            raise PersistenceError(f"No record with slug '{slug}'")
        targets = [record]
    elif preview:
        targets = repo.list_all()
    else:
        targets = [r for r in repo.list_all() if not (r.excerpt or "").strip()]

    changes = []
    for record in targets:
        excerpt = enricher.excerpt(record.slug, record.title, record.body)
        if not preview:
            set_fields(repo, record, excerpt=excerpt)
        changes.append((record.slug, record.excerpt, excerpt))
    return changes


def clean_stored_excerpts(repo: RecordRepo) -> list[tuple[str, str, str]]:
    """Strip markdown markup from stored excerpts. Returns (slug, before, after) for changed records."""
    changes = []
    for record in repo.list_all():
        cleaned = clean_excerpt(record.excerpt)
        if cleaned != record.excerpt:
            set_fields(repo, record, excerpt=cleaned)
            changes.append((record.slug, record.excerpt, cleaned))
    return changes
