"""Content loader: gate-checked startup load, manual trigger, status query.

Lifecycle::

    initializing --(startup_delay, gate)--> loading --> loaded | error
                 `--(gate false)----------> disabled

``trigger()`` re-enters ``loading`` from any state except ``loading`` itself;
at most one pass runs at a time.
"""

import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from mdenrich.config import Settings
from mdenrich.core.enrich.enricher import Enricher
from mdenrich.core.pipeline import run_load
from mdenrich.crud.repo import RecordRepo
from mdenrich.util.errors import PersistenceError, PipelineError
from mdenrich.util.logging import get_logger


logger = get_logger(__name__)


class LoaderState(str, Enum):
    initializing = "initializing"
    disabled = "disabled"
    loading = "loading"
    loaded = "loaded"
    error = "error"


@dataclass
class LoaderStatus:
    state: LoaderState = LoaderState.initializing
    last_run_time: Optional[datetime] = None
    documents_processed: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        data["last_run_time"] = self.last_run_time.isoformat() if self.last_run_time else None
        return data


class ContentLoader:
    """Owns the single ingestion pipeline of a host process."""

    def __init__(self, settings: Settings, repo: RecordRepo, enricher: Enricher) -> None:
        self._settings = settings
        self._repo = repo
        self._enricher = enricher
        self._status = LoaderStatus()
        self._status_lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._stop = threading.Event()
        self._finished = threading.Event()
        self._timer: threading.Timer | None = None
        self._worker: threading.Thread | None = None

    # --- public API ---

    def start(self) -> None:
        """Schedule the startup gate check after settings.startup_delay seconds."""
        self._stop.clear()
        self._finished.clear()
        self._timer = threading.Timer(self._settings.startup_delay, self._on_startup)
        self._timer.daemon = True
        self._timer.start()
        logger.info("loader_started", delay=self._settings.startup_delay)

    def stop(self, timeout: float | None = None) -> None:
        """Cancel a pending startup check and let an in-flight load finish its current document."""
        self._stop.set()
        if self._timer is not None:
            self._timer.cancel()
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)
            if worker.is_alive():
                logger.warning("loader_stop_timed_out", timeout=timeout)
                return
        self._finished.set()
        logger.info("loader_stopped", state=self.status().state.value)

    def trigger(self, wait: bool = False) -> bool:
        """Force a load now. Returns False when a load is already running."""
        if not self._run_lock.acquire(blocking=False):
            logger.info("load_rejected", reason="a load is already running")
            return False
        if self._timer is not None:
            self._timer.cancel()
        self._stop.clear()
        self._finished.clear()
        logger.info("load_triggered", wait=wait)
        if wait:
            self._run_locked()
        else:
            self._worker = threading.Thread(target=self._run_locked, name="mdenrich-loader", daemon=True)
            self._worker.start()
        return True

    def status(self) -> LoaderStatus:
        with self._status_lock:
            return LoaderStatus(
                state=self._status.state,
                last_run_time=self._status.last_run_time,
                documents_processed=self._status.documents_processed,
                errors=list(self._status.errors),
            )

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the loader reaches a terminal state. Returns False on timeout."""
        return self._finished.wait(timeout)

    def should_load(self) -> bool:
        """Gate: load when configured on, when the store is empty, or when forced by the environment."""
        if self._settings.load_on_startup:
            logger.debug("gate_open", reason="load_on_startup")
            return True
        try:
            empty = self._repo.count() == 0
        except PersistenceError as e:
            logger.warning("gate_count_failed", error=str(e))
            empty = True
        if empty:
            logger.info("gate_open", reason="no records in store")
            return True
        if self._settings.force_load_env_override:
            logger.info("gate_open", reason="environment override")
            return True
        logger.debug("gate_closed")
        return False

    # --- internals ---

    def _set_status(self, **changes) -> None:
        with self._status_lock:
            for name, value in changes.items():
                setattr(self._status, name, value)

    def _on_startup(self) -> None:
        if self._stop.is_set():
            return
        if not self.should_load():
            logger.info("loading_disabled")
            self._set_status(state=LoaderState.disabled)
            self._finished.set()
            return
        if not self._run_lock.acquire(blocking=False):
            return    # a manual trigger got there first
        self._worker = threading.current_thread()
        self._run_locked()

    def _run_locked(self) -> None:
        try:
            self._load()
        finally:
            self._run_lock.release()
            self._finished.set()

    def _load(self) -> None:
        self._set_status(state=LoaderState.loading)
        started = time.monotonic()
        try:
            report = run_load(self._settings, self._repo, self._enricher, self._stop)
        except PipelineError as e:
            logger.error("load_failed", error=str(e))
            self._set_status(state=LoaderState.error, last_run_time=datetime.now(), errors=[str(e)])
            return
        except Exception as e:  # anything escaping a document aborts the pass; recorded in status
            message = f"Content loading failed: {e!r}"
            logger.exception("load_failed", error=message)
            self._set_status(state=LoaderState.error, last_run_time=datetime.now(), errors=[message])
            return

        errors = report.errors
        if report.cancelled:
            errors.append(f"Load cancelled after {len(report.results)} document(s)")
        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info("load_finished", processed=report.processed, created=report.count('created'),
                    updated=report.count('updated'), errors=len(errors), duration_ms=duration_ms)
        for error in errors:
            logger.warning("load_error", error=error)
        self._set_status(
            state=LoaderState.loaded,
            last_run_time=datetime.now(),
            documents_processed=report.processed,
            errors=errors,
        )
