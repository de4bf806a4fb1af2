# shopsync/sync.py
"""Sync orchestrator: fetch -> normalize -> reconcile for one run.

A fatal error (catalog unreachable, store unreachable) moves the run to
FAILED and is re-raised; per-record errors are only counted.
"""
import enum
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.pool import StaticPool

from . import crud
from .db import make_session_factory, ping
from .errors import RecordError, SyncAlreadyRunning
from .fetcher import CatalogFetcher
from .locks import make_run_lock
from .normalizer import NormalizedProduct, Normalizer
from .reconciler import Reconciler
from .schemas import SyncReport
from .utils import logger


class SyncState(str, enum.Enum):
    IDLE = "idle"
    STARTING = "starting"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    RECONCILING = "reconciling"
    DONE = "done"
    FAILED = "failed"


class SyncOrchestrator:
    def __init__(self, fetcher, normalizer: Normalizer, reconciler: Reconciler, run_lock,
                 engine=None, concurrency: int = 1):
        self.fetcher = fetcher
        self.normalizer = normalizer
        self.reconciler = reconciler
        self.run_lock = run_lock
        self.engine = engine
        self.concurrency = max(1, concurrency)
        self.state = SyncState.IDLE
        self.last_report: Optional[SyncReport] = None

    def run_sync(self) -> SyncReport:
        """Run one full sync and return its report.

        Raises `SyncAlreadyRunning` if another run holds the lock, and
        `RemoteUnavailable` / `StoreUnavailable` when the run cannot proceed.
        Whatever ends the run early, the state is left at FAILED.
        """
        report = SyncReport(status="running", started_at=_now())
        # the lock is released only after the final state is recorded
        with ExitStack() as held:
            try:
                held.enter_context(self.run_lock.hold())
                self.state = SyncState.STARTING
                if self.engine is not None:
                    ping(self.engine)
                self.state = SyncState.FETCHING
                raws = self.fetcher.fetch_catalog()
                report.attempted = len(raws)

                self.state = SyncState.NORMALIZING
                items = self._normalize_all(raws, report)

                self.state = SyncState.RECONCILING
                self._reconcile_all(items, report)
            except SyncAlreadyRunning:
                # the state belongs to the run holding the lock
                raise
            except Exception as e:
                self.state = SyncState.FAILED
                report.status = "failed"
                report.error = str(e)
                report.finished_at = _now()
                self.last_report = report
                logger.exception("Sync failed: %s", e)
                raise

            self.state = SyncState.DONE
            report.status = "complete"
            report.finished_at = _now()
            self.last_report = report
            logger.info("Sync complete: %d attempted, %d succeeded, %d failed",
                        report.attempted, report.succeeded, report.failed)
            return report

    def _normalize_all(self, raws, report: SyncReport) -> List[NormalizedProduct]:
        items = []
        for raw in raws:
            try:
                items.append(self.normalizer.normalize(raw))
            except RecordError as e:
                report.failed += 1
                logger.warning("Skipping record: %s", e)
        return items

    def _reconcile_all(self, items: List[NormalizedProduct], report: SyncReport):
        if self.concurrency == 1:
            for item in items:
                self._tally(report, self._reconcile_one(item))
            return

        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            futures = [pool.submit(self._reconcile_one, item) for item in items]
            try:
                for fut in as_completed(futures):
                    self._tally(report, fut.result())
            except Exception:
                for fut in futures:
                    fut.cancel()
                raise

    def _reconcile_one(self, item: NormalizedProduct) -> bool:
        try:
            return self.reconciler.upsert(item).ok
        except RecordError as e:
            logger.warning("Skipping record: %s", e)
            return False

    def _tally(self, report: SyncReport, ok: bool):
        if ok:
            report.succeeded += 1
        else:
            report.failed += 1


def _now() -> datetime:
    return datetime.now(timezone.utc)


def build_orchestrator(settings, engine, session=None) -> SyncOrchestrator:
    """Wire an orchestrator from settings; `session` is the HTTP session to fetch with."""
    crud.check_dialect(engine.dialect.name)
    concurrency = settings.concurrency
    if concurrency > 1 and isinstance(engine.pool, StaticPool):
        # every session on a StaticPool shares one connection
        logger.warning("SYNC_CONCURRENCY=%d ignored: engine has a single shared connection", concurrency)
        concurrency = 1
    return SyncOrchestrator(
        CatalogFetcher.from_settings(settings, session=session),
        Normalizer(settings.store_domain),
        Reconciler(make_session_factory(engine), channel=settings.channel),
        make_run_lock(engine, settings.lock_name),
        engine=engine,
        concurrency=concurrency,
    )
