"""
Audit Scheduler Service

Database-backed audit queue. Uses APScheduler to poll for pending audits
and to reset audits stuck in processing, and runs audits on a bounded
thread pool tracked by a JobRegistry.

Usage:
    scheduler = AuditScheduler(processor, store)
    scheduler.start()
    scheduler.queue_audit(store.create_audit("https://example.com"))
    ...
    scheduler.shutdown()
"""

from concurrent.futures import ThreadPoolExecutor, wait
from datetime import timedelta
from typing import Any, Dict, List, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from a11y_intelligence.config import (
    AUDIT_MAX_WORKERS,
    PENDING_BATCH_SIZE,
    PENDING_POLL_SECONDS,
    SHUTDOWN_TIMEOUT_SECONDS,
    STALLED_AFTER_MINUTES,
    STALLED_SWEEP_SECONDS,
)
from a11y_intelligence.jobs.audit_processor import AuditOutcome, AuditProcessor
from a11y_intelligence.jobs.job_registry import JobRegistry
from db.audit_store import AuditStore
from db.models import AuditStatus
from runner.logging_setup import get_logger

logger = get_logger("audit_scheduler")


class AuditScheduler:
    """
    Audit queue service.

    Features:
    - Duplicate-safe queueing (one in-flight job per audit)
    - Periodic pickup of pending audits
    - Periodic reset of stalled audits
    - Queue statistics
    - Graceful shutdown with timeout
    """

    def __init__(
        self,
        processor: AuditProcessor,
        store: AuditStore,
        registry: Optional[JobRegistry] = None,
        max_workers: int = AUDIT_MAX_WORKERS,
        batch_size: int = PENDING_BATCH_SIZE,
        stalled_after: timedelta = timedelta(minutes=STALLED_AFTER_MINUTES),
    ):
        """
        Initialize the scheduler service.

        Args:
            processor: Runs individual audits
            store: Audit persistence
            registry: In-flight job registry (a new one if not provided)
            max_workers: Concurrent audits
            batch_size: Pending audits picked up per poll
            stalled_after: Processing time after which an audit is reset
        """
        self.processor = processor
        self.store = store
        self.registry = registry or JobRegistry()
        self.batch_size = batch_size
        self.stalled_after = stalled_after

        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="audit")
        self.scheduler = BackgroundScheduler()

        # Add event listeners
        self.scheduler.add_listener(
            self._on_job_executed,
            EVENT_JOB_EXECUTED | EVENT_JOB_ERROR
        )

    def start(self):
        """Start the periodic pending and stalled sweeps."""
        logger.info("Starting Audit Scheduler Service...")

        self.scheduler.add_job(
            func=self.process_pending_jobs,
            trigger=IntervalTrigger(seconds=PENDING_POLL_SECONDS),
            id="process_pending_audits",
            name="Process pending audits",
            replace_existing=True,
            max_instances=1  # Prevent overlapping executions
        )
        self.scheduler.add_job(
            func=self.cleanup_stalled_jobs,
            trigger=IntervalTrigger(seconds=STALLED_SWEEP_SECONDS),
            id="cleanup_stalled_audits",
            name="Reset stalled audits",
            replace_existing=True,
            max_instances=1
        )

        self.scheduler.start()
        logger.info(f"✓ Audit scheduler started with {len(self.scheduler.get_jobs())} jobs")

    def queue_audit(self, audit_id: int) -> bool:
        """
        Start processing an audit unless it is already in flight.

        Returns:
            True if a new job was started
        """
        handle = self.registry.add_if_absent(
            audit_id, lambda: self.executor.submit(self._run_audit, audit_id)
        )
        if handle is None:
            logger.debug(f"Audit {audit_id} is already running, skipping")
            return False

        logger.info(f"Queued audit {audit_id}")
        return True

    def _run_audit(self, audit_id: int) -> Optional[AuditOutcome]:
        """Claim and process one audit (runs on the executor)."""
        if not self.store.mark_processing(audit_id):
            logger.info(f"Audit {audit_id} is not pending, skipping")
            return None

        url = self.store.get_url(audit_id)
        if url is None:
            logger.error(f"Audit {audit_id} has no URL in database")
            self.store.mark_failed(audit_id, "Audit URL not found")
            return None

        try:
            return self.processor.process(audit_id, url)
        except Exception as e:
            # Already recorded as failed by the processor
            logger.exception(f"Error processing audit {audit_id}: {e}")
            return None

    def process_pending_jobs(self) -> List[int]:
        """
        Reset stalled audits, then queue up to batch_size pending ones.

        Returns:
            Ids of the audits queued by this call
        """
        self.cleanup_stalled_jobs()

        queued = []
        for audit_id in self.store.list_ids_by_status(AuditStatus.PENDING, limit=self.batch_size):
            if audit_id in self.registry:
                continue
            if self.queue_audit(audit_id):
                queued.append(audit_id)

        if queued:
            logger.info(f"Picked up {len(queued)} pending audit(s): {queued}")
        return queued

    def cleanup_stalled_jobs(self) -> List[int]:
        """
        Move audits processing for too long back to pending.

        Audits running in this process are never reset.
        """
        return self.store.reset_stalled(self.stalled_after, exclude_ids=self.registry.active_ids())

    def get_queue_stats(self) -> Dict[str, Any]:
        """
        Queue statistics.

        Returns:
            dict with waiting, active, in_flight, completed and failed counts
        """
        in_flight = self.registry.size()
        try:
            counts = self.store.count_by_status()
        except Exception as e:
            logger.error(f"Error getting queue stats: {e}")
            return {"waiting": 0, "active": in_flight, "in_flight": in_flight, "completed": 0, "failed": 0}

        return {
            "waiting": counts[AuditStatus.PENDING.value],
            "active": counts[AuditStatus.PROCESSING.value],
            "in_flight": in_flight,
            "completed": counts[AuditStatus.COMPLETED.value],
            "failed": counts[AuditStatus.FAILED.value],
        }

    def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT_SECONDS) -> bool:
        """
        Stop polling and wait for in-flight audits.

        Args:
            timeout: Seconds to wait for running audits

        Returns:
            True if every in-flight audit finished within the timeout
        """
        logger.info("Stopping Audit Scheduler Service...")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        futures = self.registry.futures()
        if futures:
            logger.info(f"Waiting for {len(futures)} audit(s) to complete...")

        _, not_done = wait(futures, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} audit(s) did not complete during shutdown")

        self.executor.shutdown(wait=False, cancel_futures=True)
        logger.info("✓ Audit scheduler stopped")
        return not not_done

    def _on_job_executed(self, event):
        """Log failures of the periodic sweeps."""
        if event.exception:
            logger.error(f"Scheduled job {event.job_id} failed: {event.exception}")
        else:
            logger.debug(f"Scheduled job {event.job_id} executed")
