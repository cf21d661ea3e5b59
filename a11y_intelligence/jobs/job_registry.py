"""
Job Registry

Thread-safe map of audits currently running in this process. Owned by the
AuditScheduler and passed by reference to whatever needs to query it.
"""

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional


@dataclass
class JobHandle:
    """One in-flight audit."""
    audit_id: int
    future: Future
    started_at: datetime = field(default_factory=datetime.now)


class JobRegistry:
    """In-flight audit jobs keyed by audit id."""

    def __init__(self):
        self._jobs: Dict[int, JobHandle] = {}
        self._lock = threading.Lock()

    def add_if_absent(self, audit_id: int, start: Callable[[], Future]) -> Optional[JobHandle]:
        """
        Start and register a job unless one is already registered.

        Args:
            audit_id: Audit id
            start: Called under the registry lock to start the job

        Returns:
            The new JobHandle, or None if the audit was already registered
        """
        with self._lock:
            if audit_id in self._jobs:
                return None
            handle = JobHandle(audit_id=audit_id, future=start())
            self._jobs[audit_id] = handle

        # Runs immediately if the job already finished
        handle.future.add_done_callback(lambda _: self.remove(audit_id))
        return handle

    def remove(self, audit_id: int) -> Optional[JobHandle]:
        with self._lock:
            return self._jobs.pop(audit_id, None)

    def get(self, audit_id: int) -> Optional[JobHandle]:
        with self._lock:
            return self._jobs.get(audit_id)

    def __contains__(self, audit_id: int) -> bool:
        with self._lock:
            return audit_id in self._jobs

    def active_ids(self) -> List[int]:
        with self._lock:
            return list(self._jobs)

    def futures(self) -> List[Future]:
        with self._lock:
            return [handle.future for handle in self._jobs.values()]

    def size(self) -> int:
        with self._lock:
            return len(self._jobs)
