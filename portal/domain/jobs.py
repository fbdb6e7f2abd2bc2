"""Background job records and the worker lock-owner format."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from portal.core.errors import LockOwnerFormatError

LOCK_OWNER_FORMAT_VERSION = 1


@dataclass(slots=True)
class JobRecord:
    """A queued background job as stored by the job queue."""

    job_id: str
    handler: str
    created_at: datetime
    locked_by: str | None = None
    locked_at: datetime | None = None

    @property
    def locked(self) -> bool:
        return self.locked_by is not None


@dataclass(frozen=True, slots=True)
class LockOwner:
    """Worker slot and process id parsed from a job's ``locked_by`` value.

    Version 1 of the format is whitespace-separated tokens where the first
    token names the worker slot (the stem of its pid file) and the last token
    ends with ``:<pid>``, e.g. ``"delayed_job.0 host:web-1 pid:4242"``.
    """

    worker_id: str
    pid: str

    @classmethod
    def parse(cls, locked_by: str | None) -> "LockOwner":
        tokens = (locked_by or "").split()
        if len(tokens) < 2:
            raise LockOwnerFormatError(
                f"lock owner format v{LOCK_OWNER_FORMAT_VERSION}: expected worker and pid tokens in {locked_by!r}"
            )
        worker_id = tokens[0]
        _, sep, pid = tokens[-1].rpartition(":")
        if not sep or not pid:
            raise LockOwnerFormatError(f"lock owner format v{LOCK_OWNER_FORMAT_VERSION}: missing pid in {locked_by!r}")
        return cls(worker_id=worker_id, pid=pid)

    def is_alive(self, live_workers: dict[str, str]) -> bool:
        return live_workers.get(self.worker_id) == self.pid
