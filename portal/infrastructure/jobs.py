"""Infrastructure layer for the background job queue."""
from __future__ import annotations

from typing import Iterable, Protocol

from portal.domain import JobRecord


class JobStore(Protocol):
    """The slice of the job queue used for orphan recovery."""

    def find_locked_jobs(self) -> list[JobRecord]: ...

    def clear_lock(self, job_id: str) -> None: ...

    def count_locked(self) -> int: ...


class InMemoryJobStore:
    def __init__(self, jobs: Iterable[JobRecord] | None = None) -> None:
        self._jobs: dict[str, JobRecord] = {job.job_id: job for job in jobs or []}

    def add(self, job: JobRecord) -> None:
        self._jobs[job.job_id] = job

    def get(self, job_id: str) -> JobRecord | None:
        return self._jobs.get(job_id)

    def find_locked_jobs(self) -> list[JobRecord]:
        return [job for job in self._jobs.values() if job.locked]

    def clear_lock(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        job.locked_by = None
        job.locked_at = None

    def count_locked(self) -> int:
        return sum(1 for job in self._jobs.values() if job.locked)
