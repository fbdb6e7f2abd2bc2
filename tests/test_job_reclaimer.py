from __future__ import annotations

from datetime import datetime, timezone

import pytest
from conftest import RecordingNotifier

from portal.application import JobService, OrphanedJobReclaimer, describe_handler
from portal.core.errors import LockOwnerFormatError
from portal.domain import JobRecord, LockOwner
from portal.infrastructure import InMemoryJobStore, StaticLivenessRegistry

CREATED = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

HANDLER = """--- !ruby/object:Delayed::PerformableMethod
object: !ruby/class 'Study'
method_name: :delete_convention_data
args:
- 42
"""


def _job(job_id: str, locked_by: str | None, handler: str = HANDLER) -> JobRecord:
    return JobRecord(
        job_id=job_id,
        handler=handler,
        created_at=CREATED,
        locked_by=locked_by,
        locked_at=CREATED if locked_by else None,
    )


def test_job_with_live_worker_stays_locked():
    store = InMemoryJobStore([_job("job-1", "w1 host:123")])
    reclaimer = OrphanedJobReclaimer(store, StaticLivenessRegistry({"w1": "123"}))

    assert reclaimer.reclaim() == 0
    assert store.get("job-1").locked_by == "w1 host:123"


@pytest.mark.parametrize("live_workers", [{"w1": "999"}, {}, {"w2": "123"}])
def test_job_with_dead_worker_is_unlocked(live_workers):
    store = InMemoryJobStore([_job("job-1", "w1 host:123")])
    reclaimer = OrphanedJobReclaimer(store, StaticLivenessRegistry(live_workers))

    assert reclaimer.reclaim() == 1
    job = store.get("job-1")
    assert job.locked_by is None
    assert job.locked_at is None


def test_mixed_jobs_and_malformed_locks():
    store = InMemoryJobStore(
        [
            _job("alive", "delayed_job.0 host:web-1 pid:4242"),
            _job("reused-pid", "delayed_job.1 host:web-1 pid:5000"),
            _job("gone", "delayed_job.2 host:web-1 pid:6000"),
            _job("garbage", "nonsense"),
            _job("idle", None),
        ]
    )
    registry = StaticLivenessRegistry({"delayed_job.0": "4242", "delayed_job.1": "5001"})

    assert OrphanedJobReclaimer(store, registry).reclaim() == 2
    assert store.get("alive").locked
    assert not store.get("reused-pid").locked
    assert not store.get("gone").locked
    assert store.get("garbage").locked_by == "nonsense"
    assert store.count_locked() == 2


def test_liveness_snapshot_taken_once_per_pass():
    class CountingRegistry(StaticLivenessRegistry):
        calls = 0

        def list_live_workers(self):
            CountingRegistry.calls += 1
            return super().list_live_workers()

    store = InMemoryJobStore([_job(f"job-{n}", f"w{n} host:{n}") for n in range(5)])
    OrphanedJobReclaimer(store, CountingRegistry({"w1": "1"})).reclaim()

    assert CountingRegistry.calls == 1


def test_unlock_failure_skips_job():
    class FlakyStore(InMemoryJobStore):
        def clear_lock(self, job_id: str) -> None:
            if job_id == "job-1":
                raise ConnectionError("write failed")
            super().clear_lock(job_id)

    store = FlakyStore([_job("job-1", "w1 host:1"), _job("job-2", "w2 host:2")])

    assert OrphanedJobReclaimer(store, StaticLivenessRegistry()).reclaim() == 1
    assert store.get("job-1").locked
    assert not store.get("job-2").locked


def test_lock_owner_parsing():
    assert LockOwner.parse("w1 host:123") == LockOwner(worker_id="w1", pid="123")
    assert LockOwner.parse("delayed_job.0 host:web-1 pid:4242") == LockOwner(worker_id="delayed_job.0", pid="4242")
    for invalid in (None, "", "single-token", "w1 host", "w1 host:"):
        with pytest.raises(LockOwnerFormatError, match=r"lock owner format v1"):
            LockOwner.parse(invalid)


def test_describe_handler():
    assert describe_handler(HANDLER) == "delete_convention_data"
    assert describe_handler("--- !ruby/object:ActiveJob::QueueAdapters::Wrapper\njob_data:\n  job_class: IngestJob\n") == "IngestJob"
    assert describe_handler("{unbalanced: [") == "unknown"
    assert describe_handler("just a string") == "unknown"
    assert describe_handler(None) == "unknown"


def test_restart_notification_reports_locked_jobs():
    store = InMemoryJobStore([_job("job-1", "w1 host:1"), _job("job-2", "w2 host:2"), _job("job-3", None)])
    notifier = RecordingNotifier()
    service = JobService(
        store,
        OrphanedJobReclaimer(store, StaticLivenessRegistry()),
        notifier,
        clock=lambda: CREATED,
    )

    assert service.restart_notification() == 2
    subject, body = notifier.sent[0]
    assert subject == "Portal restart"
    assert "2 jobs waiting" in body
    assert "March 01, 2024" in body

    assert service.restart_locked_jobs() == 2
    assert service.locked_job_count() == 0
