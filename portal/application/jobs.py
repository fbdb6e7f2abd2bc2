"""Recovery of background jobs orphaned by crashed workers."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import structlog
import yaml

from portal.core.errors import LockOwnerFormatError
from portal.domain import JobRecord, LockOwner
from portal.infrastructure import JobStore, Notifier, WorkerLivenessRegistry

logger = structlog.get_logger(__name__)

UNKNOWN_METHOD = "unknown"


class _HandlerLoader(yaml.SafeLoader):
    """Safe loader that turns application-specific tags into plain data."""


def _construct_tagged(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node, deep=True)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_scalar(node)


_HandlerLoader.add_multi_constructor("!", _construct_tagged)


def describe_handler(handler: str | None) -> str:
    """Best-effort name of the method a serialized job handler will run."""

    if not handler:
        return UNKNOWN_METHOD
    try:
        data = yaml.load(handler, Loader=_HandlerLoader)  # noqa: S506 - loader is a SafeLoader subclass
    except (yaml.YAMLError, TypeError, ValueError):
        return UNKNOWN_METHOD
    if not isinstance(data, dict):
        return UNKNOWN_METHOD

    method = data.get("method_name")
    if method is None and isinstance(data.get("job_data"), dict):
        method = data["job_data"].get("job_class")
    if method is None:
        return UNKNOWN_METHOD
    return str(method).lstrip(":") or UNKNOWN_METHOD


class OrphanedJobReclaimer:
    """Unlocks jobs whose owning worker process no longer exists.

    A worker counts as alive only when its slot is present in the liveness
    snapshot with the same process id recorded in the job lock.  The snapshot
    is taken once per pass.
    """

    def __init__(self, store: JobStore, registry: WorkerLivenessRegistry) -> None:
        self._store = store
        self._registry = registry

    def _is_orphaned(self, job: JobRecord, live_workers: dict[str, str]) -> bool | None:
        try:
            owner = LockOwner.parse(job.locked_by)
        except LockOwnerFormatError as exc:
            logger.warning("jobs.lock_owner_unparseable", job_id=job.job_id, locked_by=job.locked_by, error=str(exc))
            return None
        return not owner.is_alive(live_workers)

    def reclaim(self) -> int:
        live_workers = self._registry.list_live_workers()
        logger.info("jobs.reclaim_started", live_workers=sorted(live_workers))

        unlocked = 0
        for job in self._store.find_locked_jobs():
            if not self._is_orphaned(job, live_workers):
                continue
            locked_by = job.locked_by
            try:
                self._store.clear_lock(job.job_id)
            except Exception as exc:  # noqa: BLE001 - keep reclaiming the remaining jobs
                logger.error("jobs.unlock_failed", job_id=job.job_id, error=str(exc))
                continue
            unlocked += 1
            logger.info(
                "jobs.orphan_unlocked",
                job_id=job.job_id,
                method=describe_handler(job.handler),
                locked_by=locked_by,
                queued_at=job.created_at.isoformat(),
            )

        logger.info("jobs.reclaim_completed", unlocked=unlocked)
        return unlocked


class JobService:
    """Admin-facing job recovery operations."""

    def __init__(
        self,
        store: JobStore,
        reclaimer: OrphanedJobReclaimer,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._reclaimer = reclaimer
        self._notifier = notifier
        self._clock = clock

    def locked_job_count(self) -> int:
        return self._store.count_locked()

    def restart_locked_jobs(self) -> int:
        return self._reclaimer.reclaim()

    def restart_notification(self) -> int:
        """Tell admins the portal restarted and how many jobs are waiting."""

        locked = self._store.count_locked()
        current_time = self._clock().strftime("%B %d, %Y %H:%M %Z").strip()
        body = (
            f"<p>The portal was restarted at {current_time}.</p>"
            f"<p>There are currently {locked} jobs waiting to be restarted.</p>"
        )
        self._notifier.send_admin_alert("Portal restart", body)
        return locked
