"""Application services."""

from .access import AccessReconciler, AccessService, AccessStateStore, ManualChangeOutcome, ReconcileOutcome
from .jobs import JobService, OrphanedJobReclaimer, describe_handler
from .permissions import BulkPermissionUpdater, BulkUpdateReport, EntryFailure
from .services import Services, build_services, configure_services, get_services, reset_services

__all__ = [
    "AccessReconciler",
    "AccessService",
    "AccessStateStore",
    "BulkPermissionUpdater",
    "BulkUpdateReport",
    "EntryFailure",
    "JobService",
    "ManualChangeOutcome",
    "OrphanedJobReclaimer",
    "ReconcileOutcome",
    "Services",
    "build_services",
    "configure_services",
    "describe_handler",
    "get_services",
    "reset_services",
]
