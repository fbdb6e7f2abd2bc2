"""Wiring of repositories, clients and application services."""
from __future__ import annotations

from dataclasses import dataclass

from portal.core.settings import Settings
from portal.infrastructure import (
    ConfigurationRepository,
    HealthProbe,
    InMemoryConfigurationRepository,
    InMemoryJobStore,
    InMemoryWorkspaceDirectory,
    JobStore,
    Notifier,
    PermissionClient,
    PidFileRegistry,
    PlatformClient,
    WorkerLivenessRegistry,
    WorkspaceDirectory,
    get_notifier,
)

from .access import AccessReconciler, AccessService, AccessStateStore
from .jobs import JobService, OrphanedJobReclaimer
from .permissions import BulkPermissionUpdater


@dataclass(slots=True)
class Services:
    settings: Settings
    configuration: ConfigurationRepository
    directory: WorkspaceDirectory
    job_store: JobStore
    updater: BulkPermissionUpdater
    reconciler: AccessReconciler
    access: AccessService
    jobs: JobService


def build_services(
    settings: Settings,
    *,
    configuration: ConfigurationRepository | None = None,
    directory: WorkspaceDirectory | None = None,
    job_store: JobStore | None = None,
    probe: HealthProbe | None = None,
    permissions: PermissionClient | None = None,
    notifier: Notifier | None = None,
    registry: WorkerLivenessRegistry | None = None,
) -> Services:
    """Assemble the services, defaulting to in-memory stores and the HTTP platform client."""

    if probe is None or permissions is None:
        client = PlatformClient(
            settings.platform_api_base,
            token=settings.platform_api_token,
            timeout=settings.platform_timeout,
        )
        probe = probe or client
        permissions = permissions or client

    configuration = configuration or InMemoryConfigurationRepository()
    directory = directory or InMemoryWorkspaceDirectory()
    job_store = job_store or InMemoryJobStore()
    notifier = notifier or get_notifier()
    registry = registry or PidFileRegistry(settings.pid_dir)

    store = AccessStateStore(configuration)
    updater = BulkPermissionUpdater(
        directory,
        permissions,
        managed_projects=settings.compute_blacklist,
        production=settings.production,
        max_concurrency=settings.bulk_concurrency,
    )
    reconciler = AccessReconciler(
        store,
        probe,
        updater,
        notifier,
        outage_restriction=settings.outage_restriction,
    )
    reclaimer = OrphanedJobReclaimer(job_store, registry)
    return Services(
        settings=settings,
        configuration=configuration,
        directory=directory,
        job_store=job_store,
        updater=updater,
        reconciler=reconciler,
        access=AccessService(store, updater, reconciler),
        jobs=JobService(job_store, reclaimer, notifier),
    )


_services: Services | None = None


def configure_services(services: Services) -> None:
    """Install the services used by the API and the CLI."""

    global _services
    _services = services


def get_services() -> Services:
    """Return the process-wide services, building them from the environment on first use."""

    global _services
    if _services is None:
        _services = build_services(Settings.from_env())
    return _services


def reset_services() -> None:
    """Forget the configured services (used in tests)."""

    global _services
    _services = None
