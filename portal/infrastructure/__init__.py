"""Infrastructure layer exports."""

from .configuration import ConfigurationRepository, InMemoryConfigurationRepository
from .jobs import InMemoryJobStore, JobStore
from .notifier import LoggingNotifier, Notifier, configure_notifier, get_notifier
from .pids import PidFileRegistry, StaticLivenessRegistry, WorkerLivenessRegistry
from .platform import HealthProbe, PermissionClient, PlatformClient
from .workspaces import InMemoryWorkspaceDirectory, WorkspaceDirectory

__all__ = [
    "ConfigurationRepository",
    "HealthProbe",
    "InMemoryConfigurationRepository",
    "InMemoryJobStore",
    "InMemoryWorkspaceDirectory",
    "JobStore",
    "LoggingNotifier",
    "Notifier",
    "PermissionClient",
    "PidFileRegistry",
    "PlatformClient",
    "StaticLivenessRegistry",
    "WorkerLivenessRegistry",
    "WorkspaceDirectory",
    "configure_notifier",
    "get_notifier",
]
