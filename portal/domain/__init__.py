"""Domain layer definitions."""

from .access import (
    AccessMode,
    AccessState,
    Alert,
    BulkAction,
    Transition,
    plan_health_transition,
    plan_manual_transition,
    restriction_level,
)
from .configuration import ACCESS_CONFIG_TYPE, NOTIFIER_CONFIG_TYPE, ConfigurationRecord
from .jobs import JobRecord, LockOwner
from .workspaces import AclEntry, CollaboratorShare, Workspace

__all__ = [
    "ACCESS_CONFIG_TYPE",
    "NOTIFIER_CONFIG_TYPE",
    "AccessMode",
    "AccessState",
    "AclEntry",
    "Alert",
    "BulkAction",
    "CollaboratorShare",
    "ConfigurationRecord",
    "JobRecord",
    "LockOwner",
    "Transition",
    "Workspace",
    "plan_health_transition",
    "plan_manual_transition",
    "restriction_level",
]
