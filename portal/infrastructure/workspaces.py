"""Infrastructure layer for the workspace directory."""
from __future__ import annotations

from typing import Iterable, Protocol

from portal.domain import Workspace


class WorkspaceDirectory(Protocol):
    """Lookup contract for study workspaces hosted on the platform."""

    def list_workspaces(
        self,
        *,
        exclude_queued_for_deletion: bool = True,
        projects: Iterable[str] | None = None,
    ) -> list[Workspace]: ...


class InMemoryWorkspaceDirectory:
    """Workspace directory backed by a plain list."""

    def __init__(self, workspaces: Iterable[Workspace] | None = None) -> None:
        self._workspaces: list[Workspace] = list(workspaces or [])

    def add(self, workspace: Workspace) -> None:
        self._workspaces.append(workspace)

    def list_workspaces(
        self,
        *,
        exclude_queued_for_deletion: bool = True,
        projects: Iterable[str] | None = None,
    ) -> list[Workspace]:
        allowed = set(projects) if projects is not None else None
        selected: list[Workspace] = []
        for workspace in self._workspaces:
            if exclude_queued_for_deletion and workspace.queued_for_deletion:
                continue
            if allowed is not None and workspace.project not in allowed:
                continue
            selected.append(workspace)
        return selected
