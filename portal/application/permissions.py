"""Bulk revocation and restoration of workspace permissions.

Only workspaces in the managed (platform-billed) projects that are not queued
for deletion are touched.  Inside a workspace the collaborators are always
processed before the owner, in both directions, so the owner is the last to
lose access and the last to get it back.  Workspaces themselves fan out with
bounded concurrency and every entry failure is recorded instead of raised.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Iterable

import structlog

from portal.core.errors import InvalidAccessModeError
from portal.domain import AccessMode, BulkAction, Workspace, restriction_level
from portal.domain.workspaces import WRITER
from portal.infrastructure import PermissionClient, WorkspaceDirectory

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PlannedEntry:
    email: str
    access_level: str
    can_share: bool = False
    can_compute: bool = False
    owner: bool = False


@dataclass(frozen=True, slots=True)
class EntryFailure:
    project: str
    workspace: str
    email: str | None
    error: str


@dataclass(slots=True)
class WorkspaceResult:
    project: str
    workspace: str
    applied: int = 0
    failures: list[EntryFailure] = field(default_factory=list)


@dataclass(slots=True)
class BulkUpdateReport:
    """Summary of a bulk permission pass."""

    action: BulkAction
    access_level: str | None = None
    workspaces: int = 0
    entries_applied: int = 0
    failures: list[EntryFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class BulkPermissionUpdater:
    def __init__(
        self,
        directory: WorkspaceDirectory,
        permissions: PermissionClient,
        *,
        managed_projects: Iterable[str],
        production: bool = False,
        max_concurrency: int = 4,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._directory = directory
        self._permissions = permissions
        self._managed_projects = frozenset(managed_projects)
        self._production = production
        self._max_concurrency = max_concurrency

    # ------------------------------------------------------------------
    # planning
    # ------------------------------------------------------------------
    def plan_entries(self, workspace: Workspace, action: BulkAction, access_level: str | None = None) -> list[PlannedEntry]:
        """Return the ACL entries for ``workspace`` in the order they must be pushed."""

        shares = workspace.non_reviewer_shares()
        if action is BulkAction.REVOKE:
            if access_level is None:
                raise InvalidAccessModeError("revoke requires a restriction level")
            entries = [PlannedEntry(email=share.email, access_level=access_level) for share in shares]
            entries.append(PlannedEntry(email=workspace.owner_email, access_level=access_level, owner=True))
            return entries

        entries = []
        for share in shares:
            level = share.platform_level
            writer = level == WRITER
            entries.append(
                PlannedEntry(
                    email=share.email,
                    access_level=level,
                    can_share=writer,
                    can_compute=writer and not self._production,
                )
            )
        entries.append(
            PlannedEntry(
                email=workspace.owner_email,
                access_level=WRITER,
                can_share=True,
                can_compute=not self._production,
                owner=True,
            )
        )
        return entries

    # ------------------------------------------------------------------
    # execution
    # ------------------------------------------------------------------
    def _apply_workspace(self, workspace: Workspace, entries: list[PlannedEntry]) -> WorkspaceResult:
        log = logger.bind(project=workspace.project, workspace=workspace.name)
        log.info("permissions.workspace_started", entries=len(entries))
        result = WorkspaceResult(project=workspace.project, workspace=workspace.name)
        for planned in entries:
            try:
                entry = self._permissions.build_acl_entry(
                    planned.email,
                    planned.access_level,
                    planned.can_share,
                    planned.can_compute,
                )
                self._permissions.push_acl(workspace.project, workspace.name, entry)
            except Exception as exc:  # noqa: BLE001 - one failed entry must not stop the pass
                log.error(
                    "permissions.entry_failed",
                    principal=planned.email,
                    owner=planned.owner,
                    access_level=planned.access_level,
                    error=str(exc),
                )
                result.failures.append(
                    EntryFailure(
                        project=workspace.project,
                        workspace=workspace.name,
                        email=planned.email,
                        error=str(exc),
                    )
                )
                continue
            result.applied += 1
            log.info(
                "permissions.entry_applied",
                principal=planned.email,
                owner=planned.owner,
                access_level=planned.access_level,
            )
        log.info("permissions.workspace_completed", applied=result.applied, failed=len(result.failures))
        return result

    async def apply(self, action: BulkAction | str, restriction: AccessMode | str | None = None) -> BulkUpdateReport:
        """Push revoke or restore ACLs to every managed workspace.

        ``restriction`` selects the revoke degree (``readonly`` or ``off``) and
        is validated before any external call is made.
        """

        try:
            action = BulkAction(action)
        except ValueError:
            raise InvalidAccessModeError(f"invalid bulk action: {action!r}") from None
        access_level: str | None = None
        if action is BulkAction.REVOKE:
            if restriction is None:
                raise InvalidAccessModeError("revoke requires a restriction degree")
            access_level = restriction_level(restriction)

        projects = sorted(self._managed_projects)
        workspaces = self._directory.list_workspaces(exclude_queued_for_deletion=True, projects=projects)
        workspaces = [
            ws for ws in workspaces if ws.project in self._managed_projects and not ws.queued_for_deletion
        ]
        logger.info(
            "permissions.pass_started",
            action=action.value,
            access_level=access_level,
            projects=projects,
            workspaces=len(workspaces),
        )

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(workspace: Workspace) -> WorkspaceResult:
            entries = self.plan_entries(workspace, action, access_level)
            async with semaphore:
                return await asyncio.to_thread(self._apply_workspace, workspace, entries)

        results = await asyncio.gather(*(run(ws) for ws in workspaces), return_exceptions=True)

        report = BulkUpdateReport(action=action, access_level=access_level, workspaces=len(workspaces))
        for workspace, result in zip(workspaces, results):
            if isinstance(result, BaseException):
                logger.error(
                    "permissions.workspace_failed",
                    project=workspace.project,
                    workspace=workspace.name,
                    error=str(result),
                )
                report.failures.append(
                    EntryFailure(project=workspace.project, workspace=workspace.name, email=None, error=str(result))
                )
                continue
            report.entries_applied += result.applied
            report.failures.extend(result.failures)

        logger.info(
            "permissions.pass_completed",
            action=action.value,
            access_level=access_level,
            applied=report.entries_applied,
            failed=len(report.failures),
        )
        return report
