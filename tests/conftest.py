from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from portal.application import reset_services
from portal.core.errors import PlatformError
from portal.domain import AclEntry, CollaboratorShare, Workspace


class FakeProbe:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.calls = 0

    def api_available(self) -> bool:
        self.calls += 1
        return self.available


class RecordingPermissionClient:
    """Records every ACL push; pushes for ``failing`` principals raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = set(failing or ())
        self.pushes: list[tuple[str, str, AclEntry]] = []
        self.builds = 0
        self._lock = threading.Lock()

    def build_acl_entry(self, email, access_level, can_share=False, can_compute=False) -> AclEntry:
        with self._lock:
            self.builds += 1
        return AclEntry(email=email, access_level=access_level, can_share=can_share, can_compute=can_compute)

    def push_acl(self, project: str, workspace: str, entry: AclEntry) -> None:
        if entry.email in self.failing:
            raise PlatformError(f"push rejected for {entry.email}")
        with self._lock:
            self.pushes.append((project, workspace, entry))

    def pushes_for(self, workspace: str) -> list[AclEntry]:
        return [entry for _, name, entry in self.pushes if name == workspace]


class RecordingNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    def send_admin_alert(self, subject: str, body: str) -> None:
        if self.fail:
            raise ConnectionError("smtp unavailable")
        self.sent.append((subject, body))


def make_workspace(
    name: str,
    *,
    project: str = "single-cell-portal",
    owner: str = "owner@example.com",
    shares: list[tuple[str, str]] | None = None,
    queued_for_deletion: bool = False,
) -> Workspace:
    return Workspace(
        project=project,
        name=name,
        owner_email=owner,
        shares=[CollaboratorShare(email=email, permission=permission) for email, permission in shares or []],
        queued_for_deletion=queued_for_deletion,
    )


@pytest.fixture(autouse=True)
def reset_state():
    reset_services()
    yield
    reset_services()


@pytest.fixture()
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture()
def permissions() -> RecordingPermissionClient:
    return RecordingPermissionClient()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
