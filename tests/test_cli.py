from __future__ import annotations

from datetime import datetime, timezone

from conftest import make_workspace

from portal.application import build_services, configure_services
from portal.cli import main
from portal.core.settings import Settings
from portal.domain import JobRecord
from portal.infrastructure import InMemoryJobStore, InMemoryWorkspaceDirectory, PidFileRegistry


def _configure(tmp_path, probe, permissions, notifier):
    (tmp_path / "w1.pid").write_text("10\n", encoding="utf-8")
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    job_store = InMemoryJobStore(
        [
            JobRecord(job_id="job-1", handler="", created_at=created, locked_by="w1 host:10"),
            JobRecord(job_id="job-2", handler="", created_at=created, locked_by="w1 host:11"),
        ]
    )
    services = build_services(
        Settings(pid_dir=tmp_path),
        directory=InMemoryWorkspaceDirectory([make_workspace("study-a")]),
        job_store=job_store,
        probe=probe,
        permissions=permissions,
        notifier=notifier,
        registry=PidFileRegistry(tmp_path),
    )
    configure_services(services)
    return services


def test_check_api_health(tmp_path, probe, permissions, notifier, capsys):
    _configure(tmp_path, probe, permissions, notifier)
    probe.available = False

    assert main(["check-api-health"]) == 0

    assert "access mode on -> local-off" in capsys.readouterr().out
    assert len(notifier.sent) == 1


def test_restart_locked_jobs(tmp_path, probe, permissions, notifier, capsys):
    services = _configure(tmp_path, probe, permissions, notifier)

    assert main(["restart-locked-jobs"]) == 0

    assert "unlocked 1 orphaned jobs" in capsys.readouterr().out
    assert services.job_store.count_locked() == 1


def test_restart_notification(tmp_path, probe, permissions, notifier):
    _configure(tmp_path, probe, permissions, notifier)

    assert main(["restart-notification"]) == 0

    assert notifier.sent[0][0] == "Portal restart"


def test_set_access(tmp_path, probe, permissions, notifier, capsys):
    _configure(tmp_path, probe, permissions, notifier)

    assert main(["set-access", "off"]) == 0

    assert "access mode on -> off" in capsys.readouterr().out
    assert [entry.access_level for entry in permissions.pushes_for("study-a")] == ["NO ACCESS"]


def test_set_access_reports_bulk_failure(tmp_path, probe, permissions, notifier, capsys):
    class BrokenDirectory:
        def list_workspaces(self, *, exclude_queued_for_deletion=True, projects=None):
            raise ConnectionError("database unavailable")

    services = build_services(
        Settings(pid_dir=tmp_path),
        directory=BrokenDirectory(),
        probe=probe,
        permissions=permissions,
        notifier=notifier,
        registry=PidFileRegistry(tmp_path),
    )
    configure_services(services)

    assert main(["set-access", "readonly"]) == 1

    captured = capsys.readouterr()
    assert "access mode on -> readonly" in captured.out
    assert "permission pass did not run: database unavailable" in captured.err
    assert services.access.current_access_mode().value == "readonly"
