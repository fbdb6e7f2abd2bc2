from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from portal.application import BulkUpdateReport, get_services
from portal.core.errors import InvalidAccessModeError
from portal.domain import AccessState

router = APIRouter(prefix="/admin", tags=["admin"])


def _state_payload(state: AccessState) -> dict:
    return {
        "mode": state.mode.value,
        "notifier_armed": state.notifier_armed,
        "access_enabled": state.access_enabled,
    }


def _report_payload(report: BulkUpdateReport | None) -> dict | None:
    if report is None:
        return None
    return {
        "action": report.action.value,
        "access_level": report.access_level,
        "workspaces": report.workspaces,
        "entries_applied": report.entries_applied,
        "failures": [asdict(failure) for failure in report.failures],
    }


@router.get("/access")
async def get_access_state() -> dict:
    services = get_services()
    return _state_payload(services.access.current_state())


@router.post("/access")
async def update_access_mode(payload: dict) -> dict:
    """Apply a manual access mode (``on``, ``readonly`` or ``off``)."""
    mode = payload.get("mode")
    if not mode:
        raise HTTPException(status_code=400, detail="mode is required")
    services = get_services()
    try:
        outcome = await services.access.set_access_mode(mode)
    except InvalidAccessModeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        **_state_payload(outcome.transition.next),
        "previous_mode": outcome.transition.previous.mode.value,
        "report": _report_payload(outcome.bulk_report),
        "bulk_error": outcome.bulk_error,
    }


@router.post("/access/health-check")
async def check_api_health() -> dict:
    services = get_services()
    outcome = await services.access.check_api_health()
    return {
        **_state_payload(outcome.current),
        "previous_mode": outcome.previous.mode.value,
        "api_available": outcome.api_available,
        "changed": outcome.changed,
        "alert": outcome.alert.value if outcome.alert else None,
        "alert_sent": outcome.alert_sent,
        "report": _report_payload(outcome.bulk_report),
        "bulk_error": outcome.bulk_error,
    }


@router.get("/jobs/locked")
async def count_locked_jobs() -> dict:
    services = get_services()
    return {"locked": services.jobs.locked_job_count()}


@router.post("/jobs/reclaim")
async def reclaim_orphaned_jobs() -> dict:
    services = get_services()
    return {"unlocked": services.jobs.restart_locked_jobs()}
