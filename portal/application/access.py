"""Access-mode persistence, health reconciliation and manual admin changes."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog

from portal.core.errors import InvalidAccessModeError
from portal.domain import (
    ACCESS_CONFIG_TYPE,
    NOTIFIER_CONFIG_TYPE,
    AccessMode,
    AccessState,
    Alert,
    BulkAction,
    Transition,
    plan_health_transition,
    plan_manual_transition,
    restriction_level,
)
from portal.infrastructure import ConfigurationRepository, HealthProbe, Notifier

from .permissions import BulkPermissionUpdater, BulkUpdateReport

logger = structlog.get_logger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def run_bulk_pass(
    updater: BulkPermissionUpdater,
    transition: Transition,
    restriction: AccessMode | None = None,
) -> tuple[BulkUpdateReport | None, str | None]:
    """Run the bulk pass a committed transition asks for.

    Returns ``(report, error)``.  A pass that cannot start is logged and
    reported through ``error``; the committed mode stands either way.
    """

    if transition.bulk_action is None:
        return None, None
    try:
        return await updater.apply(transition.bulk_action, restriction), None
    except Exception as exc:  # noqa: BLE001 - the committed mode stands even if the pass cannot start
        logger.error(
            "access.bulk_pass_failed",
            action=transition.bulk_action.value,
            mode=transition.next.mode.value,
            error=str(exc),
        )
        return None, str(exc) or type(exc).__name__


class AccessStateStore:
    """Maps :class:`AccessState` onto two admin configuration records."""

    def __init__(self, repository: ConfigurationRepository) -> None:
        self._repository = repository

    @staticmethod
    def _parse_armed(value: str | None) -> bool:
        if value is None:
            return True
        return value.strip().lower() in _TRUE_VALUES

    @staticmethod
    def _parse_mode(value: str) -> AccessMode:
        try:
            return AccessMode.parse(value)
        except InvalidAccessModeError:
            logger.warning("access.stored_mode_invalid", value=value)
            return AccessMode.UNKNOWN

    def current(self) -> AccessState:
        """Read the state without creating missing records.

        A stored mode that cannot be read comes back as ``unknown``.
        """

        access = self._repository.get(ACCESS_CONFIG_TYPE)
        notifier = self._repository.get(NOTIFIER_CONFIG_TYPE)
        mode = AccessMode.ON
        if access is not None and access.value:
            mode = self._parse_mode(access.value)
        armed = self._parse_armed(notifier.value if notifier is not None else None)
        return AccessState(mode=mode, notifier_armed=armed)

    def load_or_create(self) -> AccessState:
        """Read the state, creating and defaulting the records on first use."""

        notifier = self._repository.find_or_create(NOTIFIER_CONFIG_TYPE, "Boolean")
        access = self._repository.find_or_create(ACCESS_CONFIG_TYPE, "String")
        if access.value is None:
            access.value = AccessMode.ON.value
            self._repository.save(access)
        if notifier.value is None:
            notifier.value = "1"
            self._repository.save(notifier)
        return AccessState(mode=self._parse_mode(access.value), notifier_armed=self._parse_armed(notifier.value))

    def save(self, state: AccessState, previous: AccessState | None = None) -> None:
        """Persist ``state``, writing only the records that changed."""

        if previous is None or previous.mode is not state.mode:
            access = self._repository.find_or_create(ACCESS_CONFIG_TYPE, "String")
            access.value = state.mode.value
            self._repository.save(access)
        if previous is None or previous.notifier_armed != state.notifier_armed:
            notifier = self._repository.find_or_create(NOTIFIER_CONFIG_TYPE, "Boolean")
            notifier.value = "1" if state.notifier_armed else "0"
            self._repository.save(notifier)

    def current_access_mode(self) -> AccessMode:
        return self.current().mode

    def access_enabled(self) -> bool:
        return self.current().access_enabled


@dataclass(slots=True)
class ReconcileOutcome:
    previous: AccessState
    current: AccessState
    api_available: bool
    alert: Alert | None = None
    alert_sent: bool = False
    bulk_report: BulkUpdateReport | None = None
    bulk_error: str | None = None

    @property
    def changed(self) -> bool:
        return self.previous != self.current


class AccessReconciler:
    """Degrades and restores platform access from health probe results.

    Safe to run on any schedule, including overlapping ticks.  The access
    records are read and written without a lock; writes are idempotent and a
    repeated bulk pass re-applies the same ACLs.
    """

    def __init__(
        self,
        store: AccessStateStore,
        probe: HealthProbe,
        updater: BulkPermissionUpdater,
        notifier: Notifier,
        *,
        outage_restriction: AccessMode | str = AccessMode.READONLY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        restriction_level(outage_restriction)
        self._store = store
        self._probe = probe
        self._updater = updater
        self._notifier = notifier
        self._outage_restriction = AccessMode.parse(outage_restriction)
        self._clock = clock

    async def _probe_api(self) -> bool:
        try:
            return bool(await asyncio.to_thread(self._probe.api_available))
        except Exception as exc:  # noqa: BLE001 - a failing probe counts as an outage
            logger.warning("access.probe_failed", error=str(exc))
            return False

    def _alert_message(self, alert: Alert) -> tuple[str, str]:
        timestamp = self._clock().strftime("%m/%d/%y %I:%M:%S %p %Z").strip()
        if alert is Alert.OUTAGE:
            return (
                "ALERT: PLATFORM API UNAVAILABLE",
                f"<p>The platform API was found to be unavailable at {timestamp}.  "
                "Access has been disabled locally until API access is manually turned back on "
                "or the next automatic check returns positive.</p>",
            )
        return (
            "ALERT: Platform API recovery",
            f"<p>The platform API has recovered as of {timestamp}.  Access has been automatically restored.</p>",
        )

    def _send_alert(self, alert: Alert) -> bool:
        subject, body = self._alert_message(alert)
        try:
            self._notifier.send_admin_alert(subject, body)
        except Exception as exc:  # noqa: BLE001 - alerts are best effort
            logger.error("access.alert_failed", alert=alert.value, error=str(exc))
            return False
        logger.info("access.alert_sent", alert=alert.value)
        return True

    async def reconcile(self) -> ReconcileOutcome:
        state = self._store.load_or_create()
        available = await self._probe_api()
        transition = plan_health_transition(state, api_available=available)
        if transition is None:
            logger.debug("access.no_change", mode=state.mode.value, api_available=available)
            return ReconcileOutcome(previous=state, current=state, api_available=available)

        self._store.save(transition.next, previous=state)
        if transition.bulk_action is BulkAction.REVOKE:
            logger.error("access.outage_detected", previous=state.mode.value, mode=transition.next.mode.value)
        else:
            logger.info("access.recovered", previous=state.mode.value, mode=transition.next.mode.value)

        outcome = ReconcileOutcome(
            previous=state,
            current=transition.next,
            api_available=available,
            alert=transition.alert,
        )
        if transition.alert is not None:
            outcome.alert_sent = self._send_alert(transition.alert)

        restriction = self._outage_restriction if transition.bulk_action is BulkAction.REVOKE else None
        outcome.bulk_report, outcome.bulk_error = await run_bulk_pass(self._updater, transition, restriction)
        return outcome


@dataclass(slots=True)
class ManualChangeOutcome:
    transition: Transition
    bulk_report: BulkUpdateReport | None = None
    bulk_error: str | None = None


class AccessService:
    """Admin-facing access operations."""

    def __init__(self, store: AccessStateStore, updater: BulkPermissionUpdater, reconciler: AccessReconciler) -> None:
        self._store = store
        self._updater = updater
        self._reconciler = reconciler

    def current_state(self) -> AccessState:
        return self._store.current()

    def current_access_mode(self) -> AccessMode:
        return self._store.current_access_mode()

    def access_enabled(self) -> bool:
        return self._store.access_enabled()

    async def set_access_mode(self, mode: AccessMode | str) -> ManualChangeOutcome:
        """Apply an admin-chosen mode.  ``local-off`` is rejected before any write."""

        state = self._store.current()
        transition = plan_manual_transition(state, mode)
        self._store.save(transition.next, previous=state)
        logger.info("access.manual_change", previous=state.mode.value, mode=transition.next.mode.value)
        report, error = await run_bulk_pass(self._updater, transition, transition.restriction)
        return ManualChangeOutcome(transition=transition, bulk_report=report, bulk_error=error)

    async def check_api_health(self) -> ReconcileOutcome:
        return await self._reconciler.reconcile()
