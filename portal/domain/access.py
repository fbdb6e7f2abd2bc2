"""Access-mode state machine for the downstream platform.

The mode is a closed enumeration.  ``local-off`` is reserved for automatic
outage handling: only :func:`plan_health_transition` produces it and only
:func:`plan_health_transition` moves away from it automatically.  Manual admin
requests go through :func:`plan_manual_transition`, which refuses
``local-off`` outright.  ``unknown`` stands for a stored value that could not be
read; it is never written, automation leaves it alone and any manual mode
replaces it.

The notifier latch travels with the mode inside :class:`AccessState`, so the
"one alert per outage episode" rule is decided by the same table that decides
the mode.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from portal.core.errors import InvalidAccessModeError


class AccessMode(str, Enum):
    ON = "on"
    LOCAL_OFF = "local-off"
    READONLY = "readonly"
    OFF = "off"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: "AccessMode | str | None") -> "AccessMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidAccessModeError(f"invalid access mode: {value!r}") from None


class BulkAction(str, Enum):
    REVOKE = "revoke"
    RESTORE = "restore"


class Alert(str, Enum):
    OUTAGE = "outage"
    RECOVERY = "recovery"


MANUAL_MODES = frozenset({AccessMode.ON, AccessMode.READONLY, AccessMode.OFF})

# platform access level applied to every principal when revoking
RESTRICTION_LEVELS: dict[AccessMode, str] = {
    AccessMode.READONLY: "READER",
    AccessMode.OFF: "NO ACCESS",
}


def restriction_level(degree: AccessMode | str) -> str:
    """Map a restriction degree (``readonly`` or ``off``) to a platform level."""

    try:
        mode = AccessMode.parse(degree)
    except InvalidAccessModeError:
        mode = None
    if mode not in RESTRICTION_LEVELS:
        raise InvalidAccessModeError(f"invalid restriction degree: {degree!r}")
    return RESTRICTION_LEVELS[mode]


@dataclass(frozen=True, slots=True)
class AccessState:
    """Current access mode plus the outage notifier latch."""

    mode: AccessMode = AccessMode.ON
    notifier_armed: bool = True

    @property
    def access_enabled(self) -> bool:
        return self.mode is AccessMode.ON


@dataclass(frozen=True, slots=True)
class Transition:
    """A legal move between two access states and its side effects."""

    previous: AccessState
    next: AccessState
    bulk_action: BulkAction | None = None
    restriction: AccessMode | None = None
    alert: Alert | None = None


def plan_health_transition(state: AccessState, *, api_available: bool) -> Transition | None:
    """Decide what a health probe result means for the current state.

    Returns ``None`` when nothing should happen.  Manual modes (``readonly``,
    ``off``) and ``unknown`` are never touched, and a mode already matching the
    probe result is left alone, which makes repeated ticks no-ops.
    """

    if not api_available and state.mode is AccessMode.ON:
        return Transition(
            previous=state,
            next=AccessState(mode=AccessMode.LOCAL_OFF, notifier_armed=False),
            bulk_action=BulkAction.REVOKE,
            alert=Alert.OUTAGE if state.notifier_armed else None,
        )
    if api_available and state.mode is AccessMode.LOCAL_OFF:
        return Transition(
            previous=state,
            next=AccessState(mode=AccessMode.ON, notifier_armed=True),
            bulk_action=BulkAction.RESTORE,
            alert=None if state.notifier_armed else Alert.RECOVERY,
        )
    return None


def plan_manual_transition(state: AccessState, requested: AccessMode | str) -> Transition:
    """Plan an admin-requested mode change.

    ``local-off``, ``unknown`` and unrecognised values raise
    :class:`InvalidAccessModeError`.
    Turning access back on re-arms the notifier so the next outage alerts.
    Re-requesting the current mode plans no bulk pass.
    """

    mode = AccessMode.parse(requested)
    if mode not in MANUAL_MODES:
        raise InvalidAccessModeError(f"{mode.value!r} cannot be set manually")
    if mode is AccessMode.ON:
        next_state = AccessState(mode=mode, notifier_armed=True)
    else:
        next_state = replace(state, mode=mode)
    if state.mode is mode:
        return Transition(previous=state, next=next_state)
    if mode is AccessMode.ON:
        return Transition(previous=state, next=next_state, bulk_action=BulkAction.RESTORE)
    return Transition(
        previous=state,
        next=next_state,
        bulk_action=BulkAction.REVOKE,
        restriction=mode,
    )
