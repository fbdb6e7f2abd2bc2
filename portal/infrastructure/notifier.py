"""Admin notification hooks.

Outbound email delivery belongs to the surrounding application.  This module
defines the contract the access and job services call, plus a fallback that
writes alerts to the log.  Call ``configure_notifier`` during start-up to
install a real mailer.
"""
from __future__ import annotations

from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    """Contract for admin alert delivery."""

    def send_admin_alert(self, subject: str, body: str) -> None:
        """Deliver an alert to every site administrator."""


class LoggingNotifier:
    """Fallback notifier used when no mailer is configured."""

    def send_admin_alert(self, subject: str, body: str) -> None:
        logger.warning("notifier.admin_alert", subject=subject, body=body)


_notifier: Notifier = LoggingNotifier()


def configure_notifier(notifier: Notifier) -> None:
    """Install the notifier used for admin alerts."""

    global _notifier
    _notifier = notifier


def get_notifier() -> Notifier:
    """Return the currently configured notifier."""

    return _notifier
