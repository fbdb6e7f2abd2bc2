#!/usr/bin/env python
"""Entry points for the scheduler: ``python -m portal.cli <command>``."""
from __future__ import annotations

import argparse
import asyncio
import sys

from portal.application import get_services
from portal.core.logging import configure_logging


def _check_api_health(args: argparse.Namespace) -> int:
    outcome = asyncio.run(get_services().access.check_api_health())
    status = "available" if outcome.api_available else "unavailable"
    print(f"platform API {status}; access mode {outcome.previous.mode.value} -> {outcome.current.mode.value}")
    if outcome.bulk_error is not None:
        print(f"permission pass did not run: {outcome.bulk_error}", file=sys.stderr)
    if outcome.bulk_report is not None and not outcome.bulk_report.ok:
        print(f"{len(outcome.bulk_report.failures)} permission updates failed", file=sys.stderr)
    return 0


def _set_access(args: argparse.Namespace) -> int:
    outcome = asyncio.run(get_services().access.set_access_mode(args.mode))
    print(f"access mode {outcome.transition.previous.mode.value} -> {outcome.transition.next.mode.value}")
    if outcome.bulk_error is not None:
        print(f"permission pass did not run: {outcome.bulk_error}", file=sys.stderr)
        return 1
    if outcome.bulk_report is not None and not outcome.bulk_report.ok:
        print(f"{len(outcome.bulk_report.failures)} permission updates failed", file=sys.stderr)
        return 1
    return 0


def _restart_locked_jobs(args: argparse.Namespace) -> int:
    count = get_services().jobs.restart_locked_jobs()
    print(f"unlocked {count} orphaned jobs")
    return 0


def _restart_notification(args: argparse.Namespace) -> int:
    count = get_services().jobs.restart_notification()
    print(f"restart notification sent; {count} jobs waiting")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Portal access and job maintenance tasks")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    health = subparsers.add_parser("check-api-health", help="probe the platform API and reconcile access")
    health.set_defaults(handler=_check_api_health)

    access = subparsers.add_parser("set-access", help="apply a manual access mode")
    access.add_argument("mode", choices=["on", "readonly", "off"])
    access.set_defaults(handler=_set_access)

    jobs = subparsers.add_parser("restart-locked-jobs", help="unlock jobs held by dead workers")
    jobs.set_defaults(handler=_restart_locked_jobs)

    notify = subparsers.add_parser("restart-notification", help="email admins about a portal restart")
    notify.set_defaults(handler=_restart_notification)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_services().settings
    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
