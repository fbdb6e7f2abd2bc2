"""Worker liveness lookup backed by pid files.

Each running worker writes ``<worker_id>.pid`` into a shared directory with
its process id as the file content.  The registry only reads those files.
"""
from __future__ import annotations

from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class WorkerLivenessRegistry(Protocol):
    """Contract for looking up which worker slots are alive."""

    def list_live_workers(self) -> dict[str, str]:
        """Return a mapping of worker id to process id."""


class PidFileRegistry:
    """Reads ``*.pid`` files from ``pid_dir``."""

    suffix = ".pid"

    def __init__(self, pid_dir: Path) -> None:
        self._pid_dir = Path(pid_dir)

    def list_live_workers(self) -> dict[str, str]:
        if not self._pid_dir.is_dir():
            logger.warning("pids.directory_missing", pid_dir=str(self._pid_dir))
            return {}

        workers: dict[str, str] = {}
        for path in sorted(self._pid_dir.iterdir()):
            if path.name.startswith(".") or not path.is_file():
                continue
            worker_id = path.name.removesuffix(self.suffix)
            try:
                pid = path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                logger.warning("pids.unreadable", path=str(path), error=str(exc))
                continue
            if not pid:
                logger.warning("pids.empty", path=str(path))
                continue
            workers[worker_id] = pid
        return workers


class StaticLivenessRegistry:
    """Fixed snapshot, used where no pid directory exists (tests, one-off scripts)."""

    def __init__(self, workers: dict[str, str] | None = None) -> None:
        self._workers = dict(workers or {})

    def list_live_workers(self) -> dict[str, str]:
        return dict(self._workers)
