"""HTTP client for the downstream compute/storage platform."""
from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote, urlparse

import httpx
import structlog

from portal.core.errors import PlatformError
from portal.domain import AclEntry

logger = structlog.get_logger(__name__)


class HealthProbe(Protocol):
    """Availability check for the platform API."""

    def api_available(self) -> bool:
        """Return ``True`` when the API is healthy.  Must not raise."""


class PermissionClient(Protocol):
    """Workspace ACL operations on the platform."""

    def build_acl_entry(
        self,
        email: str,
        access_level: str,
        can_share: bool = False,
        can_compute: bool = False,
    ) -> AclEntry: ...

    def push_acl(self, project: str, workspace: str, entry: AclEntry) -> None: ...


class PlatformClient:
    """Client for the platform's status and workspace ACL endpoints."""

    def __init__(
        self,
        api_base: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_base = api_base.rstrip("/")
        self._token = token
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _acl_url(self, project: str, workspace: str) -> str:
        return f"{self._api_base}/api/workspaces/{quote(project, safe='')}/{quote(workspace, safe='')}/acl"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body: Any = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return str(body.get("message") or body)
        return str(body)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def api_available(self) -> bool:
        try:
            response = self._client.get(f"{self._api_base}/status", headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("platform.status_unreachable", error=str(exc))
            return False
        if not response.is_success:
            logger.warning("platform.status_unhealthy", status_code=response.status_code)
            return False
        return True

    def build_acl_entry(
        self,
        email: str,
        access_level: str,
        can_share: bool = False,
        can_compute: bool = False,
    ) -> AclEntry:
        return AclEntry(email=email, access_level=access_level, can_share=can_share, can_compute=can_compute)

    def push_acl(self, project: str, workspace: str, entry: AclEntry) -> None:
        response = self._client.patch(
            self._acl_url(project, workspace),
            headers=self._headers(),
            json=[entry.to_payload()],
        )
        if not response.is_success:
            raise PlatformError(
                f"ACL update for {project}/{workspace} failed with {response.status_code}: "
                f"{self._error_message(response)}"
            )

        try:
            body = response.json()
        except ValueError:
            return
        missing = body.get("usersNotFound") if isinstance(body, dict) else None
        if missing and any(item.get("email") == entry.email for item in missing if isinstance(item, dict)):
            raise PlatformError(f"principal {entry.email} not found on platform")

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = ["HealthProbe", "PermissionClient", "PlatformClient"]
