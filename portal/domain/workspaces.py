"""Workspace and access-control entities consumed by bulk permission passes."""
from __future__ import annotations

from dataclasses import dataclass, field

WRITER = "WRITER"
READER = "READER"
NO_ACCESS = "NO ACCESS"

REVIEWER = "Reviewer"

# portal share permission -> platform access level
SHARE_ACL_MAP: dict[str, str] = {
    "Edit": WRITER,
    "View": READER,
    REVIEWER: NO_ACCESS,
}


@dataclass(frozen=True, slots=True)
class CollaboratorShare:
    email: str
    permission: str

    @property
    def reviewer(self) -> bool:
        return self.permission == REVIEWER

    @property
    def platform_level(self) -> str:
        return SHARE_ACL_MAP.get(self.permission, NO_ACCESS)


@dataclass(slots=True)
class Workspace:
    """A study workspace hosted on the downstream platform."""

    project: str
    name: str
    owner_email: str
    shares: list[CollaboratorShare] = field(default_factory=list)
    queued_for_deletion: bool = False

    def non_reviewer_shares(self) -> list[CollaboratorShare]:
        return [share for share in self.shares if not share.reviewer]


@dataclass(frozen=True, slots=True)
class AclEntry:
    email: str
    access_level: str
    can_share: bool = False
    can_compute: bool = False

    def to_payload(self) -> dict[str, object]:
        return {
            "email": self.email,
            "accessLevel": self.access_level,
            "canShare": self.can_share,
            "canCompute": self.can_compute,
        }
