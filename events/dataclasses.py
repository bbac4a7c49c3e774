"""
Value objects passed into the participation services.

Views build these from validated request data so the services never see
raw request payloads or live profile rows.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ProfileSnapshot:
    """Profile fields copied onto a registration when it is created."""

    display_name: str
    roll_no: str
    student_class: str
    section: str
    mobile: str

    @classmethod
    def from_user(cls, user) -> "ProfileSnapshot":
        return cls(
            display_name=user.display_name or user.get_full_name() or "",
            roll_no=user.roll_no or "",
            student_class=user.student_class or "",
            section=user.section or "",
            mobile=user.mobile or "",
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.roll_no.strip()) and bool(self.mobile.strip())


@dataclass(frozen=True)
class TeamMemberInput:
    """A member the leader lists directly at registration time."""

    name: str
    roll_no: str
    user_id: Optional[int] = None


@dataclass(frozen=True)
class TeamDetails:
    team_name: str
    members: list[TeamMemberInput] = field(default_factory=list)
