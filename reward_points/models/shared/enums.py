from enum import Enum, IntEnum
from typing import Optional


class Role(IntEnum):
    SUPER_ADMIN = 1
    ADMIN = 2
    EXEC = 3           # VP / SVP / EVP / President
    DIRECTOR = 4
    MANAGER = 5
    MEMBER = 6         # Partner

    @property
    def is_admin(self) -> bool:
        return self in (Role.SUPER_ADMIN, Role.ADMIN)

    @property
    def criteria_track(self) -> "CriteriaTrack":
        if self is Role.MANAGER:
            return CriteriaTrack.MANAGER
        return CriteriaTrack.MEMBER

    @property
    def requires_review_step(self) -> bool:
        """Whether a submission by this role must pass through a manager review.

        Managers and directors sponsor their own entries, so only the
        director track applies to them.
        """
        return self not in (Role.MANAGER, Role.DIRECTOR)

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]

    @classmethod
    def from_title(cls, title: Optional[str]) -> "Role":
        """Derive a role from a directory job title"""
        normalized = (title or "").strip().lower()
        if not normalized:
            return cls.MEMBER
        for prefix in EXEC_TITLE_PREFIXES:
            if normalized.startswith(prefix):
                return cls.EXEC
        if "director" in normalized:
            return cls.DIRECTOR
        if "manager" in normalized:
            return cls.MANAGER
        return cls.MEMBER


EXEC_TITLE_PREFIXES = ("vp", "vice president", "svp", "senior vice president",
                       "evp", "executive vice president", "president")

ROLE_LABELS = {
    Role.SUPER_ADMIN: "Super Admin",
    Role.ADMIN: "Admin",
    Role.EXEC: "Executive",
    Role.DIRECTOR: "Director",
    Role.MANAGER: "Manager",
    Role.MEMBER: "Partner",
}


class MemberStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class ApprovalState(str, Enum):
    AWAITING_MANAGER = "AWAITING_MANAGER"
    AWAITING_DIRECTOR = "AWAITING_DIRECTOR"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class ApprovalTrack(str, Enum):
    MANAGER = "manager"
    DIRECTOR = "director"

class ApprovalDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

class CriteriaTrack(str, Enum):
    MEMBER = "MEMBER"
    MANAGER = "MANAGER"

class CriteriaType(str, Enum):
    EXPERTS = "EXPERTS"
    DELIVERY = "DELIVERY"
    BOTH = "BOTH"

class PointBucket(str, Enum):
    FOR_APPROVAL = "for_approval_points"
    APPROVED = "approved_points"
    REJECTED = "rejected_points"

class NotificationPurpose(str, Enum):
    SUBMISSION = "submission"
    APPROVAL = "approval"
    RESUBMISSION = "resubmission"
