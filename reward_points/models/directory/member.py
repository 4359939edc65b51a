from sqlalchemy import Column, Integer, String, Enum as SQLEnum
from reward_points.db.base import BaseModel
from reward_points.models.shared.enums import MemberStatus, Role

class Member(BaseModel):
    """Local mirror of a directory account and its reporting line"""
    __tablename__ = 'members'

    employee_id = Column(String(20), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)
    title = Column(String(150))
    manager_id = Column(String(20), index=True)   # employee_id, may point at an inactive member
    director_id = Column(String(20), index=True)
    role_id = Column(Integer, nullable=False, default=Role.MEMBER.value)
    status = Column(SQLEnum(MemberStatus), nullable=False, default=MemberStatus.ACTIVE)

    @property
    def role(self) -> Role:
        return Role(self.role_id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE
