from sqlalchemy import Column, DateTime, String, Enum as SQLEnum
from reward_points.db.base import BaseModel
from reward_points.models.shared.enums import MemberStatus

class AdminAccount(BaseModel):
    """Locally managed administrator login, paired with a SUPER_ADMIN member row"""
    __tablename__ = 'admin_accounts'

    member_employee_id = Column(String(20), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(150), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    status = Column(SQLEnum(MemberStatus, name="adminstatus"), nullable=False, default=MemberStatus.ACTIVE)
    last_login = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE

    def __repr__(self):
        return f"<AdminAccount {self.username}>"
