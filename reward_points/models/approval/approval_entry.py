from sqlalchemy import Column, Integer, String, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from reward_points.db.base import BaseModel
from reward_points.models.shared.enums import ApprovalStatus

class ApprovalEntry(BaseModel):
    __tablename__ = 'approval_entries'

    reward_entry_id = Column(Integer, ForeignKey('reward_entries.id', ondelete='CASCADE'), unique=True, nullable=False)
    manager_id = Column(String(20), ForeignKey('members.employee_id'), index=True)
    director_id = Column(String(20), ForeignKey('members.employee_id'), index=True)
    manager_approval_status = Column(SQLEnum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    director_approval_status = Column(SQLEnum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    manager_notes = Column(Text)
    director_notes = Column(Text)

    # Relationships
    reward_entry = relationship("RewardEntry", back_populates="approval_entry", lazy="selectin")
