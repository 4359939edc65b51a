from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, JSON
from sqlalchemy.orm import relationship
from reward_points.db.base import BaseModel

class RewardEntry(BaseModel):
    __tablename__ = 'reward_entries'

    employee_id = Column(String(20), ForeignKey('members.employee_id'), nullable=False, index=True)
    criteria_id = Column(Integer, ForeignKey('criteria.id'), nullable=False)
    points = Column(Integer, nullable=False)  # criteria points at submission time
    short_description = Column(Text, nullable=False)
    date_accomplished = Column(Date, nullable=False)
    fiscal_year = Column(String(10), nullable=False, index=True)   # e.g. FY25
    race_season = Column(String(20), nullable=False)               # e.g. FY25 Q2
    group_name = Column(String(100), index=True)
    project_name = Column(String(150), index=True)
    notes = Column(Text)
    attachments = Column(JSON, nullable=False, default=list)  # [{filename, path, size}]

    # Relationships
    member = relationship("Member", foreign_keys=[employee_id], lazy="selectin")
    criteria = relationship("Criteria", lazy="selectin")
    approval_entry = relationship(
        "ApprovalEntry", back_populates="reward_entry", uselist=False,
        cascade="all, delete-orphan", lazy="selectin",
    )
