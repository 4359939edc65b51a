from sqlalchemy import Column, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from reward_points.db.base import BaseModel

class ConsentLog(BaseModel):
    __tablename__ = 'consent_logs'

    employee_id = Column(String(20), ForeignKey('members.employee_id'), unique=True, nullable=False)
    internal_publication_consent = Column(Boolean, nullable=False, default=False)
    personal_data_consent = Column(Boolean, nullable=False, default=False)
    rewards_management_consent = Column(Boolean, nullable=False, default=False)

    member = relationship("Member", lazy="selectin")
