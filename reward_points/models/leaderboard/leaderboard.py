from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from reward_points.db.base import BaseModel
from reward_points.models.shared.enums import PointBucket

class Leaderboard(BaseModel):
    __tablename__ = 'leaderboards'
    __table_args__ = (
        UniqueConstraint('employee_id', 'fiscal_year', name='uq_leaderboard_employee_fiscal_year'),
        UniqueConstraint('alias_name', name='uq_leaderboard_alias_name'),
    )

    employee_id = Column(String(20), ForeignKey('members.employee_id'), nullable=False, index=True)
    fiscal_year = Column(String(10), nullable=False, index=True)
    alias_name = Column(String(20), nullable=False)
    total_points = Column(Integer, nullable=False, default=0)
    approved_points = Column(Integer, nullable=False, default=0)
    for_approval_points = Column(Integer, nullable=False, default=0)
    rejected_points = Column(Integer, nullable=False, default=0)

    member = relationship("Member", lazy="selectin")

    def bucket(self, bucket: PointBucket) -> int:
        return getattr(self, bucket.value) or 0

    @property
    def buckets(self) -> dict:
        return {bucket: self.bucket(bucket) for bucket in PointBucket}
