from sqlalchemy import Column, Integer, String, Text, Boolean, Enum as SQLEnum, UniqueConstraint, CheckConstraint
from reward_points.db.base import BaseModel
from reward_points.models.shared.enums import CriteriaTrack, CriteriaType

class Criteria(BaseModel):
    __tablename__ = 'criteria'
    __table_args__ = (
        UniqueConstraint('track', 'category', 'accomplishment', name='uq_criteria_track_category_accomplishment'),
        CheckConstraint('points > 0', name='ck_criteria_points_positive'),
    )

    track = Column(SQLEnum(CriteriaTrack), nullable=False, default=CriteriaTrack.MEMBER, index=True)
    category = Column(String(150), nullable=False, index=True)
    accomplishment = Column(String(255), nullable=False)
    points = Column(Integer, nullable=False)
    guidelines = Column(Text)
    director_approval = Column(Boolean, nullable=False, default=False)
    type = Column(SQLEnum(CriteriaType), nullable=False, default=CriteriaType.BOTH)
    remarks = Column(Text)
    is_published = Column(Boolean, nullable=False, default=False)
