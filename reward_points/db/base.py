from sqlalchemy import Column, Integer, DateTime, String
from sqlalchemy.sql import func
from reward_points.models.base import Base

class BaseModel(Base):
    """Base model with common fields"""
    __abstract__ = True
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    created_by = Column(String(20), nullable=True)  # employee_id of the actor
    updated_by = Column(String(20), nullable=True)
