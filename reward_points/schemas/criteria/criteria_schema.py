from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from reward_points.models.shared.enums import CriteriaTrack, CriteriaType

class CriteriaBase(BaseModel):
    category: str = Field(..., min_length=1, max_length=150)
    accomplishment: str = Field(..., min_length=1, max_length=255)
    points: int = Field(..., gt=0)
    guidelines: Optional[str] = None
    director_approval: bool = False
    type: CriteriaType = CriteriaType.BOTH
    remarks: Optional[str] = None

class CriteriaCreate(CriteriaBase):
    track: CriteriaTrack = CriteriaTrack.MEMBER
    is_published: bool = False

class CriteriaUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1, max_length=150)
    accomplishment: Optional[str] = Field(None, min_length=1, max_length=255)
    points: Optional[int] = Field(None, gt=0)
    guidelines: Optional[str] = None
    director_approval: Optional[bool] = None
    type: Optional[CriteriaType] = None
    remarks: Optional[str] = None
    is_published: Optional[bool] = None

class CriteriaResponse(CriteriaBase):
    id: int
    track: CriteriaTrack
    is_published: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CriteriaImportResult(BaseModel):
    created: int = 0
    skipped: int = 0
    errors: list[str] = []
