from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from reward_points.schemas.criteria.criteria_schema import CriteriaResponse

class Attachment(BaseModel):
    filename: str
    path: str
    size: int = 0

class RewardEntrySubmit(BaseModel):
    criteria_id: int
    short_description: str = Field(..., min_length=1)
    date_accomplished: date
    group_name: Optional[str] = None
    project_name: Optional[str] = None
    notes: Optional[str] = None

class RewardEntryUpdate(BaseModel):
    short_description: Optional[str] = Field(None, min_length=1)
    date_accomplished: Optional[date] = None
    group_name: Optional[str] = None
    project_name: Optional[str] = None
    notes: Optional[str] = None
    attachments_to_delete: List[str] = []  # filenames

class RewardEntryResponse(BaseModel):
    id: int
    employee_id: str
    criteria_id: int
    points: int
    short_description: str
    date_accomplished: date
    fiscal_year: str
    race_season: str
    group_name: Optional[str] = None
    project_name: Optional[str] = None
    notes: Optional[str] = None
    attachments: List[Attachment] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RewardEntryDetail(RewardEntryResponse):
    criteria: Optional[CriteriaResponse] = None
