from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from reward_points.models.shared.enums import MemberStatus, Role

class DirectoryRecord(BaseModel):
    """Account payload as returned by the directory gateway"""
    employee_id: str
    username: str
    first_name: str
    last_name: str
    email: EmailStr
    title: Optional[str] = None
    manager_id: Optional[str] = None
    director_id: Optional[str] = None

class MemberUpdate(BaseModel):
    title: Optional[str] = None
    manager_id: Optional[str] = None
    director_id: Optional[str] = None
    role_id: Optional[Role] = None
    status: Optional[MemberStatus] = None

class MemberStatusUpdate(BaseModel):
    status: MemberStatus

class MemberResponse(BaseModel):
    id: int
    employee_id: str
    username: str
    first_name: str
    last_name: str
    email: str
    title: Optional[str] = None
    manager_id: Optional[str] = None
    director_id: Optional[str] = None
    manager_name: Optional[str] = None
    director_name: Optional[str] = None
    role_id: Role
    status: MemberStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MemberBrief(BaseModel):
    employee_id: str
    first_name: str
    last_name: str
    email: str
    title: Optional[str] = None
    role_id: Role

    class Config:
        from_attributes = True

class SyncError(BaseModel):
    username: str
    error: str

class DirectorySyncReport(BaseModel):
    processed: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: list[SyncError] = []
