from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from reward_points.models.shared.enums import MemberStatus

PASSWORD_MIN_LENGTH = 8

class AdminAccountCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

class AdminStatusUpdate(BaseModel):
    status: MemberStatus

class AdminPasswordReset(BaseModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

class AdminAccountResponse(BaseModel):
    id: int
    member_employee_id: str
    username: str
    email: str
    first_name: str
    last_name: str
    status: MemberStatus
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
