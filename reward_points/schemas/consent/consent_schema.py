from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class ConsentUpdate(BaseModel):
    internal_publication_consent: bool = False
    personal_data_consent: bool = False
    rewards_management_consent: bool = False

class ConsentResponse(ConsentUpdate):
    employee_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ConsentWithMember(ConsentResponse):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
